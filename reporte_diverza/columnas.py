"""Resolucion heuristica de columnas del reporte Diverza.

Los exportes cambian el texto de los encabezados entre versiones
("Régimen fiscal", "regimen", "RegimenFiscal"...). Cada campo logico
declara una lista priorizada de fragmentos de encabezado y se toma la
primera columna que *contenga* alguno de ellos.

Orden de busqueda:
    1. Candidatos en el orden declarado.
    2. Para cada candidato, encabezados de izquierda a derecha.

El primer acierto gana. Si ningun candidato aparece, el campo queda
sin columna (``None``) y el normalizador le asigna su valor por defecto.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

logger = logging.getLogger(__name__)

# ======================================================================
# TABLA DE CAMPOS
# ======================================================================

CAMPOS_DIVERZA: dict[str, tuple[str, ...]] = {
    # Campos de facturacion
    "fecha":        ("fecha", "date", "fecha firma"),
    "cliente":      ("cliente", "nombre", "razon social", "customer", "id"),
    "rfc":          ("rfc",),
    "concepto":     ("concepto", "descripcion", "description"),
    "subtotal":     ("subtotal", "sub total"),
    "iva":          ("iva", "impuesto"),
    "total":        ("total", "monto", "importe"),
    "estado":       ("estado", "status", "estatus"),
    "uuid":         ("uuid", "folio fiscal"),
    # Campos de cliente
    "id_registro":  ("id", "no.", "numero", "num"),
    "razon_social": ("razon social", "razón social", "nombre", "cliente"),
    "gerencia":     ("gerencia", "sucursal", "oficina"),
    "regimen":      ("regimen", "régimen", "regimen fiscal"),
    "csd":          ("csd", "certificado", "estatus csd"),
    "exp_csd":      ("exp. csd", "exp csd", "expiracion csd", "vencimiento"),
    "fecha_firma":  ("fecha firma", "firma", "fecha de firma"),
    "email":        ("email", "correo", "e-mail", "mail"),
}


# ======================================================================
# RESOLUCION
# ======================================================================

def normalizar_encabezados(fila: Optional[Sequence[Any]]) -> list[str]:
    """Convierte la fila de encabezados a texto en minusculas sin espacios extremos.

    Args:
        fila: Primera fila del grid. Puede contener ``None`` o numeros.

    Returns:
        Lista de encabezados normalizados; las celdas vacias quedan como "".
    """
    if not fila:
        return []
    return ["" if h is None else str(h).lower().strip() for h in fila]


def resolver_columna(
    encabezados: Sequence[str],
    candidatos: Sequence[str],
) -> Optional[int]:
    """Devuelve el indice de la primera columna que contiene algun candidato.

    Args:
        encabezados: Encabezados ya normalizados con ``normalizar_encabezados``.
        candidatos: Fragmentos en orden de prioridad.

    Returns:
        Indice de columna, o None si ningun candidato aparece.
    """
    for candidato in candidatos:
        for indice, encabezado in enumerate(encabezados):
            if candidato in encabezado:
                return indice
    return None


def resolver_columnas(
    encabezados: Sequence[str],
    campos: dict[str, Sequence[str]] = CAMPOS_DIVERZA,
) -> dict[str, Optional[int]]:
    """Resuelve todos los campos logicos contra una fila de encabezados.

    Se ejecuta una vez por archivo: dos exportes distintos pueden traer
    las columnas en otro orden o con otro texto.

    Args:
        encabezados: Encabezados normalizados.
        campos: Mapeo campo -> candidatos. Por defecto ``CAMPOS_DIVERZA``.

    Returns:
        Mapeo campo -> indice de columna (o None).
    """
    indices = {campo: resolver_columna(encabezados, cands) for campo, cands in campos.items()}
    sin_columna = [campo for campo, idx in indices.items() if idx is None]
    logger.debug("Columnas resueltas: %s", indices)
    if sin_columna:
        logger.info("Campos sin columna en el archivo: %s", ", ".join(sin_columna))
    return indices
