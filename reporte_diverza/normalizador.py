"""Construccion de registros canonicos a partir del grid crudo.

Recibe el grid 2-D que entrega el lector de Excel (fila 0 = encabezados)
y produce una lista de ``RegistroDiverza`` tipados. Las columnas se
resuelven una sola vez por archivo; despues cada fila se convierte campo
por campo:

    - Campos numericos (subtotal, iva, total): ``convertir_numero``.
    - Campos de fecha (fecha, exp_csd, fecha_firma): ``convertir_fecha``.
    - CSD: se deriva con la politica de clasificacion, no se copia.
    - Resto: texto recortado con su valor por defecto.

Una fila solo entra al listado si tiene cliente o un total positivo; las
demas se descartan sin error.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from typing import Any, Optional, Sequence

import pandas as pd

from reporte_diverza.clasificacion import POLITICA_ESTRICTA, clasificar_csd
from reporte_diverza.coercion import a_texto, convertir_fecha, convertir_numero
from reporte_diverza.columnas import (
    CAMPOS_DIVERZA,
    normalizar_encabezados,
    resolver_columnas,
)

logger = logging.getLogger(__name__)

ESTADO_DEFECTO: str = "Pendiente"
SIN_DATO: str = "N/A"

CAMPOS_NUMERICOS: tuple[str, ...] = ("subtotal", "iva", "total")
CAMPOS_FECHA: tuple[str, ...] = ("fecha", "exp_csd", "fecha_firma")

_DEFECTOS_TEXTO: dict[str, str] = {
    "estado": ESTADO_DEFECTO,
    "gerencia": SIN_DATO,
    "regimen": SIN_DATO,
}


@dataclass
class RegistroDiverza:
    """Registro canonico: una fila aceptada del reporte Diverza.

    Attributes:
        fecha: Fecha de la factura (YYYY-MM-DD o texto crudo).
        cliente: Identificador de cliente; si el archivo no trae columna
            de cliente se usa el numero de fila.
        rfc: RFC del cliente.
        concepto: Descripcion de la factura.
        subtotal: Importe antes de impuestos.
        iva: Impuesto.
        total: Importe total.
        estado: Estado de la factura tal como viene en el archivo.
        uuid: Folio fiscal.
        id_registro: Numero de registro del cliente.
        razon_social: Nombre o razon social.
        gerencia: Gerencia / sucursal responsable.
        regimen: Regimen fiscal tal como viene en el archivo.
        csd: Estatus derivado del CSD ("Activo", "Inactivo" o "").
        exp_csd: Expiracion del CSD (YYYY-MM-DD, texto crudo o "").
        fecha_firma: Fecha de firma del contrato (YYYY-MM-DD, crudo o "").
        email: Correo de contacto.
    """

    fecha: str = ""
    cliente: str = ""
    rfc: str = ""
    concepto: str = ""
    subtotal: float = 0.0
    iva: float = 0.0
    total: float = 0.0
    estado: str = ESTADO_DEFECTO
    uuid: str = ""
    id_registro: str = ""
    razon_social: str = ""
    gerencia: str = SIN_DATO
    regimen: str = SIN_DATO
    csd: str = ""
    exp_csd: str = ""
    fecha_firma: str = ""
    email: str = ""

    def a_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def desde_dict(cls, datos: dict[str, Any]) -> "RegistroDiverza":
        """Reconstruye un registro desde un dict (por ejemplo, JSON de sesion).

        Las claves desconocidas se ignoran y los importes se vuelven a
        convertir para tolerar valores guardados como texto.
        """
        valores: dict[str, Any] = {}
        for campo in fields(cls):
            if campo.name not in datos:
                continue
            valor = datos[campo.name]
            if campo.name in CAMPOS_NUMERICOS:
                valores[campo.name] = convertir_numero(valor)
            else:
                valores[campo.name] = a_texto(valor)
        return cls(**valores)


COLUMNAS_REGISTRO: list[str] = [campo.name for campo in fields(RegistroDiverza)]


# ======================================================================
# NORMALIZACION
# ======================================================================

def _fila_vacia(fila: Optional[Sequence[Any]]) -> bool:
    if not fila:
        return True
    return all(not a_texto(celda).strip() for celda in fila)


def _celda(fila: Sequence[Any], indice: Optional[int]) -> Any:
    if indice is None or indice >= len(fila):
        return None
    return fila[indice]


def _construir_registro(
    fila: Sequence[Any],
    indices: dict[str, Optional[int]],
    ordinal: int,
    politica_csd: str,
) -> RegistroDiverza:
    """Convierte una fila cruda en un RegistroDiverza."""
    valores: dict[str, Any] = {}

    for campo in COLUMNAS_REGISTRO:
        celda = _celda(fila, indices.get(campo))

        if campo in CAMPOS_NUMERICOS:
            valores[campo] = convertir_numero(celda)
        elif campo in CAMPOS_FECHA:
            valores[campo] = convertir_fecha(celda)
        elif campo == "csd":
            valores[campo] = clasificar_csd(a_texto(celda), politica_csd)
        else:
            texto = a_texto(celda).strip()
            valores[campo] = texto or _DEFECTOS_TEXTO.get(campo, "")

    if indices.get("cliente") is None:
        valores["cliente"] = str(ordinal)

    return RegistroDiverza(**valores)


def normalizar_registros(
    grid: Optional[Sequence[Sequence[Any]]],
    campos: dict[str, Sequence[str]] = CAMPOS_DIVERZA,
    politica_csd: str = POLITICA_ESTRICTA,
) -> list[RegistroDiverza]:
    """Convierte el grid crudo en la lista de registros canonicos.

    Args:
        grid: Filas de celdas; la fila 0 contiene los encabezados.
        campos: Tabla de candidatos por campo (ver ``CAMPOS_DIVERZA``).
        politica_csd: Politica para derivar el estatus del CSD.

    Returns:
        Registros aceptados en el orden del archivo. Lista vacia si el
        grid tiene menos de dos filas.
    """
    if not grid or len(grid) < 2:
        logger.info("Grid sin filas de datos — listado vacio.")
        return []

    encabezados = normalizar_encabezados(grid[0])
    indices = resolver_columnas(encabezados, campos)

    registros: list[RegistroDiverza] = []
    vacias = 0
    descartadas = 0

    for ordinal, fila in enumerate(grid[1:], start=1):
        if _fila_vacia(fila):
            vacias += 1
            continue
        registro = _construir_registro(fila, indices, ordinal, politica_csd)
        if registro.cliente or registro.total > 0:
            registros.append(registro)
        else:
            descartadas += 1

    logger.info(
        "Normalizacion completada — %d registros aceptados, %d descartados, %d filas vacias.",
        len(registros), descartadas, vacias,
    )
    return registros


def registros_a_dataframe(registros: Sequence[RegistroDiverza]) -> pd.DataFrame:
    """Convierte la lista de registros en un DataFrame con columnas fijas."""
    return pd.DataFrame([r.a_dict() for r in registros], columns=COLUMNAS_REGISTRO)
