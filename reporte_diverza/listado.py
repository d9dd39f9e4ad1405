"""Filtrado, ordenamiento y exportacion CSV del listado de clientes.

Los filtros de drill-down (mes, gerencia, regimen, expiracion) usan las
mismas funciones de clasificacion que las estadisticas, de modo que al
hacer clic en una barra de la grafica el listado muestra exactamente los
registros contados en esa barra.
"""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Sequence

import pandas as pd

from reporte_diverza.clasificacion import (
    CSD_ACTIVO,
    CSD_INACTIVO,
    clasificar_expiracion,
    clasificar_regimen,
    etiqueta_mes,
    normalizar_gerencia,
)
from reporte_diverza.normalizador import (
    CAMPOS_NUMERICOS,
    COLUMNAS_REGISTRO,
    RegistroDiverza,
)

logger = logging.getLogger(__name__)

FILTRO_MES: str = "mes"
FILTRO_GERENCIA: str = "gerencia"
FILTRO_REGIMEN: str = "regimen"
FILTRO_EXPIRACION: str = "expiracion"
TIPOS_FILTRO: tuple[str, ...] = (
    FILTRO_MES, FILTRO_GERENCIA, FILTRO_REGIMEN, FILTRO_EXPIRACION,
)

# Campos del CSV en orden, con su encabezado visible.
COLUMNAS_CSV: dict[str, str] = {
    "id_registro": "ID",
    "razon_social": "Razón Social",
    "rfc": "RFC",
    "gerencia": "Gerencia",
    "regimen": "Régimen",
    "csd": "CSD",
    "exp_csd": "Exp. CSD",
    "fecha_firma": "Fecha Firma",
    "email": "Email",
}

_CAMPOS_BUSQUEDA: tuple[str, ...] = ("razon_social", "rfc", "gerencia", "email", "id_registro")


@dataclass
class FiltroListado:
    """Criterios del listado.

    Attributes:
        busqueda: Texto libre; se busca sin distinguir mayusculas en
            razon social, RFC, gerencia, email e ID.
        csd: "Activo", "Inactivo" o "" (sin filtro).
        regimen: Regimen fiscal exacto o "" (sin filtro).
        tipo: Tipo de drill-down (ver ``TIPOS_FILTRO``) o "".
        valor: Etiqueta seleccionada en la grafica del drill-down.
    """

    busqueda: str = ""
    csd: str = ""
    regimen: str = ""
    tipo: str = ""
    valor: str = ""

    @property
    def tiene_drilldown(self) -> bool:
        return bool(self.tipo and self.valor)


def _coincide_busqueda(registro: RegistroDiverza, termino: str) -> bool:
    termino = termino.strip().lower()
    if not termino:
        return True
    return any(termino in getattr(registro, campo).lower() for campo in _CAMPOS_BUSQUEDA)


def _coincide_csd(registro: RegistroDiverza, csd: str) -> bool:
    if csd == CSD_ACTIVO:
        return registro.csd == CSD_ACTIVO
    if csd == CSD_INACTIVO:
        return registro.csd != CSD_ACTIVO
    return True


def _coincide_drilldown(
    registro: RegistroDiverza,
    tipo: str,
    valor: str,
    referencia: datetime,
) -> bool:
    if tipo == FILTRO_MES:
        return bool(registro.fecha_firma) and etiqueta_mes(registro.fecha_firma) == valor
    if tipo == FILTRO_GERENCIA:
        return bool(registro.gerencia) and normalizar_gerencia(registro.gerencia) == valor
    if tipo == FILTRO_REGIMEN:
        return bool(registro.regimen) and clasificar_regimen(registro.regimen) == valor
    if tipo == FILTRO_EXPIRACION:
        return (
            bool(registro.exp_csd)
            and clasificar_expiracion(registro.exp_csd, referencia) == valor
        )
    return True


def filtrar_registros(
    registros: Sequence[RegistroDiverza],
    filtro: FiltroListado,
    referencia: Optional[datetime] = None,
) -> list[RegistroDiverza]:
    """Aplica los criterios del filtro conservando el orden original.

    Args:
        registros: Listado canonico.
        filtro: Criterios a aplicar; los vacios no filtran.
        referencia: Momento para el drill-down de expiracion. Debe ser el
            mismo usado al calcular las estadisticas.

    Returns:
        Registros que cumplen todos los criterios.
    """
    if referencia is None:
        referencia = datetime.now()

    tipo = filtro.tipo if filtro.tiene_drilldown else ""
    if tipo and tipo not in TIPOS_FILTRO:
        logger.warning("Tipo de filtro desconocido '%s' — se ignora.", tipo)
        tipo = ""

    return [
        r for r in registros
        if _coincide_busqueda(r, filtro.busqueda)
        and _coincide_csd(r, filtro.csd)
        and (not filtro.regimen or r.regimen == filtro.regimen)
        and (not tipo or _coincide_drilldown(r, tipo, filtro.valor, referencia))
    ]


def ordenar_registros(
    registros: Sequence[RegistroDiverza],
    columna: str,
    descendente: bool = False,
) -> list[RegistroDiverza]:
    """Ordena por cualquier campo del registro.

    Los importes se comparan como numeros y el resto como texto sin
    distinguir mayusculas. El orden es estable.

    Raises:
        ValueError: Si la columna no es un campo del registro.
    """
    if columna not in COLUMNAS_REGISTRO:
        raise ValueError(f"Columna de ordenamiento desconocida: {columna!r}")

    if columna in CAMPOS_NUMERICOS:
        clave = lambda r: getattr(r, columna)  # noqa: E731
    else:
        clave = lambda r: str(getattr(r, columna)).lower()  # noqa: E731
    return sorted(registros, key=clave, reverse=descendente)


def regimenes_disponibles(registros: Sequence[RegistroDiverza]) -> list[str]:
    """Regimenes distintos en orden de primera aparicion."""
    return list(dict.fromkeys(r.regimen for r in registros if r.regimen))


# ======================================================================
# CSV
# ======================================================================

def listado_a_dataframe(registros: Sequence[RegistroDiverza]) -> pd.DataFrame:
    """Tabla del listado con los encabezados visibles del CSV."""
    filas: list[dict[str, Any]] = [
        {encabezado: getattr(r, campo) for campo, encabezado in COLUMNAS_CSV.items()}
        for r in registros
    ]
    return pd.DataFrame(filas, columns=list(COLUMNAS_CSV.values()))


def exportar_csv(registros: Sequence[RegistroDiverza]) -> str:
    """Serializa el listado a CSV con todos los campos entre comillas.

    Returns:
        Texto CSV: una fila de encabezados y una fila por registro.
    """
    df = listado_a_dataframe(registros)
    return df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")


def guardar_csv(registros: Sequence[RegistroDiverza], ruta: Path) -> Path:
    """Escribe el CSV del listado en disco (UTF-8)."""
    ruta = Path(ruta)
    ruta.parent.mkdir(parents=True, exist_ok=True)
    ruta.write_text(exportar_csv(registros), encoding="utf-8")
    logger.info("CSV exportado: %s (%d registros)", ruta, len(registros))
    return ruta
