"""Motor de estadisticas del reporte Diverza.

Recorre una sola vez la lista de registros canonicos y acumula:

    Facturacion
        total_facturas, total_monto, total_iva, promedio_factura,
        facturas pagadas / canceladas / pendientes, por_cliente (suma),
        por_mes (suma por mes de ``fecha``), por_estado (conteo por
        estado crudo).

    Clientes
        total_registros, csd_activos, csd_inactivos, pendientes_firma,
        por_gerencia, por_regimen, por_mes_firma (conteo por mes de
        ``fecha_firma``), por_expiracion (horizonte de expiracion del CSD).

El horizonte de expiracion depende de la fecha de referencia, que se
recibe como parametro para que el calculo sea reproducible.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Optional, Sequence

import pandas as pd

from reporte_diverza.clasificacion import (
    CSD_ACTIVO,
    CSD_INACTIVO,
    ESTADO_CANCELADA,
    ESTADO_PAGADA,
    ORDEN_EXPIRACION,
    clasificar_estado,
    clasificar_expiracion,
    clasificar_regimen,
    etiqueta_mes,
    normalizar_gerencia,
    ordenar_meses,
)
from reporte_diverza.normalizador import RegistroDiverza

logger = logging.getLogger(__name__)


@dataclass
class EstadisticasDashboard:
    """Agregados de un listado de registros.

    Los diccionarios de agrupacion no tienen orden garantizado; cada
    consumidor ordena segun lo que muestra (ver ``estadisticas_a_dataframes``).
    """

    # Facturacion
    total_facturas: int = 0
    total_monto: float = 0.0
    total_iva: float = 0.0
    promedio_factura: float = 0.0
    facturas_pagadas: int = 0
    facturas_pendientes: int = 0
    facturas_canceladas: int = 0
    por_cliente: dict[str, float] = field(default_factory=dict)
    por_mes: dict[str, float] = field(default_factory=dict)
    por_estado: dict[str, int] = field(default_factory=dict)
    # Clientes
    total_registros: int = 0
    csd_activos: int = 0
    csd_inactivos: int = 0
    pendientes_firma: int = 0
    por_gerencia: dict[str, int] = field(default_factory=dict)
    por_regimen: dict[str, int] = field(default_factory=dict)
    por_mes_firma: dict[str, int] = field(default_factory=dict)
    por_expiracion: dict[str, int] = field(default_factory=dict)

    def a_dict(self) -> dict[str, Any]:
        return asdict(self)


def _sumar(acumulado: dict[str, Any], clave: str, valor: Any) -> None:
    acumulado[clave] = acumulado.get(clave, 0) + valor


# ======================================================================
# FUNCION PRINCIPAL
# ======================================================================

def calcular_estadisticas(
    registros: Sequence[RegistroDiverza],
    referencia: Optional[datetime] = None,
) -> EstadisticasDashboard:
    """Calcula todos los agregados en una sola pasada.

    Args:
        registros: Registros canonicos de una ingesta.
        referencia: Momento contra el que se mide la expiracion del CSD.
            Si es None se usa la hora actual.

    Returns:
        EstadisticasDashboard nuevo; no se modifica ningun estado externo.
    """
    if referencia is None:
        referencia = datetime.now()

    stats = EstadisticasDashboard(
        total_facturas=len(registros),
        total_registros=len(registros),
    )
    sin_expiracion_valida = 0

    for item in registros:
        stats.total_monto += item.total
        stats.total_iva += item.iva

        clase = clasificar_estado(item.estado)
        if clase == ESTADO_PAGADA:
            stats.facturas_pagadas += 1
        elif clase == ESTADO_CANCELADA:
            stats.facturas_canceladas += 1
        else:
            stats.facturas_pendientes += 1

        if item.cliente:
            _sumar(stats.por_cliente, item.cliente, item.total)

        if item.fecha:
            _sumar(stats.por_mes, etiqueta_mes(item.fecha), item.total)

        if item.estado:
            _sumar(stats.por_estado, item.estado, 1)

        if item.csd == CSD_ACTIVO:
            stats.csd_activos += 1
        elif item.csd == CSD_INACTIVO:
            stats.csd_inactivos += 1

        if not item.fecha_firma or not item.fecha_firma.strip():
            stats.pendientes_firma += 1

        if item.gerencia:
            _sumar(stats.por_gerencia, normalizar_gerencia(item.gerencia), 1)

        if item.regimen:
            _sumar(stats.por_regimen, clasificar_regimen(item.regimen), 1)

        if item.fecha_firma:
            _sumar(stats.por_mes_firma, etiqueta_mes(item.fecha_firma), 1)

        if item.exp_csd:
            horizonte = clasificar_expiracion(item.exp_csd, referencia)
            if horizonte is None:
                sin_expiracion_valida += 1
            else:
                _sumar(stats.por_expiracion, horizonte, 1)

    stats.promedio_factura = (
        stats.total_monto / stats.total_facturas if stats.total_facturas > 0 else 0.0
    )

    if sin_expiracion_valida:
        logger.warning(
            "%d registros con expiracion de CSD no reconocida — omitidos del horizonte.",
            sin_expiracion_valida,
        )
    logger.info(
        "Estadisticas calculadas — %d registros | monto: %.2f | pagadas: %d | "
        "canceladas: %d | pendientes: %d",
        stats.total_facturas, stats.total_monto, stats.facturas_pagadas,
        stats.facturas_canceladas, stats.facturas_pendientes,
    )
    return stats


# ======================================================================
# TABLAS PARA EXPORTACION Y GRAFICAS
# ======================================================================

def _tabla(
    datos: dict[str, Any],
    columna_clave: str,
    columna_valor: str,
    orden: Optional[Sequence[str]] = None,
    por_valor: bool = False,
) -> pd.DataFrame:
    """Convierte un dict de agrupacion en DataFrame ordenado."""
    if orden is not None:
        claves = list(orden)
    elif por_valor:
        claves = sorted(datos, key=lambda k: (-datos[k], k))
    else:
        claves = sorted(datos)
    filas = [(clave, datos[clave]) for clave in claves if clave in datos]
    return pd.DataFrame(filas, columns=[columna_clave, columna_valor])


def estadisticas_a_dataframes(stats: EstadisticasDashboard) -> dict[str, pd.DataFrame]:
    """Aplana las estadisticas en tablas listas para Excel, PDF o graficas.

    Returns:
        Dict con claves ``resumen``, ``por_cliente``, ``por_mes``,
        ``por_estado``, ``por_gerencia``, ``por_regimen``,
        ``por_mes_firma`` y ``por_expiracion``. Los meses van en orden
        cronologico y los horizontes de expiracion en su orden fijo.
    """
    resumen = pd.DataFrame(
        [
            ("Total de facturas", stats.total_facturas),
            ("Monto total", round(stats.total_monto, 2)),
            ("IVA total", round(stats.total_iva, 2)),
            ("Promedio por factura", round(stats.promedio_factura, 2)),
            ("Facturas pagadas", stats.facturas_pagadas),
            ("Facturas canceladas", stats.facturas_canceladas),
            ("Facturas pendientes", stats.facturas_pendientes),
            ("Total de registros", stats.total_registros),
            ("CSD activos", stats.csd_activos),
            ("CSD inactivos", stats.csd_inactivos),
            ("Pendientes de firma", stats.pendientes_firma),
        ],
        columns=["METRICA", "VALOR"],
        dtype=object,
    )

    return {
        "resumen": resumen,
        "por_cliente": _tabla(stats.por_cliente, "CLIENTE", "MONTO_TOTAL", por_valor=True),
        "por_mes": _tabla(
            stats.por_mes, "MES", "MONTO_TOTAL", orden=ordenar_meses(stats.por_mes),
        ),
        "por_estado": _tabla(stats.por_estado, "ESTADO", "NUM_REGISTROS", por_valor=True),
        "por_gerencia": _tabla(stats.por_gerencia, "GERENCIA", "NUM_REGISTROS", por_valor=True),
        "por_regimen": _tabla(stats.por_regimen, "REGIMEN", "NUM_REGISTROS", por_valor=True),
        "por_mes_firma": _tabla(
            stats.por_mes_firma, "MES_FIRMA", "NUM_REGISTROS",
            orden=ordenar_meses(stats.por_mes_firma),
        ),
        "por_expiracion": _tabla(
            stats.por_expiracion, "HORIZONTE_EXPIRACION", "NUM_REGISTROS",
            orden=ORDEN_EXPIRACION,
        ),
    }
