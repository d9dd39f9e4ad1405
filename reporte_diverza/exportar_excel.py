"""Exportacion del reporte Diverza a Excel con formato.

Genera un solo archivo ``01_reporte_diverza_TIMESTAMP.xlsx`` con:

    resumen          Metricas generales (facturacion y clientes)
    registros        Listado canonico completo
    por_cliente      Monto total por cliente
    por_mes          Monto total por mes de factura (cronologico)
    por_estado       Conteo por estado de factura
    por_gerencia     Conteo por gerencia
    por_regimen      Conteo por grupo de regimen fiscal
    por_mes_firma    Contratos firmados por mes
    por_expiracion   CSD por horizonte de expiracion

Las hojas vacias se omiten, excepto ``resumen``.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Optional, Sequence

import pandas as pd
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from config.settings import EXCEL_ENGINE, EXCEL_NOMBRES
from reporte_diverza.estadisticas import EstadisticasDashboard, estadisticas_a_dataframes
from reporte_diverza.normalizador import RegistroDiverza, registros_a_dataframe

logger = logging.getLogger(__name__)

NOMBRE_BASE: str = EXCEL_NOMBRES["reporte"]

ORDEN_HOJAS: list[str] = [
    "resumen",
    "registros",
    "por_cliente",
    "por_mes",
    "por_estado",
    "por_gerencia",
    "por_regimen",
    "por_mes_firma",
    "por_expiracion",
]

COLUMNAS_MONEDA: set[str] = {"SUBTOTAL", "IVA", "TOTAL", "MONTO_TOTAL"}
COLUMNAS_FECHA: set[str] = {"FECHA", "EXP_CSD", "FECHA_FIRMA"}

# Columnas que el pipeline deriva en lugar de copiar del archivo.
COLUMNAS_DERIVADAS: set[str] = {"CSD"}

_RE_ISO_COMPLETA = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_HEADER_FONT: Font = Font(bold=True, color="FFFFFF", size=11)
_HEADER_FILL: PatternFill = PatternFill(
    start_color="4472C4", end_color="4472C4", fill_type="solid",
)
_CALC_HEADER_FILL: PatternFill = PatternFill(
    start_color="548235", end_color="548235", fill_type="solid",
)
_HEADER_ALIGNMENT: Alignment = Alignment(horizontal="center", vertical="center")
_THIN_BORDER: Border = Border(
    left=Side(style="thin", color="B4C6E7"),
    right=Side(style="thin", color="B4C6E7"),
    top=Side(style="thin", color="B4C6E7"),
    bottom=Side(style="thin", color="B4C6E7"),
)
_BAND_FILL: PatternFill = PatternFill(
    start_color="D9E2F3", end_color="D9E2F3", fill_type="solid",
)


# ======================================================================
# FORMATO EXCEL: FUNCIONES INTERNAS
# ======================================================================

def _aplicar_formato_encabezado(ws: Any, columnas: list[str]) -> None:
    """Encabezado azul; verde para las columnas derivadas por el pipeline."""
    for col_idx, nombre in enumerate(columnas, start=1):
        cell = ws.cell(row=1, column=col_idx)
        cell.font = _HEADER_FONT
        cell.fill = _CALC_HEADER_FILL if nombre.upper() in COLUMNAS_DERIVADAS else _HEADER_FILL
        cell.alignment = _HEADER_ALIGNMENT
        cell.border = _THIN_BORDER


def _aplicar_bordes_y_bandas(ws: Any, n_filas: int, n_cols: int) -> None:
    """Bordes delgados en todas las celdas y filas pares sombreadas."""
    for row_idx in range(2, n_filas + 2):
        sombrear = row_idx % 2 == 0
        for col_idx in range(1, n_cols + 1):
            cell = ws.cell(row=row_idx, column=col_idx)
            cell.border = _THIN_BORDER
            if sombrear:
                cell.fill = _BAND_FILL


def _aplicar_formatos_columna(ws: Any, columnas: list[str], n_filas: int) -> None:
    """Formato de moneda y fecha segun el nombre de la columna.

    En columnas de fecha solo las celdas datetime reciben el formato; el
    texto crudo que no se pudo normalizar se deja como esta.
    """
    for col_idx, col_name in enumerate(columnas, start=1):
        col_upper = col_name.upper()
        if col_upper in COLUMNAS_MONEDA:
            formato = "#,##0.00"
        elif col_upper in COLUMNAS_FECHA:
            formato = "DD/MM/YYYY"
        else:
            continue
        for row_idx in range(2, n_filas + 2):
            cell = ws.cell(row=row_idx, column=col_idx)
            if formato == "DD/MM/YYYY" and isinstance(cell.value, str):
                continue
            cell.number_format = formato


def _autoajustar_ancho_columnas(ws: Any) -> None:
    """Ajusta el ancho de cada columna al contenido mas ancho (10 a 60)."""
    for col_cells in ws.columns:
        max_length = 0
        col_letter = col_cells[0].column_letter
        for cell in col_cells:
            if cell.value is None:
                continue
            fmt = cell.number_format or ""
            if "YYYY" in fmt:
                cell_len = 10
            elif "#,##0" in fmt:
                try:
                    cell_len = len(f"{float(cell.value):,.2f}")
                except (ValueError, TypeError):
                    cell_len = len(str(cell.value))
            else:
                cell_len = len(str(cell.value))
            max_length = max(max_length, cell_len)
        ws.column_dimensions[col_letter].width = min(max(max_length + 3, 10), 60)


def _escribir_hoja(writer: Any, nombre_hoja: str, df: pd.DataFrame) -> None:
    """Escribe un DataFrame como hoja con formato completo."""
    sheet_name = nombre_hoja[:31]
    df.to_excel(writer, sheet_name=sheet_name, index=False)

    ws = writer.sheets[sheet_name]
    columnas = [str(c) for c in df.columns]

    _aplicar_formato_encabezado(ws, columnas)
    _aplicar_bordes_y_bandas(ws, len(df), len(columnas))
    _aplicar_formatos_columna(ws, columnas, len(df))
    _autoajustar_ancho_columnas(ws)
    ws.sheet_view.showGridLines = False
    ws.freeze_panes = "A2"

    logger.info("  Hoja '%s': %d filas", sheet_name, len(df))


# ======================================================================
# PREPARACION DE DATOS
# ======================================================================

def _texto_a_fecha(valor: Any) -> Any:
    """Convierte ``YYYY-MM-DD`` a Timestamp; cualquier otro valor queda igual."""
    if isinstance(valor, str) and _RE_ISO_COMPLETA.match(valor):
        try:
            return pd.Timestamp(valor)
        except ValueError:
            return valor
    return valor


def preparar_hoja_registros(registros: Sequence[RegistroDiverza]) -> pd.DataFrame:
    """Listado canonico con encabezados en mayusculas y fechas reales.

    Las fechas ISO se escriben como fechas de Excel para que se puedan
    filtrar y ordenar; las que quedaron como texto crudo se conservan.
    """
    df = registros_a_dataframe(registros)
    for columna in ("fecha", "exp_csd", "fecha_firma"):
        df[columna] = df[columna].map(_texto_a_fecha).astype(object)
        df[columna] = df[columna].where(df[columna] != "", None)
    df.columns = [c.upper() for c in df.columns]
    return df


# ======================================================================
# EXPORTACION
# ======================================================================

def exportar_reporte(
    registros: Sequence[RegistroDiverza],
    stats: EstadisticasDashboard,
    output_dir: Path,
    timestamp: str,
    nombre_base: str = NOMBRE_BASE,
    tablas: Optional[dict[str, pd.DataFrame]] = None,
    engine: str = EXCEL_ENGINE,
) -> Path:
    """Exporta listado y estadisticas a un archivo Excel.

    Args:
        registros: Listado canonico de la ingesta.
        stats: Estadisticas calculadas sobre ``registros``.
        output_dir: Directorio de salida; se crea si no existe.
        timestamp: Sufijo con formato YYYYMMDD_HHMMSS.
        nombre_base: Nombre del archivo sin timestamp ni extension.
        tablas: Tablas ya derivadas de ``stats``; si es None se calculan.
        engine: Motor de escritura de pandas.

    Returns:
        Path al archivo .xlsx generado.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    filepath = output_dir / f"{nombre_base}_{timestamp}.xlsx"

    hojas = dict(tablas if tablas is not None else estadisticas_a_dataframes(stats))
    hojas["registros"] = preparar_hoja_registros(registros)

    with pd.ExcelWriter(filepath, engine=engine) as writer:
        for nombre_hoja in ORDEN_HOJAS:
            df = hojas.get(nombre_hoja)
            if df is None or (df.empty and nombre_hoja != "resumen"):
                continue
            _escribir_hoja(writer, nombre_hoja, df)

    logger.info("Excel exportado: %s", filepath)
    return filepath
