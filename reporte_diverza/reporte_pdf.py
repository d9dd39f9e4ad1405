"""Generador del resumen PDF del reporte Diverza.

Produce un PDF ejecutivo con las mismas vistas que el dashboard:

    - Portada.
    - Resumen: tabla de metricas, estado de facturas y estatus de CSD.
    - Facturacion por mes.
    - Top de clientes por monto.
    - Clientes por gerencia.
    - Clientes por regimen fiscal.
    - Contratos firmados por mes.
    - Expiracion de CSD.

Cada seccion lleva titulo, una explicacion breve, una grafica de
matplotlib y la tabla de datos. El PDF va en orientacion horizontal.

Uso desde main.py:
    from reporte_diverza.reporte_pdf import generar_reporte_pdf
    generar_reporte_pdf(stats, output_path, timestamp)
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Any, Optional, Sequence

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import matplotlib.ticker as mticker
import numpy as np
import pandas as pd

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import (
    Image,
    PageBreak,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from reporte_diverza.clasificacion import (
    EXPIRACION_1_2,
    EXPIRACION_6_12,
    EXPIRACION_MAS_2,
    EXPIRACION_MENOS_6,
)
from reporte_diverza.estadisticas import EstadisticasDashboard, estadisticas_a_dataframes

logger = logging.getLogger(__name__)

# ======================================================================
# PALETA DE COLORES
# ======================================================================

_AZUL_CORP   = "#2E4B8F"
_VERDE_CORP  = "#548235"
_ROJO_CORP   = "#C00000"
_NARANJA     = "#E67E22"
_AMARILLO    = "#D4AC0D"
_GRIS        = "#A6A6A6"
_GRIS_CLARO  = "#F2F2F2"
_AZUL_CLARO  = "#D9E2F3"
_PALETA_BARRAS = [
    "#2E4B8F", "#548235", "#C00000", "#E67E22",
    "#8E44AD", "#17A589", "#D4AC0D", "#922B21",
]

# Mas cerca de expirar, color mas intenso.
_COLORES_EXPIRACION: dict[str, str] = {
    EXPIRACION_MENOS_6: _ROJO_CORP,
    EXPIRACION_6_12: _NARANJA,
    EXPIRACION_1_2: _AMARILLO,
    EXPIRACION_MAS_2: _VERDE_CORP,
}

_PAGE_W, _PAGE_H = landscape(A4)
_MARGIN = 1.5 * cm

# ======================================================================
# ESTILOS
# ======================================================================

_BASE_STYLES = getSampleStyleSheet()

_STYLE_TITULO = ParagraphStyle(
    "TituloSeccion",
    parent=_BASE_STYLES["Heading1"],
    fontSize=14,
    textColor=colors.HexColor(_AZUL_CORP),
    spaceAfter=4,
    spaceBefore=0,
    leading=18,
)
_STYLE_SUBTITULO = ParagraphStyle(
    "Subtitulo",
    parent=_BASE_STYLES["Normal"],
    fontSize=9,
    textColor=colors.HexColor("#666666"),
    spaceAfter=6,
)
_STYLE_EXPLICACION = ParagraphStyle(
    "Explicacion",
    parent=_BASE_STYLES["Normal"],
    fontSize=9,
    leading=13,
    textColor=colors.black,
    spaceAfter=8,
    alignment=TA_JUSTIFY,
)
_STYLE_NOTA = ParagraphStyle(
    "Nota",
    parent=_BASE_STYLES["Normal"],
    fontSize=8,
    leading=11,
    textColor=colors.HexColor("#555555"),
    spaceAfter=4,
)

# ======================================================================
# HELPERS DE GRAFICA
# ======================================================================

_FIG_W_IN = (_PAGE_W - 2 * _MARGIN) / 72
_FIG_H_IN = 4.5
_FIG_H_SM = 3.2


def _fig_a_imagen(fig: Any, alto: float = _FIG_H_IN) -> Image:
    """Convierte una figura matplotlib a un Image de reportlab.

    Args:
        fig: Figura matplotlib ya dibujada.
        alto: Alto deseado de la imagen en pulgadas.

    Returns:
        Objeto Image listo para insertar en el PDF.
    """
    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=150, bbox_inches="tight")
    plt.close(fig)
    buf.seek(0)
    return Image(buf, width=_PAGE_W - 2 * _MARGIN, height=alto * 72)


def _fmt_miles(val: float, _pos: Any = None) -> str:
    """Formateador de eje con sufijos K/M."""
    if abs(val) >= 1_000_000:
        return f"{val/1_000_000:,.1f}M"
    if abs(val) >= 1_000:
        return f"{val/1_000:,.0f}K"
    return f"{val:,.0f}"


def _ax_base(ax: Any, titulo: str = "") -> None:
    """Aplica estilo corporativo minimalista a un eje."""
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)
    ax.spines["left"].set_color("#CCCCCC")
    ax.spines["bottom"].set_color("#CCCCCC")
    ax.tick_params(colors="#555555", labelsize=7)
    if titulo:
        ax.set_title(titulo, fontsize=9, color=_AZUL_CORP, pad=6)


# ======================================================================
# HELPERS DE TABLA
# ======================================================================

_TABLA_ESTILO = TableStyle([
    ("BACKGROUND",    (0, 0), (-1, 0),  colors.HexColor(_AZUL_CLARO)),
    ("TEXTCOLOR",     (0, 0), (-1, 0),  colors.HexColor(_AZUL_CORP)),
    ("FONTNAME",      (0, 0), (-1, 0),  "Helvetica-Bold"),
    ("FONTSIZE",      (0, 0), (-1, 0),  7),
    ("ALIGN",         (0, 0), (-1, 0),  "CENTER"),
    ("BOTTOMPADDING", (0, 0), (-1, 0),  5),
    ("TOPPADDING",    (0, 0), (-1, 0),  5),
    ("FONTNAME",      (0, 1), (-1, -1), "Helvetica"),
    ("FONTSIZE",      (0, 1), (-1, -1), 7),
    ("ALIGN",         (1, 1), (-1, -1), "RIGHT"),
    ("ALIGN",         (0, 1), (0, -1),  "LEFT"),
    ("ROWBACKGROUNDS", (0, 1), (-1, -1),
     [colors.white, colors.HexColor(_GRIS_CLARO)]),
    ("GRID",          (0, 0), (-1, -1), 0.3, colors.HexColor("#CCCCCC")),
    ("TOPPADDING",    (0, 1), (-1, -1), 3),
    ("BOTTOMPADDING", (0, 1), (-1, -1), 3),
])


def _formatear_valor(columna: str, valor: Any) -> str:
    if valor is None or (isinstance(valor, float) and pd.isna(valor)):
        return ""
    if columna == "MONTO_TOTAL":
        return f"{float(valor):,.2f}"
    if columna == "NUM_REGISTROS":
        return f"{int(valor):,}"
    if isinstance(valor, float):
        return f"{valor:,.2f}"
    if isinstance(valor, (int, np.integer)):
        return f"{int(valor):,}"
    return str(valor)


def _df_a_tabla(
    df: pd.DataFrame,
    max_filas: int = 20,
    ancho_total: Optional[float] = None,
) -> Table:
    """Convierte un DataFrame a una tabla reportlab con estilo corporativo."""
    df_show = df.head(max_filas)
    columnas = [str(c) for c in df_show.columns]
    data: list[list[str]] = [columnas]
    for fila in df_show.itertuples(index=False, name=None):
        data.append([_formatear_valor(c, v) for c, v in zip(columnas, fila)])

    ancho_total = ancho_total or (_PAGE_W - 2 * _MARGIN)
    tbl = Table(data, colWidths=[ancho_total / len(columnas)] * len(columnas), repeatRows=1)
    tbl.setStyle(_TABLA_ESTILO)
    return tbl


def _encabezado_seccion(story: list, titulo: str, subtitulo: str, explicacion: str) -> None:
    story.append(Paragraph(titulo, _STYLE_TITULO))
    story.append(Paragraph(subtitulo, _STYLE_SUBTITULO))
    story.append(Paragraph(explicacion, _STYLE_EXPLICACION))


def _sin_datos(story: list) -> None:
    story.append(Paragraph("Sin datos disponibles.", _STYLE_NOTA))
    story.append(PageBreak())


# ======================================================================
# GENERADORES DE PAGINA POR SECCION
# ======================================================================

def _seccion_resumen(
    stats: EstadisticasDashboard,
    resumen: pd.DataFrame,
    story: list,
) -> None:
    """Pagina: metricas generales con estado de facturas y estatus de CSD."""
    _encabezado_seccion(
        story,
        "Resumen General",
        "Facturacion y cartera de clientes",
        "Las facturas se clasifican en <b>pagadas</b>, <b>canceladas</b> y "
        "<b>pendientes</b> segun el texto de su estado; todo estado que no indica "
        "pago ni cancelacion cuenta como pendiente. El estatus del CSD se deriva "
        "de la columna del archivo; los clientes sin fecha de firma se consideran "
        "pendientes de firma.",
    )

    fig, (ax_estado, ax_csd) = plt.subplots(1, 2, figsize=(_FIG_W_IN, _FIG_H_SM))
    fig.patch.set_facecolor("white")

    etiquetas = ["Pagadas", "Canceladas", "Pendientes"]
    valores = [stats.facturas_pagadas, stats.facturas_canceladas, stats.facturas_pendientes]
    ax_estado.bar(etiquetas, valores, color=[_VERDE_CORP, _ROJO_CORP, _NARANJA],
                  width=0.5, zorder=2)
    ax_estado.set_axisbelow(True)
    ax_estado.yaxis.grid(True, linestyle="--", alpha=0.5, color="#DDDDDD")
    ax_estado.yaxis.set_major_formatter(mticker.FuncFormatter(_fmt_miles))
    _ax_base(ax_estado, "Estado de facturas")

    sin_dato = max(stats.total_registros - stats.csd_activos - stats.csd_inactivos, 0)
    csd = [
        (lbl, val, color)
        for lbl, val, color in (
            ("Activo", stats.csd_activos, _VERDE_CORP),
            ("Inactivo", stats.csd_inactivos, _ROJO_CORP),
            ("Sin dato", sin_dato, _GRIS),
        )
        if val > 0
    ]
    if csd:
        ax_csd.pie(
            [v for _, v, _ in csd],
            labels=[lbl for lbl, _, _ in csd],
            colors=[c for _, _, c in csd],
            autopct="%1.0f%%",
            textprops={"fontsize": 7},
            startangle=90,
        )
    ax_csd.set_title("Estatus de CSD", fontsize=9, color=_AZUL_CORP, pad=6)

    fig.tight_layout(pad=2.0)
    story.append(_fig_a_imagen(fig, _FIG_H_SM))
    story.append(Spacer(1, 0.3 * cm))
    story.append(_df_a_tabla(resumen, ancho_total=(_PAGE_W - 2 * _MARGIN) * 0.6))
    story.append(PageBreak())


def _seccion_barras(
    story: list,
    df: pd.DataFrame,
    titulo: str,
    subtitulo: str,
    explicacion: str,
    horizontal: bool = False,
    max_barras: int = 15,
    colores: Optional[Sequence[str]] = None,
) -> None:
    """Pagina generica: grafica de barras de una tabla (etiqueta, valor) y su tabla.

    Args:
        story: Lista de flowables del documento.
        df: Tabla con la etiqueta en la primera columna y el valor en la
            segunda, ya ordenada como debe mostrarse.
        titulo: Titulo de la seccion.
        subtitulo: Linea descriptiva bajo el titulo.
        explicacion: Parrafo de lectura de negocio.
        horizontal: Barras horizontales (para etiquetas largas).
        max_barras: Numero maximo de barras a graficar.
        colores: Color por barra; si es None se usa la paleta.
    """
    _encabezado_seccion(story, titulo, subtitulo, explicacion)
    if df.empty:
        _sin_datos(story)
        return

    col_etiqueta, col_valor = df.columns[0], df.columns[1]
    sub = df.head(max_barras)
    etiquetas = [str(e)[:28] for e in sub[col_etiqueta]]
    valores = sub[col_valor].astype(float).tolist()
    if colores is None:
        colores = [_PALETA_BARRAS[i % len(_PALETA_BARRAS)] for i in range(len(sub))]

    fig, ax = plt.subplots(figsize=(_FIG_W_IN, _FIG_H_IN))
    fig.patch.set_facecolor("white")
    ax.set_axisbelow(True)
    formateador = mticker.FuncFormatter(_fmt_miles)

    if horizontal:
        y = np.arange(len(etiquetas))
        ax.barh(y, valores[::-1], color=list(colores)[::-1], height=0.6, zorder=2)
        ax.set_yticks(y)
        ax.set_yticklabels(etiquetas[::-1], fontsize=6)
        ax.xaxis.grid(True, linestyle="--", alpha=0.5, color="#DDDDDD")
        ax.xaxis.set_major_formatter(formateador)
        ax.spines["left"].set_visible(False)
        ax.tick_params(axis="y", length=0)
    else:
        ax.bar(etiquetas, valores, color=colores, width=0.6, zorder=2)
        ax.yaxis.grid(True, linestyle="--", alpha=0.5, color="#DDDDDD")
        ax.yaxis.set_major_formatter(formateador)
        ax.tick_params(axis="x", labelsize=7, rotation=45 if len(etiquetas) > 8 else 0)

    _ax_base(ax, titulo)
    fig.tight_layout(pad=2.0)
    story.append(_fig_a_imagen(fig, _FIG_H_IN))
    story.append(Spacer(1, 0.3 * cm))
    story.append(_df_a_tabla(df, ancho_total=(_PAGE_W - 2 * _MARGIN) * 0.5))
    story.append(PageBreak())


def _seccion_regimen(df: pd.DataFrame, story: list) -> None:
    """Pagina: Distribucion por regimen fiscal (pastel)."""
    _encabezado_seccion(
        story,
        "Clientes por Regimen Fiscal",
        "Agrupacion PFAE · RESICO · Persona Moral · Otro",
        "Los regimenes se agrupan por palabras clave del texto del archivo: "
        "actividades empresariales (PFAE), regimen simplificado de confianza "
        "(RESICO) y personas morales (PM). Los demas regimenes aparecen como "
        "<b>Otro</b>.",
    )
    if df.empty:
        _sin_datos(story)
        return

    fig, ax = plt.subplots(figsize=(_FIG_W_IN, _FIG_H_IN))
    fig.patch.set_facecolor("white")
    ax.pie(
        df["NUM_REGISTROS"].tolist(),
        labels=df["REGIMEN"].tolist(),
        colors=_PALETA_BARRAS[: len(df)],
        autopct="%1.0f%%",
        textprops={"fontsize": 8},
        startangle=90,
        wedgeprops={"width": 0.45},
    )
    ax.set_title("Distribucion por regimen", fontsize=9, color=_AZUL_CORP, pad=6)
    story.append(_fig_a_imagen(fig, _FIG_H_IN))
    story.append(Spacer(1, 0.3 * cm))
    story.append(_df_a_tabla(df, ancho_total=(_PAGE_W - 2 * _MARGIN) * 0.4))
    story.append(PageBreak())


# ======================================================================
# PORTADA
# ======================================================================

def _portada(story: list, timestamp: str, stats: EstadisticasDashboard) -> None:
    """Genera la pagina de portada del reporte."""
    story.append(Spacer(1, 3 * cm))
    story.append(Paragraph(
        "Reporte Diverza",
        ParagraphStyle(
            "Portada",
            parent=_BASE_STYLES["Title"],
            fontSize=22,
            textColor=colors.HexColor(_AZUL_CORP),
            alignment=TA_CENTER,
            spaceAfter=12,
        ),
    ))
    story.append(Paragraph(
        f"Facturacion y cartera de clientes · {stats.total_registros:,} registros",
        ParagraphStyle(
            "SubPortada",
            parent=_BASE_STYLES["Normal"],
            fontSize=12,
            textColor=colors.HexColor("#666666"),
            alignment=TA_CENTER,
            spaceAfter=6,
        ),
    ))
    story.append(Spacer(1, 0.5 * cm))
    story.append(Paragraph(
        f"Generado: {timestamp}",
        ParagraphStyle(
            "FechaPortada",
            parent=_BASE_STYLES["Normal"],
            fontSize=9,
            textColor=colors.HexColor("#999999"),
            alignment=TA_CENTER,
        ),
    ))
    story.append(Spacer(1, 1.5 * cm))
    story.append(Paragraph(
        "Contenido: Resumen General · Facturacion por Mes · Top Clientes · "
        "Gerencias · Regimen Fiscal · Firmas por Mes · Expiracion de CSD",
        ParagraphStyle(
            "ContenidoPortada",
            parent=_BASE_STYLES["Normal"],
            fontSize=9,
            textColor=colors.HexColor("#555555"),
            alignment=TA_CENTER,
            leading=14,
        ),
    ))
    story.append(PageBreak())


# ======================================================================
# FUNCION PRINCIPAL
# ======================================================================

def generar_reporte_pdf(
    stats: EstadisticasDashboard,
    output_path: Path,
    timestamp: str,
    tablas: Optional[dict[str, pd.DataFrame]] = None,
) -> Path:
    """Genera el PDF ejecutivo del reporte Diverza.

    Args:
        stats: Estadisticas calculadas del listado.
        output_path: Path completo del archivo PDF a generar.
        timestamp: Fecha/hora para la portada (YYYY-MM-DD HH:MM).
        tablas: Tablas ya derivadas de ``stats``; si es None se calculan.

    Returns:
        Path al archivo PDF generado.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    tablas = tablas if tablas is not None else estadisticas_a_dataframes(stats)
    vacio = pd.DataFrame()
    story: list = []

    doc = SimpleDocTemplate(
        str(output_path),
        pagesize=landscape(A4),
        leftMargin=_MARGIN,
        rightMargin=_MARGIN,
        topMargin=_MARGIN + 0.5 * cm,
        bottomMargin=_MARGIN,
        title="Reporte Diverza",
        author="Pipeline Reporte Diverza",
    )

    _portada(story, timestamp, stats)
    _seccion_resumen(stats, tablas.get("resumen", vacio), story)
    _seccion_barras(
        story,
        tablas.get("por_mes", vacio),
        "Facturacion por Mes",
        "Suma de TOTAL por mes de la fecha de factura",
        "Muestra la evolucion del monto facturado. Las facturas cuya fecha no se "
        "pudo interpretar se agrupan al final con su texto original.",
        max_barras=24,
    )
    _seccion_barras(
        story,
        tablas.get("por_cliente", vacio),
        "Top Clientes por Monto",
        "Los 15 clientes con mayor monto facturado",
        "Concentracion de la facturacion. Un porcentaje alto del monto en pocos "
        "clientes implica mayor riesgo ante la perdida de cualquiera de ellos.",
        horizontal=True,
    )
    _seccion_barras(
        story,
        tablas.get("por_gerencia", vacio),
        "Clientes por Gerencia",
        "Numero de registros por gerencia (nombre antes de la primera coma)",
        "Distribucion de la cartera entre gerencias. Las oficinas Matriz se "
        "conservan con su nombre completo.",
        horizontal=True,
    )
    _seccion_regimen(tablas.get("por_regimen", vacio), story)
    _seccion_barras(
        story,
        tablas.get("por_mes_firma", vacio),
        "Contratos Firmados por Mes",
        "Numero de registros por mes de la fecha de firma",
        "Ritmo de incorporacion de clientes. Los registros sin fecha de firma no "
        "aparecen aqui; se reportan como pendientes de firma en el resumen.",
        max_barras=24,
    )
    expiracion = tablas.get("por_expiracion", vacio)
    _seccion_barras(
        story,
        expiracion,
        "Expiracion de CSD",
        "Clientes por tiempo restante para que expire su certificado",
        "Los certificados con menos de seis meses de vigencia (incluidos los ya "
        "expirados) requieren renovacion prioritaria para no interrumpir la "
        "facturacion del cliente.",
        colores=[_COLORES_EXPIRACION.get(h, _GRIS) for h in expiracion.iloc[:, 0]]
        if not expiracion.empty else None,
    )

    doc.build(story)
    logger.info("PDF de resumen generado: %s", output_path)
    return output_path
