"""Pagina 1: Dashboard.

Tarjetas de metricas de facturacion y clientes, y graficas por mes de
firma, gerencia, regimen, expiracion de CSD y facturacion. Al
seleccionar una barra o rebanada se abre el listado filtrado por ese
valor.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pandas as pd
import plotly.express as px
import streamlit as st

ROOT = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(ROOT))

from dashboard.data_loader import (
    establecer_drilldown,
    obtener_contexto,
    obtener_referencia,
    valor_seleccionado,
)
from reporte_diverza.clasificacion import (
    EXPIRACION_1_2,
    EXPIRACION_6_12,
    EXPIRACION_MAS_2,
    EXPIRACION_MENOS_6,
)
from reporte_diverza.estadisticas import estadisticas_a_dataframes
from reporte_diverza.listado import (
    FILTRO_EXPIRACION,
    FILTRO_GERENCIA,
    FILTRO_MES,
    FILTRO_REGIMEN,
)
from reporte_diverza.pipeline import calcular

_COLORES_EXPIRACION = {
    EXPIRACION_MENOS_6: "#ef4444",
    EXPIRACION_6_12: "#f97316",
    EXPIRACION_1_2: "#f59e0b",
    EXPIRACION_MAS_2: "#22c55e",
}

_LAYOUT_BASE = dict(
    plot_bgcolor="white",
    paper_bgcolor="white",
    margin=dict(t=20, b=40, l=10, r=10),
)


def _abrir_listado(tipo: str, valor: str | None) -> None:
    if valor:
        establecer_drilldown(tipo, valor)
        st.switch_page("pages/02_listado.py")


# ======================================================================
# HEADER
# ======================================================================
st.markdown(
    """
    <div class="main-header">
        <h1>📈 Dashboard Diverza</h1>
        <p>Facturacion, estatus de CSD y cartera de clientes</p>
    </div>
    """,
    unsafe_allow_html=True,
)

# ======================================================================
# CARGA DE DATOS
# ======================================================================
contexto = obtener_contexto()
if not contexto.tiene_datos:
    st.info("Sube el reporte exportado de Diverza desde la barra lateral para comenzar.")
    st.stop()

stats = calcular(contexto, obtener_referencia())
tablas = estadisticas_a_dataframes(stats)

# ======================================================================
# SECCION 1: CLIENTES
# ======================================================================
st.subheader("Clientes")
col1, col2, col3, col4 = st.columns(4)
col1.metric("Total de registros", f"{stats.total_registros:,}")
col2.metric("CSD activos", f"{stats.csd_activos:,}")
col3.metric("CSD inactivos", f"{stats.csd_inactivos:,}")
col4.metric("Pendientes de firma", f"{stats.pendientes_firma:,}")

# ======================================================================
# SECCION 2: FACTURACION
# ======================================================================
st.subheader("Facturacion")
col1, col2, col3, col4 = st.columns(4)
col1.metric("Facturas", f"{stats.total_facturas:,}")
col2.metric("Monto total", f"${stats.total_monto:,.2f}")
col3.metric("IVA total", f"${stats.total_iva:,.2f}")
col4.metric("Promedio por factura", f"${stats.promedio_factura:,.2f}")

col1, col2, col3 = st.columns(3)
col1.metric("Pagadas", f"{stats.facturas_pagadas:,}")
col2.metric("Canceladas", f"{stats.facturas_canceladas:,}")
col3.metric("Pendientes", f"{stats.facturas_pendientes:,}")

st.divider()

# ======================================================================
# SECCION 3: GRAFICAS CON DRILL-DOWN
# ======================================================================
st.caption("Selecciona una barra o rebanada para ver el listado filtrado.")
graf_col1, graf_col2 = st.columns(2)

with graf_col1:
    st.subheader("Firmas por mes")
    df_firma = tablas["por_mes_firma"]
    if df_firma.empty:
        st.info("Sin fechas de firma.")
    else:
        fig = px.bar(
            df_firma, x="MES_FIRMA", y="NUM_REGISTROS",
            color_discrete_sequence=["#2d6a9f"],
            labels={"MES_FIRMA": "Mes", "NUM_REGISTROS": "Registros"},
        )
        fig.update_layout(**_LAYOUT_BASE, xaxis=dict(type="category"))
        evento = st.plotly_chart(fig, use_container_width=True, on_select="rerun", key="graf_mes")
        _abrir_listado(FILTRO_MES, valor_seleccionado(evento, "x"))

with graf_col2:
    st.subheader("Clientes por gerencia")
    df_ger = tablas["por_gerencia"].head(15)
    if df_ger.empty:
        st.info("Sin gerencias.")
    else:
        fig = px.pie(df_ger, names="GERENCIA", values="NUM_REGISTROS")
        fig.update_traces(sort=False, textinfo="percent")
        fig.update_layout(**_LAYOUT_BASE)
        evento = st.plotly_chart(fig, use_container_width=True, on_select="rerun", key="graf_gerencia")
        _abrir_listado(FILTRO_GERENCIA, valor_seleccionado(evento, "label"))

graf_col3, graf_col4 = st.columns(2)

with graf_col3:
    st.subheader("Regimen fiscal")
    df_reg = tablas["por_regimen"]
    if df_reg.empty:
        st.info("Sin regimenes.")
    else:
        fig = px.pie(df_reg, names="REGIMEN", values="NUM_REGISTROS", hole=0.55)
        fig.update_layout(
            **_LAYOUT_BASE,
            legend=dict(orientation="h", yanchor="bottom", y=-0.2, xanchor="center", x=0.5),
        )
        evento = st.plotly_chart(fig, use_container_width=True, on_select="rerun", key="graf_regimen")
        _abrir_listado(FILTRO_REGIMEN, valor_seleccionado(evento, "label"))

with graf_col4:
    st.subheader("Expiracion de CSD")
    df_exp = tablas["por_expiracion"]
    if df_exp.empty:
        st.info("Sin fechas de expiracion.")
    else:
        fig = px.bar(
            df_exp, x="HORIZONTE_EXPIRACION", y="NUM_REGISTROS",
            color="HORIZONTE_EXPIRACION", color_discrete_map=_COLORES_EXPIRACION,
            labels={"HORIZONTE_EXPIRACION": "Expira en", "NUM_REGISTROS": "Registros"},
        )
        fig.update_layout(**_LAYOUT_BASE, showlegend=False)
        evento = st.plotly_chart(fig, use_container_width=True, on_select="rerun", key="graf_expiracion")
        _abrir_listado(FILTRO_EXPIRACION, valor_seleccionado(evento, "x"))

st.divider()

# ======================================================================
# SECCION 4: FACTURACION POR MES Y TOP CLIENTES
# ======================================================================
fact_col1, fact_col2 = st.columns([1.2, 1])

with fact_col1:
    st.subheader("Facturacion por mes")
    df_mes = tablas["por_mes"]
    if df_mes.empty:
        st.info("Sin fechas de factura.")
    else:
        fig = px.bar(
            df_mes, x="MES", y="MONTO_TOTAL", text_auto=".2s",
            color_discrete_sequence=["#22c55e"],
            labels={"MES": "Mes", "MONTO_TOTAL": "Monto ($)"},
        )
        fig.update_layout(**_LAYOUT_BASE, xaxis=dict(type="category"))
        st.plotly_chart(fig, use_container_width=True)

with fact_col2:
    st.subheader("Top 10 clientes por monto")
    top = tablas["por_cliente"].head(10)
    st.dataframe(
        top.style.format({"MONTO_TOTAL": "${:,.2f}"}),
        use_container_width=True,
        hide_index=True,
    )

with st.expander("Facturas por estado"):
    st.dataframe(
        tablas["por_estado"] if not tablas["por_estado"].empty else pd.DataFrame(),
        use_container_width=True,
        hide_index=True,
    )
