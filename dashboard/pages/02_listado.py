"""Pagina 2: Listado de Clientes.

Tabla de registros con busqueda, filtros de CSD y regimen, filtro de
drill-down recibido desde el dashboard (o por URL ``?tipo=...&valor=...``),
ordenamiento por columna y exportacion a CSV.
"""

from __future__ import annotations

import sys
from pathlib import Path

import streamlit as st

ROOT = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(ROOT))

from config.settings import CSV_NOMBRE
from dashboard.data_loader import (
    obtener_contexto,
    obtener_drilldown,
    obtener_referencia,
    quitar_drilldown,
)
from reporte_diverza.clasificacion import CSD_ACTIVO, CSD_INACTIVO, regimen_corto
from reporte_diverza.listado import (
    COLUMNAS_CSV,
    FiltroListado,
    exportar_csv,
    filtrar_registros,
    listado_a_dataframe,
    ordenar_registros,
    regimenes_disponibles,
)

_NOMBRES_DRILLDOWN = {
    "mes": "Mes de firma",
    "gerencia": "Gerencia",
    "regimen": "Regimen",
    "expiracion": "Expiracion de CSD",
}

# ======================================================================
# HEADER
# ======================================================================
st.markdown(
    """
    <div class="main-header">
        <h1>👥 Listado de Clientes</h1>
        <p>Busqueda, filtros y exportacion del listado</p>
    </div>
    """,
    unsafe_allow_html=True,
)

contexto = obtener_contexto()
if not contexto.tiene_datos:
    st.info("Sube el reporte exportado de Diverza desde la barra lateral para comenzar.")
    st.stop()

registros = contexto.registros

# ======================================================================
# FILTROS
# ======================================================================
with st.sidebar:
    st.markdown("### 🔎 Filtros")
    busqueda = st.text_input("Buscar", placeholder="Razon social, RFC, email...")
    csd = st.selectbox("CSD", ["Todos", CSD_ACTIVO, CSD_INACTIVO])
    regimen = st.selectbox("Regimen", ["Todos"] + regimenes_disponibles(registros))

tipo, valor = obtener_drilldown()
if tipo and valor:
    st.query_params["tipo"] = tipo
    st.query_params["valor"] = valor
    col_filtro, col_boton = st.columns([4, 1])
    col_filtro.markdown(
        f'<div class="filtro-activo">Filtro activo: <strong>'
        f'{_NOMBRES_DRILLDOWN.get(tipo, tipo)}</strong> = {valor}</div>',
        unsafe_allow_html=True,
    )
    if col_boton.button("✖ Quitar filtro", use_container_width=True):
        quitar_drilldown()
        st.rerun()

filtro = FiltroListado(
    busqueda=busqueda,
    csd="" if csd == "Todos" else csd,
    regimen="" if regimen == "Todos" else regimen,
    tipo=tipo,
    valor=valor,
)
filtrados = filtrar_registros(registros, filtro, obtener_referencia())

# ======================================================================
# ORDENAMIENTO
# ======================================================================
campos_por_encabezado = {encabezado: campo for campo, encabezado in COLUMNAS_CSV.items()}
orden_col1, orden_col2 = st.columns([3, 1])
encabezado_orden = orden_col1.selectbox("Ordenar por", list(campos_por_encabezado))
descendente = orden_col2.radio("Orden", ["Asc", "Desc"], horizontal=True) == "Desc"
filtrados = ordenar_registros(filtrados, campos_por_encabezado[encabezado_orden], descendente)

# ======================================================================
# TABLA Y EXPORTACION
# ======================================================================
st.caption(f"{len(filtrados):,} de {len(registros):,} registros")

tabla = listado_a_dataframe(filtrados)
tabla["Régimen"] = tabla["Régimen"].map(regimen_corto)
st.dataframe(tabla, use_container_width=True, hide_index=True)

st.download_button(
    "⬇️ Exportar CSV",
    data=exportar_csv(filtrados),
    file_name=CSV_NOMBRE,
    mime="text/csv",
    disabled=not filtrados,
)
