"""Punto de entrada del dashboard Diverza.

Configura la app de Streamlit con navegacion multipagina, tema
corporativo y sidebar para subir el archivo exportado por Diverza.

Ejecucion:
    streamlit run dashboard/app.py
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import streamlit as st

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from config.settings import EXTENSIONES_EXCEL, LOG_DATEFMT, LOG_FORMAT
from dashboard.data_loader import (
    establecer_contexto,
    limpiar_contexto,
    obtener_contexto,
    procesar_archivo,
)
from reporte_diverza.lector_excel import ErrorLecturaArchivo, es_archivo_excel

logging.basicConfig(level=logging.INFO, format=LOG_FORMAT, datefmt=LOG_DATEFMT)

# ======================================================================
# CONFIGURACION GLOBAL DE LA APP
# ======================================================================
st.set_page_config(
    page_title="Dashboard Diverza",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="expanded",
    menu_items={
        "Get Help": None,
        "Report a bug": None,
        "About": "Dashboard de facturacion y clientes Diverza v1.0",
    },
)

# ======================================================================
# ESTILOS GLOBALES
# ======================================================================
st.markdown(
    """
    <style>
        html, body, [class*="css"] {
            font-family: 'Segoe UI', sans-serif;
        }
        .main-header {
            background: linear-gradient(135deg, #1e3a5f 0%, #2d6a9f 100%);
            padding: 1.5rem 2rem;
            border-radius: 10px;
            margin-bottom: 1.5rem;
        }
        .main-header h1 {
            color: white;
            margin: 0;
            font-size: 1.8rem;
            font-weight: 700;
        }
        .main-header p {
            color: #b8d4f0;
            margin: 0.3rem 0 0 0;
            font-size: 0.95rem;
        }
        [data-testid="metric-container"] {
            background: white;
            border: 1px solid #e2e8f0;
            border-radius: 10px;
            padding: 1rem;
            box-shadow: 0 1px 3px rgba(0,0,0,0.08);
        }
        [data-testid="stSidebar"] {
            background: #f8fafc;
            border-right: 1px solid #e2e8f0;
        }
        .filtro-activo {
            background: #eff6ff;
            border-left: 4px solid #2d6a9f;
            padding: 0.6rem 1rem;
            border-radius: 0 8px 8px 0;
            margin: 0.5rem 0;
            color: #1e3a5f;
        }
        footer { visibility: hidden; }
        #MainMenu { visibility: hidden; }
    </style>
    """,
    unsafe_allow_html=True,
)

# ======================================================================
# NAVEGACION MULTIPAGINA
# ======================================================================
pg = st.navigation(
    [
        st.Page("pages/01_dashboard.py", title="Dashboard", icon="📈", default=True),
        st.Page("pages/02_listado.py", title="Listado de Clientes", icon="👥"),
    ]
)

# ======================================================================
# SIDEBAR: CARGA DE ARCHIVO
# ======================================================================
with st.sidebar:
    st.markdown("### 📂 Archivo")
    subido = st.file_uploader(
        "Reporte exportado de Diverza",
        type=[ext.lstrip(".") for ext in EXTENSIONES_EXCEL],
    )

    if subido is not None:
        firma = (subido.name, subido.size)
        if st.session_state.get("archivo_procesado") != firma:
            st.session_state["archivo_procesado"] = firma
            if not es_archivo_excel(subido.name, EXTENSIONES_EXCEL):
                st.error("Solo se aceptan archivos .xlsx o .xls.")
            else:
                try:
                    contexto = procesar_archivo(subido.getvalue(), subido.name)
                except ErrorLecturaArchivo:
                    st.error("Error al procesar el archivo. Verifica el formato.")
                else:
                    establecer_contexto(contexto)
                    st.success(f"{len(contexto.registros):,} registros cargados.")

    contexto = obtener_contexto()
    st.divider()
    if contexto.tiene_datos:
        st.markdown(f"**Archivo:** {contexto.nombre_archivo or 'sesion recuperada'}")
        st.markdown(f"**Registros:** {len(contexto.registros):,}")
        if contexto.actualizado:
            st.caption(f"Actualizado: {contexto.actualizado:%Y-%m-%d %H:%M}")
        if st.button("🗑️ Limpiar datos", use_container_width=True):
            limpiar_contexto()
            st.session_state.pop("archivo_procesado", None)
            st.rerun()
    else:
        st.caption("Sin datos cargados.")

    st.divider()
    st.caption("Dashboard Diverza v1.0")

# ======================================================================
# EJECUTAR PAGINA ACTIVA
# ======================================================================
pg.run()
