"""Capa de carga y estado del dashboard Diverza.

Unico punto de contacto entre Streamlit y ``reporte_diverza``. El
listado vive en ``st.session_state`` como un ``ContextoIngesta`` por
sesion de navegador; al abrir una sesion nueva se intenta recuperar el
ultimo listado guardado en disco.

Uso desde cualquier pagina:
    from dashboard.data_loader import obtener_contexto, obtener_referencia
    contexto = obtener_contexto()
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import streamlit as st

# Asegurar que el raiz del proyecto este en el path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from config.settings import HOJA_TOKENS, POLITICA_CSD, SESSION_FILE
from reporte_diverza.pipeline import ContextoIngesta, ingerir_archivo
from reporte_diverza.sesion import AlmacenSesion

logger = logging.getLogger(__name__)

_CLAVE_CONTEXTO = "contexto_ingesta"
_CLAVE_REFERENCIA = "fecha_referencia"
_CLAVE_DRILLDOWN = "drilldown"


# ======================================================================
# INGESTA
# ======================================================================

@st.cache_data(show_spinner="Procesando archivo...")
def procesar_archivo(contenido: bytes, nombre: str) -> ContextoIngesta:
    """Lee y normaliza un archivo subido.

    El cache se indexa por el contenido, asi que volver a subir el mismo
    archivo no repite el procesamiento.

    Raises:
        ErrorLecturaArchivo: Si el archivo no es un Excel valido.
    """
    return ingerir_archivo(contenido, nombre, tokens=HOJA_TOKENS, politica_csd=POLITICA_CSD)


def almacen() -> AlmacenSesion:
    return AlmacenSesion(SESSION_FILE)


# ======================================================================
# ESTADO DE LA SESION
# ======================================================================

def obtener_contexto() -> ContextoIngesta:
    """Contexto de la sesion; en el primer acceso se restaura de disco."""
    if _CLAVE_CONTEXTO not in st.session_state:
        st.session_state[_CLAVE_CONTEXTO] = almacen().cargar_contexto()
    return st.session_state[_CLAVE_CONTEXTO]


def establecer_contexto(contexto: ContextoIngesta) -> None:
    """Sustituye el listado de la sesion y lo persiste en disco."""
    st.session_state[_CLAVE_CONTEXTO] = contexto
    st.session_state.pop(_CLAVE_DRILLDOWN, None)
    almacen().guardar(contexto.registros, contexto.nombre_archivo)


def limpiar_contexto() -> None:
    st.session_state[_CLAVE_CONTEXTO] = ContextoIngesta()
    st.session_state.pop(_CLAVE_DRILLDOWN, None)
    almacen().limpiar()


def obtener_referencia() -> datetime:
    """Fecha de referencia fija por sesion.

    El dashboard y el listado la comparten para que el drill-down de
    expiracion muestre los mismos registros que cuenta la grafica.
    """
    if _CLAVE_REFERENCIA not in st.session_state:
        st.session_state[_CLAVE_REFERENCIA] = datetime.now()
    return st.session_state[_CLAVE_REFERENCIA]


# ======================================================================
# DRILL-DOWN
# ======================================================================

def establecer_drilldown(tipo: str, valor: str) -> None:
    st.session_state[_CLAVE_DRILLDOWN] = {"tipo": tipo, "valor": valor}


def obtener_drilldown() -> tuple[str, str]:
    """Drill-down activo: de la sesion o, si no hay, de la URL."""
    datos = st.session_state.get(_CLAVE_DRILLDOWN)
    if datos:
        return datos["tipo"], datos["valor"]
    return st.query_params.get("tipo", ""), st.query_params.get("valor", "")


def quitar_drilldown() -> None:
    st.session_state.pop(_CLAVE_DRILLDOWN, None)
    st.query_params.clear()


def valor_seleccionado(evento: Any, eje: str = "x") -> Optional[str]:
    """Etiqueta del primer punto seleccionado en una grafica de plotly.

    Args:
        evento: Resultado de ``st.plotly_chart(..., on_select="rerun")``.
        eje: Eje que contiene la etiqueta ("x", "y"); en graficas de
            pastel se usa ``label``.

    Returns:
        Etiqueta seleccionada, o None si no hay seleccion.
    """
    if not evento:
        return None
    puntos = evento.get("selection", {}).get("points", [])
    if not puntos:
        return None
    punto = puntos[0]
    valor = punto.get(eje) if eje in punto else punto.get("label")
    return None if valor is None else str(valor)
