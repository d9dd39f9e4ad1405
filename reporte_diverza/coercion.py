"""Conversion de valores de celda a tipos canonicos.

Funciones puras, sin estado, compartidas por el normalizador y el motor
de estadisticas. Ninguna lanza excepciones hacia afuera: un numero que no
se puede leer vale 0 y una fecha que no se puede leer conserva su texto
original.

Fechas — orden de prioridad en ``convertir_fecha``:
    1. Numero serial de Excel (dias desde 1899-12-30).
    2. Subcadena ISO ``YYYY-MM-DD`` en cualquier parte del texto.
    3. Parseo generico con ``pandas.to_datetime``.
    4. Texto original sin cambios.
"""

from __future__ import annotations

import logging
import math
import re
import warnings
from datetime import date, datetime, timedelta
from typing import Any, Optional

import pandas as pd

logger = logging.getLogger(__name__)

EXCEL_EPOCH: datetime = datetime(1899, 12, 30)
"""Epoca de los seriales de fecha de Excel (sistema 1900 de Windows)."""

_RE_SIMBOLOS_MONEDA = re.compile(r"[,$]")
_RE_PREFIJO_NUMERICO = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_RE_SERIAL = re.compile(r"^\d+(?:\.\d+)?$")
_RE_FECHA_ISO = re.compile(r"(\d{4})-(\d{2})-(\d{2})")
_RE_ANIO = re.compile(r"(?<!\d)\d{4}(?!\d)")

# pandas resuelve estas palabras contra el reloj del sistema.
_PALABRAS_RELATIVAS: frozenset[str] = frozenset({"now", "today", "tomorrow", "yesterday"})

_FORMATO_FECHA: str = "%Y-%m-%d"


# ======================================================================
# TEXTO
# ======================================================================

def _es_nulo(valor: Any) -> bool:
    if valor is None:
        return True
    if isinstance(valor, float) and math.isnan(valor):
        return True
    return valor is pd.NaT


def a_texto(valor: Any) -> str:
    """Convierte una celda a texto tal como se mostraria en la hoja.

    Los flotantes enteros pierden el ``.0`` (un RFC o un id numerico no
    deben leerse como ``"1234.0"``) y las fechas se escriben en ISO.

    Args:
        valor: Celda cruda del grid.

    Returns:
        Texto de la celda, o cadena vacia si la celda es nula.
    """
    if _es_nulo(valor):
        return ""
    if isinstance(valor, datetime):
        if valor.hour == 0 and valor.minute == 0 and valor.second == 0:
            return valor.strftime(_FORMATO_FECHA)
        return valor.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(valor, date):
        return valor.isoformat()
    if isinstance(valor, float) and valor.is_integer():
        return str(int(valor))
    return str(valor)


# ======================================================================
# NUMEROS
# ======================================================================

def convertir_numero(valor: Any) -> float:
    """Convierte una celda monetaria a float.

    Quita ``$`` y separadores de miles y toma el prefijo numerico del
    texto (``"1,234.50 MXN"`` -> 1234.5).

    Args:
        valor: Celda cruda o texto.

    Returns:
        Valor numerico; 0.0 si la celda esta vacia o no es numerica.
    """
    if _es_nulo(valor) or isinstance(valor, bool):
        return 0.0
    if isinstance(valor, (int, float)):
        numero = float(valor)
        return numero if math.isfinite(numero) else 0.0

    texto = _RE_SIMBOLOS_MONEDA.sub("", a_texto(valor)).strip()
    match = _RE_PREFIJO_NUMERICO.match(texto)
    if not match:
        return 0.0
    try:
        numero = float(match.group(0))
    except ValueError:
        return 0.0
    return numero if math.isfinite(numero) else 0.0


# ======================================================================
# FECHAS
# ======================================================================

def serial_a_fecha(serial: float) -> Optional[datetime]:
    """Convierte un serial de Excel a datetime.

    Args:
        serial: Dias transcurridos desde 1899-12-30 (puede tener fraccion).

    Returns:
        datetime correspondiente, o None si el serial no es positivo o
        queda fuera del rango representable.
    """
    if not math.isfinite(serial) or serial <= 0:
        return None
    try:
        return EXCEL_EPOCH + timedelta(days=serial)
    except OverflowError:
        return None


def _parseo_generico(texto: str) -> Optional[pd.Timestamp]:
    """Parseo libre con pandas; None si el texto no es una fecha.

    Solo acepta texto con un anio explicito de cuatro digitos: pandas
    completa las partes faltantes ("10:30", "Mar 15") con la fecha actual.
    """
    if texto.strip().lower() in _PALABRAS_RELATIVAS or not _RE_ANIO.search(texto):
        return None
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            ts = pd.to_datetime(texto, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if ts is None or pd.isna(ts) or ts.year < 1000:
        return None
    return ts


def _fecha_iso(texto: str) -> Optional[pd.Timestamp]:
    """Primera subcadena YYYY-MM-DD del texto que sea una fecha real."""
    match = _RE_FECHA_ISO.search(texto)
    if not match:
        return None
    anio, mes, dia = (int(g) for g in match.groups())
    try:
        return pd.Timestamp(year=anio, month=mes, day=dia)
    except (ValueError, OverflowError):
        return None


def convertir_fecha(valor: Any) -> str:
    """Normaliza una celda de fecha a ``YYYY-MM-DD``.

    Args:
        valor: Serial numerico, datetime, o texto con la fecha.

    Returns:
        Fecha ISO si alguna estrategia la reconoce; el texto original
        (recortado) si ninguna lo hace; "" para celdas vacias.
    """
    if _es_nulo(valor):
        return ""
    if isinstance(valor, (datetime, date)):
        return a_texto(valor)[:10]
    if isinstance(valor, (int, float)) and not isinstance(valor, bool):
        fecha = serial_a_fecha(float(valor))
        return fecha.strftime(_FORMATO_FECHA) if fecha else a_texto(valor)

    texto = a_texto(valor).strip()
    if not texto:
        return ""

    if _RE_SERIAL.match(texto):
        fecha = serial_a_fecha(float(texto))
        if fecha:
            return fecha.strftime(_FORMATO_FECHA)

    match = _RE_FECHA_ISO.search(texto)
    if match:
        return match.group(0)

    ts = _parseo_generico(texto)
    if ts is not None:
        return ts.strftime(_FORMATO_FECHA)

    return texto


def parsear_fecha(valor: Any) -> Optional[pd.Timestamp]:
    """Interpreta un valor ya normalizado como fecha.

    Usado por las estadisticas para etiquetar meses y calcular la
    expiracion del CSD. Acepta la salida de ``convertir_fecha`` (ISO o
    texto crudo) y tambien objetos datetime.

    Args:
        valor: Fecha en texto o datetime.

    Returns:
        Timestamp sin zona horaria, o None si no se reconoce.
    """
    if _es_nulo(valor):
        return None
    if isinstance(valor, (datetime, date)):
        ts = pd.Timestamp(valor)
    else:
        texto = a_texto(valor).strip()
        if not texto:
            return None
        ts = _fecha_iso(texto)
        if ts is None:
            ts = _parseo_generico(texto)
    if ts is not None and ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return ts
