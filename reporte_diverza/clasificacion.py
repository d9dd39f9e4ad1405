"""Politicas de clasificacion de valores del reporte Diverza.

Cada politica es una tabla ordenada de reglas ``(predicado, etiqueta)``
que se evalua de arriba hacia abajo; la primera regla que se cumple
define la etiqueta. Mantener la precedencia en una tabla permite
revisarla y probarla sin leer condicionales dispersos.

Politicas:
    ``REGLAS_ESTADO``       Estado de factura -> pagada / cancelada / pendiente.
    ``REGLAS_REGIMEN``      Regimen fiscal -> PFAE / RESICO / PM / Otro.
    ``REGLAS_CSD_*``        Texto del CSD -> Activo / Inactivo / "".
    ``REGLAS_EXPIRACION``   Meses para expirar -> horizonte de expiracion.

Ademas incluye la normalizacion de gerencias y la etiqueta de mes en
formato es-MX ("ene 2024").
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Iterable, Optional, Sequence

from reporte_diverza.coercion import parsear_fecha


@dataclass(frozen=True)
class Regla:
    """Regla de clasificacion: si ``predicado(valor)`` se cumple, aplica ``etiqueta``."""

    predicado: Callable[[Any], bool]
    etiqueta: str


def _contiene(*tokens: str) -> Callable[[str], bool]:
    return lambda texto: any(token in texto for token in tokens)


def _igual(*tokens: str) -> Callable[[str], bool]:
    return lambda texto: texto in tokens


def aplicar_reglas(reglas: Sequence[Regla], valor: Any, defecto: str) -> str:
    """Devuelve la etiqueta de la primera regla que se cumple.

    Args:
        reglas: Tabla ordenada de reglas.
        valor: Valor a clasificar (ya normalizado por el llamador).
        defecto: Etiqueta cuando ninguna regla aplica.

    Returns:
        Etiqueta resultante.
    """
    for regla in reglas:
        if regla.predicado(valor):
            return regla.etiqueta
    return defecto


# ======================================================================
# ESTADO DE FACTURA
# ======================================================================

ESTADO_PAGADA: str = "pagada"
ESTADO_CANCELADA: str = "cancelada"
ESTADO_PENDIENTE: str = "pendiente"

REGLAS_ESTADO: tuple[Regla, ...] = (
    Regla(_contiene("pagad", "paid"), ESTADO_PAGADA),
    Regla(_contiene("cancel"), ESTADO_CANCELADA),
)


def clasificar_estado(estado: Optional[str]) -> str:
    """Clasifica un estado de factura en pagada, cancelada o pendiente.

    La clasificacion es exhaustiva: todo valor, incluido el vacio, cae en
    exactamente una de las tres clases.
    """
    return aplicar_reglas(REGLAS_ESTADO, (estado or "").lower(), ESTADO_PENDIENTE)


# ======================================================================
# REGIMEN FISCAL
# ======================================================================

REGIMEN_PFAE: str = "PFAE"
REGIMEN_RESICO: str = "RESICO"
REGIMEN_PM: str = "PM"
REGIMEN_OTRO: str = "Otro"

REGLAS_REGIMEN: tuple[Regla, ...] = (
    Regla(_contiene("pfae", "actividades empresariales"), REGIMEN_PFAE),
    Regla(_contiene("resico", "simplificado"), REGIMEN_RESICO),
    Regla(_contiene("moral"), REGIMEN_PM),
)


def clasificar_regimen(regimen: Optional[str]) -> str:
    """Agrupa un regimen fiscal en PFAE, RESICO, PM u Otro."""
    return aplicar_reglas(REGLAS_REGIMEN, (regimen or "").lower(), REGIMEN_OTRO)


def regimen_corto(regimen: Optional[str], largo_maximo: int = 20) -> str:
    """Etiqueta corta de regimen para tablas y listados.

    A diferencia de ``clasificar_regimen``, un regimen que no coincide con
    ninguna regla se muestra con su propio texto (recortado) en lugar de
    "Otro".
    """
    if not regimen:
        return "—"
    etiqueta = aplicar_reglas(REGLAS_REGIMEN, regimen.lower(), "")
    if etiqueta:
        return etiqueta
    if len(regimen) > largo_maximo:
        return regimen[:largo_maximo] + "..."
    return regimen


# ======================================================================
# CSD (CERTIFICADO DE SELLO DIGITAL)
# ======================================================================

CSD_ACTIVO: str = "Activo"
CSD_INACTIVO: str = "Inactivo"

POLITICA_ESTRICTA: str = "estricta"
POLITICA_PERMISIVA: str = "permisiva"

# "inactivo" contiene "activo": la regla negativa debe ir primero.
REGLAS_CSD_ESTRICTA: tuple[Regla, ...] = (
    Regla(lambda t: "inactivo" in t or t == "no", CSD_INACTIVO),
    Regla(lambda t: "activo" in t or t in ("si", "sí"), CSD_ACTIVO),
)

REGLAS_CSD_PERMISIVA: tuple[Regla, ...] = REGLAS_CSD_ESTRICTA + (
    Regla(bool, CSD_INACTIVO),
)

_REGLAS_CSD: dict[str, tuple[Regla, ...]] = {
    POLITICA_ESTRICTA: REGLAS_CSD_ESTRICTA,
    POLITICA_PERMISIVA: REGLAS_CSD_PERMISIVA,
}


def clasificar_csd(texto: Optional[str], politica: str = POLITICA_ESTRICTA) -> str:
    """Deriva el estatus del CSD a partir del texto de la columna.

    Args:
        texto: Valor crudo de la columna CSD ("Activo", "Sí", "NO"...).
        politica: ``"estricta"`` (solo un token negativo explicito da
            Inactivo) o ``"permisiva"`` (todo valor no afirmativo es
            Inactivo).

    Returns:
        "Activo", "Inactivo" o cadena vacia.

    Raises:
        ValueError: Si la politica no existe.
    """
    if politica not in _REGLAS_CSD:
        raise ValueError(f"Politica de CSD desconocida: {politica!r}")
    return aplicar_reglas(_REGLAS_CSD[politica], (texto or "").strip().lower(), "")


# ======================================================================
# GERENCIA
# ======================================================================

MARCA_MATRIZ: str = "Matriz"


def normalizar_gerencia(gerencia: Optional[str]) -> str:
    """Reduce la gerencia a su nombre base.

    Las oficinas se exportan como "Monterrey, N.L., Zona Norte"; se
    agrupan por el texto antes de la primera coma. Las entradas que
    contienen "Matriz" se dejan intactas.
    """
    if not gerencia:
        return ""
    if MARCA_MATRIZ in gerencia:
        return gerencia
    return gerencia.split(",")[0].strip()


# ======================================================================
# EXPIRACION DEL CSD
# ======================================================================

DIAS_POR_MES: int = 30

EXPIRACION_MENOS_6: str = "< 6 meses"
EXPIRACION_6_12: str = "6-12 meses"
EXPIRACION_1_2: str = "1-2 años"
EXPIRACION_MAS_2: str = "> 2 años"

REGLAS_EXPIRACION: tuple[Regla, ...] = (
    Regla(lambda meses: meses < 6, EXPIRACION_MENOS_6),
    Regla(lambda meses: meses < 12, EXPIRACION_6_12),
    Regla(lambda meses: meses < 24, EXPIRACION_1_2),
)

ORDEN_EXPIRACION: tuple[str, ...] = (
    EXPIRACION_MENOS_6,
    EXPIRACION_6_12,
    EXPIRACION_1_2,
    EXPIRACION_MAS_2,
)


def meses_para_expirar(exp_csd: Any, referencia: datetime) -> Optional[float]:
    """Meses (de 30 dias) entre ``referencia`` y la expiracion del CSD.

    Returns:
        Meses, negativos si el CSD ya expiro; None si la fecha no se
        puede interpretar.
    """
    expiracion = parsear_fecha(exp_csd)
    if expiracion is None:
        return None
    delta = expiracion - parsear_fecha(referencia)
    return delta.total_seconds() / (DIAS_POR_MES * 24 * 3600)


def clasificar_expiracion(exp_csd: Any, referencia: datetime) -> Optional[str]:
    """Asigna el horizonte de expiracion de un CSD.

    Args:
        exp_csd: Fecha de expiracion (ISO o texto crudo).
        referencia: Momento contra el que se mide; se inyecta para que
            el resultado sea reproducible.

    Returns:
        Etiqueta del horizonte, o None si la fecha no es valida.
    """
    meses = meses_para_expirar(exp_csd, referencia)
    if meses is None:
        return None
    return aplicar_reglas(REGLAS_EXPIRACION, meses, EXPIRACION_MAS_2)


# ======================================================================
# ETIQUETAS DE MES
# ======================================================================

MESES_CORTOS: tuple[str, ...] = (
    "ene", "feb", "mar", "abr", "may", "jun",
    "jul", "ago", "sept", "oct", "nov", "dic",
)

SIN_FECHA: str = "Sin fecha"

_RE_ETIQUETA_MES = re.compile(r"^([a-z]{3,4})\.? (\d{4})$")
_RE_ANIO_MES = re.compile(r"^(\d{4})-(\d{2})$")


def etiqueta_mes(fecha: Optional[str]) -> str:
    """Etiqueta de mes y anio en formato es-MX corto ("ene 2024").

    Si la fecha no se puede interpretar se usan los primeros siete
    caracteres del texto ("2024-01"); si no hay texto, "Sin fecha".
    """
    ts = parsear_fecha(fecha)
    if ts is not None:
        return f"{MESES_CORTOS[ts.month - 1]} {ts.year}"
    return (fecha or "")[:7] or SIN_FECHA


def _clave_mes(etiqueta: str) -> tuple:
    match = _RE_ETIQUETA_MES.match(etiqueta)
    if match and match.group(1) in MESES_CORTOS:
        return (0, int(match.group(2)), MESES_CORTOS.index(match.group(1)) + 1, "")
    match = _RE_ANIO_MES.match(etiqueta)
    if match:
        return (0, int(match.group(1)), int(match.group(2)), "")
    return (1, 0, 0, etiqueta.lower())


def ordenar_meses(etiquetas: Iterable[str]) -> list[str]:
    """Ordena etiquetas de mes cronologicamente.

    Las etiquetas que no son de mes ("Sin fecha", texto crudo) van al
    final en orden alfabetico.
    """
    return sorted(etiquetas, key=_clave_mes)
