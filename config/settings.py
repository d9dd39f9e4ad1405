"""Configuracion central del reporte Diverza.

Rutas de salida, nombres de archivos exportados, tokens para elegir la
hoja del Excel de entrada y formato de logging. Las rutas se pueden
sobreescribir con variables de entorno para correr en otro equipo o en
un contenedor sin tocar el codigo.
"""

from __future__ import annotations

import os
from pathlib import Path

ROOT_DIR: Path = Path(__file__).resolve().parent.parent

# ======================================================================
# RUTAS
# ======================================================================

OUTPUT_DIR: Path = Path(
    os.environ.get("DIVERZA_OUTPUT_DIR", str(ROOT_DIR / "output")),
)

# Archivo JSON donde se guarda el ultimo listado de registros para
# recuperarlo al reiniciar el dashboard.
SESSION_FILE: Path = Path(
    os.environ.get("DIVERZA_SESSION_FILE", str(ROOT_DIR / ".sesion" / "registros.json")),
)

# ======================================================================
# EXPORTACION
# ======================================================================

EXCEL_ENGINE: str = "openpyxl"

EXCEL_NOMBRES: dict[str, str] = {
    "reporte": "01_reporte_diverza",
    "pdf": "02_resumen_diverza",
}

CSV_NOMBRE: str = "listado_clientes_diverza.csv"

# ======================================================================
# LECTURA DEL ARCHIVO
# ======================================================================

# Se usa la primera hoja cuyo nombre contenga alguno de estos tokens
# (sin distinguir mayusculas). Si ninguna coincide, la primera hoja.
HOJA_TOKENS: tuple[str, ...] = ("reporte", "diverza")

EXTENSIONES_EXCEL: tuple[str, ...] = (".xlsx", ".xls")

# ======================================================================
# REGLAS DE NEGOCIO
# ======================================================================

# "estricta": solo un token negativo explicito marca el CSD como Inactivo.
# "permisiva": cualquier valor no afirmativo se considera Inactivo.
POLITICA_CSD: str = os.environ.get("DIVERZA_POLITICA_CSD", "estricta")

# ======================================================================
# LOGGING
# ======================================================================

LOG_FORMAT: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATEFMT: str = "%Y-%m-%d %H:%M:%S"
