"""Lectura del archivo Excel exportado por Diverza.

Abre el libro desde una ruta, bytes o un archivo binario abierto (por
ejemplo, el ``UploadedFile`` de Streamlit), elige la hoja del reporte y
devuelve su contenido como grid 2-D de celdas crudas, sin interpretar
encabezados. La interpretacion queda a cargo de ``normalizador``.

Eleccion de hoja: la primera cuyo nombre contenga "reporte" o "diverza"
(sin distinguir mayusculas); si ninguna coincide, la primera hoja.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import IO, Any, Sequence, Union

import pandas as pd

from config.settings import EXTENSIONES_EXCEL, HOJA_TOKENS

logger = logging.getLogger(__name__)

FuenteExcel = Union[str, Path, bytes, bytearray, IO[bytes]]


class ErrorLecturaArchivo(ValueError):
    """El archivo no se pudo abrir o decodificar como libro de Excel."""


def es_archivo_excel(
    nombre: str,
    extensiones: Sequence[str] = EXTENSIONES_EXCEL,
) -> bool:
    """Indica si el nombre de archivo tiene extension de Excel."""
    return Path(nombre).suffix.lower() in extensiones


def seleccionar_hoja(
    nombres: Sequence[str],
    tokens: Sequence[str] = HOJA_TOKENS,
) -> str:
    """Elige la hoja del reporte dentro del libro.

    Args:
        nombres: Nombres de hoja en el orden del libro.
        tokens: Fragmentos que identifican la hoja del reporte.

    Returns:
        Nombre de la hoja elegida.

    Raises:
        ErrorLecturaArchivo: Si el libro no tiene hojas.
    """
    if not nombres:
        raise ErrorLecturaArchivo("El archivo no contiene hojas.")
    for nombre in nombres:
        nombre_lower = str(nombre).lower()
        if any(token in nombre_lower for token in tokens):
            return nombre
    return nombres[0]


def _dataframe_a_grid(df: pd.DataFrame) -> list[list[Any]]:
    """Convierte la hoja leida en listas de celdas, con None para vacias.

    Las celdas vacias al final de cada fila se recortan.
    """
    grid: list[list[Any]] = []
    for fila in df.itertuples(index=False, name=None):
        celdas = [None if pd.isna(celda) else celda for celda in fila]
        while celdas and celdas[-1] is None:
            celdas.pop()
        grid.append(celdas)
    return grid


def leer_grid(
    fuente: FuenteExcel,
    tokens: Sequence[str] = HOJA_TOKENS,
) -> list[list[Any]]:
    """Lee la hoja del reporte como grid de celdas crudas.

    Args:
        fuente: Ruta, bytes o archivo binario con el libro.
        tokens: Fragmentos para elegir la hoja (ver ``seleccionar_hoja``).

    Returns:
        Lista de filas; la fila 0 contiene los encabezados.

    Raises:
        ErrorLecturaArchivo: Si el archivo no se puede leer.
    """
    if isinstance(fuente, (bytes, bytearray)):
        fuente = io.BytesIO(fuente)

    try:
        with pd.ExcelFile(fuente) as libro:
            hoja = seleccionar_hoja(libro.sheet_names, tokens)
            df = libro.parse(hoja, header=None, dtype=object)
    except ErrorLecturaArchivo:
        raise
    except Exception as exc:
        logger.error("Error al leer el archivo Excel: %s", exc)
        raise ErrorLecturaArchivo(f"No se pudo leer el archivo: {exc}") from exc

    grid = _dataframe_a_grid(df)
    logger.info("Hoja '%s' leida: %d filas.", hoja, len(grid))
    return grid
