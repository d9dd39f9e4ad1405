"""Puntos de entrada del pipeline de ingesta.

Cada ingesta produce un ``ContextoIngesta`` nuevo con su propio listado
de registros; no hay estado compartido entre llamadas, asi que dos
archivos procesados en paralelo no se mezclan. El contexto expone
``obtener_registros`` / ``reemplazar_registros`` para que la capa de
sesion pueda guardar y restaurar el listado.

Flujo:
    archivo -> ``lector_excel.leer_grid`` -> ``normalizar_registros``
    -> ContextoIngesta -> ``calcular_estadisticas`` -> EstadisticasDashboard
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Optional, Sequence

from config.settings import HOJA_TOKENS
from reporte_diverza.clasificacion import POLITICA_ESTRICTA
from reporte_diverza.estadisticas import EstadisticasDashboard, calcular_estadisticas
from reporte_diverza.lector_excel import FuenteExcel, leer_grid
from reporte_diverza.normalizador import RegistroDiverza, normalizar_registros

logger = logging.getLogger(__name__)


@dataclass
class ContextoIngesta:
    """Listado canonico de una ingesta.

    Attributes:
        registros: Registros aceptados del archivo.
        nombre_archivo: Nombre del archivo de origen.
        actualizado: Momento de la ingesta (o de la restauracion).
    """

    registros: list[RegistroDiverza] = field(default_factory=list)
    nombre_archivo: str = ""
    actualizado: Optional[datetime] = None

    @property
    def tiene_datos(self) -> bool:
        return bool(self.registros)

    def obtener_registros(self) -> list[RegistroDiverza]:
        return list(self.registros)

    def reemplazar_registros(
        self,
        registros: Iterable[RegistroDiverza],
        nombre_archivo: Optional[str] = None,
    ) -> None:
        """Sustituye el listado completo; no hay mezcla con el anterior."""
        self.registros = list(registros)
        if nombre_archivo is not None:
            self.nombre_archivo = nombre_archivo
        self.actualizado = datetime.now()


def ingerir_grid(
    grid: Sequence[Sequence[Any]],
    nombre_archivo: str = "",
    politica_csd: str = POLITICA_ESTRICTA,
) -> ContextoIngesta:
    """Normaliza un grid ya decodificado y devuelve un contexto nuevo."""
    registros = normalizar_registros(grid, politica_csd=politica_csd)
    return ContextoIngesta(
        registros=registros,
        nombre_archivo=nombre_archivo,
        actualizado=datetime.now(),
    )


def ingerir_archivo(
    fuente: FuenteExcel,
    nombre_archivo: Optional[str] = None,
    tokens: Sequence[str] = HOJA_TOKENS,
    politica_csd: str = POLITICA_ESTRICTA,
) -> ContextoIngesta:
    """Lee un archivo Excel y lo normaliza.

    Args:
        fuente: Ruta, bytes o archivo binario con el libro.
        nombre_archivo: Nombre a registrar en el contexto. Si es None y
            la fuente es una ruta, se usa el nombre de la ruta.
        tokens: Fragmentos para elegir la hoja del reporte.
        politica_csd: Politica de derivacion del estatus del CSD.

    Returns:
        ContextoIngesta con los registros del archivo.

    Raises:
        ErrorLecturaArchivo: Si el archivo no se puede leer.
    """
    if nombre_archivo is None:
        nombre_archivo = str(getattr(fuente, "name", fuente)) if not isinstance(
            fuente, (bytes, bytearray)
        ) else ""
    grid = leer_grid(fuente, tokens)
    contexto = ingerir_grid(grid, nombre_archivo, politica_csd)
    logger.info(
        "Ingesta de '%s' completada: %d registros.",
        nombre_archivo, len(contexto.registros),
    )
    return contexto


def calcular(
    contexto: ContextoIngesta,
    referencia: Optional[datetime] = None,
) -> EstadisticasDashboard:
    """Calcula las estadisticas del listado del contexto."""
    return calcular_estadisticas(contexto.registros, referencia)
