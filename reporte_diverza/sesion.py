"""Persistencia del listado entre sesiones.

Guarda el listado canonico como JSON para que la siguiente sesion lo
recupere sin volver a subir el archivo. El formato es::

    {
        "guardado": "2024-05-01T10:00:00",
        "nombre_archivo": "reporte.xlsx",
        "registros": [{...}, ...]
    }

Un archivo ausente o corrupto equivale a no tener sesion guardada.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from reporte_diverza.normalizador import RegistroDiverza
from reporte_diverza.pipeline import ContextoIngesta

logger = logging.getLogger(__name__)


class AlmacenSesion:
    """Almacen JSON del listado en una ruta fija."""

    def __init__(self, ruta: Path) -> None:
        self.ruta = Path(ruta)

    def existe(self) -> bool:
        return self.ruta.is_file()

    def guardar(
        self,
        registros: Sequence[RegistroDiverza],
        nombre_archivo: str = "",
    ) -> Path:
        """Sobrescribe la sesion con el listado dado."""
        self.ruta.parent.mkdir(parents=True, exist_ok=True)
        contenido = {
            "guardado": datetime.now().isoformat(timespec="seconds"),
            "nombre_archivo": nombre_archivo,
            "registros": [r.a_dict() for r in registros],
        }
        self.ruta.write_text(
            json.dumps(contenido, ensure_ascii=False, indent=2), encoding="utf-8",
        )
        logger.info("Sesion guardada: %s (%d registros)", self.ruta, len(registros))
        return self.ruta

    def _leer(self) -> Optional[dict]:
        if not self.existe():
            return None
        try:
            contenido = json.loads(self.ruta.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning("Sesion ilegible en %s — se ignora: %s", self.ruta, exc)
            return None
        if isinstance(contenido, list):
            return {"registros": contenido}
        if not isinstance(contenido, dict) or not isinstance(contenido.get("registros"), list):
            logger.warning("Sesion con formato inesperado en %s — se ignora.", self.ruta)
            return None
        return contenido

    @staticmethod
    def _registros(contenido: dict) -> list[RegistroDiverza]:
        return [
            RegistroDiverza.desde_dict(item)
            for item in contenido["registros"]
            if isinstance(item, dict)
        ]

    def cargar(self) -> list[RegistroDiverza]:
        """Recupera el listado guardado; lista vacia si no hay sesion valida."""
        contenido = self._leer()
        if contenido is None:
            return []
        registros = self._registros(contenido)
        logger.info("Sesion recuperada: %d registros", len(registros))
        return registros

    def cargar_contexto(self) -> ContextoIngesta:
        """Restaura la sesion como contexto de ingesta."""
        contexto = ContextoIngesta()
        contenido = self._leer()
        if contenido is not None:
            contexto.reemplazar_registros(
                self._registros(contenido),
                nombre_archivo=str(contenido.get("nombre_archivo", "")),
            )
        return contexto

    def limpiar(self) -> None:
        """Elimina la sesion guardada, si existe."""
        self.ruta.unlink(missing_ok=True)
        logger.info("Sesion eliminada: %s", self.ruta)
