# ==============================================================================
# CACHÉ LOCAL DEL DATASET (respaldo offline)
# ==============================================================================
# Guarda el último snapshot conocido de todas las listas de entidades en un
# solo archivo (olga_backup_data.json). Es un respaldo de conveniencia, NO la
# fuente de verdad:
#   - save() nunca lanza excepciones por cuota o disco: se omite la escritura
#   - load() nunca lanza: datos corruptos -> dataset vacío + usuario semilla
#   - los campos de texto muy largos (fotos en base64) se vacían antes de
#     escribir para no agotar la cuota
# ==============================================================================

import logging
import os
from typing import Any, Dict, List

from fruteria_admin.models import ENTITY_TABLES, INITIAL_USER
from fruteria_admin.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

CACHE_FILE_NAME = 'olga_backup_data.json'


def strip_oversized(value: Any, max_chars: int) -> Any:
    """
    Retorna una copia del valor con los strings de más de `max_chars`
    caracteres reemplazados por cadena vacía (a cualquier profundidad).
    """
    if isinstance(value, str):
        return '' if max_chars and len(value) > max_chars else value
    if isinstance(value, dict):
        return {k: strip_oversized(v, max_chars) for k, v in value.items()}
    if isinstance(value, list):
        return [strip_oversized(v, max_chars) for v in value]
    return value


def empty_dataset() -> Dict[str, List[Dict[str, Any]]]:
    """Dataset vacío con el usuario maestro como único usuario."""
    data = {table: [] for table in ENTITY_TABLES}
    data['users'] = [dict(INITIAL_USER)]
    return data


class DatasetCacheRepository(BaseRepository):
    """
    Repositorio del snapshot completo del dataset.

    Formato en disco:
    {
        "products": [...], "clients": [...], "suppliers": [...],
        "sales": [...], "purchases": [...], "users": [...], "tasks": [...]
    }
    """

    def __init__(self, data_dir: str, field_max_chars: int = 20000, max_bytes: int = 0):
        """
        Args:
            data_dir: Directorio de datos locales
            field_max_chars: Longitud máxima de un campo de texto en caché
            max_bytes: Cuota del archivo (0 = sin límite)
        """
        super().__init__(os.path.join(data_dir, CACHE_FILE_NAME), max_bytes=max_bytes)
        self.field_max_chars = field_max_chars

    def _empty_data(self) -> Dict[str, Any]:
        return {}

    def save(self, snapshot: Dict[str, List[Dict[str, Any]]]) -> bool:
        """
        Guarda el snapshot de entidades.

        Args:
            snapshot: Diccionario {tabla: lista de registros}

        Returns:
            True si se escribió, False si se omitió (cuota/disco)
        """
        data = {
            table: strip_oversized(list(snapshot.get(table) or []), self.field_max_chars)
            for table in ENTITY_TABLES
        }
        try:
            self._write_raw(data)
            return True
        except (OSError, TypeError, ValueError) as e:
            # Caché desactualizado es preferible a romper la aplicación
            logger.warning(f"[CACHE] Escritura omitida: {e}")
            return False

    def load(self) -> Dict[str, List[Dict[str, Any]]]:
        """
        Carga el snapshot tolerando archivos ausentes, corruptos o incompletos.

        Returns:
            Dataset con todas las tablas; `users` nunca queda vacío
        """
        try:
            raw = self._read_raw()
        except OSError as e:
            logger.warning(f"[CACHE] No se pudo leer el caché: {e}")
            raw = {}
        return self.parse(raw)

    @staticmethod
    def parse(raw: Any) -> Dict[str, List[Dict[str, Any]]]:
        """Convierte datos crudos en un dataset con forma válida."""
        data = empty_dataset()
        if not isinstance(raw, dict):
            return data
        for table in ENTITY_TABLES:
            records = raw.get(table)
            if not isinstance(records, list):
                continue
            data[table] = [r for r in records if isinstance(r, dict)]
        if not data['users']:
            data['users'] = [dict(INITIAL_USER)]
        return data

    def has_snapshot(self) -> bool:
        """True si hay un snapshot legible en disco."""
        if not self.exists():
            return False
        try:
            raw = self._read_raw()
        except OSError:
            return False
        return isinstance(raw, dict) and bool(raw)

    def clear(self) -> None:
        self.remove()
