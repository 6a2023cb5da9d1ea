# ==============================================================================
# REPOSITORIO DE SESIÓN
# ==============================================================================
# Marcador durable del usuario logueado (olga_logged_user.json).
# Si existe al arrancar, se restaura la sesión y se refrescan los datos.
# ==============================================================================

import logging
import os
from typing import Any, Dict, Optional

from fruteria_admin.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class SessionRepository(BaseRepository):
    """Guarda una copia del usuario actual, o nada si no hay sesión."""

    def __init__(self, data_dir: str):
        super().__init__(os.path.join(data_dir, 'olga_logged_user.json'))

    def _empty_data(self) -> None:
        return None

    def load_user(self) -> Optional[Dict[str, Any]]:
        """
        Retorna el usuario de la sesión guardada.

        Returns:
            Datos del usuario, o None si no hay sesión o el archivo es inválido
        """
        try:
            user = self._read_raw()
        except OSError:
            return None
        if isinstance(user, dict) and user.get('id') is not None:
            return user
        return None

    def save_user(self, user: Dict[str, Any]) -> None:
        try:
            self._write_raw(user)
        except OSError as e:
            logger.warning(f"[SESION] No se pudo guardar la sesión: {e}")

    def clear(self) -> None:
        try:
            self.remove()
        except OSError as e:
            logger.warning(f"[SESION] No se pudo borrar la sesión: {e}")
