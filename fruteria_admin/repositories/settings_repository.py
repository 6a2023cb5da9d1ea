# ==============================================================================
# REPOSITORIO DE PREFERENCIAS
# ==============================================================================
# Encapsula el acceso a preferences.json.
# Cada preferencia se guarda por separado (clave/valor), fuera del snapshot
# del dataset: tema, moneda, tipo de cambio y configuración de la API de
# consulta DNI/RUC.
# ==============================================================================

import logging
import os
from typing import Any, Dict, Optional

from fruteria_admin.models import VALID_CURRENCIES, VALID_THEMES
from fruteria_admin.repositories.base import DictRepository

logger = logging.getLogger(__name__)


class SettingsRepository(DictRepository):
    """
    Repositorio para preferencias de la aplicación.

    Formato de datos en preferences.json:
    {
        "theme": "dark",
        "currency": "PEN",
        "exchangeRate": 3.75,
        "identityConfig": {"dniUrl": "...", "rucUrl": "...", "token": "..."}
    }
    """

    def __init__(self, data_dir: str):
        """
        Args:
            data_dir: Directorio de datos locales
        """
        super().__init__(os.path.join(data_dir, 'preferences.json'))

    def _safe_set(self, key: str, value: Any) -> None:
        try:
            self.set(key, value)
        except OSError as e:
            logger.warning(f"[PREFERENCIAS] No se pudo guardar '{key}': {e}")

    # =========================================================================
    # Tema
    # =========================================================================

    def get_theme(self, default: str = 'light') -> str:
        theme = self.get('theme', default)
        return theme if theme in VALID_THEMES else default

    def set_theme(self, theme: str) -> None:
        """
        Establece el tema ('light' o 'dark'). Valores inválidos -> 'light'.
        """
        if theme not in VALID_THEMES:
            theme = 'light'
        self._safe_set('theme', theme)

    # =========================================================================
    # Moneda y tipo de cambio
    # =========================================================================

    def get_currency(self, default: str = 'PEN') -> str:
        currency = self.get('currency', default)
        return currency if currency in VALID_CURRENCIES else default

    def set_currency(self, currency: str) -> None:
        if currency not in VALID_CURRENCIES:
            currency = 'PEN'
        self._safe_set('currency', currency)

    def get_exchange_rate(self, default: float = 3.75) -> float:
        try:
            rate = float(self.get('exchangeRate', default))
        except (TypeError, ValueError):
            return default
        return rate if rate > 0 else default

    def set_exchange_rate(self, rate: float) -> None:
        self._safe_set('exchangeRate', rate)

    # =========================================================================
    # API de consulta DNI/RUC
    # =========================================================================

    def get_identity_config(self) -> Optional[Dict[str, Any]]:
        config = self.get('identityConfig')
        return config if isinstance(config, dict) else None

    def set_identity_config(self, config: Dict[str, Any]) -> None:
        self._safe_set('identityConfig', config)
