# ==============================================================================
# CAPA DE REPOSITORIOS - Acceso a datos
# ==============================================================================
# Persistencia local (archivos JSON, equivalente al localStorage) y acceso al
# backend remoto de registros.
#
# ESTRUCTURA:
# ├── interfaces.py          → Protocolos (contratos para tests y servicios)
# ├── base.py                → Almacenamiento JSON clave/valor con cuota
# ├── cache_repository.py    → Snapshot del dataset (respaldo offline)
# ├── settings_repository.py → Preferencias (tema, moneda, API DNI/RUC)
# ├── session_repository.py  → Usuario logueado
# └── remote_gateway.py      → Tablas remotas (PostgREST / Supabase)
# ==============================================================================

from .interfaces import (
    IDatasetCache,
    ISessionRepository,
    ISettingsRepository,
    IRemoteGateway,
)

from .base import BaseRepository, DictRepository, StorageQuotaExceeded
from .cache_repository import DatasetCacheRepository
from .settings_repository import SettingsRepository
from .session_repository import SessionRepository
from .remote_gateway import RestGateway, GatewayError

__all__ = [
    # Interfaces
    'IDatasetCache',
    'ISessionRepository',
    'ISettingsRepository',
    'IRemoteGateway',

    # Clases base
    'BaseRepository',
    'DictRepository',
    'StorageQuotaExceeded',

    # Implementaciones
    'DatasetCacheRepository',
    'SettingsRepository',
    'SessionRepository',
    'RestGateway',
    'GatewayError',
]
