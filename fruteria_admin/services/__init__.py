# ==============================================================================
# CAPA DE SERVICIOS - Lógica de negocio
# ==============================================================================
# PRINCIPIOS:
# 1. El AppStore es el único que modifica el estado
# 2. Los servicios dependen de INTERFACES de repositorios, no de archivos
# 3. Las rutas (controllers) solo llaman a servicios
#
# ESTRUCTURA:
# ├── store_service.py → Estado, mutaciones optimistas, sesión, sincronización
# ├── task_service.py  → Motor de tareas recurrentes (funciones puras)
# ├── auth_service.py  → Verificación de credenciales
# ├── dispatcher.py    → Cola de llamadas remotas en segundo plano
# └── stats_service.py → Indicadores del panel
# ==============================================================================

from fruteria_admin.services.dispatcher import RemoteDispatcher
from fruteria_admin.services.auth_service import AuthService, INVALID_CREDENTIALS
from fruteria_admin.services.store_service import AppStore, ProtectedUserError
from fruteria_admin.services.stats_service import StatsService
from fruteria_admin.services import task_service

__all__ = [
    'RemoteDispatcher',
    'AuthService',
    'INVALID_CREDENTIALS',
    'AppStore',
    'ProtectedUserError',
    'StatsService',
    'task_service',
]
