# ==============================================================================
# CONFIGURACIÓN - Valores por defecto y variables de entorno
# ==============================================================================
# Todos los valores se pueden sobrescribir con variables de entorno.
# Ejemplo:
#   export SUPABASE_URL="https://xxxx.supabase.co"
#   export SUPABASE_KEY="eyJhbGciOi..."
#   export FRUTERIA_DATA_DIR="/var/lib/fruteria"
# ==============================================================================

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'si', 'on')


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


# Clave de desarrollo para firmar la cookie de sesión de Flask.
# En producción DEBE definirse FRUTERIA_SECRET_KEY.
DEV_SECRET_KEY = 'fruteria_admin_dev_secret_change_in_production'

# Directorio por defecto para el caché local (equivalente al localStorage)
DEFAULT_DATA_DIR = os.path.join(os.getcwd(), 'data')


@dataclass
class Settings:
    """
    Configuración de la aplicación.

    Se construye una sola vez al arrancar (ver AppContainer) y se pasa por
    referencia a repositorios y servicios.
    """
    data_dir: str = DEFAULT_DATA_DIR

    # Backend remoto (PostgREST / Supabase)
    supabase_url: str = ''
    supabase_key: str = ''
    remote_timeout: float = 10.0

    # Preferencias por defecto
    default_theme: str = 'light'
    default_currency: str = 'PEN'
    default_exchange_rate: float = 3.75

    # Caché local
    cache_field_max_chars: int = 20000   # Campos más largos se vacían (fotos base64)
    cache_max_bytes: int = 0             # 0 = sin cuota

    # Autenticación
    hash_passwords: bool = False

    # Servidor
    secret_key: str = DEV_SECRET_KEY
    host: str = '0.0.0.0'
    port: int = 5000
    debug: bool = False
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls) -> 'Settings':
        """Crea la configuración leyendo variables de entorno."""
        return cls(
            data_dir=os.environ.get('FRUTERIA_DATA_DIR', DEFAULT_DATA_DIR),
            supabase_url=os.environ.get('SUPABASE_URL', '').rstrip('/'),
            supabase_key=os.environ.get('SUPABASE_KEY', ''),
            remote_timeout=_env_float('REMOTE_TIMEOUT', 10.0),
            default_theme=os.environ.get('DEFAULT_THEME', 'light'),
            default_currency=os.environ.get('DEFAULT_CURRENCY', 'PEN'),
            default_exchange_rate=_env_float('DEFAULT_EXCHANGE_RATE', 3.75),
            cache_field_max_chars=_env_int('CACHE_FIELD_MAX_CHARS', 20000),
            cache_max_bytes=_env_int('CACHE_MAX_BYTES', 0),
            hash_passwords=_env_bool('HASH_PASSWORDS', False),
            secret_key=os.environ.get('FRUTERIA_SECRET_KEY') or DEV_SECRET_KEY,
            host=os.environ.get('FLASK_HOST', '0.0.0.0'),
            port=_env_int('FLASK_PORT', 5000),
            debug=os.environ.get('FLASK_DEBUG', '0') == '1',
            log_level=os.environ.get('LOG_LEVEL', 'INFO').upper(),
        )
