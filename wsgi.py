# ==============================================================================
# WSGI Entry Point - Para Gunicorn en producción
# ==============================================================================
# USO:
#   gunicorn wsgi:app --bind 0.0.0.0:$PORT
#
# Configuración por variables de entorno (ver fruteria_admin/config.py):
#   SUPABASE_URL, SUPABASE_KEY, FRUTERIA_DATA_DIR, LOG_LEVEL, ...
# ==============================================================================

from fruteria_admin.app_container import AppContainer
from fruteria_admin.config import Settings
from fruteria_admin.main import configure_logging, create_app

settings = Settings.from_env()
configure_logging(settings.log_level)
app = create_app(AppContainer(settings))

if __name__ == '__main__':
    app.run(debug=settings.debug, host=settings.host, port=settings.port)
