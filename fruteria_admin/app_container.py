# ==============================================================================
# CONTENEDOR DE DEPENDENCIAS - Inyección de servicios
# ==============================================================================
# Construye repositorios y servicios a partir de la configuración. Se crea
# UNA vez al arrancar (create_app) y se pasa por referencia; no hay estado
# global. En tests se pueden reemplazar el gateway o los repositorios antes
# de acceder al store.
# ==============================================================================

from typing import Optional

from fruteria_admin.config import Settings
from fruteria_admin.repositories import (
    DatasetCacheRepository,
    SettingsRepository,
    SessionRepository,
    RestGateway,
)
from fruteria_admin.repositories.interfaces import IRemoteGateway
from fruteria_admin.services import (
    AppStore,
    AuthService,
    RemoteDispatcher,
    StatsService,
)


class AppContainer:
    """
    Contenedor de dependencias de la aplicación.

    Uso:
        container = AppContainer(Settings.from_env())
        store = container.store
        store.bootstrap()
    """

    def __init__(self, settings: Settings = None, gateway: IRemoteGateway = None):
        """
        Args:
            settings: Configuración (por defecto, desde variables de entorno)
            gateway: Backend remoto (por defecto, RestGateway de la configuración)
        """
        self.settings = settings or Settings.from_env()

        # Repositorios (lazy loading)
        self._cache_repo: Optional[DatasetCacheRepository] = None
        self._settings_repo: Optional[SettingsRepository] = None
        self._session_repo: Optional[SessionRepository] = None
        self._gateway: Optional[IRemoteGateway] = gateway

        # Servicios (lazy loading)
        self._dispatcher: Optional[RemoteDispatcher] = None
        self._auth_service: Optional[AuthService] = None
        self._store: Optional[AppStore] = None
        self._stats_service: Optional[StatsService] = None

    # =========================================================================
    # REPOSITORIOS
    # =========================================================================

    @property
    def cache_repo(self) -> DatasetCacheRepository:
        """Caché local del dataset."""
        if self._cache_repo is None:
            self._cache_repo = DatasetCacheRepository(
                self.settings.data_dir,
                field_max_chars=self.settings.cache_field_max_chars,
                max_bytes=self.settings.cache_max_bytes,
            )
        return self._cache_repo

    @property
    def settings_repo(self) -> SettingsRepository:
        """Preferencias durables."""
        if self._settings_repo is None:
            self._settings_repo = SettingsRepository(self.settings.data_dir)
        return self._settings_repo

    @property
    def session_repo(self) -> SessionRepository:
        """Marcador de sesión."""
        if self._session_repo is None:
            self._session_repo = SessionRepository(self.settings.data_dir)
        return self._session_repo

    @property
    def gateway(self) -> IRemoteGateway:
        """Backend remoto."""
        if self._gateway is None:
            self._gateway = RestGateway(
                self.settings.supabase_url,
                self.settings.supabase_key,
                timeout=self.settings.remote_timeout,
            )
        return self._gateway

    # =========================================================================
    # SERVICIOS
    # =========================================================================

    @property
    def dispatcher(self) -> RemoteDispatcher:
        if self._dispatcher is None:
            self._dispatcher = RemoteDispatcher()
        return self._dispatcher

    @property
    def auth_service(self) -> AuthService:
        if self._auth_service is None:
            self._auth_service = AuthService(self.settings.hash_passwords)
        return self._auth_service

    @property
    def store(self) -> AppStore:
        """Store de la aplicación (una instancia por contenedor)."""
        if self._store is None:
            self._store = AppStore(
                self.settings,
                cache=self.cache_repo,
                session_repo=self.session_repo,
                settings_repo=self.settings_repo,
                gateway=self.gateway,
                dispatcher=self.dispatcher,
                auth_service=self.auth_service,
            )
        return self._store

    @property
    def stats_service(self) -> StatsService:
        if self._stats_service is None:
            self._stats_service = StatsService(lambda: self.store.state)
        return self._stats_service

    # =========================================================================
    # UTILIDADES
    # =========================================================================

    def shutdown(self) -> None:
        """Vacía la cola de llamadas remotas pendientes."""
        if self._dispatcher is not None:
            self._dispatcher.close()
