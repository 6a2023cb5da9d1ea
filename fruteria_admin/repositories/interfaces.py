# ==============================================================================
# INTERFACES DE REPOSITORIOS
# ==============================================================================
#
# Contratos que deben cumplir los repositorios y el gateway remoto.
# El AppStore depende de estas interfaces, no de las implementaciones, así
# los tests pueden inyectar un gateway o un caché en memoria.
#
# ==============================================================================

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable


@runtime_checkable
class IDatasetCache(Protocol):
    """Caché local del dataset completo."""

    def save(self, snapshot: Dict[str, List[Dict[str, Any]]]) -> bool:
        """Guarda el snapshot; nunca lanza por cuota."""
        ...

    def load(self) -> Dict[str, List[Dict[str, Any]]]:
        """Carga el snapshot; nunca lanza por datos corruptos."""
        ...

    def has_snapshot(self) -> bool:
        ...


@runtime_checkable
class ISessionRepository(Protocol):
    """Marcador durable de la sesión."""

    def load_user(self) -> Optional[Dict[str, Any]]:
        ...

    def save_user(self, user: Dict[str, Any]) -> None:
        ...

    def clear(self) -> None:
        ...


@runtime_checkable
class ISettingsRepository(Protocol):
    """Preferencias clave/valor."""

    def get_theme(self, default: str = 'light') -> str:
        ...

    def set_theme(self, theme: str) -> None:
        ...

    def get_currency(self, default: str = 'PEN') -> str:
        ...

    def set_currency(self, currency: str) -> None:
        ...

    def get_exchange_rate(self, default: float = 3.75) -> float:
        ...

    def set_exchange_rate(self, rate: float) -> None:
        ...

    def get_identity_config(self) -> Optional[Dict[str, Any]]:
        ...

    def set_identity_config(self, config: Dict[str, Any]) -> None:
        ...


@runtime_checkable
class IRemoteGateway(Protocol):
    """
    Backend remoto de registros.

    Todas las operaciones lanzan GatewayError si fallan (excepto ping).
    """

    def list(self, table: str) -> List[Dict[str, Any]]:
        ...

    def insert(self, table: str, record: Dict[str, Any]) -> None:
        ...

    def update(self, table: str, record: Dict[str, Any]) -> None:
        ...

    def delete(self, table: str, record_id: Any) -> None:
        ...

    def ping(self, table: str) -> bool:
        ...
