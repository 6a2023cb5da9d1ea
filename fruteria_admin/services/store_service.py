# ==============================================================================
# APP STORE - Estado de la aplicación y sincronización
# ==============================================================================
# Centraliza el árbol de estado único y TODAS sus mutaciones.
#
# FLUJO DE UNA MUTACIÓN (actualización optimista):
#   1. Se actualiza el estado en memoria
#   2. Se guarda el snapshot completo en el caché local
#   3. Se encola la llamada al backend remoto (no se espera)
# Si el backend falla, el error se registra y el estado local NO se revierte.
#
# COMPORTAMIENTO HEREDADO - ANULACIONES:
# Anular una venta o compra solo cambia su estado; el stock NO se revierte.
#
# IDs: siempre se comparan como texto (same_id). Los IDs pueden llegar como
# timestamps numéricos o como UUIDs del backend.
# ==============================================================================

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Dict, List, Optional

from fruteria_admin.config import Settings
from fruteria_admin.models import (
    AppState,
    IdentityConfig,
    ENTITY_TABLES,
    ENTITY_TYPES,
    MASTER_USER_ID,
    VALID_CURRENCIES,
    VALID_THEMES,
    PurchaseStatus,
    SaleStatus,
    normalize_id,
    same_id,
)
from fruteria_admin.repositories.interfaces import (
    IDatasetCache,
    IRemoteGateway,
    ISessionRepository,
    ISettingsRepository,
)
from fruteria_admin.services.auth_service import AuthService, INVALID_CREDENTIALS
from fruteria_admin.services.dispatcher import RemoteDispatcher
from fruteria_admin.services import task_service

logger = logging.getLogger(__name__)

# Tablas que se insertan al inicio de la lista (más recientes primero)
PREPEND_TABLES = frozenset(['products', 'clients', 'suppliers', 'sales', 'purchases', 'tasks'])


class ProtectedUserError(Exception):
    """Se intentó eliminar el usuario maestro."""
    pass


class AppStore:
    """
    Contenedor del estado de la aplicación.

    Responsabilidades:
    - Mutaciones optimistas por entidad (add/update/delete)
    - Efectos de ventas y compras sobre el stock
    - Login/logout y marcador de sesión
    - Refresco completo desde el backend con respaldo en caché
    - Preferencias (tema, moneda, tipo de cambio, API DNI/RUC)

    Se construye una sola vez (ver AppContainer) y se pasa por referencia.
    """

    def __init__(
        self,
        settings: Settings,
        cache: IDatasetCache,
        session_repo: ISessionRepository,
        settings_repo: ISettingsRepository,
        gateway: IRemoteGateway,
        dispatcher: RemoteDispatcher = None,
        auth_service: AuthService = None
    ):
        """
        Args:
            settings: Configuración (valores por defecto del entorno)
            cache: Caché local del dataset
            session_repo: Marcador de sesión
            settings_repo: Preferencias durables
            gateway: Backend remoto
            dispatcher: Cola de llamadas remotas (se crea si no se pasa)
            auth_service: Puerta de sesión (se crea si no se pasa)
        """
        self.settings = settings
        self.cache = cache
        self.session_repo = session_repo
        self.settings_repo = settings_repo
        self.gateway = gateway
        self.dispatcher = dispatcher or RemoteDispatcher()
        self.auth_service = auth_service or AuthService(settings.hash_passwords)

        self._lock = threading.RLock()
        self.loading = True
        self.is_cloud_connected = False
        self.state = self._initial_state()

    def _initial_state(self) -> AppState:
        """Valores del entorno + preferencias guardadas + contenido del caché."""
        state = AppState(
            theme=self.settings_repo.get_theme(self.settings.default_theme),
            currency=self.settings_repo.get_currency(self.settings.default_currency),
            exchangeRate=self.settings_repo.get_exchange_rate(self.settings.default_exchange_rate),
            identityConfig=IdentityConfig.from_dict(self.settings_repo.get_identity_config()),
        )
        state.apply_dataset(self.cache.load())
        return state

    # =========================================================================
    # UTILIDADES INTERNAS
    # =========================================================================

    def _persist(self) -> None:
        """Guarda el snapshot actual en el caché (nunca lanza)."""
        self.cache.save(self.state.dataset())

    def _remote(self, action: str, table: str, payload: Any) -> None:
        """Encola la llamada remota correspondiente sin esperarla."""
        func = getattr(self.gateway, action)
        record_id = payload.get('id') if isinstance(payload, dict) else payload
        self.dispatcher.submit(f'{action} {table}/{normalize_id(record_id)}', func, table, payload)

    def _find(self, table: str, record_id: Any) -> Optional[Dict[str, Any]]:
        for record in getattr(self.state, table):
            if same_id(record.get('id'), record_id):
                return record
        return None

    def _add(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        record = ENTITY_TYPES[table].normalize(record)
        with self._lock:
            current = getattr(self.state, table)
            if table in PREPEND_TABLES:
                setattr(self.state, table, [record] + current)
            else:
                setattr(self.state, table, current + [record])
            self._persist()
        self._remote('insert', table, record)
        return record

    def _update(self, table: str, record: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Reemplaza el registro con el mismo id.

        Returns:
            El registro normalizado, o None si el id no existe
        """
        record = ENTITY_TYPES[table].normalize(record)
        with self._lock:
            current = getattr(self.state, table)
            if not any(same_id(r.get('id'), record['id']) for r in current):
                return None
            setattr(self.state, table, [
                record if same_id(r.get('id'), record['id']) else r
                for r in current
            ])
            self._persist()
        self._remote('update', table, record)
        return record

    def _delete(self, table: str, record_id: Any) -> bool:
        with self._lock:
            current = getattr(self.state, table)
            remaining = [r for r in current if not same_id(r.get('id'), record_id)]
            if len(remaining) == len(current):
                return False
            setattr(self.state, table, remaining)
            self._persist()
        self._remote('delete', table, normalize_id(record_id))
        return True

    def _adjust_stock(self, items: List[Dict[str, Any]], sign: int) -> List[Dict[str, Any]]:
        """
        Aplica el delta de stock de las líneas a los productos referenciados.
        Los productos no encontrados se ignoran; el stock puede quedar negativo.

        Returns:
            Productos modificados
        """
        deltas: Dict[str, float] = {}
        for item in items:
            pid = normalize_id(item.get('productId'))
            deltas[pid] = deltas.get(pid, 0) + item.get('quantity', 0)

        now = datetime.now().isoformat(timespec='seconds')
        changed = []
        products = []
        for product in self.state.products:
            pid = normalize_id(product.get('id'))
            if pid in deltas:
                product = dict(product)
                stock = round((product.get('stock') or 0) + sign * deltas[pid], 3)
                product['stock'] = int(stock) if float(stock).is_integer() else stock
                product['lastUpdate'] = now
                changed.append(product)
            products.append(product)
        self.state.products = products
        return changed

    # =========================================================================
    # PRODUCTOS, CLIENTES, PROVEEDORES
    # =========================================================================

    def add_product(self, product: Dict[str, Any]) -> Dict[str, Any]:
        return self._add('products', product)

    def update_product(self, product: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self._update('products', product)

    def delete_product(self, product_id: Any) -> bool:
        return self._delete('products', product_id)

    def add_client(self, client: Dict[str, Any]) -> Dict[str, Any]:
        return self._add('clients', client)

    def update_client(self, client: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Las ventas existentes conservan la copia del cliente (no se reescriben)."""
        return self._update('clients', client)

    def delete_client(self, client_id: Any) -> bool:
        return self._delete('clients', client_id)

    def add_supplier(self, supplier: Dict[str, Any]) -> Dict[str, Any]:
        return self._add('suppliers', supplier)

    def update_supplier(self, supplier: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self._update('suppliers', supplier)

    def delete_supplier(self, supplier_id: Any) -> bool:
        return self._delete('suppliers', supplier_id)

    # =========================================================================
    # VENTAS
    # =========================================================================

    def add_sale(self, sale: Dict[str, Any]) -> Dict[str, Any]:
        """
        Registra una venta y descuenta el stock de cada producto vendido.

        No es transaccional: si el backend rechaza la venta, el descuento
        local de stock se mantiene.

        Returns:
            La venta normalizada (totales recalculados)
        """
        sale = ENTITY_TYPES['sales'].normalize(sale)
        with self._lock:
            changed = self._adjust_stock(sale['items'], -1)
            self.state.sales = [sale] + self.state.sales
            self._persist()
        self._remote('insert', 'sales', sale)
        for product in changed:
            self._remote('update', 'products', product)
        return sale

    def update_sale(self, sale: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Edita una venta. No recalcula el stock."""
        return self._update('sales', sale)

    def cancel_sale(self, sale_id: Any) -> bool:
        """
        Anula una venta (saleStatus -> Anulado).

        El stock descontado NO se devuelve (comportamiento heredado, pendiente
        de confirmación del negocio).
        """
        return self._set_status('sales', sale_id, 'saleStatus', SaleStatus.ANULADO.value)

    def delete_sale(self, sale_id: Any) -> bool:
        return self._delete('sales', sale_id)

    # =========================================================================
    # COMPRAS
    # =========================================================================

    def add_purchase(self, purchase: Dict[str, Any]) -> Dict[str, Any]:
        """Registra una compra e incrementa el stock de cada producto."""
        purchase = ENTITY_TYPES['purchases'].normalize(purchase)
        with self._lock:
            changed = self._adjust_stock(purchase['items'], +1)
            self.state.purchases = [purchase] + self.state.purchases
            self._persist()
        self._remote('insert', 'purchases', purchase)
        for product in changed:
            self._remote('update', 'products', product)
        return purchase

    def update_purchase(self, purchase: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self._update('purchases', purchase)

    def cancel_purchase(self, purchase_id: Any) -> bool:
        """Anula una compra (status -> Anulado). El stock NO se revierte."""
        return self._set_status('purchases', purchase_id, 'status', PurchaseStatus.ANULADO.value)

    def delete_purchase(self, purchase_id: Any) -> bool:
        return self._delete('purchases', purchase_id)

    def _set_status(self, table: str, record_id: Any, field_name: str, value: str) -> bool:
        with self._lock:
            target = self._find(table, record_id)
            if target is None:
                return False
            setattr(self.state, table, [
                {**r, field_name: value} if same_id(r.get('id'), record_id) else r
                for r in getattr(self.state, table)
            ])
            self._persist()
        self._remote('update', table, {'id': normalize_id(record_id), field_name: value})
        return True

    # =========================================================================
    # USUARIOS DEL SISTEMA
    # =========================================================================

    def add_system_user(self, user: Dict[str, Any]) -> Dict[str, Any]:
        """
        Agrega un usuario al final de la lista.
        La unicidad del username la valida quien llama.
        """
        user = dict(user)
        user['password'] = self.auth_service.prepare_password(user.get('password', ''))
        return self._add('users', user)

    def update_system_user(self, user: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Actualiza un usuario. Si es el usuario logueado, también se actualiza
        la sesión y su marcador durable.
        """
        if 'password' in user:
            user = {**user, 'password': self.auth_service.prepare_password(user['password'])}
        with self._lock:
            updated = self._update('users', user)
            if updated is not None and self.state.user and same_id(self.state.user.get('id'), updated['id']):
                self.state.user = updated
                self.session_repo.save_user(updated)
        return updated

    def delete_system_user(self, user_id: Any) -> bool:
        """
        Elimina un usuario.

        Raises:
            ProtectedUserError: Si se intenta eliminar el usuario maestro
        """
        if same_id(user_id, MASTER_USER_ID):
            raise ProtectedUserError('No se puede eliminar el usuario maestro')
        return self._delete('users', user_id)

    def username_taken(self, username: str, exclude_id: Any = None) -> bool:
        """
        Indica si otro usuario ya usa ese username.

        Args:
            username: Nombre de acceso a verificar
            exclude_id: Usuario que se está editando (no cuenta como duplicado)
        """
        return any(
            u.get('username') == username and not same_id(u.get('id'), exclude_id)
            for u in self.state.users
        )

    def update_user_password(self, user_id: Any, new_password: str) -> bool:
        user = self._find('users', user_id)
        if user is None:
            return False
        password = self.auth_service.prepare_password(new_password)
        return self.update_system_user({**user, 'password': password}) is not None

    # =========================================================================
    # TAREAS OPERATIVAS
    # =========================================================================

    def add_task(self, task: Dict[str, Any]) -> Dict[str, Any]:
        return self._add('tasks', task)

    def update_task(self, task: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self._update('tasks', task)

    def delete_task(self, task_id: Any) -> bool:
        return self._delete('tasks', task_id)

    def toggle_task(self, task_id: Any, date_str: str) -> Optional[Dict[str, Any]]:
        """
        Alterna la instancia de la tarea en una fecha.

        Returns:
            La tarea actualizada, o None si no existe

        Raises:
            ValueError: Si la fecha es inválida o la tarea no aplica ese día
        """
        task = self._find('tasks', task_id)
        if task is None:
            return None
        if not task_service.occurs_on(task, date_str):
            raise ValueError(f"La tarea no aplica en la fecha '{date_str}'")
        return self.update_task(task_service.toggle_completion(task, date_str))

    def tasks_for_date(self, date_str: str) -> List[Dict[str, Any]]:
        return task_service.tasks_for_date(self.state.tasks, date_str)

    # =========================================================================
    # SESIÓN
    # =========================================================================

    def login(self, username: str, password: str) -> Dict[str, Any]:
        """
        Inicia sesión contra la lista de usuarios en memoria.

        Returns:
            {'success': True, 'user': {...}} o
            {'success': False, 'error': mensaje genérico}
        """
        user = self.auth_service.authenticate(self.state.users, username, password)
        if user is None:
            logger.info("[SESION] Intento de login rechazado")
            return {'success': False, 'error': INVALID_CREDENTIALS}

        with self._lock:
            self.state.user = user
            self.session_repo.save_user(user)
        logger.info(f"[SESION] Login de '{username}'")
        self.refresh_cloud_data()
        return {'success': True, 'user': self.state.user}

    def logout(self) -> None:
        """Cierra la sesión. Las listas de entidades se conservan."""
        with self._lock:
            self.session_repo.clear()
            self.state.user = None
            self.is_cloud_connected = False
        logger.info("[SESION] Logout")

    # =========================================================================
    # SINCRONIZACIÓN
    # =========================================================================

    def refresh_cloud_data(self) -> bool:
        """
        Descarga todas las tablas en paralelo y reemplaza las listas locales.

        Si alguna tabla falla, se marca la conexión como caída y se usa el
        último snapshot del caché (o se conserva el estado en memoria si no
        hay caché). Nunca lanza excepciones.

        Returns:
            True si la descarga fue completa
        """
        try:
            with ThreadPoolExecutor(max_workers=len(ENTITY_TABLES)) as executor:
                futures = {table: executor.submit(self.gateway.list, table) for table in ENTITY_TABLES}
                results = {table: future.result() for table, future in futures.items()}
        except Exception as e:
            logger.warning(f"[SYNC] Backend no disponible, usando caché local: {e}")
            with self._lock:
                self.is_cloud_connected = False
                if self.cache.has_snapshot():
                    self.state.apply_dataset(self.cache.load())
                self.loading = False
            return False

        # Solo se normaliza el id: los totales guardados se respetan tal cual
        dataset = {
            table: [{**r, 'id': normalize_id(r.get('id'))} for r in (records or []) if isinstance(r, dict)]
            for table, records in results.items()
        }
        with self._lock:
            if not dataset['users']:
                dataset['users'] = list(self.state.users)
            self.state.apply_dataset(dataset)
            if self.state.user:
                cloud_user = self._find('users', self.state.user.get('id'))
                if cloud_user is not None:
                    self.state.user = cloud_user
                    self.session_repo.save_user(cloud_user)
            self._persist()
            self.is_cloud_connected = True
            self.loading = False
        logger.info(
            f"[SYNC] Datos sincronizados: {len(dataset['products'])} productos, "
            f"{len(dataset['sales'])} ventas, {len(dataset['tasks'])} tareas"
        )
        return True

    def bootstrap(self) -> None:
        """
        Arranque: restaura el caché, restaura la sesión si existe y, en ese
        caso, refresca desde el backend.
        """
        with self._lock:
            self.state.apply_dataset(self.cache.load())
            user = self.session_repo.load_user()
            if user is None:
                self.loading = False
                return
            self.state.user = user
        logger.info(f"[SESION] Sesión restaurada para '{user.get('username', '')}'")
        self.refresh_cloud_data()

    def check_tables(self) -> Dict[str, bool]:
        """Estado de conexión de cada tabla remota."""
        return {table: self.gateway.ping(table) for table in ENTITY_TABLES}

    def flush(self, timeout: float = None) -> bool:
        """Espera a que terminen las llamadas remotas encoladas."""
        return self.dispatcher.flush(timeout)

    # =========================================================================
    # PREFERENCIAS
    # =========================================================================

    def set_theme(self, theme: str) -> str:
        theme = theme if theme in VALID_THEMES else 'light'
        self.state.theme = theme
        self.settings_repo.set_theme(theme)
        return theme

    def set_currency(self, currency: str) -> str:
        currency = currency if currency in VALID_CURRENCIES else 'PEN'
        self.state.currency = currency
        self.settings_repo.set_currency(currency)
        return currency

    def set_exchange_rate(self, rate: float) -> float:
        """
        Raises:
            ValueError: Si el tipo de cambio no es un número positivo
        """
        rate = float(rate)
        if rate <= 0:
            raise ValueError('El tipo de cambio debe ser mayor que cero')
        self.state.exchangeRate = rate
        self.settings_repo.set_exchange_rate(rate)
        return rate

    def set_identity_config(self, config: Dict[str, Any]) -> Dict[str, Any]:
        identity = IdentityConfig.from_dict(config)
        self.state.identityConfig = identity
        self.settings_repo.set_identity_config(identity.to_dict())
        return identity.to_dict()

    # =========================================================================
    # CONSULTA
    # =========================================================================

    def snapshot(self) -> Dict[str, Any]:
        """Estado completo serializable + banderas de conexión."""
        with self._lock:
            data = self.state.to_dict()
            data['loading'] = self.loading
            data['isCloudConnected'] = self.is_cloud_connected
            return data
