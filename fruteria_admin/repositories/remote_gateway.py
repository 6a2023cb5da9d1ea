# ==============================================================================
# GATEWAY REMOTO - Acceso a las tablas del backend (PostgREST / Supabase)
# ==============================================================================
# Operaciones genéricas por tabla:
#   list(table)             -> GET    /rest/v1/{table}?select=*&order=...
#   insert(table, record)   -> POST   /rest/v1/{table}
#   update(table, record)   -> PATCH  /rest/v1/{table}?id=eq.{id}
#   delete(table, id)       -> DELETE /rest/v1/{table}?id=eq.{id}
#   ping(table)             -> GET    /rest/v1/{table}?select=id&limit=1
#
# Cualquier fallo (red, HTTP != 2xx, URL no configurada) lanza GatewayError.
# Quien llama decide si lo registra (mutaciones) o si degrada (refresh).
# ==============================================================================

import logging
from typing import Any, Dict, List

import requests

from fruteria_admin.models import normalize_id

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Error de comunicación con el backend remoto."""
    pass


# Orden natural de cada tabla al listar
TABLE_ORDER = {
    'products': 'name.asc',
    'clients': 'name.asc',
    'suppliers': 'name.asc',
    'users': 'name.asc',
    'sales': 'date.desc',
    'purchases': 'date.desc',
    'tasks': 'date.asc',
}


class RestGateway:
    """
    Cliente del backend de registros.

    Uso:
        gateway = RestGateway('https://xxxx.supabase.co', 'anon-key')
        products = gateway.list('products')
        gateway.insert('products', {'id': '1', 'name': 'Mango'})
    """

    def __init__(self, base_url: str, api_key: str, timeout: float = 10.0, session: requests.Session = None):
        """
        Args:
            base_url: URL del proyecto (sin /rest/v1)
            api_key: Clave del proyecto (se envía como apikey y Bearer)
            timeout: Timeout por petición en segundos
            session: Sesión de requests (inyectable para tests)
        """
        self.base_url = (base_url or '').rstrip('/')
        self.api_key = api_key or ''
        self.timeout = timeout
        self.session = session or requests.Session()

    def is_configured(self) -> bool:
        return bool(self.base_url)

    def _headers(self) -> Dict[str, str]:
        return {
            'apikey': self.api_key,
            'Authorization': f'Bearer {self.api_key}',
            'Content-Type': 'application/json',
            'Prefer': 'return=minimal',
        }

    def _request(self, method: str, table: str, params: Dict[str, str] = None, json_body: Any = None) -> requests.Response:
        if not self.is_configured():
            raise GatewayError('Backend remoto no configurado (SUPABASE_URL)')
        url = f'{self.base_url}/rest/v1/{table}'
        try:
            response = self.session.request(
                method, url,
                params=params,
                json=json_body,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise GatewayError(f'{method} {table}: timeout') from e
        except requests.exceptions.RequestException as e:
            raise GatewayError(f'{method} {table}: {e}') from e

        if not response.ok:
            raise GatewayError(f'{method} {table}: HTTP {response.status_code} {response.text[:200]}')
        return response

    # =========================================================================
    # OPERACIONES POR TABLA
    # =========================================================================

    def list(self, table: str) -> List[Dict[str, Any]]:
        """
        Obtiene todos los registros de una tabla en su orden natural.

        Returns:
            Lista de registros (dicts)
        """
        params = {'select': '*'}
        if table in TABLE_ORDER:
            params['order'] = TABLE_ORDER[table]
        response = self._request('GET', table, params=params)
        try:
            data = response.json()
        except ValueError as e:
            raise GatewayError(f'GET {table}: respuesta no es JSON') from e
        if not isinstance(data, list):
            raise GatewayError(f'GET {table}: respuesta inesperada')
        return data

    def insert(self, table: str, record: Dict[str, Any]) -> None:
        self._request('POST', table, json_body=[record])

    def update(self, table: str, record: Dict[str, Any]) -> None:
        """Actualiza el registro con el mismo id."""
        record_id = normalize_id(record.get('id'))
        self._request('PATCH', table, params={'id': f'eq.{record_id}'}, json_body=record)

    def delete(self, table: str, record_id: Any) -> None:
        self._request('DELETE', table, params={'id': f'eq.{normalize_id(record_id)}'})

    def ping(self, table: str) -> bool:
        """True si la tabla responde."""
        try:
            self._request('GET', table, params={'select': 'id', 'limit': '1'})
            return True
        except GatewayError as e:
            logger.debug(f"[REMOTO] Tabla '{table}' no disponible: {e}")
            return False
