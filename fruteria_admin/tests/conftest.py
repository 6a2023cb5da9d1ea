"""
Fixtures compartidos: gateway en memoria, directorio temporal y store.
"""
import threading

import pytest

from fruteria_admin.config import Settings
from fruteria_admin.models import ENTITY_TABLES, normalize_id
from fruteria_admin.repositories import (
    DatasetCacheRepository,
    GatewayError,
    SessionRepository,
    SettingsRepository,
)
from fruteria_admin.services import AppStore, RemoteDispatcher


class FakeGateway:
    """Backend remoto en memoria. Registra cada llamada y puede simular caídas."""

    def __init__(self, tables=None):
        self.tables = {table: [] for table in ENTITY_TABLES}
        self.tables.update(tables or {})
        self.calls = []
        self.fail = False
        self._lock = threading.Lock()

    def _record(self, *call):
        with self._lock:
            self.calls.append(call)
        if self.fail:
            raise GatewayError(f'{call[0]} {call[1]}: backend caído')

    def list(self, table):
        self._record('list', table)
        return [dict(r) for r in self.tables[table]]

    def insert(self, table, record):
        self._record('insert', table, record)
        self.tables[table].append(dict(record))

    def update(self, table, record):
        self._record('update', table, record)
        rows = self.tables[table]
        for i, row in enumerate(rows):
            if normalize_id(row.get('id')) == normalize_id(record.get('id')):
                rows[i] = {**row, **record}

    def delete(self, table, record_id):
        self._record('delete', table, record_id)
        self.tables[table] = [
            r for r in self.tables[table] if normalize_id(r.get('id')) != normalize_id(record_id)
        ]

    def ping(self, table):
        return not self.fail

    def calls_for(self, action, table=None):
        return [c for c in self.calls if c[0] == action and (table is None or c[1] == table)]


@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=str(tmp_path / 'data'))


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def make_store(settings, gateway):
    """Crea stores sobre el mismo directorio de datos (simula reinicios)."""
    dispatchers = []

    def _make(**overrides):
        dispatcher = RemoteDispatcher()
        dispatchers.append(dispatcher)
        return AppStore(
            settings,
            cache=overrides.get('cache') or DatasetCacheRepository(settings.data_dir),
            session_repo=SessionRepository(settings.data_dir),
            settings_repo=SettingsRepository(settings.data_dir),
            gateway=overrides.get('gateway') or gateway,
            dispatcher=dispatcher,
        )

    yield _make
    for dispatcher in dispatchers:
        dispatcher.close()


@pytest.fixture
def store(make_store):
    return make_store()
