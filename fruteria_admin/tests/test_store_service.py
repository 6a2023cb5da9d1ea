# -*- coding: utf-8 -*-
"""
Tests del AppStore: mutaciones optimistas, stock, sesión y sincronización.
"""
import pytest

from fruteria_admin.models import INITIAL_USER, MASTER_USER_ID
from fruteria_admin.services import INVALID_CREDENTIALS, ProtectedUserError


def sale_of(product_id, quantity, unit_price, sale_id='s1', **extra):
    return {
        'id': sale_id,
        'date': '2025-03-05',
        'clientName': 'Bodega Rosita',
        'items': [{'productId': product_id, 'productName': 'Mango', 'quantity': quantity, 'unitPrice': unit_price}],
        **extra,
    }


def purchase_of(product_id, quantity, unit_price, purchase_id='c1'):
    return {
        'id': purchase_id,
        'date': '2025-03-04',
        'supplierName': 'Agro Norte',
        'items': [{'productId': product_id, 'productName': 'Mango', 'quantity': quantity, 'unitPrice': unit_price}],
    }


def stock_of(store, product_id):
    return next(p['stock'] for p in store.state.products if p['id'] == product_id)


# ==============================================================================
# ESTADO INICIAL
# ==============================================================================

def test_initial_state_has_seed_user_and_defaults(store):
    assert store.state.users[0]['id'] == MASTER_USER_ID
    assert store.state.user is None
    assert store.state.theme == 'light'
    assert store.state.currency == 'PEN'
    assert store.state.exchangeRate == 3.75


# ==============================================================================
# VENTAS Y COMPRAS
# ==============================================================================

def test_add_sale_end_to_end(store, gateway):
    store.add_product({'id': 'p1', 'name': 'Mango', 'price': 5, 'stock': 10})
    sale = store.add_sale(sale_of('p1', 2, 5))

    assert sale['total'] == 10
    assert sale['items'][0]['total'] == 10
    assert stock_of(store, 'p1') == 8
    assert store.state.sales[0]['id'] == 's1'
    assert store.cache.load()['sales'][0]['id'] == 's1'
    assert store.cache.load()['products'][0]['stock'] == 8

    assert store.flush(timeout=5)
    assert [c[2]['id'] for c in gateway.calls_for('insert', 'sales')] == ['s1']
    assert gateway.calls_for('update', 'products')[0][2]['stock'] == 8


def test_sale_total_ignores_client_supplied_totals(store):
    sale = store.add_sale({**sale_of('p9', 3, 2.5), 'total': 999})
    assert sale['total'] == 7.5


def test_purchase_then_sale_round_trips_stock(store):
    store.add_product({'id': 'p1', 'name': 'Palta', 'stock': 4})
    store.add_purchase(purchase_of('p1', 6, 3))
    assert stock_of(store, 'p1') == 10
    store.add_sale(sale_of('p1', 6, 4))
    assert stock_of(store, 'p1') == 4


def test_sale_can_leave_negative_stock(store):
    store.add_product({'id': 'p1', 'stock': 1})
    store.add_sale(sale_of('p1', 3, 1))
    assert stock_of(store, 'p1') == -2


def test_sale_of_unknown_product_leaves_inventory_untouched(store):
    store.add_product({'id': 'p1', 'stock': 5})
    store.add_sale(sale_of('no-existe', 2, 1))
    assert stock_of(store, 'p1') == 5


def test_cancel_sale_does_not_restore_stock(store):
    store.add_product({'id': 'p1', 'stock': 10})
    store.add_sale(sale_of('p1', 3, 2))
    assert stock_of(store, 'p1') == 7

    assert store.cancel_sale('s1')
    assert store.state.sales[0]['saleStatus'] == 'Anulado'
    assert stock_of(store, 'p1') == 7


def test_cancel_purchase_marks_status(store, gateway):
    store.add_purchase(purchase_of('p1', 1, 1))
    assert store.cancel_purchase('c1')
    assert store.state.purchases[0]['status'] == 'Anulado'
    assert not store.cancel_purchase('otra')

    store.flush(timeout=5)
    assert gateway.calls_for('update', 'purchases')[-1][2] == {'id': 'c1', 'status': 'Anulado'}


# ==============================================================================
# CRUD GENÉRICO
# ==============================================================================

def test_new_records_go_first_and_users_last(store):
    store.add_client({'id': 'a', 'name': 'Primero'})
    store.add_client({'id': 'b', 'name': 'Segundo'})
    assert [c['id'] for c in store.state.clients] == ['b', 'a']

    store.add_system_user({'id': 'u2', 'username': 'vendedor', 'password': '1111'})
    assert store.state.users[-1]['id'] == 'u2'


def test_delete_matches_numeric_and_text_ids(store):
    store.add_product({'id': 42, 'name': 'Piña'})
    assert store.state.products[0]['id'] == '42'
    assert store.delete_product('42')
    assert store.state.products == []

    store.add_supplier({'id': '7', 'name': 'Agro'})
    assert store.delete_supplier(7)
    assert not store.delete_supplier(7)


def test_update_replaces_by_id_and_keeps_unknown_fields(store):
    store.add_client({'id': 'c1', 'name': 'Rosita', 'created_at': '2025-01-01'})
    updated = store.update_client({'id': 'c1', 'name': 'Rosita SAC', 'created_at': '2025-01-01'})
    assert updated['name'] == 'Rosita SAC'
    assert store.state.clients == [updated]
    assert store.state.clients[0]['created_at'] == '2025-01-01'

    assert store.update_client({'id': 'zz', 'name': 'Nadie'}) is None


def test_remote_failures_are_not_rolled_back(store, gateway):
    gateway.fail = True
    store.add_product({'id': 'p1', 'name': 'Uva'})
    assert store.flush(timeout=5)
    assert store.dispatcher.failures == 1
    assert store.state.products[0]['id'] == 'p1'
    assert store.cache.load()['products'][0]['id'] == 'p1'


# ==============================================================================
# USUARIOS
# ==============================================================================

def test_master_user_cannot_be_deleted(store):
    with pytest.raises(ProtectedUserError):
        store.delete_system_user(MASTER_USER_ID)
    assert store.state.users[0]['id'] == MASTER_USER_ID


def test_updating_logged_user_refreshes_session(store):
    store.login('FO-ALEJANDRO', '123456')
    store.update_system_user({**store.state.user, 'name': 'Alejandro M.'})
    assert store.state.user['name'] == 'Alejandro M.'
    assert store.session_repo.load_user()['name'] == 'Alejandro M.'


def test_update_user_password(store):
    assert store.update_user_password(MASTER_USER_ID, 'nueva')
    assert store.login('FO-ALEJANDRO', '123456')['success'] is False
    assert store.login('FO-ALEJANDRO', 'nueva')['success'] is True
    assert not store.update_user_password('no-existe', 'x')


# ==============================================================================
# SESIÓN
# ==============================================================================

def test_login_success_saves_marker_and_refreshes(store, gateway):
    result = store.login('FO-ALEJANDRO', '123456')
    assert result['success'] is True
    assert result['user']['id'] == MASTER_USER_ID
    assert store.session_repo.load_user()['id'] == MASTER_USER_ID
    assert len(gateway.calls_for('list')) == 7
    assert store.is_cloud_connected


@pytest.mark.parametrize('username, password', [
    ('FO-ALEJANDRO', 'mala'),
    ('nadie', '123456'),
    ('fo-alejandro', '123456'),
])
def test_login_failure_is_generic(store, username, password):
    result = store.login(username, password)
    assert result == {'success': False, 'error': INVALID_CREDENTIALS}
    assert store.state.user is None


def test_inactive_user_cannot_login(store):
    store.add_system_user({'id': 'u2', 'username': 'ex', 'password': 'x1', 'active': False})
    assert store.login('ex', 'x1')['success'] is False


def test_logout_keeps_lists(store):
    store.login('FO-ALEJANDRO', '123456')
    store.add_product({'id': 'p1'})
    store.logout()
    assert store.state.user is None
    assert store.session_repo.load_user() is None
    assert not store.is_cloud_connected
    assert store.state.products[0]['id'] == 'p1'


def test_bootstrap_restores_session(make_store, gateway):
    first = make_store()
    first.session_repo.save_user(dict(INITIAL_USER))

    second = make_store()
    second.bootstrap()
    assert second.state.user['id'] == MASTER_USER_ID
    assert second.loading is False
    assert second.is_cloud_connected
    assert gateway.calls_for('list')


def test_bootstrap_without_session_does_not_refresh(store, gateway):
    store.bootstrap()
    assert store.state.user is None
    assert store.loading is False
    assert gateway.calls_for('list') == []


# ==============================================================================
# SINCRONIZACIÓN
# ==============================================================================

def test_refresh_replaces_lists_and_normalizes_ids(store, gateway):
    gateway.tables['products'] = [{'id': 7, 'name': 'Mango', 'stock': 3}]
    gateway.tables['sales'] = [{'id': 1, 'total': 12.5, 'items': []}]

    assert store.refresh_cloud_data() is True
    assert store.state.products == [{'id': '7', 'name': 'Mango', 'stock': 3}]
    assert store.state.sales[0]['total'] == 12.5
    # Sin usuarios remotos se conservan los locales
    assert store.state.users[0]['id'] == MASTER_USER_ID
    assert store.cache.load()['products'][0]['id'] == '7'


def test_refresh_updates_session_user_from_cloud(store, gateway):
    store.login('FO-ALEJANDRO', '123456')
    gateway.tables['users'] = [{**INITIAL_USER, 'name': 'Nombre en la nube'}]
    store.refresh_cloud_data()
    assert store.state.user['name'] == 'Nombre en la nube'
    assert store.session_repo.load_user()['name'] == 'Nombre en la nube'


def test_refresh_failure_falls_back_to_cache(store, gateway):
    store.cache.save({'products': [{'id': 'cache-1'}]})
    store.state.products = [{'id': 'memoria'}]
    gateway.fail = True

    assert store.refresh_cloud_data() is False
    assert not store.is_cloud_connected
    assert store.loading is False
    assert store.state.products == [{'id': 'cache-1'}]


def test_refresh_failure_without_cache_keeps_memory(store, gateway):
    store.state.products = [{'id': 'memoria'}]
    gateway.fail = True
    assert store.refresh_cloud_data() is False
    assert store.state.products == [{'id': 'memoria'}]


def test_check_tables(store, gateway):
    assert all(store.check_tables().values())
    gateway.fail = True
    assert not any(store.check_tables().values())


# ==============================================================================
# TAREAS
# ==============================================================================

def test_toggle_task_persists_completion(store):
    store.add_task({'id': 't1', 'date': '2025-01-10', 'frequency': 'constante'})
    updated = store.toggle_task('t1', '2025-02-10')
    assert updated['completedDates'] == ['2025-02-10']
    assert store.cache.load()['tasks'][0]['completedDates'] == ['2025-02-10']
    assert [t['id'] for t in store.tasks_for_date('2025-3-10')] == ['t1']
    assert store.toggle_task('no-existe', '2025-02-10') is None


# ==============================================================================
# PREFERENCIAS
# ==============================================================================

def test_preferences_validate_and_persist(make_store):
    store = make_store()
    assert store.set_theme('dark') == 'dark'
    assert store.set_currency('EUR') == 'PEN'
    assert store.set_currency('USD') == 'USD'
    assert store.set_exchange_rate('3.8') == 3.8
    store.set_identity_config({'dniUrl': 'https://api/dni', 'token': 'abc'})
    with pytest.raises(ValueError):
        store.set_exchange_rate(0)

    reopened = make_store()
    assert reopened.state.theme == 'dark'
    assert reopened.state.currency == 'USD'
    assert reopened.state.exchangeRate == 3.8
    assert reopened.state.identityConfig.dniUrl == 'https://api/dni'


def test_snapshot_includes_connection_flags(store):
    data = store.snapshot()
    assert data['isCloudConnected'] is False
    assert data['loading'] is True
    assert data['users'][0]['id'] == MASTER_USER_ID


# ==============================================================================
# STOCK FRACCIONARIO, VALIDACIONES DE USUARIO Y DE TAREAS
# ==============================================================================

def test_fractional_stock_survives_later_edits(store):
    store.add_product({'id': 'p1', 'name': 'Mango', 'stock': 10})
    store.add_sale(sale_of('p1', 2.5, 4))
    assert stock_of(store, 'p1') == 7.5

    product = next(p for p in store.state.products if p['id'] == 'p1')
    store.update_product({**product, 'name': 'Mango Kent'})
    assert stock_of(store, 'p1') == 7.5
    assert store.cache.load()['products'][0]['stock'] == 7.5


def test_repeated_fractional_sales_do_not_accumulate_float_noise(store):
    store.add_product({'id': 'p1', 'stock': 1})
    store.add_sale(sale_of('p1', 0.1, 1, sale_id='s1'))
    store.add_sale(sale_of('p1', 0.2, 1, sale_id='s2'))
    assert stock_of(store, 'p1') == 0.7


def test_username_taken(store):
    assert store.username_taken('FO-ALEJANDRO')
    assert not store.username_taken('FO-ALEJANDRO', exclude_id=MASTER_USER_ID)
    assert not store.username_taken('nuevo')


def test_update_user_hashes_password_when_enabled(store):
    store.auth_service.hash_passwords = True
    master = store.state.users[0]
    store.update_system_user({**master, 'password': 'clave9'})
    assert store.state.users[0]['password'] != 'clave9'
    assert store.auth_service.is_hashed(store.state.users[0]['password'])
    assert store.login('FO-ALEJANDRO', 'clave9')['success'] is True


@pytest.mark.parametrize('bad_date', ['', 'ayer', '2024-12-10', '2025-02-11'])
def test_toggle_task_rejects_dates_outside_the_recurrence(store, bad_date):
    store.add_task({'id': 't1', 'date': '2025-01-10', 'frequency': 'constante'})
    with pytest.raises(ValueError):
        store.toggle_task('t1', bad_date)
    assert store.state.tasks[0]['completedDates'] == []
