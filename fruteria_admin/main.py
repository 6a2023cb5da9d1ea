# ==============================================================================
# API HTTP - Capa delgada sobre el AppStore
# ==============================================================================
# Las rutas solo orquestan request -> store -> response JSON.
# Toda la lógica vive en services/.
#
# USO:
#   gunicorn wsgi:app --bind 0.0.0.0:$PORT
#   python -m fruteria_admin.main
# ==============================================================================

import atexit
import logging
from functools import wraps

from flask import Flask, jsonify, request, session

from fruteria_admin.app_container import AppContainer
from fruteria_admin.config import DEV_SECRET_KEY, Settings
from fruteria_admin.models import ENTITY_TABLES
from fruteria_admin.services import ProtectedUserError, task_service

logger = logging.getLogger(__name__)

# Métodos del store por tabla: (agregar, actualizar, eliminar)
ENTITY_ACTIONS = {
    'products': ('add_product', 'update_product', 'delete_product'),
    'clients': ('add_client', 'update_client', 'delete_client'),
    'suppliers': ('add_supplier', 'update_supplier', 'delete_supplier'),
    'sales': ('add_sale', 'update_sale', 'delete_sale'),
    'purchases': ('add_purchase', 'update_purchase', 'delete_purchase'),
    'users': ('add_system_user', 'update_system_user', 'delete_system_user'),
    'tasks': ('add_task', 'update_task', 'delete_task'),
}


def public_record(record: dict) -> dict:
    """Copia del registro sin la contraseña (lo que sale por HTTP)."""
    return {k: v for k, v in record.items() if k != 'password'}


def configure_logging(level: str = 'INFO') -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )


def create_app(container: AppContainer = None, bootstrap: bool = True) -> Flask:
    """
    Crea la aplicación Flask.

    Args:
        container: Contenedor de dependencias (por defecto, desde el entorno)
        bootstrap: Si True, restaura caché/sesión y refresca al arrancar
    """
    container = container or AppContainer(Settings.from_env())
    store = container.store

    app = Flask(__name__)
    app.secret_key = container.settings.secret_key
    app.config['CONTAINER'] = container
    if container.settings.secret_key == DEV_SECRET_KEY and not container.settings.debug:
        logger.warning("[SEGURIDAD] FRUTERIA_SECRET_KEY no definida, se usa la clave de desarrollo")
    app.json.ensure_ascii = False

    if bootstrap:
        store.bootstrap()
    atexit.register(container.shutdown)

    # =========================================================================
    # DECORADORES
    # =========================================================================

    def login_required(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            if 'user_id' not in session:
                return jsonify({'error': 'Debes iniciar sesión.'}), 401
            return f(*args, **kwargs)
        return wrapper

    def known_table(f):
        @wraps(f)
        def wrapper(table, *args, **kwargs):
            if table not in ENTITY_ACTIONS:
                return jsonify({'error': f"Tabla desconocida: '{table}'"}), 404
            return f(table, *args, **kwargs)
        return wrapper

    @app.errorhandler(ProtectedUserError)
    def handle_protected(e):
        return jsonify({'error': str(e)}), 403

    @app.errorhandler(ValueError)
    def handle_value_error(e):
        return jsonify({'error': str(e)}), 400

    def json_body() -> dict:
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}

    # =========================================================================
    # SESIÓN
    # =========================================================================

    @app.route('/api/login', methods=['POST'])
    def login():
        data = json_body()
        result = store.login(data.get('username', ''), data.get('password', ''))
        if not result['success']:
            return jsonify(result), 401
        session['user_id'] = result['user']['id']
        return jsonify({'success': True, 'user': public_record(result['user'])})

    @app.route('/api/logout', methods=['POST'])
    def logout():
        session.clear()
        store.logout()
        return jsonify({'success': True})

    # =========================================================================
    # ESTADO Y SINCRONIZACIÓN
    # =========================================================================

    @app.route('/api/state')
    @login_required
    def state():
        data = store.snapshot()
        data['users'] = [public_record(u) for u in data['users']]
        if data['user']:
            data['user'] = public_record(data['user'])
        return jsonify(data)

    @app.route('/api/refresh', methods=['POST'])
    @login_required
    def refresh():
        connected = store.refresh_cloud_data()
        return jsonify({'isCloudConnected': connected})

    @app.route('/api/health')
    def health():
        return jsonify({
            'isCloudConnected': store.is_cloud_connected,
            'tables': store.check_tables(),
        })

    # =========================================================================
    # ENTIDADES (CRUD genérico)
    # =========================================================================

    @app.route('/api/<table>')
    @login_required
    @known_table
    def list_records(table):
        records = getattr(store.state, table)
        if table == 'users':
            records = [public_record(u) for u in records]
        return jsonify(records)

    @app.route('/api/<table>', methods=['POST'])
    @login_required
    @known_table
    def create_record(table):
        data = json_body()
        if table == 'users' and store.username_taken(data.get('username', '')):
            return jsonify({'error': 'El nombre de usuario ya existe.'}), 400
        add = getattr(store, ENTITY_ACTIONS[table][0])
        created = add(data)
        return jsonify(public_record(created) if table == 'users' else created), 201

    @app.route('/api/<table>/<record_id>', methods=['PUT'])
    @login_required
    @known_table
    def update_record(table, record_id):
        data = {**json_body(), 'id': record_id}
        if table == 'users' and 'username' in data and store.username_taken(data['username'], exclude_id=record_id):
            return jsonify({'error': 'El nombre de usuario ya existe.'}), 400
        update = getattr(store, ENTITY_ACTIONS[table][1])
        updated = update(data)
        if updated is None:
            return jsonify({'error': 'Registro no encontrado'}), 404
        return jsonify(public_record(updated) if table == 'users' else updated)

    @app.route('/api/<table>/<record_id>', methods=['DELETE'])
    @login_required
    @known_table
    def delete_record(table, record_id):
        delete = getattr(store, ENTITY_ACTIONS[table][2])
        if not delete(record_id):
            return jsonify({'error': 'Registro no encontrado'}), 404
        return jsonify({'success': True})

    @app.route('/api/sales/<sale_id>/cancel', methods=['POST'])
    @login_required
    def cancel_sale(sale_id):
        if not store.cancel_sale(sale_id):
            return jsonify({'error': 'Venta no encontrada'}), 404
        return jsonify({'success': True})

    @app.route('/api/purchases/<purchase_id>/cancel', methods=['POST'])
    @login_required
    def cancel_purchase(purchase_id):
        if not store.cancel_purchase(purchase_id):
            return jsonify({'error': 'Compra no encontrada'}), 404
        return jsonify({'success': True})

    @app.route('/api/users/<user_id>/password', methods=['POST'])
    @login_required
    def change_password(user_id):
        password = json_body().get('password', '')
        if not password:
            return jsonify({'error': 'La contraseña no puede estar vacía'}), 400
        if not store.update_user_password(user_id, password):
            return jsonify({'error': 'Usuario no encontrado'}), 404
        return jsonify({'success': True})

    # =========================================================================
    # CALENDARIO DE TAREAS
    # =========================================================================

    @app.route('/api/tasks/day/<date_str>')
    @login_required
    def tasks_for_day(date_str):
        date_str = task_service.normalize_date(date_str)
        return jsonify([
            {'task': task, 'date': date_str, 'completed': task_service.is_completed_on(task, date_str)}
            for task in store.tasks_for_date(date_str)
        ])

    @app.route('/api/tasks/month/<int:year>/<int:month>')
    @login_required
    def tasks_for_month(year, month):
        if not 1 <= month <= 12:
            return jsonify({'error': 'Mes inválido'}), 400
        tasks = store.state.tasks
        return jsonify({
            'days': [
                {'date': day, 'tasks': day_tasks}
                for day, day_tasks in task_service.calendar_month(tasks, year, month)
            ],
            'pending': [
                {'task': task, 'date': day}
                for task, day in task_service.pending_for_month(tasks, year, month)
            ],
        })

    @app.route('/api/tasks/<task_id>/toggle', methods=['POST'])
    @login_required
    def toggle_task(task_id):
        updated = store.toggle_task(task_id, json_body().get('date', ''))
        if updated is None:
            return jsonify({'error': 'Tarea no encontrada'}), 404
        return jsonify(updated)

    # =========================================================================
    # PREFERENCIAS Y PANEL
    # =========================================================================

    @app.route('/api/preferences', methods=['GET', 'PUT'])
    @login_required
    def preferences():
        if request.method == 'PUT':
            data = json_body()
            if 'theme' in data:
                store.set_theme(data['theme'])
            if 'currency' in data:
                store.set_currency(data['currency'])
            if 'exchangeRate' in data:
                store.set_exchange_rate(data['exchangeRate'])
            if 'identityConfig' in data:
                store.set_identity_config(data['identityConfig'])
        s = store.state
        return jsonify({
            'theme': s.theme,
            'currency': s.currency,
            'exchangeRate': s.exchangeRate,
            'identityConfig': s.identityConfig.to_dict(),
        })

    @app.route('/api/stats')
    @login_required
    def stats():
        service = container.stats_service
        year = request.args.get('year', type=int)
        summary = service.summary()
        return jsonify({
            'summary': summary,
            'formatted': {k: service.format_money(summary[k])
                          for k in ('totalSales', 'pendingSales', 'canceledSales', 'tax')},
            'monthly': service.monthly_sales(year),
            'topProducts': service.top_products(),
            'topClients': service.top_clients(),
        })

    logger.info(f"[APP] Tablas disponibles: {', '.join(ENTITY_TABLES)}")
    return app


if __name__ == '__main__':
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    application = create_app(AppContainer(settings))
    logger.info(f"Servidor iniciado en http://{settings.host}:{settings.port}")
    application.run(debug=settings.debug, host=settings.host, port=settings.port)
