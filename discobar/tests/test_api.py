# -*- coding: utf-8 -*-
"""
API HTTP: sesión, permisos por rol, CSRF, cabeceras y flujo completo
mesa → pedido → cobro → reporte.
"""
import pytest

from discobar.app_container import AppContainer
from discobar.main import create_app

from .conftest import ADMIN_EMAIL, ADMIN_PASSWORD, WORKER_EMAIL, login


def test_health(client):
    r = client.get('/api/health')
    assert r.status_code == 200
    assert r.get_json() == {'ok': True, 'status': 'up'}


def test_login_and_me(client):
    r = client.post('/api/auth/login', json={'email': ADMIN_EMAIL, 'password': ADMIN_PASSWORD})
    body = r.get_json()
    assert r.status_code == 200
    assert body['user']['role'] == 'admin'
    assert body['csrf_token']

    me = client.get('/api/auth/me').get_json()
    assert me['user']['email'] == ADMIN_EMAIL

    assert client.post('/api/auth/logout').status_code == 200
    assert client.get('/api/auth/me').status_code == 401


def test_bad_credentials(client):
    r = client.post('/api/auth/login', json={'email': ADMIN_EMAIL, 'password': 'mala'})
    assert r.status_code == 401
    assert r.get_json() == {'ok': False, 'error': 'Credenciales inválidas'}


@pytest.mark.parametrize('method, path', [
    ('get', '/api/tables'),
    ('get', '/api/orders/mine'),
    ('get', '/api/products/available'),
    ('get', '/api/dashboard'),
])
def test_anonymous_gets_401_json(client, method, path):
    r = getattr(client, method)(path)
    assert r.status_code == 401
    assert r.get_json()['ok'] is False


@pytest.mark.parametrize('method, path', [
    ('get', '/api/users'),
    ('get', '/api/products'),
    ('get', '/api/orders'),
    ('get', '/api/settings'),
    ('get', '/api/reports/sales'),
    ('post', '/api/tables'),
    ('post', '/api/categories'),
])
def test_worker_gets_403_on_admin_routes(worker_client, method, path):
    r = getattr(worker_client, method)(path, json={})
    assert r.status_code == 403
    assert r.get_json() == {'ok': False, 'error': 'Permiso denegado.'}


def test_unknown_api_route_is_json_404(admin_client):
    r = admin_client.get('/api/no-existe')
    assert r.status_code == 404
    assert r.get_json()['ok'] is False


def test_sensitive_folders_blocked(client):
    assert client.get('/data/users.json').status_code == 404
    assert client.get('/logs/performance.log').status_code == 404


def test_security_headers(client):
    r = client.get('/api/health')
    assert r.headers['X-Frame-Options'] == 'DENY'
    assert r.headers['X-Content-Type-Options'] == 'nosniff'
    assert 'Strict-Transport-Security' not in r.headers


def test_business_errors_map_to_status(admin_client, catalog):
    r = admin_client.post('/api/tables', json={'number': 1})
    assert r.status_code == 409
    assert r.get_json()['error'] == 'Ya existe la mesa #1'

    r = admin_client.post('/api/tables', json={'number': 'x'})
    assert r.status_code == 400

    r = admin_client.get('/api/orders/no-existe')
    assert r.status_code == 404


# ═══════════════════════════════════════════════════════════════════════════════
# FLUJO COMPLETO
# ═══════════════════════════════════════════════════════════════════════════════

def test_full_service_flow(admin_client, worker_client):
    # Admin arma el salón y el catálogo
    table = admin_client.post('/api/tables', json={'number': 5, 'name': 'Terraza', 'capacity': 4}).get_json()['table']
    category = admin_client.post('/api/categories', json={'name': 'Tragos'}).get_json()['category']
    r = admin_client.post('/api/products', json={
        'name': 'Mojito', 'price': 8, 'stock_quantity': 10, 'category_id': category['id'],
    })
    assert r.status_code == 201
    product = r.get_json()['product']
    assert product['category'] == 'Tragos'

    # El trabajador ve el producto y toma el pedido
    available = worker_client.get('/api/products/available').get_json()['products']
    assert [p['name'] for p in available] == ['Mojito']

    r = worker_client.post('/api/orders', json={
        'table_id': table['id'],
        'client_name': 'Marta',
        'items': [{'product_id': product['id'], 'quantity': 2}, {'product_id': product['id'], 'quantity': 1}],
    })
    assert r.status_code == 201, r.get_json()
    order = r.get_json()['order']
    assert order['status'] == 'confirmado'
    assert order['total_amount'] == 24.0
    assert len(order['details']) == 1

    assert worker_client.get(f"/api/tables/{table['id']}").get_json()['table']['status'] == 'ocupada'
    assert worker_client.get('/api/orders/mine').get_json()['orders'][0]['id'] == order['id']

    # Mesa ocupada: no admite otro pedido
    r = worker_client.post('/api/orders', json={
        'table_id': table['id'], 'client_name': 'Otro',
        'items': [{'product_id': product['id'], 'quantity': 1}],
    })
    assert r.status_code == 409

    # Pide la cuenta y el admin cobra
    r = worker_client.post(f"/api/tables/{table['id']}/request-bill")
    assert r.get_json()['table']['status'] == 'facturacion'

    r = admin_client.post(f"/api/orders/{order['id']}/bill", json={'payment_method': 'Tarjeta'})
    assert r.status_code == 200, r.get_json()
    body = r.get_json()
    assert body['order']['status'] == 'facturado'
    assert body['sale']['payment_method'] == 'tarjeta'
    assert body['sale']['amount'] == 24.0

    assert admin_client.get(f"/api/tables/{table['id']}").get_json()['table']['status'] == 'libre'
    assert admin_client.get(f"/api/products/{product['id']}").get_json()['product']['stock_quantity'] == 7

    report = admin_client.get('/api/reports/sales?period=today').get_json()
    assert report['total_revenue'] == 24.0
    assert report['by_method'] == {'tarjeta': 24.0}

    stats = admin_client.get('/api/dashboard').get_json()['stats']
    assert stats['today_orders'] == 1
    assert stats['today_revenue'] == 24.0
    assert [p['name'] for p in stats['low_stock']] == ['Mojito']


def test_worker_cannot_view_others_orders(app, admin_client, worker_client, catalog):
    r = admin_client.post('/api/orders', json={
        'table_id': catalog['mesa1']['id'], 'client_name': 'Ana',
        'items': [{'product_id': catalog['cerveza']['id'], 'quantity': 1}],
    })
    order_id = r.get_json()['order']['id']

    assert worker_client.get(f'/api/orders/{order_id}').status_code == 403
    assert worker_client.post(f'/api/orders/{order_id}/cancel').status_code == 403

    r = admin_client.post(f'/api/orders/{order_id}/cancel')
    assert r.status_code == 200
    assert r.get_json()['stock_restored'] is True


def test_csv_export_download(admin_client):
    r = admin_client.get('/api/reports/movements/export?period=month')
    assert r.status_code == 200
    assert r.mimetype == 'text/csv'
    assert 'movimientos.csv' in r.headers['Content-Disposition']
    assert r.get_data(as_text=True).startswith('Fecha,Producto')


def test_settings_update(admin_client):
    r = admin_client.put('/api/settings', json={'low_stock_threshold': 0})
    assert r.status_code == 400
    r = admin_client.put('/api/settings', json={'low_stock_threshold': 3})
    assert r.get_json()['settings']['low_stock_threshold'] == 3
    assert admin_client.get('/api/settings').get_json()['settings']['low_stock_threshold'] == 3


def test_user_management_routes(admin_client, worker):
    r = admin_client.post('/api/users', json={
        'email': 'nuevo@bar.com', 'password': 'clave123', 'full_name': 'Nuevo', 'role': 'trabajador',
    })
    assert r.status_code == 201
    user = r.get_json()['user']

    emails = [u['email'] for u in admin_client.get('/api/users').get_json()['users']]
    assert 'nuevo@bar.com' in emails and WORKER_EMAIL in emails

    r = admin_client.patch(f"/api/users/{user['id']}", json={'role': 'admin'})
    assert r.get_json()['user']['role'] == 'admin'
    assert admin_client.delete(f"/api/users/{user['id']}").status_code == 200


# ═══════════════════════════════════════════════════════════════════════════════
# SESIÓN SINCRONIZADA CON LOS USUARIOS GUARDADOS
# ═══════════════════════════════════════════════════════════════════════════════

def test_deleted_user_session_is_revoked(admin_client, worker_client, worker, catalog):
    assert admin_client.delete(f"/api/users/{worker['id']}").status_code == 200

    r = worker_client.post('/api/orders', json={
        'table_id': catalog['mesa1']['id'], 'client_name': 'Ana',
        'items': [{'product_id': catalog['cerveza']['id'], 'quantity': 1}],
    })
    assert r.status_code == 401
    # La sesión quedó limpia
    assert worker_client.get('/api/auth/me').status_code == 401


def test_demoted_admin_loses_admin_routes(app, admin_client, admin):
    other = app.test_client()
    admin_client.post('/api/users', json={
        'email': 'jefa@bar.com', 'password': 'clave123', 'full_name': 'Jefa', 'role': 'admin',
    })
    login(other, 'jefa@bar.com', 'clave123')

    r = other.patch(f"/api/users/{admin['id']}", json={'role': 'trabajador'})
    assert r.status_code == 200

    r = admin_client.get('/api/users')
    assert r.status_code == 403
    assert admin_client.get('/api/auth/me').get_json()['user']['role'] == 'trabajador'


def test_promoted_worker_gains_admin_routes(admin_client, worker_client, worker):
    assert worker_client.get('/api/users').status_code == 403
    admin_client.patch(f"/api/users/{worker['id']}", json={'role': 'admin'})
    assert worker_client.get('/api/users').status_code == 200


def test_user_without_role_is_logged_out(container, worker_client, worker):
    container.role_repo.remove_roles(worker['id'])
    assert worker_client.get('/api/tables').status_code == 401


# ═══════════════════════════════════════════════════════════════════════════════
# TIPOS INVÁLIDOS EN EL JSON
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize('password', [123456, ['admin123'], {'x': 1}, True])
def test_login_with_non_text_password(client, password):
    r = client.post('/api/auth/login', json={'email': ADMIN_EMAIL, 'password': password})
    assert r.status_code == 401
    assert r.get_json() == {'ok': False, 'error': 'Credenciales inválidas'}


def test_create_user_with_numeric_password(admin_client):
    r = admin_client.post('/api/users', json={
        'email': 'num@bar.com', 'password': 12345678, 'full_name': 'Num', 'role': 'trabajador',
    })
    assert r.status_code == 400
    assert r.get_json()['error'] == 'La contraseña debe ser texto'


def test_change_password_with_numeric_current(worker_client):
    r = worker_client.post('/api/auth/password', json={
        'current_password': 123, 'new_password': 'nueva123', 'confirm_password': 'nueva123',
    })
    assert r.status_code == 401


@pytest.mark.parametrize('price', ['inf', '-inf', 'nan', 'Infinity', '1e999'])
def test_product_price_must_be_finite(admin_client, price):
    r = admin_client.post('/api/products', json={'name': 'Raro', 'price': price})
    assert r.status_code == 400
    assert admin_client.get('/api/products').get_json()['products'] == []


def test_profile_avatar_url(worker_client):
    r = worker_client.patch('/api/auth/profile', json={'avatar_url': ' https://img.bar/yo.png '})
    assert r.get_json()['user']['avatar_url'] == 'https://img.bar/yo.png'
    r = worker_client.patch('/api/auth/profile', json={'avatar_url': ''})
    assert r.get_json()['user']['avatar_url'] is None


# ═══════════════════════════════════════════════════════════════════════════════
# CSRF
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.fixture
def csrf_app(tmp_path):
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret',
        'DATA_DIR': str(tmp_path / 'data'),
        'LOGS_DIR': str(tmp_path / 'logs'),
        'PROFILING_ENABLED': False,
        'PRODUCTION_MODE': False,
    })
    yield app
    AppContainer.reset_instance()


def test_csrf_required_on_writes(csrf_app):
    client = csrf_app.test_client()
    credentials = {'email': ADMIN_EMAIL, 'password': ADMIN_PASSWORD}

    r = client.post('/api/auth/login', json=credentials)
    assert r.status_code == 403
    assert r.get_json()['error'] == 'CSRF token inválido'

    token = client.get('/api/auth/csrf').get_json()['csrf_token']
    r = client.post('/api/auth/login', json=credentials, headers={'X-CSRF-Token': 'otro'})
    assert r.status_code == 403

    r = client.post('/api/auth/login', json=credentials, headers={'X-CSRF-Token': token})
    assert r.status_code == 200
    # El login rota el token
    new_token = r.get_json()['csrf_token']
    assert new_token != token

    assert client.post('/api/tables', json={'number': 9}).status_code == 403
    r = client.post('/api/tables', json={'number': 9, 'csrf_token': new_token})
    assert r.status_code == 201
    # Lecturas no requieren token
    assert client.get('/api/tables').status_code == 200


# ═══════════════════════════════════════════════════════════════════════════════
# PROFILING POR APP
# ═══════════════════════════════════════════════════════════════════════════════

def make_app(tmp_path, name, profiling):
    return create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret',
        'DATA_DIR': str(tmp_path / name / 'data'),
        'LOGS_DIR': str(tmp_path / name / 'logs'),
        'CSRF_ENABLED': False,
        'PROFILING_ENABLED': profiling,
        'PRODUCTION_MODE': False,
    })


def test_profiling_settings_are_per_app(tmp_path):
    profiled = make_app(tmp_path, 'a', True)
    quiet = make_app(tmp_path, 'b', False)
    try:
        # Crear la segunda app no pisa la configuración de la primera
        assert profiled.extensions['profiling'] == {'enabled': True, 'logs_dir': str(tmp_path / 'a' / 'logs')}
        assert quiet.extensions['profiling']['enabled'] is False

        assert profiled.test_client().get('/api/health').status_code == 200
        assert quiet.test_client().get('/api/health').status_code == 200

        log = tmp_path / 'a' / 'logs' / 'performance.log'
        assert 'GET /api/health' in log.read_text(encoding='utf-8')
        assert not (tmp_path / 'b' / 'logs' / 'performance.log').exists()
    finally:
        AppContainer.reset_instance()
