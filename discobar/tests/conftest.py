# -*- coding: utf-8 -*-
"""
Fixtures compartidas: app con directorio de datos temporal, clientes
logueados y un catálogo mínimo (mesas + productos).
"""
import os
import sys

import pytest

# Asegurar que el proyecto esté en el path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from discobar.app_container import AppContainer
from discobar.main import create_app

ADMIN_EMAIL = 'admin@discobar.local'
ADMIN_PASSWORD = 'admin123'
WORKER_EMAIL = 'trabajador@discobar.local'
WORKER_PASSWORD = 'trabajador123'


@pytest.fixture
def app(tmp_path):
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret',
        'DATA_DIR': str(tmp_path / 'data'),
        'LOGS_DIR': str(tmp_path / 'logs'),
        'CSRF_ENABLED': False,
        'PROFILING_ENABLED': False,
        'PRODUCTION_MODE': False,
        'REALTIME_KEEPALIVE_SECONDS': 0.05,
    })
    # Las llamadas directas a servicios usan la configuración de esta app
    with app.app_context():
        yield app
    AppContainer.reset_instance()


@pytest.fixture
def container(app):
    return app.extensions['discobar']


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


def login(client, email, password):
    r = client.post('/api/auth/login', json={'email': email, 'password': password})
    assert r.status_code == 200, r.get_json()
    return r.get_json()


@pytest.fixture
def admin_client(app):
    c = app.test_client()
    login(c, ADMIN_EMAIL, ADMIN_PASSWORD)
    return c


@pytest.fixture
def worker_client(app):
    c = app.test_client()
    login(c, WORKER_EMAIL, WORKER_PASSWORD)
    return c


@pytest.fixture
def admin(container):
    return container.user_repo.get_by_email(ADMIN_EMAIL)


@pytest.fixture
def worker(container):
    return container.user_repo.get_by_email(WORKER_EMAIL)


@pytest.fixture
def catalog(container, admin):
    """Dos mesas, una categoría y dos productos con stock."""
    tables = container.table_service
    inventory = container.inventory_service
    bebidas = container.category_service.create_category('Cervezas')

    return {
        'mesa1': tables.create_table(1, 'Barra', 4),
        'mesa2': tables.create_table(2, 'VIP', 6),
        'category': bebidas,
        'cerveza': inventory.create_product(
            'Cerveza', price=5.0, stock_quantity=20, category_id=bebidas['id'], user_id=admin['id']
        ),
        'ron': inventory.create_product('Ron', price=30.0, stock_quantity=3, user_id=admin['id']),
    }
