# -*- coding: utf-8 -*-
"""
Inventario: productos, movimientos de stock, stock bajo y categorías.
"""
import pytest

from discobar.errors import ConflictError, NotFoundError, ValidationError


def movements_for(container, product):
    return container.movement_repo.for_product(product['id'])


def test_create_product_records_initial_stock(container, admin):
    product = container.inventory_service.create_product(
        '  Vodka ', description='700ml', price='25.5', stock_quantity='12', user_id=admin['id']
    )
    assert product['name'] == 'Vodka'
    assert product['price'] == 25.5
    assert product['stock_quantity'] == 12
    assert product['category'] == 'General'
    assert product['category_id'] is None

    moves = movements_for(container, product)
    assert len(moves) == 1
    assert moves[0]['quantity_change'] == 12
    assert moves[0]['reason'] == 'Stock inicial'
    assert moves[0]['created_by'] == admin['id']


def test_create_product_without_stock_has_no_movement(container):
    product = container.inventory_service.create_product('Agua', price=2)
    assert movements_for(container, product) == []


@pytest.mark.parametrize('kwargs', [
    {'name': ''},
    {'name': 'X', 'price': -1},
    {'name': 'X', 'price': 'gratis'},
    {'name': 'X', 'price': 'inf'},
    {'name': 'X', 'price': float('nan')},
    {'name': 'X', 'stock_quantity': -5},
    {'name': 'X', 'stock_quantity': 2.5},
    {'name': 'X', 'category_id': 'no-existe'},
])
def test_create_product_validation(container, kwargs):
    with pytest.raises(ValidationError):
        container.inventory_service.create_product(**kwargs)


def test_update_stock_records_manual_adjustment(container, catalog, admin):
    inventory = container.inventory_service
    updated = inventory.update_product(catalog['cerveza']['id'], {'stock_quantity': 15, 'price': 6}, admin['id'])
    assert updated['stock_quantity'] == 15
    assert updated['price'] == 6.0

    last = movements_for(container, catalog['cerveza'])[-1]
    assert last['quantity_change'] == -5
    assert last['reason'] == 'Ajuste manual'

    # Sin cambio de stock no hay movimiento nuevo
    before = len(container.movement_repo.get_all())
    inventory.update_product(catalog['cerveza']['id'], {'name': 'Cerveza Rubia'})
    assert len(container.movement_repo.get_all()) == before


def test_update_category_resolves_name(container, catalog):
    product = container.inventory_service.update_product(
        catalog['ron']['id'], {'category_id': catalog['category']['id']}
    )
    assert product['category'] == 'Cervezas'
    product = container.inventory_service.update_product(catalog['ron']['id'], {'category_id': None})
    assert product['category'] == 'General'


def test_adjust_stock_entry_and_exit(container, catalog, admin):
    inventory = container.inventory_service
    assert inventory.adjust_stock(catalog['ron']['id'], 7, 'Compra', admin['id'])['stock_quantity'] == 10
    assert inventory.adjust_stock(catalog['ron']['id'], '-4', '', admin['id'])['stock_quantity'] == 6

    last = movements_for(container, catalog['ron'])[-1]
    assert last['quantity_change'] == -4
    assert last['reason'] == 'Salida manual'


def test_adjust_stock_never_negative(container, catalog):
    inventory = container.inventory_service
    with pytest.raises(ValidationError):
        inventory.adjust_stock(catalog['ron']['id'], -4)
    with pytest.raises(ValidationError):
        inventory.adjust_stock(catalog['ron']['id'], 0)
    assert container.product_repo.get_by_id(catalog['ron']['id'])['stock_quantity'] == 3


def test_delete_product(container, catalog, worker):
    inventory = container.inventory_service
    container.order_service.create_order(
        catalog['mesa1']['id'], worker['id'], 'Ana', [{'product_id': catalog['cerveza']['id'], 'quantity': 1}]
    )
    with pytest.raises(ConflictError):
        inventory.delete_product(catalog['cerveza']['id'])

    inventory.delete_product(catalog['ron']['id'])
    with pytest.raises(NotFoundError):
        inventory.get_product(catalog['ron']['id'])


def test_list_available_for_workers(container, catalog):
    inventory = container.inventory_service
    inventory.create_product('Agotado', price=1, stock_quantity=0)
    inactive = inventory.create_product('Oculto', price=1, stock_quantity=5)
    inventory.update_product(inactive['id'], {'is_active': False})
    inventory.create_product('Aguardiente', price=8, stock_quantity=5, category_id=catalog['category']['id'])

    names = [p['name'] for p in inventory.list_available()]
    # Por categoría (Cervezas < General) y luego por nombre
    assert names == ['Aguardiente', 'Cerveza', 'Ron']
    assert [p['name'] for p in inventory.list_available('cerv')] == ['Aguardiente', 'Cerveza']


def test_list_products_search_by_name_or_category(container, catalog):
    inventory = container.inventory_service
    assert [p['name'] for p in inventory.list_products()] == ['Cerveza', 'Ron']
    assert [p['name'] for p in inventory.list_products('general')] == ['Ron']
    assert [p['name'] for p in inventory.list_products('CERV')] == ['Cerveza']


def test_low_stock_uses_configured_threshold(container, catalog):
    inventory = container.inventory_service
    inventory.create_product('Ginebra', price=20, stock_quantity=8)

    assert [p['name'] for p in inventory.low_stock()] == ['Ron', 'Ginebra']

    container.settings_service.update_settings(5)
    assert [p['name'] for p in inventory.low_stock()] == ['Ron']
    assert [p['name'] for p in inventory.low_stock(threshold=25)] == ['Ron', 'Ginebra', 'Cerveza']


@pytest.mark.parametrize('value', [0, -3, 'diez', None, 2.5, True])
def test_settings_threshold_validation(container, value):
    with pytest.raises(ValidationError) as exc:
        container.settings_service.update_settings(value)
    assert exc.value.message == 'El umbral debe ser un número mayor a 0'


def test_settings_defaults_and_update(container):
    assert container.settings_service.get_settings()['low_stock_threshold'] == 10
    assert container.settings_service.update_settings('15')['low_stock_threshold'] == 15


# ═══════════════════════════════════════════════════════════════════════════════
# CATEGORÍAS
# ═══════════════════════════════════════════════════════════════════════════════

def test_category_names_are_unique(container, catalog):
    categories = container.category_service
    with pytest.raises(ConflictError):
        categories.create_category('cervezas')
    with pytest.raises(ValidationError):
        categories.create_category('  ')


def test_rename_category_updates_products(container, catalog):
    container.category_service.update_category(catalog['category']['id'], name='Birras')
    product = container.product_repo.get_by_id(catalog['cerveza']['id'])
    assert product['category'] == 'Birras'


def test_delete_category_moves_products_to_general(container, catalog):
    container.category_service.delete_category(catalog['category']['id'])
    product = container.product_repo.get_by_id(catalog['cerveza']['id'])
    assert product['category_id'] is None
    assert product['category'] == 'General'
    assert container.category_service.list_categories() == []
