# -*- coding: utf-8 -*-
"""
Ciclo de vida del pedido: creación, stock, cancelación y cobro.
"""
import threading

import pytest

from discobar.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)


def stock_of(container, product):
    return container.product_repo.get_by_id(product['id'])['stock_quantity']


def table_status(container, table):
    return container.table_repo.get_by_id(table['id'])['status']


def test_create_order_computes_total_and_deducts_stock(container, catalog, worker):
    orders = container.order_service
    order = orders.create_order(
        catalog['mesa1']['id'], worker['id'], '  Ana  ',
        [{'product_id': catalog['cerveza']['id'], 'quantity': 3},
         {'product_id': catalog['ron']['id'], 'quantity': 1, 'unit_price': 0.01}],
    )

    assert order['status'] == 'confirmado'
    assert order['client_name'] == 'Ana'
    assert order['total_amount'] == 45.0
    assert {d['subtotal'] for d in order['details']} == {15.0, 30.0}

    assert stock_of(container, catalog['cerveza']) == 17
    assert stock_of(container, catalog['ron']) == 2
    assert table_status(container, catalog['mesa1']) == 'ocupada'

    reasons = [m['reason'] for m in container.movement_repo.for_product(catalog['cerveza']['id'])]
    assert 'Pedido confirmado — Mesa #1' in reasons
    exit_move = [m for m in container.movement_repo.for_product(catalog['cerveza']['id'])
                 if m['quantity_change'] < 0][0]
    assert exit_move['quantity_change'] == -3
    assert exit_move['created_by'] == worker['id']


def test_duplicate_lines_are_merged(container, catalog, worker):
    order = container.order_service.create_order(
        catalog['mesa1']['id'], worker['id'], 'Luis',
        [{'product_id': catalog['cerveza']['id'], 'quantity': 1},
         {'product_id': catalog['cerveza']['id'], 'quantity': 2}],
    )
    assert len(order['details']) == 1
    assert order['details'][0]['quantity'] == 3
    assert order['total_amount'] == 15.0


def test_insufficient_stock_writes_nothing(container, catalog, worker):
    with pytest.raises(ValidationError) as exc:
        container.order_service.create_order(
            catalog['mesa1']['id'], worker['id'], 'Ana',
            [{'product_id': catalog['cerveza']['id'], 'quantity': 1},
             {'product_id': catalog['ron']['id'], 'quantity': 4}],
        )
    assert 'Stock insuficiente' in exc.value.message
    assert container.order_repo.list_all() == []
    assert container.detail_repo.get_all() == []
    assert stock_of(container, catalog['cerveza']) == 20
    assert table_status(container, catalog['mesa1']) == 'libre'


@pytest.mark.parametrize('client_name, items, message', [
    ('   ', [{'product_id': 'x', 'quantity': 1}], 'Ingresa nombre del cliente'),
    ('Ana', [], 'Agrega productos al pedido'),
    ('Ana', None, 'Agrega productos al pedido'),
])
def test_create_order_validation(container, catalog, worker, client_name, items, message):
    with pytest.raises(ValidationError) as exc:
        container.order_service.create_order(catalog['mesa1']['id'], worker['id'], client_name, items)
    assert exc.value.message == message


def test_zero_quantity_rejected(container, catalog, worker):
    with pytest.raises(ValidationError):
        container.order_service.create_order(
            catalog['mesa1']['id'], worker['id'], 'Ana',
            [{'product_id': catalog['cerveza']['id'], 'quantity': 0}],
        )


def test_unknown_product_and_table(container, catalog, worker):
    with pytest.raises(NotFoundError):
        container.order_service.create_order(
            catalog['mesa1']['id'], worker['id'], 'Ana', [{'product_id': 'nope', 'quantity': 1}]
        )
    with pytest.raises(NotFoundError):
        container.order_service.create_order(
            'nope', worker['id'], 'Ana', [{'product_id': catalog['cerveza']['id'], 'quantity': 1}]
        )


def test_inactive_product_rejected(container, catalog, worker):
    container.inventory_service.update_product(catalog['ron']['id'], {'is_active': False})
    with pytest.raises(ValidationError):
        container.order_service.create_order(
            catalog['mesa1']['id'], worker['id'], 'Ana', [{'product_id': catalog['ron']['id'], 'quantity': 1}]
        )


def test_occupied_table_rejects_new_order(container, catalog, worker):
    items = [{'product_id': catalog['cerveza']['id'], 'quantity': 1}]
    container.order_service.create_order(catalog['mesa1']['id'], worker['id'], 'Ana', items)
    with pytest.raises(ConflictError):
        container.order_service.create_order(catalog['mesa1']['id'], worker['id'], 'Luis', items)

    container.table_service.request_bill(catalog['mesa1']['id'])
    with pytest.raises(ConflictError):
        container.order_service.create_order(catalog['mesa1']['id'], worker['id'], 'Luis', items)


def test_pending_order_then_confirm(container, catalog, worker):
    orders = container.order_service
    order = orders.create_order(
        catalog['mesa1']['id'], worker['id'], 'Ana',
        [{'product_id': catalog['ron']['id'], 'quantity': 2}], confirm=False,
    )
    assert order['status'] == 'pendiente'
    assert stock_of(container, catalog['ron']) == 3
    assert table_status(container, catalog['mesa1']) == 'ocupada'

    confirmed = orders.confirm_order(order['id'])
    assert confirmed['status'] == 'confirmado'
    assert stock_of(container, catalog['ron']) == 1

    with pytest.raises(InvalidTransitionError):
        orders.confirm_order(order['id'])


def test_confirm_revalidates_stock(container, catalog, worker, admin):
    order = container.order_service.create_order(
        catalog['mesa1']['id'], worker['id'], 'Ana',
        [{'product_id': catalog['ron']['id'], 'quantity': 3}], confirm=False,
    )
    container.inventory_service.adjust_stock(catalog['ron']['id'], -2, 'Rotura', admin['id'])
    with pytest.raises(ValidationError):
        container.order_service.confirm_order(order['id'])
    assert container.order_repo.get_by_id(order['id'])['status'] == 'pendiente'


def test_cancel_confirmed_restores_stock_and_frees_table(container, catalog, worker):
    orders = container.order_service
    order = orders.create_order(
        catalog['mesa1']['id'], worker['id'], 'Ana',
        [{'product_id': catalog['cerveza']['id'], 'quantity': 4}],
    )
    result = orders.cancel_order(order['id'], worker['id'], 'trabajador')

    assert result['stock_restored'] is True
    assert result['order']['status'] == 'cancelado'
    assert stock_of(container, catalog['cerveza']) == 20
    assert table_status(container, catalog['mesa1']) == 'libre'
    reasons = [m['reason'] for m in container.movement_repo.for_product(catalog['cerveza']['id'])]
    assert 'Pedido cancelado — Mesa #1' in reasons


def test_cancel_pending_has_no_stock_effect(container, catalog, worker):
    orders = container.order_service
    order = orders.create_order(
        catalog['mesa1']['id'], worker['id'], 'Ana',
        [{'product_id': catalog['cerveza']['id'], 'quantity': 4}], confirm=False,
    )
    movements_before = len(container.movement_repo.get_all())
    result = orders.cancel_order(order['id'], worker['id'], 'trabajador')

    assert result['stock_restored'] is False
    assert stock_of(container, catalog['cerveza']) == 20
    assert len(container.movement_repo.get_all()) == movements_before


def test_worker_cannot_cancel_foreign_order(container, catalog, worker, admin):
    order = container.order_service.create_order(
        catalog['mesa1']['id'], admin['id'], 'Ana',
        [{'product_id': catalog['cerveza']['id'], 'quantity': 1}],
    )
    with pytest.raises(PermissionDeniedError):
        container.order_service.cancel_order(order['id'], worker['id'], 'trabajador')

    # El admin puede cancelar cualquier pedido
    result = container.order_service.cancel_order(order['id'], admin['id'], 'admin')
    assert result['order']['status'] == 'cancelado'


def test_bill_order_creates_sale_and_frees_table(container, catalog, worker, admin):
    orders = container.order_service
    order = orders.create_order(
        catalog['mesa1']['id'], worker['id'], 'Ana',
        [{'product_id': catalog['cerveza']['id'], 'quantity': 2}],
    )
    container.table_service.request_bill(catalog['mesa1']['id'])
    assert table_status(container, catalog['mesa1']) == 'facturacion'

    result = orders.bill_order(order['id'], 'Tarjeta', admin['id'])
    assert result['order']['status'] == 'facturado'
    assert result['sale']['amount'] == 10.0
    assert result['sale']['payment_method'] == 'tarjeta'
    assert result['sale']['processed_by'] == admin['id']
    assert table_status(container, catalog['mesa1']) == 'libre'

    # facturado es terminal
    with pytest.raises(InvalidTransitionError):
        orders.bill_order(order['id'], 'efectivo', admin['id'])
    with pytest.raises(InvalidTransitionError):
        orders.cancel_order(order['id'], admin['id'], 'admin')
    assert len(container.sale_repo.get_all()) == 1


def test_bill_requires_confirmed_and_valid_method(container, catalog, worker, admin):
    orders = container.order_service
    order = orders.create_order(
        catalog['mesa1']['id'], worker['id'], 'Ana',
        [{'product_id': catalog['cerveza']['id'], 'quantity': 1}], confirm=False,
    )
    with pytest.raises(InvalidTransitionError):
        orders.bill_order(order['id'], 'efectivo', admin['id'])

    orders.confirm_order(order['id'])
    with pytest.raises(ValidationError):
        orders.bill_order(order['id'], 'bitcoin', admin['id'])
    assert container.sale_repo.get_all() == []


def test_order_listings_join_names(container, catalog, worker, admin):
    orders = container.order_service
    first = orders.create_order(
        catalog['mesa1']['id'], worker['id'], 'Ana', [{'product_id': catalog['cerveza']['id'], 'quantity': 1}]
    )
    orders.create_order(
        catalog['mesa2']['id'], admin['id'], 'Luis', [{'product_id': catalog['ron']['id'], 'quantity': 1}]
    )

    listed = orders.list_orders()
    assert len(listed) == 2
    row = next(o for o in listed if o['id'] == first['id'])
    assert row['table_number'] == 1
    assert row['worker_name'] == worker['full_name']

    mine = orders.list_worker_orders(worker['id'])
    assert [o['id'] for o in mine] == [first['id']]

    detail = orders.get_order(first['id'], viewer_id=worker['id'], viewer_role='trabajador')
    assert detail['details'][0]['product_name'] == 'Cerveza'
    assert detail['sale'] is None

    other = listed[0] if listed[0]['id'] != first['id'] else listed[1]
    with pytest.raises(PermissionDeniedError):
        orders.get_order(other['id'], viewer_id=worker['id'], viewer_role='trabajador')


def test_concurrent_orders_never_oversell(container, worker):
    inventory = container.inventory_service
    product = inventory.create_product('Tequila', price=10, stock_quantity=3)
    tables = [container.table_service.create_table(n) for n in range(10, 16)]

    results = []

    def place(table):
        try:
            container.order_service.create_order(
                table['id'], worker['id'], 'Cliente', [{'product_id': product['id'], 'quantity': 1}]
            )
            results.append('ok')
        except ValidationError:
            results.append('sin stock')

    threads = [threading.Thread(target=place, args=(t,)) for t in tables]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count('ok') == 3
    assert results.count('sin stock') == 3
    assert container.product_repo.get_by_id(product['id'])['stock_quantity'] == 0
