# ==============================================================================
# RUTAS DE PEDIDOS - /api/orders
# ==============================================================================
# El trabajador del pedido es siempre el usuario en sesión; el total lo
# calcula el servicio con los precios vigentes.
# ==============================================================================

from flask import Blueprint, request, session

from discobar.routes.common import get_services, json_body, ok
from discobar.security import login_required, role_required, verify_csrf

bp = Blueprint('orders', __name__, url_prefix='/api/orders')


@bp.route('', methods=['GET'])
@role_required('admin')
def list_orders():
    return ok(orders=get_services().order_service.list_orders(request.args.get('status')))


@bp.route('/mine', methods=['GET'])
@login_required
def my_orders():
    return ok(orders=get_services().order_service.list_worker_orders(session['user_id']))


@bp.route('/<order_id>', methods=['GET'])
@login_required
def get_order(order_id):
    order = get_services().order_service.get_order(
        order_id, viewer_id=session['user_id'], viewer_role=session.get('role')
    )
    return ok(order=order)


@bp.route('', methods=['POST'])
@login_required
@verify_csrf
def create_order():
    data = json_body()
    order = get_services().order_service.create_order(
        data.get('table_id'),
        session['user_id'],
        data.get('client_name'),
        data.get('items'),
        confirm=data.get('confirm', True) is not False,
    )
    return ok(201, order=order)


@bp.route('/<order_id>/confirm', methods=['POST'])
@login_required
@verify_csrf
def confirm_order(order_id):
    orders = get_services().order_service
    orders.get_order(order_id, viewer_id=session['user_id'], viewer_role=session.get('role'))
    return ok(order=orders.confirm_order(order_id))


@bp.route('/<order_id>/cancel', methods=['POST'])
@login_required
@verify_csrf
def cancel_order(order_id):
    result = get_services().order_service.cancel_order(order_id, session['user_id'], session.get('role'))
    return ok(**result)


@bp.route('/<order_id>/bill', methods=['POST'])
@role_required('admin')
@verify_csrf
def bill_order(order_id):
    result = get_services().order_service.bill_order(
        order_id, json_body().get('payment_method'), session['user_id']
    )
    return ok(**result)
