# ==============================================================================
# RUTAS DE MESAS - /api/tables
# ==============================================================================

from flask import Blueprint, request

from discobar.routes.common import get_services, json_body, ok
from discobar.security import login_required, role_required, verify_csrf

bp = Blueprint('tables', __name__, url_prefix='/api/tables')


@bp.route('', methods=['GET'])
@login_required
def list_tables():
    return ok(tables=get_services().table_service.list_tables(request.args.get('q')))


@bp.route('/<table_id>', methods=['GET'])
@login_required
def get_table(table_id):
    return ok(table=get_services().table_service.get_table(table_id))


@bp.route('', methods=['POST'])
@role_required('admin')
@verify_csrf
def create_table():
    data = json_body()
    table = get_services().table_service.create_table(
        data.get('number'), data.get('name', ''), data.get('capacity')
    )
    return ok(201, table=table)


@bp.route('/<table_id>', methods=['PATCH'])
@role_required('admin')
@verify_csrf
def update_table(table_id):
    data = json_body()
    table = get_services().table_service.update_table(
        table_id,
        number=data.get('number'),
        name=data.get('name'),
        capacity=data.get('capacity'),
    )
    return ok(table=table)


@bp.route('/<table_id>', methods=['DELETE'])
@role_required('admin')
@verify_csrf
def delete_table(table_id):
    return ok(table=get_services().table_service.delete_table(table_id))


@bp.route('/<table_id>/request-bill', methods=['POST'])
@login_required
@verify_csrf
def request_bill(table_id):
    return ok(table=get_services().table_service.request_bill(table_id))
