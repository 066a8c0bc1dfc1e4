# ==============================================================================
# RUTAS DE USUARIOS - /api/users (solo admin)
# ==============================================================================

from flask import Blueprint, session

from discobar.routes.common import get_services, json_body, ok
from discobar.security import role_required, verify_csrf

bp = Blueprint('users', __name__, url_prefix='/api/users')


@bp.route('', methods=['GET'])
@role_required('admin')
def list_users():
    return ok(users=get_services().user_service.list_users())


@bp.route('', methods=['POST'])
@role_required('admin')
@verify_csrf
def create_user():
    data = json_body()
    user = get_services().user_service.create_user(
        data.get('email'), data.get('password'), data.get('full_name'), data.get('role')
    )
    return ok(201, user=user)


@bp.route('/<user_id>', methods=['PATCH'])
@role_required('admin')
@verify_csrf
def update_user(user_id):
    data = json_body()
    user = get_services().user_service.update_user(
        user_id,
        email=data.get('email'),
        password=data.get('password'),
        full_name=data.get('full_name'),
        role=data.get('role'),
    )
    return ok(user=user)


@bp.route('/<user_id>', methods=['DELETE'])
@role_required('admin')
@verify_csrf
def delete_user(user_id):
    user = get_services().user_service.delete_user(user_id, acting_user_id=session['user_id'])
    return ok(user=user)
