# ==============================================================================
# RUTAS DE CONFIGURACIÓN - /api/settings
# ==============================================================================

from flask import Blueprint

from discobar.routes.common import get_services, json_body, ok
from discobar.security import role_required, verify_csrf

bp = Blueprint('settings', __name__, url_prefix='/api/settings')


@bp.route('', methods=['GET'])
@role_required('admin')
def get_settings():
    return ok(settings=get_services().settings_service.get_settings())


@bp.route('', methods=['PUT'])
@role_required('admin')
@verify_csrf
def update_settings():
    settings = get_services().settings_service.update_settings(json_body().get('low_stock_threshold'))
    return ok(settings=settings)
