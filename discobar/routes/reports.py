# ==============================================================================
# RUTAS DE REPORTES - /api/reports, /api/dashboard (solo admin)
# ==============================================================================
# Parámetros de consulta comunes: period (today|week|month|custom),
# start, end (YYYY-MM-DD) y q (búsqueda).
# ==============================================================================

from flask import Blueprint, Response, request

from discobar.routes.common import get_services, ok
from discobar.security import role_required

bp = Blueprint('reports', __name__, url_prefix='/api')


def _report_args(default_period):
    return dict(
        period=request.args.get('period', default_period),
        start=request.args.get('start'),
        end=request.args.get('end'),
        search=request.args.get('q'),
    )


def _csv_response(content, filename):
    return Response(
        content,
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment;filename={filename}'}
    )


@bp.route('/reports/sales', methods=['GET'])
@role_required('admin')
def sales_report():
    return ok(**get_services().report_service.sales_report(**_report_args('today')))


@bp.route('/reports/sales/export', methods=['GET'])
@role_required('admin')
def sales_export():
    csv_text = get_services().report_service.export_sales_csv(**_report_args('today'))
    return _csv_response(csv_text, 'ventas.csv')


@bp.route('/reports/movements', methods=['GET'])
@role_required('admin')
def movements_report():
    return ok(**get_services().report_service.movements_report(**_report_args('week')))


@bp.route('/reports/movements/export', methods=['GET'])
@role_required('admin')
def movements_export():
    csv_text = get_services().report_service.export_movements_csv(**_report_args('week'))
    return _csv_response(csv_text, 'movimientos.csv')


@bp.route('/dashboard', methods=['GET'])
@role_required('admin')
def dashboard():
    services = get_services()
    stats = services.report_service.dashboard()
    stats['low_stock'] = services.inventory_service.low_stock()
    return ok(stats=stats)
