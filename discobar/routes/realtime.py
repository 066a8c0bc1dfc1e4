# ==============================================================================
# RUTAS EN TIEMPO REAL - Server-Sent Events
# ==============================================================================
# GET /api/realtime/stream?tables=orders,products  → cambios (usuarios logueados)
# GET /api/notifications/stream                    → avisos para admin
#
# Con ?limit=N el stream se cierra tras N mensajes (útil para clientes
# que reconectan y para pruebas).
# ==============================================================================

from flask import Blueprint, Response, current_app, request, stream_with_context

from discobar.routes.common import get_services
from discobar.security import login_required, role_required
from discobar.services.realtime_service import KEEP_ALIVE, format_sse, notifications_for
from discobar.validators import to_int

bp = Blueprint('realtime', __name__, url_prefix='/api')

SSE_HEADERS = {
    'Cache-Control': 'no-cache',
    'X-Accel-Buffering': 'no',
}


def stream_changes(subscription, keepalive, limit=None, transform=None):
    """
    Generador SSE sobre una suscripción.

    Args:
        subscription: Suscripción del ChangeFeed
        keepalive: Segundos de espera antes de enviar un keep-alive
        limit: Máximo de mensajes a enviar (None = sin límite)
        transform: Función cambio -> lista de (evento, datos); por defecto el cambio tal cual
    """
    sent = 0
    try:
        while limit is None or sent < limit:
            change = subscription.get(timeout=keepalive)
            if change is None:
                yield KEEP_ALIVE
                continue
            messages = transform(change) if transform else [('change', change)]
            for event, data in messages:
                yield format_sse(data, event=event)
                sent += 1
                if limit is not None and sent >= limit:
                    break
    finally:
        subscription.close()


def _sse_response(subscription, generator):
    response = Response(stream_with_context(generator), mimetype='text/event-stream', headers=SSE_HEADERS)
    # Si el cliente corta antes de empezar a leer, el generador no corre su finally
    response.call_on_close(subscription.close)
    return response


def _parse_limit():
    limit = to_int(request.args.get('limit'))
    return limit if limit and limit > 0 else None


@bp.route('/realtime/stream', methods=['GET'])
@login_required
def change_stream():
    tables = [t.strip() for t in (request.args.get('tables') or '').split(',') if t.strip()]
    subscription = get_services().feed.subscribe(tables or None)
    keepalive = current_app.config.get('REALTIME_KEEPALIVE_SECONDS', 15)
    return _sse_response(subscription, stream_changes(subscription, keepalive, _parse_limit()))


@bp.route('/notifications/stream', methods=['GET'])
@role_required('admin')
def notification_stream():
    services = get_services()
    subscription = services.feed.subscribe(['orders', 'products'])
    keepalive = current_app.config.get('REALTIME_KEEPALIVE_SECONDS', 15)
    settings_service = services.settings_service

    def to_notifications(change):
        threshold = settings_service.low_stock_threshold()
        return [('notification', n) for n in notifications_for(change, threshold)]

    return _sse_response(subscription, stream_changes(subscription, keepalive, _parse_limit(), to_notifications))
