# ==============================================================================
# APLICACIÓN FLASK - DiscoBar
# ==============================================================================
# Punto de armado de la app: configuración, contenedor de servicios,
# profiling, blueprints de la API y manejo de errores.
#
# Uso local:
#   python -m discobar.main
# ==============================================================================

import logging

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from discobar import config
from discobar.app_container import AppContainer, get_container
from discobar.errors import DiscoBarError
from discobar.performance_logger import init_profiling
from discobar.routes import register_blueprints
from discobar.security import set_security_headers


def _configure_logging(app):
    """Logger 'discobar' para eventos de negocio (pedidos, usuarios...)."""
    logger = logging.getLogger('discobar')
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('[%(asctime)s] %(levelname)s %(name)s: %(message)s'))
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if app.debug else logging.INFO)


def _register_error_handlers(app):

    @app.errorhandler(DiscoBarError)
    def handle_business_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        if request.path.startswith('/api/'):
            return jsonify({'ok': False, 'error': error.description}), error.code
        return error

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        app.logger.exception('Error no controlado en %s %s', request.method, request.path)
        return jsonify({'ok': False, 'error': 'Error interno'}), 500


def create_app(test_config=None):
    """
    Crea y configura la aplicación.

    Args:
        test_config: Valores que sobreescriben la configuración
                     (DATA_DIR, CSRF_ENABLED, PROFILING_ENABLED...)

    Returns:
        App de Flask lista para servir
    """
    app = Flask(__name__)

    # ═══════════════════════════════════════════════════════════════════════
    # CONFIGURACIÓN DE SESIONES
    # ═══════════════════════════════════════════════════════════════════════
    app.config.from_mapping(
        SECRET_KEY=config.SECRET_KEY,
        SESSION_COOKIE_HTTPONLY=True,      # Protege contra XSS
        SESSION_COOKIE_SECURE=False,       # False para HTTP local
        SESSION_COOKIE_SAMESITE='Lax',
        PERMANENT_SESSION_LIFETIME=86400,  # 24 horas
        MAX_CONTENT_LENGTH=1 * 1024 * 1024,
        DATA_DIR=config.DATA_DIR,
        LOGS_DIR=config.LOGS_DIR,
        PROFILING_ENABLED=config.ENABLE_PROFILING,
        PRODUCTION_MODE=config.PRODUCTION_MODE,
        CSRF_ENABLED=True,
        BOOTSTRAP_USERS=True,
        REALTIME_KEEPALIVE_SECONDS=config.REALTIME_KEEPALIVE_SECONDS,
    )
    if test_config:
        app.config.update(test_config)

    app.json.ensure_ascii = False
    _configure_logging(app)

    # ═══════════════════════════════════════════════════════════════════════
    # CONTENEDOR DE DEPENDENCIAS
    # ═══════════════════════════════════════════════════════════════════════
    # Un contenedor por app: cada create_app parte de su directorio de datos
    AppContainer.reset_instance()
    container = get_container(app.config['DATA_DIR'])
    app.extensions['discobar'] = container

    if app.config['BOOTSTRAP_USERS']:
        container.user_service.bootstrap_users(production=app.config['PRODUCTION_MODE'])

    init_profiling(app)
    register_blueprints(app)
    _register_error_handlers(app)
    app.after_request(set_security_headers)

    @app.route('/api/health', methods=['GET'])
    def health():
        return jsonify({'ok': True, 'status': 'up'})

    # Bloquea acceso a carpetas sensibles
    @app.route('/data/<path:filename>')
    @app.route('/logs/<path:filename>')
    def block_sensitive_routes(filename):
        return 'Not Found', 404

    return app


if __name__ == '__main__':
    app = create_app()
    if not config.DEBUG:
        print(f"\n{'='*50}")
        print(f"  Servidor iniciado en http://{config.HOST}:{config.PORT}")
        print(f"  Acceso local: http://localhost:{config.PORT}")
        print(f"{'='*50}\n")
    app.run(host=config.HOST, port=config.PORT, debug=config.DEBUG, threaded=True)
