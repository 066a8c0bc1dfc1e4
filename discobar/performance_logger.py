# ==============================================================================
# SISTEMA DE PROFILING INTERNO
# ==============================================================================
# Mide rendimiento de rutas y funciones sin afectar la atención en barra.
# Guarda logs legibles en el directorio de logs configurado.
#
# ACTIVAR/DESACTIVAR: variable de entorno DISCOBAR_ENABLE_PROFILING
# ==============================================================================

import os
import threading
import time
from collections import defaultdict
from datetime import datetime
from functools import wraps

from flask import current_app, has_app_context

from discobar import config

# ═══════════════════════════════════════════════════════════════════════════
# CONFIGURACIÓN
# ═══════════════════════════════════════════════════════════════════════════

# Umbrales de tiempo (en milisegundos)
THRESHOLD_WARNING = 300
THRESHOLD_CRITICAL = 700

PERFORMANCE_LOG = 'performance.log'
SLOW_ROUTES_LOG = 'slow_routes.log'
SLOW_FUNCTIONS_LOG = 'slow_functions.log'

# Mapeo de rutas a nombres legibles
ROUTE_NAMES = {
    # Autenticación
    'POST /api/auth/login': 'Iniciar sesión',
    'POST /api/auth/logout': 'Cerrar sesión',
    'POST /api/auth/forgot-password': 'Solicitar recuperación de contraseña',
    'POST /api/auth/reset-password': 'Restablecer contraseña',

    # Mesas
    'GET /api/tables': 'Ver mesas',
    'POST /api/tables': 'Crear mesa',
    'PATCH /api/tables/<table_id>': 'Editar mesa',
    'DELETE /api/tables/<table_id>': 'Eliminar mesa',
    'POST /api/tables/<table_id>/request-bill': 'Pedir la cuenta',

    # Pedidos
    'GET /api/orders': 'Ver pedidos',
    'POST /api/orders': 'Crear pedido',
    'GET /api/orders/mine': 'Ver mis pedidos',
    'POST /api/orders/<order_id>/confirm': 'Confirmar pedido',
    'POST /api/orders/<order_id>/cancel': 'Cancelar pedido',
    'POST /api/orders/<order_id>/bill': 'Facturar pedido',

    # Carta e inventario
    'GET /api/products': 'Ver productos',
    'GET /api/products/available': 'Ver carta',
    'POST /api/products': 'Crear producto',
    'POST /api/products/<product_id>/stock': 'Ajustar stock',
    'GET /api/categories': 'Ver categorías',

    # Reportes
    'GET /api/reports/sales': 'Ver ventas',
    'GET /api/reports/sales/export': 'Exportar ventas CSV',
    'GET /api/reports/movements': 'Ver movimientos de inventario',
    'GET /api/reports/movements/export': 'Exportar movimientos CSV',
    'GET /api/dashboard': 'Ver panel principal',

    # Usuarios y configuración
    'GET /api/users': 'Ver usuarios',
    'POST /api/users': 'Crear usuario',
    'GET /api/settings': 'Ver configuración',
    'PUT /api/settings': 'Guardar configuración',
}

# Cada app guarda su configuración en app.extensions['profiling'];
# fuera de una app se usan los valores de config.
EXTENSION_KEY = 'profiling'


# ═══════════════════════════════════════════════════════════════════════════
# ESTADÍSTICAS DE FUNCIONES (en memoria)
# ═══════════════════════════════════════════════════════════════════════════

# Estructura: {nombre_funcion: {calls: int, total_time: float, max_time: float}}
_function_stats = defaultdict(lambda: {'calls': 0, 'total_time': 0.0, 'max_time': 0.0})
_stats_lock = threading.Lock()
_write_lock = threading.Lock()


# ═══════════════════════════════════════════════════════════════════════════
# FUNCIONES DE LOGGING
# ═══════════════════════════════════════════════════════════════════════════

def _get_timestamp():
    return datetime.now().strftime('%Y-%m-%d %H:%M:%S')


def _settings():
    """{'enabled', 'logs_dir'} de la app actual o de config."""
    if has_app_context():
        settings = current_app.extensions.get(EXTENSION_KEY)
        if settings is not None:
            return settings
    return {'enabled': config.ENABLE_PROFILING, 'logs_dir': config.LOGS_DIR}


def _is_enabled():
    return bool(_settings()['enabled'])


def _write_log(filename, content):
    """Escribe contenido a un archivo de log (thread-safe)."""
    try:
        with _write_lock:
            logs_dir = _settings()['logs_dir']
            os.makedirs(logs_dir, exist_ok=True)
            with open(os.path.join(logs_dir, filename), 'a', encoding='utf-8') as f:
                f.write(content)
    except OSError:
        pass  # Un log que falla no debe tumbar la petición


def _get_route_name(method, path, rule=None):
    """
    Nombre legible para una ruta.
    Primero por ruta exacta, luego por la regla de Flask; si no, la ruta cruda.
    """
    key = f"{method} {path}"
    if key in ROUTE_NAMES:
        return ROUTE_NAMES[key]
    if rule:
        rule_key = f"{method} {rule}"
        if rule_key in ROUTE_NAMES:
            return ROUTE_NAMES[rule_key]
    return key


# ═══════════════════════════════════════════════════════════════════════════
# 1️⃣ PROFILING DE RUTAS
# ═══════════════════════════════════════════════════════════════════════════

def log_route_performance(method, path, rule, time_ms, user=None):
    if not _is_enabled():
        return

    log_entry = f"""
════════════════════════════════════════
[PERFORMANCE] {_get_timestamp()}
────────────────────────────────────────
Acción: {_get_route_name(method, path, rule)}
Usuario: {user or 'anónimo'}
Ruta: {method} {path}
Tiempo: {time_ms:.0f} ms
"""
    _write_log(PERFORMANCE_LOG, log_entry)


def log_slow_route(method, path, rule, time_ms, user=None, level='WARNING'):
    """
    Registra una ruta lenta en slow_routes.log

    Args:
        level: 'WARNING' (>300ms) o 'CRITICAL' (>700ms)
    """
    if not _is_enabled():
        return

    severity = 'LENTA' if level == 'WARNING' else 'MUY LENTA'
    threshold = THRESHOLD_WARNING if level == 'WARNING' else THRESHOLD_CRITICAL

    log_entry = f"""
[{level}] {_get_timestamp()}
────────────────────────────────────────
Ruta {severity}: {_get_route_name(method, path, rule)}
Usuario: {user or 'anónimo'}
Detalle: {method} {path}
Tiempo: {time_ms:.0f} ms (umbral: {threshold} ms)
────────────────────────────────────────
"""
    _write_log(SLOW_ROUTES_LOG, log_entry)


# ═══════════════════════════════════════════════════════════════════════════
# 2️⃣ HOOKS PARA FLASK
# ═══════════════════════════════════════════════════════════════════════════

def init_profiling(app):
    """
    Registra los hooks before_request/after_request en la app.

    Lee PROFILING_ENABLED y LOGS_DIR de app.config.
    """
    settings = {
        'enabled': bool(app.config.get('PROFILING_ENABLED', config.ENABLE_PROFILING)),
        'logs_dir': app.config.get('LOGS_DIR', config.LOGS_DIR),
    }
    app.extensions[EXTENSION_KEY] = settings

    if not settings['enabled']:
        return

    @app.before_request
    def _start_timer():
        from flask import g
        g.start_time = time.perf_counter()

    @app.after_request
    def _log_request(response):
        from flask import g, request, session

        if not hasattr(g, 'start_time'):
            return response

        elapsed = (time.perf_counter() - g.start_time) * 1000
        path = request.path
        if path.startswith('/static'):
            return response

        method = request.method
        rule = str(request.url_rule) if request.url_rule else path
        user = session.get('email')

        log_route_performance(method, path, rule, elapsed, user)
        if elapsed >= THRESHOLD_CRITICAL:
            log_slow_route(method, path, rule, elapsed, user, 'CRITICAL')
        elif elapsed >= THRESHOLD_WARNING:
            log_slow_route(method, path, rule, elapsed, user, 'WARNING')

        return response


# ═══════════════════════════════════════════════════════════════════════════
# 3️⃣ DECORADOR PARA FUNCIONES CLAVE
# ═══════════════════════════════════════════════════════════════════════════

def profile_function(func=None, name=None):
    """
    Decorador para medir funciones críticas.

    Uso:
        @profile_function
        def mi_funcion():
            ...

        @profile_function(name="Crear pedido")
        def create_order():
            ...
    """
    def decorator(fn):
        func_name = name or fn.__name__

        @wraps(fn)
        def wrapper(*args, **kwargs):
            if not _is_enabled():
                return fn(*args, **kwargs)
            start = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                elapsed_ms = (time.perf_counter() - start) * 1000
                with _stats_lock:
                    stats = _function_stats[func_name]
                    stats['calls'] += 1
                    stats['total_time'] += elapsed_ms
                    if elapsed_ms > stats['max_time']:
                        stats['max_time'] = elapsed_ms
                if elapsed_ms >= THRESHOLD_WARNING:
                    _log_slow_function_call(func_name, elapsed_ms)

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator


def _log_slow_function_call(func_name, time_ms):
    severity = 'CRÍTICO' if time_ms >= THRESHOLD_CRITICAL else 'LENTO'
    log_entry = f"""
[{severity}] {_get_timestamp()}
Función: {func_name}
Tiempo: {time_ms:.0f} ms
────────────────────────────────────────
"""
    _write_log(SLOW_FUNCTIONS_LOG, log_entry)


# ═══════════════════════════════════════════════════════════════════════════
# 4️⃣ REPORTE DE ESTADÍSTICAS
# ═══════════════════════════════════════════════════════════════════════════

def get_function_stats():
    """
    Returns:
        dict: {nombre: {calls, avg_time, max_time}}
    """
    with _stats_lock:
        result = {}
        for func_name, stats in _function_stats.items():
            calls = stats['calls']
            avg = stats['total_time'] / calls if calls > 0 else 0
            result[func_name] = {
                'calls': calls,
                'avg_time': round(avg, 2),
                'max_time': round(stats['max_time'], 2)
            }
        return result


def reset_stats():
    with _stats_lock:
        _function_stats.clear()


__all__ = [
    'init_profiling',
    'profile_function',
    'get_function_stats',
    'reset_stats',
]
