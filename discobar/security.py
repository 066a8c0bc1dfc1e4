# ==============================================================================
# SEGURIDAD - Sesión, roles y CSRF
# ==============================================================================
# Decoradores para los blueprints de la API:
#   @login_required      → 401 si no hay sesión
#   @role_required('admin') → 403 si el rol no coincide
#   @verify_csrf         → 403 si el token CSRF no coincide (métodos que escriben)
#
# El token CSRF vive en la sesión y se envía en el header X-CSRF-Token
# o en el campo csrf_token del JSON.
# ==============================================================================

import uuid
from functools import wraps

from flask import current_app, g, jsonify, request, session

MUTATING_METHODS = frozenset(['POST', 'PUT', 'PATCH', 'DELETE'])


def _error(message, status):
    return jsonify({'ok': False, 'error': message}), status


def current_user():
    """Datos del usuario en sesión o None."""
    if 'user_id' not in session:
        return None
    return {
        'id': session.get('user_id'),
        'email': session.get('email'),
        'full_name': session.get('full_name', ''),
        'role': session.get('role'),
    }


def start_session(user):
    """Guarda el usuario autenticado en la sesión (con token CSRF nuevo)."""
    session.clear()
    session.permanent = True
    session['user_id'] = user['id']
    session['email'] = user.get('email')
    session['full_name'] = user.get('full_name', '')
    session['role'] = user.get('role')
    session['csrf_token'] = uuid.uuid4().hex


def load_session_user():
    """
    Relee el usuario de la sesión desde los repositorios.

    Si la cuenta fue eliminada o se quedó sin rol, la sesión se limpia.
    El rol de la sesión se sincroniza con el guardado.

    Returns:
        {id, email, full_name, role} o None
    """
    g.user = None
    user_id = session.get('user_id')
    if not user_id:
        return None

    services = current_app.extensions['discobar']
    user = services.user_repo.get_by_id(user_id)
    role = services.role_repo.get_role(user_id) if user else None
    if not user or not role:
        session.clear()
        return None

    if session.get('role') != role:
        session['role'] = role
    g.user = {
        'id': user['id'],
        'email': user.get('email'),
        'full_name': user.get('full_name', ''),
        'role': role,
    }
    return g.user


def login_required(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if load_session_user() is None:
            return _error('Debes iniciar sesión.', 401)
        return f(*args, **kwargs)
    return wrapper


def role_required(role_name):
    def deco(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            user = load_session_user()
            if user is None:
                return _error('Debes iniciar sesión.', 401)
            if user['role'] != role_name:
                return _error('Permiso denegado.', 403)
            return f(*args, **kwargs)
        return wrapper
    return deco


def generate_csrf_token():
    if 'csrf_token' not in session:
        session['csrf_token'] = uuid.uuid4().hex
    return session['csrf_token']


def verify_csrf(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if request.method in MUTATING_METHODS and current_app.config.get('CSRF_ENABLED', True):
            token = session.get('csrf_token')
            sent = (
                request.headers.get('X-CSRF-Token') or
                request.headers.get('X-CSRFToken')
            )
            if not sent and request.is_json:
                json_data = request.get_json(silent=True) or {}
                sent = json_data.get('csrf_token')

            if not token or not sent or token != sent:
                return _error('CSRF token inválido', 403)
        return f(*args, **kwargs)
    return wrapper


def set_security_headers(response):
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['Referrer-Policy'] = 'no-referrer-when-downgrade'
    response.headers['Permissions-Policy'] = 'geolocation=(), microphone=()'
    # HSTS solo con HTTPS real
    if request.is_secure:
        response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
    return response
