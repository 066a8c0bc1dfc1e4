# ==============================================================================
# RUTAS DE AUTENTICACIÓN - /api/auth
# ==============================================================================

from flask import Blueprint, session

from discobar.routes.common import get_services, json_body, ok
from discobar.security import (
    current_user,
    generate_csrf_token,
    login_required,
    start_session,
    verify_csrf,
)

bp = Blueprint('auth', __name__, url_prefix='/api/auth')


@bp.route('/csrf', methods=['GET'])
def csrf():
    return ok(csrf_token=generate_csrf_token())


@bp.route('/login', methods=['POST'])
@verify_csrf
def login():
    data = json_body()
    user = get_services().user_service.authenticate(data.get('email'), data.get('password'))
    start_session(user)
    return ok(user=user, csrf_token=session['csrf_token'])


@bp.route('/logout', methods=['POST'])
@login_required
@verify_csrf
def logout():
    session.clear()
    return ok()


@bp.route('/me', methods=['GET'])
@login_required
def me():
    user = current_user()
    profile = get_services().user_service.get_user(user['id'])
    return ok(user=profile)


@bp.route('/forgot-password', methods=['POST'])
@verify_csrf
def forgot_password():
    get_services().user_service.forgot_password(json_body().get('email'))
    # Misma respuesta exista o no el email
    return ok(message='Si el email está registrado, recibirás un enlace de recuperación.')


@bp.route('/reset-password', methods=['POST'])
@verify_csrf
def reset_password():
    data = json_body()
    get_services().user_service.reset_password(
        data.get('token'), data.get('password'), data.get('confirm_password')
    )
    return ok(message='Contraseña actualizada.')


# ═══════════════════════════════════════════════════════════════════════════════
# PERFIL PROPIO
# ═══════════════════════════════════════════════════════════════════════════════

@bp.route('/profile', methods=['PATCH'])
@login_required
@verify_csrf
def update_profile():
    data = json_body()
    user = get_services().user_service.update_profile(
        session['user_id'],
        full_name=data.get('full_name'),
        email=data.get('email'),
        avatar_url=data.get('avatar_url'),
    )
    session['full_name'] = user.get('full_name', '')
    session['email'] = user.get('email')
    return ok(user=user)


@bp.route('/password', methods=['POST'])
@login_required
@verify_csrf
def change_password():
    data = json_body()
    get_services().user_service.change_password(
        session['user_id'],
        data.get('current_password'),
        data.get('new_password'),
        data.get('confirm_password'),
    )
    return ok(message='Contraseña actualizada.')
