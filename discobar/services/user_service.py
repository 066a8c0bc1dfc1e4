# ==============================================================================
# SERVICIO DE USUARIOS
# ==============================================================================
# Centraliza toda la lógica de negocio relacionada con usuarios:
# autenticación, alta/baja/edición (solo admin), perfil propio y
# recuperación de contraseña.
#
# REGLAS CRÍTICAS:
# - Un admin no puede eliminar su propia cuenta.
# - Nunca puede quedar el sistema sin admins (ni por baja ni por cambio de rol).
# - Un usuario sin rol no puede iniciar sesión.
# Estas validaciones se hacen AQUÍ, no en las rutas.
# ==============================================================================

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from discobar import config
from discobar.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from discobar.models import AppRole, ChangeType, UserAccount, UserRoleRow, utc_now_iso
from discobar.repositories.user_repository import RoleRepository, UserRepository
from discobar.services.realtime_service import ChangeFeed
from discobar.validators import optional_text, require_text, validate_email, validate_new_password

logger = logging.getLogger('discobar.users')


class UserService:
    """
    Servicio para gestión de usuarios.

    Responsabilidades:
    - Autenticación (login)
    - CRUD de usuarios con su rol
    - Perfil y contraseña del propio usuario
    - Tokens de recuperación de contraseña
    - Usuarios iniciales al arrancar
    """

    VALID_ROLES = frozenset(r.value for r in AppRole)

    # Alias aceptados al recibir un rol
    ROLE_ALIASES = {
        'administrador': AppRole.ADMIN.value,
        'worker': AppRole.TRABAJADOR.value,
        'mesero': AppRole.TRABAJADOR.value,
    }

    def __init__(self, user_repo: UserRepository, role_repo: RoleRepository, feed: ChangeFeed = None):
        self.user_repo = user_repo
        self.role_repo = role_repo
        self.feed = feed

    def _publish(self, table, event, new=None, old=None):
        if self.feed:
            self.feed.publish(table, event, new=new, old=old)

    def _publish_profile(self, event, new=None, old=None):
        """Publica el cambio de cuenta sin hash ni token (relación profiles)."""
        self._publish(
            'profiles', event,
            new=UserAccount.public(new) if new else None,
            old=UserAccount.public(old) if old else None,
        )

    def _assign_role(self, user_id: str, role: str) -> Dict[str, Any]:
        """Reemplaza el rol del usuario y publica el cambio en user_roles."""
        old = self.role_repo.find_by('user_id', user_id)
        row = UserRoleRow(user_id=user_id, role=AppRole(role)).to_dict()
        self.role_repo.set_role(row)
        if old:
            self._publish('user_roles', ChangeType.UPDATE, new=row, old=old)
        else:
            self._publish('user_roles', ChangeType.INSERT, new=row)
        return row

    # =========================================================================
    # UTILIDADES
    # =========================================================================

    def normalize_role(self, role: Any) -> str:
        """
        Normaliza un rol recibido ('Admin', 'worker'...).

        Raises:
            ValidationError: Si el rol no existe
        """
        value = role.strip().lower() if isinstance(role, str) else ''
        value = self.ROLE_ALIASES.get(value, value)
        if value not in self.VALID_ROLES:
            raise ValidationError('Rol inválido (admin o trabajador)')
        return value

    def count_admins(self) -> int:
        return len(self.role_repo.users_with_role(AppRole.ADMIN.value))

    def _get_raw(self, user_id: str) -> Dict[str, Any]:
        user = self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError('Usuario no encontrado')
        return user

    def _public(self, user: Dict[str, Any]) -> Dict[str, Any]:
        data = UserAccount.public(user)
        data['role'] = self.role_repo.get_role(user['id'])
        return data

    def get_user(self, user_id: str) -> Dict[str, Any]:
        """Perfil público con rol."""
        return self._public(self._get_raw(user_id))

    # =========================================================================
    # AUTENTICACIÓN
    # =========================================================================

    def authenticate(self, email: Any, password: Any) -> Dict[str, Any]:
        """
        Verifica credenciales.

        Returns:
            Perfil público con rol

        Raises:
            AuthenticationError: Email o contraseña incorrectos
            PermissionDeniedError: El usuario no tiene rol asignado
        """
        user = self.user_repo.get_by_email(str(email or ''))
        if (not user or not isinstance(password, str) or not password
                or not check_password_hash(user.get('password_hash', ''), password)):
            logger.info('Login fallido para %s', email)
            raise AuthenticationError('Credenciales inválidas')

        role = self.role_repo.get_role(user['id'])
        if role not in self.VALID_ROLES:
            raise PermissionDeniedError('El usuario no tiene un rol asignado')

        logger.info('Login correcto: %s (%s)', user['email'], role)
        return self._public(user)

    def bootstrap_users(self, production: bool = None) -> List[Dict[str, Any]]:
        """
        Crea los usuarios iniciales si no existe ninguno.

        En producción solo el admin de DISCOBAR_ADMIN_EMAIL/PASSWORD;
        en desarrollo los usuarios demo de config.DEV_USERS.

        Returns:
            Usuarios creados (vacío si ya había usuarios)
        """
        if self.user_repo.count() > 0:
            return []

        production = config.PRODUCTION_MODE if production is None else production
        if production:
            if not config.ADMIN_EMAIL or not config.ADMIN_PASSWORD:
                logger.warning('Sin usuarios y sin DISCOBAR_ADMIN_EMAIL/DISCOBAR_ADMIN_PASSWORD definidas')
                return []
            seeds = [{'email': config.ADMIN_EMAIL, 'password': config.ADMIN_PASSWORD,
                      'full_name': 'Administrador', 'role': AppRole.ADMIN.value}]
        else:
            seeds = config.DEV_USERS

        created = [self.create_user(**seed) for seed in seeds]
        logger.info('Usuarios iniciales creados: %s', ', '.join(u['email'] for u in created))
        return created

    # =========================================================================
    # CRUD DE USUARIOS (solo admin)
    # =========================================================================

    def list_users(self) -> List[Dict[str, Any]]:
        users = sorted(self.user_repo.list_all(), key=lambda u: u.get('created_at', ''))
        return [self._public(u) for u in users]

    def create_user(self, email: Any, password: Any, full_name: Any, role: Any) -> Dict[str, Any]:
        """
        Crea una cuenta ya confirmada con su rol.

        Raises:
            ValidationError: Campos faltantes o inválidos
            ConflictError: Email ya registrado
        """
        if not email or not password or not full_name or not role:
            raise ValidationError('Todos los campos son requeridos')

        email = validate_email(email)
        password = validate_new_password(password)
        full_name = require_text(full_name, 'El nombre es requerido')
        role = self.normalize_role(role)

        if self.user_repo.email_taken(email):
            raise ConflictError('El email ya está registrado')

        user = UserAccount(
            email=email,
            password_hash=generate_password_hash(password),
            full_name=full_name,
        ).to_dict()
        self.user_repo.insert(user)
        self._publish_profile(ChangeType.INSERT, new=user)
        self._assign_role(user['id'], role)

        logger.info('Usuario creado: %s (%s)', email, role)
        return self._public(user)

    def update_user(
        self,
        user_id: str,
        email: Any = None,
        password: Any = None,
        full_name: Any = None,
        role: Any = None
    ) -> Dict[str, Any]:
        """
        Actualiza solo los campos enviados.

        Un cambio de rol reemplaza la asignación anterior.
        """
        user = self._get_raw(user_id)
        updates: Dict[str, Any] = {}

        if email:
            email = validate_email(email)
            if self.user_repo.email_taken(email, exclude_id=user_id):
                raise ConflictError('El email ya está registrado')
            updates['email'] = email
        if password:
            updates['password_hash'] = generate_password_hash(validate_new_password(password))
        if full_name is not None:
            updates['full_name'] = optional_text(full_name)

        new_role = self.normalize_role(role) if role else None
        if new_role:
            old_role = self.role_repo.get_role(user_id)
            if old_role == AppRole.ADMIN.value and new_role != AppRole.ADMIN.value and self.count_admins() <= 1:
                raise ConflictError('No se puede quitar el último admin')

        if updates:
            old = user
            updates['updated_at'] = utc_now_iso()
            user = self.user_repo.update(user_id, updates)
            self._publish_profile(ChangeType.UPDATE, new=user, old=old)
        if new_role:
            self._assign_role(user_id, new_role)

        logger.info('Usuario actualizado: %s', user.get('email'))
        return self._public(user)

    def delete_user(self, user_id: str, acting_user_id: str = None) -> Dict[str, Any]:
        """
        Elimina una cuenta y sus roles.

        VALIDACIONES:
        1. El usuario debe existir
        2. No se puede auto-eliminar
        3. No se puede eliminar el último admin
        """
        user = self._get_raw(user_id)

        if acting_user_id and user_id == acting_user_id:
            raise PermissionDeniedError('No puedes eliminar tu propia cuenta')

        if self.role_repo.get_role(user_id) == AppRole.ADMIN.value and self.count_admins() <= 1:
            raise ConflictError('No se puede eliminar el último admin')

        role_row = self.role_repo.find_by('user_id', user_id)
        self.user_repo.delete(user_id)
        self.role_repo.remove_roles(user_id)
        self._publish_profile(ChangeType.DELETE, old=user)
        if role_row:
            self._publish('user_roles', ChangeType.DELETE, old=role_row)
        logger.info('Usuario eliminado: %s', user.get('email'))
        return UserAccount.public(user)

    # =========================================================================
    # PERFIL PROPIO
    # =========================================================================

    def update_profile(
        self,
        user_id: str,
        full_name: Any = None,
        email: Any = None,
        avatar_url: Any = None
    ) -> Dict[str, Any]:
        """
        Edita el perfil propio. Un avatar_url vacío lo borra.
        """
        updates: Dict[str, Any] = {}
        old = self._get_raw(user_id)

        if avatar_url is not None:
            updates['avatar_url'] = optional_text(avatar_url) or None
        if full_name is not None:
            updates['full_name'] = require_text(full_name, 'El nombre es requerido')
        if email:
            email = validate_email(email)
            if self.user_repo.email_taken(email, exclude_id=user_id):
                raise ConflictError('El email ya está registrado')
            updates['email'] = email

        if not updates:
            return self.get_user(user_id)

        updates['updated_at'] = utc_now_iso()
        user = self.user_repo.update(user_id, updates)
        self._publish_profile(ChangeType.UPDATE, new=user, old=old)
        return self._public(user)

    def change_password(self, user_id: str, current: Any, new: Any, confirm: Any) -> None:
        """
        Cambia la contraseña propia.

        Raises:
            AuthenticationError: La contraseña actual no coincide
            ValidationError: La nueva es corta o no coincide con la confirmación
        """
        user = self._get_raw(user_id)
        if (not isinstance(current, str) or not current
                or not check_password_hash(user.get('password_hash', ''), current)):
            raise AuthenticationError('La contraseña actual es incorrecta')

        password = validate_new_password(new, confirm if confirm is not None else '')
        updated = self.user_repo.update(user_id, {
            'password_hash': generate_password_hash(password),
            'updated_at': utc_now_iso(),
        })
        self._publish_profile(ChangeType.UPDATE, new=updated, old=user)
        logger.info('Contraseña cambiada: %s', user.get('email'))

    # =========================================================================
    # RECUPERACIÓN DE CONTRASEÑA
    # =========================================================================

    def forgot_password(self, email: Any) -> Optional[str]:
        """
        Emite un token de recuperación válido por una hora.

        La respuesta al cliente es la misma exista o no el email; el token
        solo se entrega por el canal de correo (hoy, el log).

        Returns:
            El token emitido, o None si el email no existe
        """
        user = self.user_repo.get_by_email(str(email or ''))
        if not user:
            logger.info('Recuperación solicitada para email inexistente: %s', email)
            return None

        token = secrets.token_urlsafe(32)
        expires = datetime.now(timezone.utc) + timedelta(seconds=config.RESET_TOKEN_TTL_SECONDS)
        updated = self.user_repo.update(user['id'], {
            'reset_token': token,
            'reset_expires': expires.isoformat(),
        })
        self._publish_profile(ChangeType.UPDATE, new=updated, old=user)
        logger.info('Enlace de recuperación para %s: /reset-password?token=%s', user['email'], token)
        return token

    def reset_password(self, token: Any, password: Any, confirm: Any) -> None:
        """
        Fija una contraseña nueva con un token vigente y lo consume.

        Raises:
            ValidationError: Token inválido/vencido o contraseña no válida
        """
        password = validate_new_password(password, confirm if confirm is not None else '')
        user = self.user_repo.get_by_reset_token(str(token or ''))
        if not user:
            raise ValidationError('El enlace de recuperación no es válido')

        try:
            expires = datetime.fromisoformat(user.get('reset_expires') or '')
        except ValueError:
            expires = None
        if expires is None or expires < datetime.now(timezone.utc):
            cleared = self.user_repo.update(user['id'], {'reset_token': None, 'reset_expires': None})
            self._publish_profile(ChangeType.UPDATE, new=cleared, old=user)
            raise ValidationError('El enlace de recuperación expiró')

        updated = self.user_repo.update(user['id'], {
            'password_hash': generate_password_hash(password),
            'reset_token': None,
            'reset_expires': None,
            'updated_at': utc_now_iso(),
        })
        self._publish_profile(ChangeType.UPDATE, new=updated, old=user)
        logger.info('Contraseña restablecida: %s', user['email'])
