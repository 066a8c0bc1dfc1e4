# ==============================================================================
# REPOSITORIO DE USUARIOS Y ROLES
# ==============================================================================
# users.json      → cuentas (credenciales + perfil) indexadas por id
# user_roles.json → asignaciones de rol [{id, user_id, role}]
# ==============================================================================

from typing import Any, Dict, List, Optional

from discobar.repositories.base import DictRepository, ListRepository


class UserRepository(DictRepository):
    """
    Formato de datos en users.json:
    {
        "<uuid>": {"id": ..., "email": "ana@bar.com", "password_hash": "scrypt:...",
                   "full_name": "Ana", "avatar_url": null,
                   "reset_token": null, "reset_expires": null, ...}
    }
    """

    FILE_NAME = 'users.json'

    def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """Busca un usuario por email (normalizado en minúsculas)."""
        target = (email or '').strip().lower()
        if not target:
            return None
        return self.find_by('email', target)

    def email_taken(self, email: str, exclude_id: str = None) -> bool:
        user = self.get_by_email(email)
        return user is not None and user.get('id') != exclude_id

    def get_by_reset_token(self, token: str) -> Optional[Dict[str, Any]]:
        if not token:
            return None
        return self.find_by('reset_token', token)

    def count(self) -> int:
        return len(self.get_all())

    # NOTA: La verificación de contraseñas se hace SOLO en UserService.authenticate.
    # El repositorio solo maneja persistencia.


class RoleRepository(ListRepository):
    """Roles de usuario (un usuario tiene a lo sumo un rol)."""

    FILE_NAME = 'user_roles.json'

    def get_role(self, user_id: str) -> Optional[str]:
        row = self.find_by('user_id', user_id)
        return row.get('role') if row else None

    def set_role(self, row: Dict[str, Any]) -> None:
        """Reemplaza el rol anterior del usuario por la fila dada."""
        with self._file_lock:
            self.delete_where('user_id', row['user_id'])
            self.append(row)

    def remove_roles(self, user_id: str) -> int:
        return self.delete_where('user_id', user_id)

    def users_with_role(self, role: str) -> List[str]:
        return [r['user_id'] for r in self.get_all() if r.get('role') == role]
