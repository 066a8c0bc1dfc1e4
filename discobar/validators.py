"""
Validadores de entrada compartidos por los servicios.

Convierten valores que llegan del JSON de la petición (texto, números,
None) en tipos limpios, o lanzan ValidationError con un mensaje en español.
"""

import math
from typing import Any, Optional

from discobar.errors import ValidationError


def to_int(v: Any, default: Optional[int] = None) -> Optional[int]:
    try:
        return int(v)
    except (TypeError, ValueError):
        return default


def parse_int(value: Any, field: str, minimum: int = None, default: int = None) -> int:
    """
    Convierte a entero validando el mínimo.

    Un valor vacío toma `default` (si se indicó).
    """
    if value is None or value == '':
        if default is not None:
            return default
        raise ValidationError(f'{field} es requerido')
    if isinstance(value, bool):
        raise ValidationError(f'{field} debe ser un número entero')
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f'{field} debe ser un número entero')
    result = to_int(value)
    if result is None:
        raise ValidationError(f'{field} debe ser un número entero')
    if minimum is not None and result < minimum:
        raise ValidationError(f'{field} debe ser mayor o igual a {minimum}')
    return result


def parse_money(value: Any, field: str, default: float = None) -> float:
    """Convierte a monto >= 0 redondeado a 2 decimales."""
    if value is None or value == '':
        if default is not None:
            return default
        raise ValidationError(f'{field} es requerido')
    if isinstance(value, bool):
        raise ValidationError(f'{field} debe ser un número')
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{field} debe ser un número')
    if not math.isfinite(amount):
        raise ValidationError(f'{field} debe ser un número')
    if amount < 0:
        raise ValidationError(f'{field} no puede ser negativo')
    return round(amount, 2)


def require_text(value: Any, message: str) -> str:
    """Texto obligatorio (sin espacios al borde)."""
    text = str(value).strip() if value is not None else ''
    if not text:
        raise ValidationError(message)
    return text


def optional_text(value: Any) -> str:
    return str(value).strip() if value is not None else ''


def validate_email(value: Any) -> str:
    """Email normalizado en minúsculas."""
    email = require_text(value, 'Email requerido').lower()
    local, _, domain = email.partition('@')
    if not local or '.' not in domain or ' ' in email:
        raise ValidationError('Email inválido')
    return email


MIN_PASSWORD_LENGTH = 6


def validate_new_password(password: Any, confirm: Any = None) -> str:
    """
    Contraseña nueva: mínimo 6 caracteres y, si se envía, igual a la confirmación.
    """
    if password is None:
        password = ''
    if not isinstance(password, str):
        raise ValidationError('La contraseña debe ser texto')
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f'La contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres')
    if confirm is not None and password != confirm:
        raise ValidationError('Las contraseñas no coinciden')
    return password
