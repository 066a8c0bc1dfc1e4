# ==============================================================================
# EXCEPCIONES DEL DOMINIO
# ==============================================================================
# Los servicios lanzan estas excepciones; main.py las convierte en respuestas
# JSON {"ok": false, "error": "..."} con el código HTTP correspondiente.
# ==============================================================================


class DiscoBarError(Exception):
    """Error de negocio con mensaje para el usuario."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {'ok': False, 'error': self.message}


class ValidationError(DiscoBarError):
    """Datos de entrada inválidos."""
    status_code = 400


class AuthenticationError(DiscoBarError):
    """Usuario no autenticado o credenciales inválidas."""
    status_code = 401


class PermissionDeniedError(DiscoBarError):
    """El usuario no tiene permiso para la operación."""
    status_code = 403


class NotFoundError(DiscoBarError):
    status_code = 404


class ConflictError(DiscoBarError):
    """La operación choca con el estado actual de los datos."""
    status_code = 409


class InvalidTransitionError(ConflictError):
    """Transición de estado no permitida (pedido o mesa)."""

    def __init__(self, entity: str, current: str, target: str):
        super().__init__(f'Transición inválida de {entity}: {current} → {target}')
        self.entity = entity
        self.current = current
        self.target = target
