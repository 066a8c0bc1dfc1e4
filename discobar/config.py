# ==============================================================================
# CONFIGURACIÓN GLOBAL
# ==============================================================================
# Todos los parámetros salen de variables de entorno con valores por defecto
# seguros para desarrollo local.
#
# Comandos típicos:
#   export DISCOBAR_SECRET_KEY="clave_muy_larga_y_aleatoria"
#   export DISCOBAR_PRODUCTION=1
#   export DISCOBAR_DATA_DIR=/srv/discobar/data
# ==============================================================================

import os

BASE = os.path.dirname(os.path.abspath(__file__))


def _env_flag(name, default='0'):
    return os.environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'si', 'sí')


# ═══════════════════════════════════════════════════════════════════════════════
# MODO PRODUCCIÓN
# ═══════════════════════════════════════════════════════════════════════════════
# True = Sin usuarios demo; el admin inicial sale de DISCOBAR_ADMIN_*
# False = Modo desarrollo con usuarios demo
PRODUCTION_MODE = _env_flag('DISCOBAR_PRODUCTION')

# ═══════════════════════════════════════════════════════════════════════════════
# SESIÓN
# ═══════════════════════════════════════════════════════════════════════════════
_DEFAULT_SECRET = 'discobar_dev_secret_key_change_in_production'
SECRET_KEY = os.environ.get('DISCOBAR_SECRET_KEY')

if PRODUCTION_MODE and not SECRET_KEY:
    print('[ADVERTENCIA] DISCOBAR_PRODUCTION activo sin DISCOBAR_SECRET_KEY definida')
    print('[ADVERTENCIA] Define la variable de entorno para mayor seguridad')

SECRET_KEY = SECRET_KEY or _DEFAULT_SECRET

# ═══════════════════════════════════════════════════════════════════════════════
# RUTAS DE DATOS Y LOGS
# ═══════════════════════════════════════════════════════════════════════════════
DATA_DIR = os.environ.get('DISCOBAR_DATA_DIR') or os.path.join(BASE, 'data')
LOGS_DIR = os.environ.get('DISCOBAR_LOGS_DIR') or os.path.join(BASE, 'logs')

# Profiling de rutas (performance_logger)
ENABLE_PROFILING = _env_flag('DISCOBAR_ENABLE_PROFILING', '1')

# ═══════════════════════════════════════════════════════════════════════════════
# USUARIOS INICIALES
# ═══════════════════════════════════════════════════════════════════════════════
ADMIN_EMAIL = os.environ.get('DISCOBAR_ADMIN_EMAIL', '')
ADMIN_PASSWORD = os.environ.get('DISCOBAR_ADMIN_PASSWORD', '')

# Solo en desarrollo
DEV_USERS = [
    {'email': 'admin@discobar.local', 'password': 'admin123',
     'full_name': 'Administrador', 'role': 'admin'},
    {'email': 'trabajador@discobar.local', 'password': 'trabajador123',
     'full_name': 'Trabajador Demo', 'role': 'trabajador'},
]

# Tokens de recuperación de contraseña
RESET_TOKEN_TTL_SECONDS = 3600

# ═══════════════════════════════════════════════════════════════════════════════
# SERVIDOR
# ═══════════════════════════════════════════════════════════════════════════════
HOST = os.environ.get('FLASK_HOST', '0.0.0.0')
PORT = int(os.environ.get('FLASK_PORT', '5000'))
DEBUG = _env_flag('FLASK_DEBUG')

# Cola máxima por suscriptor del canal en tiempo real
REALTIME_MAX_QUEUE = 100
# Segundos entre keep-alive del stream SSE
REALTIME_KEEPALIVE_SECONDS = 15
