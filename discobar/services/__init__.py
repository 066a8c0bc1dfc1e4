# ==============================================================================
# CAPA DE SERVICIOS - Lógica de negocio
# ==============================================================================
# Esta capa contiene TODA la lógica de negocio de la aplicación.
#
# PRINCIPIOS:
# 1. Los servicios orquestan operaciones entre repositorios
# 2. Aplican reglas de negocio y lanzan excepciones de discobar.errors
# 3. Las rutas (blueprints) solo llaman a servicios
# 4. Cada escritura publica un cambio en el ChangeFeed
#
# ESTRUCTURA:
# ├── user_service.py      → Usuarios, autenticación, recuperación de contraseña
# ├── table_service.py     → Mesas y sus estados
# ├── category_service.py  → Categorías de productos
# ├── inventory_service.py → Productos, stock, movimientos, stock bajo
# ├── order_service.py     → Pedidos: creación, confirmación, cancelación, cobro
# ├── report_service.py    → Ventas, movimientos, panel, CSV
# ├── settings_service.py  → Umbral de stock bajo
# └── realtime_service.py  → Canal de cambios y notificaciones
# ==============================================================================

from discobar.services.realtime_service import ChangeFeed, Subscription, format_sse, notifications_for
from discobar.services.settings_service import SettingsService
from discobar.services.category_service import CategoryService
from discobar.services.inventory_service import InventoryService, STOCK_LOCK
from discobar.services.table_service import TableService
from discobar.services.order_service import OrderService
from discobar.services.report_service import ReportService, date_range
from discobar.services.user_service import UserService

__all__ = [
    'ChangeFeed',
    'Subscription',
    'format_sse',
    'notifications_for',
    'SettingsService',
    'CategoryService',
    'InventoryService',
    'STOCK_LOCK',
    'TableService',
    'OrderService',
    'ReportService',
    'date_range',
    'UserService',
]
