# ==============================================================================
# CAPA DE REPOSITORIOS - Acceso a datos
# ==============================================================================
# Esta capa encapsula todo el acceso a la persistencia (archivos JSON).
#
# ESTRUCTURA:
# ├── base.py                 → Clases base JSON (DictRepository, ListRepository)
# ├── table_repository.py     → tables.json
# ├── category_repository.py  → categories.json
# ├── product_repository.py   → products.json
# ├── order_repository.py     → orders.json + order_details.json
# ├── sale_repository.py      → sales.json
# ├── movement_repository.py  → inventory_movements.json
# ├── user_repository.py      → users.json + user_roles.json
# └── settings_repository.py  → settings.json
# ==============================================================================

from .base import BaseRepository, DictRepository, ListRepository
from .table_repository import TableRepository
from .category_repository import CategoryRepository
from .product_repository import ProductRepository
from .order_repository import OrderRepository, OrderDetailRepository
from .sale_repository import SaleRepository
from .movement_repository import MovementRepository
from .user_repository import UserRepository, RoleRepository
from .settings_repository import SettingsRepository

__all__ = [
    # Clases base
    'BaseRepository',
    'DictRepository',
    'ListRepository',

    # Implementaciones JSON
    'TableRepository',
    'CategoryRepository',
    'ProductRepository',
    'OrderRepository',
    'OrderDetailRepository',
    'SaleRepository',
    'MovementRepository',
    'UserRepository',
    'RoleRepository',
    'SettingsRepository',
]
