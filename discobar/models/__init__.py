# ==============================================================================
# CAPA DE MODELOS - Estructuras de datos del sistema
# ==============================================================================
# Entidades del dominio como dataclasses y estados como enums de texto.
# Independientes del mecanismo de persistencia (JSON ahora, SQL después).
# ==============================================================================

from .entities import (
    # Utilidades
    new_id,
    utc_now_iso,

    # Enumeraciones
    AppRole,
    TableStatus,
    OrderStatus,
    PaymentMethod,
    PAYMENT_LABELS,
    ChangeType,
    ORDER_TRANSITIONS,
    TABLE_TRANSITIONS,

    # Entidades
    Table,
    Category,
    Product,
    Order,
    OrderDetail,
    Sale,
    UserAccount,
    UserRoleRow,
    InventoryMovement,
)

__all__ = [
    'new_id',
    'utc_now_iso',

    'AppRole',
    'TableStatus',
    'OrderStatus',
    'PaymentMethod',
    'PAYMENT_LABELS',
    'ChangeType',
    'ORDER_TRANSITIONS',
    'TABLE_TRANSITIONS',

    'Table',
    'Category',
    'Product',
    'Order',
    'OrderDetail',
    'Sale',
    'UserAccount',
    'UserRoleRow',
    'InventoryMovement',
]
