# ==============================================================================
# ENTIDADES DEL DOMINIO - Definiciones de dataclasses
# ==============================================================================
# Cada entidad representa una relación del sistema (mesas, pedidos, ventas...).
# Se persisten como diccionarios planos; to_dict/from_dict hacen la conversión.
# ==============================================================================

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


def new_id() -> str:
    """Genera un identificador UUID4 en texto."""
    return str(uuid.uuid4())


def utc_now_iso() -> str:
    """Timestamp actual en ISO-8601 UTC."""
    return datetime.now(timezone.utc).isoformat()


# ==============================================================================
# ENUMERACIONES - Estados y tipos válidos
# ==============================================================================

class AppRole(str, Enum):
    """Roles de usuario disponibles en el sistema."""
    ADMIN = "admin"
    TRABAJADOR = "trabajador"


class TableStatus(str, Enum):
    """Estados de una mesa."""
    LIBRE = "libre"              # Disponible para un nuevo pedido
    OCUPADA = "ocupada"          # Con pedido confirmado
    FACTURACION = "facturacion"  # Cuenta solicitada, esperando cobro


class OrderStatus(str, Enum):
    """Estados del ciclo de vida de un pedido."""
    PENDIENTE = "pendiente"      # Creado sin descontar stock
    CONFIRMADO = "confirmado"    # Stock descontado, mesa ocupada
    FACTURADO = "facturado"      # Cobrado (venta registrada)
    CANCELADO = "cancelado"      # Anulado

    @property
    def is_open(self) -> bool:
        return self in (OrderStatus.PENDIENTE, OrderStatus.CONFIRMADO)


class PaymentMethod(str, Enum):
    """Métodos de pago aceptados."""
    EFECTIVO = "efectivo"
    TRANSFERENCIA = "transferencia"
    TARJETA = "tarjeta"

    @property
    def label(self) -> str:
        return PAYMENT_LABELS[self.value]


PAYMENT_LABELS = {
    'efectivo': 'Efectivo',
    'transferencia': 'Transferencia',
    'tarjeta': 'Tarjeta',
}


# Transiciones permitidas del pedido: {estado_actual: {estados_destino}}
ORDER_TRANSITIONS = {
    OrderStatus.PENDIENTE: frozenset([OrderStatus.CONFIRMADO, OrderStatus.CANCELADO]),
    OrderStatus.CONFIRMADO: frozenset([OrderStatus.FACTURADO, OrderStatus.CANCELADO]),
    OrderStatus.FACTURADO: frozenset(),
    OrderStatus.CANCELADO: frozenset(),
}

# Transiciones permitidas de la mesa
TABLE_TRANSITIONS = {
    TableStatus.LIBRE: frozenset([TableStatus.OCUPADA]),
    TableStatus.OCUPADA: frozenset([TableStatus.FACTURACION, TableStatus.LIBRE]),
    TableStatus.FACTURACION: frozenset([TableStatus.LIBRE]),
}


class ChangeType(str, Enum):
    """Tipo de cambio publicado en el canal en tiempo real."""
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


# ==============================================================================
# ENTIDADES
# ==============================================================================

@dataclass
class Table:
    """
    Mesa del local.

    Attributes:
        number: Número visible de la mesa (único)
        name: Nombre opcional (ej: "VIP 1")
        capacity: Cantidad de personas
        status: Estado actual de la mesa
    """
    number: int
    name: str = ''
    capacity: int = 4
    status: TableStatus = TableStatus.LIBRE
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d['status'] = TableStatus(self.status).value
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Table':
        return cls(
            id=data['id'],
            number=int(data.get('number', 0)),
            name=data.get('name', ''),
            capacity=int(data.get('capacity', 4)),
            status=TableStatus(data.get('status', 'libre')),
            created_at=data.get('created_at', ''),
            updated_at=data.get('updated_at', ''),
        )


@dataclass
class Category:
    """Categoría de productos (Cervezas, Cócteles, ...)."""
    name: str
    description: str = ''
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Product:
    """
    Producto de la carta.

    Attributes:
        price: Precio de venta unitario
        stock_quantity: Unidades en inventario
        category: Nombre de la categoría (desnormalizado para listados)
        category_id: Categoría asociada (puede ser None)
        is_active: Si aparece en la carta de los trabajadores
    """
    name: str
    description: str = ''
    price: float = 0.0
    stock_quantity: int = 0
    category: str = 'General'
    category_id: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool = True
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Order:
    """Pedido de una mesa."""
    table_id: str
    worker_id: str
    client_name: str
    status: OrderStatus = OrderStatus.CONFIRMADO
    total_amount: float = 0.0
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d['status'] = OrderStatus(self.status).value
        return d


@dataclass
class OrderDetail:
    """Línea de un pedido."""
    order_id: str
    product_id: str
    quantity: int
    unit_price: float
    subtotal: float
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Sale:
    """Cobro de un pedido."""
    order_id: str
    amount: float
    payment_method: PaymentMethod
    processed_by: str
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d['payment_method'] = PaymentMethod(self.payment_method).value
        return d


@dataclass
class UserAccount:
    """
    Cuenta de usuario: credenciales + perfil.

    El password se guarda únicamente como hash de Werkzeug.
    """
    email: str
    password_hash: str
    full_name: str = ''
    avatar_url: Optional[str] = None
    reset_token: Optional[str] = None
    reset_expires: Optional[str] = None
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def public(data: Dict[str, Any]) -> Dict[str, Any]:
        """Perfil sin campos sensibles."""
        return {
            'id': data.get('id'),
            'email': data.get('email'),
            'full_name': data.get('full_name', ''),
            'avatar_url': data.get('avatar_url'),
            'created_at': data.get('created_at'),
            'updated_at': data.get('updated_at'),
        }


@dataclass
class UserRoleRow:
    """Asignación de rol a un usuario."""
    user_id: str
    role: AppRole
    id: str = field(default_factory=new_id)

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'user_id': self.user_id, 'role': AppRole(self.role).value}


@dataclass
class InventoryMovement:
    """
    Movimiento de inventario.

    quantity_change > 0 es una entrada, < 0 una salida.
    """
    product_id: str
    quantity_change: int
    reason: str = ''
    created_by: Optional[str] = None
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=utc_now_iso)

    @property
    def kind(self) -> str:
        return 'Entrada' if self.quantity_change > 0 else 'Salida'

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
