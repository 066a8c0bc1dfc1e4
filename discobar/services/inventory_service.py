# ==============================================================================
# SERVICIO DE INVENTARIO
# ==============================================================================
# Centraliza toda la lógica de negocio relacionada con productos y stock.
#
# REGLA: todo cambio de stock_quantity deja un movimiento en
# inventory_movements.json (entrada > 0, salida < 0). El stock nunca
# queda negativo.
#
# STOCK_LOCK serializa "verificar stock + descontar" entre hilos; el
# servicio de pedidos lo toma para toda la creación de un pedido.
# ==============================================================================

import logging
import threading
from typing import Any, Dict, List, Optional

from discobar.errors import ConflictError, NotFoundError, ValidationError
from discobar.models import ChangeType, InventoryMovement, Product, utc_now_iso
from discobar.repositories.category_repository import CategoryRepository
from discobar.repositories.movement_repository import MovementRepository
from discobar.repositories.order_repository import OrderDetailRepository
from discobar.repositories.product_repository import ProductRepository
from discobar.services.realtime_service import ChangeFeed
from discobar.services.settings_service import SettingsService
from discobar.validators import optional_text, parse_int, parse_money, require_text

logger = logging.getLogger('discobar.inventory')

# Lock de stock compartido por inventario y pedidos
STOCK_LOCK = threading.RLock()

DEFAULT_CATEGORY = 'General'


class InventoryService:
    """
    Servicio para gestión de productos y stock.

    Responsabilidades:
    - CRUD de productos
    - Carta disponible para trabajadores
    - Entradas/salidas de stock con movimiento registrado
    - Alertas de stock bajo
    """

    def __init__(
        self,
        product_repo: ProductRepository,
        movement_repo: MovementRepository,
        category_repo: CategoryRepository,
        detail_repo: OrderDetailRepository,
        settings_service: SettingsService,
        feed: ChangeFeed = None
    ):
        self.product_repo = product_repo
        self.movement_repo = movement_repo
        self.category_repo = category_repo
        self.detail_repo = detail_repo
        self.settings_service = settings_service
        self.feed = feed

    def _publish(self, table, event, new=None, old=None):
        if self.feed:
            self.feed.publish(table, event, new=new, old=old)

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def list_products(self, search: str = None) -> List[Dict[str, Any]]:
        """
        Vista de administración: todos los productos por nombre.

        Args:
            search: Texto a buscar en nombre o categoría
        """
        products = self.product_repo.list_by_name()
        q = (search or '').strip().lower()
        if q:
            products = [
                p for p in products
                if q in p.get('name', '').lower() or q in (p.get('category') or '').lower()
            ]
        return products

    def list_available(self, search: str = None) -> List[Dict[str, Any]]:
        """
        Carta para trabajadores: activos con stock, por categoría y nombre.
        """
        products = [
            p for p in self.list_products(search)
            if p.get('is_active', True) and int(p.get('stock_quantity', 0)) > 0
        ]
        return sorted(products, key=lambda p: (
            (p.get('category') or DEFAULT_CATEGORY).lower(),
            p.get('name', '').lower(),
        ))

    def get_product(self, product_id: str) -> Dict[str, Any]:
        product = self.product_repo.get_by_id(product_id)
        if not product:
            raise NotFoundError('Producto no encontrado')
        return product

    def low_stock(self, threshold: int = None) -> List[Dict[str, Any]]:
        """
        Productos activos con stock <= umbral, de menor a mayor stock.

        Args:
            threshold: Umbral explícito (por defecto el configurado)
        """
        if threshold is None:
            threshold = self.settings_service.low_stock_threshold()
        products = [
            p for p in self.product_repo.list_all()
            if p.get('is_active', True) and int(p.get('stock_quantity', 0)) <= threshold
        ]
        return sorted(products, key=lambda p: (int(p.get('stock_quantity', 0)), p.get('name', '').lower()))

    # =========================================================================
    # CRUD DE PRODUCTOS
    # =========================================================================

    def _resolve_category(self, category_id: Optional[str]):
        """Devuelve (category_id, nombre) validando que exista."""
        if not category_id:
            return None, DEFAULT_CATEGORY
        category = self.category_repo.get_by_id(category_id)
        if not category:
            raise ValidationError('La categoría no existe')
        return category['id'], category['name']

    def create_product(
        self,
        name: Any,
        description: Any = '',
        price: Any = 0,
        stock_quantity: Any = 0,
        category_id: str = None,
        image_url: str = None,
        is_active: bool = True,
        user_id: str = None
    ) -> Dict[str, Any]:
        """
        Crea un producto. Un stock inicial > 0 queda como "Stock inicial".

        Returns:
            Producto creado
        """
        name = require_text(name, 'El nombre es requerido')
        price = parse_money(price, 'El precio', default=0.0)
        stock = parse_int(stock_quantity, 'El stock', minimum=0, default=0)
        cat_id, cat_name = self._resolve_category(category_id)

        product = Product(
            name=name,
            description=optional_text(description),
            price=price,
            stock_quantity=stock,
            category=cat_name,
            category_id=cat_id,
            image_url=image_url or None,
            is_active=bool(is_active),
        ).to_dict()

        with STOCK_LOCK:
            self.product_repo.insert(product)
            if stock > 0:
                self._record_movement(product['id'], stock, 'Stock inicial', user_id)

        self._publish('products', ChangeType.INSERT, new=product)
        logger.info('Producto creado: %s (stock %s)', name, stock)
        return product

    def update_product(self, product_id: str, updates: Dict[str, Any], user_id: str = None) -> Dict[str, Any]:
        """
        Actualiza campos de un producto.

        Si cambia el stock se registra un "Ajuste manual" por la diferencia.
        """
        with STOCK_LOCK:
            old = dict(self.get_product(product_id))
            changes: Dict[str, Any] = {}

            if 'name' in updates:
                changes['name'] = require_text(updates['name'], 'El nombre es requerido')
            if 'description' in updates:
                changes['description'] = optional_text(updates['description'])
            if 'price' in updates:
                changes['price'] = parse_money(updates['price'], 'El precio')
            if 'image_url' in updates:
                changes['image_url'] = updates['image_url'] or None
            if 'is_active' in updates:
                changes['is_active'] = bool(updates['is_active'])
            if 'category_id' in updates:
                changes['category_id'], changes['category'] = self._resolve_category(updates['category_id'])

            new_stock = None
            if 'stock_quantity' in updates:
                new_stock = parse_int(updates['stock_quantity'], 'El stock', minimum=0)
                changes['stock_quantity'] = new_stock

            if not changes:
                return old

            changes['updated_at'] = utc_now_iso()
            product = self.product_repo.update(product_id, changes)

            delta = 0 if new_stock is None else new_stock - int(old.get('stock_quantity', 0))
            if delta:
                self._record_movement(product_id, delta, 'Ajuste manual', user_id)

        self._publish('products', ChangeType.UPDATE, new=product, old=old)
        return product

    def delete_product(self, product_id: str) -> Dict[str, Any]:
        """
        Elimina un producto sin pedidos asociados.

        Raises:
            ConflictError: Si alguna línea de pedido lo referencia
        """
        product = self.get_product(product_id)
        if self.detail_repo.references_product(product_id):
            raise ConflictError('El producto tiene pedidos asociados; desactívalo en lugar de eliminarlo')
        self.product_repo.delete(product_id)
        self._publish('products', ChangeType.DELETE, old=product)
        logger.info('Producto eliminado: %s', product.get('name'))
        return product

    # =========================================================================
    # STOCK
    # =========================================================================

    def _record_movement(self, product_id: str, quantity_change: int, reason: str, user_id: str = None):
        movement = InventoryMovement(
            product_id=product_id,
            quantity_change=int(quantity_change),
            reason=reason,
            created_by=user_id,
        ).to_dict()
        self.movement_repo.append(movement)
        self._publish('inventory_movements', ChangeType.INSERT, new=movement)
        return movement

    def apply_stock_change(
        self,
        product_id: str,
        delta: int,
        reason: str,
        user_id: str = None
    ) -> Dict[str, Any]:
        """
        Suma delta al stock y registra el movimiento.

        Args:
            product_id: Producto afectado
            delta: Positivo = entrada, negativo = salida
            reason: Motivo que queda en el historial
            user_id: Autor del movimiento

        Returns:
            Producto actualizado

        Raises:
            ValidationError: Si el stock quedaría negativo
        """
        with STOCK_LOCK:
            old = dict(self.get_product(product_id))
            current = int(old.get('stock_quantity', 0))
            new_stock = current + int(delta)
            if new_stock < 0:
                raise ValidationError(
                    f'Stock insuficiente para {old.get("name")}: disponible {current}'
                )
            product = self.product_repo.set_stock(product_id, new_stock)
            self._record_movement(product_id, delta, reason, user_id)

        self._publish('products', ChangeType.UPDATE, new=product, old=old)
        return product

    def adjust_stock(
        self,
        product_id: str,
        quantity_change: Any,
        reason: Any = '',
        user_id: str = None
    ) -> Dict[str, Any]:
        """Entrada/salida manual de stock hecha por un administrador."""
        delta = parse_int(quantity_change, 'La cantidad')
        if delta == 0:
            raise ValidationError('La cantidad no puede ser 0')
        reason = optional_text(reason) or ('Entrada manual' if delta > 0 else 'Salida manual')
        return self.apply_stock_change(product_id, delta, reason, user_id)
