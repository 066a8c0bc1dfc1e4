# ==============================================================================
# SERVICIO DE PEDIDOS
# ==============================================================================
# Máquina de estados del pedido:
#
#   pendiente ──> confirmado ──> facturado
#       │              │
#       └──> cancelado <┘
#
# EFECTO EN STOCK:
# - Entrar en "confirmado" descuenta el stock de cada línea
#   (movimiento "Pedido confirmado — Mesa #N").
# - confirmado → cancelado devuelve el stock
#   (movimiento "Pedido cancelado — Mesa #N").
# - pendiente → cancelado no toca el stock.
#
# El total se calcula SIEMPRE aquí con el precio vigente del producto;
# lo que envíe el cliente como precio se ignora.
# ==============================================================================

import logging
from collections import OrderedDict
from typing import Any, Dict, List, Optional

from discobar.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from discobar.models import (
    ORDER_TRANSITIONS,
    AppRole,
    ChangeType,
    Order,
    OrderDetail,
    OrderStatus,
    PaymentMethod,
    Sale,
    TableStatus,
    utc_now_iso,
)
from discobar.performance_logger import profile_function
from discobar.repositories.order_repository import OrderDetailRepository, OrderRepository
from discobar.repositories.product_repository import ProductRepository
from discobar.repositories.sale_repository import SaleRepository
from discobar.repositories.user_repository import UserRepository
from discobar.services.inventory_service import STOCK_LOCK, InventoryService
from discobar.services.realtime_service import ChangeFeed
from discobar.services.table_service import TableService
from discobar.validators import parse_int, require_text

logger = logging.getLogger('discobar.orders')


class OrderService:
    """
    Servicio para el ciclo de vida de los pedidos.

    Responsabilidades:
    - Crear pedidos validando mesa, productos y stock
    - Confirmar, cancelar y facturar
    - Mantener el estado de la mesa sincronizado
    - Listados para administración y para cada trabajador
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        detail_repo: OrderDetailRepository,
        sale_repo: SaleRepository,
        product_repo: ProductRepository,
        user_repo: UserRepository,
        table_service: TableService,
        inventory_service: InventoryService,
        feed: ChangeFeed = None
    ):
        self.order_repo = order_repo
        self.detail_repo = detail_repo
        self.sale_repo = sale_repo
        self.product_repo = product_repo
        self.user_repo = user_repo
        self.table_service = table_service
        self.inventory_service = inventory_service
        self.feed = feed

    def _publish(self, table, event, new=None, old=None):
        if self.feed:
            self.feed.publish(table, event, new=new, old=old)

    # =========================================================================
    # VALIDACIONES
    # =========================================================================

    @staticmethod
    def _merge_items(items: Any) -> 'OrderedDict[str, int]':
        """
        Normaliza las líneas del pedido sumando productos repetidos.

        Returns:
            {product_id: cantidad}
        """
        if not items or not isinstance(items, (list, tuple)):
            raise ValidationError('Agrega productos al pedido')

        merged: 'OrderedDict[str, int]' = OrderedDict()
        for item in items:
            if not isinstance(item, dict):
                raise ValidationError('Línea de pedido inválida')
            product_id = require_text(item.get('product_id'), 'Producto requerido')
            quantity = parse_int(item.get('quantity'), 'La cantidad', minimum=1)
            merged[product_id] = merged.get(product_id, 0) + quantity
        return merged

    def _check_stock(self, product: Dict[str, Any], quantity: int) -> None:
        available = int(product.get('stock_quantity', 0))
        if quantity > available:
            raise ValidationError(
                f'Stock insuficiente para {product.get("name")}: disponible {available}'
            )

    @staticmethod
    def _check_transition(order: Dict[str, Any], target: OrderStatus) -> OrderStatus:
        current = OrderStatus(order.get('status'))
        if target not in ORDER_TRANSITIONS[current]:
            raise InvalidTransitionError('pedido', current.value, target.value)
        return current

    def _get_raw(self, order_id: str) -> Dict[str, Any]:
        order = self.order_repo.get_by_id(order_id)
        if not order:
            raise NotFoundError('Pedido no encontrado')
        return order

    def _set_status(self, order: Dict[str, Any], target: OrderStatus) -> Dict[str, Any]:
        old = dict(order)
        updated = self.order_repo.update(order['id'], {
            'status': target.value,
            'updated_at': utc_now_iso(),
        })
        self._publish('orders', ChangeType.UPDATE, new=updated, old=old)
        return updated

    def _table_number(self, table_id: str) -> Any:
        table = self.table_service.table_repo.get_by_id(table_id)
        return table.get('number') if table else None

    # =========================================================================
    # EFECTO EN STOCK
    # =========================================================================

    def _deduct_stock(self, order: Dict[str, Any], details: List[Dict[str, Any]]) -> None:
        reason = f'Pedido confirmado — Mesa #{self._table_number(order["table_id"])}'
        for detail in details:
            self.inventory_service.apply_stock_change(
                detail['product_id'], -int(detail['quantity']), reason, order.get('worker_id')
            )

    def _restore_stock(self, order: Dict[str, Any], user_id: str) -> None:
        reason = f'Pedido cancelado — Mesa #{self._table_number(order["table_id"])}'
        for detail in self.detail_repo.for_order(order['id']):
            if self.product_repo.get_by_id(detail['product_id']) is None:
                logger.warning('Producto %s ya no existe; no se devuelve stock', detail['product_id'])
                continue
            self.inventory_service.apply_stock_change(
                detail['product_id'], int(detail['quantity']), reason, user_id
            )

    # =========================================================================
    # OPERACIONES
    # =========================================================================

    @profile_function(name='Crear pedido')
    def create_order(
        self,
        table_id: str,
        worker_id: str,
        client_name: Any,
        items: Any,
        confirm: bool = True
    ) -> Dict[str, Any]:
        """
        Crea un pedido para una mesa libre.

        Args:
            table_id: Mesa del pedido
            worker_id: Trabajador que lo toma
            client_name: Nombre del cliente (obligatorio)
            items: [{product_id, quantity}, ...]
            confirm: True = confirmado (descuenta stock), False = pendiente

        Returns:
            Pedido con sus líneas

        Raises:
            ValidationError: Datos faltantes o stock insuficiente
            ConflictError: Si la mesa no está libre
        """
        client_name = require_text(client_name, 'Ingresa nombre del cliente')
        merged = self._merge_items(items)
        status = OrderStatus.CONFIRMADO if confirm else OrderStatus.PENDIENTE

        with STOCK_LOCK:
            table = self.table_service.get_table(table_id)
            if table.get('status') != TableStatus.LIBRE.value:
                raise ConflictError(f'La mesa #{table.get("number")} no está libre')

            lines = []
            for product_id, quantity in merged.items():
                product = self.product_repo.get_by_id(product_id)
                if not product:
                    raise NotFoundError('Producto no encontrado')
                if not product.get('is_active', True):
                    raise ValidationError(f'{product.get("name")} no está disponible')
                self._check_stock(product, quantity)
                unit_price = round(float(product.get('price', 0)), 2)
                lines.append((product_id, quantity, unit_price, round(unit_price * quantity, 2)))

            total = round(sum(line[3] for line in lines), 2)
            order = Order(
                table_id=table['id'],
                worker_id=worker_id,
                client_name=client_name,
                status=status,
                total_amount=total,
            ).to_dict()
            details = [
                OrderDetail(
                    order_id=order['id'],
                    product_id=product_id,
                    quantity=quantity,
                    unit_price=unit_price,
                    subtotal=subtotal,
                ).to_dict()
                for product_id, quantity, unit_price, subtotal in lines
            ]

            self.order_repo.insert(order)
            self.detail_repo.extend(details)
            self._publish('orders', ChangeType.INSERT, new=order)
            for detail in details:
                self._publish('order_details', ChangeType.INSERT, new=detail)

            self.table_service.set_status(table['id'], TableStatus.OCUPADA)

            if status == OrderStatus.CONFIRMADO:
                self._deduct_stock(order, details)

        logger.info(
            'Pedido %s creado (%s) Mesa #%s total %.2f',
            order['id'], status.value, table.get('number'), total
        )
        result = dict(order)
        result['details'] = details
        return result

    def confirm_order(self, order_id: str) -> Dict[str, Any]:
        """pendiente → confirmado, validando y descontando stock."""
        with STOCK_LOCK:
            order = self._get_raw(order_id)
            self._check_transition(order, OrderStatus.CONFIRMADO)

            details = self.detail_repo.for_order(order_id)
            for detail in details:
                product = self.product_repo.get_by_id(detail['product_id'])
                if not product:
                    raise NotFoundError('Producto no encontrado')
                self._check_stock(product, int(detail['quantity']))

            updated = self._set_status(order, OrderStatus.CONFIRMADO)
            self._deduct_stock(updated, details)

        logger.info('Pedido %s confirmado', order_id)
        return updated

    @profile_function(name='Cancelar pedido')
    def cancel_order(self, order_id: str, user_id: str, role: str) -> Dict[str, Any]:
        """
        Cancela un pedido pendiente o confirmado.

        Un trabajador solo puede cancelar sus propios pedidos.

        Returns:
            {'order': pedido, 'stock_restored': bool}
        """
        with STOCK_LOCK:
            order = self._get_raw(order_id)
            if role != AppRole.ADMIN.value and order.get('worker_id') != user_id:
                raise PermissionDeniedError('Solo puedes cancelar tus propios pedidos')

            previous = self._check_transition(order, OrderStatus.CANCELADO)
            updated = self._set_status(order, OrderStatus.CANCELADO)

            stock_restored = previous == OrderStatus.CONFIRMADO
            if stock_restored:
                self._restore_stock(updated, user_id)

            self.table_service.release_if_idle(order['table_id'])

        logger.info('Pedido %s cancelado por %s (stock devuelto: %s)', order_id, user_id, stock_restored)
        return {'order': updated, 'stock_restored': stock_restored}

    @profile_function(name='Facturar pedido')
    def bill_order(self, order_id: str, payment_method: Any, processed_by: str) -> Dict[str, Any]:
        """
        Cobra un pedido confirmado y libera la mesa.

        Returns:
            {'order': pedido, 'sale': venta}

        Raises:
            ValidationError: Método de pago inválido
            ConflictError: Pedido no confirmado o ya cobrado
        """
        try:
            method = PaymentMethod((payment_method or '').strip().lower())
        except (ValueError, AttributeError):
            raise ValidationError('Método de pago inválido')

        with STOCK_LOCK:
            order = self._get_raw(order_id)
            self._check_transition(order, OrderStatus.FACTURADO)
            if self.sale_repo.get_for_order(order_id):
                raise ConflictError('El pedido ya fue facturado')

            sale = Sale(
                order_id=order_id,
                amount=round(float(order.get('total_amount', 0)), 2),
                payment_method=method,
                processed_by=processed_by,
            ).to_dict()
            self.sale_repo.append(sale)
            self._publish('sales', ChangeType.INSERT, new=sale)

            updated = self._set_status(order, OrderStatus.FACTURADO)
            self.table_service.release_if_idle(order['table_id'])

        logger.info('Pedido %s facturado: %.2f (%s)', order_id, sale['amount'], method.value)
        return {'order': updated, 'sale': sale}

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def _worker_name(self, worker_id: str, cache: Dict[str, str]) -> str:
        if worker_id not in cache:
            user = self.user_repo.get_by_id(worker_id) if worker_id else None
            cache[worker_id] = (user.get('full_name') or user.get('email')) if user else ''
        return cache[worker_id]

    def _decorate(self, orders: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        tables = self.table_service.table_repo.get_all()
        names: Dict[str, str] = {}
        result = []
        for order in orders:
            row = dict(order)
            table = tables.get(order.get('table_id')) or {}
            row['table_number'] = table.get('number')
            row['worker_name'] = self._worker_name(order.get('worker_id'), names)
            result.append(row)
        return result

    def list_orders(self, status: str = None) -> List[Dict[str, Any]]:
        """Vista de administración: más recientes primero."""
        orders = self.order_repo.list_newest_first()
        if status:
            orders = [o for o in orders if o.get('status') == status]
        return self._decorate(orders)

    def list_worker_orders(self, worker_id: str) -> List[Dict[str, Any]]:
        return self._decorate(self.order_repo.list_by_worker(worker_id))

    def get_order(self, order_id: str, viewer_id: str = None, viewer_role: Optional[str] = None) -> Dict[str, Any]:
        """
        Pedido con sus líneas (incluye nombre de producto).

        Si se indica el visitante y no es admin, solo ve sus pedidos.
        """
        order = self._get_raw(order_id)
        if viewer_role and viewer_role != AppRole.ADMIN.value and order.get('worker_id') != viewer_id:
            raise PermissionDeniedError('No tienes acceso a este pedido')

        result = self._decorate([order])[0]
        products = self.product_repo.get_all()
        details = []
        for detail in self.detail_repo.for_order(order_id):
            row = dict(detail)
            product = products.get(detail['product_id']) or {}
            row['product_name'] = product.get('name', 'Producto eliminado')
            details.append(row)
        result['details'] = details

        sale = self.sale_repo.get_for_order(order_id)
        result['sale'] = sale
        return result
