# ==============================================================================
# SERVICIO DE MESAS
# ==============================================================================
# Ciclo de vida de una mesa:
#
#   libre ──(pedido)──> ocupada ──(pedir cuenta)──> facturacion
#     ^                    │                            │
#     └────(cobro o cancelación del último pedido)──────┘
#
# El estado solo cambia por set_status/request_bill, nunca por update_table.
# ==============================================================================

import logging
from typing import Any, Dict, List

from discobar.errors import ConflictError, InvalidTransitionError, NotFoundError, ValidationError
from discobar.models import TABLE_TRANSITIONS, ChangeType, Table, TableStatus, utc_now_iso
from discobar.repositories.order_repository import OrderRepository
from discobar.repositories.table_repository import TableRepository
from discobar.services.realtime_service import ChangeFeed
from discobar.validators import optional_text, parse_int

logger = logging.getLogger('discobar.tables')


class TableService:

    def __init__(self, table_repo: TableRepository, order_repo: OrderRepository, feed: ChangeFeed = None):
        self.table_repo = table_repo
        self.order_repo = order_repo
        self.feed = feed

    def _publish(self, event, new=None, old=None):
        if self.feed:
            self.feed.publish('tables', event, new=new, old=old)

    def list_tables(self, search: str = None) -> List[Dict[str, Any]]:
        """
        Mesas ordenadas por número.

        Args:
            search: Coincide con número, nombre o estado
        """
        tables = self.table_repo.list_ordered()
        q = (search or '').strip().lower()
        if q:
            tables = [
                t for t in tables
                if q in str(t.get('number', ''))
                or q in (t.get('name') or '').lower()
                or q in t.get('status', '')
            ]
        return tables

    def get_table(self, table_id: str) -> Dict[str, Any]:
        table = self.table_repo.get_by_id(table_id)
        if not table:
            raise NotFoundError('Mesa no encontrada')
        return table

    def _check_number(self, number: int, exclude_id: str = None) -> None:
        existing = self.table_repo.get_by_number(number)
        if existing and existing['id'] != exclude_id:
            raise ConflictError(f'Ya existe la mesa #{number}')

    def create_table(self, number: Any, name: Any = '', capacity: Any = 4) -> Dict[str, Any]:
        number = parse_int(number, 'El número de mesa', minimum=1)
        capacity = parse_int(capacity, 'La capacidad', minimum=1, default=4)
        self._check_number(number)

        table = Table(number=number, name=optional_text(name), capacity=capacity).to_dict()
        self.table_repo.insert(table)
        self._publish(ChangeType.INSERT, new=table)
        logger.info('Mesa #%s creada', number)
        return table

    def update_table(self, table_id: str, number: Any = None, name: Any = None, capacity: Any = None) -> Dict[str, Any]:
        """Edita número, nombre o capacidad (el estado no se toca aquí)."""
        old = dict(self.get_table(table_id))
        updates: Dict[str, Any] = {}

        if number is not None:
            updates['number'] = parse_int(number, 'El número de mesa', minimum=1)
            self._check_number(updates['number'], exclude_id=table_id)
        if name is not None:
            updates['name'] = optional_text(name)
        if capacity is not None:
            updates['capacity'] = parse_int(capacity, 'La capacidad', minimum=1)

        if not updates:
            return old

        updates['updated_at'] = utc_now_iso()
        table = self.table_repo.update(table_id, updates)
        self._publish(ChangeType.UPDATE, new=table, old=old)
        return table

    def delete_table(self, table_id: str) -> Dict[str, Any]:
        table = self.get_table(table_id)
        if self.order_repo.list_by_table(table_id):
            raise ConflictError('La mesa tiene pedidos registrados y no puede eliminarse')
        self.table_repo.delete(table_id)
        self._publish(ChangeType.DELETE, old=table)
        logger.info('Mesa #%s eliminada', table.get('number'))
        return table

    # =========================================================================
    # ESTADOS
    # =========================================================================

    def set_status(self, table_id: str, target: Any) -> Dict[str, Any]:
        """
        Cambia el estado respetando TABLE_TRANSITIONS.

        Pasar al mismo estado no hace nada.

        Raises:
            InvalidTransitionError: Si la transición no está permitida
        """
        try:
            target = TableStatus(target)
        except ValueError:
            raise ValidationError(f'Estado de mesa inválido: {target}')

        old = dict(self.get_table(table_id))
        current = TableStatus(old.get('status', TableStatus.LIBRE.value))
        if current == target:
            return old
        if target not in TABLE_TRANSITIONS[current]:
            raise InvalidTransitionError('mesa', current.value, target.value)

        table = self.table_repo.update(table_id, {
            'status': target.value,
            'updated_at': utc_now_iso(),
        })
        self._publish(ChangeType.UPDATE, new=table, old=old)
        return table

    def request_bill(self, table_id: str) -> Dict[str, Any]:
        """ocupada → facturacion."""
        table = self.get_table(table_id)
        if table.get('status') != TableStatus.OCUPADA.value:
            raise InvalidTransitionError('mesa', table.get('status'), TableStatus.FACTURACION.value)
        return self.set_status(table_id, TableStatus.FACTURACION)

    def release_if_idle(self, table_id: str) -> Dict[str, Any]:
        """
        Libera la mesa si no le quedan pedidos abiertos.

        Returns:
            La mesa (liberada o no), o None si ya no existe
        """
        table = self.table_repo.get_by_id(table_id)
        if not table:
            return None
        if self.order_repo.open_orders_for_table(table_id):
            return table
        if table.get('status') == TableStatus.LIBRE.value:
            return table
        return self.set_status(table_id, TableStatus.LIBRE)
