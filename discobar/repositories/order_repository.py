# ==============================================================================
# REPOSITORIO DE PEDIDOS
# ==============================================================================
# Encapsula el acceso a orders.json (cabeceras) y order_details.json (líneas).
# ==============================================================================

from typing import Any, Dict, List

from discobar.models import OrderStatus
from discobar.repositories.base import DictRepository, ListRepository


class OrderRepository(DictRepository):
    """
    Cabeceras de pedido indexadas por id.

    Formato:
    {
        "<uuid>": {"id": ..., "table_id": ..., "worker_id": ...,
                   "client_name": "Ana", "status": "confirmado",
                   "total_amount": 25.5, "created_at": ..., "updated_at": ...}
    }
    """

    FILE_NAME = 'orders.json'

    def list_newest_first(self) -> List[Dict[str, Any]]:
        return sorted(self.list_all(), key=lambda o: o.get('created_at', ''), reverse=True)

    def list_by_worker(self, worker_id: str) -> List[Dict[str, Any]]:
        return [o for o in self.list_newest_first() if o.get('worker_id') == worker_id]

    def list_by_table(self, table_id: str) -> List[Dict[str, Any]]:
        return self.find_all(lambda o: o.get('table_id') == table_id)

    def open_orders_for_table(self, table_id: str) -> List[Dict[str, Any]]:
        """Pedidos pendientes o confirmados de una mesa."""
        open_statuses = (OrderStatus.PENDIENTE.value, OrderStatus.CONFIRMADO.value)
        return [o for o in self.list_by_table(table_id) if o.get('status') in open_statuses]


class OrderDetailRepository(ListRepository):
    """Líneas de pedido (lista de solo-agregar)."""

    FILE_NAME = 'order_details.json'

    def for_order(self, order_id: str) -> List[Dict[str, Any]]:
        return self.find_all_by('order_id', order_id)

    def references_product(self, product_id: str) -> bool:
        return self.find_by('product_id', product_id) is not None
