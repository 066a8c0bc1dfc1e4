# ==============================================================================
# REPOSITORIO DE VENTAS
# ==============================================================================
# Encapsula todo el acceso a sales.json
# Cada venta es el cobro de un pedido facturado.
# ==============================================================================

from typing import Any, Dict, List, Optional

from discobar.repositories.base import ListRepository


class SaleRepository(ListRepository):
    """
    Formato de datos en sales.json:
    [
        {"id": ..., "order_id": ..., "amount": 30.0,
         "payment_method": "efectivo", "processed_by": ..., "created_at": ...}
    ]
    """

    FILE_NAME = 'sales.json'

    def get_for_order(self, order_id: str) -> Optional[Dict[str, Any]]:
        return self.find_by('order_id', order_id)

    def list_newest_first(self) -> List[Dict[str, Any]]:
        return sorted(self.get_all(), key=lambda s: s.get('created_at', ''), reverse=True)
