# ==============================================================================
# REPOSITORIO DE MOVIMIENTOS DE INVENTARIO
# ==============================================================================
# Encapsula todo el acceso a inventory_movements.json
# Es el historial de entradas y salidas de stock.
# ==============================================================================

from typing import Any, Dict, List

from discobar.repositories.base import ListRepository


class MovementRepository(ListRepository):
    """
    Formato de datos:
    [
        {"id": ..., "product_id": ..., "quantity_change": -2,
         "reason": "Pedido confirmado — Mesa #3", "created_by": ..., "created_at": ...}
    ]
    """

    FILE_NAME = 'inventory_movements.json'

    def list_newest_first(self) -> List[Dict[str, Any]]:
        return sorted(self.get_all(), key=lambda m: m.get('created_at', ''), reverse=True)

    def for_product(self, product_id: str) -> List[Dict[str, Any]]:
        return self.find_all_by('product_id', product_id)
