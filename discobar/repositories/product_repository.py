# ==============================================================================
# REPOSITORIO DE PRODUCTOS
# ==============================================================================
# Encapsula todo el acceso a products.json
# ==============================================================================

from typing import Any, Dict, List

from discobar.models import utc_now_iso
from discobar.repositories.base import DictRepository


class ProductRepository(DictRepository):
    """
    Productos de la carta indexados por id.

    El stock vive en el campo stock_quantity de cada producto. Los cambios
    de stock deben pasar por InventoryService para registrar el movimiento.
    """

    FILE_NAME = 'products.json'

    def list_by_name(self) -> List[Dict[str, Any]]:
        return sorted(self.list_all(), key=lambda p: p.get('name', '').lower())

    def list_by_category(self, category_id: str) -> List[Dict[str, Any]]:
        return self.find_all(lambda p: p.get('category_id') == category_id)

    def set_stock(self, product_id: str, new_stock: int) -> Dict[str, Any]:
        """
        Fija el stock de un producto.

        Returns:
            Producto actualizado (o None si no existe)
        """
        return self.update(product_id, {
            'stock_quantity': int(new_stock),
            'updated_at': utc_now_iso(),
        })
