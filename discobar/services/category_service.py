# ==============================================================================
# SERVICIO DE CATEGORÍAS
# ==============================================================================
# El nombre de la categoría se copia en cada producto (campo "category")
# para los listados; renombrar o eliminar una categoría actualiza esa copia.
# ==============================================================================

from typing import Any, Dict, List

from discobar.errors import ConflictError, NotFoundError
from discobar.models import Category, ChangeType, utc_now_iso
from discobar.repositories.category_repository import CategoryRepository
from discobar.repositories.product_repository import ProductRepository
from discobar.services.realtime_service import ChangeFeed
from discobar.validators import optional_text, require_text


class CategoryService:

    def __init__(
        self,
        category_repo: CategoryRepository,
        product_repo: ProductRepository,
        feed: ChangeFeed = None
    ):
        self.category_repo = category_repo
        self.product_repo = product_repo
        self.feed = feed

    def _publish(self, event, new=None, old=None):
        if self.feed:
            self.feed.publish('categories', event, new=new, old=old)

    def _update_products(self, category_id: str, changes: Dict[str, Any]) -> int:
        """Aplica cambios a los productos de la categoría y publica cada uno."""
        products = self.product_repo.list_by_category(category_id)
        for product in products:
            old = dict(product)
            updated = self.product_repo.update(product['id'], dict(changes, updated_at=utc_now_iso()))
            if self.feed:
                self.feed.publish('products', ChangeType.UPDATE, new=updated, old=old)
        return len(products)

    def list_categories(self, search: str = None) -> List[Dict[str, Any]]:
        categories = self.category_repo.list_ordered()
        q = (search or '').strip().lower()
        if q:
            categories = [
                c for c in categories
                if q in c.get('name', '').lower() or q in (c.get('description') or '').lower()
            ]
        return categories

    def get_category(self, category_id: str) -> Dict[str, Any]:
        category = self.category_repo.get_by_id(category_id)
        if not category:
            raise NotFoundError('Categoría no encontrada')
        return category

    def _check_unique(self, name: str, exclude_id: str = None) -> None:
        existing = self.category_repo.get_by_name(name)
        if existing and existing['id'] != exclude_id:
            raise ConflictError(f'Ya existe la categoría "{name}"')

    def create_category(self, name: Any, description: Any = '') -> Dict[str, Any]:
        name = require_text(name, 'El nombre es requerido')
        self._check_unique(name)

        category = Category(name=name, description=optional_text(description)).to_dict()
        self.category_repo.insert(category)
        self._publish(ChangeType.INSERT, new=category)
        return category

    def update_category(self, category_id: str, name: Any = None, description: Any = None) -> Dict[str, Any]:
        old = dict(self.get_category(category_id))
        updates = {}

        if name is not None:
            updates['name'] = require_text(name, 'El nombre es requerido')
            self._check_unique(updates['name'], exclude_id=category_id)
        if description is not None:
            updates['description'] = optional_text(description)

        if not updates:
            return old

        category = self.category_repo.update(category_id, updates)
        self._publish(ChangeType.UPDATE, new=category, old=old)

        # Propagar el nuevo nombre a los productos
        if 'name' in updates and updates['name'] != old.get('name'):
            self._update_products(category_id, {'category': updates['name']})
        return category

    def delete_category(self, category_id: str) -> Dict[str, Any]:
        """
        Elimina la categoría; sus productos quedan en "General".
        """
        category = self.get_category(category_id)
        self._update_products(category_id, {'category_id': None, 'category': 'General'})
        self.category_repo.delete(category_id)
        self._publish(ChangeType.DELETE, old=category)
        return category
