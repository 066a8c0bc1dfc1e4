# ==============================================================================
# REPOSITORIO DE CATEGORÍAS
# ==============================================================================
# Encapsula todo el acceso a categories.json
# ==============================================================================

from typing import Any, Dict, List, Optional

from discobar.repositories.base import DictRepository


class CategoryRepository(DictRepository):
    """Categorías indexadas por id."""

    FILE_NAME = 'categories.json'

    def list_ordered(self) -> List[Dict[str, Any]]:
        return sorted(self.list_all(), key=lambda c: c.get('name', '').lower())

    def get_by_name(self, name: str) -> Optional[Dict[str, Any]]:
        """Busca una categoría por nombre (sin distinguir mayúsculas)."""
        target = (name or '').strip().lower()
        for category in self.list_all():
            if category.get('name', '').strip().lower() == target:
                return category
        return None
