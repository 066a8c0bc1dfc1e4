# ==============================================================================
# REPOSITORIO DE MESAS
# ==============================================================================
# Encapsula todo el acceso a tables.json
# ==============================================================================

from typing import Any, Dict, List, Optional

from discobar.repositories.base import DictRepository


class TableRepository(DictRepository):
    """
    Formato de datos en tables.json:
    {
        "<uuid>": {"id": "<uuid>", "number": 1, "name": "", "capacity": 4,
                   "status": "libre", "created_at": "...", "updated_at": "..."}
    }
    """

    FILE_NAME = 'tables.json'

    def list_ordered(self) -> List[Dict[str, Any]]:
        """Mesas ordenadas por número."""
        return sorted(self.list_all(), key=lambda t: int(t.get('number', 0)))

    def get_by_number(self, number: int) -> Optional[Dict[str, Any]]:
        return self.find_by('number', int(number))

    def count_by_status(self, status: str) -> int:
        return len(self.find_all(lambda t: t.get('status') == status))
