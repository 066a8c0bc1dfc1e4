# ==============================================================================
# REPOSITORIO BASE - Persistencia en archivos JSON
# ==============================================================================
# Cada relación del sistema (mesas, pedidos, productos...) vive en su propio
# archivo JSON dentro del directorio de datos.
# ==============================================================================

import json
import os
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional


class BaseRepository(ABC):
    """
    Clase base abstracta para todos los repositorios.

    Proporciona lectura/escritura atómica de un archivo JSON protegida
    por un lock compartido entre todos los repositorios del proceso.

    Al migrar a SQL:
    - Los métodos _read_raw/_write_raw se convierten en queries
    - El lock se reemplaza por transacciones de la base de datos
    """

    # Lock global: las escrituras de distintos archivos no se pisan
    _file_lock = threading.RLock()

    # Nombre del archivo dentro del directorio de datos
    FILE_NAME: str = ''

    def __init__(self, base_path: str):
        """
        Args:
            base_path: Directorio donde viven los archivos JSON
        """
        os.makedirs(base_path, exist_ok=True)
        self.file_path = os.path.join(base_path, self.FILE_NAME)
        self._ensure_file_exists()

    def _ensure_file_exists(self) -> None:
        """Crea el archivo con datos vacíos si no existe."""
        if not os.path.exists(self.file_path):
            self._write_raw(self._empty_data())

    @abstractmethod
    def _empty_data(self) -> Any:
        """Estructura vacía (dict o list) del repositorio."""

    def _read_raw(self) -> Any:
        """
        Lee los datos crudos del archivo JSON.

        Un archivo corrupto o inexistente se lee como vacío.
        """
        with self._file_lock:
            try:
                with open(self.file_path, 'r', encoding='utf-8') as f:
                    return json.load(f)
            except (json.JSONDecodeError, FileNotFoundError):
                return self._empty_data()

    def _write_raw(self, data: Any) -> None:
        """
        Escribe datos al archivo JSON de forma atómica.

        Raises:
            OSError: Si hay error de escritura
        """
        with self._file_lock:
            temp_path = self.file_path + '.tmp'
            try:
                with open(temp_path, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                os.replace(temp_path, self.file_path)
            except Exception:
                if os.path.exists(temp_path):
                    os.remove(temp_path)
                raise


class DictRepository(BaseRepository):
    """
    Repositorio para registros indexados por id.

    Ejemplo: tables.json -> {"<uuid>": {...}, "<uuid>": {...}}
    """

    def _empty_data(self) -> Dict:
        return {}

    def get_all(self) -> Dict[str, Dict[str, Any]]:
        data = self._read_raw()
        return data if isinstance(data, dict) else {}

    def list_all(self) -> List[Dict[str, Any]]:
        """Todos los registros como lista."""
        return list(self.get_all().values())

    def get_by_id(self, record_id: str) -> Optional[Dict[str, Any]]:
        return self.get_all().get(str(record_id))

    def exists(self, record_id: str) -> bool:
        return str(record_id) in self.get_all()

    def save_all(self, data: Dict[str, Dict[str, Any]]) -> None:
        self._write_raw(data)

    def insert(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """
        Inserta un registro nuevo usando su campo 'id' como clave.

        Returns:
            El registro insertado
        """
        with self._file_lock:
            data = self.get_all()
            data[record['id']] = record
            self._write_raw(data)
        return record

    def update(self, record_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Actualiza campos de un registro.

        Returns:
            Registro actualizado o None si no existe
        """
        with self._file_lock:
            data = self.get_all()
            record = data.get(str(record_id))
            if record is None:
                return None
            record.update(updates)
            self._write_raw(data)
            return record

    def delete(self, record_id: str) -> Optional[Dict[str, Any]]:
        """
        Elimina un registro.

        Returns:
            Registro eliminado o None si no existía
        """
        with self._file_lock:
            data = self.get_all()
            removed = data.pop(str(record_id), None)
            if removed is not None:
                self._write_raw(data)
            return removed

    def find_all(self, predicate: Callable[[Dict[str, Any]], bool]) -> List[Dict[str, Any]]:
        return [r for r in self.list_all() if predicate(r)]

    def find_by(self, field: str, value: Any) -> Optional[Dict[str, Any]]:
        for record in self.list_all():
            if record.get(field) == value:
                return record
        return None


class ListRepository(BaseRepository):
    """
    Repositorio para relaciones de solo-agregar (movimientos, ventas...).

    Ejemplo: sales.json -> [{...}, {...}]
    """

    def _empty_data(self) -> List:
        return []

    def get_all(self) -> List[Dict[str, Any]]:
        data = self._read_raw()
        return data if isinstance(data, list) else []

    def save_all(self, data: List[Dict[str, Any]]) -> None:
        self._write_raw(data)

    def append(self, record: Dict[str, Any]) -> Dict[str, Any]:
        with self._file_lock:
            data = self.get_all()
            data.append(record)
            self._write_raw(data)
        return record

    def extend(self, records: List[Dict[str, Any]]) -> None:
        """Agrega varios registros en una sola escritura."""
        with self._file_lock:
            data = self.get_all()
            data.extend(records)
            self._write_raw(data)

    def find_by(self, field: str, value: Any) -> Optional[Dict[str, Any]]:
        for record in self.get_all():
            if record.get(field) == value:
                return record
        return None

    def find_all_by(self, field: str, value: Any) -> List[Dict[str, Any]]:
        return [r for r in self.get_all() if r.get(field) == value]

    def delete_where(self, field: str, value: Any) -> int:
        """
        Elimina los registros cuyo campo coincide.

        Returns:
            Cantidad de registros eliminados
        """
        with self._file_lock:
            data = self.get_all()
            kept = [r for r in data if r.get(field) != value]
            removed = len(data) - len(kept)
            if removed:
                self._write_raw(kept)
            return removed
