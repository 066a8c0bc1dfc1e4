# ==============================================================================
# REPOSITORIO DE CONFIGURACIÓN DEL LOCAL
# ==============================================================================
# Encapsula todo el acceso a settings.json
# Almacena parámetros globales como el umbral de stock bajo.
# ==============================================================================

from typing import Any, Dict

from discobar.repositories.base import DictRepository


class SettingsRepository(DictRepository):
    """
    Formato de datos en settings.json:
    {
        "low_stock_threshold": 10
    }
    """

    FILE_NAME = 'settings.json'

    DEFAULTS = {
        'low_stock_threshold': 10,
    }

    def load(self) -> Dict[str, Any]:
        """Configuración completa con valores por defecto aplicados."""
        settings = dict(self.DEFAULTS)
        settings.update(self.get_all())
        return settings

    def get_setting(self, key: str, default: Any = None) -> Any:
        return self.load().get(key, default)

    def set_setting(self, key: str, value: Any) -> None:
        with self._file_lock:
            data = self.get_all()
            data[key] = value
            self.save_all(data)
