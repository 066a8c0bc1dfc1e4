# ==============================================================================
# SERVICIO DE CONFIGURACIÓN
# ==============================================================================
# Parámetros globales del local (hoy: umbral de stock bajo).
# ==============================================================================

import logging
from typing import Any, Dict

from discobar.errors import ValidationError
from discobar.repositories.settings_repository import SettingsRepository
from discobar.validators import to_int

logger = logging.getLogger('discobar.settings')


class SettingsService:

    THRESHOLD_KEY = 'low_stock_threshold'

    def __init__(self, settings_repo: SettingsRepository):
        self.settings_repo = settings_repo

    def get_settings(self) -> Dict[str, Any]:
        return self.settings_repo.load()

    def low_stock_threshold(self) -> int:
        value = to_int(self.settings_repo.get_setting(self.THRESHOLD_KEY))
        if value is None or value < 1:
            return SettingsRepository.DEFAULTS[self.THRESHOLD_KEY]
        return value

    def update_settings(self, low_stock_threshold: Any) -> Dict[str, Any]:
        """
        Guarda el umbral de stock bajo.

        Raises:
            ValidationError: Si el umbral no es un entero >= 1
        """
        if isinstance(low_stock_threshold, bool):
            low_stock_threshold = None
        if isinstance(low_stock_threshold, float) and not low_stock_threshold.is_integer():
            low_stock_threshold = None
        value = to_int(low_stock_threshold)
        if value is None or value < 1:
            raise ValidationError('El umbral debe ser un número mayor a 0')

        self.settings_repo.set_setting(self.THRESHOLD_KEY, value)
        logger.info('Umbral de stock bajo actualizado a %s', value)
        return self.get_settings()
