# ==============================================================================
# REPOSITORIO DE CONFIGURACIÓN
# ==============================================================================
# Clave 'shop_settings': un único objeto. Si no existe se usan los valores
# por defecto de ShopSettings.
# ==============================================================================

from typing import Any, Dict

from shop_ledger.errors import StorageError
from shop_ledger.models import ShopSettings

from .base import BaseRepository


class SettingsRepository(BaseRepository):

    KEY = 'shop_settings'

    def __init__(self, store):
        super().__init__(store)
        self._settings = ShopSettings()

    def _empty(self) -> Dict:
        return {}

    def _decode(self, records: Any) -> None:
        if not isinstance(records, dict):
            raise StorageError(self.KEY, "se esperaba un objeto de configuración")
        self._settings = ShopSettings.from_dict(records)

    def _encode(self) -> Dict[str, Any]:
        return self._settings.to_dict()

    def load(self) -> ShopSettings:
        self._ensure_loaded()
        return self._settings

    def update(self, settings: ShopSettings) -> None:
        self._ensure_loaded()
        self._settings = settings
        self.save()
