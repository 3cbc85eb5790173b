# ==============================================================================
# SERVICIO DE CONFIGURACIÓN DE LA TIENDA
# ==============================================================================

import logging
from dataclasses import replace
from typing import Any, List

from shop_ledger.errors import ValidationError
from shop_ledger.models import VALID_THEMES, ShopSettings
from shop_ledger.repositories import persist_all
from shop_ledger.services.audit_service import AuditService
from shop_ledger.services.validators import optional_text, require_confirmation, require_non_negative_int

logger = logging.getLogger(__name__)


class SettingsService:
    """
    Identidad de la tienda, umbral de stock bajo, tema y reinicio de datos.
    """

    def __init__(self, settings_repo, data_repos: List = None, audit_service: AuditService = None):
        """
        Args:
            settings_repo: Repositorio de configuración
            data_repos: Repositorios que se vacían en reset_all_data
            audit_service: Servicio de auditoría (opcional)
        """
        self.settings_repo = settings_repo
        self.data_repos = list(data_repos or [])
        self.audit_service = audit_service

    def get_settings(self) -> ShopSettings:
        return self.settings_repo.load()

    def update_settings(
        self,
        shop_name: str = None,
        shop_address: str = None,
        shop_phone: str = None,
        low_stock_threshold: Any = None,
        currency: str = None,
        theme: str = None
    ) -> ShopSettings:
        """Actualiza solo los campos enviados."""
        current = self.settings_repo.load()
        updates = {}
        if shop_name is not None:
            updates['shop_name'] = optional_text(shop_name, current.shop_name)
        if shop_address is not None:
            updates['shop_address'] = optional_text(shop_address)
        if shop_phone is not None:
            updates['shop_phone'] = optional_text(shop_phone)
        if low_stock_threshold is not None:
            updates['low_stock_threshold'] = require_non_negative_int(low_stock_threshold, 'El umbral de stock bajo')
        if currency is not None:
            updates['currency'] = str(currency)
        if theme is not None:
            if theme not in VALID_THEMES:
                raise ValidationError(f"Tema inválido: {theme}")
            updates['theme'] = theme

        settings = replace(current, **updates)
        self.settings_repo.update(settings)
        logger.info("Configuración actualizada: %s", sorted(updates))
        return settings

    def reset_all_data(self, confirmation: Any) -> None:
        """
        Borra TODAS las colecciones y restaura la configuración por defecto.
        Requiere la palabra CONFIRM.
        """
        require_confirmation(confirmation)
        steps = [repo.clear for repo in self.data_repos]
        steps.append(lambda: self.settings_repo.update(ShopSettings()))
        persist_all(*steps)
        logger.warning("Se reiniciaron todos los datos de la tienda")
        if self.audit_service:
            self.audit_service.log_system("Todos los datos fueron reiniciados")
