# ==============================================================================
# SERVICIO DE CATÁLOGO DE SERVICIOS
# ==============================================================================
# Servicios reutilizables (fotocopia, impresión, escaneo...) y sus ventas.
# Una venta de servicio no toca stock y se guarda en la misma colección que
# las ventas de productos, con "type": "service".
# ==============================================================================

import logging
from typing import Any, List

from shop_ledger.dates import Clock, system_clock
from shop_ledger.errors import NotFound
from shop_ledger.models import Service, ServiceSale, money, new_id
from shop_ledger.repositories.interfaces import IListRepository
from shop_ledger.services.audit_service import AuditService
from shop_ledger.services.validators import optional_text, require_positive_number, require_text

logger = logging.getLogger(__name__)


class ServiceCatalogService:
    """
    Servicio para definiciones de servicios y registro de ventas de servicio.
    """

    def __init__(
        self,
        service_repo: IListRepository,
        sales_repo: IListRepository,
        audit_service: AuditService = None,
        clock: Clock = None
    ):
        self.service_repo = service_repo
        self.sales_repo = sales_repo
        self.audit_service = audit_service
        self._clock = clock or system_clock

    # =========================================================================
    # DEFINICIONES
    # =========================================================================

    def list_services(self) -> List[Service]:
        return self.service_repo.get_all()

    def get_service(self, service_id: str) -> Service:
        service = self.service_repo.find_by_id(service_id)
        if service is None:
            raise NotFound('Servicio', service_id)
        return service

    def add_service(self, name: str, unit: str) -> Service:
        """
        Args:
            name: Nombre del servicio
            unit: Unidad de cobro (página, hora, copia...)
        """
        service = Service(
            id=new_id(),
            name=require_text(name, 'El nombre del servicio'),
            unit=require_text(unit, 'La unidad'),
            created_date=self._clock().isoformat(),
        )
        self.service_repo.append(service)
        logger.info("Servicio creado %s (%s)", service.name, service.unit)
        return service

    def delete_service(self, service_id: str) -> Service:
        """Las ventas ya registradas conservan el nombre del servicio."""
        removed = self.service_repo.remove(service_id)
        if removed is None:
            raise NotFound('Servicio', service_id)
        logger.info("Servicio eliminado %s", removed.name)
        return removed

    # =========================================================================
    # VENTAS DE SERVICIO
    # =========================================================================

    def record_service_sale(
        self,
        service_id: str,
        amount: Any,
        quantity: Any = 1,
        customer_name: str = None
    ) -> ServiceSale:
        """
        Registra una venta de servicio. La ganancia es el monto completo.

        Raises:
            NotFound: servicio inexistente
            ValidationError: monto o cantidad <= 0
        """
        service = self.get_service(service_id)
        amount = money(require_positive_number(amount, 'El monto'))
        quantity = 1 if quantity in (None, '') else require_positive_number(quantity, 'La cantidad')

        sale = ServiceSale(
            id=new_id(),
            timestamp=self._clock().isoformat(),
            service_id=service.id,
            service_name=service.name,
            unit=service.unit or 'N/A',
            quantity=quantity,
            customer_name=optional_text(customer_name, 'N/A'),
            amount=amount,
            profit=amount,
        )
        self.sales_repo.append(sale)
        logger.info("Venta de servicio %s: %s %.2f", sale.id, service.name, amount)
        if self.audit_service:
            self.audit_service.log_service_sale(sale.id, service.name, amount)
        return sale

    def list_service_sales(self) -> List[ServiceSale]:
        return [s for s in self.sales_repo.get_all() if isinstance(s, ServiceSale)]
