# ==============================================================================
# REPOSITORIOS DE VENTAS Y COMPRAS
# ==============================================================================
# 'shop_sales'        -> ventas de productos y de servicios mezcladas
# 'shop_procurements' -> compras a proveedores
# ==============================================================================

from typing import List, Union

from shop_ledger.models import Procurement, ProductSale, ServiceSale, sale_from_dict

from .base import ListRepository

Sale = Union[ProductSale, ServiceSale]


class SalesRepository(ListRepository):
    """
    Ventas en orden de registro. Cada registro es ProductSale o ServiceSale
    (los de servicio llevan "type": "service" en el JSON).
    """

    KEY = 'shop_sales'

    def __init__(self, store):
        super().__init__(store, sale_from_dict)

    def product_sales(self) -> List[ProductSale]:
        return [s for s in self.get_all() if isinstance(s, ProductSale)]

    def service_sales(self) -> List[ServiceSale]:
        return [s for s in self.get_all() if isinstance(s, ServiceSale)]


class ProcurementRepository(ListRepository):
    """Compras en orden de registro."""

    KEY = 'shop_procurements'

    def __init__(self, store):
        super().__init__(store, Procurement.from_dict)
