# ==============================================================================
# REPOSITORIOS DE SERVICIOS Y GASTOS
# ==============================================================================

from shop_ledger.models import Expense, Service

from .base import ListRepository


class ServiceRepository(ListRepository):
    """Definiciones de servicios ('shop_services')."""

    KEY = 'shop_services'

    def __init__(self, store):
        super().__init__(store, Service.from_dict)


class ExpenseRepository(ListRepository):
    """Gastos del negocio. La clave conserva el nombre de la versión web."""

    KEY = 'cyber_cafe_expenses'

    def __init__(self, store):
        super().__init__(store, Expense.from_dict)
