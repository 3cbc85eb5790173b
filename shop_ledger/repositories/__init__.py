# ==============================================================================
# CAPA DE REPOSITORIOS - Acceso a datos
# ==============================================================================
# Una clase por colección persistida. Todas hablan con un almacén clave-valor
# (JsonFileStore en disco, MemoryStore en tests).
# ==============================================================================

from .base import BaseRepository, JsonFileStore, ListRepository, MemoryStore, SCHEMA_VERSION, persist_all
from .inventory_repository import ProductRepository
from .sales_repository import ProcurementRepository, SalesRepository
from .catalog_repository import ExpenseRepository, ServiceRepository
from .customer_repository import CustomerLedgerRepository, CustomerRepository
from .bank_repository import BankRepository
from .settings_repository import SettingsRepository
from .audit_repository import AuditRepository

__all__ = [
    'BaseRepository',
    'ListRepository',
    'JsonFileStore',
    'MemoryStore',
    'SCHEMA_VERSION',
    'persist_all',
    'ProductRepository',
    'SalesRepository',
    'ProcurementRepository',
    'ServiceRepository',
    'ExpenseRepository',
    'CustomerRepository',
    'CustomerLedgerRepository',
    'BankRepository',
    'SettingsRepository',
    'AuditRepository',
]
