# ==============================================================================
# CAPA DE SERVICIOS - Lógica de negocio
# ==============================================================================
# Los servicios reciben sus repositorios por constructor (ver app_container.py)
# y no saben nada de Flask ni del formato de almacenamiento.
# ==============================================================================

from .audit_service import AuditService
from .inventory_service import InventoryService
from .sales_service import AdjustmentResult, SaleBatch, SalesService
from .procurement_service import ProcurementBatch, ProcurementService
from .service_catalog_service import ServiceCatalogService
from .expense_service import ExpenseService
from .customer_service import CustomerService, LedgerStatement, balance
from .bank_service import BankService, BankStatement
from .report_service import (
    DashboardTotals,
    ExpenseReport,
    ProcurementReport,
    ProfitAndLoss,
    ReportService,
    SalesReport,
    SalesReportRow,
)
from .settings_service import SettingsService

__all__ = [
    'AuditService',
    'InventoryService',
    'SalesService', 'SaleBatch', 'AdjustmentResult',
    'ProcurementService', 'ProcurementBatch',
    'ServiceCatalogService',
    'ExpenseService',
    'CustomerService', 'LedgerStatement', 'balance',
    'BankService', 'BankStatement',
    'ReportService', 'SalesReport', 'SalesReportRow', 'ProcurementReport',
    'DashboardTotals', 'ProfitAndLoss', 'ExpenseReport',
    'SettingsService',
]
