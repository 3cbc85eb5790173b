# ==============================================================================
# CAPA DE MODELOS - Estructuras de datos del sistema
# ==============================================================================
# Entidades del dominio como dataclasses, independientes de la persistencia.
# ==============================================================================

from .entities import (
    # Inventario
    Product,
    StockStatus,

    # Ventas y compras
    LineItem,
    ProductSale,
    ServiceSale,
    Procurement,
    BatchState,
    sale_from_dict,

    # Servicios y gastos
    Service,
    Expense,

    # Clientes
    Customer,
    LedgerEntry,

    # Banco
    BankTransaction,
    BankTransactionType,

    # Configuración
    ShopSettings,
    VALID_THEMES,

    # Helpers
    new_id,
    money,
    to_float,
    to_int,
)

__all__ = [
    'Product', 'StockStatus',
    'LineItem', 'ProductSale', 'ServiceSale', 'Procurement', 'BatchState', 'sale_from_dict',
    'Service', 'Expense',
    'Customer', 'LedgerEntry',
    'BankTransaction', 'BankTransactionType',
    'ShopSettings', 'VALID_THEMES',
    'new_id', 'money', 'to_float', 'to_int',
]
