"""
shop_ledger - Punto de venta y libros contables para una tienda pequeña.

Inventario, ventas, compras (procurement), servicios, gastos, cuentas de
clientes y libro de banco, persistidos como colecciones JSON.
"""

__version__ = '1.0.0'
