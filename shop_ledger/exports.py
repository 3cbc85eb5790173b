# ==============================================================================
# EXPORTACIÓN CSV DE ESTADOS
# ==============================================================================
# Se construye SOLO a partir de las proyecciones de ReportService; no recalcula
# nada por su cuenta.
# ==============================================================================

import csv
import io

from shop_ledger.dates import parse_datetime
from shop_ledger.models import money
from shop_ledger.services.report_service import ProcurementReport, SalesReport

SALES_HEADERS = ['Time', 'Product', 'Quantity', 'Purchase Price', 'Selling Price',
                 'Profit', 'Line Total', 'Discount']
PROCUREMENT_HEADERS = ['Time', 'Product', 'Quantity', 'Purchase Price', 'Selling Price',
                       'Line Total']


def _split_timestamp(timestamp):
    parsed = parse_datetime(timestamp)
    if parsed is None:
        return '', ''
    return parsed.date().isoformat(), parsed.strftime('%H:%M:%S')


def sales_statement_csv(report: SalesReport, include_date: bool = True) -> str:
    """
    Estado de ventas en CSV, una fila por línea y una fila final de totales.

    Args:
        report: Resultado de ReportService.sales_in_range
        include_date: Agregar columna Date (reportes de más de un día)
    """
    si = io.StringIO()
    writer = csv.writer(si)
    writer.writerow((['Date'] if include_date else []) + SALES_HEADERS)
    for row in report.rows:
        day, time_of_day = _split_timestamp(row.timestamp)
        writer.writerow(([day] if include_date else []) + [
            time_of_day,
            row.description,
            row.quantity,
            f"{row.purchase_price:.2f}",
            f"{row.selling_price:.2f}",
            f"{money(row.profit):.2f}",
            f"{money(row.gross):.2f}",
            f"{money(row.discount_portion):.2f}",
        ])
    padding = [''] if include_date else []
    writer.writerow(padding + [
        'TOTAL', '', '', '', '',
        f"{report.total_profit:.2f}",
        f"{report.total_gross:.2f}",
        f"{report.total_discount:.2f}",
    ])
    return si.getvalue()


def procurement_statement_csv(report: ProcurementReport, include_date: bool = True) -> str:
    """Estado de compras en CSV con fila final de total."""
    si = io.StringIO()
    writer = csv.writer(si)
    writer.writerow((['Date'] if include_date else []) + PROCUREMENT_HEADERS)
    for row in report.rows:
        day, time_of_day = _split_timestamp(row['timestamp'])
        writer.writerow(([day] if include_date else []) + [
            time_of_day,
            row['name'],
            row['quantity'],
            f"{row['purchase_price']:.2f}",
            f"{row['selling_price']:.2f}",
            f"{row['total']:.2f}",
        ])
    padding = [''] if include_date else []
    writer.writerow(padding + ['TOTAL', '', '', '', '', f"{report.total_purchase_value:.2f}"])
    return si.getvalue()
