# ==============================================================================
# SERVICIO DE REPORTES Y ESTADOS DE CUENTA
# ==============================================================================
# Proyecciones de solo lectura sobre ventas, compras, gastos e inventario.
# Nunca modifican datos: llamar dos veces da el mismo resultado.
#
# VENTANAS DE FECHA: [desde, hasta] inclusivas, comparando SOLO la fecha
# (la hora se descarta).
#
# DESCUENTO PRORRATEADO (ventas de productos):
#   porción   = (bruto_línea / bruto_venta) × descuento_venta   (0 si bruto_venta = 0)
#   neto      = bruto_línea - porción
#   ganancia  = (precio_venta - precio_compra) × cantidad - porción
#
# VENTAS DE SERVICIO: bruto = neto = monto, ganancia = profit (o monto),
# sin descuento.
# ==============================================================================

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List

from shop_ledger.dates import Clock, in_window, month_start, resolve_window, system_clock
from shop_ledger.errors import ValidationError
from shop_ledger.models import Expense, ProductSale, ServiceSale, money
from shop_ledger.performance_logger import profile_function
from shop_ledger.repositories.interfaces import IListRepository
from shop_ledger.services.inventory_service import InventoryService

logger = logging.getLogger(__name__)

VALID_PERIODS = ('day', 'month')


# ==============================================================================
# ESTRUCTURAS DE RESULTADO
# ==============================================================================

@dataclass
class SalesReportRow:
    """Una fila por línea de venta de producto o por venta de servicio."""
    timestamp: str
    sale_id: str
    kind: str
    description: str
    quantity: float
    purchase_price: float
    selling_price: float
    gross: float
    discount_portion: float
    net: float
    profit: float
    barcode: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': self.timestamp,
            'sale_id': self.sale_id,
            'kind': self.kind,
            'barcode': self.barcode,
            'description': self.description,
            'quantity': self.quantity,
            'purchase_price': self.purchase_price,
            'selling_price': self.selling_price,
            'gross': money(self.gross),
            'discount_portion': money(self.discount_portion),
            'net': money(self.net),
            'profit': money(self.profit),
        }


@dataclass
class SalesReport:
    start: date
    end: date
    rows: List[SalesReportRow] = field(default_factory=list)
    total_gross: float = 0.0
    total_discount: float = 0.0
    total_net: float = 0.0
    total_profit: float = 0.0
    transaction_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'from': self.start.isoformat(),
            'to': self.end.isoformat(),
            'rows': [row.to_dict() for row in self.rows],
            'total_gross': self.total_gross,
            'total_discount': self.total_discount,
            'total_net': self.total_net,
            'total_profit': self.total_profit,
            'transaction_count': self.transaction_count,
        }


@dataclass
class ProcurementReport:
    start: date
    end: date
    rows: List[Dict[str, Any]] = field(default_factory=list)
    total_purchase_value: float = 0.0
    procurement_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'from': self.start.isoformat(),
            'to': self.end.isoformat(),
            'rows': self.rows,
            'total_purchase_value': self.total_purchase_value,
            'procurement_count': self.procurement_count,
        }


@dataclass
class DashboardTotals:
    period: str
    sales_total: float = 0.0
    profit_total: float = 0.0
    transaction_count: int = 0
    purchases_total: float = 0.0
    low_stock_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'period': self.period,
            'sales_total': self.sales_total,
            'profit_total': self.profit_total,
            'transaction_count': self.transaction_count,
            'purchases_total': self.purchases_total,
            'low_stock_count': self.low_stock_count,
        }


@dataclass
class ProfitAndLoss:
    start: date
    end: date
    sales_income: float = 0.0
    services_income: float = 0.0
    total_income: float = 0.0
    total_expenses: float = 0.0
    net_profit: float = 0.0
    expenses: List[Expense] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'from': self.start.isoformat(),
            'to': self.end.isoformat(),
            'sales_income': self.sales_income,
            'services_income': self.services_income,
            'total_income': self.total_income,
            'total_expenses': self.total_expenses,
            'net_profit': self.net_profit,
            'expenses': [e.to_dict() for e in self.expenses],
        }


@dataclass
class ExpenseReport:
    start: date
    end: date
    expenses: List[Expense] = field(default_factory=list)
    total: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'from': self.start.isoformat(),
            'to': self.end.isoformat(),
            'expenses': [e.to_dict() for e in self.expenses],
            'total': self.total,
        }


# ==============================================================================
# SERVICIO
# ==============================================================================

class ReportService:
    """
    Servicio de reportes financieros.

    Responsabilidades:
    - Estado de ventas por rango (bruto, descuento, neto, ganancia)
    - Estado de compras por rango
    - Totales del panel (hoy / mes)
    - Estado de resultados (ingresos - gastos)
    - Reporte de gastos
    """

    def __init__(
        self,
        sales_repo: IListRepository,
        procurement_repo: IListRepository,
        expense_repo: IListRepository,
        inventory_service: InventoryService,
        clock: Clock = None
    ):
        """
        Args:
            sales_repo: Ventas (productos y servicios)
            procurement_repo: Compras
            expense_repo: Gastos
            inventory_service: Para contar productos con stock bajo
            clock: Función que retorna la hora actual ("hoy" de los reportes)
        """
        self.sales_repo = sales_repo
        self.procurement_repo = procurement_repo
        self.expense_repo = expense_repo
        self.inventory_service = inventory_service
        self._clock = clock or system_clock

    def _today(self) -> date:
        return self._clock().date()

    # =========================================================================
    # VENTAS
    # =========================================================================

    @staticmethod
    def _product_sale_rows(sale: ProductSale) -> List[SalesReportRow]:
        sale_gross = sum(item.total for item in sale.items)
        rows = []
        for item in sale.items:
            portion = (item.total / sale_gross) * sale.discount if sale_gross > 0 else 0.0
            rows.append(SalesReportRow(
                timestamp=sale.timestamp,
                sale_id=sale.id,
                kind='product',
                barcode=item.barcode,
                description=item.name,
                quantity=item.quantity,
                purchase_price=item.purchase_price,
                selling_price=item.selling_price,
                gross=item.total,
                discount_portion=portion,
                net=item.total - portion,
                profit=(item.selling_price - item.purchase_price) * item.quantity - portion,
            ))
        return rows

    @staticmethod
    def _service_sale_row(sale: ServiceSale) -> SalesReportRow:
        return SalesReportRow(
            timestamp=sale.timestamp,
            sale_id=sale.id,
            kind='service',
            description=sale.service_name,
            quantity=sale.quantity,
            purchase_price=0.0,
            selling_price=sale.amount,
            gross=sale.amount,
            discount_portion=0.0,
            net=sale.amount,
            profit=sale.profit,
        )

    @profile_function(name="Reporte de ventas")
    def sales_in_range(self, start: Any, end: Any) -> SalesReport:
        """
        Estado de ventas de [start, end].

        Raises:
            ValidationError: fechas inválidas o start > end
        """
        start_date, end_date = resolve_window(start, end)
        rows: List[SalesReportRow] = []
        count = 0
        for sale in self.sales_repo.get_all():
            if not in_window(sale.timestamp, start_date, end_date):
                continue
            count += 1
            if isinstance(sale, ServiceSale):
                rows.append(self._service_sale_row(sale))
            else:
                rows.extend(self._product_sale_rows(sale))

        return SalesReport(
            start=start_date,
            end=end_date,
            rows=rows,
            total_gross=money(sum(r.gross for r in rows)),
            total_discount=money(sum(r.discount_portion for r in rows)),
            total_net=money(sum(r.net for r in rows)),
            total_profit=money(sum(r.profit for r in rows)),
            transaction_count=count,
        )

    def daily_sales(self) -> SalesReport:
        today = self._today()
        return self.sales_in_range(today, today)

    # =========================================================================
    # COMPRAS
    # =========================================================================

    def procurement_in_range(self, start: Any, end: Any) -> ProcurementReport:
        """Estado de compras: suma de totales de línea, sin descuentos."""
        start_date, end_date = resolve_window(start, end)
        rows = []
        count = 0
        for procurement in self.procurement_repo.get_all():
            if not in_window(procurement.timestamp, start_date, end_date):
                continue
            count += 1
            for item in procurement.items:
                rows.append({
                    'timestamp': procurement.timestamp,
                    'procurement_id': procurement.id,
                    'barcode': item.barcode,
                    'name': item.name,
                    'quantity': item.quantity,
                    'purchase_price': item.purchase_price,
                    'selling_price': item.selling_price,
                    'total': item.total,
                })
        return ProcurementReport(
            start=start_date,
            end=end_date,
            rows=rows,
            total_purchase_value=money(sum(r['total'] for r in rows)),
            procurement_count=count,
        )

    def daily_procurement(self) -> ProcurementReport:
        today = self._today()
        return self.procurement_in_range(today, today)

    # =========================================================================
    # PANEL
    # =========================================================================

    def dashboard_totals(self, period: str = 'day') -> DashboardTotals:
        """
        Args:
            period: 'day' (hoy) o 'month' (mes calendario en curso)
        """
        if period not in VALID_PERIODS:
            raise ValidationError(f"Período inválido: {period}")
        today = self._today()
        start = today if period == 'day' else month_start(today)

        sales = self.sales_in_range(start, today)
        purchases = self.procurement_in_range(start, today)
        return DashboardTotals(
            period=period,
            sales_total=sales.total_net,
            profit_total=sales.total_profit,
            transaction_count=sales.transaction_count,
            purchases_total=purchases.total_purchase_value,
            low_stock_count=len(self.inventory_service.low_stock_products()),
        )

    # =========================================================================
    # RESULTADOS Y GASTOS
    # =========================================================================

    def expense_report(self, start: Any, end: Any) -> ExpenseReport:
        start_date, end_date = resolve_window(start, end)
        expenses = [e for e in self.expense_repo.get_all() if in_window(e.date, start_date, end_date)]
        return ExpenseReport(
            start=start_date,
            end=end_date,
            expenses=expenses,
            total=money(sum(e.amount for e in expenses)),
        )

    @profile_function(name="Estado de resultados")
    def profit_and_loss(self, start: Any, end: Any) -> ProfitAndLoss:
        """
        Ingresos por ventas (total final) + servicios - gastos del período.
        """
        start_date, end_date = resolve_window(start, end)
        sales_income = 0.0
        services_income = 0.0
        for sale in self.sales_repo.get_all():
            if not in_window(sale.timestamp, start_date, end_date):
                continue
            if isinstance(sale, ServiceSale):
                services_income += sale.amount
            else:
                sales_income += sale.final_total

        expenses = self.expense_report(start_date, end_date)
        total_income = sales_income + services_income
        return ProfitAndLoss(
            start=start_date,
            end=end_date,
            sales_income=money(sales_income),
            services_income=money(services_income),
            total_income=money(total_income),
            total_expenses=expenses.total,
            net_profit=money(total_income - expenses.total),
            expenses=expenses.expenses,
        )
