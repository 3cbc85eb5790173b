import json
from datetime import date

import pytest

from shop_ledger.app_container import AppContainer
from shop_ledger.config import TestingConfig
from shop_ledger.errors import ValidationError
from shop_ledger.repositories import MemoryStore


def _sell(container, lines, discount=0):
    sales = container.sales_service
    for barcode, qty in lines:
        sales.add_line(barcode, qty)
    if discount:
        sales.apply_discount(discount)
    return sales.complete()


@pytest.fixture
def two_products(container):
    container.inventory_service.add_product('A', 'Alpha', 'Acme', 20, 60, 100)
    container.inventory_service.add_product('B', 'Beta', 'Acme', 20, 20, 50)
    return container


def test_discount_is_apportioned_by_line_gross(two_products):
    _sell(two_products, [('A', 2), ('B', 2)], discount=30)

    report = two_products.report_service.sales_in_range('2024-03-15', '2024-03-15')

    portions = {r.barcode: r.discount_portion for r in report.rows}
    assert portions['A'] == pytest.approx(20)
    assert portions['B'] == pytest.approx(10)
    assert report.total_gross == 300
    assert report.total_discount == 30
    assert report.total_net == 270
    assert report.total_profit == 110
    assert report.transaction_count == 1


def test_zero_gross_sale_has_no_discount_portion():
    legacy = [{
        'id': 's0',
        'timestamp': '2024-03-15T09:00:00',
        'items': [{'barcode': 'F', 'name': 'Freebie', 'quantity': 1,
                   'purchasePrice': 0, 'sellingPrice': 0, 'total': 0}],
        'total': 0, 'discount': 0, 'finalTotal': 0,
    }]
    store = MemoryStore({'shop_sales': json.dumps(legacy)})
    container = AppContainer(store=store, config=TestingConfig())

    report = container.report_service.sales_in_range('2024-03-15', '2024-03-15')

    assert report.rows[0].discount_portion == 0
    assert report.total_net == 0


def test_window_is_inclusive_and_ignores_time(two_products, clock):
    clock.set(2024, 3, 1, 0, 0, 1)
    _sell(two_products, [('A', 1)])
    clock.set(2024, 3, 31, 23, 59, 59)
    _sell(two_products, [('B', 1)])
    clock.set(2024, 4, 1, 0, 0, 0)
    _sell(two_products, [('B', 1)])

    report = two_products.report_service.sales_in_range(date(2024, 3, 1), date(2024, 3, 31))

    assert report.transaction_count == 2
    assert report.total_gross == 150


def test_service_sales_are_flat(container):
    catalog = container.service_catalog_service
    service = catalog.add_service('Photocopy', 'page')
    catalog.record_service_sale(service.id, 40, quantity=20, customer_name='Rahim')

    report = container.report_service.sales_in_range('2024-03-15', '2024-03-15')

    row = report.rows[0]
    assert row.kind == 'service'
    assert row.gross == row.net == 40
    assert row.discount_portion == 0
    assert row.profit == 40


def test_legacy_service_sale_uses_date_and_amount_as_profit():
    legacy = [{'id': 'x1', 'type': 'service', 'date': '2024-03-10T12:00:00',
               'serviceId': 'svc', 'serviceName': 'Scan', 'amount': 25}]
    container = AppContainer(store=MemoryStore({'shop_sales': json.dumps(legacy)}),
                             config=TestingConfig())

    report = container.report_service.sales_in_range('2024-03-10', '2024-03-10')

    assert report.transaction_count == 1
    assert report.total_profit == 25
    sale = container.sales_service.get_sale('x1')
    assert sale.timestamp == '2024-03-10T12:00:00'
    assert sale.unit == 'N/A'
    assert sale.quantity == 1


def test_start_after_end_is_rejected(container):
    with pytest.raises(ValidationError):
        container.report_service.sales_in_range('2024-03-20', '2024-03-10')
    with pytest.raises(ValidationError):
        container.report_service.procurement_in_range('not-a-date', '2024-03-10')


def test_reports_are_idempotent(two_products):
    _sell(two_products, [('A', 1), ('B', 3)], discount=7)
    reports = two_products.report_service

    first = reports.sales_in_range('2024-03-01', '2024-03-31').to_dict()
    second = reports.sales_in_range('2024-03-01', '2024-03-31').to_dict()

    assert first == second


def test_procurement_statement(two_products, clock):
    two_products.procurement_service.add_line('A', 5, 55, 100)
    two_products.procurement_service.complete()

    report = two_products.report_service.daily_procurement()

    # two implicit procurements from product creation plus one completed
    assert report.procurement_count == 3
    assert report.total_purchase_value == 20 * 60 + 20 * 20 + 5 * 55


def test_dashboard_day_and_month(two_products, clock):
    _sell(two_products, [('A', 1)])
    clock.set(2024, 3, 2, 9, 0, 0)
    _sell(two_products, [('B', 2)], discount=10)
    clock.set(2024, 3, 15, 18, 0, 0)

    day = two_products.report_service.dashboard_totals('day')
    month = two_products.report_service.dashboard_totals('month')

    assert day.sales_total == 100
    assert day.transaction_count == 1
    assert month.sales_total == 190
    assert month.profit_total == 40 + 60 - 10
    assert month.transaction_count == 2
    with pytest.raises(ValidationError):
        two_products.report_service.dashboard_totals('year')


def test_dashboard_counts_low_stock(two_products):
    two_products.inventory_service.adjust_stock('A', -15)
    assert two_products.report_service.dashboard_totals().low_stock_count == 1


def test_profit_and_loss(two_products):
    _sell(two_products, [('A', 2)], discount=50)
    catalog = two_products.service_catalog_service
    service = catalog.add_service('Printing', 'page')
    catalog.record_service_sale(service.id, 30)
    two_products.expense_service.add_expense('2024-03-15', 'Electricity', 45.5)
    two_products.expense_service.add_expense('2024-02-28', 'Rent', 1000)

    pnl = two_products.report_service.profit_and_loss('2024-03-01', '2024-03-31')

    assert pnl.sales_income == 150
    assert pnl.services_income == 30
    assert pnl.total_income == 180
    assert pnl.total_expenses == 45.5
    assert pnl.net_profit == 134.5
    assert [e.description for e in pnl.expenses] == ['Electricity']


def test_expense_report(container):
    container.expense_service.add_expense('2024-03-01', 'Paper', 200)
    container.expense_service.add_expense('2024-03-05', 'Ink', 350)

    report = container.report_service.expense_report('2024-03-05', '2024-03-31')

    assert report.total == 350
    assert [e.description for e in report.expenses] == ['Ink']


@pytest.mark.parametrize('discount', [0.01, 1, 33.33, 123.45, 349.99])
def test_portions_add_up_to_sale_discount(two_products, discount):
    sale = _sell(two_products, [('A', 3), ('B', 1)], discount=discount)

    report = two_products.report_service.sales_in_range('2024-03-15', '2024-03-15')

    assert sum(r.discount_portion for r in report.rows) == pytest.approx(discount)
    assert sale.final_total == pytest.approx(sale.total - sale.discount)
