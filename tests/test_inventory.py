import pytest

from shop_ledger.errors import DuplicateKey, InsufficientStock, NotFound, ValidationError
from shop_ledger.models import StockStatus


def test_add_product_with_stock_records_implicit_procurement(container):
    product = container.inventory_service.add_product('B1', 'Notebook', 'Navana', 10, 50, 80)

    assert product.quantity == 10
    procurements = container.procurement_service.list_procurements()
    assert len(procurements) == 1
    line = procurements[0].items[0]
    assert line.barcode == 'B1'
    assert line.quantity == 10
    assert procurements[0].total == pytest.approx(500)
    # the implicit procurement does not add stock a second time
    assert container.inventory_service.get_product('B1').quantity == 10


def test_add_product_without_stock_records_no_procurement(container):
    container.inventory_service.add_product('P0', 'Pen', 'Matador')
    assert container.procurement_service.list_procurements() == []


def test_duplicate_barcode_rejected(shop):
    with pytest.raises(DuplicateKey) as exc:
        shop.inventory_service.add_product('B1', 'Other', 'Acme', 1, 1, 2)
    assert exc.value.key == 'B1'
    assert len(shop.inventory_service.list_products()) == 1


@pytest.mark.parametrize('kwargs', [
    dict(barcode='', name='X', company='Y'),
    dict(barcode='X1', name='  ', company='Y'),
    dict(barcode='X1', name='X', company=''),
    dict(barcode='X1', name='X', company='Y', quantity=-1),
    dict(barcode='X1', name='X', company='Y', purchase_price=-5),
    dict(barcode='X1', name='X', company='Y', selling_price='abc'),
    dict(barcode='X1', name='X', company='Y', quantity=1.5),
])
def test_add_product_validation(container, kwargs):
    with pytest.raises(ValidationError):
        container.inventory_service.add_product(**kwargs)
    assert container.inventory_service.list_products() == []


def test_search_is_case_insensitive_substring(container):
    inv = container.inventory_service
    inv.add_product('8901', 'Blue Pen', 'Matador')
    inv.add_product('8902', 'Red pen', 'Econo')
    inv.add_product('7700', 'Stapler', 'Kangaro')

    assert {p.barcode for p in inv.search('PEN')} == {'8901', '8902'}
    assert {p.barcode for p in inv.search('890', field='barcode')} == {'8901', '8902'}
    assert inv.search('890', field='name') == []
    assert {p.barcode for p in inv.search('kang', field='any')} == {'7700'}
    assert len(inv.search('')) == 3
    with pytest.raises(ValidationError):
        inv.search('x', field='color')


def test_stock_status_uses_threshold(container):
    inv = container.inventory_service
    inv.add_product('A', 'Out', 'C', 0)
    inv.add_product('B', 'Low', 'C', 5)
    inv.add_product('C', 'Edge', 'C', 10)
    inv.add_product('D', 'In', 'C', 11)

    statuses = {p.barcode: inv.stock_status(p) for p in inv.list_products()}
    assert statuses == {
        'A': StockStatus.OUT_OF_STOCK,
        'B': StockStatus.LOW_STOCK,
        'C': StockStatus.LOW_STOCK,
        'D': StockStatus.IN_STOCK,
    }
    assert {p.barcode for p in inv.low_stock_products()} == {'B', 'C'}
    assert [p.barcode for p in inv.filter_by_status('out-of-stock')] == ['A']

    container.settings_service.update_settings(low_stock_threshold=5)
    assert {p.barcode for p in inv.low_stock_products()} == {'B'}


def test_adjust_stock(shop):
    inv = shop.inventory_service
    assert inv.adjust_stock('B1', 5).quantity == 15
    assert inv.adjust_stock('B1', -15).quantity == 0

    with pytest.raises(InsufficientStock):
        inv.adjust_stock('B1', -1)
    assert inv.get_product('B1').quantity == 0

    with pytest.raises(NotFound):
        inv.adjust_stock('NOPE', 1)


def test_update_product_keeps_quantity(shop):
    product = shop.inventory_service.update_product('B1', name='Notebook A4', selling_price=85)
    assert product.name == 'Notebook A4'
    assert product.selling_price == 85
    assert product.quantity == 10


def test_remove_product_keeps_history(shop):
    shop.sales_service.add_line('B1', 2)
    sale = shop.sales_service.complete()

    shop.inventory_service.remove_product('B1')

    assert shop.inventory_service.find('B1') is None
    stored = shop.sales_service.get_sale(sale.id)
    assert stored.items[0].name == 'Notebook'
    assert stored.items[0].selling_price == 80
    with pytest.raises(NotFound):
        shop.inventory_service.remove_product('B1')


def test_inventory_valuation(container):
    inv = container.inventory_service
    inv.add_product('A', 'Pen', 'C', 4, 5, 10)
    inv.add_product('B', 'Book', 'C', 2, 100, 150.5)

    valuation = inv.inventory_valuation()

    assert valuation['total_products'] == 2
    assert valuation['total_value'] == pytest.approx(4 * 10 + 2 * 150.5)
    assert valuation['rows'][0]['status'] == 'low-stock'
    assert valuation['rows'][1]['stock_value'] == inv.get_product('B').stock_value == 301
