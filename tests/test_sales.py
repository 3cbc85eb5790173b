import logging

import pytest

from shop_ledger.errors import (
    EmptySale,
    ExceedsQuantity,
    InsufficientStock,
    InvalidDiscount,
    NotFound,
    ValidationError,
)
from shop_ledger.models import BatchState, LineItem, ProductSale


def test_complete_sale_deducts_stock_and_records_sale(shop, clock):
    sales = shop.sales_service
    sales.add_line('B1', 3)

    assert sales.batch.gross == 240
    sale = sales.complete()

    assert shop.inventory_service.get_product('B1').quantity == 7
    assert sale.total == 240
    assert sale.discount == 0
    assert sale.final_total == 240
    assert sale.timestamp == clock().isoformat()
    assert len(sales.list_sales()) == 1
    # a fresh empty batch is opened
    assert sales.batch.state == BatchState.EMPTY


def test_discount_reduces_final_total(shop):
    sales = shop.sales_service
    sales.add_line('B1', 3)
    sales.apply_discount(40)
    sale = sales.complete()

    assert sale.total == 240
    assert sale.discount == 40
    assert sale.final_total == 200


def test_adding_same_product_merges_lines(shop):
    sales = shop.sales_service
    sales.add_line('B1', 2)
    sales.add_line('B1', 3)

    assert len(sales.batch.lines) == 1
    assert sales.batch.lines[0].quantity == 5
    assert sales.batch.lines[0].total == 400


def test_merged_quantity_cannot_exceed_stock(shop):
    sales = shop.sales_service
    sales.add_line('B1', 8)

    with pytest.raises(InsufficientStock) as exc:
        sales.add_line('B1', 3)
    assert exc.value.requested == 11
    assert exc.value.available == 10
    assert sales.batch.lines[0].quantity == 8


@pytest.mark.parametrize('qty', [0, -1, 'two', 1.5])
def test_add_line_rejects_bad_quantity(shop, qty):
    with pytest.raises(ValidationError):
        shop.sales_service.add_line('B1', qty)
    assert shop.sales_service.batch.lines == []


def test_add_line_unknown_barcode(shop):
    with pytest.raises(NotFound):
        shop.sales_service.add_line('ZZZ', 1)


def test_complete_revalidates_stock(shop):
    sales = shop.sales_service
    sales.add_line('B1', 6)
    # stock changed after the line was added
    shop.inventory_service.adjust_stock('B1', -5)

    with pytest.raises(InsufficientStock):
        sales.complete()

    assert shop.inventory_service.get_product('B1').quantity == 5
    assert sales.list_sales() == []
    assert sales.batch.state == BatchState.BUILDING


def test_complete_empty_sale(shop):
    with pytest.raises(EmptySale):
        shop.sales_service.complete()


def test_discount_rules(shop):
    sales = shop.sales_service
    with pytest.raises(EmptySale):
        sales.apply_discount(10)

    sales.add_line('B1', 1)
    with pytest.raises(InvalidDiscount):
        sales.apply_discount(-1)
    with pytest.raises(InvalidDiscount):
        sales.apply_discount(81)
    with pytest.raises(InvalidDiscount):
        sales.apply_discount(float('nan'))
    with pytest.raises(ValidationError):
        sales.apply_discount('ten')

    sales.apply_discount(80)
    assert sales.batch.final_total == 0
    # a new discount replaces the previous one
    sales.apply_discount(15)
    assert sales.batch.discount == 15
    assert sales.batch.final_total == 65


def test_removing_line_resets_oversized_discount(shop):
    shop.inventory_service.add_product('P1', 'Pen', 'Matador', 10, 5, 10)
    sales = shop.sales_service
    sales.add_line('B1', 1)
    sales.add_line('P1', 2)
    sales.apply_discount(50)

    sales.remove_line('B1')

    assert sales.batch.gross == 20
    assert sales.batch.discount == 0


def test_removing_last_line_resets_discount(shop):
    sales = shop.sales_service
    sales.add_line('B1', 1)
    sales.apply_discount(5)
    sales.remove_line('B1')

    assert sales.batch.state == BatchState.EMPTY
    assert sales.batch.discount == 0
    with pytest.raises(NotFound):
        sales.remove_line('B1')


def test_change_due(shop):
    sales = shop.sales_service
    sales.add_line('B1', 2)
    sales.apply_discount(10)
    assert sales.change_due(200) == 50
    assert sales.change_due(100) == -50


def test_clear_has_no_side_effects(shop):
    sales = shop.sales_service
    sales.add_line('B1', 4)
    sales.clear()

    assert sales.batch.state == BatchState.EMPTY
    assert shop.inventory_service.get_product('B1').quantity == 10
    assert sales.list_sales() == []


def test_committed_batch_is_detached(shop, caplog):
    caplog.set_level(logging.INFO, logger='shop_ledger.services.sales_service')
    sales = shop.sales_service
    sales.add_line('B1', 1)
    batch = sales.batch
    assert batch.to_dict()['state'] == 'building'
    sale = sales.complete()

    assert batch.state == BatchState.COMMITTED
    assert sales.batch is not batch
    assert sales.batch.to_dict()['state'] == 'empty'
    assert f"Venta {sale.id} registrada (committed)" in caplog.text


def test_stock_never_negative_across_sales(shop):
    sales = shop.sales_service
    for _ in range(3):
        sales.add_line('B1', 3)
        sales.complete()
    assert shop.inventory_service.get_product('B1').quantity == 1
    with pytest.raises(InsufficientStock):
        sales.add_line('B1', 2)


# ----------------------------------------------------------------------------
# adjust_sale
# ----------------------------------------------------------------------------

def _sale_with_two_lines(shop):
    shop.inventory_service.add_product('P1', 'Pen', 'Matador', 10, 5, 10)
    sales = shop.sales_service
    sales.add_line('B1', 3)
    sales.add_line('P1', 4)
    sales.apply_discount(20)
    return sales.complete()


def test_adjust_sale_partial_return(shop):
    sale = _sale_with_two_lines(shop)
    assert sale.total == 280

    result = shop.sales_service.adjust_sale(sale.id, 0, 1)

    assert result.sale_deleted is False
    assert result.quantity_removed == 1
    assert result.removed_item.total == 80
    assert shop.inventory_service.get_product('B1').quantity == 8
    stored = shop.sales_service.get_sale(sale.id)
    assert stored.items[0].quantity == 2
    assert stored.items[0].total == 160
    assert stored.total == 200
    assert stored.discount == 20
    assert stored.final_total == 180


def test_adjust_sale_full_line_removes_line(shop):
    sale = _sale_with_two_lines(shop)

    shop.sales_service.adjust_sale(sale.id, 1, 4)

    stored = shop.sales_service.get_sale(sale.id)
    assert [i.barcode for i in stored.items] == ['B1']
    assert stored.total == 240
    assert shop.inventory_service.get_product('P1').quantity == 10


def test_adjust_sale_clamps_discount(shop):
    sale = _sale_with_two_lines(shop)
    shop.sales_service.adjust_sale(sale.id, 0, 3)

    stored = shop.sales_service.get_sale(sale.id)
    assert stored.total == 40
    assert stored.discount == 20
    assert stored.final_total == 20

    shop.sales_service.adjust_sale(sale.id, 0, 3)
    stored = shop.sales_service.get_sale(sale.id)
    assert stored.total == 10
    assert stored.discount == 10
    assert stored.final_total == 0


def test_adjust_sale_removing_everything_deletes_sale(shop):
    shop.sales_service.add_line('B1', 2)
    sale = shop.sales_service.complete()

    result = shop.sales_service.adjust_sale(sale.id, 0, 2)

    assert result.sale_deleted is True
    assert shop.sales_service.list_sales() == []
    assert shop.inventory_service.get_product('B1').quantity == 10


def test_adjust_sale_errors(shop):
    shop.sales_service.add_line('B1', 2)
    sale = shop.sales_service.complete()

    with pytest.raises(ExceedsQuantity):
        shop.sales_service.adjust_sale(sale.id, 0, 3)
    with pytest.raises(ValidationError):
        shop.sales_service.adjust_sale(sale.id, 0, 0)
    with pytest.raises(NotFound):
        shop.sales_service.adjust_sale(sale.id, 5, 1)
    with pytest.raises(NotFound):
        shop.sales_service.adjust_sale('missing', 0, 1)

    assert shop.sales_service.get_sale(sale.id).items[0].quantity == 2
    assert shop.inventory_service.get_product('B1').quantity == 8


def test_adjust_sale_of_deleted_product_skips_restock(shop):
    shop.sales_service.add_line('B1', 2)
    sale = shop.sales_service.complete()
    shop.inventory_service.remove_product('B1')

    result = shop.sales_service.adjust_sale(sale.id, 0, 1)

    assert result.sale.items[0].quantity == 1
    assert shop.inventory_service.find('B1') is None


def test_adjust_service_sale_is_rejected(shop):
    service = shop.service_catalog_service.add_service('Printing', 'page')
    sale = shop.service_catalog_service.record_service_sale(service.id, 30)

    with pytest.raises(NotFound):
        shop.sales_service.adjust_sale(sale.id, 0, 1)


def test_recalculate_limits_discount_to_total():
    sale = ProductSale(id='s1', timestamp='', discount=50,
                       items=[LineItem('B1', 'Notebook', 2, 50, 15, 30)])

    sale.recalculate()

    assert sale.total == 30
    assert sale.discount == 30
    assert sale.final_total == 0
