import logging

import pytest

from shop_ledger.errors import EmptyBatch, NotFound, ValidationError
from shop_ledger.models import BatchState


def test_repeated_lines_merge_with_first_prices(shop):
    proc = shop.procurement_service
    proc.add_line('B1', 2, 10, 15)
    proc.add_line('B1', 3, 12, 18)

    assert len(proc.batch.lines) == 1
    line = proc.batch.lines[0]
    assert line.quantity == 5
    assert line.purchase_price == 10
    assert line.total == 50
    assert proc.batch.total == 50


def test_complete_adds_stock_and_overwrites_prices(shop, clock):
    proc = shop.procurement_service
    proc.add_line('B1', 5, 55, 90)

    procurement = proc.complete()

    product = shop.inventory_service.get_product('B1')
    assert product.quantity == 15
    assert product.purchase_price == 55
    assert product.selling_price == 90
    assert procurement.total == 275
    assert procurement.timestamp == clock().isoformat()
    assert proc.batch.state == BatchState.EMPTY
    # implicit procurement from product creation plus this one
    assert len(proc.list_procurements()) == 2
    assert proc.get_procurement(procurement.id).items[0].quantity == 5


def test_complete_empty_batch(shop):
    with pytest.raises(EmptyBatch):
        shop.procurement_service.complete()


@pytest.mark.parametrize('qty, purchase, selling', [
    (0, 10, 15),
    (2, 0, 15),
    (2, 10, -1),
    ('x', 10, 15),
])
def test_add_line_requires_positive_values(shop, qty, purchase, selling):
    with pytest.raises(ValidationError):
        shop.procurement_service.add_line('B1', qty, purchase, selling)
    assert shop.procurement_service.batch.lines == []


def test_add_line_unknown_product(shop):
    with pytest.raises(NotFound):
        shop.procurement_service.add_line('NOPE', 1, 1, 2)


def test_product_deleted_before_complete(shop):
    proc = shop.procurement_service
    proc.add_line('B1', 1, 10, 20)
    shop.inventory_service.remove_product('B1')

    with pytest.raises(NotFound):
        proc.complete()
    assert len(proc.list_procurements()) == 1


def test_remove_line_and_clear(shop):
    shop.inventory_service.add_product('P1', 'Pen', 'Matador')
    proc = shop.procurement_service
    proc.add_line('B1', 1, 10, 20)
    proc.add_line('P1', 4, 2, 5)

    proc.remove_line('B1')
    assert [l.barcode for l in proc.batch.lines] == ['P1']

    proc.clear()
    assert proc.batch.state == BatchState.EMPTY
    assert shop.inventory_service.get_product('P1').quantity == 0


def test_completion_logs_committed_batch(shop, caplog):
    caplog.set_level(logging.INFO, logger='shop_ledger.services.procurement_service')
    proc = shop.procurement_service
    proc.add_line('B1', 1, 50, 80)
    batch = proc.batch

    procurement = proc.complete()

    assert batch.state == BatchState.COMMITTED
    assert proc.batch is not batch
    assert f"Compra {procurement.id} registrada (committed)" in caplog.text
