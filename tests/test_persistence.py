import json
import os

import pytest

from shop_ledger.app_container import AppContainer
from shop_ledger.config import TestingConfig
from shop_ledger.errors import ConfirmationRequired, StorageError
from shop_ledger.repositories import JsonFileStore, MemoryStore, ProductRepository, persist_all


class FailingStore(MemoryStore):
    """MemoryStore whose writes can be switched to fail."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.fail = False

    def set(self, key, value):
        if self.fail:
            raise OSError('disk full')
        super().set(key, value)


def test_file_store_round_trip(tmp_path, clock):
    store = JsonFileStore(str(tmp_path))
    first = AppContainer(store=store, config=TestingConfig(), clock=clock)
    first.inventory_service.add_product('B1', 'Notebook', 'Navana', 10, 50, 80)
    first.sales_service.add_line('B1', 3)
    sale = first.sales_service.complete()

    assert os.path.exists(tmp_path / 'shop_products.json')
    with open(tmp_path / 'shop_sales.json', encoding='utf-8') as f:
        blob = json.load(f)
    assert blob['schema_version'] == 1
    assert blob['records'][0]['finalTotal'] == 240

    # a new container reads everything back from disk
    second = AppContainer(store=JsonFileStore(str(tmp_path)), config=TestingConfig(), clock=clock)
    assert second.inventory_service.get_product('B1').quantity == 7
    assert second.sales_service.get_sale(sale.id).final_total == 240


def test_missing_key_is_empty_collection(store):
    repo = ProductRepository(store)
    assert repo.get_all() == []


def test_legacy_blob_is_accepted_and_rewritten_with_envelope():
    legacy_products = [{'barcode': 'L1', 'name': 'Old', 'company': 'Acme',
                        'quantity': '4', 'purchasePrice': '2', 'sellingPrice': 3}]
    legacy_sales = [{'id': 's1', 'date': '2023-12-01T10:00:00',
                     'items': [{'barcode': 'L1', 'name': 'Old', 'quantity': 1,
                                'purchasePrice': 2, 'sellingPrice': 3}],
                     'discount': 0, 'finalAmount': 3}]
    store = MemoryStore({
        'shop_products': json.dumps(legacy_products),
        'shop_sales': json.dumps(legacy_sales),
    })
    container = AppContainer(store=store, config=TestingConfig())

    product = container.inventory_service.get_product('L1')
    assert product.quantity == 4
    sale = container.sales_service.get_sale('s1')
    assert sale.timestamp == '2023-12-01T10:00:00'
    assert sale.items[0].total == 3
    assert sale.final_total == 3

    container.inventory_service.adjust_stock('L1', 1)
    rewritten = json.loads(store.data['shop_products'])
    assert rewritten['schema_version'] == 1
    assert rewritten['records'][0]['quantity'] == 5


def test_legacy_ledger_entries_keep_their_id_across_loads():
    store = MemoryStore({
        'shop_customers': json.dumps([{'id': 'c1', 'name': 'Karim', 'phone': '0171'}]),
        'shop_customer_ledgers': json.dumps({'c1': [
            {'timestamp': '2023-11-02T10:00:00', 'description': 'Fiado', 'debit': 500, 'credit': 0},
            {'timestamp': '2023-11-03T10:00:00', 'description': 'Pago', 'debit': 0, 'credit': 200},
        ]}),
    })
    first = AppContainer(store=store, config=TestingConfig())
    listed = [e.id for e in first.customer_service.get_ledger('c1')]
    assert len(set(listed)) == 2

    first.reload()
    assert [e.id for e in first.customer_service.get_ledger('c1')] == listed

    # a fresh process over the same data can delete by the id listed earlier
    second = AppContainer(store=store, config=TestingConfig())
    second.customer_service.delete_transaction('c1', listed[0])

    assert second.customer_service.customer_balance('c1') == -200
    rewritten = json.loads(store.data['shop_customer_ledgers'])
    assert rewritten['records']['c1'][0]['id'] == listed[1]


def test_legacy_products_keyed_by_barcode():
    store = MemoryStore({'shop_products': json.dumps({
        'K1': {'barcode': 'K1', 'name': 'Keyed', 'company': 'C', 'quantity': 1,
               'purchasePrice': 1, 'sellingPrice': 2},
    })})
    assert ProductRepository(store).get('K1').name == 'Keyed'


@pytest.mark.parametrize('raw', [
    '{not json',
    json.dumps({'schema_version': 99, 'records': []}),
    json.dumps({'schema_version': 1, 'records': 'oops'}),
    json.dumps([1, 2, 3]),
])
def test_malformed_collections_raise_storage_error(raw):
    repo = ProductRepository(MemoryStore({'shop_products': raw}))
    with pytest.raises(StorageError) as exc:
        repo.get_all()
    assert exc.value.key == 'shop_products'
    assert exc.value.http_status == 500


def test_failed_write_keeps_memory_and_surfaces_error(clock):
    store = FailingStore()
    container = AppContainer(store=store, config=TestingConfig(), clock=clock)
    container.inventory_service.add_product('B1', 'Notebook', 'Navana', 10, 50, 80)
    container.sales_service.add_line('B1', 3)

    store.fail = True
    with pytest.raises(StorageError):
        container.sales_service.complete()

    # the command was applied in memory even though nothing reached the store
    assert container.inventory_service.get_product('B1').quantity == 7
    assert len(container.sales_service.list_sales()) == 1
    assert json.loads(store.data['shop_products'])['records'][0]['quantity'] == 10


def test_persist_all_runs_every_step_and_raises_first_error():
    calls = []

    def ok():
        calls.append('ok')

    def boom(name):
        def step():
            calls.append(name)
            raise StorageError(name, 'fail')
        return step

    with pytest.raises(StorageError) as exc:
        persist_all(boom('first'), ok, boom('second'))
    assert exc.value.key == 'first'
    assert calls == ['first', 'ok', 'second']


def test_reset_all_data(shop):
    shop.sales_service.add_line('B1', 1)
    shop.sales_service.complete()
    customer = shop.customer_service.add_customer('Rina', '0188')
    shop.customer_service.add_transaction(customer.id, 10, 0, 'Tea')
    shop.bank_service.add_transaction('2024-03-01', 'deposit', 'Cash', 100)
    shop.settings_service.update_settings(shop_name='Renamed', theme='dark')
    shop.sales_service.add_line('B1', 2)

    with pytest.raises(ConfirmationRequired):
        shop.reset_all_data('yes')
    assert len(shop.inventory_service.list_products()) == 1

    shop.reset_all_data('CONFIRM')

    assert shop.inventory_service.list_products() == []
    assert shop.sales_service.list_sales() == []
    assert shop.procurement_service.list_procurements() == []
    assert shop.customer_service.list_customers() == []
    assert shop.ledger_repo.get_ledger(customer.id) == []
    assert shop.bank_service.list_transactions() == []
    assert shop.sales_service.batch.lines == []
    settings = shop.settings_service.get_settings()
    assert settings.shop_name == 'One Stop Cyber Cafe'
    assert settings.theme == 'light'


def test_settings_accept_legacy_dark_mode_key():
    store = MemoryStore({'shop_settings': json.dumps({'shopName': 'Corner', 'darkMode': 'dark'})})
    container = AppContainer(store=store, config=TestingConfig())

    settings = container.settings_service.get_settings()
    assert settings.shop_name == 'Corner'
    assert settings.theme == 'dark'
    assert settings.low_stock_threshold == 10


def test_reload_rereads_store(container, store):
    container.inventory_service.add_product('B1', 'Notebook', 'Navana')
    store.data['shop_products'] = json.dumps({'schema_version': 1, 'records': []})

    assert container.inventory_service.find('B1') is not None
    container.reload()
    assert container.inventory_service.find('B1') is None


def test_stores_and_repositories_satisfy_interfaces(container, tmp_path):
    from shop_ledger.repositories.interfaces import (
        IAuditRepository,
        ICustomerLedgerRepository,
        IKeyValueStore,
        IListRepository,
        IProductRepository,
        IRepository,
        ISettingsRepository,
    )

    assert isinstance(MemoryStore(), IKeyValueStore)
    assert isinstance(JsonFileStore(str(tmp_path)), IKeyValueStore)
    assert isinstance(container.product_repo, IProductRepository)
    assert isinstance(container.sales_repo, IListRepository)
    assert isinstance(container.bank_repo, IListRepository)
    assert isinstance(container.ledger_repo, ICustomerLedgerRepository)
    assert isinstance(container.settings_repo, ISettingsRepository)
    assert isinstance(container.audit_repo, IAuditRepository)
    assert isinstance(container.expense_repo, IRepository)
