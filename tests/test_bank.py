import json

import pytest

from shop_ledger.app_container import AppContainer
from shop_ledger.config import TestingConfig
from shop_ledger.errors import ConfirmationRequired, NotFound, ValidationError
from shop_ledger.repositories import MemoryStore


@pytest.fixture
def bank(container):
    service = container.bank_service
    service.add_transaction('2024-03-01', 'deposit', 'Opening cash', 2000)
    service.add_transaction('2024-03-05', 'withdrawal', 'Supplier', 500)
    service.add_transaction('2024-03-20', 'deposit', 'Sales', 200)
    service.add_transaction('2024-03-10', 'withdrawal', 'Rent', 300)
    return service


def test_transactions_are_kept_in_date_order(bank):
    assert [t.date for t in bank.list_transactions()] == [
        '2024-03-01', '2024-03-05', '2024-03-10', '2024-03-20',
    ]


def test_same_day_keeps_insertion_order(container):
    bank = container.bank_service
    bank.add_transaction('2024-03-02', 'deposit', 'Second day', 10)
    bank.add_transaction('2024-03-01', 'deposit', 'First', 20)
    bank.add_transaction('2024-03-01', 'withdrawal', 'Then', 5)

    assert [t.purpose for t in bank.list_transactions()] == ['First', 'Then', 'Second day']


def test_statement_with_window(bank):
    statement = bank.statement('2024-03-10', '2024-03-31')

    assert statement.opening_balance == 1500
    assert [row['balance'] for row in statement.rows] == [1200, 1400]
    assert statement.total_deposits == 200
    assert statement.total_withdrawals == 300
    assert statement.closing_balance == 1400


def test_statement_without_window(bank):
    statement = bank.statement()

    assert statement.opening_balance == 0
    assert len(statement.rows) == 4
    assert statement.closing_balance == bank.balance() == 1400


def test_statement_rejects_inverted_window(bank):
    with pytest.raises(ValidationError):
        bank.statement('2024-03-31', '2024-03-01')


@pytest.mark.parametrize('date, tx_type, purpose, amount', [
    ('', 'deposit', 'x', 10),
    ('2024-03-01', 'transfer', 'x', 10),
    ('2024-03-01', 'deposit', '', 10),
    ('2024-03-01', 'deposit', 'x', 0),
    ('2024-03-01', 'deposit', 'x', -10),
])
def test_add_transaction_validation(container, date, tx_type, purpose, amount):
    with pytest.raises(ValidationError):
        container.bank_service.add_transaction(date, tx_type, purpose, amount)
    assert container.bank_service.list_transactions() == []


def test_delete_requires_exact_confirm(bank):
    target = bank.list_transactions()[0]

    for token in ('confirm', 'CONFIRM ', '', None):
        with pytest.raises(ConfirmationRequired):
            bank.delete_transaction(target.id, token)
    assert len(bank.list_transactions()) == 4

    bank.delete_transaction(target.id, 'CONFIRM')
    assert len(bank.list_transactions()) == 3
    assert bank.balance() == -600

    with pytest.raises(NotFound):
        bank.delete_transaction(target.id, 'CONFIRM')


def test_unsorted_stored_data_is_sorted_on_load():
    raw = [
        {'id': 'b', 'date': '2024-02-10', 'type': 'withdrawal', 'purpose': 'x', 'amount': 5},
        {'id': 'a', 'date': '2024-01-10', 'type': 'deposit', 'purpose': 'y', 'amount': 50},
    ]
    container = AppContainer(store=MemoryStore({'bankTransactions': json.dumps(raw)}),
                             config=TestingConfig())

    assert [t.id for t in container.bank_service.list_transactions()] == ['a', 'b']
    assert container.bank_service.balance() == 45
