import os
import sys
from datetime import datetime, timedelta

import pytest

# ensure project root is on sys.path when running from tests/ folder
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from shop_ledger.app_container import AppContainer
from shop_ledger.config import TestingConfig
from shop_ledger.main import create_app
from shop_ledger.repositories import MemoryStore


class FrozenClock:
    """Callable clock whose time only moves when a test moves it."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def set(self, *args):
        self.now = datetime(*args)

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FrozenClock(datetime(2024, 3, 15, 10, 30, 0))


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def container(store, clock):
    return AppContainer(store=store, config=TestingConfig(), clock=clock)


@pytest.fixture
def shop(container):
    """Container with product B1 (qty 10, purchase 50, selling 80)."""
    container.inventory_service.add_product('B1', 'Notebook', 'Navana', 10, 50, 80)
    return container


@pytest.fixture
def app(container):
    return create_app(container=container)


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c
