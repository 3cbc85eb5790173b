import json
import logging

from shop_ledger import performance_logger
from shop_ledger.config import Config
from shop_ledger.logging_config import JsonFormatter, setup_logging
from shop_ledger.main import create_app


def test_json_formatter_emits_one_object_per_record():
    record = logging.LogRecord('shop_ledger.sales', logging.INFO, __file__, 1,
                               'Venta %s registrada', ('abc',), None)
    payload = json.loads(JsonFormatter().format(record))

    assert payload['level'] == 'INFO'
    assert payload['logger'] == 'shop_ledger.sales'
    assert payload['message'] == 'Venta abc registrada'


def test_setup_logging_reads_level_and_format(monkeypatch):
    monkeypatch.setenv('LOG_LEVEL', 'warning')
    monkeypatch.setenv('LOG_JSON', '1')
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        setup_logging(Config())
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


def test_profile_function_collects_stats(monkeypatch):
    monkeypatch.setattr(performance_logger, 'ENABLE_PROFILING', True)
    performance_logger.reset_stats()

    @performance_logger.profile_function(name='Operación de prueba')
    def work(x):
        return x * 2

    assert work(21) == 42
    assert work(1) == 2
    stats = performance_logger.get_function_stats()
    assert stats['Operación de prueba']['calls'] == 2
    performance_logger.reset_stats()


def test_profile_function_disabled_returns_undecorated(monkeypatch):
    monkeypatch.setattr(performance_logger, 'ENABLE_PROFILING', False)

    def work():
        return 'ok'

    assert performance_logger.profile_function(work) is work


def test_request_hooks_only_when_enabled(container):
    app = create_app(container=container)
    assert not app.before_request_funcs.get(None)

    performance_logger.init_profiling(app, enabled=True)
    assert app.before_request_funcs[None]
    with app.test_client() as client:
        assert client.get('/api/health').status_code == 200
