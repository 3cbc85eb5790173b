# ==============================================================================
# APLICACIÓN FLASK - API JSON del punto de venta
# ==============================================================================
# Capa de presentación delgada: lee el request, llama al servicio y devuelve
# {"ok": true, ...}. Los errores del dominio (ShopError) se convierten en
# {"ok": false, "error": "...", "code": "..."} con su código HTTP.
#
# USO:
#   from shop_ledger.main import create_app
#   app = create_app()                       # config desde variables de entorno
#   app = create_app(container=AppContainer(store=MemoryStore()))   # tests
# ==============================================================================

import logging
from datetime import date

from flask import Flask, Response, request

from shop_ledger.app_container import AppContainer
from shop_ledger.config import Config
from shop_ledger.errors import ShopError, ValidationError
from shop_ledger.exports import procurement_statement_csv, sales_statement_csv
from shop_ledger.formatting import format_amount, format_balance
from shop_ledger.logging_config import setup_logging
from shop_ledger.performance_logger import get_function_stats, init_profiling

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _with_formatted(payload: dict, *keys) -> dict:
    """Agrega payload['formatted'] con los montos en formato lakh/crore."""
    payload['formatted'] = {key: format_amount(payload.get(key)) for key in keys}
    return payload


def _window_args(default_today: date):
    """Lee ?from=&to= (por defecto: hoy)."""
    start = request.args.get('from') or default_today.isoformat()
    end = request.args.get('to') or start
    return start, end


def create_app(config: Config = None, container: AppContainer = None) -> Flask:
    """
    Crea la aplicación Flask con sus servicios ya conectados.

    Args:
        config: Configuración (si es None se usa la del contenedor o el entorno)
        container: Contenedor de dependencias (si es None se crea uno)

    Returns:
        Aplicación Flask lista para servir
    """
    if container is None:
        container = AppContainer(config=config)
    config = config or container.config

    if not config.TESTING:
        setup_logging(config)
    if config.PRODUCTION_MODE and config.SECRET_KEY.startswith('shop_ledger_dev'):
        logger.warning("PRODUCTION_MODE activo sin SHOP_SECRET_KEY definida")

    app = Flask(__name__)
    app.config.update(config.to_flask())
    app.extensions['shop_ledger'] = container
    init_profiling(app, config.ENABLE_PROFILING)

    c = container

    @app.errorhandler(ShopError)
    def _handle_shop_error(exc: ShopError):
        if exc.http_status >= 500:
            logger.error("Error de almacenamiento: %s", exc.message)
        else:
            logger.info("Operación rechazada (%s): %s", exc.code, exc.message)
        return exc.to_dict(), exc.http_status

    def _today() -> date:
        return c.clock().date()

    # ═══════════════════════════════════════════════════════════════════════════
    # SALUD Y PANEL
    # ═══════════════════════════════════════════════════════════════════════════

    @app.route('/api/health')
    def health():
        return {'ok': True, 'status': 'up'}

    @app.route('/api/dashboard')
    def dashboard():
        period = request.args.get('period', 'day')
        totals = c.report_service.dashboard_totals(period).to_dict()
        _with_formatted(totals, 'sales_total', 'profit_total', 'purchases_total')
        return {'ok': True, 'dashboard': totals}

    @app.route('/api/profiling')
    def profiling_stats():
        return {'ok': True, 'functions': get_function_stats()}

    # ═══════════════════════════════════════════════════════════════════════════
    # INVENTARIO
    # ═══════════════════════════════════════════════════════════════════════════

    def _product_payload(product):
        data = product.to_dict()
        data['status'] = c.inventory_service.stock_status(product).value
        return data

    @app.route('/api/products', methods=['GET'])
    def list_products():
        term = request.args.get('q', '')
        field = request.args.get('field', 'any')
        status = request.args.get('status', 'all')
        products = c.inventory_service.search(term, field)
        if status != 'all':
            allowed = {p.barcode for p in c.inventory_service.filter_by_status(status)}
            products = [p for p in products if p.barcode in allowed]
        return {'ok': True, 'products': [_product_payload(p) for p in products]}

    @app.route('/api/products', methods=['POST'])
    def create_product():
        data = _json_body()
        product = c.inventory_service.add_product(
            data.get('barcode'),
            data.get('name'),
            data.get('company'),
            data.get('quantity', 0),
            data.get('purchasePrice', 0),
            data.get('sellingPrice', 0),
        )
        return {'ok': True, 'product': _product_payload(product)}, 201

    @app.route('/api/products/<barcode>', methods=['GET'])
    def get_product(barcode):
        return {'ok': True, 'product': _product_payload(c.inventory_service.get_product(barcode))}

    @app.route('/api/products/<barcode>', methods=['PUT'])
    def update_product(barcode):
        data = _json_body()
        product = c.inventory_service.update_product(
            barcode,
            name=data.get('name'),
            company=data.get('company'),
            purchase_price=data.get('purchasePrice'),
            selling_price=data.get('sellingPrice'),
        )
        return {'ok': True, 'product': _product_payload(product)}

    @app.route('/api/products/<barcode>', methods=['DELETE'])
    def delete_product(barcode):
        product = c.inventory_service.remove_product(barcode)
        return {'ok': True, 'product': product.to_dict()}

    @app.route('/api/products/<barcode>/stock', methods=['POST'])
    def adjust_product_stock(barcode):
        product = c.inventory_service.adjust_stock(barcode, _json_body().get('delta'))
        return {'ok': True, 'product': _product_payload(product)}

    @app.route('/api/inventory/valuation')
    def inventory_valuation():
        valuation = c.inventory_service.inventory_valuation()
        return {'ok': True, 'inventory': _with_formatted(valuation, 'total_value')}

    # ═══════════════════════════════════════════════════════════════════════════
    # VENTA EN CURSO
    # ═══════════════════════════════════════════════════════════════════════════

    def _sale_batch_payload():
        batch = c.sales_service.batch.to_dict()
        return {'ok': True, 'sale': _with_formatted(batch, 'total', 'discount', 'finalTotal')}

    @app.route('/api/sale', methods=['GET'])
    def current_sale():
        return _sale_batch_payload()

    @app.route('/api/sale/lines', methods=['POST'])
    def sale_add_line():
        data = _json_body()
        c.sales_service.add_line(data.get('barcode'), data.get('quantity', 1))
        return _sale_batch_payload()

    @app.route('/api/sale/lines/<barcode>', methods=['DELETE'])
    def sale_remove_line(barcode):
        c.sales_service.remove_line(barcode)
        return _sale_batch_payload()

    @app.route('/api/sale/discount', methods=['POST'])
    def sale_discount():
        c.sales_service.apply_discount(_json_body().get('amount'))
        return _sale_batch_payload()

    @app.route('/api/sale/change', methods=['POST'])
    def sale_change():
        change = c.sales_service.change_due(_json_body().get('received'))
        return {'ok': True, 'change': change, 'formatted': format_amount(change)}

    @app.route('/api/sale/clear', methods=['POST'])
    def sale_clear():
        c.sales_service.clear()
        return _sale_batch_payload()

    @app.route('/api/sale/complete', methods=['POST'])
    def sale_complete():
        sale = c.sales_service.complete()
        return {'ok': True, 'sale': sale.to_dict()}, 201

    # ═══════════════════════════════════════════════════════════════════════════
    # VENTAS REGISTRADAS
    # ═══════════════════════════════════════════════════════════════════════════

    @app.route('/api/sales', methods=['GET'])
    def list_sales():
        return {'ok': True, 'sales': [s.to_dict() for s in c.sales_service.list_sales()]}

    @app.route('/api/sales/<sale_id>', methods=['GET'])
    def get_sale(sale_id):
        return {'ok': True, 'sale': c.sales_service.get_sale(sale_id).to_dict()}

    @app.route('/api/sales/<sale_id>/adjust', methods=['POST'])
    def adjust_sale(sale_id):
        data = _json_body()
        result = c.sales_service.adjust_sale(sale_id, data.get('item_index'), data.get('quantity'))
        return {'ok': True, 'adjustment': result.to_dict()}

    # ═══════════════════════════════════════════════════════════════════════════
    # COMPRAS
    # ═══════════════════════════════════════════════════════════════════════════

    def _procurement_batch_payload():
        batch = c.procurement_service.batch.to_dict()
        return {'ok': True, 'procurement': _with_formatted(batch, 'total')}

    @app.route('/api/procurement', methods=['GET'])
    def current_procurement():
        return _procurement_batch_payload()

    @app.route('/api/procurement/lines', methods=['POST'])
    def procurement_add_line():
        data = _json_body()
        c.procurement_service.add_line(
            data.get('barcode'),
            data.get('quantity'),
            data.get('purchasePrice'),
            data.get('sellingPrice'),
        )
        return _procurement_batch_payload()

    @app.route('/api/procurement/lines/<barcode>', methods=['DELETE'])
    def procurement_remove_line(barcode):
        c.procurement_service.remove_line(barcode)
        return _procurement_batch_payload()

    @app.route('/api/procurement/clear', methods=['POST'])
    def procurement_clear():
        c.procurement_service.clear()
        return _procurement_batch_payload()

    @app.route('/api/procurement/complete', methods=['POST'])
    def procurement_complete():
        procurement = c.procurement_service.complete()
        return {'ok': True, 'procurement': procurement.to_dict()}, 201

    @app.route('/api/procurements', methods=['GET'])
    def list_procurements():
        return {
            'ok': True,
            'procurements': [p.to_dict() for p in c.procurement_service.list_procurements()],
        }

    # ═══════════════════════════════════════════════════════════════════════════
    # SERVICIOS
    # ═══════════════════════════════════════════════════════════════════════════

    @app.route('/api/services', methods=['GET'])
    def list_services():
        return {'ok': True, 'services': [s.to_dict() for s in c.service_catalog_service.list_services()]}

    @app.route('/api/services', methods=['POST'])
    def create_service():
        data = _json_body()
        service = c.service_catalog_service.add_service(data.get('name'), data.get('unit'))
        return {'ok': True, 'service': service.to_dict()}, 201

    @app.route('/api/services/sales', methods=['GET'])
    def list_service_sales():
        sales = c.service_catalog_service.list_service_sales()
        return {'ok': True, 'sales': [s.to_dict() for s in sales]}

    @app.route('/api/services/<service_id>', methods=['DELETE'])
    def delete_service(service_id):
        service = c.service_catalog_service.delete_service(service_id)
        return {'ok': True, 'service': service.to_dict()}

    @app.route('/api/services/<service_id>/sales', methods=['POST'])
    def record_service_sale(service_id):
        data = _json_body()
        sale = c.service_catalog_service.record_service_sale(
            service_id,
            data.get('amount'),
            data.get('quantity', 1),
            data.get('customerName'),
        )
        return {'ok': True, 'sale': sale.to_dict()}, 201

    # ═══════════════════════════════════════════════════════════════════════════
    # GASTOS
    # ═══════════════════════════════════════════════════════════════════════════

    @app.route('/api/expenses', methods=['GET'])
    def list_expenses():
        if request.args.get('from') or request.args.get('to'):
            start, end = _window_args(_today())
            expenses = c.expense_service.expenses_in_range(start, end)
        else:
            expenses = c.expense_service.list_expenses()
        return {'ok': True, 'expenses': [e.to_dict() for e in expenses]}

    @app.route('/api/expenses', methods=['POST'])
    def create_expense():
        data = _json_body()
        expense = c.expense_service.add_expense(data.get('date'), data.get('description'), data.get('amount'))
        return {'ok': True, 'expense': expense.to_dict()}, 201

    @app.route('/api/expenses/<expense_id>', methods=['DELETE'])
    def delete_expense(expense_id):
        expense = c.expense_service.delete_expense(expense_id, _json_body().get('confirmation'))
        return {'ok': True, 'expense': expense.to_dict()}

    # ═══════════════════════════════════════════════════════════════════════════
    # CLIENTES
    # ═══════════════════════════════════════════════════════════════════════════

    @app.route('/api/customers', methods=['GET'])
    def list_customers():
        query = request.args.get('q', '')
        wanted = {cust.id for cust in c.customer_service.search(query)}
        summaries = [s for s in c.customer_service.customer_summaries() if s['id'] in wanted]
        for summary in summaries:
            summary['formatted_balance'] = format_balance(summary['balance'])
        return {'ok': True, 'customers': summaries}

    @app.route('/api/customers', methods=['POST'])
    def create_customer():
        data = _json_body()
        customer = c.customer_service.add_customer(data.get('name'), data.get('phone'), data.get('address', ''))
        return {'ok': True, 'customer': customer.to_dict()}, 201

    @app.route('/api/customers/<customer_id>', methods=['GET'])
    def get_customer(customer_id):
        customer = c.customer_service.get_customer(customer_id)
        balance = c.customer_service.customer_balance(customer_id)
        return {
            'ok': True,
            'customer': customer.to_dict(),
            'balance': balance,
            'formatted_balance': format_balance(balance),
        }

    @app.route('/api/customers/<customer_id>', methods=['PUT'])
    def update_customer(customer_id):
        data = _json_body()
        customer = c.customer_service.update_customer(
            customer_id,
            name=data.get('name'),
            phone=data.get('phone'),
            address=data.get('address'),
        )
        return {'ok': True, 'customer': customer.to_dict()}

    @app.route('/api/customers/<customer_id>', methods=['DELETE'])
    def delete_customer(customer_id):
        customer = c.customer_service.delete_customer(customer_id)
        return {'ok': True, 'customer': customer.to_dict()}

    @app.route('/api/customers/<customer_id>/ledger', methods=['GET'])
    def customer_ledger(customer_id):
        statement = c.customer_service.ledger_statement(customer_id).to_dict()
        statement['formatted_balance'] = format_balance(statement['balance'])
        return {'ok': True, 'statement': statement}

    @app.route('/api/customers/<customer_id>/ledger', methods=['POST'])
    def add_ledger_entry(customer_id):
        data = _json_body()
        entry = c.customer_service.add_transaction(
            customer_id,
            data.get('debit', 0),
            data.get('credit', 0),
            data.get('description'),
        )
        balance = c.customer_service.customer_balance(customer_id)
        return {'ok': True, 'entry': entry.to_dict(), 'balance': balance}, 201

    @app.route('/api/customers/<customer_id>/ledger/<entry_id>', methods=['DELETE'])
    def delete_ledger_entry(customer_id, entry_id):
        entry = c.customer_service.delete_transaction(customer_id, entry_id)
        balance = c.customer_service.customer_balance(customer_id)
        return {'ok': True, 'entry': entry.to_dict(), 'balance': balance}

    # ═══════════════════════════════════════════════════════════════════════════
    # BANCO
    # ═══════════════════════════════════════════════════════════════════════════

    @app.route('/api/bank/transactions', methods=['GET'])
    def list_bank_transactions():
        return {
            'ok': True,
            'transactions': [t.to_dict() for t in c.bank_service.list_transactions()],
            'balance': c.bank_service.balance(),
        }

    @app.route('/api/bank/transactions', methods=['POST'])
    def create_bank_transaction():
        data = _json_body()
        transaction = c.bank_service.add_transaction(
            data.get('date'), data.get('type'), data.get('purpose'), data.get('amount')
        )
        return {'ok': True, 'transaction': transaction.to_dict()}, 201

    @app.route('/api/bank/transactions/<transaction_id>', methods=['DELETE'])
    def delete_bank_transaction(transaction_id):
        transaction = c.bank_service.delete_transaction(transaction_id, _json_body().get('confirmation'))
        return {'ok': True, 'transaction': transaction.to_dict()}

    @app.route('/api/bank/statement')
    def bank_statement():
        statement = c.bank_service.statement(request.args.get('from'), request.args.get('to')).to_dict()
        _with_formatted(statement, 'opening_balance', 'total_deposits', 'total_withdrawals', 'closing_balance')
        return {'ok': True, 'statement': statement}

    # ═══════════════════════════════════════════════════════════════════════════
    # REPORTES
    # ═══════════════════════════════════════════════════════════════════════════

    @app.route('/api/reports/sales')
    def sales_report():
        start, end = _window_args(_today())
        report = c.report_service.sales_in_range(start, end).to_dict()
        _with_formatted(report, 'total_gross', 'total_discount', 'total_net', 'total_profit')
        return {'ok': True, 'report': report}

    @app.route('/api/reports/procurement')
    def procurement_report():
        start, end = _window_args(_today())
        report = c.report_service.procurement_in_range(start, end).to_dict()
        _with_formatted(report, 'total_purchase_value')
        return {'ok': True, 'report': report}

    @app.route('/api/reports/profit-loss')
    def profit_loss_report():
        start, end = _window_args(_today())
        report = c.report_service.profit_and_loss(start, end).to_dict()
        _with_formatted(report, 'sales_income', 'services_income', 'total_income',
                        'total_expenses', 'net_profit')
        return {'ok': True, 'report': report}

    @app.route('/api/reports/expenses')
    def expense_report():
        start, end = _window_args(_today())
        report = c.report_service.expense_report(start, end).to_dict()
        _with_formatted(report, 'total')
        return {'ok': True, 'report': report}

    @app.route('/api/statements/<kind>/export')
    def export_statement(kind):
        start, end = _window_args(_today())
        include_date = start != end
        if kind == 'sales':
            report = c.report_service.sales_in_range(start, end)
            content = sales_statement_csv(report, include_date)
        elif kind == 'procurement':
            report = c.report_service.procurement_in_range(start, end)
            content = procurement_statement_csv(report, include_date)
        else:
            raise ValidationError(f"Tipo de estado desconocido: {kind}")
        filename = f"{kind}_statement_{report.start.isoformat()}_{report.end.isoformat()}.csv"
        return Response(
            content,
            mimetype='text/csv',
            headers={'Content-Disposition': f'attachment;filename={filename}'},
        )

    # ═══════════════════════════════════════════════════════════════════════════
    # CONFIGURACIÓN Y AUDITORÍA
    # ═══════════════════════════════════════════════════════════════════════════

    @app.route('/api/settings', methods=['GET'])
    def get_settings():
        return {'ok': True, 'settings': c.settings_service.get_settings().to_dict()}

    @app.route('/api/settings', methods=['PUT'])
    def update_settings():
        data = _json_body()
        settings = c.settings_service.update_settings(
            shop_name=data.get('shopName'),
            shop_address=data.get('shopAddress'),
            shop_phone=data.get('shopPhone'),
            low_stock_threshold=data.get('lowStockThreshold'),
            currency=data.get('currency'),
            theme=data.get('theme'),
        )
        return {'ok': True, 'settings': settings.to_dict()}

    @app.route('/api/settings/reset', methods=['POST'])
    def reset_data():
        c.reset_all_data(_json_body().get('confirmation'))
        return {'ok': True}

    @app.route('/api/audit')
    def audit_log():
        logs = c.audit_service.get_logs(
            log_type=request.args.get('type') or None,
            query=request.args.get('q') or None,
        )
        return {'ok': True, 'logs': logs}

    return app
