# ==============================================================================
# SISTEMA DE PROFILING INTERNO
# ==============================================================================
# Mide el tiempo de rutas Flask y de operaciones clave (completar venta,
# reportes...) y lo envía al logger 'shop_ledger.performance'.
#
# ACTIVAR/DESACTIVAR: variable de entorno ENABLE_PROFILING (default: activo)
# ==============================================================================

import logging
import os
import threading
import time
from collections import defaultdict
from functools import wraps

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════
# CONFIGURACIÓN
# ═══════════════════════════════════════════════════════════════════════════

ENABLE_PROFILING = os.environ.get('ENABLE_PROFILING', '1').strip().lower() not in ('0', 'false', 'no', 'off')

# Umbrales de tiempo (en milisegundos)
THRESHOLD_WARNING = 300
THRESHOLD_CRITICAL = 700

# Nombres legibles para el log
ROUTE_NAMES = {
    'GET /api/dashboard': 'Ver panel principal',
    'POST /api/products': 'Crear producto',
    'POST /api/sale/lines': 'Agregar a la venta',
    'POST /api/sale/discount': 'Aplicar descuento',
    'POST /api/sale/complete': 'Completar venta',
    'POST /api/sales/<sale_id>/adjust': 'Ajustar venta',
    'POST /api/procurement/complete': 'Completar compra',
    'GET /api/reports/sales': 'Reporte de ventas',
    'GET /api/reports/profit-loss': 'Estado de resultados',
    'GET /api/bank/statement': 'Extracto bancario',
    'GET /api/statements/<kind>/export': 'Exportar CSV',
}


# ═══════════════════════════════════════════════════════════════════════════
# ESTADÍSTICAS DE FUNCIONES (en memoria)
# ═══════════════════════════════════════════════════════════════════════════

# Estructura: {nombre_funcion: {calls: int, total_time: float, max_time: float}}
_function_stats = defaultdict(lambda: {'calls': 0, 'total_time': 0.0, 'max_time': 0.0})
_stats_lock = threading.Lock()


def _get_route_name(method, rule):
    return ROUTE_NAMES.get(f"{method} {rule}", f"{method} {rule}")


def _log_elapsed(label, time_ms):
    """Nivel del log según los umbrales."""
    if time_ms >= THRESHOLD_CRITICAL:
        logger.error("MUY LENTO: %s - %.0f ms (umbral %d ms)", label, time_ms, THRESHOLD_CRITICAL)
    elif time_ms >= THRESHOLD_WARNING:
        logger.warning("LENTO: %s - %.0f ms (umbral %d ms)", label, time_ms, THRESHOLD_WARNING)
    else:
        logger.debug("%s - %.0f ms", label, time_ms)


# ═══════════════════════════════════════════════════════════════════════════
# 1️⃣ HOOKS PARA FLASK (before/after request)
# ═══════════════════════════════════════════════════════════════════════════

def init_profiling(app, enabled=None):
    """
    Registra hooks before_request / after_request que miden cada petición.

    Args:
        app: Aplicación Flask
        enabled: Forzar activado/desactivado (None = usar ENABLE_PROFILING)
    """
    if not (ENABLE_PROFILING if enabled is None else enabled):
        return

    from flask import g, request

    @app.before_request
    def _start_timer():
        g.start_time = time.perf_counter()

    @app.after_request
    def _log_request(response):
        if not hasattr(g, 'start_time'):
            return response
        elapsed = (time.perf_counter() - g.start_time) * 1000
        rule = str(request.url_rule) if request.url_rule else request.path
        _log_elapsed(f"{_get_route_name(request.method, rule)} [{response.status_code}]", elapsed)
        return response


# ═══════════════════════════════════════════════════════════════════════════
# 2️⃣ DECORADOR PARA FUNCIONES CLAVE
# ═══════════════════════════════════════════════════════════════════════════

def profile_function(func=None, name=None):
    """
    Decorador para medir operaciones críticas.

    Uso:
        @profile_function
        def mi_funcion():
            ...

        @profile_function(name="Completar venta")
        def complete(self):
            ...
    """
    def decorator(fn):
        if not ENABLE_PROFILING:
            return fn

        func_name = name or fn.__qualname__

        @wraps(fn)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                elapsed_ms = (time.perf_counter() - start) * 1000
                with _stats_lock:
                    stats = _function_stats[func_name]
                    stats['calls'] += 1
                    stats['total_time'] += elapsed_ms
                    if elapsed_ms > stats['max_time']:
                        stats['max_time'] = elapsed_ms
                if elapsed_ms >= THRESHOLD_WARNING:
                    _log_elapsed(func_name, elapsed_ms)

        return wrapper

    # Permitir uso sin paréntesis: @profile_function
    if func is not None:
        return decorator(func)
    return decorator


# ═══════════════════════════════════════════════════════════════════════════
# 3️⃣ REPORTE DE ESTADÍSTICAS
# ═══════════════════════════════════════════════════════════════════════════

def get_function_stats():
    """
    Returns:
        dict: {nombre: {calls, avg_time, max_time}}
    """
    with _stats_lock:
        result = {}
        for func_name, stats in _function_stats.items():
            calls = stats['calls']
            avg = stats['total_time'] / calls if calls > 0 else 0
            result[func_name] = {
                'calls': calls,
                'avg_time': round(avg, 2),
                'max_time': round(stats['max_time'], 2)
            }
        return result


def reset_stats():
    """Reinicia todas las estadísticas (útil para testing)"""
    with _stats_lock:
        _function_stats.clear()
