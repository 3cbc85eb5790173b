# ==============================================================================
# FORMATO DE MONTOS - Agrupación sudasiática (lakh / crore)
# ==============================================================================
# 1234567.8 -> "12,34,567.80"
# Últimos 3 dígitos en un grupo, luego grupos de 2. Sin símbolo de moneda.
# ==============================================================================

import math
from typing import Any


def format_amount(amount: Any) -> str:
    """
    Formatea un monto con 2 decimales y agrupación lakh/crore.

    Nunca falla: None, NaN, infinito o valores no numéricos -> "0.00".

    Args:
        amount: Monto (int, float, str numérico o None)

    Returns:
        Cadena formateada, p.ej. "-12,34,567.80"
    """
    try:
        value = float(amount)
    except (TypeError, ValueError):
        return "0.00"
    if math.isnan(value) or math.isinf(value):
        return "0.00"

    text = f"{abs(value):.2f}"
    integer_part, decimals = text.split('.')
    negative = value < 0 and text != "0.00"

    if len(integer_part) > 3:
        head, tail = integer_part[:-3], integer_part[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        integer_part = ','.join(groups + [tail])

    return f"{'-' if negative else ''}{integer_part}.{decimals}"


def format_balance(balance: Any) -> str:
    """
    Saldo de cliente para mostrar: positivo = el cliente debe.

    Returns:
        "500.00 (due)" o "200.00 (advance)"
    """
    try:
        value = float(balance)
    except (TypeError, ValueError):
        value = 0.0
    suffix = "due" if value > 0 else "advance"
    return f"{format_amount(abs(value))} ({suffix})"
