# ==============================================================================
# VALIDACIÓN DE ENTRADAS
# ==============================================================================
# Funciones compartidas por los servicios. Todas lanzan ValidationError con
# un mensaje listo para mostrar; nunca modifican estado.
# ==============================================================================

import math
from typing import Any

from shop_ledger.errors import ConfirmationRequired, ValidationError

CONFIRM_TOKEN = 'CONFIRM'


def require_text(value: Any, label: str) -> str:
    """Texto obligatorio, sin espacios sobrantes."""
    text = '' if value is None else str(value).strip()
    if not text:
        raise ValidationError(f"{label} es obligatorio")
    return text


def optional_text(value: Any, default: str = '') -> str:
    text = '' if value is None else str(value).strip()
    return text or default


def _to_number(value: Any, label: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{label} debe ser numérico")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} debe ser numérico")
    if math.isnan(number) or math.isinf(number):
        raise ValidationError(f"{label} debe ser numérico")
    return number


def require_positive_number(value: Any, label: str) -> float:
    number = _to_number(value, label)
    if number <= 0:
        raise ValidationError(f"{label} debe ser mayor a 0")
    return number


def require_non_negative_number(value: Any, label: str) -> float:
    number = _to_number(value, label)
    if number < 0:
        raise ValidationError(f"{label} no puede ser negativo")
    return number


def _to_int(value: Any, label: str) -> int:
    number = _to_number(value, label)
    if number != int(number):
        raise ValidationError(f"{label} debe ser un número entero")
    return int(number)


def require_positive_int(value: Any, label: str) -> int:
    number = _to_int(value, label)
    if number <= 0:
        raise ValidationError(f"{label} debe ser mayor a 0")
    return number


def require_non_negative_int(value: Any, label: str) -> int:
    number = _to_int(value, label)
    if number < 0:
        raise ValidationError(f"{label} no puede ser negativo")
    return number


def require_confirmation(token: Any) -> None:
    """La palabra CONFIRM, exacta, habilita operaciones destructivas."""
    if token != CONFIRM_TOKEN:
        raise ConfirmationRequired(f"Escriba {CONFIRM_TOKEN} para confirmar la operación")
