# ==============================================================================
# UTILIDADES DE FECHAS
# ==============================================================================
# Los reportes comparan SOLO la fecha (sin hora) para que un movimiento hecho
# en el día límite no quede fuera por la zona horaria.
# ==============================================================================

from datetime import date, datetime
from typing import Any, Callable, Optional, Tuple

from shop_ledger.errors import ValidationError

Clock = Callable[[], datetime]


def system_clock() -> datetime:
    """Hora local actual (sin zona horaria)."""
    return datetime.now()


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parsea un timestamp ISO. Retorna None si no puede parsear.

    Los timestamps con zona (p.ej. '...Z' de datos antiguos) se pasan a hora
    local y se les quita la zona.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip().replace('Z', '+00:00'))
        except (ValueError, TypeError):
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def to_date(value: Any) -> Optional[date]:
    """Fecha (sin hora) de un date, datetime o string ISO; None si es inválida."""
    if isinstance(value, datetime):
        return parse_datetime(value).date()
    if isinstance(value, date):
        return value
    parsed = parse_datetime(value)
    return parsed.date() if parsed else None


def require_date(value: Any, field_name: str = 'fecha') -> date:
    """Como to_date pero lanza ValidationError si falta o es inválida."""
    result = to_date(value)
    if result is None:
        raise ValidationError(f"La {field_name} es obligatoria y debe tener formato AAAA-MM-DD")
    return result


def resolve_window(start: Any, end: Any) -> Tuple[date, date]:
    """
    Normaliza una ventana [start, end] inclusiva.

    Raises:
        ValidationError: si alguna fecha es inválida o start > end
    """
    start_date = require_date(start, 'fecha inicial')
    end_date = require_date(end, 'fecha final')
    if start_date > end_date:
        raise ValidationError("La fecha inicial no puede ser posterior a la fecha final")
    return start_date, end_date


def in_window(value: Any, start: date, end: date) -> bool:
    """True si la fecha de value está dentro de [start, end] (inclusivo)."""
    day = to_date(value)
    return day is not None and start <= day <= end


def month_start(day: date) -> date:
    return day.replace(day=1)
