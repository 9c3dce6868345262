from __future__ import annotations

from datetime import datetime, date, timezone

from core.errors import ValidationError


def iso_today() -> str:
    return date.today().isoformat()


def iso_now() -> str:
    # Use UTC ISO timestamps for consistency.
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def money(value: float) -> float:
    return round(float(value), 2)


def fmt_money(value: float) -> str:
    return f"{float(value):,.2f}"


def day_bounds(start: date | str, end: date | str) -> tuple[str, str]:
    """Inclusive [start 00:00:00, end 23:59:59] as UTC ISO strings."""
    s = start if isinstance(start, date) else date.fromisoformat(str(start))
    e = end if isinstance(end, date) else date.fromisoformat(str(end))
    lo = datetime(s.year, s.month, s.day, tzinfo=timezone.utc)
    hi = datetime(e.year, e.month, e.day, 23, 59, 59, tzinfo=timezone.utc)
    return lo.isoformat(), hi.isoformat()


def safe_div(n: float, d: float) -> float:
    return float(n) / float(d) if d else 0.0


def whole_number(value, label: str = "Quantity") -> int:
    """int(value), refusing bools, fractions and non-numeric input."""
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be a whole number.")
    try:
        n = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"{label} must be a whole number.")
    if not isinstance(value, str) and n != value:
        raise ValidationError(f"{label} must be a whole number.")
    return n


def positive_int(value, label: str = "Quantity") -> int:
    n = whole_number(value, label)
    if n <= 0:
        raise ValidationError(f"{label} must be > 0.")
    return n
