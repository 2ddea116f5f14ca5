from __future__ import annotations

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation


def parse_decimal(value: object) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Cannot parse decimal from bool")
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    if isinstance(value, str):
        return Decimal(value.strip().replace(",", "."))
    raise TypeError(f"Cannot parse decimal from {type(value)!r}")


def format_decimal(value: Decimal) -> str:
    """Render without exponent and without trailing zero padding."""

    normalized = format(value, "f")
    if "." in normalized:
        normalized = normalized.rstrip("0").rstrip(".")
    if normalized in {"", "-0"}:
        return "0"
    return normalized


def _to_places(value: object, places: int | None, rounding: str) -> str:
    try:
        amount = parse_decimal(value)
    except (TypeError, InvalidOperation) as exc:
        raise ValueError(f"Invalid numeric value: {value!r}") from exc
    if places is None:
        return format_decimal(amount)
    quantum = Decimal("1").scaleb(-places)
    return format_decimal(amount.quantize(quantum, rounding=rounding))


def truncate_to_places(value: object, places: int | None) -> str:
    return _to_places(value, places, ROUND_DOWN)


def round_to_places(value: object, places: int | None) -> str:
    return _to_places(value, places, ROUND_HALF_UP)
