"""Range validation for raw sensor values."""

from __future__ import annotations

import math
from typing import Any, Optional

from models.metrics import DO, EC, ORP, PH, TDS, TEMP, TURBIDITY, MetricSpec


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number):
        return None
    return number


def validate(value: Any, minimum: float, maximum: float) -> Optional[float]:
    """Clamp ``value`` into ``[minimum, maximum]`` and round to 2 decimals.

    Returns ``None`` for absent or non-numeric input, never raises.
    """
    number = _to_float(value)
    if number is None:
        return None
    clamped = min(max(number, minimum), maximum)
    return round(clamped, 2)


def validate_metric(metric: MetricSpec, value: Any) -> Optional[float]:
    return validate(value, metric.minimum, metric.maximum)


def validate_ph(value: Any) -> Optional[float]:
    return validate_metric(PH, value)


def validate_ec(value: Any) -> Optional[float]:
    return validate_metric(EC, value)


def validate_do(value: Any) -> Optional[float]:
    return validate_metric(DO, value)


def validate_orp(value: Any) -> Optional[float]:
    return validate_metric(ORP, value)


def validate_turbidity(value: Any) -> Optional[float]:
    return validate_metric(TURBIDITY, value)


def validate_tds(value: Any) -> Optional[float]:
    return validate_metric(TDS, value)


def validate_temp(value: Any) -> Optional[float]:
    return validate_metric(TEMP, value)


def to_optional_int(value: Any) -> Optional[int]:
    number = _to_float(value)
    if number is None:
        return None
    return int(number)
