# demand_planner/utils/math_utils.py
import math
from typing import Any, Iterable, List, Optional, Union

import numpy as np

Number = Union[int, float]


def round_half_up(value: Number, digits: int = 0) -> Number:
    """Round a value with halves rounded towards positive infinity.

    Unlike the built-in ``round``, 2.5 rounds to 3 and -2.5 to -2.

    Args:
        value: Value to round
        digits: Number of decimal places

    Returns:
        Rounded value (int when digits is 0)
    """
    factor = 10 ** digits
    rounded = math.floor(value * factor + 0.5) / factor
    if digits == 0:
        return int(rounded)
    return rounded


def coerce_number(value: Any, allow_negative: bool = True) -> Optional[float]:
    """Convert a raw field value to float.

    Args:
        value: Raw value (number, numeric string, None)
        allow_negative: Whether negative values are acceptable

    Returns:
        Float value, or None if the value is missing or not numeric
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, str):
        value = value.strip().replace(',', '')
        if not value:
            return None

    try:
        number = float(value)
    except (TypeError, ValueError):
        return None

    if math.isnan(number) or math.isinf(number):
        return None

    if not allow_negative and number < 0:
        return None

    return number


def mean(values: Iterable[Number]) -> float:
    """Arithmetic mean, 0.0 for an empty input."""
    values = list(values)
    if not values:
        return 0.0
    return float(np.mean(values))


def population_std_dev(values: Iterable[Number]) -> float:
    """Population standard deviation (divides by N), 0.0 for an empty input."""
    values = list(values)
    if not values:
        return 0.0
    return float(np.std(np.asarray(values, dtype=float), ddof=0))


def clamp(value: float, lower: float = 0.0, upper: float = 1.0) -> float:
    """Limit a value to the closed interval [lower, upper]."""
    return min(upper, max(lower, value))


def moving_average(values: List[float], window: int = 7) -> float:
    """Average of the last ``window`` values.

    Args:
        values: List of values in chronological order
        window: Window size

    Returns:
        Moving average
    """
    if not values:
        return 0.0

    window = max(1, min(window, len(values)))
    return sum(values[-window:]) / window
