"""Small numeric helpers shared by the scoring components.

Rounding is half-up (towards positive infinity on .5) rather than Python's
banker's rounding, so that 72.5 always scores as 73 and -2.5 as -2.
"""

import math
from collections.abc import Iterable, Sequence

from jira_health.core.errors import InvalidScoreError


def require_finite(value: float, name: str = "value") -> float:
    """Return ``value`` as a float, raising if it is NaN or infinite.

    Raises:
        InvalidScoreError: If the value is not a finite number.
    """
    number = float(value)
    if not math.isfinite(number):
        raise InvalidScoreError(f"{name} must be a finite number, got {value!r}")
    return number


def clamp(value: float, lower: float = 0.0, upper: float = 100.0) -> float:
    """Clamp ``value`` into the closed interval [lower, upper]."""
    return max(lower, min(upper, value))


def round_half_up(value: float, digits: int = 0) -> float:
    """Round to ``digits`` decimals with .5 always rounding upwards.

    Args:
        value: Number to round.
        digits: Decimal places to keep.

    Returns:
        The rounded value. Integral results are still returned as floats.
    """
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def round_int(value: float) -> int:
    """Half-up rounding to the nearest integer."""
    return int(math.floor(value + 0.5))


def mean(values: Iterable[float]) -> float:
    """Arithmetic mean; 0.0 for an empty input."""
    items = list(values)
    if not items:
        return 0.0
    return sum(items) / len(items)


def weighted_mean(pairs: Sequence[tuple[float, float]], default: float = 0.0) -> float:
    """Mean of ``(value, weight)`` pairs normalised by the total weight.

    Returns ``default`` when the total weight is zero.
    """
    total_weight = sum(weight for _, weight in pairs)
    if total_weight == 0:
        return default
    return sum(value * weight for value, weight in pairs) / total_weight


# Acklam's rational approximation of the inverse standard normal CDF.
_A = (-39.69683028665376, 220.9460984245205, -275.9285104469687,
      138.3577518672690, -30.66479806614716, 2.506628277459239)
_B = (-54.47609879822406, 161.5858368580409, -155.6989798598866,
      66.80131188771972, -13.28068155288572)
_C = (-0.007784894002430293, -0.3223964580411365, -2.400758277161838,
      -2.549732539343734, 4.374664141464968, 2.938163982698783)
_D = (0.007784695709041462, 0.3224671290700398, 2.445134137142996,
      3.754408661907416)
_P_LOW = 0.02425


def inverse_normal_cdf(p: float) -> float:
    """Return z such that the standard normal CDF at z equals ``p``.

    Probabilities at or beyond the open interval (0, 1) saturate to -3 / +3.
    """
    if p <= 0:
        return -3.0
    if p >= 1:
        return 3.0
    if p < _P_LOW:
        q = math.sqrt(-2 * math.log(p))
        return (((((_C[0] * q + _C[1]) * q + _C[2]) * q + _C[3]) * q + _C[4]) * q + _C[5]) / (
            (((_D[0] * q + _D[1]) * q + _D[2]) * q + _D[3]) * q + 1
        )
    if p <= 1 - _P_LOW:
        q = p - 0.5
        r = q * q
        return (
            (((((_A[0] * r + _A[1]) * r + _A[2]) * r + _A[3]) * r + _A[4]) * r + _A[5]) * q
        ) / (((((_B[0] * r + _B[1]) * r + _B[2]) * r + _B[3]) * r + _B[4]) * r + 1)
    q = math.sqrt(-2 * math.log(1 - p))
    return -(((((_C[0] * q + _C[1]) * q + _C[2]) * q + _C[3]) * q + _C[4]) * q + _C[5]) / (
        (((_D[0] * q + _D[1]) * q + _D[2]) * q + _D[3]) * q + 1
    )
