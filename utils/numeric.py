"""Numeric coercion helpers shared by the dispatch and cost modules.

Inputs reach the core from free-text forms and CSV files, so every value is
coerced here before it is used. Nothing in this module raises for bad
numbers: invalid entries are replaced by a floor and reported through
``logging`` so a run always produces a complete result.
"""

from __future__ import annotations

import logging
import math
from typing import Any, List, Optional

# Smallest value allowed for quantities that end up in a denominator.
MIN_POSITIVE = 1e-6


def to_float(value: Any) -> Optional[float]:
    """Return ``value`` as a finite float, or ``None`` when it is not one."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def coerce_floor(
    value: Any,
    floor: float,
    name: str,
    ceiling: Optional[float] = None,
) -> float:
    """Return ``value`` raised to ``floor`` (and capped at ``ceiling``).

    Non-numeric, NaN and infinite values are replaced by ``floor``. Any
    adjustment is logged with ``name`` so callers can trace degenerate runs.
    """

    number = to_float(value)
    if number is None:
        logging.getLogger(__name__).warning(
            "%s=%r is not a finite number; using %s", name, value, floor
        )
        return float(floor)
    if number < floor:
        logging.getLogger(__name__).warning(
            "%s=%s is below the allowed minimum; using %s", name, number, floor
        )
        return float(floor)
    if ceiling is not None and number > ceiling:
        logging.getLogger(__name__).warning(
            "%s=%s is above the allowed maximum; using %s", name, number, ceiling
        )
        return float(ceiling)
    return number


def non_negative(value: Any, name: str) -> float:
    """Floor ``value`` at zero."""

    return coerce_floor(value, 0.0, name)


def positive(value: Any, name: str, ceiling: Optional[float] = None) -> float:
    """Floor ``value`` at :data:`MIN_POSITIVE` so it is safe to divide by."""

    return coerce_floor(value, MIN_POSITIVE, name, ceiling=ceiling)


def safe_ratio(numerator: float, denominator: float) -> float:
    """Return ``numerator / denominator`` or 0.0 when the denominator is not positive."""

    if denominator <= 0:
        return 0.0
    return numerator / denominator


def parse_numeric_series(label: str, raw_text: str) -> List[float]:
    """Parse comma/newline separated values, substituting 0.0 for bad entries.

    Blank or unparseable tokens are kept as zeros instead of being dropped so
    that positions (hours) after them do not shift.
    """

    tokens = [token.strip() for token in raw_text.replace(",", "\n").splitlines()]
    if tokens and not tokens[-1]:
        tokens = tokens[:-1]
    series: List[float] = []
    bad_tokens = 0
    for token in tokens:
        number = to_float(token)
        if number is None:
            bad_tokens += 1
            number = 0.0
        series.append(number)
    if bad_tokens:
        logging.getLogger(__name__).warning(
            "%s contains %d blank or non-numeric entries; treating them as 0",
            label,
            bad_tokens,
        )
    return series
