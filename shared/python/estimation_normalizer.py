"""Numeric normalization of hour estimates.

Three independent transforms; callers compose them in whatever order
their workflow needs. None of them raises for numeric input.
"""

import math

try:
    from .estimation_config import EstimationPolicy
except ImportError:
    from estimation_config import EstimationPolicy


MIN_ROUNDING_STEP = 0.1


def clamp(value: float, policy: EstimationPolicy) -> float:
    """Constrain value into [hard_min_per_item_hours, hard_max_per_item_hours]."""
    return max(policy.hard_min_per_item_hours, min(policy.hard_max_per_item_hours, value))


def round_to_increment(value: float, policy: EstimationPolicy) -> float:
    """Round to the nearest multiple of the configured step.

    Ties round away from zero (0.25 with a 0.5 step becomes 0.5).
    The step is floored at 0.1 so a zero or negative setting cannot
    divide by zero.
    """
    step = max(MIN_ROUNDING_STEP, policy.round_to_nearest_hours)
    scaled = abs(value) / step
    # Infinite or NaN has no nearest multiple; pass it through
    if not math.isfinite(scaled):
        return value
    units = math.floor(scaled + 0.5)
    return math.copysign(units * step, value)


def apply_reference_shrinkage(
    raw: float, reference_median: float | None, policy: EstimationPolicy
) -> float:
    """Pull raw hours towards a historical reference median.

    Without a positive reference median the raw value is returned
    unchanged. Otherwise the result is the lowest of raw, the hard cap
    (median x reference_median_cap_multiplier) and the shrink target
    (median x global_shrinkage_to_median). Never increases raw.

    Args:
        raw: Raw hour estimate
        reference_median: Median hours of comparable past items, if any
        policy: Estimation policy

    Returns:
        Shrunk hour estimate
    """
    if reference_median is None or reference_median <= 0:
        return raw

    capped = min(raw, reference_median * policy.reference_median_cap_multiplier)
    shrink_target = reference_median * policy.global_shrinkage_to_median
    return min(capped, shrink_target)
