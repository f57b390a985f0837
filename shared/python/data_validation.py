"""Data validation utilities for the estimation engine.

Provides centralized validation functions for policy, mapping and
assessment structures. Validators return lists of messages; the
ensure_* helpers raise with the full list attached as details.
"""

import math
from numbers import Real
from typing import Any, Iterable, List

try:
    from .error_handling import ErrorHandler
    from .exceptions import EstimationEngineError, ValidationError
except ImportError:
    from error_handling import ErrorHandler
    from exceptions import EstimationEngineError, ValidationError


SIZE_BAND_NAMES = ("xs", "s", "m", "l", "xl")

TRUE_STRINGS = ("true", "1", "yes", "y", "on")
FALSE_STRINGS = ("false", "0", "no", "n", "off")


def is_finite_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def parse_bool(
    value: Any,
    field_name: str,
    default: bool,
    error_class: type[EstimationEngineError] = ValidationError,
) -> bool:
    """Interpret a stored flag.

    Accepts booleans, 0/1 and the usual true/false spellings ("false",
    "no", "0", ...). None yields default.

    Args:
        value: Raw value from a parsed document
        field_name: Name used in the error message
        default: Result for None
        error_class: Exception raised for anything else

    Returns:
        Parsed flag
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
    raise error_class(f"{field_name} must be a boolean, got {value!r}", value)


# Config Validation Functions

def validate_policy(policy: Any) -> List[str]:
    """Validate an estimation policy.

    Args:
        policy: EstimationPolicy (or any object with the same attributes)

    Returns:
        List of validation error messages
    """
    errors = []

    hard_min = policy.hard_min_per_item_hours
    hard_max = policy.hard_max_per_item_hours
    if not is_finite_number(hard_min) or not is_finite_number(hard_max):
        errors.append("hard_min_per_item_hours and hard_max_per_item_hours must be finite numbers")
    else:
        if hard_min < 0:
            errors.append(f"hard_min_per_item_hours must not be negative, got {hard_min}")
        if hard_min > hard_max:
            errors.append(
                f"hard_min_per_item_hours ({hard_min}) must not exceed "
                f"hard_max_per_item_hours ({hard_max})"
            )

    for category, bands in policy.base_hours_by_category.items():
        values = bands.as_tuple()
        if not all(is_finite_number(v) and v >= 0 for v in values):
            errors.append(f"Size bands for '{category}' must be non-negative numbers")
            continue
        for (low_name, low), (high_name, high) in zip(
            zip(SIZE_BAND_NAMES, values), zip(SIZE_BAND_NAMES[1:], values[1:])
        ):
            if low > high:
                errors.append(
                    f"Size bands for '{category}' must ascend: "
                    f"{low_name}={low} exceeds {high_name}={high}"
                )

    crud = policy.crud_multipliers
    for name in ("create", "read", "update", "delete"):
        value = getattr(crud, name)
        if not is_finite_number(value) or value <= 0:
            errors.append(f"crud_multipliers.{name} must be a positive number, got {value}")

    weights = policy.signal_weights
    for name in (
        "per_field_hours",
        "per_integration_hours",
        "file_upload_hours",
        "auth_roles_hours",
        "workflow_step_hours",
    ):
        value = getattr(weights, name)
        if not is_finite_number(value) or value < 0:
            errors.append(f"signal_weights.{name} must not be negative, got {value}")

    for name in ("reference_median_cap_multiplier", "global_shrinkage_to_median"):
        value = getattr(policy, name)
        if not is_finite_number(value) or value <= 0:
            errors.append(f"{name} must be a positive number, got {value}")

    threshold = policy.justification_score_threshold
    if not is_finite_number(threshold) or not 0 <= threshold <= 1:
        errors.append(f"justification_score_threshold must lie in [0, 1], got {threshold}")

    if not is_finite_number(policy.round_to_nearest_hours):
        errors.append("round_to_nearest_hours must be a finite number")

    return errors


def validate_mappings(item_activities: Iterable[Any], column_roles: Iterable[Any]) -> List[str]:
    """Validate item->activity and column->role mapping rows.

    Args:
        item_activities: ItemActivityMapping rows
        column_roles: EstimationColumnRoleMapping rows

    Returns:
        List of validation error messages
    """
    errors = []

    for index, mapping in enumerate(item_activities):
        if not (mapping.activity_name or "").strip():
            errors.append(f"item_activities[{index}] has no activity_name")
        if not (mapping.item_name or "").strip() and not (mapping.section_name or "").strip():
            errors.append(f"item_activities[{index}] needs an item_name or a section_name")

    for index, mapping in enumerate(column_roles):
        if not (mapping.estimation_column or "").strip():
            errors.append(f"estimation_column_roles[{index}] has no estimation_column")
        if not (mapping.role_name or "").strip():
            errors.append(f"estimation_column_roles[{index}] has no role_name")

    return errors


# Data Validation Functions

def validate_assessment(assessment: Any) -> List[str]:
    """Validate an assessment before aggregation.

    None collections and None estimate values are tolerated as "no value".
    Negative, non-numeric, NaN and infinite hours are reported.

    Args:
        assessment: Assessment to validate

    Returns:
        List of validation error messages
    """
    if assessment is None:
        return ["Assessment is required"]

    errors = []
    for section in assessment.sections or []:
        if section is None:
            continue
        for item in section.items or []:
            if item is None:
                continue
            if not isinstance(item.is_needed, bool):
                errors.append(
                    f"Section '{section.section_name}' item '{item.item_name}': "
                    f"is_needed must be a boolean, got {item.is_needed!r}"
                )
            for column, value in (item.estimates or {}).items():
                if value is None:
                    continue
                location = (
                    f"Section '{section.section_name}' item '{item.item_name}' "
                    f"column '{column}'"
                )
                if not is_finite_number(value):
                    errors.append(f"{location}: hours must be a finite number, got {value!r}")
                elif value < 0:
                    errors.append(f"{location}: hours must not be negative, got {value}")

    return errors


def ensure_valid_assessment(assessment: Any) -> None:
    """Raise ValidationError if the assessment is malformed.

    Args:
        assessment: Assessment to validate

    Raises:
        ValidationError: With every validation message as details
    """
    ErrorHandler.raise_if_errors(
        ValidationError, "Invalid assessment:", validate_assessment(assessment)
    )


def ensure_configuration_present(configuration: Any) -> None:
    """Raise ValidationError when no configuration was supplied.

    Args:
        configuration: PresalesConfiguration or None

    Raises:
        ValidationError: If configuration is None
    """
    if configuration is None:
        ErrorHandler.log_and_raise(ValidationError, "Configuration is required")
