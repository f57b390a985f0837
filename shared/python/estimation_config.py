"""Configuration model for the estimation engine.

Provides the configuration dataclasses and loading for both:
- Estimation policy (size bands, multipliers, clamping and rounding)
- Mapping rules (item -> activity, estimation column -> role)

Keys are accepted in snake_case as well as the camelCase/PascalCase
spelling used by the stored presales configuration records.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

try:
    import tomllib
except ImportError:
    import tomli as tomllib

try:
    from .data_validation import parse_bool, validate_mappings, validate_policy
    from .error_handling import ErrorHandler, handle_config_errors
    from .exceptions import ConfigError
except ImportError:
    from data_validation import parse_bool, validate_mappings, validate_policy
    from error_handling import ErrorHandler, handle_config_errors
    from exceptions import ConfigError


logger = logging.getLogger(__name__)


def _pick(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the value of the first key present in data."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


@dataclass(frozen=True)
class SizeBands:
    """Upper hour bound of each size class, ascending."""

    xs: float
    s: float
    m: float
    l: float
    xl: float

    def as_tuple(self) -> tuple[float, float, float, float, float]:
        """Thresholds in XS..XL order."""
        return (self.xs, self.s, self.m, self.l, self.xl)

    @classmethod
    def from_value(cls, value: Any) -> "SizeBands":
        """Create from a 5-item sequence or a table with xs..xl keys."""
        if isinstance(value, SizeBands):
            return value
        if isinstance(value, dict):
            lowered = {str(k).lower(): v for k, v in value.items()}
            try:
                return cls(*(float(lowered[key]) for key in ("xs", "s", "m", "l", "xl")))
            except KeyError as e:
                raise ConfigError(f"Size bands missing threshold {e}", value) from e
        if isinstance(value, (list, tuple)) and len(value) == 5:
            return cls(*(float(v) for v in value))
        raise ConfigError(
            f"Size bands must be 5 ascending numbers or an xs..xl table, got {value!r}",
            value,
        )


DEFAULT_SIZE_BANDS = SizeBands(4, 8, 16, 32, 56)


def _default_bands_by_category() -> dict[str, SizeBands]:
    return {
        "New UI": SizeBands(4, 8, 16, 32, 56),
        "New Interface": SizeBands(6, 12, 24, 48, 80),
        "New Backgrounder": SizeBands(6, 12, 24, 48, 80),
        "Adjust Existing UI": SizeBands(2, 4, 8, 16, 28),
        "Adjust Existing Logic": SizeBands(2, 4, 8, 16, 28),
    }


@dataclass(frozen=True)
class CrudMultipliers:
    """Multipliers applied per detected CRUD verb family."""

    create: float = 1.0
    read: float = 0.7
    update: float = 0.9
    delete: float = 0.6


@dataclass(frozen=True)
class SignalWeights:
    """Hours added per qualitative signal found in an item detail."""

    per_field_hours: float = 0.15
    per_integration_hours: float = 6.0
    file_upload_hours: float = 2.0
    auth_roles_hours: float = 3.0
    workflow_step_hours: float = 1.5


@dataclass(frozen=True)
class EstimationPolicy:
    """Effective estimation policy.

    Immutable; passed explicitly into every scorer and normalizer call.
    Construction validates the policy and raises ConfigError on
    inverted bounds, unordered bands or negative weights.
    """

    base_hours_by_category: dict[str, SizeBands] = field(
        default_factory=_default_bands_by_category
    )
    crud_multipliers: CrudMultipliers = field(default_factory=CrudMultipliers)
    signal_weights: SignalWeights = field(default_factory=SignalWeights)

    reference_median_cap_multiplier: float = 1.10
    global_shrinkage_to_median: float = 0.9
    hard_max_per_item_hours: float = 80.0
    hard_min_per_item_hours: float = 1.0

    cap_adjust_categories_to_max_m: bool = True
    justification_score_threshold: float = 0.7

    round_to_nearest_hours: float = 0.5

    def __post_init__(self) -> None:
        ErrorHandler.raise_if_errors(
            ConfigError, "Invalid estimation policy:", validate_policy(self)
        )

    def bands_for(self, category: str | None) -> SizeBands:
        """Size bands for a category, case-insensitive, with default fallback."""
        key = (category or "").strip().lower()
        for name, bands in self.base_hours_by_category.items():
            if name.lower() == key:
                return bands
        return DEFAULT_SIZE_BANDS

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EstimationPolicy":
        """Create policy from a dictionary.

        Args:
            data: Policy dictionary (nested tables or flat original keys)

        Returns:
            EstimationPolicy instance
        """
        defaults = cls()

        bands_data = _pick(data, "base_hours_by_category", "BaseHoursByCategory")
        if bands_data is None:
            bands = dict(defaults.base_hours_by_category)
        else:
            bands = {
                str(name): SizeBands.from_value(value)
                for name, value in bands_data.items()
            }

        crud_data = _pick(data, "crud_multipliers", default={})
        base_crud = defaults.crud_multipliers
        crud = CrudMultipliers(
            create=float(_pick(crud_data, "create", default=_pick(data, "CrudCreateMultiplier", default=base_crud.create))),
            read=float(_pick(crud_data, "read", default=_pick(data, "CrudReadMultiplier", default=base_crud.read))),
            update=float(_pick(crud_data, "update", default=_pick(data, "CrudUpdateMultiplier", default=base_crud.update))),
            delete=float(_pick(crud_data, "delete", default=_pick(data, "CrudDeleteMultiplier", default=base_crud.delete))),
        )

        weights_data = _pick(data, "signal_weights", default={})
        base_weights = defaults.signal_weights
        weights = SignalWeights(
            per_field_hours=float(_pick(weights_data, "per_field_hours", default=_pick(data, "PerFieldHours", default=base_weights.per_field_hours))),
            per_integration_hours=float(_pick(weights_data, "per_integration_hours", default=_pick(data, "PerIntegrationHours", default=base_weights.per_integration_hours))),
            file_upload_hours=float(_pick(weights_data, "file_upload_hours", default=_pick(data, "FileUploadHours", default=base_weights.file_upload_hours))),
            auth_roles_hours=float(_pick(weights_data, "auth_roles_hours", default=_pick(data, "AuthRolesHours", default=base_weights.auth_roles_hours))),
            workflow_step_hours=float(_pick(weights_data, "workflow_step_hours", default=_pick(data, "WorkflowStepHours", default=base_weights.workflow_step_hours))),
        )

        return cls(
            base_hours_by_category=bands,
            crud_multipliers=crud,
            signal_weights=weights,
            reference_median_cap_multiplier=float(_pick(
                data, "reference_median_cap_multiplier", "ReferenceMedianCapMultiplier",
                default=defaults.reference_median_cap_multiplier,
            )),
            global_shrinkage_to_median=float(_pick(
                data, "global_shrinkage_to_median", "GlobalShrinkageToMedian",
                default=defaults.global_shrinkage_to_median,
            )),
            hard_max_per_item_hours=float(_pick(
                data, "hard_max_per_item_hours", "HardMaxPerItemHours",
                default=defaults.hard_max_per_item_hours,
            )),
            hard_min_per_item_hours=float(_pick(
                data, "hard_min_per_item_hours", "HardMinPerItemHours",
                default=defaults.hard_min_per_item_hours,
            )),
            cap_adjust_categories_to_max_m=parse_bool(
                _pick(data, "cap_adjust_categories_to_max_m", "CapAdjustCategoriesToMaxM"),
                "cap_adjust_categories_to_max_m",
                default=defaults.cap_adjust_categories_to_max_m,
                error_class=ConfigError,
            ),
            justification_score_threshold=float(_pick(
                data, "justification_score_threshold", "JustificationScoreThreshold",
                default=defaults.justification_score_threshold,
            )),
            round_to_nearest_hours=float(_pick(
                data, "round_to_nearest_hours", "RoundToNearestHours",
                default=defaults.round_to_nearest_hours,
            )),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert policy to dictionary for serialization."""
        return {
            "base_hours_by_category": {
                name: list(bands.as_tuple())
                for name, bands in self.base_hours_by_category.items()
            },
            "crud_multipliers": {
                "create": self.crud_multipliers.create,
                "read": self.crud_multipliers.read,
                "update": self.crud_multipliers.update,
                "delete": self.crud_multipliers.delete,
            },
            "signal_weights": {
                "per_field_hours": self.signal_weights.per_field_hours,
                "per_integration_hours": self.signal_weights.per_integration_hours,
                "file_upload_hours": self.signal_weights.file_upload_hours,
                "auth_roles_hours": self.signal_weights.auth_roles_hours,
                "workflow_step_hours": self.signal_weights.workflow_step_hours,
            },
            "reference_median_cap_multiplier": self.reference_median_cap_multiplier,
            "global_shrinkage_to_median": self.global_shrinkage_to_median,
            "hard_max_per_item_hours": self.hard_max_per_item_hours,
            "hard_min_per_item_hours": self.hard_min_per_item_hours,
            "cap_adjust_categories_to_max_m": self.cap_adjust_categories_to_max_m,
            "justification_score_threshold": self.justification_score_threshold,
            "round_to_nearest_hours": self.round_to_nearest_hours,
        }


@dataclass(frozen=True)
class ItemActivityMapping:
    """Associates an item name, or a whole section, with an activity.

    A mapping with an empty item_name is a section-level fallback.
    """

    activity_name: str
    section_name: str | None = None
    item_name: str | None = None
    display_order: int = 1

    @property
    def is_section_fallback(self) -> bool:
        return not (self.item_name or "").strip()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ItemActivityMapping":
        return cls(
            activity_name=str(_pick(data, "activity_name", "activityName", "ActivityName", default="")),
            section_name=_pick(data, "section_name", "sectionName", "SectionName"),
            item_name=_pick(data, "item_name", "itemName", "ItemName"),
            display_order=int(_pick(data, "display_order", "displayOrder", "DisplayOrder", default=1)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "activity_name": self.activity_name,
            "section_name": self.section_name,
            "item_name": self.item_name,
            "display_order": self.display_order,
        }


@dataclass(frozen=True)
class EstimationColumnRoleMapping:
    """Associates an estimation column with a role."""

    estimation_column: str
    role_name: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EstimationColumnRoleMapping":
        return cls(
            estimation_column=str(_pick(data, "estimation_column", "estimationColumn", "EstimationColumn", default="")),
            role_name=str(_pick(data, "role_name", "roleName", "RoleName", default="")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "estimation_column": self.estimation_column,
            "role_name": self.role_name,
        }


@dataclass(frozen=True)
class PresalesConfiguration:
    """Mapping rules and policy supplied once per computation."""

    item_activities: tuple[ItemActivityMapping, ...] = ()
    estimation_column_roles: tuple[EstimationColumnRoleMapping, ...] = ()
    # Resolved activity name -> bucket name used by activity totals only
    activity_rollups: dict[str, str] = field(default_factory=dict)
    policy: EstimationPolicy = field(default_factory=EstimationPolicy)

    def __post_init__(self) -> None:
        # Accept lists from callers while keeping the stored value immutable
        object.__setattr__(self, "item_activities", tuple(self.item_activities))
        object.__setattr__(self, "estimation_column_roles", tuple(self.estimation_column_roles))
        ErrorHandler.raise_if_errors(
            ConfigError,
            "Invalid presales configuration:",
            validate_mappings(self.item_activities, self.estimation_column_roles),
        )

    def rollup_activity(self, activity_name: str) -> str:
        """Bucket name an activity rolls up into (identity when unconfigured)."""
        key = activity_name.strip().lower()
        for name, bucket in self.activity_rollups.items():
            if name.strip().lower() == key:
                return bucket
        return activity_name

    @classmethod
    def default(cls) -> "PresalesConfiguration":
        """Create an empty configuration with the default policy."""
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PresalesConfiguration":
        """Create configuration from a dictionary.

        Args:
            data: Configuration dictionary

        Returns:
            PresalesConfiguration instance
        """
        activities = [
            ItemActivityMapping.from_dict(entry)
            for entry in _pick(data, "item_activities", "itemActivities", "ItemActivities", default=[])
        ]
        roles = [
            EstimationColumnRoleMapping.from_dict(entry)
            for entry in _pick(
                data, "estimation_column_roles", "estimationColumnRoles", "EstimationColumnRoles", default=[]
            )
        ]
        rollups = {
            str(k): str(v)
            for k, v in _pick(data, "activity_rollups", "activityRollups", default={}).items()
        }
        policy_data = _pick(data, "policy", "EffectiveEstimationPolicy")
        policy = EstimationPolicy.from_dict(policy_data) if policy_data else EstimationPolicy()

        return cls(
            item_activities=tuple(activities),
            estimation_column_roles=tuple(roles),
            activity_rollups=rollups,
            policy=policy,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary for serialization."""
        return {
            "item_activities": [m.to_dict() for m in self.item_activities],
            "estimation_column_roles": [m.to_dict() for m in self.estimation_column_roles],
            "activity_rollups": dict(self.activity_rollups),
            "policy": self.policy.to_dict(),
        }


@handle_config_errors
def load_configuration(path: Path) -> PresalesConfiguration:
    """Load configuration from a TOML or JSON file.

    Args:
        path: Path to the configuration file (.toml or .json)

    Returns:
        PresalesConfiguration instance

    Raises:
        ConfigError: If the file is missing, unreadable or invalid
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    if path.suffix.lower() == ".json":
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    else:
        with open(path, "rb") as f:
            data = tomllib.load(f)

    config = PresalesConfiguration.from_dict(data)
    logger.debug(
        f"Loaded configuration from {path}: "
        f"{len(config.item_activities)} activity mappings, "
        f"{len(config.estimation_column_roles)} role mappings"
    )
    return config
