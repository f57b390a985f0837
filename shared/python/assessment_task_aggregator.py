"""Assessment Task Aggregator.

Rolls the raw per-item, per-column hour grid of an assessment up into
column totals, role totals, activity totals and a Gantt task list.

Mapping rules are flat ordered lists scanned first-match-wins:
- estimation column -> role (EstimationColumnRoleMapping)
- item name -> activity, falling back to section -> activity
  (ItemActivityMapping with an empty item_name)

Columns or items without a mapping are left out of the role/activity
views (they still count in column totals and Gantt tasks). Every query
is a pure function of its arguments.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

try:
    from .assessment_models import Assessment, AssessmentItem, GanttTask
    from .data_validation import ensure_configuration_present, ensure_valid_assessment
    from .estimation_config import PresalesConfiguration
except ImportError:
    from assessment_models import Assessment, AssessmentItem, GanttTask
    from data_validation import ensure_configuration_present, ensure_valid_assessment
    from estimation_config import PresalesConfiguration


logger = logging.getLogger(__name__)

DEFAULT_HOURS_PER_MAN_DAY = 8.0


def _key(value: str | None) -> str:
    return (value or "").strip().lower()


def _accumulate(totals: dict[str, float], key: str, value: float) -> None:
    totals[key] = totals.get(key, 0.0) + value


# =============================================================================
# Mapping resolution
# =============================================================================

def resolve_role(column: str, configuration: PresalesConfiguration) -> str | None:
    """Role for an estimation column, or None when unmapped.

    Args:
        column: Estimation column name (trimmed, case-insensitive match)
        configuration: Presales configuration

    Returns:
        Role name of the first matching mapping
    """
    column_key = _key(column)
    for mapping in configuration.estimation_column_roles:
        if _key(mapping.estimation_column) == column_key:
            return mapping.role_name.strip()
    return None


def resolve_activity(
    section_name: str, item_name: str, configuration: PresalesConfiguration
) -> str | None:
    """Activity for an item, or None when no mapping applies.

    Item-specific mappings are tried first (a mapping that also names a
    section must match it); section-level fallbacks are tried second.
    Within each pass the first matching row wins.

    Args:
        section_name: Name of the section holding the item
        item_name: Item name
        configuration: Presales configuration

    Returns:
        Configured activity name, verbatim
    """
    section_key = _key(section_name)
    item_key = _key(item_name)

    if item_key:
        for mapping in configuration.item_activities:
            if mapping.is_section_fallback:
                continue
            if _key(mapping.item_name) != item_key:
                continue
            if _key(mapping.section_name) and _key(mapping.section_name) != section_key:
                continue
            return mapping.activity_name.strip()

    for mapping in configuration.item_activities:
        if mapping.is_section_fallback and _key(mapping.section_name) == section_key:
            return mapping.activity_name.strip()

    return None


def _resolve_actor(item: AssessmentItem, configuration: PresalesConfiguration) -> str | None:
    """Single representative role for an item.

    The role carrying the most hours of the item wins; ties go to the
    role seen first in column order.
    """
    hours_by_role: dict[str, float] = {}
    for column, hours in item.populated_estimates():
        role = resolve_role(column, configuration)
        if role:
            _accumulate(hours_by_role, role, hours)

    if not hours_by_role:
        return None

    best_role = None
    best_hours = -1.0
    for role, hours in hours_by_role.items():
        if hours > best_hours:
            best_role, best_hours = role, hours
    return best_role


# =============================================================================
# Aggregate queries
# =============================================================================

def aggregate_estimation_column_effort(
    assessment: Assessment, include_not_needed: bool = True
) -> dict[str, float]:
    """Sum hours per estimation column.

    Column keys are taken verbatim. Columns with no contributing value
    are absent from the result.

    Args:
        assessment: Assessment to aggregate
        include_not_needed: When False, items marked not needed are skipped

    Returns:
        Mapping column name -> summed hours

    Raises:
        ValidationError: If the assessment is missing or has invalid hours
    """
    ensure_valid_assessment(assessment)

    totals: dict[str, float] = {}
    for _, item in assessment.iter_items(include_not_needed):
        for column, hours in item.populated_estimates():
            _accumulate(totals, column, hours)
    return totals


def aggregate_item_effort(
    assessment: Assessment, include_not_needed: bool = True
) -> dict[str, float]:
    """Sum hours per item name (items sharing a name are merged).

    Args:
        assessment: Assessment to aggregate
        include_not_needed: When False, items marked not needed are skipped

    Returns:
        Mapping item name -> summed hours
    """
    ensure_valid_assessment(assessment)

    totals: dict[str, float] = {}
    for _, item in assessment.iter_items(include_not_needed):
        name = (item.item_name or "").strip()
        hours = item.total_hours
        if not name or hours <= 0:
            continue
        _accumulate(totals, name, hours)
    return totals


def calculate_role_man_days(
    assessment: Assessment,
    configuration: PresalesConfiguration,
    include_not_needed: bool = True,
) -> dict[str, float]:
    """Sum hours per role via the column -> role mappings.

    Several columns may route to one role; their values are summed.
    Columns without a mapping are left out.

    Args:
        assessment: Assessment to aggregate
        configuration: Presales configuration
        include_not_needed: When False, items marked not needed are skipped

    Returns:
        Mapping role name -> summed hours
    """
    ensure_configuration_present(configuration)
    column_totals = aggregate_estimation_column_effort(assessment, include_not_needed)

    totals: dict[str, float] = {}
    for column, hours in column_totals.items():
        role = resolve_role(column, configuration)
        if not role:
            logger.debug(f"Estimation column '{column}' has no role mapping; excluded from role totals")
            continue
        _accumulate(totals, role, hours)
    return totals


def calculate_activity_man_days(
    assessment: Assessment,
    configuration: PresalesConfiguration,
    include_not_needed: bool = True,
) -> dict[str, float]:
    """Sum hours per activity via the item -> activity mappings.

    Each item is resolved once and all of its hours go to that activity's
    bucket. The bucket name is the resolved activity passed through
    configuration.activity_rollups. Items without a mapping are left out.

    Args:
        assessment: Assessment to aggregate
        configuration: Presales configuration
        include_not_needed: When False, items marked not needed are skipped

    Returns:
        Mapping activity bucket -> summed hours
    """
    ensure_configuration_present(configuration)
    ensure_valid_assessment(assessment)

    totals: dict[str, float] = {}
    for section, item in assessment.iter_items(include_not_needed):
        hours = item.total_hours
        if hours <= 0:
            continue
        activity = resolve_activity(section.section_name, item.item_name, configuration)
        if not activity:
            logger.debug(
                f"Item '{item.item_name}' in section '{section.section_name}' "
                f"has no activity mapping; excluded from activity totals"
            )
            continue
        _accumulate(totals, configuration.rollup_activity(activity), hours)
    return totals


def get_gantt_tasks(
    assessment: Assessment,
    configuration: PresalesConfiguration,
    include_not_needed: bool = True,
) -> list[GanttTask]:
    """One task per item carrying any estimate, in assessment order.

    Args:
        assessment: Assessment to aggregate
        configuration: Presales configuration
        include_not_needed: When False, items marked not needed are skipped

    Returns:
        GanttTask list; activity_group and actor are None when unmapped
    """
    ensure_configuration_present(configuration)
    ensure_valid_assessment(assessment)

    tasks = []
    for section, item in assessment.iter_items(include_not_needed):
        hours = item.total_hours
        if hours <= 0:
            continue
        tasks.append(GanttTask(
            detail=item.item_name,
            activity_group=resolve_activity(section.section_name, item.item_name, configuration),
            actor=_resolve_actor(item, configuration),
            man_days=hours,
        ))
    return tasks


def convert_to_man_days(
    totals: dict[str, float], hours_per_day: float = DEFAULT_HOURS_PER_MAN_DAY
) -> dict[str, float]:
    """Divide every bucket by the working hours of one man-day.

    Args:
        totals: Mapping bucket -> hours
        hours_per_day: Hours in one man-day (must be positive)

    Returns:
        Mapping bucket -> man-days
    """
    if hours_per_day <= 0:
        raise ValueError(f"hours_per_day must be positive, got {hours_per_day}")
    return {key: value / hours_per_day for key, value in totals.items()}


# =============================================================================
# Summary
# =============================================================================

@dataclass
class EstimationSummary:
    """All aggregate views of one assessment plus unmapped data."""

    column_totals: dict[str, float]
    role_totals: dict[str, float]
    activity_totals: dict[str, float]
    gantt_tasks: list[GanttTask]
    unmapped_columns: list[str] = field(default_factory=list)
    unmapped_items: list[str] = field(default_factory=list)

    @property
    def total_hours(self) -> float:
        return sum(self.column_totals.values())

    def in_man_days(self, hours_per_day: float = DEFAULT_HOURS_PER_MAN_DAY) -> "EstimationSummary":
        """Copy of the summary with every figure divided by hours_per_day."""
        return EstimationSummary(
            column_totals=convert_to_man_days(self.column_totals, hours_per_day),
            role_totals=convert_to_man_days(self.role_totals, hours_per_day),
            activity_totals=convert_to_man_days(self.activity_totals, hours_per_day),
            gantt_tasks=[
                GanttTask(
                    detail=task.detail,
                    activity_group=task.activity_group,
                    actor=task.actor,
                    man_days=task.man_days / hours_per_day,
                )
                for task in self.gantt_tasks
            ],
            unmapped_columns=list(self.unmapped_columns),
            unmapped_items=list(self.unmapped_items),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "columnTotals": dict(self.column_totals),
            "roleTotals": dict(self.role_totals),
            "activityTotals": dict(self.activity_totals),
            "ganttTasks": [task.to_dict() for task in self.gantt_tasks],
            "unmappedColumns": list(self.unmapped_columns),
            "unmappedItems": list(self.unmapped_items),
            "total": self.total_hours,
        }


def summarize_assessment(
    assessment: Assessment,
    configuration: PresalesConfiguration,
    include_not_needed: bool = True,
) -> EstimationSummary:
    """Compute every aggregate view and list the unmapped columns/items.

    Args:
        assessment: Assessment to aggregate
        configuration: Presales configuration
        include_not_needed: When False, items marked not needed are skipped

    Returns:
        EstimationSummary
    """
    column_totals = aggregate_estimation_column_effort(assessment, include_not_needed)
    tasks = get_gantt_tasks(assessment, configuration, include_not_needed)

    unmapped_columns = [
        column for column in column_totals if resolve_role(column, configuration) is None
    ]
    unmapped_items = [task.detail for task in tasks if task.activity_group is None]
    if unmapped_columns or unmapped_items:
        logger.warning(
            f"{len(unmapped_columns)} column(s) without role mapping, "
            f"{len(unmapped_items)} item(s) without activity mapping"
        )

    return EstimationSummary(
        column_totals=column_totals,
        role_totals=calculate_role_man_days(assessment, configuration, include_not_needed),
        activity_totals=calculate_activity_man_days(assessment, configuration, include_not_needed),
        gantt_tasks=tasks,
        unmapped_columns=unmapped_columns,
        unmapped_items=unmapped_items,
    )
