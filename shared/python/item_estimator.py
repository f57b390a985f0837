"""Item Estimator for assessment line items.

Produces per-column hour estimates for a single item from its free-text
detail, its category and historical reference assessments:

    signals -> complexity score -> size class -> band midpoint
    x CRUD multiplier + signal hours -> raw hours
    -> reference shrinkage -> clamp -> round

Each step records its inputs in the returned ItemEstimate so callers can
show why an item got its numbers.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable

try:
    from .assessment_models import Assessment, AssessmentItem
    from .complexity_scorer import (
        ItemSignals,
        band_midpoint,
        calculate_complexity_score,
        extract_signals,
        map_score_to_size_class,
        normalize_size_class,
        pick_size_class,
        size_class_rank,
    )
    from .data_validation import ensure_valid_assessment, is_finite_number
    from .estimation_config import EstimationPolicy, SizeBands
    from .estimation_normalizer import apply_reference_shrinkage, clamp, round_to_increment
except ImportError:
    from assessment_models import Assessment, AssessmentItem
    from complexity_scorer import (
        ItemSignals,
        band_midpoint,
        calculate_complexity_score,
        extract_signals,
        map_score_to_size_class,
        normalize_size_class,
        pick_size_class,
        size_class_rank,
    )
    from data_validation import ensure_valid_assessment, is_finite_number
    from estimation_config import EstimationPolicy, SizeBands
    from estimation_normalizer import apply_reference_shrinkage, clamp, round_to_increment


logger = logging.getLogger(__name__)

ADJUST_CATEGORY_PREFIX = "adjust existing"


def is_adjust_category(category: str | None) -> bool:
    """True for "Adjust Existing *" categories."""
    return (category or "").strip().lower().startswith(ADJUST_CATEGORY_PREFIX)


# =============================================================================
# Reference statistics
# =============================================================================

@dataclass(frozen=True)
class ReferenceStats:
    """Median and geometric mean of comparable historical values."""

    median: float | None = None
    geo_mean: float | None = None
    sample_size: int = 0

    @property
    def baseline(self) -> float | None:
        """Lower of median and geometric mean, whichever are available."""
        if self.median is not None and self.geo_mean is not None:
            return min(self.median, self.geo_mean)
        return self.median if self.median is not None else self.geo_mean


def _median(values: list[float]) -> float:
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2.0
    return ordered[mid]


def calculate_reference_stats(
    references: Iterable[Assessment],
    item_id: str,
    category: str,
    column: str,
) -> ReferenceStats:
    """Statistics of one column across reference assessments.

    Values recorded for the same item id are preferred; when there are
    none, values from items of the same category are used instead.

    Args:
        references: Completed historical assessments
        item_id: Template item id being estimated
        category: Item category
        column: Estimation column

    Returns:
        ReferenceStats (empty when nothing comparable exists)

    Raises:
        ValidationError: If a reference holds invalid hours
    """
    references = list(references or [])
    for reference in references:
        ensure_valid_assessment(reference)

    per_item: list[float] = []
    per_category: list[float] = []
    item_key = (item_id or "").strip().lower()
    category_key = (category or "").strip().lower()
    column_key = (column or "").strip().lower()

    for reference in references:
        for _, ref_item in reference.iter_items():
            for ref_column, value in ref_item.populated_estimates():
                if ref_column.strip().lower() != column_key:
                    continue
                if item_key and ref_item.item_id.strip().lower() == item_key:
                    per_item.append(value)
                elif category_key and ref_item.category.strip().lower() == category_key:
                    per_category.append(value)

    source = per_item or per_category
    if not source:
        return ReferenceStats()

    geo_mean = math.exp(sum(math.log(v) for v in source) / len(source))
    return ReferenceStats(median=_median(source), geo_mean=geo_mean, sample_size=len(source))


# =============================================================================
# Estimation
# =============================================================================

@dataclass
class ItemEstimate:
    """Estimate of one item with its diagnostics."""

    item_id: str
    item_name: str
    category: str
    signals: ItemSignals
    complexity_score: float
    size_class: str
    crud_multiplier: float
    base_hours: float
    raw_hours: float
    estimates: dict[str, float] = field(default_factory=dict)
    reference_median: float | None = None
    normalized_size_class: str | None = None
    notes: list[str] = field(default_factory=list)

    @property
    def total_hours(self) -> float:
        return sum(self.estimates.values())


class ItemEstimator:
    """Estimate hours for assessment items under an estimation policy."""

    def __init__(self, policy: EstimationPolicy | None = None):
        """Initialize the item estimator.

        Args:
            policy: Estimation policy (defaults to EstimationPolicy())
        """
        self.policy = policy or EstimationPolicy()

    def crud_multiplier(self, signals: ItemSignals) -> float:
        """Product of the multipliers of every CRUD verb detected."""
        crud = self.policy.crud_multipliers
        multiplier = 1.0
        if signals.has_create:
            multiplier *= crud.create
        if signals.has_read:
            multiplier *= crud.read
        if signals.has_update:
            multiplier *= crud.update
        if signals.has_delete:
            multiplier *= crud.delete
        return multiplier

    def signal_hours(self, signals: ItemSignals) -> float:
        """Hours added on top of the base for the detected signals."""
        weights = self.policy.signal_weights
        hours = signals.fields * weights.per_field_hours
        hours += signals.integrations * weights.per_integration_hours
        hours += signals.workflow_steps * weights.workflow_step_hours
        if signals.has_upload:
            hours += weights.file_upload_hours
        if signals.has_auth_role:
            hours += weights.auth_roles_hours
        return hours

    def determine_size_class(
        self,
        category: str,
        signals: ItemSignals,
        complexity_score: float,
        requested: str | None = None,
        justification_score: float = 0.0,
    ) -> str:
        """Pick the size class of an item.

        A valid requested class wins over the score mapping. Adjustment
        categories are held at M unless the request is justified well
        enough.
        """
        size = normalize_size_class(requested) or map_score_to_size_class(complexity_score, signals)

        guard_active = (
            is_adjust_category(category)
            and self.policy.cap_adjust_categories_to_max_m
            and justification_score < self.policy.justification_score_threshold
        )
        if guard_active and size_class_rank(size) > size_class_rank("M"):
            size = "M"

        return size

    def normalize_value(self, raw: float, reference_median: float | None) -> float:
        """Shrink towards the reference, clamp, then round."""
        shrunk = apply_reference_shrinkage(raw, reference_median, self.policy)
        clamped = clamp(shrunk, self.policy)
        return round_to_increment(clamped, self.policy)

    def estimate_item(
        self,
        item: AssessmentItem,
        columns: Iterable[str],
        references: Iterable[Assessment] = (),
        requested_size_class: str | None = None,
        justification_score: float = 0.0,
    ) -> ItemEstimate:
        """Estimate one item for every estimation column.

        Provided values on the item act as an upper bound on the raw
        estimate. Items not needed get 0 in every column.

        Args:
            item: Assessment item (detail, category and optional estimates)
            columns: Estimation columns of the template
            references: Completed assessments used for shrinkage
            requested_size_class: Size class proposed upstream, if any
            justification_score: Confidence in that proposal (0..1)

        Returns:
            ItemEstimate

        Raises:
            ValidationError: If a reference assessment holds invalid hours
        """
        references = list(references)
        for reference in references:
            ensure_valid_assessment(reference)
        justification_score = max(0.0, min(1.0, justification_score))

        signals = extract_signals(item.item_detail)
        score = round(calculate_complexity_score(signals), 2)
        bands: SizeBands = self.policy.bands_for(item.category)
        size_class = self.determine_size_class(
            item.category, signals, score, requested_size_class, justification_score
        )

        multiplier = self.crud_multiplier(signals)
        base_hours = band_midpoint(bands, size_class) * multiplier
        raw_hours = base_hours + self.signal_hours(signals)

        estimate = ItemEstimate(
            item_id=item.item_id,
            item_name=item.item_name,
            category=item.category,
            signals=signals,
            complexity_score=score,
            size_class=size_class,
            crud_multiplier=round(multiplier, 3),
            base_hours=base_hours,
            raw_hours=raw_hours,
        )

        for column in columns:
            if not (column or "").strip():
                continue

            if not item.is_needed:
                estimate.estimates[column] = 0.0
                continue

            stats = calculate_reference_stats(references, item.item_id, item.category, column)
            baseline = stats.baseline
            if estimate.reference_median is None and baseline is not None:
                estimate.reference_median = baseline

            value = raw_hours
            provided = (item.estimates or {}).get(column)
            if is_finite_number(provided):
                value = min(value, provided)
                if provided < raw_hours:
                    estimate.notes.append(f"{column}: capped by provided value {provided}")

            estimate.estimates[column] = self.normalize_value(value, baseline)

        if item.is_needed and estimate.estimates:
            estimate.normalized_size_class = pick_size_class(
                max(estimate.estimates.values()),
                bands,
                is_adjust_category(item.category) and self.policy.cap_adjust_categories_to_max_m,
            )

        logger.debug(
            f"Item {item.item_id or item.item_name} normalized with size {size_class} "
            f"(category {item.category or '-'}) => "
            + ", ".join(f"{k}:{v}" for k, v in estimate.estimates.items())
        )
        return estimate
