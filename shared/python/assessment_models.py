"""Assessment data model.

An assessment is an ordered list of sections; each section holds items
carrying per-estimation-column hour values. Instances are built by the
caller (usually from the persisted JSON document) and are never mutated
by the engine.
"""

from dataclasses import dataclass, field
from typing import Any, Iterator

try:
    from .data_validation import parse_bool
except ImportError:
    from data_validation import parse_bool


def _pick(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the value of the first key present in data."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


@dataclass
class AssessmentItem:
    """A single line item of an assessment."""

    item_id: str = ""
    item_name: str = ""
    item_detail: str = ""
    category: str = ""
    is_needed: bool = True
    # estimation column -> hours (None means "no value")
    estimates: dict[str, float | None] = field(default_factory=dict)

    def populated_estimates(self) -> Iterator[tuple[str, float]]:
        """Yield (column, hours) pairs that carry a positive value, in order."""
        for column, value in (self.estimates or {}).items():
            if value is None or value <= 0:
                continue
            if not (column or "").strip():
                continue
            yield column, float(value)

    @property
    def total_hours(self) -> float:
        """Sum of all populated estimates for this item."""
        return sum(hours for _, hours in self.populated_estimates())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AssessmentItem":
        """Create item from a dict using camelCase or snake_case keys."""
        raw_estimates = _pick(data, "estimates", "Estimates", default={})
        estimates: dict[str, float | None] = {}
        for column, value in raw_estimates.items():
            estimates[str(column)] = None if value is None else value
        return cls(
            item_id=str(_pick(data, "item_id", "itemId", "ItemId", default="")),
            item_name=str(_pick(data, "item_name", "itemName", "ItemName", default="")),
            item_detail=str(_pick(data, "item_detail", "itemDetail", "ItemDetail", default="")),
            category=str(_pick(data, "category", "Category", default="")),
            is_needed=parse_bool(
                _pick(data, "is_needed", "isNeeded", "IsNeeded"), "isNeeded", default=True
            ),
            estimates=estimates,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "itemId": self.item_id,
            "itemName": self.item_name,
            "itemDetail": self.item_detail,
            "category": self.category,
            "isNeeded": self.is_needed,
            "estimates": dict(self.estimates),
        }


@dataclass
class AssessmentSection:
    """A named group of items. The name identifies the section."""

    section_name: str = ""
    items: list[AssessmentItem] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AssessmentSection":
        return cls(
            section_name=str(_pick(data, "section_name", "sectionName", "SectionName", default="")),
            items=[
                AssessmentItem.from_dict(item)
                for item in _pick(data, "items", "Items", default=[])
                if item is not None
            ],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "sectionName": self.section_name,
            "items": [item.to_dict() for item in self.items],
        }


@dataclass
class Assessment:
    """The object being estimated."""

    sections: list[AssessmentSection] = field(default_factory=list)
    project_name: str = ""
    template_name: str = ""
    status: str = "Draft"

    def iter_items(
        self, include_not_needed: bool = True
    ) -> Iterator[tuple[AssessmentSection, AssessmentItem]]:
        """Yield (section, item) pairs in insertion order.

        Args:
            include_not_needed: When False, items with is_needed=False are skipped
        """
        for section in self.sections or []:
            if section is None:
                continue
            for item in section.items or []:
                if item is None:
                    continue
                if not include_not_needed and not item.is_needed:
                    continue
                yield section, item

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Assessment":
        """Create assessment from the persisted JSON document."""
        return cls(
            sections=[
                AssessmentSection.from_dict(section)
                for section in _pick(data, "sections", "Sections", default=[])
                if section is not None
            ],
            project_name=str(_pick(data, "project_name", "projectName", "ProjectName", default="")),
            template_name=str(_pick(data, "template_name", "templateName", "TemplateName", default="")),
            status=str(_pick(data, "status", "Status", default="Draft")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "projectName": self.project_name,
            "templateName": self.template_name,
            "status": self.status,
            "sections": [section.to_dict() for section in self.sections],
        }


@dataclass(frozen=True)
class GanttTask:
    """One schedule row: an item with its activity, actor and effort."""

    detail: str
    activity_group: str | None
    actor: str | None
    man_days: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "detail": self.detail,
            "activityGroup": self.activity_group,
            "actor": self.actor,
            "manDays": self.man_days,
        }
