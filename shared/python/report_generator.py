"""Summary report generator for aggregated estimates.

Renders an EstimationSummary as Markdown tables:
1. Totals per estimation column, role and activity
2. Gantt task list
3. Unmapped columns/items that need attention
"""

from typing import Any

try:
    from .assessment_task_aggregator import EstimationSummary
except ImportError:
    from assessment_task_aggregator import EstimationSummary


class SummaryReportGenerator:
    """Generate Markdown or JSON-ready output from an EstimationSummary."""

    UNIT_LABELS = {
        "hours": "Hours",
        "man_days": "Man-days",
    }

    def __init__(self, summary: EstimationSummary, title: str = "Estimation Summary", unit: str = "hours"):
        """Initialize the generator.

        Args:
            summary: Aggregated estimation summary
            title: Report heading
            unit: "hours" or "man_days", used for column headers
        """
        self.summary = summary
        self.title = title
        self.unit_label = self.UNIT_LABELS.get(unit, unit)

    @staticmethod
    def _format(value: float) -> str:
        return f"{value:.2f}"

    def _totals_table(self, heading: str, key_label: str, totals: dict[str, float]) -> list[str]:
        lines = [f"## {heading}", ""]
        if not totals:
            lines.extend(["_No data._", ""])
            return lines

        lines.append(f"| {key_label} | {self.unit_label} |")
        lines.append("|---|---:|")
        for key, value in totals.items():
            lines.append(f"| {key} | {self._format(value)} |")
        lines.append(f"| **Total** | **{self._format(sum(totals.values()))}** |")
        lines.append("")
        return lines

    def _gantt_table(self) -> list[str]:
        lines = ["## Gantt Tasks", ""]
        if not self.summary.gantt_tasks:
            lines.extend(["_No data._", ""])
            return lines

        lines.append(f"| Detail | Activity | Actor | {self.unit_label} |")
        lines.append("|---|---|---|---:|")
        for task in self.summary.gantt_tasks:
            lines.append(
                f"| {task.detail} | {task.activity_group or '-'} | "
                f"{task.actor or '-'} | {self._format(task.man_days)} |"
            )
        lines.append("")
        return lines

    def _unmapped_section(self) -> list[str]:
        if not self.summary.unmapped_columns and not self.summary.unmapped_items:
            return []

        lines = ["## Unmapped Data", ""]
        if self.summary.unmapped_columns:
            lines.append("Columns without a role mapping:")
            lines.extend(f"- {column}" for column in self.summary.unmapped_columns)
            lines.append("")
        if self.summary.unmapped_items:
            lines.append("Items without an activity mapping:")
            lines.extend(f"- {item}" for item in self.summary.unmapped_items)
            lines.append("")
        return lines

    def to_markdown(self) -> str:
        """Render the full report as Markdown."""
        lines = [f"# {self.title}", ""]
        lines.extend(self._totals_table("Estimation Columns", "Column", self.summary.column_totals))
        lines.extend(self._totals_table("Roles", "Role", self.summary.role_totals))
        lines.extend(self._totals_table("Activities", "Activity", self.summary.activity_totals))
        lines.extend(self._gantt_table())
        lines.extend(self._unmapped_section())
        return "\n".join(lines).rstrip() + "\n"

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation of the summary."""
        data = self.summary.to_dict()
        data["title"] = self.title
        data["unit"] = self.unit_label
        return data
