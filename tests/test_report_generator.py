"""Tests for the summary report generator."""

from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "shared" / "python"))

from assessment_models import AssessmentItem, AssessmentSection
from assessment_task_aggregator import EstimationSummary, summarize_assessment
from report_generator import SummaryReportGenerator


class TestSummaryReportGenerator:
    """Tests for Markdown and dictionary rendering."""

    def test_markdown_sections(self, sample_assessment, rollup_configuration):
        summary = summarize_assessment(sample_assessment, rollup_configuration)

        markdown = SummaryReportGenerator(summary, title="Portal").to_markdown()

        assert markdown.startswith("# Portal\n")
        assert "## Estimation Columns" in markdown
        assert "## Roles" in markdown
        assert "## Activities" in markdown
        assert "## Gantt Tasks" in markdown
        assert "| Developer | 15.00 |" in markdown
        assert "| Development | 15.00 |" in markdown
        assert "| BE Development | Application Development | Developer | 10.00 |" in markdown
        assert "| **Total** | **28.00** |" in markdown
        assert "## Unmapped Data" not in markdown

    def test_unmapped_section(self, sample_assessment, configuration):
        sample_assessment.sections.append(
            AssessmentSection("Hypercare", [
                AssessmentItem(item_name="Support", estimates={"Support Engineer": 4}),
            ])
        )
        summary = summarize_assessment(sample_assessment, configuration)

        markdown = SummaryReportGenerator(summary).to_markdown()

        assert "## Unmapped Data" in markdown
        assert "- Support Engineer" in markdown
        assert "- Support" in markdown
        assert "| Support | - | - | 4.00 |" in markdown

    def test_empty_summary(self):
        summary = EstimationSummary({}, {}, {}, [])

        markdown = SummaryReportGenerator(summary).to_markdown()

        assert markdown.count("_No data._") == 4

    def test_man_day_unit(self, sample_assessment, configuration):
        summary = summarize_assessment(sample_assessment, configuration).in_man_days(8)

        generator = SummaryReportGenerator(summary, unit="man_days")

        assert "| Role | Man-days |" in generator.to_markdown()
        assert generator.to_dict()["unit"] == "Man-days"

    def test_to_dict(self, sample_assessment, configuration):
        summary = summarize_assessment(sample_assessment, configuration)

        data = SummaryReportGenerator(summary, title="Portal").to_dict()

        assert data["title"] == "Portal"
        assert data["unit"] == "Hours"
        assert data["total"] == 28
        assert data["roleTotals"]["Developer"] == 15
        assert len(data["ganttTasks"]) == 6
        assert data["ganttTasks"][3]["activityGroup"] == "Application Development"
