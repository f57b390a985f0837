"""Tests for the assessment data model."""

import pytest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "shared" / "python"))

from assessment_models import Assessment, AssessmentItem, AssessmentSection, GanttTask
from exceptions import ValidationError


class TestAssessmentFromDict:
    """Tests for loading the persisted assessment document."""

    def test_loads_reference_document(self, sample_assessment):
        assert sample_assessment.project_name == "Customer Portal Revamp"
        assert sample_assessment.status == "Completed"
        assert [s.section_name for s in sample_assessment.sections] == [
            "Project Preparation",
            "Analysis & Design",
            "Development",
            "Testing",
        ]

    def test_keeps_null_estimates(self, sample_assessment):
        """Null values are preserved as "no value", not turned into 0."""
        kickoff = sample_assessment.sections[0].items[0]

        assert kickoff.estimates["BE Development"] is None
        assert kickoff.total_hours == 2

    def test_snake_case_keys(self):
        assessment = Assessment.from_dict({
            "project_name": "Internal",
            "sections": [
                {"section_name": "S", "items": [{"item_name": "A", "is_needed": False}]},
            ],
        })

        item = assessment.sections[0].items[0]
        assert assessment.project_name == "Internal"
        assert item.item_name == "A"
        assert item.is_needed is False
        assert item.estimates == {}

    @pytest.mark.parametrize("raw,expected", [
        ("false", False),
        ("False", False),
        ("0", False),
        ("no", False),
        (0, False),
        ("true", True),
        ("1", True),
        (1, True),
        (None, True),
    ])
    def test_is_needed_string_flags(self, raw, expected):
        """Stored flags written as strings or 0/1 are parsed, not truth-tested."""
        item = AssessmentItem.from_dict({"itemName": "A", "isNeeded": raw})

        assert item.is_needed is expected

    def test_string_false_item_is_filtered(self):
        assessment = Assessment.from_dict({
            "sections": [{"sectionName": "S", "items": [
                {"itemName": "A", "isNeeded": "false"},
                {"itemName": "B", "isNeeded": "true"},
            ]}],
        })

        names = [i.item_name for _, i in assessment.iter_items(include_not_needed=False)]
        assert names == ["B"]

    def test_unrecognized_flag_rejected(self):
        with pytest.raises(ValidationError, match="isNeeded must be a boolean"):
            AssessmentItem.from_dict({"itemName": "A", "isNeeded": "maybe"})

    def test_skips_null_entries(self):
        assessment = Assessment.from_dict({"sections": [None, {"sectionName": "S", "items": [None]}]})

        assert len(assessment.sections) == 1
        assert assessment.sections[0].items == []


class TestAssessmentItem:
    """Tests for item helpers."""

    def test_populated_estimates_skip_empty(self):
        item = AssessmentItem(estimates={"Dev": 3, "QA": None, "BA": 0, " ": 4, "PM": 1.5})

        assert list(item.populated_estimates()) == [("Dev", 3.0), ("PM", 1.5)]
        assert item.total_hours == 4.5

    def test_none_estimates(self):
        item = AssessmentItem(estimates=None)

        assert list(item.populated_estimates()) == []


class TestIterItems:
    """Tests for item iteration."""

    def test_filters_not_needed(self):
        assessment = Assessment(sections=[
            AssessmentSection("S", [
                AssessmentItem(item_name="A"),
                AssessmentItem(item_name="B", is_needed=False),
            ]),
        ])

        assert [i.item_name for _, i in assessment.iter_items()] == ["A", "B"]
        assert [i.item_name for _, i in assessment.iter_items(include_not_needed=False)] == ["A"]

    def test_tolerates_none_sections_and_items(self):
        assessment = Assessment(sections=[None, AssessmentSection("S", None), AssessmentSection("T", [None])])

        assert list(assessment.iter_items()) == []


class TestSerialization:
    """Tests for dictionary output."""

    def test_round_trip_document(self, sample_assessment_data):
        assessment = Assessment.from_dict(sample_assessment_data)

        assert Assessment.from_dict(assessment.to_dict()) == assessment

    def test_gantt_task_keys(self):
        task = GanttTask(detail="API", activity_group="Development", actor="Developer", man_days=4)

        assert task.to_dict() == {
            "detail": "API",
            "activityGroup": "Development",
            "actor": "Developer",
            "manDays": 4,
        }
