"""Pytest configuration and fixtures for estimation engine tests."""

import json
import sys
from pathlib import Path
from typing import Any

import pytest

# Add shared/python to path
sys.path.insert(0, str(Path(__file__).parent.parent / "shared" / "python"))

from assessment_models import Assessment
from estimation_config import (
    EstimationColumnRoleMapping,
    ItemActivityMapping,
    PresalesConfiguration,
)


FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_assessment_path() -> Path:
    """Path to the reference assessment document."""
    return FIXTURES_DIR / "assessment-sample.json"


@pytest.fixture
def sample_assessment_data(sample_assessment_path: Path) -> dict[str, Any]:
    """Raw reference assessment document."""
    with open(sample_assessment_path, encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def sample_assessment(sample_assessment_data: dict[str, Any]) -> Assessment:
    """Reference assessment with six estimated items."""
    return Assessment.from_dict(sample_assessment_data)


@pytest.fixture
def item_activities() -> list[ItemActivityMapping]:
    """Item -> activity mappings used by the reference scenario."""
    return [
        ItemActivityMapping(item_name="Requirement & Documentation", activity_name="Analysis & Design"),
        ItemActivityMapping(item_name="Architect Setup", activity_name="Architecture & Setup"),
        ItemActivityMapping(item_name="BE Development", activity_name="Application Development"),
        ItemActivityMapping(item_name="FE Development", activity_name="Application Development"),
        ItemActivityMapping(item_name="SIT (Manual by QA)", activity_name="Testing & QA"),
        ItemActivityMapping(section_name="Project Preparation", activity_name="Project Preparation"),
    ]


@pytest.fixture
def column_roles() -> list[EstimationColumnRoleMapping]:
    """Estimation column -> role mappings used by the reference scenario."""
    return [
        EstimationColumnRoleMapping(estimation_column="Business Analyst", role_name="Business Analyst"),
        EstimationColumnRoleMapping(estimation_column="Requirement & Documentation", role_name="Business Analyst"),
        EstimationColumnRoleMapping(estimation_column="Architect Setup", role_name="Architect"),
        EstimationColumnRoleMapping(estimation_column="BE Development", role_name="Developer"),
        EstimationColumnRoleMapping(estimation_column="FE Development", role_name="Developer"),
        EstimationColumnRoleMapping(estimation_column="SIT (Manual by QA)", role_name="Quality Engineer"),
    ]


@pytest.fixture
def configuration(item_activities, column_roles) -> PresalesConfiguration:
    """Reference configuration without activity rollups."""
    return PresalesConfiguration(
        item_activities=item_activities,
        estimation_column_roles=column_roles,
    )


@pytest.fixture
def rollup_configuration(item_activities, column_roles) -> PresalesConfiguration:
    """Reference configuration rolling Application Development into Development."""
    return PresalesConfiguration(
        item_activities=item_activities,
        estimation_column_roles=column_roles,
        activity_rollups={"Application Development": "Development"},
    )


@pytest.fixture
def config_template_path() -> Path:
    """Path to the shipped configuration template."""
    return Path(__file__).parent.parent / "templates" / "presales_config.toml"
