"""Tests for configuration models and loading."""

import json
import pytest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "shared" / "python"))

from estimation_config import (
    DEFAULT_SIZE_BANDS,
    EstimationPolicy,
    ItemActivityMapping,
    PresalesConfiguration,
    SizeBands,
    load_configuration,
)
from exceptions import ConfigError


class TestEstimationPolicy:
    """Tests for EstimationPolicy defaults and validation."""

    def test_defaults(self):
        policy = EstimationPolicy()

        assert policy.hard_min_per_item_hours == 1
        assert policy.hard_max_per_item_hours == 80
        assert policy.round_to_nearest_hours == 0.5
        assert policy.bands_for("New Interface") == SizeBands(6, 12, 24, 48, 80)

    def test_bands_lookup_case_insensitive(self):
        policy = EstimationPolicy()

        assert policy.bands_for("adjust existing ui") == SizeBands(2, 4, 8, 16, 28)

    def test_unknown_category_uses_default_bands(self):
        assert EstimationPolicy().bands_for("Report") == DEFAULT_SIZE_BANDS
        assert EstimationPolicy().bands_for(None) == DEFAULT_SIZE_BANDS

    def test_inverted_bounds_rejected(self):
        with pytest.raises(ConfigError) as exc_info:
            EstimationPolicy(hard_min_per_item_hours=10, hard_max_per_item_hours=5)

        assert "must not exceed" in str(exc_info.value)

    def test_unordered_bands_rejected(self):
        with pytest.raises(ConfigError, match="must ascend"):
            EstimationPolicy(base_hours_by_category={"New UI": SizeBands(4, 8, 6, 32, 56)})

    def test_non_positive_crud_multiplier_rejected(self):
        with pytest.raises(ConfigError, match="crud_multipliers.read"):
            EstimationPolicy.from_dict({"crud_multipliers": {"read": 0}})

    def test_threshold_outside_unit_interval_rejected(self):
        with pytest.raises(ConfigError, match="justification_score_threshold"):
            EstimationPolicy(justification_score_threshold=1.5)

    def test_all_errors_collected(self):
        with pytest.raises(ConfigError) as exc_info:
            EstimationPolicy(hard_min_per_item_hours=-1, global_shrinkage_to_median=0)

        assert len(exc_info.value.details) == 2


class TestPolicyFromDict:
    """Tests for policy parsing."""

    def test_nested_snake_case_keys(self):
        policy = EstimationPolicy.from_dict({
            "hard_max_per_item_hours": 40,
            "base_hours_by_category": {"New UI": [1, 2, 3, 4, 5]},
            "crud_multipliers": {"create": 1.2},
            "signal_weights": {"per_integration_hours": 8},
        })

        assert policy.hard_max_per_item_hours == 40
        assert policy.bands_for("New UI") == SizeBands(1, 2, 3, 4, 5)
        assert policy.crud_multipliers.create == 1.2
        assert policy.crud_multipliers.read == 0.7
        assert policy.signal_weights.per_integration_hours == 8

    def test_flat_pascal_case_keys(self):
        policy = EstimationPolicy.from_dict({
            "HardMinPerItemHours": 2,
            "RoundToNearestHours": 1,
            "CrudDeleteMultiplier": 0.5,
            "PerFieldHours": 0.25,
            "BaseHoursByCategory": {"New UI": {"XS": 1, "S": 2, "M": 3, "L": 4, "XL": 5}},
        })

        assert policy.hard_min_per_item_hours == 2
        assert policy.round_to_nearest_hours == 1
        assert policy.crud_multipliers.delete == 0.5
        assert policy.signal_weights.per_field_hours == 0.25
        assert policy.bands_for("New UI").xl == 5

    def test_bad_band_shape_rejected(self):
        with pytest.raises(ConfigError, match="Size bands"):
            EstimationPolicy.from_dict({"base_hours_by_category": {"New UI": [1, 2, 3]}})

    def test_string_flag_parsed(self):
        """A stored "false" turns the adjustment cap off."""
        policy = EstimationPolicy.from_dict({"CapAdjustCategoriesToMaxM": "false"})

        assert policy.cap_adjust_categories_to_max_m is False

    def test_unrecognized_flag_rejected(self):
        with pytest.raises(ConfigError, match="cap_adjust_categories_to_max_m must be a boolean"):
            EstimationPolicy.from_dict({"cap_adjust_categories_to_max_m": "sometimes"})

    def test_round_trip(self):
        policy = EstimationPolicy(hard_max_per_item_hours=60)

        assert EstimationPolicy.from_dict(policy.to_dict()) == policy


class TestPresalesConfiguration:
    """Tests for mapping configuration."""

    def test_lists_are_stored_as_tuples(self, configuration):
        assert isinstance(configuration.item_activities, tuple)
        assert isinstance(configuration.estimation_column_roles, tuple)

    def test_section_fallback_flag(self):
        assert ItemActivityMapping("Testing", section_name="QA").is_section_fallback is True
        assert ItemActivityMapping("Testing", item_name="SIT").is_section_fallback is False

    def test_blank_mapping_rejected(self):
        with pytest.raises(ConfigError, match="needs an item_name or a section_name"):
            PresalesConfiguration(item_activities=[ItemActivityMapping("Testing")])

    def test_blank_role_rejected(self):
        with pytest.raises(ConfigError, match="has no role_name"):
            PresalesConfiguration.from_dict({
                "estimation_column_roles": [{"estimation_column": "Dev", "role_name": " "}],
            })

    def test_rollup_activity(self, rollup_configuration):
        assert rollup_configuration.rollup_activity("application development") == "Development"
        assert rollup_configuration.rollup_activity("Testing & QA") == "Testing & QA"

    def test_from_dict_camel_case_records(self):
        config = PresalesConfiguration.from_dict({
            "itemActivities": [
                {"sectionName": "Build", "itemName": "API", "activityName": "Development", "displayOrder": 3},
            ],
            "estimationColumnRoles": [
                {"estimationColumn": "BE Development", "roleName": "Developer"},
            ],
        })

        assert config.item_activities[0].item_name == "API"
        assert config.item_activities[0].display_order == 3
        assert config.estimation_column_roles[0].role_name == "Developer"
        assert config.policy == EstimationPolicy()

    def test_round_trip(self, rollup_configuration):
        restored = PresalesConfiguration.from_dict(rollup_configuration.to_dict())

        assert restored == rollup_configuration


class TestLoadConfiguration:
    """Tests for loading configuration files."""

    def test_load_toml_template(self, config_template_path):
        config = load_configuration(config_template_path)

        assert len(config.item_activities) == 6
        assert len(config.estimation_column_roles) == 6
        assert config.rollup_activity("Application Development") == "Development"
        assert config.policy.bands_for("New Interface").xl == 80

    def test_template_matches_fixture_configuration(self, config_template_path, sample_assessment):
        """The shipped template reproduces the reference role totals."""
        from assessment_task_aggregator import calculate_role_man_days

        config = load_configuration(config_template_path)

        assert calculate_role_man_days(sample_assessment, config) == pytest.approx({
            "Business Analyst": 8,
            "Architect": 3,
            "Developer": 15,
            "Quality Engineer": 2,
        })

    def test_load_json(self, tmp_path, rollup_configuration):
        path = tmp_path / "config.json"
        path.write_text(json.dumps(rollup_configuration.to_dict()))

        assert load_configuration(path) == rollup_configuration

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_configuration(tmp_path / "missing.toml")

    def test_malformed_toml_wrapped(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[policy\nhard_max = ")

        with pytest.raises(ConfigError, match="Configuration error"):
            load_configuration(path)

    def test_invalid_policy_in_file(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[policy]\nhard_min_per_item_hours = 10\nhard_max_per_item_hours = 2\n")

        with pytest.raises(ConfigError, match="Invalid estimation policy"):
            load_configuration(path)
