"""
Tests for overtime_config -- YAML loading, env overrides, bridges.
"""

from decimal import Decimal

import pytest
import yaml

from overtime_config import DEFAULT_CONFIG_PATH, OvertimeConfig, get_active_config
from overtime_config.bridges import (
    executive_roles_from_config,
    policy_from_config,
    thresholds_from_config,
)
from overtime_config.loader import (
    load_config,
    load_yaml_file,
    parse_config,
    parse_executive_roles,
    parse_logging,
    parse_policy,
    parse_scheduler,
    parse_thresholds,
)
from overtime_kernel.domain.authority import DEFAULT_EXECUTIVE_ROLES
from overtime_kernel.domain.overtime import OvertimePolicy
from overtime_kernel.domain.usage import UsageThresholds


def write_yaml(tmp_path, data, name="overtime.yaml"):
    path = tmp_path / name
    path.write_text(yaml.safe_dump(data))
    return path


class TestDefaultSet:
    def test_bundled_set_matches_schema_defaults(self):
        assert load_config(DEFAULT_CONFIG_PATH) == OvertimeConfig()

    def test_default_values(self):
        config = get_active_config(environ={})
        assert config.policy.daily_max_hours == Decimal("12")
        assert config.policy.grace_period_minutes == 30
        assert config.thresholds.manager_reminder_ratio == Decimal("0.9")
        assert config.thresholds.warning_window_hours == Decimal("0.25")
        assert config.scheduler.tick_interval_seconds == 300
        assert set(config.executive_roles) == DEFAULT_EXECUTIVE_ROLES

    def test_trace_logged(self, captured_logs):
        get_active_config(environ={})
        trace = [r for r in captured_logs() if r["message"] == "OVERTIME_CONFIG_TRACE"]
        assert trace[0]["config_id"] == "default"
        assert trace[0]["database_url_overridden"] is False


class TestEnvironment:
    def test_config_path_from_env(self, tmp_path):
        path = write_yaml(tmp_path, {"config_id": "studio-b", "policy": {"grace_period_minutes": 10}})
        config = get_active_config(environ={"OVERTIME_CONFIG_PATH": str(path)})
        assert config.config_id == "studio-b"
        assert config.policy.grace_period_minutes == 10

    def test_explicit_path_beats_env(self, tmp_path):
        explicit = write_yaml(tmp_path, {"config_id": "explicit"}, "a.yaml")
        from_env = write_yaml(tmp_path, {"config_id": "env"}, "b.yaml")
        config = get_active_config(explicit, environ={"OVERTIME_CONFIG_PATH": str(from_env)})
        assert config.config_id == "explicit"

    def test_database_url_override(self):
        config = get_active_config(
            environ={"OVERTIME_DATABASE_URL": "postgresql://ot@localhost/overtime"},
        )
        assert config.database.url == "postgresql://ot@localhost/overtime"
        assert config.database.pool_size == 10

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "nope.yaml", environ={})


class TestParsing:
    def test_partial_file_falls_back_to_defaults(self, tmp_path):
        path = write_yaml(tmp_path, {"policy": {"daily_max_hours": 10}})
        config = load_config(path)
        assert config.policy.daily_max_hours == Decimal("10")
        assert config.policy.grace_period_minutes == 30
        assert config.thresholds == OvertimeConfig().thresholds

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_yaml_file(path) == {}
        assert load_config(path) == OvertimeConfig()

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError):
            load_yaml_file(path)

    def test_roles_normalized(self):
        assert parse_executive_roles([" producer", "OWNER", "owner"]) == ("OWNER", "PRODUCER")

    @pytest.mark.parametrize(
        "parser, data",
        [
            (parse_policy, {"daily_max_hours": 0}),
            (parse_policy, {"daily_max_hours": "lots"}),
            (parse_policy, {"grace_period_minutes": -5}),
            (parse_policy, {"grace_period_minutes": 1.5}),
            (parse_thresholds, {"manager_reminder_ratio": 1.5}),
            (parse_thresholds, {"warning_window_hours": -1}),
            (parse_scheduler, {"tick_interval_seconds": 0}),
            (parse_scheduler, {"tick_interval_seconds": True}),
            (parse_logging, {"level": "CHATTY"}),
        ],
    )
    def test_invalid_values(self, parser, data):
        with pytest.raises(ValueError):
            parser(data)

    @pytest.mark.parametrize("roles", ["PRODUCER", [""], [1]])
    def test_invalid_roles(self, roles):
        with pytest.raises(ValueError):
            parse_executive_roles(roles)

    def test_section_must_be_mapping(self):
        with pytest.raises(ValueError):
            parse_config({"policy": [1, 2]})

    def test_zero_grace_allowed(self):
        assert parse_policy({"grace_period_minutes": 0}).grace_period_minutes == 0


class TestBridges:
    def test_policy(self):
        config = parse_config({"policy": {"daily_max_hours": 8, "grace_period_minutes": 15}})
        assert policy_from_config(config) == OvertimePolicy(Decimal("8"), 15)

    def test_thresholds(self):
        thresholds = thresholds_from_config(OvertimeConfig())
        assert thresholds == UsageThresholds()

    def test_roles(self):
        config = parse_config({"executive_roles": ["admin"]})
        assert executive_roles_from_config(config) == frozenset({"ADMIN"})
