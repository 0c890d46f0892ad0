"""Tests for system configuration loading."""

import pytest
from pydantic import ValidationError

from folio.system import SystemConfig, get_system_config, reload_system_config
from folio.system import config as config_module


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Start each test without FOLIO_CONFIG and drop the cached singleton afterwards."""
    monkeypatch.delenv(config_module.CONFIG_ENV_VAR, raising=False)
    config_module._system_config = None
    yield
    config_module._system_config = None


class TestSystemConfig:
    """Test SystemConfig defaults and validation."""

    def test_defaults(self):
        config = SystemConfig()

        assert config.unknown_asset_type == "unknown"
        assert config.solver.max_iterations == 100
        assert config.logging.level == "INFO"
        assert config.logging.enable_file is False

    def test_blank_unknown_label_rejected(self):
        with pytest.raises(ValidationError, match="cannot be blank"):
            SystemConfig(unknown_asset_type="  ")

    def test_invalid_solver_rejected(self):
        with pytest.raises(ValidationError):
            SystemConfig(solver={"max_iterations": 0})

    def test_immutable(self):
        config = SystemConfig()

        with pytest.raises(ValidationError):
            config.unknown_asset_type = "other"  # type: ignore[misc]


class TestFromYaml:
    """Test YAML loading."""

    def test_load_nested_sections(self, tmp_path):
        path = tmp_path / "folio.yaml"
        path.write_text(
            "logging:\n"
            "  level: DEBUG\n"
            "  format: json\n"
            "solver:\n"
            "  max_iterations: 200\n"
            "  tolerance: 0.00001\n"
            "unknown_asset_type: unclassified\n"
        )

        config = SystemConfig.from_yaml(path)

        assert config.logging.level == "DEBUG"
        assert config.logging.format == "json"
        assert config.solver.max_iterations == 200
        assert config.solver.tolerance == 0.00001
        assert config.solver.initial_guess == 0.10
        assert config.unknown_asset_type == "unclassified"

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert SystemConfig.from_yaml(path) == SystemConfig()

    def test_non_mapping_root_rejected(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ValueError, match="must be a mapping"):
            SystemConfig.from_yaml(path)

    def test_invalid_value_rejected(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("solver:\n  lower_bound: -2\n")

        with pytest.raises(ValidationError):
            SystemConfig.from_yaml(path)

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            SystemConfig.from_yaml(tmp_path / "absent.yaml")


class TestSystemConfigSingleton:
    """Test environment-driven singleton."""

    def test_defaults_without_env(self):
        assert get_system_config() == SystemConfig()

    def test_cached_between_calls(self):
        assert get_system_config() is get_system_config()

    def test_loaded_from_env(self, tmp_path, monkeypatch):
        path = tmp_path / "folio.yaml"
        path.write_text("unknown_asset_type: other\n")
        monkeypatch.setenv("FOLIO_CONFIG", str(path))

        assert get_system_config().unknown_asset_type == "other"

    def test_reload_picks_up_changes(self, tmp_path, monkeypatch):
        path = tmp_path / "folio.yaml"
        path.write_text("unknown_asset_type: first\n")
        monkeypatch.setenv("FOLIO_CONFIG", str(path))
        assert get_system_config().unknown_asset_type == "first"

        path.write_text("unknown_asset_type: second\n")

        assert get_system_config().unknown_asset_type == "first"
        assert reload_system_config().unknown_asset_type == "second"
        assert get_system_config().unknown_asset_type == "second"

    def test_aggregator_uses_configured_label(self, tmp_path, monkeypatch, make_event):
        from folio.services.position import aggregate

        path = tmp_path / "folio.yaml"
        path.write_text("unknown_asset_type: unclassified\n")
        monkeypatch.setenv("FOLIO_CONFIG", str(path))

        portfolio = aggregate({"PETR4": [make_event("buy", 1, "10")]})

        assert portfolio.allocation[0].asset_type == "unclassified"
