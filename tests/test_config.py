"""Tests for configuration loading and discovery."""

import yaml

from governance_engine.config import (
    EngineConfig,
    find_config_file,
    get_config,
    load_config,
    reset_config,
    save_default_config,
)


class TestDefaults:

    def test_reference_values(self):
        config = EngineConfig()

        assert config.evaluation.technical_base_score == 3
        assert config.evaluation.business_alignment_base == 70.0
        assert config.evaluation.cost_efficiency_base == 60.0
        assert config.evaluation.user_satisfaction_base == 65.0
        assert config.risk_thresholds.critical_cost_efficiency == 50.0
        assert config.recommendations.cost_efficiency_threshold == 70.0
        assert config.direction.action_lead_days == 30
        assert config.direction.placeholder_owner == "TBD"
        assert config.logging.level == "WARNING"

    def test_get_config_is_cached(self):
        assert get_config() is get_config()


class TestLoadConfig:

    def test_partial_file_keeps_other_defaults(self, tmp_path):
        path = tmp_path / "governance-config.yaml"
        path.write_text(
            "evaluation:\n"
            "  cost_efficiency_base: 55\n"
            "direction:\n"
            "  placeholder_owner: PMO\n",
            encoding="utf-8",
        )

        config = load_config(path)

        assert config.evaluation.cost_efficiency_base == 55.0
        assert config.evaluation.business_alignment_base == 70.0
        assert config.direction.placeholder_owner == "PMO"
        assert get_config() is config

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert load_config(path) == EngineConfig()

    def test_reset(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("logging:\n  level: DEBUG\n", encoding="utf-8")
        load_config(path)

        reset_config()

        assert get_config().logging.level == "WARNING"


class TestSaveDefaultConfig:

    def test_round_trip(self, tmp_path):
        path = tmp_path / "nested" / "governance-config.yaml"

        save_default_config(path)

        text = path.read_text(encoding="utf-8")
        assert text.startswith("# Governance Engine Configuration")
        assert yaml.safe_load(text) == EngineConfig().model_dump()
        assert load_config(path) == EngineConfig()


class TestFindConfigFile:

    def test_environment_variable_wins(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "governance-config.yaml").write_text("{}", encoding="utf-8")
        explicit = tmp_path / "explicit.yaml"
        explicit.write_text("{}", encoding="utf-8")
        monkeypatch.setenv("GOVERNANCE_ENGINE_CONFIG", str(explicit))

        assert find_config_file() == explicit

    def test_missing_env_path_falls_through(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path))
        monkeypatch.setenv("GOVERNANCE_ENGINE_CONFIG", str(tmp_path / "missing.yaml"))
        (tmp_path / "governance-config.yml").write_text("{}", encoding="utf-8")

        assert find_config_file().name == "governance-config.yml"

    def test_user_config(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path))
        monkeypatch.delenv("GOVERNANCE_ENGINE_CONFIG", raising=False)
        user = tmp_path / ".config" / "governance-engine" / "config.yaml"
        user.parent.mkdir(parents=True)
        user.write_text("{}", encoding="utf-8")

        assert find_config_file() == user

    def test_nothing_found(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path))
        monkeypatch.delenv("GOVERNANCE_ENGINE_CONFIG", raising=False)

        assert find_config_file() is None
