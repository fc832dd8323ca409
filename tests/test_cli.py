"""Tests for the governance-engine CLI."""

import json

import pytest
import yaml
from click.testing import CliRunner

from governance_engine import __version__
from governance_engine.cli import main

from test_loader import workspace_document, write_yaml


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep config discovery away from the developer's files."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("GOVERNANCE_ENGINE_CONFIG", raising=False)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def workspace_file(tmp_path):
    return write_yaml(tmp_path, workspace_document())


def test_version(runner):
    result = runner.invoke(main, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


class TestDemo:

    def test_json_output(self, runner):
        result = runner.invoke(main, ["demo", "-j"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert len(data["applications"]) == 14
        assert len(data["portfolios"]) == 5
        assert len(data["monitoring"]) == 14
        # onboarding plus one evaluation and one monitoring event per agreement
        assert data["events"] == 78 + 14 + 14

    def test_tables(self, runner):
        result = runner.invoke(main, ["demo"])

        assert result.exit_code == 0, result.output
        assert "Application Assessments" in result.output
        assert "Portfolio Health" in result.output
        assert "legacy-finance-001" in result.output


class TestEvaluate:

    def test_all_governed_applications(self, runner, workspace_file):
        result = runner.invoke(main, ["evaluate", str(workspace_file), "-j"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert [a["application_id"] for a in data] == ["pay-001", "crm-001", "old-001"]

    def test_single_application(self, runner, workspace_file):
        result = runner.invoke(main, ["evaluate", str(workspace_file), "-a", "old-001", "-j"])

        assert result.exit_code == 0, result.output
        (assessment,) = json.loads(result.output)
        assert assessment["risk_level"] == "critical"
        assert [r["id"] for r in assessment["recommendations"]][-1] == "risk-001"

    def test_portfolio(self, runner, workspace_file):
        result = runner.invoke(main, ["evaluate", str(workspace_file), "-p", "p-core", "-j"])

        assert result.exit_code == 0, result.output
        health = json.loads(result.output)
        assert health["total_applications"] == 2
        assert health["active_applications"] == 2

    def test_write_results_file(self, runner, workspace_file, tmp_path):
        out = tmp_path / "results.json"

        result = runner.invoke(main, ["evaluate", str(workspace_file), "-o", str(out)])

        assert result.exit_code == 0, result.output
        assert "Application Assessments" in result.output
        assert len(json.loads(out.read_text(encoding="utf-8"))) == 3

    def test_application_and_portfolio_are_exclusive(self, runner, workspace_file):
        result = runner.invoke(main, ["evaluate", str(workspace_file), "-a", "pay-001", "-p", "p-core"])

        assert result.exit_code == 1
        assert "not both" in result.output

    def test_unknown_application(self, runner, workspace_file):
        result = runner.invoke(main, ["evaluate", str(workspace_file), "-a", "ghost"])

        assert result.exit_code == 1
        assert "Error" in result.output


class TestMonitor:

    def test_single_agreement(self, runner, workspace_file):
        result = runner.invoke(main, ["monitor", str(workspace_file), "-g", "gov-pay-001", "-j"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert list(data) == ["gov-pay-001"]
        assert [m["kpi_id"] for m in data["gov-pay-001"]["kpi_measurements"]] == ["kpi-001", "kpi-002"]

    def test_text_output(self, runner, workspace_file):
        result = runner.invoke(main, ["monitor", str(workspace_file)])

        assert result.exit_code == 0, result.output
        assert "gov-crm-001" in result.output
        assert "Technical Debt" in result.output


class TestValidate:

    def test_valid(self, runner, workspace_file):
        result = runner.invoke(main, ["validate", str(workspace_file)])

        assert result.exit_code == 0
        assert "Workspace valid" in result.output

    def test_invalid(self, runner, tmp_path):
        doc = workspace_document()
        doc["portfolios"][0]["applications"].append("ghost-001")
        path = write_yaml(tmp_path, doc, "broken.yaml")

        result = runner.invoke(main, ["validate", str(path)])

        assert result.exit_code == 1
        assert "Workspace invalid" in result.output
        assert "ghost-001" in result.output

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(main, ["validate", str(tmp_path / "nope.yaml")])

        assert result.exit_code == 1
        assert "not found" in result.output


class TestInspect:

    def test_tables(self, runner, workspace_file):
        result = runner.invoke(main, ["inspect", str(workspace_file)])

        assert result.exit_code == 0, result.output
        assert "Applications" in result.output
        assert "Portfolios" in result.output
        assert "pay-001" in result.output

    def test_application_detail(self, runner, workspace_file):
        result = runner.invoke(main, ["inspect", str(workspace_file), "-a", "pay-001"])

        assert result.exit_code == 0, result.output
        assert "Payroll" in result.output
        assert "Portfolios: p-core" in result.output
        assert "Payroll Governance" in result.output


class TestInitConfig:

    def test_creates_file(self, runner, tmp_path):
        out = tmp_path / "governance-config.yaml"

        result = runner.invoke(main, ["init-config", "--out", str(out)])

        assert result.exit_code == 0
        assert "Config file created" in result.output
        assert yaml.safe_load(out.read_text(encoding="utf-8"))["direction"]["placeholder_owner"] == "TBD"

    def test_refuses_to_overwrite(self, runner, tmp_path):
        out = tmp_path / "custom.yaml"
        out.write_text("keep: me\n", encoding="utf-8")

        result = runner.invoke(main, ["init-config", "--out", str(out)])

        assert result.exit_code == 1
        assert "already exists" in result.output
        assert out.read_text(encoding="utf-8") == "keep: me\n"

    def test_force(self, runner, tmp_path):
        out = tmp_path / "custom.yaml"
        out.write_text("keep: me\n", encoding="utf-8")

        result = runner.invoke(main, ["init-config", "--out", str(out), "--force"])

        assert result.exit_code == 0
        assert "evaluation" in yaml.safe_load(out.read_text(encoding="utf-8"))


class TestConfigOption:

    def test_explicit_config_changes_scores(self, runner, workspace_file, tmp_path):
        config = tmp_path / "strict.yaml"
        config.write_text("evaluation:\n  cost_efficiency_base: 0\n", encoding="utf-8")

        result = runner.invoke(main, ["--config", str(config), "evaluate", str(workspace_file), "-a", "pay-001", "-j"])

        assert result.exit_code == 0, result.output
        (assessment,) = json.loads(result.output)
        assert assessment["risk_level"] == "critical"
