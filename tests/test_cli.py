"""Tests for the command line entry point."""

import pytest
from click.testing import CliRunner

from psbuild import cli as cli_mod
from psbuild.cli import cli

ENV = {
    "APPVEYOR_PROJECT_NAME": "MyModule",
    "APPVEYOR_API_URL": "",
}


@pytest.fixture
def runner():
    return CliRunner()


def invoke(runner, tmp_path, *args):
    return runner.invoke(cli, ["--root", str(tmp_path), *args], env=ENV)


class TestPlan:
    def test_default_plan(self, runner, tmp_path):
        result = invoke(runner, tmp_path, "plan")
        assert result.exit_code == 0
        lines = [l.strip() for l in result.output.splitlines() if l.strip()[:1].isdigit()]
        assert lines[0] == "1. Clean"
        assert lines[-1] == "12. Copy_Source_To_Build_Output"

    def test_unknown_target(self, runner, tmp_path):
        result = invoke(runner, tmp_path, "plan", "Deploy")
        assert result.exit_code == 1


class TestList:
    def test_lists_tasks(self, runner, tmp_path):
        result = invoke(runner, tmp_path, "list")
        assert result.exit_code == 0
        assert "Fail_If_Failed_Unit_Test <- Unit_Tests" in result.output


class TestRun:
    def test_clean_runs_for_real(self, runner, tmp_path):
        result = invoke(runner, tmp_path, "run", "Clean")
        assert result.exit_code == 0, result.output
        assert (tmp_path / "BuildOutput").is_dir()
        assert "Clean: PASSED" in result.output

    def test_failure_exit_status(self, runner, tmp_path):
        # no MyModule/ folder to copy
        result = invoke(runner, tmp_path, "run", "Copy_Source_To_Build_Output")
        assert result.exit_code == 1
        assert "Copy_Source_To_Build_Output: FAILED" in result.output

    def test_unknown_target_runs_nothing(self, runner, tmp_path, monkeypatch):
        monkeypatch.setattr(cli_mod, "run_tasks", lambda *a, **k: pytest.fail("should not run"))
        result = invoke(runner, tmp_path, "run", "Deploy")
        assert result.exit_code == 1

    def test_default_target_is_full_pipeline(self, runner, tmp_path, monkeypatch):
        seen = {}

        def fake_run_tasks(plan, settings, *, sink=None, console=None):
            seen["plan"] = [t.name for t in plan]
            from psbuild.runner import RunReport

            return RunReport()

        monkeypatch.setattr(cli_mod, "run_tasks", fake_run_tasks)
        result = invoke(runner, tmp_path, "run")
        assert result.exit_code == 0
        assert seen["plan"][0] == "Clean"
        assert len(seen["plan"]) == 12
