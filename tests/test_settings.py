"""Tests for settings loading."""

import dataclasses

import pytest

from psbuild.errors import ConfigurationError
from psbuild.settings import load_settings


class TestLoad:
    def test_paths_derive_from_root_and_module(self, tmp_path, settings):
        root = tmp_path.resolve()
        assert settings.root == root
        assert settings.module_name == "MyModule"
        assert settings.build_output == root / "BuildOutput"
        assert settings.source_folder == root / "MyModule"
        assert settings.manifest_path == root / "MyModule" / "MyModule.psd1"
        assert settings.unit_test_result == root / "BuildOutput" / "UnitTestsResult.xml"

    def test_module_name_falls_back_to_root_name(self, tmp_path):
        s = load_settings(tmp_path, environ={})
        assert s.module_name == tmp_path.resolve().name

    def test_parameter_templates(self, settings):
        assert settings.unit_test_params["OutputFile"] == str(settings.unit_test_result)
        assert settings.unit_test_params["PassThru"] is True
        assert settings.analyze_params["Severity"] == ("Error", "Warning")
        assert settings.platyps_params["Module"] == "MyModule"
        assert "Pester" in settings.dependencies

    def test_upload_url_uses_job_id(self, settings):
        assert settings.test_upload_url == "https://ci.appveyor.com/api/testresults/nunit/job-42"

    def test_mkdocs_header(self, settings):
        assert settings.mkdocs_header.startswith("site_name: MyModule\n")
        assert "github.com/octo/MyModule" in settings.mkdocs_header

    def test_blank_variables_are_unset(self, tmp_path, environ):
        environ["APPVEYOR_BUILD_VERSION"] = "   "
        assert load_settings(tmp_path, environ=environ).version is None

    def test_powershell_override(self, tmp_path, environ):
        environ["PSBUILD_POWERSHELL"] = "powershell"
        assert load_settings(tmp_path, environ=environ).powershell == "powershell"

    @pytest.mark.parametrize("value,expected", [("1", True), ("true", True), ("0", False), ("", False)])
    def test_integration_flag(self, tmp_path, environ, value, expected):
        environ["PSBUILD_INTEGRATION_TESTS"] = value
        assert load_settings(tmp_path, environ=environ).integration_tests is expected


class TestImmutable:
    def test_frozen(self, settings):
        with pytest.raises(dataclasses.FrozenInstanceError):
            settings.version = "9.9.9"

    def test_nested_params_frozen(self, settings):
        with pytest.raises(TypeError):
            settings.unit_test_params["Script"] = "elsewhere"


class TestRequire:
    def test_missing_secret_does_not_fail_load(self, settings):
        assert settings.github_key is None

    def test_require_names_variable(self, settings):
        with pytest.raises(ConfigurationError) as info:
            settings.require("coveralls_key")
        assert info.value.details["variable"] == "Coveralls_Key"

    def test_require_returns_value(self, settings):
        assert settings.require("version") == "1.2.3"

    def test_redacted_masks_secrets(self, tmp_path, environ):
        environ["GitHub_Key"] = "ghp_secret"
        s = load_settings(tmp_path, environ=environ)
        assert s.redacted()["github_key"] == "****"
        assert s.redacted()["version"] == "1.2.3"


class TestPullRequest:
    def test_not_a_pull_request(self, settings):
        assert settings.is_pull_request is False

    def test_pull_request_number(self, tmp_path, environ):
        environ["APPVEYOR_PULL_REQUEST_NUMBER"] = "17"
        assert load_settings(tmp_path, environ=environ).is_pull_request is True

    def test_garbage_number(self, tmp_path, environ):
        environ["APPVEYOR_PULL_REQUEST_NUMBER"] = "abc"
        with pytest.raises(ConfigurationError):
            load_settings(tmp_path, environ=environ)
