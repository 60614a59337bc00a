# settings.py
from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple

from .errors import ConfigurationError

# setting name -> environment variable it is read from
ENV_VARS = {
    "module_name": "APPVEYOR_PROJECT_NAME",
    "job_id": "APPVEYOR_JOB_ID",
    "branch": "APPVEYOR_REPO_BRANCH",
    "pull_request_number": "APPVEYOR_PULL_REQUEST_NUMBER",
    "version": "APPVEYOR_BUILD_VERSION",
    "coveralls_key": "Coveralls_Key",
    "github_key": "GitHub_Key",
    "repo_name": "APPVEYOR_REPO_NAME",
    "commit_author": "APPVEYOR_REPO_COMMIT_AUTHOR",
    "commit_email": "APPVEYOR_REPO_COMMIT_AUTHOR_EMAIL",
    "api_url": "APPVEYOR_API_URL",
    "powershell": "PSBUILD_POWERSHELL",
    "integration_tests": "PSBUILD_INTEGRATION_TESTS",
}

SECRETS = ("coveralls_key", "github_key")

DEPENDENCIES = ("Pester", "PSScriptAnalyzer", "platyPS", "Coveralls")

VERSION_PATTERN = r"ModuleVersion\s*=\s*'(?P<version>[^']*)'"

TEST_UPLOAD_URL = "https://ci.appveyor.com/api/testresults/nunit/{job_id}"

MKDOCS_HEADER = """\
site_name: {module_name}
repo_url: https://github.com/{repo_name}
theme: readthedocs
pages:
  - Home: index.md
  - Commands:
"""

_TRUTHY = {"1", "true", "yes", "on"}


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


@dataclass(frozen=True)
class Settings:
    """
    Everything a build run reads, resolved once at start-up.

    Environment-backed values may be None. Tasks that need one call
    `require()`, so a missing secret only fails the task that uses it.
    """
    root: Path
    module_name: str
    build_output: Path
    source_folder: Path
    manifest_path: Path
    docs_folder: Path
    mkdocs_path: Path
    unit_test_result: Path
    unit_test_clixml: Path
    integration_test_result: Path
    dependencies: Tuple[str, ...]
    unit_test_params: Mapping[str, Any]
    integration_test_params: Mapping[str, Any]
    analyze_params: Mapping[str, Any]
    platyps_params: Mapping[str, Any]
    version_pattern: str
    mkdocs_header: str
    test_upload_url: Optional[str]
    powershell: str = "pwsh"
    integration_tests: bool = False
    job_id: Optional[str] = None
    branch: Optional[str] = None
    pull_request_number: Optional[int] = None
    version: Optional[str] = None
    coveralls_key: Optional[str] = None
    github_key: Optional[str] = None
    repo_name: Optional[str] = None
    commit_author: Optional[str] = None
    commit_email: Optional[str] = None
    api_url: Optional[str] = None

    @property
    def is_pull_request(self) -> bool:
        return bool(self.pull_request_number and self.pull_request_number > 0)

    def require(self, name: str) -> Any:
        """Return a setting or raise ConfigurationError naming its variable."""
        value = getattr(self, name)
        if value is None or value == "":
            env = ENV_VARS.get(name, name)
            raise ConfigurationError(
                message=f"Required setting '{name}' is not set",
                details={"variable": env},
            )
        return value

    def redacted(self) -> dict:
        """Settings as a plain dict with secrets masked (for --debug output)."""
        out = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in SECRETS and value:
                value = "****"
            out[f.name] = value
        return out


def _env(environ: Mapping[str, str], name: str) -> Optional[str]:
    value = environ.get(ENV_VARS[name])
    if value is None:
        return None
    value = value.strip()
    return value or None


def _int_or_none(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(
            message=f"Expected an integer, got {value!r}",
            details={"variable": ENV_VARS["pull_request_number"]},
        )


def load_settings(
    root: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """
    Build the Settings for one run from the environment and fixed templates.

    Paths are derived from `root` (defaults to the current directory).
    """
    if environ is None:
        environ = os.environ
    root_p = Path(root or ".").resolve()

    module_name = _env(environ, "module_name") or root_p.name
    build_output = root_p / "BuildOutput"
    source_folder = root_p / module_name
    manifest_path = source_folder / f"{module_name}.psd1"
    docs_folder = root_p / "docs"

    unit_test_result = build_output / "UnitTestsResult.xml"
    integration_test_result = build_output / "IntegrationTestsResult.xml"

    job_id = _env(environ, "job_id")
    repo_name = _env(environ, "repo_name")

    unit_test_params = {
        "Script": str(root_p / "Tests" / "Unit"),
        "CodeCoverage": str(source_folder / "*" / "*.ps1"),
        "OutputFile": str(unit_test_result),
        "OutputFormat": "NUnitXml",
        "PassThru": True,
    }
    integration_test_params = {
        "Script": str(root_p / "Tests" / "Integration"),
        "OutputFile": str(integration_test_result),
        "OutputFormat": "NUnitXml",
        "PassThru": True,
    }
    analyze_params = {
        "Path": str(source_folder),
        "Severity": ["Error", "Warning"],
        "Recurse": True,
    }
    platyps_params = {
        "Module": module_name,
        "OutputFolder": str(docs_folder / "Commands"),
        "Force": True,
        "NoMetadata": True,
    }

    return Settings(
        root=root_p,
        module_name=module_name,
        build_output=build_output,
        source_folder=source_folder,
        manifest_path=manifest_path,
        docs_folder=docs_folder,
        mkdocs_path=root_p / "mkdocs.yml",
        unit_test_result=unit_test_result,
        unit_test_clixml=build_output / "UnitTestsResult.clixml",
        integration_test_result=integration_test_result,
        dependencies=DEPENDENCIES,
        unit_test_params=_freeze(unit_test_params),
        integration_test_params=_freeze(integration_test_params),
        analyze_params=_freeze(analyze_params),
        platyps_params=_freeze(platyps_params),
        version_pattern=VERSION_PATTERN,
        mkdocs_header=MKDOCS_HEADER.format(
            module_name=module_name,
            repo_name=repo_name or module_name,
        ),
        test_upload_url=TEST_UPLOAD_URL.format(job_id=job_id) if job_id else None,
        powershell=_env(environ, "powershell") or "pwsh",
        integration_tests=(_env(environ, "integration_tests") or "").lower() in _TRUTHY,
        job_id=job_id,
        branch=_env(environ, "branch"),
        pull_request_number=_int_or_none(_env(environ, "pull_request_number")),
        version=_env(environ, "version"),
        coveralls_key=_env(environ, "coveralls_key"),
        github_key=_env(environ, "github_key"),
        repo_name=repo_name,
        commit_author=_env(environ, "commit_author"),
        commit_email=_env(environ, "commit_email"),
        api_url=_env(environ, "api_url"),
    )
