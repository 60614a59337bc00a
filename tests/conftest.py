import pytest

from psbuild.settings import load_settings
from psbuild.ui.console import Console, set_console


@pytest.fixture
def console():
    c = Console(debug=False)
    set_console(c)
    return c


@pytest.fixture
def environ():
    return {
        "APPVEYOR_PROJECT_NAME": "MyModule",
        "APPVEYOR_JOB_ID": "job-42",
        "APPVEYOR_REPO_BRANCH": "master",
        "APPVEYOR_BUILD_VERSION": "1.2.3",
        "APPVEYOR_REPO_NAME": "octo/MyModule",
    }


@pytest.fixture
def settings(tmp_path, environ):
    return load_settings(tmp_path, environ=environ)


@pytest.fixture
def module_tree(settings):
    """A minimal module source tree under the project root."""
    src = settings.source_folder
    (src / "Public").mkdir(parents=True)
    (src / "Public" / "Get-Thing.ps1").write_text("function Get-Thing { 'thing' }\n")
    settings.manifest_path.write_text(
        "@{\n    RootModule = 'MyModule.psm1'\n    ModuleVersion = '1.0.0'\n}\n",
        encoding="utf-8",
    )
    return src
