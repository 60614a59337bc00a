# pipeline.py
# The standard build pipeline of a PowerShell module project.
from __future__ import annotations

from .dag import Registry
from .model import TaskId as T
from .settings import Settings
from .step_workflows import gates
from .step_workflows.analyze import analyze_step
from .step_workflows.docs import build_docs_step
from .step_workflows.files import clean_step, copy_source_step
from .step_workflows.pester import (
    install_dependencies_step,
    integration_tests_step,
    publish_coverage_step,
    unit_tests_step,
    upload_results_step,
)
from .step_workflows.push import push_changes_step
from .step_workflows.version import set_version_step


def testing_stage(settings: Settings) -> list[T]:
    """Prerequisites of the `Test` task; integration tests are opt-in."""
    stage = [
        T.UNIT_TESTS,
        T.FAIL_IF_FAILED_UNIT_TEST,
        T.PUBLISH_UNIT_TESTS_COVERAGE,
        T.UPLOAD_TEST_RESULTS,
    ]
    if settings.integration_tests:
        stage += [T.INTEGRATION_TESTS, T.FAIL_IF_FAILED_INTEGRATION_TEST]
    return stage


def default_registry(settings: Settings) -> Registry:
    reg = Registry()

    reg.register(
        T.DEFAULT,
        needs=[
            T.CLEAN,
            T.INSTALL_DEPENDENCIES,
            T.TEST,
            T.ANALYZE,
            T.FAIL_IF_ANALYZE_FINDINGS,
            T.BUILD_DOCUMENTATION,
            T.SET_MODULE_VERSION,
            T.PUSH_BUILD_CHANGES,
            T.COPY_SOURCE,
        ],
        description="Full pipeline",
    )
    reg.register(T.TEST, needs=testing_stage(settings), description="Tests, coverage and result upload")

    reg.register(T.CLEAN, steps=[clean_step()], description="Recreate the build output folder")
    reg.register(
        T.INSTALL_DEPENDENCIES,
        steps=[install_dependencies_step()],
        description="Install build-time PowerShell modules",
    )

    reg.register(T.UNIT_TESTS, steps=[unit_tests_step()], description="Run Pester unit tests")
    reg.register(
        T.FAIL_IF_FAILED_UNIT_TEST,
        needs=[T.UNIT_TESTS],
        steps=[gates.gate_step(T.UNIT_TESTS, "failed", gates.UNIT_TEST_GATE)],
        description="Stop if any unit test failed",
    )
    reg.register(
        T.PUBLISH_UNIT_TESTS_COVERAGE,
        needs=[T.UNIT_TESTS],
        steps=[publish_coverage_step()],
        description="Publish unit test coverage to Coveralls",
    )
    reg.register(
        T.UPLOAD_TEST_RESULTS,
        needs=[T.UNIT_TESTS],
        steps=[upload_results_step()],
        description="Upload NUnit results to AppVeyor",
    )

    reg.register(
        T.INTEGRATION_TESTS,
        steps=[integration_tests_step()],
        description="Run Pester integration tests",
    )
    reg.register(
        T.FAIL_IF_FAILED_INTEGRATION_TEST,
        needs=[T.INTEGRATION_TESTS],
        steps=[gates.gate_step(T.INTEGRATION_TESTS, "failed", gates.INTEGRATION_TEST_GATE)],
        description="Stop if any integration test failed",
    )

    reg.register(T.ANALYZE, steps=[analyze_step()], description="Run PSScriptAnalyzer")
    reg.register(
        T.FAIL_IF_ANALYZE_FINDINGS,
        needs=[T.ANALYZE],
        steps=[gates.gate_step(T.ANALYZE, "findings", gates.ANALYZE_GATE)],
        description="Stop if PSScriptAnalyzer reported anything",
    )

    reg.register(
        T.BUILD_DOCUMENTATION,
        steps=[build_docs_step()],
        description="Generate platyPS help and mkdocs.yml",
    )
    reg.register(
        T.SET_MODULE_VERSION,
        steps=[set_version_step()],
        description="Write the build version into the manifest",
    )
    reg.register(
        T.PUSH_BUILD_CHANGES,
        needs=[T.SET_MODULE_VERSION],
        steps=[push_changes_step()],
        description="Commit and push generated changes",
    )
    reg.register(
        T.COPY_SOURCE,
        steps=[copy_source_step()],
        description="Copy module source to the build output",
    )
    return reg
