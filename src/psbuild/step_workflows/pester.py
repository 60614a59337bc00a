# step_workflows/pester.py
from __future__ import annotations

import urllib.error
import urllib.request
import uuid
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Dict, Mapping

from ..errors import ExternalToolError
from ..model import Step, TaskContext
from .powershell import ps_literal, ps_quote, run_pwsh, splat


# ---------------------------------------------------------------------
# Result parsing
# ---------------------------------------------------------------------

def read_nunit_counts(path: Path) -> Dict[str, int]:
    """
    Pull totals out of a Pester NUnitXml report.

    The `test-results` root carries `total`, `failures` and `errors`;
    errors count as failures.
    """
    if not path.exists():
        raise ExternalToolError(
            message=f"Test result file was not produced: {path}",
            details={"path": str(path)},
        )
    try:
        root = ET.parse(path).getroot()
    except ET.ParseError as e:
        raise ExternalToolError(
            message=f"Test result file is not valid XML: {path}",
            details={"error": str(e)},
        )
    if root.tag != "test-results":
        node = root.find(".//test-results")
        if node is None:
            raise ExternalToolError(
                message=f"No <test-results> element in {path}",
                details={"root": root.tag},
            )
        root = node

    def _int(attr: str) -> int:
        return int(root.get(attr, "0") or 0)

    failed = _int("failures") + _int("errors")
    return {
        "total": _int("total"),
        "failed": failed,
        "skipped": _int("skipped") + _int("not-run"),
    }


# ---------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------

def install_dependencies_step() -> Step:
    def _install(ctx: TaskContext) -> Dict[str, Any]:
        deps = ctx.settings.dependencies
        script = (
            f"foreach ($name in {ps_literal(deps)}) {{ "
            "Install-Module -Name $name -Force -Scope CurrentUser -SkipPublisherCheck -AllowClobber "
            "}"
        )
        proc = run_pwsh(script, settings=ctx.settings)
        ctx.console.print_output(proc.stdout)
        return {"installed": len(deps)}

    return Step(name="Install PowerShell modules", action=_install, kind="pwsh")


def _invoke_pester(ctx: TaskContext, params: Mapping[str, Any], result_file: Path, clixml: Path | None):
    result_file.parent.mkdir(parents=True, exist_ok=True)
    # a report left over from an earlier run must not be read back as this one
    result_file.unlink(missing_ok=True)
    script = splat("Invoke-Pester", params, assign="result")
    if clixml is not None:
        script += f"; $result | Export-Clixml -Path {ps_quote(str(clixml))}"
    proc = run_pwsh(script, settings=ctx.settings)
    ctx.console.print_output(proc.stdout)

    counts = read_nunit_counts(result_file)
    ctx.console.print_info(
        f"Tests: {counts['total']} total, {counts['failed']} failed, {counts['skipped']} skipped"
    )
    return counts


def unit_tests_step() -> Step:
    def _run(ctx: TaskContext) -> Dict[str, Any]:
        s = ctx.settings
        return _invoke_pester(ctx, s.unit_test_params, s.unit_test_result, s.unit_test_clixml)

    return Step(name="Invoke-Pester (unit)", action=_run, kind="pwsh")


def integration_tests_step() -> Step:
    def _run(ctx: TaskContext) -> Dict[str, Any]:
        s = ctx.settings
        return _invoke_pester(ctx, s.integration_test_params, s.integration_test_result, None)

    return Step(name="Invoke-Pester (integration)", action=_run, kind="pwsh")


def publish_coverage_step() -> Step:
    def _publish(ctx: TaskContext) -> Dict[str, Any]:
        s = ctx.settings
        if s.is_pull_request:
            return {"message": "skipped (pull request build)"}
        key = s.require("coveralls_key")
        branch = s.require("branch")
        script = (
            f"$results = Import-Clixml -Path {ps_quote(str(s.unit_test_clixml))}; "
            "$coverage = Format-Coverage -PesterResults $results "
            "-CoverallsApiToken $env:PSBUILD_COVERALLS_KEY -BranchName $env:PSBUILD_BRANCH; "
            "Publish-Coverage -Coverage $coverage"
        )
        proc = run_pwsh(
            script,
            settings=s,
            env={"PSBUILD_COVERALLS_KEY": key, "PSBUILD_BRANCH": branch},
        )
        ctx.console.print_output(proc.stdout)
        return {}

    return Step(name="Publish coverage to Coveralls", action=_publish, kind="pwsh")


# ---------------------------------------------------------------------
# Test result upload
# ---------------------------------------------------------------------

def _multipart(field: str, filename: str, payload: bytes) -> tuple[bytes, str]:
    boundary = uuid.uuid4().hex
    head = (
        f"--{boundary}\r\n"
        f'Content-Disposition: form-data; name="{field}"; filename="{filename}"\r\n'
        "Content-Type: application/xml\r\n\r\n"
    ).encode("utf-8")
    tail = f"\r\n--{boundary}--\r\n".encode("utf-8")
    return head + payload + tail, f"multipart/form-data; boundary={boundary}"


def upload_file(url: str, path: Path, timeout: float = 60.0) -> int:
    """POST a file as multipart/form-data and return the HTTP status."""
    if not path.exists():
        raise ExternalToolError(
            message=f"Nothing to upload, file not found: {path}",
            details={"path": str(path)},
        )
    body, content_type = _multipart("file", path.name, path.read_bytes())
    req = urllib.request.Request(
        url,
        data=body,
        headers={"Content-Type": content_type},
        method="POST",
    )
    try:
        with urllib.request.urlopen(req, timeout=timeout) as response:
            return response.status
    except urllib.error.HTTPError as e:
        raise ExternalToolError(
            message=f"Upload failed: HTTP {e.code} {e.reason}",
            details={"url": url},
        )
    except urllib.error.URLError as e:
        raise ExternalToolError(
            message=f"Upload failed: {e.reason}",
            details={"url": url},
        )


def upload_results_step() -> Step:
    def _upload(ctx: TaskContext) -> Dict[str, Any]:
        s = ctx.settings
        s.require("job_id")
        status = upload_file(s.test_upload_url, s.unit_test_result)
        ctx.console.print_info(f"Uploaded {s.unit_test_result.name} (HTTP {status})")
        return {"upload_status": status}

    return Step(name="Upload NUnit results", action=_upload, kind="http")
