# step_workflows/version.py
from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, Optional

from ..errors import VersionMismatchError
from ..model import Step, TaskContext


def _read_manifest(path: Path) -> str:
    return path.read_text(encoding="utf-8-sig")


def _write_manifest(path: Path, text: str) -> None:
    path.write_text(text, encoding="utf-8")


def read_version(text: str, pattern: str) -> Optional[str]:
    match = re.search(pattern, text)
    return match.group("version") if match else None


def set_module_version(manifest: Path, version: str, pattern: str) -> Dict[str, str]:
    """
    Rewrite the version field of a module manifest and verify it stuck.

    Only the `version` group of the first match is replaced; the rest of the
    line is kept as written. The file is re-read afterwards and the new value
    must match exactly.
    """
    text = _read_manifest(manifest)
    match = re.search(pattern, text)
    if match is None:
        raise VersionMismatchError(
            message=f"No version field matching {pattern!r} in {manifest.name}",
            details={"manifest": str(manifest)},
            expected=version,
        )
    previous = match.group("version")
    start, end = match.span("version")
    _write_manifest(manifest, text[:start] + version + text[end:])

    actual = read_version(_read_manifest(manifest), pattern)
    if actual != version:
        raise VersionMismatchError(
            message=f"Manifest version is '{actual}' after update, expected '{version}'",
            details={"manifest": str(manifest)},
            expected=version,
            actual=actual,
        )
    return {"previous": previous, "version": version}


def set_version_step() -> Step:
    def _bump(ctx: TaskContext) -> Dict[str, Any]:
        s = ctx.settings
        if s.is_pull_request:
            return {"message": "skipped (pull request build)"}
        version = s.require("version")
        counts = set_module_version(s.manifest_path, version, s.version_pattern)
        ctx.console.print_info(f"ModuleVersion {counts['previous']} -> {counts['version']}")
        return counts

    return Step(name="Update ModuleVersion", action=_bump, kind="manifest")
