# step_workflows/powershell.py
from __future__ import annotations

import os
import subprocess
from pathlib import Path, PurePath
from typing import Any, Mapping, Optional

from ..errors import ExternalToolError
from ..settings import Settings


# ---------------------------------------------------------------------
# Python values -> PowerShell source
# ---------------------------------------------------------------------

def ps_quote(text: str) -> str:
    """Single-quoted PowerShell string; embedded quotes are doubled."""
    return "'" + text.replace("'", "''") + "'"


def ps_literal(value: Any) -> str:
    """Render a settings value as a PowerShell literal."""
    if value is None:
        return "$null"
    if isinstance(value, bool):
        return "$true" if value else "$false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, PurePath):
        return ps_quote(str(value))
    if isinstance(value, str):
        return ps_quote(value)
    if isinstance(value, Mapping):
        body = "; ".join(f"{k} = {ps_literal(v)}" for k, v in value.items())
        return "@{ " + body + " }" if body else "@{}"
    if isinstance(value, (list, tuple, set, frozenset)):
        return "@(" + ", ".join(ps_literal(v) for v in value) + ")"
    raise TypeError(f"Cannot render {type(value).__name__} as a PowerShell literal")


def splat(
    cmdlet: str,
    params: Mapping[str, Any],
    var: str = "params",
    assign: Optional[str] = None,
) -> str:
    """`$params = @{...}; [$assign = ]Cmdlet @params`"""
    call = f"{cmdlet} @{var}"
    if assign:
        call = f"${assign} = {call}"
    return f"${var} = {ps_literal(params)}; {call}"


# ---------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------

def _tail(text: str, limit: int = 4000) -> str:
    return (text or "")[-limit:]


def run_pwsh(
    script: str,
    *,
    settings: Settings,
    cwd: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> subprocess.CompletedProcess:
    """
    Run a PowerShell script block and return the finished process.

    `$ErrorActionPreference = 'Stop'` is prepended so a terminating cmdlet
    error turns into a non-zero exit code. Secrets go through `env`, never
    into the script text.
    """
    exe = settings.powershell
    cmd_parts = [
        exe,
        "-NoLogo",
        "-NoProfile",
        "-NonInteractive",
        "-Command",
        "$ErrorActionPreference = 'Stop'; " + script,
    ]
    work_dir = cwd or settings.root

    proc_env = os.environ.copy()
    proc_env.update(env or {})

    try:
        proc = subprocess.run(
            cmd_parts,
            shell=False,
            cwd=str(work_dir),
            env=proc_env,
            text=True,
            capture_output=True,
        )
    except FileNotFoundError:
        raise ExternalToolError(
            message=f"{exe} is not available",
            cmd=exe,
            details={"tool": exe},
        )

    if proc.returncode != 0:
        raise ExternalToolError(
            message=f"{exe} exited with code {proc.returncode}",
            cmd=f"{exe} -Command ...",
            exit_code=proc.returncode,
            details={"stderr": _tail(proc.stderr), "stdout": _tail(proc.stdout)},
        )
    return proc
