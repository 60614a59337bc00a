# errors.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(eq=False)
class BuildError(Exception):
    """
    Structured build error with enough context for:
      - a clean one-line failure message at the end of a run
      - the detail lines printed under the task banner
      - debugging without full tracebacks
    """
    message: str
    task: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    kind: str = "build_error"

    def __str__(self) -> str:
        lines = [f"{self.kind}: {self.message}"]
        if self.task:
            lines.append(f"task={self.task}")
        for k, v in self.details.items():
            lines.append(f"{k}={v}")
        return "\n".join(lines)


@dataclass(eq=False)
class ConfigurationError(BuildError):
    """A setting the running task needs is missing from the environment."""
    kind: str = "configuration"


@dataclass(eq=False)
class UnknownTaskError(BuildError):
    kind: str = "unknown_task"


@dataclass(eq=False)
class CyclicDependencyError(BuildError):
    cycle: List[str] = field(default_factory=list)
    kind: str = "cyclic_dependency"


@dataclass(eq=False)
class GateFailure(BuildError):
    """A previous stage reported failures (tests, analyzer findings)."""
    count: int = 0
    kind: str = "gate"


@dataclass(eq=False)
class ExternalToolError(BuildError):
    """An external tool or endpoint did not do its job."""
    cmd: Optional[str] = None
    exit_code: Optional[int] = None
    kind: str = "external_tool"


@dataclass(eq=False)
class VersionMismatchError(BuildError):
    expected: Optional[str] = None
    actual: Optional[str] = None
    kind: str = "version_mismatch"


TOOL_HINTS = {
    "pwsh": "Install PowerShell 7 (pwsh) or set PSBUILD_POWERSHELL.",
    "powershell": "Run on Windows PowerShell or set PSBUILD_POWERSHELL=pwsh.",
    "git": "Install Git or fix PATH.",
}
