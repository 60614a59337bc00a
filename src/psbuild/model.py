# model.py
from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Mapping, Optional, Tuple

from .errors import UnknownTaskError

if TYPE_CHECKING:
    from .settings import Settings
    from .ui.console import Console


class TaskId(str, enum.Enum):
    """Every task the build pipeline knows about. Values are the printed names."""

    DEFAULT = "."
    TEST = "Test"
    CLEAN = "Clean"
    INSTALL_DEPENDENCIES = "Install_Dependencies"
    UNIT_TESTS = "Unit_Tests"
    FAIL_IF_FAILED_UNIT_TEST = "Fail_If_Failed_Unit_Test"
    PUBLISH_UNIT_TESTS_COVERAGE = "Publish_Unit_Tests_Coverage"
    UPLOAD_TEST_RESULTS = "Upload_Test_Results_To_AppVeyor"
    INTEGRATION_TESTS = "Integration_Tests"
    FAIL_IF_FAILED_INTEGRATION_TEST = "Fail_If_Failed_Integration_Test"
    ANALYZE = "Analyze"
    FAIL_IF_ANALYZE_FINDINGS = "Fail_If_Analyze_Findings"
    BUILD_DOCUMENTATION = "Build_Documentation"
    SET_MODULE_VERSION = "Set_Module_Version"
    PUSH_BUILD_CHANGES = "Push_Build_Changes_To_Repo"
    COPY_SOURCE = "Copy_Source_To_Build_Output"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, name: "str | TaskId") -> "TaskId":
        """Accept a member, a task name (`Unit_Tests`) or a member name (`unit_tests`)."""
        if isinstance(name, cls):
            return name
        key = str(name).strip()
        for member in cls:
            if key == member.value or key.lower() in (member.value.lower(), member.name.lower()):
                return member
        raise UnknownTaskError(
            message=f"Unknown task '{key}'",
            task=key,
            details={"known": ", ".join(m.value for m in cls)},
        )


class Outcome(str, enum.Enum):
    PENDING = "pending"
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"


@dataclass(frozen=True)
class Step:
    """A single action inside a task: an external tool call or a file operation."""
    name: str
    action: Callable[["TaskContext"], Optional[Mapping[str, Any]]]
    kind: str = "fs"


@dataclass(frozen=True)
class Task:
    """
    A named unit of pipeline work.

    `needs` lists prerequisites in declaration order. A task without steps
    is composite: it only groups its prerequisites.
    """
    id: TaskId
    needs: Tuple[TaskId, ...] = ()
    steps: Tuple[Step, ...] = ()
    description: str = ""

    @property
    def name(self) -> str:
        return self.id.value

    @property
    def is_composite(self) -> bool:
        return not self.steps


@dataclass
class RunResult:
    """Outcome and diagnostic counts captured for one executed task."""
    task: TaskId
    outcome: Outcome = Outcome.PENDING
    counts: Dict[str, Any] = field(default_factory=dict)
    message: str = ""
    started_at: Optional[float] = None
    finished_at: Optional[float] = None

    def start(self) -> None:
        self.outcome = Outcome.RUNNING
        self.started_at = time.monotonic()

    def finish(self, outcome: Outcome, message: str = "") -> None:
        self.outcome = outcome
        self.message = message
        self.finished_at = time.monotonic()

    @property
    def passed(self) -> bool:
        return self.outcome is Outcome.PASSED

    @property
    def duration(self) -> Optional[float]:
        if self.started_at is None or self.finished_at is None:
            return None
        return self.finished_at - self.started_at


@dataclass(frozen=True)
class TaskContext:
    """What a step gets to see: settings, finished results, and the console."""
    settings: "Settings"
    results: Mapping[TaskId, RunResult]
    console: "Console"
