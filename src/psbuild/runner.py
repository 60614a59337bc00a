# runner.py
from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Sequence

from .errors import BuildError, ExternalToolError, TOOL_HINTS
from .model import Outcome, RunResult, Task, TaskContext, TaskId
from .reporting.sink import NullSink, ReportingSink
from .settings import Settings
from .ui.console import Console, get_console


@dataclass
class RunReport:
    """
    Results of one build run, in execution order.

    Tasks after a failure never start and therefore have no entry.
    """
    results: Dict[TaskId, RunResult] = field(default_factory=dict)
    failed: Optional[TaskId] = None
    error: Optional[BaseException] = None

    @property
    def succeeded(self) -> bool:
        return self.failed is None

    @property
    def exit_status(self) -> int:
        return 0 if self.succeeded else 1

    @property
    def state(self) -> str:
        return "AllPassed" if self.succeeded else "Aborted"

    def summary(self) -> Dict[str, str]:
        return {tid.value: r.outcome.value for tid, r in self.results.items()}

    def failure_message(self) -> str:
        if self.failed is None:
            return ""
        result = self.results[self.failed]
        return f"Task '{self.failed.value}' failed: {result.message}"


def _first_line(exc: BaseException) -> str:
    if isinstance(exc, BuildError):
        return exc.message
    text = str(exc) or type(exc).__name__
    return text.splitlines()[0]


def _run_task(task: Task, result: RunResult, ctx: TaskContext) -> None:
    """Run every step of one task, merging the counts they hand back."""
    for step in task.steps:
        ctx.console.print_step(step.name)
        counts = step.action(ctx)
        if counts:
            result.counts.update(counts)


def _snapshot(results: Dict[TaskId, RunResult]) -> Mapping[TaskId, RunResult]:
    """Frozen copies of finished results, handed to the next task's steps."""
    return MappingProxyType(
        {tid: replace(r, counts=MappingProxyType(dict(r.counts))) for tid, r in results.items()}
    )


def run_tasks(
    tasks: Sequence[Task],
    settings: Settings,
    *,
    sink: Optional[ReportingSink] = None,
    console: Optional[Console] = None,
) -> RunReport:
    """
    Execute an already resolved plan, one task at a time, in order.

    The first failing task ends the run. Steps only see results of tasks
    that already finished, as frozen copies.
    """
    sink = sink or NullSink()
    console = console or get_console()
    report = RunReport()

    for task in tasks:
        result = RunResult(task=task.id)
        report.results[task.id] = result

        sink.notify_started(task.id)
        console.print_task_start(task.name)
        result.start()

        finished = _snapshot({tid: r for tid, r in report.results.items() if tid != task.id})
        ctx = TaskContext(settings=settings, results=finished, console=console)

        try:
            _run_task(task, result, ctx)
        except Exception as e:  # noqa: BLE001
            result.finish(Outcome.FAILED, _first_line(e))
            report.failed = task.id
            report.error = e

            exit_code = e.exit_code if isinstance(e, ExternalToolError) else None
            hint = None
            if isinstance(e, ExternalToolError) and e.cmd and exit_code is None:
                # the tool never started
                hint = TOOL_HINTS.get(e.cmd.split()[0])
            console.print_failure(task.name, str(e), exit_code=exit_code, hint=hint)
            sink.notify_finished(task.id, Outcome.FAILED, result.message)
            break

        message = result.counts.pop("message", "")
        result.finish(Outcome.PASSED, str(message))
        console.print_success(task.name, result.duration)
        sink.notify_finished(task.id, Outcome.PASSED, result.message)

    return report
