# reporting/sink.py
from __future__ import annotations

from typing import Optional, Protocol

from ..model import Outcome, TaskId
from ..settings import Settings
from ..ui.console import Console, get_console
from .api_client import APIError, AppVeyorClient
from .models import TaskEvent


class ReportingSink(Protocol):
    def notify_started(self, task: TaskId) -> None: ...

    def notify_finished(self, task: TaskId, outcome: Outcome, message: str) -> None: ...


class NullSink:
    """Sink for local runs: nothing to report to."""

    def notify_started(self, task: TaskId) -> None:
        pass

    def notify_finished(self, task: TaskId, outcome: Outcome, message: str) -> None:
        pass


class AppVeyorSink:
    """
    Forwards task events to the AppVeyor build worker API.

    Best effort: a delivery failure is printed as a warning and dropped,
    it never fails the build.
    """

    def __init__(self, client: AppVeyorClient, console: Optional[Console] = None):
        self.client = client
        self.console = console or get_console()

    def _send(self, event: TaskEvent) -> None:
        try:
            self.client.add_message(event.to_build_message())
        except APIError as e:
            self.console.print_warning(f"Could not report '{event.task}' to AppVeyor: {e}")

    def notify_started(self, task: TaskId) -> None:
        self._send(TaskEvent(task=task.value))

    def notify_finished(self, task: TaskId, outcome: Outcome, message: str) -> None:
        self._send(TaskEvent(task=task.value, outcome=outcome, detail=message))


def sink_for(settings: Settings, console: Optional[Console] = None) -> ReportingSink:
    """AppVeyorSink when running on an AppVeyor worker, NullSink otherwise."""
    if settings.api_url:
        return AppVeyorSink(AppVeyorClient(settings.api_url), console=console)
    return NullSink()
