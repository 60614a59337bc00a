# reporting/models.py
from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from ..model import Outcome


class BuildMessage(BaseModel):
    """Body of POST /api/build/messages on the AppVeyor build worker API."""
    message: str
    category: str = "information"  # information|warning|error
    details: str = ""


class TaskEvent(BaseModel):
    """A task lifecycle event as the sink sees it."""
    task: str
    outcome: Optional[Outcome] = None
    detail: str = ""
    extra: Dict[str, Any] = Field(default_factory=dict)

    def to_build_message(self) -> BuildMessage:
        if self.outcome is None:
            return BuildMessage(message=f"Task started: {self.task}")
        if self.outcome is Outcome.FAILED:
            return BuildMessage(
                message=f"Task failed: {self.task}",
                category="error",
                details=self.detail,
            )
        return BuildMessage(
            message=f"Task {self.outcome.value}: {self.task}",
            details=self.detail,
        )
