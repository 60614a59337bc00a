from .dag import Registry
from .model import Outcome, RunResult, Step, Task, TaskContext, TaskId
from .pipeline import default_registry
from .runner import RunReport, run_tasks
from .settings import Settings, load_settings

__all__ = [
    "Registry",
    "Outcome",
    "RunResult",
    "Step",
    "Task",
    "TaskContext",
    "TaskId",
    "default_registry",
    "RunReport",
    "run_tasks",
    "Settings",
    "load_settings",
]
