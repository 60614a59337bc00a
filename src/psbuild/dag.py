# dag.py
from __future__ import annotations

from typing import Dict, Iterable, List, Set

from .errors import CyclicDependencyError, UnknownTaskError
from .model import Step, Task, TaskId


class Registry:
    """
    Named tasks plus their prerequisites.

    Ids are TaskId members; plain strings are parsed, so an unknown name is
    rejected when it is registered instead of halfway through a build.
    """

    def __init__(self) -> None:
        self._tasks: Dict[TaskId, Task] = {}

    def register(
        self,
        task_id: TaskId | str,
        needs: Iterable[TaskId | str] = (),
        steps: Iterable[Step] = (),
        description: str = "",
    ) -> Task:
        tid = TaskId.parse(task_id)
        if tid in self._tasks:
            raise ValueError(f"Duplicate task name: {tid.value}")
        task = Task(
            id=tid,
            needs=tuple(TaskId.parse(n) for n in needs),
            steps=tuple(steps),
            description=description,
        )
        self._tasks[tid] = task
        return task

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    def __iter__(self):
        return iter(self._tasks.values())

    def __len__(self) -> int:
        return len(self._tasks)

    def get(self, task_id: TaskId | str) -> Task:
        tid = TaskId.parse(task_id)
        if tid not in self._tasks:
            raise UnknownTaskError(
                message=f"Task '{tid.value}' is not registered",
                task=tid.value,
                details={"registered": ", ".join(t.value for t in self._tasks)},
            )
        return self._tasks[tid]

    def resolve(self, target: TaskId | str = TaskId.DEFAULT) -> List[Task]:
        """
        Execution plan for `target`.

        Depth-first post-order over the prerequisites: every task comes after
        all of its prerequisites, siblings keep declaration order, and each
        task appears once. Composite tasks (no steps) are walked through but
        left out of the plan. Unknown names and cycles raise before anything
        runs.
        """
        root = self.get(target)
        order: List[Task] = []
        done: Set[TaskId] = set()
        # current DFS path, used both for cycle detection and the error message
        path: List[TaskId] = []

        def visit(task: Task) -> None:
            if task.id in done:
                return
            if task.id in path:
                cycle = [t.value for t in path[path.index(task.id):]] + [task.id.value]
                raise CyclicDependencyError(
                    message="Task dependencies form a cycle: " + " -> ".join(cycle),
                    task=task.id.value,
                    cycle=cycle,
                )
            path.append(task.id)
            for dep in task.needs:
                if dep not in self._tasks:
                    raise UnknownTaskError(
                        message=f"Task '{task.id.value}' needs missing task '{dep.value}'",
                        task=task.id.value,
                        details={"registered": ", ".join(t.value for t in self._tasks)},
                    )
                visit(self._tasks[dep])
            path.pop()
            done.add(task.id)
            order.append(task)

        visit(root)
        return [t for t in order if not t.is_composite]
