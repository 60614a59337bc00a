# step_workflows/gates.py
from __future__ import annotations

from typing import Any, Dict

from ..errors import GateFailure
from ..model import Step, TaskContext, TaskId

UNIT_TEST_GATE = "Failed '{count}' unit tests."
INTEGRATION_TEST_GATE = "Failed '{count}' integration tests."
ANALYZE_GATE = "PSScriptAnalyzer found '{count}' issue(s)."


def check_gate(ctx: TaskContext, source: TaskId, count_key: str, message: str) -> int:
    """Return the observed count, or raise GateFailure if it is above zero."""
    result = ctx.results.get(source)
    if result is None or count_key not in result.counts:
        raise GateFailure(
            message=f"No '{count_key}' result from task '{source.value}' to check",
            details={"source": source.value},
        )
    count = int(result.counts[count_key])
    if count > 0:
        raise GateFailure(
            message=message.format(count=count),
            details={"source": source.value},
            count=count,
        )
    return count


def gate_step(source: TaskId, count_key: str, message: str) -> Step:
    def _gate(ctx: TaskContext) -> Dict[str, Any]:
        return {"gate_count": check_gate(ctx, source, count_key, message)}

    return Step(name=f"Check {source.value} {count_key}", action=_gate, kind="gate")
