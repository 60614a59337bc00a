# step_workflows/analyze.py
from __future__ import annotations

import json
from typing import Any, Dict, List

from ..errors import ExternalToolError
from ..model import Step, TaskContext
from .powershell import run_pwsh, splat


def parse_findings(output: str) -> List[Dict[str, Any]]:
    """
    Decode `ConvertTo-Json` output of Invoke-ScriptAnalyzer.

    No findings prints nothing, one finding prints a bare object, more
    print an array.
    """
    text = (output or "").strip()
    if not text:
        return []
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ExternalToolError(
            message="Could not parse PSScriptAnalyzer output as JSON",
            details={"error": str(e), "output": text[:500]},
        )
    if isinstance(data, dict):
        return [data]
    if isinstance(data, list):
        return [d for d in data if isinstance(d, dict)]
    raise ExternalToolError(
        message=f"Unexpected PSScriptAnalyzer output type: {type(data).__name__}",
    )


def format_finding(finding: Dict[str, Any]) -> str:
    where = finding.get("ScriptName") or "?"
    line = finding.get("Line")
    if line is not None:
        where = f"{where}:{line}"
    return f"[{finding.get('Severity', '?')}] {finding.get('RuleName', '?')} {where} {finding.get('Message', '')}".rstrip()


def analyze_step() -> Step:
    def _analyze(ctx: TaskContext) -> Dict[str, Any]:
        s = ctx.settings
        script = (
            splat("Invoke-ScriptAnalyzer", s.analyze_params, assign="findings")
            + "; if ($findings) { @($findings | Select-Object RuleName, "
            "@{ n = 'Severity'; e = { \"$($_.Severity)\" } }, ScriptName, Line, Message) "
            "| ConvertTo-Json -Depth 3 -Compress }"
        )
        proc = run_pwsh(script, settings=s)
        findings = parse_findings(proc.stdout)
        for finding in findings:
            ctx.console.print_info(format_finding(finding))
        ctx.console.print_info(f"PSScriptAnalyzer findings: {len(findings)}")
        return {"findings": len(findings)}

    return Step(name="Invoke-ScriptAnalyzer", action=_analyze, kind="pwsh")
