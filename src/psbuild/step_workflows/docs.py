# step_workflows/docs.py
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

from ..model import Step, TaskContext
from .powershell import ps_quote, run_pwsh, splat


def docs_entries(commands_dir: Path, docs_root: Path) -> List[str]:
    """One mkdocs nav line per generated markdown page, sorted by file name."""
    if not commands_dir.is_dir():
        return []
    lines = []
    for page in sorted(commands_dir.glob("*.md"), key=lambda p: p.name.lower()):
        rel = page.relative_to(docs_root).as_posix()
        lines.append(f"    - {page.stem}: {rel}")
    return lines


def build_docs_index(header: str, commands_dir: Path, docs_root: Path, out_path: Path) -> int:
    """Write mkdocs.yml as the static header plus the generated entries."""
    entries = docs_entries(commands_dir, docs_root)
    text = header if header.endswith("\n") else header + "\n"
    text += "".join(line + "\n" for line in entries)
    out_path.write_text(text, encoding="utf-8")
    return len(entries)


def build_docs_step() -> Step:
    def _docs(ctx: TaskContext) -> Dict[str, Any]:
        s = ctx.settings
        commands_dir = Path(s.platyps_params["OutputFolder"])
        commands_dir.mkdir(parents=True, exist_ok=True)

        script = (
            f"Import-Module {ps_quote(str(s.manifest_path))} -Force; "
            + splat("New-MarkdownHelp", s.platyps_params)
            + " | Out-Null"
        )
        proc = run_pwsh(script, settings=s)
        ctx.console.print_output(proc.stdout)

        pages = build_docs_index(s.mkdocs_header, commands_dir, s.docs_folder, s.mkdocs_path)
        ctx.console.print_info(f"Wrote {s.mkdocs_path.name} with {pages} command page(s)")
        return {"pages": pages}

    return Step(name="New-MarkdownHelp + mkdocs.yml", action=_docs, kind="docs")
