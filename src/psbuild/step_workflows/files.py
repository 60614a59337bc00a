# step_workflows/files.py
from __future__ import annotations

import shutil
from typing import Any, Dict

from ..errors import BuildError
from ..model import Step, TaskContext


def clean_step() -> Step:
    def _clean(ctx: TaskContext) -> Dict[str, Any]:
        out = ctx.settings.build_output
        if out.exists():
            shutil.rmtree(out)
            ctx.console.print_debug(f"Removed {out}")
        out.mkdir(parents=True)
        return {}

    return Step(name="Reset build output", action=_clean, kind="fs")


def copy_source_step() -> Step:
    def _copy(ctx: TaskContext) -> Dict[str, Any]:
        s = ctx.settings
        if not s.source_folder.is_dir():
            raise BuildError(
                message=f"Module source folder not found: {s.source_folder}",
                kind="missing_source",
            )
        dest = s.build_output / s.module_name
        if dest.exists():
            shutil.rmtree(dest)
        shutil.copytree(s.source_folder, dest)
        copied = sum(1 for p in dest.rglob("*") if p.is_file())
        ctx.console.print_info(f"Copied {copied} file(s) to {dest}")
        return {"files": copied}

    return Step(name="Copy module source", action=_copy, kind="fs")
