# cli.py
from __future__ import annotations

import sys

import click

from psbuild.errors import BuildError
from psbuild.model import TaskId
from psbuild.pipeline import default_registry
from psbuild.reporting.sink import NullSink, sink_for
from psbuild.runner import run_tasks
from psbuild.settings import load_settings
from psbuild.ui.console import Console, get_console, set_console


def _fail(ctx: click.Context, exc: BaseException) -> None:
    console = get_console()
    if isinstance(exc, BuildError):
        console.print_error(
            exc.kind.replace("_", " ").capitalize(),
            exc.message,
            details=[f"{k}: {v}" for k, v in exc.details.items()] or None,
        )
    else:
        console.print_exception(exc)
    ctx.exit(1)


def _prepare(ctx: click.Context, target: str):
    settings = load_settings(ctx.obj["root"])
    registry = default_registry(settings)
    plan = registry.resolve(TaskId.parse(target))
    return settings, registry, plan


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and full tool output)",
)
@click.option(
    "--root",
    default=".",
    type=click.Path(file_okay=False),
    help="Project root (folder holding the module source and Tests/)",
)
@click.pass_context
def cli(ctx, debug, root):
    """psbuild: build pipeline for a PowerShell module."""
    console = Console(debug=debug)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["root"] = root


@cli.command()
@click.argument("target", default=TaskId.DEFAULT.value)
@click.option("--report/--no-report", default=True, help="Send task events to the AppVeyor build API when available")
@click.pass_context
def run(ctx, target, report):
    """Run TARGET and everything it depends on (default: the full pipeline)."""
    console = get_console()

    try:
        settings, _registry, plan = _prepare(ctx, target)
    except BuildError as e:
        _fail(ctx, e)
        return

    console.print_debug(f"Settings: {settings.redacted()}")
    console.print_run_started(
        module=settings.module_name,
        target=target,
        task_count=len(plan),
    )

    sink = sink_for(settings, console) if report else NullSink()
    try:
        result = run_tasks(plan, settings, sink=sink, console=console)
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)

    console.print_results(result.summary())
    if not result.succeeded:
        console.print_error("Build failed", result.failure_message())
    ctx.exit(result.exit_status)


@cli.command()
@click.argument("target", default=TaskId.DEFAULT.value)
@click.pass_context
def plan(ctx, target):
    """Print the tasks TARGET would run, in order, without running them."""
    console = get_console()
    try:
        _settings, _registry, tasks = _prepare(ctx, target)
    except BuildError as e:
        _fail(ctx, e)
        return
    console.print_header(f"Plan for '{target}'")
    console.print_plan(t.name for t in tasks)


@cli.command("list")
@click.pass_context
def list_tasks(ctx):
    """List every registered task and what it needs."""
    console = get_console()
    try:
        settings = load_settings(ctx.obj["root"])
    except BuildError as e:
        _fail(ctx, e)
        return
    for task in default_registry(settings):
        needs = ", ".join(n.value for n in task.needs)
        line = f"{task.name}"
        if needs:
            line += f" <- {needs}"
        if task.description:
            line += f"  # {task.description}"
        console.print_info(line)


if __name__ == "__main__":
    cli()
