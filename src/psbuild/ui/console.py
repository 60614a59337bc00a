"""Console output formatting utilities for psbuild."""

from __future__ import annotations

import sys
from typing import Iterable, Optional


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug

    def print_header(self, title: str) -> None:
        """Print a section header."""
        print(f"\n{title}")
        print("-" * len(title))

    def print_run_started(
        self,
        module: str,
        target: str,
        task_count: int,
    ) -> None:
        """Print run start information."""
        print("\nBUILD STARTED")
        print(f"Module: {module}")
        print(f"Target: {target}")
        print(f"Tasks: {task_count}")
        print()

    def print_plan(self, names: Iterable[str]) -> None:
        """Print the resolved task order."""
        for idx, name in enumerate(names, start=1):
            print(f"  {idx:>2}. {name}")

    def print_task_start(self, name: str) -> None:
        """Print the per-task banner."""
        print(f"\nTASK: {name}")

    def print_step(self, name: str) -> None:
        """Print step start message."""
        print(f"STEP: {name}")

    def print_success(self, name: str, duration: Optional[float] = None) -> None:
        """Print success message."""
        if duration is not None:
            print(f"STATUS: passed ({duration:.1f}s)")
        else:
            print("STATUS: passed")

    def print_failure(
        self,
        name: str,
        reason: str,
        exit_code: Optional[int] = None,
        hint: Optional[str] = None,
    ) -> None:
        """
        Print failure message.

        Args:
            name: Task name
            reason: Failure reason/error message
            exit_code: Optional exit code of the external tool
            hint: Optional hint for user
        """
        print(f"TASK FAILED: {name}")
        if exit_code is not None:
            print(f"Exit code: {exit_code}")
        if hint:
            print(f"Hint: {hint}")
        if self.debug:
            print(f"Error details: {reason}")
        else:
            # First line only outside debug mode
            error_line = reason.split("\n")[0] if reason else "Unknown error"
            print(f"Error: {error_line}")

    def print_output(self, text: str) -> None:
        """Echo captured tool output (debug mode only)."""
        if self.debug and text:
            print(text.rstrip())

    def print_results(self, results: dict[str, str]) -> None:
        """Print final results summary."""
        print("\n" + "=" * 40)
        print("RESULTS")
        print("=" * 40)
        for task, status in results.items():
            print(f"  {task}: {status.upper()}")

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_warning(self, message: str) -> None:
        """Print a non-fatal warning."""
        print(f"WARNING: {message}", file=sys.stderr)

    def print_exception(self, exc: BaseException) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exception(type(exc), exc, exc.__traceback__)
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
