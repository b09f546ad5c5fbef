"""Console output formatting utilities for cv-pipeline."""

from __future__ import annotations

import sys
from typing import Optional


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug

    def print_identity(
        self,
        job_name: str,
        project: str,
        job_type: str,
        silent: bool,
    ) -> None:
        """Print the resolved job identity."""
        print(f"JobName:{job_name} Project:{project} JobType:{job_type} silentJob:{str(silent).lower()}")

    def print_run_started(
        self,
        project: str,
        workflow: str,
        stage_count: int,
    ) -> None:
        """Print run start information."""
        print("\nRUN STARTED")
        print(f"Project: {project}")
        print(f"Workflow: {workflow}")
        print(f"Stages: {stage_count}")
        print()

    def print_stage_start(self, name: str) -> None:
        """Print stage start message."""
        print(f"\nSTAGE STARTED: {name}")

    def print_step(self, name: str) -> None:
        """Print step start message."""
        print(f"STEP: {name}")

    def print_success(self, name: str) -> None:
        """Print success message."""
        print("STATUS: success")

    def print_failure(
        self,
        name: str,
        reason: str,
        exit_code: Optional[int] = None,
        hint: Optional[str] = None,
        output: Optional[str] = None,
    ) -> None:
        """
        Print failure message.

        Args:
            name: Stage name
            reason: Failure reason/error message
            exit_code: Optional exit code
            hint: Optional hint for user
            output: Optional tail of the failing command's output
        """
        print(f"STAGE FAILED: {name}")
        if exit_code is not None:
            print(f"Exit code: {exit_code}")
        if hint:
            print(f"Hint: {hint}")
        if output:
            print(output.rstrip())
        if self.debug:
            print(f"Error details: {reason}")
        else:
            # Show first line of error for non-debug mode
            error_line = reason.split('\n')[0] if reason else "Unknown error"
            if error_line and error_line != str(reason):
                print(f"Error: {error_line}")

    def print_stage_skipped(self, name: str, reason: str) -> None:
        """Print stage skipped message."""
        print(f"\nSTAGE SKIPPED: {name} ({reason})")

    def print_vote(self, value: int, revision: str) -> None:
        """Print verify-status vote message."""
        print(f"VERIFY: {value:+d} reported for {revision}")

    def print_results(self, results: dict[str, str]) -> None:
        """Print final results summary."""
        print("\n" + "=" * 40)
        print("RESULTS")
        print("=" * 40)
        for stage, status in results.items():
            status_display = status.upper() if status != "ok" else "SUCCESS"
            print(f"  {stage}: {status_display}")

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

    def print_exception(self, exc: Exception) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exc()
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
