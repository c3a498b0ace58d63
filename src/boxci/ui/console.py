"""Console output formatting utilities for boxci."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from ..errors import CIError
    from ..model import Job, JobResult, Trigger


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False, quiet: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
            quiet: If True, do not echo script output while it runs
        """
        self.debug = debug
        self.quiet = quiet

    def print_run_started(
        self,
        repository: str,
        descriptor: str,
        job_count: int,
        runtime: str,
        trigger: "Trigger",
    ) -> None:
        """Print run start information."""
        print("\nRUN STARTED")
        print(f"Repository: {repository}")
        print(f"Descriptor: {descriptor}")
        print(f"Jobs: {job_count}")
        print(f"Runtime: {runtime}")
        commit = f" @ {trigger.commit[:12]}" if trigger.commit else ""
        print(f"Trigger: {trigger.event} {trigger.ref}{commit}")

    def print_job_start(self, name: str) -> None:
        print(f"\nJOB STARTED: {name}")

    def print_step(self, name: str, image: str) -> None:
        print(f"STEP: {name} [{image}]")

    def print_output(self, line: str) -> None:
        """Echo one line of script output."""
        if not self.quiet:
            print(f"  | {line}")

    def print_success(self, name: str, is_job: bool = False) -> None:
        prefix = "JOB SUCCEEDED" if is_job else "STEP SUCCEEDED"
        print(f"{prefix}: {name}")

    def print_failure(self, name: str, error: "CIError", is_job: bool = False) -> None:
        """
        Print failure message.

        Args:
            name: Job or step name
            error: The CIError that ended the step (and with it the job)
            is_job: If True, print "JOB FAILED", otherwise "STEP FAILED"
        """
        prefix = "JOB FAILED" if is_job else "STEP FAILED"
        print(f"{prefix}: {name}")
        print(f"Reason: {error.kind}: {error.message}")
        if is_job:
            if error.step:
                print(f"Failed step: {error.step}")
            return
        exit_code = error.details.get("exit_code")
        if exit_code is not None:
            print(f"Exit code: {exit_code}")
        command = error.details.get("command")
        if command:
            print(f"Failing command: {command}")
        hint = error.details.get("hint")
        if hint:
            print(f"Hint: {hint}")
        if self.debug:
            print(f"Error details: {error}")
        output = getattr(error, "output", None)
        # echoed live already unless quiet
        if output and self.quiet:
            print("Output (tail):")
            for line in output:
                print(f"  | {line}")

    def print_plan(self, jobs: List["Job"]) -> None:
        """Print the jobs and steps of a descriptor without running it."""
        for j in jobs:
            print(f"JOB: {j.name}")
            for i, s in enumerate(j.steps, start=1):
                print(f"  {i}. {s.name} [{s.image}]")
                for line in s.script.splitlines():
                    print(f"       {line}")

    def print_results(self, results: List["JobResult"], skipped: Optional[List[str]] = None) -> None:
        """Print final results summary."""
        print("\n" + "=" * 40)
        print("RESULTS")
        print("=" * 40)
        for res in results:
            print(f"  {res.name}: {res.status.upper()}")
            for s in res.steps:
                duration = f" ({s.duration:.1f}s)" if s.duration else ""
                print(f"    - {s.name}: {s.status.upper()}{duration}")
        for name in skipped or []:
            print(f"  {name}: NOT_STARTED")

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
        print(message)

    def print_warning(self, message: str) -> None:
        print(f"WARNING: {message}", file=sys.stderr)

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
