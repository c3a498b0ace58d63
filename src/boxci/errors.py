# errors.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class CIError(Exception):
    """
    Structured CI error with enough context for:
      - clean CLI output
      - attributing a failure to a job/step
      - debugging without full tracebacks
    """
    kind: str
    job: str
    step: str | None
    message: str
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        lines = [f"{self.kind}: {self.message}", f"job={self.job}"]
        if self.step:
            lines.append(f"step={self.step}")
        for k, v in self.details.items():
            lines.append(f"{k}={v}")
        return "\n".join(lines)


class ProvisioningError(CIError):
    """The container could not be acquired (bad image, missing runtime)."""

    def __init__(self, message: str, *, job: str = "", step: str | None = None, **details):
        super().__init__(kind="provisioning", job=job, step=step, message=message, details=details)


class DescriptorError(CIError):
    """A descriptor was rejected before anything ran."""

    def __init__(self, message: str, *, source: str | None = None, **details):
        if source:
            details["source"] = source
        super().__init__(kind="descriptor", job="", step=None, message=message, details=details)


class StepFailure(CIError):
    """A step's script exited non-zero."""

    def __init__(
        self,
        *,
        job: str,
        step: str,
        exit_code: int,
        output: Optional[List[str]] = None,
        command: Optional[str] = None,
    ):
        details = {"exit_code": exit_code}
        if command:
            details["command"] = command
        super().__init__(
            kind="step_failed",
            job=job,
            step=step,
            message=f"step '{step}' failed (exit={exit_code})",
            details=details,
        )
        self.exit_code = exit_code
        self.output = list(output or [])
        self.command = command
