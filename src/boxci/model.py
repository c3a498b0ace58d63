# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from . import settings

# Step / job lifecycle: not_started -> running -> {succeeded, failed}
NOT_STARTED = "not_started"
RUNNING = "running"
SUCCEEDED = "succeeded"
FAILED = "failed"

DEFAULT_WORKDIR = settings.WORKDIR


@dataclass(frozen=True)
class ShellScript:
    """Opaque script text handed verbatim to a shell."""
    content: str


@dataclass(frozen=True)
class ContainerSpec:
    """Image reference plus the shell script executed inside it."""
    image: str
    script: ShellScript
    env: Dict[str, str] = field(default_factory=dict)
    workdir: str = DEFAULT_WORKDIR


@dataclass(frozen=True)
class Step:
    """A single containerized unit of work inside a job."""
    name: str
    container: ContainerSpec

    @property
    def image(self) -> str:
        return self.container.image

    @property
    def script(self) -> str:
        return self.container.script.content


@dataclass(frozen=True)
class Job:
    """
    A CI job: a display name and an ordered sequence of container steps.

    Names are for humans and need not be unique.
    """
    name: str
    steps: tuple[Step, ...]


@dataclass(frozen=True)
class Trigger:
    """The repository event that started a run."""
    event: str = "manual"
    ref: str = "HEAD"
    commit: Optional[str] = None

    def to_env(self) -> Dict[str, str]:
        env = {"BOXCI_EVENT": self.event, "BOXCI_REF": self.ref}
        if self.commit:
            env["BOXCI_COMMIT"] = self.commit
        return env


@dataclass
class StepResult:
    name: str
    status: str = NOT_STARTED
    exit_code: Optional[int] = None
    duration: float = 0.0
    output: List[str] = field(default_factory=list)  # tail only
    error: Optional[str] = None


@dataclass
class JobResult:
    name: str
    steps: List[StepResult] = field(default_factory=list)

    @property
    def status(self) -> str:
        statuses = [s.status for s in self.steps]
        if FAILED in statuses:
            return FAILED
        if RUNNING in statuses:
            return RUNNING
        if statuses and all(s == SUCCEEDED for s in statuses):
            return SUCCEEDED
        if any(s == SUCCEEDED for s in statuses):
            return RUNNING
        return NOT_STARTED

    @property
    def ok(self) -> bool:
        return self.status == SUCCEEDED

    @property
    def failed_step(self) -> Optional[StepResult]:
        for s in self.steps:
            if s.status == FAILED:
                return s
        return None
