from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Dict, List

from .. import settings
from ..errors import ProvisioningError
from ..model import Job, Step
from ..ui.console import get_console
from .base import ContainerHandle, LineSink, Runtime, stream


TOOL_HINTS = {
    "docker": "Install Docker and ensure the daemon is running.",
    "podman": "Install Podman or fix PATH.",
}


# ---------------------------------------------------------------------
# Docker / Podman runtime
# ---------------------------------------------------------------------

class DockerRuntime(Runtime):
    """
    Runs each step in a fresh container driven through the docker CLI.

    The repository is copied (not mounted) into the step workdir, so build
    output is thrown away with the container. The script is passed to
    `<shell> -e -c` so the first failing command ends the step. A container
    whose shell never starts (no `/bin/sh` in the image) is reported as a
    provisioning error, not a step failure.
    """
    name = "docker"

    def __init__(self, executable: str = "docker", shell: str | None = None):
        self.executable = executable
        self.shell = shell or settings.SHELL

    def _check_available(self, job: Job, step: Step) -> None:
        if shutil.which(self.executable) is None:
            raise ProvisioningError(
                f"{self.executable} is not available",
                job=job.name,
                step=step.name,
                hint=TOOL_HINTS.get(self.executable, f"Install {self.executable} or fix PATH."),
            )

    def create_command(self, step: Step, env: Dict[str, str]) -> List[str]:
        spec = step.container
        cmd = [self.executable, "create", "--entrypoint", self.shell, "-w", spec.workdir]

        for key, value in env.items():
            cmd.extend(["-e", f"{key}={value}"])

        cmd.append(spec.image)
        cmd.extend(["-e", "-c", spec.script.content])
        return cmd

    def copy_command(self, container_id: str, step: Step, repo_root: Path) -> List[str]:
        # copy, never mount: whatever the script writes dies with the container
        return [self.executable, "cp", f"{repo_root.resolve()}/.", f"{container_id}:{step.container.workdir}"]

    def acquire(self, job: Job, step: Step, repo_root: Path, env: Dict[str, str]) -> ContainerHandle:
        self._check_available(job, step)
        console = get_console()
        console.print_debug(f"{self.executable} create {step.image} for step '{step.name}'")

        proc = subprocess.run(
            self.create_command(step, env),
            text=True,
            capture_output=True,
        )
        if proc.returncode != 0:
            raise ProvisioningError(
                f"could not create a container from image '{step.image}'",
                job=job.name,
                step=step.name,
                image=step.image,
                exit_code=proc.returncode,
                stderr=_last_line(proc.stderr),
            )

        container_id = proc.stdout.strip().splitlines()[-1]
        handle = ContainerHandle(
            id=container_id,
            image=step.image,
            argv=[self.executable, "start", "--attach", container_id],
        )

        proc = subprocess.run(
            self.copy_command(container_id, step, repo_root),
            text=True,
            capture_output=True,
        )
        if proc.returncode != 0:
            self.release(handle)
            raise ProvisioningError(
                f"could not copy {repo_root} into the container",
                job=job.name,
                step=step.name,
                image=step.image,
                exit_code=proc.returncode,
                stderr=_last_line(proc.stderr),
            )
        return handle

    def execute(self, handle: ContainerHandle, on_line: LineSink) -> int:
        lines: List[str] = []

        def collect(line: str) -> None:
            lines.append(line)
            on_line(line)

        exit_code = stream(handle.argv, collect)
        if exit_code != 0 and _never_started(exit_code, lines):
            raise ProvisioningError(
                f"container from image '{handle.image}' could not start {self.shell}",
                image=handle.image,
                exit_code=exit_code,
                stderr=lines[-1] if lines else "",
            )
        return exit_code

    def release(self, handle: ContainerHandle) -> None:
        if handle.released:
            return
        proc = subprocess.run(
            [self.executable, "rm", "--force", handle.id],
            text=True,
            capture_output=True,
        )
        handle.released = True
        if proc.returncode != 0:
            get_console().print_warning(
                f"could not remove container {handle.id[:12]}: {proc.stderr.strip()}"
            )


class PodmanRuntime(DockerRuntime):
    name = "podman"

    def __init__(self, shell: str | None = None):
        super().__init__(executable="podman", shell=shell)


# Errors printed by the engine itself when the entrypoint cannot be exec'd.
ENGINE_ERROR_MARKERS = ("Error response from daemon", "OCI runtime")


def _last_line(text: str) -> str:
    lines = text.strip().splitlines()
    return lines[-1] if lines else ""


def _never_started(exit_code: int, lines: List[str]) -> bool:
    """True when the shell never ran: an engine error, or 126/127 with no output at all."""
    if any(marker in line for line in lines for marker in ENGINE_ERROR_MARKERS):
        return True
    return exit_code in (126, 127) and not lines
