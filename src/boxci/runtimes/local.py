from __future__ import annotations

import os
import shutil
import tempfile
import uuid
from pathlib import Path
from typing import Dict

from .. import settings
from ..errors import ProvisioningError
from ..model import Job, Step
from .base import ContainerHandle, Runtime


class LocalRuntime(Runtime):
    """
    Runs the step script on the host, in a scratch copy of the repository.

    The copy stands in for the container filesystem: it is created on acquire
    and deleted on release, so nothing the script writes reaches the
    repository. The image reference is kept on the handle but never pulled.
    """
    name = "local"

    def __init__(self, shell: str | None = None):
        self.shell = shell or settings.SHELL

    def acquire(self, job: Job, step: Step, repo_root: Path, env: Dict[str, str]) -> ContainerHandle:
        root = repo_root.resolve()
        if not root.is_dir():
            raise ProvisioningError(
                f"working directory not found: {root}",
                job=job.name,
                step=step.name,
            )

        scratch = tempfile.mkdtemp(prefix="boxci-")
        workdir = Path(scratch) / "workspace"
        try:
            shutil.copytree(root, workdir, symlinks=True)
        except (OSError, shutil.Error) as e:
            shutil.rmtree(scratch, ignore_errors=True)
            raise ProvisioningError(
                f"could not copy {root} into a scratch directory",
                job=job.name,
                step=step.name,
                error=str(e),
            ) from e

        proc_env = os.environ.copy()
        proc_env.update(env)
        return ContainerHandle(
            id=f"local-{uuid.uuid4().hex[:12]}",
            image=step.image,
            argv=[self.shell, "-e", "-c", step.script],
            cwd=str(workdir),
            env=proc_env,
            scratch=scratch,
        )

    def release(self, handle: ContainerHandle) -> None:
        if handle.released:
            return
        if handle.scratch:
            shutil.rmtree(handle.scratch, ignore_errors=True)
        handle.released = True
