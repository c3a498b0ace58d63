# runtimes/base.py
from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..model import Job, Step

LineSink = Callable[[str], None]


@dataclass
class ContainerHandle:
    """A container acquired for one step; released exactly once."""
    id: str
    image: str
    argv: List[str] = field(default_factory=list)  # what execute() runs
    cwd: Optional[str] = None
    env: Optional[Dict[str, str]] = None
    scratch: Optional[str] = None  # host directory removed on release
    released: bool = False


class Runtime:
    """
    Container backend contract used by the runner:

        handle = rt.acquire(job, step, repo_root, env)   # may raise ProvisioningError
        try:
            exit_code = rt.execute(handle, on_line)
        finally:
            rt.release(handle)
    """
    name = "base"

    def acquire(self, job: Job, step: Step, repo_root: Path, env: Dict[str, str]) -> ContainerHandle:
        raise NotImplementedError

    def execute(self, handle: ContainerHandle, on_line: LineSink) -> int:
        return stream(handle.argv, on_line, cwd=handle.cwd, env=handle.env)

    def release(self, handle: ContainerHandle) -> None:
        handle.released = True


def stream(
    argv: List[str],
    on_line: LineSink,
    *,
    cwd: Optional[str] = None,
    env: Optional[Dict[str, str]] = None,
) -> int:
    """Run argv, feeding merged stdout/stderr to on_line as it arrives. Returns the exit code."""
    proc = subprocess.Popen(
        argv,
        cwd=cwd,
        env=env,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        errors="replace",
        bufsize=1,
    )
    try:
        assert proc.stdout is not None
        for line in proc.stdout:
            on_line(line.rstrip("\n"))
    finally:
        if proc.stdout is not None:
            proc.stdout.close()
        returncode = proc.wait()
    return returncode
