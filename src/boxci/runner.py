# runner.py
from __future__ import annotations

import runpy
import time
from collections import deque
from pathlib import Path
from typing import Deque, Dict, List, Optional, Type

from . import settings
from .errors import CIError, DescriptorError, StepFailure
from .model import FAILED, RUNNING, SUCCEEDED, Job, JobResult, Step, StepResult, Trigger
from .runtimes.base import Runtime
from .runtimes.docker import DockerRuntime, PodmanRuntime
from .runtimes.local import LocalRuntime
from .schema import jobs_from_json
from .ui.console import get_console


RUNTIMES: Dict[str, Type[Runtime]] = {
    "docker": DockerRuntime,
    "podman": PodmanRuntime,
    "local": LocalRuntime,
}


def get_runtime(name: str | None = None) -> Runtime:
    name = name or settings.RUNTIME
    try:
        return RUNTIMES[name]()
    except KeyError:
        raise ValueError(f"Unknown runtime {name!r}; expected one of {sorted(RUNTIMES)}") from None


# ----------------------------------------------------------------------
# Descriptor loading (local file)
# ----------------------------------------------------------------------

def load_descriptor(path: str | Path) -> List[Job]:
    """
    Load jobs from a descriptor file.

    A .py descriptor must define one of:
      - workflow() -> List[Job]
      - JOBS = [Job, ...]
      - JOB = Job(...)

    A .json descriptor must hold the document produced by `boxci show --json`.
    """
    path = Path(path).expanduser().resolve()
    if not path.exists():
        raise FileNotFoundError(f"Descriptor file not found: {path}")

    if path.suffix == ".json":
        return jobs_from_json(path.read_text(encoding="utf-8"), source=str(path))
    if path.suffix != ".py":
        raise DescriptorError(f"Descriptor must be a .py or .json file, got: {path.name}", source=str(path))

    module_name = f"boxci_descriptor_{path.stem}"
    try:
        globals_dict = runpy.run_path(str(path), run_name=module_name)
    except (ValueError, TypeError) as e:
        # raised by the dsl helpers on a malformed job
        raise DescriptorError(str(e), source=str(path)) from e

    jobs = None
    if "workflow" in globals_dict and callable(globals_dict["workflow"]):
        jobs = globals_dict["workflow"]()
    elif "JOBS" in globals_dict:
        jobs = globals_dict["JOBS"]
    elif "JOB" in globals_dict:
        jobs = [globals_dict["JOB"]]

    if not isinstance(jobs, list) or not jobs or not all(isinstance(j, Job) for j in jobs):
        raise DescriptorError(
            "Descriptor must return/define a non-empty List[Job]. "
            "Define workflow() -> List[Job], JOBS = [Job, ...] or JOB = job(...).",
            source=str(path),
        )

    return jobs


# ----------------------------------------------------------------------
# Execution primitives
# ----------------------------------------------------------------------

def _last_traced_command(lines: List[str], prefix: str | None = None) -> Optional[str]:
    """
    The last `set -x` trace line, if the script traces itself.

    Only lines carrying our PS4 prefix count; tool output such as diff hunks
    also starts with "+ " and must not be mistaken for a command.
    """
    prefix = prefix or settings.TRACE_PREFIX
    for line in reversed(lines):
        if line.startswith(prefix):
            return line[len(prefix):].strip() or None
    return None


def step_env(job: Job, step: Step, trigger: Trigger) -> Dict[str, str]:
    env = trigger.to_env()
    env["BOXCI_JOB"] = job.name
    env["BOXCI_STEP"] = step.name
    # the shell prefixes xtrace lines with PS4
    env["PS4"] = settings.TRACE_PREFIX
    env.update(step.container.env)
    return env


def _run_step(
    job: Job,
    step: Step,
    runtime: Runtime,
    repo_root: Path,
    trigger: Trigger,
    tail: Deque[str],
) -> None:
    console = get_console()

    def on_line(line: str) -> None:
        tail.append(line)
        console.print_output(line)

    handle = runtime.acquire(job, step, repo_root, step_env(job, step, trigger))
    console.print_debug(f"[{job.name}] acquired {handle.id} ({handle.image})")
    try:
        exit_code = runtime.execute(handle, on_line)
    except CIError as e:
        e.job = e.job or job.name
        e.step = e.step or step.name
        raise
    finally:
        runtime.release(handle)
        console.print_debug(f"[{job.name}] released {handle.id}")

    if exit_code != 0:
        output = list(tail)
        raise StepFailure(
            job=job.name,
            step=step.name,
            exit_code=exit_code,
            output=output,
            command=_last_traced_command(output),
        )


def run_job(
    job: Job,
    *,
    runtime: Runtime,
    repo_root: str | Path = ".",
    trigger: Trigger | None = None,
) -> JobResult:
    """
    Run the steps of a job in declared order.

    The first failing step stops the job; later steps stay not_started.
    Only CIError is turned into a failed result, anything else propagates.
    """
    console = get_console()
    repo_root_p = Path(repo_root).resolve()
    trigger = trigger or Trigger()

    result = JobResult(name=job.name, steps=[StepResult(name=s.name) for s in job.steps])
    console.print_job_start(job.name)
    job_error: CIError | None = None

    for step, step_result in zip(job.steps, result.steps):
        console.print_step(step.name, step.image)
        step_result.status = RUNNING
        tail: Deque[str] = deque(maxlen=settings.OUTPUT_TAIL)
        start = time.monotonic()
        try:
            _run_step(job, step, runtime, repo_root_p, trigger, tail)
        except CIError as e:
            step_result.status = FAILED
            step_result.error = e.message
            step_result.exit_code = e.details.get("exit_code")
            step_result.output = list(getattr(e, "output", None) or tail)
            job_error = e
            console.print_failure(step.name, e)
            break
        else:
            step_result.status = SUCCEEDED
            step_result.exit_code = 0
            step_result.output = list(tail)
            console.print_success(step.name)
        finally:
            step_result.duration = time.monotonic() - start

    if job_error is not None:
        console.print_failure(job.name, job_error, is_job=True)
    else:
        console.print_success(job.name, is_job=True)
    return result


def run_jobs(
    jobs: List[Job],
    *,
    runtime: Runtime,
    repo_root: str | Path = ".",
    trigger: Trigger | None = None,
    fail_fast: bool = True,
) -> List[JobResult]:
    """Run jobs one after another. With fail_fast, a failed job stops the rest."""
    results: List[JobResult] = []
    for j in jobs:
        res = run_job(j, runtime=runtime, repo_root=repo_root, trigger=trigger)
        results.append(res)
        if fail_fast and not res.ok:
            break
    return results
