# src/boxci/dsl.py
from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Dict, List, Optional

from .model import ContainerSpec, Job, ShellScript, Step, DEFAULT_WORKDIR


# ---------------------------------------------------------------------
# Script helper
# ---------------------------------------------------------------------

def shell_script(
    *commands: str,
    content: str | None = None,
    location: str | Path | None = None,
) -> ShellScript:
    """
    Build a shell script from exactly one source:

        shell_script(content=\"\"\"...\"\"\")      literal text (dedented)
        shell_script(location="ci/build.sh")  file read now, at authoring time
        shell_script("cargo build", "cargo test")  one command per line
    """
    given = [bool(commands), content is not None, location is not None]
    if sum(given) != 1:
        raise ValueError("shell_script() takes exactly one of: commands, content=, location=")

    if content is not None:
        text = textwrap.dedent(content).strip("\n")
    elif location is not None:
        text = Path(location).expanduser().read_text(encoding="utf-8")
    else:
        text = "\n".join(commands)

    if not text.strip():
        raise ValueError("shell script is empty")
    return ShellScript(content=text)


# ---------------------------------------------------------------------
# Step helper
# ---------------------------------------------------------------------

def container(
    name: str,
    image: str,
    script: ShellScript | str,
    *,
    env: Optional[Dict[str, str]] = None,
    workdir: str = DEFAULT_WORKDIR,
) -> Step:
    """Create a container step. A plain string script is used as literal content."""
    if not image or not image.strip():
        raise ValueError(f"container({name!r}) needs an image reference")
    if any(c.isspace() for c in image.strip()):
        raise ValueError(f"container({name!r}) image must be a single token, got {image!r}")
    if isinstance(script, str):
        script = shell_script(content=script)
    spec = ContainerSpec(
        image=image.strip(),
        script=script,
        # force values to str so they are usable as -e KEY=VALUE
        env={k: str(v) for k, v in (env or {}).items()},
        workdir=workdir,
    )
    return Step(name=name, container=spec)


# ---------------------------------------------------------------------
# Functional Job helper
# ---------------------------------------------------------------------

def job(
    name: str,
    *steps: Step,  # allow: job("x", container(...), container(...))
    steps_list: Optional[List[Step]] = None,  # allow: job("x", steps_list=[...])
) -> Job:
    steps_final: List[Step] = []
    if steps_list:
        steps_final.extend(list(steps_list))
    steps_final.extend(list(steps))

    if not steps_final:
        raise ValueError(f"job({name!r}) must have at least one step")
    for s in steps_final:
        if not isinstance(s, Step):
            raise TypeError(f"job({name!r}) got a non-step: {s!r}")

    return Job(name=name, steps=tuple(steps_final))


# ---------------------------------------------------------------------
# Builder API
# ---------------------------------------------------------------------

class JobBuilder:
    def __init__(self, name: str):
        self.name = name
        self._steps: list[Step] = []

    def container(self, name: str, image: str, script: ShellScript | str, **kwargs):
        self._steps.append(container(name, image, script, **kwargs))
        return self

    def build(self) -> Job:
        if not self._steps:
            raise ValueError(f"Job '{self.name}' has no steps")
        return Job(name=self.name, steps=tuple(self._steps))


def build(name: str) -> JobBuilder:
    """Convenience: build('ci').container('Build', 'rust:1', 'cargo build').build()"""
    return JobBuilder(name)


# ---------------------------------------------------------------------
# Workflow helper (single-file story)
# ---------------------------------------------------------------------

def wf(*jobs: Job) -> List[Job]:
    """
    Descriptor helper.

        from boxci import wf, job, container, shell_script

        def workflow():
            return wf(
                job("Build", container(...)),
            )

    Or assign the list directly: JOBS = wf(job(...)).
    """
    return list(jobs)
