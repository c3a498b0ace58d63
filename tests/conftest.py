import stat
from pathlib import Path

import pytest

from boxci.dsl import container, job, shell_script
from boxci.runtimes.local import LocalRuntime
from boxci.ui.console import Console, set_console

TOOLS = ("fmt", "build", "test", "lint")


@pytest.fixture(autouse=True)
def fresh_console():
    set_console(Console())
    yield
    set_console(Console())


@pytest.fixture
def repo(tmp_path, monkeypatch):
    """
    A fake project with one stand-in executable per tool.

    Each tool appends its name to $CALLS_LOG and exits 3 when FAIL_<TOOL>=1.
    The log lives next to the project, since steps run in a throwaway copy.
    """
    project = tmp_path / "project"
    bin_dir = project / "bin"
    bin_dir.mkdir(parents=True)
    monkeypatch.setenv("CALLS_LOG", str(tmp_path / "calls.log"))
    for name in TOOLS:
        tool = bin_dir / name
        var = f"FAIL_{name.upper()}"
        tool.write_text(
            "#!/bin/sh\n"
            f'echo {name} >> "$CALLS_LOG"\n'
            f'echo "{name} running"\n'
            f'[ "${{{var}:-0}}" = "1" ] && exit 3\n'
            "exit 0\n"
        )
        tool.chmod(tool.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return project


def calls(repo: Path) -> list[str]:
    log = repo.parent / "calls.log"
    if not log.exists():
        return []
    return log.read_text().split()


def pipeline_job(env=None, image="rustlang/rust:nightly"):
    return job(
        "Build, run tests, and lint",
        container(
            "Cargo build",
            image=image,
            script=shell_script(content="""
                set -eux
                # Check formatting
                ./bin/fmt --check
                # Build
                ./bin/build
                # Run tests
                ./bin/test
                # Lint
                ./bin/lint
            """),
            env=env,
        ),
    )


class RecordingRuntime(LocalRuntime):
    """LocalRuntime that remembers every acquire/execute/release."""

    def __init__(self):
        super().__init__()
        self.events = []

    def acquire(self, job, step, repo_root, env):
        handle = super().acquire(job, step, repo_root, env)
        self.events.append(("acquire", step.name, handle.id))
        return handle

    def execute(self, handle, on_line):
        self.events.append(("execute", handle.id))
        return super().execute(handle, on_line)

    def release(self, handle):
        self.events.append(("release", handle.id))
        super().release(handle)


@pytest.fixture
def runtime():
    return RecordingRuntime()
