# cli.py
from __future__ import annotations

import sys
from pathlib import Path

import click

from boxci import settings
from boxci.errors import DescriptorError
from boxci.git_facts.git import repo_name, trigger_from_git
from boxci.runner import RUNTIMES, get_runtime, load_descriptor, run_jobs
from boxci.schema import jobs_to_json
from boxci.template import DESCRIPTOR_TEMPLATE
from boxci.ui.console import Console, get_console, set_console

EXIT_FAILED = 1
EXIT_DESCRIPTOR = 2
EXIT_INTERRUPTED = 130


def find_descriptor_files() -> list[Path]:
    """
    Find all descriptor files in the current directory.

    Returns:
        List of Path objects for descriptor files
    """
    descriptor_files = []
    current_dir = Path(".")

    default_descriptor = current_dir / settings.DEFAULT_DESCRIPTOR
    if default_descriptor.exists():
        descriptor_files.append(default_descriptor)

    for path in current_dir.glob("*_job.py"):
        if path != default_descriptor:
            descriptor_files.append(path)

    return sorted(descriptor_files)


def discover_descriptor(descriptor_arg: str | None) -> Path:
    """
    Discover descriptor file from argument or default.

    Raises:
        SystemExit: If the descriptor cannot be found or several exist
    """
    console = get_console()

    if descriptor_arg:
        path = Path(descriptor_arg)
        if not path.exists() and path.suffix not in (".py", ".json"):
            path = Path(str(path) + ".py")
        if not path.exists():
            console.print_error(
                "Descriptor file not found",
                f"Could not find descriptor file: {descriptor_arg}",
                suggestion="Create one with:\n  boxci init",
            )
            sys.exit(EXIT_DESCRIPTOR)
        return path

    descriptor_files = find_descriptor_files()

    if len(descriptor_files) == 0:
        console.print_error(
            "No descriptor file found",
            "Could not find any descriptor files.",
            details=[
                "Looked for:",
                f"  {settings.DEFAULT_DESCRIPTOR}",
                "  *_job.py",
            ],
            suggestion="Create one with:\n  boxci init\n\nOr specify one explicitly:\n  boxci run --descriptor my_job.py",
        )
        sys.exit(EXIT_DESCRIPTOR)

    if len(descriptor_files) > 1:
        file_list = "\n".join(f"  {f}" for f in descriptor_files)
        console.print_error(
            "Multiple descriptor files found",
            "Found multiple descriptor files. Please specify which one to use:",
            details=[file_list],
            suggestion=f"Specify one explicitly:\n  boxci run --descriptor {descriptor_files[0]}",
        )
        sys.exit(EXIT_DESCRIPTOR)

    return descriptor_files[0]


def _load_or_exit(ctx, descriptor_path: Path):
    console = get_console()
    try:
        return load_descriptor(descriptor_path)
    except DescriptorError as e:
        console.print_error(
            "Invalid descriptor",
            e.message,
            details=[f"{k}: {v}" for k, v in e.details.items()],
        )
    except Exception as e:
        console.print_error(
            "Failed to load descriptor",
            f"Could not load descriptor from {descriptor_path}",
            details=[str(e)],
        )
        if ctx.obj.get("debug", False):
            import traceback
            traceback.print_exc()
    sys.exit(EXIT_DESCRIPTOR)


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.option("--quiet", is_flag=True, default=False, help="Do not echo script output while it runs")
@click.pass_context
def cli(ctx, debug, quiet):
    """boxci: run container-backed CI jobs locally."""
    set_console(Console(debug=debug, quiet=quiet))
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command()
@click.option("--descriptor", default=None, help=f"Descriptor file (defaults to {settings.DEFAULT_DESCRIPTOR} if present)")
@click.option("--job", "job_names", multiple=True, help="Run only the named job(s)")
@click.option(
    "--runtime",
    type=click.Choice(sorted(RUNTIMES)),
    default=settings.RUNTIME,
    show_default=True,
    help="Container runtime",
)
@click.option("--event", default="manual", show_default=True, help="Triggering event (push, merge_request, ...)")
@click.option("--ref", default=None, help="Git ref of the trigger (defaults to the current branch)")
@click.option("--repo-root", default=".", show_default=True, type=click.Path(file_okay=False), help="Repository mounted into the container")
@click.option("--fail-fast/--no-fail-fast", default=True, help="Stop after the first failed job")
@click.pass_context
def run(ctx, descriptor, job_names, runtime, event, ref, repo_root, fail_fast):
    """Run the jobs of a descriptor."""
    console = get_console()
    descriptor_path = discover_descriptor(descriptor)
    jobs = _load_or_exit(ctx, descriptor_path)

    if job_names:
        wanted = set(job_names)
        unknown = wanted - {j.name for j in jobs}
        if unknown:
            console.print_error(
                "Unknown job",
                f"No job named: {', '.join(sorted(unknown))}",
                details=[j.name for j in jobs],
            )
            sys.exit(EXIT_DESCRIPTOR)
        jobs = [j for j in jobs if j.name in wanted]

    try:
        trigger = trigger_from_git(event=event, ref=ref, cwd=repo_root)
        console.print_run_started(
            repository=repo_name(cwd=repo_root),
            descriptor=descriptor_path.name,
            job_count=len(jobs),
            runtime=runtime,
            trigger=trigger,
        )

        results = run_jobs(
            jobs,
            runtime=get_runtime(runtime),
            repo_root=repo_root,
            trigger=trigger,
            fail_fast=fail_fast,
        )

        ran = {r.name for r in results}
        console.print_results(results, skipped=[j.name for j in jobs if j.name not in ran])

        if len(results) < len(jobs) or any(not r.ok for r in results):
            sys.exit(EXIT_FAILED)

    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(EXIT_INTERRUPTED)
    except Exception as e:
        console.print_exception(e)
        sys.exit(EXIT_FAILED)


@cli.command()
@click.option("--descriptor", default=None, help="Descriptor file")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the descriptor as JSON")
@click.pass_context
def show(ctx, descriptor, as_json):
    """Print the jobs and steps a descriptor declares."""
    jobs = _load_or_exit(ctx, discover_descriptor(descriptor))
    if as_json:
        click.echo(jobs_to_json(jobs))
    else:
        get_console().print_plan(jobs)


@cli.command()
@click.option("--descriptor", default=None, help="Descriptor file")
@click.pass_context
def validate(ctx, descriptor):
    """Check that a descriptor loads, without running anything."""
    path = discover_descriptor(descriptor)
    jobs = _load_or_exit(ctx, path)
    steps = sum(len(j.steps) for j in jobs)
    get_console().print_info(f"{path}: OK ({len(jobs)} job(s), {steps} step(s))")


@cli.command()
@click.option("--path", default=settings.DEFAULT_DESCRIPTOR, show_default=True, help="Where to write the descriptor")
@click.option("--force", is_flag=True, default=False, help="Overwrite an existing file")
def init(path, force):
    """Write a starter descriptor."""
    console = get_console()
    target = Path(path)
    if target.exists() and not force:
        console.print_error(
            "File exists",
            f"{target} already exists.",
            suggestion="Pass --force to overwrite it.",
        )
        sys.exit(EXIT_FAILED)
    target.write_text(DESCRIPTOR_TEMPLATE, encoding="utf-8")
    console.print_info(f"Wrote {target}")


if __name__ == "__main__":
    cli()
