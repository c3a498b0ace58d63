import json
from pathlib import Path

import pytest

from boxci.dsl import build, container, job, shell_script, wf
from boxci.errors import DescriptorError
from boxci.model import Job
from boxci.runner import load_descriptor
from boxci.schema import job_from_dict, job_to_dict, jobs_from_json, jobs_to_json

ROOT = Path(__file__).resolve().parent.parent


# ---------------------------------------------------------------------
# DSL
# ---------------------------------------------------------------------

def test_shell_script_content_is_dedented_and_kept_verbatim():
    script = shell_script(content="""
        set -eux
        # a comment stays
        cargo build   --verbose
    """)
    assert script.content == "set -eux\n# a comment stays\ncargo build   --verbose"


def test_shell_script_from_commands_and_file(tmp_path):
    assert shell_script("a", "b").content == "a\nb"

    f = tmp_path / "ci.sh"
    f.write_text("echo from file\n")
    assert shell_script(location=f).content == "echo from file\n"


@pytest.mark.parametrize("kwargs", [{}, {"content": "x", "location": "y"}, {"content": "   \n"}])
def test_shell_script_rejects_bad_sources(kwargs):
    with pytest.raises(ValueError):
        shell_script(**kwargs)


def test_container_and_job_validation():
    with pytest.raises(ValueError, match="image"):
        container("c", " ", "true")
    with pytest.raises(ValueError, match="single token"):
        container("c", "rust nightly", "true")
    with pytest.raises(ValueError, match="at least one step"):
        job("empty")
    with pytest.raises(TypeError):
        job("bad", "not a step")


def test_builder_matches_functional_helpers():
    built = build("ci").container("Cargo build", "rust:1", "cargo build").build()
    direct = job("ci", container("Cargo build", "rust:1", "cargo build"))
    assert built == direct
    assert wf(built) == [built]


# ---------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------

def test_repository_descriptor_runs_tools_in_order():
    jobs = load_descriptor(ROOT / "boxci_job.py")

    assert [j.name for j in jobs] == ["Build, run tests, and lint"]
    (step,) = jobs[0].steps
    assert step.name == "Cargo build"
    assert step.image == "rustlang/rust:nightly"

    active = [l for l in step.script.splitlines() if l.startswith("cargo ")]
    assert active == [
        "cargo fmt --check --verbose",
        "cargo build --verbose",
        "cargo test --verbose",
        "cargo clippy --all-targets --all-features --verbose",
    ]
    # publishing stays commented out
    assert "# cargo publish --verbose --registry=space-registry" in step.script


@pytest.mark.parametrize(
    "body",
    [
        "from boxci import job, container\nJOB = job('one', container('c', 'alpine', 'true'))\n",
        "from boxci import job, container\nJOBS = [job('one', container('c', 'alpine', 'true'))]\n",
        "from boxci import job, container, wf\ndef workflow():\n    return wf(job('one', container('c', 'alpine', 'true')))\n",
    ],
)
def test_load_descriptor_forms(tmp_path, body):
    path = tmp_path / "one_job.py"
    path.write_text(body)

    jobs = load_descriptor(path)
    assert len(jobs) == 1 and isinstance(jobs[0], Job)


def test_malformed_descriptors_are_rejected(tmp_path):
    nothing = tmp_path / "nothing_job.py"
    nothing.write_text("X = 1\n")
    with pytest.raises(DescriptorError):
        load_descriptor(nothing)

    no_steps = tmp_path / "empty_job.py"
    no_steps.write_text("from boxci import job\nJOB = job('empty')\n")
    with pytest.raises(DescriptorError, match="at least one step"):
        load_descriptor(no_steps)

    yaml = tmp_path / "job.yaml"
    yaml.write_text("job: x\n")
    with pytest.raises(DescriptorError):
        load_descriptor(yaml)

    with pytest.raises(FileNotFoundError):
        load_descriptor(tmp_path / "missing_job.py")


# ---------------------------------------------------------------------
# JSON form
# ---------------------------------------------------------------------

def test_json_form_loads_back(tmp_path):
    jobs = load_descriptor(ROOT / "boxci_job.py")
    path = tmp_path / "job.json"
    path.write_text(jobs_to_json(jobs))

    assert load_descriptor(path) == jobs
    assert json.loads(path.read_text())["version"] == 1


def test_job_dict_round_trip_keeps_env_and_workdir():
    j = job("ci", container("c", "alpine", "true", env={"A": "1"}, workdir="/src"))
    assert job_from_dict(job_to_dict(j)) == j


@pytest.mark.parametrize(
    "doc, fragment",
    [
        ({"jobs": []}, "jobs"),
        ({"jobs": [{"name": "x", "steps": []}]}, "steps"),
        ({"jobs": [{"name": "x", "steps": [{"name": "s", "container": {"image": "", "script": "true"}}]}]}, "image"),
        ({"jobs": [{"name": "x", "steps": [{"name": "s", "container": {"image": "a b", "script": "true"}}]}]}, "image"),
        ({"jobs": [{"name": "x", "steps": [{"name": "s", "container": {"image": "a", "script": "true", "privileged": True}}]}]}, "privileged"),
    ],
)
def test_invalid_json_descriptor(doc, fragment):
    with pytest.raises(DescriptorError) as exc:
        jobs_from_json(json.dumps(doc))
    assert fragment in exc.value.details["errors"]


def test_unsupported_version():
    doc = {"version": 2, "jobs": [{"name": "x", "steps": [{"name": "s", "container": {"image": "a", "script": "true"}}]}]}
    with pytest.raises(DescriptorError, match="version 2"):
        jobs_from_json(json.dumps(doc))
