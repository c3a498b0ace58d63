"""JSON form of a descriptor, validated with pydantic."""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import DescriptorError
from .model import DEFAULT_WORKDIR, ContainerSpec, Job, ShellScript, Step

SCHEMA_VERSION = 1


# -------------------- Schemas --------------------

class ContainerSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    image: str = Field(min_length=1)
    script: str = Field(min_length=1)
    env: Dict[str, str] = Field(default_factory=dict)
    workdir: str = DEFAULT_WORKDIR

    @field_validator("image")
    @classmethod
    def _image_has_no_spaces(cls, v: str) -> str:
        v = v.strip()
        if not v or any(c.isspace() for c in v):
            raise ValueError("image reference must be a single non-empty token")
        return v


class StepSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    container: ContainerSchema


class JobSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    steps: List[StepSchema] = Field(min_length=1)


class DescriptorSchema(BaseModel):
    version: int = SCHEMA_VERSION
    jobs: List[JobSchema] = Field(min_length=1)


# -------------------- Conversion --------------------

def job_to_dict(job: Job) -> dict:
    """Convert a Job model to its JSON-ready dict. Reverse of job_from_dict()."""
    return {
        "name": job.name,
        "steps": [
            {
                "name": step.name,
                "container": {
                    "image": step.container.image,
                    "script": step.container.script.content,
                    "env": dict(step.container.env),
                    "workdir": step.container.workdir,
                },
            }
            for step in job.steps
        ],
    }


def _schema_to_job(js: JobSchema) -> Job:
    steps = tuple(
        Step(
            name=s.name,
            container=ContainerSpec(
                image=s.container.image,
                script=ShellScript(content=s.container.script),
                env=dict(s.container.env),
                workdir=s.container.workdir,
            ),
        )
        for s in js.steps
    )
    return Job(name=js.name, steps=steps)


def job_from_dict(data: Dict[str, Any]) -> Job:
    try:
        js = JobSchema.model_validate(data)
    except ValidationError as e:
        raise DescriptorError(f"invalid job: {e.error_count()} error(s)", errors=_errors(e)) from e
    return _schema_to_job(js)


def jobs_to_json(jobs: List[Job]) -> str:
    doc = DescriptorSchema(jobs=[JobSchema.model_validate(job_to_dict(j)) for j in jobs])
    return doc.model_dump_json(indent=2)


def jobs_from_json(text: str, *, source: str | None = None) -> List[Job]:
    try:
        doc = DescriptorSchema.model_validate_json(text)
    except ValidationError as e:
        raise DescriptorError(
            f"invalid descriptor: {e.error_count()} error(s)",
            source=source,
            errors=_errors(e),
        ) from e
    if doc.version != SCHEMA_VERSION:
        raise DescriptorError(f"unsupported descriptor version {doc.version}", source=source)
    return [_schema_to_job(j) for j in doc.jobs]


def _errors(e: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
    )
