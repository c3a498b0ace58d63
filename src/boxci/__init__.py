
from .dsl import container, job, shell_script, wf, JobBuilder, build
from .runner import run_job, run_jobs, load_descriptor, get_runtime
from .model import ContainerSpec, Job, JobResult, ShellScript, Step, StepResult, Trigger
from .errors import CIError, DescriptorError, ProvisioningError, StepFailure

__all__ = [
    "container", "job", "shell_script", "wf", "JobBuilder", "build",
    "run_job", "run_jobs", "load_descriptor", "get_runtime",
    "ContainerSpec", "Job", "JobResult", "ShellScript", "Step", "StepResult", "Trigger",
    "CIError", "DescriptorError", "ProvisioningError", "StepFailure",
]
