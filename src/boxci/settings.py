from __future__ import annotations
import os

RUNTIME = os.environ.get("BOXCI_RUNTIME", "docker")
SHELL = os.environ.get("BOXCI_SHELL", "/bin/sh")
WORKDIR = os.environ.get("BOXCI_WORKDIR", "/workspace")
OUTPUT_TAIL = int(os.environ.get("BOXCI_OUTPUT_TAIL", "40"))
DEFAULT_DESCRIPTOR = os.environ.get("BOXCI_DESCRIPTOR", "boxci_job.py")
TRACE_PREFIX = os.environ.get("BOXCI_TRACE_PREFIX", "+boxci+ ")
