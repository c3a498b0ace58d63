# boxci_job.py
# One job, one container step: format check, build, test, lint.
from __future__ import annotations

from boxci import container, job, shell_script, wf


def workflow():
    return wf(
        job(
            "Build, run tests, and lint",
            container(
                "Cargo build",
                image="rustlang/rust:nightly",
                script=shell_script(content="""
                    set -eux
                    # Check formatting
                    cargo fmt --check --verbose
                    # Build the Rust project
                    cargo build --verbose
                    # Run tests
                    cargo test --verbose
                    # Lint with clippy
                    cargo clippy --all-targets --all-features --verbose
                    # Publish to sparse Cargo registry
                    # export CARGO_UNSTABLE_SPARSE_REGISTRY=true
                    # export CARGO_UNSTABLE_REGISTRY_AUTH=true
                    # cargo login --registry=space-registry "Bearer $REGISTRY_CLIENT_TOKEN"
                    # cargo publish --verbose --registry=space-registry
                """),
            ),
        ),
    )
