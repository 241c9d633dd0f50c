"""Narrow interface to the remote infrastructure control plane.

Every flow talks to AWS through this protocol so the orchestration logic
can be exercised with a recording fake instead of live credentials.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from site_deploy._deploy_models import (
    StackDeployment,
    StackDeployResult,
    StackDescription,
)


class ControlPlane(Protocol):
    """Operations the orchestrator needs from the control plane."""

    def get_caller_identity(self) -> str:
        """Return the account ID the ambient credentials resolve to."""
        ...

    def create_bucket(self, bucket_name: str) -> None:
        """Create ``bucket_name``; an already-owned bucket is not an error."""
        ...

    def package_template(
        self,
        template_file: Path,
        bucket_name: str,
        output_file: Path,
    ) -> Path:
        """Upload nested artefacts and write a fully resolved template."""
        ...

    def deploy_stack(self, deployment: StackDeployment) -> StackDeployResult:
        """Deploy a template and block until a terminal state."""
        ...

    def describe_stack(self, stack_name: str) -> StackDescription | None:
        """Return stack metadata, or ``None`` when the stack does not exist."""
        ...

    def list_identity_providers(self) -> list[str]:
        """Return the ARNs of all OIDC identity providers in the account."""
        ...

    def create_identity_provider(
        self,
        url: str,
        client_ids: Sequence[str],
        thumbprints: Sequence[str],
    ) -> str:
        """Create an OIDC identity provider and return its ARN."""
        ...

    def sync_directory(self, source: Path, bucket_name: str) -> None:
        """Mirror ``source`` into ``bucket_name``, deleting stale objects."""
        ...

    def invalidate_paths(self, distribution_id: str, paths: Sequence[str]) -> str:
        """Request a CDN invalidation and return its identifier."""
        ...
