"""Data models for static-site deployment orchestration.

These models are the typed contract shared by the configuration resolver,
the control-plane clients, and the action flows. All of them are immutable
so a resolved context can be threaded through every step without hidden
state.

Examples
--------
>>> ctx = DeploymentContext(
...     project_name="site",
...     region="us-east-1",
...     environment="dev",
...     github_org="acme",
...     github_repo="web",
...     parameters=(("CreateApex", "no"), ("SubDomain", "dev")),
... )
>>> ctx.stack_name
'site-dev'
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_SOLUTION_TAG = "ACFS3"
SHARED_ENVIRONMENT = "shared"


class Action(enum.StrEnum):
    """Closed set of orchestrator actions."""

    TEST = "test"
    OIDC = "oidc"
    INFRA = "infra"
    CONTENT = "content"
    OUTPUTS = "outputs"


class Capability(enum.StrEnum):
    """Stack capabilities acknowledged on deploy."""

    NAMED_IAM = "CAPABILITY_NAMED_IAM"
    AUTO_EXPAND = "CAPABILITY_AUTO_EXPAND"


class StackDeployStatus(enum.Enum):
    """Terminal outcome of a stack deployment."""

    CREATED = "created"
    UPDATED = "updated"
    NO_CHANGES = "no_changes"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class StackDeployResult:
    """Result of a single stack deployment.

    Attributes
    ----------
    stack_name
        Name of the deployed stack.
    status
        Terminal outcome reported by the control plane.
    reason
        Failure reason when ``status`` is ``FAILED``.
    """

    stack_name: str
    status: StackDeployStatus
    reason: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status is not StackDeployStatus.FAILED


@dataclass(frozen=True, slots=True)
class StackDescription:
    """Metadata for a deployed stack."""

    stack_name: str
    status: str
    outputs: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class StackDeployment:
    """Everything needed to submit one template to the control plane.

    Attributes
    ----------
    stack_name
        Target stack name.
    template_file
        Local template path (packaged or self-contained).
    parameters
        Ordered ``(name, value)`` parameter overrides.
    tags
        Ordered ``(key, value)`` stack tags.
    capabilities
        Capabilities to acknowledge.
    """

    stack_name: str
    template_file: Path
    parameters: tuple[tuple[str, str], ...]
    tags: tuple[tuple[str, str], ...]
    capabilities: tuple[Capability, ...]

    def parameter_overrides(self) -> list[str]:
        """Render parameters as ``Name=Value`` strings.

        Examples
        --------
        >>> StackDeployment(
        ...     "site-dev", Path("t"), (("A", "1"), ("B", "")), (), ()
        ... ).parameter_overrides()
        ['A=1', 'B=']
        """
        return [f"{name}={value}" for name, value in self.parameters]

    def tag_pairs(self) -> list[str]:
        return [f"{key}={value}" for key, value in self.tags]


@dataclass(frozen=True, slots=True)
class SharedSettings:
    """The ``shared`` partition of the configuration document."""

    name: str
    region: str
    github_org: str
    github_repo: str
    solution: str = DEFAULT_SOLUTION_TAG


@dataclass(frozen=True, slots=True)
class DeployConfig:
    """A loaded configuration document.

    Attributes
    ----------
    path
        Location the document was read from, kept for error messages.
    shared
        Shared settings.
    environments
        Mapping of environment name to its parameter map.
    """

    path: Path
    shared: SharedSettings
    environments: Mapping[str, Mapping[str, str]]


@dataclass(frozen=True, slots=True)
class DeploymentContext:
    """Resolved, read-only context for one invocation."""

    project_name: str
    region: str
    environment: str
    github_org: str
    github_repo: str
    parameters: tuple[tuple[str, str], ...]
    solution: str = DEFAULT_SOLUTION_TAG

    @property
    def package_bucket_name(self) -> str:
        return f"{self.project_name}-cf-templates-{self.region}"

    @property
    def stack_name(self) -> str:
        return f"{self.project_name}-{self.environment}"

    @property
    def identity_stack_name(self) -> str:
        return f"{self.project_name}-github-oidc"

    def parameter_string(self) -> str:
        """Return parameters as a space-separated ``Name=Value`` string.

        Examples
        --------
        >>> DeploymentContext(
        ...     "site", "us-east-1", "dev", "acme", "web",
        ...     (("CreateApex", "no"), ("SubDomain", "dev")),
        ... ).parameter_string()
        'CreateApex=no SubDomain=dev'
        """
        return " ".join(f"{name}={value}" for name, value in self.parameters)


@dataclass(frozen=True, slots=True)
class ProjectLayout:
    """Local paths used by the deployment flows, derived from one root."""

    root: Path
    content_dir: Path | None = None

    @property
    def templates_dir(self) -> Path:
        return self.root / "templates"

    @property
    def main_template(self) -> Path:
        return self.templates_dir / "main.yaml"

    @property
    def identity_template(self) -> Path:
        return self.templates_dir / "github-oidc.yaml"

    @property
    def packaged_template(self) -> Path:
        return self.root / "packaged.template"

    @property
    def function_source(self) -> Path:
        return self.root / "source" / "witch"

    @property
    def function_archive(self) -> Path:
        return self.root / "witch.zip"

    @property
    def site_content(self) -> Path:
        return self.content_dir or self.root / "www"


@dataclass(frozen=True, slots=True)
class IdentityRegistration:
    """Outcome of the identity provider registration flow.

    Attributes
    ----------
    stack_name
        Trust stack name.
    role_arn
        Role the CI system assumes, or ``None`` if the stack exposes none.
    provider_arn
        Identity provider in use, whether reused or newly created.
    reused_provider
        ``True`` when an existing provider was found before deployment.
    deploy_result
        Outcome of the trust stack deployment.
    """

    stack_name: str
    role_arn: str | None
    provider_arn: str | None
    reused_provider: bool
    deploy_result: StackDeployResult | None = None


@dataclass(frozen=True, slots=True)
class ContentPublication:
    """Outcome of a content publish."""

    bucket_name: str
    distribution_id: str
    invalidation_id: str | None


__all__ = [
    "Action",
    "Capability",
    "ContentPublication",
    "DEFAULT_SOLUTION_TAG",
    "DeployConfig",
    "DeploymentContext",
    "IdentityRegistration",
    "ProjectLayout",
    "SHARED_ENVIRONMENT",
    "SharedSettings",
    "StackDeployResult",
    "StackDeployStatus",
    "StackDeployment",
    "StackDescription",
]
