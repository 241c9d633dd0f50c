"""Exception hierarchy for the static-site deployment orchestrator.

Components raise these errors and never terminate the process themselves;
the CLI entry point is the only layer that maps them to exit codes.

Exceptions
----------
DeployError
ConfigurationError
ConfigNotFound
EnvironmentNotFound
MalformedConfig
ContentDirectoryNotFound
DependencyError
MissingDependency
NotAuthenticated
RemoteOperationError
AwsCommandError
PackagingError
StackDeployError
StackNotFound
RequiredOutputMissing

Examples
--------
>>> raise StackNotFound("site-dev")
Traceback (most recent call last):
...
site_deploy._deploy_errors.StackNotFound: Stack 'site-dev' does not exist
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path


class DeployError(Exception):
    """Base error for deployment orchestration."""


class ConfigurationError(DeployError):
    """Raised when the configuration document cannot be used."""


class ConfigNotFound(ConfigurationError):
    """Raised when the configuration document does not exist."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Configuration file not found: {path}")


class EnvironmentNotFound(ConfigurationError):
    """Raised when an environment is missing from ``environments``."""

    def __init__(self, environment: str, path: Path) -> None:
        self.environment = environment
        self.path = path
        super().__init__(
            f"Configuration for environment {environment!r} not found "
            f"in .environments of {path}"
        )


class MalformedConfig(ConfigurationError):
    """Raised when the configuration document has the wrong shape."""


class ContentDirectoryNotFound(ConfigurationError):
    """Raised when the local content directory is missing."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Content directory not found: {path}")


class DependencyError(DeployError):
    """Raised when the local tooling or credentials are unusable."""


class MissingDependency(DependencyError):
    """Raised when required command-line tools are not on ``PATH``."""

    def __init__(self, tools: Iterable[str]) -> None:
        self.tools = tuple(tools)
        names = ", ".join(self.tools)
        super().__init__(f"Missing required tools: {names}")


class NotAuthenticated(DependencyError):
    """Raised when ambient AWS credentials do not resolve to an account."""


class RemoteOperationError(DeployError):
    """Raised when a remote control-plane operation fails."""


class AwsCommandError(RemoteOperationError):
    """Raised when an ``aws`` CLI invocation exits non-zero."""

    def __init__(self, args: Iterable[str], return_code: int, stderr: str) -> None:
        self.args_list = tuple(args)
        self.return_code = return_code
        self.stderr = stderr
        super().__init__(
            f"aws {' '.join(self.args_list)} failed "
            f"(return_code={return_code}): {stderr.strip()}"
        )


class PackagingError(RemoteOperationError):
    """Raised when building or packaging deployment artefacts fails."""


class StackDeployError(RemoteOperationError):
    """Raised when a stack deployment ends in a failed state."""

    def __init__(self, stack_name: str, reason: str) -> None:
        self.stack_name = stack_name
        self.reason = reason
        super().__init__(f"Failed to deploy stack {stack_name!r}: {reason}")


class StackNotFound(RemoteOperationError):
    """Raised when a stack does not exist at all."""

    def __init__(self, stack_name: str) -> None:
        self.stack_name = stack_name
        super().__init__(f"Stack {stack_name!r} does not exist")


class RequiredOutputMissing(RemoteOperationError):
    """Raised when a stack output needed by a mutating step is absent."""

    def __init__(self, stack_name: str, output_key: str) -> None:
        self.stack_name = stack_name
        self.output_key = output_key
        super().__init__(
            f"Could not retrieve {output_key!r} from outputs of stack {stack_name!r}"
        )


@dataclass(frozen=True, slots=True)
class PartialDataWarning:
    """An informational stack output that could not be retrieved.

    Attributes
    ----------
    stack_name
        Stack whose outputs were queried.
    output_key
        Output key that was absent or set to the ``None`` sentinel.
    description
        Human-readable label for the output.
    """

    stack_name: str
    output_key: str
    description: str

    @property
    def message(self) -> str:
        """Return the operator-facing warning text."""
        return (
            f"Could not retrieve {self.description} from outputs of "
            f"stack {self.stack_name!r} ({self.output_key})"
        )


__all__ = [
    "AwsCommandError",
    "ConfigNotFound",
    "ConfigurationError",
    "ContentDirectoryNotFound",
    "DependencyError",
    "DeployError",
    "EnvironmentNotFound",
    "MalformedConfig",
    "MissingDependency",
    "NotAuthenticated",
    "PackagingError",
    "PartialDataWarning",
    "RemoteOperationError",
    "RequiredOutputMissing",
    "StackDeployError",
    "StackNotFound",
]
