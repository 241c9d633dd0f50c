"""Pre-flight checks for local tooling and remote credentials.

The checks run before any action touches the control plane, including the
read-only actions, so a later failure cannot leave partial side effects
behind.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TypeAlias

from site_deploy._control_plane import ControlPlane
from site_deploy._deploy_errors import MissingDependency
from site_deploy._deploy_models import Action

logger = logging.getLogger(__name__)

Which: TypeAlias = Callable[[str], str | None]


@dataclass(frozen=True, slots=True)
class Dependency:
    """A command-line tool an action needs on ``PATH``."""

    name: str
    description: str


AWS_CLI = Dependency("aws", "AWS CLI for control-plane operations")
NPM = Dependency("npm", "npm for building the content deployment function")

ACTION_DEPENDENCIES: dict[Action, tuple[Dependency, ...]] = {
    Action.TEST: (AWS_CLI,),
    Action.OIDC: (AWS_CLI,),
    Action.INFRA: (AWS_CLI, NPM),
    Action.CONTENT: (AWS_CLI,),
    Action.OUTPUTS: (AWS_CLI,),
}


def collect_missing(
    dependencies: Iterable[Dependency],
    which: Which = shutil.which,
) -> list[Dependency]:
    """Return the subset of dependencies that are not discoverable on PATH.

    Examples
    --------
    >>> collect_missing([])
    []
    """
    return [dependency for dependency in dependencies if which(dependency.name) is None]


def check_dependencies(
    action: Action,
    control_plane: ControlPlane,
    which: Which = shutil.which,
) -> str:
    """Verify tooling for ``action`` and return the authenticated account ID.

    Parameters
    ----------
    action : Action
        Action about to run; selects the required tools.
    control_plane : ControlPlane
        Client used to confirm the ambient credentials.
    which : Callable[[str], str | None], optional
        PATH lookup, ``shutil.which`` by default.

    Returns
    -------
    str
        AWS account ID the credentials resolve to.

    Raises
    ------
    MissingDependency
        If any required tool is absent; all missing tools are named.
    NotAuthenticated
        If the credentials do not resolve to an account.
    """
    missing = collect_missing(ACTION_DEPENDENCIES[action], which)
    if missing:
        for dependency in missing:
            logger.error("%s not found on PATH (%s)", dependency.name, dependency.description)
        raise MissingDependency(dependency.name for dependency in missing)

    logger.info("Checking AWS credentials...")
    account_id = control_plane.get_caller_identity()
    logger.debug("AWS Account ID: %s", account_id)
    return account_id
