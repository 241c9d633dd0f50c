"""Load the deployment configuration and resolve a per-environment context.

The configuration document is JSON with two partitions:

.. code-block:: json

    {
      "shared": {
        "name": "site",
        "region": "us-east-1",
        "github": {"org": "acme", "repo": "web"}
      },
      "environments": {
        "dev": {"parameters": {"SubDomain": "dev", "CreateApex": "no"}}
      }
    }

Validation runs in a fixed order: the document exists and parses, the
``shared`` section is present, the environment key is present, and the
environment's ``parameters`` map is present (it may be empty). Parameters
are sorted by name so repeated runs produce identical overrides.

The flat layout with a ``_shared`` key at the root is not accepted; it is
reported as a missing ``shared`` section.

Examples
--------
>>> config = load_config(Path("deploy-config.json"))
>>> resolve_context(config, "dev").stack_name
'site-dev'
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from site_deploy._deploy_errors import (
    ConfigNotFound,
    EnvironmentNotFound,
    MalformedConfig,
)
from site_deploy._deploy_models import (
    DEFAULT_SOLUTION_TAG,
    SHARED_ENVIRONMENT,
    DeployConfig,
    DeploymentContext,
    SharedSettings,
)

logger = logging.getLogger(__name__)


def _require_mapping(value: Any, where: str, path: Path) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        msg = f"{where} must be an object in {path}"
        raise MalformedConfig(msg)
    return value


def _require_str(section: Mapping[str, Any], key: str, where: str, path: Path) -> str:
    value = section.get(key)
    if not isinstance(value, str) or not value.strip():
        msg = f"{where}.{key} must be a non-empty string in {path}"
        raise MalformedConfig(msg)
    return value.strip()


def _parse_shared(document: Mapping[str, Any], path: Path) -> SharedSettings:
    if "shared" not in document:
        hint = " (the flat '_shared' layout is not supported)" if "_shared" in document else ""
        msg = f"Missing 'shared' section in {path}{hint}"
        raise MalformedConfig(msg)
    shared = _require_mapping(document["shared"], "shared", path)
    github = _require_mapping(shared.get("github"), "shared.github", path)
    solution = shared.get("solution", DEFAULT_SOLUTION_TAG)
    if not isinstance(solution, str) or not solution:
        msg = f"shared.solution must be a non-empty string in {path}"
        raise MalformedConfig(msg)
    return SharedSettings(
        name=_require_str(shared, "name", "shared", path),
        region=_require_str(shared, "region", "shared", path),
        github_org=_require_str(github, "org", "shared.github", path),
        github_repo=_require_str(github, "repo", "shared.github", path),
        solution=solution,
    )


def _parse_parameters(
    environment: str,
    entry: Any,
    path: Path,
) -> dict[str, str]:
    where = f"environments.{environment}"
    section = _require_mapping(entry, where, path)
    if "parameters" not in section:
        msg = f"Missing {where}.parameters in {path}"
        raise MalformedConfig(msg)
    raw = _require_mapping(section["parameters"], f"{where}.parameters", path)
    parameters: dict[str, str] = {}
    for name, value in raw.items():
        if isinstance(value, bool) or not isinstance(value, str | int | float):
            msg = f"{where}.parameters.{name} must be a string in {path}"
            raise MalformedConfig(msg)
        parameters[str(name)] = str(value)
    return parameters


def load_config(path: Path) -> DeployConfig:
    """Read and validate the configuration document at ``path``.

    Parameters
    ----------
    path : Path
        Location of the JSON configuration document.

    Returns
    -------
    DeployConfig
        Parsed configuration. Environment entries are kept raw and
        validated on resolution, so one malformed environment does not
        block the others.

    Raises
    ------
    ConfigNotFound
        If ``path`` does not exist.
    MalformedConfig
        If the document does not parse or the ``shared`` section is invalid.
    """
    if not path.is_file():
        raise ConfigNotFound(path)
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        msg = f"Failed to parse configuration file {path}: {exc}"
        raise MalformedConfig(msg) from exc

    document = _require_mapping(document, "Configuration root", path)
    shared = _parse_shared(document, path)
    environments = _require_mapping(
        document.get("environments", {}), "environments", path
    )
    return DeployConfig(path=path, shared=shared, environments=dict(environments))


def environment_names(config: DeployConfig) -> list[str]:
    """Return configured environment names in lexicographic order."""
    return sorted(config.environments)


def resolve_context(
    config: DeployConfig,
    environment: str | None,
    *,
    allow_shared: bool = False,
) -> DeploymentContext:
    """Resolve the deployment context for ``environment``.

    Parameters
    ----------
    config : DeployConfig
        Loaded configuration document.
    environment : str | None
        Environment identifier from the command line.
    allow_shared : bool, optional
        When ``True`` and ``environment`` is ``None``, resolve the shared
        pseudo-environment with no parameters instead of failing.

    Returns
    -------
    DeploymentContext
        Immutable context with deterministically ordered parameters.

    Raises
    ------
    EnvironmentNotFound
        If ``environment`` is not a key of the environment map.
    MalformedConfig
        If the environment entry has no ``parameters`` map.
    """
    shared = config.shared
    if environment is None:
        if not allow_shared:
            raise EnvironmentNotFound("<none>", config.path)
        environment = SHARED_ENVIRONMENT
        parameters: dict[str, str] = {}
    else:
        if environment not in config.environments:
            raise EnvironmentNotFound(environment, config.path)
        parameters = _parse_parameters(
            environment, config.environments[environment], config.path
        )

    context = DeploymentContext(
        project_name=shared.name,
        region=shared.region,
        environment=environment,
        github_org=shared.github_org,
        github_repo=shared.github_repo,
        parameters=tuple(sorted(parameters.items())),
        solution=shared.solution,
    )
    logger.debug("Environment: %s", context.environment)
    logger.debug("Name: %s", context.project_name)
    logger.debug("Package Bucket: %s", context.package_bucket_name)
    logger.debug("Stack Name: %s", context.stack_name)
    logger.debug("OIDC Stack Name: %s", context.identity_stack_name)
    logger.debug("GitHub: %s/%s", context.github_org, context.github_repo)
    logger.debug("Region: %s", context.region)
    logger.debug("Parameters: %s", context.parameter_string())
    return context
