"""Resolve an ``(action, environment)`` pair into an ordered call sequence.

Every action loads the configuration and resolves the context first, then
runs the dependency checks, and only then touches the control plane. No
function here terminates the process; failures propagate as
:class:`~site_deploy._deploy_errors.DeployError` subclasses.

Examples
--------
>>> request = DispatchRequest(Action.OUTPUTS, "dev", Path("deploy-config.json"), ProjectLayout(Path(".")))
>>> report = run_action(request, AwsCliControlPlane)
>>> report.lines
('Bucket Name: site-dev-root', ...)
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypeAlias, assert_never

from site_deploy._config import environment_names, load_config, resolve_context
from site_deploy._content import publish_content
from site_deploy._control_plane import ControlPlane
from site_deploy._dependencies import Which, check_dependencies
from site_deploy._deploy_errors import ConfigurationError, PartialDataWarning
from site_deploy._deploy_models import (
    Action,
    DeploymentContext,
    IdentityRegistration,
    ProjectLayout,
)
from site_deploy._identity import ensure_identity_provider, register_identity_provider
from site_deploy._outputs import (
    BUCKET_OUTPUT,
    DISTRIBUTION_OUTPUT,
    StackOutputs,
    extract_outputs,
    format_outputs,
)
from site_deploy._packaging import NpmRunner, run_npm
from site_deploy._stack import deploy_environment

logger = logging.getLogger(__name__)

ControlPlaneFactory: TypeAlias = Callable[[str], ControlPlane]


@dataclass(frozen=True, slots=True)
class DispatchRequest:
    """A single orchestrator invocation.

    Attributes
    ----------
    action
        Action to run.
    environment
        Environment from the command line; optional only for ``oidc``.
    config_path
        Location of the configuration document.
    layout
        Local project paths.
    provider_only
        For ``oidc``: create the provider directly instead of the trust stack.
    """

    action: Action
    environment: str | None
    config_path: Path
    layout: ProjectLayout
    provider_only: bool = False


@dataclass(frozen=True, slots=True)
class ActionReport:
    """What an action produced for the operator and for CI."""

    action: Action
    context: DeploymentContext
    lines: tuple[str, ...] = ()
    outputs: dict[str, str] = field(default_factory=dict)
    secrets: tuple[str, ...] = ()
    warnings: tuple[PartialDataWarning, ...] = ()


def _outputs_report(
    action: Action,
    ctx: DeploymentContext,
    outputs: StackOutputs,
    lines: tuple[str, ...] = (),
) -> ActionReport:
    published = {
        "bucket_name": outputs.get(BUCKET_OUTPUT),
        "distribution_id": outputs.get(DISTRIBUTION_OUTPUT),
        "website_url": outputs.website_url,
    }
    return ActionReport(
        action=action,
        context=ctx,
        lines=(*lines, *format_outputs(outputs)),
        outputs={key: value for key, value in published.items() if value},
        warnings=outputs.warnings,
    )


def _identity_report(ctx: DeploymentContext, registration: IdentityRegistration) -> ActionReport:
    state = "reused" if registration.reused_provider else "created"
    lines = [f"OIDC provider ({state}): {registration.provider_arn or 'unknown'}"]
    outputs: dict[str, str] = {}
    secrets: tuple[str, ...] = ()
    if registration.provider_arn:
        outputs["oidc_provider_arn"] = registration.provider_arn
    if registration.role_arn:
        lines += [
            "Add the following secret to your GitHub repository:",
            "   Name: AWS_ROLE_ARN",
            f"   Value: {registration.role_arn}",
            "   Remove the AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY secrets "
            "(they're no longer needed)",
        ]
        outputs["role_arn"] = registration.role_arn
        secrets = (registration.role_arn,)
    return ActionReport(
        action=Action.OIDC,
        context=ctx,
        lines=tuple(lines),
        outputs=outputs,
        secrets=secrets,
    )


def _resolve(request: DispatchRequest) -> tuple[DeploymentContext, list[str]]:
    if request.environment is None and request.action is not Action.OIDC:
        msg = f"An environment is required for the {request.action.value!r} action"
        raise ConfigurationError(msg)
    logger.info(
        "Loading configuration for environment: %s from %s",
        request.environment or "shared",
        request.config_path,
    )
    config = load_config(request.config_path)
    ctx = resolve_context(
        config,
        request.environment,
        allow_shared=request.action is Action.OIDC,
    )
    return ctx, environment_names(config)


def run_action(
    request: DispatchRequest,
    control_plane_factory: ControlPlaneFactory,
    *,
    which: Which | None = None,
    npm: NpmRunner = run_npm,
) -> ActionReport:
    """Run ``request`` and return its report.

    Parameters
    ----------
    request : DispatchRequest
        Action, environment, and local paths.
    control_plane_factory : Callable[[str], ControlPlane]
        Builds a client for the resolved region.
    which : Callable[[str], str | None] | None, optional
        PATH lookup for the dependency check; ``shutil.which`` when omitted.
    npm : NpmRunner, optional
        Runner used to build the function archive for ``infra``.

    Returns
    -------
    ActionReport
        Operator-facing lines and CI outputs.

    Raises
    ------
    ConfigurationError
        Before any remote call, if the configuration is unusable.
    DependencyError
        Before any mutating call, if tools or credentials are missing.
    RemoteOperationError
        If a control-plane step fails; the remaining steps are skipped.
    """
    ctx, environments = _resolve(request)
    control_plane = control_plane_factory(ctx.region)
    check_dependencies(request.action, control_plane, which or shutil.which)

    match request.action:
        case Action.TEST:
            return ActionReport(
                action=request.action,
                context=ctx,
                lines=(
                    f"Available environments: {', '.join(environments)}",
                    "Test action completed successfully.",
                ),
            )
        case Action.OIDC:
            if request.provider_only:
                registration = ensure_identity_provider(control_plane)
            else:
                registration = register_identity_provider(ctx, control_plane, request.layout)
            return _identity_report(ctx, registration)
        case Action.INFRA:
            result = deploy_environment(ctx, control_plane, request.layout, npm)
            outputs = extract_outputs(control_plane, ctx.stack_name)
            return _outputs_report(
                request.action,
                ctx,
                outputs,
                (f"Stack {result.stack_name}: {result.status.value}",),
            )
        case Action.CONTENT:
            publication = publish_content(ctx, control_plane, request.layout.site_content)
            outputs = {
                "bucket_name": publication.bucket_name,
                "distribution_id": publication.distribution_id,
            }
            if publication.invalidation_id:
                outputs["invalidation_id"] = publication.invalidation_id
            return ActionReport(
                action=request.action,
                context=ctx,
                lines=(
                    f"Site content synced to s3://{publication.bucket_name}",
                    f"Invalidation requested for {publication.distribution_id}",
                    "Content deployment completed!",
                ),
                outputs=outputs,
            )
        case Action.OUTPUTS:
            return _outputs_report(
                request.action, ctx, extract_outputs(control_plane, ctx.stack_name)
            )
        case _:
            assert_never(request.action)
