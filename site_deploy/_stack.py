"""Drive a full infrastructure rollout for one environment.

The rollout is a strict sequence where each step depends on the previous
one succeeding:

1. build the content deployment function archive;
2. ensure the package bucket exists and package the nested templates;
3. deploy the packaged template with the environment's parameters.

Any failure aborts the sequence. Rollback is left to CloudFormation.

Examples
--------
>>> result = deploy_environment(ctx, AwsCliControlPlane(ctx.region), layout)
>>> result.status
<StackDeployStatus.NO_CHANGES: 'no_changes'>
"""

from __future__ import annotations

import logging

from site_deploy._control_plane import ControlPlane
from site_deploy._deploy_errors import StackDeployError
from site_deploy._deploy_models import (
    Capability,
    DeploymentContext,
    ProjectLayout,
    StackDeployment,
    StackDeployResult,
    StackDeployStatus,
)
from site_deploy._packaging import NpmRunner, build_function_archive, run_npm

logger = logging.getLogger(__name__)

INFRA_CAPABILITIES = (Capability.NAMED_IAM, Capability.AUTO_EXPAND)


def ensure_succeeded(result: StackDeployResult) -> StackDeployResult:
    """Return ``result`` or raise :class:`StackDeployError` if it failed."""
    if result.status is StackDeployStatus.FAILED:
        raise StackDeployError(result.stack_name, result.reason or "unknown failure")
    return result


def publish_templates(
    ctx: DeploymentContext,
    control_plane: ControlPlane,
    layout: ProjectLayout,
) -> StackDeployment:
    """Upload nested artefacts and return the deployment for the packaged template."""
    logger.info("Packaging artifacts into s3://%s...", ctx.package_bucket_name)
    control_plane.create_bucket(ctx.package_bucket_name)
    packaged = control_plane.package_template(
        layout.main_template,
        ctx.package_bucket_name,
        layout.packaged_template,
    )
    return StackDeployment(
        stack_name=ctx.stack_name,
        template_file=packaged,
        parameters=ctx.parameters,
        tags=(("Solution", ctx.solution), ("Environment", ctx.environment)),
        capabilities=INFRA_CAPABILITIES,
    )


def deploy_environment(
    ctx: DeploymentContext,
    control_plane: ControlPlane,
    layout: ProjectLayout,
    npm: NpmRunner = run_npm,
) -> StackDeployResult:
    """Package, publish, and deploy the environment stack.

    Parameters
    ----------
    ctx : DeploymentContext
        Resolved context for the target environment.
    control_plane : ControlPlane
        Client used for every remote call.
    layout : ProjectLayout
        Local template and function paths.
    npm : NpmRunner, optional
        Runner used to build the function archive.

    Returns
    -------
    StackDeployResult
        ``CREATED``, ``UPDATED`` or ``NO_CHANGES``.

    Raises
    ------
    PackagingError
        If the function archive cannot be built; no remote call is made.
    RemoteOperationError
        If packaging or deploying on the control plane fails.
    """
    build_function_archive(layout, npm)
    deployment = publish_templates(ctx, control_plane, layout)

    logger.info("Deploying infrastructure stack %s...", ctx.stack_name)
    logger.debug("Parameters: %s", " ".join(deployment.parameter_overrides()))
    result = ensure_succeeded(control_plane.deploy_stack(deployment))
    if result.status is StackDeployStatus.NO_CHANGES:
        logger.info("Stack %s is up to date; no changes deployed", ctx.stack_name)
    else:
        logger.info("Infrastructure deployment completed (%s)", result.status.value)
    return result
