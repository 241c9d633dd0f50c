"""Register the GitHub Actions OIDC trust relationship.

The identity provider is account-wide, so at most one exists per issuer.
An existing provider is detected first and handed to the trust stack,
whose template then only creates the role; with an empty ARN the template
creates the provider as well.

Side Effects
------------
Deploys the ``{name}-github-oidc`` stack. With ``provider_only`` flows the
provider is created directly through IAM instead, and only when absent.
"""

from __future__ import annotations

import logging

from site_deploy._control_plane import ControlPlane
from site_deploy._deploy_models import (
    Capability,
    DeploymentContext,
    IdentityRegistration,
    ProjectLayout,
    StackDeployment,
)
from site_deploy._stack import ensure_succeeded

logger = logging.getLogger(__name__)

GITHUB_TOKEN_ISSUER = "token.actions.githubusercontent.com"
GITHUB_OIDC_URL = f"https://{GITHUB_TOKEN_ISSUER}"
GITHUB_OIDC_CLIENT_IDS = ("sts.amazonaws.com",)
GITHUB_OIDC_THUMBPRINTS = ("6938fd4d98bab03faadb97b34396831e3780aea1",)
ROLE_OUTPUT = "GitHubActionsRoleArn"


def find_identity_provider(control_plane: ControlPlane) -> str | None:
    """Return the ARN of the existing GitHub OIDC provider, if any."""
    logger.debug("Checking for existing OIDC providers...")
    for arn in control_plane.list_identity_providers():
        if arn.endswith(GITHUB_TOKEN_ISSUER):
            logger.debug("Found existing OIDC provider: %s", arn)
            return arn
    logger.debug("No existing OIDC provider found. Will create a new one.")
    return None


def build_identity_deployment(
    ctx: DeploymentContext,
    layout: ProjectLayout,
    provider_arn: str | None,
) -> StackDeployment:
    """Return the trust stack deployment for ``ctx``.

    Examples
    --------
    >>> build_identity_deployment(ctx, layout, None).parameter_overrides()[-1]
    'OIDCProviderArn='
    """
    return StackDeployment(
        stack_name=ctx.identity_stack_name,
        template_file=layout.identity_template,
        parameters=(
            ("GitHubOrg", ctx.github_org),
            ("GitHubRepo", ctx.github_repo),
            ("Environment", ctx.environment),
            ("OIDCProviderArn", provider_arn or ""),
        ),
        tags=(
            ("Solution", ctx.solution),
            ("Environment", ctx.environment),
            ("Component", "OIDC"),
        ),
        capabilities=(Capability.NAMED_IAM,),
    )


def register_identity_provider(
    ctx: DeploymentContext,
    control_plane: ControlPlane,
    layout: ProjectLayout,
) -> IdentityRegistration:
    """Deploy the trust stack, reusing an existing provider when found.

    Parameters
    ----------
    ctx : DeploymentContext
        Resolved context; ``environment`` may be the shared pseudo-environment.
    control_plane : ControlPlane
        Client used for every remote call.
    layout : ProjectLayout
        Provides the trust stack template path.

    Returns
    -------
    IdentityRegistration
        Role ARN from the stack outputs and the provider ARN in use.

    Raises
    ------
    StackDeployError
        If the trust stack fails to deploy; the role is not looked up.
    """
    logger.info("OIDC setup is a one-time, account-level operation.")
    existing = find_identity_provider(control_plane)

    logger.info("Deploying GitHub OIDC provider and role stack %s...", ctx.identity_stack_name)
    deployment = build_identity_deployment(ctx, layout, existing)
    result = ensure_succeeded(control_plane.deploy_stack(deployment))

    description = control_plane.describe_stack(ctx.identity_stack_name)
    role_arn = description.outputs.get(ROLE_OUTPUT) if description else None
    if not role_arn:
        logger.warning(
            "Could not retrieve %s from outputs of stack %r",
            ROLE_OUTPUT,
            ctx.identity_stack_name,
        )
        role_arn = None

    provider_arn = existing or find_identity_provider(control_plane)
    return IdentityRegistration(
        stack_name=ctx.identity_stack_name,
        role_arn=role_arn,
        provider_arn=provider_arn,
        reused_provider=existing is not None,
        deploy_result=result,
    )


def ensure_identity_provider(control_plane: ControlPlane) -> IdentityRegistration:
    """Create the GitHub OIDC provider directly through IAM if it is absent.

    No trust stack is deployed, so the returned registration has no role.
    """
    existing = find_identity_provider(control_plane)
    if existing is not None:
        logger.info("GitHub OIDC provider already exists: %s", existing)
        return IdentityRegistration(
            stack_name="",
            role_arn=None,
            provider_arn=existing,
            reused_provider=True,
        )

    logger.info("Creating GitHub OIDC provider in AWS IAM")
    arn = control_plane.create_identity_provider(
        GITHUB_OIDC_URL,
        GITHUB_OIDC_CLIENT_IDS,
        GITHUB_OIDC_THUMBPRINTS,
    )
    return IdentityRegistration(
        stack_name="",
        role_arn=None,
        provider_arn=arn,
        reused_provider=False,
    )
