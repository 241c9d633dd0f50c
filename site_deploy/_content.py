"""Publish static site content and invalidate the CDN cache."""

from __future__ import annotations

import logging
from pathlib import Path

from site_deploy._control_plane import ControlPlane
from site_deploy._deploy_errors import ContentDirectoryNotFound
from site_deploy._deploy_models import ContentPublication, DeploymentContext
from site_deploy._outputs import BUCKET_OUTPUT, DISTRIBUTION_OUTPUT, extract_outputs

logger = logging.getLogger(__name__)

INVALIDATION_PATHS = ("/*",)


def publish_content(
    ctx: DeploymentContext,
    control_plane: ControlPlane,
    content_dir: Path,
) -> ContentPublication:
    """Mirror ``content_dir`` into the environment bucket and invalidate the CDN.

    Both the bucket and the distribution are resolved before anything is
    uploaded, and the invalidation is only requested once the sync has
    completed.

    Parameters
    ----------
    ctx : DeploymentContext
        Resolved context for the target environment.
    control_plane : ControlPlane
        Client used for every remote call.
    content_dir : Path
        Local directory holding the built site.

    Returns
    -------
    ContentPublication
        Target bucket, distribution, and invalidation ID.

    Raises
    ------
    ContentDirectoryNotFound
        If ``content_dir`` is not a directory.
    StackNotFound
        If the environment stack does not exist.
    RequiredOutputMissing
        If the bucket or distribution output is absent.
    RemoteOperationError
        If the sync or the invalidation fails.
    """
    if not content_dir.is_dir():
        raise ContentDirectoryNotFound(content_dir)

    outputs = extract_outputs(control_plane, ctx.stack_name)
    bucket_name = outputs.require(BUCKET_OUTPUT)
    distribution_id = outputs.require(DISTRIBUTION_OUTPUT)

    logger.info("Syncing site content from %s to s3://%s...", content_dir, bucket_name)
    control_plane.sync_directory(content_dir, bucket_name)
    logger.info("Site content synced to s3://%s", bucket_name)

    logger.info("Invalidating CloudFront cache for distribution %s...", distribution_id)
    invalidation_id = control_plane.invalidate_paths(distribution_id, INVALIDATION_PATHS)
    logger.info("CloudFront cache invalidation requested.")

    return ContentPublication(
        bucket_name=bucket_name,
        distribution_id=distribution_id,
        invalidation_id=invalidation_id or None,
    )
