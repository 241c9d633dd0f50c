"""Unit tests for publishing site content."""

from __future__ import annotations

from pathlib import Path

import pytest

from site_deploy._config import load_config, resolve_context
from site_deploy._content import publish_content
from site_deploy._deploy_errors import (
    AwsCommandError,
    ContentDirectoryNotFound,
    RequiredOutputMissing,
    StackNotFound,
)
from site_deploy._deploy_models import DeploymentContext
from site_deploy.tests._fakes import FakeControlPlane

OUTPUTS = {
    "S3BucketRoot": "site-dev-root",
    "CFDistributionId": "E2EXAMPLE",
    "CloudFrontDomainName": "d111111abcdef8.cloudfront.net",
}


@pytest.fixture
def dev_context(config_path: Path) -> DeploymentContext:
    return resolve_context(load_config(config_path), "dev")


def test_sync_precedes_invalidation(dev_context: DeploymentContext, project_root: Path) -> None:
    control_plane = FakeControlPlane(stacks={"site-dev": OUTPUTS})
    site_dir = project_root / "www"

    publication = publish_content(dev_context, control_plane, site_dir)

    assert control_plane.mutating_calls() == ["sync_directory", "invalidate_paths"]
    assert control_plane.synced == [(site_dir, "site-dev-root")]
    assert control_plane.invalidations == [("E2EXAMPLE", ("/*",))]
    assert publication.invalidation_id == "I1"


def test_failed_sync_prevents_invalidation(
    dev_context: DeploymentContext,
    project_root: Path,
) -> None:
    control_plane = FakeControlPlane(stacks={"site-dev": OUTPUTS}, failing=["sync_directory"])

    with pytest.raises(AwsCommandError):
        publish_content(dev_context, control_plane, project_root / "www")
    assert control_plane.invalidations == [], "Invalidation must not follow a failed sync"
    assert "invalidate_paths" not in control_plane.call_names()


def test_missing_distribution_is_fatal(
    dev_context: DeploymentContext,
    project_root: Path,
) -> None:
    partial = {key: value for key, value in OUTPUTS.items() if key != "CFDistributionId"}
    control_plane = FakeControlPlane(stacks={"site-dev": partial})

    with pytest.raises(RequiredOutputMissing, match="CFDistributionId"):
        publish_content(dev_context, control_plane, project_root / "www")
    assert control_plane.mutating_calls() == [], "Nothing should be uploaded"


def test_missing_stack_is_fatal(dev_context: DeploymentContext, project_root: Path) -> None:
    with pytest.raises(StackNotFound):
        publish_content(dev_context, FakeControlPlane(), project_root / "www")


def test_missing_content_directory(dev_context: DeploymentContext, tmp_path: Path) -> None:
    control_plane = FakeControlPlane(stacks={"site-dev": OUTPUTS})
    with pytest.raises(ContentDirectoryNotFound, match="public"):
        publish_content(dev_context, control_plane, tmp_path / "public")
    assert control_plane.calls == []
