"""Behavioural tests for the environment rollout sequence."""

from __future__ import annotations

import zipfile
from collections.abc import Sequence
from pathlib import Path

import pytest

from site_deploy._config import load_config, resolve_context
from site_deploy._deploy_errors import AwsCommandError, PackagingError, StackDeployError
from site_deploy._deploy_models import (
    Capability,
    DeploymentContext,
    ProjectLayout,
    StackDeployStatus,
)
from site_deploy._stack import deploy_environment
from site_deploy.tests._fakes import FakeControlPlane, RecordingNpm


@pytest.fixture
def dev_context(config_path: Path) -> DeploymentContext:
    return resolve_context(load_config(config_path), "dev")


def test_infra_dev_packages_publishes_and_deploys(
    dev_context: DeploymentContext,
    project_root: Path,
) -> None:
    control_plane = FakeControlPlane()
    layout = ProjectLayout(project_root)
    npm = RecordingNpm()

    result = deploy_environment(dev_context, control_plane, layout, npm)

    assert result.status is StackDeployStatus.CREATED
    assert control_plane.mutating_calls() == [
        "create_bucket",
        "package_template",
        "deploy_stack",
    ], "Steps should run in order"
    assert control_plane.buckets == {"site-cf-templates-us-east-1"}
    deployment = control_plane.deployments["site-dev"]
    assert deployment.template_file == project_root / "packaged.template"
    assert " ".join(deployment.parameter_overrides()) == "CreateApex=no SubDomain=dev"
    assert deployment.capabilities == (Capability.NAMED_IAM, Capability.AUTO_EXPAND)
    assert dict(deployment.tags) == {"Solution": "ACFS3", "Environment": "dev"}


def test_function_archive_is_built_before_upload(
    dev_context: DeploymentContext,
    project_root: Path,
) -> None:
    npm = RecordingNpm()
    deploy_environment(dev_context, FakeControlPlane(), ProjectLayout(project_root), npm)

    assert npm.calls == [
        (("install", "--prefix", "nodejs", "mime-types"), project_root / "source" / "witch")
    ]
    with zipfile.ZipFile(project_root / "witch.zip") as archive:
        names = set(archive.namelist())
    assert "nodejs/node_modules/witch.js" in names, "Handler should be bundled"
    assert "nodejs/node_modules/mime-types/index.js" in names


def test_redeploy_without_changes_is_idempotent(
    dev_context: DeploymentContext,
    project_root: Path,
) -> None:
    control_plane = FakeControlPlane()
    layout = ProjectLayout(project_root)

    first = deploy_environment(dev_context, control_plane, layout, RecordingNpm())
    mutations_after_first = control_plane.mutations
    second = deploy_environment(dev_context, control_plane, layout, RecordingNpm())

    assert first.status is StackDeployStatus.CREATED
    assert second.status is StackDeployStatus.NO_CHANGES
    assert (
        control_plane.mutations == mutations_after_first
    ), "Second run should have no remote side effects"


def test_changed_parameters_update_the_stack(
    dev_context: DeploymentContext,
    project_root: Path,
) -> None:
    control_plane = FakeControlPlane()
    layout = ProjectLayout(project_root)
    deploy_environment(dev_context, control_plane, layout, RecordingNpm())

    changed = DeploymentContext(
        project_name=dev_context.project_name,
        region=dev_context.region,
        environment=dev_context.environment,
        github_org=dev_context.github_org,
        github_repo=dev_context.github_repo,
        parameters=(("CreateApex", "yes"), ("SubDomain", "dev")),
    )
    result = deploy_environment(changed, control_plane, layout, RecordingNpm())
    assert result.status is StackDeployStatus.UPDATED


def test_packaging_failure_short_circuits_remote_calls(
    dev_context: DeploymentContext,
    project_root: Path,
) -> None:
    control_plane = FakeControlPlane()

    def failing_npm(args: Sequence[str], cwd: Path) -> None:
        raise PackagingError("npm install failed")

    with pytest.raises(PackagingError):
        deploy_environment(dev_context, control_plane, ProjectLayout(project_root), failing_npm)
    assert control_plane.calls == [], "No remote call should follow a packaging failure"


def test_missing_handler_raises_packaging_error(
    dev_context: DeploymentContext,
    project_root: Path,
) -> None:
    (project_root / "source" / "witch" / "witch.js").unlink()
    with pytest.raises(PackagingError, match="witch.js"):
        deploy_environment(
            dev_context, FakeControlPlane(), ProjectLayout(project_root), RecordingNpm()
        )


def test_package_failure_aborts_before_deploy(
    dev_context: DeploymentContext,
    project_root: Path,
) -> None:
    control_plane = FakeControlPlane(failing=["package_template"])
    with pytest.raises(AwsCommandError, match="package_template failed"):
        deploy_environment(
            dev_context, control_plane, ProjectLayout(project_root), RecordingNpm()
        )
    assert "deploy_stack" not in control_plane.call_names()


def test_failed_deploy_raises_stack_deploy_error(
    dev_context: DeploymentContext,
    project_root: Path,
) -> None:
    control_plane = FakeControlPlane(failing_stacks=["site-dev"])
    with pytest.raises(StackDeployError, match="site-dev"):
        deploy_environment(
            dev_context, control_plane, ProjectLayout(project_root), RecordingNpm()
        )
