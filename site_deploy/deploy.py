#!/usr/bin/env -S uv run python
# /// script
# requires-python = ">=3.13"
# dependencies = ["cyclopts>=2.9", "plumbum"]
# ///
"""Deploy the CloudFront + S3 static site across environments.

Usage: ``site-deploy <action> [environment]``

This script:
- loads ``deploy-config.json`` and resolves the target environment;
- checks the required tools and AWS credentials;
- runs the action (``test``, ``oidc``, ``infra``, ``content``, ``outputs``);
- prints the results and, in CI, appends them to ``$GITHUB_OUTPUT``.

Exit codes: ``0`` success, ``2`` configuration error, ``3`` missing tool or
credentials, ``4`` remote operation failure, ``1`` any other failure.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter

from site_deploy._aws_cli import AwsCliControlPlane
from site_deploy._deploy_errors import (
    ConfigurationError,
    DependencyError,
    DeployError,
    RemoteOperationError,
)
from site_deploy._deploy_models import Action, ProjectLayout
from site_deploy._dispatch import ActionReport, DispatchRequest, run_action
from site_deploy._github import publish_results
from site_deploy._input_resolution import InputResolution, parse_bool, resolve_input

app = App(help="Deploy the static site infrastructure and content to AWS.")
logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIGURATION = 2
EXIT_DEPENDENCY = 3
EXIT_REMOTE = 4

CONFIG_FILE_NAME = "deploy-config.json"

CONFIG_PARAM = Parameter(help="Configuration document path (DEPLOY_CONFIG).")
ROOT_PARAM = Parameter(help="Project root holding templates/ and source/ (DEPLOY_ROOT).")
CONTENT_DIR_PARAM = Parameter(help="Site content directory (DEPLOY_CONTENT_DIR).")
GITHUB_OUTPUT_PARAM = Parameter(help="GITHUB_OUTPUT path override.")
VERBOSE_PARAM = Parameter(help="Enable debug logging (DEPLOY_VERBOSE).")
PROVIDER_ONLY_PARAM = Parameter(
    help="oidc only: create the GitHub OIDC provider without the trust stack."
)


def configure_logging(*, verbose: bool) -> None:
    """Route log records to stderr at INFO, or DEBUG when ``verbose``."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def _to_path(value: str | Path | None) -> Path | None:
    if value is None:
        return None
    return value if isinstance(value, Path) else Path(value)


def publish_report(report: ActionReport, github_output: Path | None) -> None:
    """Print ``report`` and append its outputs to ``github_output`` if set."""
    exported = publish_results(
        report.lines,
        report.outputs,
        secrets=report.secrets,
        output_file=github_output,
    )
    if exported:
        print(f"Exported {exported} outputs to GITHUB_OUTPUT")


def exit_code_for(exc: DeployError) -> int:
    """Map a deployment error to the process exit code.

    Examples
    --------
    >>> exit_code_for(ConfigurationError("bad"))
    2
    """
    if isinstance(exc, ConfigurationError):
        return EXIT_CONFIGURATION
    if isinstance(exc, DependencyError):
        return EXIT_DEPENDENCY
    if isinstance(exc, RemoteOperationError):
        return EXIT_REMOTE
    return EXIT_FAILURE


@app.default
def main(
    action: Action,
    environment: str | None = None,
    *,
    config: Annotated[Path | None, CONFIG_PARAM] = None,
    root: Annotated[Path | None, ROOT_PARAM] = None,
    content_dir: Annotated[Path | None, CONTENT_DIR_PARAM] = None,
    github_output: Annotated[Path | None, GITHUB_OUTPUT_PARAM] = None,
    verbose: Annotated[bool | None, VERBOSE_PARAM] = None,
    provider_only: Annotated[bool, PROVIDER_ONLY_PARAM] = False,
) -> int:
    """Run ``action`` against ``environment``.

    The environment is optional for ``oidc``, which then targets the shared
    pseudo-environment.
    """
    verbose_raw = resolve_input(None, InputResolution(env_key="DEPLOY_VERBOSE"))
    if verbose is None:
        verbose = parse_bool(str(verbose_raw) if verbose_raw else None)
    configure_logging(verbose=verbose)

    try:
        root_path = _to_path(
            resolve_input(root, InputResolution(env_key="DEPLOY_ROOT", as_path=True))
        ) or Path.cwd()
        config_path = _to_path(
            resolve_input(
                config,
                InputResolution(
                    env_key="DEPLOY_CONFIG",
                    default=root_path / CONFIG_FILE_NAME,
                    as_path=True,
                ),
            )
        )
        content_path = _to_path(
            resolve_input(
                content_dir,
                InputResolution(env_key="DEPLOY_CONTENT_DIR", as_path=True),
            )
        )
        github_output_path = _to_path(
            resolve_input(
                github_output,
                InputResolution(env_key="GITHUB_OUTPUT", as_path=True),
            )
        )
        request = DispatchRequest(
            action=action,
            environment=environment,
            config_path=config_path or root_path / CONFIG_FILE_NAME,
            layout=ProjectLayout(root=root_path, content_dir=content_path),
            provider_only=provider_only,
        )
        report = run_action(request, AwsCliControlPlane)
    except DeployError as exc:
        logger.error("%s", exc)
        return exit_code_for(exc)

    publish_report(report, github_output_path)
    return EXIT_OK


def run() -> None:
    """Console-script entry point."""
    raise SystemExit(app())


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    run()
