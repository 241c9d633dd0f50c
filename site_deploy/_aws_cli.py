"""``aws`` CLI implementation of the control-plane interface.

Commands run through :mod:`plumbum` with the pager disabled and JSON
output, and every non-zero exit is surfaced as :class:`AwsCommandError`
unless the operation defines it as a benign outcome (an already-owned
bucket, a stack that does not exist yet).

Examples
--------
>>> client = AwsCliControlPlane("us-east-1")
>>> client.describe_stack("site-dev") is None
True
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeAlias

from plumbum import local
from plumbum.commands.processes import CommandNotFound

from site_deploy._deploy_errors import (
    AwsCommandError,
    MissingDependency,
    NotAuthenticated,
)
from site_deploy._deploy_models import (
    StackDeployment,
    StackDeployResult,
    StackDeployStatus,
    StackDescription,
)

logger = logging.getLogger(__name__)

NO_CHANGES_MARKER = "No changes to deploy"
STACK_MISSING_MARKER = "does not exist"
# A stack created from an unexecuted change set has no resources yet.
PENDING_CREATE_STATUSES = frozenset({"REVIEW_IN_PROGRESS"})
BUCKET_OWNED_MARKER = "BucketAlreadyOwnedByYou"


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of an ``aws`` CLI invocation.

    Attributes
    ----------
    return_code
        Process exit status.
    stdout
        Captured standard output.
    stderr
        Captured standard error.
    """

    return_code: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.return_code == 0


CommandRunner: TypeAlias = Callable[[Sequence[str]], CommandResult]


def _validate_command_args(args: Sequence[str]) -> None:
    """Validate CLI arguments for safe execution."""
    for arg in args:
        if not isinstance(arg, str):
            msg = f"aws argument must be a string, got {type(arg).__name__}"
            raise TypeError(msg)
        if any(char in arg for char in ("\x00", "\n", "\r")):
            msg = "aws argument contains an invalid control character"
            raise ValueError(msg)


def run_aws(args: Sequence[str]) -> CommandResult:
    """Execute ``aws`` with ``args`` and return the captured result.

    Parameters
    ----------
    args : Sequence[str]
        Command arguments without the ``aws`` prefix.

    Returns
    -------
    CommandResult
        Exit status and captured output; non-zero exits are not raised.

    Raises
    ------
    MissingDependency
        If the ``aws`` executable is not on ``PATH``.
    """
    _validate_command_args(args)
    try:
        aws = local["aws"]
    except CommandNotFound as exc:
        raise MissingDependency(["aws"]) from exc
    env = {**os.environ, "AWS_PAGER": ""}
    return_code, stdout, stderr = aws[list(args)].run(retcode=None, env=env)
    return CommandResult(return_code=return_code, stdout=stdout, stderr=stderr)


class AwsCliControlPlane:
    """Control-plane client backed by the ``aws`` CLI."""

    def __init__(self, region: str, runner: CommandRunner = run_aws) -> None:
        self.region = region
        self._runner = runner

    def _run(self, *args: str) -> CommandResult:
        logger.debug("aws %s", " ".join(args))
        return self._runner(list(args))

    def _check(self, *args: str) -> str:
        result = self._run(*args)
        if not result.success:
            raise AwsCommandError(args, result.return_code, result.stderr)
        return result.stdout

    def _json(self, *args: str) -> Any:
        stdout = self._check(*args, "--output", "json")
        if not stdout.strip():
            return {}
        try:
            return json.loads(stdout)
        except json.JSONDecodeError as exc:
            msg = f"aws {' '.join(args)} returned invalid JSON: {exc}"
            raise AwsCommandError(args, 0, msg) from exc

    def get_caller_identity(self) -> str:
        result = self._run("sts", "get-caller-identity", "--output", "json")
        if not result.success:
            msg = (
                "AWS credentials not configured. Please run 'aws configure' first. "
                f"({result.stderr.strip()})"
            )
            raise NotAuthenticated(msg)
        try:
            account = json.loads(result.stdout).get("Account")
        except json.JSONDecodeError as exc:
            msg = f"aws sts get-caller-identity returned invalid JSON: {exc}"
            raise NotAuthenticated(msg) from exc
        if not account:
            msg = "AWS credentials did not resolve to an account"
            raise NotAuthenticated(msg)
        return str(account)

    def create_bucket(self, bucket_name: str) -> None:
        result = self._run("s3", "mb", f"s3://{bucket_name}", "--region", self.region)
        if result.success:
            logger.info("Created package bucket s3://%s", bucket_name)
            return
        if BUCKET_OWNED_MARKER in result.stderr:
            logger.debug("Package bucket s3://%s already exists", bucket_name)
            return
        raise AwsCommandError(
            ("s3", "mb", f"s3://{bucket_name}"), result.return_code, result.stderr
        )

    def package_template(
        self,
        template_file: Path,
        bucket_name: str,
        output_file: Path,
    ) -> Path:
        self._check(
            "cloudformation",
            "package",
            "--region",
            self.region,
            "--template-file",
            str(template_file),
            "--s3-bucket",
            bucket_name,
            "--output-template-file",
            str(output_file),
        )
        return output_file

    def describe_stack(self, stack_name: str) -> StackDescription | None:
        args = (
            "cloudformation",
            "describe-stacks",
            "--stack-name",
            stack_name,
            "--region",
            self.region,
            "--output",
            "json",
        )
        result = self._run(*args)
        if not result.success:
            if STACK_MISSING_MARKER in result.stderr:
                return None
            raise AwsCommandError(args, result.return_code, result.stderr)
        try:
            stacks = json.loads(result.stdout).get("Stacks") or []
        except json.JSONDecodeError as exc:
            msg = f"describe-stacks returned invalid JSON: {exc}"
            raise AwsCommandError(args, 0, msg) from exc
        if not stacks:
            return None
        stack = stacks[0]
        outputs = {
            str(item["OutputKey"]): str(item.get("OutputValue", ""))
            for item in stack.get("Outputs") or []
            if "OutputKey" in item
        }
        return StackDescription(
            stack_name=str(stack.get("StackName", stack_name)),
            status=str(stack.get("StackStatus", "")),
            outputs=outputs,
        )

    def deploy_stack(self, deployment: StackDeployment) -> StackDeployResult:
        current = self.describe_stack(deployment.stack_name)
        existed = current is not None and current.status not in PENDING_CREATE_STATUSES
        args = [
            "cloudformation",
            "deploy",
            "--region",
            self.region,
            "--stack-name",
            deployment.stack_name,
            "--template-file",
            str(deployment.template_file),
            "--no-fail-on-empty-changeset",
        ]
        if deployment.capabilities:
            args += ["--capabilities", *(str(cap) for cap in deployment.capabilities)]
        if deployment.parameters:
            args += ["--parameter-overrides", *deployment.parameter_overrides()]
        if deployment.tags:
            args += ["--tags", *deployment.tag_pairs()]

        result = self._run(*args)
        if not result.success:
            reason = result.stderr.strip() or result.stdout.strip()
            return StackDeployResult(
                deployment.stack_name,
                StackDeployStatus.FAILED,
                reason or f"exit status {result.return_code}",
            )
        if NO_CHANGES_MARKER in result.stdout:
            return StackDeployResult(deployment.stack_name, StackDeployStatus.NO_CHANGES)
        status = StackDeployStatus.UPDATED if existed else StackDeployStatus.CREATED
        return StackDeployResult(deployment.stack_name, status)

    def list_identity_providers(self) -> list[str]:
        payload = self._json("iam", "list-open-id-connect-providers")
        return [
            str(entry["Arn"])
            for entry in payload.get("OpenIDConnectProviderList") or []
            if entry.get("Arn")
        ]

    def create_identity_provider(
        self,
        url: str,
        client_ids: Sequence[str],
        thumbprints: Sequence[str],
    ) -> str:
        payload = self._json(
            "iam",
            "create-open-id-connect-provider",
            "--url",
            url,
            "--thumbprint-list",
            *thumbprints,
            "--client-id-list",
            *client_ids,
        )
        return str(payload["OpenIDConnectProviderArn"])

    def sync_directory(self, source: Path, bucket_name: str) -> None:
        self._check(
            "s3",
            "sync",
            str(source),
            f"s3://{bucket_name}",
            "--delete",
            "--region",
            self.region,
        )

    def invalidate_paths(self, distribution_id: str, paths: Sequence[str]) -> str:
        payload = self._json(
            "cloudfront",
            "create-invalidation",
            "--distribution-id",
            distribution_id,
            "--paths",
            *paths,
        )
        return str(payload.get("Invalidation", {}).get("Id", ""))
