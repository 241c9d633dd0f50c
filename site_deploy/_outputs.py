"""Read the outputs of a deployed environment stack."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from site_deploy._control_plane import ControlPlane
from site_deploy._deploy_errors import (
    PartialDataWarning,
    RequiredOutputMissing,
    StackNotFound,
)

logger = logging.getLogger(__name__)

BUCKET_OUTPUT = "S3BucketRoot"
DISTRIBUTION_OUTPUT = "CFDistributionId"
DOMAIN_OUTPUT = "CloudFrontDomainName"

OUTPUTS_OF_INTEREST: dict[str, str] = {
    BUCKET_OUTPUT: "bucket name",
    DISTRIBUTION_OUTPUT: "distribution ID",
    DOMAIN_OUTPUT: "website URL",
}

_MISSING_SENTINELS = frozenset({"", "none"})


def _normalise(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if value.lower() in _MISSING_SENTINELS:
        return None
    return value


@dataclass(frozen=True, slots=True)
class StackOutputs:
    """Best-effort outputs of interest for one stack.

    Attributes
    ----------
    stack_name
        Stack the outputs were read from.
    values
        Output key to value; absent keys map to ``None``.
    warnings
        One warning per absent key.
    """

    stack_name: str
    values: Mapping[str, str | None]
    warnings: tuple[PartialDataWarning, ...] = field(default_factory=tuple)

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def require(self, key: str) -> str:
        """Return ``key`` or raise when a mutating step needs it."""
        value = self.values.get(key)
        if value is None:
            raise RequiredOutputMissing(self.stack_name, key)
        return value

    @property
    def website_url(self) -> str | None:
        domain = self.values.get(DOMAIN_OUTPUT)
        return f"https://{domain}" if domain else None


def extract_outputs(control_plane: ControlPlane, stack_name: str) -> StackOutputs:
    """Collect the outputs of interest from ``stack_name``.

    Absent values and the ``None`` sentinel produce a warning each instead
    of aborting the extraction.

    Raises
    ------
    StackNotFound
        If the stack does not exist at all.
    """
    logger.info("Retrieving stack outputs for %s...", stack_name)
    description = control_plane.describe_stack(stack_name)
    if description is None:
        raise StackNotFound(stack_name)

    values: dict[str, str | None] = {}
    warnings: list[PartialDataWarning] = []
    for key, label in OUTPUTS_OF_INTEREST.items():
        value = _normalise(description.outputs.get(key))
        values[key] = value
        if value is None:
            warning = PartialDataWarning(stack_name, key, label)
            logger.warning(warning.message)
            warnings.append(warning)
    return StackOutputs(stack_name=stack_name, values=values, warnings=tuple(warnings))


def format_outputs(outputs: StackOutputs) -> list[str]:
    """Render the present outputs as operator-facing lines.

    Examples
    --------
    >>> format_outputs(StackOutputs("site-dev", {"S3BucketRoot": "b", "CFDistributionId": None, "CloudFrontDomainName": "d.net"}))
    ['Bucket Name: b', 'Website URL: https://d.net']
    """
    lines: list[str] = []
    if bucket := outputs.get(BUCKET_OUTPUT):
        lines.append(f"Bucket Name: {bucket}")
    if distribution := outputs.get(DISTRIBUTION_OUTPUT):
        lines.append(f"Distribution ID: {distribution}")
    if url := outputs.website_url:
        lines.append(f"Website URL: {url}")
    return lines
