"""Unit tests for stack output extraction."""

from __future__ import annotations

import logging

import pytest

from site_deploy._deploy_errors import RequiredOutputMissing, StackNotFound
from site_deploy._outputs import extract_outputs, format_outputs
from site_deploy.tests._fakes import FakeControlPlane

FULL_OUTPUTS = {
    "S3BucketRoot": "site-dev-root",
    "CFDistributionId": "E2EXAMPLE",
    "CloudFrontDomainName": "d111111abcdef8.cloudfront.net",
}


def test_extract_outputs_returns_all_keys() -> None:
    outputs = extract_outputs(FakeControlPlane(stacks={"site-dev": FULL_OUTPUTS}), "site-dev")
    assert outputs.warnings == ()
    assert outputs.website_url == "https://d111111abcdef8.cloudfront.net"
    assert format_outputs(outputs) == [
        "Bucket Name: site-dev-root",
        "Distribution ID: E2EXAMPLE",
        "Website URL: https://d111111abcdef8.cloudfront.net",
    ]


def test_missing_key_produces_exactly_one_warning(caplog: pytest.LogCaptureFixture) -> None:
    partial = {key: value for key, value in FULL_OUTPUTS.items() if key != "CFDistributionId"}
    control_plane = FakeControlPlane(stacks={"site-dev": partial})

    with caplog.at_level(logging.WARNING):
        outputs = extract_outputs(control_plane, "site-dev")

    assert len(outputs.warnings) == 1, "Only the absent key should warn"
    assert outputs.warnings[0].output_key == "CFDistributionId"
    assert "distribution ID" in caplog.text
    assert outputs.get("S3BucketRoot") == "site-dev-root"


def test_none_sentinel_is_treated_as_missing() -> None:
    control_plane = FakeControlPlane(
        stacks={"site-dev": {**FULL_OUTPUTS, "CloudFrontDomainName": "None"}}
    )
    outputs = extract_outputs(control_plane, "site-dev")
    assert outputs.website_url is None
    assert [warning.output_key for warning in outputs.warnings] == ["CloudFrontDomainName"]


def test_missing_stack_raises_stack_not_found() -> None:
    with pytest.raises(StackNotFound, match="site-dev"):
        extract_outputs(FakeControlPlane(), "site-dev")


def test_require_raises_for_missing_key() -> None:
    outputs = extract_outputs(FakeControlPlane(stacks={"site-dev": {}}), "site-dev")
    assert len(outputs.warnings) == 3
    with pytest.raises(RequiredOutputMissing, match="S3BucketRoot"):
        outputs.require("S3BucketRoot")
