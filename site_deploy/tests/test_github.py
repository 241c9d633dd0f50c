"""Unit tests for the GitHub Actions output helpers."""

from __future__ import annotations

from pathlib import Path

from site_deploy._github import append_github_output, mask_secret, publish_results


def test_append_github_output_writes_key_values(tmp_path: Path) -> None:
    output_file = tmp_path / "out"
    output_file.write_text("existing=1\n", encoding="utf-8")

    append_github_output(output_file, {"bucket_name": "site-dev-root", "distribution_id": "E2"})

    assert output_file.read_text(encoding="utf-8") == (
        "existing=1\nbucket_name=site-dev-root\ndistribution_id=E2\n"
    ), "Outputs should be appended after existing lines"


def test_multiline_values_use_unique_delimiter(tmp_path: Path) -> None:
    output_file = tmp_path / "out"

    append_github_output(output_file, {"notes": "line one\nEOF\nline two"})

    content = output_file.read_text(encoding="utf-8")
    assert content.startswith("notes<<EOF_1\n"), "Delimiter should avoid the value"
    assert content.endswith("line two\nEOF_1\n")


def test_mask_secret_masks_each_line() -> None:
    emitted: list[str] = []
    mask_secret("first\nsecond", stream=emitted.append)
    assert emitted == ["::add-mask::first", "::add-mask::second"]


def test_mask_secret_ignores_empty_value() -> None:
    emitted: list[str] = []
    mask_secret("", stream=emitted.append)
    assert emitted == []


def test_publish_results_masks_before_printing(tmp_path: Path) -> None:
    role = "arn:aws:iam::123456789012:role/site-github-actions"
    emitted: list[str] = []
    output_file = tmp_path / "out"

    exported = publish_results(
        [f"   Value: {role}"],
        {"role_arn": role},
        secrets=[role],
        output_file=output_file,
        stream=emitted.append,
    )

    assert emitted == [f"::add-mask::{role}", f"   Value: {role}"], "Mask must precede the value"
    assert exported == 1
    assert output_file.read_text(encoding="utf-8") == f"role_arn={role}\n"


def test_publish_results_masks_without_output_file() -> None:
    emitted: list[str] = []

    exported = publish_results(
        ["done"], {"role_arn": "secret"}, secrets=["secret"], stream=emitted.append
    )

    assert emitted == ["::add-mask::secret", "done"], "Masking should not depend on GITHUB_OUTPUT"
    assert exported == 0
