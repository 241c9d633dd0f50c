"""Publish action results to the console and to GitHub Actions.

Secrets are masked with ``::add-mask::`` before any line is printed, so a
value such as the deployment role ARN never reaches the job log in clear.
Outputs go to the ``GITHUB_OUTPUT`` file as ``key=value`` lines, or as
heredoc blocks when a value spans lines.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import TypeAlias

Emit: TypeAlias = Callable[[str], object]


def mask_secret(value: str, stream: Emit = print) -> None:
    """Emit the GitHub Actions secret masking command.

    Parameters
    ----------
    value
        Secret value to mask; each non-empty line is masked separately.
    stream
        Output stream for the masking command (defaults to ``print``).

    Examples
    --------
    >>> mask_secret("arn:aws:iam::123456789012:role/deploy")
    ::add-mask::arn:aws:iam::123456789012:role/deploy
    """
    for line in value.splitlines():
        if line:
            stream(f"::add-mask::{line}")


def format_output_entry(key: str, value: str) -> str:
    """Render one ``GITHUB_OUTPUT`` entry, newline-terminated.

    Examples
    --------
    >>> format_output_entry("bucket_name", "site-dev-root")
    'bucket_name=site-dev-root\\n'
    >>> format_output_entry("notes", "a\\nEOF")
    'notes<<EOF_1\\na\\nEOF\\nEOF_1\\n'
    """
    if "\n" not in value and "\r" not in value:
        return f"{key}={value}\n"
    delimiter = "EOF"
    suffix = 0
    while delimiter in value:
        suffix += 1
        delimiter = f"EOF_{suffix}"
    return f"{key}<<{delimiter}\n{value}\n{delimiter}\n"


def append_github_output(output_file: Path, outputs: Mapping[str, str]) -> None:
    """Append ``outputs`` to the ``GITHUB_OUTPUT`` file at ``output_file``."""
    output_file.parent.mkdir(parents=True, exist_ok=True)
    with output_file.open("a", encoding="utf-8") as handle:
        handle.write("".join(format_output_entry(k, v) for k, v in outputs.items()))


def publish_results(
    lines: Iterable[str],
    outputs: Mapping[str, str],
    *,
    secrets: Iterable[str] = (),
    output_file: Path | None = None,
    stream: Emit = print,
) -> int:
    """Mask ``secrets``, print ``lines``, then export ``outputs``.

    Parameters
    ----------
    lines
        Operator-facing lines, printed in order.
    outputs
        Values exported for later workflow steps.
    secrets
        Values masked before anything else is written, whether or not an
        output file is configured.
    output_file
        ``GITHUB_OUTPUT`` path; when ``None`` nothing is exported.
    stream
        Destination for masking commands and lines.

    Returns
    -------
    int
        Number of outputs exported.
    """
    for secret in secrets:
        mask_secret(secret, stream)
    for line in lines:
        stream(line)
    if output_file is None or not outputs:
        return 0
    append_github_output(output_file, outputs)
    return len(outputs)
