"""Shared helpers for resolving CLI and environment inputs."""

from __future__ import annotations

import os
from collections import abc as cabc
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class InputResolution:
    """Configuration for resolving an input from multiple sources."""

    env_key: str
    default: str | Path | None = None
    as_path: bool = False


def resolve_input(
    param_value: str | Path | None,
    resolution: InputResolution,
    env: cabc.Mapping[str, str] | None = None,
) -> str | Path | None:
    """Resolve input from parameter, environment variable, or default.

    Examples
    --------
    >>> resolve_input(None, InputResolution("DEPLOY_CONFIG", default="x"), env={})
    'x'
    >>> resolve_input(None, InputResolution("DEPLOY_ROOT", as_path=True), env={"DEPLOY_ROOT": "/srv"})
    PosixPath('/srv')
    """

    if param_value is not None:
        return param_value

    env_value = (env if env is not None else os.environ).get(resolution.env_key)
    if env_value:
        return Path(env_value) if resolution.as_path else env_value

    return resolution.default


def parse_bool(value: str | None, *, default: bool = False) -> bool:
    """Parse a boolean-like string.

    Examples
    --------
    >>> parse_bool("yes")
    True
    >>> parse_bool(None)
    False
    """
    if value is None:
        return default
    return value.strip().lower() in ("true", "1", "yes")
