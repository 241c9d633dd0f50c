"""Build the initial-content deployment function archive.

The function bundled with the templates is a Node.js handler plus its
``mime-types`` runtime dependency, zipped under a ``nodejs/`` prefix so
the archive can be used as a layer.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TypeAlias

from plumbum import local
from plumbum.commands.processes import CommandNotFound, ProcessExecutionError

from site_deploy._deploy_errors import MissingDependency, PackagingError
from site_deploy._deploy_models import ProjectLayout

logger = logging.getLogger(__name__)

FUNCTION_HANDLER = "witch.js"
RUNTIME_PACKAGES = ("mime-types",)

NpmRunner: TypeAlias = Callable[[Sequence[str], Path], None]


def run_npm(args: Sequence[str], cwd: Path) -> None:
    """Run ``npm`` with ``args`` inside ``cwd``.

    Raises
    ------
    MissingDependency
        If ``npm`` is not on ``PATH``.
    PackagingError
        If the command exits non-zero.
    """
    try:
        npm = local["npm"]
    except CommandNotFound as exc:
        raise MissingDependency(["npm"]) from exc
    try:
        with local.cwd(cwd):
            npm[list(args)]()
    except ProcessExecutionError as exc:
        msg = f"npm {' '.join(args)} failed in {cwd}: {exc.stderr.strip()}"
        raise PackagingError(msg) from exc


def build_function_archive(layout: ProjectLayout, npm: NpmRunner = run_npm) -> Path:
    """Install runtime dependencies and zip the function into one archive.

    Parameters
    ----------
    layout : ProjectLayout
        Project paths; the archive is written to ``layout.function_archive``.
    npm : NpmRunner, optional
        Runner used for ``npm install``.

    Returns
    -------
    Path
        Path of the written archive.

    Raises
    ------
    PackagingError
        If the handler is missing, ``npm`` fails, or the archive cannot be
        written.
    """
    source = layout.function_source
    handler = source / FUNCTION_HANDLER
    if not handler.is_file():
        msg = f"Function handler not found: {handler}"
        raise PackagingError(msg)

    logger.info("Packaging static site content function...")
    npm(["install", "--prefix", "nodejs", *RUNTIME_PACKAGES], source)

    archive = layout.function_archive
    try:
        modules_dir = source / "nodejs" / "node_modules"
        modules_dir.mkdir(parents=True, exist_ok=True)
        shutil.copy2(handler, modules_dir / FUNCTION_HANDLER)
        archive.unlink(missing_ok=True)
        written = shutil.make_archive(
            str(archive.with_suffix("")),
            "zip",
            root_dir=source,
            base_dir="nodejs",
        )
    except OSError as exc:
        msg = f"Failed to write function archive {archive}: {exc}"
        raise PackagingError(msg) from exc

    logger.debug("Function archive written to %s", written)
    return Path(written)
