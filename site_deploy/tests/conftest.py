from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest


def pytest_configure() -> None:
    project_root = Path(__file__).resolve().parents[2]
    if str(project_root) not in sys.path:
        sys.path.insert(0, str(project_root))


SITE_CONFIG: dict[str, object] = {
    "shared": {
        "name": "site",
        "region": "us-east-1",
        "github": {"org": "acme", "repo": "web"},
    },
    "environments": {
        "dev": {"parameters": {"SubDomain": "dev", "CreateApex": "no"}},
        "prod": {"parameters": {"SubDomain": "www", "CreateApex": "yes"}},
    },
}


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    """Write the reference site configuration and return its path."""
    path = tmp_path / "deploy-config.json"
    path.write_text(json.dumps(SITE_CONFIG), encoding="utf-8")
    return path


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Create a project tree with templates, function source, and content."""
    (tmp_path / "templates").mkdir()
    (tmp_path / "templates" / "main.yaml").write_text("Resources: {}\n", encoding="utf-8")
    (tmp_path / "templates" / "github-oidc.yaml").write_text(
        "Resources: {}\n", encoding="utf-8"
    )
    function_dir = tmp_path / "source" / "witch"
    function_dir.mkdir(parents=True)
    (function_dir / "witch.js").write_text("exports.handler = async () => {};\n", encoding="utf-8")
    site_dir = tmp_path / "www"
    site_dir.mkdir()
    (site_dir / "index.html").write_text("<h1>hello</h1>\n", encoding="utf-8")
    return tmp_path
