"""Pytest configuration for test environment setup.

- Forces ``DISABLE_FILE_LOGS=1`` to avoid writing log files during tests.
- Ensures the project root is available on ``sys.path`` for imports.
- Provides an ``upstream`` fixture: a site root holding a fake installed
  copy of the upstream library under ``node_modules/mathjs``.
"""

import os
import sys

os.environ.setdefault("DISABLE_FILE_LOGS", "1")  # Avoid creating log files during tests
from pathlib import Path

import pytest

# Ensure project root is on sys.path
ROOT = Path(__file__).resolve().parents[1]
root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)

from sitebuild.config import SiteConfig  # noqa: E402

MIN_JS = b"/**\n * math.js\n * @version 3.4.0\n * @date 2016-07-02\n */\n" + b"var a=1;" * 20

DOWNLOAD_PAGE = (
    "---\nlayout: default\n---\n\n"
    "# Download\n\n"
    "Math.js (version 3.3.0) can be downloaded or linked from cdnjs:\n\n"
    "- [math.js](https://cdnjs.cloudflare.com/ajax/libs/mathjs/3.3.0/math.js) "
    '<span id="development-size">1200 kB</span>\n'
    "- [math.min.js](https://cdnjs.cloudflare.com/ajax/libs/mathjs/3.3.0/math.min.js) "
    '<span id="production-size">90 kB</span>\n\n'
    "Requires node 4.0.0 or newer.\n"
)


def build_upstream(site: Path) -> Path:
    """Lay out a fake installed dependency under ``site``; returns its root."""
    dep = site / "node_modules" / "mathjs"
    files = {
        "dist/math.js": b"x" * 102400,
        "dist/math.min.js": MIN_JS,
        "dist/math.map": b'{"version":3}',
        "docs/index.md": b"# Docs\n\nSee [getting started](getting_started.md) "
        b"and [history](../HISTORY.md).\n",
        "docs/getting_started.md": b"# Getting started\n\n[Reference](./reference/functions.md)\n"
        b"[External](https://github.com/josdejong/mathjs/blob/master/README.md)\n",
        "docs/reference/functions.md": b"# Functions\n\n[Back](../index.md)\n",
        "examples/basic_usage.js": b"var math = require('../index');\nconsole.log(math.sqrt(4));\n",
        "examples/bignumbers.js": b"var math = require('../index');\n",
        "examples/browser/basic_usage.html": b'<html>\n<script src="../../dist/math.js"></script>\n</html>\n',
        "examples/browser/angle_configuration.html": b'<html>\n<script src="../../dist/math.min.js"></script>\n'
        b'<script src="../../dist/math.js"></script>\n</html>\n',
        "examples/browser/webworkers/worker.js": b"importScripts('../../../dist/math.js');\n",
        "HISTORY.md": b"# History\n\n## 2016-07-02, version 3.4.0\n\n- Fixed things.\n",
    }
    for rel, data in files.items():
        path = dep / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    (site / "download.md").write_text(DOWNLOAD_PAGE, encoding="utf-8")
    return dep


@pytest.fixture
def upstream(tmp_path: Path) -> SiteConfig:
    """Site configuration over a fake upstream tree; updates are disabled."""
    site = tmp_path / "site"
    site.mkdir()
    build_upstream(site)
    return SiteConfig(site_root=site, update_strategy="none")


def snapshot(root: Path) -> dict[str, bytes]:
    """Map of relative path to content for every file under ``root``."""
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


@pytest.fixture
def take_snapshot():
    return snapshot
