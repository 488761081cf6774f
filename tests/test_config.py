"""Tests for the site configuration."""

import os
from dataclasses import replace
from pathlib import Path

import pytest

from sitebuild.config import LAYOUT_HEADER, SiteConfig
from sitebuild.exceptions import ConfigurationError


@pytest.fixture
def clean_env(monkeypatch):
    """Private copy of the environment without ``SITEBUILD_*`` variables.

    ``load_dotenv`` writes into ``os.environ``; the copy keeps those writes
    out of other tests.
    """
    env = {k: v for k, v in os.environ.items() if not k.startswith("SITEBUILD_")}
    monkeypatch.setattr(os, "environ", env)
    return env


def test_default_paths(tmp_path: Path):
    cfg = SiteConfig(site_root=tmp_path)
    assert cfg.dependency_root == tmp_path / "node_modules" / "mathjs"
    assert cfg.docs_src_root == cfg.dependency_root / "docs"
    assert cfg.changelog_dest_path == tmp_path / "history.md"
    assert cfg.development_artifact_path == tmp_path / "js" / "lib" / "math.js"
    assert cfg.production_artifact_path == tmp_path / "js" / "lib" / "math.min.js"
    assert cfg.install_spec == "mathjs"
    assert cfg.layout_header == LAYOUT_HEADER
    assert cfg.validate() is cfg


def test_config_is_immutable(tmp_path: Path):
    cfg = SiteConfig(site_root=tmp_path)
    with pytest.raises(AttributeError):
        cfg.site_root = Path("/")


@pytest.mark.parametrize(
    "changes",
    [
        {"update_strategy": "yarn"},
        {"max_retries": -1},
        {"request_timeout": 0},
        {"backoff_factor": 0},
        {"examples_dest": "."},
        {"docs_dest": "../outside"},
        {"docs_dest": "js"},
        {"examples_dest": "docs/examples"},
        {"changelog_dest": "docs"},
        {"download_page_name": "history.md"},
    ],
)
def test_validate_rejects(tmp_path: Path, changes):
    with pytest.raises(ConfigurationError):
        replace(SiteConfig(site_root=tmp_path), **changes).validate()


def test_from_env_reads_prefixed_variables(tmp_path: Path, clean_env):
    clean_env.update(
        {
            "SITEBUILD_DEPENDENCY": "mathjs",
            "SITEBUILD_UPDATE_STRATEGY": "REGISTRY",
            "SITEBUILD_MAX_RETRIES": "5",
            "SITEBUILD_BACKOFF_FACTOR": "1.5",
        }
    )
    cfg = SiteConfig.from_env(tmp_path)
    assert cfg.site_root == tmp_path
    assert cfg.update_strategy == "registry"
    assert cfg.max_retries == 5
    assert cfg.backoff_factor == 1.5


def test_from_env_loads_dotenv_without_overriding(tmp_path: Path, clean_env):
    (tmp_path / ".env").write_text(
        "SITEBUILD_UPDATE_SPEC=../mathjs\nSITEBUILD_NPM=from-dotenv\n", encoding="utf-8"
    )
    clean_env["SITEBUILD_NPM"] = "from-process"
    cfg = SiteConfig.from_env(tmp_path)
    assert cfg.install_spec == "../mathjs"
    assert cfg.npm_executable == "from-process"


def test_from_env_site_root_variable(tmp_path: Path, clean_env):
    clean_env["SITEBUILD_SITE_ROOT"] = str(tmp_path)
    assert SiteConfig.from_env().site_root == tmp_path


def test_from_env_invalid_number(tmp_path: Path, clean_env):
    clean_env["SITEBUILD_REQUEST_TIMEOUT"] = "soon"
    with pytest.raises(ConfigurationError):
        SiteConfig.from_env(tmp_path)
