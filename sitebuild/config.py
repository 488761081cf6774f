"""Configuration constants and the immutable site configuration.

Defines the default paths, globs and text conventions used by the build
pipeline, and the :class:`SiteConfig` value object that is handed to every
pipeline component at construction. Components never read module globals
directly; they read the configuration they were given.

Examples
--------
>>> from pathlib import Path
>>> from sitebuild.config import SiteConfig
>>> cfg = SiteConfig(site_root=Path("/srv/site"))
>>> cfg.lib_dest_dir
PosixPath('/srv/site/js/lib')
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from sitebuild.exceptions import ConfigurationError

# Upstream dependency
DEFAULT_DEPENDENCY_NAME: str = "mathjs"
NODE_MODULES_DIR: str = "node_modules"

# Upstream layout (relative to the dependency root)
LIB_SRC_GLOB: str = "dist/*"
DOCS_SRC_DIR: str = "docs"
DOCS_SRC_GLOB: str = "**/*.md"
EXAMPLES_SRC_DIR: str = "examples"
CHANGELOG_FILENAME: str = "HISTORY.md"

# Site layout (relative to the site root)
LIB_DEST_DIR: str = "js/lib"
DOCS_DEST_DIR: str = "docs"
EXAMPLES_DEST_DIR: str = "examples"
CHANGELOG_DEST_DIR: str = "."
DOWNLOAD_PAGE: str = "download.md"

# Artifacts read by the download page updater (inside LIB_DEST_DIR)
DEVELOPMENT_ARTIFACT: str = "math.js"
PRODUCTION_ARTIFACT: str = "math.min.js"

# Example pages
EXAMPLE_GROUPS: tuple[str, ...] = ("*.js", "browser/*.html")
EXAMPLE_PAGE_SUFFIX: str = ".md"
EXAMPLE_URL_SUFFIX: str = ".html"
EXAMPLES_INDEX_FILENAME: str = "index.md"

# Jekyll front matter put on top of every generated markdown document
LAYOUT_HEADER: str = "---\nlayout: default\n---\n\n"

# Size computation
GZIP_COMPRESSION_LEVEL: int = 6

# Dependency updater
UPDATE_STRATEGIES: tuple[str, ...] = ("npm", "registry", "none")
DEFAULT_UPDATE_STRATEGY: str = "npm"
DEFAULT_NPM_EXECUTABLE: str = "npm"
DEFAULT_REGISTRY_URL: str = "https://registry.npmjs.org"
DEFAULT_REQUEST_TIMEOUT: int = 60
DEFAULT_MAX_RETRIES: int = 3
DEFAULT_BACKOFF_FACTOR: float = 2.0

# Logging
LOG_DIR_NAME: str = "logs"
LOG_FILENAME_BUILD: str = "sitebuild.log"
LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

ENV_PREFIX: str = "SITEBUILD_"


@dataclass(frozen=True)
class SiteConfig:
    """Immutable description of where the pipeline reads and writes.

    Every relative location is resolved against ``site_root`` (outputs) or
    against the dependency root (inputs), which defaults to
    ``<site_root>/node_modules/<dependency_name>``.

    Attributes
    ----------
    site_root : Path
        Root of the static site working tree.
    dependency_name : str
        npm package name of the upstream library.
    dependency_dir : Path | None
        Explicit dependency root; derived from ``site_root`` when ``None``.
    update_strategy : str
        One of ``UPDATE_STRATEGIES``.
    update_spec : str | None
        Package spec passed to ``npm install``; defaults to ``dependency_name``.
    """

    site_root: Path
    dependency_name: str = DEFAULT_DEPENDENCY_NAME
    dependency_dir: Path | None = None
    lib_src_glob: str = LIB_SRC_GLOB
    docs_src_dir: str = DOCS_SRC_DIR
    docs_src_glob: str = DOCS_SRC_GLOB
    examples_src_dir: str = EXAMPLES_SRC_DIR
    changelog_filename: str = CHANGELOG_FILENAME
    lib_dest: str = LIB_DEST_DIR
    docs_dest: str = DOCS_DEST_DIR
    examples_dest: str = EXAMPLES_DEST_DIR
    changelog_dest: str = CHANGELOG_DEST_DIR
    download_page_name: str = DOWNLOAD_PAGE
    development_artifact: str = DEVELOPMENT_ARTIFACT
    production_artifact: str = PRODUCTION_ARTIFACT
    example_groups: tuple[str, ...] = EXAMPLE_GROUPS
    layout_header: str = LAYOUT_HEADER
    update_strategy: str = DEFAULT_UPDATE_STRATEGY
    update_spec: str | None = None
    npm_executable: str = DEFAULT_NPM_EXECUTABLE
    registry_url: str = DEFAULT_REGISTRY_URL
    request_timeout: int = DEFAULT_REQUEST_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR

    # Inputs

    @property
    def dependency_root(self) -> Path:
        if self.dependency_dir is not None:
            return Path(self.dependency_dir)
        return Path(self.site_root) / NODE_MODULES_DIR / self.dependency_name

    @property
    def docs_src_root(self) -> Path:
        return self.dependency_root / self.docs_src_dir

    @property
    def examples_src_root(self) -> Path:
        return self.dependency_root / self.examples_src_dir

    @property
    def changelog_src(self) -> Path:
        return self.dependency_root / self.changelog_filename

    # Outputs

    @property
    def lib_dest_dir(self) -> Path:
        return Path(self.site_root) / self.lib_dest

    @property
    def docs_dest_dir(self) -> Path:
        return Path(self.site_root) / self.docs_dest

    @property
    def examples_dest_dir(self) -> Path:
        return Path(self.site_root) / self.examples_dest

    @property
    def changelog_dest_path(self) -> Path:
        return Path(self.site_root) / self.changelog_dest / self.changelog_filename.lower()

    @property
    def download_page(self) -> Path:
        return Path(self.site_root) / self.download_page_name

    @property
    def development_artifact_path(self) -> Path:
        return self.lib_dest_dir / self.development_artifact

    @property
    def production_artifact_path(self) -> Path:
        return self.lib_dest_dir / self.production_artifact

    @property
    def install_spec(self) -> str:
        return self.update_spec or self.dependency_name

    @property
    def log_dir(self) -> Path:
        return Path(self.site_root) / LOG_DIR_NAME

    def validate(self) -> SiteConfig:
        """Check value ranges and that no two components share an output.

        Returns
        -------
        SiteConfig
            ``self``, so the call can be chained after construction.

        Raises
        ------
        ConfigurationError
            If a numeric setting is out of range, the update strategy is
            unknown, or two output locations overlap.
        """
        if self.update_strategy not in UPDATE_STRATEGIES:
            raise ConfigurationError(
                f"Unknown update strategy '{self.update_strategy}'",
                context={"allowed": list(UPDATE_STRATEGIES)},
            )
        if self.max_retries < 0:
            raise ConfigurationError("max_retries must be >= 0")
        if self.request_timeout <= 0:
            raise ConfigurationError("request_timeout must be > 0")
        if self.backoff_factor <= 0:
            raise ConfigurationError("backoff_factor must be > 0")

        root = Path(self.site_root).resolve()
        dirs = {
            "lib": self.lib_dest_dir.resolve(),
            "docs": self.docs_dest_dir.resolve(),
            "examples": self.examples_dest_dir.resolve(),
        }
        files = {
            "history": self.changelog_dest_path.resolve(),
            "version": self.download_page.resolve(),
        }
        for name, path in dirs.items():
            if path == root or not path.is_relative_to(root):
                raise ConfigurationError(
                    f"Output directory of '{name}' must be inside the site root",
                    context={"path": str(path)},
                )
        names = sorted(dirs)
        for i, first in enumerate(names):
            for second in names[i + 1 :]:
                a, b = dirs[first], dirs[second]
                if a.is_relative_to(b) or b.is_relative_to(a):
                    raise ConfigurationError(
                        f"Outputs of '{first}' and '{second}' overlap",
                        context={first: str(a), second: str(b)},
                    )
        if files["history"] == files["version"]:
            raise ConfigurationError("Changelog and download page share a path")
        for file_owner, file_path in files.items():
            for dir_owner, dir_path in dirs.items():
                if file_path.is_relative_to(dir_path):
                    raise ConfigurationError(
                        f"Output of '{file_owner}' lies inside the output of '{dir_owner}'",
                        context={"file": str(file_path), "directory": str(dir_path)},
                    )
        return self

    @classmethod
    def from_env(cls, site_root: Path | str | None = None) -> SiteConfig:
        """Build a configuration from ``SITEBUILD_*`` environment variables.

        A ``.env`` file in the site root is loaded first (without overriding
        variables that are already set in the process environment).

        Parameters
        ----------
        site_root : Path | str | None
            Site root; defaults to ``SITEBUILD_SITE_ROOT`` or the current
            working directory.

        Returns
        -------
        SiteConfig
            A validated configuration.

        Raises
        ------
        ConfigurationError
            If a numeric variable cannot be parsed or validation fails.
        """
        root = Path(site_root) if site_root is not None else None
        if root is None:
            root = Path(os.getenv(f"{ENV_PREFIX}SITE_ROOT") or Path.cwd())
        env_path = root / ".env"
        if env_path.exists():
            load_dotenv(env_path, override=False)

        def _env(name: str, default: str | None = None) -> str | None:
            return os.getenv(f"{ENV_PREFIX}{name}", default)

        dependency_dir = _env("DEPENDENCY_DIR")
        try:
            cfg = cls(
                site_root=root,
                dependency_name=_env("DEPENDENCY", DEFAULT_DEPENDENCY_NAME) or DEFAULT_DEPENDENCY_NAME,
                dependency_dir=Path(dependency_dir) if dependency_dir else None,
                update_strategy=(_env("UPDATE_STRATEGY", DEFAULT_UPDATE_STRATEGY) or "").lower(),
                update_spec=_env("UPDATE_SPEC"),
                npm_executable=_env("NPM", DEFAULT_NPM_EXECUTABLE) or DEFAULT_NPM_EXECUTABLE,
                registry_url=_env("REGISTRY_URL", DEFAULT_REGISTRY_URL) or DEFAULT_REGISTRY_URL,
                request_timeout=int(_env("REQUEST_TIMEOUT", str(DEFAULT_REQUEST_TIMEOUT)) or 0),
                max_retries=int(_env("MAX_RETRIES", str(DEFAULT_MAX_RETRIES)) or 0),
                backoff_factor=float(_env("BACKOFF_FACTOR", str(DEFAULT_BACKOFF_FACTOR)) or 0),
            )
        except ValueError as exc:
            raise ConfigurationError(
                f"Invalid numeric setting in environment: {exc}"
            ) from exc
        return cfg.validate()
