"""Bring the upstream library dependency up to date.

Every other build task reads from the installed dependency, so the update
runs first. Three strategies are available, selected by
``SiteConfig.update_strategy``:

``npm``
    Run ``npm install <spec>`` in the site root as a subprocess.
``registry``
    Ask the npm registry for the latest release, download its tarball over
    HTTP (``aiohttp``) and unpack it into the dependency directory. Transient
    HTTP failures are retried with exponential backoff.
``none``
    Use whatever is already installed.

Examples
--------
>>> from pathlib import Path
>>> from sitebuild.config import SiteConfig
>>> from sitebuild.pipeline.updater import create_updater
>>> type(create_updater(SiteConfig(Path("."), update_strategy="none"))).__name__
'NoopUpdater'
"""

from __future__ import annotations

import asyncio
import base64
import hashlib
import io
import json
import logging
import shutil
import tarfile
from pathlib import Path, PurePosixPath
from typing import Any, Protocol
from urllib.parse import quote

import aiohttp

from sitebuild.config import SiteConfig
from sitebuild.exceptions import (
    ConfigurationError,
    ExternalServiceError,
    FileOperationError,
    RetryExhaustedError,
)

logger = logging.getLogger(__name__)

_OUTPUT_TAIL_CHARS = 2000


class DependencyUpdater(Protocol):
    """Anything that can refresh the installed dependency."""

    async def update(self) -> None: ...


class NoopUpdater:
    """Leave the installed dependency as it is."""

    def __init__(self, config: SiteConfig) -> None:
        self.config = config

    async def update(self) -> None:
        logger.info(
            "Dependency update disabled; using %s", self.config.dependency_root
        )


class NpmUpdater:
    """Install the dependency with the npm command line client."""

    def __init__(self, config: SiteConfig) -> None:
        self.config = config

    async def update(self) -> None:
        """Run ``npm install`` and wait for it to finish.

        Raises
        ------
        ExternalServiceError
            If npm cannot be started or exits with a non-zero status. The
            tail of its combined output is kept in ``context["output"]``.
        """
        cmd = [self.config.npm_executable, "install", self.config.install_spec]
        logger.info("Running %s in %s", " ".join(cmd), self.config.site_root)
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=str(self.config.site_root),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as exc:
            raise ExternalServiceError(
                f"Could not start {self.config.npm_executable}: {exc}",
                context={"command": cmd},
                transient=False,
            ) from exc
        out, _ = await proc.communicate()
        output = (out or b"").decode("utf-8", errors="replace")
        if proc.returncode != 0:
            raise ExternalServiceError(
                f"npm install exited with status {proc.returncode}",
                context={
                    "command": cmd,
                    "returncode": proc.returncode,
                    "output": output[-_OUTPUT_TAIL_CHARS:],
                },
                transient=False,
            )
        logger.debug(output)
        logger.info("Installed %s", self.config.install_spec)


def verify_integrity(data: bytes, integrity: str | None) -> None:
    """Check ``data`` against an npm ``dist.integrity`` string.

    Only ``sha512-<base64>`` and ``sha256-<base64>`` are understood; other or
    missing values are not checked.

    Raises
    ------
    ExternalServiceError
        If the digest does not match.
    """
    if not integrity:
        return
    algorithm, _, expected = integrity.partition("-")
    if algorithm not in ("sha512", "sha256"):
        logger.debug(f"Skipping unsupported integrity algorithm {algorithm}")
        return
    actual = base64.b64encode(hashlib.new(algorithm, data).digest()).decode("ascii")
    if actual != expected:
        raise ExternalServiceError(
            "Downloaded tarball failed the integrity check",
            context={"algorithm": algorithm, "expected": expected, "actual": actual},
            transient=False,
        )


def install_tarball(data: bytes, target: Path) -> int:
    """Unpack an npm package tarball into ``target``.

    npm tarballs keep their files under a single top-level directory
    (usually ``package/``), which is stripped. The archive is unpacked into
    a staging directory that replaces ``target`` only once every member has
    been written.

    Parameters
    ----------
    data : bytes
        The gzipped tarball.
    target : Path
        Dependency root to (re)create.

    Returns
    -------
    int
        Number of files written.

    Raises
    ------
    ExternalServiceError
        If the archive is corrupt or holds an absolute or ``..`` path.
    FileOperationError
        If the files cannot be written.
    """
    staging = target.with_name(target.name + ".partial")
    count = 0
    try:
        if staging.exists():
            shutil.rmtree(staging)
        staging.mkdir(parents=True)
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as archive:
            for member in archive.getmembers():
                if not member.isfile():
                    continue
                name = PurePosixPath(member.name)
                parts = name.parts[1:]
                if name.is_absolute() or not parts or ".." in parts:
                    raise ExternalServiceError(
                        f"Refusing to unpack unsafe archive member '{member.name}'",
                        context={"member": member.name},
                        transient=False,
                    )
                source = archive.extractfile(member)
                if source is None:
                    continue
                dest = staging.joinpath(*parts)
                dest.parent.mkdir(parents=True, exist_ok=True)
                dest.write_bytes(source.read())
                count += 1
        if target.exists():
            shutil.rmtree(target)
        staging.rename(target)
    except tarfile.TarError as exc:
        raise ExternalServiceError(
            f"Corrupt package tarball: {exc}", transient=False
        ) from exc
    except OSError as exc:
        raise FileOperationError(
            f"Failed to install package into {target}: {exc}",
            context={"path": str(target), "operation": "install"},
        ) from exc
    return count


class RegistryUpdater:
    """Download the latest release straight from the npm registry."""

    def __init__(
        self, config: SiteConfig, session: aiohttp.ClientSession | None = None
    ) -> None:
        self.config = config
        self.session = session

    @property
    def manifest_url(self) -> str:
        name = quote(self.config.dependency_name, safe="@")
        return f"{self.config.registry_url.rstrip('/')}/{name}/latest"

    async def _get(self, session: aiohttp.ClientSession, url: str) -> bytes:
        """GET ``url`` with retries on network errors, 429 and 5xx.

        Raises
        ------
        ExternalServiceError
            On a non-retryable HTTP status.
        RetryExhaustedError
            When every attempt failed with a retryable error.
        """
        max_retries = self.config.max_retries
        backoff = self.config.backoff_factor
        last_error = "no attempt made"
        for attempt in range(max_retries + 1):
            try:
                async with session.get(
                    url,
                    timeout=aiohttp.ClientTimeout(total=self.config.request_timeout),
                ) as response:
                    status = response.status
                    if status == 200:
                        return await response.read()
                    body = await response.text()
                    if status != 429 and status < 500:
                        raise ExternalServiceError(
                            f"GET {url} returned HTTP {status}",
                            context={"status_code": status, "error_body": body[:500]},
                            transient=False,
                        )
                    last_error = f"HTTP {status}"
            except aiohttp.ClientError as exc:
                last_error = f"ClientError: {exc}"
            except asyncio.TimeoutError:
                last_error = "TimeoutError"
            if attempt < max_retries:
                logger.warning(
                    "GET %s failed (%s), retrying (%d/%d)",
                    url,
                    last_error,
                    attempt + 1,
                    max_retries,
                )
                await asyncio.sleep(backoff**attempt)
        raise RetryExhaustedError(
            f"GET {url} failed after {max_retries + 1} attempts: {last_error}",
            context={"url": url, "attempts": max_retries + 1},
        )

    async def fetch_manifest(self, session: aiohttp.ClientSession) -> dict[str, Any]:
        raw = await self._get(session, self.manifest_url)
        try:
            manifest = json.loads(raw)
        except ValueError as exc:
            raise ExternalServiceError(
                "Registry returned invalid JSON",
                context={"url": self.manifest_url},
                transient=False,
            ) from exc
        dist = manifest.get("dist") if isinstance(manifest, dict) else None
        tarball = dist.get("tarball") if isinstance(dist, dict) else None
        if not isinstance(tarball, str) or not tarball:
            raise ExternalServiceError(
                "Registry manifest has no dist.tarball",
                context={"url": self.manifest_url},
                transient=False,
            )
        return manifest

    async def _update(self, session: aiohttp.ClientSession) -> str:
        manifest = await self.fetch_manifest(session)
        version = str(manifest.get("version", "unknown"))
        dist = manifest["dist"]
        logger.info("Latest %s is %s", self.config.dependency_name, version)
        data = await self._get(session, dist["tarball"])
        verify_integrity(data, dist.get("integrity"))
        count = await asyncio.to_thread(install_tarball, data, self.config.dependency_root)
        logger.info(
            "Installed %s %s (%d files) into %s",
            self.config.dependency_name,
            version,
            count,
            self.config.dependency_root,
        )
        return version

    async def update(self) -> str:
        """Install the latest release; returns its version."""
        if self.session is not None:
            return await self._update(self.session)
        async with aiohttp.ClientSession() as session:
            return await self._update(session)


def create_updater(config: SiteConfig) -> DependencyUpdater:
    """Return the updater selected by ``config.update_strategy``."""
    strategies = {
        "npm": NpmUpdater,
        "registry": RegistryUpdater,
        "none": NoopUpdater,
    }
    try:
        factory = strategies[config.update_strategy]
    except KeyError:
        raise ConfigurationError(
            f"Unknown update strategy '{config.update_strategy}'",
            context={"allowed": sorted(strategies)},
        ) from None
    return factory(config)


__all__ = [
    "DependencyUpdater",
    "NoopUpdater",
    "NpmUpdater",
    "RegistryUpdater",
    "create_updater",
    "install_tarball",
    "verify_integrity",
]
