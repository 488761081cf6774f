"""Asynchronous filesystem helpers for the build pipeline.

Every pipeline component reads and writes through these functions. Each
helper runs its blocking work in a worker thread (``asyncio.to_thread``),
so file reads, writes, copies, directory removal and globbing are the
suspension points of a pipeline run. ``OSError`` raised by the standard
library is translated into :class:`~sitebuild.exceptions.FileOperationError`
carrying the failing path and operation.

Functions
---------
- ``read_bytes`` / ``read_text``: load a file.
- ``write_bytes`` / ``write_text``: write a file, creating parent directories.
- ``copy_file``: byte-for-byte copy, overwriting the destination.
- ``glob_files``: sorted list of regular files matching a pattern.
- ``create_safe_path`` / ``remove_tree``: validated recursive removal.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path
from typing import NewType

from sitebuild.exceptions import FileOperationError

logger = logging.getLogger(__name__)

# Static "seal" for paths validated for removal.
_ValidatedPath = NewType("_ValidatedPath", Path)


def _io_error(operation: str, path: Path, error: OSError) -> FileOperationError:
    return FileOperationError(
        f"Failed to {operation} {path}: {error.strerror or error}",
        context={"path": str(path), "operation": operation},
    )


async def read_bytes(path: Path) -> bytes:
    """Read a file and return its raw content.

    Raises
    ------
    FileOperationError
        If the file is missing or cannot be read.
    """
    try:
        return await asyncio.to_thread(Path(path).read_bytes)
    except OSError as error:
        raise _io_error("read", Path(path), error) from error


async def read_text(path: Path, errors: str = "strict") -> str:
    """Read a UTF-8 text file.

    Parameters
    ----------
    path : Path
        File to read.
    errors : str
        ``"strict"`` fails on bytes that are not UTF-8; ``"replace"``
        substitutes U+FFFD for them and logs a warning.

    Raises
    ------
    FileOperationError
        If the file cannot be read, or is not UTF-8 and ``errors`` is
        ``"strict"`` (``context["operation"] == "decode"``).
    """
    data = await read_bytes(path)
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as error:
        if errors == "strict":
            raise FileOperationError(
                f"Failed to decode {path} as UTF-8: {error.reason} at byte {error.start}",
                context={"path": str(path), "operation": "decode"},
            ) from error
        logger.warning(f"{path} is not valid UTF-8; undecodable bytes replaced")
        return data.decode("utf-8", errors=errors)


def _write(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


async def write_bytes(path: Path, data: bytes) -> None:
    """Write ``data`` to ``path``, creating missing parent directories.

    Raises
    ------
    FileOperationError
        If a directory cannot be created or the file cannot be written.
    """
    try:
        await asyncio.to_thread(_write, Path(path), data)
    except OSError as error:
        raise _io_error("write", Path(path), error) from error


async def write_text(path: Path, content: str) -> None:
    """Write ``content`` as UTF-8 with newlines kept exactly as given."""
    await write_bytes(path, content.encode("utf-8"))


def _copy(source: Path, destination: Path) -> None:
    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, destination)


async def copy_file(source: Path, destination: Path) -> Path:
    """Copy ``source`` to ``destination`` byte for byte, overwriting it.

    Returns
    -------
    Path
        The destination path.
    """
    try:
        await asyncio.to_thread(_copy, Path(source), Path(destination))
    except OSError as error:
        raise _io_error("copy", Path(source), error) from error
    return Path(destination)


def _glob(root: Path, pattern: str) -> list[Path]:
    return sorted(p for p in root.glob(pattern) if p.is_file())


async def glob_files(root: Path, pattern: str) -> list[Path]:
    """Return the regular files under ``root`` matching ``pattern``.

    The result is sorted so that discovery order, and therefore every
    generated listing, is stable between runs. A missing ``root`` yields an
    empty list.

    Parameters
    ----------
    root : Path
        Directory the pattern is evaluated against.
    pattern : str
        ``pathlib`` glob pattern such as ``"*.js"`` or ``"**/*.md"``.

    Returns
    -------
    list[Path]
        Sorted matching file paths.
    """
    try:
        return await asyncio.to_thread(_glob, Path(root), pattern)
    except OSError as error:
        raise _io_error("list", Path(root), error) from error


def create_safe_path(path_to_validate: Path, root: Path) -> _ValidatedPath:
    r"""Validate and stamp a Path as safe for recursive removal.

    Only strict descendants of ``root`` may be removed; the root itself and
    anything outside it are refused.

    Parameters
    ----------
    path_to_validate : Path
        The directory path to be validated for removal.
    root : Path
        Directory that bounds what may be removed (the site root).

    Returns
    -------
    _ValidatedPath
        The resolved path, stamped for use by :func:`remove_tree`.

    Raises
    ------
    FileOperationError
        If the path is ``root`` itself or lies outside of it.

    Examples
    --------
    >>> from pathlib import Path
    >>> create_safe_path(Path("/srv/site/examples"), Path("/srv/site"))
    PosixPath('/srv/site/examples')
    >>> create_safe_path(Path("/srv"), Path("/srv/site"))  # doctest: +IGNORE_EXCEPTION_DETAIL
    Traceback (most recent call last):
      ...
    FileOperationError: IO_ERROR: SECURITY STOP: ...
    """
    root_resolved = Path(root).resolve()
    target_path = Path(path_to_validate).resolve()
    if target_path == root_resolved:
        raise FileOperationError(
            "SECURITY STOP: Attempt to delete the site root was blocked.",
            context={"path": str(target_path), "operation": "remove"},
        )
    if not target_path.is_relative_to(root_resolved):
        raise FileOperationError(
            f"SECURITY STOP: Path '{target_path}' is outside the site root.",
            context={"path": str(target_path), "operation": "remove"},
        )
    return _ValidatedPath(target_path)


def _rmtree(path: Path) -> bool:
    if not path.exists():
        return False
    shutil.rmtree(path)
    return True


async def remove_tree(path: Path, root: Path) -> bool:
    """Recursively remove ``path``; an absent directory is not an error.

    Parameters
    ----------
    path : Path
        Directory to remove.
    root : Path
        Bound passed to :func:`create_safe_path`.

    Returns
    -------
    bool
        True if something was removed, False if the path did not exist.
    """
    validated = create_safe_path(path, root)
    try:
        removed = await asyncio.to_thread(_rmtree, validated)
    except OSError as error:
        raise _io_error("remove", validated, error) from error
    if removed:
        logger.info(f"Removed directory: {validated}")
    else:
        logger.debug(f"Path '{validated}' does not exist; nothing to remove.")
    return removed


__all__ = [
    "copy_file",
    "create_safe_path",
    "glob_files",
    "read_bytes",
    "read_text",
    "remove_tree",
    "write_bytes",
    "write_text",
]
