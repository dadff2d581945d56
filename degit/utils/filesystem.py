from __future__ import annotations

import argparse
import logging
import os
import stat
from pathlib import Path

from degit.errors import (
    DestinationError,
    DestinationNotAccessible,
    DirectoryNotEmpty,
    NotADirectory,
    ReadOnlyDestination,
)

logger = logging.getLogger(__name__)

_WRITE_BITS = stat.S_IWUSR | stat.S_IWGRP | stat.S_IWOTH


def setup_logging(verbosity: int = 0) -> None:
    """Configure global logging: WARNING by default, INFO with -v, DEBUG with -vv."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def ensure_dir(path: str | os.PathLike):
    """Create directory if it doesn’t exist."""
    Path(path).mkdir(parents=True, exist_ok=True)


def resolve_lexically(path: str | os.PathLike) -> Path:
    """
    Make ``path`` absolute without touching the filesystem.

    Relative paths are applied part by part to the current directory: ``..``
    drops one level, ``.`` is ignored, anything else is appended. Symlinks are
    not followed (unlike ``Path.resolve``).
    """
    p = Path(path)
    if p.is_absolute():
        return p

    resolved = Path.cwd()
    for part in p.parts:
        if part == "..":
            resolved = resolved.parent
        elif part in ("", "."):
            continue
        else:
            resolved = resolved / part
    return resolved


def nearest_existing_ancestor(path: Path) -> Path:
    while not path.exists() and path != path.parent:
        path = path.parent
    return path


def is_read_only(path: Path) -> bool:
    # No write bit for anybody, regardless of who is asking.
    return not (path.stat().st_mode & _WRITE_BITS)


def check_destination(dest: str | os.PathLike) -> Path:
    """
    Validate a destination before anything is downloaded.

    Rules, in order:
      1. an existing path must be a directory
      2. an existing directory must be empty
      3. the nearest existing ancestor of the (lexically resolved) path must
         not be read-only

    Returns the resolved absolute destination, which need not exist yet.
    Paths that cannot be listed or stat'ed raise DestinationNotAccessible.
    """
    path = Path(dest)
    try:
        if path.exists():
            if not path.is_dir():
                raise NotADirectory(path)
            if any(path.iterdir()):
                raise DirectoryNotEmpty(path)
    except OSError as e:
        raise DestinationNotAccessible(path) from e

    resolved = resolve_lexically(path)
    try:
        anchor = nearest_existing_ancestor(resolved)
        read_only = is_read_only(anchor)
    except OSError as e:
        raise DestinationNotAccessible(resolved) from e

    logger.debug("Destination %s, nearest existing ancestor %s", resolved, anchor)
    if read_only:
        raise ReadOnlyDestination(anchor)
    return resolved


def is_valid_destination(dest: str) -> str:
    """argparse ``type=`` hook around :func:`check_destination`."""
    try:
        check_destination(dest)
    except DestinationError as e:
        raise argparse.ArgumentTypeError(str(e)) from e
    return dest
