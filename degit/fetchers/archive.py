from __future__ import annotations

import logging
import os
import tarfile
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Iterator, List, Optional

import requests
from dotenv import load_dotenv

from degit.errors import (
    RepositoryNotFound,
    TransportError,
    UnexpectedStatus,
    UnsupportedArchiveFormat,
)
from degit.providers.hosts import RepositoryReference
from degit.utils.filesystem import ensure_dir
from degit.utils.progress import NullProgress, ProgressReporter

logger = logging.getLogger(__name__)

NOT_FOUND_STATUSES = (401, 404)


@dataclass(frozen=True)
class SkippedEntry:
    path: str
    reason: str


@dataclass
class ExtractionResult:
    dest: Path
    url: str
    extracted: List[str] = field(default_factory=list)
    skipped: List[SkippedEntry] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.skipped


class ArchiveFetcher:
    """
    Download a repository's default-branch snapshot and unpack it into a directory.

    The archive is streamed: response body -> gzip -> tar reader -> files on
    disk, one member at a time. The synthetic top-level directory every
    provider wraps its archive in (``owner-project-<sha>/``) is stripped.

    Entries that fail to extract are skipped and reported in the result
    instead of aborting the whole download.

    Env:
      - DEGIT_HTTP_TIMEOUT (optional) seconds, defaults to 60
      - DEGIT_CHUNK_SIZE (optional) bytes per streamed chunk, defaults to 65536
    """

    DEFAULT_TIMEOUT = 60.0
    DEFAULT_CHUNK_SIZE = 64 * 1024

    def __init__(self) -> None:
        load_dotenv()
        self.timeout = _env_number("DEGIT_HTTP_TIMEOUT", self.DEFAULT_TIMEOUT, float)
        self.chunk_size = _env_number("DEGIT_CHUNK_SIZE", self.DEFAULT_CHUNK_SIZE, int)

    # ---- Public API -----------------------------------------------------
    def fetch(
        self,
        repo: RepositoryReference,
        dest: Path | str,
        progress: Optional[ProgressReporter] = None,
    ) -> ExtractionResult:
        progress = progress or NullProgress()
        url = repo.archive_url
        if repo.host.archive_format != "tar.gz":
            raise UnsupportedArchiveFormat(url, repo.host.archive_format)

        dest_path = Path(dest)
        result = ExtractionResult(dest=dest_path, url=url)

        logger.debug("GET %s", url)
        try:
            response = requests.get(url, stream=True, allow_redirects=True, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(f"Request to {url} failed: {e}") from e

        with response:
            self._check_status(url, response)
            total = _content_length(response)
            ensure_dir(dest_path)

            progress.start(total, str(repo))
            try:
                self._stream(url, response, dest_path, result, progress)
            except TransportError:
                progress.finish("Failed")
                raise

        progress.finish("Done")
        logger.info(
            "Extracted %d entries to %s (%d skipped)",
            len(result.extracted), dest_path, len(result.skipped),
        )
        return result

    # ---- helpers --------------------------------------------------------
    @staticmethod
    def _check_status(url: str, response) -> None:
        status = response.status_code
        logger.debug("HTTP %s for %s", status, url)
        if status == 200:
            return
        if status in NOT_FOUND_STATUSES:
            raise RepositoryNotFound(url, status)
        raise UnexpectedStatus(url, status)

    def _stream(
        self,
        url: str,
        response,
        dest: Path,
        result: ExtractionResult,
        progress: ProgressReporter,
    ) -> None:
        reader = _ResponseReader(response.iter_content(chunk_size=self.chunk_size), progress)
        try:
            archive = tarfile.open(fileobj=reader, mode="r|gz")
        except (requests.RequestException, tarfile.TarError) as e:
            raise TransportError(f"Could not read archive from {url}: {e}") from e

        with archive:
            try:
                self._unpack(archive, dest, result, progress)
            except (requests.RequestException, tarfile.ReadError, tarfile.CompressionError) as e:
                raise TransportError(f"Download of {url} interrupted: {e}") from e

    def _unpack(
        self,
        archive: tarfile.TarFile,
        dest: Path,
        result: ExtractionResult,
        progress: ProgressReporter,
    ) -> None:
        for member in archive:
            rel = strip_root(member.name)
            if rel is None:
                continue
            try:
                archive.extract(_rebase(member, rel), dest, filter="data")
            except (requests.RequestException, tarfile.ReadError, tarfile.CompressionError):
                raise
            except (OSError, tarfile.TarError) as e:
                logger.warning("Skipping %s: %s", rel, e)
                result.skipped.append(SkippedEntry(rel, str(e)))
                continue
            result.extracted.append(rel)
            progress.set_message(rel)


def materialize(
    repo: RepositoryReference,
    dest: Path | str,
    progress: Optional[ProgressReporter] = None,
) -> ExtractionResult:
    return ArchiveFetcher().fetch(repo, dest, progress=progress)


# --------------------- streaming & path helpers --------------------------

def strip_root(name: str) -> Optional[str]:
    """
    Drop the first path component of an archive member name.

    'owner-repo-abc123/src/app.py' -> 'src/app.py'
    'owner-repo-abc123/'           -> None (nothing left to write)
    """
    parts = PurePosixPath(name).parts
    if len(parts) < 2:
        return None
    return "/".join(parts[1:])


def _rebase(member: tarfile.TarInfo, rel: str) -> tarfile.TarInfo:
    changes = {"name": rel}
    if member.islnk():
        # Hard links point at other members, which lose their root too.
        changes["linkname"] = strip_root(member.linkname) or member.linkname
    return member.replace(**changes)


class _ResponseReader:
    """Minimal file-like ``read()`` over streamed response chunks; reports bytes as they arrive."""

    def __init__(self, chunks: Iterator[bytes], progress: ProgressReporter) -> None:
        self._chunks = chunks
        self._progress = progress
        self._buffer = bytearray()
        self._exhausted = False

    def read(self, size: int = -1) -> bytes:
        while not self._exhausted and (size < 0 or len(self._buffer) < size):
            chunk = next(self._chunks, None)
            if chunk is None:
                self._exhausted = True
                break
            if chunk:
                self._progress.advance(len(chunk))
                self._buffer.extend(chunk)

        if size < 0 or size >= len(self._buffer):
            data = bytes(self._buffer)
            self._buffer.clear()
        else:
            data = bytes(self._buffer[:size])
            del self._buffer[:size]
        return data


def _content_length(response) -> Optional[int]:
    value = response.headers.get("Content-Length")
    try:
        return int(value) if value is not None else None
    except ValueError:
        return None


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default
    if value <= 0:
        logger.warning("Ignoring non-positive %s=%r, using %s", name, raw, default)
        return default
    return value
