from pathlib import Path
from typing import Optional, Protocol
import logging

from degit.errors import FetchError
from degit.fetchers.archive import ArchiveFetcher, ExtractionResult
from degit.providers.hosts import RepositoryReference, resolve
from degit.utils.filesystem import check_destination
from degit.utils.progress import ProgressReporter

logger = logging.getLogger(__name__)

__all__ = ["FetchError", "Fetcher", "default_destination", "degit"]


class Fetcher(Protocol):
    """Common interface for snapshot fetchers."""
    def fetch(
        self,
        repo: RepositoryReference,
        dest: Path,
        progress: Optional[ProgressReporter] = None,
    ) -> ExtractionResult: ...


def default_destination(repo: RepositoryReference) -> Path:
    return Path.cwd() / repo.project


def degit(
    source: str,
    dest: Optional[str] = None,
    *,
    progress: Optional[ProgressReporter] = None,
    fetcher: Optional[Fetcher] = None,
) -> ExtractionResult:
    """
    Download the default-branch contents of a repository without cloning it.

    Args:
        source: Repository reference, e.g. 'owner/repo', 'gitlab:owner/repo',
            'https://github.com/owner/repo.git' or 'git@host:owner/repo.git'.
        dest: Destination directory. Defaults to ./<project>. Must be missing
            or empty.
        progress: Progress handle; nothing is reported when omitted.
        fetcher: Override the archive fetcher (mainly for tests).

    Returns:
        The extraction result, including any entries that had to be skipped.
    """
    try:
        repo = resolve(source)
        logger.debug("Resolved %r to %r", source, repo)

        # Validate the destination before any network activity.
        dest_path = check_destination(dest if dest else default_destination(repo))

        fetcher = fetcher or ArchiveFetcher()
        result = fetcher.fetch(repo, dest_path, progress=progress)
    except FetchError as e:
        logger.error("Fetch failed: %s", e)
        raise

    if result.skipped:
        logger.warning("%d entries could not be extracted", len(result.skipped))
    logger.info("Successfully fetched %s into %s", repo, result.dest)
    return result
