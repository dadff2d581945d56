class FetchError(Exception):
    """Raised when fetching a repository snapshot fails."""


# ---- reference parsing ------------------------------------------------------

class ParseError(FetchError, ValueError):
    """The source string could not be turned into a repository reference."""


class UnparsableReference(ParseError):
    def __init__(self, source: str):
        super().__init__(f"Could not parse repository: '{source}'")
        self.source = source


class UnsupportedProvider(ParseError):
    def __init__(self, host: str):
        super().__init__(f"Git provider not supported: '{host}'")
        self.host = host


# ---- destination checks -----------------------------------------------------

class DestinationError(FetchError):
    """The destination path is not safe to write to."""

    def __init__(self, message: str, path):
        super().__init__(f"{message} ({path})")
        self.path = path


class NotADirectory(DestinationError):
    def __init__(self, path):
        super().__init__("Destination is not a directory.", path)


class DirectoryNotEmpty(DestinationError):
    def __init__(self, path):
        super().__init__("Directory is not empty.", path)


class ReadOnlyDestination(DestinationError):
    def __init__(self, path):
        super().__init__("Directory is read-only.", path)


class DestinationNotAccessible(DestinationError):
    def __init__(self, path):
        super().__init__("Could not read directory.", path)


# ---- download & extraction --------------------------------------------------

class MaterializeError(FetchError):
    """Downloading or unpacking the archive failed."""


class RepositoryNotFound(MaterializeError):
    def __init__(self, url: str, status_code: int):
        super().__init__(f"Could not find repository (HTTP {status_code}): {url}")
        self.url = url
        self.status_code = status_code


class UnexpectedStatus(MaterializeError):
    def __init__(self, url: str, status_code: int):
        super().__init__(f"Received response status {status_code} from {url}")
        self.url = url
        self.status_code = status_code


class TransportError(MaterializeError):
    pass


class UnsupportedArchiveFormat(MaterializeError):
    def __init__(self, url: str, archive_format: str):
        super().__init__(
            f"Archive format '{archive_format}' is not supported (only tar.gz): {url}"
        )
        self.url = url
        self.archive_format = archive_format
