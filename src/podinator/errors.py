"""
Exception hierarchy for podinator.
"""

from typing import Optional


class PodinatorError(Exception):
    """Base exception for all podinator errors."""


class TransportError(PodinatorError):
    """HTTP failure while fetching a feed or an episode."""

    def __init__(
        self, url: str, status_code: Optional[int] = None, reason: str = ""
    ):
        self.url = url
        self.status_code = status_code
        if status_code is not None:
            message = f"Got status {status_code} when fetching {url}"
        else:
            message = f"Could not fetch {url}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class FeedParseError(PodinatorError):
    """Feed document is missing a required field or has a bad date."""


class MalformedUrlError(PodinatorError):
    """Episode URL has no path segment to name the file after."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"URL has no file name to download to: {url!r}")


class FilesystemError(PodinatorError):
    """Directory creation, file write or file deletion failed."""

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        message = f"Filesystem operation failed for {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class SerializationError(PodinatorError):
    """Store file could not be encoded or decoded."""


class StoreUnavailableError(PodinatorError):
    """Store file does not exist or cannot be opened."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Could not open store file {path}")
