"""
Low-level file operations for the archive and the store file.

Every failure surfaces as a FilesystemError or StoreUnavailableError so
callers never see a bare OSError.
"""

import logging
import os
import tempfile

from .errors import FilesystemError, StoreUnavailableError


class Storage:
    """File operations without business logic."""

    def __init__(self) -> None:
        self.logger = logging.getLogger(__name__)

    def ensure_directory(self, path: str) -> None:
        """Create directory and its parents if they don't exist."""
        try:
            os.makedirs(path, exist_ok=True)
        except OSError as e:
            raise FilesystemError(path, "could not create directory") from e

    def file_exists(self, path: str) -> bool:
        """Check if file exists."""
        return os.path.exists(path)

    def read_bytes(self, path: str) -> bytes:
        """Read a whole file."""
        try:
            with open(path, "rb") as f:
                return f.read()
        except OSError as e:
            raise StoreUnavailableError(path) from e

    def write_bytes_atomic(self, path: str, data: bytes) -> None:
        """Replace `path` with `data` via a temp file in the same directory.

        The old content stays in place until the new one is fully on disk.
        """
        directory = os.path.dirname(os.path.abspath(path))
        self.ensure_directory(directory)
        try:
            fd, temp_path = tempfile.mkstemp(
                dir=directory, prefix=".", suffix=".tmp"
            )
        except OSError as e:
            raise FilesystemError(path, "could not create temp file") from e
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, path)
        except OSError as e:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise FilesystemError(path, "could not write file") from e

    def remove_file(self, path: str) -> None:
        """Delete a file. A file that is already gone is an error too."""
        try:
            os.remove(path)
        except FileNotFoundError as e:
            raise FilesystemError(path, "file does not exist") from e
        except OSError as e:
            raise FilesystemError(path, "could not delete file") from e
        self.logger.debug("Deleted %s", path)

    def join_path(self, *parts: str) -> str:
        """Join path parts."""
        return os.path.join(*parts)
