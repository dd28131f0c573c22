"""
Shared base class for podinator tests.
"""

import os
import shutil
import tempfile
import unittest
from typing import List, Optional
from unittest.mock import Mock

import requests


class PodcastTestBase(unittest.TestCase):
    """Creates a scratch directory per test and mock HTTP responses."""

    def setUp(self) -> None:
        """Set up test fixtures."""
        self.test_dir = tempfile.mkdtemp(prefix="podinator_test_")
        self.podcast_root = os.path.join(self.test_dir, "podcasts")
        self.db_path = os.path.join(self.test_dir, "podcasts.db")

    def tearDown(self) -> None:
        """Clean up test fixtures."""
        if os.path.exists(self.test_dir):
            shutil.rmtree(self.test_dir)

    def create_mock_response(
        self,
        chunks: Optional[List[bytes]] = None,
        status_code: int = 200,
    ) -> Mock:
        """Mock of a streamed requests response usable as a context manager."""
        chunks = chunks if chunks is not None else [b"audio data"]
        mock_response = Mock()
        mock_response.status_code = status_code
        mock_response.headers = {
            "content-length": str(sum(len(c) for c in chunks))
        }
        mock_response.iter_content.return_value = chunks
        if status_code >= 400:
            mock_response.raise_for_status.side_effect = (
                requests.exceptions.HTTPError(str(status_code))
            )
        else:
            mock_response.raise_for_status.return_value = None
        mock_response.__enter__ = Mock(return_value=mock_response)
        mock_response.__exit__ = Mock(return_value=None)
        return mock_response
