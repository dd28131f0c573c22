"""
Blocking HTTP transfers for RSS feeds and episode media files.
"""

import logging
import os
from typing import Optional

import requests
from tqdm import tqdm

from .errors import FilesystemError, TransportError
from .parser import CHUNK_SIZE, FeedParser, ParsedFeed

REQUEST_TIMEOUT = 30
PARTIAL_SUFFIX = ".part"


def fetch_feed(
    rss_url: str, parser: Optional[FeedParser] = None
) -> ParsedFeed:
    """Download an RSS feed and parse it while it streams in.

    Raises:
        TransportError: Connection failure or non-success status.
        FeedParseError: The document is missing required item fields.
    """
    logger = logging.getLogger(__name__)
    logger.info("Downloading RSS from %s", rss_url)
    parser = parser or FeedParser()
    try:
        with requests.get(
            rss_url, stream=True, timeout=REQUEST_TIMEOUT
        ) as response:
            try:
                response.raise_for_status()
            except requests.exceptions.HTTPError as e:
                raise TransportError(rss_url, response.status_code) from e
            return parser.parse(
                response.iter_content(chunk_size=CHUNK_SIZE)
            )
    except requests.exceptions.RequestException as e:
        logger.error("RSS download error: %s", e)
        raise TransportError(rss_url, reason=str(e)) from e


def download_file_to_path(
    file_url: str, output_path: str, show_progress: bool = True
) -> str:
    """Download file from URL to a specific path.

    The body is streamed into `<output_path>.part` and only renamed onto
    `output_path` once complete. The partial file is removed on failure.

    Raises:
        TransportError: Connection failure or non-success status.
        FilesystemError: The file could not be written or renamed.
    """
    logger = logging.getLogger(__name__)
    output_filename = os.path.basename(output_path)
    partial_path = output_path + PARTIAL_SUFFIX
    logger.info("Downloading %s from %s", output_filename, file_url)

    try:
        with requests.get(
            file_url, stream=True, timeout=REQUEST_TIMEOUT
        ) as response:
            try:
                response.raise_for_status()
            except requests.exceptions.HTTPError as e:
                raise TransportError(file_url, response.status_code) from e

            content_length = int(response.headers.get("content-length", 0))
            logger.debug("Content length: %d bytes", content_length)

            with open(partial_path, "wb") as output_file:
                with tqdm(
                    total=content_length or None,
                    unit="B",
                    unit_scale=True,
                    desc=output_filename,
                    leave=False,
                    disable=not show_progress,
                ) as progress_bar:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if chunk:  # Filter out keep-alive chunks
                            output_file.write(chunk)
                            progress_bar.update(len(chunk))

        os.replace(partial_path, output_path)
    except requests.exceptions.RequestException as e:
        logger.error("Download failed for %s: %s", output_filename, e)
        _remove_partial(partial_path)
        raise TransportError(file_url, reason=str(e)) from e
    except TransportError:
        _remove_partial(partial_path)
        raise
    except OSError as e:
        logger.error("Could not write %s: %s", output_path, e)
        _remove_partial(partial_path)
        raise FilesystemError(output_path, str(e)) from e

    logger.info("Download complete: %s", output_filename)
    return output_path


def _remove_partial(partial_path: str) -> None:
    if os.path.exists(partial_path):
        os.remove(partial_path)
        logging.getLogger(__name__).debug(
            "Cleaned up partial file: %s", partial_path
        )
