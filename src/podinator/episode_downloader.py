"""
Download service for podcast episodes.

Decides whether an episode needs fetching, names the file on disk and
records the outcome on the episode.
"""

import logging
import os
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
from urllib.parse import urlsplit

from .downloader import download_file_to_path
from .errors import MalformedUrlError
from .models import Episode, Podcast
from .storage import Storage
from .utils import FILE_NAME_DATE_FORMAT, sanitize_filename, to_utc


@dataclass
class DownloadResult:
    """Result of a download operation."""

    episode: Episode
    file_path: Optional[str] = None
    was_cached: bool = False


def url_basename(url: str) -> str:
    """Final path segment of an episode URL."""
    path = urlsplit(url).path
    if "/" not in path:
        raise MalformedUrlError(url)
    basename = path.rsplit("/", 1)[-1]
    if not basename:
        raise MalformedUrlError(url)
    return basename


def build_file_name(
    podcast_title: str, pub_date: datetime, basename: str
) -> str:
    """`{title}_{date}_{basename}`, sortable by podcast and time."""
    date_part = to_utc(pub_date).strftime(FILE_NAME_DATE_FORMAT)
    return f"{sanitize_filename(podcast_title)}_{date_part}_{basename}"


class EpisodeArchiver:
    """Downloads episodes that have not been downloaded yet."""

    def __init__(
        self, storage: Optional[Storage] = None, show_progress: bool = True
    ):
        self.storage = storage or Storage()
        self.show_progress = show_progress
        self.logger = logging.getLogger(__name__)

    def download(
        self, episode: Episode, destination_dir: str, podcast_title: str
    ) -> DownloadResult:
        """Download a single episode into `destination_dir`.

        A no-op for episodes already marked downloaded. An existing file
        at the target path is recorded without being fetched again, so a
        downloaded file is never rewritten. On failure the episode is left
        untouched and the error propagates.
        """
        if episode.is_downloaded:
            self.logger.debug(
                "Episode already downloaded: %s", episode.title
            )
            return DownloadResult(episode=episode, was_cached=True)

        file_name = build_file_name(
            podcast_title, episode.pub_date, url_basename(episode.url)
        )
        self.storage.ensure_directory(destination_dir)
        target_path = self.storage.join_path(destination_dir, file_name)
        directory = os.path.basename(os.path.normpath(destination_dir))

        if self.storage.file_exists(target_path):
            self.logger.debug(
                "File already on disk for %s: %s", episode.title, target_path
            )
            episode.mark_downloaded(file_name, directory=directory)
            return DownloadResult(
                episode=episode, file_path=target_path, was_cached=True
            )

        self.logger.info("Downloading: %s from %s", episode.title, episode.url)
        file_path = download_file_to_path(
            episode.url, target_path, show_progress=self.show_progress
        )
        episode.mark_downloaded(file_name, directory=directory)
        return DownloadResult(episode=episode, file_path=file_path)

    def download_all(
        self,
        podcast: Podcast,
        destination_dir: str,
        stop_event: Optional[threading.Event] = None,
    ) -> List[DownloadResult]:
        """Download every episode of a podcast in feed order.

        Stops at the first failure. `stop_event` is checked between
        episodes.
        """
        self.logger.info("Downloading podcast: %s", podcast.title)
        results: List[DownloadResult] = []
        for episode in podcast.episodes:
            if stop_event is not None and stop_event.is_set():
                self.logger.info("Stop requested, skipping remaining episodes")
                break
            results.append(
                self.download(episode, destination_dir, podcast.title)
            )

        downloaded = sum(1 for r in results if not r.was_cached)
        self.logger.info(
            "Download results for %s: %d downloaded, %d skipped",
            podcast.title,
            downloaded,
            len(results) - downloaded,
        )
        return results
