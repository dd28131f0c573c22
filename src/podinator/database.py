"""
The podcast store: every podcast and episode, persisted to one file.

The file is a msgpack array of podcast maps with timestamps encoded as
msgpack Timestamp extensions. It has no header or version field.
"""

import copy
import logging
import os
import threading
from typing import Iterator, List, Optional, Set

import msgpack

from .downloader import fetch_feed
from .episode_downloader import EpisodeArchiver
from .errors import SerializationError
from .models import Episode, Podcast
from .storage import Storage
from .utils import sanitize_filename


class PodcastStore:
    """Ordered collection of podcasts, keyed only by position."""

    def __init__(
        self,
        podcasts: Optional[List[Podcast]] = None,
        storage: Optional[Storage] = None,
        archiver: Optional[EpisodeArchiver] = None,
    ):
        self.podcasts: List[Podcast] = list(podcasts or [])
        self.storage = storage or Storage()
        self.archiver = archiver or EpisodeArchiver(self.storage)
        self.logger = logging.getLogger(__name__)

    def __iter__(self) -> Iterator[Podcast]:
        return iter(self.podcasts)

    def __len__(self) -> int:
        return len(self.podcasts)

    def __getitem__(self, index: int) -> Podcast:
        return self.podcasts[index]

    @classmethod
    def load(
        cls, path: str, storage: Optional[Storage] = None
    ) -> "PodcastStore":
        """Load a store from file.

        Raises:
            StoreUnavailableError: The file is absent or unreadable.
            SerializationError: The file exists but cannot be decoded.
        """
        storage = storage or Storage()
        raw = storage.read_bytes(path)
        try:
            data = msgpack.unpackb(raw, raw=False, timestamp=3)
            if not isinstance(data, list):
                raise ValueError(f"expected a list, got {type(data).__name__}")
            podcasts = [Podcast.from_dict(item) for item in data]
        except (
            msgpack.exceptions.ExtraData,
            msgpack.exceptions.UnpackException,
            ValueError,
            KeyError,
            TypeError,
            AttributeError,
        ) as e:
            raise SerializationError(
                f"Couldn't deserialize the store at {path}"
            ) from e

        logging.getLogger(__name__).info(
            "Loaded %d podcasts from %s", len(podcasts), path
        )
        return cls(podcasts, storage=storage)

    def save(self, path: str) -> None:
        """Write the whole store to `path`, replacing the old file.

        Raises:
            SerializationError: A value could not be encoded.
            FilesystemError: The file could not be written.
        """
        try:
            payload = msgpack.packb(
                [podcast.to_json() for podcast in self.podcasts],
                use_bin_type=True,
                datetime=True,
            )
        except (TypeError, ValueError, OverflowError) as e:
            raise SerializationError("Couldn't serialize the store") from e
        self.storage.write_bytes_atomic(path, payload)
        self.logger.info("Saved %d podcasts to %s", len(self.podcasts), path)

    def add(self, url: str) -> Podcast:
        """Append a new, not yet refreshed podcast for `url`."""
        podcast = Podcast.new(url)
        self.podcasts.append(podcast)
        self.logger.info("Added podcast %s", url)
        return podcast

    def podcast_dir(self, destination_root: str, podcast: Podcast) -> str:
        """Directory holding a podcast's downloaded episodes."""
        return os.path.join(destination_root, sanitize_filename(podcast.title))

    def refresh_podcast(self, podcast: Podcast) -> None:
        """Fetch and parse a podcast's feed, appending its episodes."""
        parsed = fetch_feed(podcast.url)
        added = podcast.update_from_feed(parsed)
        self.logger.info(
            "Refreshed %s: %d episodes appended", podcast.title, len(added)
        )

    def refresh_all(
        self,
        destination_root: str,
        stop_event: Optional[threading.Event] = None,
    ) -> None:
        """Refresh every podcast and download its new episodes.

        Podcasts are handled in store order and the first error aborts the
        run. Episodes downloaded before the error stay recorded.
        """
        for podcast in self.podcasts:
            if stop_event is not None and stop_event.is_set():
                self.logger.info("Stop requested, skipping remaining podcasts")
                return
            self.refresh_podcast(podcast)
            self.archiver.download_all(
                podcast,
                self.podcast_dir(destination_root, podcast),
                stop_event=stop_event,
            )

    def episode_path(
        self, destination_root: str, podcast: Podcast, episode: Episode
    ) -> Optional[str]:
        """Where a downloaded episode's file was written, if anywhere."""
        if not episode.local_file_name:
            return None
        directory = episode.local_directory or sanitize_filename(podcast.title)
        return os.path.join(
            destination_root, directory, episode.local_file_name
        )

    def clear_all_episodes(self, destination_root: str) -> None:
        """Delete every downloaded file and empty every episode list.

        Episodes are removed one at a time as their files are deleted, so
        a failure leaves only the not-yet-cleared episodes behind. Several
        episodes may share one file; it is deleted once.
        """
        removed: Set[str] = set()
        for podcast in self.podcasts:
            while podcast.episodes:
                episode = podcast.episodes[0]
                path = self.episode_path(destination_root, podcast, episode)
                if path is not None and path not in removed:
                    self.storage.remove_file(path)
                    removed.add(path)
                podcast.episodes.pop(0)
            self.logger.info("Cleared episodes of %s", podcast.title)

    def snapshot(self) -> "PodcastStore":
        """Independent copy for saving from another context."""
        return PodcastStore(
            copy.deepcopy(self.podcasts),
            storage=self.storage,
            archiver=self.archiver,
        )
