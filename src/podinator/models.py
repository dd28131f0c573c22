"""
Data models for podcasts, episodes and their download state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional, Union

from .utils import EPOCH, to_utc, utc_now

if TYPE_CHECKING:
    from .parser import ParsedFeed

PLACEHOLDER_TITLE = " "


@dataclass(frozen=True)
class NotDownloaded:
    """Episode has not been fetched yet."""


@dataclass(frozen=True)
class Downloaded:
    """Episode was fetched at `at` and stored as `file_name`.

    `directory` is the podcast directory, relative to the podcast root, that
    the file was written to. Records saved without it fall back to the
    current podcast title.
    """

    at: datetime
    file_name: str
    directory: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.file_name:
            raise ValueError("file_name is required")


NOT_DOWNLOADED = NotDownloaded()

DownloadState = Union[NotDownloaded, Downloaded]


@dataclass
class Episode:
    """A single podcast episode.

    Download bookkeeping lives in `state`, so the download time and the
    stored file name are always set or cleared together.
    """

    title: str
    url: str
    pub_date: datetime
    state: DownloadState = NOT_DOWNLOADED
    listened: Optional[datetime] = None

    @property
    def is_downloaded(self) -> bool:
        return isinstance(self.state, Downloaded)

    @property
    def downloaded(self) -> Optional[datetime]:
        if isinstance(self.state, Downloaded):
            return self.state.at
        return None

    @property
    def local_file_name(self) -> Optional[str]:
        if isinstance(self.state, Downloaded):
            return self.state.file_name
        return None

    @property
    def local_directory(self) -> Optional[str]:
        if isinstance(self.state, Downloaded):
            return self.state.directory
        return None

    def mark_downloaded(
        self,
        file_name: str,
        at: Optional[datetime] = None,
        directory: Optional[str] = None,
    ) -> None:
        """Record a completed download."""
        self.state = Downloaded(
            at=at or utc_now(), file_name=file_name, directory=directory
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Episode":
        """Create Episode from its stored field layout."""
        downloaded = data.get("downloaded")
        local_file_name = data.get("local_file_name")
        if (downloaded is None) != (local_file_name is None):
            raise ValueError(
                "downloaded and local_file_name must be set together "
                f"(episode {data.get('title')!r})"
            )

        state: DownloadState = NOT_DOWNLOADED
        if downloaded is not None:
            state = Downloaded(
                at=to_utc(downloaded),
                file_name=local_file_name,
                directory=data.get("local_dir"),
            )

        listened = data.get("listened")
        return cls(
            title=data["title"],
            url=data["url"],
            pub_date=to_utc(data["pub_date"]),
            state=state,
            listened=to_utc(listened) if listened is not None else None,
        )

    def to_json(self) -> dict[str, Any]:
        """Flatten episode into its stored field layout."""
        return {
            "title": self.title,
            "url": self.url,
            "pub_date": self.pub_date,
            "downloaded": self.downloaded,
            "listened": self.listened,
            "local_file_name": self.local_file_name,
            "local_dir": self.local_directory,
        }


@dataclass
class Podcast:
    """A podcast feed and the episodes seen on it so far."""

    title: str
    url: str
    episodes: list[Episode] = field(default_factory=list)
    last_checked: datetime = EPOCH

    @classmethod
    def new(cls, url: str) -> "Podcast":
        """Create a podcast that has not been refreshed yet."""
        return cls(title=PLACEHOLDER_TITLE, url=url)

    def update_from_feed(
        self, parsed: "ParsedFeed", checked_at: Optional[datetime] = None
    ) -> list[Episode]:
        """Apply a parse result and return the appended episodes.

        Episodes are appended as-is; entries already present are not
        matched against the new ones.
        """
        self.title = parsed.title
        self.last_checked = checked_at or utc_now()
        added = [
            Episode(title=draft.title, url=draft.url, pub_date=draft.pub_date)
            for draft in parsed.episodes
        ]
        self.episodes.extend(added)
        return added

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Podcast":
        """Create Podcast from dictionary."""
        data = data.copy()
        episodes_data = data.pop("episodes", [])
        episodes = [Episode.from_dict(ep_data) for ep_data in episodes_data]
        return cls(
            title=data["title"],
            url=data["url"],
            episodes=episodes,
            last_checked=to_utc(data["last_checked"]),
        )

    def to_json(self) -> dict[str, Any]:
        """Convert podcast to a serializable dictionary."""
        return {
            "title": self.title,
            "url": self.url,
            "episodes": [episode.to_json() for episode in self.episodes],
            "last_checked": self.last_checked,
        }
