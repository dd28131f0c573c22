"""
Small helpers for timestamps, file names and console listing.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .models import Episode, Podcast

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

FILE_NAME_DATE_FORMAT = "%Y-%m-%dT%H:%M"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Normalize a datetime to UTC, treating naive values as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def sanitize_filename(name: str) -> str:
    """Make a podcast title safe to use as a single path component."""
    cleaned = name.replace("/", "_").replace("\\", "_").replace("\0", "")
    cleaned = cleaned.strip()
    if cleaned in ("", ".", ".."):
        return "untitled"
    return cleaned


def format_timestamp(value: Optional[datetime]) -> str:
    """Format an optional timestamp for display."""
    if value is None:
        return "never"
    return to_utc(value).strftime("%Y-%m-%d %H:%M UTC")


def format_episode(episode: "Episode") -> str:
    """One listing line for an episode."""
    marker = "x" if episode.is_downloaded else " "
    line = (
        f"  [{marker}] {episode.title} "
        f"({to_utc(episode.pub_date).strftime('%Y-%m-%d')})"
    )
    if episode.local_file_name:
        line += f" -> {episode.local_file_name}"
    return line


def format_podcast(podcast: "Podcast") -> str:
    """Multi-line listing block for a podcast and its episodes."""
    title = podcast.title.strip() or "(not refreshed yet)"
    checked = None if podcast.last_checked == EPOCH else podcast.last_checked
    lines: List[str] = [
        f"{title} <{podcast.url}>",
        f"  last checked: {format_timestamp(checked)}, "
        f"{len(podcast.episodes)} episodes",
    ]
    lines.extend(format_episode(episode) for episode in podcast.episodes)
    return "\n".join(lines)
