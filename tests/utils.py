"""
Helpers for building test episodes, podcasts and RSS documents.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from podinator.models import Episode, Podcast


def create_test_episode(**kwargs: Any) -> Episode:
    """Create an Episode with sensible defaults."""
    defaults: Dict[str, Any] = {
        "title": "Test Episode",
        "url": "http://test.com/episodes/test.mp3",
        "pub_date": datetime(2020, 1, 2, 3, 4, tzinfo=timezone.utc),
    }
    defaults.update(kwargs)
    return Episode(**defaults)


def create_test_podcast(
    episodes: Optional[List[Episode]] = None, **kwargs: Any
) -> Podcast:
    """Create a Podcast with sensible defaults."""
    defaults: Dict[str, Any] = {
        "title": "Test Podcast",
        "url": "http://test.com/rss",
    }
    defaults.update(kwargs)
    return Podcast(episodes=episodes or [], **defaults)


def build_rss(title: str, items: List[Dict[str, Optional[str]]]) -> bytes:
    """Render a minimal RSS 2.0 document.

    Each item may carry `title`, `pub_date` and `url`; a key set to None
    leaves that element out, and a missing `url` key leaves the
    enclosure's url attribute out.
    """
    parts = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<rss version="2.0"><channel>',
        f"<title>{title}</title>",
    ]
    for item in items:
        parts.append("<item>")
        if item.get("title") is not None:
            parts.append(f"<title>{item['title']}</title>")
        if item.get("pub_date") is not None:
            parts.append(f"<pubDate>{item['pub_date']}</pubDate>")
        if "url" not in item:
            parts.append('<enclosure type="audio/mpeg" length="1"/>')
        elif item["url"] is not None:
            parts.append(
                f'<enclosure url="{item["url"]}" type="audio/mpeg"/>'
            )
        parts.append("</item>")
    parts.append("</channel></rss>")
    return "\n".join(parts).encode("utf-8")
