"""
podinator - Keeps a local archive of podcasts: reads their RSS feeds, tracks
which episodes were fetched and downloads the new ones.

The feed parser, the episode archiver and the podcast store are separate
components wired together by the command-line interface.
"""

from .database import PodcastStore
from .episode_downloader import EpisodeArchiver
from .models import Episode, Podcast
from .parser import FeedParser, ParsedFeed

__version__ = "0.1.0"

__all__ = [
    "EpisodeArchiver",
    "Episode",
    "FeedParser",
    "ParsedFeed",
    "Podcast",
    "PodcastStore",
]
