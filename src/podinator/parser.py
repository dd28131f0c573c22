"""
Streaming RSS parser.

Feed bytes are pushed chunk by chunk into an lxml parser whose target is a
small state machine, so no document tree is ever built. lxml runs in
recovery mode: XML syntax errors are logged and skipped, while an item
missing its enclosure URL or publication date fails the whole parse.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from email.utils import parsedate_to_datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union

from lxml import etree

from .errors import FeedParseError
from .utils import to_utc

CHUNK_SIZE = 8192

UNKNOWN_LOCAL_ZONE = "-0000"


class ParserState(Enum):
    """Where the parser is inside the feed document."""

    OTHER = "other"
    PARSING_PODCAST_TITLE = "parsing_podcast_title"
    PARSING_ITEM = "parsing_item"
    PARSING_TITLE = "parsing_title"
    PARSING_PUB_DATE = "parsing_pub_date"


# (state, tag) -> next state, for element starts and ends.
START_TRANSITIONS = {
    (ParserState.OTHER, "item"): ParserState.PARSING_ITEM,
    (ParserState.OTHER, "title"): ParserState.PARSING_PODCAST_TITLE,
    (ParserState.PARSING_ITEM, "title"): ParserState.PARSING_TITLE,
    (ParserState.PARSING_ITEM, "pubdate"): ParserState.PARSING_PUB_DATE,
}

END_TRANSITIONS = {
    (ParserState.PARSING_TITLE, "title"): ParserState.PARSING_ITEM,
    (ParserState.PARSING_PODCAST_TITLE, "title"): ParserState.OTHER,
    (ParserState.PARSING_PUB_DATE, "pubdate"): ParserState.PARSING_ITEM,
    (ParserState.PARSING_ITEM, "item"): ParserState.OTHER,
}

TEXT_STATES = (
    ParserState.PARSING_PODCAST_TITLE,
    ParserState.PARSING_TITLE,
    ParserState.PARSING_PUB_DATE,
)


@dataclass
class EpisodeDraft:
    """Episode fields read from one feed item."""

    title: str
    url: str
    pub_date: datetime


@dataclass
class ParsedFeed:
    """Channel title and items of one feed document, in document order."""

    title: str
    episodes: List[EpisodeDraft] = field(default_factory=list)


def local_tag_name(tag: Any) -> str:
    """Lower-cased tag name without namespace URI or prefix."""
    if not isinstance(tag, str):
        return ""
    name = tag.rsplit("}", 1)[-1]
    return name.rsplit(":", 1)[-1].lower()


def parse_pub_date(value: str) -> datetime:
    """Parse an RFC 2822 date into an aware UTC datetime.

    The zone is mandatory. `-0000` (UTC, local zone unknown) is accepted.
    """
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError) as e:
        raise FeedParseError(f"Invalid publication date: {value!r}") from e
    if parsed is None:
        raise FeedParseError(f"Invalid publication date: {value!r}")
    if parsed.tzinfo is None and value.split()[-1] != UNKNOWN_LOCAL_ZONE:
        raise FeedParseError(f"Publication date has no time zone: {value!r}")
    return to_utc(parsed)


class _FeedTarget:
    """lxml parser target that reduces element events to a ParsedFeed."""

    def __init__(self) -> None:
        self.logger = logging.getLogger(__name__)
        self.state = ParserState.OTHER
        self.podcast_title = ""
        self.episodes: List[EpisodeDraft] = []
        self.error: Optional[FeedParseError] = None
        self._text: List[str] = []
        self._draft: Dict[str, str] = {}

    def start(
        self, tag: Any, attrib: Dict[str, str], nsmap: Any = None
    ) -> None:
        if self.error:
            return
        name = local_tag_name(tag)

        if self.state is ParserState.PARSING_ITEM and name == "enclosure":
            url = attrib.get("url")
            if url:
                self._draft["url"] = url.strip()
            return

        next_state = START_TRANSITIONS.get((self.state, name))
        if next_state is not None:
            self.state = next_state
            self._text = []

    def data(self, text: str) -> None:
        if self.error:
            return
        if self.state in TEXT_STATES:
            self._text.append(text)

    def end(self, tag: Any) -> None:
        if self.error:
            return
        name = local_tag_name(tag)
        next_state = END_TRANSITIONS.get((self.state, name))
        if next_state is None:
            return

        value = "".join(self._text).strip()
        self._text = []
        if self.state is ParserState.PARSING_PODCAST_TITLE:
            self.podcast_title = value
        elif self.state is ParserState.PARSING_TITLE:
            self._draft["title"] = value
        elif self.state is ParserState.PARSING_PUB_DATE:
            self._draft["pub_date"] = value
        elif self.state is ParserState.PARSING_ITEM:
            try:
                self.episodes.append(self._finish_draft())
            except FeedParseError as e:
                self.error = e
            self._draft = {}
        self.state = next_state

    def close(self) -> ParsedFeed:
        return ParsedFeed(title=self.podcast_title, episodes=self.episodes)

    def _finish_draft(self) -> EpisodeDraft:
        title = self._draft.get("title", "")
        url = self._draft.get("url")
        if not url:
            raise FeedParseError(f"Item {title!r} has no enclosure URL")
        pub_date = self._draft.get("pub_date")
        if not pub_date:
            raise FeedParseError(f"Item {title!r} has no publication date")
        if not title:
            self.logger.warning("Item with enclosure %s has no title", url)
        return EpisodeDraft(
            title=title, url=url, pub_date=parse_pub_date(pub_date)
        )


FeedSource = Union[bytes, Iterable[bytes], Any]


def _iter_chunks(stream: FeedSource) -> Iterable[bytes]:
    if isinstance(stream, (bytes, bytearray)):
        if stream:
            yield bytes(stream)
    elif hasattr(stream, "read"):
        while True:
            chunk = stream.read(CHUNK_SIZE)
            if not chunk:
                break
            yield chunk
    else:
        for chunk in stream:
            if chunk:
                yield chunk


class FeedParser:
    """Parses RSS documents into a channel title and episode drafts.

    Holds no state between calls; each `parse` starts from scratch.
    """

    def __init__(self) -> None:
        self.logger = logging.getLogger(__name__)

    def parse(self, stream: FeedSource) -> ParsedFeed:
        """Parse a feed from bytes, a binary file or an iterable of chunks.

        Raises:
            FeedParseError: An item lacks its enclosure URL or has a
                missing or invalid publication date.
        """
        target = _FeedTarget()
        parser = etree.XMLParser(
            target=target,
            recover=True,
            resolve_entities=False,
            no_network=True,
        )
        received = 0
        for chunk in _iter_chunks(stream):
            received += len(chunk)
            parser.feed(chunk)
        if received == 0:
            raise FeedParseError("Feed document is empty")
        parsed = parser.close()

        for entry in parser.error_log:
            self.logger.warning(
                "Skipped malformed XML at line %d: %s",
                entry.line,
                entry.message,
            )
        if target.error is not None:
            raise target.error
        if not parsed.title:
            self.logger.warning(
                "No channel title found; the document may not be an RSS feed"
            )

        self.logger.info(
            "Parsed feed '%s' with %d episodes",
            parsed.title,
            len(parsed.episodes),
        )
        return parsed
