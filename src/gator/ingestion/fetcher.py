"""Feed retrieval and parsing."""

import html
import io
import logging
import xml.sax
from dataclasses import dataclass, field
from typing import Any, cast

import feedparser
import httpx

from gator.config import get_settings

logger = logging.getLogger(__name__)

# bozo exceptions that do not indicate a broken document
_HARMLESS_BOZO = (feedparser.CharacterEncodingOverride, feedparser.UndeclaredNamespace)

# expat complaint for a prefix without an xmlns declaration; the loose
# parser still reads such documents in full
_UNBOUND_PREFIX = "unbound prefix"


class FetchError(Exception):
    """Feed could not be retrieved or decoded."""


@dataclass
class FeedItem:
    """A single item as listed by the source feed."""

    title: str
    link: str
    description: str
    pub_date: str  # raw string, parsed during ingestion


@dataclass
class ParsedFeed:
    """Channel metadata plus items in source order."""

    title: str
    link: str
    description: str
    items: list[FeedItem] = field(default_factory=list)


def _unescape(value: Any) -> str:
    return html.unescape(str(value)) if value else ""


def _is_harmless(exc: BaseException) -> bool:
    if isinstance(exc, _HARMLESS_BOZO):
        return True
    return isinstance(exc, xml.sax.SAXParseException) and exc.getMessage() == _UNBOUND_PREFIX


def parse_feed(content: bytes | str) -> ParsedFeed:
    """Decode a feed document.

    Raises FetchError on anything feedparser flags as malformed, apart from
    undeclared namespace prefixes; there is no partial result. Markup in
    titles and descriptions is kept as published, only entities are decoded.
    """
    raw = content.encode("utf-8") if isinstance(content, str) else content
    # Wrapped in a stream so feedparser never treats the text as a URL or path.
    # feedparser has no type stubs.
    parsed = cast("Any", feedparser).parse(
        io.BytesIO(raw), sanitize_html=False, resolve_relative_uris=False
    )
    if parsed.get("bozo") and not _is_harmless(parsed.bozo_exception):
        raise FetchError(f"Feed parse error: {parsed.bozo_exception}")
    if not parsed.get("version"):
        raise FetchError("Document is not a recognized feed format")

    channel = parsed.feed
    entries: list[Any] = list(parsed.entries)
    return ParsedFeed(
        title=_unescape(channel.get("title")),
        link=str(channel.get("link", "")),
        description=_unescape(channel.get("subtitle")),
        items=[
            FeedItem(
                title=_unescape(entry.get("title")),
                link=str(entry.get("link", "")),
                description=_unescape(entry.get("summary")),
                pub_date=str(entry.get("published", "")),
            )
            for entry in entries
        ],
    )


async def fetch_feed(url: str, client: httpx.AsyncClient | None = None) -> ParsedFeed:
    """Download and parse the feed at ``url``.

    A caller-supplied client is used as is (and left open); otherwise a
    short-lived client bounded by the configured timeout is created.
    """
    settings = get_settings()
    headers = {"User-Agent": settings.user_agent}

    try:
        if client is None:
            async with httpx.AsyncClient(
                timeout=settings.fetch_timeout_seconds,
                follow_redirects=True,
            ) as own_client:
                response = await own_client.get(url, headers=headers)
        else:
            response = await client.get(url, headers=headers)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise FetchError(f"HTTP {e.response.status_code} fetching {url}") from e
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise FetchError(f"Failed to fetch {url}: {e}") from e

    logger.debug("Fetched %s (%d bytes)", url, len(response.content))
    return parse_feed(response.content)
