"""Turn parsed feed items into stored posts."""

import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import UTC, datetime

from gator.db.repository import PostRepository
from gator.ingestion.fetcher import FeedItem, ParsedFeed
from gator.models.post import InsertOutcome, PostCreate

logger = logging.getLogger(__name__)

# RFC 1123 with numeric zone, e.g. "Mon, 02 Jan 2006 15:04:05 -0700"
PUB_DATE_FORMAT = "%a, %d %b %Y %H:%M:%S %z"
# Same layout with the RFC 822 named UTC zones
_UTC_DATE_FORMAT = "%a, %d %b %Y %H:%M:%S"
_UTC_SUFFIXES = (" GMT", " UT")


class DateParseError(Exception):
    """A feed item carries a publication date we cannot read."""


@dataclass
class IngestionResult:
    """Result of ingesting one parsed feed."""

    feed_id: str
    entries_found: int = 0
    posts_created: int = 0
    duplicates: int = 0
    errors: list[str] = field(default_factory=list)


def parse_published_at(value: str) -> datetime:
    """Parse an RSS ``pubDate`` into an aware datetime."""
    text = value.strip()
    try:
        for suffix in _UTC_SUFFIXES:
            if text.endswith(suffix):
                naive = datetime.strptime(text[: -len(suffix)], _UTC_DATE_FORMAT)
                return naive.replace(tzinfo=UTC)
        return datetime.strptime(text, PUB_DATE_FORMAT)
    except ValueError as e:
        raise DateParseError(f"Invalid publication date {value!r}") from e


def _to_post(feed_id: str, item: FeedItem) -> PostCreate:
    try:
        published_at = parse_published_at(item.pub_date)
    except DateParseError as e:
        raise DateParseError(f"{e} for item {item.link or item.title!r}") from e
    return PostCreate(
        title=item.title,
        url=item.link,
        description=item.description,
        published_at=published_at,
        feed_id=feed_id,
    )


def ingest_feed(
    feed_id: str,
    feed: ParsedFeed,
    post_repo: PostRepository | None = None,
) -> IngestionResult:
    """Store every item of ``feed`` as a post of ``feed_id``.

    All publication dates are checked before the first insert, so a single bad
    date raises DateParseError and nothing from the batch is written.
    Duplicate URLs are skipped quietly. Other database errors are logged and
    only cost the affected post.
    """
    post_repo = post_repo or PostRepository()
    result = IngestionResult(feed_id=feed_id, entries_found=len(feed.items))

    posts = [_to_post(feed_id, item) for item in feed.items]

    for index, (item, post) in enumerate(zip(feed.items, posts, strict=True)):
        print(f"\t{index}. {item.title}")
        try:
            outcome = post_repo.create(post)
        except sqlite3.Error as e:
            logger.warning("Failed to save post %s: %s", post.url, e)
            result.errors.append(f"{post.url}: {e}")
            continue

        if outcome is InsertOutcome.CREATED:
            result.posts_created += 1
        else:
            result.duplicates += 1

    logger.info(
        "Feed %s: found=%d new=%d duplicates=%d errors=%d",
        feed_id,
        result.entries_found,
        result.posts_created,
        result.duplicates,
        len(result.errors),
    )
    return result
