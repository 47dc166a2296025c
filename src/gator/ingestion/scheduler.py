"""Pick the next feed to scrape and run one fetch cycle for it."""

import logging
from dataclasses import dataclass

import httpx

from gator.db.repository import FeedRepository, PostRepository
from gator.ingestion.fetcher import fetch_feed
from gator.ingestion.ingestor import IngestionResult, ingest_feed
from gator.models.feed import Feed

logger = logging.getLogger(__name__)


class NoFeedsAvailable(Exception):
    """There is no feed to scrape."""


@dataclass
class ScrapeResult:
    """Outcome of one scheduler cycle."""

    feed: Feed
    channel_title: str
    ingestion: IngestionResult


async def scrape_next_feed(
    feed_repo: FeedRepository | None = None,
    post_repo: PostRepository | None = None,
    client: httpx.AsyncClient | None = None,
) -> ScrapeResult:
    """Scrape the feed that has waited longest.

    The feed is stamped as fetched before the request goes out, so a feed
    whose fetch fails waits for its next turn instead of being picked again
    straight away. FetchError and DateParseError propagate.
    """
    feed_repo = feed_repo or FeedRepository()
    post_repo = post_repo or PostRepository()

    feed = feed_repo.get_next_to_fetch()
    if feed is None:
        raise NoFeedsAvailable("No feeds to fetch; add one with 'addfeed'")

    feed_repo.mark_fetched(feed.id)
    if feed.never_fetched:
        logger.info("Fetching feed %s (%s) for the first time", feed.name, feed.url)
    else:
        logger.info(
            "Fetching feed %s (%s), last fetched %s", feed.name, feed.url, feed.last_fetched_at
        )

    parsed = await fetch_feed(feed.url, client=client)
    print(f'\nScraping feed "{parsed.title}"')

    result = ingest_feed(feed.id, parsed, post_repo=post_repo)
    return ScrapeResult(feed=feed, channel_title=parsed.title, ingestion=result)
