"""Feed fetching, ingestion and the polling loop."""

from gator.ingestion.aggregator import ConfigError, parse_duration, run_aggregator
from gator.ingestion.fetcher import FetchError, fetch_feed
from gator.ingestion.ingestor import DateParseError, ingest_feed
from gator.ingestion.scheduler import NoFeedsAvailable, scrape_next_feed

__all__ = [
    "ConfigError",
    "DateParseError",
    "FetchError",
    "NoFeedsAvailable",
    "fetch_feed",
    "ingest_feed",
    "parse_duration",
    "run_aggregator",
    "scrape_next_feed",
]
