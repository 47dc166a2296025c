"""Fixed-interval polling loop around the scheduler."""

import asyncio
import contextlib
import logging
import re
from collections.abc import Awaitable, Callable
from datetime import timedelta

from gator.ingestion.scheduler import scrape_next_feed

logger = logging.getLogger(__name__)

_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,  # U+00B5
    "μs": 1e-6,  # U+03BC
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
# "ms" must be tried before "m"
_COMPONENT = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


class ConfigError(Exception):
    """Invalid aggregator configuration."""


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``"30s"``, ``"1m"`` or ``"1h15m30.5s"``."""
    value = text.strip()
    sign = 1
    if value and value[0] in "+-":
        sign = -1 if value[0] == "-" else 1
        value = value[1:]
    if value == "0":
        return timedelta(0)
    if not value:
        raise ConfigError(f"Invalid duration {text!r}")

    seconds = 0.0
    pos = 0
    while pos < len(value):
        match = _COMPONENT.match(value, pos)
        if match is None:
            raise ConfigError(f"Invalid duration {text!r}")
        seconds += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    try:
        return timedelta(seconds=sign * seconds)
    except OverflowError as e:
        raise ConfigError(f"Duration {text!r} is out of range") from e


def format_duration(interval: timedelta) -> str:
    """Render an interval compactly, e.g. ``1h2m3s``."""
    total = interval.total_seconds()
    if total == 0:
        return "0s"
    hours, rest = divmod(abs(total), 3600)
    minutes, seconds = divmod(rest, 60)
    parts = []
    if hours:
        parts.append(f"{int(hours)}h")
    if hours or minutes:
        parts.append(f"{int(minutes)}m")
    parts.append(f"{seconds:g}s")
    return ("-" if total < 0 else "") + "".join(parts)


def validate_interval(interval: timedelta) -> float:
    """Return the interval in seconds, rejecting zero and negative values."""
    period = interval.total_seconds()
    if period <= 0:
        raise ConfigError(f"Interval must be positive, got {format_duration(interval)}")
    return period


async def run_aggregator(
    interval: timedelta,
    stop: asyncio.Event | None = None,
    cycle: Callable[[], Awaitable[object]] = scrape_next_feed,
) -> int:
    """Run ``cycle`` now and then once per ``interval`` until stopped.

    Cycles never overlap: one that overruns the interval is followed
    immediately by the next, without catching up on missed ticks. ``stop``
    is honored between cycles only. The first error raised by a cycle ends
    the loop and propagates. Returns the number of completed cycles.
    """
    period = validate_interval(interval)
    stop = stop or asyncio.Event()
    loop = asyncio.get_running_loop()
    completed = 0

    while not stop.is_set():
        started = loop.time()
        await cycle()
        completed += 1
        logger.info("Cycle %d complete", completed)

        delay = max(0.0, started + period - loop.time())
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(stop.wait(), timeout=delay)

    logger.info("Aggregator stopped after %d cycles", completed)
    return completed
