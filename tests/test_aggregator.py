"""Tests for the polling loop and interval parsing."""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from gator.ingestion.aggregator import (
    ConfigError,
    format_duration,
    parse_duration,
    run_aggregator,
    validate_interval,
)
from gator.ingestion.fetcher import FetchError
from gator.ingestion.scheduler import NoFeedsAvailable

TICK = timedelta(milliseconds=20)


class TestParseDuration:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("30s", timedelta(seconds=30)),
            ("1m", timedelta(minutes=1)),
            ("1h30m", timedelta(hours=1, minutes=30)),
            ("1h15m30.5s", timedelta(hours=1, minutes=15, seconds=30.5)),
            ("250ms", timedelta(milliseconds=250)),
            ("1.5s", timedelta(seconds=1.5)),
            (".5m", timedelta(seconds=30)),
            ("10us", timedelta(microseconds=10)),
            ("10µs", timedelta(microseconds=10)),
            ("0", timedelta(0)),
            ("0s", timedelta(0)),
            ("+5s", timedelta(seconds=5)),
            ("-5s", timedelta(seconds=-5)),
            (" 2m ", timedelta(minutes=2)),
        ],
    )
    def test_valid(self, text: str, expected: timedelta) -> None:
        assert parse_duration(text) == expected

    @pytest.mark.parametrize("text", ["", "-", "5", "s", "5x", "1m30", "one minute", "5 s"])
    def test_invalid(self, text: str) -> None:
        with pytest.raises(ConfigError):
            parse_duration(text)

    @pytest.mark.parametrize("text", ["100000000000h", "-100000000000h"])
    def test_out_of_range(self, text: str) -> None:
        with pytest.raises(ConfigError, match="out of range"):
            parse_duration(text)


class TestFormatDuration:
    @pytest.mark.parametrize(
        ("interval", "expected"),
        [
            (timedelta(seconds=30), "30s"),
            (timedelta(minutes=1), "1m0s"),
            (timedelta(hours=1, minutes=30), "1h30m0s"),
            (timedelta(seconds=1.5), "1.5s"),
            (timedelta(0), "0s"),
            (timedelta(seconds=-5), "-5s"),
        ],
    )
    def test_format(self, interval: timedelta, expected: str) -> None:
        assert format_duration(interval) == expected


class TestValidateInterval:
    def test_positive(self) -> None:
        assert validate_interval(timedelta(seconds=30)) == 30.0

    @pytest.mark.parametrize("interval", [timedelta(0), timedelta(seconds=-1)])
    def test_rejects_non_positive(self, interval: timedelta) -> None:
        with pytest.raises(ConfigError):
            validate_interval(interval)


class TestRunAggregator:
    @pytest.mark.asyncio
    async def test_zero_interval_fails_before_any_cycle(self) -> None:
        """Scenario: "0s" is a configuration error and nothing runs."""
        cycle = AsyncMock()

        with pytest.raises(ConfigError):
            await run_aggregator(parse_duration("0s"), cycle=cycle)

        cycle.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_first_cycle_runs_immediately(self) -> None:
        stop = asyncio.Event()
        cycle = AsyncMock(side_effect=stop.set)
        loop = asyncio.get_running_loop()

        started = loop.time()
        completed = await run_aggregator(timedelta(hours=1), stop, cycle=cycle)

        assert completed == 1
        assert loop.time() - started < 5
        cycle.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_repeats_until_stopped(self) -> None:
        stop = asyncio.Event()
        calls = 0

        async def cycle() -> None:
            nonlocal calls
            calls += 1
            if calls == 3:
                stop.set()

        completed = await run_aggregator(TICK, stop, cycle=cycle)

        assert completed == 3
        assert calls == 3

    @pytest.mark.asyncio
    async def test_stop_during_wait_ends_loop(self) -> None:
        stop = asyncio.Event()
        cycle = AsyncMock()

        task = asyncio.create_task(run_aggregator(timedelta(hours=1), stop, cycle=cycle))
        await asyncio.sleep(0.05)
        stop.set()
        completed = await asyncio.wait_for(task, timeout=5)

        assert completed == 1

    @pytest.mark.asyncio
    async def test_preset_stop_runs_nothing(self) -> None:
        stop = asyncio.Event()
        stop.set()
        cycle = AsyncMock()

        assert await run_aggregator(TICK, stop, cycle=cycle) == 0
        cycle.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [FetchError("boom"), NoFeedsAvailable("none")])
    async def test_cycle_error_ends_loop(self, error: Exception) -> None:
        calls = 0

        async def cycle() -> None:
            nonlocal calls
            calls += 1
            if calls == 2:
                raise error

        with pytest.raises(type(error)):
            await run_aggregator(TICK, cycle=cycle)

        assert calls == 2

    @pytest.mark.asyncio
    async def test_cycles_never_overlap(self) -> None:
        stop = asyncio.Event()
        running = 0
        max_running = 0
        calls = 0

        async def slow_cycle() -> None:
            nonlocal running, max_running, calls
            running += 1
            max_running = max(max_running, running)
            # Longer than the interval
            await asyncio.sleep(TICK.total_seconds() * 2)
            running -= 1
            calls += 1
            if calls == 3:
                stop.set()

        await run_aggregator(TICK, stop, cycle=slow_cycle)

        assert max_running == 1
        assert calls == 3
