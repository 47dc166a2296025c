"""Command-line interface for Gator.

Usage:
    gator <command> [args...]

User Commands:
    register <name>         Create a user and log in as them
    login <name>            Switch the current user
    users                   List users, marking the current one
    reset                   Delete all users, feeds, follows and posts

Feed Commands:
    addfeed <name> <url>    Add a feed and follow it
    feeds                   List all feeds with the user who added them
    follow <url>            Follow an existing feed
    following               List feeds the current user follows
    unfollow <url>          Stop following a feed

Reading Commands:
    agg <interval>          Scrape feeds every interval (e.g. 30s, 1m, 1h30m)
    browse [limit]          Show the newest posts from followed feeds (default 2)

    help                    Show this help message
"""

import asyncio
import contextlib
import functools
import logging
import signal
import sqlite3
import sys
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

import httpx

from gator.config import UserConfig, get_settings, read_user_config
from gator.db.migrate import migrate
from gator.db.repository import (
    FeedFollowRepository,
    FeedRepository,
    PostRepository,
    UserRepository,
)
from gator.ingestion.aggregator import (
    format_duration,
    parse_duration,
    run_aggregator,
    validate_interval,
)
from gator.ingestion.scheduler import scrape_next_feed
from gator.models.feed import FeedCreate
from gator.models.user import User, UserCreate

logger = logging.getLogger(__name__)

DEFAULT_BROWSE_LIMIT = 2


class CommandError(Exception):
    """A command was used incorrectly or could not be carried out."""


@dataclass
class State:
    """What every command handler gets to work with."""

    config: UserConfig
    config_path: Path | None = None


Handler = Callable[[State, list[str]], int]
UserHandler = Callable[[State, list[str], User], int]


def _expect_args(args: list[str], count: int, usage: str) -> None:
    if len(args) != count:
        raise CommandError(f"usage: {usage}")


def logged_in(handler: UserHandler) -> Handler:
    """Resolve the current user before calling ``handler``."""

    @functools.wraps(handler)
    def wrapper(state: State, args: list[str]) -> int:
        name = state.config.current_user_name
        if not name:
            raise CommandError("Not logged in; run 'register' or 'login' first")
        user = UserRepository().get_by_name(name)
        if user is None:
            raise CommandError(f"Current user {name!r} does not exist; run 'login'")
        return handler(state, args, user)

    return wrapper


# =============================================================================
# User Commands
# =============================================================================


def cmd_register(state: State, args: list[str]) -> int:
    _expect_args(args, 1, "register <name>")
    try:
        user = UserRepository().create(UserCreate(name=args[0]))
    except sqlite3.IntegrityError as e:
        raise CommandError(f"User {args[0]!r} already exists") from e

    state.config.set_user(user.name, state.config_path)
    print(f"✓ Registered user {user.name} ({user.id})")
    return 0


def cmd_login(state: State, args: list[str]) -> int:
    _expect_args(args, 1, "login <name>")
    user = UserRepository().get_by_name(args[0])
    if user is None:
        raise CommandError(f"No such user: {args[0]}")

    state.config.set_user(user.name, state.config_path)
    print(f"✓ Logged in as {user.name}")
    return 0


def cmd_users(state: State, args: list[str]) -> int:
    _expect_args(args, 0, "users")
    for user in UserRepository().get_all():
        marker = " (current)" if user.name == state.config.current_user_name else ""
        print(f"* {user.name}{marker}")
    return 0


def cmd_reset(_state: State, args: list[str]) -> int:
    _expect_args(args, 0, "reset")
    deleted = UserRepository().delete_all()
    print(f"✓ Reset complete ({deleted} users removed)")
    return 0


# =============================================================================
# Feed Commands
# =============================================================================


def cmd_addfeed(_state: State, args: list[str], user: User) -> int:
    _expect_args(args, 2, "addfeed <name> <url>")
    name, url = args
    try:
        feed = FeedRepository().create(FeedCreate(name=name, url=url, user_id=user.id))
    except sqlite3.IntegrityError as e:
        raise CommandError(f"A feed with URL {url} already exists; use 'follow'") from e

    FeedFollowRepository().create(user.id, feed.id)
    print(f"✓ Added feed {feed.name} ({feed.url})")
    print(f"  Following as {user.name}")
    return 0


def cmd_feeds(_state: State, args: list[str]) -> int:
    _expect_args(args, 0, "feeds")
    for feed in FeedRepository().get_all_with_owners():
        print(f"Name: {feed.name}, URL: {feed.url}, User: {feed.user_name}")
    return 0


def cmd_follow(_state: State, args: list[str], user: User) -> int:
    _expect_args(args, 1, "follow <url>")
    feed = FeedRepository().get_by_url(args[0])
    if feed is None:
        raise CommandError(f"No feed with URL {args[0]}; add it with 'addfeed'")
    try:
        follow = FeedFollowRepository().create(user.id, feed.id)
    except sqlite3.IntegrityError as e:
        raise CommandError(f"Already following {feed.name}") from e

    print(f"✓ {follow.user_name} is now following {follow.feed_name}")
    return 0


def cmd_following(_state: State, args: list[str], user: User) -> int:
    _expect_args(args, 0, "following")
    for follow in FeedFollowRepository().get_for_user(user.id):
        print(follow.feed_name)
    return 0


def cmd_unfollow(_state: State, args: list[str], user: User) -> int:
    _expect_args(args, 1, "unfollow <url>")
    feed = FeedRepository().get_by_url(args[0])
    if feed is None:
        raise CommandError(f"No feed with URL {args[0]}")
    if not FeedFollowRepository().delete(user.id, feed.id):
        raise CommandError(f"Not following {feed.name}")

    print(f"✓ Unfollowed {feed.name}")
    return 0


# =============================================================================
# Reading Commands
# =============================================================================


async def _aggregate(interval: timedelta) -> int:
    """Run the aggregator until SIGINT/SIGTERM or the first failed cycle."""
    settings = get_settings()
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # Not available on Windows event loops
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop.set)

    async with httpx.AsyncClient(
        timeout=settings.fetch_timeout_seconds,
        follow_redirects=True,
    ) as client:
        return await run_aggregator(
            interval,
            stop,
            cycle=functools.partial(scrape_next_feed, client=client),
        )


def cmd_agg(_state: State, args: list[str], _user: User) -> int:
    _expect_args(args, 1, "agg <interval>")
    interval = parse_duration(args[0])
    validate_interval(interval)

    print(f"Collecting feeds every {format_duration(interval)}\n")
    cycles = asyncio.run(_aggregate(interval))
    print(f"\nStopped after {cycles} cycles")
    return 0


def cmd_browse(_state: State, args: list[str], user: User) -> int:
    if len(args) > 1:
        raise CommandError("usage: browse [limit]")

    limit = DEFAULT_BROWSE_LIMIT
    if args:
        try:
            limit = int(args[0])
        except ValueError:
            logger.info("Ignoring non-numeric limit %r", args[0])

    for post in PostRepository().get_for_user(user.id, limit=limit):
        print(f'Post "{post.title or ""}":')
        print(f"\t{post.description or ''}")
        print(f"\t{post.url} ({post.published_at:%Y-%m-%d %H:%M})")
    return 0


def cmd_help(_state: State, _args: list[str]) -> int:
    print(__doc__)
    return 0


# =============================================================================
# Main
# =============================================================================


def build_commands() -> dict[str, Handler]:
    """Build the command table."""
    return {
        "register": cmd_register,
        "login": cmd_login,
        "reset": cmd_reset,
        "users": cmd_users,
        "agg": logged_in(cmd_agg),
        "addfeed": logged_in(cmd_addfeed),
        "feeds": cmd_feeds,
        "follow": logged_in(cmd_follow),
        "following": logged_in(cmd_following),
        "unfollow": logged_in(cmd_unfollow),
        "browse": logged_in(cmd_browse),
        "help": cmd_help,
    }


def run_command(
    commands: dict[str, Handler],
    state: State,
    name: str,
    args: list[str],
) -> int:
    handler = commands.get(name)
    if handler is None:
        raise CommandError(f"Unknown command: {name}")
    return handler(state, args)


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    args = sys.argv[1:] if argv is None else argv
    if not args:
        print("Specify a command (see 'gator help')")
        return 1

    try:
        migrate()
        state = State(
            config=read_user_config(settings.config_path),
            config_path=settings.config_path,
        )
        return run_command(build_commands(), state, args[0], args[1:])
    except Exception as e:
        logger.debug("Command %s failed", args[0], exc_info=True)
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
