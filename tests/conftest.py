"""pytest configuration and shared fixtures."""

import sqlite3
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

import pytest

from gator.db.repository import FeedRepository, UserRepository
from gator.models.feed import Feed, FeedCreate
from gator.models.post import Post
from gator.models.user import User, UserCreate


@pytest.fixture(autouse=True)
def use_test_database() -> Iterator[sqlite3.Connection]:
    """Use an isolated in-memory database for all tests.

    This fixture runs automatically for all tests to ensure they
    don't affect the real database.
    """
    from gator.db.migrate import SCHEMA

    test_conn = sqlite3.connect(":memory:", check_same_thread=False)
    test_conn.row_factory = sqlite3.Row
    test_conn.execute("PRAGMA foreign_keys=ON")
    test_conn.executescript(SCHEMA)
    test_conn.commit()

    @contextmanager
    def mock_get_connection() -> Iterator[sqlite3.Connection]:
        """Return the test connection as a context manager."""
        yield test_conn

    # Patch in all modules that import get_connection
    with (
        patch("gator.db.connection.get_connection", mock_get_connection),
        patch("gator.db.repository.get_connection", mock_get_connection),
        patch("gator.db.migrate.get_connection", mock_get_connection),
    ):
        yield test_conn

    test_conn.close()


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point file-based settings at a temp dir. Returns the user config path."""
    config_path = tmp_path / "gatorconfig.json"
    monkeypatch.setenv("GATOR_CONFIG_PATH", str(config_path))
    monkeypatch.setenv("GATOR_DB_PATH", str(tmp_path / "gator.db"))
    return config_path


@pytest.fixture
def user() -> User:
    return UserRepository().create(UserCreate(name="alice"))


@pytest.fixture
def make_feed(user: User) -> Callable[..., Feed]:
    """Create feeds owned by ``user``, optionally already fetched at a given time."""
    repo = FeedRepository()

    def _make(url: str, fetched_at: datetime | None = None, name: str | None = None) -> Feed:
        feed = repo.create(FeedCreate(name=name or url, url=url, user_id=user.id))
        if fetched_at is not None:
            repo.mark_fetched(feed.id, fetched_at)
            refreshed = repo.get_by_id(feed.id)
            assert refreshed is not None
            return refreshed
        return feed

    return _make


@pytest.fixture
def feed_posts(use_test_database: sqlite3.Connection) -> Callable[[str], list[Post]]:
    """Read back the stored posts of one feed, newest first."""

    def _posts(feed_id: str) -> list[Post]:
        rows = use_test_database.execute(
            "SELECT * FROM posts WHERE feed_id = ? ORDER BY published_at DESC", (feed_id,)
        ).fetchall()
        return [Post.model_validate(dict(row)) for row in rows]

    return _posts


RSS_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
<channel>
  <title>{title}</title>
  <link>https://example.com/</link>
  <description>{description}</description>
  {items}
</channel>
</rss>
"""

ITEM_TEMPLATE = """<item>
    <title>{title}</title>
    <link>{link}</link>
    <description>{description}</description>
    <pubDate>{pub_date}</pubDate>
  </item>"""


def _render_rss(
    items: list[dict[str, str]],
    title: str = "Example Blog",
    description: str = "Posts about examples",
) -> str:
    """Render a small RSS 2.0 document."""
    rendered = "\n  ".join(
        ITEM_TEMPLATE.format(
            title=item.get("title", "Untitled"),
            link=item["link"],
            description=item.get("description", ""),
            pub_date=item.get("pub_date", "Mon, 02 Jan 2006 15:04:05 -0700"),
        )
        for item in items
    )
    return RSS_TEMPLATE.format(title=title, description=description, items=rendered)


@pytest.fixture
def make_rss() -> Callable[..., str]:
    return _render_rss
