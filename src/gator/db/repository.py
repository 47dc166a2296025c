"""Repository for database operations."""

import sqlite3
import uuid
from datetime import UTC, datetime

from gator.db.connection import get_connection
from gator.models.feed import Feed, FeedCreate, FeedFollow, FeedWithOwner
from gator.models.post import InsertOutcome, Post, PostCreate
from gator.models.user import User, UserCreate


def _now() -> datetime:
    return datetime.now(UTC)


def _to_db(value: datetime) -> str:
    """Serialize a timestamp so that text order matches time order."""
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def _from_db(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _new_id() -> str:
    return str(uuid.uuid4())


class UserRepository:
    """Repository for user CRUD operations."""

    def create(self, user: UserCreate) -> User:
        """Create a user. Raises sqlite3.IntegrityError if the name is taken."""
        now = _now()
        created = User(id=_new_id(), created_at=now, updated_at=now, name=user.name)
        with get_connection() as conn:
            conn.execute(
                "INSERT INTO users (id, created_at, updated_at, name) VALUES (?, ?, ?, ?)",
                (created.id, _to_db(now), _to_db(now), created.name),
            )
            conn.commit()
        return created

    def get_by_name(self, name: str) -> User | None:
        with get_connection() as conn:
            row = conn.execute("SELECT * FROM users WHERE name = ?", (name,)).fetchone()
            return self._row_to_user(row) if row else None

    def get_all(self) -> list[User]:
        """Get all users in registration order."""
        with get_connection() as conn:
            rows = conn.execute("SELECT * FROM users ORDER BY created_at, name").fetchall()
            return [self._row_to_user(row) for row in rows]

    def delete_all(self) -> int:
        """Delete every user. Feeds, follows and posts cascade."""
        with get_connection() as conn:
            cursor = conn.execute("DELETE FROM users")
            conn.commit()
            return cursor.rowcount

    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=row["id"],
            name=row["name"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


class FeedRepository:
    """Repository for feeds and their fetch bookkeeping."""

    def create(self, feed: FeedCreate) -> Feed:
        """Create a feed. Raises sqlite3.IntegrityError if the URL exists."""
        now = _now()
        created = Feed(
            id=_new_id(),
            created_at=now,
            updated_at=now,
            name=feed.name,
            url=feed.url,
            user_id=feed.user_id,
        )
        with get_connection() as conn:
            conn.execute(
                """
                INSERT INTO feeds (id, created_at, updated_at, name, url, user_id)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (created.id, _to_db(now), _to_db(now), created.name, created.url, created.user_id),
            )
            conn.commit()
        return created

    def get_by_id(self, feed_id: str) -> Feed | None:
        with get_connection() as conn:
            row = conn.execute("SELECT * FROM feeds WHERE id = ?", (feed_id,)).fetchone()
            return self._row_to_feed(row) if row else None

    def get_by_url(self, url: str) -> Feed | None:
        with get_connection() as conn:
            row = conn.execute("SELECT * FROM feeds WHERE url = ?", (url,)).fetchone()
            return self._row_to_feed(row) if row else None

    def get_all_with_owners(self) -> list[FeedWithOwner]:
        """Get every feed together with the name of the user who added it."""
        with get_connection() as conn:
            rows = conn.execute(
                """
                SELECT feeds.*, users.name AS user_name
                FROM feeds
                JOIN users ON users.id = feeds.user_id
                ORDER BY feeds.created_at
                """
            ).fetchall()
            return [
                FeedWithOwner(**self._row_to_feed(row).model_dump(), user_name=row["user_name"])
                for row in rows
            ]

    def get_next_to_fetch(self) -> Feed | None:
        """Get the feed that has gone longest without a fetch.

        Never-fetched feeds (NULL ``last_fetched_at``) always come first.
        """
        with get_connection() as conn:
            row = conn.execute(
                """
                SELECT * FROM feeds
                ORDER BY last_fetched_at ASC NULLS FIRST, created_at ASC
                LIMIT 1
                """
            ).fetchone()
            return self._row_to_feed(row) if row else None

    def mark_fetched(self, feed_id: str, fetched_at: datetime | None = None) -> None:
        """Stamp a feed as fetched."""
        stamp = _to_db(fetched_at or _now())
        with get_connection() as conn:
            conn.execute(
                "UPDATE feeds SET last_fetched_at = ?, updated_at = ? WHERE id = ?",
                (stamp, stamp, feed_id),
            )
            conn.commit()

    def _row_to_feed(self, row: sqlite3.Row) -> Feed:
        return Feed(
            id=row["id"],
            name=row["name"],
            url=row["url"],
            user_id=row["user_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            last_fetched_at=_from_db(row["last_fetched_at"]),
        )


class FeedFollowRepository:
    """Repository for user-to-feed follows."""

    _SELECT = """
        SELECT feed_follows.*, users.name AS user_name, feeds.name AS feed_name
        FROM feed_follows
        JOIN users ON users.id = feed_follows.user_id
        JOIN feeds ON feeds.id = feed_follows.feed_id
    """

    def create(self, user_id: str, feed_id: str) -> FeedFollow:
        """Follow a feed. Raises sqlite3.IntegrityError if already following."""
        follow_id = _new_id()
        now = _to_db(_now())
        with get_connection() as conn:
            conn.execute(
                """
                INSERT INTO feed_follows (id, created_at, updated_at, user_id, feed_id)
                VALUES (?, ?, ?, ?, ?)
                """,
                (follow_id, now, now, user_id, feed_id),
            )
            conn.commit()
            row = conn.execute(
                f"{self._SELECT} WHERE feed_follows.id = ?",
                (follow_id,),
            ).fetchone()
            return self._row_to_follow(row)

    def get_for_user(self, user_id: str) -> list[FeedFollow]:
        with get_connection() as conn:
            rows = conn.execute(
                f"{self._SELECT} WHERE feed_follows.user_id = ? ORDER BY feed_follows.created_at",
                (user_id,),
            ).fetchall()
            return [self._row_to_follow(row) for row in rows]

    def delete(self, user_id: str, feed_id: str) -> bool:
        """Unfollow a feed. Returns False if the user was not following it."""
        with get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM feed_follows WHERE user_id = ? AND feed_id = ?",
                (user_id, feed_id),
            )
            conn.commit()
            return cursor.rowcount > 0

    def _row_to_follow(self, row: sqlite3.Row) -> FeedFollow:
        return FeedFollow(
            id=row["id"],
            user_id=row["user_id"],
            feed_id=row["feed_id"],
            user_name=row["user_name"],
            feed_name=row["feed_name"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


class PostRepository:
    """Repository for posts collected from feeds."""

    def create(self, post: PostCreate) -> InsertOutcome:
        """Store a post unless one with the same URL already exists.

        Errors other than the URL conflict propagate as sqlite3.Error.
        """
        now = _to_db(_now())
        with get_connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO posts (
                    id, created_at, updated_at, title, url, description, published_at, feed_id
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(url) DO NOTHING
                """,
                (
                    _new_id(),
                    now,
                    now,
                    post.title,
                    post.url,
                    post.description,
                    _to_db(post.published_at),
                    post.feed_id,
                ),
            )
            conn.commit()
            return InsertOutcome.CREATED if cursor.rowcount == 1 else InsertOutcome.DUPLICATE

    def get_for_user(self, user_id: str, limit: int = 2) -> list[Post]:
        """Get the newest posts from feeds the user follows."""
        with get_connection() as conn:
            rows = conn.execute(
                """
                SELECT posts.* FROM posts
                JOIN feed_follows ON feed_follows.feed_id = posts.feed_id
                WHERE feed_follows.user_id = ?
                ORDER BY posts.published_at DESC
                LIMIT ?
                """,
                (user_id, limit),
            ).fetchall()
            return [self._row_to_post(row) for row in rows]

    def _row_to_post(self, row: sqlite3.Row) -> Post:
        return Post(
            id=row["id"],
            title=row["title"],
            url=row["url"],
            description=row["description"],
            published_at=datetime.fromisoformat(row["published_at"]),
            feed_id=row["feed_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
