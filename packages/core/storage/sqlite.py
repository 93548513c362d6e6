from __future__ import annotations

import os
import sqlite3
import uuid
from typing import Any, Dict, Iterable, List, Optional

from ..clock import utc_now_iso
from ..errors import ConflictError
from .base import ArticleState, FeedState, NewsletterStore, SubscriberState


_ARTICLE_COLUMNS = """
    a.id, a.title, a.content, a.url, a.feed_id, a.publish_date, a.processed,
    a.created_at, a.updated_at, f.name
"""


class SQLiteNewsletterStore(NewsletterStore):
    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        directory = os.path.dirname(db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self._init_db()

    @property
    def db_path(self) -> str:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS feeds (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    url TEXT NOT NULL UNIQUE,
                    last_fetched_at TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS articles (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    content TEXT,
                    url TEXT NOT NULL UNIQUE,
                    feed_id TEXT NOT NULL,
                    publish_date TEXT NOT NULL,
                    processed INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    FOREIGN KEY(feed_id) REFERENCES feeds(id) ON DELETE CASCADE
                )
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS articles_processed_publish_date_idx
                ON articles (processed, publish_date)
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS subscribers (
                    id TEXT PRIMARY KEY,
                    email TEXT NOT NULL UNIQUE,
                    active INTEGER NOT NULL DEFAULT 1,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )

    # Feeds

    def create_feed(self, name: str, url: str) -> FeedState:
        now = utc_now_iso()
        feed = FeedState(
            id=str(uuid.uuid4()),
            name=name,
            url=url,
            last_fetched_at=None,
            created_at=now,
            updated_at=now,
        )
        with self._connect() as conn:
            try:
                conn.execute(
                    """
                    INSERT INTO feeds (id, name, url, last_fetched_at, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (feed.id, feed.name, feed.url, None, feed.created_at, feed.updated_at),
                )
            except sqlite3.IntegrityError as exc:
                raise ConflictError("Feed URL already exists", error=url) from exc
        return feed

    def get_feed(self, feed_id: str) -> Optional[FeedState]:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT id, name, url, last_fetched_at, created_at, updated_at
                FROM feeds
                WHERE id = ?
                """,
                (feed_id,),
            ).fetchone()
            return _feed_from_row(row) if row else None

    def list_feeds(self) -> List[FeedState]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, name, url, last_fetched_at, created_at, updated_at
                FROM feeds
                ORDER BY created_at ASC, rowid ASC
                """
            ).fetchall()
            return [_feed_from_row(row) for row in rows]

    def update_feed(self, feed: FeedState) -> None:
        with self._connect() as conn:
            try:
                conn.execute(
                    "UPDATE feeds SET name = ?, url = ?, updated_at = ? WHERE id = ?",
                    (feed.name, feed.url, feed.updated_at, feed.id),
                )
            except sqlite3.IntegrityError as exc:
                raise ConflictError("Feed URL already exists", error=feed.url) from exc

    def delete_feed(self, feed_id: str) -> bool:
        with self._connect() as conn:
            result = conn.execute("DELETE FROM feeds WHERE id = ?", (feed_id,))
            return result.rowcount > 0

    def touch_feed_fetched(self, feed_id: str, fetched_at: str) -> None:
        with self._connect() as conn:
            conn.execute(
                "UPDATE feeds SET last_fetched_at = ?, updated_at = ? WHERE id = ?",
                (fetched_at, fetched_at, feed_id),
            )

    # Articles

    def upsert_article(
        self,
        feed_id: str,
        title: str,
        content: Optional[str],
        url: str,
        publish_date: str,
    ) -> ArticleState:
        now = utc_now_iso()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO articles (
                    id, title, content, url, feed_id, publish_date, processed,
                    created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, 0, ?, ?)
                ON CONFLICT(url) DO UPDATE SET
                    title = excluded.title,
                    content = excluded.content,
                    feed_id = excluded.feed_id,
                    publish_date = excluded.publish_date,
                    updated_at = excluded.updated_at
                """,
                (str(uuid.uuid4()), title, content, url, feed_id, publish_date, now, now),
            )
            row = conn.execute(
                f"""
                SELECT {_ARTICLE_COLUMNS}
                FROM articles a LEFT JOIN feeds f ON f.id = a.feed_id
                WHERE a.url = ?
                """,
                (url,),
            ).fetchone()
        return _article_from_row(row)

    def get_article_by_url(self, url: str) -> Optional[ArticleState]:
        with self._connect() as conn:
            row = conn.execute(
                f"""
                SELECT {_ARTICLE_COLUMNS}
                FROM articles a LEFT JOIN feeds f ON f.id = a.feed_id
                WHERE a.url = ?
                """,
                (url,),
            ).fetchone()
            return _article_from_row(row) if row else None

    def list_articles(
        self, feed_id: Optional[str] = None, limit: Optional[int] = None
    ) -> List[ArticleState]:
        query = f"SELECT {_ARTICLE_COLUMNS} FROM articles a LEFT JOIN feeds f ON f.id = a.feed_id"
        params: List[Any] = []
        if feed_id is not None:
            query += " WHERE a.feed_id = ?"
            params.append(feed_id)
        query += " ORDER BY a.publish_date DESC, a.rowid DESC"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
            return [_article_from_row(row) for row in rows]

    def list_unprocessed_articles(self, since_iso: str) -> List[ArticleState]:
        with self._connect() as conn:
            rows = conn.execute(
                f"""
                SELECT {_ARTICLE_COLUMNS}
                FROM articles a LEFT JOIN feeds f ON f.id = a.feed_id
                WHERE a.processed = 0
                  AND a.publish_date >= ?
                ORDER BY a.publish_date DESC, a.rowid DESC
                """,
                (since_iso,),
            ).fetchall()
            return [_article_from_row(row) for row in rows]

    def mark_articles_processed(self, article_ids: Iterable[str]) -> int:
        ids = list(article_ids)
        if not ids:
            return 0
        now = utc_now_iso()
        with self._connect() as conn:
            result = conn.executemany(
                "UPDATE articles SET processed = 1, updated_at = ? WHERE id = ?",
                [(now, article_id) for article_id in ids],
            )
            return result.rowcount

    def count_articles(self) -> int:
        with self._connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM articles").fetchone()[0]

    # Subscribers

    def create_subscriber(self, email: str, active: bool = True) -> SubscriberState:
        now = utc_now_iso()
        subscriber = SubscriberState(
            id=str(uuid.uuid4()),
            email=email,
            active=active,
            created_at=now,
            updated_at=now,
        )
        with self._connect() as conn:
            try:
                conn.execute(
                    """
                    INSERT INTO subscribers (id, email, active, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        subscriber.id,
                        subscriber.email,
                        1 if subscriber.active else 0,
                        subscriber.created_at,
                        subscriber.updated_at,
                    ),
                )
            except sqlite3.IntegrityError as exc:
                raise ConflictError("Email already subscribed", error=email) from exc
        return subscriber

    def get_subscriber(self, subscriber_id: str) -> Optional[SubscriberState]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id, email, active, created_at, updated_at FROM subscribers WHERE id = ?",
                (subscriber_id,),
            ).fetchone()
            return _subscriber_from_row(row) if row else None

    def get_subscriber_by_email(self, email: str) -> Optional[SubscriberState]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id, email, active, created_at, updated_at FROM subscribers WHERE email = ?",
                (email,),
            ).fetchone()
            return _subscriber_from_row(row) if row else None

    def list_subscribers(self, active_only: bool = False) -> List[SubscriberState]:
        query = "SELECT id, email, active, created_at, updated_at FROM subscribers"
        if active_only:
            query += " WHERE active = 1"
        query += " ORDER BY created_at ASC, rowid ASC"
        with self._connect() as conn:
            rows = conn.execute(query).fetchall()
            return [_subscriber_from_row(row) for row in rows]

    def update_subscriber(self, subscriber: SubscriberState) -> None:
        with self._connect() as conn:
            try:
                conn.execute(
                    "UPDATE subscribers SET email = ?, active = ?, updated_at = ? WHERE id = ?",
                    (
                        subscriber.email,
                        1 if subscriber.active else 0,
                        subscriber.updated_at,
                        subscriber.id,
                    ),
                )
            except sqlite3.IntegrityError as exc:
                raise ConflictError(
                    "Email already subscribed", error=subscriber.email
                ) from exc

    def delete_subscriber(self, subscriber_id: str) -> bool:
        with self._connect() as conn:
            result = conn.execute("DELETE FROM subscribers WHERE id = ?", (subscriber_id,))
            return result.rowcount > 0

    def stats(self) -> Dict[str, int]:
        with self._connect() as conn:
            return {
                "feeds": conn.execute("SELECT COUNT(*) FROM feeds").fetchone()[0],
                "articles": conn.execute("SELECT COUNT(*) FROM articles").fetchone()[0],
                "unprocessed_articles": conn.execute(
                    "SELECT COUNT(*) FROM articles WHERE processed = 0"
                ).fetchone()[0],
                "subscribers": conn.execute("SELECT COUNT(*) FROM subscribers").fetchone()[0],
                "active_subscribers": conn.execute(
                    "SELECT COUNT(*) FROM subscribers WHERE active = 1"
                ).fetchone()[0],
            }


def _feed_from_row(row: tuple) -> FeedState:
    return FeedState(
        id=row[0],
        name=row[1],
        url=row[2],
        last_fetched_at=row[3],
        created_at=row[4],
        updated_at=row[5],
    )


def _article_from_row(row: tuple) -> ArticleState:
    return ArticleState(
        id=row[0],
        title=row[1],
        content=row[2],
        url=row[3],
        feed_id=row[4],
        publish_date=row[5],
        processed=bool(row[6]),
        created_at=row[7],
        updated_at=row[8],
        feed_name=row[9],
    )


def _subscriber_from_row(row: tuple) -> SubscriberState:
    return SubscriberState(
        id=row[0],
        email=row[1],
        active=bool(row[2]),
        created_at=row[3],
        updated_at=row[4],
    )
