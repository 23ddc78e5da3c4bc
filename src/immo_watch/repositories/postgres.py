"""PostgreSQL-backed snapshot of the currently live listings."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, List

import psycopg2

from immo_watch.errors import PersistenceError
from immo_watch.models import PersistedListing


SCHEMA = """
CREATE TABLE IF NOT EXISTS listings (
  url TEXT PRIMARY KEY,
  price TEXT NOT NULL,
  scraped_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
);
CREATE INDEX IF NOT EXISTS listings_scraped_at_idx ON listings(scraped_at);
"""


class PostgresSnapshotStore:
    """Listings keyed by URL. Each operation runs on its own connection and commits."""

    def __init__(self, db_url: str) -> None:
        self.db_url = db_url

    @contextmanager
    def connect(self) -> Iterator["psycopg2.extensions.connection"]:
        try:
            conn = psycopg2.connect(self.db_url)
        except psycopg2.Error as e:
            raise PersistenceError(str(e), message="Database error during connect.") from e
        try:
            yield conn
        finally:
            conn.close()

    def init_schema(self) -> None:
        with self.connect() as conn:
            try:
                with conn.cursor() as cur:
                    cur.execute(SCHEMA)
                conn.commit()
            except psycopg2.Error as e:
                raise PersistenceError(str(e), message="Database error while creating schema.") from e

    def list_all(self) -> List[PersistedListing]:
        with self.connect() as conn:
            try:
                with conn.cursor() as cur:
                    cur.execute("SELECT url, price, scraped_at FROM listings ORDER BY scraped_at DESC")
                    rows = cur.fetchall()
            except psycopg2.Error as e:
                raise PersistenceError(str(e), message="Error fetching listings from database.") from e
        return [PersistedListing(url=url, price=price, scraped_at=ts) for url, price, ts in rows]

    def clear(self) -> None:
        with self.connect() as conn:
            try:
                with conn.cursor() as cur:
                    cur.execute("DELETE FROM listings")
                conn.commit()
            except psycopg2.Error as e:
                raise PersistenceError(str(e), message="Error clearing database.") from e

    def upsert(self, url: str, price: str) -> None:
        with self.connect() as conn:
            try:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        INSERT INTO listings (url, price) VALUES (%s, %s)
                        ON CONFLICT (url) DO UPDATE SET
                          price = EXCLUDED.price,
                          scraped_at = CURRENT_TIMESTAMP
                        """,
                        (url, price),
                    )
                conn.commit()
            except psycopg2.Error as e:
                raise PersistenceError(str(e), message="Database error during scrape update.") from e
