"""
Subscription store for Weather Notify.

Handles SQLite persistence with:
- One subscriptions table, hard deletes only
- Unique tokens and one subscription per email (case-insensitive)
- Thread-safe access shared by request handlers and the scheduler
"""

import sqlite3
import threading
import logging
from typing import List, Optional
from datetime import datetime
from pathlib import Path

from .errors import AlreadyConfirmedError, DuplicateError, StoreError, SubscriptionNotFoundError
from .models import Subscription

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.cwd() / "subscriptions.db"


class SubscriptionStore:
    """
    SQLite database wrapper with thread-safe operations.

    - WAL mode for concurrent reads during writes
    - Automatic schema initialization
    - Uniqueness enforced by the schema, reported as typed errors
    """

    def __init__(self, db_path: Optional[str] = None) -> None:
        self._db_path = db_path or str(DEFAULT_DB_PATH)
        self._lock = threading.Lock()
        try:
            # Autocommit; shared between request threads and the scheduler
            self._conn = sqlite3.connect(self._db_path, check_same_thread=False,
                                         isolation_level=None)
            self._conn.row_factory = sqlite3.Row
            self._init_schema()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to open database {self._db_path}: {e}") from e
        logger.info(f"Subscription store ready at {self._db_path}")

    def _init_schema(self) -> None:
        with self._lock:
            for pragma in ("journal_mode=WAL", "synchronous=NORMAL", "busy_timeout=5000"):
                self._conn.execute(f"PRAGMA {pragma}")
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS subscriptions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    email TEXT NOT NULL COLLATE NOCASE,
                    city TEXT NOT NULL,
                    frequency TEXT NOT NULL CHECK (frequency IN ('hourly', 'daily')),
                    token TEXT NOT NULL,
                    confirmed INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            self._conn.execute("""
                CREATE UNIQUE INDEX IF NOT EXISTS idx_subscriptions_email
                ON subscriptions(email)
            """)
            self._conn.execute("""
                CREATE UNIQUE INDEX IF NOT EXISTS idx_subscriptions_token
                ON subscriptions(token)
            """)
            self._conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_subscriptions_confirmed
                ON subscriptions(confirmed, frequency)
            """)

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        if self._conn is None:
            raise StoreError("Database connection is closed")
        return self._conn.execute(sql, params)

    def create(self, subscription: Subscription) -> Subscription:
        """Insert a new subscription and return it with its id assigned."""
        with self._lock:
            try:
                if self._email_exists(subscription.email):
                    raise DuplicateError()
                cursor = self._execute("""
                    INSERT INTO subscriptions
                    (email, city, frequency, token, confirmed, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                """, (subscription.email, subscription.city, subscription.frequency.value,
                      subscription.token, 1 if subscription.confirmed else 0,
                      subscription.created_at, subscription.updated_at))
            except sqlite3.IntegrityError as e:
                # Another writer on the same file got past the check above
                try:
                    duplicate = self._email_exists(subscription.email)
                except sqlite3.Error:
                    duplicate = False
                if duplicate:
                    raise DuplicateError() from e
                raise StoreError(f"Failed to create subscription: {e}") from e
            except sqlite3.Error as e:
                raise StoreError(f"Failed to create subscription: {e}") from e
            subscription.id = cursor.lastrowid
            return subscription

    def _email_exists(self, email: str) -> bool:
        row = self._execute(
            "SELECT 1 FROM subscriptions WHERE email = ?", (email,)
        ).fetchone()
        return row is not None

    def find_by_token(self, token: str) -> Subscription:
        with self._lock:
            try:
                row = self._execute(
                    "SELECT * FROM subscriptions WHERE token = ?", (token,)
                ).fetchone()
            except sqlite3.Error as e:
                raise StoreError(f"Failed to look up subscription: {e}") from e
        if row is None:
            raise SubscriptionNotFoundError()
        return Subscription.from_row(row)

    def update_confirmation(self, token: str, confirmed: bool) -> None:
        """
        Set the confirmed flag, only if it currently has the other value.

        The check and the write are one UPDATE, so of two concurrent
        confirmations exactly one succeeds, even across processes.

        Raises:
            SubscriptionNotFoundError: no subscription has this token
            AlreadyConfirmedError: confirming a confirmed subscription
        """
        flag = 1 if confirmed else 0
        with self._lock:
            try:
                cursor = self._execute("""
                    UPDATE subscriptions
                    SET confirmed = ?, updated_at = ?
                    WHERE token = ? AND confirmed != ?
                """, (flag, datetime.utcnow().isoformat(), token, flag))
                if cursor.rowcount > 0:
                    return
                row = self._execute(
                    "SELECT confirmed FROM subscriptions WHERE token = ?", (token,)
                ).fetchone()
            except sqlite3.Error as e:
                raise StoreError(f"Failed to update subscription: {e}") from e
        if row is None:
            raise SubscriptionNotFoundError()
        if confirmed:
            raise AlreadyConfirmedError()

    def find_all_confirmed(self) -> List[Subscription]:
        """Snapshot of every confirmed subscription."""
        with self._lock:
            try:
                rows = self._execute("""
                    SELECT * FROM subscriptions
                    WHERE confirmed = 1
                    ORDER BY id ASC
                """).fetchall()
            except sqlite3.Error as e:
                raise StoreError(f"Failed to load confirmed subscriptions: {e}") from e
        return [Subscription.from_row(row) for row in rows]

    def delete(self, token: str) -> None:
        with self._lock:
            try:
                cursor = self._execute(
                    "DELETE FROM subscriptions WHERE token = ?", (token,)
                )
            except sqlite3.Error as e:
                raise StoreError(f"Failed to delete subscription: {e}") from e
        if cursor.rowcount == 0:
            raise SubscriptionNotFoundError()

    def count(self) -> int:
        with self._lock:
            try:
                return self._execute("SELECT COUNT(*) FROM subscriptions").fetchone()[0]
            except sqlite3.Error as e:
                raise StoreError(f"Failed to count subscriptions: {e}") from e

    def close(self) -> None:
        """Close database connection."""
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None
                logger.info("Database connection closed")
