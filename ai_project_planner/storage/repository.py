"""
Repository pattern for data access.

Append-only access to the generation event log that backs the weekly quota.
"""

import sqlite3
from datetime import datetime, timezone
from typing import List, Optional

from .db import DEFAULT_DB_PATH, get_connection
from .models import GenerationEvent


class QuotaStoreError(Exception):
    """Raised when the generation event log cannot be read or written."""


def _to_storage_timestamp(value: datetime) -> str:
    """Normalize to UTC ISO-8601 with fixed precision.

    Fixed precision keeps text ordering identical to time ordering.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _row_to_event(row) -> GenerationEvent:
    return GenerationEvent(
        user_id=row[0],
        timestamp=datetime.fromisoformat(row[1]),
        project_id=row[2]
    )


class GenerationEventRepository:
    """Repository over the authoritative generation event log.

    Implements the two operations the usage ledger relies on:
    listing a user's events since a point in time and appending a new one.
    Storage failures surface as QuotaStoreError.
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        """Initialize the repository with a database path.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path

    def list_events(self, user_id: str, since: datetime) -> List[GenerationEvent]:
        """List a user's events with timestamp >= since, oldest first.

        Args:
            user_id: User whose events are requested
            since: Inclusive lower bound of the time range

        Returns:
            List of generation events ordered by timestamp (oldest first)

        Raises:
            QuotaStoreError: If the database cannot be queried
        """
        try:
            return fetch_generation_events(user_id, since, db_path=self.db_path)
        except sqlite3.Error as e:
            raise QuotaStoreError(f"Failed to list generation events: {e}") from e

    def insert_event(
        self,
        user_id: str,
        timestamp: datetime,
        project_id: Optional[str] = None
    ) -> GenerationEvent:
        """Append a generation event to the log.

        Args:
            user_id: User who generated a project
            timestamp: When the generation happened
            project_id: Identifier of the persisted project, if any

        Returns:
            The recorded event

        Raises:
            QuotaStoreError: If the event could not be written
        """
        event = GenerationEvent(user_id=user_id, timestamp=timestamp, project_id=project_id)
        try:
            insert_generation_event(event, db_path=self.db_path)
        except sqlite3.Error as e:
            raise QuotaStoreError(f"Failed to record generation event: {e}") from e
        return event


_default_repository: Optional[GenerationEventRepository] = None


def get_repository(db_path: str = DEFAULT_DB_PATH) -> GenerationEventRepository:
    """Get a repository instance for the given database path.

    Reuses the process-wide instance while the path is unchanged.

    Args:
        db_path: Path to SQLite database file

    Returns:
        An instance of GenerationEventRepository
    """
    global _default_repository
    if _default_repository is None or _default_repository.db_path != db_path:
        _default_repository = GenerationEventRepository(db_path)
    return _default_repository


def initialize_schema(db_path: str = DEFAULT_DB_PATH) -> None:
    """Create the generation_event table if it doesn't exist.

    The table is an append-only log. No UPDATE or DELETE operations
    should ever be performed on it.

    Args:
        db_path: Path to SQLite database file
    """
    conn = get_connection(db_path)
    try:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS generation_event (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                timestamp TEXT NOT NULL,
                project_id TEXT
            )
        """)
        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_generation_event_user_time
            ON generation_event (user_id, timestamp)
        """)
        conn.commit()
    finally:
        conn.close()


def insert_generation_event(event: GenerationEvent, db_path: str = DEFAULT_DB_PATH) -> None:
    """Insert a single generation event into the append-only log.

    Args:
        event: The generation event to record
        db_path: Path to SQLite database file
    """
    conn = get_connection(db_path)
    try:
        conn.execute("""
            INSERT INTO generation_event (user_id, timestamp, project_id)
            VALUES (?, ?, ?)
        """, (
            event.user_id,
            _to_storage_timestamp(event.timestamp),
            event.project_id
        ))
        conn.commit()
    finally:
        conn.close()


def fetch_generation_events(
    user_id: str,
    since: Optional[datetime] = None,
    db_path: str = DEFAULT_DB_PATH
) -> List[GenerationEvent]:
    """Fetch a user's generation events, optionally bounded below by time.

    Args:
        user_id: User whose events are requested
        since: Optional inclusive lower bound on timestamp
        db_path: Path to SQLite database file

    Returns:
        List of generation events ordered by timestamp (oldest first)
    """
    conn = get_connection(db_path)
    try:
        query = "SELECT user_id, timestamp, project_id FROM generation_event WHERE user_id = ?"
        params = [user_id]

        if since is not None:
            query += " AND timestamp >= ?"
            params.append(_to_storage_timestamp(since))

        query += " ORDER BY timestamp ASC, id ASC"

        cursor = conn.execute(query, params)
        return [_row_to_event(row) for row in cursor.fetchall()]
    finally:
        conn.close()
