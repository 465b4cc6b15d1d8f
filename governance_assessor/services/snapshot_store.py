"""Service for persisting assessment snapshots."""

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from ..exceptions import SnapshotFormatError, SnapshotNotFoundError
from ..models.snapshot import Snapshot

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Service for storing and loading snapshots across runs."""

    def __init__(self, db_path: str = "assessment_snapshots.db"):
        """
        Initialize the snapshot store.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = db_path
        self._connection = None
        self._init_database()

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create a database connection."""
        if self.db_path == ":memory:":
            # For in-memory databases, keep a persistent connection
            if self._connection is None:
                self._connection = sqlite3.connect(self.db_path)
            return self._connection
        else:
            # For file-based databases, create a new connection each time
            return sqlite3.connect(self.db_path)

    def _release(self, conn: sqlite3.Connection) -> None:
        if self.db_path != ":memory:":
            conn.close()

    def _init_database(self) -> None:
        """Initialize the SQLite database schema."""
        conn = self._get_connection()
        cursor = conn.cursor()

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS snapshots (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                source_timestamp TEXT NOT NULL,
                schema_version TEXT NOT NULL,
                assignment_count INTEGER NOT NULL,
                payload TEXT NOT NULL,
                created_at TEXT DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

        # Create index on timestamp for faster queries
        cursor.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_snapshot_timestamp
            ON snapshots(source_timestamp)
        """
        )

        conn.commit()
        self._release(conn)

    def save(self, snapshot: Snapshot) -> int:
        """
        Store a snapshot.

        Args:
            snapshot: The snapshot to store

        Returns:
            Row id of the stored snapshot
        """
        conn = self._get_connection()
        cursor = conn.cursor()

        cursor.execute(
            """
            INSERT INTO snapshots
            (source_timestamp, schema_version, assignment_count, payload)
            VALUES (?, ?, ?, ?)
        """,
            (
                utc_timestamp(snapshot.source_timestamp),
                snapshot.schema_version,
                len(snapshot.assignments),
                snapshot.to_json(),
            ),
        )
        snapshot_id = cursor.lastrowid

        conn.commit()
        self._release(conn)

        logger.info(
            f"Stored snapshot {snapshot_id} with {len(snapshot.assignments)} assignments "
            f"from {snapshot.source_timestamp.isoformat()}"
        )
        return snapshot_id

    def load(self, snapshot_id: int) -> Snapshot:
        """
        Load one snapshot by id.

        Raises:
            SnapshotNotFoundError: If no snapshot has this id
            SnapshotFormatError: If the stored payload cannot be decoded
        """
        rows = self._fetch("SELECT id, payload FROM snapshots WHERE id = ?", (snapshot_id,))
        if not rows:
            raise SnapshotNotFoundError(f"Snapshot {snapshot_id} not found")
        return _decode(rows[0][0], rows[0][1])

    def load_latest(self) -> Snapshot | None:
        """Most recent snapshot by source timestamp, or None when empty."""
        rows = self._fetch(
            "SELECT id, payload FROM snapshots ORDER BY source_timestamp DESC, id DESC LIMIT 1"
        )
        if not rows:
            return None
        return _decode(rows[0][0], rows[0][1])

    def load_previous_and_latest(self) -> tuple[Snapshot, Snapshot] | None:
        """The two most recent snapshots as (previous, latest), or None if fewer than two."""
        rows = self._fetch(
            "SELECT id, payload FROM snapshots ORDER BY source_timestamp DESC, id DESC LIMIT 2"
        )
        if len(rows) < 2:
            return None
        latest = _decode(rows[0][0], rows[0][1])
        previous = _decode(rows[1][0], rows[1][1])
        return previous, latest

    def list_snapshots(self) -> list[dict]:
        """Snapshot metadata ordered oldest first."""
        rows = self._fetch(
            """
            SELECT id, source_timestamp, schema_version, assignment_count
            FROM snapshots
            ORDER BY source_timestamp ASC, id ASC
        """
        )
        return [
            {
                "id": row[0],
                "source_timestamp": row[1],
                "schema_version": row[2],
                "assignment_count": row[3],
            }
            for row in rows
        ]

    def _fetch(self, query: str, params: tuple = ()) -> list[tuple]:
        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute(query, params)
        rows = cursor.fetchall()
        self._release(conn)
        return rows

    def close(self) -> None:
        """Close any open database connections."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None


def _decode(snapshot_id: int, payload: str) -> Snapshot:
    try:
        return Snapshot.from_json(payload)
    except ValidationError as e:
        raise SnapshotFormatError(f"Stored snapshot {snapshot_id} is invalid: {e}") from e


def write_snapshot(snapshot: Snapshot, path: str | Path) -> Path:
    """Write a snapshot as JSON to ``path``."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(snapshot.to_json(), encoding="utf-8")
    logger.info(f"Wrote snapshot with {len(snapshot.assignments)} assignments to {path}")
    return path


def read_snapshot(path: str | Path) -> Snapshot:
    """
    Read a snapshot JSON file.

    Raises:
        SnapshotNotFoundError: If the file does not exist
        SnapshotFormatError: If the file is not a valid snapshot
    """
    path = Path(path)
    if not path.exists():
        raise SnapshotNotFoundError(f"Snapshot file not found: {path}")

    try:
        return Snapshot.from_json(path.read_text(encoding="utf-8"))
    except ValidationError as e:
        raise SnapshotFormatError(f"Invalid snapshot file {path}: {e}") from e


def utc_timestamp(value: datetime) -> str:
    """
    Fixed-width UTC ISO text for the source_timestamp column.

    Naive datetimes are taken as UTC. Equal-width UTC text sorts in time
    order, which the latest-snapshot queries rely on.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")
