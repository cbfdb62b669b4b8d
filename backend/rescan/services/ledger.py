"""
Points ledger persistence.

Two tables (created by Alembic migrations):
- locations: one row per normalized address with its running points_total
- scan_sessions: append-only audit log, one row per processed scan

Invariant: for every location, points_total equals the sum of
points_awarded over its scan_sessions. record_scan keeps it by writing the
scan row and the total increment in one transaction; verify_ledger audits it.
"""

import logging
import re
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Optional, Union

from ..config import Config
from ..db import BaseRepository, ensure_schema
from ..exceptions import InvalidInputError, PersistenceError
from ..models import (
    LedgerDiscrepancy,
    LocationSummary,
    MaterialClassification,
    MaterialType,
    ParseMethod,
    RecordedScan,
    RecordFailed,
    ScanRecord,
)

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def normalize_location_key(address: Optional[str]) -> str:
    """
    Canonical ledger key for an address.

    Trims, collapses internal whitespace and casefolds, so "12 Main St" and
    "  12  main st " share one ledger entry.

    Raises:
        InvalidInputError: empty or longer than MAX_LOCATION_KEY_LENGTH
    """
    if address is None:
        raise InvalidInputError("Location is required")
    key = _WHITESPACE.sub(" ", str(address)).strip().casefold()
    if not key:
        raise InvalidInputError("Location must not be empty")
    if len(key) > Config.MAX_LOCATION_KEY_LENGTH:
        raise InvalidInputError(
            f"Location must be at most {Config.MAX_LOCATION_KEY_LENGTH} characters"
        )
    return key


def _display_address(address: str) -> str:
    return _WHITESPACE.sub(" ", address).strip()[:Config.MAX_LOCATION_KEY_LENGTH]


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)


class LedgerStore(BaseRepository):
    """
    SQLite-backed ledger of locations and their scans.

    Thread-safe: each thread gets its own connection, and every write runs
    under BEGIN IMMEDIATE so concurrent record_scan calls are serialized by
    SQLite's writer lock. Totals are incremented in SQL, never computed in
    Python from a prior read.
    """

    def __init__(
        self,
        db_path: Optional[str] = None,
        use_wal: bool = True,
        busy_timeout: Optional[float] = None,
        initialize: bool = True,
    ):
        """
        Args:
            db_path: Path to SQLite database. Defaults to Config.database_path()
            use_wal: Enable WAL mode
            busy_timeout: Seconds a writer waits for the lock
            initialize: Run migrations to head on construction
        """
        super().__init__(db_path=db_path, use_wal=use_wal, busy_timeout=busy_timeout)
        if initialize:
            ensure_schema(self.db_path)
            # Switch the file to WAL before any worker thread connects
            self._get_connection()

    # === Writes ===

    def record_scan(
        self,
        location_key: str,
        classification: MaterialClassification,
        points: int,
        raw_analysis: str = "",
    ) -> Union[RecordedScan, RecordFailed]:
        """
        Atomically record one scan and add its points to the location total.

        The location row is created on first use. Either the scan row and the
        increment are both committed, or neither is.

        Args:
            location_key: Address (normalized here)
            classification: Normalized classification
            points: Points to award (>= 0)
            raw_analysis: Raw vision response kept for auditing

        Returns:
            RecordedScan on commit, RecordFailed if the store rejected the write

        Raises:
            InvalidInputError: invalid location key
        """
        key = normalize_location_key(location_key)
        if points < 0:
            raise ValueError(f"points must be non-negative, got {points}")

        scan_id = str(uuid.uuid4())
        now = _utcnow()

        try:
            with self._transaction() as cursor:
                self._ensure_location_row(cursor, key, _display_address(location_key), now)
                self._insert_scan(cursor, scan_id, key, classification, points, raw_analysis, now)
                new_total = self._increment_total(cursor, key, points, now)
        except sqlite3.Error as e:
            logger.error(f"Ledger write failed for '{key}': {e}", exc_info=True)
            return RecordFailed(location_key=key, message=str(e))

        logger.info(
            f"Recorded scan {scan_id[:8]} at '{key}': "
            f"{classification.material_type.value} +{points} (total={new_total})"
        )
        return RecordedScan(
            scan_id=scan_id,
            location_key=key,
            points_awarded=points,
            new_total=new_total,
        )

    def ensure_location(self, address: str) -> LocationSummary:
        """Register a location with zero points if it is not known yet."""
        key = normalize_location_key(address)
        try:
            with self._transaction() as cursor:
                self._ensure_location_row(cursor, key, _display_address(address), _utcnow())
        except sqlite3.Error as e:
            logger.error(f"Failed to register location '{key}': {e}")
            raise PersistenceError("Could not register location", cause=e) from e
        return self.lookup_location(key)

    def _ensure_location_row(
        self, cursor: sqlite3.Cursor, key: str, display_address: str, now: str
    ) -> None:
        cursor.execute(
            """
            INSERT INTO locations (location_key, display_address, points_total, created_at, updated_at)
            VALUES (?, ?, 0, ?, ?)
            ON CONFLICT(location_key) DO NOTHING
            """,
            (key, display_address, now, now),
        )

    def _insert_scan(
        self,
        cursor: sqlite3.Cursor,
        scan_id: str,
        key: str,
        classification: MaterialClassification,
        points: int,
        raw_analysis: str,
        now: str,
    ) -> None:
        cursor.execute(
            """
            INSERT INTO scan_sessions (
                id, location_key, material_type, ric_code, confidence, recyclable,
                points_awarded, uncertain, parse_method, raw_analysis, created_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                scan_id,
                key,
                classification.material_type.value,
                classification.ric_code,
                classification.confidence,
                classification.recyclable,
                points,
                classification.uncertain,
                classification.parse_method.value,
                raw_analysis or "",
                now,
            ),
        )

    def _increment_total(self, cursor: sqlite3.Cursor, key: str, points: int, now: str) -> int:
        cursor.execute(
            """
            UPDATE locations
            SET points_total = points_total + ?, updated_at = ?
            WHERE location_key = ?
            """,
            (points, now, key),
        )
        cursor.execute("SELECT points_total FROM locations WHERE location_key = ?", (key,))
        return cursor.fetchone()["points_total"]

    # === Reads ===

    def lookup_location(self, address: str) -> LocationSummary:
        """Current total for a location. Unknown locations report exists=False."""
        key = normalize_location_key(address)
        try:
            cursor = self._get_connection().execute(
                """
                SELECT location_key, display_address, points_total, created_at, updated_at
                FROM locations WHERE location_key = ?
                """,
                (key,),
            )
            row = cursor.fetchone()
        except sqlite3.Error as e:
            logger.error(f"Location lookup failed for '{key}': {e}")
            raise PersistenceError("Could not read location", cause=e) from e

        if row is None:
            return LocationSummary(exists=False, location_key=key, points_total=0)
        return LocationSummary(
            exists=True,
            location_key=row["location_key"],
            points_total=row["points_total"],
            display_address=row["display_address"],
            created_at=_parse_timestamp(row["created_at"]),
            updated_at=_parse_timestamp(row["updated_at"]),
        )

    def list_scans(self, address: str, limit: int = Config.DEFAULT_HISTORY_LIMIT) -> list[ScanRecord]:
        """Scans for a location, newest first."""
        key = normalize_location_key(address)
        limit = max(1, min(limit, Config.MAX_HISTORY_LIMIT))
        try:
            cursor = self._get_connection().execute(
                """
                SELECT id, location_key, material_type, ric_code, confidence, recyclable,
                       uncertain, points_awarded, parse_method, raw_analysis, created_at
                FROM scan_sessions
                WHERE location_key = ?
                ORDER BY created_at DESC, rowid DESC
                LIMIT ?
                """,
                (key, limit),
            )
            rows = cursor.fetchall()
        except sqlite3.Error as e:
            logger.error(f"Scan history read failed for '{key}': {e}")
            raise PersistenceError("Could not read scan history", cause=e) from e

        return [self._row_to_record(row) for row in rows]

    def verify_ledger(self) -> list[LedgerDiscrepancy]:
        """Locations whose total differs from the sum of their scans' points."""
        try:
            cursor = self._get_connection().execute(
                """
                SELECT l.location_key, l.points_total,
                       COALESCE(SUM(s.points_awarded), 0) AS scan_points_sum
                FROM locations l
                LEFT JOIN scan_sessions s ON s.location_key = l.location_key
                GROUP BY l.location_key, l.points_total
                HAVING l.points_total != COALESCE(SUM(s.points_awarded), 0)
                """
            )
            rows = cursor.fetchall()
        except sqlite3.Error as e:
            raise PersistenceError("Could not audit ledger", cause=e) from e

        discrepancies = [
            LedgerDiscrepancy(
                location_key=row["location_key"],
                points_total=row["points_total"],
                scan_points_sum=row["scan_points_sum"],
            )
            for row in rows
        ]
        if discrepancies:
            logger.warning(f"Ledger audit found {len(discrepancies)} inconsistent locations")
        return discrepancies

    def count_scans(self, address: Optional[str] = None) -> int:
        """Number of audited scans, overall or for one location."""
        try:
            conn = self._get_connection()
            if address is None:
                row = conn.execute("SELECT COUNT(*) FROM scan_sessions").fetchone()
            else:
                row = conn.execute(
                    "SELECT COUNT(*) FROM scan_sessions WHERE location_key = ?",
                    (normalize_location_key(address),),
                ).fetchone()
        except sqlite3.Error as e:
            raise PersistenceError("Could not count scans", cause=e) from e
        return row[0]

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> ScanRecord:
        return ScanRecord(
            id=row["id"],
            location_key=row["location_key"],
            material_type=MaterialType(row["material_type"]),
            ric_code=row["ric_code"],
            confidence=row["confidence"],
            recyclable=bool(row["recyclable"]),
            uncertain=bool(row["uncertain"]),
            points_awarded=row["points_awarded"],
            parse_method=ParseMethod(row["parse_method"]),
            raw_analysis=row["raw_analysis"],
            created_at=_parse_timestamp(row["created_at"]),
        )
