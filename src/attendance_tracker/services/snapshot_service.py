from __future__ import annotations

import logging
import sqlite3
from datetime import date, datetime
from typing import Callable, Sequence

from attendance_tracker.data import Database
from attendance_tracker.models import Snapshot, SubjectRow
from attendance_tracker.utils.time import utc_day, utc_now

logger = logging.getLogger(__name__)


class SnapshotService:
    """Keeps one cumulative attendance snapshot per user per UTC day."""

    def __init__(self, database: Database, *, clock: Callable[[], datetime] = utc_now) -> None:
        self._database = database
        self._clock = clock

    def upsert_today(self, user_id: int, rows: Sequence[SubjectRow]) -> Snapshot:
        """Store ``rows`` as today's snapshot, replacing any earlier scrape from today.

        The snapshot record keeps its id across same-day calls; only its rows are
        swapped. Both steps run in one write transaction.
        """
        now = self._clock()
        day = utc_day(now)

        with self._database.transaction() as connection:
            connection.execute(
                """
                INSERT INTO attendance_snapshots (user_id, day, captured_at)
                VALUES (?, ?, ?)
                ON CONFLICT (user_id, day) DO UPDATE SET captured_at = excluded.captured_at
                """,
                (user_id, day.isoformat(), now.isoformat()),
            )
            snapshot_id = int(
                connection.execute(
                    "SELECT id FROM attendance_snapshots WHERE user_id = ? AND day = ?",
                    (user_id, day.isoformat()),
                ).fetchone()["id"]
            )
            replaced = connection.execute(
                "DELETE FROM attendance_snapshot_subjects WHERE snapshot_id = ?",
                (snapshot_id,),
            ).rowcount
            connection.executemany(
                """
                INSERT INTO attendance_snapshot_subjects (
                    snapshot_id, ordinal, subject_code, subject_name,
                    faculty_name, present_total, attendance_percentage
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        snapshot_id,
                        row.ordinal,
                        row.subject_code,
                        row.subject_name,
                        row.faculty_name,
                        row.present_total,
                        row.attendance_percentage,
                    )
                    for row in rows
                ],
            )

        if replaced:
            logger.info("Updated attendance snapshot for user %s for %s.", user_id, day)
        else:
            logger.info("Saved new attendance snapshot for user %s for %s.", user_id, day)
        return Snapshot(id=snapshot_id, user_id=user_id, day=day, captured_at=now, rows=list(rows))

    def find_for_day(self, user_id: int, day: date) -> Snapshot | None:
        with self._database.connect() as connection:
            record = connection.execute(
                """
                SELECT id, user_id, day, captured_at
                  FROM attendance_snapshots
                 WHERE user_id = ? AND day = ?
                """,
                (user_id, day.isoformat()),
            ).fetchone()
            if record is None:
                return None
            return _load_snapshot(connection, record)

    def latest(self, user_id: int) -> Snapshot | None:
        with self._database.connect() as connection:
            record = connection.execute(
                """
                SELECT id, user_id, day, captured_at
                  FROM attendance_snapshots
                 WHERE user_id = ?
              ORDER BY day DESC
                 LIMIT 1
                """,
                (user_id,),
            ).fetchone()
            if record is None:
                return None
            return _load_snapshot(connection, record)


def _load_snapshot(connection: sqlite3.Connection, record: sqlite3.Row) -> Snapshot:
    rows = connection.execute(
        """
        SELECT ordinal, subject_code, subject_name, faculty_name,
               present_total, attendance_percentage
          FROM attendance_snapshot_subjects
         WHERE snapshot_id = ?
      ORDER BY ordinal ASC, id ASC
        """,
        (record["id"],),
    ).fetchall()
    return Snapshot(
        id=int(record["id"]),
        user_id=int(record["user_id"]),
        day=date.fromisoformat(record["day"]),
        captured_at=datetime.fromisoformat(record["captured_at"]),
        rows=[
            SubjectRow(
                ordinal=int(row["ordinal"]),
                subject_code=row["subject_code"],
                subject_name=row["subject_name"],
                faculty_name=row["faculty_name"],
                present_total=row["present_total"],
                attendance_percentage=row["attendance_percentage"],
            )
            for row in rows
        ],
    )
