from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Sequence

from attendance_tracker.data import Database
from attendance_tracker.models import DailyComparison, DailyDelta, DeltaRow, MissedClass, SubjectRow
from attendance_tracker.services.snapshot_service import SnapshotService
from attendance_tracker.utils.time import previous_utc_day, utc_day, utc_now

logger = logging.getLogger(__name__)


def compute_deltas(
    yesterday_rows: Sequence[SubjectRow], today_rows: Sequence[SubjectRow]
) -> list[DeltaRow]:
    """Classes held and attended per subject between two cumulative tables.

    Subjects missing from yesterday's table, and subjects whose total did not
    grow, yield nothing.
    """
    previous: dict[str, SubjectRow] = {}
    for row in yesterday_rows:
        previous.setdefault(row.subject_code, row)

    deltas: list[DeltaRow] = []
    for row in today_rows:
        before = previous.get(row.subject_code)
        if before is None:
            continue
        today_attended, today_total = row.counts()
        yesterday_attended, yesterday_total = before.counts()
        held = today_total - yesterday_total
        attended = today_attended - yesterday_attended
        if held < 0:
            logger.warning(
                "Total classes for %s dropped from %d to %d; recording no class held.",
                row.subject_code,
                yesterday_total,
                today_total,
            )
        if held <= 0:
            continue
        deltas.append(
            DeltaRow(
                subject_code=row.subject_code,
                subject_name=row.subject_name,
                faculty_name=row.faculty_name,
                classes_held_today=held,
                classes_attended_today=attended,
            )
        )
    return deltas


class DeltaService:
    def __init__(
        self,
        database: Database,
        snapshots: SnapshotService,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._database = database
        self._snapshots = snapshots
        self._clock = clock

    def reconcile_daily(self, user_id: int, today_rows: Sequence[SubjectRow]) -> DailyComparison:
        now = self._clock()
        yesterday = self._snapshots.find_for_day(user_id, previous_utc_day(now))
        if yesterday is None:
            logger.info("No attendance snapshot from yesterday for user %s.", user_id)
            return DailyComparison.no_prior_data()

        deltas = compute_deltas(yesterday.rows, today_rows)
        self._replace_day(user_id, now, deltas)

        missed = tuple(
            MissedClass(
                subject_code=delta.subject_code,
                subject_name=delta.subject_name,
                classes_held_today=delta.classes_held_today,
            )
            for delta in deltas
            if delta.is_missed
        )
        logger.info(
            "Daily attendance differences updated for user %s (%d held, %d missed).",
            user_id,
            len(deltas),
            len(missed),
        )
        return DailyComparison(classes_held_today=tuple(deltas), missed_classes=missed)

    def find_for_day(self, user_id: int, day: date) -> DailyDelta | None:
        with self._database.connect() as connection:
            record = connection.execute(
                "SELECT id, user_id, day, computed_at FROM daily_deltas WHERE user_id = ? AND day = ?",
                (user_id, day.isoformat()),
            ).fetchone()
            if record is None:
                return None
            rows = connection.execute(
                """
                SELECT subject_code, subject_name, faculty_name, classes_held, classes_attended
                  FROM daily_delta_subjects
                 WHERE daily_delta_id = ?
              ORDER BY id ASC
                """,
                (record["id"],),
            ).fetchall()

        return DailyDelta(
            id=int(record["id"]),
            user_id=int(record["user_id"]),
            day=date.fromisoformat(record["day"]),
            computed_at=datetime.fromisoformat(record["computed_at"]),
            rows=[
                DeltaRow(
                    subject_code=row["subject_code"],
                    subject_name=row["subject_name"],
                    faculty_name=row["faculty_name"],
                    classes_held_today=int(row["classes_held"]),
                    classes_attended_today=int(row["classes_attended"]),
                )
                for row in rows
            ],
        )

    def _replace_day(self, user_id: int, now: datetime, deltas: Sequence[DeltaRow]) -> None:
        day = utc_day(now).isoformat()
        with self._database.transaction() as connection:
            connection.execute(
                """
                INSERT INTO daily_deltas (user_id, day, computed_at)
                VALUES (?, ?, ?)
                ON CONFLICT (user_id, day) DO UPDATE SET computed_at = excluded.computed_at
                """,
                (user_id, day, now.isoformat()),
            )
            delta_id = int(
                connection.execute(
                    "SELECT id FROM daily_deltas WHERE user_id = ? AND day = ?",
                    (user_id, day),
                ).fetchone()["id"]
            )
            connection.execute(
                "DELETE FROM daily_delta_subjects WHERE daily_delta_id = ?",
                (delta_id,),
            )
            connection.executemany(
                """
                INSERT INTO daily_delta_subjects (
                    daily_delta_id, subject_code, subject_name, faculty_name,
                    classes_held, classes_attended
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        delta_id,
                        delta.subject_code,
                        delta.subject_name,
                        delta.faculty_name,
                        delta.classes_held_today,
                        delta.classes_attended_today,
                    )
                    for delta in deltas
                ],
            )
