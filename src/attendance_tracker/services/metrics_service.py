from __future__ import annotations

import logging
import math
from typing import Sequence

from attendance_tracker.data import Database
from attendance_tracker.errors import UserNotFound
from attendance_tracker.models import THRESHOLD_PERCENTAGE, SubjectMetric, SubjectRow, UserAggregate

logger = logging.getLogger(__name__)

THRESHOLD_RATIO = THRESHOLD_PERCENTAGE / 100


def percentage(attended: int, total: int) -> float:
    return (attended / total) * 100 if total > 0 else 0.0


def classes_needed(attended: int, total: int) -> int:
    """Consecutive attended classes required to climb back to the threshold."""
    return max(0, math.ceil((THRESHOLD_RATIO * total - attended) / (1 - THRESHOLD_RATIO)))


def classes_can_skip(attended: int, total: int) -> int:
    """Classes that can be missed in a row while staying at or above the threshold."""
    return max(0, math.floor((attended - THRESHOLD_RATIO * total) / THRESHOLD_RATIO))


def compute_subject_metric(row: SubjectRow) -> SubjectMetric:
    attended, total = row.counts()
    attendance_percentage = percentage(attended, total)
    is_above_75 = attendance_percentage >= THRESHOLD_PERCENTAGE
    return SubjectMetric(
        subject_code=row.subject_code,
        subject_name=row.subject_name,
        faculty_name=row.faculty_name,
        attended_classes=attended,
        total_classes=total,
        attendance_percentage=attendance_percentage,
        is_above_75=is_above_75,
        classes_needed=0 if is_above_75 else classes_needed(attended, total),
        classes_can_skip=classes_can_skip(attended, total) if is_above_75 else 0,
    )


class MetricsService:
    def __init__(self, database: Database) -> None:
        self._database = database

    def update_metrics(self, user_id: int, rows: Sequence[SubjectRow]) -> UserAggregate:
        """Overwrite the user's subject metrics and overall totals from ``rows``.

        Totals cover only the rows given; nothing is carried over from earlier runs.
        """
        metrics = [compute_subject_metric(row) for row in rows]
        overall_attended = sum(metric.attended_classes for metric in metrics)
        overall_total = sum(metric.total_classes for metric in metrics)
        aggregate = UserAggregate(
            overall_attended_classes=overall_attended,
            overall_total_classes=overall_total,
            overall_percentage=percentage(overall_attended, overall_total),
        )

        with self._database.transaction() as connection:
            exists = connection.execute("SELECT 1 FROM users WHERE id = ?", (user_id,)).fetchone()
            if not exists:
                raise UserNotFound(f"User {user_id} not found.")

            connection.executemany(
                """
                INSERT INTO subject_metrics (
                    user_id, subject_code, subject_name, faculty_name,
                    attended_classes, total_classes, attendance_percentage,
                    is_above_75, classes_needed, classes_can_skip
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (user_id, subject_code) DO UPDATE SET
                    subject_name = excluded.subject_name,
                    faculty_name = excluded.faculty_name,
                    attended_classes = excluded.attended_classes,
                    total_classes = excluded.total_classes,
                    attendance_percentage = excluded.attendance_percentage,
                    is_above_75 = excluded.is_above_75,
                    classes_needed = excluded.classes_needed,
                    classes_can_skip = excluded.classes_can_skip,
                    updated_at = datetime('now')
                """,
                [
                    (
                        user_id,
                        metric.subject_code,
                        metric.subject_name,
                        metric.faculty_name,
                        metric.attended_classes,
                        metric.total_classes,
                        metric.attendance_percentage,
                        int(metric.is_above_75),
                        metric.classes_needed,
                        metric.classes_can_skip,
                    )
                    for metric in metrics
                ],
            )
            connection.execute(
                """
                UPDATE users
                   SET overall_attended_classes = ?,
                       overall_total_classes = ?,
                       overall_percentage = ?,
                       updated_at = datetime('now')
                 WHERE id = ?
                """,
                (
                    aggregate.overall_attended_classes,
                    aggregate.overall_total_classes,
                    aggregate.overall_percentage,
                    user_id,
                ),
            )

        logger.info(
            "Updated metrics for user %s: %d/%d (%.2f%%).",
            user_id,
            aggregate.overall_attended_classes,
            aggregate.overall_total_classes,
            aggregate.overall_percentage,
        )
        return aggregate

    def list_for_user(self, user_id: int) -> list[SubjectMetric]:
        with self._database.connect() as connection:
            rows = connection.execute(
                """
                SELECT subject_code, subject_name, faculty_name,
                       attended_classes, total_classes, attendance_percentage,
                       is_above_75, classes_needed, classes_can_skip
                  FROM subject_metrics
                 WHERE user_id = ?
              ORDER BY subject_code
                """,
                (user_id,),
            ).fetchall()

        return [
            SubjectMetric(
                subject_code=row["subject_code"],
                subject_name=row["subject_name"],
                faculty_name=row["faculty_name"],
                attended_classes=int(row["attended_classes"]),
                total_classes=int(row["total_classes"]),
                attendance_percentage=float(row["attendance_percentage"]),
                is_above_75=bool(row["is_above_75"]),
                classes_needed=int(row["classes_needed"]),
                classes_can_skip=int(row["classes_can_skip"]),
            )
            for row in rows
        ]
