from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from attendance_tracker.errors import InvalidPresentTotal

THRESHOLD_PERCENTAGE = 75.0


def parse_present_total(value: str) -> tuple[int, int]:
    """Split an ``attended/total`` cell into two non-negative integers."""
    parts = (value or "").split("/")
    if len(parts) != 2:
        raise InvalidPresentTotal(f"Expected 'attended/total', got {value!r}.")
    try:
        attended, total = (int(part.strip()) for part in parts)
    except ValueError as exc:
        raise InvalidPresentTotal(f"Expected 'attended/total', got {value!r}.") from exc
    if attended < 0 or total < 0 or attended > total:
        raise InvalidPresentTotal(f"Inconsistent attendance counts in {value!r}.")
    return attended, total


@dataclass(slots=True, frozen=True)
class SubjectRow:
    ordinal: int
    subject_code: str
    subject_name: str
    faculty_name: str
    present_total: str
    attendance_percentage: str = ""

    def counts(self) -> tuple[int, int]:
        return parse_present_total(self.present_total)

    def renumbered(self, ordinal: int) -> "SubjectRow":
        return replace(self, ordinal=ordinal)


@dataclass(slots=True)
class Snapshot:
    id: int
    user_id: int
    day: date
    captured_at: datetime
    rows: list[SubjectRow] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class DeltaRow:
    subject_code: str
    subject_name: str
    faculty_name: str
    classes_held_today: int
    classes_attended_today: int

    @property
    def is_missed(self) -> bool:
        return self.classes_held_today > 0 and self.classes_attended_today == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "subject_code": self.subject_code,
            "subject_name": self.subject_name,
            "faculty_name": self.faculty_name,
            "classes_held_today": self.classes_held_today,
            "classes_attended_today": self.classes_attended_today,
        }


@dataclass(slots=True)
class DailyDelta:
    id: int
    user_id: int
    day: date
    computed_at: datetime
    rows: list[DeltaRow] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class MissedClass:
    subject_code: str
    subject_name: str
    classes_held_today: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "subject_code": self.subject_code,
            "subject_name": self.subject_name,
            "classes_held_today": self.classes_held_today,
        }


@dataclass(slots=True, frozen=True)
class DailyComparison:
    """Outcome of comparing today's table against yesterday's snapshot.

    ``message`` is set, and both lists are empty, when there was no snapshot for
    yesterday to compare against.
    """

    classes_held_today: tuple[DeltaRow, ...] = ()
    missed_classes: tuple[MissedClass, ...] = ()
    message: Optional[str] = None

    @property
    def has_prior_data(self) -> bool:
        return self.message is None

    @classmethod
    def no_prior_data(cls) -> "DailyComparison":
        return cls(message="No attendance data for yesterday")

    def to_dict(self) -> dict[str, Any]:
        if not self.has_prior_data:
            return {"message": self.message}
        return {
            "classes_held_today": [row.to_dict() for row in self.classes_held_today],
            "missed_classes": [missed.to_dict() for missed in self.missed_classes],
        }


@dataclass(slots=True, frozen=True)
class SubjectMetric:
    subject_code: str
    subject_name: str
    faculty_name: str
    attended_classes: int
    total_classes: int
    attendance_percentage: float
    is_above_75: bool
    classes_needed: int
    classes_can_skip: int


@dataclass(slots=True, frozen=True)
class UserAggregate:
    overall_attended_classes: int
    overall_total_classes: int
    overall_percentage: float


@dataclass(slots=True)
class User:
    id: int
    username: str
    portal_username: str = ""
    portal_password: str = field(default="", repr=False)
    overall_attended_classes: int = 0
    overall_total_classes: int = 0
    overall_percentage: float = 0.0

    @property
    def is_eligible(self) -> bool:
        return bool(self.portal_username.strip()) and bool(self.portal_password.strip())


class OutcomeStatus(str, Enum):
    PROCESSED = "Processed"
    ERROR = "Error"


@dataclass(slots=True, frozen=True)
class ProcessingOutcome:
    user_id: int
    status: OutcomeStatus
    daily_comparison: Optional[DailyComparison] = None
    error: Optional[str] = None

    @classmethod
    def processed(cls, user_id: int, comparison: DailyComparison) -> "ProcessingOutcome":
        return cls(user_id=user_id, status=OutcomeStatus.PROCESSED, daily_comparison=comparison)

    @classmethod
    def failed(cls, user_id: int, error: str) -> "ProcessingOutcome":
        return cls(user_id=user_id, status=OutcomeStatus.ERROR, error=error)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"user_id": self.user_id, "status": self.status.value}
        if self.daily_comparison is not None:
            payload["daily_comparison"] = self.daily_comparison.to_dict()
        if self.error is not None:
            payload["error"] = self.error
        return payload
