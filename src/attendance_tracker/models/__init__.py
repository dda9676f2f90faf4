from .attendance import (
    THRESHOLD_PERCENTAGE,
    DailyComparison,
    DailyDelta,
    DeltaRow,
    MissedClass,
    OutcomeStatus,
    ProcessingOutcome,
    Snapshot,
    SubjectMetric,
    SubjectRow,
    User,
    UserAggregate,
    parse_present_total,
)

__all__ = [
    "THRESHOLD_PERCENTAGE",
    "DailyComparison",
    "DailyDelta",
    "DeltaRow",
    "MissedClass",
    "OutcomeStatus",
    "ProcessingOutcome",
    "Snapshot",
    "SubjectMetric",
    "SubjectRow",
    "User",
    "UserAggregate",
    "parse_present_total",
]
