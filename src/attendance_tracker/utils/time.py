from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def utc_day(moment: datetime) -> date:
    """Return the UTC calendar day a moment falls on."""
    return _as_utc(moment).date()


def start_of_utc_day(moment: datetime) -> datetime:
    return datetime.combine(utc_day(moment), time.min, tzinfo=timezone.utc)


def end_of_utc_day(moment: datetime) -> datetime:
    return datetime.combine(utc_day(moment), time.max, tzinfo=timezone.utc)


def previous_utc_day(moment: datetime) -> date:
    return utc_day(moment) - timedelta(days=1)


def _coerce_datetime(value: datetime | str) -> datetime:
    if isinstance(value, datetime):
        return _as_utc(value)

    if isinstance(value, str):
        candidate = value.strip().replace(" ", "T", 1)
        try:
            return _as_utc(datetime.fromisoformat(candidate))
        except ValueError:
            for fmt in ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M:%S.%f"):
                try:
                    return _as_utc(datetime.strptime(value, fmt))
                except ValueError:
                    continue

    raise ValueError(f"Unsupported datetime value: {value!r}")


def format_relative_time(value: datetime | str, *, now: datetime | None = None) -> str:
    reference = _as_utc(now) if now is not None else utc_now()
    moment = _coerce_datetime(value)

    total_seconds = int((reference - moment).total_seconds())

    if total_seconds < 60:
        return "just now"

    minutes = total_seconds // 60
    if minutes == 1:
        return "1 minute ago"
    if minutes < 60:
        return f"{minutes} minutes ago"

    hours = minutes // 60
    if hours == 1:
        return "1 hour ago"
    if hours < 24:
        return f"{hours} hours ago"

    days = hours // 24
    if days == 1:
        return "Yesterday"
    if days < 7:
        return f"{days} days ago"

    weeks = days // 7
    if weeks == 1:
        return "1 week ago"
    if weeks < 5:
        return f"{weeks} weeks ago"

    months = days // 30
    if months <= 1:
        return "1 month ago"
    if months < 12:
        return f"{months} months ago"

    years = days // 365
    if years <= 1:
        return "1 year ago"
    return f"{years} years ago"
