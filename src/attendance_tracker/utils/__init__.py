from .time import (
    end_of_utc_day,
    format_relative_time,
    previous_utc_day,
    start_of_utc_day,
    utc_day,
    utc_now,
)

__all__ = [
    "utc_now",
    "utc_day",
    "previous_utc_day",
    "start_of_utc_day",
    "end_of_utc_day",
    "format_relative_time",
]
