from __future__ import annotations

import re
from typing import Iterable, Optional

from attendance_tracker.models import SubjectRow

_DIGITS_ONLY = re.compile(r"[0-9]+")


def clean_cell_text(text: Optional[str]) -> str:
    """Keep the first line of a table cell, stripped of surrounding whitespace."""
    if not text:
        return ""
    return text.strip().split("\n")[0].strip()


def is_artifact_row(row: SubjectRow) -> bool:
    # Malformed portal rows shift a counter into the subject name column.
    return _DIGITS_ONLY.fullmatch(row.subject_name) is not None


def normalize(rows: Iterable[SubjectRow]) -> list[SubjectRow]:
    kept = [row for row in rows if not is_artifact_row(row)]
    return [row.renumbered(index) for index, row in enumerate(kept, start=1)]
