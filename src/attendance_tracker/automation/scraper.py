from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from attendance_tracker.automation.chrome import BrowserSession, SessionLauncher, open_session
from attendance_tracker.config.settings import settings
from attendance_tracker.errors import (
    AuthError,
    InvalidPresentTotal,
    LayoutMismatch,
    NavigationTimeout,
)
from attendance_tracker.models import SubjectRow
from attendance_tracker.processing import clean_cell_text, normalize

logger = logging.getLogger(__name__)

MIN_CELLS_PER_ROW = 6


@dataclass(frozen=True)
class AuthCredentials:
    username: str
    password: str

    def __repr__(self) -> str:
        return f"AuthCredentials(username={self.username!r}, password='***')"


@dataclass(frozen=True)
class PortalLayout:
    login_url: str = settings.portal_login_url
    attendance_url: str = settings.portal_attendance_url
    username_field: str = "#txtuser_id"
    password_field: str = "#txtpassword"
    submit_button: str = "#btnsubmit"
    attendance_table: str = "table.table"
    timeout_seconds: float = settings.navigation_timeout_seconds


class AttendanceScraper:
    def __init__(self, launcher: SessionLauncher, layout: PortalLayout | None = None) -> None:
        self._launcher = launcher
        self._layout = layout or PortalLayout()

    def extract(self, username: str, password: str) -> list[SubjectRow]:
        """Log into the portal and return the cleaned attendance table.

        Raises ``NavigationTimeout`` when the login page does not render,
        ``AuthError`` when the login does not go through and ``LayoutMismatch``
        when the attendance table is missing or unreadable.
        """
        credentials = AuthCredentials(username, password)
        logger.info("Scraping attendance for %s", credentials.username)

        with open_session(self._launcher) as session:
            self._login(session, credentials)
            grid = self._read_attendance_table(session)

        rows = normalize(parse_attendance_grid(grid))
        _validate_counts(rows)
        logger.info("Scraped %d subjects for %s", len(rows), credentials.username)
        return rows

    def _login(self, session: BrowserSession, credentials: AuthCredentials) -> None:
        layout = self._layout
        session.navigate(layout.login_url, layout.timeout_seconds, wait_until="domcontentloaded")
        session.wait_for(layout.username_field, layout.timeout_seconds, error=NavigationTimeout)

        session.fill(layout.username_field, credentials.username)
        session.fill(layout.password_field, credentials.password)
        try:
            session.click(layout.submit_button)
            session.wait_for_navigation(layout.timeout_seconds)
        except NavigationTimeout as exc:
            raise AuthError(
                f"Login for {credentials.username} did not complete: {exc}"
            ) from exc

        if _same_page(session.current_url(), layout.login_url):
            raise AuthError(f"Portal rejected the login for {credentials.username}.")

    def _read_attendance_table(self, session: BrowserSession) -> list[list[str]]:
        layout = self._layout
        session.navigate(layout.attendance_url, layout.timeout_seconds, wait_until="complete")
        session.wait_for(layout.attendance_table, layout.timeout_seconds, error=LayoutMismatch)
        return session.read_table(layout.attendance_table)


def parse_attendance_grid(grid: Sequence[Sequence[str]]) -> list[SubjectRow]:
    """Turn raw table text into subject rows, skipping the header and short rows."""
    rows: list[SubjectRow] = []
    for cells in grid[1:]:
        if len(cells) < MIN_CELLS_PER_ROW:
            continue
        rows.append(
            SubjectRow(
                ordinal=len(rows) + 1,
                subject_code=clean_cell_text(cells[1]),
                subject_name=clean_cell_text(cells[2]),
                faculty_name=clean_cell_text(cells[3]),
                present_total=clean_cell_text(cells[4]),
                attendance_percentage=clean_cell_text(cells[5]),
            )
        )
    return rows


def _validate_counts(rows: Sequence[SubjectRow]) -> None:
    for row in rows:
        try:
            row.counts()
        except InvalidPresentTotal as exc:
            raise LayoutMismatch(
                f"Unreadable attendance counts for subject {row.subject_code!r}: {exc}"
            ) from exc


def _same_page(current_url: str, login_url: str) -> bool:
    def strip(url: str) -> str:
        return url.split("?", 1)[0].split("#", 1)[0].rstrip("/").lower()

    return bool(current_url) and strip(current_url) == strip(login_url)
