import pytest

from attendance_tracker.automation import AttendanceScraper, PortalLayout, parse_attendance_grid
from attendance_tracker.errors import AuthError, LayoutMismatch, NavigationTimeout

LOGIN_URL = "https://portal.example.edu/Login.aspx"
ATTENDANCE_URL = "https://portal.example.edu/Attendance.aspx"

HEADER = ["Sl No", "Code", "Subject", "Faculty", "Present/Total", "Percentage"]
TABLE = [
    HEADER,
    ["1", "CS301\n(T)", " Operating Systems ", "Dr. Rao\nHOD", "30/40", "75.00"],
    ["", "merged row"],
    ["2", "CS302", "7", "-", "0/0", "0"],
    ["3", "CS303", "Compilers", "Dr. Sen", "18/20", "90.00"],
]


class FakeSession:
    def __init__(
        self, table=None, *, missing=(), navigation_fails=False, stay_on_login=False, click_times_out=False
    ):
        self.table = TABLE if table is None else table
        self.missing = set(missing)
        self.navigation_fails = navigation_fails
        self.click_times_out = click_times_out
        self.stay_on_login = stay_on_login
        self.url = ""
        self.filled = {}
        self.closed = False

    def navigate(self, url, timeout, wait_until="domcontentloaded"):
        self.url = url

    def fill(self, selector, text):
        self.filled[selector] = text

    def click(self, selector):
        if self.click_times_out:
            raise NavigationTimeout("page load after submit timed out")

    def wait_for(self, selector, timeout, error=LayoutMismatch):
        if selector in self.missing:
            raise error(f"{selector} missing")

    def wait_for_navigation(self, timeout):
        if self.navigation_fails:
            raise NavigationTimeout("navigation did not settle")
        if not self.stay_on_login:
            self.url = "https://portal.example.edu/Home.aspx"

    def current_url(self):
        return self.url

    def read_table(self, selector):
        return self.table

    def close(self):
        self.closed = True


class FakeLauncher:
    def __init__(self, session):
        self.session = session

    def launch(self):
        return self.session


def make_scraper(session):
    layout = PortalLayout(login_url=LOGIN_URL, attendance_url=ATTENDANCE_URL, timeout_seconds=1)
    return AttendanceScraper(FakeLauncher(session), layout)


def test_extract_returns_clean_rows_and_closes_session():
    session = FakeSession()

    rows = make_scraper(session).extract("2021UGCS001", "secret")

    assert session.closed
    assert session.filled == {"#txtuser_id": "2021UGCS001", "#txtpassword": "secret"}
    assert [row.subject_code for row in rows] == ["CS301", "CS303"]
    assert [row.ordinal for row in rows] == [1, 2]
    first = rows[0]
    assert first.subject_name == "Operating Systems"
    assert first.faculty_name == "Dr. Rao"
    assert first.present_total == "30/40"
    assert first.attendance_percentage == "75.00"


def test_login_form_missing_is_navigation_timeout():
    session = FakeSession(missing={"#txtuser_id"})

    with pytest.raises(NavigationTimeout):
        make_scraper(session).extract("user", "pw")

    assert session.closed


def test_login_that_never_settles_is_auth_error():
    session = FakeSession(navigation_fails=True)

    with pytest.raises(AuthError):
        make_scraper(session).extract("user", "wrong")

    assert session.closed


def test_slow_page_after_submit_is_auth_error():
    session = FakeSession(click_times_out=True)

    with pytest.raises(AuthError):
        make_scraper(session).extract("user", "pw")

    assert session.closed


def test_login_returning_to_login_page_is_auth_error():
    session = FakeSession(stay_on_login=True)

    with pytest.raises(AuthError):
        make_scraper(session).extract("user", "wrong")


def test_missing_table_is_layout_mismatch():
    session = FakeSession(missing={"table.table"})

    with pytest.raises(LayoutMismatch):
        make_scraper(session).extract("user", "pw")

    assert session.closed


def test_unreadable_counts_are_layout_mismatch():
    table = [HEADER, ["1", "CS301", "Operating Systems", "Dr. Rao", "N/A", "-"]]
    session = FakeSession(table=table)

    with pytest.raises(LayoutMismatch):
        make_scraper(session).extract("user", "pw")


def test_parse_attendance_grid_skips_header_and_short_rows():
    rows = parse_attendance_grid(TABLE)

    assert len(rows) == 3
    assert [row.ordinal for row in rows] == [1, 2, 3]
    assert rows[1].subject_name == "7"


def test_parse_attendance_grid_header_only():
    assert parse_attendance_grid([HEADER]) == []
    assert parse_attendance_grid([]) == []
