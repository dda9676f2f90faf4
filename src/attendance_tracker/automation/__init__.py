from .chrome import (
	BrowserSession,
	ChromeAutomationError,
	ChromeSession,
	ChromeSessionFactory,
	SessionLauncher,
	open_session,
)
from .scraper import AttendanceScraper, AuthCredentials, PortalLayout, parse_attendance_grid

__all__ = [
	"AttendanceScraper",
	"AuthCredentials",
	"BrowserSession",
	"ChromeAutomationError",
	"ChromeSession",
	"ChromeSessionFactory",
	"PortalLayout",
	"SessionLauncher",
	"open_session",
	"parse_attendance_grid",
]
