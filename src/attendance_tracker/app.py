from __future__ import annotations

import logging

from attendance_tracker.automation import AttendanceScraper, ChromeSessionFactory, PortalLayout
from attendance_tracker.config.settings import Settings, settings as default_settings
from attendance_tracker.data import Database
from attendance_tracker.scheduler import SweepScheduler
from attendance_tracker.services import (
    AttendanceProcessor,
    DeltaService,
    Extractor,
    MetricsService,
    SnapshotService,
    UserService,
)

logger = logging.getLogger(__name__)


class TrackerApp:
    """Wires the database, services and scraper together from settings."""

    def __init__(self, settings: Settings | None = None, *, extractor: Extractor | None = None) -> None:
        self._settings = settings or default_settings

        self.database = Database(self._settings.database_path)
        self.database.initialize()

        self.users = UserService(self.database)
        self.snapshots = SnapshotService(self.database)
        self.deltas = DeltaService(self.database, self.snapshots)
        self.metrics = MetricsService(self.database)

        if extractor is None:
            launcher = ChromeSessionFactory(
                binary_path=self._settings.chrome_binary_path,
                driver_path=self._settings.selenium_driver_path,
                headless=self._settings.chrome_headless,
            )
            layout = PortalLayout(
                login_url=self._settings.portal_login_url,
                attendance_url=self._settings.portal_attendance_url,
                timeout_seconds=self._settings.navigation_timeout_seconds,
            )
            extractor = AttendanceScraper(launcher, layout)

        self.processor = AttendanceProcessor(
            self.users,
            extractor,
            self.snapshots,
            self.deltas,
            self.metrics,
            user_pacing_seconds=self._settings.user_pacing_seconds,
            error_pacing_seconds=self._settings.error_pacing_seconds,
        )
        logger.debug("Tracker initialised with %s", self._settings.describe())

    @property
    def settings(self) -> Settings:
        return self._settings

    def scheduler(self, interval_seconds: float | None = None) -> SweepScheduler:
        interval = interval_seconds or self._settings.sweep_interval_seconds
        return SweepScheduler(self.processor.process_all, interval)
