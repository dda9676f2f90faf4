from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Protocol, Sequence

from attendance_tracker.config.settings import settings
from attendance_tracker.errors import IneligibleUser, NoEligibleUsers, SweepInProgress
from attendance_tracker.models import ProcessingOutcome, SubjectRow, User
from attendance_tracker.services.delta_service import DeltaService
from attendance_tracker.services.metrics_service import MetricsService
from attendance_tracker.services.snapshot_service import SnapshotService
from attendance_tracker.services.user_service import UserService

logger = logging.getLogger(__name__)


class Extractor(Protocol):
    def extract(self, username: str, password: str) -> list[SubjectRow]: ...


class AttendanceProcessor:
    """Runs the scrape → snapshot → delta → metrics pipeline one user at a time."""

    def __init__(
        self,
        users: UserService,
        extractor: Extractor,
        snapshots: SnapshotService,
        deltas: DeltaService,
        metrics: MetricsService,
        *,
        user_pacing_seconds: float = settings.user_pacing_seconds,
        error_pacing_seconds: float = settings.error_pacing_seconds,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._users = users
        self._extractor = extractor
        self._snapshots = snapshots
        self._deltas = deltas
        self._metrics = metrics
        self._user_pacing_seconds = user_pacing_seconds
        self._error_pacing_seconds = error_pacing_seconds
        self._sleep = sleep
        self._running = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._running.locked()

    def process_all(self) -> list[ProcessingOutcome]:
        """Process every user with portal credentials, returning one outcome per user."""
        with self._exclusive_run():
            users = self._users.eligible_users()
            if not users:
                raise NoEligibleUsers("No users with valid portal credentials found.")
            logger.info("Starting attendance sweep for %d users.", len(users))
            return self._process_sequence(users)

    def process_user(self, user_id: int) -> ProcessingOutcome:
        with self._exclusive_run():
            user = self._users.require_user(user_id)
            if not user.is_eligible:
                raise IneligibleUser(f"User {user_id} has no portal credentials on file.")
            return self._process_one(user)

    def _process_sequence(self, users: Sequence[User]) -> list[ProcessingOutcome]:
        outcomes: list[ProcessingOutcome] = []
        for index, user in enumerate(users):
            outcome = self._process_one(user)
            outcomes.append(outcome)

            if index == len(users) - 1:
                break
            if outcome.error is None:
                delay = self._user_pacing_seconds
            else:
                delay = self._error_pacing_seconds
            if delay > 0:
                logger.info("Waiting %g seconds before processing next user...", delay)
                self._sleep(delay)

        processed = sum(1 for outcome in outcomes if outcome.error is None)
        logger.info("Sweep finished: %d processed, %d failed.", processed, len(outcomes) - processed)
        return outcomes

    def _process_one(self, user: User) -> ProcessingOutcome:
        logger.info("Processing user %s...", user.id)
        try:
            rows = self._extractor.extract(user.portal_username, user.portal_password)
            self._snapshots.upsert_today(user.id, rows)
            comparison = self._deltas.reconcile_daily(user.id, rows)
            self._metrics.update_metrics(user.id, rows)
        except Exception as exc:
            logger.error("Error processing user %s: %s", user.id, exc, exc_info=True)
            return ProcessingOutcome.failed(user.id, str(exc) or type(exc).__name__)
        return ProcessingOutcome.processed(user.id, comparison)

    @contextmanager
    def _exclusive_run(self) -> Iterator[None]:
        if not self._running.acquire(blocking=False):
            raise SweepInProgress("Attendance processing is already in progress.")
        try:
            yield
        finally:
            self._running.release()
