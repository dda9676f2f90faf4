from __future__ import annotations

import logging
import threading
from typing import Callable

from attendance_tracker.errors import NoEligibleUsers, SweepInProgress
from attendance_tracker.models import ProcessingOutcome

logger = logging.getLogger(__name__)


class SweepScheduler:
    """Invoke a sweep, wait ``interval_seconds``, repeat until stopped."""

    def __init__(
        self,
        sweep: Callable[[], list[ProcessingOutcome]],
        interval_seconds: float,
        *,
        stop_event: threading.Event | None = None,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("Sweep interval must be positive.")
        self._sweep = sweep
        self._interval_seconds = interval_seconds
        self._stop_event = stop_event or threading.Event()

    def stop(self) -> None:
        self._stop_event.set()

    def run_once(self) -> list[ProcessingOutcome]:
        try:
            return self._sweep()
        except SweepInProgress:
            logger.warning("Previous sweep still running; skipping this tick.")
        except NoEligibleUsers as exc:
            logger.warning("%s", exc)
        except Exception:
            logger.exception("Attendance sweep failed.")
        return []

    def run_forever(self, max_runs: int | None = None) -> int:
        """Run sweeps until :meth:`stop` is called; returns the number of sweeps run."""
        runs = 0
        while not self._stop_event.is_set():
            self.run_once()
            runs += 1
            if max_runs is not None and runs >= max_runs:
                break
            if self._stop_event.wait(self._interval_seconds):
                break
        return runs
