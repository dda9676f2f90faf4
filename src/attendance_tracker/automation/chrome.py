from __future__ import annotations

import logging
import os
import shutil
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Protocol

from selenium import webdriver
from selenium.common.exceptions import (
    NoSuchElementException,
    TimeoutException,
    WebDriverException,
)
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.chrome.service import Service
from selenium.webdriver.common.by import By
from selenium.webdriver.remote.webdriver import WebDriver
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait

try:  # pragma: no cover - import guard for static analysis
    from webdriver_manager.chrome import ChromeDriverManager
except ImportError as exc:  # pragma: no cover - missing dependency
    raise RuntimeError(
        "webdriver-manager is required for Chrome automation support."
    ) from exc

from attendance_tracker.config.settings import settings
from attendance_tracker.errors import ExtractionError, LayoutMismatch, NavigationTimeout

logger = logging.getLogger(__name__)


class ChromeAutomationError(ExtractionError):
    """Raised when the automated Chrome session cannot be launched."""


class BrowserSession(Protocol):
    """The browser operations the portal scraper relies on.

    Every wait takes an explicit timeout in seconds and raises a typed
    extraction error instead of blocking indefinitely.
    """

    def navigate(self, url: str, timeout: float, wait_until: str = "domcontentloaded") -> None: ...

    def fill(self, selector: str, text: str) -> None: ...

    def click(self, selector: str) -> None: ...

    def wait_for(
        self, selector: str, timeout: float, error: type[ExtractionError] = LayoutMismatch
    ) -> None: ...

    def wait_for_navigation(self, timeout: float) -> None: ...

    def current_url(self) -> str: ...

    def read_table(self, selector: str) -> list[list[str]]: ...

    def close(self) -> None: ...


class SessionLauncher(Protocol):
    def launch(self) -> BrowserSession: ...


@contextmanager
def open_session(launcher: SessionLauncher) -> Iterator[BrowserSession]:
    """Launch a browser session and close it on every exit path."""
    session = launcher.launch()
    try:
        yield session
    finally:
        try:
            session.close()
        except Exception:  # pragma: no cover - best effort cleanup
            logger.warning("Failed to close browser session cleanly.", exc_info=True)


class ChromeSession:
    """Selenium-backed implementation of :class:`BrowserSession`."""

    def __init__(self, driver: WebDriver) -> None:
        self._driver = driver
        self._navigation_marker = None

    def navigate(self, url: str, timeout: float, wait_until: str = "domcontentloaded") -> None:
        self._driver.set_page_load_timeout(timeout)
        try:
            self._driver.get(url)
            if wait_until == "complete":
                self._wait_ready_state(timeout)
        except TimeoutException as exc:
            raise NavigationTimeout(f"Timed out loading {url} after {timeout:g}s.") from exc
        except WebDriverException as exc:
            raise NavigationTimeout(f"Failed to load {url}: {exc.msg or exc}") from exc

    def fill(self, selector: str, text: str) -> None:
        element = self._find(selector)
        try:
            element.clear()
            element.send_keys(text)
        except WebDriverException as exc:
            raise LayoutMismatch(f"Could not type into {selector!r}: {exc.msg or exc}") from exc

    def click(self, selector: str) -> None:
        element = self._find(selector)
        try:
            # Remember the pre-click document so wait_for_navigation can detect the reload.
            self._navigation_marker = self._driver.find_element(By.TAG_NAME, "html")
            element.click()
        except TimeoutException as exc:
            raise NavigationTimeout(f"Page load after clicking {selector!r} timed out.") from exc
        except WebDriverException as exc:
            raise LayoutMismatch(f"Could not click {selector!r}: {exc.msg or exc}") from exc

    def wait_for(
        self, selector: str, timeout: float, error: type[ExtractionError] = LayoutMismatch
    ) -> None:
        try:
            WebDriverWait(self._driver, timeout).until(
                EC.presence_of_element_located((By.CSS_SELECTOR, selector))
            )
        except TimeoutException as exc:
            raise error(f"Element {selector!r} did not appear within {timeout:g}s.") from exc
        except WebDriverException as exc:
            raise error(f"Waiting for {selector!r} failed: {exc.msg or exc}") from exc

    def wait_for_navigation(self, timeout: float) -> None:
        marker, self._navigation_marker = self._navigation_marker, None
        try:
            if marker is not None:
                WebDriverWait(self._driver, timeout).until(EC.staleness_of(marker))
            self._wait_ready_state(timeout)
        except TimeoutException as exc:
            raise NavigationTimeout(f"Navigation did not settle within {timeout:g}s.") from exc
        except WebDriverException as exc:
            raise NavigationTimeout(f"Navigation failed: {exc.msg or exc}") from exc

    def current_url(self) -> str:
        return self._driver.current_url or ""

    def read_table(self, selector: str) -> list[list[str]]:
        table = self._find(selector)
        grid: list[list[str]] = []
        try:
            for row in table.find_elements(By.CSS_SELECTOR, "tr"):
                cells = row.find_elements(By.CSS_SELECTOR, "td")
                grid.append([cell.get_attribute("innerText") or "" for cell in cells])
        except WebDriverException as exc:
            raise LayoutMismatch(f"Could not read table {selector!r}: {exc.msg or exc}") from exc
        return grid

    def close(self) -> None:
        self._driver.quit()

    def _find(self, selector: str):
        try:
            return self._driver.find_element(By.CSS_SELECTOR, selector)
        except NoSuchElementException as exc:
            raise LayoutMismatch(f"Element {selector!r} not found.") from exc
        except WebDriverException as exc:
            raise LayoutMismatch(f"Could not locate {selector!r}: {exc.msg or exc}") from exc

    def _wait_ready_state(self, timeout: float) -> None:
        WebDriverWait(self._driver, timeout).until(
            lambda driver: driver.execute_script("return document.readyState") == "complete"
        )


@dataclass(slots=True)
class ChromeSessionFactory:
    """Launch a fresh Chrome instance per extraction."""

    binary_path: Optional[Path] = settings.chrome_binary_path
    driver_path: Optional[Path] = settings.selenium_driver_path
    headless: bool = settings.chrome_headless

    def launch(self) -> ChromeSession:
        options = Options()
        # driver.get returns at DOMContentLoaded; navigate(wait_until="complete") waits for the rest.
        options.page_load_strategy = "eager"
        if self.headless:
            options.add_argument("--headless=new")
        options.add_argument("--no-first-run")
        options.add_argument("--no-default-browser-check")
        if sys.platform.startswith("linux"):
            options.add_argument("--disable-dev-shm-usage")
            options.add_argument("--no-sandbox")

        binary_path = self.binary_path or self._discover_chrome_binary()
        if binary_path is not None:
            options.binary_location = str(binary_path)

        driver_path = self.driver_path or Path(ChromeDriverManager().install())
        service = Service(str(driver_path))

        try:
            driver = webdriver.Chrome(service=service, options=options)
        except WebDriverException as exc:
            raise ChromeAutomationError(f"Failed to start Chrome: {exc.msg or exc}") from exc
        logger.debug("Launched Chrome session (headless=%s).", self.headless)
        return ChromeSession(driver)

    @staticmethod
    def _discover_chrome_binary() -> Optional[Path]:
        candidates: list[Path] = []
        if os.name == "nt":
            candidates.extend(
                [
                    Path("C:/Program Files/Google/Chrome/Application/chrome.exe"),
                    Path("C:/Program Files (x86)/Google/Chrome/Application/chrome.exe"),
                ]
            )
        else:
            for executable in ("google-chrome", "chromium-browser", "chromium"):
                located = shutil.which(executable)
                if located:
                    candidates.append(Path(located))

        for candidate in candidates:
            if candidate.exists():
                return candidate
        return None
