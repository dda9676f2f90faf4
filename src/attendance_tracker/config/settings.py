from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parents[3]
ENV_PATH = BASE_DIR / ".env"
load_dotenv(ENV_PATH)

APP_NAME = os.getenv("APP_NAME", "Portal Attendance Tracker")
APP_DATA_DIR = Path(
    os.getenv("APP_DATA_DIR", str(Path(os.path.expanduser("~")) / ".attendance-tracker"))
).expanduser()


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    app_name: str = APP_NAME
    database_path: Path = Path(
        os.getenv("DATABASE_PATH", str(APP_DATA_DIR / "attendance.db"))
    )
    portal_login_url: str = os.getenv(
        "PORTAL_LOGIN_URL", "https://online.nitjsr.ac.in/endsem/Login.aspx"
    )
    portal_attendance_url: str = os.getenv(
        "PORTAL_ATTENDANCE_URL",
        "https://online.nitjsr.ac.in/endsem/StudentAttendance/ClassAttendance.aspx",
    )
    navigation_timeout_seconds: float = float(os.getenv("NAVIGATION_TIMEOUT_SECONDS", "30"))
    user_pacing_seconds: float = float(os.getenv("USER_PACING_SECONDS", "30"))
    error_pacing_seconds: float = float(os.getenv("ERROR_PACING_SECONDS", "5"))
    sweep_interval_seconds: float = float(os.getenv("SWEEP_INTERVAL_SECONDS", "3600"))
    selenium_driver_path: Path | None = (
        Path(driver_path) if (driver_path := os.getenv("SELENIUM_DRIVER_PATH")) else None
    )
    chrome_binary_path: Path | None = (
        Path(binary_path) if (binary_path := os.getenv("CHROME_BINARY_PATH")) else None
    )
    chrome_headless: bool = _env_flag("CHROME_HEADLESS", True)
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    def describe(self) -> str:
        return (
            f"Settings(app_name={self.app_name}, "
            f"database_path={self.database_path}, "
            f"portal_login_url={self.portal_login_url}, "
            f"portal_attendance_url={self.portal_attendance_url}, "
            f"navigation_timeout_seconds={self.navigation_timeout_seconds}, "
            f"user_pacing_seconds={self.user_pacing_seconds}, "
            f"error_pacing_seconds={self.error_pacing_seconds}, "
            f"sweep_interval_seconds={self.sweep_interval_seconds}, "
            f"selenium_driver_path={self.selenium_driver_path}, "
            f"chrome_binary_path={self.chrome_binary_path}, "
            f"chrome_headless={self.chrome_headless}, "
            f"log_level={self.log_level})"
        )


settings = Settings()
