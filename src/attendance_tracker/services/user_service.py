from __future__ import annotations

import sqlite3

from attendance_tracker.data import Database
from attendance_tracker.errors import UserNotFound
from attendance_tracker.models import User


class DuplicateUserError(RuntimeError):
    """Raised when registering a username that already exists."""


_USER_COLUMNS = """
    id, username, portal_username, portal_password,
    overall_attended_classes, overall_total_classes, overall_percentage
"""


class UserService:
    def __init__(self, database: Database) -> None:
        self._database = database

    def create_user(self, username: str, portal_username: str = "", portal_password: str = "") -> int:
        with self._database.connect() as connection:
            try:
                cursor = connection.execute(
                    """
                    INSERT INTO users (username, portal_username, portal_password)
                    VALUES (?, ?, ?)
                    """,
                    (username.strip(), portal_username.strip(), portal_password),
                )
            except sqlite3.IntegrityError as exc:
                raise DuplicateUserError(f"User {username!r} already exists.") from exc
            return int(cursor.lastrowid)

    def update_credentials(self, user_id: int, portal_username: str, portal_password: str) -> None:
        with self._database.connect() as connection:
            cursor = connection.execute(
                """
                UPDATE users
                   SET portal_username = ?,
                       portal_password = ?,
                       updated_at = datetime('now')
                 WHERE id = ?
                """,
                (portal_username.strip(), portal_password, user_id),
            )
            if cursor.rowcount == 0:
                raise UserNotFound(f"User {user_id} not found.")

    def get_user(self, user_id: int) -> User | None:
        with self._database.connect() as connection:
            row = connection.execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?",
                (user_id,),
            ).fetchone()
        return _row_to_user(row) if row else None

    def require_user(self, user_id: int) -> User:
        user = self.get_user(user_id)
        if user is None:
            raise UserNotFound(f"User {user_id} not found.")
        return user

    def list_users(self) -> list[User]:
        with self._database.connect() as connection:
            rows = connection.execute(f"SELECT {_USER_COLUMNS} FROM users ORDER BY id").fetchall()
        return [_row_to_user(row) for row in rows]

    def eligible_users(self) -> list[User]:
        """Users with portal credentials, fewest recorded classes first."""
        with self._database.connect() as connection:
            rows = connection.execute(
                f"""
                SELECT {_USER_COLUMNS}
                  FROM users
                 WHERE portal_username <> ''
                   AND portal_password <> ''
              ORDER BY overall_total_classes ASC, id ASC
                """
            ).fetchall()
        users = (_row_to_user(row) for row in rows)
        return [user for user in users if user.is_eligible]


def _row_to_user(row: sqlite3.Row) -> User:
    return User(
        id=int(row["id"]),
        username=row["username"],
        portal_username=row["portal_username"] or "",
        portal_password=row["portal_password"] or "",
        overall_attended_classes=int(row["overall_attended_classes"] or 0),
        overall_total_classes=int(row["overall_total_classes"] or 0),
        overall_percentage=float(row["overall_percentage"] or 0),
    )
