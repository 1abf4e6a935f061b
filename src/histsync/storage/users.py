"""User accounts: existence checks and username to id resolution."""

from __future__ import annotations

import logging

import aiosqlite

from histsync.storage.models import User

logger = logging.getLogger(__name__)


class ConflictError(Exception):
    """Raised when a user with the same username or email already exists."""


class UserRepository:
    """Resolve authenticated usernames to the numeric id that scopes all other data."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self.db = db

    async def _count(self, column: str, value: str) -> int:
        cursor = await self.db.execute(f"SELECT COUNT(*) FROM users WHERE {column} = ?", (value,))
        row = await cursor.fetchone()
        return row[0]

    async def user_exists(self, username: str) -> bool:
        return await self._count("username", username) > 0

    async def email_exists(self, email: str) -> bool:
        return await self._count("email", email) > 0

    async def username_exists(self, username: str) -> bool:
        """True only when exactly one account carries the username."""
        return await self._count("username", username) == 1

    async def create(self, user: User) -> int:
        """Insert a new user. ``user.password`` must already be hashed."""
        try:
            cursor = await self.db.execute(
                "INSERT INTO users (username, email, password) VALUES (?, ?, ?)",
                (user.username, user.email, user.password),
            )
            await self.db.commit()
        except aiosqlite.IntegrityError as e:
            # The failed statement changed nothing. The connection is shared,
            # so a rollback here would discard other requests' pending writes.
            raise ConflictError(f"User {user.username!r} or email {user.email!r} already registered") from e
        logger.info("Created user %s", user.username)
        return cursor.lastrowid

    async def get_id(self, username: str) -> int:
        """Return the user's id, or 0 when no such user exists."""
        cursor = await self.db.execute("SELECT id FROM users WHERE username = ?", (username,))
        row = await cursor.fetchone()
        return row["id"] if row else 0

    async def get_password_hash(self, username: str) -> str | None:
        cursor = await self.db.execute("SELECT password FROM users WHERE username = ?", (username,))
        row = await cursor.fetchone()
        return row["password"] if row else None
