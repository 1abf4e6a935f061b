"""Command history rows: insert, point lookup, delete and counters."""

from __future__ import annotations

import logging

import aiosqlite

from histsync.storage.models import Command

logger = logging.getLogger(__name__)

_COLUMNS = "id, uuid, command, created, path, exit_status, user_id, system_name, process_id, process_start_time"


def _to_command(row: aiosqlite.Row) -> Command:
    return Command(**dict(row))


class CommandRepository:
    """Store of executed commands. Every read and delete is scoped to one user."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self.db = db

    async def insert(self, command: Command) -> bool:
        """Append a command. Returns False if its uuid is already stored.

        The first write for a uuid wins; later writes with the same uuid are
        ignored, whichever user sends them.
        """
        cursor = await self.db.execute(
            """INSERT OR IGNORE INTO commands
                   (uuid, command, created, path, exit_status, user_id, system_name, process_id, process_start_time)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                command.uuid,
                command.command,
                command.created,
                command.path,
                command.exit_status,
                command.user_id,
                command.system_name,
                command.process_id,
                command.process_start_time,
            ),
        )
        await self.db.commit()
        inserted = cursor.rowcount == 1
        if not inserted:
            logger.debug("Duplicate command uuid ignored: %s", command.uuid)
        return inserted

    async def get_by_uuid(self, user_id: int, uuid: str) -> Command | None:
        cursor = await self.db.execute(
            f"SELECT {_COLUMNS} FROM commands WHERE uuid = ? AND user_id = ?",
            (uuid, user_id),
        )
        row = await cursor.fetchone()
        return _to_command(row) if row else None

    async def delete(self, user_id: int, uuid: str) -> bool:
        """Delete the user's command. Missing or foreign uuids are left alone."""
        cursor = await self.db.execute(
            "DELETE FROM commands WHERE uuid = ? AND user_id = ?",
            (uuid, user_id),
        )
        await self.db.commit()
        return cursor.rowcount > 0

    async def fetch(
        self,
        user_id: int,
        path: str = "",
        query: str = "",
        system_name: str = "",
    ) -> list[Command]:
        """Return the user's commands matching the given filters, newest first."""
        clauses = ["user_id = ?"]
        params: list[object] = [user_id]
        if path:
            clauses.append("path = ?")
            params.append(path)
        if query:
            # instr() is case-sensitive, unlike LIKE
            clauses.append("instr(command, ?) > 0")
            params.append(query)
        if system_name:
            clauses.append("system_name = ?")
            params.append(system_name)

        cursor = await self.db.execute(
            f"SELECT {_COLUMNS} FROM commands WHERE {' AND '.join(clauses)} ORDER BY created DESC, id DESC",
            params,
        )
        rows = await cursor.fetchall()
        return [_to_command(row) for row in rows]

    async def count(self, user_id: int) -> int:
        return await self._scalar("SELECT COUNT(*) FROM commands WHERE user_id = ?", (user_id,))

    async def count_between(self, user_id: int, start: int, end: int) -> int:
        """Count commands created in ``[start, end)``."""
        return await self._scalar(
            "SELECT COUNT(*) FROM commands WHERE user_id = ? AND created >= ? AND created < ?",
            (user_id, start, end),
        )

    async def count_sessions(self, user_id: int) -> int:
        """Count distinct (process id, process start time) markers."""
        return await self._scalar(
            "SELECT COUNT(*) FROM (SELECT DISTINCT process_id, process_start_time FROM commands WHERE user_id = ?)",
            (user_id,),
        )

    async def count_session(self, user_id: int, process_id: int, start_time: int) -> int:
        return await self._scalar(
            "SELECT COUNT(*) FROM commands WHERE user_id = ? AND process_id = ? AND created >= ?",
            (user_id, process_id, start_time),
        )

    async def _scalar(self, sql: str, params: tuple) -> int:
        cursor = await self.db.execute(sql, params)
        row = await cursor.fetchone()
        return row[0]
