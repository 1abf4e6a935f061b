"""Registered hosts, keyed by mac address within a user."""

from __future__ import annotations

import logging
import time

import aiosqlite

from histsync.storage.models import System

logger = logging.getLogger(__name__)


class SystemRepository:
    """Record and look up the hosts a user syncs from."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self.db = db

    async def insert(self, system: System) -> None:
        """Register a host. Registering a known mac again updates it in place."""
        now = int(time.time())
        await self.db.execute(
            """INSERT INTO systems (created, updated, mac, hostname, name, client_version, user_id)
               VALUES (?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT (user_id, mac) DO UPDATE SET
                   updated = excluded.updated,
                   hostname = excluded.hostname,
                   name = excluded.name,
                   client_version = excluded.client_version""",
            (now, now, system.mac, system.hostname, system.name, system.client_version, system.user_id),
        )
        await self.db.commit()
        logger.debug("Registered system mac=%s user_id=%d", system.mac, system.user_id)

    async def get(self, user_id: int, mac: str) -> System:
        """Return the user's system for ``mac``; an empty System if none."""
        cursor = await self.db.execute(
            """SELECT id, created, updated, mac, hostname, name, client_version, user_id
               FROM systems WHERE user_id = ? AND mac = ?""",
            (user_id, mac),
        )
        row = await cursor.fetchone()
        if row is None:
            return System()
        return System(**dict(row))

    async def count(self, user_id: int) -> int:
        cursor = await self.db.execute("SELECT COUNT(*) FROM systems WHERE user_id = ?", (user_id,))
        row = await cursor.fetchone()
        return row[0]
