"""Tests for database module."""

from __future__ import annotations

import pytest

from histsync.storage import database


class TestDatabase:
    @pytest.mark.asyncio
    async def test_connect_creates_tables(self, tmp_path):
        db = await database.connect(str(tmp_path / "nested" / "test.db"))
        cursor = await db.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        tables = {row["name"] for row in await cursor.fetchall()}
        assert {"users", "systems", "commands", "config"} <= tables
        await database.close(db)

    @pytest.mark.asyncio
    async def test_connect_is_idempotent(self, tmp_path):
        path = str(tmp_path / "test.db")
        db = await database.connect(path)
        await database.close(db)
        db = await database.connect(path)
        await database.close(db)

    @pytest.mark.asyncio
    async def test_secret_is_generated_once(self, db):
        first = await database.get_secret(db)
        second = await database.get_secret(db)
        assert first
        assert first == second

    @pytest.mark.asyncio
    async def test_secret_survives_reconnect(self, tmp_path):
        path = str(tmp_path / "test.db")
        db = await database.connect(path)
        secret = await database.get_secret(db)
        await database.close(db)

        db = await database.connect(path)
        assert await database.get_secret(db) == secret
        await database.close(db)
