"""Tests for the command store."""

from __future__ import annotations

import pytest

from histsync.storage.models import Command


def make_command(uuid: str, user_id: int, text: str = "ls", created: int = 1000, **kwargs) -> Command:
    return Command(uuid=uuid, command=text, created=created, user_id=user_id, **kwargs)


class TestCommandRepository:
    @pytest.mark.asyncio
    async def test_insert_and_get_by_uuid(self, commands, alice):
        inserted = await commands.insert(
            make_command("u1", alice, "git status", path="/src", system_name="laptop", process_id=42)
        )
        assert inserted

        command = await commands.get_by_uuid(alice, "u1")
        assert command is not None
        assert command.command == "git status"
        assert command.path == "/src"
        assert command.system_name == "laptop"
        assert command.process_id == 42
        assert command.user_id == alice

    @pytest.mark.asyncio
    async def test_duplicate_uuid_is_ignored(self, commands, alice):
        assert await commands.insert(make_command("u1", alice, "first"))
        assert not await commands.insert(make_command("u1", alice, "second"))

        assert await commands.count(alice) == 1
        assert (await commands.get_by_uuid(alice, "u1")).command == "first"

    @pytest.mark.asyncio
    async def test_get_by_uuid_hides_other_users(self, commands, alice, bob):
        await commands.insert(make_command("u1", alice))
        assert await commands.get_by_uuid(bob, "u1") is None

    @pytest.mark.asyncio
    async def test_delete(self, commands, alice):
        await commands.insert(make_command("u1", alice))
        assert await commands.delete(alice, "u1")
        assert await commands.get_by_uuid(alice, "u1") is None
        assert await commands.count(alice) == 0

    @pytest.mark.asyncio
    async def test_delete_foreign_uuid_is_noop(self, commands, alice, bob):
        await commands.insert(make_command("u1", alice))
        assert not await commands.delete(bob, "u1")
        assert await commands.count(alice) == 1

    @pytest.mark.asyncio
    async def test_delete_missing_uuid_is_noop(self, commands, alice):
        assert not await commands.delete(alice, "missing")

    @pytest.mark.asyncio
    async def test_fetch_filters_in_sql(self, commands, alice, bob):
        await commands.insert(make_command("u1", alice, "ls -la", created=1, path="/tmp", system_name="a"))
        await commands.insert(make_command("u2", alice, "LS", created=2, path="/tmp", system_name="b"))
        await commands.insert(make_command("u3", alice, "ls", created=3, path="/tmp/sub", system_name="a"))
        await commands.insert(make_command("u4", bob, "ls", created=4, path="/tmp", system_name="a"))

        assert [c.uuid for c in await commands.fetch(alice)] == ["u3", "u2", "u1"]
        assert [c.uuid for c in await commands.fetch(alice, path="/tmp")] == ["u2", "u1"]
        assert [c.uuid for c in await commands.fetch(alice, query="ls")] == ["u3", "u1"]
        assert [c.uuid for c in await commands.fetch(alice, system_name="a")] == ["u3", "u1"]

    @pytest.mark.asyncio
    async def test_counters(self, commands, alice):
        await commands.insert(make_command("u1", alice, created=100, process_id=1, process_start_time=90))
        await commands.insert(make_command("u2", alice, created=110, process_id=1, process_start_time=90))
        await commands.insert(make_command("u3", alice, created=120, process_id=2, process_start_time=115))

        assert await commands.count(alice) == 3
        assert await commands.count_between(alice, 105, 120) == 1
        assert await commands.count_sessions(alice) == 2
        assert await commands.count_session(alice, 1, 105) == 1
        assert await commands.count_session(alice, 2, 0) == 1
