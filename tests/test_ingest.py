"""Tests for command ingestion."""

from __future__ import annotations

import pytest

from histsync.services.ingest import record_command, should_record
from histsync.storage.models import Command, Principal

PRINCIPAL = Principal(username="alice", system_name="laptop")


class TestShouldRecord:
    def test_success_and_interrupt_accepted(self):
        assert should_record(0)
        assert should_record(130)

    def test_other_statuses_dropped(self):
        for status in (1, 2, 127, 129, 131, -1):
            assert not should_record(status)


class TestRecordCommand:
    @pytest.mark.asyncio
    async def test_failed_command_is_noop(self, commands, alice):
        stored = await record_command(commands, alice, PRINCIPAL, Command(uuid="u1", command="false", exit_status=1))
        assert not stored
        assert await commands.count(alice) == 0

    @pytest.mark.asyncio
    async def test_accepted_statuses_are_stored(self, commands, alice):
        for i, status in enumerate((0, 130)):
            before = await commands.count(alice)
            stored = await record_command(
                commands, alice, PRINCIPAL, Command(uuid=f"u{i}", command="sleep 5", exit_status=status)
            )
            assert stored
            assert await commands.count(alice) == before + 1
            assert await commands.get_by_uuid(alice, f"u{i}") is not None

    @pytest.mark.asyncio
    async def test_stamped_with_owner_and_system(self, commands, alice):
        await record_command(
            commands, alice, PRINCIPAL, Command(uuid="u1", command="ls", user_id=999, system_name="spoofed")
        )
        command = await commands.get_by_uuid(alice, "u1")
        assert command.user_id == alice
        assert command.system_name == "laptop"

    @pytest.mark.asyncio
    async def test_repeated_uuid_stored_once(self, commands, alice):
        command = Command(uuid="u1", command="ls")
        assert await record_command(commands, alice, PRINCIPAL, command)
        assert not await record_command(commands, alice, PRINCIPAL, command)
        assert await commands.count(alice) == 1
