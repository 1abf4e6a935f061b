"""Tests for the status aggregator."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from histsync.services.status import StatusAggregator, day_bounds
from histsync.storage.models import Command, System

NOW = datetime(2024, 3, 15, 14, 30, 0)


def ts(moment: datetime) -> int:
    return int(moment.timestamp())


class TestDayBounds:
    def test_bounds_cover_the_local_day(self):
        start, end = day_bounds(NOW)
        assert start == ts(datetime(2024, 3, 15))
        assert end == ts(datetime(2024, 3, 16))
        assert start <= ts(NOW) < end

    def test_midnight_starts_a_new_day(self):
        start, _ = day_bounds(datetime(2024, 3, 15))
        assert start == ts(datetime(2024, 3, 15))


class TestStatusAggregator:
    @pytest.mark.asyncio
    async def test_counts(self, commands, systems, alice, bob):
        yesterday = NOW - timedelta(days=1)
        rows = [
            Command(uuid="y1", command="ls", created=ts(yesterday), process_id=7, process_start_time=1),
            Command(uuid="t1", command="ls", created=ts(NOW - timedelta(hours=2)), process_id=9, process_start_time=2),
            Command(uuid="t2", command="pwd", created=ts(NOW - timedelta(hours=1)), process_id=9, process_start_time=2),
            Command(uuid="t3", command="cd", created=ts(NOW), process_id=9, process_start_time=2),
        ]
        for row in rows:
            row.user_id = alice
            await commands.insert(row)
        await commands.insert(Command(uuid="b1", command="ls", created=ts(NOW), user_id=bob, process_id=9))

        await systems.insert(System(mac="aa", user_id=alice))
        await systems.insert(System(mac="bb", user_id=alice))
        await systems.insert(System(mac="cc", user_id=bob))

        aggregator = StatusAggregator(commands, systems)
        session_start = ts(NOW - timedelta(hours=1, minutes=30))
        status = await aggregator.get("alice", alice, process_id=9, start_time=session_start, now=NOW)

        assert status.username == "alice"
        assert status.total_commands == 4
        assert status.total_sessions == 2
        assert status.total_systems == 2
        assert status.total_commands_today == 3
        assert status.session_name == "9"
        assert status.session_start_time == session_start
        assert status.session_total_commands == 2

    @pytest.mark.asyncio
    async def test_yesterday_excluded_even_if_inserted_today(self, commands, systems, alice):
        await commands.insert(
            Command(uuid="late", command="ls", created=ts(datetime(2024, 3, 14, 23, 59, 59)), user_id=alice)
        )
        status = await StatusAggregator(commands, systems).get("alice", alice, 0, 0, now=NOW)
        assert status.total_commands == 1
        assert status.total_commands_today == 0

    @pytest.mark.asyncio
    async def test_empty_user(self, commands, systems, alice):
        status = await StatusAggregator(commands, systems).get("alice", alice, 1, 0, now=NOW)
        assert status.total_commands == 0
        assert status.total_sessions == 0
        assert status.total_systems == 0
        assert status.session_total_commands == 0

    @pytest.mark.asyncio
    async def test_storage_failure_propagates(self, db, commands, systems, alice):
        import aiosqlite

        await db.execute("DROP TABLE commands")
        with pytest.raises(aiosqlite.Error):
            await StatusAggregator(commands, systems).get("alice", alice, 1, 0, now=NOW)

    @pytest.mark.asyncio
    async def test_session_name_defaults_to_process_id(self, commands, systems, alice):
        status = await StatusAggregator(commands, systems).get("alice", alice, 7, 0, now=NOW)
        assert status.session_name == "7"

    @pytest.mark.asyncio
    async def test_session_name_echoed_verbatim(self, commands, systems, alice):
        status = await StatusAggregator(commands, systems).get("alice", alice, 7, 0, now=NOW, session_name="007")
        assert status.session_name == "007"
