"""Per-user usage counters for the client status view."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from histsync.storage.commands import CommandRepository
from histsync.storage.models import Status
from histsync.storage.systems import SystemRepository

logger = logging.getLogger(__name__)


def day_bounds(now: datetime | None = None) -> tuple[int, int]:
    """Return UNIX times of the start of the server's local day and of the next one."""
    now = now or datetime.now()
    if now.tzinfo is not None:
        now = now.astimezone().replace(tzinfo=None)
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return int(midnight.timestamp()), int((midnight + timedelta(days=1)).timestamp())


class StatusAggregator:
    """Compute a :class:`Status` from the command and system stores."""

    def __init__(self, commands: CommandRepository, systems: SystemRepository) -> None:
        self.commands = commands
        self.systems = systems

    async def get(
        self,
        username: str,
        user_id: int,
        process_id: int,
        start_time: int,
        now: datetime | None = None,
        session_name: str | None = None,
    ) -> Status:
        """Build the status for one user and one running shell session.

        ``session_name`` is echoed back as given; it defaults to the process id.

        Storage errors are not caught here.
        """
        day_start, day_end = day_bounds(now)
        status = Status(
            username=username,
            total_commands=await self.commands.count(user_id),
            # Sessions are not modelled yet; distinct process markers stand in for them.
            total_sessions=await self.commands.count_sessions(user_id),
            total_systems=await self.systems.count(user_id),
            total_commands_today=await self.commands.count_between(user_id, day_start, day_end),
            session_name=session_name if session_name is not None else str(process_id),
            session_start_time=start_time,
            session_total_commands=await self.commands.count_session(user_id, process_id, start_time),
        )
        logger.debug("Status for %s: %s", username, status)
        return status
