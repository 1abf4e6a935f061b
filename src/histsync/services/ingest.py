"""Command ingestion."""

from __future__ import annotations

import logging
from dataclasses import replace

from histsync.storage.commands import CommandRepository
from histsync.storage.models import Command, Principal

logger = logging.getLogger(__name__)

# Success and Ctrl-C. Commands that exited with anything else are not kept.
ACCEPTED_EXIT_STATUSES = frozenset({0, 130})


def should_record(exit_status: int) -> bool:
    return exit_status in ACCEPTED_EXIT_STATUSES


async def record_command(
    repo: CommandRepository,
    user_id: int,
    principal: Principal,
    command: Command,
) -> bool:
    """Store a command pushed by a client.

    Returns True if a new row was written. Commands with an unaccepted exit
    status and repeated uuids are dropped without error.
    """
    if not should_record(command.exit_status):
        logger.debug("Dropping command %s with exit status %d", command.uuid, command.exit_status)
        return False

    owned = replace(command, user_id=user_id, system_name=principal.system_name, id=0)
    return await repo.insert(owned)
