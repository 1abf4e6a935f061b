"""History search: filtering, de-duplication, ordering and limiting.

The filtering rules live in :func:`search`, a pure function over command
records, so they can be exercised without a database. :func:`search_history`
pulls candidate rows from the store and hands them to it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from histsync.storage.commands import CommandRepository
from histsync.storage.models import Command

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100


def parse_limit(raw: str | None) -> int:
    """Parse a client supplied limit. Anything unusable falls back to the default."""
    if not raw:
        return DEFAULT_LIMIT
    try:
        limit = int(raw)
    except ValueError:
        return DEFAULT_LIMIT
    return limit if limit > 0 else DEFAULT_LIMIT


def parse_unique(raw: str | None) -> bool:
    return raw == "true"


@dataclass(frozen=True)
class SearchFilter:
    """Parameters of a history search. Empty strings disable a filter."""

    path: str = ""
    query: str = ""
    system_name: str = ""
    limit: int = DEFAULT_LIMIT
    unique: bool = False

    @classmethod
    def from_params(
        cls,
        path: str | None = None,
        query: str | None = None,
        system_name: str | None = None,
        limit: str | None = None,
        unique: str | None = None,
    ) -> SearchFilter:
        """Build a filter from raw query-string values."""
        return cls(
            path=path or "",
            query=query or "",
            system_name=system_name or "",
            limit=parse_limit(limit),
            unique=parse_unique(unique),
        )


def _matches(command: Command, user_id: int, search_filter: SearchFilter) -> bool:
    if command.user_id != user_id:
        return False
    if search_filter.path and command.path != search_filter.path:
        return False
    if search_filter.query and search_filter.query not in command.command:
        return False
    if search_filter.system_name and command.system_name != search_filter.system_name:
        return False
    return True


def search(records: Iterable[Command], user_id: int, search_filter: SearchFilter) -> list[Command]:
    """Return the user's commands matching ``search_filter``, newest first.

    Ties on ``created`` go to the later inserted row. With ``unique`` set only
    the most recent occurrence of each command text is kept. The limit is
    applied last.
    """
    matched = [c for c in records if _matches(c, user_id, search_filter)]
    matched.sort(key=lambda c: (c.created, c.id), reverse=True)

    if search_filter.unique:
        seen: set[str] = set()
        deduped: list[Command] = []
        for command in matched:
            if command.command in seen:
                continue
            seen.add(command.command)
            deduped.append(command)
        matched = deduped

    return matched[: search_filter.limit]


async def search_history(repo: CommandRepository, user_id: int, search_filter: SearchFilter) -> list[Command]:
    """Run a search against the command store."""
    candidates = await repo.fetch(
        user_id,
        path=search_filter.path,
        query=search_filter.query,
        system_name=search_filter.system_name,
    )
    results = search(candidates, user_id, search_filter)
    logger.debug("Search for user_id=%d matched %d of %d rows", user_id, len(results), len(candidates))
    return results
