"""Data models for histsync."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered account. ``system_name`` is per-request and never stored."""

    id: int = 0
    username: str = ""
    email: str = ""
    password: str = ""
    system_name: str = ""


@dataclass
class System:
    """A host registered by a user, keyed by its mac address.

    An instance with an empty ``mac`` stands for "not found".
    """

    id: int = 0
    created: int = 0
    updated: int = 0
    mac: str = ""
    hostname: str | None = None
    name: str | None = None
    client_version: str | None = None
    user_id: int = 0


@dataclass
class Command:
    """A single executed shell command."""

    uuid: str = ""
    command: str = ""
    created: int = 0
    path: str = ""
    exit_status: int = 0
    user_id: int = 0
    system_name: str = ""
    process_id: int = 0
    process_start_time: int = 0
    id: int = 0


@dataclass
class Query:
    # Reserved for grouping commands by shell session; nothing reads it yet.
    uuid: str = ""
    command: str = ""
    created: int = 0
    path: str = ""
    exit_status: int = 0
    username: str = ""
    system_name: str = ""
    session_id: str = ""


@dataclass
class Status:
    """Usage counters computed on every request."""

    username: str = ""
    total_commands: int = 0
    total_sessions: int = 0
    total_systems: int = 0
    total_commands_today: int = 0
    session_name: str = ""
    session_start_time: int = 0
    session_total_commands: int = 0


@dataclass(frozen=True)
class Principal:
    """Verified identity attached to a request by token verification."""

    username: str
    system_name: str = ""
