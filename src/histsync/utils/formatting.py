"""Formatting helpers for terminal output."""

from __future__ import annotations

from datetime import datetime

from histsync.storage.models import Status

MAX_COMMAND_WIDTH = 60


def truncate(text: str, max_len: int = MAX_COMMAND_WIDTH) -> str:
    """Shorten text to ``max_len`` characters, marking the cut with an ellipsis."""
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def format_timestamp(ts: int) -> str:
    """Format a UNIX timestamp in local time."""
    if ts <= 0:
        return "-"
    return datetime.fromtimestamp(ts).strftime("%Y-%m-%d %H:%M:%S")


def format_exit_status(status: int) -> str:
    if status == 0:
        return "OK"
    if status == 130:
        return "INT"
    return f"ERR({status})"


def status_rows(status: Status) -> list[tuple[str, str]]:
    """Label/value pairs describing a status, in display order."""
    return [
        ("Username", status.username),
        ("Total commands", str(status.total_commands)),
        ("Total sessions", str(status.total_sessions)),
        ("Total systems", str(status.total_systems)),
        ("Commands today", str(status.total_commands_today)),
    ]
