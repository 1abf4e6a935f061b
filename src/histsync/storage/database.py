"""SQLite database management for synchronized command history."""

from __future__ import annotations

import logging
import secrets
import time
from pathlib import Path

import aiosqlite

logger = logging.getLogger(__name__)

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT NOT NULL UNIQUE,
        email TEXT NOT NULL UNIQUE,
        password TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS systems (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        created INTEGER NOT NULL,
        updated INTEGER NOT NULL,
        mac TEXT NOT NULL,
        hostname TEXT,
        name TEXT,
        client_version TEXT,
        user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        UNIQUE (user_id, mac)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS commands (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        uuid TEXT NOT NULL UNIQUE,
        command TEXT NOT NULL,
        created INTEGER NOT NULL,
        path TEXT NOT NULL DEFAULT '',
        exit_status INTEGER NOT NULL DEFAULT 0,
        system_name TEXT NOT NULL DEFAULT '',
        process_id INTEGER NOT NULL DEFAULT 0,
        process_start_time INTEGER NOT NULL DEFAULT 0,
        user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS config (
        id INTEGER PRIMARY KEY CHECK (id = 1),
        secret TEXT NOT NULL,
        created INTEGER NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_commands_user_created ON commands(user_id, created)",
    "CREATE INDEX IF NOT EXISTS idx_commands_user_process ON commands(user_id, process_id)",
)


async def connect(db_path: str) -> aiosqlite.Connection:
    """Open the database and create tables."""
    if db_path == ":memory:":
        target = db_path
    else:
        resolved = Path(db_path).expanduser().resolve()
        resolved.parent.mkdir(parents=True, exist_ok=True)
        target = str(resolved)

    db = await aiosqlite.connect(target)
    db.row_factory = aiosqlite.Row
    await db.execute("PRAGMA journal_mode = WAL")
    await db.execute("PRAGMA foreign_keys = ON")

    for statement in SCHEMA:
        await db.execute(statement)
    await db.commit()
    logger.info("Database initialized: %s", target)
    return db


async def close(db: aiosqlite.Connection) -> None:
    """Close the database connection."""
    await db.close()
    logger.info("Database closed")


async def get_secret(db: aiosqlite.Connection) -> str:
    """Return the stored token signing secret, generating it on first use."""
    await db.execute(
        "INSERT OR IGNORE INTO config (id, secret, created) VALUES (1, ?, ?)",
        (secrets.token_urlsafe(48), int(time.time())),
    )
    await db.commit()
    cursor = await db.execute("SELECT secret FROM config WHERE id = 1")
    row = await cursor.fetchone()
    return row["secret"]
