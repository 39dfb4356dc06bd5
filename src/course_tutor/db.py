"""Key-value persistence primitive and connection management."""
import os
from pathlib import Path

import aiosqlite

DEFAULT_DB_PATH = os.environ.get(
    "COURSE_TUTOR_DB", str(Path.home() / ".course_tutor" / "tutor.db")
)

SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS user_settings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    key TEXT NOT NULL UNIQUE,
    value TEXT
);
"""


async def get_connection(db_path: str = DEFAULT_DB_PATH) -> aiosqlite.Connection:
    """Return an open connection with row factory set."""
    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row
    return conn


async def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = await get_connection(db_path)
    try:
        await conn.executescript(SCHEMA)
        await conn.commit()
    finally:
        await conn.close()


async def get_item(db_path: str, key: str) -> str | None:
    conn = await get_connection(db_path)
    try:
        rows = await conn.execute_fetchall("SELECT value FROM kv_store WHERE key = ?", (key,))
    finally:
        await conn.close()
    return rows[0]["value"] if rows else None


async def set_items(db_path: str, items: dict[str, str]) -> None:
    """Write every key in one transaction; readers see all values or none."""
    conn = await get_connection(db_path)
    try:
        await conn.executemany(
            "INSERT INTO kv_store (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=excluded.value",
            list(items.items()),
        )
        await conn.commit()
    finally:
        await conn.close()


async def set_item(db_path: str, key: str, value: str) -> None:
    await set_items(db_path, {key: value})


async def multi_remove(db_path: str, keys: list[str]) -> None:
    conn = await get_connection(db_path)
    try:
        await conn.executemany("DELETE FROM kv_store WHERE key = ?", [(k,) for k in keys])
        await conn.commit()
    finally:
        await conn.close()


async def get_setting(db_path: str, key: str, default: str | None = None) -> str | None:
    conn = await get_connection(db_path)
    try:
        rows = await conn.execute_fetchall("SELECT value FROM user_settings WHERE key = ?", (key,))
    finally:
        await conn.close()
    return rows[0]["value"] if rows else default


async def set_setting(db_path: str, key: str, value: str) -> None:
    conn = await get_connection(db_path)
    try:
        await conn.execute(
            "INSERT INTO user_settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=?",
            (key, value, value),
        )
        await conn.commit()
    finally:
        await conn.close()
