"""Key/value rows of the ``config`` table."""

from __future__ import annotations

import aiosqlite


class ConfigRepo:
    """CRUD for the ``config`` table."""

    @staticmethod
    async def get(conn: aiosqlite.Connection, key: str) -> str | None:
        async with conn.execute("SELECT value FROM config WHERE key = ?", (key,)) as cursor:
            row = await cursor.fetchone()
        return row[0] if row else None

    @staticmethod
    async def upsert(conn: aiosqlite.Connection, key: str, value: str) -> None:
        await conn.execute(
            """
            INSERT INTO config (key, value) VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value
            """,
            (key, value),
        )

    @staticmethod
    async def delete(conn: aiosqlite.Connection, key: str) -> None:
        await conn.execute("DELETE FROM config WHERE key = ?", (key,))
