"""
Persistent storage for active conversations.

IDs are stored as TEXT so snowflakes round-trip exactly; ``created_at`` is
INTEGER unix seconds.
"""

from __future__ import annotations

from typing import List

import aiosqlite

from modmail.datatypes.conversation import Conversation
from modmail.datatypes.discord_datatypes import ChannelID, UserID

_COLUMNS = "conversation_id, user_id, codename, thread_id, created_at"


def _to_conversation(row) -> Conversation:
    return Conversation(
        conversation_id=row[0],
        user_id=UserID(row[1]),
        codename=row[2],
        thread_id=ChannelID(row[3]),
        created_at=row[4],
    )


class ConversationRepo:
    """Low-level CRUD for the ``conversations`` table."""

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @staticmethod
    async def insert(conn: aiosqlite.Connection, conversation: Conversation) -> Conversation:
        """Insert a row and return it with its assigned ``conversation_id``."""
        cursor = await conn.execute(
            "INSERT INTO conversations (user_id, codename, thread_id, created_at) VALUES (?, ?, ?, ?)",
            (
                str(conversation.user_id),
                conversation.codename,
                str(conversation.thread_id),
                conversation.created_at,
            ),
        )
        return Conversation(
            conversation_id=cursor.lastrowid,
            user_id=conversation.user_id,
            codename=conversation.codename,
            thread_id=conversation.thread_id,
            created_at=conversation.created_at,
        )

    @staticmethod
    async def delete(conn: aiosqlite.Connection, conversation_id: int) -> bool:
        """Delete one row by id; False when it was already gone."""
        cursor = await conn.execute("DELETE FROM conversations WHERE conversation_id = ?", (conversation_id,))
        return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @staticmethod
    async def get_by_user(conn: aiosqlite.Connection, user_id: UserID) -> Conversation | None:
        async with conn.execute(
            f"SELECT {_COLUMNS} FROM conversations WHERE user_id = ?", (str(user_id),)
        ) as cursor:
            row = await cursor.fetchone()
        return _to_conversation(row) if row else None

    @staticmethod
    async def get_by_codename(conn: aiosqlite.Connection, codename: str) -> Conversation | None:
        async with conn.execute(
            f"SELECT {_COLUMNS} FROM conversations WHERE codename = ?", (codename,)
        ) as cursor:
            row = await cursor.fetchone()
        return _to_conversation(row) if row else None

    @staticmethod
    async def get_by_thread(conn: aiosqlite.Connection, thread_id: ChannelID) -> Conversation | None:
        async with conn.execute(
            f"SELECT {_COLUMNS} FROM conversations WHERE thread_id = ?", (str(thread_id),)
        ) as cursor:
            row = await cursor.fetchone()
        return _to_conversation(row) if row else None

    @staticmethod
    async def get_all(conn: aiosqlite.Connection) -> List[Conversation]:
        """All active conversations, oldest first."""
        async with conn.execute(
            f"SELECT {_COLUMNS} FROM conversations ORDER BY created_at, conversation_id"
        ) as cursor:
            rows = await cursor.fetchall()
        return [_to_conversation(row) for row in rows]

    @staticmethod
    async def get_codenames(conn: aiosqlite.Connection) -> set[str]:
        async with conn.execute("SELECT codename FROM conversations") as cursor:
            rows = await cursor.fetchall()
        return {row[0] for row in rows}

    @staticmethod
    async def count(conn: aiosqlite.Connection) -> int:
        async with conn.execute("SELECT COUNT(*) FROM conversations") as cursor:
            row = await cursor.fetchone()
        return int(row[0]) if row else 0
