"""
Durable mapping between members, codenames and moderator threads.

Every mutation runs inside ``ConnectionManager.transaction()``, which is
serialised across the process, so the duplicate checks in ``create`` and the
insert that follows are a single atomic unit. The table's UNIQUE constraints
back this up; an ``IntegrityError`` is translated into the same duplicate
errors the explicit checks raise.
"""

from __future__ import annotations

from typing import List

import aiosqlite

from modmail.database.db_connection import ConnectionManager
from modmail.datatypes.conversation import Conversation
from modmail.datatypes.discord_datatypes import ChannelID, UserID
from modmail.errors import DuplicateCodename, DuplicateUser
from modmail.repositories.conversation_repo import ConversationRepo
from modmail.util.logger import get_logger

logger = get_logger("identity_store")


class IdentityStore:
    """Active conversations, keyed three ways."""

    def __init__(self, db: ConnectionManager) -> None:
        self._db = db

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def find_by_user(self, user_id: UserID) -> Conversation | None:
        async with self._db.read() as conn:
            return await ConversationRepo.get_by_user(conn, user_id)

    async def find_by_codename(self, codename: str) -> Conversation | None:
        async with self._db.read() as conn:
            return await ConversationRepo.get_by_codename(conn, codename)

    async def find_by_thread(self, thread_id: ChannelID) -> Conversation | None:
        async with self._db.read() as conn:
            return await ConversationRepo.get_by_thread(conn, thread_id)

    async def active_codenames(self) -> set[str]:
        """Codenames currently held; the exclusion set for the generator."""
        async with self._db.read() as conn:
            return await ConversationRepo.get_codenames(conn)

    async def list_active(self) -> List[Conversation]:
        async with self._db.read() as conn:
            return await ConversationRepo.get_all(conn)

    async def count(self) -> int:
        async with self._db.read() as conn:
            return await ConversationRepo.count(conn)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create(self, user_id: UserID, codename: str, thread_id: ChannelID) -> Conversation:
        """
        Bind ``user_id`` to ``codename`` and ``thread_id``.

        Raises:
            DuplicateUser: ``user_id`` already has an active conversation.
            DuplicateCodename: ``codename`` is held by another active conversation.
        """
        async with self._db.transaction() as conn:
            if await ConversationRepo.get_by_user(conn, user_id) is not None:
                raise DuplicateUser(user_id)
            if await ConversationRepo.get_by_codename(conn, codename) is not None:
                raise DuplicateCodename(codename)
            try:
                conversation = await ConversationRepo.insert(
                    conn, Conversation(user_id=user_id, codename=codename, thread_id=thread_id)
                )
            except aiosqlite.IntegrityError as exc:
                # thread_id collisions would be a platform bug; surface them as-is
                message = str(exc)
                if "user_id" in message:
                    raise DuplicateUser(user_id) from exc
                if "codename" in message:
                    raise DuplicateCodename(codename) from exc
                raise

        logger.info(
            "[IDENTITY STORE] Opened conversation '%s' (thread %s)", codename, thread_id
        )
        return conversation

    async def remove(self, conversation: Conversation) -> bool:
        """
        Delete exactly the row ``conversation`` was read from.

        Returns False when that row is already gone. A codename or thread that
        has since been bound to a newer conversation is left untouched, because
        ``conversation_id`` is never reused.
        """
        if conversation.conversation_id is None:
            raise ValueError("conversation was not read from the store")
        async with self._db.transaction() as conn:
            removed = await ConversationRepo.delete(conn, conversation.conversation_id)

        if removed:
            logger.info("[IDENTITY STORE] Removed conversation '%s'", conversation.codename)
        return removed

    async def remove_by_codename(self, codename: str) -> Conversation | None:
        """Delete and return the conversation holding ``codename``, if any."""
        async with self._db.transaction() as conn:
            conversation = await ConversationRepo.get_by_codename(conn, codename)
            if conversation is None:
                return None
            await ConversationRepo.delete(conn, conversation.conversation_id)  # type: ignore[arg-type]

        logger.info("[IDENTITY STORE] Removed conversation '%s'", codename)
        return conversation

    async def remove_by_thread(self, thread_id: ChannelID) -> Conversation | None:
        """Delete and return the conversation bound to ``thread_id``, if any."""
        async with self._db.transaction() as conn:
            conversation = await ConversationRepo.get_by_thread(conn, thread_id)
            if conversation is None:
                return None
            await ConversationRepo.delete(conn, conversation.conversation_id)  # type: ignore[arg-type]

        logger.info(
            "[IDENTITY STORE] Removed conversation '%s' bound to thread %s",
            conversation.codename,
            thread_id,
        )
        return conversation
