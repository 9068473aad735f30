"""
Runtime settings moderators control: the inbox channel and the block role.

Values live in the ``config`` table so they survive restarts. The router
receives a ``RelayConfig`` instance rather than reading globals, which is
what lets tests hand it any configuration, including an empty one.
"""

from __future__ import annotations

from modmail.database.db_connection import ConnectionManager
from modmail.datatypes.discord_datatypes import ChannelID, RoleID
from modmail.repositories.config_repo import ConfigRepo
from modmail.util.logger import get_logger

logger = get_logger("relay_config")

INBOX_KEY = "inbox"
BLOCK_ROLE_KEY = "blockrole"


class RelayConfig:
    """Typed accessors over the key/value ``config`` table."""

    def __init__(self, db: ConnectionManager) -> None:
        self._db = db

    async def _get(self, key: str) -> str | None:
        async with self._db.read() as conn:
            return await ConfigRepo.get(conn, key)

    async def _set(self, key: str, value: str) -> None:
        async with self._db.transaction() as conn:
            await ConfigRepo.upsert(conn, key, value)
        logger.info("[RELAY CONFIG] %s set to %s", key, value)

    async def _unset(self, key: str) -> None:
        async with self._db.transaction() as conn:
            await ConfigRepo.delete(conn, key)
        logger.info("[RELAY CONFIG] %s unset", key)

    # ------------------------------------------------------------------
    # Inbox
    # ------------------------------------------------------------------

    async def get_inbox(self) -> ChannelID | None:
        value = await self._get(INBOX_KEY)
        return ChannelID(value) if value is not None else None

    async def set_inbox(self, channel_id: ChannelID) -> None:
        await self._set(INBOX_KEY, str(channel_id))

    async def unset_inbox(self) -> None:
        await self._unset(INBOX_KEY)

    # ------------------------------------------------------------------
    # Block role
    # ------------------------------------------------------------------

    async def get_block_role(self) -> RoleID | None:
        value = await self._get(BLOCK_ROLE_KEY)
        return RoleID(value) if value is not None else None

    async def set_block_role(self, role_id: RoleID) -> None:
        await self._set(BLOCK_ROLE_KEY, str(role_id))

    async def unset_block_role(self) -> None:
        await self._unset(BLOCK_ROLE_KEY)
