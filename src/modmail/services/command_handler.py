"""
Moderator command handling.

Slash commands are translated into typed command objects by the cogs and
dispatched here through a table keyed by command type. Each handler returns
the reply shown to the moderator. ``UnknownCodename`` and
``ConfigurationMissing`` propagate so the cog can show them verbatim.

Close and Block run on the member's relay queue, after any of their messages
already in flight, so a DM is never relayed into a thread that was closed
underneath it.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Dict

from modmail.configuration.relay_config import RelayConfig
from modmail.datatypes.relay_events import (
    Block,
    Close,
    ModeratorCommand,
    SetBlockRole,
    SetInbox,
    UnsetBlockRole,
    UnsetInbox,
    user_queue_key,
)
from modmail.errors import UnknownCodename
from modmail.services.relay_queue_service import RelayQueueService
from modmail.services.relay_router import ClosedConversation, RelayRouter
from modmail.util.logger import get_logger

logger = get_logger("command_handler")


def normalize_codename(raw: str) -> str:
    """Codenames are lowercase; tolerate stray whitespace and capitals from moderators."""
    return raw.strip().lower()


class CommandHandler:
    """Executes moderator commands and phrases the replies."""

    def __init__(
        self,
        router: RelayRouter,
        config: RelayConfig,
        queue_service: RelayQueueService | None = None,
    ) -> None:
        self.router = router
        self.config = config
        self.queue_service = queue_service
        self._dispatch: Dict[type, Callable[..., Awaitable[str]]] = {
            Close: self._close,
            Block: self._block,
            SetInbox: self._set_inbox,
            UnsetInbox: self._unset_inbox,
            SetBlockRole: self._set_block_role,
            UnsetBlockRole: self._unset_block_role,
        }

    async def handle(self, command: ModeratorCommand) -> str:
        handler = self._dispatch.get(type(command))
        if handler is None:
            raise TypeError(f"Unsupported command: {type(command).__name__}")
        logger.debug("[COMMAND HANDLER] Handling %r", command)
        return await handler(command)

    async def _on_member_queue(
        self, codename: str, action: Callable[..., Awaitable[ClosedConversation]]
    ) -> ClosedConversation:
        """Run ``action`` for ``codename`` on its member's queue, or directly without one."""
        if self.queue_service is None:
            return await action(codename)

        conversation = await self.router.store.find_by_codename(codename)
        if conversation is None:
            raise UnknownCodename(codename)
        user_id = conversation.user_id
        return await self.queue_service.run_exclusive(
            user_queue_key(user_id), lambda: action(codename, user_id=user_id)
        )

    async def _close(self, command: Close) -> str:
        outcome = await self._on_member_queue(normalize_codename(command.codename), self.router.close)
        reply = f"Closed **{outcome.conversation.codename}**."
        if not outcome.thread_archived:
            reply += " The thread could not be archived; archive it manually."
        return reply

    async def _block(self, command: Block) -> str:
        outcome = await self._on_member_queue(normalize_codename(command.codename), self.router.block)
        reply = f"Blocked and closed **{outcome.conversation.codename}**."
        if not outcome.role_assigned:
            reply += (
                " Assigning the block role failed, so this user can still write in;"
                " check the bot's role permissions."
            )
        if not outcome.thread_archived:
            reply += " The thread could not be archived; archive it manually."
        return reply

    async def _set_inbox(self, command: SetInbox) -> str:
        await self.config.set_inbox(command.channel_id)
        return f"New conversations will open threads in <#{command.channel_id}>."

    async def _unset_inbox(self, command: UnsetInbox) -> str:
        await self.config.unset_inbox()
        return "Inbox unset. New conversations can't be opened until one is set again."

    async def _set_block_role(self, command: SetBlockRole) -> str:
        await self.config.set_block_role(command.role_id)
        return f"Blocked users will receive <@&{command.role_id}>."

    async def _unset_block_role(self, command: UnsetBlockRole) -> str:
        await self.config.unset_block_role()
        return "Block role unset. `/block` is unavailable until one is set again."
