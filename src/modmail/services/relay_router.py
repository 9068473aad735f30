"""
Relay Router: the state machine at the centre of Modmail.

The router holds no state of its own between events. For every inbound event
it reads the identity store, performs at most one relay action on the chat
platform, and mutates the store only after the platform action that a new
row depends on (thread creation) has succeeded.

Transitions
-----------
* UserMessage from a blocked member     -> dropped
* UserMessage, no active conversation   -> new codename + thread, row, relay
* UserMessage, active conversation      -> relay into the bound thread
* ThreadMessage in a bound thread       -> relay to the member by DM
* ThreadMessage anywhere else           -> ignored
* ThreadDeleted for a bound thread      -> row removed
* Close(codename)                       -> archive thread (best effort), remove row
* Block(codename)                       -> assign block role (best effort),
                                           archive thread (best effort), remove row

The block role is checked on every user message; it is never cached.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Dict

from modmail.codename.generator import CodenameGenerator
from modmail.configuration.relay_config import RelayConfig
from modmail.datatypes.conversation import Conversation
from modmail.datatypes.discord_datatypes import ChannelID, UserID
from modmail.datatypes.relay_events import RelayEvent, ThreadDeleted, ThreadMessage, UserMessage
from modmail.errors import (
    ConfigurationMissing,
    DuplicateCodename,
    DuplicateUser,
    ExhaustedVocabulary,
    PlatformError,
    UnknownCodename,
)
from modmail.platform.base import ChatPlatform
from modmail.services.identity_store import IdentityStore
from modmail.util.logger import get_logger
from modmail.util.text import DISCORD_MESSAGE_LIMIT, chunk_content, preview

logger = get_logger("relay_router")

INBOX_UNAVAILABLE_NOTICE = (
    "Sorry, the moderators' inbox isn't set up right now, so your message could not be delivered. "
    "Please try again later."
)


@dataclass(frozen=True)
class ClosedConversation:
    """Outcome of a close or block, for the moderator's reply."""
    conversation: Conversation
    thread_archived: bool
    role_assigned: bool | None = None  # None for close


class RelayRouter:
    """Routes relay events between members and moderator threads."""

    def __init__(
        self,
        store: IdentityStore,
        config: RelayConfig,
        platform: ChatPlatform,
        generator: CodenameGenerator,
        *,
        codename_attempts: int = 5,
        max_message_length: int = DISCORD_MESSAGE_LIMIT,
    ) -> None:
        self.store = store
        self.config = config
        self.platform = platform
        self.generator = generator
        self.codename_attempts = max(1, codename_attempts)
        self.max_message_length = max_message_length

        self._handlers: Dict[type, Callable[..., Awaitable[object]]] = {
            UserMessage: self.handle_user_message,
            ThreadMessage: self.handle_thread_message,
            ThreadDeleted: self.handle_thread_deleted,
        }

    async def dispatch(self, event: RelayEvent) -> object:
        """Route an inbound event to its handler."""
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"Unsupported relay event: {type(event).__name__}")
        return await handler(event)

    # ------------------------------------------------------------------
    # Member -> moderators
    # ------------------------------------------------------------------

    async def handle_user_message(self, event: UserMessage) -> Conversation | None:
        """
        Relay a member's DM into their thread, opening a conversation if needed.

        Returns the conversation the content was relayed into, or None when the
        message was dropped.

        Raises:
            ConfigurationMissing: No inbox is configured and a new conversation is needed.
            PlatformError: Thread creation or the relay itself failed.
            ExhaustedVocabulary: No free codename could be allocated.
        """
        if not event.content.strip():
            logger.debug("[RELAY ROUTER] Ignoring empty message from a member")
            return None

        if await self._is_blocked(event.user_id):
            logger.info("[RELAY ROUTER] Dropped message from a blocked member")
            return None

        conversation = await self.store.find_by_user(event.user_id)
        if conversation is None:
            try:
                conversation = await self._open_conversation(event.user_id)
            except ConfigurationMissing:
                await self._notify_member(event.user_id, INBOX_UNAVAILABLE_NOTICE)
                raise

        logger.debug(
            "[RELAY ROUTER] '%s' -> thread %s: %s",
            conversation.codename,
            conversation.thread_id,
            preview(event.content),
        )
        await self._send_chunks(self.platform.send_thread_message, conversation.thread_id, event.content)
        return conversation

    async def _is_blocked(self, user_id: UserID) -> bool:
        block_role = await self.config.get_block_role()
        if block_role is None:
            return False
        return await self.platform.has_role(user_id, block_role)

    async def _open_conversation(self, user_id: UserID) -> Conversation:
        """
        Allocate a codename and thread and bind them to ``user_id``.

        The thread is created first; the row is written only once the thread
        exists. If the store rejects the row because another event already
        opened a conversation for this member, the fresh thread is discarded
        and the existing conversation is used instead. A codename collision
        discards the thread and retries with a new codename.
        """
        inbox = await self.config.get_inbox()
        if inbox is None:
            raise ConfigurationMissing("inbox")

        collisions = 0
        while collisions < self.codename_attempts:
            codename = self.generator.generate(await self.store.active_codenames())
            thread_id = await self.platform.create_thread(inbox, codename)

            try:
                conversation = await self.store.create(user_id, codename, thread_id)
            except DuplicateUser:
                await self._discard_thread(thread_id, codename)
                existing = await self.store.find_by_user(user_id)
                if existing is not None:
                    logger.info(
                        "[RELAY ROUTER] Conversation for this member was opened concurrently as '%s'",
                        existing.codename,
                    )
                    return existing
                # The winner was closed in the meantime. Not a codename
                # collision, so it does not use up an attempt.
                logger.info("[RELAY ROUTER] Concurrent conversation for this member is already gone; retrying")
                continue
            except DuplicateCodename:
                collisions += 1
                logger.info(
                    "[RELAY ROUTER] Codename '%s' was taken concurrently (attempt %d/%d)",
                    codename,
                    collisions,
                    self.codename_attempts,
                )
                await self._discard_thread(thread_id, codename)
                continue

            logger.info("[RELAY ROUTER] New conversation '%s' in thread %s", codename, thread_id)
            return conversation

        raise ExhaustedVocabulary(
            f"Could not allocate a free codename after {self.codename_attempts} attempts."
        )

    async def _discard_thread(self, thread_id: ChannelID, codename: str) -> None:
        try:
            await self.platform.archive_thread(thread_id)
        except PlatformError as exc:
            logger.warning("[RELAY ROUTER] Could not archive orphan thread '%s': %s", codename, exc)

    async def _notify_member(self, user_id: UserID, content: str) -> None:
        try:
            await self.platform.send_direct_message(user_id, content)
        except PlatformError as exc:
            logger.warning("[RELAY ROUTER] Could not notify member: %s", exc)

    # ------------------------------------------------------------------
    # Moderators -> member
    # ------------------------------------------------------------------

    async def handle_thread_message(self, event: ThreadMessage) -> Conversation | None:
        """Relay a moderator's thread message to the bound member; ignore unbound threads."""
        if not event.content.strip():
            return None

        conversation = await self.store.find_by_thread(event.thread_id)
        if conversation is None:
            return None

        logger.debug(
            "[RELAY ROUTER] thread %s -> '%s': %s",
            event.thread_id,
            conversation.codename,
            preview(event.content),
        )
        await self._send_chunks(self.platform.send_direct_message, conversation.user_id, event.content)
        return conversation

    async def handle_thread_deleted(self, event: ThreadDeleted) -> Conversation | None:
        """Forget the conversation whose thread was deleted outside the bot."""
        conversation = await self.store.remove_by_thread(event.thread_id)
        if conversation is not None:
            logger.warning(
                "[RELAY ROUTER] Thread for '%s' was deleted; conversation closed", conversation.codename
            )
        return conversation

    async def _send_chunks(self, send, target, content: str) -> None:
        for chunk in chunk_content(content, self.max_message_length):
            await send(target, chunk)

    # ------------------------------------------------------------------
    # Moderator commands
    # ------------------------------------------------------------------

    async def close(self, codename: str, *, user_id: UserID | None = None) -> ClosedConversation:
        """
        Close the conversation held by ``codename``.

        ``user_id`` pins the member the caller resolved ``codename`` to; if
        the codename has since passed to someone else, nothing is closed.

        Raises:
            UnknownCodename: No active conversation holds ``codename``.
        """
        conversation = await self._target(codename, user_id)

        archived = await self._archive(conversation)
        await self._remove(conversation)
        logger.info("[RELAY ROUTER] Closed '%s'", codename)
        return ClosedConversation(conversation=conversation, thread_archived=archived)

    async def block(self, codename: str, *, user_id: UserID | None = None) -> ClosedConversation:
        """
        Block the member behind ``codename`` and close their conversation.

        A failed role assignment is logged and reported in the outcome but
        does not stop the conversation from being removed.

        Raises:
            UnknownCodename: No active conversation holds ``codename``.
            ConfigurationMissing: No block role is configured.
        """
        conversation = await self._target(codename, user_id)

        block_role = await self.config.get_block_role()
        if block_role is None:
            raise ConfigurationMissing("blockrole")

        try:
            await self.platform.assign_role(conversation.user_id, block_role)
            role_assigned = True
        except PlatformError as exc:
            role_assigned = False
            logger.warning(
                "[RELAY ROUTER] Partial block of '%s': role assignment failed (%s); "
                "the conversation is still closed and the role must be assigned manually",
                codename,
                exc,
            )

        archived = await self._archive(conversation)
        await self._remove(conversation)
        logger.info("[RELAY ROUTER] Blocked '%s'", codename)
        return ClosedConversation(
            conversation=conversation, thread_archived=archived, role_assigned=role_assigned
        )

    async def _target(self, codename: str, user_id: UserID | None) -> Conversation:
        conversation = await self.store.find_by_codename(codename)
        if conversation is None or (user_id is not None and conversation.user_id != user_id):
            raise UnknownCodename(codename)
        return conversation

    async def _archive(self, conversation: Conversation) -> bool:
        try:
            await self.platform.archive_thread(conversation.thread_id)
            return True
        except PlatformError as exc:
            logger.warning(
                "[RELAY ROUTER] Could not archive thread of '%s': %s", conversation.codename, exc
            )
            return False

    async def _remove(self, conversation: Conversation) -> None:
        # By row id: the codename may already belong to a newer conversation
        if not await self.store.remove(conversation):
            logger.debug("[RELAY ROUTER] '%s' was already removed", conversation.codename)
