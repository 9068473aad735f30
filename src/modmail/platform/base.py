"""
Abstract chat platform used by the relay router.

The router only ever calls these six coroutines. Implementations raise
``PlatformError`` for any failure (timeouts included) and never let
library-specific exceptions escape.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from modmail.datatypes.discord_datatypes import ChannelID, RoleID, UserID


class ChatPlatform(ABC):
    """Side effects the relay needs from the chat platform."""

    @abstractmethod
    async def send_direct_message(self, user_id: UserID, content: str) -> None:
        ...

    @abstractmethod
    async def create_thread(self, parent_channel_id: ChannelID, title: str) -> ChannelID:
        """Create a thread titled ``title`` under ``parent_channel_id`` and return its ID."""

    @abstractmethod
    async def send_thread_message(self, thread_id: ChannelID, content: str) -> None:
        ...

    @abstractmethod
    async def archive_thread(self, thread_id: ChannelID) -> None:
        """Archive and lock the thread so it leaves the active list."""

    @abstractmethod
    async def assign_role(self, user_id: UserID, role_id: RoleID) -> None:
        ...

    @abstractmethod
    async def has_role(self, user_id: UserID, role_id: RoleID) -> bool:
        ...
