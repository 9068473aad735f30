"""
Inbound events and moderator commands understood by the relay.

Gateway callbacks are translated into these small frozen dataclasses before
they reach the router, so the router never touches ``discord.Message`` or
``discord.ApplicationContext`` directly and tests can build events by hand.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from modmail.datatypes.discord_datatypes import ChannelID, RoleID, UserID


def user_queue_key(user_id: UserID) -> str:
    """Queue key shared by everything that touches one member's conversation."""
    return f"user:{user_id}"


# ----------------------------------------------------------------------
# Relay traffic
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class UserMessage:
    """A direct message from a member to the bot."""
    user_id: UserID
    content: str

    @property
    def queue_key(self) -> str:
        return user_queue_key(self.user_id)


@dataclass(frozen=True)
class ThreadMessage:
    """A moderator message posted inside a thread."""
    thread_id: ChannelID
    content: str

    @property
    def queue_key(self) -> str:
        return f"thread:{self.thread_id}"


@dataclass(frozen=True)
class ThreadDeleted:
    """A thread was deleted outside the bot (e.g. by a moderator in the client)."""
    thread_id: ChannelID

    @property
    def queue_key(self) -> str:
        return f"thread:{self.thread_id}"


RelayEvent = Union[UserMessage, ThreadMessage, ThreadDeleted]


# ----------------------------------------------------------------------
# Moderator commands
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class Close:
    """Close the conversation held by ``codename`` and forget its member."""
    codename: str


@dataclass(frozen=True)
class Block:
    """Close the conversation and give its member the block role."""
    codename: str


@dataclass(frozen=True)
class SetInbox:
    channel_id: ChannelID


@dataclass(frozen=True)
class UnsetInbox:
    pass


@dataclass(frozen=True)
class SetBlockRole:
    role_id: RoleID


@dataclass(frozen=True)
class UnsetBlockRole:
    pass


ModeratorCommand = Union[Close, Block, SetInbox, UnsetInbox, SetBlockRole, UnsetBlockRole]
