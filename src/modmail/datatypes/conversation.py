"""
Conversation records held by the identity store.

Only active conversations are ever stored; closing or blocking removes the
row, so a ``Conversation`` instance always describes a live binding between a
member, a codename and a moderator thread.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import time

from modmail.datatypes.discord_datatypes import ChannelID, UserID


@dataclass(frozen=True)
class Conversation:
    """An active user ↔ codename ↔ thread binding."""
    user_id: UserID
    codename: str
    thread_id: ChannelID
    conversation_id: int | None = None
    created_at: int = field(default_factory=lambda: int(time.time()))  # unix seconds (UTC)
