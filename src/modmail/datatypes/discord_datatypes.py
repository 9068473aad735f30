"""
Type-safe wrappers for Discord identifiers.

Discord snowflakes are 64-bit integers, but the relay stores them as TEXT in
SQLite and passes them between layers that should never confuse a user ID
with a thread ID. Each wrapper only compares equal to the same wrapper type
(or to its string form, which shares its hash), so ``UserID(1) == ChannelID(1)``
is False. Compare against raw ints with ``to_int()``.
"""

from __future__ import annotations

from typing import Union

import discord


class _Snowflake:
    """
    Common behaviour for snowflake wrappers.

    Attributes:
        _value (str): The snowflake ID stored as a string for TEXT column parity.

    Example:
        >>> uid = UserID.from_int(123456789012345678)
        >>> uid.to_int()
        123456789012345678
        >>> str(uid)
        '123456789012345678'
    """

    __slots__ = ("_value",)

    def __init__(self, value: Union[str, int, "_Snowflake"]) -> None:
        """
        Initialize from a string, int, or another wrapper of the same type.

        Raises:
            ValueError: If the value cannot be converted to a valid snowflake.
        """
        if isinstance(value, type(self)):
            self._value = value._value
        elif isinstance(value, bool):
            raise ValueError(f"Cannot create {type(self).__name__} from bool")
        elif isinstance(value, int):
            self._value = str(value)
        elif isinstance(value, str):
            # Validate that it's a valid integer string
            self._value = str(int(value.strip()))
        else:
            raise ValueError(f"Cannot create {type(self).__name__} from {type(value).__name__}: {value}")

    @classmethod
    def from_int(cls, value: int):
        return cls(value)

    def to_int(self) -> int:
        """Convert to an integer for Discord API calls."""
        return int(self._value)

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if type(other) is type(self):
            return self._value == other._value  # type: ignore[attr-defined]
        if isinstance(other, str):
            return self._value == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)


class UserID(_Snowflake):
    """Snowflake of a Discord user (the anonymous party of a conversation)."""

    __slots__ = ()

    @classmethod
    def from_user(cls, member: Union[discord.Member, discord.User]) -> "UserID":
        return cls(member.id)


class ChannelID(_Snowflake):
    """Snowflake of a channel or thread (threads are channels in Discord)."""

    __slots__ = ()

    @classmethod
    def from_channel(cls, channel: Union[discord.abc.GuildChannel, discord.Thread]) -> "ChannelID":
        return cls(channel.id)


class RoleID(_Snowflake):
    """Snowflake of a guild role."""

    __slots__ = ()

    @classmethod
    def from_role(cls, role: discord.Role) -> "RoleID":
        return cls(role.id)


class GuildID(_Snowflake):
    """Snowflake of the single guild the relay serves."""

    __slots__ = ()

    @classmethod
    def from_guild(cls, guild: discord.Guild) -> "GuildID":
        return cls(guild.id)
