"""
py-cord implementation of :class:`ChatPlatform`.

Objects are resolved from the client cache first and fetched over HTTP on a
miss. Every ``discord.DiscordException`` is converted into ``PlatformError``
tagged with the operation that failed.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import discord

from modmail.datatypes.discord_datatypes import ChannelID, GuildID, RoleID, UserID
from modmail.errors import PlatformError
from modmail.platform.base import ChatPlatform
from modmail.util.logger import get_logger

logger = get_logger("discord_platform")

THREAD_ARCHIVE_MINUTES = 10080  # one week, the longest Discord allows


@asynccontextmanager
async def _platform_call(operation: str) -> AsyncIterator[None]:
    try:
        yield
    except discord.DiscordException as exc:
        logger.warning("[DISCORD PLATFORM] %s failed: %s", operation, exc)
        raise PlatformError(operation, exc) from exc


class DiscordPlatform(ChatPlatform):
    """Executes relay side effects against a single guild."""

    def __init__(self, bot: discord.Bot, guild_id: GuildID) -> None:
        self.bot = bot
        self.guild_id = guild_id

    # ------------------------------------------------------------------
    # Resolution helpers
    # ------------------------------------------------------------------

    async def _guild(self) -> discord.Guild:
        guild = self.bot.get_guild(self.guild_id.to_int())
        if guild is None:
            guild = await self.bot.fetch_guild(self.guild_id.to_int())
        return guild

    async def _member(self, guild: discord.Guild, user_id: UserID) -> discord.Member:
        member = guild.get_member(user_id.to_int())
        if member is None:
            member = await guild.fetch_member(user_id.to_int())
        return member

    async def _channel(self, channel_id: ChannelID):
        channel = self.bot.get_channel(channel_id.to_int())
        if channel is None:
            channel = await self.bot.fetch_channel(channel_id.to_int())
        return channel

    # ------------------------------------------------------------------
    # ChatPlatform
    # ------------------------------------------------------------------

    async def send_direct_message(self, user_id: UserID, content: str) -> None:
        async with _platform_call("send_direct_message"):
            user = self.bot.get_user(user_id.to_int())
            if user is None:
                user = await self.bot.fetch_user(user_id.to_int())
            await user.send(content)

    async def create_thread(self, parent_channel_id: ChannelID, title: str) -> ChannelID:
        async with _platform_call("create_thread"):
            channel = await self._channel(parent_channel_id)
            if not isinstance(channel, discord.TextChannel):
                raise PlatformError("create_thread", f"channel {parent_channel_id} cannot hold threads")
            thread = await channel.create_thread(
                name=title,
                type=discord.ChannelType.public_thread,
                auto_archive_duration=THREAD_ARCHIVE_MINUTES,
                reason="Modmail conversation",
            )
            return ChannelID.from_channel(thread)

    async def send_thread_message(self, thread_id: ChannelID, content: str) -> None:
        async with _platform_call("send_thread_message"):
            thread = await self._channel(thread_id)
            if not isinstance(thread, discord.Thread):
                raise PlatformError("send_thread_message", f"channel {thread_id} is not a thread")
            if thread.archived and not thread.locked:
                # Sending into an auto-archived thread revives it; make that explicit
                await thread.edit(archived=False)
            await thread.send(content)

    async def archive_thread(self, thread_id: ChannelID) -> None:
        async with _platform_call("archive_thread"):
            thread = await self._channel(thread_id)
            if not isinstance(thread, discord.Thread):
                raise PlatformError("archive_thread", f"channel {thread_id} is not a thread")
            await thread.edit(archived=True, locked=True)

    async def assign_role(self, user_id: UserID, role_id: RoleID) -> None:
        async with _platform_call("assign_role"):
            guild = await self._guild()
            role = guild.get_role(role_id.to_int())
            if role is None:
                raise PlatformError("assign_role", f"role {role_id} does not exist")
            member = await self._member(guild, user_id)
            await member.add_roles(role, reason="Blocked from Modmail")

    async def has_role(self, user_id: UserID, role_id: RoleID) -> bool:
        async with _platform_call("has_role"):
            guild = await self._guild()
            try:
                member = await self._member(guild, user_id)
            except discord.NotFound:
                # Not a member of the community, so cannot carry the role
                return False
            return any(role.id == role_id.to_int() for role in member.roles)
