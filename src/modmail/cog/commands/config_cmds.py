"""
Configuration cog: ``/inbox set|unset`` and ``/blockrole set|unset``.

All configuration changes require the Manage Server permission and are
answered ephemerally.
"""

import discord
from discord.ext import commands

from modmail.datatypes.discord_datatypes import ChannelID, RoleID
from modmail.datatypes.relay_events import (
    ModeratorCommand,
    SetBlockRole,
    SetInbox,
    UnsetBlockRole,
    UnsetInbox,
)
from modmail.services.command_handler import CommandHandler
from modmail.util.discord_utils import has_permissions
from modmail.util.logger import get_logger

logger = get_logger("config_commands")


class ConfigCommandsCog(commands.Cog):
    """Inbox channel and block role management."""

    def __init__(self, bot: discord.Bot, handler: CommandHandler) -> None:
        self.bot = bot
        self.handler = handler
        logger.info("[CONFIG COMMANDS] Config commands cog loaded")

    async def _run(self, ctx: discord.ApplicationContext, command: ModeratorCommand) -> None:
        if not ctx.guild_id:
            await ctx.respond("This command can only be used in a server.", ephemeral=True)
            return
        if not has_permissions(ctx, manage_guild=True):
            await ctx.respond("You need Manage Server permission.", ephemeral=True)
            return

        try:
            reply = await self.handler.handle(command)
        except Exception:
            logger.exception("[CONFIG COMMANDS] %r failed", command)
            await ctx.respond("There was an error processing your command.", ephemeral=True)
            return

        await ctx.respond(reply, ephemeral=True)

    inbox = discord.SlashCommandGroup("inbox", "Manage the channel threads will be added to.")
    blockrole = discord.SlashCommandGroup("blockrole", "Manage the role given to blocked users.")

    @inbox.command(name="set", description="Set the channel.")
    async def inbox_set(
        self,
        ctx: discord.ApplicationContext,
        channel: discord.Option(discord.TextChannel, "The channel to be used. Must allow threads."),  # type: ignore
    ) -> None:
        await self._run(ctx, SetInbox(channel_id=ChannelID.from_channel(channel)))

    @inbox.command(name="unset", description="Unset the channel.")
    async def inbox_unset(self, ctx: discord.ApplicationContext) -> None:
        await self._run(ctx, UnsetInbox())

    @blockrole.command(name="set", description="Set the role.")
    async def blockrole_set(
        self,
        ctx: discord.ApplicationContext,
        role: discord.Option(discord.Role, "The role to be used."),  # type: ignore
    ) -> None:
        await self._run(ctx, SetBlockRole(role_id=RoleID.from_role(role)))

    @blockrole.command(name="unset", description="Unset the role.")
    async def blockrole_unset(self, ctx: discord.ApplicationContext) -> None:
        await self._run(ctx, UnsetBlockRole())


def setup(bot: discord.Bot, handler: CommandHandler) -> None:
    """Register the ConfigCommandsCog with the bot."""
    bot.add_cog(ConfigCommandsCog(bot, handler))
