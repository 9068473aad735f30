"""
Conversation cog: ``/close`` and ``/block``.

Both commands take the codename exactly as it appears as the thread title
(autocompleted from the active conversations). Responses are ephemeral and
the interaction is deferred before anything else, because closing archives
the very thread the command is often issued from.

Permissions
- Manage Threads is required for both commands.
"""

import discord
from discord import Option
from discord.ext import commands

from modmail.datatypes.relay_events import Block, Close, ModeratorCommand
from modmail.errors import ConfigurationMissing, UnknownCodename
from modmail.services.command_handler import CommandHandler
from modmail.services.identity_store import IdentityStore
from modmail.util.discord_utils import has_permissions
from modmail.util.logger import get_logger

logger = get_logger("relay_commands")

AUTOCOMPLETE_LIMIT = 25  # Discord shows at most 25 choices


async def codename_autocomplete(ctx: discord.AutocompleteContext) -> list[str]:
    """Suggest active codenames containing what the moderator typed so far."""
    cog = ctx.cog
    if cog is None:
        return []
    typed = (ctx.value or "").strip().lower()
    codenames = await cog.store.active_codenames()
    return sorted(name for name in codenames if typed in name)[:AUTOCOMPLETE_LIMIT]


class RelayCommandsCog(commands.Cog):
    """Moderator commands that end conversations."""

    def __init__(self, bot: discord.Bot, handler: CommandHandler, store: IdentityStore) -> None:
        self.bot = bot
        self.handler = handler
        self.store = store
        logger.info("[RELAY COMMANDS] Relay commands cog loaded")

    async def _run(self, ctx: discord.ApplicationContext, command: ModeratorCommand) -> None:
        await ctx.defer(ephemeral=True)

        if not has_permissions(ctx, manage_threads=True):
            await ctx.send_followup("You need the Manage Threads permission to use this command.")
            return

        try:
            reply = await self.handler.handle(command)
        except (UnknownCodename, ConfigurationMissing) as exc:
            await ctx.send_followup(str(exc))
            return
        except Exception:
            logger.exception("[RELAY COMMANDS] %r failed", command)
            await ctx.send_followup("There was an error processing your command.")
            return

        await ctx.send_followup(reply)

    @commands.slash_command(name="close", description="Close a conversation and forget the attached user.")
    async def close(
        self,
        ctx: discord.ApplicationContext,
        codename: Option(str, "The codename. Must be an exact match.", autocomplete=codename_autocomplete),  # type: ignore
    ) -> None:
        await self._run(ctx, Close(codename=codename))

    @commands.slash_command(name="block", description="Block a user from using the bot and close their conversation.")
    async def block(
        self,
        ctx: discord.ApplicationContext,
        codename: Option(str, "The codename. Must be an exact match.", autocomplete=codename_autocomplete),  # type: ignore
    ) -> None:
        await self._run(ctx, Block(codename=codename))


def setup(bot: discord.Bot, handler: CommandHandler, store: IdentityStore) -> None:
    """Register the RelayCommandsCog with the bot."""
    bot.add_cog(RelayCommandsCog(bot, handler, store))
