"""Event listener Cog for Modmail.

Handles bot lifecycle events and threads deleted outside the bot. A deleted
conversation thread is forwarded to the queue service so the stale row is
removed and the member's next message opens a fresh conversation.
"""

import discord
from discord.ext import commands

from modmail.datatypes.discord_datatypes import ChannelID, GuildID
from modmail.datatypes.relay_events import ThreadDeleted
from modmail.services.relay_queue_service import RelayQueueService
from modmail.util.logger import get_logger

logger = get_logger("events_listener")


class EventsListenerCog(commands.Cog):
    """Handles Discord bot lifecycle and thread deletion events."""

    def __init__(self, bot: discord.Bot, queue_service: RelayQueueService, guild_id: GuildID) -> None:
        self.bot = bot
        self._queue_service = queue_service
        self._guild_id = guild_id
        logger.info("[EVENTS LISTENER] Events listener cog loaded")

    @commands.Cog.listener(name="on_ready")
    async def on_ready(self) -> None:
        if not self.bot.user:
            logger.warning("[EVENTS LISTENER] Bot partially connected; user info not yet available.")
            return

        await self.bot.change_presence(
            status=discord.Status.online,
            activity=discord.Activity(type=discord.ActivityType.listening, name="your DMs"),
        )
        logger.info("Bot connected as %s (ID: %s)", self.bot.user, self.bot.user.id)

        if self.bot.get_guild(self._guild_id.to_int()) is None:
            logger.error(
                "[EVENTS LISTENER] Bot is not a member of the configured guild %s; "
                "threads and roles cannot be managed",
                self._guild_id,
            )

    @commands.Cog.listener(name="on_raw_thread_delete")
    async def on_raw_thread_delete(self, payload: discord.RawThreadDeleteEvent) -> None:
        if payload.guild_id != self._guild_id.to_int():
            return
        logger.debug("[EVENTS LISTENER] Thread %s deleted", payload.thread_id)
        await self._queue_service.enqueue(ThreadDeleted(thread_id=ChannelID(payload.thread_id)))


def setup(bot: discord.Bot, queue_service: RelayQueueService, guild_id: GuildID) -> None:
    """Register the EventsListenerCog with the bot."""
    bot.add_cog(EventsListenerCog(bot, queue_service, guild_id))
