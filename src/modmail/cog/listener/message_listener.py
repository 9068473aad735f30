"""Message listener Cog for Modmail.

This cog has exactly ONE responsibility: turn qualifying Discord messages into
relay events and hand them to the RelayQueueService.

All routing and persistence lives in the service layer, not here.
"""

import discord
from discord.ext import commands

from modmail.datatypes.discord_datatypes import ChannelID, GuildID, UserID
from modmail.datatypes.relay_events import RelayEvent, ThreadMessage, UserMessage
from modmail.services.relay_queue_service import RelayQueueService
from modmail.util.discord_utils import message_content
from modmail.util.logger import get_logger

logger = get_logger("message_listener_cog")

RELAYABLE_TYPES = (discord.MessageType.default, discord.MessageType.reply)


def to_relay_event(message: discord.Message, guild_id: GuildID) -> RelayEvent | None:
    """Build the relay event for a message, or None when it must not be relayed."""
    if message.author.bot or message.type not in RELAYABLE_TYPES:
        return None

    content = message_content(message)
    if not content:
        return None

    if isinstance(message.channel, discord.DMChannel):
        return UserMessage(user_id=UserID.from_user(message.author), content=content)

    if (
        isinstance(message.channel, discord.Thread)
        and message.guild is not None
        and message.guild.id == guild_id.to_int()
    ):
        return ThreadMessage(thread_id=ChannelID.from_channel(message.channel), content=content)

    return None


class MessageListenerCog(commands.Cog):
    """
    Thin event listener that forwards messages to the queue service.

    Parameters
    ----------
    bot:
        Discord bot instance.
    queue_service:
        Per-conversation queues feeding the relay router.
    guild_id:
        The community whose threads are relayed; threads elsewhere are ignored.
    """

    def __init__(self, bot: discord.Bot, queue_service: RelayQueueService, guild_id: GuildID) -> None:
        self.bot = bot
        self._queue_service = queue_service
        self._guild_id = guild_id
        logger.info("[MESSAGE LISTENER] Message listener cog loaded")

    @commands.Cog.listener(name="on_message")
    async def on_message(self, message: discord.Message) -> None:
        event = to_relay_event(message, self._guild_id)
        if event is None:
            return
        await self._queue_service.enqueue(event)


def setup(bot: discord.Bot, queue_service: RelayQueueService, guild_id: GuildID) -> None:
    """Register the MessageListenerCog with the bot."""
    bot.add_cog(MessageListenerCog(bot, queue_service, guild_id))
