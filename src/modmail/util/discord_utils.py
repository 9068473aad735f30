"""Small helpers around py-cord objects shared by the cogs."""

from __future__ import annotations

import discord

from modmail.util.text import flatten_content


def has_permissions(application_context: discord.ApplicationContext, **required_permissions) -> bool:
    """
    Check if the command issuer has all specified permissions in the guild.

    Args:
        application_context: The command context.
        **required_permissions: Permission flags to check.

    Returns:
        bool: True if all permissions are present, False otherwise.
    """
    if not isinstance(application_context.author, discord.Member):
        return False
    permissions = application_context.author.guild_permissions
    return all(getattr(permissions, name, False) for name in required_permissions)


def message_content(message: discord.Message) -> str:
    """Text of a message with its attachment URLs appended."""
    return flatten_content(message.content, (attachment.url for attachment in message.attachments))
