"""
Interactive operator console for the running bot.

The console runs next to the Discord client in the same event loop. Commands
are registered with :func:`console_command` and looked up by name or alias.
Lifecycle commands (``restart``/``shutdown``) only set events and close the
client; ``main`` decides what happens next.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager, suppress
from dataclasses import dataclass, field
from datetime import datetime
import os

import discord
from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.patch_stdout import patch_stdout
from prompt_toolkit.shortcuts import PromptSession

from modmail.services.identity_store import IdentityStore
from modmail.services.relay_queue_service import RelayQueueService
from modmail.util.logger import get_logger

logger = get_logger("console")

BOX_WIDTH = 45

ConsoleHandler = Callable[["ConsoleControl", list[str]], Awaitable[None]]


def box_title(title: str) -> list[str]:
    """Three lines drawing ``title`` centred in a double-lined box."""
    inner = BOX_WIDTH - 2
    return [
        f"╔{'═' * inner}╗",
        f"║{title.center(inner)}║",
        f"╚{'═' * inner}╝",
    ]


def console_print(message: str, style: str = "") -> None:
    """Print above the active prompt, optionally in a prompt_toolkit style."""
    print_formatted_text(FormattedText([(style, message)]) if style else message)


@dataclass
class Command:
    name: str
    handler: ConsoleHandler
    aliases: tuple[str, ...] = ()
    description: str = ""

    def matches(self, word: str) -> bool:
        return word == self.name or word in self.aliases


COMMANDS: list[Command] = []


def console_command(name: str, *aliases: str, description: str = ""):
    """Register the decorated coroutine as a console command."""
    def register(handler: ConsoleHandler) -> ConsoleHandler:
        COMMANDS.append(Command(name, handler, aliases, description or (handler.__doc__ or "").strip()))
        return handler
    return register


@dataclass
class ConsoleControl:
    """Lifecycle flags plus handles on the services the console reports on."""
    store: IdentityStore | None = None
    queue_service: RelayQueueService | None = None
    bot: discord.Bot | None = None
    shutdown_event: asyncio.Event = field(default_factory=asyncio.Event)
    restart_event: asyncio.Event = field(default_factory=asyncio.Event)

    def set_bot(self, bot: discord.Bot | None) -> None:
        self.bot = bot

    def stop(self) -> None:
        self.shutdown_event.set()

    def is_shutdown_requested(self) -> bool:
        return self.shutdown_event.is_set()

    def is_restart_requested(self) -> bool:
        return self.restart_event.is_set()


async def close_bot_instance(bot: discord.Bot | None, *, log_close: bool = False) -> None:
    """Close the Discord client unless it is missing or already closed."""
    if bot is None or bot.is_closed():
        return
    try:
        await bot.close()
    except Exception as exc:
        logger.exception("Error while closing Discord bot: %s", exc)
        return
    if log_close:
        logger.info("Discord bot connection closed.")


async def _end_session(control: ConsoleControl, *, restart: bool) -> None:
    if restart:
        control.restart_event.set()
    control.stop()
    await close_bot_instance(control.bot)


# ==================== Commands ====================

@console_command("help", "h", "?", description="Show this help message")
async def cmd_help(control: ConsoleControl, args: list[str]) -> None:
    for line in box_title("Console Commands"):
        console_print(line, "ansigreen")
    for command in COMMANDS:
        aliases = f" ({', '.join(command.aliases)})" if command.aliases else ""
        console_print(f"  {command.name}{aliases}", "ansicyan")
        console_print(f"    {command.description}")
    console_print("")


@console_command("status", "stat", "info", description="Connection state, open conversations and relay workers")
async def cmd_status(control: ConsoleControl, args: list[str]) -> None:
    for line in box_title("Bot Status"):
        console_print(line, "ansiblue")

    if control.bot is None:
        console_print("  Bot:            🔴 Not initialized")
    else:
        connected = not control.bot.is_closed()
        console_print(f"  Bot:            {'🟢 Connected' if connected else '🔴 Disconnected'}")
        console_print(f"  Latency:        {control.bot.latency * 1000:.0f}ms")

    if control.store is not None:
        console_print(f"  Conversations:  {await control.store.count()}")
    if control.queue_service is not None:
        console_print(f"  Relay workers:  {control.queue_service.active_workers}")
    console_print("")


@console_command("conversations", "convos", "c", description="List open conversations by codename, oldest first")
async def cmd_conversations(control: ConsoleControl, args: list[str]) -> None:
    if control.store is None:
        console_print("Identity store not available.", "ansiyellow")
        return

    conversations = await control.store.list_active()
    if not conversations:
        console_print("No active conversations.", "ansiyellow")
        return

    for line in box_title(f"Active Conversations ({len(conversations)})"):
        console_print(line, "ansiblue")
    for conversation in conversations:
        opened = datetime.fromtimestamp(conversation.created_at).strftime("%Y-%m-%d %H:%M")
        console_print(f"  • {conversation.codename}  (thread {conversation.thread_id}, opened {opened})")
    console_print("")


@console_command("clear", "cls", description="Clear the console screen")
async def cmd_clear(control: ConsoleControl, args: list[str]) -> None:
    os.system("cls" if os.name == "nt" else "clear")


@console_command("restart", "reboot", description="Shut down and start a fresh process")
async def cmd_restart(control: ConsoleControl, args: list[str]) -> None:
    console_print("Restart requested.", "ansiyellow")
    await _end_session(control, restart=True)


@console_command("shutdown", "stop", "quit", "exit", description="Shut the bot down")
async def cmd_shutdown(control: ConsoleControl, args: list[str]) -> None:
    console_print("Shutdown requested.", "ansiyellow")
    await _end_session(control, restart=False)


# ==================== Loop ====================

async def handle_console_command(line: str, control: ConsoleControl) -> None:
    """Run one console input line."""
    words = line.split()
    if not words:
        return

    name, args = words[0].lower(), words[1:]
    command = next((c for c in COMMANDS if c.matches(name)), None)
    if command is None:
        console_print(f"Unknown command '{name}'. Type 'help' for available commands.", "ansired")
        return

    try:
        await command.handler(control, args)
    except Exception as exc:
        logger.exception("Console command '%s' failed: %s", name, exc)
        console_print(f"Error executing command: {exc}", "ansired")


async def run_console(control: ConsoleControl) -> None:
    """Prompt for commands until shutdown is requested."""
    session = PromptSession("> ")
    for line in box_title("Modmail Console"):
        console_print(line, "ansigreen")
    console_print("Type 'help' for available commands or 'exit' to quit.\n", "ansibrightblack")

    with patch_stdout():
        while not control.is_shutdown_requested():
            try:
                line = await session.prompt_async()
            except (EOFError, KeyboardInterrupt):
                console_print("Shutdown requested by user.", "ansiyellow")
                await _end_session(control, restart=False)
                break
            await handle_console_command(line, control)


@asynccontextmanager
async def console_session(control: ConsoleControl) -> AsyncIterator[ConsoleControl]:
    """Run the console as a background task for the duration of the block."""
    task = asyncio.create_task(run_console(control))
    try:
        yield control
    finally:
        control.stop()
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
