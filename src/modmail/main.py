"""
Modmail Bot
===========

A Discord bot that relays direct messages between members and a moderation
team anonymously. Each member is known to moderators only by a two-word
codename and a dedicated thread in the configured inbox channel.
"""

import os
import sys
from pathlib import Path


def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. MODMAIL_HOME environment variable, if set.
    2. If running in a frozen/compiled context, use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("MODMAIL_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]


BASE_DIR = resolve_base_dir()

import asyncio
from dataclasses import dataclass

import discord
from dotenv import load_dotenv

from modmail.codename.generator import CodenameGenerator
from modmail.configuration.app_configuration import CONFIG_PATH, AppConfig
from modmail.configuration.relay_config import RelayConfig
from modmail.database.db_connection import db_connection
from modmail.datatypes.discord_datatypes import GuildID
from modmail.platform.discord_platform import DiscordPlatform
from modmail.services.command_handler import CommandHandler
from modmail.services.identity_store import IdentityStore
from modmail.services.relay_queue_service import RelayQueueService
from modmail.services.relay_router import RelayRouter
from modmail.ui.console import ConsoleControl, close_bot_instance, console_session
from modmail.util.logger import get_logger, handle_exception

logger = get_logger("main")

RESTART_EXIT_CODE = 42


@dataclass
class Credentials:
    token: str
    guild_id: GuildID


def load_environment() -> Credentials:
    """Load ``.env`` and return the bot token and guild ID.

    Raises
    ------
    SystemExit
        If ``DISCORD_BOT_TOKEN`` or ``DISCORD_GUILD_ID`` is missing or malformed.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.critical("'DISCORD_BOT_TOKEN' environment variable not set. Bot cannot start.")
        sys.exit(1)

    raw_guild = os.getenv("DISCORD_GUILD_ID")
    if not raw_guild:
        logger.critical("'DISCORD_GUILD_ID' environment variable not set. Bot cannot start.")
        sys.exit(1)
    try:
        guild_id = GuildID(raw_guild)
    except ValueError:
        logger.critical("'DISCORD_GUILD_ID' is not a valid ID: %r", raw_guild)
        sys.exit(1)

    return Credentials(token=token, guild_id=guild_id)


def build_intents() -> discord.Intents:
    """Intents for DMs, guild thread messages, message content and member roles."""
    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.messages = True
    intents.dm_messages = True
    intents.members = True
    return intents


@dataclass
class Runtime:
    """Everything created at startup that needs wiring or shutting down."""
    bot: discord.Bot
    store: IdentityStore
    router: RelayRouter
    queue_service: RelayQueueService


def build_runtime(config: AppConfig, guild_id: GuildID) -> Runtime:
    """Instantiate the bot and relay services and register all cogs."""
    bot = discord.Bot(intents=build_intents(), debug_guilds=[guild_id.to_int()])

    store = IdentityStore(db_connection)
    relay_config = RelayConfig(db_connection)
    router = RelayRouter(
        store,
        relay_config,
        DiscordPlatform(bot, guild_id),
        CodenameGenerator(
            separator=config.codename_separator,
            max_attempts=config.generator_attempts,
        ),
        codename_attempts=config.codename_attempts,
        max_message_length=config.max_message_length,
    )
    queue_service = RelayQueueService(router.dispatch, idle_seconds=config.worker_idle_seconds)
    handler = CommandHandler(router, relay_config, queue_service)

    from modmail.cog.commands import config_cmds, relay_cmds
    from modmail.cog.listener import events_listener, message_listener

    events_listener.setup(bot, queue_service, guild_id)
    message_listener.setup(bot, queue_service, guild_id)
    relay_cmds.setup(bot, handler, store)
    config_cmds.setup(bot, handler)
    logger.info("All cogs loaded successfully.")

    return Runtime(bot=bot, store=store, router=router, queue_service=queue_service)


async def start_bot(bot: discord.Bot, token: str) -> None:
    """Start the Discord bot and log around the connection."""
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        logger.info("Discord bot start routine finished.")


async def shutdown_runtime(runtime: Runtime) -> None:
    """Stop relay workers, the Discord bot and the database, in that order."""
    try:
        await runtime.queue_service.shutdown()
    except Exception as exc:
        logger.exception("Error during relay queue shutdown: %s", exc)

    await close_bot_instance(runtime.bot, log_close=True)

    try:
        await db_connection.close()
    except Exception as exc:
        logger.exception("Error during database shutdown: %s", exc)

    logger.info("Shutdown complete.")


async def run_bot_session(runtime: Runtime, token: str, control: ConsoleControl) -> int:
    """Run the bot alongside the console, returning an exit code."""
    control.set_bot(runtime.bot)
    exit_code = 0

    try:
        async with console_session(control):
            try:
                await start_bot(runtime.bot, token)
            except asyncio.CancelledError:
                logger.info("Bot start cancelled; proceeding to shutdown")
            except Exception as exc:
                logger.critical("Discord bot runtime error: %s", exc)
                exit_code = 1
    finally:
        control.set_bot(None)
        await shutdown_runtime(runtime)

    return exit_code


async def async_main() -> int:
    """Bootstrap the database, services, bot and console, returning an exit code."""
    credentials = load_environment()
    config = AppConfig(BASE_DIR / CONFIG_PATH)

    try:
        logger.info("Opening database at %s", config.database_path)
        await db_connection.open(config.database_path)
    except Exception as exc:
        logger.critical("Failed to initialize database: %s", exc)
        return 1

    try:
        runtime = build_runtime(config, credentials.guild_id)
    except Exception as exc:
        logger.critical("Failed to initialize Discord bot: %s", exc)
        await db_connection.close()
        return 1

    control = ConsoleControl(store=runtime.store, queue_service=runtime.queue_service)
    exit_code = await run_bot_session(runtime, credentials.token, control)

    if control.is_restart_requested():
        logger.info("Restart requested, returning exit code %d to trigger restart", RESTART_EXIT_CODE)
        return RESTART_EXIT_CODE

    return exit_code


def main() -> int:
    """Entrypoint that runs the async runtime and returns the process exit code."""
    sys.excepthook = handle_exception
    os.chdir(BASE_DIR)
    logger.info("Starting Modmail…")
    try:
        exit_code = asyncio.run(async_main())

        if exit_code == RESTART_EXIT_CODE:
            logger.info("Restart requested; replacing current process with new instance.")
            os.execv(sys.executable, [sys.executable] + sys.argv)
            return 0  # pragma: no cover

        return exit_code
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except SystemExit as exit_exc:
        code = exit_exc.code
        if isinstance(code, int):
            return code
        return 1
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the bot: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
