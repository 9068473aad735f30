"""Tests for console.py module."""
import time
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from modmail.datatypes.conversation import Conversation
from modmail.datatypes.discord_datatypes import ChannelID, UserID
from modmail.ui import console


def test_console_print_without_style():
    """Test console_print without style."""
    with patch("modmail.ui.console.print_formatted_text") as mock_print:
        console.console_print("Test message")
        mock_print.assert_called_once_with("Test message")


def test_console_print_with_style():
    with patch("modmail.ui.console.print_formatted_text") as mock_print:
        console.console_print("Test message", "ansigreen")
        assert mock_print.call_count == 1


def test_box_title_is_fixed_width():
    lines = console.box_title("Status")
    assert len(lines) == 3
    assert all(len(line) == console.BOX_WIDTH for line in lines)


def test_console_control_stop():
    control = console.ConsoleControl()
    assert not control.is_shutdown_requested()
    control.stop()
    assert control.is_shutdown_requested()


@pytest.mark.asyncio
async def test_close_bot_instance_when_none():
    # Should not raise
    await console.close_bot_instance(None)
    await console.close_bot_instance(None, log_close=True)


@pytest.mark.asyncio
async def test_close_bot_instance_with_exception():
    """Test close_bot_instance handles exceptions during close."""
    class FailBot:
        def is_closed(self):
            return False

        async def close(self):
            raise RuntimeError("Close failed")

    await console.close_bot_instance(FailBot(), log_close=True)


@pytest.mark.asyncio
async def test_handle_console_command_empty():
    control = console.ConsoleControl()
    await console.handle_console_command("", control)
    await console.handle_console_command("   ", control)


@pytest.mark.asyncio
async def test_handle_console_command_unknown():
    control = console.ConsoleControl()
    with patch("modmail.ui.console.console_print") as mock_print:
        await console.handle_console_command("frobnicate", control)
    assert "Unknown command" in mock_print.call_args.args[0]


@pytest.mark.asyncio
async def test_shutdown_command_closes_bot():
    control = console.ConsoleControl()
    bot = SimpleNamespace(is_closed=lambda: False, close=AsyncMock())
    control.set_bot(bot)

    with patch("modmail.ui.console.console_print"):
        await console.handle_console_command("exit", control)

    assert control.is_shutdown_requested()
    assert not control.is_restart_requested()
    bot.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_restart_command_sets_both_events():
    control = console.ConsoleControl()

    with patch("modmail.ui.console.console_print"):
        await console.handle_console_command("reboot", control)

    assert control.is_restart_requested()
    assert control.is_shutdown_requested()


@pytest.mark.asyncio
async def test_status_reports_conversations_and_workers():
    store = SimpleNamespace(count=AsyncMock(return_value=3))
    queue_service = SimpleNamespace(active_workers=2)
    control = console.ConsoleControl(store=store, queue_service=queue_service)

    with patch("modmail.ui.console.console_print") as mock_print:
        await console.handle_console_command("status", control)

    printed = [call.args[0] for call in mock_print.call_args_list]
    assert any("Conversations:  3" in line for line in printed)
    assert any("Relay workers:  2" in line for line in printed)
    assert any("Not initialized" in line for line in printed)


@pytest.mark.asyncio
async def test_conversations_lists_codenames():
    conversation = Conversation(
        user_id=UserID(1),
        codename="calm otter",
        thread_id=ChannelID(10),
        created_at=int(time.time()),
    )
    store = SimpleNamespace(list_active=AsyncMock(return_value=[conversation]))
    control = console.ConsoleControl(store=store)

    with patch("modmail.ui.console.console_print") as mock_print:
        await console.handle_console_command("convos", control)

    printed = "\n".join(call.args[0] for call in mock_print.call_args_list)
    assert "calm otter" in printed
    assert "thread 10" in printed


@pytest.mark.asyncio
async def test_conversations_without_store():
    control = console.ConsoleControl()
    with patch("modmail.ui.console.console_print") as mock_print:
        await console.handle_console_command("conversations", control)
    mock_print.assert_called_once_with("Identity store not available.", "ansiyellow")


@pytest.mark.asyncio
async def test_command_errors_are_reported():
    store = SimpleNamespace(count=AsyncMock(side_effect=RuntimeError("db closed")))
    control = console.ConsoleControl(store=store)

    with patch("modmail.ui.console.console_print") as mock_print:
        await console.handle_console_command("status", control)

    assert "db closed" in mock_print.call_args.args[0]
