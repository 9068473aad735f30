"""
Pytest configuration and fixtures for Modmail tests.
"""

import asyncio
import sys
from pathlib import Path

import pytest

# Add src directory to path so imports work without an editable install
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from modmail.codename.generator import CodenameGenerator  # noqa: E402
from modmail.configuration.relay_config import RelayConfig  # noqa: E402
from modmail.database.db_connection import ConnectionManager  # noqa: E402
from modmail.datatypes.discord_datatypes import ChannelID, RoleID, UserID  # noqa: E402
from modmail.errors import PlatformError  # noqa: E402
from modmail.platform.base import ChatPlatform  # noqa: E402
from modmail.services.identity_store import IdentityStore  # noqa: E402
from modmail.services.relay_router import RelayRouter  # noqa: E402

INBOX = ChannelID(500)
BLOCK_ROLE = RoleID(900)


class FakePlatform(ChatPlatform):
    """In-memory chat platform that records every call.

    Operations named in ``fail`` raise PlatformError. Every call yields to the
    event loop once so concurrent callers interleave like real HTTP calls.
    """

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.fail: set[str] = set()
        self.threads: dict[ChannelID, tuple[ChannelID, str]] = {}
        self.thread_messages: list[tuple[ChannelID, str]] = []
        self.direct_messages: list[tuple[UserID, str]] = []
        self.archived: list[ChannelID] = []
        self.roles: dict[UserID, set[RoleID]] = {}
        self._next_thread_id = 1000

    async def _record(self, operation: str, *args) -> None:
        self.calls.append((operation, *args))
        await asyncio.sleep(0)
        if operation in self.fail:
            raise PlatformError(operation, "simulated failure")

    def calls_named(self, operation: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == operation]

    async def send_direct_message(self, user_id, content):
        await self._record("send_direct_message", user_id, content)
        self.direct_messages.append((user_id, content))

    async def create_thread(self, parent_channel_id, title):
        await self._record("create_thread", parent_channel_id, title)
        self._next_thread_id += 1
        thread_id = ChannelID(self._next_thread_id)
        self.threads[thread_id] = (parent_channel_id, title)
        return thread_id

    async def send_thread_message(self, thread_id, content):
        await self._record("send_thread_message", thread_id, content)
        self.thread_messages.append((thread_id, content))

    async def archive_thread(self, thread_id):
        await self._record("archive_thread", thread_id)
        self.archived.append(thread_id)

    async def assign_role(self, user_id, role_id):
        await self._record("assign_role", user_id, role_id)
        self.roles.setdefault(user_id, set()).add(role_id)

    async def has_role(self, user_id, role_id):
        await self._record("has_role", user_id, role_id)
        return role_id in self.roles.get(user_id, set())


class GatedPlatform(FakePlatform):
    """FakePlatform that holds the first call of ``operation`` until ``release`` is set."""

    def __init__(self, operation: str) -> None:
        super().__init__()
        self.operation = operation
        self.reached = asyncio.Event()
        self.release = asyncio.Event()
        self._held = False

    async def _record(self, operation: str, *args) -> None:
        await super()._record(operation, *args)
        if operation == self.operation and not self._held:
            self._held = True
            self.reached.set()
            await self.release.wait()


@pytest.fixture
async def db(tmp_path):
    """Open a fresh SQLite database per test."""
    manager = ConnectionManager()
    await manager.open(tmp_path / "modmail.db")
    yield manager
    await manager.close()


@pytest.fixture
def store(db):
    return IdentityStore(db)


@pytest.fixture
def relay_config(db):
    return RelayConfig(db)


@pytest.fixture
async def configured(relay_config):
    """Relay config with inbox and block role set."""
    await relay_config.set_inbox(INBOX)
    await relay_config.set_block_role(BLOCK_ROLE)
    return relay_config


@pytest.fixture
def platform():
    return FakePlatform()


@pytest.fixture
def generator():
    return CodenameGenerator()


@pytest.fixture
def router(store, configured, platform, generator):
    return RelayRouter(store, configured, platform, generator)
