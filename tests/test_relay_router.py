"""Tests for the relay router state machine against an in-memory platform."""

import asyncio

import pytest

from modmail.codename.generator import CodenameGenerator
from modmail.datatypes.discord_datatypes import ChannelID, UserID
from modmail.datatypes.relay_events import ThreadDeleted, ThreadMessage, UserMessage
from modmail.errors import (
    ConfigurationMissing,
    DuplicateUser,
    ExhaustedVocabulary,
    PlatformError,
    UnknownCodename,
)
from modmail.services.relay_router import INBOX_UNAVAILABLE_NOTICE, RelayRouter

from conftest import BLOCK_ROLE, INBOX, GatedPlatform


class ScriptedGenerator:
    """Returns codenames from a fixed script, ignoring the exclusion set."""

    def __init__(self, *codenames: str) -> None:
        self._codenames = list(codenames)

    def generate(self, excluded=frozenset()) -> str:
        return self._codenames.pop(0)


# ----------------------------------------------------------------------
# Opening and relaying
# ----------------------------------------------------------------------

@pytest.mark.asyncio
async def test_first_message_opens_conversation_and_relays(store, configured, platform):
    router = RelayRouter(store, configured, platform, ScriptedGenerator("calm otter"))

    conversation = await router.dispatch(UserMessage(UserID(1), "help me"))

    assert conversation.codename == "calm otter"
    assert platform.threads[conversation.thread_id] == (INBOX, "calm otter")
    assert await store.find_by_user(UserID(1)) == conversation
    assert platform.thread_messages == [(conversation.thread_id, "help me")]


@pytest.mark.asyncio
async def test_thread_title_matches_stored_codename(router, store, platform):
    conversation = await router.dispatch(UserMessage(UserID(1), "hi"))

    _, title = platform.threads[conversation.thread_id]
    assert title == (await store.find_by_thread(conversation.thread_id)).codename


@pytest.mark.asyncio
async def test_followup_message_reuses_thread(router, platform):
    first = await router.dispatch(UserMessage(UserID(1), "one"))
    second = await router.dispatch(UserMessage(UserID(1), "two"))

    assert first == second
    assert len(platform.calls_named("create_thread")) == 1
    assert platform.thread_messages == [(first.thread_id, "one"), (first.thread_id, "two")]


@pytest.mark.asyncio
async def test_distinct_users_get_distinct_codenames(router, store):
    for round_ in range(3):
        for user in range(1, 21):
            await router.dispatch(UserMessage(UserID(user), f"message {round_}"))

    assert await store.count() == 20
    assert len(await store.active_codenames()) == 20


@pytest.mark.asyncio
async def test_empty_message_is_ignored(router, platform):
    assert await router.dispatch(UserMessage(UserID(1), "   ")) is None
    assert platform.calls == []


@pytest.mark.asyncio
async def test_long_message_is_split_in_order(store, configured, platform, generator):
    router = RelayRouter(store, configured, platform, generator, max_message_length=10)

    await router.dispatch(UserMessage(UserID(1), "aaaa bbbb cccc dddd"))

    assert [content for _, content in platform.thread_messages] == ["aaaa bbbb", "cccc dddd"]


# ----------------------------------------------------------------------
# Moderators -> member
# ----------------------------------------------------------------------

@pytest.mark.asyncio
async def test_thread_message_relays_to_member(router, store, platform):
    conversation = await router.dispatch(UserMessage(UserID(1), "help me"))
    before = await store.list_active()

    await router.dispatch(ThreadMessage(conversation.thread_id, "we're here"))

    assert platform.direct_messages == [(UserID(1), "we're here")]
    assert await store.list_active() == before


@pytest.mark.asyncio
async def test_message_in_unrelated_thread_is_ignored(router, platform):
    assert await router.dispatch(ThreadMessage(ChannelID(4242), "chatter")) is None
    assert platform.direct_messages == []


@pytest.mark.asyncio
async def test_deleted_thread_forgets_conversation(router, store, platform):
    conversation = await router.dispatch(UserMessage(UserID(1), "hi"))

    await router.dispatch(ThreadDeleted(conversation.thread_id))
    assert await store.find_by_user(UserID(1)) is None

    fresh = await router.dispatch(UserMessage(UserID(1), "anyone?"))
    assert fresh.thread_id != conversation.thread_id


# ----------------------------------------------------------------------
# Close
# ----------------------------------------------------------------------

@pytest.mark.asyncio
async def test_close_then_new_message_opens_fresh_conversation(store, configured, platform):
    router = RelayRouter(store, configured, platform, ScriptedGenerator("calm otter", "brave heron"))
    first = await router.dispatch(UserMessage(UserID(1), "help me"))

    outcome = await router.close("calm otter")

    assert outcome.thread_archived
    assert platform.archived == [first.thread_id]
    assert await store.find_by_codename("calm otter") is None

    second = await router.dispatch(UserMessage(UserID(1), "hello again"))
    assert second.thread_id != first.thread_id
    assert second.codename == "brave heron"


@pytest.mark.asyncio
async def test_reopened_codename_differs_from_active_ones(router, store):
    for user in range(1, 6):
        await router.dispatch(UserMessage(UserID(user), "hi"))
    closed = await store.find_by_user(UserID(3))
    await router.close(closed.codename)

    reopened = await router.dispatch(UserMessage(UserID(3), "back"))
    others = {c.codename for c in await store.list_active() if c.user_id != UserID(3)}
    assert reopened.codename not in others


@pytest.mark.asyncio
async def test_close_unknown_codename(router, store, platform):
    with pytest.raises(UnknownCodename):
        await router.close("unicorn parade")

    assert platform.calls == []
    assert await store.count() == 0


@pytest.mark.asyncio
async def test_close_survives_archive_failure(router, store, platform):
    conversation = await router.dispatch(UserMessage(UserID(1), "hi"))
    platform.fail.add("archive_thread")

    outcome = await router.close(conversation.codename)

    assert not outcome.thread_archived
    assert await store.find_by_user(UserID(1)) is None


# ----------------------------------------------------------------------
# Block
# ----------------------------------------------------------------------

@pytest.mark.asyncio
async def test_block_drops_all_further_messages(router, store, platform):
    conversation = await router.dispatch(UserMessage(UserID(1), "hi"))

    outcome = await router.block(conversation.codename)
    assert outcome.role_assigned
    assert platform.archived == [conversation.thread_id]
    assert BLOCK_ROLE in platform.roles[UserID(1)]

    relayed = len(platform.thread_messages)
    for attempt in range(5):
        assert await router.dispatch(UserMessage(UserID(1), f"retry {attempt}")) is None

    assert len(platform.thread_messages) == relayed
    assert len(platform.calls_named("create_thread")) == 1
    assert await store.find_by_user(UserID(1)) is None


@pytest.mark.asyncio
async def test_block_status_checked_on_every_message(router, platform):
    conversation = await router.dispatch(UserMessage(UserID(1), "hi"))
    # Role granted outside the bot while the conversation is still open
    platform.roles[UserID(1)] = {BLOCK_ROLE}

    assert await router.dispatch(UserMessage(UserID(1), "still here")) is None
    assert platform.thread_messages == [(conversation.thread_id, "hi")]
    assert len(platform.calls_named("has_role")) == 2


@pytest.mark.asyncio
async def test_block_removes_row_even_if_role_assignment_fails(router, store, platform):
    conversation = await router.dispatch(UserMessage(UserID(1), "hi"))
    platform.fail.add("assign_role")

    outcome = await router.block(conversation.codename)

    assert outcome.role_assigned is False
    assert await store.find_by_codename(conversation.codename) is None


@pytest.mark.asyncio
async def test_block_unknown_codename(router, platform):
    with pytest.raises(UnknownCodename):
        await router.block("unicorn parade")
    assert platform.calls == []


@pytest.mark.asyncio
async def test_block_without_block_role(router, configured, store, platform):
    conversation = await router.dispatch(UserMessage(UserID(1), "hi"))
    await configured.unset_block_role()

    with pytest.raises(ConfigurationMissing):
        await router.block(conversation.codename)

    assert await store.find_by_user(UserID(1)) == conversation
    assert platform.calls_named("assign_role") == []


# ----------------------------------------------------------------------
# Configuration and platform failures
# ----------------------------------------------------------------------

@pytest.mark.asyncio
async def test_missing_inbox_rejects_new_conversation(router, configured, store, platform):
    await configured.unset_inbox()

    with pytest.raises(ConfigurationMissing) as excinfo:
        await router.dispatch(UserMessage(UserID(1), "help me"))

    assert excinfo.value.key == "inbox"
    assert await store.count() == 0
    assert platform.calls_named("create_thread") == []
    assert platform.direct_messages == [(UserID(1), INBOX_UNAVAILABLE_NOTICE)]


@pytest.mark.asyncio
async def test_missing_block_role_skips_block_check(router, configured, platform):
    await configured.unset_block_role()

    assert await router.dispatch(UserMessage(UserID(1), "hi")) is not None
    assert platform.calls_named("has_role") == []


@pytest.mark.asyncio
async def test_thread_creation_failure_leaves_store_unchanged(router, store, platform):
    platform.fail.add("create_thread")

    with pytest.raises(PlatformError):
        await router.dispatch(UserMessage(UserID(1), "help me"))

    assert await store.count() == 0
    assert platform.thread_messages == []


# ----------------------------------------------------------------------
# Races
# ----------------------------------------------------------------------

@pytest.mark.asyncio
async def test_codename_collision_retries_with_new_codename(store, configured, platform):
    await store.create(UserID(99), "calm otter", ChannelID(1))
    router = RelayRouter(store, configured, platform, ScriptedGenerator("calm otter", "brave heron"))

    conversation = await router.dispatch(UserMessage(UserID(1), "hi"))

    assert conversation.codename == "brave heron"
    orphan = platform.calls_named("create_thread")[0]
    assert orphan[2] == "calm otter"
    assert len(platform.archived) == 1
    assert platform.thread_messages == [(conversation.thread_id, "hi")]


@pytest.mark.asyncio
async def test_codename_collisions_are_bounded(store, configured, platform):
    await store.create(UserID(99), "calm otter", ChannelID(1))
    router = RelayRouter(
        store, configured, platform, ScriptedGenerator(*["calm otter"] * 3), codename_attempts=3
    )

    with pytest.raises(ExhaustedVocabulary):
        await router.dispatch(UserMessage(UserID(1), "hi"))

    assert await store.find_by_user(UserID(1)) is None
    assert len(platform.archived) == 3


@pytest.mark.asyncio
async def test_lost_creation_race_relays_into_winner(router, store, platform, monkeypatch):
    winner = await store.create(UserID(1), "calm otter", ChannelID(1))

    real_find = store.find_by_user
    calls = {"n": 0}

    async def stale_find(user_id):
        calls["n"] += 1
        # The first lookup happens before the winner's row is visible
        return None if calls["n"] == 1 else await real_find(user_id)

    monkeypatch.setattr(store, "find_by_user", stale_find)

    conversation = await router.dispatch(UserMessage(UserID(1), "hi"))

    assert conversation == winner
    assert len(platform.archived) == 1
    assert platform.thread_messages == [(winner.thread_id, "hi")]
    assert await store.count() == 1


@pytest.mark.asyncio
async def test_vanished_concurrent_conversation_does_not_use_up_codename_attempts(
    store, configured, platform, monkeypatch
):
    real_create = store.create
    calls = {"n": 0}

    async def racing_create(user_id, codename, thread_id):
        calls["n"] += 1
        if calls["n"] == 1:
            # Another event won and its conversation was closed before we looked
            raise DuplicateUser(user_id)
        return await real_create(user_id, codename, thread_id)

    monkeypatch.setattr(store, "create", racing_create)
    router = RelayRouter(
        store, configured, platform, ScriptedGenerator("calm otter", "brave heron"), codename_attempts=1
    )

    conversation = await router.dispatch(UserMessage(UserID(1), "hi"))

    assert conversation.codename == "brave heron"
    assert len(platform.archived) == 1
    assert platform.thread_messages == [(conversation.thread_id, "hi")]


@pytest.mark.asyncio
async def test_delayed_close_spares_new_holder_of_codename(store, configured):
    platform = GatedPlatform("archive_thread")
    # One possible codename, so a freed codename is immediately handed out again
    router = RelayRouter(store, configured, platform, CodenameGenerator(["calm"], ["seal"]))
    first = await router.dispatch(UserMessage(UserID(1), "hi"))

    delayed = asyncio.create_task(router.close("calm seal"))
    await platform.reached.wait()

    await router.close("calm seal")
    second = await router.dispatch(UserMessage(UserID(2), "hello"))
    assert second.codename == "calm seal"

    platform.release.set()
    outcome = await delayed

    assert outcome.conversation == first
    assert await store.find_by_user(UserID(2)) == second
    assert await store.find_by_codename("calm seal") == second


@pytest.mark.asyncio
async def test_close_pinned_to_member_ignores_new_holder(router, store, platform):
    await store.create(UserID(2), "calm otter", ChannelID(11))

    with pytest.raises(UnknownCodename):
        await router.close("calm otter", user_id=UserID(1))

    assert await store.count() == 1
    assert platform.archived == []


@pytest.mark.asyncio
async def test_unsupported_event_type(router):
    with pytest.raises(TypeError):
        await router.dispatch(object())

