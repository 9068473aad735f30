import pytest

from modmail.datatypes.discord_datatypes import ChannelID, RoleID


@pytest.mark.asyncio
async def test_config_crud(relay_config):
    # Unset by default
    assert await relay_config.get_inbox() is None
    assert await relay_config.get_block_role() is None

    # Create
    await relay_config.set_block_role(RoleID(123))
    await relay_config.set_inbox(ChannelID(456))
    assert await relay_config.get_block_role() == RoleID(123)
    assert await relay_config.get_inbox() == ChannelID(456)

    # Update
    await relay_config.set_block_role(RoleID(321))
    await relay_config.set_inbox(ChannelID(654))
    assert await relay_config.get_block_role() == RoleID(321)
    assert await relay_config.get_inbox() == ChannelID(654)

    # Delete
    await relay_config.unset_block_role()
    await relay_config.unset_inbox()
    assert await relay_config.get_block_role() is None
    assert await relay_config.get_inbox() is None


@pytest.mark.asyncio
async def test_unset_missing_key_is_harmless(relay_config):
    await relay_config.unset_inbox()
    assert await relay_config.get_inbox() is None
