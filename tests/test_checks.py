from types import SimpleNamespace
from unittest import mock

import pytest
from discord import app_commands

from bots.checks import TieredGroup, on_tree_error, send_ephemeral
from moderation_bot import GuildSettings, PermissionTier


class FakeResponse:
    def __init__(self, done=False) -> None:
        self.messages = []
        self._done = done

    async def send_message(self, content=None, *, ephemeral=False):
        self.messages.append((content, ephemeral))
        self._done = True

    def is_done(self) -> bool:
        return self._done


class FakeFollowup:
    def __init__(self) -> None:
        self.sent = []

    async def send(self, content=None, *, ephemeral=False):
        self.sent.append((content, ephemeral))


def make_interaction(*, guild=True, perms=None, roles=(), done=False):
    guild_obj = SimpleNamespace(id=42, owner_id=1) if guild else None
    user = SimpleNamespace(
        id=5,
        guild=guild_obj,
        roles=[SimpleNamespace(id=r) for r in roles],
        guild_permissions=SimpleNamespace(**(perms or {})),
    )
    return SimpleNamespace(
        user=user,
        guild=guild_obj,
        command=None,
        response=FakeResponse(done),
        followup=FakeFollowup(),
    )


class ModGroup(TieredGroup):
    required_tier = PermissionTier.MODERATOR


@pytest.mark.asyncio
async def test_send_ephemeral_picks_channel():
    fresh = make_interaction()
    await send_ephemeral(fresh, "hi")
    assert fresh.response.messages == [("hi", True)]

    answered = make_interaction(done=True)
    await send_ephemeral(answered, "later")
    assert answered.followup.sent == [("later", True)]


@pytest.mark.asyncio
async def test_interaction_check_requires_guild(storage):
    group = ModGroup(storage, name="mod", description="d")
    interaction = make_interaction(guild=False)

    assert await group.interaction_check(interaction) is False
    assert "only be used in a server" in interaction.response.messages[0][0]


@pytest.mark.asyncio
async def test_interaction_check_enforces_tier(storage):
    group = ModGroup(storage, name="mod", description="d")

    member = make_interaction()
    assert await group.interaction_check(member) is False
    assert member.response.messages[0][0] == (
        "❌ You need the **Moderator** tier to use this command."
    )

    moderator = make_interaction(perms={"moderate_members": True})
    assert await group.interaction_check(moderator) is True


@pytest.mark.asyncio
async def test_interaction_check_uses_configured_roles(storage):
    storage.save_settings(GuildSettings(guild_id=42, admin_role_ids=[300]))
    group = TieredGroup(storage, name="settings", description="d")

    assert await group.interaction_check(make_interaction(roles=[300])) is True
    assert await group.interaction_check(make_interaction(perms={"kick_members": True})) is False


@pytest.mark.asyncio
async def test_interaction_check_survives_storage_errors():
    storage = mock.Mock()
    storage.get_settings.side_effect = RuntimeError("ddb down")
    group = TieredGroup(storage, name="settings", description="d")
    interaction = make_interaction()

    assert await group.interaction_check(interaction) is False
    assert "try again later" in interaction.response.messages[0][0]


@pytest.mark.asyncio
async def test_tree_error_ignores_check_failures():
    interaction = make_interaction()
    await on_tree_error(interaction, app_commands.CheckFailure())
    assert interaction.response.messages == []

    await on_tree_error(interaction, app_commands.AppCommandError("boom"))
    assert interaction.response.messages == [
        ("❌ Something went wrong running that command.", True)
    ]
