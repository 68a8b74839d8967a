from types import SimpleNamespace
from unittest import mock

import discord
import pytest

from bots import logging_utils
from bots.embeds import KICK, action_embed, help_embed


def http_error(cls, status: int):
    return cls(mock.Mock(status=status, reason="error"), "error")


def text_channel(guild_id: int = 1, channel_id: int = 55):
    channel = mock.MagicMock(spec=discord.TextChannel)
    channel.id = channel_id
    channel.guild = SimpleNamespace(id=guild_id)
    channel.send = mock.AsyncMock()
    return channel


class FakeGuild:
    def __init__(self, guild_id: int = 1, channels=None) -> None:
        self.id = guild_id
        self._channels = channels or {}

    def get_channel(self, channel_id):
        return self._channels.get(channel_id)


@pytest.mark.asyncio
async def test_resolve_log_channel_unset_returns_none():
    bot = mock.MagicMock()
    bot.fetch_channel = mock.AsyncMock()

    assert await logging_utils.resolve_log_channel(bot, None, FakeGuild()) is None
    bot.fetch_channel.assert_not_awaited()


@pytest.mark.asyncio
async def test_resolve_log_channel_prefers_cache():
    channel = text_channel()
    bot = mock.MagicMock()
    bot.fetch_channel = mock.AsyncMock()

    result = await logging_utils.resolve_log_channel(bot, 55, FakeGuild(channels={55: channel}))

    assert result is channel
    bot.fetch_channel.assert_not_awaited()


@pytest.mark.asyncio
async def test_resolve_log_channel_fetches_when_uncached():
    channel = text_channel()
    bot = mock.MagicMock()
    bot.fetch_channel = mock.AsyncMock(return_value=channel)

    assert await logging_utils.resolve_log_channel(bot, 55, FakeGuild()) is channel


@pytest.mark.asyncio
async def test_resolve_log_channel_rejects_other_guild():
    bot = mock.MagicMock()
    bot.fetch_channel = mock.AsyncMock(return_value=text_channel(guild_id=2))

    assert await logging_utils.resolve_log_channel(bot, 55, FakeGuild(guild_id=1)) is None


@pytest.mark.asyncio
async def test_resolve_log_channel_not_found():
    bot = mock.MagicMock()
    bot.fetch_channel = mock.AsyncMock(side_effect=http_error(discord.NotFound, 404))

    assert await logging_utils.resolve_log_channel(bot, 55, FakeGuild()) is None


@pytest.mark.asyncio
async def test_send_mod_log_delivers_embed():
    channel = text_channel()
    embed = discord.Embed(title="x")

    delivered = await logging_utils.send_mod_log(
        mock.MagicMock(), 55, FakeGuild(channels={55: channel}), embed
    )

    assert delivered is True
    channel.send.assert_awaited_once_with(embed=embed)


@pytest.mark.asyncio
async def test_send_mod_log_forbidden_returns_false():
    channel = text_channel()
    channel.send.side_effect = http_error(discord.Forbidden, 403)

    delivered = await logging_utils.send_mod_log(
        mock.MagicMock(), 55, FakeGuild(channels={55: channel}), discord.Embed()
    )

    assert delivered is False


def test_configure_logging_falls_back_to_info():
    with mock.patch.object(logging_utils.logging, "basicConfig") as basic:
        logging_utils.configure_logging("NOPE")

    basic.assert_called_once_with(level=logging_utils.logging.INFO, format=logging_utils.LOG_FORMAT)


def test_action_embed_fields():
    embed = action_embed(
        KICK, user="bob", moderator="alice", reason="spam", duration="5 minutes", case_id="c1"
    )

    assert embed.title == "🥾 Member Kicked"
    assert embed.color.value == 0xFF6B6B
    assert [f.name for f in embed.fields] == ["User", "Duration", "Moderator", "Reason"]
    assert embed.footer.text == "Case c1"


def test_help_embed_lists_sections():
    embed = help_embed()

    assert [f.name for f in embed.fields] == ["🛡️ Moderation", "🎉 Giveaways", "⚙️ Configuration"]
    assert "/giveaway start" in embed.fields[1].value
