"""Shadow mode: report destructive actions instead of executing them."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar

import discord

from .config import ShadowConfig

log = logging.getLogger("studioworks-shadow")

T = TypeVar("T")


class ShadowReporter:
    """Mirror would-be moderation actions to a channel while shadow mode is on.

    Without ``SHADOW_CHANNEL_ID`` (or when the channel cannot be reached) the
    report goes to the log instead.
    """

    def __init__(self, bot: discord.Client, config: ShadowConfig) -> None:
        self._bot = bot
        self._config = config

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    @property
    def channel_id(self) -> int | None:
        return self._config.channel_id

    async def _resolve_channel(
        self, guild: discord.Guild | None
    ) -> discord.abc.Messageable | None:
        channel = guild.get_channel(self.channel_id) if guild is not None else None
        if channel is None:
            channel = self._bot.get_channel(self.channel_id)
        if channel is None:
            try:
                channel = await self._bot.fetch_channel(self.channel_id)
            except discord.DiscordException as exc:
                log.warning("Unable to fetch shadow channel %s: %s", self.channel_id, exc)
                return None
        if not isinstance(channel, discord.abc.Messageable):
            return None
        return channel

    async def report(
        self,
        guild: discord.Guild | None,
        message: str,
        *,
        embeds: Iterable[discord.Embed] | None = None,
    ) -> None:
        if not self.enabled:
            return

        channel = None
        if self.channel_id is not None:
            channel = await self._resolve_channel(guild)
        if channel is None:
            log.info("[SHADOW] %s", message)
            return

        kwargs: dict[str, object] = {"content": message}
        if embeds is not None:
            kwargs["embeds"] = list(embeds)
        try:
            await channel.send(**kwargs)
        except discord.DiscordException as exc:
            log.warning("Failed to send shadow report to %s: %s", self.channel_id, exc)

    async def run_or_report(
        self,
        guild: discord.Guild | None,
        description: str,
        action: Callable[[], Awaitable[T]],
    ) -> T | None:
        """Await ``action()``, or only report ``description`` in shadow mode."""
        if self.enabled:
            await self.report(guild, f"[noop] {description}")
            return None
        return await action()
