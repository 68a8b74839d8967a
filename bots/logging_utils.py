from __future__ import annotations

import logging
from typing import Final

import discord

log: Final = logging.getLogger("studioworks-moderation")

LOG_FORMAT: Final = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)


async def resolve_log_channel(
    bot: discord.Client,
    log_channel_id: int | None,
    guild: discord.Guild,
) -> discord.TextChannel | None:
    """Return the guild's mod-log TextChannel or None if unavailable.

    Looks in guild cache first, then tries REST fetch as fallback.
    """
    if not log_channel_id:
        return None

    channel = guild.get_channel(log_channel_id)
    if isinstance(channel, discord.TextChannel):
        return channel

    try:
        channel = await bot.fetch_channel(log_channel_id)
    except discord.NotFound:
        log.warning("Mod-log channel %s not found", log_channel_id)
        return None
    except discord.Forbidden:
        log.warning("No access to mod-log channel %s – check bot permissions", log_channel_id)
        return None
    except discord.HTTPException as exc:
        log.warning("Cannot fetch mod-log channel %s – HTTP error: %s", log_channel_id, exc)
        return None

    if not isinstance(channel, discord.TextChannel):
        log.warning("Channel ID %s is not a text channel", log_channel_id)
        return None
    if channel.guild.id != guild.id:
        log.warning(
            "Channel %s belongs to different guild (%s) than expected (%s)",
            log_channel_id,
            channel.guild.id,
            guild.id,
        )
        return None
    return channel


async def send_mod_log(
    bot: discord.Client,
    log_channel_id: int | None,
    guild: discord.Guild,
    embed: discord.Embed,
) -> bool:
    """Mirror an action embed to the mod-log channel; True when delivered."""
    channel = await resolve_log_channel(bot, log_channel_id, guild)
    if channel is None:
        return False
    try:
        await channel.send(embed=embed)
    except discord.Forbidden:
        log.warning("No send permission in mod-log channel %s", channel.id)
        return False
    except discord.HTTPException as exc:
        log.exception("Failed to write mod log: %s", exc)
        return False
    return True
