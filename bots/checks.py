"""Permission-tier gate shared by the slash-command groups."""

from __future__ import annotations

import logging

import discord
from discord import app_commands

from moderation_bot import ModerationStorage, PermissionTier, resolve_tier

log = logging.getLogger("studioworks-moderation")


async def send_ephemeral(interaction: discord.Interaction, content: str) -> None:
    """Reply privately whether or not the interaction was already answered."""
    if interaction.response.is_done():
        await interaction.followup.send(content, ephemeral=True)
    else:
        await interaction.response.send_message(content, ephemeral=True)


class TieredGroup(app_commands.Group):
    """Command group whose commands require a minimum permission tier."""

    required_tier: PermissionTier = PermissionTier.ADMIN

    def __init__(self, storage: ModerationStorage, **kwargs) -> None:
        kwargs.setdefault("guild_only", True)
        super().__init__(**kwargs)
        self.storage = storage

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if interaction.guild is None:
            await send_ephemeral(interaction, "❌ This command can only be used in a server.")
            return False
        try:
            settings = self.storage.get_settings(interaction.guild.id)
        except Exception as exc:  # pylint: disable=broad-except
            log.exception("Failed to load settings for %s: %s", interaction.guild.id, exc)
            await send_ephemeral(interaction, "❌ Permission check failed, try again later.")
            return False

        tier = resolve_tier(interaction.user, settings)
        if tier < self.required_tier:
            await send_ephemeral(
                interaction,
                f"❌ You need the **{self.required_tier.label}** tier to use this command.",
            )
            return False
        return True


async def on_tree_error(
    interaction: discord.Interaction, error: app_commands.AppCommandError
) -> None:
    if isinstance(error, app_commands.CheckFailure):
        return
    command = interaction.command.qualified_name if interaction.command else "unknown"
    log.error("Command %s failed", command, exc_info=error)
    try:
        await send_ephemeral(interaction, "❌ Something went wrong running that command.")
    except discord.DiscordException as exc:
        log.warning("Could not report command failure: %s", exc)


__all__ = ["TieredGroup", "on_tree_error", "send_ephemeral"]
