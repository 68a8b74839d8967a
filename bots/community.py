"""Welcome/goodbye messages, sticky messages and auto-responders."""

from __future__ import annotations

import asyncio
import logging
from typing import Literal

import discord
from discord import app_commands

from moderation_bot import (
    DEFAULT_GOODBYE_MESSAGE,
    DEFAULT_WELCOME_MESSAGE,
    AutoResponder,
    GuildSettings,
    InvalidValueError,
    ModerationStorage,
    PermissionTier,
    StickyMessage,
    normalize_trigger,
    render_member_template,
    validate_match_mode,
    validate_message_text,
    validate_warning_expiry_days,
)

from .checks import TieredGroup, send_ephemeral

log = logging.getLogger("studioworks-community")


class CommunityListeners:
    """Gateway event handlers for the community features.

    Stickies and auto-responders are cached per guild because ``on_message``
    fires for every message; the command groups call ``invalidate`` on writes.
    """

    def __init__(self, client: discord.Client, storage: ModerationStorage) -> None:
        self.client = client
        self.storage = storage
        self._stickies: dict[int, dict[int, StickyMessage]] = {}
        self._responders: dict[int, list[AutoResponder]] = {}
        self._sticky_locks: dict[int, asyncio.Lock] = {}

    def invalidate(self, guild_id: int) -> None:
        self._stickies.pop(guild_id, None)
        self._responders.pop(guild_id, None)

    def _guild_stickies(self, guild_id: int) -> dict[int, StickyMessage]:
        if guild_id not in self._stickies:
            self._stickies[guild_id] = {
                sticky.channel_id: sticky
                for sticky in self.storage.list_stickies(guild_id)
            }
        return self._stickies[guild_id]

    def _guild_responders(self, guild_id: int) -> list[AutoResponder]:
        if guild_id not in self._responders:
            self._responders[guild_id] = self.storage.list_autoresponders(guild_id)
        return self._responders[guild_id]

    async def _post_template(
        self,
        member: discord.Member,
        channel_id: int | None,
        template: str | None,
        default: str,
    ) -> None:
        if not channel_id:
            return
        guild = member.guild
        channel = guild.get_channel(channel_id)
        if not isinstance(channel, discord.abc.Messageable):
            log.warning("Greeting channel %s missing in guild %s", channel_id, guild.id)
            return
        content = render_member_template(template or default, member, guild)
        try:
            await channel.send(content)
        except discord.DiscordException as exc:
            log.warning("Failed to post greeting in %s: %s", channel_id, exc)

    async def on_member_join(self, member: discord.Member) -> None:
        try:
            settings = self.storage.get_settings(member.guild.id)
        except Exception as exc:  # pylint: disable=broad-except
            log.exception("Failed to load settings for %s: %s", member.guild.id, exc)
            return
        await self._post_template(
            member,
            settings.welcome_channel_id,
            settings.welcome_message,
            DEFAULT_WELCOME_MESSAGE,
        )

    async def on_member_remove(self, member: discord.Member) -> None:
        try:
            settings = self.storage.get_settings(member.guild.id)
        except Exception as exc:  # pylint: disable=broad-except
            log.exception("Failed to load settings for %s: %s", member.guild.id, exc)
            return
        await self._post_template(
            member,
            settings.goodbye_channel_id,
            settings.goodbye_message,
            DEFAULT_GOODBYE_MESSAGE,
        )

    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot or message.guild is None:
            return
        try:
            await self._respond(message)
            await self._repost_sticky(message)
        except Exception as exc:  # pylint: disable=broad-except
            log.exception("Message handling failed in %s: %s", message.channel.id, exc)

    async def _respond(self, message: discord.Message) -> None:
        for responder in self._guild_responders(message.guild.id):
            if responder.matches(message.content):
                content = render_member_template(
                    responder.response, message.author, message.guild
                )
                await message.channel.send(content)
                return

    async def _repost_sticky(self, message: discord.Message) -> None:
        sticky = self._guild_stickies(message.guild.id).get(message.channel.id)
        if sticky is None:
            return
        lock = self._sticky_locks.setdefault(message.channel.id, asyncio.Lock())
        if lock.locked():
            return
        async with lock:
            await self.post_sticky(message.channel, sticky)

    async def post_sticky(self, channel, sticky: StickyMessage) -> None:
        """Replace the previous sticky post in ``channel`` with a fresh one."""
        if sticky.last_message_id:
            try:
                await channel.get_partial_message(sticky.last_message_id).delete()
            except discord.NotFound:
                pass
            except discord.DiscordException as exc:
                log.warning("Failed to delete old sticky in %s: %s", channel.id, exc)
        posted = await channel.send(sticky.content)
        sticky.last_message_id = posted.id
        self.storage.save_sticky(sticky)


class SettingsCommands(TieredGroup):
    required_tier = PermissionTier.ADMIN

    def __init__(self, storage: ModerationStorage, default_warning_expiry_days: int = 30) -> None:
        super().__init__(storage, name="settings", description="Configure the bot for this server")
        self.default_warning_expiry_days = default_warning_expiry_days

    async def _update(self, interaction: discord.Interaction, change, confirmation: str) -> None:
        try:
            settings = self.storage.get_settings(interaction.guild.id)
            change(settings)
            self.storage.save_settings(settings)
        except Exception as exc:  # pylint: disable=broad-except
            log.exception("Failed to update settings for %s: %s", interaction.guild.id, exc)
            await send_ephemeral(interaction, "❌ Failed to save settings.")
            return
        await send_ephemeral(interaction, confirmation)

    @app_commands.command(name="show", description="Show the current configuration")
    async def show(self, interaction: discord.Interaction) -> None:
        try:
            settings = self.storage.get_settings(interaction.guild.id)
        except Exception as exc:  # pylint: disable=broad-except
            log.exception("Failed to load settings for %s: %s", interaction.guild.id, exc)
            await send_ephemeral(interaction, "❌ Failed to load settings.")
            return
        await interaction.response.send_message(
            embed=self.settings_embed(settings), ephemeral=True
        )

    def settings_embed(self, settings: GuildSettings) -> discord.Embed:
        def channel(value: int | None) -> str:
            return f"<#{value}>" if value else "Not set"

        def roles(values: list[int]) -> str:
            return " ".join(f"<@&{r}>" for r in values) or "None"

        expiry = settings.warning_expiry_days
        if expiry is None:
            expiry = self.default_warning_expiry_days
        embed = discord.Embed(title="⚙️ Server Settings", color=0x0099FF)
        embed.add_field(name="Mod log", value=channel(settings.mod_log_channel_id))
        embed.add_field(name="Moderator roles", value=roles(settings.mod_role_ids))
        embed.add_field(name="Admin roles", value=roles(settings.admin_role_ids))
        embed.add_field(name="Welcome", value=channel(settings.welcome_channel_id))
        embed.add_field(name="Goodbye", value=channel(settings.goodbye_channel_id))
        embed.add_field(
            name="Warning expiry",
            value=f"{expiry} days" if expiry else "Never",
        )
        return embed

    @app_commands.command(name="modlog", description="Set or clear the mod-log channel")
    @app_commands.describe(channel="Channel for moderation logs; omit to disable")
    async def modlog(
        self, interaction: discord.Interaction, channel: discord.TextChannel | None = None
    ) -> None:
        def change(settings: GuildSettings) -> None:
            settings.mod_log_channel_id = channel.id if channel else None

        await self._update(
            interaction,
            change,
            f"✅ Mod log set to {channel.mention}." if channel else "✅ Mod log disabled.",
        )

    @app_commands.command(name="modrole", description="Grant or revoke the moderator tier for a role")
    @app_commands.describe(role="Role to change", enabled="Whether the role is a moderator role")
    async def modrole(
        self, interaction: discord.Interaction, role: discord.Role, enabled: bool = True
    ) -> None:
        def change(settings: GuildSettings) -> None:
            settings.mod_role_ids = _toggle(settings.mod_role_ids, role.id, enabled)

        verb = "is now" if enabled else "is no longer"
        await self._update(interaction, change, f"✅ {role.mention} {verb} a moderator role.")

    @app_commands.command(name="adminrole", description="Grant or revoke the admin tier for a role")
    @app_commands.describe(role="Role to change", enabled="Whether the role is an admin role")
    async def adminrole(
        self, interaction: discord.Interaction, role: discord.Role, enabled: bool = True
    ) -> None:
        def change(settings: GuildSettings) -> None:
            settings.admin_role_ids = _toggle(settings.admin_role_ids, role.id, enabled)

        verb = "is now" if enabled else "is no longer"
        await self._update(interaction, change, f"✅ {role.mention} {verb} an admin role.")

    @app_commands.command(name="welcome", description="Configure the welcome message")
    @app_commands.describe(
        channel="Channel for welcome messages; omit to disable",
        message="Template: {user} {mention} {server} {member_count}",
    )
    async def welcome(
        self,
        interaction: discord.Interaction,
        channel: discord.TextChannel | None = None,
        message: str | None = None,
    ) -> None:
        try:
            template = validate_message_text(message, label="Welcome message") if message else None
        except InvalidValueError as exc:
            await send_ephemeral(interaction, f"❌ {exc}")
            return

        def change(settings: GuildSettings) -> None:
            settings.welcome_channel_id = channel.id if channel else None
            if template is not None:
                settings.welcome_message = template

        await self._update(
            interaction,
            change,
            f"✅ Welcome messages go to {channel.mention}." if channel else "✅ Welcome messages disabled.",
        )

    @app_commands.command(name="goodbye", description="Configure the goodbye message")
    @app_commands.describe(
        channel="Channel for goodbye messages; omit to disable",
        message="Template: {user} {mention} {server} {member_count}",
    )
    async def goodbye(
        self,
        interaction: discord.Interaction,
        channel: discord.TextChannel | None = None,
        message: str | None = None,
    ) -> None:
        try:
            template = validate_message_text(message, label="Goodbye message") if message else None
        except InvalidValueError as exc:
            await send_ephemeral(interaction, f"❌ {exc}")
            return

        def change(settings: GuildSettings) -> None:
            settings.goodbye_channel_id = channel.id if channel else None
            if template is not None:
                settings.goodbye_message = template

        await self._update(
            interaction,
            change,
            f"✅ Goodbye messages go to {channel.mention}." if channel else "✅ Goodbye messages disabled.",
        )

    @app_commands.command(name="warnexpiry", description="Days until warnings expire (0 = never)")
    @app_commands.describe(days="Number of days, 0 keeps warnings forever")
    async def warnexpiry(self, interaction: discord.Interaction, days: int) -> None:
        try:
            days = validate_warning_expiry_days(days)
        except InvalidValueError as exc:
            await send_ephemeral(interaction, f"❌ {exc}")
            return

        def change(settings: GuildSettings) -> None:
            settings.warning_expiry_days = days

        await self._update(
            interaction,
            change,
            f"✅ New warnings expire after {days} days." if days else "✅ Warnings no longer expire.",
        )


def _toggle(values: list[int], value: int, enabled: bool) -> list[int]:
    remaining = [v for v in values if v != value]
    if enabled:
        remaining.append(value)
    return remaining


class StickyCommands(TieredGroup):
    required_tier = PermissionTier.ADMIN

    def __init__(self, storage: ModerationStorage, listeners: CommunityListeners) -> None:
        super().__init__(storage, name="sticky", description="Keep a message at the bottom of a channel")
        self.listeners = listeners

    @app_commands.command(name="set", description="Set the sticky message for a channel")
    @app_commands.describe(message="Text to keep at the bottom", channel="Defaults to this channel")
    async def set_(
        self,
        interaction: discord.Interaction,
        message: str,
        channel: discord.TextChannel | None = None,
    ) -> None:
        try:
            content = validate_message_text(message, label="Sticky message")
        except InvalidValueError as exc:
            await send_ephemeral(interaction, f"❌ {exc}")
            return

        target = channel or interaction.channel
        sticky = StickyMessage(
            guild_id=interaction.guild.id,
            channel_id=target.id,
            content=content,
            updated_by=interaction.user.id,
        )
        previous = None
        try:
            previous = self.storage.get_sticky(interaction.guild.id, target.id)
        except Exception as exc:  # pylint: disable=broad-except
            log.exception("Failed to load sticky for %s: %s", target.id, exc)
        if previous is not None:
            sticky.last_message_id = previous.last_message_id

        await interaction.response.defer(ephemeral=True)
        try:
            await self.listeners.post_sticky(target, sticky)
        except Exception as exc:  # pylint: disable=broad-except
            log.exception("Failed to post sticky in %s: %s", target.id, exc)
            await interaction.followup.send("❌ Failed to post the sticky message.", ephemeral=True)
            return
        finally:
            self.listeners.invalidate(interaction.guild.id)
        await interaction.followup.send(f"✅ Sticky message set in {target.mention}.", ephemeral=True)

    @app_commands.command(name="clear", description="Remove the sticky message from a channel")
    @app_commands.describe(channel="Defaults to this channel")
    async def clear(
        self, interaction: discord.Interaction, channel: discord.TextChannel | None = None
    ) -> None:
        target = channel or interaction.channel
        try:
            sticky = self.storage.get_sticky(interaction.guild.id, target.id)
            if sticky is None:
                await send_ephemeral(interaction, "❌ There is no sticky message here.")
                return
            self.storage.delete_sticky(interaction.guild.id, target.id)
        except Exception as exc:  # pylint: disable=broad-except
            log.exception("Failed to clear sticky in %s: %s", target.id, exc)
            await send_ephemeral(interaction, "❌ Failed to clear the sticky message.")
            return
        finally:
            self.listeners.invalidate(interaction.guild.id)

        if sticky.last_message_id:
            try:
                await target.get_partial_message(sticky.last_message_id).delete()
            except discord.DiscordException as exc:
                log.warning("Failed to delete sticky post in %s: %s", target.id, exc)
        await send_ephemeral(interaction, f"✅ Sticky message removed from {target.mention}.")


class AutoResponderCommands(TieredGroup):
    required_tier = PermissionTier.ADMIN

    def __init__(self, storage: ModerationStorage, listeners: CommunityListeners) -> None:
        super().__init__(storage, name="autoresponder", description="Automatic replies to trigger phrases")
        self.listeners = listeners

    @app_commands.command(name="add", description="Add or replace an auto-responder")
    @app_commands.describe(
        trigger="Phrase that triggers the reply",
        response="Reply text; supports {user} {mention} {server}",
        match="Match the whole message or any part of it",
    )
    async def add(
        self,
        interaction: discord.Interaction,
        trigger: str,
        response: str,
        match: Literal["contains", "exact"] = "contains",
    ) -> None:
        try:
            responder = AutoResponder(
                guild_id=interaction.guild.id,
                trigger=normalize_trigger(trigger),
                response=validate_message_text(response, label="Response"),
                created_by=interaction.user.id,
                match_mode=validate_match_mode(match),
            )
        except InvalidValueError as exc:
            await send_ephemeral(interaction, f"❌ {exc}")
            return

        try:
            self.storage.save_autoresponder(responder)
        except Exception as exc:  # pylint: disable=broad-except
            log.exception("Failed to save auto-responder: %s", exc)
            await send_ephemeral(interaction, "❌ Failed to save the auto-responder.")
            return
        finally:
            self.listeners.invalidate(interaction.guild.id)
        await send_ephemeral(
            interaction, f"✅ Auto-responder for `{responder.trigger}` saved."
        )

    @app_commands.command(name="remove", description="Delete an auto-responder")
    @app_commands.describe(trigger="Trigger phrase to remove")
    async def remove(self, interaction: discord.Interaction, trigger: str) -> None:
        try:
            key = normalize_trigger(trigger)
        except InvalidValueError as exc:
            await send_ephemeral(interaction, f"❌ {exc}")
            return
        try:
            removed = self.storage.delete_autoresponder(interaction.guild.id, key)
        except Exception as exc:  # pylint: disable=broad-except
            log.exception("Failed to delete auto-responder: %s", exc)
            await send_ephemeral(interaction, "❌ Failed to delete the auto-responder.")
            return
        finally:
            self.listeners.invalidate(interaction.guild.id)
        if not removed:
            await send_ephemeral(interaction, f"❌ No auto-responder for `{key}`.")
            return
        await send_ephemeral(interaction, f"✅ Auto-responder for `{key}` removed.")

    @app_commands.command(name="list", description="List auto-responders")
    async def list_(self, interaction: discord.Interaction) -> None:
        try:
            responders = self.storage.list_autoresponders(interaction.guild.id)
        except Exception as exc:  # pylint: disable=broad-except
            log.exception("Failed to list auto-responders: %s", exc)
            await send_ephemeral(interaction, "❌ Lookup failed.")
            return
        if not responders:
            await send_ephemeral(interaction, "There are no auto-responders.")
            return
        lines = [f"`{r.trigger}` ({r.match_mode}) → {r.response[:80]}" for r in responders]
        embed = discord.Embed(
            title="💬 Auto-responders", description="\n".join(lines), color=0x0099FF
        )
        await interaction.response.send_message(embed=embed, ephemeral=True)


__all__ = [
    "AutoResponderCommands",
    "CommunityListeners",
    "SettingsCommands",
    "StickyCommands",
]
