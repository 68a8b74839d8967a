"""Moderation slash commands (``/mod``)."""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import discord
from discord import app_commands

from giveaway_engine import InvalidDurationError, format_duration, parse_duration
from moderation_bot import (
    InvalidValueError,
    ModerationCase,
    ModerationStorage,
    PermissionTier,
    TempBan,
    WarningRecord,
    can_moderate,
    normalize_reason,
    to_iso,
    validate_purge_amount,
    validate_timeout_minutes,
)

from . import embeds
from .checks import TieredGroup, send_ephemeral
from .logging_utils import send_mod_log
from .shadow import ShadowReporter

log = logging.getLogger("studioworks-moderation")

HISTORY_LIMIT = 10


def _utc_now() -> datetime:
    return datetime.now(UTC)


class ModerationCommands(TieredGroup):
    required_tier = PermissionTier.MODERATOR

    def __init__(
        self,
        client: discord.Client,
        storage: ModerationStorage,
        shadow: ShadowReporter,
        *,
        default_warning_expiry_days: int = 30,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        super().__init__(storage, name="mod", description="Moderation tools")
        self.client = client
        self.shadow = shadow
        self.default_warning_expiry_days = default_warning_expiry_days
        self.clock = clock

    async def _ensure_target(
        self, interaction: discord.Interaction, member: discord.Member
    ) -> bool:
        if can_moderate(interaction.user, member):
            return True
        await send_ephemeral(interaction, "❌ You cannot moderate this member.")
        return False

    async def _reason(self, interaction: discord.Interaction, raw: str | None) -> str | None:
        try:
            return normalize_reason(raw)
        except InvalidValueError as exc:
            await send_ephemeral(interaction, f"❌ {exc}")
            return None

    async def _record(
        self,
        interaction: discord.Interaction,
        case: ModerationCase,
        embed: discord.Embed,
    ) -> None:
        """Persist the case, show the action embed and mirror it to the mod log."""
        self._store_case(case)

        if interaction.response.is_done():
            await interaction.followup.send(embed=embed)
        else:
            await interaction.response.send_message(embed=embed)

        await self._mirror(interaction, case, embed)

    def _store_case(self, case: ModerationCase) -> None:
        try:
            self.storage.record_case(case)
        except Exception as exc:  # pylint: disable=broad-except
            log.exception("Failed to record %s case: %s", case.action, exc)

    async def _mirror(
        self,
        interaction: discord.Interaction,
        case: ModerationCase,
        embed: discord.Embed,
    ) -> None:
        try:
            settings = self.storage.get_settings(case.guild_id)
        except Exception as exc:  # pylint: disable=broad-except
            log.exception("Failed to load settings for mod log: %s", exc)
            return
        await send_mod_log(
            self.client, settings.mod_log_channel_id, interaction.guild, embed
        )

    @app_commands.command(name="kick", description="Kick a member from the server")
    @app_commands.describe(member="Member to kick", reason="Reason for the kick")
    async def kick(
        self,
        interaction: discord.Interaction,
        member: discord.Member,
        reason: str | None = None,
    ) -> None:
        if not await self._ensure_target(interaction, member):
            return
        reason = await self._reason(interaction, reason)
        if reason is None:
            return
        try:
            await self.shadow.run_or_report(
                interaction.guild,
                f"kick {member} ({member.id}): {reason}",
                functools.partial(member.kick, reason=reason),
            )
        except discord.DiscordException as exc:
            log.warning("Failed to kick %s: %s", member.id, exc)
            await send_ephemeral(interaction, embeds.KICK.failure)
            return

        case = ModerationCase(
            guild_id=interaction.guild.id,
            action=embeds.KICK.action,
            target_id=member.id,
            moderator_id=interaction.user.id,
            reason=reason,
        )
        embed = embeds.action_embed(
            embeds.KICK,
            user=str(member),
            moderator=str(interaction.user),
            reason=reason,
            case_id=case.case_id,
        )
        await self._record(interaction, case, embed)

    @app_commands.command(name="ban", description="Ban a member, optionally for a limited time")
    @app_commands.describe(
        member="Member to ban",
        duration="Optional temporary ban length, e.g. 12h or 7d",
        reason="Reason for the ban",
    )
    async def ban(
        self,
        interaction: discord.Interaction,
        member: discord.Member,
        duration: str | None = None,
        reason: str | None = None,
    ) -> None:
        if not await self._ensure_target(interaction, member):
            return
        reason = await self._reason(interaction, reason)
        if reason is None:
            return

        duration_ms: int | None = None
        if duration:
            try:
                duration_ms = parse_duration(duration)
            except InvalidDurationError:
                duration_ms = 0
            if duration_ms <= 0:
                await send_ephemeral(
                    interaction, "❌ Invalid duration. Use format like: 1m, 1h, 1d"
                )
                return

        try:
            await self.shadow.run_or_report(
                interaction.guild,
                f"ban {member} ({member.id}): {reason}",
                functools.partial(member.ban, reason=reason),
            )
        except discord.DiscordException as exc:
            log.warning("Failed to ban %s: %s", member.id, exc)
            await send_ephemeral(interaction, embeds.BAN.failure)
            return

        if duration_ms is not None:
            expires_at = self.clock() + timedelta(milliseconds=duration_ms)
            try:
                self.storage.save_temp_ban(
                    TempBan(
                        guild_id=interaction.guild.id,
                        user_id=member.id,
                        moderator_id=interaction.user.id,
                        reason=reason,
                        expires_at=to_iso(expires_at),
                    )
                )
            except Exception as exc:  # pylint: disable=broad-except
                log.exception("Failed to store temporary ban for %s: %s", member.id, exc)
        else:
            # A permanent ban replaces any pending temporary one.
            try:
                self.storage.delete_temp_ban(interaction.guild.id, member.id)
            except Exception as exc:  # pylint: disable=broad-except
                log.exception("Failed to clear temporary ban for %s: %s", member.id, exc)

        case = ModerationCase(
            guild_id=interaction.guild.id,
            action=embeds.BAN.action,
            target_id=member.id,
            moderator_id=interaction.user.id,
            reason=reason,
            duration_seconds=duration_ms // 1000 if duration_ms else None,
        )
        embed = embeds.action_embed(
            embeds.BAN,
            user=str(member),
            moderator=str(interaction.user),
            reason=reason,
            duration=format_duration(duration_ms) if duration_ms else "Permanent",
            case_id=case.case_id,
        )
        await self._record(interaction, case, embed)

    @app_commands.command(name="unban", description="Lift a ban")
    @app_commands.describe(user_id="ID of the banned user", reason="Reason for the unban")
    async def unban(
        self,
        interaction: discord.Interaction,
        user_id: str,
        reason: str | None = None,
    ) -> None:
        try:
            target_id = int(user_id.strip())
        except ValueError:
            await send_ephemeral(interaction, "❌ Please provide a numeric user ID.")
            return
        reason = await self._reason(interaction, reason)
        if reason is None:
            return

        guild = interaction.guild
        try:
            await self.shadow.run_or_report(
                guild,
                f"unban {target_id}: {reason}",
                functools.partial(guild.unban, discord.Object(id=target_id), reason=reason),
            )
        except discord.NotFound:
            await send_ephemeral(interaction, "❌ That user is not banned.")
            return
        except discord.DiscordException as exc:
            log.warning("Failed to unban %s: %s", target_id, exc)
            await send_ephemeral(interaction, embeds.UNBAN.failure)
            return

        try:
            self.storage.delete_temp_ban(guild.id, target_id)
        except Exception as exc:  # pylint: disable=broad-except
            log.exception("Failed to clear temporary ban for %s: %s", target_id, exc)

        case = ModerationCase(
            guild_id=guild.id,
            action=embeds.UNBAN.action,
            target_id=target_id,
            moderator_id=interaction.user.id,
            reason=reason,
        )
        embed = embeds.action_embed(
            embeds.UNBAN,
            user=f"<@{target_id}> ({target_id})",
            moderator=str(interaction.user),
            reason=reason,
            case_id=case.case_id,
        )
        await self._record(interaction, case, embed)

    @app_commands.command(name="timeout", description="Time out a member")
    @app_commands.describe(
        member="Member to time out",
        minutes="Length in minutes (1-40320)",
        reason="Reason for the timeout",
    )
    async def timeout(
        self,
        interaction: discord.Interaction,
        member: discord.Member,
        minutes: int,
        reason: str | None = None,
    ) -> None:
        if not await self._ensure_target(interaction, member):
            return
        try:
            minutes = validate_timeout_minutes(minutes)
        except InvalidValueError as exc:
            await send_ephemeral(interaction, f"❌ {exc}")
            return
        reason = await self._reason(interaction, reason)
        if reason is None:
            return

        try:
            await self.shadow.run_or_report(
                interaction.guild,
                f"timeout {member} ({member.id}) for {minutes} minutes: {reason}",
                functools.partial(member.timeout, timedelta(minutes=minutes), reason=reason),
            )
        except discord.DiscordException as exc:
            log.warning("Failed to timeout %s: %s", member.id, exc)
            await send_ephemeral(interaction, embeds.TIMEOUT.failure)
            return

        case = ModerationCase(
            guild_id=interaction.guild.id,
            action=embeds.TIMEOUT.action,
            target_id=member.id,
            moderator_id=interaction.user.id,
            reason=reason,
            duration_seconds=minutes * 60,
        )
        embed = embeds.action_embed(
            embeds.TIMEOUT,
            user=str(member),
            moderator=str(interaction.user),
            reason=reason,
            duration=f"{minutes} minutes",
            case_id=case.case_id,
        )
        await self._record(interaction, case, embed)

    @app_commands.command(name="warn", description="Warn a member")
    @app_commands.describe(member="Member to warn", reason="Reason for the warning")
    async def warn(
        self,
        interaction: discord.Interaction,
        member: discord.Member,
        reason: str | None = None,
    ) -> None:
        if not await self._ensure_target(interaction, member):
            return
        reason = await self._reason(interaction, reason)
        if reason is None:
            return

        guild = interaction.guild
        now = self.clock()
        try:
            settings = self.storage.get_settings(guild.id)
            expiry_days = settings.warning_expiry_days
            if expiry_days is None:
                expiry_days = self.default_warning_expiry_days
            warning = WarningRecord(
                guild_id=guild.id,
                user_id=member.id,
                moderator_id=interaction.user.id,
                reason=reason,
                created_at=to_iso(now),
                expires_at=to_iso(now + timedelta(days=expiry_days)) if expiry_days else None,
            )
            self.storage.add_warning(warning)
        except Exception as exc:  # pylint: disable=broad-except
            log.exception("Failed to store warning for %s: %s", member.id, exc)
            await send_ephemeral(interaction, embeds.WARN.failure)
            return

        dm_sent = True
        try:
            await member.send(
                f"You have been warned in **{guild.name}**\nReason: {reason}"
            )
        except discord.DiscordException:
            dm_sent = False

        case = ModerationCase(
            guild_id=guild.id,
            action=embeds.WARN.action,
            target_id=member.id,
            moderator_id=interaction.user.id,
            reason=reason,
            created_at=warning.created_at,
        )
        embed = embeds.action_embed(
            embeds.WARN,
            user=str(member),
            moderator=str(interaction.user),
            reason=reason,
            case_id=case.case_id,
        )
        await self._record(interaction, case, embed)
        if not dm_sent:
            await interaction.followup.send("⚠️ Could not DM the user.", ephemeral=True)

    @app_commands.command(name="warnings", description="List a member's active warnings")
    @app_commands.describe(member="Member to look up")
    async def warnings(
        self, interaction: discord.Interaction, member: discord.Member
    ) -> None:
        try:
            records = self.storage.list_warnings(
                interaction.guild.id, member.id, now=self.clock()
            )
        except Exception as exc:  # pylint: disable=broad-except
            log.exception("Failed to list warnings for %s: %s", member.id, exc)
            await send_ephemeral(interaction, "❌ Lookup failed.")
            return

        if not records:
            await send_ephemeral(interaction, f"{member} has no active warnings.")
            return

        embed = discord.Embed(
            title=f"⚠️ Warnings for {member}",
            color=embeds.WARN.color,
        )
        for record in records[:25]:
            expires = record.expires_at[:10] if record.expires_at else "never"
            embed.add_field(
                name=f"`{record.warning_id}` · {record.created_at[:10]}",
                value=f"{record.reason}\nBy <@{record.moderator_id}> · expires {expires}",
                inline=False,
            )
        await interaction.response.send_message(embed=embed, ephemeral=True)

    @app_commands.command(name="unwarn", description="Remove one of a member's warnings")
    @app_commands.describe(member="Member who was warned", warning_id="ID from /mod warnings")
    async def unwarn(
        self,
        interaction: discord.Interaction,
        member: discord.Member,
        warning_id: str,
    ) -> None:
        try:
            removed = self.storage.delete_warning(
                interaction.guild.id, member.id, warning_id.strip()
            )
        except Exception as exc:  # pylint: disable=broad-except
            log.exception("Failed to delete warning %s: %s", warning_id, exc)
            await send_ephemeral(interaction, "❌ Failed to remove warning.")
            return
        if not removed:
            await send_ephemeral(interaction, "❌ Warning not found.")
            return
        await send_ephemeral(interaction, f"✅ Removed warning `{warning_id.strip()}`.")

    @app_commands.command(name="history", description="Show recent moderation cases for a member")
    @app_commands.describe(member="Member to look up")
    async def history(
        self, interaction: discord.Interaction, member: discord.Member
    ) -> None:
        try:
            cases = self.storage.list_cases(
                interaction.guild.id, target_id=member.id, limit=HISTORY_LIMIT
            )
        except Exception as exc:  # pylint: disable=broad-except
            log.exception("Failed to list cases for %s: %s", member.id, exc)
            await send_ephemeral(interaction, "❌ Lookup failed.")
            return

        if not cases:
            await send_ephemeral(interaction, f"No moderation history for {member}.")
            return

        lines = [
            f"`{case.case_id}` {case.created_at[:10]} **{case.action}** "
            f"by <@{case.moderator_id}>: {case.reason}"
            for case in cases
        ]
        embed = discord.Embed(
            title=f"📋 History for {member}",
            description="\n".join(lines),
            color=0x0099FF,
        )
        await interaction.response.send_message(embed=embed, ephemeral=True)

    @app_commands.command(name="clear", description="Delete recent messages in this channel")
    @app_commands.describe(amount="How many messages to delete (1-100)")
    async def clear(self, interaction: discord.Interaction, amount: int) -> None:
        try:
            amount = validate_purge_amount(amount)
        except InvalidValueError as exc:
            await send_ephemeral(interaction, f"❌ {exc}")
            return

        channel = interaction.channel
        if not isinstance(channel, (discord.TextChannel, discord.Thread)):
            await send_ephemeral(interaction, "❌ Messages can only be cleared in text channels.")
            return

        await interaction.response.defer(ephemeral=True)
        try:
            deleted = await self.shadow.run_or_report(
                interaction.guild,
                f"purge {amount} messages in #{channel}",
                functools.partial(channel.purge, limit=amount),
            )
        except discord.DiscordException as exc:
            log.warning("Failed to purge %s: %s", channel.id, exc)
            await interaction.followup.send(embeds.CLEAR.failure, ephemeral=True)
            return

        count = len(deleted) if deleted is not None else 0
        await interaction.followup.send(f"✅ Deleted {count} messages.", ephemeral=True)

        case = ModerationCase(
            guild_id=interaction.guild.id,
            action=embeds.CLEAR.action,
            target_id=channel.id,
            moderator_id=interaction.user.id,
            reason=f"Deleted {count} messages",
        )
        self._store_case(case)
        embed = embeds.action_embed(
            embeds.CLEAR,
            user=channel.mention,
            moderator=str(interaction.user),
            reason=case.reason,
            case_id=case.case_id,
        )
        await self._mirror(interaction, case, embed)


__all__ = ["ModerationCommands"]
