"""Background loops that lift expired temporary bans and prune warnings."""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from datetime import UTC, datetime

import discord
from discord.ext import tasks

from moderation_bot import ModerationCase, ModerationStorage

from .shadow import ShadowReporter

log = logging.getLogger("studioworks-sweepers")

TEMP_BAN_EXPIRED_REASON = "Temporary ban expired"


def _utc_now() -> datetime:
    return datetime.now(UTC)


class ExpirySweepers:
    def __init__(
        self,
        client: discord.Client,
        storage: ModerationStorage,
        shadow: ShadowReporter,
        *,
        interval_minutes: int = 1,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.client = client
        self.storage = storage
        self.shadow = shadow
        self.clock = clock
        self.sweep.change_interval(minutes=max(interval_minutes, 1))

    def start(self) -> None:
        if not self.sweep.is_running():
            self.sweep.start()

    def stop(self) -> None:
        self.sweep.cancel()

    @tasks.loop(minutes=1)
    async def sweep(self) -> None:
        lifted = await self.sweep_temp_bans()
        pruned = self.sweep_warnings()
        if lifted or pruned:
            log.info("Sweep lifted %s bans and pruned %s warnings", lifted, pruned)

    @sweep.before_loop
    async def before_sweep(self) -> None:
        await self.client.wait_until_ready()

    async def sweep_temp_bans(self) -> int:
        """Unban every member whose temporary ban has run out."""
        try:
            expired = self.storage.list_expired_temp_bans(self.clock())
        except Exception as exc:  # pylint: disable=broad-except
            log.exception("Failed to scan temporary bans: %s", exc)
            return 0

        lifted = 0
        for ban in expired:
            guild = self.client.get_guild(ban.guild_id)
            if guild is None:
                log.warning(
                    "Guild %s unavailable, keeping temporary ban for %s",
                    ban.guild_id,
                    ban.user_id,
                )
                continue
            try:
                await self.shadow.run_or_report(
                    guild,
                    f"unban {ban.user_id}: {TEMP_BAN_EXPIRED_REASON}",
                    functools.partial(
                        guild.unban,
                        discord.Object(id=ban.user_id),
                        reason=TEMP_BAN_EXPIRED_REASON,
                    ),
                )
            except discord.NotFound:
                log.info("Ban for %s in %s was already lifted", ban.user_id, guild.id)
            except discord.DiscordException as exc:
                log.warning("Failed to lift ban for %s: %s", ban.user_id, exc)
                continue

            try:
                self.storage.delete_temp_ban(ban.guild_id, ban.user_id)
                self.storage.record_case(
                    ModerationCase(
                        guild_id=ban.guild_id,
                        action="unban",
                        target_id=ban.user_id,
                        moderator_id=self.client.user.id if self.client.user else 0,
                        reason=TEMP_BAN_EXPIRED_REASON,
                    )
                )
            except Exception as exc:  # pylint: disable=broad-except
                log.exception("Failed to clear temporary ban for %s: %s", ban.user_id, exc)
                continue
            lifted += 1
        return lifted

    def sweep_warnings(self) -> int:
        try:
            expired = self.storage.list_expired_warnings(self.clock())
        except Exception as exc:  # pylint: disable=broad-except
            log.exception("Failed to scan warnings: %s", exc)
            return 0

        pruned = 0
        for warning in expired:
            try:
                if self.storage.delete_warning(
                    warning.guild_id, warning.user_id, warning.warning_id
                ):
                    pruned += 1
            except Exception as exc:  # pylint: disable=broad-except
                log.exception("Failed to delete warning %s: %s", warning.warning_id, exc)
        return pruned


__all__ = ["ExpirySweepers", "TEMP_BAN_EXPIRED_REASON"]
