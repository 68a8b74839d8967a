"""Discord surface for the giveaway engine: notifier, entry button, commands."""

from __future__ import annotations

import logging
from collections.abc import Callable

import discord
from discord import app_commands

from giveaway_engine import (
    ConclusionResult,
    GiveawayEngine,
    GiveawayNotFoundError,
    GiveawayRecord,
    GiveawayRequest,
    InvalidDurationError,
    InvalidGiveawayError,
    NoParticipantsError,
    NotifierError,
    Scheduler,
    format_mentions,
)
from moderation_bot import ModerationStorage, PermissionTier

from .checks import TieredGroup

log = logging.getLogger("giveaway-bot")

ACTIVE_COLOR = 0x00FF00
WINNERS_COLOR = 0xFFD700
NO_ENTRIES_COLOR = 0xFF0000
NOT_FOUND_MESSAGE = "❌ Giveaway not found or already ended."


def _relative(record: GiveawayRecord) -> str:
    return f"<t:{int(record.end_at.timestamp())}:R>"


def build_announcement_embed(record: GiveawayRecord) -> discord.Embed:
    embed = discord.Embed(
        title="🎉 GIVEAWAY 🎉",
        description=(
            f"**Prize:** {record.prize}\n"
            f"**Winners:** {record.winner_count}\n"
            f"**Ends:** {_relative(record)}\n"
            f"**Hosted by:** <@{record.host_id}>"
        ),
        color=ACTIVE_COLOR,
        timestamp=record.end_at,
    )
    embed.set_footer(text=f"Giveaway ID: {record.id}")
    return embed


def build_result_embed(result: ConclusionResult) -> discord.Embed:
    record = result.giveaway
    if result.no_entries:
        description = f"**Prize:** {record.prize}\n**Winner:** No valid entries"
        color = NO_ENTRIES_COLOR
    else:
        description = f"**Prize:** {record.prize}\n**Winner(s):** {result.winner_mentions}"
        color = WINNERS_COLOR
    embed = discord.Embed(
        title="🎉 GIVEAWAY ENDED 🎉",
        description=description,
        color=color,
        timestamp=discord.utils.utcnow(),
    )
    embed.set_footer(text=f"Giveaway ID: {record.id} · {record.entry_count} entries")
    return embed


class GiveawayView(discord.ui.View):
    def __init__(self, engine: GiveawayEngine, giveaway_id: str) -> None:
        super().__init__(timeout=None)
        self.engine = engine
        self.giveaway_id = giveaway_id
        self.enter.custom_id = f"giveaway:enter:{giveaway_id}"

    @discord.ui.button(label="🎉 Enter Giveaway", style=discord.ButtonStyle.primary)
    async def enter(
        self, interaction: discord.Interaction, _: discord.ui.Button
    ) -> None:  # pylint: disable=unused-argument
        try:
            result = self.engine.enter(self.giveaway_id, interaction.user.id)
        except GiveawayNotFoundError:
            await interaction.response.send_message(
                "❌ This giveaway has ended.", ephemeral=True
            )
            return

        if result.entered:
            await interaction.response.send_message(
                f"🎉 You have entered the giveaway! ({result.entry_count} entries)",
                ephemeral=True,
            )
        else:
            await interaction.response.send_message(
                "✅ You are already entered!", ephemeral=True
            )


class DiscordNotifier:
    """Posts and edits giveaway messages; every failure becomes ``NotifierError``."""

    def __init__(
        self,
        client: discord.Client,
        view_factory: Callable[[str], discord.ui.View | None],
    ) -> None:
        self._client = client
        self._view_factory = view_factory

    async def _resolve_channel(self, channel_id: int) -> discord.abc.Messageable:
        channel = self._client.get_channel(channel_id)
        if channel is None:
            try:
                channel = await self._client.fetch_channel(channel_id)
            except discord.DiscordException as exc:
                raise NotifierError(f"Cannot fetch channel {channel_id}: {exc}") from exc
        if not isinstance(channel, discord.abc.Messageable):
            raise NotifierError(f"Channel {channel_id} cannot receive messages")
        return channel

    async def announce(self, record: GiveawayRecord) -> int:
        channel = await self._resolve_channel(record.channel_id)
        kwargs: dict[str, object] = {"embed": build_announcement_embed(record)}
        view = self._view_factory(record.id)
        if view is not None:
            kwargs["view"] = view
        try:
            message = await channel.send(**kwargs)
        except discord.DiscordException as exc:
            raise NotifierError(f"Failed to announce giveaway {record.id}: {exc}") from exc
        return message.id

    async def edit_announcement(
        self, channel_id: int, message_id: int, result: ConclusionResult
    ) -> None:
        channel = await self._resolve_channel(channel_id)
        try:
            message = await channel.fetch_message(message_id)
            await message.edit(embed=build_result_embed(result), view=None)
        except discord.DiscordException as exc:
            raise NotifierError(
                f"Failed to edit giveaway message {message_id}: {exc}"
            ) from exc

    async def post_message(self, channel_id: int, content: str) -> None:
        channel = await self._resolve_channel(channel_id)
        try:
            await channel.send(content)
        except discord.DiscordException as exc:
            raise NotifierError(f"Failed to post to channel {channel_id}: {exc}") from exc


def build_engine(client: discord.Client, scheduler: Scheduler, **engine_kwargs) -> GiveawayEngine:
    """Wire a ``GiveawayEngine`` to Discord through a ``DiscordNotifier``."""
    engine: GiveawayEngine | None = None

    def view_factory(giveaway_id: str) -> discord.ui.View | None:
        return GiveawayView(engine, giveaway_id) if engine is not None else None

    engine = GiveawayEngine(DiscordNotifier(client, view_factory), scheduler, **engine_kwargs)
    return engine


class GiveawayCommands(TieredGroup):
    required_tier = PermissionTier.ADMIN

    def __init__(self, engine: GiveawayEngine, storage: ModerationStorage) -> None:
        super().__init__(storage, name="giveaway", description="Run giveaways")
        self.engine = engine

    def _guild_giveaway(
        self, interaction: discord.Interaction, giveaway_id: str
    ) -> GiveawayRecord | None:
        """Look up a running giveaway that belongs to the invoking guild."""
        try:
            record = self.engine.registry.get(giveaway_id)
        except GiveawayNotFoundError:
            return None
        if record.guild_id != interaction.guild_id:
            log.warning(
                "Guild %s tried to access giveaway %s of guild %s",
                interaction.guild_id,
                giveaway_id,
                record.guild_id,
            )
            return None
        return record

    @app_commands.command(name="start", description="Start a giveaway in this channel")
    @app_commands.describe(
        duration="How long it runs, e.g. 30m, 1h, 2d",
        winners="Number of winners",
        prize="What is being given away",
    )
    async def start(
        self,
        interaction: discord.Interaction,
        duration: str,
        winners: app_commands.Range[int, 1, 50],
        prize: str,
    ) -> None:
        await interaction.response.defer(ephemeral=True)
        request = GiveawayRequest(
            duration=duration,
            prize=prize,
            winner_count=winners,
            host_id=interaction.user.id,
            channel_id=interaction.channel_id,
            guild_id=interaction.guild_id,
        )
        try:
            record = await self.engine.create_giveaway(request)
        except InvalidDurationError:
            await interaction.followup.send(
                "❌ Invalid duration. Use format like: 1m, 1h, 1d", ephemeral=True
            )
            return
        except InvalidGiveawayError as exc:
            await interaction.followup.send(f"❌ {exc}", ephemeral=True)
            return

        if record.message_id is None:
            await interaction.followup.send(
                f"⚠️ Giveaway `{record.id}` started but the announcement could not be "
                "posted. Check my permissions in this channel.",
                ephemeral=True,
            )
            return
        await interaction.followup.send(
            f"✅ Giveaway `{record.id}` started for **{record.prize}**.", ephemeral=True
        )

    @app_commands.command(name="reroll", description="Draw new winners for a running giveaway")
    @app_commands.describe(giveaway_id="ID shown in the giveaway footer")
    async def reroll(self, interaction: discord.Interaction, giveaway_id: str) -> None:
        giveaway_id = giveaway_id.strip()
        if self._guild_giveaway(interaction, giveaway_id) is None:
            await interaction.response.send_message(NOT_FOUND_MESSAGE, ephemeral=True)
            return
        try:
            winners = self.engine.reroll(giveaway_id)
        except GiveawayNotFoundError:
            await interaction.response.send_message(NOT_FOUND_MESSAGE, ephemeral=True)
            return
        except NoParticipantsError:
            await interaction.response.send_message(
                "❌ No participants to reroll.", ephemeral=True
            )
            return

        await interaction.response.send_message(
            f"🎉 **Rerolled!** New winner(s): {format_mentions(winners)}"
        )

    @app_commands.command(name="end", description="End a giveaway now and draw winners")
    @app_commands.describe(giveaway_id="ID shown in the giveaway footer")
    async def end(self, interaction: discord.Interaction, giveaway_id: str) -> None:
        await interaction.response.defer(ephemeral=True)
        giveaway_id = giveaway_id.strip()
        result = None
        if self._guild_giveaway(interaction, giveaway_id) is not None:
            result = await self.engine.conclude(giveaway_id)
        if result is None:
            await interaction.followup.send(NOT_FOUND_MESSAGE, ephemeral=True)
            return
        await interaction.followup.send(
            f"✅ Giveaway `{result.giveaway.id}` ended with "
            f"{len(result.winners)} winner(s).",
            ephemeral=True,
        )

    @app_commands.command(name="list", description="Show running giveaways")
    async def list_(self, interaction: discord.Interaction) -> None:
        records = [r for r in self.engine.active() if r.guild_id == interaction.guild_id]
        if not records:
            await interaction.response.send_message(
                "There are no running giveaways.", ephemeral=True
            )
            return

        embed = discord.Embed(title="🎉 Running Giveaways", color=ACTIVE_COLOR)
        for record in records[:25]:
            embed.add_field(
                name=f"{record.prize} · `{record.id}`",
                value=(
                    f"Ends {_relative(record)} · {record.winner_count} winner(s) · "
                    f"{record.entry_count} entries"
                ),
                inline=False,
            )
        await interaction.response.send_message(embed=embed, ephemeral=True)


__all__ = [
    "DiscordNotifier",
    "GiveawayCommands",
    "GiveawayView",
    "build_announcement_embed",
    "build_engine",
    "build_result_embed",
]
