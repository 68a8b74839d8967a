"""Unified Discord bot runtime composing moderation, giveaway and community features."""

from __future__ import annotations

import logging

import boto3
import discord
from discord import app_commands

from bots.checks import on_tree_error
from bots.community import (
    AutoResponderCommands,
    CommunityListeners,
    SettingsCommands,
    StickyCommands,
)
from bots.config import EnvironmentConfig
from bots.embeds import help_embed
from bots.giveaway import GiveawayCommands, build_engine
from bots.logging_utils import configure_logging
from bots.moderation import ModerationCommands
from bots.shadow import ShadowReporter
from bots.sweepers import ExpirySweepers
from giveaway_engine import AsyncioScheduler
from moderation_bot import ModerationStorage

log = logging.getLogger("studioworks-unified")


class UnifiedRuntime:
    def __init__(self, config: EnvironmentConfig, *, dynamodb_resource=None) -> None:
        intents = discord.Intents.default()
        intents.guilds = True
        intents.members = True
        intents.message_content = True
        intents.moderation = True

        self.config = config
        self.bot = discord.Client(
            intents=intents,
            activity=discord.Activity(
                type=discord.ActivityType.watching, name=config.activity
            ),
        )
        self.tree = app_commands.CommandTree(self.bot)
        self.shadow_reporter = ShadowReporter(self.bot, config.shadow)
        self.dynamodb = dynamodb_resource or boto3.resource(
            "dynamodb", region_name=config.aws_region
        )
        self.storage = ModerationStorage(self.dynamodb.Table(config.moderation_table_name))
        self.scheduler = AsyncioScheduler()
        self.engine = build_engine(self.bot, self.scheduler)
        self.listeners = CommunityListeners(self.bot, self.storage)
        self.sweepers = ExpirySweepers(
            self.bot,
            self.storage,
            self.shadow_reporter,
            interval_minutes=config.sweep_interval_minutes,
        )
        self._synced = False

    def command_groups(self) -> list[app_commands.Group]:
        return [
            ModerationCommands(
                self.bot,
                self.storage,
                self.shadow_reporter,
                default_warning_expiry_days=self.config.default_warning_expiry_days,
            ),
            GiveawayCommands(self.engine, self.storage),
            SettingsCommands(
                self.storage,
                default_warning_expiry_days=self.config.default_warning_expiry_days,
            ),
            StickyCommands(self.storage, self.listeners),
            AutoResponderCommands(self.storage, self.listeners),
        ]

    def configure_features(self) -> None:
        for group in self.command_groups():
            self.tree.add_command(group, override=True)

        @self.tree.command(name="help", description="List the bot's commands")
        async def help_command(interaction: discord.Interaction) -> None:
            await interaction.response.send_message(embed=help_embed(), ephemeral=True)

        self.tree.on_error = on_tree_error

        self.bot.event(self.on_ready)
        self.bot.event(self.listeners.on_member_join)
        self.bot.event(self.listeners.on_member_remove)
        self.bot.event(self.listeners.on_message)

    async def on_ready(self) -> None:
        if not self._synced:
            if self.config.dev_guild_id:
                guild = discord.Object(id=self.config.dev_guild_id)
                self.tree.copy_global_to(guild=guild)
                await self.tree.sync(guild=guild)
                log.info("Commands synced to guild %s", self.config.dev_guild_id)
            else:
                await self.tree.sync()
                log.info("Commands synced globally")
            self._synced = True

        if self.shadow_reporter.enabled:
            await self.shadow_reporter.report(None, "[unified] on_ready shadow mode active")
        self.sweepers.start()
        log.info("Bot ready as %s", self.bot.user)

    async def run(self) -> None:
        self.storage.ensure_table()
        self.configure_features()
        if self.shadow_reporter.enabled:
            log.info("Unified bot running in SHADOW mode")

        try:
            async with self.bot:
                await self.bot.start(self.config.discord_token)
        finally:
            self.sweepers.stop()
            cancelled = self.engine.shutdown()
            if cancelled:
                log.info("Dropped %s running giveaways on shutdown", cancelled)

    @classmethod
    def create(cls) -> "UnifiedRuntime":
        config = EnvironmentConfig.load()
        runtime = cls(config)
        return runtime


async def main() -> None:
    config = EnvironmentConfig.load()
    configure_logging(config.log_level)
    runtime = UnifiedRuntime(config)
    await runtime.run()


__all__ = ["EnvironmentConfig", "UnifiedRuntime", "main"]
