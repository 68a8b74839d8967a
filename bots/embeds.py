"""Embed builders shared by moderation and help commands."""

from __future__ import annotations

from dataclasses import dataclass

import discord


@dataclass(frozen=True, slots=True)
class ActionStyle:
    action: str
    title: str
    color: int
    failure: str
    target_label: str = "User"


KICK = ActionStyle(
    "kick", "🥾 Member Kicked", 0xFF6B6B, "❌ Failed to kick member. Check my permissions."
)
BAN = ActionStyle(
    "ban", "🔨 Member Banned", 0xFF0000, "❌ Failed to ban member. Check my permissions."
)
UNBAN = ActionStyle(
    "unban", "🔓 Member Unbanned", 0x57F287, "❌ Failed to unban user. Check my permissions."
)
TIMEOUT = ActionStyle(
    "timeout",
    "⏰ Member Timed Out",
    0xFFA500,
    "❌ Failed to timeout member. Check my permissions.",
)
WARN = ActionStyle("warn", "⚠️ Member Warned", 0xFFFF00, "❌ Failed to warn member.")
CLEAR = ActionStyle(
    "clear",
    "🧹 Messages Cleared",
    0x0099FF,
    "❌ Failed to delete messages. They might be older than 14 days.",
    target_label="Channel",
)


def action_embed(
    style: ActionStyle,
    *,
    user: str,
    moderator: str,
    reason: str,
    duration: str | None = None,
    case_id: str | None = None,
) -> discord.Embed:
    embed = discord.Embed(
        title=style.title, color=style.color, timestamp=discord.utils.utcnow()
    )
    embed.add_field(name=style.target_label, value=user, inline=True)
    if duration:
        embed.add_field(name="Duration", value=duration, inline=True)
    embed.add_field(name="Moderator", value=moderator, inline=True)
    embed.add_field(name="Reason", value=reason, inline=False)
    if case_id:
        embed.set_footer(text=f"Case {case_id}")
    return embed


def help_embed() -> discord.Embed:
    embed = discord.Embed(
        title="🤖 C.L. StudioWorks Bot - Commands",
        description="Moderation and Giveaway Bot",
        color=0x0099FF,
        timestamp=discord.utils.utcnow(),
    )
    embed.add_field(
        name="🛡️ Moderation",
        value=(
            "`/mod kick <member> [reason]`\n"
            "`/mod ban <member> [duration] [reason]`\n"
            "`/mod unban <user_id> [reason]`\n"
            "`/mod timeout <member> <minutes> [reason]`\n"
            "`/mod warn <member> [reason]`\n"
            "`/mod warnings <member>` · `/mod unwarn <member> <id>`\n"
            "`/mod history <member>` · `/mod clear <amount>`"
        ),
        inline=False,
    )
    embed.add_field(
        name="🎉 Giveaways",
        value=(
            "`/giveaway start <duration> <winners> <prize>`\n"
            "`/giveaway reroll <id>` · `/giveaway end <id>` · `/giveaway list`\n"
            "Example: `/giveaway start 1h 1 Discord Nitro`"
        ),
        inline=False,
    )
    embed.add_field(
        name="⚙️ Configuration",
        value=(
            "`/settings show|modlog|modrole|adminrole|welcome|goodbye|warnexpiry`\n"
            "`/sticky set|clear`\n"
            "`/autoresponder add|remove|list`"
        ),
        inline=False,
    )
    embed.set_footer(text="C.L. StudioWorks")
    return embed


__all__ = [
    "ActionStyle",
    "KICK",
    "BAN",
    "UNBAN",
    "TIMEOUT",
    "WARN",
    "CLEAR",
    "action_embed",
    "help_embed",
]
