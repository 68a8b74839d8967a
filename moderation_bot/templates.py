from __future__ import annotations

import re

DEFAULT_WELCOME_MESSAGE = (
    "Welcome {mention} to **{server}**! You are member #{member_count}."
)
DEFAULT_GOODBYE_MESSAGE = "{user} has left **{server}**."

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def member_placeholders(member, guild) -> dict[str, str]:
    return {
        "user": str(member),
        "mention": member.mention,
        "server": guild.name,
        "member_count": str(guild.member_count or 0),
    }


def render_template(template: str, values: dict[str, str]) -> str:
    """Substitute ``{name}`` placeholders, leaving unknown ones untouched."""
    return _PLACEHOLDER.sub(lambda m: values.get(m.group(1), m.group(0)), template)


def render_member_template(template: str, member, guild) -> str:
    return render_template(template, member_placeholders(member, guild))


__all__ = [
    "DEFAULT_WELCOME_MESSAGE",
    "DEFAULT_GOODBYE_MESSAGE",
    "member_placeholders",
    "render_template",
    "render_member_template",
]
