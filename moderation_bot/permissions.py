from __future__ import annotations

import enum

from .models import GuildSettings

MODERATOR_PERMISSIONS = (
    "kick_members",
    "ban_members",
    "moderate_members",
    "manage_messages",
)
ADMIN_PERMISSIONS = ("administrator", "manage_guild")


class PermissionTier(enum.IntEnum):
    MEMBER = 0
    MODERATOR = 1
    ADMIN = 2
    OWNER = 3

    @property
    def label(self) -> str:
        return self.name.title()


def _has_any(permissions, names: tuple[str, ...]) -> bool:
    return any(getattr(permissions, name, False) for name in names)


def resolve_tier(member, settings: GuildSettings) -> PermissionTier:
    """Return the highest tier the member qualifies for in their guild.

    Native Discord permissions and the guild's configured role lists both
    grant tiers; whichever is higher wins.
    """
    guild = getattr(member, "guild", None)
    if guild is not None and getattr(guild, "owner_id", None) == member.id:
        return PermissionTier.OWNER

    permissions = getattr(member, "guild_permissions", None)
    role_ids = {role.id for role in getattr(member, "roles", [])}

    if _has_any(permissions, ADMIN_PERMISSIONS) or role_ids & set(
        settings.admin_role_ids
    ):
        return PermissionTier.ADMIN
    if _has_any(permissions, MODERATOR_PERMISSIONS) or role_ids & set(
        settings.mod_role_ids
    ):
        return PermissionTier.MODERATOR
    return PermissionTier.MEMBER


def can_moderate(actor, target) -> bool:
    """Whether ``actor`` may take moderation action against ``target``."""
    if actor.id == target.id:
        return False
    guild = actor.guild
    if target.id == guild.owner_id:
        return False
    if actor.id == guild.owner_id:
        return True
    return actor.top_role > target.top_role


__all__ = ["PermissionTier", "resolve_tier", "can_moderate"]
