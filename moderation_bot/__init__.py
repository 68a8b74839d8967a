"""Moderation and community feature helpers."""

from .models import (
    AutoResponder,
    GuildSettings,
    ModerationCase,
    StickyMessage,
    TempBan,
    WarningRecord,
    parse_iso,
    to_iso,
    utc_now_iso,
)
from .permissions import PermissionTier, can_moderate, resolve_tier
from .storage import ModerationStorage
from .templates import (
    DEFAULT_GOODBYE_MESSAGE,
    DEFAULT_WELCOME_MESSAGE,
    render_member_template,
    render_template,
)
from .validation import (
    DEFAULT_REASON,
    InvalidValueError,
    normalize_reason,
    normalize_trigger,
    validate_match_mode,
    validate_message_text,
    validate_purge_amount,
    validate_timeout_minutes,
    validate_warning_expiry_days,
)

__all__ = [
    "AutoResponder",
    "GuildSettings",
    "ModerationCase",
    "StickyMessage",
    "TempBan",
    "WarningRecord",
    "parse_iso",
    "to_iso",
    "utc_now_iso",
    "PermissionTier",
    "can_moderate",
    "resolve_tier",
    "ModerationStorage",
    "DEFAULT_GOODBYE_MESSAGE",
    "DEFAULT_WELCOME_MESSAGE",
    "render_member_template",
    "render_template",
    "DEFAULT_REASON",
    "InvalidValueError",
    "normalize_reason",
    "normalize_trigger",
    "validate_match_mode",
    "validate_message_text",
    "validate_purge_amount",
    "validate_timeout_minutes",
    "validate_warning_expiry_days",
]
