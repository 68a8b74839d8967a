from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import ClassVar

ISO_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"
PK_TEMPLATE = "GUILD#%s"


def utc_now_iso() -> str:
    """Return current UTC timestamp in ISO-8601 format (ms precision)."""
    return datetime.now(UTC).strftime(ISO_FORMAT)


def to_iso(value: datetime) -> str:
    return value.astimezone(UTC).strftime(ISO_FORMAT)


def parse_iso(value: str) -> datetime:
    return datetime.strptime(value, ISO_FORMAT).replace(tzinfo=UTC)


def _guild_from_pk(item: dict[str, object]) -> int:
    return int(str(item["pk"]).split("#", 1)[1])


def _optional_int(value: object) -> int | None:
    if value in (None, ""):
        return None
    return int(value)  # type: ignore[arg-type]


def _int_list(value: object) -> list[int]:
    if not value:
        return []
    return [int(v) for v in value]  # type: ignore[union-attr]


@dataclass(slots=True)
class GuildSettings:
    guild_id: int
    mod_role_ids: list[int] = field(default_factory=list)
    admin_role_ids: list[int] = field(default_factory=list)
    mod_log_channel_id: int | None = None
    welcome_channel_id: int | None = None
    welcome_message: str | None = None
    goodbye_channel_id: int | None = None
    goodbye_message: str | None = None
    warning_expiry_days: int | None = None

    SK_VALUE: ClassVar[str] = "SETTINGS"

    @classmethod
    def key(cls, guild_id: int) -> dict[str, str]:
        return {"pk": PK_TEMPLATE % guild_id, "sk": cls.SK_VALUE}

    def to_item(self) -> dict[str, object]:
        item: dict[str, object] = self.key(self.guild_id)
        item.update(
            {
                "mod_role_ids": [str(r) for r in self.mod_role_ids],
                "admin_role_ids": [str(r) for r in self.admin_role_ids],
                "mod_log_channel_id": _str_or_empty(self.mod_log_channel_id),
                "welcome_channel_id": _str_or_empty(self.welcome_channel_id),
                "welcome_message": self.welcome_message or "",
                "goodbye_channel_id": _str_or_empty(self.goodbye_channel_id),
                "goodbye_message": self.goodbye_message or "",
            }
        )
        if self.warning_expiry_days is not None:
            item["warning_expiry_days"] = self.warning_expiry_days
        return item

    @classmethod
    def from_item(cls, item: dict[str, object]) -> GuildSettings:
        expiry = item.get("warning_expiry_days")
        return cls(
            guild_id=_guild_from_pk(item),
            mod_role_ids=_int_list(item.get("mod_role_ids")),
            admin_role_ids=_int_list(item.get("admin_role_ids")),
            mod_log_channel_id=_optional_int(item.get("mod_log_channel_id")),
            welcome_channel_id=_optional_int(item.get("welcome_channel_id")),
            welcome_message=str(item.get("welcome_message") or "") or None,
            goodbye_channel_id=_optional_int(item.get("goodbye_channel_id")),
            goodbye_message=str(item.get("goodbye_message") or "") or None,
            warning_expiry_days=int(expiry) if expiry is not None else None,
        )


def _str_or_empty(value: int | None) -> str:
    return "" if value is None else str(value)


@dataclass(slots=True)
class ModerationCase:
    guild_id: int
    action: str
    target_id: int
    moderator_id: int
    reason: str
    created_at: str = field(default_factory=utc_now_iso)
    case_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    duration_seconds: int | None = None

    SK_PREFIX: ClassVar[str] = "CASE#"

    @classmethod
    def key(cls, guild_id: int, created_at: str, case_id: str) -> dict[str, str]:
        return {
            "pk": PK_TEMPLATE % guild_id,
            "sk": f"{cls.SK_PREFIX}{created_at}#{case_id}",
        }

    def to_item(self) -> dict[str, object]:
        item: dict[str, object] = self.key(self.guild_id, self.created_at, self.case_id)
        item.update(
            {
                "action": self.action,
                "target_id": str(self.target_id),
                "moderator_id": str(self.moderator_id),
                "reason": self.reason,
                "created_at": self.created_at,
            }
        )
        if self.duration_seconds is not None:
            item["duration_seconds"] = self.duration_seconds
        return item

    @classmethod
    def from_item(cls, item: dict[str, object]) -> ModerationCase:
        case_id = str(item["sk"]).rsplit("#", 1)[1]
        duration = item.get("duration_seconds")
        return cls(
            guild_id=_guild_from_pk(item),
            action=str(item.get("action", "")),
            target_id=int(item.get("target_id", 0)),
            moderator_id=int(item.get("moderator_id", 0)),
            reason=str(item.get("reason", "")),
            created_at=str(item.get("created_at", "")),
            case_id=case_id,
            duration_seconds=int(duration) if duration is not None else None,
        )


@dataclass(slots=True)
class WarningRecord:
    guild_id: int
    user_id: int
    moderator_id: int
    reason: str
    created_at: str = field(default_factory=utc_now_iso)
    expires_at: str | None = None
    warning_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])

    SK_PREFIX: ClassVar[str] = "WARN#"

    @classmethod
    def key(cls, guild_id: int, user_id: int, warning_id: str) -> dict[str, str]:
        return {
            "pk": PK_TEMPLATE % guild_id,
            "sk": f"{cls.SK_PREFIX}{user_id}#{warning_id}",
        }

    @classmethod
    def user_prefix(cls, user_id: int) -> str:
        return f"{cls.SK_PREFIX}{user_id}#"

    def to_item(self) -> dict[str, object]:
        item: dict[str, object] = self.key(self.guild_id, self.user_id, self.warning_id)
        item.update(
            {
                "moderator_id": str(self.moderator_id),
                "reason": self.reason,
                "created_at": self.created_at,
                "expires_at": self.expires_at or "",
            }
        )
        return item

    @classmethod
    def from_item(cls, item: dict[str, object]) -> WarningRecord:
        _, user_id, warning_id = str(item["sk"]).split("#", 2)
        return cls(
            guild_id=_guild_from_pk(item),
            user_id=int(user_id),
            moderator_id=int(item.get("moderator_id", 0)),
            reason=str(item.get("reason", "")),
            created_at=str(item.get("created_at", "")),
            expires_at=str(item.get("expires_at") or "") or None,
            warning_id=warning_id,
        )

    def is_expired(self, now: datetime) -> bool:
        if not self.expires_at:
            return False
        return parse_iso(self.expires_at) <= now


@dataclass(slots=True)
class TempBan:
    guild_id: int
    user_id: int
    moderator_id: int
    reason: str
    expires_at: str
    created_at: str = field(default_factory=utc_now_iso)

    SK_PREFIX: ClassVar[str] = "TEMPBAN#"

    @classmethod
    def key(cls, guild_id: int, user_id: int) -> dict[str, str]:
        return {"pk": PK_TEMPLATE % guild_id, "sk": f"{cls.SK_PREFIX}{user_id}"}

    def to_item(self) -> dict[str, object]:
        item: dict[str, object] = self.key(self.guild_id, self.user_id)
        item.update(
            {
                "moderator_id": str(self.moderator_id),
                "reason": self.reason,
                "expires_at": self.expires_at,
                "created_at": self.created_at,
            }
        )
        return item

    @classmethod
    def from_item(cls, item: dict[str, object]) -> TempBan:
        return cls(
            guild_id=_guild_from_pk(item),
            user_id=int(str(item["sk"]).split("#", 1)[1]),
            moderator_id=int(item.get("moderator_id", 0)),
            reason=str(item.get("reason", "")),
            expires_at=str(item.get("expires_at", "")),
            created_at=str(item.get("created_at", "")),
        )

    def is_expired(self, now: datetime) -> bool:
        return parse_iso(self.expires_at) <= now


@dataclass(slots=True)
class StickyMessage:
    guild_id: int
    channel_id: int
    content: str
    updated_by: int
    updated_at: str = field(default_factory=utc_now_iso)
    last_message_id: int | None = None

    SK_PREFIX: ClassVar[str] = "STICKY#"

    @classmethod
    def key(cls, guild_id: int, channel_id: int) -> dict[str, str]:
        return {"pk": PK_TEMPLATE % guild_id, "sk": f"{cls.SK_PREFIX}{channel_id}"}

    def to_item(self) -> dict[str, object]:
        item: dict[str, object] = self.key(self.guild_id, self.channel_id)
        item.update(
            {
                "content": self.content,
                "updated_by": str(self.updated_by),
                "updated_at": self.updated_at,
                "last_message_id": _str_or_empty(self.last_message_id),
            }
        )
        return item

    @classmethod
    def from_item(cls, item: dict[str, object]) -> StickyMessage:
        return cls(
            guild_id=_guild_from_pk(item),
            channel_id=int(str(item["sk"]).split("#", 1)[1]),
            content=str(item.get("content", "")),
            updated_by=int(item.get("updated_by", 0)),
            updated_at=str(item.get("updated_at", "")),
            last_message_id=_optional_int(item.get("last_message_id")),
        )


@dataclass(slots=True)
class AutoResponder:
    guild_id: int
    trigger: str
    response: str
    created_by: int
    match_mode: str = "contains"
    created_at: str = field(default_factory=utc_now_iso)

    SK_PREFIX: ClassVar[str] = "AUTORESPONDER#"
    MATCH_MODES: ClassVar[tuple[str, ...]] = ("exact", "contains")

    @classmethod
    def key(cls, guild_id: int, trigger: str) -> dict[str, str]:
        return {"pk": PK_TEMPLATE % guild_id, "sk": f"{cls.SK_PREFIX}{trigger}"}

    def to_item(self) -> dict[str, object]:
        item: dict[str, object] = self.key(self.guild_id, self.trigger)
        item.update(
            {
                "response": self.response,
                "created_by": str(self.created_by),
                "match_mode": self.match_mode,
                "created_at": self.created_at,
            }
        )
        return item

    @classmethod
    def from_item(cls, item: dict[str, object]) -> AutoResponder:
        return cls(
            guild_id=_guild_from_pk(item),
            trigger=str(item["sk"]).split("#", 1)[1],
            response=str(item.get("response", "")),
            created_by=int(item.get("created_by", 0)),
            match_mode=str(item.get("match_mode") or "contains"),
            created_at=str(item.get("created_at", "")),
        )

    def matches(self, content: str) -> bool:
        text = content.strip().lower()
        if self.match_mode == "exact":
            return text == self.trigger
        return self.trigger in text


__all__ = [
    "ISO_FORMAT",
    "utc_now_iso",
    "to_iso",
    "parse_iso",
    "GuildSettings",
    "ModerationCase",
    "WarningRecord",
    "TempBan",
    "StickyMessage",
    "AutoResponder",
]
