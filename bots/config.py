"""Environment-driven configuration for the bot runtime."""

from __future__ import annotations

import os
from dataclasses import dataclass

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}

REQUIRED_VARS = ("DISCORD_TOKEN", "MODERATION_TABLE_NAME")


def env_bool(name: str, *, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return default


def env_int(name: str, *, default: int | None = None) -> int | None:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class ShadowConfig:
    enabled: bool
    channel_id: int | None


def read_shadow_config(*, default_enabled: bool = False) -> ShadowConfig:
    return ShadowConfig(
        enabled=env_bool("SHADOW_MODE", default=default_enabled),
        channel_id=env_int("SHADOW_CHANNEL_ID"),
    )


@dataclass(slots=True)
class EnvironmentConfig:
    discord_token: str
    moderation_table_name: str
    aws_region: str
    shadow: ShadowConfig
    sweep_interval_minutes: int
    default_warning_expiry_days: int
    activity: str
    dev_guild_id: int | None
    log_level: str

    @classmethod
    def load(cls) -> "EnvironmentConfig":
        missing = [name for name in REQUIRED_VARS if not os.getenv(name)]
        if missing:
            raise RuntimeError("Missing env vars: " + ", ".join(sorted(missing)))

        sweep_interval = env_int("SWEEP_INTERVAL_MINUTES", default=1) or 1
        expiry_days = env_int("DEFAULT_WARNING_EXPIRY_DAYS", default=30)

        return cls(
            discord_token=os.environ["DISCORD_TOKEN"],
            moderation_table_name=os.environ["MODERATION_TABLE_NAME"],
            aws_region=os.getenv("AWS_REGION", "us-east-1"),
            shadow=read_shadow_config(),
            sweep_interval_minutes=max(sweep_interval, 1),
            default_warning_expiry_days=max(expiry_days or 0, 0),
            activity=os.getenv("BOT_ACTIVITY") or "C.L. StudioWorks",
            dev_guild_id=env_int("DEV_GUILD_ID"),
            log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        )
