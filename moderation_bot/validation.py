from __future__ import annotations

DEFAULT_REASON = "No reason provided"
MAX_REASON_LENGTH = 512
MAX_MESSAGE_LENGTH = 2000
MAX_TIMEOUT_MINUTES = 40_320
MAX_PURGE_AMOUNT = 100
MAX_TRIGGER_LENGTH = 100
MAX_WARNING_EXPIRY_DAYS = 365


class InvalidValueError(ValueError):
    """Base exception for validation failures."""


def normalize_reason(raw: str | None) -> str:
    reason = (raw or "").strip()
    if not reason:
        return DEFAULT_REASON
    if len(reason) > MAX_REASON_LENGTH:
        raise InvalidValueError(
            f"Reason must be {MAX_REASON_LENGTH} characters or fewer"
        )
    return reason


def validate_timeout_minutes(minutes: int) -> int:
    if minutes < 1 or minutes > MAX_TIMEOUT_MINUTES:
        raise InvalidValueError(
            f"Please specify a duration in minutes (1-{MAX_TIMEOUT_MINUTES})."
        )
    return minutes


def validate_purge_amount(amount: int) -> int:
    if amount < 1 or amount > MAX_PURGE_AMOUNT:
        raise InvalidValueError(
            f"Please specify a number between 1 and {MAX_PURGE_AMOUNT}."
        )
    return amount


def validate_message_text(raw: str, *, label: str = "Message") -> str:
    text = raw.strip()
    if not text:
        raise InvalidValueError(f"{label} cannot be empty")
    if len(text) > MAX_MESSAGE_LENGTH:
        raise InvalidValueError(
            f"{label} must be {MAX_MESSAGE_LENGTH} characters or fewer"
        )
    return text


def normalize_trigger(raw: str) -> str:
    trigger = " ".join(raw.split()).lower()
    if not trigger:
        raise InvalidValueError("Trigger cannot be empty")
    if len(trigger) > MAX_TRIGGER_LENGTH:
        raise InvalidValueError(
            f"Trigger must be {MAX_TRIGGER_LENGTH} characters or fewer"
        )
    return trigger


def validate_match_mode(raw: str) -> str:
    mode = raw.strip().lower()
    if mode not in {"exact", "contains"}:
        raise InvalidValueError("Match mode must be 'exact' or 'contains'")
    return mode


def validate_warning_expiry_days(days: int) -> int:
    if days < 0 or days > MAX_WARNING_EXPIRY_DAYS:
        raise InvalidValueError(
            f"Warning expiry must be between 0 and {MAX_WARNING_EXPIRY_DAYS} days"
        )
    return days


__all__ = [
    "DEFAULT_REASON",
    "InvalidValueError",
    "normalize_reason",
    "validate_timeout_minutes",
    "validate_purge_amount",
    "validate_message_text",
    "normalize_trigger",
    "validate_match_mode",
    "validate_warning_expiry_days",
]
