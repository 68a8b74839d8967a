from __future__ import annotations

import re

from .errors import InvalidDurationError

_DURATION_PATTERN = re.compile(r"(\d+)([smhd])")

UNIT_MILLISECONDS: dict[str, int] = {
    "s": 1_000,
    "m": 60_000,
    "h": 3_600_000,
    "d": 86_400_000,
}

_UNIT_NAMES = (
    ("day", 86_400_000),
    ("hour", 3_600_000),
    ("minute", 60_000),
    ("second", 1_000),
)


def parse_duration(value: str) -> int:
    """Return the duration in milliseconds for the first ``<digits><unit>`` token.

    Units are ``s``, ``m``, ``h`` and ``d``. Anything after the first match is
    ignored, so ``"10m30s"`` is ten minutes. Raises ``InvalidDurationError``
    when no token is present; ``"0m"`` parses to ``0`` and it is up to the
    caller to reject it.
    """
    if not isinstance(value, str) or not value:
        raise InvalidDurationError("Invalid duration. Use format like: 1m, 1h, 1d")
    match = _DURATION_PATTERN.search(value)
    if match is None:
        raise InvalidDurationError("Invalid duration. Use format like: 1m, 1h, 1d")
    amount = int(match.group(1))
    return amount * UNIT_MILLISECONDS[match.group(2)]


def format_duration(milliseconds: int) -> str:
    """Render a millisecond count as e.g. ``"1 day 2 hours"``."""
    if milliseconds < 1_000:
        return "0 seconds"
    parts: list[str] = []
    remaining = milliseconds
    for name, size in _UNIT_NAMES:
        count, remaining = divmod(remaining, size)
        if count:
            parts.append(f"{count} {name}{'' if count == 1 else 's'}")
    return " ".join(parts)


__all__ = ["UNIT_MILLISECONDS", "parse_duration", "format_duration"]
