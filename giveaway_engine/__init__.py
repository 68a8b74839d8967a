"""In-memory giveaway lifecycle engine."""

from .duration import format_duration, parse_duration
from .engine import NO_ENTRIES_MESSAGE, GiveawayEngine, Notifier, congratulations_message
from .errors import (
    DuplicateGiveawayError,
    GiveawayError,
    GiveawayNotFoundError,
    InvalidDurationError,
    InvalidGiveawayError,
    NoParticipantsError,
    NotifierError,
)
from .models import (
    ConclusionResult,
    EntryResult,
    EntryStatus,
    GiveawayRecord,
    GiveawayRequest,
    format_mentions,
)
from .registry import GiveawayRegistry
from .scheduler import AsyncioScheduler, Scheduler
from .selection import select_winners

__all__ = [
    "AsyncioScheduler",
    "ConclusionResult",
    "DuplicateGiveawayError",
    "EntryResult",
    "EntryStatus",
    "GiveawayEngine",
    "GiveawayError",
    "GiveawayNotFoundError",
    "GiveawayRecord",
    "GiveawayRegistry",
    "GiveawayRequest",
    "InvalidDurationError",
    "InvalidGiveawayError",
    "NO_ENTRIES_MESSAGE",
    "NoParticipantsError",
    "Notifier",
    "NotifierError",
    "Scheduler",
    "congratulations_message",
    "format_duration",
    "format_mentions",
    "parse_duration",
    "select_winners",
]
