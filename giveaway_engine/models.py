from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime


class EntryStatus(enum.Enum):
    ENTERED = "entered"
    ALREADY_ENTERED = "already_entered"


@dataclass(slots=True)
class GiveawayRequest:
    """Input for ``GiveawayEngine.create_giveaway``."""

    duration: str
    prize: str
    winner_count: int
    host_id: int
    channel_id: int
    guild_id: int | None = None
    giveaway_id: str | None = None


@dataclass(slots=True)
class GiveawayRecord:
    id: str
    channel_id: int
    guild_id: int | None
    prize: str
    winner_count: int
    end_at: datetime
    host_id: int
    participants: set[int] = field(default_factory=set)
    message_id: int | None = None

    @property
    def entry_count(self) -> int:
        return len(self.participants)

    def copy(self) -> GiveawayRecord:
        return GiveawayRecord(
            id=self.id,
            channel_id=self.channel_id,
            guild_id=self.guild_id,
            prize=self.prize,
            winner_count=self.winner_count,
            end_at=self.end_at,
            host_id=self.host_id,
            participants=set(self.participants),
            message_id=self.message_id,
        )


@dataclass(frozen=True, slots=True)
class EntryResult:
    status: EntryStatus
    entry_count: int

    @property
    def entered(self) -> bool:
        return self.status is EntryStatus.ENTERED


@dataclass(frozen=True, slots=True)
class ConclusionResult:
    giveaway: GiveawayRecord
    winners: list[int]

    @property
    def no_entries(self) -> bool:
        return not self.winners

    @property
    def winner_mentions(self) -> str:
        return format_mentions(self.winners)


def format_mentions(user_ids: Iterable[int]) -> str:
    return ", ".join(f"<@{user_id}>" for user_id in user_ids)


__all__ = [
    "EntryStatus",
    "GiveawayRequest",
    "GiveawayRecord",
    "EntryResult",
    "ConclusionResult",
    "format_mentions",
]
