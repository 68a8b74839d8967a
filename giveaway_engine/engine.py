from __future__ import annotations

import functools
import logging
import random
import uuid
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Protocol

from .duration import parse_duration
from .errors import InvalidDurationError, InvalidGiveawayError, NoParticipantsError
from .models import (
    ConclusionResult,
    EntryResult,
    GiveawayRecord,
    GiveawayRequest,
)
from .registry import GiveawayRegistry
from .scheduler import ScheduledCall, Scheduler
from .selection import select_winners

log = logging.getLogger("giveaway-engine")

NO_ENTRIES_MESSAGE = "😢 No one entered the giveaway!"


class Notifier(Protocol):
    async def announce(self, record: GiveawayRecord) -> int | None: ...

    async def edit_announcement(
        self, channel_id: int, message_id: int, result: ConclusionResult
    ) -> None: ...

    async def post_message(self, channel_id: int, content: str) -> None: ...


def utc_now() -> datetime:
    return datetime.now(UTC)


def short_id() -> str:
    return uuid.uuid4().hex[:8]


def congratulations_message(result: ConclusionResult) -> str:
    return (
        f"🎊 Congratulations {result.winner_mentions}! "
        f"You won **{result.giveaway.prize}**!"
    )


class GiveawayEngine:
    """Owns the registry of running giveaways and drives their lifecycle.

    Open -> Concluding -> Closed. A giveaway is Open while its record sits in
    the registry; ``conclude`` removes the record before awaiting anything so
    an entry arriving mid-announcement sees the giveaway as ended.
    """

    def __init__(
        self,
        notifier: Notifier,
        scheduler: Scheduler,
        *,
        registry: GiveawayRegistry | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = short_id,
    ) -> None:
        self.registry = registry if registry is not None else GiveawayRegistry()
        self._notifier = notifier
        self._scheduler = scheduler
        self._rng = rng or random.SystemRandom()
        self._clock = clock
        self._id_factory = id_factory
        self._timers: dict[str, ScheduledCall] = {}
        # Giveaways whose announcement is still in flight, and results that
        # concluded before it landed.
        self._announcing: set[str] = set()
        self._late_results: dict[str, ConclusionResult] = {}

    async def create_giveaway(self, request: GiveawayRequest) -> GiveawayRecord:
        duration_ms = parse_duration(request.duration)
        if duration_ms <= 0:
            raise InvalidDurationError("Duration must be greater than zero")
        if request.winner_count < 1:
            raise InvalidGiveawayError("Winner count must be at least 1")
        prize = request.prize.strip()
        if not prize:
            raise InvalidGiveawayError("A prize is required")

        record = GiveawayRecord(
            id=request.giveaway_id or self._id_factory(),
            channel_id=request.channel_id,
            guild_id=request.guild_id,
            prize=prize,
            winner_count=request.winner_count,
            end_at=self._clock() + timedelta(milliseconds=duration_ms),
            host_id=request.host_id,
        )
        self.registry.insert(record)
        self._timers[record.id] = self._scheduler.schedule_once(
            duration_ms / 1000, functools.partial(self._on_timer, record.id)
        )
        log.info(
            "Giveaway %s created by %s: %s (%s winner(s), ends %s)",
            record.id,
            record.host_id,
            record.prize,
            record.winner_count,
            record.end_at.isoformat(),
        )

        self._announcing.add(record.id)
        try:
            record.message_id = await self._notifier.announce(record)
        except Exception as exc:  # pylint: disable=broad-except
            log.exception("Failed to announce giveaway %s: %s", record.id, exc)
        finally:
            self._announcing.discard(record.id)

        late = self._late_results.pop(record.id, None)
        if late is not None and record.message_id is not None:
            log.info("Giveaway %s ended before its announcement was posted", record.id)
            await self._edit_announcement(late)
        return record

    def enter(self, giveaway_id: str, participant_id: int) -> EntryResult:
        status = self.registry.add_participant(giveaway_id, participant_id)
        record = self.registry.get(giveaway_id)
        return EntryResult(status=status, entry_count=record.entry_count)

    def reroll(self, giveaway_id: str) -> list[int]:
        record = self.registry.get(giveaway_id)
        if not record.participants:
            raise NoParticipantsError(f"Giveaway {giveaway_id} has no participants")
        winners = select_winners(
            sorted(record.participants), record.winner_count, self._rng
        )
        log.info("Giveaway %s rerolled: %s", giveaway_id, winners)
        return winners

    async def conclude(self, giveaway_id: str) -> ConclusionResult | None:
        """End a giveaway now, cancelling its pending termination timer."""
        timer = self._timers.pop(giveaway_id, None)
        if timer is not None:
            timer.cancel()
        return await self._conclude(giveaway_id)

    def active(self) -> list[GiveawayRecord]:
        return sorted(self.registry.snapshot().values(), key=lambda r: r.end_at)

    def shutdown(self) -> int:
        """Cancel every pending timer; returns how many were cancelled."""
        cancelled = len(self._timers)
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        return cancelled

    async def _on_timer(self, giveaway_id: str) -> None:
        self._timers.pop(giveaway_id, None)
        await self._conclude(giveaway_id)

    async def _conclude(self, giveaway_id: str) -> ConclusionResult | None:
        record = self.registry.remove(giveaway_id)
        if record is None:
            log.debug("Giveaway %s already concluded", giveaway_id)
            return None

        winners = select_winners(
            sorted(record.participants), record.winner_count, self._rng
        )
        result = ConclusionResult(giveaway=record, winners=winners)
        log.info(
            "Giveaway %s concluded with %s entries, winners: %s",
            record.id,
            record.entry_count,
            winners,
        )
        await self._publish(result)
        return result

    async def _edit_announcement(self, result: ConclusionResult) -> None:
        record = result.giveaway
        try:
            await self._notifier.edit_announcement(
                record.channel_id, record.message_id, result
            )
        except Exception as exc:  # pylint: disable=broad-except
            log.exception(
                "Failed to update announcement for giveaway %s: %s",
                record.id,
                exc,
            )

    async def _publish(self, result: ConclusionResult) -> None:
        record = result.giveaway
        if record.message_id is not None:
            await self._edit_announcement(result)
        elif record.id in self._announcing:
            self._late_results[record.id] = result

        content = (
            NO_ENTRIES_MESSAGE if result.no_entries else congratulations_message(result)
        )
        try:
            await self._notifier.post_message(record.channel_id, content)
        except Exception as exc:  # pylint: disable=broad-except
            log.exception("Failed to post results for giveaway %s: %s", record.id, exc)


__all__ = [
    "GiveawayEngine",
    "Notifier",
    "NO_ENTRIES_MESSAGE",
    "congratulations_message",
    "utc_now",
]
