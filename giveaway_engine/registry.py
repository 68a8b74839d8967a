from __future__ import annotations

from .errors import DuplicateGiveawayError, GiveawayNotFoundError
from .models import EntryStatus, GiveawayRecord


class GiveawayRegistry:
    """In-memory map of running giveaways keyed by giveaway id.

    A record is present exactly while its giveaway is open or waiting for its
    termination callback. Every method is synchronous, so under the asyncio
    event loop each call is atomic with respect to other coroutines.
    """

    def __init__(self) -> None:
        self._records: dict[str, GiveawayRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, giveaway_id: object) -> bool:
        return giveaway_id in self._records

    def insert(self, record: GiveawayRecord) -> None:
        if record.id in self._records:
            raise DuplicateGiveawayError(f"Giveaway {record.id} already exists")
        self._records[record.id] = record

    def get(self, giveaway_id: str) -> GiveawayRecord:
        try:
            return self._records[giveaway_id]
        except KeyError:
            raise GiveawayNotFoundError(giveaway_id) from None

    def add_participant(self, giveaway_id: str, participant_id: int) -> EntryStatus:
        record = self.get(giveaway_id)
        if participant_id in record.participants:
            return EntryStatus.ALREADY_ENTERED
        record.participants.add(participant_id)
        return EntryStatus.ENTERED

    def remove(self, giveaway_id: str) -> GiveawayRecord | None:
        return self._records.pop(giveaway_id, None)

    def snapshot(self) -> dict[str, GiveawayRecord]:
        """Return detached copies of every registered record."""
        return {gid: record.copy() for gid, record in self._records.items()}


__all__ = ["GiveawayRegistry"]
