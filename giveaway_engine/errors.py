from __future__ import annotations


class GiveawayError(Exception):
    """Base exception for giveaway engine failures."""


class InvalidDurationError(GiveawayError, ValueError):
    """Raised when a duration token cannot be parsed or is not positive."""


class InvalidGiveawayError(GiveawayError, ValueError):
    """Raised when giveaway parameters other than the duration are invalid."""


class DuplicateGiveawayError(GiveawayError):
    """Raised when inserting a giveaway whose id is already registered."""


class GiveawayNotFoundError(GiveawayError, LookupError):
    """Raised when a giveaway id is not (or no longer) registered."""

    def __init__(self, giveaway_id: str) -> None:
        super().__init__(f"Giveaway {giveaway_id} not found or already ended")
        self.giveaway_id = giveaway_id


class NoParticipantsError(GiveawayError):
    """Raised when a reroll is requested for a giveaway nobody entered."""


class NotifierError(GiveawayError):
    """Raised by notifiers when a message cannot be posted or edited."""


__all__ = [
    "GiveawayError",
    "InvalidDurationError",
    "InvalidGiveawayError",
    "DuplicateGiveawayError",
    "GiveawayNotFoundError",
    "NoParticipantsError",
    "NotifierError",
]
