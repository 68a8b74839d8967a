from __future__ import annotations

import asyncio
import random
from datetime import UTC, datetime, timedelta

import pytest

from giveaway_engine import (
    NO_ENTRIES_MESSAGE,
    AsyncioScheduler,
    EntryStatus,
    GiveawayEngine,
    GiveawayNotFoundError,
    GiveawayRequest,
    InvalidDurationError,
    InvalidGiveawayError,
    NoParticipantsError,
    NotifierError,
)

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


class FakeTimer:
    def __init__(self, delay, callback) -> None:
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    def __init__(self) -> None:
        self.timers: list[FakeTimer] = []

    def schedule_once(self, delay, callback) -> FakeTimer:
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    async def fire_all(self) -> None:
        for timer in list(self.timers):
            if not timer.cancelled:
                await timer.callback()


class FakeNotifier:
    def __init__(self, *, fail_announce=False, fail_edit=False, fail_post=False) -> None:
        self.fail_announce = fail_announce
        self.fail_edit = fail_edit
        self.fail_post = fail_post
        self.announced = []
        self.edits = []
        self.posts = []

    async def announce(self, record):
        if self.fail_announce:
            raise NotifierError("no access")
        self.announced.append(record.id)
        return 5000 + len(self.announced)

    async def edit_announcement(self, channel_id, message_id, result):
        if self.fail_edit:
            raise NotifierError("message gone")
        self.edits.append((channel_id, message_id, result))

    async def post_message(self, channel_id, content):
        if self.fail_post:
            raise NotifierError("cannot post")
        self.posts.append((channel_id, content))


def make_engine(notifier=None, scheduler=None, seed=1):
    ids = iter(f"g{n}" for n in range(1, 100))
    notifier = notifier or FakeNotifier()
    scheduler = scheduler or FakeScheduler()
    engine = GiveawayEngine(
        notifier,
        scheduler,
        rng=random.Random(seed),
        clock=lambda: NOW,
        id_factory=lambda: next(ids),
    )
    return engine, notifier, scheduler


def request(duration="1h", winners=1, prize="Discord Nitro") -> GiveawayRequest:
    return GiveawayRequest(
        duration=duration,
        prize=prize,
        winner_count=winners,
        host_id=99,
        channel_id=10,
        guild_id=1,
    )


@pytest.mark.asyncio
async def test_create_registers_schedules_and_announces():
    engine, notifier, scheduler = make_engine()

    record = await engine.create_giveaway(request("10m", winners=2))

    assert record.id == "g1"
    assert record.end_at == NOW + timedelta(minutes=10)
    assert record.message_id == 5001
    assert record.participants == set()
    assert notifier.announced == ["g1"]
    assert scheduler.timers[0].delay == 600
    assert "g1" in engine.registry


@pytest.mark.asyncio
async def test_create_uses_requested_id():
    engine, _, _ = make_engine()
    req = request()
    req.giveaway_id = "custom"

    record = await engine.create_giveaway(req)

    assert record.id == "custom"


@pytest.mark.asyncio
@pytest.mark.parametrize("duration", ["abc", "0m", "0s"])
async def test_create_rejects_bad_or_non_positive_duration(duration):
    engine, notifier, scheduler = make_engine()

    with pytest.raises(InvalidDurationError):
        await engine.create_giveaway(request(duration))

    assert len(engine.registry) == 0
    assert scheduler.timers == []
    assert notifier.announced == []


@pytest.mark.asyncio
async def test_create_rejects_zero_winners_and_blank_prize():
    engine, _, _ = make_engine()

    with pytest.raises(InvalidGiveawayError):
        await engine.create_giveaway(request(winners=0))
    with pytest.raises(InvalidGiveawayError):
        await engine.create_giveaway(request(prize="   "))
    assert len(engine.registry) == 0


@pytest.mark.asyncio
async def test_announce_failure_keeps_giveaway_open():
    engine, _, scheduler = make_engine(FakeNotifier(fail_announce=True))

    record = await engine.create_giveaway(request())

    assert record.message_id is None
    assert "g1" in engine.registry
    assert engine.enter("g1", 7).entered
    assert len(scheduler.timers) == 1


@pytest.mark.asyncio
async def test_enter_is_idempotent_and_counts():
    engine, _, _ = make_engine()
    await engine.create_giveaway(request())

    first = engine.enter("g1", 7)
    second = engine.enter("g1", 7)
    third = engine.enter("g1", 8)

    assert first.status is EntryStatus.ENTERED
    assert first.entry_count == 1
    assert second.status is EntryStatus.ALREADY_ENTERED
    assert second.entry_count == 1
    assert third.entry_count == 2


def test_enter_unknown_giveaway_raises():
    engine, _, _ = make_engine()
    with pytest.raises(GiveawayNotFoundError):
        engine.enter("missing", 1)


@pytest.mark.asyncio
async def test_timer_concludes_with_winner():
    engine, notifier, scheduler = make_engine()
    await engine.create_giveaway(request())
    engine.enter("g1", 7)
    engine.enter("g1", 8)

    await scheduler.fire_all()

    assert "g1" not in engine.registry
    channel_id, message_id, result = notifier.edits[0]
    assert (channel_id, message_id) == (10, 5001)
    assert len(result.winners) == 1
    assert result.winners[0] in {7, 8}
    assert notifier.posts == [
        (
            10,
            f"🎊 Congratulations <@{result.winners[0]}>! You won **Discord Nitro**!",
        )
    ]
    with pytest.raises(GiveawayNotFoundError):
        engine.enter("g1", 9)


@pytest.mark.asyncio
async def test_conclude_with_no_participants_posts_no_entries():
    engine, notifier, _ = make_engine()
    await engine.create_giveaway(request())

    result = await engine.conclude("g1")

    assert result is not None
    assert result.no_entries
    assert result.winners == []
    assert notifier.posts == [(10, NO_ENTRIES_MESSAGE)]
    assert notifier.edits[0][2] is result


@pytest.mark.asyncio
async def test_conclude_caps_winners_at_participant_count():
    engine, _, _ = make_engine()
    await engine.create_giveaway(request(winners=5))
    for participant in (1, 2, 3):
        engine.enter("g1", participant)

    result = await engine.conclude("g1")

    assert sorted(result.winners) == [1, 2, 3]


@pytest.mark.asyncio
async def test_conclude_cancels_timer_and_is_idempotent():
    engine, notifier, scheduler = make_engine()
    await engine.create_giveaway(request())

    await engine.conclude("g1")
    assert scheduler.timers[0].cancelled

    assert await engine.conclude("g1") is None
    await scheduler.timers[0].callback()
    assert len(notifier.posts) == 1


@pytest.mark.asyncio
async def test_conclude_unknown_is_noop():
    engine, notifier, _ = make_engine()
    assert await engine.conclude("missing") is None
    assert notifier.posts == []


@pytest.mark.asyncio
async def test_record_is_removed_before_notifier_is_awaited():
    seen = {}

    class InspectingNotifier(FakeNotifier):
        async def edit_announcement(self, channel_id, message_id, result):
            seen["present"] = "g1" in engine.registry
            with pytest.raises(GiveawayNotFoundError):
                engine.enter("g1", 99)

    engine, _, _ = make_engine(InspectingNotifier())
    await engine.create_giveaway(request())

    await engine.conclude("g1")

    assert seen == {"present": False}


@pytest.mark.asyncio
async def test_edit_failure_still_posts_results():
    engine, notifier, _ = make_engine(FakeNotifier(fail_edit=True))
    await engine.create_giveaway(request())
    engine.enter("g1", 7)

    result = await engine.conclude("g1")

    assert result.winners == [7]
    assert notifier.posts
    assert "g1" not in engine.registry


@pytest.mark.asyncio
async def test_post_failure_is_swallowed():
    engine, notifier, _ = make_engine(FakeNotifier(fail_post=True))
    await engine.create_giveaway(request())

    result = await engine.conclude("g1")

    assert result is not None
    assert len(notifier.edits) == 1


@pytest.mark.asyncio
async def test_no_edit_when_announcement_never_posted():
    notifier = FakeNotifier(fail_announce=True)
    engine, _, _ = make_engine(notifier)
    await engine.create_giveaway(request())
    notifier.fail_announce = False

    await engine.conclude("g1")

    assert notifier.edits == []
    assert notifier.posts == [(10, NO_ENTRIES_MESSAGE)]


@pytest.mark.asyncio
async def test_reroll_draws_without_removing():
    engine, notifier, _ = make_engine()
    await engine.create_giveaway(request(winners=2))
    for participant in (1, 2, 3):
        engine.enter("g1", participant)

    winners = engine.reroll("g1")

    assert len(winners) == 2
    assert set(winners) <= {1, 2, 3}
    assert "g1" in engine.registry
    assert notifier.posts == []


@pytest.mark.asyncio
async def test_reroll_without_participants_leaves_record_enterable():
    engine, _, _ = make_engine()
    await engine.create_giveaway(request())

    with pytest.raises(NoParticipantsError):
        engine.reroll("g1")

    assert "g1" in engine.registry
    assert engine.enter("g1", 4).entered


def test_reroll_unknown_raises_not_found():
    engine, _, _ = make_engine()
    with pytest.raises(GiveawayNotFoundError):
        engine.reroll("missing")


@pytest.mark.asyncio
async def test_selection_is_reproducible_with_seeded_rng():
    results = []
    for _ in range(2):
        engine, _, _ = make_engine(seed=123)
        await engine.create_giveaway(request(winners=2))
        for participant in (50, 10, 40, 20, 30):
            engine.enter("g1", participant)
        results.append((await engine.conclude("g1")).winners)

    assert results[0] == results[1]


@pytest.mark.asyncio
async def test_active_is_sorted_snapshot():
    engine, _, _ = make_engine()
    await engine.create_giveaway(request("2h", prize="Later"))
    await engine.create_giveaway(request("5m", prize="Sooner"))
    engine.enter("g1", 1)

    active = engine.active()

    assert [record.prize for record in active] == ["Sooner", "Later"]
    active[1].participants.add(2)
    assert engine.registry.get("g1").participants == {1}


@pytest.mark.asyncio
async def test_shutdown_cancels_pending_timers():
    engine, _, scheduler = make_engine()
    await engine.create_giveaway(request())
    await engine.create_giveaway(request())

    assert engine.shutdown() == 2
    assert all(timer.cancelled for timer in scheduler.timers)
    assert engine.shutdown() == 0


@pytest.mark.asyncio
async def test_end_to_end_with_real_scheduler():
    notifier = FakeNotifier()
    engine = GiveawayEngine(notifier, AsyncioScheduler(), rng=random.Random(5))

    record = await engine.create_giveaway(request("1s"))
    engine.enter(record.id, 1)
    engine.enter(record.id, 2)

    for _ in range(60):
        if record.id not in engine.registry:
            break
        await asyncio.sleep(0.05)

    assert record.id not in engine.registry
    winners = notifier.edits[0][2].winners
    assert len(winners) == 1
    assert winners[0] in {1, 2}
    with pytest.raises(GiveawayNotFoundError):
        engine.enter(record.id, 3)


@pytest.mark.asyncio
async def test_announcement_posted_after_timer_fired_is_edited():
    scheduler = FakeScheduler()

    class SlowNotifier(FakeNotifier):
        async def announce(self, record):
            await scheduler.fire_all()
            return await super().announce(record)

    engine, notifier, _ = make_engine(SlowNotifier(), scheduler)

    record = await engine.create_giveaway(request("1s"))

    assert record.id not in engine.registry
    assert notifier.posts == [(10, NO_ENTRIES_MESSAGE)]
    ((channel_id, message_id, result),) = notifier.edits
    assert (channel_id, message_id) == (10, 5001)
    assert result.no_entries


@pytest.mark.asyncio
async def test_failed_slow_announcement_skips_edit():
    scheduler = FakeScheduler()

    class SlowFailingNotifier(FakeNotifier):
        async def announce(self, record):
            await scheduler.fire_all()
            raise NotifierError("rate limited")

    engine, notifier, _ = make_engine(SlowFailingNotifier(), scheduler)

    record = await engine.create_giveaway(request("1s"))

    assert record.message_id is None
    assert notifier.edits == []
    assert notifier.posts == [(10, NO_ENTRIES_MESSAGE)]
