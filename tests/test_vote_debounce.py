"""
Tests for optimistic vote debouncing

Timers are real but short; the double-click window is driven by an injected
clock so the tests do not depend on scheduling jitter.
"""

import asyncio

from mvo.modules.votes.debounce import VoteCoalescer, VoteDebouncer
from mvo.modules.votes.schemas import VoteAction
from mvo.modules.votes.state import VoteCounts, VoteSelection, VoteState

DEBOUNCE_MS = 20
SETTLE_S = 0.1


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def _recorder():
    calls = []

    async def sync(selection):
        calls.append(selection)

    return calls, sync


def test_burst_of_clicks_sends_one_update():
    async def scenario():
        calls, sync = _recorder()
        clock = FakeClock()
        debouncer = VoteDebouncer(sync, debounce_ms=DEBOUNCE_MS, clock=clock)
        debouncer.click(VoteAction.LIKE)
        clock.advance(1)
        debouncer.click(VoteAction.DISLIKE)
        clock.advance(1)
        debouncer.click(VoteAction.DISLIKE)
        assert debouncer.in_flight
        await asyncio.sleep(SETTLE_S)
        return debouncer, calls

    debouncer, calls = asyncio.run(scenario())
    assert calls == [VoteSelection(use=True)]
    assert debouncer.sync_calls == 1
    assert debouncer.last_synced == VoteSelection(use=True)
    assert not debouncer.in_flight


def test_quick_second_like_becomes_pay():
    async def scenario():
        calls, sync = _recorder()
        clock = FakeClock()
        debouncer = VoteDebouncer(sync, debounce_ms=DEBOUNCE_MS, double_click_ms=260, clock=clock)
        debouncer.click(VoteAction.LIKE)
        clock.advance(0.1)
        state = debouncer.click(VoteAction.LIKE)
        assert state.selection == VoteSelection(use=True, pay=True)
        assert state.counts == VoteCounts(use=1, pay=1)
        await asyncio.sleep(SETTLE_S)
        return calls

    assert asyncio.run(scenario()) == [VoteSelection(use=True, pay=True)]


def test_clicking_back_to_the_synced_state_skips_the_network():
    async def scenario():
        calls, sync = _recorder()
        clock = FakeClock()
        debouncer = VoteDebouncer(sync, debounce_ms=DEBOUNCE_MS, clock=clock)
        debouncer.click(VoteAction.LIKE)
        clock.advance(1)
        debouncer.click(VoteAction.LIKE)
        await asyncio.sleep(SETTLE_S)
        return debouncer, calls

    debouncer, calls = asyncio.run(scenario())
    assert calls == []
    assert debouncer.sync_calls == 0
    assert debouncer.state.selection == VoteSelection()


def test_close_drops_pending_update():
    async def scenario():
        calls, sync = _recorder()
        debouncer = VoteDebouncer(sync, debounce_ms=DEBOUNCE_MS, clock=FakeClock())
        debouncer.click(VoteAction.DISLIKE)
        debouncer.close()
        await asyncio.sleep(SETTLE_S)
        return calls

    assert asyncio.run(scenario()) == []


def test_external_update_is_ignored_while_in_flight():
    async def scenario():
        calls, sync = _recorder()
        debouncer = VoteDebouncer(sync, debounce_ms=DEBOUNCE_MS, clock=FakeClock())
        debouncer.click(VoteAction.DISLIKE)
        server = VoteSelection(use=True)
        ignored = debouncer.external_update(server, VoteCounts(use=5))
        await asyncio.sleep(SETTLE_S)
        accepted = debouncer.external_update(server, VoteCounts(use=5))
        return debouncer, ignored, accepted

    debouncer, ignored, accepted = asyncio.run(scenario())
    assert ignored is False
    assert accepted is True
    assert debouncer.state == VoteState(selection=VoteSelection(use=True), counts=VoteCounts(use=5))
    assert debouncer.last_synced == VoteSelection(use=True)


def test_failed_sync_rolls_back_to_last_synced():
    errors = []

    async def failing_sync(selection):
        raise RuntimeError("network down")

    async def scenario():
        debouncer = VoteDebouncer(
            failing_sync,
            debounce_ms=DEBOUNCE_MS,
            clock=FakeClock(),
            on_error=errors.append,
        )
        debouncer.click(VoteAction.LIKE)
        await asyncio.sleep(SETTLE_S)
        return debouncer

    debouncer = asyncio.run(scenario())
    assert debouncer.state == VoteState()
    assert len(errors) == 1
    assert str(errors[0]) == "network down"


def test_flush_commits_without_waiting():
    async def scenario():
        calls, sync = _recorder()
        debouncer = VoteDebouncer(sync, debounce_ms=10_000, clock=FakeClock())
        debouncer.click(VoteAction.LIKE)
        await debouncer.flush()
        return calls

    assert asyncio.run(scenario()) == [VoteSelection(use=True)]


def test_commits_never_overlap():
    active = {"now": 0, "max": 0}
    calls = []

    async def slow_sync(selection):
        active["now"] += 1
        active["max"] = max(active["max"], active["now"])
        await asyncio.sleep(0.05)
        calls.append(selection)
        active["now"] -= 1

    async def scenario():
        clock = FakeClock()
        debouncer = VoteDebouncer(slow_sync, debounce_ms=10, clock=clock)
        debouncer.click(VoteAction.LIKE)
        await asyncio.sleep(0.03)
        clock.advance(1)
        debouncer.click(VoteAction.DISLIKE)
        await asyncio.sleep(0.2)

    asyncio.run(scenario())
    assert active["max"] == 1
    assert calls == [
        VoteSelection(use=True),
        VoteSelection(use=True, dislike=True),
    ]


def test_coalescer_reuses_and_drops_settled_debouncers():
    async def scenario():
        calls, sync = _recorder()
        coalescer = VoteCoalescer(debounce_ms=DEBOUNCE_MS)
        first = coalescer.get_or_create(("user-1", "idea-1"), sync, VoteState())
        again = coalescer.get_or_create(("user-1", "idea-1"), sync, VoteState())
        assert first is again
        assert len(coalescer) == 1
        first.click(VoteAction.DISLIKE)
        await asyncio.sleep(SETTLE_S)
        return coalescer, calls

    coalescer, calls = asyncio.run(scenario())
    assert calls == [VoteSelection(dislike=True)]
    assert len(coalescer) == 0
    assert coalescer.get(("user-1", "idea-1")) is None
