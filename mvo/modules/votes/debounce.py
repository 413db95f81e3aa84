"""Optimistic vote debouncing.

``VoteDebouncer`` lets a voter click rapidly while the server sees at most one
update per burst. Each click updates the displayed state right away and
restarts a timer; when the timer fires the final selection is pushed through
the ``sync`` coroutine, unless it equals what the server already holds.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional

from mvo.config import settings
from mvo.modules.votes.schemas import VoteAction
from mvo.modules.votes.state import VoteCounts, VoteSelection, VoteState, next_vote_state

logger = logging.getLogger(__name__)

SyncFn = Callable[[VoteSelection], Awaitable[Any]]


class VoteDebouncer:
    def __init__(
        self,
        sync: SyncFn,
        initial: VoteState = VoteState(),
        debounce_ms: Optional[int] = None,
        double_click_ms: Optional[int] = None,
        clock: Optional[Callable[[], float]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        on_settled: Optional[Callable[["VoteDebouncer"], None]] = None,
    ):
        self._sync = sync
        self._state = initial
        self._last_synced = initial.selection
        self._pending: Optional[VoteSelection] = None
        self._debounce_s = (debounce_ms if debounce_ms is not None else settings.vote_debounce_ms) / 1000
        self._double_click_s = (double_click_ms if double_click_ms is not None else settings.vote_double_click_ms) / 1000
        self._clock = clock
        self._on_error = on_error
        self._on_settled = on_settled
        self._timer: Optional[asyncio.TimerHandle] = None
        self._commit_task: Optional[asyncio.Task] = None
        self._last_like_at: Optional[float] = None
        self._closed = False
        self.sync_calls = 0

    @property
    def state(self) -> VoteState:
        return self._state

    @property
    def last_synced(self) -> VoteSelection:
        return self._last_synced

    @property
    def pending(self) -> Optional[VoteSelection]:
        return self._pending

    @property
    def in_flight(self) -> bool:
        committing = self._commit_task is not None and not self._commit_task.done()
        return self._pending is not None or committing

    def _now(self) -> float:
        if self._clock is not None:
            return self._clock()
        return asyncio.get_running_loop().time()

    def click(self, action: VoteAction) -> VoteState:
        """Apply a click optimistically and (re)start the debounce timer"""
        if self._closed:
            raise RuntimeError("VoteDebouncer is closed")
        double_click = False
        if action == VoteAction.LIKE:
            now = self._now()
            if self._last_like_at is not None and now - self._last_like_at <= self._double_click_s:
                double_click = True
                self._last_like_at = None
            else:
                self._last_like_at = now
        self._state = next_vote_state(self._state, action, double_click)
        self._pending = self._state.selection
        self._restart_timer()
        return self._state

    def external_update(self, selection: VoteSelection, counts: Optional[VoteCounts] = None) -> bool:
        """Accept server-pushed state unless a local update is still being debounced or committed"""
        if self.in_flight:
            logger.debug("Ignoring external vote update while a local update is in flight")
            return False
        self._state = VoteState(selection=selection, counts=counts or self._state.counts)
        self._last_synced = selection
        return True

    def _restart_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._debounce_s, self._fire)

    def _fire(self) -> None:
        self._timer = None
        if self._closed:
            return
        self._schedule_commit()

    def _schedule_commit(self) -> None:
        previous = self._commit_task
        self._commit_task = asyncio.get_running_loop().create_task(self._commit(previous))

    async def _commit(self, previous: Optional[asyncio.Task] = None) -> None:
        # commits run one at a time, in click order
        if previous is not None and not previous.done():
            await previous
        target = self._pending
        self._pending = None
        if target is None or target == self._last_synced:
            self._settled()
            return
        try:
            self.sync_calls += 1
            await self._sync(target)
            self._last_synced = target
        except Exception as e:
            logger.error(f"Vote sync failed: {e}")
            if self._pending is None:
                self._state = VoteState(
                    selection=self._last_synced,
                    counts=self._state.counts.adjusted(self._state.selection, self._last_synced),
                )
            if self._on_error is not None:
                self._on_error(e)
        self._settled()

    def _settled(self) -> None:
        if self._pending is None and self._timer is None and self._on_settled is not None:
            self._on_settled(self)

    async def flush(self) -> None:
        """Commit immediately instead of waiting for the timer"""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            self._schedule_commit()
        if self._commit_task is not None:
            await self._commit_task

    def close(self) -> None:
        """Drop any pending update; nothing is sent after close"""
        self._closed = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._pending = None


class VoteCoalescer:
    """Registry of live debouncers, one per (voter, idea)."""

    def __init__(self, debounce_ms: Optional[int] = None, double_click_ms: Optional[int] = None):
        self._debouncers: Dict[Hashable, VoteDebouncer] = {}
        self.debounce_ms = debounce_ms
        self.double_click_ms = double_click_ms

    def __len__(self) -> int:
        return len(self._debouncers)

    def get(self, key: Hashable) -> Optional[VoteDebouncer]:
        return self._debouncers.get(key)

    def get_or_create(self, key: Hashable, sync: SyncFn, initial: VoteState) -> VoteDebouncer:
        debouncer = self._debouncers.get(key)
        if debouncer is None:
            def _drop(d: VoteDebouncer, key=key):
                if self._debouncers.get(key) is d:
                    del self._debouncers[key]

            debouncer = VoteDebouncer(
                sync,
                initial=initial,
                debounce_ms=self.debounce_ms,
                double_click_ms=self.double_click_ms,
                on_settled=_drop,
            )
            self._debouncers[key] = debouncer
        return debouncer

    async def flush_all(self) -> None:
        for debouncer in list(self._debouncers.values()):
            await debouncer.flush()

    def close_all(self) -> None:
        for debouncer in self._debouncers.values():
            debouncer.close()
        self._debouncers.clear()


vote_coalescer = VoteCoalescer()
