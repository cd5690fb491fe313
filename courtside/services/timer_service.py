"""Game clock and time-on-court tracking for the Courtside live-scoring application."""

import logging
import threading
import time
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, List, Optional

from ..models import ClockState, GameSession, GameStatus
from ..utils import MS_PER_TICK, TICK_INTERVAL_SEC
from .errors import CourtsideError, GameStateError
from .repositories import GameRepository

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[str, BaseException], None]


# ----------------------------------------------------------------------
# Tick sources
# ----------------------------------------------------------------------
class TickHandle(ABC):
    """A live repeating timer. ``cancel`` may be called any number of times."""

    @abstractmethod
    def cancel(self) -> None:
        raise NotImplementedError

    @property
    @abstractmethod
    def active(self) -> bool:
        raise NotImplementedError


class TickScheduler(ABC):
    """Creates repeating timers."""

    @abstractmethod
    def call_every(self, interval: float, callback: Callable[[], None]) -> TickHandle:
        raise NotImplementedError


class _ThreadTickHandle(TickHandle):

    def __init__(self, interval: float, callback: Callable[[], None]):
        self._interval = interval
        self._callback = callback
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._run, name="game-clock", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        next_at = time.monotonic() + self._interval
        while not self._stopped.wait(max(0.0, next_at - time.monotonic())):
            try:
                self._callback()
            except Exception:
                logger.exception("Clock tick failed")
            next_at += self._interval

    def cancel(self) -> None:
        # No join: cancel may run on the tick thread itself (quarter end)
        self._stopped.set()

    @property
    def active(self) -> bool:
        return not self._stopped.is_set()


class ThreadTickScheduler(TickScheduler):
    """Runs each repeating timer on its own daemon thread, drift-corrected."""

    def call_every(self, interval: float, callback: Callable[[], None]) -> TickHandle:
        return _ThreadTickHandle(interval, callback)


class _ManualTickHandle(TickHandle):

    def __init__(self, callback: Callable[[], None]):
        self.callback = callback
        self._active = True

    def cancel(self) -> None:
        self._active = False

    @property
    def active(self) -> bool:
        return self._active


class ManualTickScheduler(TickScheduler):
    """
    Deterministic tick source: nothing happens until :meth:`advance` is called.

    Used for simulations and replays where wall-clock time must not matter.
    """

    def __init__(self):
        self.handles: List[_ManualTickHandle] = []

    def call_every(self, interval: float, callback: Callable[[], None]) -> TickHandle:
        handle = _ManualTickHandle(callback)
        self.handles.append(handle)
        return handle

    @property
    def active_count(self) -> int:
        return sum(1 for h in self.handles if h.active)

    def advance(self, ticks: int = 1) -> None:
        """Fire every live timer ``ticks`` times."""
        for _ in range(ticks):
            for handle in [h for h in self.handles if h.active]:
                if handle.active:
                    handle.callback()


# ----------------------------------------------------------------------
# Fire-and-forget dispatch
# ----------------------------------------------------------------------
class Dispatcher(ABC):
    """Runs backend sync calls without letting their failures escape."""

    def __init__(self, on_error: Optional[ErrorCallback] = None):
        self.on_error = on_error

    @abstractmethod
    def submit(self, description: str, fn: Callable[..., object], *args) -> None:
        raise NotImplementedError

    def _report(self, description: str, error: BaseException) -> None:
        if isinstance(error, CourtsideError):
            logger.warning("%s failed: %s", description, error)
        else:
            logger.error("%s failed unexpectedly", description, exc_info=error)
        if self.on_error is not None:
            self.on_error(description, error)


class InlineDispatcher(Dispatcher):
    """Runs the call immediately on the caller's thread."""

    def submit(self, description: str, fn: Callable[..., object], *args) -> None:
        try:
            fn(*args)
        except Exception as e:
            self._report(description, e)


class ThreadPoolDispatcher(Dispatcher):
    """
    Hands the call to a single background worker; the caller never waits.

    Calls reach the backend in submission order, so a slow sync can never
    land after a newer one.
    """

    def __init__(self, on_error: Optional[ErrorCallback] = None):
        super().__init__(on_error)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="courtside-sync")

    def submit(self, description: str, fn: Callable[..., object], *args) -> None:
        future = self._executor.submit(fn, *args)

        def _done(f: Future) -> None:
            error = f.exception()
            if error is not None:
                self._report(description, error)

        future.add_done_callback(_done)

    def shutdown(self, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait)


# ----------------------------------------------------------------------
# Game clock
# ----------------------------------------------------------------------
class GameClock:
    """
    Single authoritative countdown for the current period.

    While running, every tick takes one second off the countdown, credits
    each on-court player with one tick of playing time and sends the new
    elapsed time to the backend without waiting for it. Pausing or reaching
    zero cancels the tick source and sends the whole time ledger in one
    batched request. Reaching zero additionally notifies quarter-end
    listeners; the clock never advances the quarter itself.

    Exactly one tick source can be live. ``running`` is tracked as its own
    flag rather than inferred from the handle.
    """

    def __init__(
        self,
        game_session: GameSession,
        repository: GameRepository,
        scheduler: TickScheduler,
        dispatcher: Optional[Dispatcher] = None,
        lock: Optional[threading.RLock] = None,
        tick_interval: float = TICK_INTERVAL_SEC,
        ms_per_tick: int = MS_PER_TICK,
    ):
        self.game_session = game_session
        self.repository = repository
        self.scheduler = scheduler
        self.dispatcher = dispatcher or InlineDispatcher()
        self.tick_interval = tick_interval
        self.ms_per_tick = ms_per_tick
        self._lock = lock or threading.RLock()
        self._handle: Optional[TickHandle] = None
        self._running = False
        self._quarter_end_listeners: List[Callable[[int], None]] = []

    def __enter__(self) -> "GameClock":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_running(self) -> bool:
        return self._running

    def add_quarter_end_listener(self, listener: Callable[[int], None]) -> None:
        """``listener`` receives the number of the quarter that just ended."""
        self._quarter_end_listeners.append(listener)

    # ------------------------------------------------------------------
    # Core timer controls
    # ------------------------------------------------------------------
    def start(self) -> bool:
        """
        Start the countdown.

        Returns:
            False if the clock was already running (nothing changes)

        Raises:
            GameStateError: If the game is not in progress or the period has no time left
        """
        with self._lock:
            if self._running:
                return False
            gs = self.game_session
            if gs.status is not GameStatus.IN_PROGRESS:
                raise GameStateError(f"Cannot start the clock of a {gs.status.value} game")
            if gs.remaining_seconds <= 0:
                raise GameStateError("No time left in this period; advance the quarter first")

            self._running = True
            gs.clock_state = ClockState.RUNNING
            self._handle = self.scheduler.call_every(self.tick_interval, self._tick)
            logger.debug("Clock started for game %s at %ss", gs.game_id, gs.remaining_seconds)
            return True

    def pause(self) -> bool:
        """
        Stop the countdown and flush the time ledger.

        Returns:
            False if the clock was not running (nothing changes)
        """
        with self._lock:
            if not self._running:
                return False
            self._stop(ClockState.PAUSED)
            return True

    def reset(self, remaining_seconds: Optional[int] = None) -> None:
        """Stop if needed and set the countdown back to a full period."""
        with self._lock:
            if self._running:
                self._stop(ClockState.PAUSED)
            gs = self.game_session
            length = gs.period_length_seconds if remaining_seconds is None else remaining_seconds
            gs.remaining_seconds = max(0, int(length))
            if gs.status is GameStatus.IN_PROGRESS:
                gs.clock_state = ClockState.PAUSED

    def close(self) -> None:
        """Release the tick source. Safe to call on every exit path."""
        with self._lock:
            if self._running:
                self._stop(ClockState.PAUSED)
            elif self._handle is not None:
                self._handle.cancel()
                self._handle = None

    def flush(self) -> None:
        """Send the whole time ledger to the backend in one request."""
        gs = self.game_session
        payload = gs.time_ledger.snapshot()
        self.dispatcher.submit(
            f"player minutes sync for game {gs.game_id}",
            self.repository.update_player_minutes, gs.game_id, payload,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _stop(self, state: ClockState) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._running = False
        self.game_session.clock_state = state
        self.flush()

    def _tick(self) -> None:
        with self._lock:
            # A tick queued before cancellation must not count
            if not self._running:
                return
            gs = self.game_session
            gs.remaining_seconds = max(0, gs.remaining_seconds - 1)
            for player_id in gs.on_court_ids():
                gs.time_ledger.add(player_id, self.ms_per_tick)

            self.dispatcher.submit(
                f"game time sync for game {gs.game_id}",
                self.repository.update_game_time, gs.game_id, gs.elapsed_seconds,
            )

            if gs.remaining_seconds == 0:
                self._stop(ClockState.QUARTER_ENDED)
                quarter = gs.current_quarter
                logger.info("Quarter %s of game %s ended", quarter, gs.game_id)
                for listener in list(self._quarter_end_listeners):
                    listener(quarter)
