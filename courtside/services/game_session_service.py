"""
Live game session orchestration for the Courtside live-scoring application.

This module ties the permission resolver, lineup manager, game clock and
plus/minus attributor to the backend repositories for one open game view.
Every mutating action is checked against the user's effective permissions
before any request is sent. Substitutions, starters, score changes and stat
records are write-then-confirm: local state changes only after the backend
accepted the request.
"""
import logging
import threading
import uuid
from collections import deque
from typing import Any, Callable, Deque, Dict, Iterable, List, Optional

from ..models import (
    ClockState, GameSession, GameStatus, PermissionFlag, RealtimeEvent,
    RealtimeEventKind, ShotType, StatKind, SubstitutionRequest, TeamSide
)
from .errors import (
    CourtsideError, GameStateError, PlayerNotOnCourt, ValidationError
)
from .lineup_service import LineupManager
from .permission_service import AuthSession, PermissionResolver
from .plus_minus_service import PlusMinusAttributor
from .repositories import GameRepository, LocalRealtimeNotifier, RealtimeNotifier
from .timer_service import (
    Dispatcher, GameClock, ThreadPoolDispatcher, ThreadTickScheduler, TickScheduler
)

logger = logging.getLogger(__name__)


class GameSessionController:
    """
    Owns the local state of one open game for as long as its view is open.

    Created on view mount with :meth:`load`, released with :meth:`close`
    (or by leaving a ``with`` block). UI calls and clock ticks are serialised
    through one re-entrant lock, so each runs to completion before the next.
    Backend writes happen outside the lock; the clock never waits for them.
    """

    def __init__(
        self,
        game_id: int,
        repository: GameRepository,
        auth_session: AuthSession,
        notifier: Optional[RealtimeNotifier] = None,
        scheduler: Optional[TickScheduler] = None,
        dispatcher: Optional[Dispatcher] = None,
    ):
        self.game_id = game_id
        self.repository = repository
        self.auth = auth_session
        self.permissions = PermissionResolver(auth_session, game_id)
        self.notifier = notifier or LocalRealtimeNotifier()
        self.scheduler = scheduler or ThreadTickScheduler()
        self._owns_dispatcher = dispatcher is None
        self.dispatcher = dispatcher or ThreadPoolDispatcher()
        if self.dispatcher.on_error is None:
            self.dispatcher.on_error = self._on_sync_error

        self.session_key = uuid.uuid4().hex
        self.notices: Deque[str] = deque(maxlen=20)
        self.quarter_end_log: List[int] = []

        self._lock = threading.RLock()
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._joined = False
        self._closed = False

        self.game_session: Optional[GameSession] = None
        self.lineup: Optional[LineupManager] = None
        self.clock: Optional[GameClock] = None
        self.plus_minus: Optional[PlusMinusAttributor] = None

    def __enter__(self) -> "GameSessionController":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def load(self, join: bool = True) -> GameSession:
        """
        Fetch the game, join it and start listening for realtime cues.

        A failed join is logged; permission checks then fall back to the
        user's role defaults until permissions load.
        """
        if join:
            try:
                self.auth.join_game(self.game_id)
                self._joined = True
            except CourtsideError as e:
                logger.warning("Joining game %s failed, using role defaults: %s", self.game_id, e)
                self.notices.append(f"Could not join game: {e}")

        snapshot = self.repository.get_game(self.game_id)
        with self._lock:
            if self.game_session is None:
                self._adopt(snapshot)
            else:
                self._merge(snapshot)
        if self._unsubscribe is None:
            self._unsubscribe = self.notifier.subscribe(self.game_id, self.handle_realtime_event)
        return self.game_session

    def _adopt(self, snapshot: GameSession) -> None:
        self.game_session = snapshot
        self.lineup = LineupManager(snapshot)
        self.plus_minus = PlusMinusAttributor(snapshot)
        self.clock = GameClock(
            snapshot, self.repository, self.scheduler,
            dispatcher=self.dispatcher, lock=self._lock,
        )
        self.clock.add_quarter_end_listener(self._on_quarter_end)

        snapshot.time_ledger.seed({p.id: p.minutes_ms for p in snapshot.all_players()}, overwrite=True)
        self.plus_minus.reconcile({p.id: p.plus_minus for p in snapshot.all_players()})
        self._warn_on_illegal_lineup()

    def _merge(self, snapshot: GameSession) -> None:
        gs = self.game_session
        gs.home = snapshot.home
        gs.away = snapshot.away
        gs.status = snapshot.status
        gs.current_quarter = snapshot.current_quarter
        gs.quarter_length_seconds = snapshot.quarter_length_seconds
        gs.overtime_length_seconds = snapshot.overtime_length_seconds
        gs.total_quarters = snapshot.total_quarters
        if not self.clock.is_running:
            gs.remaining_seconds = snapshot.remaining_seconds
            gs.clock_state = snapshot.clock_state

        # Local minutes are ahead of the last flush; only seed unknown players
        gs.time_ledger.seed({p.id: p.minutes_ms for p in gs.all_players()})
        self.plus_minus.reconcile({p.id: p.plus_minus for p in gs.all_players()})
        self._warn_on_illegal_lineup()

    def _warn_on_illegal_lineup(self) -> None:
        gs = self.game_session
        if gs.status is not GameStatus.IN_PROGRESS:
            return
        result = self.lineup.check_lineup()
        if not result.is_valid:
            for error in result.errors:
                logger.warning("Game %s loaded with illegal lineup: %s", gs.game_id, error)

    def reload(self) -> GameSession:
        """Re-fetch the authoritative snapshot; the backend wins on conflicts."""
        self._ensure_loaded()
        snapshot = self.repository.get_game(self.game_id)
        with self._lock:
            self._merge(snapshot)
        logger.debug("Game %s re-synced", self.game_id)
        return self.game_session

    def handle_realtime_event(self, event: RealtimeEvent) -> None:
        """Treat any inbound event for this game as a cue to re-fetch."""
        if event.game_id != self.game_id or event.origin == self.session_key or self._closed:
            return
        try:
            self.reload()
        except CourtsideError as e:
            logger.warning("Re-sync after %s failed: %s", event.kind.value, e)
            self.notices.append(f"Re-sync failed: {e}")

    def close(self) -> None:
        """Cancel the clock, stop listening and leave the game."""
        if self._closed:
            return
        self._closed = True
        try:
            if self.clock is not None:
                self.clock.close()
        finally:
            if self._unsubscribe is not None:
                self._unsubscribe()
                self._unsubscribe = None
            if self._joined:
                self.auth.leave_game(self.game_id)
                self._joined = False
            if self._owns_dispatcher and isinstance(self.dispatcher, ThreadPoolDispatcher):
                self.dispatcher.shutdown(wait=False)

    # ------------------------------------------------------------------
    # Lineup
    # ------------------------------------------------------------------
    def set_starters(self, home_ids: Iterable[int], away_ids: Iterable[int]) -> None:
        """
        Choose both starting fives and move the game to in progress.

        Raises:
            PermissionDenied: Without ``canSetStarters``
            ValidationError: If either lineup is illegal
        """
        self.permissions.require(PermissionFlag.SET_STARTERS)
        self._ensure_loaded()
        with self._lock:
            home, away = self.lineup.validate_starters(home_ids, away_ids)

        self.repository.set_starters(self.game_id, sorted(home), sorted(away))

        # Not re-validated: a re-sync during the request may already show the game in progress
        with self._lock:
            gs = self.game_session
            self.lineup.apply_starters(home, away)
            gs.status = GameStatus.IN_PROGRESS
            if not self.clock.is_running:
                gs.clock_state = ClockState.PAUSED
            if gs.remaining_seconds <= 0:
                gs.remaining_seconds = gs.period_length_seconds
            player_ids = [p.id for p in gs.all_players()]
            gs.time_ledger.reset(player_ids)
            gs.plus_minus.replace({pid: 0 for pid in player_ids})
        self._emit(RealtimeEventKind.STATS_UPDATED, {"starters": sorted(home) + sorted(away)})

    def substitute(self, side: TeamSide, player_out_id: int, player_in_id: int) -> SubstitutionRequest:
        """
        Swap a court player for a bench player of the same team.

        The request is validated locally, sent, and applied only once the
        backend accepts it. If the backend refuses, the local state is
        validated again so a stale view reports the precise local reason.

        Raises:
            PermissionDenied: Without ``canMakeSubstitutions``
            ValidationError: If the substitution is illegal
            NetworkFailure, RequestRejected: If the backend did not accept it
        """
        self.permissions.require(PermissionFlag.MAKE_SUBSTITUTIONS)
        self._ensure_loaded()
        with self._lock:
            self.lineup.validate_substitution(side, player_out_id, player_in_id)
            request = SubstitutionRequest(
                game_id=self.game_id,
                team_side=side,
                player_out_id=player_out_id,
                player_in_id=player_in_id,
                game_time_elapsed=self.game_session.elapsed_seconds,
            )

        try:
            self.repository.substitute(request)
        except CourtsideError as e:
            with self._lock:
                try:
                    self.lineup.validate_substitution(side, player_out_id, player_in_id)
                except ValidationError as local:
                    raise local from e
            raise

        with self._lock:
            self.lineup.substitute(side, player_out_id, player_in_id)
        self._emit(RealtimeEventKind.SUBSTITUTION_MADE, request.to_dict())
        return request

    # ------------------------------------------------------------------
    # Score and stats
    # ------------------------------------------------------------------
    def update_score(self, home_score: int, away_score: int) -> None:
        """Set the scoreboard and attribute the change to players on court."""
        self.permissions.require(PermissionFlag.EDIT_POINTS)
        self._ensure_in_progress()
        if home_score < 0 or away_score < 0:
            raise ValidationError("Scores cannot be negative")

        self.repository.update_score(self.game_id, home_score, away_score)
        with self._lock:
            self._apply_score(home_score, away_score)
        self._emit(RealtimeEventKind.STATS_UPDATED, {"homeScore": home_score, "awayScore": away_score})

    def record_stat(self, player_id: int, stat_kind: StatKind) -> None:
        """Record a non-shot stat for a player who is on court."""
        self.permissions.require(stat_kind.required_permission)
        self._ensure_in_progress()
        with self._lock:
            self._ensure_on_court(player_id)

        self.repository.record_stat(self.game_id, player_id, stat_kind)
        self._emit(RealtimeEventKind.STATS_UPDATED, {"playerId": player_id, "stat": stat_kind.value})

    def record_shot(self, player_id: int, shot_type: ShotType, made: bool) -> None:
        """
        Record a shot attempt; a made shot raises the shooter's team score.

        The backend receives the shooter's current on-court milliseconds with
        the attempt.
        """
        self.permissions.require(shot_type.required_permission)
        self._ensure_in_progress()
        with self._lock:
            self._ensure_on_court(player_id)
            gs = self.game_session
            game_time = gs.elapsed_seconds
            minutes_ms = gs.time_ledger.get(player_id)

        self.repository.record_shot(self.game_id, player_id, shot_type, made, game_time, minutes_ms)

        if made:
            with self._lock:
                gs = self.game_session
                side = gs.side_of(player_id)
                home, away = gs.home_score, gs.away_score
                if side is TeamSide.HOME:
                    home += shot_type.points
                else:
                    away += shot_type.points
                self._apply_score(home, away)
        self._emit(RealtimeEventKind.STATS_UPDATED, {
            "playerId": player_id, "shotType": shot_type.value, "made": made,
        })

    def _apply_score(self, home_score: int, away_score: int) -> None:
        gs = self.game_session
        previous_home, previous_away = gs.home_score, gs.away_score
        gs.home.score = home_score
        gs.away.score = away_score
        self.plus_minus.on_score_change(previous_home, previous_away, home_score, away_score)

    # ------------------------------------------------------------------
    # Clock and periods
    # ------------------------------------------------------------------
    def start_clock(self) -> bool:
        self.permissions.require(PermissionFlag.CONTROL_TIME)
        self._ensure_loaded()
        started = self.clock.start()
        if started:
            self._emit(RealtimeEventKind.CLOCK_STARTED, {"time": self.game_session.remaining_seconds})
        return started

    def pause_clock(self) -> bool:
        self.permissions.require(PermissionFlag.CONTROL_TIME)
        self._ensure_loaded()
        paused = self.clock.pause()
        if paused:
            self._emit(RealtimeEventKind.CLOCK_PAUSED, {"time": self.game_session.remaining_seconds})
        return paused

    def reset_clock(self) -> None:
        """Put a full period back on the clock; the backend sync is best effort."""
        self.permissions.require(PermissionFlag.CONTROL_TIME)
        self._ensure_loaded()
        self.clock.reset()
        self.dispatcher.submit(
            f"game time reset for game {self.game_id}",
            self.repository.reset_game_time, self.game_id,
        )
        self._emit(RealtimeEventKind.CLOCK_RESET)

    def advance_quarter(self) -> int:
        """
        Move to the next quarter (or overtime period) with a full, stopped clock.

        Returns:
            The new period number
        """
        self.permissions.require(PermissionFlag.END_QUARTER)
        self._ensure_in_progress()
        if self.clock.is_running:
            raise GameStateError("Pause the clock before ending the quarter")

        self.repository.advance_quarter(self.game_id)
        with self._lock:
            gs = self.game_session
            gs.current_quarter += 1
            self.clock.reset()
            quarter = gs.current_quarter
        logger.info("Game %s advanced to period %s", self.game_id, quarter)
        self._emit(RealtimeEventKind.CLOCK_RESET, {"quarter": quarter})
        return quarter

    def finish_game(self) -> None:
        self.permissions.require(PermissionFlag.END_QUARTER)
        self._ensure_in_progress()
        self.clock.pause()
        self.repository.finish_game(self.game_id)
        with self._lock:
            self.game_session.status = GameStatus.FINISHED
            self.game_session.clock_state = ClockState.FINISHED
        self._emit(RealtimeEventKind.STATS_UPDATED, {"status": GameStatus.FINISHED.value})

    def _on_quarter_end(self, quarter: int) -> None:
        self.quarter_end_log.append(quarter)
        self.notices.append(f"Quarter {quarter} ended")
        self._emit(RealtimeEventKind.CLOCK_PAUSED, {"time": 0, "quarterEnded": quarter})

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def state(self) -> Dict[str, Any]:
        """Snapshot for the game view."""
        self._ensure_loaded()
        with self._lock:
            data = self.game_session.to_json()
            data["lineup_errors"] = (
                self.lineup.check_lineup().errors
                if self.game_session.status is GameStatus.IN_PROGRESS else []
            )
        data["permissions"] = self.permissions.effective_permissions().to_dict()
        data["is_game_creator"] = self.auth.is_game_creator(self.game_id)
        data["notices"] = list(self.notices)
        return data

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _ensure_loaded(self) -> None:
        if self.game_session is None:
            raise GameStateError("Game has not been loaded")

    def _ensure_in_progress(self) -> None:
        self._ensure_loaded()
        if self.game_session.status is not GameStatus.IN_PROGRESS:
            raise GameStateError(f"Game is {self.game_session.status.value}, not in progress")

    def _ensure_on_court(self, player_id: int) -> None:
        if not self.lineup.is_on_court(player_id):
            raise PlayerNotOnCourt(f"Player {player_id} is not on court")

    def _emit(self, kind: RealtimeEventKind, payload: Optional[Dict[str, Any]] = None) -> None:
        event = RealtimeEvent(kind=kind, game_id=self.game_id, payload=payload or {}, origin=self.session_key)
        try:
            self.notifier.emit(event)
        except Exception:
            logger.exception("Broadcasting %s failed", kind.value)

    def _on_sync_error(self, description: str, error: BaseException) -> None:
        self.notices.append(f"{description} failed: {error}")
