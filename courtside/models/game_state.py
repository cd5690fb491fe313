"""
GameSession model for the Courtside live-scoring application.

This module contains the GameSession aggregate which represents the locally
tracked state of one open game, the two per-session ledgers (time on court and
plus/minus) and the transient substitution request.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .player import Player, TeamRoster, TeamSide
from ..utils import (
    DEFAULT_OVERTIME_LENGTH_SEC, DEFAULT_QUARTER_LENGTH_SEC, DEFAULT_TOTAL_QUARTERS,
    fmt_mmss, period_label
)


class GameStatus(Enum):
    """Lifecycle of a game record."""
    SCHEDULED = "programado"
    IN_PROGRESS = "en_progreso"
    FINISHED = "finalizado"

    @classmethod
    def parse(cls, value: Any) -> "GameStatus":
        """Accept both wire values and display labels (``En progreso``)."""
        if isinstance(value, GameStatus):
            return value
        normalized = str(value or "").strip().lower().replace(" ", "_")
        for status in cls:
            if normalized in (status.value, status.name.lower()):
                return status
        raise ValueError(f"Unknown game status: {value!r}")


class ClockState(Enum):
    """States of the game clock."""
    SCHEDULED = "scheduled"
    RUNNING = "running"
    PAUSED = "paused"
    QUARTER_ENDED = "quarter_ended"
    FINISHED = "finished"


class PlayerTimeLedger:
    """Accumulated on-court milliseconds per player for the current session."""

    def __init__(self, initial: Optional[Mapping[int, int]] = None):
        self._ms: Dict[int, int] = {}
        if initial:
            for player_id, value in initial.items():
                self._ms[int(player_id)] = max(0, int(value))

    def __contains__(self, player_id: object) -> bool:
        return player_id in self._ms

    def __len__(self) -> int:
        return len(self._ms)

    def get(self, player_id: int) -> int:
        return self._ms.get(player_id, 0)

    def add(self, player_id: int, milliseconds: int) -> None:
        if milliseconds < 0:
            raise ValueError("On-court time can only increase")
        self._ms[player_id] = self._ms.get(player_id, 0) + milliseconds

    def reset(self, player_ids: Iterable[int]) -> None:
        """Zero the ledger for exactly ``player_ids``."""
        self._ms = {player_id: 0 for player_id in player_ids}

    def seed(self, values: Mapping[int, int], overwrite: bool = False) -> None:
        """Load values reported by the backend, optionally keeping tracked entries."""
        for player_id, value in values.items():
            if overwrite or player_id not in self._ms:
                self._ms[player_id] = max(0, int(value))

    def snapshot(self) -> Dict[int, int]:
        return dict(self._ms)


class PlusMinusLedger:
    """
    Signed plus/minus running total per player.

    Acts as a display cache: the backend's values replace it on every
    successful reload.
    """

    def __init__(self, initial: Optional[Mapping[int, int]] = None):
        self._totals: Dict[int, int] = {int(k): int(v) for k, v in (initial or {}).items()}

    def __contains__(self, player_id: object) -> bool:
        return player_id in self._totals

    def get(self, player_id: int) -> int:
        return self._totals.get(player_id, 0)

    def apply(self, player_id: int, delta: int) -> None:
        self._totals[player_id] = self._totals.get(player_id, 0) + delta

    def replace(self, values: Mapping[int, int]) -> None:
        self._totals = {int(k): int(v) for k, v in values.items()}

    def snapshot(self) -> Dict[int, int]:
        return dict(self._totals)


@dataclass(frozen=True)
class SubstitutionRequest:
    """One substitution, sent to the backend and then discarded."""
    game_id: int
    team_side: TeamSide
    player_out_id: int
    player_in_id: int
    game_time_elapsed: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gameId": self.game_id,
            "teamSide": self.team_side.value,
            "playerOutId": self.player_out_id,
            "playerInId": self.player_in_id,
            "gameTime": self.game_time_elapsed,
        }


@dataclass
class GameSession:
    """
    Represents the locally tracked state of one open game.

    Attributes:
        game_id: Backend game identifier
        status: Lifecycle state (scheduled -> in_progress -> finished)
        home: Home team roster and score
        away: Away team roster and score
        current_quarter: 1-based period number (overtime continues the count)
        quarter_length_seconds: Regulation quarter length
        overtime_length_seconds: Overtime period length
        total_quarters: Number of regulation quarters
        remaining_seconds: Countdown value of the current period
        clock_state: State of the game clock
        time_ledger: On-court milliseconds per player
        plus_minus: Plus/minus per player
    """
    game_id: int
    home: TeamRoster
    away: TeamRoster
    status: GameStatus = GameStatus.SCHEDULED
    current_quarter: int = 1
    quarter_length_seconds: int = DEFAULT_QUARTER_LENGTH_SEC
    overtime_length_seconds: int = DEFAULT_OVERTIME_LENGTH_SEC
    total_quarters: int = DEFAULT_TOTAL_QUARTERS
    remaining_seconds: int = DEFAULT_QUARTER_LENGTH_SEC
    clock_state: ClockState = ClockState.SCHEDULED
    time_ledger: PlayerTimeLedger = field(default_factory=PlayerTimeLedger)
    plus_minus: PlusMinusLedger = field(default_factory=PlusMinusLedger)

    @property
    def is_running(self) -> bool:
        return self.clock_state is ClockState.RUNNING

    @property
    def is_overtime(self) -> bool:
        return self.current_quarter > self.total_quarters

    @property
    def period_length_seconds(self) -> int:
        """Length of the current period (quarter or overtime)."""
        if self.is_overtime:
            return self.overtime_length_seconds
        return self.quarter_length_seconds

    @property
    def elapsed_seconds(self) -> int:
        """Seconds played in the current period, never negative."""
        return max(0, self.period_length_seconds - self.remaining_seconds)

    @property
    def home_score(self) -> int:
        return self.home.score

    @property
    def away_score(self) -> int:
        return self.away.score

    def team(self, side: TeamSide) -> TeamRoster:
        return self.home if side is TeamSide.HOME else self.away

    def side_of(self, player_id: int) -> Optional[TeamSide]:
        if player_id in self.home:
            return TeamSide.HOME
        if player_id in self.away:
            return TeamSide.AWAY
        return None

    def find_player(self, player_id: int) -> Optional[Player]:
        return self.home.get(player_id) or self.away.get(player_id)

    def all_players(self) -> List[Player]:
        return self.home.players + self.away.players

    def on_court_ids(self) -> List[int]:
        return [p.id for p in self.all_players() if p.is_on_court]

    def to_json(self) -> dict:
        """
        Convert GameSession to JSON-serializable dictionary.

        Returns:
            Dictionary representation suitable for JSON serialization
        """
        return {
            "game_id": self.game_id,
            "status": self.status.value,
            "current_quarter": self.current_quarter,
            "period_label": period_label(self.current_quarter, self.total_quarters),
            "is_overtime": self.is_overtime,
            "quarter_length_seconds": self.quarter_length_seconds,
            "overtime_length_seconds": self.overtime_length_seconds,
            "total_quarters": self.total_quarters,
            "remaining_seconds": self.remaining_seconds,
            "elapsed_seconds": self.elapsed_seconds,
            "clock": fmt_mmss(self.remaining_seconds),
            "clock_state": self.clock_state.value,
            "home": self.home.to_dict(),
            "away": self.away.to_dict(),
            "player_minutes_ms": {str(k): v for k, v in self.time_ledger.snapshot().items()},
            "plus_minus": {str(k): v for k, v in self.plus_minus.snapshot().items()},
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "GameSession":
        """
        Create GameSession from the backend's game document.

        Args:
            data: Dictionary with game data (``GET /games/{id}``)

        Returns:
            New GameSession instance with empty ledgers
        """
        home = TeamRoster.from_dict(data.get("teamHome") or {"id": data.get("teamHomeId", 0)},
                                    score=int(data.get("homeScore", 0) or 0))
        away = TeamRoster.from_dict(data.get("teamAway") or {"id": data.get("teamAwayId", 0)},
                                    score=int(data.get("awayScore", 0) or 0))
        # Older payloads nest the score
        score = data.get("score") or {}
        if score:
            home.score = int(score.get("home", home.score) or 0)
            away.score = int(score.get("away", away.score) or 0)

        gs = GameSession(game_id=int(data["id"]), home=home, away=away)
        gs.status = GameStatus.parse(data.get("estado", GameStatus.SCHEDULED.value))
        gs.current_quarter = max(1, int(data.get("currentQuarter", 1) or 1))
        gs.quarter_length_seconds = int(data.get("quarterLength", DEFAULT_QUARTER_LENGTH_SEC) or DEFAULT_QUARTER_LENGTH_SEC)
        gs.overtime_length_seconds = int(data.get("overtimeLength", DEFAULT_OVERTIME_LENGTH_SEC) or DEFAULT_OVERTIME_LENGTH_SEC)
        gs.total_quarters = int(data.get("totalQuarters", DEFAULT_TOTAL_QUARTERS) or DEFAULT_TOTAL_QUARTERS)

        quarter_time = int(data.get("quarterTime", 0) or 0)
        gs.remaining_seconds = max(0, min(gs.period_length_seconds, gs.period_length_seconds - quarter_time))

        if gs.status is GameStatus.FINISHED:
            gs.clock_state = ClockState.FINISHED
        elif gs.status is GameStatus.IN_PROGRESS:
            gs.clock_state = ClockState.QUARTER_ENDED if gs.remaining_seconds == 0 else ClockState.PAUSED

        active_ids = data.get("activePlayerIds")
        if active_ids is not None:
            active = {int(pid) for pid in active_ids}
            for player in gs.all_players():
                player.is_on_court = player.id in active

        for entry in data.get("stats") or []:
            player = gs.find_player(int(entry.get("playerId", 0)))
            if player is not None:
                player.minutes_ms = int(entry.get("minutos", player.minutes_ms) or 0)
                player.plus_minus = int(entry.get("plusMinus", player.plus_minus) or 0)
        return gs
