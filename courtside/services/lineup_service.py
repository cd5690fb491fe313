"""
Lineup management for the Courtside live-scoring application.

This module keeps the on-court/bench partition of both rosters legal:
exactly five players per team on court from the opening tip onwards, and
substitutions that swap exactly one court player for one bench player.
Illegal requests are rejected; an illegal state is never repaired silently.
"""
from typing import Iterable, List, Optional, Set, Tuple

from ..models import GameSession, GameStatus, Player, TeamRoster, TeamSide
from ..utils import LINEUP_SIZE
from .errors import (
    CrossTeamPlayer, GameStateError, InvalidLineupSize, PlayerAlreadyOnCourt,
    PlayerNotOnCourt, TeamMismatch
)


class ValidationResult:
    """Result of a validation operation with success status and error messages."""

    def __init__(self, is_valid: bool = True, errors: Optional[List[str]] = None):
        self.is_valid = is_valid
        self.errors = errors or []

    def add_error(self, error: str) -> None:
        """Add an error message and mark as invalid."""
        self.errors.append(error)
        self.is_valid = False


class LineupManager:
    """
    Tracks which players are on court for each team of a game session.

    Validation always runs against the session's current (last known) state.
    Mutating methods validate first and then change every affected flag in
    one step, so no caller ever observes four or six players on court.
    """

    def __init__(self, game_session: GameSession, lineup_size: int = LINEUP_SIZE):
        self.game_session = game_session
        self.lineup_size = lineup_size

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def on_court(self, side: TeamSide) -> List[Player]:
        return self.game_session.team(side).on_court()

    def bench(self, side: TeamSide) -> List[Player]:
        return self.game_session.team(side).bench()

    def is_on_court(self, player_id: int) -> bool:
        player = self.game_session.find_player(player_id)
        return player is not None and player.is_on_court

    def check_lineup(self) -> ValidationResult:
        """Report teams whose on-court count differs from the lineup size."""
        result = ValidationResult()
        for side in TeamSide:
            count = len(self.on_court(side))
            if count != self.lineup_size:
                result.add_error(
                    f"{side.value} team has {count} players on court, expected {self.lineup_size}"
                )
        return result

    # ------------------------------------------------------------------
    # Starters
    # ------------------------------------------------------------------
    def validate_starters(
        self,
        home_ids: Iterable[int],
        away_ids: Iterable[int],
    ) -> Tuple[Set[int], Set[int]]:
        """
        Check a starting five for each team.

        Returns:
            The two id sets

        Raises:
            GameStateError: If the game is no longer scheduled
            InvalidLineupSize: If either selection is not exactly five players
            CrossTeamPlayer: If an id is not on the expected team's roster
        """
        if self.game_session.status is not GameStatus.SCHEDULED:
            raise GameStateError("Starters can only be set before the game starts")

        home, away = set(home_ids), set(away_ids)
        for side, selection in ((TeamSide.HOME, home), (TeamSide.AWAY, away)):
            if len(selection) != self.lineup_size:
                raise InvalidLineupSize(
                    f"{side.value} lineup must have exactly {self.lineup_size} players, "
                    f"got {len(selection)}"
                )
        for side, selection in ((TeamSide.HOME, home), (TeamSide.AWAY, away)):
            roster = self.game_session.team(side)
            foreign = sorted(pid for pid in selection if pid not in roster)
            if foreign:
                raise CrossTeamPlayer(
                    f"Players {foreign} are not on the {side.value} roster"
                )
        return home, away

    def set_starters(self, home_ids: Iterable[int], away_ids: Iterable[int]) -> None:
        """Validate and then put exactly the given players on court."""
        home, away = self.validate_starters(home_ids, away_ids)
        self.apply_starters(home, away)

    def apply_starters(self, home: Set[int], away: Set[int]) -> None:
        """Put an already validated (and backend-confirmed) selection on court."""
        self._apply_selection(self.game_session.home, home)
        self._apply_selection(self.game_session.away, away)

    @staticmethod
    def _apply_selection(roster: TeamRoster, selection: Set[int]) -> None:
        for player in roster:
            player.is_on_court = player.id in selection

    # ------------------------------------------------------------------
    # Substitutions
    # ------------------------------------------------------------------
    def validate_substitution(self, side: TeamSide, player_out_id: int, player_in_id: int) -> None:
        """
        Check one substitution against the current state.

        The clock state is irrelevant: substitutions are legal whether the
        clock is running or paused.

        Raises:
            GameStateError: If the game is not in progress
            TeamMismatch: If both ids are the same player, or either player
                is not on ``side``'s roster
            PlayerNotOnCourt: If the outgoing player is on the bench
            PlayerAlreadyOnCourt: If the incoming player is already playing
        """
        if self.game_session.status is not GameStatus.IN_PROGRESS:
            raise GameStateError("Substitutions are only allowed while the game is in progress")
        if player_out_id == player_in_id:
            raise TeamMismatch("A player cannot substitute for themselves")

        roster = self.game_session.team(side)
        player_out = roster.get(player_out_id)
        if player_out is None:
            raise TeamMismatch(f"Player {player_out_id} is not on the {side.value} roster")
        if not player_out.is_on_court:
            raise PlayerNotOnCourt(f"Player {player_out_id} is not on court")

        player_in = roster.get(player_in_id)
        if player_in is None:
            raise TeamMismatch(f"Player {player_in_id} is not on the {side.value} roster")
        if player_in.is_on_court:
            raise PlayerAlreadyOnCourt(f"Player {player_in_id} is already on court")

    def substitute(self, side: TeamSide, player_out_id: int, player_in_id: int) -> None:
        """Validate and swap the two players' on-court flags."""
        self.validate_substitution(side, player_out_id, player_in_id)
        roster = self.game_session.team(side)
        roster.get(player_out_id).is_on_court = False
        roster.get(player_in_id).is_on_court = True
