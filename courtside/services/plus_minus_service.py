"""
Plus/minus attribution for the Courtside live-scoring application.

This module credits score changes to the players who were on court when
they happened. The resulting ledger is a local display cache; the backend's
values replace it whenever the game is reloaded.
"""
import logging
from typing import Mapping

from ..models import GameSession, TeamSide

logger = logging.getLogger(__name__)


class PlusMinusAttributor:
    """Applies score deltas to the session's plus/minus ledger."""

    def __init__(self, game_session: GameSession):
        self.game_session = game_session

    def on_score_change(
        self,
        previous_home: int,
        previous_away: int,
        new_home: int,
        new_away: int,
    ) -> bool:
        """
        Attribute one observed score change.

        Each team's positive delta is applied on its own: the scoring team's
        on-court players gain it and the other team's on-court players lose
        it. Deltas are never netted against each other. Unchanged scores make
        the call a no-op, so redundant notifications cannot double count.

        Args:
            previous_home: Home score before the change
            previous_away: Away score before the change
            new_home: Home score after the change
            new_away: Away score after the change

        Returns:
            True if the ledger changed
        """
        delta_home = new_home - previous_home
        delta_away = new_away - previous_away
        if delta_home == 0 and delta_away == 0:
            return False

        gs = self.game_session
        home_ids = [p.id for p in gs.home.on_court()]
        away_ids = [p.id for p in gs.away.on_court()]
        if not home_ids and not away_ids:
            logger.info(
                "Score change %s-%s -> %s-%s in game %s not attributed: no players on court",
                previous_home, previous_away, new_home, new_away, gs.game_id,
            )
            return False

        changed = False
        if delta_home > 0:
            self._attribute(TeamSide.HOME, delta_home)
            changed = True
        if delta_away > 0:
            self._attribute(TeamSide.AWAY, delta_away)
            changed = True
        if not changed:
            # Score corrections downwards carry no on-court credit
            logger.debug("Ignoring negative score correction in game %s", gs.game_id)
        return changed

    def _attribute(self, scoring_side: TeamSide, delta: int) -> None:
        gs = self.game_session
        for player in gs.team(scoring_side).on_court():
            gs.plus_minus.apply(player.id, delta)
        for player in gs.team(scoring_side.opponent).on_court():
            gs.plus_minus.apply(player.id, -delta)

    def reconcile(self, server_values: Mapping[int, int]) -> None:
        """Replace the local ledger with the backend's values (server wins)."""
        gs = self.game_session
        gs.plus_minus.replace({p.id: server_values.get(p.id, 0) for p in gs.all_players()})
