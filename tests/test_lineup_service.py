"""Tests for starting lineups and substitutions."""

import unittest

from courtside.models import GameStatus, TeamSide
from courtside.services import (
    CrossTeamPlayer, GameStateError, InvalidLineupSize, LineupManager,
    PlayerAlreadyOnCourt, PlayerNotOnCourt, TeamMismatch
)

from tests.fakes import build_session

HOME_FIVE = [1, 2, 3, 4, 5]
AWAY_FIVE = [101, 102, 103, 104, 105]


class StartersTests(unittest.TestCase):
    def setUp(self) -> None:
        self.session = build_session()
        self.lineup = LineupManager(self.session)

    def test_set_starters_puts_exactly_five_on_court(self) -> None:
        self.lineup.set_starters(HOME_FIVE, AWAY_FIVE)
        self.assertEqual([p.id for p in self.lineup.on_court(TeamSide.HOME)], HOME_FIVE)
        self.assertEqual([p.id for p in self.lineup.on_court(TeamSide.AWAY)], AWAY_FIVE)
        self.assertEqual(len(self.lineup.bench(TeamSide.HOME)), 3)

    def test_wrong_size_is_rejected(self) -> None:
        with self.assertRaises(InvalidLineupSize):
            self.lineup.validate_starters([1, 2, 3, 4], AWAY_FIVE)
        with self.assertRaises(InvalidLineupSize):
            self.lineup.validate_starters(HOME_FIVE, AWAY_FIVE + [106])

    def test_duplicates_do_not_count_twice(self) -> None:
        with self.assertRaises(InvalidLineupSize):
            self.lineup.validate_starters([1, 1, 2, 3, 4], AWAY_FIVE)

    def test_player_from_other_team_is_rejected(self) -> None:
        with self.assertRaises(CrossTeamPlayer):
            self.lineup.validate_starters([1, 2, 3, 4, 101], AWAY_FIVE)
        self.assertEqual(self.session.on_court_ids(), [])

    def test_starters_only_before_tip_off(self) -> None:
        self.session.status = GameStatus.IN_PROGRESS
        with self.assertRaises(GameStateError):
            self.lineup.set_starters(HOME_FIVE, AWAY_FIVE)


class SubstitutionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.session = build_session(in_progress=True)
        self.lineup = LineupManager(self.session)

    def test_substitution_swaps_one_for_one(self) -> None:
        self.lineup.substitute(TeamSide.HOME, 3, 6)
        on_court = [p.id for p in self.lineup.on_court(TeamSide.HOME)]
        self.assertEqual(on_court, [1, 2, 4, 5, 6])
        self.assertTrue(self.lineup.check_lineup().is_valid)

    def test_outgoing_player_must_be_on_court(self) -> None:
        with self.assertRaises(PlayerNotOnCourt):
            self.lineup.substitute(TeamSide.HOME, 7, 6)

    def test_incoming_player_must_be_on_bench(self) -> None:
        with self.assertRaises(PlayerAlreadyOnCourt):
            self.lineup.substitute(TeamSide.HOME, 1, 2)

    def test_players_must_belong_to_the_side(self) -> None:
        with self.assertRaises(TeamMismatch):
            self.lineup.substitute(TeamSide.HOME, 101, 6)
        with self.assertRaises(TeamMismatch):
            self.lineup.substitute(TeamSide.HOME, 1, 106)

    def test_same_player_in_and_out(self) -> None:
        with self.assertRaises(TeamMismatch):
            self.lineup.substitute(TeamSide.HOME, 1, 1)

    def test_rejected_substitution_changes_nothing(self) -> None:
        before = self.session.on_court_ids()
        with self.assertRaises(PlayerAlreadyOnCourt):
            self.lineup.substitute(TeamSide.AWAY, 101, 102)
        self.assertEqual(self.session.on_court_ids(), before)

    def test_only_while_in_progress(self) -> None:
        self.session.status = GameStatus.FINISHED
        with self.assertRaises(GameStateError):
            self.lineup.substitute(TeamSide.HOME, 1, 6)

    def test_check_lineup_reports_illegal_state(self) -> None:
        self.session.home.get(6).is_on_court = True
        result = self.lineup.check_lineup()
        self.assertFalse(result.is_valid)
        self.assertEqual(len(result.errors), 1)
        self.assertIn("6 players", result.errors[0])


if __name__ == "__main__":
    unittest.main()
