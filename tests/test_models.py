"""Tests for the Courtside data models."""

import unittest

from courtside.models import (
    ClockState, GameSession, GameStatus, GameUser, PermissionFlag, PermissionSet,
    PlayerTimeLedger, RealtimeEvent, RealtimeEventKind, Role, ShotType, StatKind,
    SubstitutionRequest, TeamSide, User, can_edit_any_stats
)
from courtside.utils import Settings, fmt_mmss, ms_to_minutes, period_label


class PermissionSetTests(unittest.TestCase):
    def test_from_dict_ignores_unknown_and_defaults_missing(self) -> None:
        perms = PermissionSet.from_dict({"canEditPoints": True, "canFly": True, "canControlTime": "yes"})
        self.assertTrue(perms[PermissionFlag.EDIT_POINTS])
        # Only a real boolean grants a flag
        self.assertFalse(perms[PermissionFlag.CONTROL_TIME])
        self.assertEqual(perms.granted(), [PermissionFlag.EDIT_POINTS])

    def test_to_dict_has_all_fifteen_wire_keys(self) -> None:
        data = PermissionSet.all_granted().to_dict()
        self.assertEqual(len(data), 15)
        self.assertTrue(all(data.values()))
        self.assertIn("canViewAllStats", data)

    def test_merged_replaces_only_given_flags(self) -> None:
        perms = PermissionSet.of(PermissionFlag.EDIT_STEALS)
        updated = perms.merged({PermissionFlag.EDIT_BLOCKS: True, PermissionFlag.EDIT_STEALS: False})
        self.assertEqual(updated.granted(), [PermissionFlag.EDIT_BLOCKS])
        self.assertTrue(perms.edit_steals)

    def test_can_edit_any_stats(self) -> None:
        self.assertFalse(can_edit_any_stats(None))
        self.assertFalse(can_edit_any_stats(PermissionSet.of(PermissionFlag.CONTROL_TIME)))
        self.assertTrue(can_edit_any_stats(PermissionSet.of(PermissionFlag.EDIT_TURNOVERS)))


class UserModelTests(unittest.TestCase):
    def test_from_backend_keys(self) -> None:
        user = User.from_dict({"id": "4", "email": "a@b.c", "nombre": "Ana", "apellido": "Ruiz", "rol": "scorer"})
        self.assertEqual(user.id, 4)
        self.assertEqual(user.name, "Ana")
        self.assertEqual(user.last_name, "Ruiz")
        self.assertIs(user.role, Role.SCORER)

    def test_unknown_role_parses_to_none(self) -> None:
        self.assertIsNone(User.from_dict({"id": 1, "rol": "COACH"}).role)

    def test_game_user_joined_at(self) -> None:
        entry = GameUser.from_dict({
            "user": {"id": 2, "nombre": "Bo"},
            "permissions": {"canSetStarters": True},
            "joinedAt": "2024-03-01T18:30:00Z",
        })
        self.assertEqual(entry.joined_at.year, 2024)
        self.assertTrue(entry.permissions.set_starters)


class GameSessionModelTests(unittest.TestCase):
    def _payload(self) -> dict:
        return {
            "id": 7,
            "estado": "en_progreso",
            "currentQuarter": 2,
            "quarterTime": 150,
            "homeScore": 20,
            "awayScore": 18,
            "teamHome": {"id": 10, "nombre": "Lobos", "players": [
                {"id": 1, "nombre": "A", "numero": 4}, {"id": 2, "nombre": "B"},
            ]},
            "teamAway": {"id": 20, "nombre": "Osos", "players": [{"id": 101, "nombre": "C"}]},
            "activePlayerIds": [1, 101],
            "stats": [{"playerId": 1, "minutos": 90000, "plusMinus": 3}],
        }

    def test_from_dict(self) -> None:
        gs = GameSession.from_dict(self._payload())
        self.assertIs(gs.status, GameStatus.IN_PROGRESS)
        self.assertIs(gs.clock_state, ClockState.PAUSED)
        self.assertEqual(gs.current_quarter, 2)
        self.assertEqual(gs.remaining_seconds, 450)
        self.assertEqual(gs.elapsed_seconds, 150)
        self.assertEqual((gs.home_score, gs.away_score), (20, 18))
        self.assertEqual(gs.on_court_ids(), [1, 101])
        self.assertEqual(gs.find_player(1).minutes_ms, 90000)
        self.assertEqual(gs.find_player(1).plus_minus, 3)
        self.assertIs(gs.side_of(101), TeamSide.AWAY)
        self.assertIsNone(gs.side_of(999))

    def test_status_display_label(self) -> None:
        self.assertIs(GameStatus.parse("En progreso"), GameStatus.IN_PROGRESS)
        with self.assertRaises(ValueError):
            GameStatus.parse("suspendido")

    def test_overtime_period_length(self) -> None:
        gs = GameSession.from_dict(dict(self._payload(), currentQuarter=5, quarterTime=0))
        self.assertTrue(gs.is_overtime)
        self.assertEqual(gs.remaining_seconds, 300)

    def test_elapsed_never_negative(self) -> None:
        gs = GameSession.from_dict(self._payload())
        gs.remaining_seconds = gs.period_length_seconds + 30
        self.assertEqual(gs.elapsed_seconds, 0)


class LedgerTests(unittest.TestCase):
    def test_time_ledger_only_grows(self) -> None:
        ledger = PlayerTimeLedger()
        ledger.add(1, 1000)
        with self.assertRaises(ValueError):
            ledger.add(1, -1)
        self.assertEqual(ledger.get(1), 1000)

    def test_seed_keeps_tracked_values(self) -> None:
        ledger = PlayerTimeLedger({1: 5000})
        ledger.seed({1: 1000, 2: 2000})
        self.assertEqual(ledger.snapshot(), {1: 5000, 2: 2000})
        ledger.seed({1: 1000}, overwrite=True)
        self.assertEqual(ledger.get(1), 1000)


class EventModelTests(unittest.TestCase):
    def test_wire_round_trip_keeps_origin(self) -> None:
        event = RealtimeEvent(RealtimeEventKind.CLOCK_PAUSED, 7, {"time": 30}, origin="abc")
        parsed = RealtimeEvent.from_wire("clockPaused", event.to_dict())
        self.assertEqual(parsed, event)

    def test_stat_and_shot_permissions(self) -> None:
        self.assertIs(StatKind.OFFENSIVE_REBOUND.required_permission, PermissionFlag.EDIT_REBOUNDS)
        self.assertIs(ShotType.FREE_THROW.required_permission, PermissionFlag.EDIT_FREE_THROWS)
        self.assertIs(ShotType.THREE_POINT.required_permission, PermissionFlag.EDIT_SHOTS)
        self.assertEqual(ShotType.THREE_POINT.points, 3)

    def test_substitution_request_wire_format(self) -> None:
        request = SubstitutionRequest(7, TeamSide.HOME, 1, 6, 125)
        self.assertEqual(request.to_dict(), {
            "gameId": 7, "teamSide": "home", "playerOutId": 1, "playerInId": 6, "gameTime": 125,
        })


class UtilsTests(unittest.TestCase):
    def test_fmt_mmss(self) -> None:
        self.assertEqual(fmt_mmss(90), "01:30")
        self.assertEqual(fmt_mmss(-5), "00:00")

    def test_ms_to_minutes(self) -> None:
        self.assertEqual(ms_to_minutes(90000), 1.5)

    def test_period_label(self) -> None:
        self.assertEqual(period_label(6, 4), "OT2")

    def test_settings_from_env(self) -> None:
        settings = Settings.from_env({
            "COURTSIDE_API_URL": "http://api.test/api/",
            "COURTSIDE_WEB_PORT": "9000",
            "COURTSIDE_LOG_LEVEL": "debug",
        })
        self.assertEqual(settings.api_base_url, "http://api.test/api")
        self.assertEqual(settings.web_port, 9000)
        self.assertEqual(settings.log_level, "DEBUG")
        self.assertIsNone(settings.api_token)


if __name__ == "__main__":
    unittest.main()
