"""Tests for the Socket.IO realtime channel."""

import unittest

from courtside.models import Role
from courtside.services import AuthSession, InlineDispatcher, ManualTickScheduler, ServiceFactory
from courtside.ui.realtime import room_for
from courtside.ui.web_app import create_app
from courtside.utils import Settings

from tests.fakes import GAME_ID, FakePermissionRepository, RecordingGameRepository, build_session, user


class RealtimeChannelTests(unittest.TestCase):
    def setUp(self) -> None:
        self.game_repo = RecordingGameRepository(lambda: build_session(in_progress=True))
        permission_repo = FakePermissionRepository()
        factory = ServiceFactory(
            settings=Settings(),
            game_repository=self.game_repo,
            permission_repository=permission_repo,
            scheduler=ManualTickScheduler(),
            dispatcher_factory=InlineDispatcher,
        )
        self.app = create_app(factory, auth_session=AuthSession(permission_repo, user(Role.ADMIN)))
        self.socketio = self.app.extensions["socketio"]
        self.state = self.app.extensions["courtside"]
        self.viewer = self.socketio.test_client(self.app)
        self.scorer = self.socketio.test_client(self.app)
        for client in (self.viewer, self.scorer):
            client.emit("joinGame", GAME_ID)
            client.get_received()

    def tearDown(self) -> None:
        self.viewer.disconnect()
        self.scorer.disconnect()
        self.state.shutdown()

    def test_room_names(self) -> None:
        self.assertEqual(room_for(12), "game-12")

    def test_commands_are_relayed_to_other_viewers(self) -> None:
        self.scorer.emit("pauseClock", {"gameId": GAME_ID, "time": 300})
        received = self.viewer.get_received()
        self.assertEqual([m["name"] for m in received], ["clockPaused"])
        self.assertEqual(received[0]["args"][0], {"gameId": GAME_ID, "time": 300})
        self.assertEqual(self.scorer.get_received(), [])

    def test_bare_game_id_commands(self) -> None:
        self.scorer.emit("startClock", GAME_ID)
        self.assertEqual(self.viewer.get_received()[0]["args"][0], {"gameId": GAME_ID})

    def test_open_controllers_reload_on_commands(self) -> None:
        self.state.open_game(GAME_ID)
        loads = len(self.game_repo.calls_to("get_game"))
        self.scorer.emit("updateStats", {"gameId": GAME_ID, "playerId": 1})
        self.assertEqual(len(self.game_repo.calls_to("get_game")), loads + 1)

    def test_malformed_commands_are_dropped(self) -> None:
        self.scorer.emit("substitution", {"playerOutId": 1})
        self.assertEqual(self.viewer.get_received(), [])

    def test_controller_actions_reach_the_room(self) -> None:
        controller = self.state.open_game(GAME_ID)
        controller.start_clock()
        received = self.viewer.get_received()
        self.assertEqual(received[-1]["name"], "clockStarted")
        self.assertEqual(received[-1]["args"][0]["origin"], controller.session_key)

    def test_leaving_the_room_stops_delivery(self) -> None:
        self.viewer.emit("leaveGame", GAME_ID)
        self.scorer.emit("resetClock", GAME_ID)
        self.assertEqual(self.viewer.get_received(), [])


if __name__ == "__main__":
    unittest.main()
