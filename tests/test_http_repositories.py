"""Tests for the REST repositories against a patched requests session."""

import json
import unittest
from unittest.mock import patch

import requests

from courtside.models import PermissionFlag, ShotType, StatKind, SubstitutionRequest, TeamSide
from courtside.services import (
    HttpAuthClient, HttpGameRepository, HttpPermissionRepository, NetworkFailure,
    PermissionDenied, RequestRejected, RestClient
)

BASE_URL = "http://backend.test/api"


def make_response(status_code: int = 200, body=None, text: str = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    if body is not None:
        response._content = json.dumps(body).encode("utf-8")
    elif text is not None:
        response._content = text.encode("utf-8")
    else:
        response._content = b""
    return response


class RestClientTestCase(unittest.TestCase):
    def setUp(self) -> None:
        patcher = patch("requests.Session.request")
        self.request = patcher.start()
        self.addCleanup(patcher.stop)
        self.request.return_value = make_response(200, {})
        self.client = RestClient(BASE_URL + "/", token="secret", timeout=3)

    def sent(self, index: int = -1):
        args, kwargs = self.request.call_args_list[index]
        return args[0], args[1], kwargs.get("json")


class RestClientTests(RestClientTestCase):
    def test_headers_and_timeout(self) -> None:
        self.client.request("GET", "/games/1")
        self.assertEqual(self.client.session.headers["Authorization"], "Bearer secret")
        self.assertEqual(self.request.call_args.kwargs["timeout"], 3)
        self.assertEqual(self.sent()[1], BASE_URL + "/games/1")

    def test_transport_error_is_a_network_failure(self) -> None:
        self.request.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(NetworkFailure):
            self.client.request("GET", "/games/1")

    def test_server_error_is_a_network_failure(self) -> None:
        self.request.return_value = make_response(503, text="unavailable")
        with self.assertRaises(NetworkFailure):
            self.client.request("GET", "/games/1")

    def test_authorization_message_is_kept_verbatim(self) -> None:
        self.request.return_value = make_response(403, {"message": "No tienes permiso para editar puntos"})
        with self.assertRaises(PermissionDenied) as ctx:
            self.client.request("PUT", "/games/1/score", {})
        self.assertEqual(str(ctx.exception), "No tienes permiso para editar puntos")

    def test_other_client_errors_are_rejections(self) -> None:
        self.request.return_value = make_response(409, {"error": "Game already started"})
        with self.assertRaises(RequestRejected) as ctx:
            self.client.request("POST", "/games/1/start", {})
        self.assertEqual(ctx.exception.status_code, 409)
        self.assertEqual(str(ctx.exception), "Game already started")

    def test_empty_body_returns_none(self) -> None:
        self.request.return_value = make_response(204)
        self.assertIsNone(self.client.request("POST", "/games/1/reset-time"))


class HttpGameRepositoryTests(RestClientTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.repo = HttpGameRepository(self.client)

    def test_get_game_fetches_missing_rosters(self) -> None:
        game = {"id": 3, "estado": "programado", "teamHomeId": 10, "teamAwayId": 20}
        home = {"id": 10, "nombre": "Lobos", "players": [{"id": 1, "nombre": "Ana"}]}
        away = {"id": 20, "nombre": "Osos", "players": [{"id": 101, "nombre": "Bea"}]}
        self.request.side_effect = [make_response(200, game), make_response(200, home), make_response(200, away)]

        session = self.repo.get_game(3)
        self.assertEqual([self.sent(i)[1] for i in range(3)],
                         [BASE_URL + "/games/3", BASE_URL + "/teams/10", BASE_URL + "/teams/20"])
        self.assertEqual(session.home.name, "Lobos")
        self.assertEqual(session.away.player_ids(), [101])

    def test_write_endpoints(self) -> None:
        self.repo.update_game_time(3, 42)
        self.assertEqual(self.sent(), ("PUT", BASE_URL + "/games/3/time", {"gameTime": 42}))

        self.repo.update_score(3, 10, 8)
        self.assertEqual(self.sent(), ("PUT", BASE_URL + "/games/3/score", {"homeScore": 10, "awayScore": 8}))

        self.repo.set_starters(3, [1, 2], [101, 102])
        self.assertEqual(self.sent(), ("POST", BASE_URL + "/games/3/start", {"activePlayerIds": [1, 2, 101, 102]}))

        self.repo.update_player_minutes(3, {1: 60000, 101: 1000})
        self.assertEqual(self.sent(), ("PUT", BASE_URL + "/games/3/player-minutes", {"1": 60000, "101": 1000}))

        self.repo.record_stat(3, 1, StatKind.PERSONAL_FOUL)
        self.assertEqual(self.sent(), ("POST", BASE_URL + "/games/3/record-personal-foul", {"playerId": 1}))

        self.repo.record_shot(3, 1, ShotType.THREE_POINT, True, 120, 90000)
        self.assertEqual(self.sent(), ("POST", BASE_URL + "/games/3/record-shot", {
            "playerId": 1, "shotType": "3pt", "made": True, "gameTime": 120, "playerMinutes": 90000,
        }))

        self.repo.advance_quarter(3)
        self.assertEqual(self.sent()[:2], ("POST", BASE_URL + "/games/3/next-quarter"))

        self.repo.finish_game(3)
        self.assertEqual(self.sent(), ("PUT", BASE_URL + "/games/3", {"estado": "finalizado"}))

    def test_substitution_goes_to_the_team_side(self) -> None:
        self.repo.substitute(SubstitutionRequest(3, TeamSide.AWAY, 101, 106, 75))
        self.assertEqual(self.sent(), ("POST", BASE_URL + "/substitutions/team/away", {
            "gameId": 3, "playerOutId": 101, "playerInId": 106, "gameTime": 75,
        }))


class HttpPermissionRepositoryTests(RestClientTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.repo = HttpPermissionRepository(self.client)

    def test_join_game(self) -> None:
        self.request.return_value = make_response(200, {
            "permissions": {"canControlTime": True}, "isGameCreator": True,
        })
        result = self.repo.join_game(5)
        self.assertEqual(self.sent()[:2], ("POST", BASE_URL + "/user-game/games/5/join"))
        self.assertTrue(result.is_game_creator)
        self.assertTrue(result.permissions.control_time)

    def test_set_user_permissions_sends_wire_keys(self) -> None:
        self.request.return_value = make_response(200, {
            "userId": 9, "gameId": 5, "permissions": {"canEditBlocks": True},
        })
        updated = self.repo.set_user_permissions(5, 9, {PermissionFlag.EDIT_BLOCKS: True})
        self.assertEqual(self.sent(), ("POST", BASE_URL + "/user-game/games/5/users/9/permissions",
                                       {"canEditBlocks": True}))
        self.assertEqual(updated.user_id, 9)
        self.assertTrue(updated.permissions.edit_blocks)

    def test_list_and_remove(self) -> None:
        self.request.return_value = make_response(200, [
            {"user": {"id": 9, "nombre": "Eva", "rol": "SCORER"}, "permissions": {}},
        ])
        users = self.repo.get_game_users(5)
        self.assertEqual(users[0].user.name, "Eva")

        self.request.return_value = make_response(204)
        self.repo.remove_user_permissions(5, 9)
        self.assertEqual(self.sent()[:2], ("DELETE", BASE_URL + "/user-game/games/5/users/9/permissions"))


class HttpAuthClientTests(RestClientTestCase):
    def test_verify_token(self) -> None:
        self.request.return_value = make_response(200, {
            "valid": True, "user": {"id": 4, "email": "a@b.c", "nombre": "Ana", "rol": "ADMIN"},
        })
        user = HttpAuthClient(self.client).verify_token()
        self.assertEqual(user.id, 4)

    def test_rejected_token_gives_no_user(self) -> None:
        self.request.return_value = make_response(401, {"message": "Token inválido"})
        self.assertIsNone(HttpAuthClient(self.client).verify_token())


if __name__ == "__main__":
    unittest.main()
