"""
Courtside Live

Client-side core of a multi-user basketball live-scoring application.

This package resolves what each signed-in user may do during a game, keeps
both teams' lineups legal, runs the authoritative game clock with per-player
time on court, attributes plus/minus to players on court, and keeps every
viewer of a game in sync through a Flask web server.
"""
from .models import GameSession, PermissionSet, Player, Role
from .services import AuthSession, GameSessionController, ServiceFactory
from .ui import create_app, run_web_app
from .utils import APP_TITLE, Settings, fmt_mmss

__version__ = "1.0.0"
__author__ = "Courtside Development Team"

__all__ = [
    "GameSession", "PermissionSet", "Player", "Role",
    "AuthSession", "GameSessionController", "ServiceFactory",
    "create_app", "run_web_app", "APP_TITLE", "Settings", "fmt_mmss"
]
