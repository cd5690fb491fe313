"""
UI package for the Courtside live-scoring application.

This package contains the Flask web server and its Socket.IO realtime channel.
"""
from .realtime import SocketIORealtimeNotifier, room_for
from .web_app import WebAppState, create_app, run_web_app

__all__ = ["SocketIORealtimeNotifier", "room_for", "WebAppState", "create_app", "run_web_app"]
