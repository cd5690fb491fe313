#!/usr/bin/env python3
"""
Main entry point for the Courtside Live web application.

This script launches the Flask-SocketIO web server. Connection settings are
read from the ``COURTSIDE_*`` environment variables.
"""
from courtside.ui.web_app import run_web_app
from courtside.utils import Settings

if __name__ == "__main__":
    run_web_app(Settings.from_env())
