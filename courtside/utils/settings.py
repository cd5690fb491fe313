"""
Runtime settings for the Courtside live-scoring application.

Defaults come from :mod:`constants`; every value can be overridden with a
``COURTSIDE_*`` environment variable.
"""
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .constants import (
    DEFAULT_API_URL, DEFAULT_REQUEST_TIMEOUT_SEC,
    DEFAULT_WEB_HOST, DEFAULT_WEB_PORT,
)


@dataclass(frozen=True)
class Settings:
    """
    Connection and server settings.
    
    Attributes:
        api_base_url: Base URL of the remote scoring backend
        api_token: Bearer token sent with authenticated requests
        request_timeout: Per-request timeout in seconds
        web_host: Host the Flask server binds to
        web_port: Port the Flask server listens on
        log_level: Root logging level name
    """
    api_base_url: str = DEFAULT_API_URL
    api_token: Optional[str] = None
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT_SEC
    web_host: str = DEFAULT_WEB_HOST
    web_port: int = DEFAULT_WEB_PORT
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            api_base_url=env.get("COURTSIDE_API_URL", DEFAULT_API_URL).rstrip("/"),
            api_token=env.get("COURTSIDE_API_TOKEN") or None,
            request_timeout=float(env.get("COURTSIDE_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT_SEC)),
            web_host=env.get("COURTSIDE_WEB_HOST", DEFAULT_WEB_HOST),
            web_port=int(env.get("COURTSIDE_WEB_PORT", DEFAULT_WEB_PORT)),
            log_level=env.get("COURTSIDE_LOG_LEVEL", "INFO").upper(),
        )
