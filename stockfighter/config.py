"""
Stockfighter Client - Configuration.

============================================================
PURPOSE
============================================================
All configuration for the client.

The host is set once per client and never changes, so
several clients (e.g. one against a local mock server) can
coexist in one process.

============================================================
ENVIRONMENT
============================================================
STOCKFIGHTER_API_KEY        credential header value
STOCKFIGHTER_HOST           host[:port], default api.stockfighter.io
STOCKFIGHTER_SECURE         https/wss when true (default true)
STOCKFIGHTER_DEBUG          dump requests, responses and frames
STOCKFIGHTER_STREAM_BUFFER  events buffered per subscription

============================================================
"""

import os
from dataclasses import dataclass
from typing import Dict, Optional
from urllib.parse import quote

from dotenv import load_dotenv


DEFAULT_HOST = "api.stockfighter.io"

AUTH_HEADER = "X-Starfighter-Authorization"


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _segment(value: object) -> str:
    return quote(str(value), safe="")


@dataclass(frozen=True)
class ClientConfig:
    """
    Client configuration.
    """

    api_key: str = ""
    """Value of the credential header sent with every request."""

    host: str = DEFAULT_HOST
    """Host (and optional port) serving every API root."""

    secure: bool = True
    """Use https/wss instead of http/ws."""

    debug: bool = False
    """Log full requests, responses and stream frames."""

    stream_buffer: int = 1
    """Events a subscription buffers before its reader blocks."""

    def __post_init__(self) -> None:
        if not self.host:
            raise ValueError("host must not be empty")
        if self.stream_buffer < 1:
            raise ValueError("stream_buffer must be at least 1")

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "ClientConfig":
        """Load configuration from the environment (and .env)."""
        load_dotenv(dotenv_path)
        return cls(
            api_key=os.environ.get("STOCKFIGHTER_API_KEY", ""),
            host=os.environ.get("STOCKFIGHTER_HOST") or DEFAULT_HOST,
            secure=_env_bool("STOCKFIGHTER_SECURE", True),
            debug=_env_bool("STOCKFIGHTER_DEBUG", False),
            stream_buffer=int(os.environ.get("STOCKFIGHTER_STREAM_BUFFER") or 1),
        )

    # --------------------------------------------------------
    # URLS
    # --------------------------------------------------------

    @property
    def http_scheme(self) -> str:
        return "https" if self.secure else "http"

    @property
    def ws_scheme(self) -> str:
        return "wss" if self.secure else "ws"

    @property
    def api_root(self) -> str:
        return f"{self.http_scheme}://{self.host}/ob/api/"

    @property
    def gm_root(self) -> str:
        return f"{self.http_scheme}://{self.host}/gm/"

    @property
    def ws_root(self) -> str:
        return f"{self.ws_scheme}://{self.host}/ob/api/ws/"

    def api_url(self, *segments: object) -> str:
        """REST endpoint url; each segment is url-quoted."""
        return self.api_root + "/".join(_segment(s) for s in segments)

    def gm_url(self, *segments: object) -> str:
        """Game master endpoint url."""
        return self.gm_root + "/".join(_segment(s) for s in segments)

    def ws_url(self, *segments: object) -> str:
        """Streaming endpoint url."""
        return self.ws_root + "/".join(_segment(s) for s in segments)

    @property
    def auth_headers(self) -> Dict[str, str]:
        return {AUTH_HEADER: self.api_key}
