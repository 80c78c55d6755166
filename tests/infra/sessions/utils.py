from __future__ import annotations

from typing import Any

from titleseed.infra.sessions import create_session
from titleseed.infra.sessions.base import BaseSession
from titleseed.schemas import SessionConfig

SUPPORTED_BACKENDS: set[str] = {"aiohttp", "httpx"}


def make_session(backend: str, cfg: SessionConfig, **kw: Any) -> BaseSession:
    """Plain-HTTP session suitable for the local test server."""
    return create_session(backend, cfg, **kw)
