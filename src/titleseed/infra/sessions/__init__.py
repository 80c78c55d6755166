"""
Session management for the Admin API transport.

Provides a single factory over the supported HTTP backends so the admin
client never imports a backend directly.
"""

__all__ = ["create_session", "BaseSession", "BaseResponse"]

from typing import Any

from titleseed.schemas import SessionConfig

from .base import BaseSession
from .response import BaseResponse


def create_session(
    backend: str,
    cfg: SessionConfig | None = None,
    **kwargs: Any,
) -> BaseSession:
    """Creates and returns a session backend instance.

    Supported backends:
        * "aiohttp"
        * "httpx"

    Args:
        backend: Name of the backend to use.
        cfg: Optional session configuration to pass to the backend.
        **kwargs: Additional keyword arguments forwarded directly to the
            backend constructor.

    Returns:
        BaseSession: A session instance for the selected backend. Call
            ``init()`` (or use it as an async context manager) before use.

    Raises:
        ValueError: If the specified backend name is not supported.
    """
    match backend:
        case "aiohttp":
            from ._aiohttp import AiohttpSession

            return AiohttpSession(cfg, **kwargs)
        case "httpx":
            from ._httpx import HttpxSession

            return HttpxSession(cfg, **kwargs)
        case _:
            raise ValueError(f"Unsupported backend: {backend!r}")
