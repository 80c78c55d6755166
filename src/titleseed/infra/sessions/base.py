from __future__ import annotations

import abc
import types
from collections.abc import Mapping
from typing import Any, Self, TypedDict, Unpack

from titleseed.infra.http_defaults import DEFAULT_JSON_HEADERS
from titleseed.schemas import SessionConfig

from .response import BaseResponse


class PostRequestKwargs(TypedDict, total=False):
    headers: Mapping[str, str]
    params: dict[str, Any] | None
    json: Any


class BaseSession(abc.ABC):
    def __init__(self, cfg: SessionConfig | None = None, **kwargs: Any) -> None:
        """Initializes the session using the provided configuration.

        Args:
            cfg: Optional configuration object defining session behavior.
            **kwargs: Additional parameters reserved for backend-specific
                initialization.
        """
        cfg = cfg or SessionConfig()

        self._timeout = cfg.timeout
        self._max_connections = cfg.max_connections
        self._verify_ssl = cfg.verify_ssl
        self._http2 = cfg.http2
        self._proxy = cfg.proxy
        self._proxy_user = cfg.proxy_user
        self._proxy_pass = cfg.proxy_pass
        self._trust_env = cfg.trust_env
        self._session: Any = None

        self._headers = (
            cfg.headers.copy()
            if cfg.headers is not None
            else DEFAULT_JSON_HEADERS.copy()
        )
        if cfg.user_agent:
            self._headers["User-Agent"] = cfg.user_agent

    @abc.abstractmethod
    async def init(self, **kwargs: Any) -> None:
        """Initializes backend-specific resources. Calling it twice is a no-op."""
        ...

    @abc.abstractmethod
    async def close(self) -> None:
        """Releases any allocated resources. Calling it twice is a no-op."""
        ...

    @abc.abstractmethod
    async def post(
        self,
        url: str,
        **kwargs: Unpack[PostRequestKwargs],
    ) -> BaseResponse:
        """Performs an HTTP POST request.

        Args:
            url: Target URL.
            **kwargs: Per-request headers, query params and JSON body.

        Returns:
            BaseResponse: A response wrapper for the POST request.

        Raises:
            RuntimeError: If the session has not been initialized.
        """
        ...

    @property
    def headers(self) -> dict[str, str]:
        """Returns a copy of the current session headers."""
        return self._headers.copy()

    @property
    def is_open(self) -> bool:
        return self._session is not None

    async def __aenter__(self) -> Self:
        await self.init()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        tb: types.TracebackType | None,
    ) -> None:
        await self.close()
