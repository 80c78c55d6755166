"""
Backend-agnostic response objects for the session layer.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping, MutableMapping, Sequence
from typing import Any


class Headers(MutableMapping[str, str]):
    """A case-insensitive header mapping.

    Keys are stored lowercased; repeated headers keep their last value.
    """

    __slots__ = ("_store",)

    def __init__(
        self,
        headers: Mapping[str, str] | Sequence[tuple[str, str]] | None = None,
    ) -> None:
        self._store: dict[str, str] = {}
        if not headers:
            return

        pairs = headers.items() if isinstance(headers, Mapping) else headers
        for k, v in pairs:
            self._store[k.lower()] = v or ""

    def __getitem__(self, key: str) -> str:
        return self._store[key.lower()]

    def __setitem__(self, key: str, value: str) -> None:
        self._store[key.lower()] = value

    def __delitem__(self, key: str) -> None:
        del self._store[key.lower()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._store)

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        return key.lower() in self._store

    def __repr__(self) -> str:
        return f"<Headers ({', '.join(self._store)})>"


class BaseResponse:
    """A lightweight response wrapper shared by all session backends.

    Args:
        content: Raw response body.
        headers: Optional header mapping or sequence of header pairs.
        status: HTTP status code.
        encoding: Text encoding used by ``text`` and ``json()``.
    """

    __slots__ = ("content", "headers", "status", "encoding")

    def __init__(
        self,
        *,
        content: bytes,
        headers: Mapping[str, str] | Sequence[tuple[str, str]] | None = None,
        status: int = 200,
        encoding: str = "utf-8",
    ) -> None:
        self.content = content
        self.headers = Headers(headers)
        self.status = status
        self.encoding = encoding

    @property
    def text(self) -> str:
        """Returns the decoded body, replacing undecodable bytes."""
        try:
            return self.content.decode(self.encoding)
        except (UnicodeDecodeError, LookupError):
            return self.content.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Parses the body as JSON.

        Raises:
            json.JSONDecodeError: If the content is not valid JSON.
        """
        return json.loads(self.text)

    @property
    def ok(self) -> bool:
        """True if the status code is below 400."""
        return self.status < 400

    def __repr__(self) -> str:
        return f"<BaseResponse status={self.status} len={len(self.content)}>"
