"""
Exception hierarchy shared by the admin client and the provisioning pipeline.
"""

from __future__ import annotations

from typing import Any


class TitleSeedError(Exception):
    """Base class for all titleseed errors."""


class CredentialError(TitleSeedError, ValueError):
    """Raised when a run is started without a usable secret key."""


class SeedDataError(TitleSeedError, ValueError):
    """Raised when a seed file is missing or has an unexpected shape."""


class PipelineStateError(TitleSeedError, RuntimeError):
    """Raised when a pipeline operation is not valid in the current phase."""


class StageTimeoutError(TitleSeedError, TimeoutError):
    """Raised when a single remote call exceeds the configured item timeout."""

    def __init__(self, stage_key: str, sequence_index: int, timeout: float) -> None:
        super().__init__(
            f"{stage_key} item #{sequence_index} did not complete "
            f"within {timeout:g}s"
        )
        self.stage_key = stage_key
        self.sequence_index = sequence_index
        self.timeout = timeout


class AdminAPIError(TitleSeedError):
    """An error envelope returned by the Admin API.

    ``str(err)`` is the server's ``errorMessage`` verbatim so it can be shown
    to the operator without further formatting.

    Attributes:
        status: HTTP status code of the response.
        error: Symbolic error name (e.g. ``"InvalidParams"``).
        error_code: Numeric API error code, if present.
        details: Optional per-field error details.
    """

    def __init__(
        self,
        message: str,
        *,
        status: int,
        error: str = "",
        error_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.error = error
        self.error_code = error_code
        self.details = details or {}

    def __repr__(self) -> str:
        return (
            f"AdminAPIError(status={self.status}, error={self.error!r}, "
            f"error_code={self.error_code}, message={str(self)!r})"
        )
