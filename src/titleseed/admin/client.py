"""
HTTP implementation of the Admin API operations used for provisioning.
"""

from __future__ import annotations

import json
import logging
import types
from typing import Any, Self

from titleseed.errors import AdminAPIError
from titleseed.infra.http_defaults import (
    DEFAULT_API_BASE_TEMPLATE,
    SECRET_KEY_HEADER,
)
from titleseed.infra.sessions import BaseResponse, BaseSession, create_session
from titleseed.schemas import (
    AdminClientConfig,
    CatalogItemDict,
    DropTableDict,
    StoreItemDict,
    VirtualCurrencyDict,
)
from titleseed.utils.rate_limiter import TokenBucketRateLimiter

logger = logging.getLogger(__name__)


class AdminClient:
    """Admin API client for a single title.

    Each operation POSTs a JSON body to ``{api_base}/Admin/<Operation>`` with
    the secret key in the ``X-SecretKey`` header and unwraps the response
    envelope. The client does not retry; failures surface as
    :class:`AdminAPIError` (API-level errors) or as the session backend's own
    exception (transport errors).
    """

    def __init__(
        self,
        config: AdminClientConfig,
        *,
        session: BaseSession | None = None,
        **kwargs: Any,
    ) -> None:
        """Initializes the client.

        Args:
            config: Client configuration; ``title_id`` must be non-empty.
            session: Optional preconfigured session. If omitted, one is created
                via :func:`create_session` from ``config.backend``.
            **kwargs: Forwarded to :func:`create_session`.

        Raises:
            ValueError: If ``config.title_id`` is empty.
        """
        title_id = (config.title_id or "").strip()
        if not title_id:
            raise ValueError("A title id is required to build an admin client.")

        self.title_id = title_id
        base = config.api_base or DEFAULT_API_BASE_TEMPLATE.format(title_id=title_id)
        self.api_base = base.rstrip("/")

        self.session = session or create_session(
            backend=config.backend,
            cfg=config.session_cfg,
            **kwargs,
        )
        self._rate_limiter: TokenBucketRateLimiter | None = (
            TokenBucketRateLimiter(config.max_rps) if config.max_rps > 0 else None
        )

    async def init(self) -> None:
        """Opens the underlying session."""
        await self.session.init()

    async def close(self) -> None:
        """Closes the underlying session."""
        await self.session.close()

    async def add_virtual_currency_types(
        self,
        secret_key: str,
        currencies: list[VirtualCurrencyDict],
    ) -> dict[str, Any]:
        """Adds virtual currency types to the title.

        Args:
            secret_key: Title secret key.
            currencies: Currency definitions.

        Returns:
            The response ``data`` payload.
        """
        return await self._call(
            "AddVirtualCurrencyTypes",
            secret_key,
            {"VirtualCurrencies": currencies},
        )

    async def set_catalog_items(
        self,
        secret_key: str,
        catalog: list[CatalogItemDict],
        catalog_version: str,
        set_as_default: bool,
    ) -> dict[str, Any]:
        """Replaces the items of a catalog version.

        Args:
            secret_key: Title secret key.
            catalog: Catalog item definitions.
            catalog_version: Catalog version to write.
            set_as_default: Whether the version becomes the title's default.

        Returns:
            The response ``data`` payload.
        """
        return await self._call(
            "SetCatalogItems",
            secret_key,
            {
                "Catalog": catalog,
                "CatalogVersion": catalog_version,
                "SetAsDefaultCatalog": set_as_default,
            },
        )

    async def update_random_result_tables(
        self,
        secret_key: str,
        tables: list[DropTableDict],
        catalog_version: str,
    ) -> dict[str, Any]:
        """Writes drop tables. ``tables`` must already be in the write shape."""
        return await self._call(
            "UpdateRandomResultTables",
            secret_key,
            {"Tables": tables, "CatalogVersion": catalog_version},
        )

    async def set_store_items(
        self,
        secret_key: str,
        store_id: str,
        store: list[StoreItemDict],
        marketing_data: dict[str, Any] | None,
        catalog_version: str,
    ) -> dict[str, Any]:
        """Creates or replaces one store."""
        body: dict[str, Any] = {
            "StoreId": store_id,
            "Store": store,
            "CatalogVersion": catalog_version,
        }
        if marketing_data is not None:
            body["MarketingData"] = marketing_data
        return await self._call("SetStoreItems", secret_key, body)

    async def set_title_data(
        self,
        secret_key: str,
        key: str,
        value: str,
    ) -> dict[str, Any]:
        """Sets a single title-data key."""
        return await self._call(
            "SetTitleData",
            secret_key,
            {"Key": key, "Value": value},
        )

    async def update_cloud_script(
        self,
        secret_key: str,
        file_contents: str,
        publish: bool,
        filename: str = "main.js",
    ) -> dict[str, Any]:
        """Uploads a new server script revision.

        Args:
            secret_key: Title secret key.
            file_contents: Script source.
            publish: Whether the new revision becomes the live one.
            filename: Name of the script file in the revision.

        Returns:
            The response ``data`` payload (contains the new revision number).
        """
        return await self._call(
            "UpdateCloudScript",
            secret_key,
            {
                "Files": [{"Filename": filename, "FileContents": file_contents}],
                "Publish": publish,
            },
        )

    def endpoint(self, operation: str) -> str:
        """Returns the full URL of an admin operation."""
        return f"{self.api_base}/Admin/{operation}"

    async def _call(
        self,
        operation: str,
        secret_key: str,
        body: dict[str, Any],
    ) -> dict[str, Any]:
        if self._rate_limiter:
            await self._rate_limiter.wait()

        url = self.endpoint(operation)
        logger.debug("POST %s (title=%s)", operation, self.title_id)

        resp = await self.session.post(
            url,
            headers={SECRET_KEY_HEADER: secret_key},
            json=body,
        )
        return self._unwrap(operation, resp)

    @staticmethod
    def _unwrap(operation: str, resp: BaseResponse) -> dict[str, Any]:
        """Returns the ``data`` payload of a response envelope.

        Raises:
            AdminAPIError: If the response is an error envelope, has a failing
                status, or is not JSON.
        """
        try:
            envelope = resp.json()
        except json.JSONDecodeError:
            raise AdminAPIError(
                f"{operation}: unexpected non-JSON response "
                f"(status {resp.status}): {resp.text[:200]}",
                status=resp.status,
                error="InvalidResponse",
            ) from None

        if not isinstance(envelope, dict):
            raise AdminAPIError(
                f"{operation}: unexpected response shape",
                status=resp.status,
                error="InvalidResponse",
            )

        code = envelope.get("code", resp.status)
        if not resp.ok or code != 200 or "error" in envelope:
            message = envelope.get("errorMessage") or (
                f"{operation} failed with status {resp.status}"
            )
            logger.debug(
                "%s failed: status=%s error=%s",
                operation,
                resp.status,
                envelope.get("error"),
            )
            raise AdminAPIError(
                message,
                status=resp.status,
                error=envelope.get("error", ""),
                error_code=envelope.get("errorCode"),
                details=envelope.get("errorDetails"),
            )

        data = envelope.get("data")
        return data if isinstance(data, dict) else {}

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
