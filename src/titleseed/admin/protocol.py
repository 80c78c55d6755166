"""
Protocol for the administrative operations the pipeline dispatches.

Any object implementing these coroutines can stand behind the pipeline, which
lets tests and dry runs substitute the HTTP client.
"""

from typing import Any, Protocol

from titleseed.schemas import (
    CatalogItemDict,
    DropTableDict,
    StoreItemDict,
    VirtualCurrencyDict,
)


class AdminClientProtocol(Protocol):
    """Administrative calls against one title.

    Every operation takes the title's secret key first, returns the response
    ``data`` payload on success and raises on failure.
    """

    async def add_virtual_currency_types(
        self,
        secret_key: str,
        currencies: list[VirtualCurrencyDict],
    ) -> dict[str, Any]: ...

    async def set_catalog_items(
        self,
        secret_key: str,
        catalog: list[CatalogItemDict],
        catalog_version: str,
        set_as_default: bool,
    ) -> dict[str, Any]: ...

    async def update_random_result_tables(
        self,
        secret_key: str,
        tables: list[DropTableDict],
        catalog_version: str,
    ) -> dict[str, Any]: ...

    async def set_store_items(
        self,
        secret_key: str,
        store_id: str,
        store: list[StoreItemDict],
        marketing_data: dict[str, Any] | None,
        catalog_version: str,
    ) -> dict[str, Any]: ...

    async def set_title_data(
        self,
        secret_key: str,
        key: str,
        value: str,
    ) -> dict[str, Any]: ...

    async def update_cloud_script(
        self,
        secret_key: str,
        file_contents: str,
        publish: bool,
        filename: str = "main.js",
    ) -> dict[str, Any]: ...
