from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

from titleseed.schemas import ProgressSnapshot


def rewrite(seed_dir: Path, name: str, data: Any) -> None:
    """Replace one seed file with ``data`` serialized as JSON."""
    (seed_dir / name).write_text(json.dumps(data), encoding="utf-8")


class FakeAdminClient:
    """In-memory admin client recording every call with its loop time.

    ``failures`` maps a call identifier (``"<operation>"`` or
    ``"<operation>:<key>"``) to errors raised by successive calls; once the
    list is exhausted the call succeeds. ``hang`` holds identifiers that
    never return.
    """

    def __init__(
        self,
        *,
        delay: float = 0.0,
        failures: dict[str, list[BaseException]] | None = None,
        hang: set[str] | None = None,
    ) -> None:
        self.delay = delay
        self.failures = failures or {}
        self.hang = hang or set()
        self.calls: list[dict[str, Any]] = []

    def ops(self, secret: str | None = None) -> list[str]:
        return [
            c["id"] for c in self.calls if secret is None or c["secret"] == secret
        ]

    def times(self, operation: str) -> list[float]:
        return [c["at"] for c in self.calls if c["op"] == operation]

    async def _record(self, operation: str, secret_key: str, key: str | None = None):
        ident = f"{operation}:{key}" if key is not None else operation
        loop = asyncio.get_running_loop()
        self.calls.append(
            {"op": operation, "id": ident, "secret": secret_key, "at": loop.time()}
        )
        if ident in self.hang:
            await asyncio.Event().wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        pending = self.failures.get(ident)
        if pending:
            raise pending.pop(0)
        return {}

    async def add_virtual_currency_types(self, secret_key, currencies):
        return await self._record("add_virtual_currency_types", secret_key)

    async def set_catalog_items(
        self, secret_key, catalog, catalog_version, set_as_default
    ):
        return await self._record("set_catalog_items", secret_key)

    async def update_random_result_tables(self, secret_key, tables, catalog_version):
        return await self._record("update_random_result_tables", secret_key)

    async def set_store_items(
        self, secret_key, store_id, store, marketing_data, catalog_version
    ):
        return await self._record("set_store_items", secret_key, store_id)

    async def set_title_data(self, secret_key, key, value):
        return await self._record("set_title_data", secret_key, key)

    async def update_cloud_script(
        self, secret_key, file_contents, publish, filename="main.js"
    ):
        return await self._record("update_cloud_script", secret_key)


class RecordingReporter:
    """Progress reporter keeping every snapshot with its loop time."""

    def __init__(self) -> None:
        self.snapshots: list[tuple[float, ProgressSnapshot]] = []
        self.errors: list[str] = []
        self.completed: list[ProgressSnapshot] = []

    def on_progress(self, snapshot: ProgressSnapshot) -> None:
        self.snapshots.append((asyncio.get_running_loop().time(), snapshot))

    def on_error(self, message: str, snapshot: ProgressSnapshot) -> None:
        self.errors.append(message)

    def on_complete(self, snapshot: ProgressSnapshot) -> None:
        self.completed.append(snapshot)

    def stage_started_at(self, stage_key: str) -> float:
        """Loop time at which ``stage_key`` built its work items."""
        return next(
            t
            for t, s in self.snapshots
            if s.stage_key == stage_key and s.subtask_target > 0
        )

    def peak(self, stage_key: str) -> int:
        return max(
            (s.subtask_completed for _, s in self.snapshots if s.stage_key == stage_key),
            default=0,
        )


async def until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Yields to the loop until ``predicate()`` holds."""
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.001)
