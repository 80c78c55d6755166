"""
Stage descriptors and the seed content each stage uploads.

This module is the only place that knows how seed files map onto admin
operations: which stage calls which operation, how a stage's payload splits
into work items, and how the drop-table read shape is reshaped for writing.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Any

from titleseed.errors import SeedDataError
from titleseed.infra.http_defaults import CONSOLE_BASE_URL
from titleseed.infra.paths import SEED_DIR
from titleseed.schemas import (
    CatalogItemDict,
    DropTableDict,
    FanOutWorkItem,
    StageDescriptor,
    StageKind,
    StoreDefinitionDict,
    VirtualCurrencyDict,
)

from .throttle import Throttle

logger = logging.getLogger(__name__)

CATALOG_VERSION = "Main"

# Currencies and catalog must exist before stores reference catalog items.
STAGES: tuple[StageDescriptor, ...] = (
    StageDescriptor(
        "currency", "currencies", StageKind.SINGLE, "add_virtual_currency_types"
    ),
    StageDescriptor("catalog", "catalog items", StageKind.SINGLE, "set_catalog_items"),
    StageDescriptor(
        "droptable", "drop tables", StageKind.SINGLE, "update_random_result_tables"
    ),
    StageDescriptor("store", "stores", StageKind.FAN_OUT, "set_store_items"),
    StageDescriptor("titledata", "title data", StageKind.FAN_OUT, "set_title_data"),
    StageDescriptor(
        "cloudscript", "Cloud Script", StageKind.SINGLE, "update_cloud_script"
    ),
)

SEED_FILES = {
    "currency": "virtual-currency.json",
    "catalog": "catalogs.json",
    "droptable": "drop-tables.json",
    "store": "stores.json",
    "titledata": "title-data.json",
    "cloudscript": "cloud-script.json",
}

# (path, uses the new console UI)
_CONSOLE_PAGES = {
    "currency": ("economy/currency", True),
    "catalog": ("economy/catalogs/TWFpbg%3d%3d/items", False),
    "droptable": ("economy/catalogs/TWFpbg%3d%3d/drop-tables", False),
    "store": ("economy/catalogs/TWFpbg%3d%3d/stores", False),
    "titledata": ("content/title-data", True),
    "cloudscript": ("automation/cloud-script/revisions", True),
}


@dataclass
class SeedData:
    """Content uploaded by a provisioning run.

    Attributes:
        currencies: Virtual currency definitions.
        catalog: Catalog item definitions.
        drop_tables: Drop tables keyed by table id (the API's read shape).
        stores: Store definitions, one remote call each.
        title_data: Title-data values keyed by name, one remote call each.
        cloud_script: Server script source.
        cloud_script_filename: File name of the script within its revision.
    """

    currencies: list[VirtualCurrencyDict] = field(default_factory=list)
    catalog: list[CatalogItemDict] = field(default_factory=list)
    drop_tables: dict[str, DropTableDict] = field(default_factory=dict)
    stores: list[StoreDefinitionDict] = field(default_factory=list)
    title_data: dict[str, str] = field(default_factory=dict)
    cloud_script: str = ""
    cloud_script_filename: str = "main.js"


def flatten_drop_tables(
    tables: Mapping[str, Any] | Sequence[Any],
) -> list[DropTableDict]:
    """Reshape drop tables from the read shape to the write shape.

    The read shape maps table id to ``{"TableId", "Nodes", ...}``; the write
    call takes a list of ``{"TableId", "Nodes"}``. Extra keys of the read
    shape are dropped. An entry without ``TableId`` takes its mapping key.

    An already-flattened sequence is accepted and normalized the same way, so
    ``flatten_drop_tables(flatten_drop_tables(x)) == flatten_drop_tables(x)``.
    The input is never modified.

    Raises:
        SeedDataError: If an entry is not a mapping or lacks a node list.
    """
    if isinstance(tables, Mapping):
        entries = [(str(key), value) for key, value in tables.items()]
    else:
        entries = [(None, value) for value in tables]

    out: list[DropTableDict] = []
    for key, value in entries:
        if not isinstance(value, Mapping):
            raise SeedDataError(f"Drop table {key!r} is not an object")
        table_id = value.get("TableId") or key
        if not table_id:
            raise SeedDataError("Drop table entry has no TableId")
        nodes = value.get("Nodes")
        if not isinstance(nodes, list):
            raise SeedDataError(f"Drop table {table_id!r} has no Nodes list")
        out.append({"TableId": str(table_id), "Nodes": [dict(n) for n in nodes]})
    return out


def console_links(title_id: str) -> dict[str, str]:
    """Management-console URLs of the content each stage creates.

    Args:
        title_id: Title id.

    Returns:
        dict[str, str]: Stage key mapped to a console URL.
    """
    links: dict[str, str] = {}
    for key, (page, new_ui) in _CONSOLE_PAGES.items():
        if new_ui:
            prefix = f"{CONSOLE_BASE_URL}/r/t/{title_id}"
        else:
            prefix = f"{CONSOLE_BASE_URL}/{title_id}"
        links[key] = f"{prefix}/{page}"
    return links


def load_seed_data(seed_dir: str | Path | None = None) -> SeedData:
    """Load and validate the seed files.

    Args:
        seed_dir: Directory holding the six seed JSON files. Defaults to the
            seed content bundled with the package.

    Returns:
        SeedData: Validated seed content.

    Raises:
        SeedDataError: If a file is missing, is not valid JSON, or has an
            unexpected shape.
    """
    root: Traversable | Path = Path(seed_dir) if seed_dir is not None else SEED_DIR
    logger.debug("Loading seed data from %s", root)

    raw = {key: _read_json(root, name) for key, name in SEED_FILES.items()}

    currencies = _require_list(raw["currency"], "VirtualCurrencies", "currency")
    for cur in currencies:
        if not isinstance(cur, dict) or not cur.get("CurrencyCode"):
            raise SeedDataError(
                f"{SEED_FILES['currency']}: every currency needs a CurrencyCode"
            )

    catalog = _require_list(raw["catalog"], "Catalog", "catalog")
    for item in catalog:
        if not isinstance(item, dict) or not item.get("ItemId"):
            raise SeedDataError(f"{SEED_FILES['catalog']}: every item needs an ItemId")

    tables = _require_key(raw["droptable"], "Tables", "droptable")
    if not isinstance(tables, dict):
        raise SeedDataError(f"{SEED_FILES['droptable']}: 'Tables' must be an object")
    flatten_drop_tables(tables)

    stores = _require_list(raw["store"], "data", "store")
    seen: set[str] = set()
    for store in stores:
        if not isinstance(store, dict) or not store.get("StoreId"):
            raise SeedDataError(f"{SEED_FILES['store']}: every store needs a StoreId")
        if not isinstance(store.get("Store"), list):
            raise SeedDataError(
                f"{SEED_FILES['store']}: store {store['StoreId']!r} needs a Store list"
            )
        if store["StoreId"] in seen:
            raise SeedDataError(
                f"{SEED_FILES['store']}: duplicate StoreId {store['StoreId']!r}"
            )
        seen.add(store["StoreId"])

    data = _require_key(raw["titledata"], "Data", "titledata")
    if not isinstance(data, dict):
        raise SeedDataError(f"{SEED_FILES['titledata']}: 'Data' must be an object")
    # Title data values are stored as strings; structured values are JSON.
    title_data = {
        str(k): v if isinstance(v, str) else json.dumps(v, ensure_ascii=False)
        for k, v in data.items()
    }

    files = _require_list(raw["cloudscript"], "Files", "cloudscript")
    if not files or not isinstance(files[0], dict) or "FileContents" not in files[0]:
        raise SeedDataError(
            f"{SEED_FILES['cloudscript']}: expected at least one file with FileContents"
        )

    return SeedData(
        currencies=currencies,
        catalog=catalog,
        drop_tables=tables,
        stores=stores,
        title_data=title_data,
        cloud_script=str(files[0]["FileContents"]),
        cloud_script_filename=str(files[0].get("Filename") or "main.js"),
    )


class StageCatalog:
    """Ordered stages plus the payloads they dispatch.

    Args:
        seed: Content to upload.
        catalog_version: Catalog version every economy call writes to.
        publish: Whether the catalog becomes the default and the script is
            published.
        stages: Stage order; defaults to ``STAGES``.
    """

    def __init__(
        self,
        seed: SeedData,
        *,
        catalog_version: str = CATALOG_VERSION,
        publish: bool = True,
        stages: Sequence[StageDescriptor] = STAGES,
    ) -> None:
        if not stages:
            raise ValueError("A stage catalog needs at least one stage.")
        self.seed = seed
        self.catalog_version = catalog_version
        self.publish = publish
        self._stages = tuple(stages)

    @property
    def stages(self) -> tuple[StageDescriptor, ...]:
        return self._stages

    def __len__(self) -> int:
        return len(self._stages)

    def __getitem__(self, index: int) -> StageDescriptor:
        return self._stages[index]

    def cardinality(self, index: int) -> int:
        """Number of remote calls stage ``index`` makes."""
        return len(self._payloads(self._stages[index]))

    def work_items(self, index: int, throttle: Throttle) -> list[FanOutWorkItem]:
        """Builds the work items of stage ``index``.

        Single stages yield one item dispatched immediately. Fan-out stages
        yield one item per store or title-data key, each offset by the
        throttle's subtask interval.
        """
        stage = self._stages[index]
        payloads = self._payloads(stage)
        if stage.kind is StageKind.SINGLE:
            return [FanOutWorkItem(0, stage.operation, payloads[0], 0.0)]
        return [
            FanOutWorkItem(i, stage.operation, payload, throttle.dispatch_offset(i))
            for i, payload in enumerate(payloads)
        ]

    def _payloads(self, stage: StageDescriptor) -> list[dict[str, Any]]:
        seed = self.seed
        match stage.key:
            case "currency":
                return [{"currencies": seed.currencies}]
            case "catalog":
                return [
                    {
                        "catalog": seed.catalog,
                        "catalog_version": self.catalog_version,
                        "set_as_default": self.publish,
                    }
                ]
            case "droptable":
                return [
                    {
                        "tables": flatten_drop_tables(seed.drop_tables),
                        "catalog_version": self.catalog_version,
                    }
                ]
            case "store":
                return [
                    {
                        "store_id": store["StoreId"],
                        "store": store["Store"],
                        "marketing_data": store.get("MarketingData"),
                        "catalog_version": self.catalog_version,
                    }
                    for store in seed.stores
                ]
            case "titledata":
                return [
                    {"key": key, "value": value}
                    for key, value in seed.title_data.items()
                ]
            case "cloudscript":
                return [
                    {
                        "file_contents": seed.cloud_script,
                        "publish": self.publish,
                        "filename": seed.cloud_script_filename,
                    }
                ]
            case _:
                raise KeyError(f"Unknown stage key: {stage.key!r}")


def _read_json(root: Traversable | Path, name: str) -> Any:
    path = root.joinpath(name)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise SeedDataError(f"Missing seed file: {name}") from None
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise SeedDataError(f"Invalid JSON in seed file {name}: {e}") from e


def _require_key(data: Any, key: str, stage_key: str) -> Any:
    name = SEED_FILES[stage_key]
    if not isinstance(data, dict):
        raise SeedDataError(f"{name}: root must be an object")
    if key not in data:
        raise SeedDataError(f"{name}: missing required key {key!r}")
    return data[key]


def _require_list(data: Any, key: str, stage_key: str) -> list[Any]:
    value = _require_key(data, key, stage_key)
    if not isinstance(value, list):
        raise SeedDataError(f"{SEED_FILES[stage_key]}: {key!r} must be a list")
    return value
