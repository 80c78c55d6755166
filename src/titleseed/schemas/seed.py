from typing import Any, NotRequired, TypedDict


class VirtualCurrencyDict(TypedDict):
    """A virtual currency type definition.

    Attributes:
        CurrencyCode: Two-letter currency code.
        DisplayName: Human-readable name.
        InitialDeposit: Amount granted to new players.
    """

    CurrencyCode: str
    DisplayName: NotRequired[str]
    InitialDeposit: NotRequired[int]
    RechargeRate: NotRequired[int]
    RechargeMax: NotRequired[int]


class CatalogItemDict(TypedDict):
    ItemId: str
    ItemClass: NotRequired[str]
    DisplayName: NotRequired[str]
    Description: NotRequired[str]
    VirtualCurrencyPrices: NotRequired[dict[str, int]]
    CustomData: NotRequired[str]
    Consumable: NotRequired[dict[str, Any]]
    Bundle: NotRequired[dict[str, Any]]
    Tags: NotRequired[list[str]]


class DropTableNodeDict(TypedDict):
    ResultItemType: str
    ResultItem: str
    Weight: int


class DropTableDict(TypedDict):
    """A random result table in the API's write shape."""

    TableId: str
    Nodes: list[DropTableNodeDict]


class StoreItemDict(TypedDict):
    ItemId: str
    VirtualCurrencyPrices: NotRequired[dict[str, int]]


class StoreDefinitionDict(TypedDict):
    """One store as listed in the seed file.

    Attributes:
        StoreId: Store identifier.
        Store: Items sold by the store.
        MarketingData: Display metadata for the store.
    """

    StoreId: str
    Store: list[StoreItemDict]
    MarketingData: NotRequired[dict[str, Any]]


class CloudScriptFileDict(TypedDict):
    Filename: str
    FileContents: str
