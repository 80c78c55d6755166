"""
Data contracts and type definitions.
"""

__all__ = [
    "AdminClientConfig",
    "PipelineConfig",
    "SessionConfig",
    "ThrottleConfig",
    "CatalogItemDict",
    "CloudScriptFileDict",
    "DropTableDict",
    "DropTableNodeDict",
    "StoreDefinitionDict",
    "StoreItemDict",
    "VirtualCurrencyDict",
    "FanOutWorkItem",
    "PipelinePhase",
    "ProgressSnapshot",
    "StageDescriptor",
    "StageKind",
]

from .config import (
    AdminClientConfig,
    PipelineConfig,
    SessionConfig,
    ThrottleConfig,
)
from .seed import (
    CatalogItemDict,
    CloudScriptFileDict,
    DropTableDict,
    DropTableNodeDict,
    StoreDefinitionDict,
    StoreItemDict,
    VirtualCurrencyDict,
)
from .stage import (
    FanOutWorkItem,
    PipelinePhase,
    ProgressSnapshot,
    StageDescriptor,
    StageKind,
)
