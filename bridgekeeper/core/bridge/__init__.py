"""Bridge orchestration components."""

from typing import TYPE_CHECKING

from .errors import (
    BridgeError,
    ChainMismatchError,
    ConfirmationWatchError,
    DuplicateTransferError,
    ErrorCategory,
    HandlerError,
    MessageAlreadyProcessedError,
    MessageHashMismatchError,
    UnknownAssetError,
    UnknownChainError,
)
from .models import (
    AssetType,
    BridgeMessage,
    BridgeTransaction,
    PendingTransfer,
    ReleaseRequest,
    ReleaseResult,
    classify_asset,
)

if TYPE_CHECKING:  # pragma: no cover
    from .dispatcher import ReleaseDispatcher
    from .manager import BridgeManager
    from .registry import BridgeRegistry, ChainMetadata
    from .tracker import PendingTransferTracker

__all__ = [
    "AssetType",
    "BridgeError",
    "BridgeManager",
    "BridgeMessage",
    "BridgeRegistry",
    "BridgeTransaction",
    "ChainMetadata",
    "ChainMismatchError",
    "ConfirmationWatchError",
    "DuplicateTransferError",
    "ErrorCategory",
    "HandlerError",
    "MessageAlreadyProcessedError",
    "MessageHashMismatchError",
    "PendingTransfer",
    "PendingTransferTracker",
    "ReleaseDispatcher",
    "ReleaseRequest",
    "ReleaseResult",
    "UnknownAssetError",
    "UnknownChainError",
    "classify_asset",
]

_LAZY = {
    "BridgeManager": ".manager",
    "BridgeRegistry": ".registry",
    "ChainMetadata": ".registry",
    "PendingTransferTracker": ".tracker",
    "ReleaseDispatcher": ".dispatcher",
}


def __getattr__(name: str):  # pragma: no cover - simple thunk
    module_name = _LAZY.get(name)
    if module_name is not None:
        import importlib

        return getattr(importlib.import_module(module_name, __name__), name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
