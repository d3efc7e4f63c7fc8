"""
Error Classification

Error types raised by the bridge core. Every error carries a category and
a ``recoverable`` flag: configuration and validation failures need a human,
confirmation-watch failures can be retried by re-issuing the watch.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(str, Enum):
    """Categories of bridge errors for recovery decisions."""

    CHAIN_MISMATCH = "chain_mismatch"      # Wrong chain for the requested action
    CONFIGURATION = "configuration"        # Registry has no entry
    VALIDATION = "validation"              # Malformed input
    NETWORK = "network"                    # Chain client failure
    HANDLER = "handler"                    # Release handler failure


class BridgeError(Exception):
    """Base class for bridge errors."""

    category: ErrorCategory = ErrorCategory.VALIDATION
    recoverable: bool = False

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details


class ChainMismatchError(BridgeError):
    """Caller is not on the destination chain, or source equals destination."""

    category = ErrorCategory.CHAIN_MISMATCH

    def __init__(self, message: str, *, from_chain_id: Any, to_chain_id: Any, current_chain_id: Any):
        super().__init__(
            message,
            from_chain_id=from_chain_id,
            to_chain_id=to_chain_id,
            current_chain_id=current_chain_id,
        )
        self.from_chain_id = from_chain_id
        self.to_chain_id = to_chain_id
        self.current_chain_id = current_chain_id


class UnknownChainError(BridgeError):
    """The registry has no metadata for a referenced chain."""

    category = ErrorCategory.CONFIGURATION

    def __init__(self, chain_id: Any):
        super().__init__(f"No bridge deployment registered for chain {chain_id}", chain_id=chain_id)
        self.chain_id = chain_id


class UnknownAssetError(BridgeError):
    """No release handler is registered for an asset type."""

    category = ErrorCategory.CONFIGURATION

    def __init__(self, asset_type: Any):
        super().__init__(f"No release handler registered for {asset_type}", asset_type=asset_type)
        self.asset_type = asset_type


class MessageHashMismatchError(BridgeError):
    """The supplied msgHash is not the hash of the supplied message."""

    def __init__(self, expected: str, actual: str):
        super().__init__(
            f"Message hash mismatch: expected {expected}, got {actual}",
            expected=expected,
            actual=actual,
        )
        self.expected = expected
        self.actual = actual


class DuplicateTransferError(BridgeError):
    """A confirmation watch is already running for this transaction."""

    def __init__(self, tx_hash: str):
        super().__init__(f"Transfer {tx_hash} is already pending", tx_hash=tx_hash)
        self.tx_hash = tx_hash


class ConfirmationWatchError(BridgeError):
    """The chain client failed while waiting for a confirmation.

    The transfer stays pending; re-issue the watch to retry.
    """

    category = ErrorCategory.NETWORK
    recoverable = True

    def __init__(self, tx_hash: str, chain_id: Any, cause: Optional[BaseException] = None):
        reason = f": {cause}" if cause is not None else ""
        super().__init__(
            f"Confirmation watch for {tx_hash} on chain {chain_id} failed{reason}",
            tx_hash=tx_hash,
            chain_id=chain_id,
        )
        self.tx_hash = tx_hash
        self.chain_id = chain_id


class HandlerError(BridgeError):
    """A release handler failed. Passed through the dispatcher untouched."""

    category = ErrorCategory.HANDLER


class MessageAlreadyProcessedError(HandlerError):
    """The destination bridge has already processed this message."""

    def __init__(self, msg_hash: str, chain_id: Any):
        super().__init__(
            f"Message {msg_hash} already processed on chain {chain_id}",
            msg_hash=msg_hash,
            chain_id=chain_id,
        )
        self.msg_hash = msg_hash
        self.chain_id = chain_id
