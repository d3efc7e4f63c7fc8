"""Chain client adapters."""

from .client import (
    ChainClient,
    ChainClientError,
    JsonRpcChainClient,
    TransactionTimeoutError,
)

__all__ = [
    "ChainClient",
    "ChainClientError",
    "JsonRpcChainClient",
    "TransactionTimeoutError",
]
