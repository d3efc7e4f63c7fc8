"""
Chain identification types and utilities.

Bridge deployments are EVM chains identified by their integer chain ID.
Chain IDs arrive in several shapes (ints from config, hex quantities from
JSON-RPC, decimal strings from HTTP paths); everything is normalised to
``int`` before it reaches the registry or the dispatcher.
"""

from __future__ import annotations

from typing import Union

ChainId = int

# Default chain when none specified
DEFAULT_CHAIN_ID: int = 1  # Ethereum mainnet


def normalize_chain_id(chain: Union[str, int, None]) -> ChainId:
    """
    Convert a chain identifier to its canonical integer form.

    Args:
        chain: Integer chain ID, hex quantity (``"0xa"``), decimal string
               (``"10"``) or None.

    Returns:
        The integer chain ID.

    Raises:
        ValueError: If the identifier cannot be parsed.

    Examples:
        >>> normalize_chain_id("0xa")
        10
        >>> normalize_chain_id("137")
        137
        >>> normalize_chain_id(None)
        1
    """
    if chain is None:
        return DEFAULT_CHAIN_ID

    if isinstance(chain, bool):
        raise ValueError(f"Unknown chain identifier: {chain!r}")

    if isinstance(chain, int):
        if chain <= 0:
            raise ValueError(f"Chain ID must be positive: {chain!r}")
        return chain

    value = chain.strip().lower()
    try:
        chain_id = int(value, 16) if value.startswith("0x") else int(value)
    except ValueError:
        raise ValueError(f"Unknown chain identifier: {chain!r}") from None

    if chain_id <= 0:
        raise ValueError(f"Chain ID must be positive: {chain!r}")
    return chain_id


__all__ = [
    "ChainId",
    "DEFAULT_CHAIN_ID",
    "normalize_chain_id",
]
