"""Canonical encoding and hashing of bridge messages.

The destination bridge identifies a message by ``keccak256(abi.encode(message))``
and refuses to process the same hash twice. Recomputing the hash here lets
the dispatcher check a supplied ``msg_hash`` before anything is sent.
"""

from __future__ import annotations

from typing import Optional

from eth_utils import keccak

from .abi import WORD_BYTES, encode_address, encode_bytes, encode_string, encode_uint
from .errors import MessageHashMismatchError
from .models import BridgeMessage, BridgeTransaction

# id, sender, srcChainId, destChainId, owner, to, refundAddress,
# depositValue, callValue, processingFee, gasLimit, data, memo
_HEAD_WORDS = 13


def encode_message(message: BridgeMessage) -> str:
    """ABI-encode a message as a single dynamic tuple argument."""
    head = (
        encode_uint(message.id)
        + encode_address(message.sender)
        + encode_uint(message.src_chain_id)
        + encode_uint(message.dest_chain_id)
        + encode_address(message.owner)
        + encode_address(message.to)
        + encode_address(message.refund_address)
        + encode_uint(message.deposit_value)
        + encode_uint(message.call_value)
        + encode_uint(message.processing_fee)
        + encode_uint(message.gas_limit)
    )
    data_tail = encode_bytes(message.data or "")
    memo_tail = encode_string(message.memo or "")

    data_offset = _HEAD_WORDS * WORD_BYTES
    memo_offset = data_offset + len(data_tail) // 2
    head += encode_uint(data_offset) + encode_uint(memo_offset)

    # Outer offset: the tuple is dynamic, so abi.encode prefixes a pointer
    return "0x" + encode_uint(WORD_BYTES) + head + data_tail + memo_tail


def compute_msg_hash(message: BridgeMessage) -> str:
    return "0x" + keccak(hexstr=encode_message(message)).hex()


def normalize_hash(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip().lower()
    return value if value.startswith("0x") else f"0x{value}"


def resolve_msg_hash(transfer: BridgeTransaction) -> str:
    """Return the transfer's msgHash, deriving it when absent."""
    expected = compute_msg_hash(transfer.message)
    supplied = normalize_hash(transfer.msg_hash)
    if supplied is not None and supplied != expected:
        raise MessageHashMismatchError(expected=expected, actual=supplied)
    return expected
