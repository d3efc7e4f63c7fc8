"""
Minimal ABI word encoders for bridge calldata.
"""

from __future__ import annotations

from eth_utils import keccak

WORD_BYTES = 32


def _strip_0x(value: str) -> str:
    return value[2:] if value.startswith("0x") else value


def encode_uint(value: int) -> str:
    if value < 0:
        raise ValueError("Value must be non-negative")
    if value >= 2 ** 256:
        raise ValueError("Value does not fit in uint256")
    return hex(value)[2:].rjust(64, "0")


def encode_address(address: str) -> str:
    addr = _strip_0x(address).lower()
    if len(addr) != 40:
        raise ValueError(f"Invalid address length: {address}")
    return addr.rjust(64, "0")


def encode_bytes32(value: str) -> str:
    word = _strip_0x(value).lower()
    if len(word) != 64:
        raise ValueError(f"Invalid bytes32 length: {value}")
    return word


def encode_bytes(data: str) -> str:
    hex_data = _strip_0x(data or "")
    if len(hex_data) % 2 != 0:
        raise ValueError("Byte data must have an even-length hex string")
    data_len = len(hex_data) // 2
    padded_len = ((data_len + 31) // 32) * 32
    padding = "0" * ((padded_len - data_len) * 2)
    return encode_uint(data_len) + hex_data.lower() + padding


def encode_string(text: str) -> str:
    return encode_bytes(text.encode("utf-8").hex())


def selector(signature: str) -> str:
    return f"0x{keccak(text=signature)[:4].hex()}"


def decode_uint(word: str) -> int:
    value = _strip_0x(word or "")
    if not value:
        return 0
    return int(value[:64], 16)
