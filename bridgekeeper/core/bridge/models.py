"""Typed models used by the bridge subsystem."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from ..chain_types import ChainId

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

ConfirmedCallback = Callable[[], Union[None, Awaitable[None]]]


class AssetType(str, Enum):
    """What a bridge message moves."""
    NATIVE = "native"   # Chain's native currency (ETH)
    TOKEN = "token"     # ERC-20 held in the token vault


@dataclass(frozen=True)
class BridgeMessage:
    """Cross-chain payload as emitted by the source bridge."""

    id: int = 0
    sender: str = ZERO_ADDRESS
    src_chain_id: ChainId = 0
    dest_chain_id: ChainId = 0
    owner: str = ZERO_ADDRESS
    to: str = ZERO_ADDRESS
    refund_address: str = ZERO_ADDRESS
    deposit_value: int = 0
    call_value: int = 0
    processing_fee: int = 0
    gas_limit: int = 0
    data: Optional[str] = None          # Hex calldata; empty for native transfers
    memo: str = ""

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "BridgeMessage":
        """Build from a camelCase or snake_case mapping (event logs, API payloads)."""

        def pick(snake: str, camel: str, default: Any) -> Any:
            if snake in payload:
                return payload[snake]
            return payload.get(camel, default)

        return cls(
            id=int(pick("id", "id", 0)),
            sender=pick("sender", "sender", ZERO_ADDRESS),
            src_chain_id=int(pick("src_chain_id", "srcChainId", 0)),
            dest_chain_id=int(pick("dest_chain_id", "destChainId", 0)),
            owner=pick("owner", "owner", ZERO_ADDRESS),
            to=pick("to", "to", ZERO_ADDRESS),
            refund_address=pick("refund_address", "refundAddress", ZERO_ADDRESS),
            deposit_value=int(pick("deposit_value", "depositValue", 0)),
            call_value=int(pick("call_value", "callValue", 0)),
            processing_fee=int(pick("processing_fee", "processingFee", 0)),
            gas_limit=int(pick("gas_limit", "gasLimit", 0)),
            data=pick("data", "data", None),
            memo=pick("memo", "memo", "") or "",
        )


def classify_asset(message: Optional[BridgeMessage]) -> AssetType:
    """Native transfers carry no calldata; anything else moves a token."""
    data = message.data if message is not None else None
    if not data or data.lower() == "0x":
        return AssetType.NATIVE
    return AssetType.TOKEN


@dataclass(frozen=True)
class BridgeTransaction:
    """A transfer whose source transaction has been confirmed."""

    from_chain_id: ChainId
    to_chain_id: ChainId
    message: BridgeMessage
    msg_hash: Optional[str] = None
    tx_hash: Optional[str] = None       # Source-chain send, if known

    @property
    def asset_type(self) -> AssetType:
        return classify_asset(self.message)


@dataclass
class PendingTransfer:
    """A submitted transfer waiting for its first confirmation."""

    id: str                                     # Source-chain tx hash
    chain_id: ChainId
    submitted_at: int = 0                       # Assigned by the tracker
    on_confirmed: Optional[ConfirmedCallback] = field(default=None, repr=False, compare=False)
    transaction: Optional[BridgeTransaction] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "chain_id": self.chain_id,
            "submitted_at": self.submitted_at,
        }
        if self.transaction is not None:
            data["to_chain_id"] = self.transaction.to_chain_id
            data["asset_type"] = self.transaction.asset_type.value
        return data


@dataclass(frozen=True)
class ReleaseRequest:
    """Everything a release handler needs, fully resolved."""

    signer: str
    message: BridgeMessage
    msg_hash: str
    dest_bridge_address: str
    src_bridge_address: str
    dest_client: Any
    src_vault_address: str


@dataclass
class ReleaseResult:
    """Handle to a submitted release transaction."""

    asset_type: AssetType
    tx_hash: str
    chain_id: ChainId
    msg_hash: str
