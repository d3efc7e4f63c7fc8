"""
Release handlers, one per asset type.

A handler receives a fully resolved ``ReleaseRequest`` and submits the
destination-chain transaction that completes the transfer. Handlers own
their failure modes: anything that goes wrong here surfaces as a
``HandlerError`` and is passed through the dispatcher untouched.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Dict, Protocol

from ..chain.client import ChainClientError
from .abi import decode_uint, encode_address, encode_bytes, encode_bytes32, encode_uint, selector
from .errors import HandlerError, MessageAlreadyProcessedError
from .message import encode_message
from .models import AssetType, ReleaseRequest, ReleaseResult


logger = logging.getLogger(__name__)


class MessageStatus(IntEnum):
    """Destination bridge bookkeeping for a msgHash."""
    NEW = 0
    RETRIABLE = 1
    DONE = 2
    FAILED = 3


class ReleaseHandler(Protocol):
    asset_type: AssetType

    async def release(self, request: ReleaseRequest) -> ReleaseResult:
        ...


class EvmReleaseHandler(ABC):
    """
    Shared flow: check status, encode the release call, submit it.

    The destination bridge is assumed to expose ``getMessageStatus(bytes32)``
    plus one release entry point per asset type, named by ``signature`` on
    the subclasses. Deployments with a different bridge ABI need their own
    handler subclass.
    """

    asset_type: AssetType
    signature: str

    STATUS_SIGNATURE = "getMessageStatus(bytes32)"

    async def release(self, request: ReleaseRequest) -> ReleaseResult:
        client = request.dest_client
        chain_id = getattr(client, "chain_id", request.message.dest_chain_id)

        status = await self.message_status(request)
        if status == MessageStatus.DONE:
            raise MessageAlreadyProcessedError(request.msg_hash, chain_id)

        tx = {
            "from": request.signer,
            "to": request.dest_bridge_address,
            "data": self.build_calldata(request),
        }
        try:
            tx_hash = await client.send_transaction(tx)
        except ChainClientError as exc:
            raise HandlerError(
                f"{self.asset_type.value} release of {request.msg_hash} failed: {exc}",
                msg_hash=request.msg_hash,
                chain_id=chain_id,
            ) from exc

        logger.info(
            "Submitted %s release for %s on chain %s: %s",
            self.asset_type.value, request.msg_hash, chain_id, tx_hash,
        )
        return ReleaseResult(
            asset_type=self.asset_type,
            tx_hash=tx_hash,
            chain_id=chain_id,
            msg_hash=request.msg_hash,
        )

    async def message_status(self, request: ReleaseRequest) -> MessageStatus:
        data = selector(self.STATUS_SIGNATURE) + encode_bytes32(request.msg_hash)
        try:
            raw = await request.dest_client.call(request.dest_bridge_address, data)
        except ChainClientError as exc:
            raise HandlerError(
                f"Could not read status of {request.msg_hash}: {exc}",
                msg_hash=request.msg_hash,
            ) from exc
        try:
            return MessageStatus(decode_uint(raw))
        except ValueError as exc:
            raise HandlerError(f"Unexpected message status {raw!r}", msg_hash=request.msg_hash) from exc

    @abstractmethod
    def build_calldata(self, request: ReleaseRequest) -> str:
        """ABI-encoded call to the destination bridge's release entry point."""


class NativeReleaseHandler(EvmReleaseHandler):
    """Releases native currency held by the bridge via the assumed ``releaseEther`` entry point."""

    asset_type = AssetType.NATIVE
    signature = "releaseEther(bytes,bytes32)"

    def build_calldata(self, request: ReleaseRequest) -> str:
        head = encode_uint(64) + encode_bytes32(request.msg_hash)
        return selector(self.signature) + head + encode_bytes(encode_message(request.message))


class TokenReleaseHandler(EvmReleaseHandler):
    """
    Releases ERC-20 tokens via the assumed ``releaseERC20`` entry point.

    The source vault and source bridge ride along so the destination side can
    identify the canonical token and the bridge that locked it.
    """

    asset_type = AssetType.TOKEN
    signature = "releaseERC20(bytes,bytes32,address,address)"

    def build_calldata(self, request: ReleaseRequest) -> str:
        head = (
            encode_uint(128)  # offset to message bytes
            + encode_bytes32(request.msg_hash)
            + encode_address(request.src_vault_address)
            + encode_address(request.src_bridge_address)
        )
        return selector(self.signature) + head + encode_bytes(encode_message(request.message))


def default_handlers() -> Dict[AssetType, ReleaseHandler]:
    return {
        AssetType.NATIVE: NativeReleaseHandler(),
        AssetType.TOKEN: TokenReleaseHandler(),
    }
