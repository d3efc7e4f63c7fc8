"""
Release dispatch for confirmed cross-chain transfers.

Given a confirmed ``BridgeTransaction``, the dispatcher:
- Checks the caller is acting on the destination chain
- Classifies the message as a native or token transfer
- Resolves both chains' bridge deployments from the registry
- Hands the resolved request to the release handler for that asset type

Every check happens before the handler is called, so a rejected dispatch
never touches a chain.

Replay: the dispatcher does not remember what it has released. Calling it
twice for the same transfer submits two release transactions; the
destination bridge accepts a given msgHash only once and rejects the
second. Handlers check the message status first and fail fast with
``MessageAlreadyProcessedError`` when the message is already done.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..chain_types import ChainId
from .errors import ChainMismatchError
from .message import resolve_msg_hash
from .models import BridgeTransaction, ReleaseRequest, ReleaseResult, classify_asset
from .registry import BridgeRegistry


logger = logging.getLogger(__name__)


def check_chains(
    from_chain_id: ChainId,
    to_chain_id: ChainId,
    current_chain_id: ChainId,
) -> None:
    """Raise ChainMismatchError unless a release on ``current_chain_id`` is valid."""
    if from_chain_id == to_chain_id:
        raise ChainMismatchError(
            f"Transfer source and destination are both chain {from_chain_id}",
            from_chain_id=from_chain_id,
            to_chain_id=to_chain_id,
            current_chain_id=current_chain_id,
        )
    if current_chain_id != to_chain_id:
        raise ChainMismatchError(
            f"Release must run on destination chain {to_chain_id}, not chain {current_chain_id}",
            from_chain_id=from_chain_id,
            to_chain_id=to_chain_id,
            current_chain_id=current_chain_id,
        )


class ReleaseDispatcher:
    """Stateless resolution-and-delegation step; safe to call concurrently."""

    def __init__(self, registry: BridgeRegistry, *, logger: Optional[logging.Logger] = None):
        self.registry = registry
        self.logger = logger or logging.getLogger(__name__)

    def build_request(
        self,
        transfer: BridgeTransaction,
        current_chain_id: ChainId,
        signer: str,
    ) -> ReleaseRequest:
        """Validate and resolve a transfer without calling any handler."""
        check_chains(transfer.from_chain_id, transfer.to_chain_id, current_chain_id)

        dest = self.registry.chain_metadata(transfer.to_chain_id)
        src = self.registry.chain_metadata(transfer.from_chain_id)
        msg_hash = resolve_msg_hash(transfer)

        return ReleaseRequest(
            signer=signer,
            message=transfer.message,
            msg_hash=msg_hash,
            dest_bridge_address=dest.bridge_address,
            src_bridge_address=src.bridge_address,
            dest_client=dest.client,
            src_vault_address=src.vault_address,
        )

    async def release_transfer(
        self,
        transfer: BridgeTransaction,
        current_chain_id: ChainId,
        signer: str,
    ) -> ReleaseResult:
        """
        Release a confirmed transfer on its destination chain.

        Args:
            transfer: The confirmed transfer
            current_chain_id: Chain the signer is currently acting on
            signer: Address submitting the release

        Returns:
            Whatever the release handler returns

        Raises:
            ChainMismatchError: Wrong chain, or source equals destination
            UnknownChainError: A chain has no registered deployment
            MessageHashMismatchError: Supplied msg_hash does not match the message
            HandlerError: Propagated unchanged from the handler
        """
        request = self.build_request(transfer, current_chain_id, signer)
        asset_type = classify_asset(transfer.message)
        handler = self.registry.handler_for(asset_type)

        self.logger.info(
            "Dispatching %s release %s: chain %s -> %s",
            asset_type.value,
            request.msg_hash,
            transfer.from_chain_id,
            transfer.to_chain_id,
        )
        return await handler.release(request)
