"""Wires the tracker and the dispatcher into the submit → confirm → release flow."""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import replace
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from ..chain_types import ChainId
from .dispatcher import ReleaseDispatcher, check_chains
from .models import BridgeTransaction, PendingTransfer, ReleaseResult
from .registry import BridgeRegistry
from .tracker import PendingTransferTracker

ReleasedCallback = Callable[[ReleaseResult], Union[None, Awaitable[None]]]


class BridgeManager:
    """
    Owns one tracker and one dispatcher for a process.

    Usage:
        manager = BridgeManager(BridgeRegistry.from_settings(settings))
        pending = await manager.submit_transfer(transfer, signer, tx, release_as=relayer)
        ...
        await manager.aclose()
    """

    def __init__(
        self,
        registry: BridgeRegistry,
        *,
        tracker: Optional[PendingTransferTracker] = None,
        dispatcher: Optional[ReleaseDispatcher] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.registry = registry
        self.tracker = tracker or PendingTransferTracker(registry)
        self.dispatcher = dispatcher or ReleaseDispatcher(registry)
        self.logger = logger or logging.getLogger(__name__)

    async def submit_transfer(
        self,
        transfer: BridgeTransaction,
        signer: str,
        tx: Dict[str, Any],
        *,
        release_as: Optional[str] = None,
        on_released: Optional[ReleasedCallback] = None,
    ) -> PendingTransfer:
        """
        Send the source-chain transaction and start tracking it.

        Args:
            transfer: Transfer being sent (its message as emitted on the source chain)
            signer: Address sending the source transaction
            tx: Transaction fields (``to``, ``data``, ``value``...)
            release_as: If set, release on the destination chain as this
                address once the source transaction confirms
            on_released: Called with the ReleaseResult after an automatic release

        Returns:
            The tracked PendingTransfer

        Raises:
            ChainMismatchError: Source and destination are the same chain.
            UnknownChainError: Either chain is missing from the registry.
        """
        check_chains(transfer.from_chain_id, transfer.to_chain_id, transfer.to_chain_id)
        # Both ends must be served before anything is sent
        self.registry.chain_metadata(transfer.to_chain_id)
        client = self.registry.chain_metadata(transfer.from_chain_id).client

        tx_hash = await client.send_transaction({**tx, "from": signer})
        pending = PendingTransfer(
            id=tx_hash,
            chain_id=transfer.from_chain_id,
            transaction=replace(transfer, tx_hash=tx_hash),
        )
        self.track(pending, release_as=release_as, on_released=on_released)
        return pending

    def track(
        self,
        pending: PendingTransfer,
        *,
        release_as: Optional[str] = None,
        on_released: Optional[ReleasedCallback] = None,
    ) -> asyncio.Task:
        """Track an already-submitted transfer, optionally releasing it on confirmation."""
        if release_as is None:
            return self.tracker.add(pending)
        if pending.transaction is None:
            raise ValueError(f"Transfer {pending.id} has no bridge transaction to release")

        transaction = pending.transaction

        async def release_on_confirmation() -> None:
            result = await self.release(transaction, transaction.to_chain_id, release_as)
            if on_released is not None:
                outcome = on_released(result)
                if inspect.isawaitable(outcome):
                    await outcome

        return self.tracker.add(pending, release_on_confirmation)

    async def release(
        self,
        transfer: BridgeTransaction,
        current_chain_id: ChainId,
        signer: str,
    ) -> ReleaseResult:
        return await self.dispatcher.release_transfer(transfer, current_chain_id, signer)

    async def aclose(self) -> None:
        await self.tracker.aclose()
        await self.registry.aclose()
