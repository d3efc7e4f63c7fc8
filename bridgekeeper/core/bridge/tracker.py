"""
Pending-transfer tracking.

Holds every submitted transfer that has not been confirmed yet and runs
one background watch per transfer. When a watch sees the confirmation, the
transfer is removed from the pending set and its callback fires.
"""

from __future__ import annotations

import asyncio
import inspect
import itertools
import logging
import threading
from functools import partial
from typing import Any, Dict, Optional, Tuple

import structlog

from ...config import settings
from ..chain_types import ChainId
from .errors import ConfirmationWatchError, DuplicateTransferError
from .message import normalize_hash
from .models import ConfirmedCallback, PendingTransfer
from .registry import BridgeRegistry


class PendingTransferTracker:
    """
    Tracks submitted transfers until their first confirmation.

    Entries are keyed by transaction hash, so watches may resolve in any
    order without disturbing each other. Mutations are serialized by a
    lock; readers get an immutable snapshot that is swapped in after every
    add or remove, so no reader sees a stale list once a removal commits.

    A failed watch leaves the transfer pending. Call ``retry`` to watch it
    again or ``discard`` to drop it.
    """

    def __init__(
        self,
        registry: BridgeRegistry,
        *,
        confirmations: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.registry = registry
        self.confirmations = confirmations if confirmations is not None else settings.required_confirmations
        if self.confirmations < 1:
            raise ValueError("Tracker needs at least one confirmation")
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else settings.confirmation_timeout_seconds
        )
        self.logger = logger or logging.getLogger(__name__)

        self._lock = threading.Lock()
        self._pending: Dict[str, PendingTransfer] = {}
        self._snapshot: Tuple[PendingTransfer, ...] = ()
        self._tasks: Dict[str, asyncio.Task] = {}
        self._sequence = itertools.count()

    # ---------------------------
    # Reads
    # ---------------------------
    @property
    def pending(self) -> Tuple[PendingTransfer, ...]:
        """Open transfers in submission order."""
        return self._snapshot

    def snapshot(self) -> Tuple[PendingTransfer, ...]:
        return self._snapshot

    def get(self, tx_hash: str) -> Optional[PendingTransfer]:
        key = _key(tx_hash)
        for transfer in self._snapshot:
            if _key(transfer.id) == key:
                return transfer
        return None

    def is_watching(self, tx_hash: str) -> bool:
        task = self._tasks.get(_key(tx_hash))
        return task is not None and not task.done()

    def __len__(self) -> int:
        return len(self._snapshot)

    def __contains__(self, tx_hash: object) -> bool:
        return isinstance(tx_hash, str) and self.get(tx_hash) is not None

    def pending_on(self, chain_id: ChainId) -> Tuple[PendingTransfer, ...]:
        return tuple(transfer for transfer in self._snapshot if transfer.chain_id == chain_id)

    # ---------------------------
    # Registration
    # ---------------------------
    def add(
        self,
        transfer: PendingTransfer,
        on_confirmed: Optional[ConfirmedCallback] = None,
    ) -> asyncio.Task:
        """
        Register a transfer and start watching for its confirmation.

        Must be called from a running event loop. Returns the watch task;
        await it to observe the receipt or a ConfirmationWatchError.

        Raises:
            DuplicateTransferError: The hash is already pending.
            UnknownChainError: No client is registered for the transfer's chain.
        """
        client = self.registry.chain_metadata(transfer.chain_id).client
        loop = asyncio.get_running_loop()

        key = _key(transfer.id)
        with self._lock:
            if key in self._pending:
                raise DuplicateTransferError(transfer.id)
            if on_confirmed is not None:
                transfer.on_confirmed = on_confirmed
            transfer.submitted_at = next(self._sequence)
            self._pending[key] = transfer
            self._publish()

        self.logger.info("Tracking transfer %s on chain %s", transfer.id, transfer.chain_id)
        return self._start_watch(loop, transfer, client)

    def retry(self, tx_hash: str) -> asyncio.Task:
        """Start a fresh watch for a transfer whose previous watch failed."""
        transfer = self._pending.get(_key(tx_hash))
        if transfer is None:
            raise KeyError(f"Transfer {tx_hash} is not pending")
        if self.is_watching(tx_hash):
            raise DuplicateTransferError(tx_hash)

        client = self.registry.chain_metadata(transfer.chain_id).client
        self.logger.info("Retrying confirmation watch for %s", tx_hash)
        return self._start_watch(asyncio.get_running_loop(), transfer, client)

    def discard(self, tx_hash: str) -> Optional[PendingTransfer]:
        """Drop a transfer without firing its callback, cancelling any watch."""
        with self._lock:
            transfer = self._pending.pop(_key(tx_hash), None)
            if transfer is not None:
                self._publish()

        task = self._tasks.pop(_key(tx_hash), None)
        if task is not None and not task.done():
            task.cancel()
        return transfer

    # ---------------------------
    # Watching
    # ---------------------------
    def _start_watch(self, loop: asyncio.AbstractEventLoop, transfer: PendingTransfer, client: Any) -> asyncio.Task:
        task = loop.create_task(self._watch(transfer, client), name=f"confirm-{transfer.id}")
        key = _key(transfer.id)
        self._tasks[key] = task
        task.add_done_callback(partial(self._on_watch_done, key))
        return task

    async def _watch(self, transfer: PendingTransfer, client: Any) -> Optional[Dict[str, Any]]:
        with structlog.contextvars.bound_contextvars(tx_hash=transfer.id, chain_id=transfer.chain_id):
            try:
                receipt = await client.wait_for_transaction(
                    transfer.id,
                    self.confirmations,
                    self.timeout_seconds,
                )
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                raise ConfirmationWatchError(transfer.id, transfer.chain_id, exc) from exc

            if receipt and receipt.get("status") == "0x0":
                self.logger.warning("Transfer %s was mined but reverted", transfer.id)

            if not self._remove(transfer):
                return receipt

            self.logger.info("Transfer %s confirmed", transfer.id)
            if transfer.on_confirmed is not None:
                result = transfer.on_confirmed()
                if inspect.isawaitable(result):
                    await result
            return receipt

    def _remove(self, transfer: PendingTransfer) -> bool:
        with self._lock:
            key = _key(transfer.id)
            if self._pending.get(key) is not transfer:
                return False
            del self._pending[key]
            self._publish()
            return True

    def _publish(self) -> None:
        # Caller holds the lock
        self._snapshot = tuple(self._pending.values())

    def _on_watch_done(self, tx_hash: str, task: asyncio.Task) -> None:
        if self._tasks.get(tx_hash) is task:
            del self._tasks[tx_hash]
        if task.cancelled():
            return
        exc = task.exception()
        if isinstance(exc, ConfirmationWatchError):
            self.logger.warning("%s; transfer stays pending", exc)
        elif exc is not None:
            self.logger.error("Confirmation callback for %s failed: %s", tx_hash, exc, exc_info=exc)

    # ---------------------------
    # Lifecycle
    # ---------------------------
    async def wait_all(self) -> list:
        """Wait for every in-flight watch; exceptions are returned, not raised."""
        tasks = list(self._tasks.values())
        if not tasks:
            return []
        return await asyncio.gather(*tasks, return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel in-flight watches. Their transfers stay pending."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()


def _key(tx_hash: str) -> str:
    # Hashes are hex; letter case does not identify a different transaction
    return normalize_hash(tx_hash)
