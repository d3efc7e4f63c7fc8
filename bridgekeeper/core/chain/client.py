"""
Chain client used by the tracker and the release handlers.

The bridge core only needs a few capabilities from a chain: submit a
transaction and get its hash, wait until a hash has N confirmations, and
perform a read-only call. ``ChainClient`` names that surface;
``JsonRpcChainClient`` implements it over plain EVM JSON-RPC.
"""

import asyncio
import itertools
import logging
import time
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

import httpx

from ...config import settings
from ..chain_types import ChainId


logger = logging.getLogger(__name__)


class ChainClientError(Exception):
    """JSON-RPC transport or node error."""

    def __init__(self, message: str, chain_id: Optional[ChainId] = None, code: Optional[int] = None):
        super().__init__(message)
        self.chain_id = chain_id
        self.code = code


class TransactionTimeoutError(ChainClientError):
    """Transaction did not reach the requested confirmations in time."""
    pass


@runtime_checkable
class ChainClient(Protocol):
    chain_id: ChainId

    async def send_transaction(self, tx: Dict[str, Any]) -> str:
        ...

    async def wait_for_transaction(
        self,
        tx_hash: str,
        confirmations: int = 1,
        timeout: Optional[float] = None,
    ) -> Optional[Dict[str, Any]]:
        ...

    async def call(self, to: str, data: str) -> str:
        ...

    async def aclose(self) -> None:
        ...


class JsonRpcChainClient:
    """
    EVM JSON-RPC client for a single chain.

    Responsibilities:
    - Submit transactions from node-managed or wallet-provider accounts
    - Poll receipts until the requested confirmation depth
    - Read-only contract calls
    """

    def __init__(
        self,
        chain_id: ChainId,
        rpc_url: str,
        *,
        poll_interval_seconds: Optional[float] = None,
        timeout_seconds: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.chain_id = chain_id
        self.rpc_url = rpc_url
        self._poll_interval = poll_interval_seconds or settings.confirmation_poll_interval_seconds
        self._client = http_client or httpx.AsyncClient(
            timeout=timeout_seconds or settings.rpc_timeout_seconds
        )
        self._ids = itertools.count(1)

    async def _rpc_call(self, method: str, params: List[Any]) -> Any:
        """Make an RPC call to the chain."""
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": next(self._ids),
        }

        try:
            response = await self._client.post(self.rpc_url, json=payload)
            response.raise_for_status()
            result = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ChainClientError(f"{method} failed on chain {self.chain_id}: {exc}", self.chain_id) from exc

        if "error" in result:
            error = result["error"] or {}
            raise ChainClientError(
                f"RPC error from chain {self.chain_id}: {error.get('message', error)}",
                self.chain_id,
                error.get("code"),
            )

        return result.get("result")

    async def get_chain_id(self) -> int:
        return int(await self._rpc_call("eth_chainId", []), 16)

    async def get_block_number(self) -> int:
        return int(await self._rpc_call("eth_blockNumber", []), 16)

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return await self._rpc_call("eth_getTransactionReceipt", [tx_hash])

    async def send_transaction(self, tx: Dict[str, Any]) -> str:
        """Submit a transaction signed by the node or wallet provider."""
        tx_hash = await self._rpc_call("eth_sendTransaction", [tx])
        logger.info("Transaction submitted on chain %s: %s", self.chain_id, tx_hash)
        return tx_hash

    async def call(self, to: str, data: str) -> str:
        return await self._rpc_call("eth_call", [{"to": to, "data": data}, "latest"])

    async def wait_for_transaction(
        self,
        tx_hash: str,
        confirmations: int = 1,
        timeout: Optional[float] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Wait until ``tx_hash`` has ``confirmations`` blocks mined on top of it.

        With ``confirmations == 0`` this does not block: the receipt is
        returned if the transaction is mined, otherwise None.

        Raises:
            TransactionTimeoutError: ``timeout`` elapsed first.
            ChainClientError: The node call failed.
        """
        if confirmations <= 0:
            return await self.get_transaction_receipt(tx_hash)

        deadline = time.monotonic() + timeout if timeout is not None else None

        while True:
            receipt = await self.get_transaction_receipt(tx_hash)
            if receipt and receipt.get("blockNumber"):
                mined_in = int(receipt["blockNumber"], 16)
                current = await self.get_block_number()
                depth = current - mined_in + 1
                if depth >= confirmations:
                    logger.debug(
                        "Transaction %s confirmed on chain %s (block %d, %d confirmations)",
                        tx_hash, self.chain_id, mined_in, depth,
                    )
                    return receipt

            if deadline is not None and time.monotonic() >= deadline:
                raise TransactionTimeoutError(
                    f"Transaction {tx_hash} not confirmed after {timeout}s",
                    self.chain_id,
                )

            await asyncio.sleep(self._poll_interval)

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
