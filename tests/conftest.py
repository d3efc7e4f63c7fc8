import asyncio
from typing import Any, Dict, List, Optional

import pytest

from bridgekeeper.core.bridge.handlers import MessageStatus, default_handlers
from bridgekeeper.core.bridge.registry import BridgeRegistry, ChainMetadata

SRC_BRIDGE = "0x1000000000000000000000000000000000000001"
SRC_VAULT = "0x1000000000000000000000000000000000000002"
DEST_BRIDGE = "0x1000000000000000000000000000000000000010"
DEST_VAULT = "0x1000000000000000000000000000000000000020"
SIGNER = "0xaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa"


class FakeChainClient:
    """In-memory chain: tests decide when each transaction confirms or fails."""

    def __init__(self, chain_id: int):
        self.chain_id = chain_id
        self.sent: List[Dict[str, Any]] = []
        self.calls: List[Dict[str, str]] = []
        self.status = MessageStatus.NEW
        self.send_error: Optional[Exception] = None
        self.waited: List[str] = []
        self._results: Dict[str, asyncio.Future] = {}

    def _future(self, tx_hash: str) -> asyncio.Future:
        if tx_hash not in self._results:
            self._results[tx_hash] = asyncio.get_running_loop().create_future()
        return self._results[tx_hash]

    async def wait_for_transaction(self, tx_hash, confirmations=1, timeout=None):
        self.waited.append(tx_hash)
        return await self._future(tx_hash)

    def confirm(self, tx_hash: str, status: str = "0x1") -> None:
        self._future(tx_hash).set_result({"transactionHash": tx_hash, "blockNumber": "0x10", "status": status})

    def fail(self, tx_hash: str, exc: Exception) -> None:
        self._future(tx_hash).set_exception(exc)

    def reset(self, tx_hash: str) -> None:
        self._results.pop(tx_hash, None)

    async def send_transaction(self, tx):
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(tx)
        return "0x" + format(self.chain_id * 1000 + len(self.sent), "064x")

    async def call(self, to, data):
        self.calls.append({"to": to, "data": data})
        return "0x" + format(int(self.status), "064x")

    async def aclose(self):
        return None


@pytest.fixture
def src_client() -> FakeChainClient:
    return FakeChainClient(1)


@pytest.fixture
def dest_client() -> FakeChainClient:
    return FakeChainClient(10)


@pytest.fixture
def registry(src_client, dest_client) -> BridgeRegistry:
    return BridgeRegistry(
        [
            ChainMetadata(chain_id=1, bridge_address=SRC_BRIDGE, vault_address=SRC_VAULT, client=src_client, name="Ethereum"),
            ChainMetadata(chain_id=10, bridge_address=DEST_BRIDGE, vault_address=DEST_VAULT, client=dest_client, name="Optimism"),
        ],
        default_handlers(),
    )
