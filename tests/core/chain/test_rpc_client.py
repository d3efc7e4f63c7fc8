"""
Tests for the JSON-RPC chain client against a mocked node.
"""

import json

import httpx
import pytest

from bridgekeeper.core.chain.client import (
    ChainClient,
    ChainClientError,
    JsonRpcChainClient,
    TransactionTimeoutError,
)


TX_HASH = "0x" + "e" * 64


class FakeNode:
    """Scripted JSON-RPC node."""

    def __init__(self, receipts=None, block_number=0x20):
        self.receipts = list(receipts or [])
        self.block_number = block_number
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        method = body["method"]
        if method == "eth_getTransactionReceipt":
            receipt = self.receipts.pop(0) if len(self.receipts) > 1 else (self.receipts[0] if self.receipts else None)
            return self._result(body, receipt)
        if method == "eth_blockNumber":
            return self._result(body, hex(self.block_number))
        if method == "eth_sendTransaction":
            return self._result(body, TX_HASH)
        if method == "eth_call":
            return self._result(body, "0x" + "0" * 63 + "2")
        if method == "eth_chainId":
            return self._result(body, "0xa")
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "error": {"code": -32601, "message": "method not found"}})

    @staticmethod
    def _result(body, result):
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})


def _client(node) -> JsonRpcChainClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(node))
    return JsonRpcChainClient(10, "http://node.test", poll_interval_seconds=0.001, http_client=http)


def _receipt(block: int, status: str = "0x1"):
    return {"transactionHash": TX_HASH, "blockNumber": hex(block), "status": status}


def test_client_satisfies_protocol():
    assert isinstance(JsonRpcChainClient(1, "http://node.test"), ChainClient)


@pytest.mark.asyncio
async def test_wait_polls_until_mined():
    node = FakeNode(receipts=[None, None, _receipt(0x20)])
    client = _client(node)

    receipt = await client.wait_for_transaction(TX_HASH, 1)

    assert receipt["blockNumber"] == "0x20"
    methods = [r["method"] for r in node.requests]
    assert methods.count("eth_getTransactionReceipt") == 3
    assert methods[-1] == "eth_blockNumber"
    await client.aclose()


@pytest.mark.asyncio
async def test_wait_requires_confirmation_depth():
    node = FakeNode(receipts=[_receipt(0x20)], block_number=0x20)
    client = _client(node)

    polls = 0
    original = client.get_block_number

    async def advancing_block_number():
        nonlocal polls
        polls += 1
        if polls == 2:
            node.block_number = 0x22
        return await original()

    client.get_block_number = advancing_block_number
    receipt = await client.wait_for_transaction(TX_HASH, 3)

    assert receipt is not None
    assert polls == 2
    await client.aclose()


@pytest.mark.asyncio
async def test_zero_confirmations_returns_immediately_when_unmined():
    node = FakeNode(receipts=[None])
    client = _client(node)

    assert await client.wait_for_transaction(TX_HASH, 0) is None
    assert len(node.requests) == 1
    await client.aclose()


@pytest.mark.asyncio
async def test_wait_times_out():
    client = _client(FakeNode(receipts=[None]))

    with pytest.raises(TransactionTimeoutError) as excinfo:
        await client.wait_for_transaction(TX_HASH, 1, timeout=0.01)

    assert excinfo.value.chain_id == 10
    await client.aclose()


@pytest.mark.asyncio
async def test_rpc_error_is_raised():
    client = _client(FakeNode())

    with pytest.raises(ChainClientError) as excinfo:
        await client._rpc_call("eth_unknownMethod", [])

    assert excinfo.value.code == -32601
    await client.aclose()


@pytest.mark.asyncio
async def test_http_failure_is_raised():
    def down(request):
        return httpx.Response(502, text="bad gateway")

    client = JsonRpcChainClient(
        10,
        "http://node.test",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(down)),
    )

    with pytest.raises(ChainClientError):
        await client.wait_for_transaction(TX_HASH, 1)
    await client.aclose()


@pytest.mark.asyncio
async def test_send_call_and_chain_id():
    node = FakeNode()
    client = _client(node)

    tx_hash = await client.send_transaction({"from": "0x" + "a" * 40, "to": "0x" + "b" * 40, "data": "0x"})
    status = await client.call("0x" + "b" * 40, "0x12345678")
    chain_id = await client.get_chain_id()

    assert tx_hash == TX_HASH
    assert int(status, 16) == 2
    assert chain_id == 10
    assert node.requests[1]["params"] == [{"to": "0x" + "b" * 40, "data": "0x12345678"}, "latest"]
    assert len({r["id"] for r in node.requests}) == 3
    await client.aclose()
