"""
End-to-end flow through the bridge manager: submit on the source chain,
wait for confirmation, release on the destination chain.
"""

import pytest
from unittest.mock import AsyncMock

from bridgekeeper.core.bridge.errors import (
    ChainMismatchError,
    MessageAlreadyProcessedError,
    UnknownChainError,
)
from bridgekeeper.core.bridge.handlers import MessageStatus
from bridgekeeper.core.bridge.manager import BridgeManager
from bridgekeeper.core.bridge.message import compute_msg_hash
from bridgekeeper.core.bridge.models import AssetType, BridgeMessage, BridgeTransaction, PendingTransfer
from bridgekeeper.core.bridge.tracker import PendingTransferTracker


USER = "0xbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbb"
RELAYER = "0xcccccccccccccccccccccccccccccccccccccccc"


def _transfer(data=None) -> BridgeTransaction:
    message = BridgeMessage(id=1, src_chain_id=1, dest_chain_id=10, owner=USER, to=USER, deposit_value=10**17, data=data)
    return BridgeTransaction(from_chain_id=1, to_chain_id=10, message=message)


@pytest.fixture
def manager(registry):
    return BridgeManager(registry, tracker=PendingTransferTracker(registry, confirmations=1))


@pytest.mark.asyncio
async def test_submit_confirm_release(manager, src_client, dest_client, registry):
    on_released = AsyncMock()
    transfer = _transfer()

    pending = await manager.submit_transfer(
        transfer,
        USER,
        {"to": registry.chain_metadata(1).bridge_address, "value": hex(10**17), "data": "0x"},
        release_as=RELAYER,
        on_released=on_released,
    )

    assert src_client.sent[0]["from"] == USER
    assert pending.id in manager.tracker
    assert pending.transaction.tx_hash == pending.id
    assert dest_client.sent == []

    src_client.confirm(pending.id)
    results = await manager.tracker.wait_all()

    assert results and not any(isinstance(r, Exception) for r in results)
    assert pending.id not in manager.tracker
    assert len(dest_client.sent) == 1
    assert dest_client.sent[0]["from"] == RELAYER
    assert dest_client.sent[0]["to"] == registry.chain_metadata(10).bridge_address

    result = on_released.await_args.args[0]
    assert result.asset_type is AssetType.NATIVE
    assert result.chain_id == 10
    assert result.msg_hash == compute_msg_hash(transfer.message)


@pytest.mark.asyncio
async def test_submit_without_release_only_tracks(manager, src_client, dest_client):
    pending = await manager.submit_transfer(_transfer(data="0x01"), USER, {"to": "0x" + "d" * 40, "data": "0x01"})

    src_client.confirm(pending.id)
    await manager.tracker.wait_all()

    assert len(manager.tracker) == 0
    assert dest_client.sent == []


@pytest.mark.asyncio
async def test_submit_rejects_same_chain_transfer(manager, src_client):
    message = BridgeMessage(src_chain_id=1, dest_chain_id=1)

    with pytest.raises(ChainMismatchError):
        await manager.submit_transfer(BridgeTransaction(from_chain_id=1, to_chain_id=1, message=message), USER, {})

    assert src_client.sent == []


@pytest.mark.asyncio
async def test_submit_rejects_unknown_destination_before_sending(manager, src_client):
    message = BridgeMessage(src_chain_id=1, dest_chain_id=999)
    transfer = BridgeTransaction(from_chain_id=1, to_chain_id=999, message=message)

    with pytest.raises(UnknownChainError) as excinfo:
        await manager.submit_transfer(transfer, USER, {"to": USER}, release_as=RELAYER)

    assert excinfo.value.chain_id == 999
    assert src_client.sent == []
    assert len(manager.tracker) == 0


@pytest.mark.asyncio
async def test_failed_release_surfaces_through_watch(manager, src_client, dest_client):
    dest_client.status = MessageStatus.DONE
    pending = PendingTransfer(id="0x" + "f" * 64, chain_id=1, transaction=_transfer())

    task = manager.track(pending, release_as=RELAYER)
    src_client.confirm(pending.id)

    with pytest.raises(MessageAlreadyProcessedError):
        await task
    assert pending.id not in manager.tracker
    assert dest_client.sent == []


def test_track_release_needs_transaction(manager):
    with pytest.raises(ValueError):
        manager.track(PendingTransfer(id="0x01", chain_id=1), release_as=RELAYER)


@pytest.mark.asyncio
async def test_manual_release(manager, dest_client):
    result = await manager.release(_transfer(data="0xabcd"), 10, RELAYER)

    assert result.asset_type is AssetType.TOKEN
    assert len(dest_client.sent) == 1
    await manager.aclose()
