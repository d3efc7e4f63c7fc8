from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException, Query, Request

from ..core.bridge.manager import BridgeManager
from ..core.chain_types import normalize_chain_id

router = APIRouter(prefix="/transfers")


def get_manager(request: Request) -> BridgeManager:
    manager = getattr(request.app.state, "bridge_manager", None)
    if manager is None:
        raise HTTPException(status_code=503, detail="Bridge manager not started")
    return manager


@router.get("/pending")
async def list_pending(
    request: Request,
    chain_id: Optional[str] = Query(default=None, description="Only transfers sent on this chain"),
) -> Dict[str, Any]:
    """Open transfers still waiting for their source-chain confirmation."""
    tracker = get_manager(request).tracker
    if chain_id is None:
        transfers = tracker.pending
    else:
        try:
            transfers = tracker.pending_on(normalize_chain_id(chain_id))
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))

    return {
        "count": len(transfers),
        "transfers": [transfer.to_dict() for transfer in transfers],
    }


@router.get("/pending/{tx_hash}")
async def get_pending(request: Request, tx_hash: str) -> Dict[str, Any]:
    tracker = get_manager(request).tracker
    transfer = tracker.get(tx_hash)
    if transfer is None:
        raise HTTPException(status_code=404, detail=f"Transfer {tx_hash} is not pending")
    return {**transfer.to_dict(), "watching": tracker.is_watching(tx_hash)}
