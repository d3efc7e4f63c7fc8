from typing import Any, Dict

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/healthz")
async def health_check(request: Request) -> Dict[str, Any]:
    """Liveness plus a summary of the bridge deployments being served."""
    manager = getattr(request.app.state, "bridge_manager", None)
    if manager is None:
        return {"status": "starting", "chains": [], "pending_transfers": 0}

    return {
        "status": "healthy",
        "chains": manager.registry.chain_ids,
        "pending_transfers": len(manager.tracker),
    }
