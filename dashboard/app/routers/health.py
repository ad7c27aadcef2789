from fastapi import APIRouter, Depends, HTTPException

from dashboard.app.core.context import DashboardContext, get_context
from dashboard.app.services.errors import UpstreamError


router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, bool]:
    """Basic liveness probe."""
    return {"ok": True}


@router.get("/readiness")
async def readiness(ctx: DashboardContext = Depends(get_context)) -> dict[str, bool]:
    """Ensure the restaurant API answers with a usable profile."""
    try:
        await ctx.cache.profile(force=True)
    except UpstreamError as exc:
        raise HTTPException(status_code=503, detail="Restaurant API unavailable") from exc

    return {"ready": True}
