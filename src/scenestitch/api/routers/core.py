"""Core routes for the scenestitch API (health check)."""

from datetime import datetime

from fastapi import APIRouter

from scenestitch.api.schemas import HealthResponse

router = APIRouter(tags=["Core"])


@router.get(
    "/api/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns server health status.",
)
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "OK", "timestamp": datetime.now().isoformat()}
