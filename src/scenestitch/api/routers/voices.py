"""Voice catalog route."""

import logging

from fastapi import APIRouter, Depends

from scenestitch.api.dependencies import get_voice_catalog
from scenestitch.api.schemas import VoicesResponse
from scenestitch.services.voice_catalog import VoiceCatalog

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Voices"])


@router.get(
    "/api/voices",
    response_model=VoicesResponse,
    summary="List voices",
    description="All narration voices with provider, tier and gender.",
)
async def list_voices(catalog: VoiceCatalog = Depends(get_voice_catalog)) -> dict:
    """List the voice catalog."""
    tiers = ", ".join(f"{tier}: {count}" for tier, count in catalog.by_tier().items())
    logger.info(f"Returning {len(catalog.voices)} voices ({tiers})")
    return {"success": True, "voices": catalog.to_list()}
