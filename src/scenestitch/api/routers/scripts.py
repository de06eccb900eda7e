"""Script drafting route."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from scenestitch.api.dependencies import get_script_writer
from scenestitch.api.schemas import GenerateScriptRequest, GenerateScriptResponse
from scenestitch.services.script_writer import ScriptGenerationError, ScriptWriter
from scenestitch.utils.retry import RetryableError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Scripts"])


@router.post(
    "/api/generate-script",
    response_model=GenerateScriptResponse,
    summary="Draft a script",
    description="Turns an idea into a one-scene-per-line script with title, description and tags.",
    responses={400: {"description": "Missing idea"}, 500: {"description": "Generation failed"}},
)
async def generate_script(
    request: GenerateScriptRequest,
    writer: ScriptWriter = Depends(get_script_writer),
):
    """Draft a short-form script from an idea."""
    idea = request.idea.strip()
    logger.info(f"POST /api/generate-script idea={idea!r}")

    if not idea:
        return JSONResponse(status_code=400, content={"success": False, "error": "Missing idea"})

    try:
        draft = await writer.write_async(idea)
    except (ScriptGenerationError, RetryableError) as e:
        logger.error(f"Script generation failed: {e}")
        return JSONResponse(
            status_code=500, content={"success": False, "error": "Script generation failed"}
        )

    return draft.to_dict()
