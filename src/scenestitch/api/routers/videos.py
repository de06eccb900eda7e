"""Video generation routes: start a job, poll it, fetch the result."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse

from scenestitch.api.dependencies import get_orchestrator
from scenestitch.api.schemas import GenerateVideoRequest, GenerateVideoResponse, ProgressResponse
from scenestitch.jobs.orchestrator import JobOrchestrator
from scenestitch.models.job import BrandingOptions, VoiceSelection

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Video Generation"])


@router.post(
    "/api/generate-video",
    response_model=GenerateVideoResponse,
    summary="Start a video job",
    description="Queues a generation job and returns its id immediately.",
)
async def generate_video(
    request: GenerateVideoRequest,
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
) -> dict[str, str]:
    """Start a video generation job."""
    logger.info(
        f"POST /api/generate-video voice={request.voice!r} paid={request.paid_user} "
        f"remove_watermark={request.remove_watermark}"
    )
    job_id = await orchestrator.create_job(
        script=request.script,
        voice=VoiceSelection(voice_id=request.voice, provider=request.provider),
        branding=BrandingOptions(
            paid_user=request.paid_user, remove_watermark=request.remove_watermark
        ),
        title=request.title,
    )
    return {"jobId": job_id}


@router.get(
    "/api/progress/{job_id}",
    response_model=ProgressResponse,
    response_model_exclude_none=True,
    summary="Job progress",
    description="Percent and status message. Unknown ids report 100% 'Done (or not found)'.",
)
async def get_progress(
    job_id: str,
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
) -> dict:
    """Poll a job's progress."""
    return orchestrator.get_job_status(job_id).to_dict()


@router.get(
    "/video/{job_id}",
    summary="Finished video",
    description="Redirects to a short-lived download URL for a finished job.",
)
async def get_video(
    job_id: str,
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
) -> RedirectResponse:
    """Redirect to the rendered video."""
    url = await orchestrator.get_result_url(job_id)
    if not url:
        raise HTTPException(status_code=404, detail="Video not found")
    return RedirectResponse(url, status_code=302)
