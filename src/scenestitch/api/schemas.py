"""Pydantic request/response models for the scenestitch API."""

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Request Models
# =============================================================================


class GenerateVideoRequest(BaseModel):
    """Body of POST /api/generate-video.

    Field names follow the web client's camelCase; snake_case is accepted too.
    Script and voice are validated inside the job, so an empty body still
    yields a job id whose status reports the failure.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "script": "The Eiffel Tower glows at night.\nThen it disappeared.",
                    "voice": "Matthew",
                    "paidUser": False,
                    "removeWatermark": False,
                    "title": "Paris secrets",
                }
            ]
        },
    )

    script: str = ""
    voice: str = ""
    provider: str | None = None
    paid_user: bool = Field(False, alias="paidUser")
    remove_watermark: bool = Field(False, alias="removeWatermark")
    title: str = ""


class GenerateScriptRequest(BaseModel):
    """Body of POST /api/generate-script."""

    idea: str = ""

    model_config = {"json_schema_extra": {"examples": [{"idea": "secret rooms inside famous landmarks"}]}}


# =============================================================================
# Response Models
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: str

    model_config = {"json_schema_extra": {"examples": [{"status": "OK", "timestamp": "2024-01-01T00:00:00"}]}}


class GenerateVideoResponse(BaseModel):
    """Job handle returned by POST /api/generate-video."""

    jobId: str


class ProgressResponse(BaseModel):
    """Job progress snapshot."""

    jobId: str
    percent: int = Field(ge=0, le=100)
    status: str
    state: str
    key: str | None = None
    error: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"jobId": "3f2c", "percent": 42, "status": "Working on scene 2 of 4...", "state": "running"}
            ]
        }
    }


class GenerateScriptResponse(BaseModel):
    """Drafted script, one scene per line, plus publishing metadata."""

    success: bool = True
    script: str
    title: str
    description: str
    tags: str


class VoiceResponse(BaseModel):
    """One catalog voice."""

    id: str
    name: str
    description: str
    provider: str
    tier: str
    gender: str
    disabled: bool = False


class VoicesResponse(BaseModel):
    """Voice catalog listing."""

    success: bool = True
    voices: list[VoiceResponse]
