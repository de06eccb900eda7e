# Data models for scenestitch
from .scene import AudioAsset, Scene, SceneClip, SegmentationPolicy
from .media import MediaCandidate, MediaKind, MediaSource
from .job import BrandingOptions, Job, JobState, JobStatus, VoiceSelection

__all__ = [
    "AudioAsset",
    "Scene",
    "SceneClip",
    "SegmentationPolicy",
    "MediaCandidate",
    "MediaKind",
    "MediaSource",
    # Jobs
    "BrandingOptions",
    "Job",
    "JobState",
    "JobStatus",
    "VoiceSelection",
]
