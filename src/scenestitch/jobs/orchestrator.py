"""Job orchestration: script in, uploaded video out.

Each job runs as its own asyncio task next to a watchdog task. The pipeline
task is the only writer of its ``Job`` record; everything else reads
``JobStatus`` snapshots through the store. Whichever of pipeline, failure
path or watchdog reaches a terminal state first wins, and only that winner
schedules cleanup.
"""

import asyncio
import logging
import shutil
import uuid
from pathlib import Path
from typing import Optional, Union

from botocore.exceptions import BotoCoreError, ClientError

from scenestitch.errors import (
    InputValidationError,
    JobTimeoutError,
    PipelineError,
    UnsupportedVoiceProviderError,
    UploadFailedError,
)
from scenestitch.jobs.progress import ProgressTracker
from scenestitch.jobs.store import JobStore
from scenestitch.models.job import BrandingOptions, Job, JobStatus, VoiceSelection
from scenestitch.models.media import MediaCandidate
from scenestitch.models.scene import AudioAsset, Scene, SceneClip, SegmentationPolicy
from scenestitch.services.media_downloader import MediaDownloader
from scenestitch.services.media_resolver import MediaResolver, UsedMediaSet
from scenestitch.services.media_sources import (
    LibraryMediaSource,
    PexelsPhotoSource,
    PexelsVideoSource,
    PixabayPhotoSource,
    PixabayVideoSource,
)
from scenestitch.services.r2_storage import R2Storage
from scenestitch.services.scene_composer import SceneComposer
from scenestitch.services.segmenter import split_script
from scenestitch.services.sequence_assembler import SequenceAssembler
from scenestitch.services.subject_extractor import SubjectExtractor
from scenestitch.services.tts_service import (
    ElevenLabsVoiceProvider,
    PollyVoiceProvider,
    VoiceSynthesizer,
)
from scenestitch.services.voice_catalog import VoiceCatalog
from scenestitch.utils.logging import (
    clear_job_context,
    scene_context,
    set_job_context,
    stage_context,
)

logger = logging.getLogger(__name__)

RESULT_PREFIX = "videos"

FINALIZE_MESSAGES = {
    "concatenate": "Adding outro and watermark...",
    "brand": "Uploading final video...",
}


async def _gather_or_cancel(*aws):
    """gather() that cancels the remaining awaitables when one fails."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class JobOrchestrator:
    """Runs the scene pipeline for each job and tracks its lifecycle."""

    def __init__(
        self,
        store: JobStore,
        subject_extractor: SubjectExtractor,
        resolver: MediaResolver,
        synthesizer: VoiceSynthesizer,
        composer: SceneComposer,
        assembler: SequenceAssembler,
        output_storage: Optional[R2Storage],
        work_root: Path,
        catalog: Optional[VoiceCatalog] = None,
        segmentation_policy: SegmentationPolicy = SegmentationPolicy.NEWLINE,
        max_concurrent_scenes: int = 4,
        job_timeout_seconds: float = 720.0,
        cleanup_grace_seconds: float = 60.0,
        status_retention_seconds: float = 1800.0,
        use_ai_subjects: bool = False,
    ):
        self.store = store
        self.subject_extractor = subject_extractor
        self.resolver = resolver
        self.synthesizer = synthesizer
        self.composer = composer
        self.assembler = assembler
        self.output_storage = output_storage
        self.work_root = Path(work_root)
        self.catalog = catalog or VoiceCatalog()
        self.segmentation_policy = SegmentationPolicy(segmentation_policy)
        self.max_concurrent_scenes = max(1, max_concurrent_scenes)
        self.job_timeout_seconds = job_timeout_seconds
        self.cleanup_grace_seconds = cleanup_grace_seconds
        self.status_retention_seconds = status_retention_seconds
        self.use_ai_subjects = use_ai_subjects

        self._pipelines: dict[str, asyncio.Task] = {}
        self._watchdogs: dict[str, asyncio.Task] = {}
        self._cleanups: dict[str, asyncio.Task] = {}
        # Keep references to background tasks to prevent garbage collection
        self._background_tasks: set[asyncio.Task] = set()
        self._closing = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def create_job(
        self,
        script: str,
        voice: Union[VoiceSelection, str, None],
        branding: Optional[BrandingOptions] = None,
        title: str = "",
    ) -> str:
        """Register a job and start it in the background.

        Returns immediately with the job id; validation happens inside the
        job, so bad input shows up as a failed status rather than an error
        here.
        """
        job_id = str(uuid.uuid4())
        job = self.store.create_job(job_id, self.work_root / job_id)

        if isinstance(voice, str):
            voice = VoiceSelection(voice_id=voice)

        pipeline = self._spawn(
            self._run_job(job, script, voice, branding or BrandingOptions(), title),
            name=f"job-{job_id}",
        )
        self._pipelines[job_id] = pipeline
        self._watchdogs[job_id] = self._spawn(
            self._watchdog(job, pipeline), name=f"watchdog-{job_id}"
        )

        logger.info(f"Job {job_id} queued")
        return job_id

    def get_job_status(self, job_id: str) -> JobStatus:
        """Snapshot of a job. Unknown or evicted ids report ``expired``."""
        return self.store.get_status(job_id)

    async def wait_for_job(self, job_id: str, timeout: Optional[float] = None) -> JobStatus:
        """Wait until the job's pipeline task finishes, then return its status."""
        pipeline = self._pipelines.get(job_id)
        if pipeline is not None and not pipeline.done():
            await asyncio.wait({pipeline}, timeout=timeout)
        return self.get_job_status(job_id)

    async def get_result_url(self, job_id: str, expires_in: int = 3600) -> Optional[str]:
        """Presigned URL of a finished job's video, or None if not available."""
        status = self.get_job_status(job_id)
        if not status.result_key or self.output_storage is None:
            return None
        return await asyncio.to_thread(
            self.output_storage.get_presigned_url, status.result_key, expires_in
        )

    async def shutdown(self) -> None:
        """Cancel every outstanding task and release provider clients.

        Pending cleanups are cancelled with everything else, so the work dir
        of every job still registered is removed here.
        """
        self._closing = True
        tasks = list(self._background_tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        for job_id in list(self._pipelines):
            job = self.store.get_job(job_id)
            if job is not None and job.work_dir.exists():
                await asyncio.to_thread(shutil.rmtree, job.work_dir, True)
                logger.info(f"Removed work dir for job {job_id} on shutdown")
        self._cleanups.clear()

        await self.synthesizer.close()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _spawn(self, coro, name: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return task

    async def _run_job(
        self,
        job: Job,
        script: str,
        voice: Optional[VoiceSelection],
        branding: BrandingOptions,
        title: str,
    ) -> None:
        set_job_context(job.id)
        try:
            result_key = await self._pipeline(job, script, voice, branding, title)
            if job.succeed(result_key):
                logger.info(f"Job {job.id} done: {result_key}")
                self._on_terminal(job)
        except asyncio.CancelledError:
            if job.fail("Cancelled"):
                self._on_terminal(job)
            raise
        except PipelineError as e:
            logger.error(f"Job {job.id} failed [{e.kind}]: {e.describe()}")
            if job.fail(e.describe()):
                self._on_terminal(job)
        except Exception as e:
            logger.exception(f"Job {job.id} crashed: {e}")
            if job.fail(f"Crash ({type(e).__name__})"):
                self._on_terminal(job)
        finally:
            clear_job_context()

    async def _watchdog(self, job: Job, pipeline: asyncio.Task) -> None:
        set_job_context(job.id)
        await asyncio.sleep(self.job_timeout_seconds)
        error = JobTimeoutError(f"Job timed out after {self.job_timeout_seconds:g}s")
        if job.fail(error.describe()):
            logger.error(f"Job {job.id} {error.message}")
            pipeline.cancel()
            self._on_terminal(job)

    def _on_terminal(self, job: Job) -> None:
        """Stop the watchdog and schedule cleanup. Runs once per job."""
        if self._closing or job.id in self._cleanups:
            return

        watchdog = self._watchdogs.pop(job.id, None)
        if watchdog is not None and watchdog is not asyncio.current_task():
            watchdog.cancel()

        self._cleanups[job.id] = self._spawn(self._cleanup_later(job), name=f"cleanup-{job.id}")

    async def _cleanup_later(self, job: Job) -> None:
        await asyncio.sleep(self.cleanup_grace_seconds)
        await asyncio.to_thread(shutil.rmtree, job.work_dir, True)
        logger.info(f"Removed work dir for job {job.id}")

        await asyncio.sleep(self.status_retention_seconds)
        self.store.delete_job(job.id)
        self._pipelines.pop(job.id, None)
        self._cleanups.pop(job.id, None)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _validate_voice(self, voice: Optional[VoiceSelection]) -> tuple[str, str]:
        """Return (voice_id, provider) for a caller's voice choice."""
        if voice is None or not voice.voice_id or not voice.voice_id.strip():
            raise InputValidationError("Missing script or voice")

        if voice.provider and not self.synthesizer.supports(voice.provider):
            raise UnsupportedVoiceProviderError(f"Unsupported voice provider: {voice.provider}")

        entry = self.catalog.resolve(voice.voice_id.strip(), voice.provider)
        if not self.synthesizer.supports(entry.provider):
            raise UnsupportedVoiceProviderError(
                f"Voice provider {entry.provider} is not configured"
            )
        return entry.id, entry.provider

    async def _pipeline(
        self,
        job: Job,
        script: str,
        voice: Optional[VoiceSelection],
        branding: BrandingOptions,
        title: str,
    ) -> str:
        job.start()

        if not script or not script.strip():
            raise InputValidationError("Missing script or voice")
        voice_id, provider = self._validate_voice(voice)

        scenes = split_script(script, self.segmentation_policy)
        if not scenes:
            raise InputValidationError("Script has no scenes")

        logger.info(f"Job {job.id}: {len(scenes)} scenes, voice {voice_id} ({provider})")
        job.work_dir.mkdir(parents=True, exist_ok=True)

        tracker = ProgressTracker(len(scenes), update_callback=job.advance)
        tracker.notify(f"Working on scene 1 of {len(scenes)}...")

        used = UsedMediaSet()
        semaphore = asyncio.Semaphore(self.max_concurrent_scenes)
        clips: list[SceneClip] = await _gather_or_cancel(
            *(
                self._process_scene(
                    scene, len(scenes), voice_id, provider, title, job.work_dir,
                    used, semaphore, tracker,
                )
                for scene in scenes
            )
        )
        clips.sort(key=lambda c: c.index)

        tracker.notify("Combining all scenes together...")
        with stage_context("assemble"):
            final_path = await self.assembler.assemble(
                clips,
                job.work_dir / "final.mp4",
                watermark=branding.watermark,
                outro=branding.outro,
                on_step=lambda step: tracker.complete_unit("finalize", FINALIZE_MESSAGES[step]),
            )

        with stage_context("upload"):
            return await self._upload(job, final_path)

    async def _process_scene(
        self,
        scene: Scene,
        total: int,
        voice_id: str,
        provider: str,
        title: str,
        work_dir: Path,
        used: UsedMediaSet,
        semaphore: asyncio.Semaphore,
        tracker: ProgressTracker,
    ) -> SceneClip:
        async with semaphore:
            message = f"Working on scene {scene.index + 1} of {total}..."
            tracker.notify(message)

            async def resolve_media() -> MediaCandidate:
                with stage_context("media"):
                    subject = await self._subject_for(scene, title)
                    logger.info(f"[Scene {scene.index + 1}] subject: '{subject}'")
                    candidate = await self.resolver.resolve(subject, used, scene_index=scene.index)
                tracker.complete_unit("media", message)
                return candidate

            async def narrate() -> AudioAsset:
                with stage_context("narration"):
                    audio = await self.synthesizer.synthesize(scene, voice_id, provider, work_dir)
                tracker.complete_unit("narration", message)
                return audio

            with scene_context(scene.index):
                candidate, audio = await _gather_or_cancel(resolve_media(), narrate())

                with stage_context("compose"):
                    clip = await self.composer.compose(audio, candidate, work_dir, scene.index)
            tracker.complete_unit("compose", message)
            return clip

    async def _subject_for(self, scene: Scene, title: str) -> str:
        if self.use_ai_subjects:
            return await self.subject_extractor.extract_async(scene.text, title)
        return self.subject_extractor.extract(scene.text, title)

    async def _upload(self, job: Job, final_path: Path) -> str:
        if self.output_storage is None:
            raise UploadFailedError("No output storage configured")

        key = f"{RESULT_PREFIX}/{job.id}.mp4"
        try:
            await asyncio.to_thread(self.output_storage.upload_file, key, final_path, "video/mp4")
        except (ClientError, BotoCoreError, OSError) as e:
            raise UploadFailedError(f"Upload failed: {e}") from e
        return key


def build_orchestrator(config: dict) -> JobOrchestrator:
    """Wire every pipeline component from a ``load_config()`` dict."""

    def storage_for(bucket_key: str) -> Optional[R2Storage]:
        if not (config.get("r2_endpoint") and config.get("r2_access_key_id")):
            return None
        return R2Storage(
            endpoint=config["r2_endpoint"],
            access_key_id=config["r2_access_key_id"],
            secret_access_key=config.get("r2_secret_access_key"),
            bucket_name=config[bucket_key],
            public_url=config.get("r2_public_url"),
        )

    library_storage = storage_for("r2_library_bucket")
    output_storage = storage_for("r2_videos_bucket")
    per_page = config.get("stock_results_per_page", 10)

    resolver = MediaResolver(
        [
            LibraryMediaSource(library_storage),
            PexelsVideoSource(config.get("pexels_api_key"), per_page),
            PixabayVideoSource(config.get("pixabay_api_key"), per_page),
            PexelsPhotoSource(config.get("pexels_api_key"), per_page),
            PixabayPhotoSource(config.get("pixabay_api_key"), per_page),
        ]
    )

    voice_providers = []
    if config.get("aws_access_key_id") and config.get("aws_secret_access_key"):
        voice_providers.append(
            PollyVoiceProvider(
                access_key_id=config["aws_access_key_id"],
                secret_access_key=config["aws_secret_access_key"],
                region=config.get("aws_region", "us-east-1"),
            )
        )
    if config.get("elevenlabs_api_key"):
        voice_providers.append(
            ElevenLabsVoiceProvider(
                config["elevenlabs_api_key"],
                model_id=config.get("elevenlabs_model_id", "eleven_monolingual_v1"),
            )
        )

    width = config.get("output_width", 1080)
    height = config.get("output_height", 1920)

    return JobOrchestrator(
        store=JobStore(),
        subject_extractor=SubjectExtractor(
            api_key=config.get("gemini_api_key") if config.get("ai_subjects_enabled") else None,
            model_name=config.get("gemini_model", "gemini-2.0-flash"),
        ),
        resolver=resolver,
        synthesizer=VoiceSynthesizer(voice_providers),
        composer=SceneComposer(MediaDownloader(library_storage), width=width, height=height),
        assembler=SequenceAssembler(
            watermark_path=config.get("watermark_path"),
            outro_path=config.get("outro_path"),
            width=width,
            height=height,
        ),
        output_storage=output_storage,
        work_root=Path(config.get("work_dir") or "renders"),
        segmentation_policy=config.get("segmentation_policy", "newline"),
        max_concurrent_scenes=config.get("max_concurrent_scenes", 4),
        job_timeout_seconds=config.get("job_timeout_seconds", 720.0),
        cleanup_grace_seconds=config.get("cleanup_grace_seconds", 60.0),
        status_retention_seconds=config.get("status_retention_seconds", 1800.0),
        use_ai_subjects=bool(config.get("ai_subjects_enabled")),
    )
