"""Per-scene composition: fetched media + narration -> one normalized clip."""

import asyncio
import logging
from pathlib import Path

from scenestitch.errors import ComposeFailedError
from scenestitch.models.media import MediaCandidate, MediaKind
from scenestitch.models.scene import AudioAsset, SceneClip
from scenestitch.services.media_downloader import MIN_VIDEO_BYTES, MediaDownloader
from scenestitch.utils.ffmpeg import ensure_output, run_ffmpeg

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 1080
DEFAULT_HEIGHT = 1920
DEFAULT_FPS = 30
DEFAULT_PRESET = "veryfast"


class SceneComposer:
    """Builds one clip per scene.

    Every clip leaves here with the same frame size, frame rate, pixel
    format and codecs, so the assembler can concatenate with stream copy.
    ``-shortest`` ends the clip with whichever input runs out first; a
    photo is looped as a still so it always lasts as long as the narration.
    """

    def __init__(
        self,
        downloader: MediaDownloader,
        width: int = DEFAULT_WIDTH,
        height: int = DEFAULT_HEIGHT,
        fps: int = DEFAULT_FPS,
        preset: str = DEFAULT_PRESET,
    ):
        self.downloader = downloader
        self.width = width
        self.height = height
        self.fps = fps
        self.preset = preset

    async def compose(
        self, audio: AudioAsset, candidate: MediaCandidate, work_dir: Path, index: int
    ) -> SceneClip:
        """Download ``candidate`` and mux it with ``audio``.

        Raises:
            ComposeFailedError: Missing inputs, failed download, FFmpeg error
                or an empty output
        """
        if not audio.path.is_file():
            raise ComposeFailedError(f"Narration missing: {audio.path.name}", scene_index=index)

        try:
            media_path = await self.downloader.fetch(candidate, work_dir, f"{audio.scene_id}-media")
            if not media_path.is_file():
                raise ComposeFailedError(f"Media missing: {media_path.name}")

            output_path = work_dir / f"{audio.scene_id}.mp4"
            await asyncio.to_thread(
                self._render, media_path, audio.path, output_path, candidate.kind
            )
            ensure_output(output_path, MIN_VIDEO_BYTES, "Scene render", ComposeFailedError)

        except ComposeFailedError as e:
            if e.scene_index is None:
                e.scene_index = index
            raise

        logger.info(f"[Composer] Scene {index + 1} ready: {output_path.name}")
        return SceneClip(scene_id=audio.scene_id, index=index, path=output_path)

    def _frame_filter(self) -> str:
        return (
            f"scale={self.width}:{self.height}:force_original_aspect_ratio=decrease,"
            f"pad={self.width}:{self.height}:(ow-iw)/2:(oh-ih)/2:black,"
            f"setsar=1,fps={self.fps},format=yuv420p"
        )

    def _render(self, media_path: Path, audio_path: Path, output_path: Path, kind: MediaKind) -> None:
        if kind is MediaKind.PHOTO:
            visual_input = ["-loop", "1", "-framerate", str(self.fps), "-i", str(media_path)]
        else:
            visual_input = ["-i", str(media_path)]

        cmd = [
            "ffmpeg", "-y",
            *visual_input,
            "-i", str(audio_path),
            "-map", "0:v:0",
            "-map", "1:a:0",
            "-vf", self._frame_filter(),
            "-c:v", "libx264",
            "-preset", self.preset,
            "-pix_fmt", "yuv420p",
            "-r", str(self.fps),
            "-c:a", "aac",
            "-ar", "44100",
            "-ac", "2",
            "-shortest",
            "-movflags", "+faststart",
            str(output_path),
        ]

        run_ffmpeg(cmd, f"compose {output_path.name} ({kind.value})", ComposeFailedError)
