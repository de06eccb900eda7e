"""Join scene clips into the final video and apply branding."""

import asyncio
import logging
import shutil
from pathlib import Path
from typing import Callable, Optional

from scenestitch.errors import AssembleFailedError
from scenestitch.models.scene import SceneClip
from scenestitch.services.media_downloader import MIN_VIDEO_BYTES
from scenestitch.services.scene_composer import DEFAULT_FPS, DEFAULT_HEIGHT, DEFAULT_WIDTH
from scenestitch.utils.ffmpeg import ensure_output, run_ffmpeg

logger = logging.getLogger(__name__)

WATERMARK_SIZE = 140
WATERMARK_MARGIN = 20


class SequenceAssembler:
    """Concatenates scene clips in index order, then brands the result.

    Branding is a single optional re-encode: the logo is scaled down and
    overlaid in the bottom-right corner, and the outro clip (normalized to
    the output frame) is appended. A branding asset that is not on disk is
    skipped with a warning instead of failing the job.
    """

    def __init__(
        self,
        watermark_path: Optional[Path] = None,
        outro_path: Optional[Path] = None,
        width: int = DEFAULT_WIDTH,
        height: int = DEFAULT_HEIGHT,
        fps: int = DEFAULT_FPS,
    ):
        self.watermark_path = Path(watermark_path) if watermark_path else None
        self.outro_path = Path(outro_path) if outro_path else None
        self.width = width
        self.height = height
        self.fps = fps

    async def concatenate(self, clips: list[SceneClip], output_path: Path) -> Path:
        """Concatenate clips in index order with stream copy.

        Raises:
            AssembleFailedError: No clips, missing clip file or FFmpeg failure
        """
        if not clips:
            raise AssembleFailedError("No scene clips to concatenate")

        ordered = sorted(clips, key=lambda c: c.index)
        for clip in ordered:
            if not clip.path.is_file():
                raise AssembleFailedError(f"Scene clip missing: {clip.path.name}", scene_index=clip.index)

        await asyncio.to_thread(self._concatenate_sync, [c.path for c in ordered], output_path)
        ensure_output(output_path, MIN_VIDEO_BYTES, "Concatenation", AssembleFailedError)
        logger.info(f"[Assembler] {len(ordered)} scenes concatenated: {output_path.name}")
        return output_path

    async def brand(
        self, input_path: Path, output_path: Path, watermark: bool = False, outro: bool = False
    ) -> Path:
        """Apply watermark and/or outro. Copies the input when neither applies.

        Raises:
            AssembleFailedError: FFmpeg failure or empty output
        """
        watermark_file = self._usable_asset(self.watermark_path, "watermark") if watermark else None
        outro_file = self._usable_asset(self.outro_path, "outro") if outro else None

        if watermark_file or outro_file:
            await asyncio.to_thread(
                self._brand_sync, input_path, output_path, watermark_file, outro_file
            )
        else:
            await asyncio.to_thread(shutil.copy2, input_path, output_path)

        ensure_output(output_path, MIN_VIDEO_BYTES, "Final video", AssembleFailedError)
        return output_path

    async def assemble(
        self,
        clips: list[SceneClip],
        output_path: Path,
        watermark: bool = False,
        outro: bool = False,
        on_step: Optional[Callable[[str], None]] = None,
    ) -> Path:
        """Concatenate then brand, leaving the final video at ``output_path``.

        ``on_step`` is called with ``"concatenate"`` and then ``"brand"`` as
        each step finishes.
        """
        concat_path = output_path.with_name("concat.mp4")
        await self.concatenate(clips, concat_path)
        if on_step:
            on_step("concatenate")

        final_path = await self.brand(concat_path, output_path, watermark=watermark, outro=outro)
        if on_step:
            on_step("brand")
        return final_path

    @staticmethod
    def _usable_asset(path: Optional[Path], label: str) -> Optional[Path]:
        if path and path.is_file():
            return path
        logger.warning(f"[Assembler] No {label} asset at {path}, skipping {label}")
        return None

    def _concatenate_sync(self, clip_paths: list[Path], output_path: Path) -> None:
        if len(clip_paths) == 1:
            shutil.copy2(clip_paths[0], output_path)
            return

        concat_file = output_path.parent / "concat.txt"
        lines = []
        for clip in clip_paths:
            escaped = str(clip.resolve()).replace("'", "'\\''")
            lines.append(f"file '{escaped}'")
        concat_file.write_text("\n".join(lines))

        cmd = [
            "ffmpeg", "-y",
            "-f", "concat",
            "-safe", "0",
            "-i", str(concat_file),
            "-c", "copy",
            "-movflags", "+faststart",
            str(output_path),
        ]
        run_ffmpeg(cmd, f"concatenate {len(clip_paths)} scenes", AssembleFailedError)

    def build_branding_filter(self, watermark: bool, outro: bool) -> tuple[str, str, str]:
        """Return (filter_complex, video_label, audio_label).

        Input 0 is the main video; the watermark, when present, is input 1
        and the outro follows it.
        """
        parts = []
        video_label = "0:v"
        next_input = 1

        if watermark:
            parts.append(
                f"[{next_input}:v]scale={WATERMARK_SIZE}:{WATERMARK_SIZE}:"
                f"force_original_aspect_ratio=decrease[wm];"
                f"[0:v][wm]overlay=W-w-{WATERMARK_MARGIN}:H-h-{WATERMARK_MARGIN}[mainv]"
            )
            video_label = "mainv"
            next_input += 1

        if outro:
            o = next_input
            parts.append(
                f"[{o}:v]scale={self.width}:{self.height}:force_original_aspect_ratio=decrease,"
                f"pad={self.width}:{self.height}:(ow-iw)/2:(oh-ih)/2:black,"
                f"setsar=1,fps={self.fps},format=yuv420p[outrov]"
            )
            parts.append(f"[{o}:a]aresample=44100,aformat=channel_layouts=stereo[outroa]")
            parts.append(f"[{video_label}][0:a][outrov][outroa]concat=n=2:v=1:a=1[outv][outa]")
            return ";".join(parts), "[outv]", "[outa]"

        return ";".join(parts), f"[{video_label}]", "0:a"

    def _brand_sync(
        self,
        input_path: Path,
        output_path: Path,
        watermark_file: Optional[Path],
        outro_file: Optional[Path],
    ) -> None:
        cmd = ["ffmpeg", "-y", "-i", str(input_path)]
        if watermark_file:
            cmd += ["-i", str(watermark_file)]
        if outro_file:
            cmd += ["-i", str(outro_file)]

        filter_complex, video_out, audio_out = self.build_branding_filter(
            watermark=bool(watermark_file), outro=bool(outro_file)
        )
        cmd += [
            "-filter_complex", filter_complex,
            "-map", video_out,
            "-map", audio_out,
            "-c:v", "libx264",
            "-pix_fmt", "yuv420p",
            "-c:a", "aac",
            "-movflags", "+faststart",
            str(output_path),
        ]

        steps = [name for name, on in (("watermark", watermark_file), ("outro", outro_file)) if on]
        run_ffmpeg(cmd, f"branding ({' + '.join(steps)})", AssembleFailedError)
