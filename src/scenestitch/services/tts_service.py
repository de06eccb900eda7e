"""TTS Service - per-scene narration through pluggable voice providers."""

import asyncio
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import boto3
import httpx
from botocore.exceptions import BotoCoreError, ClientError

from scenestitch.errors import SynthesisFailedError, UnsupportedVoiceProviderError
from scenestitch.models.scene import AudioAsset, Scene

logger = logging.getLogger(__name__)

ELEVENLABS_API_BASE = "https://api.elevenlabs.io/v1"
MIN_AUDIO_BYTES = 1024


class TTSServiceError(Exception):
    """Error from a voice provider."""


class VoiceProvider(ABC):
    """A speech backend that turns text into encoded audio."""

    name: str

    @abstractmethod
    async def synthesize(self, text: str, voice_id: str) -> bytes:
        """Return encoded audio for ``text``.

        Raises:
            TTSServiceError: If generation fails
        """

    async def close(self) -> None:
        """Release network resources."""


class PollyVoiceProvider(VoiceProvider):
    """AWS Polly, neural engine, mp3 output."""

    name = "polly"

    def __init__(
        self,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        region: str = "us-east-1",
        client=None,
    ):
        self._client = client or boto3.client(
            "polly",
            region_name=region,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
        )

    async def synthesize(self, text: str, voice_id: str) -> bytes:
        voice_id = voice_id.removeprefix("polly-")
        logger.info(f"[TTS] Polly synthesis: {len(text)} chars, voice {voice_id}")
        return await asyncio.to_thread(self._synthesize_sync, text, voice_id)

    def _synthesize_sync(self, text: str, voice_id: str) -> bytes:
        try:
            response = self._client.synthesize_speech(
                Text=text,
                VoiceId=voice_id,
                OutputFormat="mp3",
                Engine="neural",
            )
            stream = response["AudioStream"]
            try:
                return stream.read()
            finally:
                stream.close()
        except (ClientError, BotoCoreError, KeyError) as e:
            raise TTSServiceError(f"Polly synthesis failed: {e}") from e


class ElevenLabsVoiceProvider(VoiceProvider):
    """ElevenLabs text-to-speech REST API."""

    name = "elevenlabs"

    def __init__(
        self,
        api_key: Optional[str],
        model_id: str = "eleven_monolingual_v1",
        timeout: float = 120.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key or ""
        self.model_id = model_id
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def synthesize(self, text: str, voice_id: str) -> bytes:
        if not self.api_key:
            raise TTSServiceError("No ElevenLabs API key configured")

        logger.info(f"[TTS] ElevenLabs synthesis: {len(text)} chars, voice {voice_id}")
        try:
            response = await self.client.post(
                f"{ELEVENLABS_API_BASE}/text-to-speech/{voice_id}",
                json={"text": text, "model_id": self.model_id},
                headers={"xi-api-key": self.api_key, "Accept": "audio/mpeg"},
            )
            response.raise_for_status()
            return response.content

        except httpx.TimeoutException as e:
            raise TTSServiceError("ElevenLabs request timed out") from e
        except httpx.HTTPStatusError as e:
            detail = e.response.text[:200] if e.response.text else str(e)
            raise TTSServiceError(
                f"ElevenLabs error {e.response.status_code}: {detail}"
            ) from e
        except httpx.HTTPError as e:
            raise TTSServiceError(f"ElevenLabs request failed: {e}") from e

    async def close(self) -> None:
        await self.client.aclose()


class VoiceSynthesizer:
    """Writes one narration file per scene through a named provider.

    There is no fallback voice: any provider failure fails the scene.
    """

    def __init__(self, providers: list[VoiceProvider], min_audio_bytes: int = MIN_AUDIO_BYTES):
        self.providers = {p.name: p for p in providers}
        self.min_audio_bytes = min_audio_bytes

    def supports(self, provider: str) -> bool:
        return provider.lower() in self.providers

    async def synthesize(
        self, scene: Scene, voice_id: str, provider: str, work_dir: Path
    ) -> AudioAsset:
        """Synthesize narration for ``scene`` into ``work_dir``.

        Raises:
            UnsupportedVoiceProviderError: No provider registered under ``provider``
            SynthesisFailedError: Provider error or implausibly small audio
        """
        backend = self.providers.get((provider or "").lower())
        if backend is None:
            raise UnsupportedVoiceProviderError(
                f"Unsupported voice provider: {provider}", scene_index=scene.index
            )

        try:
            audio_bytes = await backend.synthesize(scene.text, voice_id)
        except TTSServiceError as e:
            raise SynthesisFailedError(str(e), scene_index=scene.index) from e

        if not audio_bytes or len(audio_bytes) < self.min_audio_bytes:
            raise SynthesisFailedError(
                f"Audio too small ({len(audio_bytes or b'')} bytes)", scene_index=scene.index
            )

        ext = self.file_extension_for_audio_format(self.detect_audio_format(audio_bytes))
        path = work_dir / f"{scene.id}-audio.{ext}"
        work_dir.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(path.write_bytes, audio_bytes)

        logger.info(f"[TTS] {scene.id}: {len(audio_bytes)} bytes via {backend.name}")
        return AudioAsset(scene_id=scene.id, path=path, provider=backend.name, voice_id=voice_id)

    async def close(self) -> None:
        for provider in self.providers.values():
            await provider.close()

    @staticmethod
    def detect_audio_format(audio_bytes: bytes) -> str:
        """Detect audio format from magic bytes."""
        if len(audio_bytes) >= 12 and audio_bytes[:4] == b"RIFF" and audio_bytes[8:12] == b"WAVE":
            return "wav"
        if audio_bytes[:3] == b"ID3" or (
            len(audio_bytes) >= 2
            and audio_bytes[0] == 0xFF
            and (audio_bytes[1] & 0xE0) == 0xE0
        ):
            return "mp3"
        if audio_bytes[:4] == b"OggS":
            return "ogg"
        return "bin"

    @staticmethod
    def file_extension_for_audio_format(audio_format: str) -> str:
        """Map audio format to file extension. Unknown payloads are treated as mp3."""
        return {
            "wav": "wav",
            "mp3": "mp3",
            "ogg": "ogg",
        }.get(audio_format, "mp3")
