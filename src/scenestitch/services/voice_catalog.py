"""Catalog of narration voices offered to callers."""

import logging
from dataclasses import asdict, dataclass
from typing import Optional

from scenestitch.errors import InputValidationError

logger = logging.getLogger(__name__)

POLLY_FREE_TIER = "Amazon Polly, {gender}, {accent} English (Neural) - Free with AWS Free Tier"


@dataclass(frozen=True)
class Voice:
    """A selectable narration voice."""

    id: str
    name: str
    description: str
    provider: str  # "elevenlabs" or "polly"
    tier: str  # "Pro", "ASMR" or "Free"
    gender: str
    disabled: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


def _polly(voice_id: str, label: str, gender: str, accent: str) -> Voice:
    return Voice(
        id=voice_id,
        name=f"{voice_id} ({label})",
        description=POLLY_FREE_TIER.format(gender=gender.title(), accent=accent),
        provider="polly",
        tier="Free",
        gender=gender,
    )


VOICES: list[Voice] = [
    # ElevenLabs Pro
    Voice("ZthjuvLPty3kTMaNKVKb", "Mike (Pro)", "ElevenLabs, Deep US Male", "elevenlabs", "Pro", "male"),
    Voice("6F5Zhi321D3Oq7v1oNT4", "Jackson (Pro)", "ElevenLabs, Movie Style Narration", "elevenlabs", "Pro", "male"),
    Voice("p2ueywPKFXYa6hdYfSIJ", "Tyler (Pro)", "ElevenLabs, US Male Friendly", "elevenlabs", "Pro", "male"),
    Voice("EXAVITQu4vr4xnSDxMaL", "Olivia (Pro)", "ElevenLabs, Warm US Female", "elevenlabs", "Pro", "female"),
    Voice("FUfBrNit0NNZAwb58KWH", "Emily (Pro)", "ElevenLabs, Conversational US Female", "elevenlabs", "Pro", "female"),
    Voice("xctasy8XvGp2cVO9HL9k", "Sophia (Pro Kid)", "ElevenLabs, US Female Young", "elevenlabs", "Pro", "female"),
    Voice("goT3UYdM9bhm0n2lmKQx", "James (Pro UK)", "ElevenLabs, British Male", "elevenlabs", "Pro", "male"),
    Voice("19STyYD15bswVz51nqLf", "Amelia (Pro UK)", "ElevenLabs, British Female", "elevenlabs", "Pro", "female"),
    Voice("2h7ex7B1yGrkcLFI8zUO", "Pierre (Pro FR)", "ElevenLabs, French Male", "elevenlabs", "Pro", "male"),
    Voice("xNtG3W2oqJs0cJZuTyBc", "Claire (Pro FR)", "ElevenLabs, French Female", "elevenlabs", "Pro", "female"),
    Voice("IP2syKL31S2JthzSSfZH", "Diego (Pro ES)", "ElevenLabs, Spanish Accent Male", "elevenlabs", "Pro", "male"),
    Voice("WLjZnm4PkNmYtNCyiCq8", "Lucia (Pro ES)", "ElevenLabs, Spanish Accent Female", "elevenlabs", "Pro", "female"),
    # ElevenLabs ASMR
    Voice("zA6D7RyKdc2EClouEMkP", "Aimee (ASMR Pro)", "Female British Meditation ASMR", "elevenlabs", "ASMR", "female"),
    Voice("RCQHZdatZm4oG3N6Nwme", "Dr. Lovelace (ASMR Pro)", "Pro Whisper ASMR", "elevenlabs", "ASMR", "female"),
    Voice("RBknfnzK8KHNwv44gIrh", "James Whitmore (ASMR Pro)", "Gentle Whisper ASMR", "elevenlabs", "ASMR", "male"),
    Voice("GL7nH05mDrxcH1JPJK5T", "Aimee (ASMR Gentle)", "ASMR Gentle Whisper", "elevenlabs", "ASMR", "female"),
    # Polly free tier
    _polly("Matthew", "US Male", "male", "US"),
    _polly("Joey", "US Male", "male", "US"),
    _polly("Brian", "British Male", "male", "British"),
    _polly("Russell", "Australian Male", "male", "Australian"),
    _polly("Joanna", "US Female", "female", "US"),
    _polly("Kimberly", "US Female", "female", "US"),
    _polly("Amy", "British Female", "female", "British"),
    _polly("Salli", "US Female", "female", "US"),
]

POLLY_PREFIX = "polly-"


class VoiceCatalog:
    """Lookup over the voice list, keyed by voice id."""

    def __init__(self, voices: Optional[list[Voice]] = None):
        self.voices = list(VOICES if voices is None else voices)
        self._by_id = {v.id: v for v in self.voices}

    def get(self, voice_id: str) -> Optional[Voice]:
        """Find a voice by id. ``polly-Matthew`` resolves to ``Matthew``."""
        if not voice_id:
            return None
        voice = self._by_id.get(voice_id)
        if voice is None and voice_id.startswith(POLLY_PREFIX):
            voice = self._by_id.get(voice_id[len(POLLY_PREFIX):])
        return voice

    def resolve(self, voice_id: str, provider: Optional[str] = None) -> Voice:
        """Validate a caller's voice choice.

        Args:
            voice_id: Voice id from the catalog
            provider: Explicit provider name, if the caller gave one

        Returns:
            The catalog voice

        Raises:
            InputValidationError: Unknown or disabled voice, or a provider
                that does not match the catalog entry
        """
        voice = self.get(voice_id)
        if voice is None:
            raise InputValidationError(f"Unknown voice ({voice_id})")
        if voice.disabled:
            raise InputValidationError(f"Voice is disabled: {voice_id}")
        if provider and provider.lower() != voice.provider:
            raise InputValidationError(
                f"Voice {voice_id} belongs to {voice.provider}, not {provider}"
            )
        return voice

    def by_tier(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for voice in self.voices:
            counts[voice.tier] = counts.get(voice.tier, 0) + 1
        return counts

    def to_list(self) -> list[dict]:
        return [v.to_dict() for v in self.voices]
