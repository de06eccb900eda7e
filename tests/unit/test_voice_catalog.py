"""Unit tests for the voice catalog."""

import pytest

from scenestitch.errors import InputValidationError
from scenestitch.services.voice_catalog import VOICES, Voice, VoiceCatalog


@pytest.fixture
def catalog():
    return VoiceCatalog()


@pytest.mark.unit
class TestVoiceCatalog:
    def test_ids_are_unique(self):
        ids = [v.id for v in VOICES]
        assert len(ids) == len(set(ids))

    def test_tiers(self, catalog):
        assert catalog.by_tier() == {"Pro": 12, "ASMR": 4, "Free": 8}

    def test_polly_voices_are_free(self, catalog):
        polly = [v for v in catalog.voices if v.provider == "polly"]
        assert polly
        assert all(v.tier == "Free" for v in polly)
        assert all("Amazon Polly" in v.description for v in polly)

    def test_get_by_id(self, catalog):
        voice = catalog.get("ZthjuvLPty3kTMaNKVKb")
        assert voice.name == "Mike (Pro)"
        assert voice.provider == "elevenlabs"

    def test_get_polly_prefixed_id(self, catalog):
        assert catalog.get("polly-Matthew").id == "Matthew"

    def test_get_unknown(self, catalog):
        assert catalog.get("nobody") is None
        assert catalog.get("") is None

    def test_resolve_unknown_voice(self, catalog):
        with pytest.raises(InputValidationError, match=r"Unknown voice \(nobody\)"):
            catalog.resolve("nobody")

    def test_resolve_provider_mismatch(self, catalog):
        with pytest.raises(InputValidationError):
            catalog.resolve("Matthew", provider="elevenlabs")

    def test_resolve_provider_match_ignores_case(self, catalog):
        assert catalog.resolve("Matthew", provider="Polly").provider == "polly"

    def test_resolve_disabled_voice(self):
        catalog = VoiceCatalog(
            [Voice("old", "Old Voice", "Retired", "polly", "Free", "male", disabled=True)]
        )
        with pytest.raises(InputValidationError, match="disabled"):
            catalog.resolve("old")

    def test_to_list(self, catalog):
        entries = catalog.to_list()

        assert len(entries) == len(VOICES)
        assert set(entries[0]) == {
            "id", "name", "description", "provider", "tier", "gender", "disabled",
        }
