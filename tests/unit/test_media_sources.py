"""Unit tests for media source implementations.

Tests the provider chain members:
- LibraryMediaSource: internal clip library matched by key name
- PexelsVideoSource / PexelsPhotoSource: Pexels API
- PixabayVideoSource / PixabayPhotoSource: Pixabay API
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from scenestitch.models.media import MediaCandidate, MediaKind, MediaSource
from scenestitch.services.media_sources import (
    LibraryMediaSource,
    MediaProvider,
    PexelsPhotoSource,
    PexelsVideoSource,
    PixabayPhotoSource,
    PixabayVideoSource,
)
from scenestitch.services.media_sources.library import match_keys, normalize
from scenestitch.utils.retry import NetworkError


class TestMediaProviderBase:
    """Tests for the MediaProvider abstract base class."""

    def test_base_class_is_abstract(self):
        with pytest.raises(TypeError):
            MediaProvider()

    @pytest.mark.asyncio
    async def test_search_swallows_errors(self):
        class BrokenSource(MediaProvider):
            source = MediaSource.PEXELS
            kind = MediaKind.VIDEO

            async def find_candidates(self, subject):
                raise NetworkError("connection reset")

            def get_source_name(self):
                return "Broken"

        assert await BrokenSource().search("ocean") is None

    @pytest.mark.asyncio
    async def test_search_skips_used_locators(self, fake_media_provider):
        source = fake_media_provider({"ocean": ["a", "b", "c"]})

        candidate = await source.search("ocean", frozenset({"a", "b"}))

        assert candidate.locator == "c"

    @pytest.mark.asyncio
    async def test_search_returns_none_when_all_used(self, fake_media_provider):
        source = fake_media_provider({"ocean": ["a"]})
        assert await source.search("ocean", {"a"}) is None

    @pytest.mark.asyncio
    async def test_blank_subject_is_not_searched(self, fake_media_provider):
        source = fake_media_provider({"": ["a"]})

        assert await source.search("   ") is None
        assert source.queries == []


@pytest.mark.unit
class TestLibraryMatching:
    """Key ranking for the internal clip library."""

    KEYS = [
        "stock/paris-skyline.mp4",
        "stock/Eiffel_Tower_Night.mp4",
        "stock/tower-of-london.mp4",
        "stock/eiffel-crowds-tower.mov",
        "stock/mountain-eiffel.mp4",
    ]

    def test_normalize(self):
        assert normalize("Eiffel-Tower_Night!") == "eiffeltowernight"

    def test_tier_order(self):
        ranked = match_keys("Eiffel Tower", self.KEYS)

        assert ranked == [
            # whole subject as substring
            "stock/Eiffel_Tower_Night.mp4",
            # every word present
            "stock/eiffel-crowds-tower.mov",
            # one long word present, in listing order
            "stock/tower-of-london.mp4",
            "stock/mountain-eiffel.mp4",
        ]

    def test_short_words_do_not_match_loosely(self):
        # "tower" is five characters, "big" is three
        assert match_keys("big tower", ["stock/big-ben.mp4"]) == []

    def test_single_word_subject_uses_substring_only(self):
        assert match_keys("tower", self.KEYS) == [
            "stock/Eiffel_Tower_Night.mp4",
            "stock/tower-of-london.mp4",
            "stock/eiffel-crowds-tower.mov",
        ]

    def test_extension_is_not_matched(self):
        assert match_keys("mp4", ["stock/clip.mp4"]) == []

    def test_folder_names_are_not_matched(self):
        keys = ["paris/eiffel/sunset.mp4", "misc/eiffel-dusk.mp4"]
        assert match_keys("eiffel", keys) == ["misc/eiffel-dusk.mp4"]

    def test_empty_subject(self):
        assert match_keys("!!", self.KEYS) == []


@pytest.mark.unit
class TestLibraryMediaSource:
    """LibraryMediaSource against a stub storage."""

    def _storage(self, keys):
        storage = MagicMock()
        storage.list_keys = MagicMock(return_value=keys)
        return storage

    def test_not_configured_without_storage(self):
        source = LibraryMediaSource(None)
        assert source.is_configured() is False
        assert source.get_source_name() == "Library"

    @pytest.mark.asyncio
    async def test_search_returns_library_candidate(self):
        storage = self._storage(["clips/eiffel-tower.mp4", "clips/readme.txt"])
        source = LibraryMediaSource(storage, prefix="clips/")

        candidate = await source.search("eiffel tower")

        assert candidate == MediaCandidate(
            source=MediaSource.LIBRARY, kind=MediaKind.VIDEO, locator="clips/eiffel-tower.mp4"
        )
        assert candidate.is_remote is False
        storage.list_keys.assert_called_once_with("clips/")

    @pytest.mark.asyncio
    async def test_listing_filters_non_video_keys(self):
        source = LibraryMediaSource(self._storage(["a.mp4", "b.txt", "c.MOV", "d.jpg"]))
        assert await source.list_clips() == ["a.mp4", "c.MOV"]

    @pytest.mark.asyncio
    async def test_listing_is_cached(self):
        storage = self._storage(["a.mp4"])
        source = LibraryMediaSource(storage)

        await source.search("anything")
        await source.search("other")

        assert storage.list_keys.call_count == 1

    @pytest.mark.asyncio
    async def test_listing_error_means_no_candidate(self):
        storage = MagicMock()
        storage.list_keys = MagicMock(side_effect=RuntimeError("bucket gone"))
        source = LibraryMediaSource(storage)

        assert await source.search("ocean") is None


@pytest.mark.unit
class TestPexelsVideoSource:
    """Tests for PexelsVideoSource."""

    RESPONSE = {
        "videos": [
            {
                "id": 1,
                "url": "https://www.pexels.com/video/1/",
                "duration": 12,
                "video_files": [
                    {"quality": "sd", "width": 540, "height": 960, "link": "https://v/1-sd.mp4"},
                    {"quality": "hd", "width": 720, "height": 1280, "link": "https://v/1-hd720.mp4"},
                    {"quality": "hd", "width": 1080, "height": 1920, "link": "https://v/1-hd1080.mp4"},
                ],
            },
            {"id": 2, "video_files": []},
            {
                "id": 3,
                "duration": 7,
                "video_files": [
                    {"quality": "sd", "width": 360, "height": 640, "link": "https://v/3-sd.mp4"}
                ],
            },
        ]
    }

    def test_not_configured_without_key(self):
        source = PexelsVideoSource(None)
        assert source.is_configured() is False
        assert source.get_source_name() == "Pexels"

    def test_per_page_is_capped(self):
        assert PexelsVideoSource("key", per_page=500).per_page == 80

    @pytest.mark.asyncio
    async def test_search_without_key_makes_no_request(self):
        source = PexelsVideoSource(None)
        with patch.object(source, "_get_json", new=AsyncMock()) as get_json:
            assert await source.search("nature") is None
            get_json.assert_not_called()

    @pytest.mark.asyncio
    async def test_find_candidates_picks_best_rendition(self):
        source = PexelsVideoSource("test_key")
        with patch.object(source, "_get_json", new=AsyncMock(return_value=self.RESPONSE)) as get_json:
            candidates = await source.find_candidates("city")

        assert [c.locator for c in candidates] == ["https://v/1-hd1080.mp4", "https://v/3-sd.mp4"]
        first = candidates[0]
        assert first.source is MediaSource.PEXELS
        assert first.kind is MediaKind.VIDEO
        assert first.resolution == "1080x1920"
        assert first.duration == 12
        assert first.page_url == "https://www.pexels.com/video/1/"

        _, kwargs = get_json.call_args
        assert kwargs["params"]["query"] == "city"
        assert kwargs["params"]["orientation"] == "portrait"
        assert kwargs["headers"] == {"Authorization": "test_key"}

    @pytest.mark.asyncio
    async def test_empty_payload(self):
        source = PexelsVideoSource("test_key")
        with patch.object(source, "_get_json", new=AsyncMock(return_value={})):
            assert await source.search("city") is None


@pytest.mark.unit
class TestPexelsPhotoSource:
    @pytest.mark.asyncio
    async def test_photo_url_preference(self):
        source = PexelsPhotoSource("test_key")
        payload = {
            "photos": [
                {"src": {"large2x": "https://p/1-2x.jpg", "large": "https://p/1.jpg"}},
                {"src": {"original": "https://p/2-orig.jpg"}},
                {"src": {}},
            ]
        }
        with patch.object(source, "_get_json", new=AsyncMock(return_value=payload)):
            candidates = await source.find_candidates("forest")

        assert [c.locator for c in candidates] == ["https://p/1-2x.jpg", "https://p/2-orig.jpg"]
        assert all(c.kind is MediaKind.PHOTO for c in candidates)
        assert source.get_source_name() == "Pexels Images"


@pytest.mark.unit
class TestPixabaySources:
    """Tests for the Pixabay video and photo sources."""

    def test_per_page_is_clamped(self):
        assert PixabayVideoSource("key", per_page=1).per_page == 3
        assert PixabayPhotoSource("key", per_page=999).per_page == 200

    @pytest.mark.asyncio
    async def test_video_rendition_order(self):
        source = PixabayVideoSource("test_key")
        payload = {
            "hits": [
                {
                    "pageURL": "https://pixabay.com/videos/1/",
                    "duration": 20,
                    "videos": {
                        "large": {"url": "", "width": 0, "height": 0},
                        "medium": {"url": "https://x/1-medium.mp4", "width": 1280, "height": 720},
                        "small": {"url": "https://x/1-small.mp4", "width": 960, "height": 540},
                    },
                },
                {"videos": {}},
            ]
        }
        with patch.object(source, "_get_json", new=AsyncMock(return_value=payload)) as get_json:
            candidates = await source.find_candidates("waves")

        assert len(candidates) == 1
        assert candidates[0].locator == "https://x/1-medium.mp4"
        assert candidates[0].source is MediaSource.PIXABAY
        assert candidates[0].duration == 20
        params = get_json.call_args.kwargs["params"]
        assert params["key"] == "test_key"
        assert params["q"] == "waves"

    @pytest.mark.asyncio
    async def test_photo_hits(self):
        source = PixabayPhotoSource("test_key")
        payload = {
            "hits": [
                {"largeImageURL": "https://x/big.jpg", "imageWidth": 4000, "imageHeight": 6000},
                {"webformatURL": "https://x/web.jpg", "webformatWidth": 640, "webformatHeight": 960},
            ]
        }
        with patch.object(source, "_get_json", new=AsyncMock(return_value=payload)) as get_json:
            candidates = await source.find_candidates("desert")

        assert [c.locator for c in candidates] == ["https://x/big.jpg", "https://x/web.jpg"]
        assert candidates[1].resolution == "640x960"
        assert get_json.call_args.kwargs["params"]["image_type"] == "photo"
