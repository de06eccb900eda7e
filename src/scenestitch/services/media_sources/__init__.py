"""Media sources for scene footage: internal library plus stock APIs."""

from scenestitch.services.media_sources.base import MediaProvider, StockMediaProvider
from scenestitch.services.media_sources.library import LibraryMediaSource
from scenestitch.services.media_sources.pexels import PexelsPhotoSource, PexelsVideoSource
from scenestitch.services.media_sources.pixabay import PixabayPhotoSource, PixabayVideoSource

__all__ = [
    "MediaProvider",
    "StockMediaProvider",
    "LibraryMediaSource",
    "PexelsVideoSource",
    "PexelsPhotoSource",
    "PixabayVideoSource",
    "PixabayPhotoSource",
]
