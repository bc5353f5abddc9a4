"""Image search backends used by the cascade."""

from .base import ImageProvider, StockPhotoProvider
from .pexels import PexelsProvider
from .pixabay import PixabayProvider
from .wikimedia import WikimediaProvider, format_user_agent

PROVIDER_CLASSES = {
    WikimediaProvider.name: WikimediaProvider,
    PexelsProvider.name: PexelsProvider,
    PixabayProvider.name: PixabayProvider,
}

__all__ = [
    "ImageProvider",
    "PROVIDER_CLASSES",
    "PexelsProvider",
    "PixabayProvider",
    "StockPhotoProvider",
    "WikimediaProvider",
    "format_user_agent",
]
