"""Pixabay stock photo provider."""

from __future__ import annotations

from typing import Any, ClassVar, Mapping, Optional

from src.contracts import SelectedImageModel

from .base import StockPhotoProvider

PIXABAY_LICENSE = "Pixabay Content License"
PIXABAY_LICENSE_URL = "https://pixabay.com/service/license-summary/"


class PixabayProvider(StockPhotoProvider):
    name: ClassVar[str] = "pixabay"
    api_key_field: ClassVar[str] = "pixabay_api_key"

    def _search(self, query: str) -> Optional[SelectedImageModel]:
        data = self._get_json(
            self.config.get("pixabay_api_url", "https://pixabay.com/api/"),
            {
                "key": self.api_key,
                "q": query,
                "image_type": "photo",
                "per_page": self.per_page,
                "safesearch": "true",
            },
        )
        if not data:
            return None
        hit = self._pick(data.get("hits") or [])
        if hit is None:
            return None
        return self.to_selected_image(hit)

    @staticmethod
    def to_selected_image(hit: Mapping[str, Any]) -> SelectedImageModel:
        user = hit.get("user") or None
        credit = f"Image by {user} from Pixabay" if user else "Image via Pixabay"
        return SelectedImageModel(
            source="pixabay",
            url=hit.get("largeImageURL") or hit.get("webformatURL"),
            thumb_url=hit.get("webformatURL"),
            width=hit.get("imageWidth"),
            height=hit.get("imageHeight"),
            author_name=user,
            source_page_url=hit.get("pageURL"),
            license=PIXABAY_LICENSE,
            license_url=PIXABAY_LICENSE_URL,
            image_description=hit.get("tags") or None,
            credit_provider="Pixabay",
            credit_line=credit,
        )
