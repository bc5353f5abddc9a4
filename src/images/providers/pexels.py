"""Pexels stock photo provider."""

from __future__ import annotations

from typing import Any, ClassVar, Dict, Mapping, Optional

from src.contracts import SelectedImageModel

from .base import StockPhotoProvider

PEXELS_LICENSE = "Pexels License"
PEXELS_LICENSE_URL = "https://www.pexels.com/license/"


class PexelsProvider(StockPhotoProvider):
    name: ClassVar[str] = "pexels"
    api_key_field: ClassVar[str] = "pexels_api_key"

    def _search(self, query: str) -> Optional[SelectedImageModel]:
        data = self._get_json(
            self.config.get("pexels_api_url", "https://api.pexels.com/v1/search"),
            {"query": query, "per_page": self.per_page},
            headers={"Authorization": str(self.api_key)},
        )
        if not data:
            return None
        photo = self._pick(data.get("photos") or [])
        if photo is None:
            return None
        return self.to_selected_image(photo)

    @staticmethod
    def to_selected_image(photo: Mapping[str, Any]) -> SelectedImageModel:
        src: Dict[str, Any] = photo.get("src") or {}
        photographer = photo.get("photographer") or None
        credit = f"Photo by {photographer} on Pexels" if photographer else "Photo via Pexels"
        return SelectedImageModel(
            source="pexels",
            url=src.get("original") or src.get("large2x") or src.get("large"),
            thumb_url=src.get("medium") or src.get("large") or src.get("small"),
            width=photo.get("width"),
            height=photo.get("height"),
            author_name=photographer,
            author_url=photo.get("photographer_url"),
            source_page_url=photo.get("url"),
            license=PEXELS_LICENSE,
            license_url=PEXELS_LICENSE_URL,
            image_description=photo.get("alt") or None,
            credit_provider="Pexels",
            credit_line=credit,
        )
