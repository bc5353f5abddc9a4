"""Contracts for image candidates and selected cover images."""

from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import Field

from .common import CamelModel

ImageSource = Literal["wikimedia", "pexels", "pixabay"]


class ImageCandidateModel(CamelModel):
    """Provider record normalised for scoring.

    Free-text fields may still contain markup; they are stripped only when
    a winner is mapped to credit fields.
    """

    title: str = ""
    url: Optional[str] = None
    thumb_url: Optional[str] = None
    width: int = 0
    height: int = 0
    mime: str = ""
    license_short_name: str = ""
    license_url: Optional[str] = None
    artist: str = ""
    credit: str = ""
    description: str = ""
    object_name: str = ""
    categories: List[str] = Field(default_factory=list)
    depicts: List[str] = Field(default_factory=list)
    exif: Dict[str, str] = Field(default_factory=dict)
    sha1: Optional[str] = None
    description_url: Optional[str] = None


class SelectedImageModel(CamelModel):
    """The cover image attached to a processed article."""

    source: ImageSource
    url: str
    thumb_url: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    mime: Optional[str] = None
    author_name: Optional[str] = None
    author_url: Optional[str] = None
    artist: Optional[str] = None
    source_page_url: Optional[str] = None
    license: Optional[str] = None
    license_short_name: Optional[str] = None
    license_url: Optional[str] = None
    image_title: Optional[str] = None
    image_description: Optional[str] = None
    attribution: Optional[str] = None
    credit_provider: Optional[str] = None
    credit_line: Optional[str] = None
    score: Optional[float] = None
    reasons: List[str] = Field(default_factory=list)
    sha1: Optional[str] = None
