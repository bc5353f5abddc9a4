from __future__ import annotations

import pytest

from src.contracts import ImageCandidateModel
from src.images.commons_scorer import (
    CommonsScorer,
    CommonsScoringOptions,
    base_filename_key,
    build_candidate,
    dedupe_candidates,
    infer_strict_entity_mode,
    resolution_boost,
    select_best,
)


def _candidate(**overrides) -> ImageCandidateModel:
    data = dict(
        title="File:Eiffel Tower at night.jpg",
        url="https://upload.wikimedia.org/eiffel.jpg",
        width=2400,
        height=1600,
        mime="image/jpeg",
        license_short_name="CC BY-SA 4.0",
        artist='<a href="https://commons.wikimedia.org/wiki/User:Jane">Jane Doe</a>',
        description="The Eiffel Tower lit at night",
        categories=["Category:Eiffel Tower", "Category:Photographs of Paris"],
        sha1="abc123",
    )
    data.update(overrides)
    return ImageCandidateModel(**data)


def test_relevant_photo_is_selected_with_reasons() -> None:
    selected = select_best("Eiffel Tower", [_candidate()])

    assert selected is not None
    assert selected.source == "wikimedia"
    assert selected.score == 126
    assert "Exact keyword phrase match (+35)" in selected.reasons
    assert "Photo-like categories (+8)" in selected.reasons
    assert selected.credit_line == "Photo by Jane Doe via Wikimedia Commons (CC BY-SA 4.0)"
    assert selected.author_name == "Jane Doe"
    assert selected.image_title == "Eiffel Tower at night.jpg"
    assert selected.source_page_url == (
        "https://commons.wikimedia.org/wiki/File%3AEiffel%20Tower%20at%20night.jpg"
    )


def test_depicts_match_outranks_category_match() -> None:
    by_depicts = _candidate(
        title="File:Portrait 1840.jpg",
        description="",
        categories=[],
        depicts=["Ada Lovelace"],
        width=2000,
        height=1333,
        sha1="a",
        artist="",
    )
    by_category = _candidate(
        title="File:Portrait 1838.jpg",
        description="",
        categories=["Category:Ada Lovelace"],
        width=2000,
        height=1333,
        sha1="b",
        artist="",
    )

    ranked = CommonsScorer().rank("Ada Lovelace", [by_category, by_depicts])

    assert [item.candidate.sha1 for item in ranked] == ["a", "b"]
    assert ranked[0].score > ranked[1].score
    assert "Depicts matches keyword (+60)" in ranked[0].reasons


def test_narrow_candidates_are_hard_filtered() -> None:
    scorer = CommonsScorer()
    narrow = _candidate(width=800, height=600)

    assert scorer.rank("Eiffel Tower", [narrow]) == []
    assert scorer.select_best("Eiffel Tower", [narrow]) is None


@pytest.mark.parametrize(
    "overrides",
    [
        {"license_short_name": "All rights reserved"},
        {"license_short_name": ""},
        {"url": "ftp://example.org/file.jpg"},
        {"mime": "image/svg+xml"},
        {"categories": ["Category:Maps of Paris", "Category:Eiffel Tower"]},
        {"title": "File:Eiffel Tower logo.jpg"},
    ],
)
def test_unusable_candidates_are_rejected(overrides) -> None:
    assert CommonsScorer().rank("Eiffel Tower", [_candidate(**overrides)]) == []


def test_map_keyword_lifts_the_non_photo_filter() -> None:
    candidate = _candidate(
        title="File:Map of Paris districts.jpg",
        description="Map of Paris districts",
        categories=["Category:Maps of Paris"],
    )
    assert CommonsScorer().rank("map of paris", [candidate])


def test_strict_mode_requires_the_entity_in_metadata() -> None:
    unrelated = _candidate(
        title="File:Sunset over the river.jpg",
        description="Sunset",
        categories=["Category:Sunsets"],
    )
    scorer = CommonsScorer()

    assert scorer.rank("Eiffel Tower", [unrelated]) == []
    assert scorer.rank("Eiffel Tower", [unrelated], strict_entity_match=False)


def test_same_hash_keeps_the_wider_file() -> None:
    small = _candidate(title="File:Tower small.jpg", width=1200, sha1="same")
    large = _candidate(title="File:Tower large.jpg", width=3000, sha1="same")

    kept = dedupe_candidates([small, large])

    assert len(kept) == 1
    assert kept[0].width == 3000


def test_same_base_filename_collapses_without_hash() -> None:
    first = _candidate(title="File:Eiffel_Tower (1).jpg", sha1=None, width=1000)
    second = _candidate(title="File:Eiffel Tower.png", sha1=None, width=1500)

    kept = dedupe_candidates([first, second])

    assert [item.width for item in kept] == [1500]


def test_weak_best_candidate_is_declined() -> None:
    weak = _candidate(
        title="File:IMG_1234.jpg",
        description="",
        categories=[],
        artist="",
        width=1000,
        height=1000,
    )
    scorer = CommonsScorer()

    ranked = scorer.rank("river", [weak])

    assert ranked and ranked[0].score < 55
    assert "Camera-dump filename pattern (-6)" in ranked[0].reasons
    assert scorer.select_best("river", [weak]) is None


def test_threshold_comes_from_options() -> None:
    options = CommonsScoringOptions.from_config({"min_accept_score": 200, "unknown": 1})
    assert select_best("Eiffel Tower", [_candidate()], options) is None


@pytest.mark.parametrize(
    "keyword, strict",
    [("river", False), ("Eiffel Tower", True), ("covid-19", True), ("two words", True)],
)
def test_strict_mode_inference(keyword: str, strict: bool) -> None:
    assert infer_strict_entity_mode(keyword) is strict


def test_helpers() -> None:
    assert base_filename_key("File:Some_Name (1).jpg") == "some_name"
    assert resolution_boost(3600) == 18
    assert resolution_boost(1400) == 6
    assert resolution_boost(899) == 0


def test_build_candidate_maps_imageinfo_pages() -> None:
    page = {
        "ns": 6,
        "title": "File:Bus stop.jpg",
        "imageinfo": [
            {
                "url": "https://upload.wikimedia.org/bus.jpg",
                "thumburl": "https://upload.wikimedia.org/thumb/bus.jpg",
                "descriptionurl": "https://commons.wikimedia.org/wiki/File:Bus_stop.jpg",
                "width": 3000,
                "height": 2000,
                "mime": "image/jpeg",
                "sha1": "f00",
                "extmetadata": {
                    "LicenseShortName": {"value": "CC BY 4.0"},
                    "Artist": {"value": "<b>Sam</b>"},
                    "ImageDescription": {"value": "A bus stop"},
                    "Model": {"value": "Canon EOS"},
                },
            }
        ],
        "categories": [{"ns": 14, "title": "Category:Buses"}],
    }

    candidate = build_candidate(page)

    assert candidate is not None
    assert candidate.license_short_name == "CC BY 4.0"
    assert candidate.categories == ["Category:Buses"]
    assert candidate.exif == {"Model": "Canon EOS"}
    assert candidate.thumb_url.endswith("thumb/bus.jpg")
    assert build_candidate({"title": "File:Missing.jpg", "missing": ""}) is None
