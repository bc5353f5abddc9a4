from __future__ import annotations

from src.contracts import SelectedImageModel
from src.images import ImageCascade, PexelsProvider, PixabayProvider, WikimediaProvider


class ScriptedProvider:
    def __init__(self, name, result=None, available=True, error=None):
        self.name = name
        self.result = result
        self.available = available
        self.error = error
        self.queries = []

    def search(self, keyword):
        self.queries.append(keyword)
        if self.error is not None:
            raise self.error
        return self.result


def _image(source: str) -> SelectedImageModel:
    return SelectedImageModel(source=source, url=f"https://img.example.test/{source}.jpg")


def test_first_hit_wins_in_order(logger_factory, stub_logger) -> None:
    first = ScriptedProvider("wikimedia")
    second = ScriptedProvider("pexels", _image("pexels"))
    third = ScriptedProvider("pixabay", _image("pixabay"))
    cascade = ImageCascade([first, second, third], logger_factory=logger_factory)

    image = cascade.resolve(" Harbour ", "Travel")

    assert image is not None and image.source == "pexels"
    assert first.queries == ["Harbour"]
    assert third.queries == []
    assert cascade.stats["resolved"] == 1
    resolved = stub_logger.find("images.cascade.resolved")[0]
    assert resolved["provider"] == "pexels"
    assert resolved["details"]["category"] == "Travel"


def test_no_provider_finds_anything(logger_factory, stub_logger) -> None:
    cascade = ImageCascade(
        [ScriptedProvider("wikimedia"), ScriptedProvider("pexels")], logger_factory=logger_factory
    )

    assert cascade.resolve("harbour") is None
    assert cascade.stats["no_image"] == 1
    assert stub_logger.find("images.cascade.no_image")[0]["details"]["tried"] == [
        "wikimedia",
        "pexels",
    ]


def test_failing_provider_only_loses_its_turn(logger_factory, stub_logger) -> None:
    broken = ScriptedProvider("wikimedia", error=RuntimeError("boom"))
    backup = ScriptedProvider("pixabay", _image("pixabay"))
    cascade = ImageCascade([broken, backup], logger_factory=logger_factory)

    image = cascade.resolve("harbour")

    assert image is not None and image.source == "pixabay"
    assert cascade.stats["provider_errors"] == 1
    assert stub_logger.find("images.cascade.provider_error")


def test_unavailable_providers_are_skipped(logger_factory, stub_logger) -> None:
    keyless = ScriptedProvider("pexels", _image("pexels"), available=False)
    cascade = ImageCascade([keyless], logger_factory=logger_factory)

    assert cascade.resolve("harbour") is None
    assert keyless.queries == []
    assert stub_logger.find("images.cascade.provider_skipped")


def test_empty_keyword_short_circuits(logger_factory, stub_logger) -> None:
    provider = ScriptedProvider("wikimedia", _image("wikimedia"))
    cascade = ImageCascade([provider], logger_factory=logger_factory)

    assert cascade.resolve("   ", "Science") is None
    assert provider.queries == []
    assert stub_logger.find("images.cascade.empty_keyword")


def test_from_config_respects_provider_order(logger_factory) -> None:
    config = {
        "provider_order": ["pixabay", "wikimedia", "pexels"],
        "per_page": 5,
        "commons": {},
    }

    cascade = ImageCascade.from_config(config, logger_factory=logger_factory)

    assert [type(provider) for provider in cascade.providers] == [
        PixabayProvider,
        WikimediaProvider,
        PexelsProvider,
    ]
