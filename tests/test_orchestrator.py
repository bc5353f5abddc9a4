from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import pytest

from src.contracts import RewriteResponseModel, SelectedImageModel
from src.pipeline import RunArtifactError, RunOrchestrator, RunStore
from src.sanitizer import ArticleSanitizer

ARTICLES = [
    {
        "url": "https://news.example.test/a",
        "title": "Flood warning issued",
        "category": "Weather",
        "body": "Rivers are rising.\nRelated Stories\nSomething else",
        "origin": "exampleWeather",
    },
    {
        "url": "https://news.example.test/b",
        "title": "Council vote delayed",
        "category": "Politics",
        "body": "The vote moved to June.",
        "origin": "examplePolitics",
    },
    {
        "url": "https://news.example.test/c",
        "title": "New tram line opens",
        "category": "Transport",
        "body": "Trams started running today.",
        "origin": "exampleTransport",
    },
]


class FakeGateway:
    def __init__(self, fail_urls=()):
        self.fail_urls = set(fail_urls)
        self.calls: List[dict] = []

    def rewrite(self, article, *, body=None, available_tags=(), article_index=None):
        self.calls.append(
            {"url": article.url, "body": body, "tags": list(available_tags), "index": article_index}
        )
        if article.url in self.fail_urls:
            return None
        return RewriteResponseModel(
            title=f"Rewritten: {article.title}",
            ticker_title="Short",
            excerpt="Excerpt.",
            body="Rewritten body.",
            image_keyword=article.category or "News",
            tags=["One", "Two", "Three"],
        )


class FakeCascade:
    def __init__(self, result: Optional[SelectedImageModel] = None, error: Exception = None):
        self.result = result
        self.error = error
        self.queries = []

    def resolve(self, keyword, category=None):
        self.queries.append((keyword, category))
        if self.error is not None:
            raise self.error
        return self.result


class FakeTags:
    def labels(self):
        return ["Weather", "Politics"]


def _orchestrator(tmp_path: Path, logger_factory, **overrides) -> RunOrchestrator:
    params = dict(
        gateway=FakeGateway(),
        cascade=FakeCascade(
            SelectedImageModel(source="pexels", url="https://img.example.test/1.jpg")
        ),
        sanitizer=ArticleSanitizer(),
        store=RunStore(tmp_path),
        tags=FakeTags(),
        config={"enabled": True, "request_delay_ms": 2500},
        sleep=overrides.pop("sleep", lambda seconds: None),
        logger_factory=logger_factory,
    )
    params.update(overrides)
    return RunOrchestrator(**params)


def _seed(tmp_path: Path, articles=ARTICLES) -> RunStore:
    store = RunStore(tmp_path)
    store.write_collected("run1", articles)
    return store


def _processed_file(tmp_path: Path) -> dict:
    return json.loads((tmp_path / "[run1]processed-articles.json").read_text(encoding="utf-8"))


def test_failed_article_is_kept_with_null_result(tmp_path: Path, logger_factory, stub_logger) -> None:
    _seed(tmp_path)
    sleeps = []
    gateway = FakeGateway(fail_urls={"https://news.example.test/b"})
    orchestrator = _orchestrator(tmp_path, logger_factory, gateway=gateway, sleep=sleeps.append)

    summary = orchestrator.process_run("run1")

    assert summary is not None
    assert (summary.total, summary.processed, summary.failed) == (3, 2, 1)
    assert summary.failures == [1]
    assert summary.state == "completed"

    data = _processed_file(tmp_path)
    assert data["runId"] == "run1"
    assert data["totalArticles"] == 3
    assert [entry["original"]["url"] for entry in data["articles"]] == [
        article["url"] for article in ARTICLES
    ]
    assert data["articles"][1]["processed"] is None
    first = data["articles"][0]["processed"]
    assert first["title"] == "Rewritten: Flood warning issued"
    assert first["category"] == "Weather"
    assert first["image"]["source"] == "pexels"

    # Two gaps between three calls, none before the first.
    assert sleeps == [2.5, 2.5]
    assert [call["index"] for call in gateway.calls] == [0, 1, 2]
    assert gateway.calls[0]["tags"] == ["Weather", "Politics"]
    assert gateway.calls[0]["body"] == "Rivers are rising."
    assert stub_logger.find("pipeline.article.failed")[0]["article_index"] == 1
    sanitized = stub_logger.find("pipeline.article.sanitized")[0]
    assert sanitized["article_index"] == 0
    assert sanitized["details"]["cut_off"] is True
    assert sanitized["details"]["lines_kept"] == 1


def test_image_failures_never_fail_the_article(tmp_path: Path, logger_factory, stub_logger) -> None:
    _seed(tmp_path, ARTICLES[:1])
    orchestrator = _orchestrator(
        tmp_path, logger_factory, cascade=FakeCascade(error=RuntimeError("provider down"))
    )

    summary = orchestrator.process_run("run1")

    assert summary.processed == 1
    assert _processed_file(tmp_path)["articles"][0]["processed"]["image"] is None
    assert stub_logger.find("pipeline.image.failed")


def test_invalid_raw_article_is_isolated(tmp_path: Path, logger_factory, stub_logger) -> None:
    _seed(tmp_path, [{"title": "no url"}, ARTICLES[2]])
    orchestrator = _orchestrator(tmp_path, logger_factory)

    summary = orchestrator.process_run("run1")

    assert (summary.processed, summary.failed) == (1, 1)
    assert stub_logger.find("pipeline.article.invalid")


def test_resume_reuses_successful_entries(tmp_path: Path, logger_factory) -> None:
    _seed(tmp_path)
    first_gateway = FakeGateway(fail_urls={"https://news.example.test/b"})
    _orchestrator(tmp_path, logger_factory, gateway=first_gateway).process_run("run1")

    second_gateway = FakeGateway()
    summary = _orchestrator(tmp_path, logger_factory, gateway=second_gateway).process_run(
        "run1", resume=True
    )

    assert [call["url"] for call in second_gateway.calls] == ["https://news.example.test/b"]
    assert (summary.resumed, summary.processed, summary.failed) == (2, 3, 0)
    assert all(entry["processed"] for entry in _processed_file(tmp_path)["articles"])


def test_stop_request_ends_the_run_early(tmp_path: Path, logger_factory) -> None:
    _seed(tmp_path)
    gateway = FakeGateway()
    orchestrator = _orchestrator(
        tmp_path,
        logger_factory,
        gateway=gateway,
        should_stop=lambda: len(gateway.calls) >= 1,
        persist_incrementally=True,
    )

    summary = orchestrator.process_run("run1")

    assert summary.stopped is True
    assert summary.state == "stopped"
    assert len(gateway.calls) == 1
    assert _processed_file(tmp_path)["totalArticles"] == 1



def test_stopped_resume_keeps_results_it_did_not_reach(tmp_path: Path, logger_factory) -> None:
    _seed(tmp_path)
    first_gateway = FakeGateway(fail_urls={"https://news.example.test/a"})
    _orchestrator(tmp_path, logger_factory, gateway=first_gateway).process_run("run1")

    second_gateway = FakeGateway()
    summary = _orchestrator(
        tmp_path,
        logger_factory,
        gateway=second_gateway,
        should_stop=lambda: len(second_gateway.calls) >= 1,
        persist_incrementally=True,
    ).process_run("run1", resume=True)

    assert summary.stopped is True
    assert [call["url"] for call in second_gateway.calls] == ["https://news.example.test/a"]
    data = _processed_file(tmp_path)
    assert data["totalArticles"] == 3
    assert [entry["original"]["url"] for entry in data["articles"]] == [
        article["url"] for article in ARTICLES
    ]
    assert all(entry["processed"] for entry in data["articles"])


def test_earlier_results_are_dropped_once_urls_diverge(tmp_path: Path, logger_factory) -> None:
    _seed(tmp_path)
    _orchestrator(tmp_path, logger_factory).process_run("run1")
    changed = [ARTICLES[0], {**ARTICLES[1], "url": "https://news.example.test/b2"}, ARTICLES[2]]
    _seed(tmp_path, changed)

    gateway = FakeGateway()
    _orchestrator(
        tmp_path, logger_factory, gateway=gateway, should_stop=lambda: True
    ).process_run("run1", resume=True)

    assert gateway.calls == []
    assert _processed_file(tmp_path)["totalArticles"] == 1

def test_disabled_rewrite_does_nothing(tmp_path: Path, logger_factory, stub_logger) -> None:
    _seed(tmp_path)
    gateway = FakeGateway()
    orchestrator = _orchestrator(
        tmp_path, logger_factory, gateway=gateway, config={"enabled": False}
    )

    assert orchestrator.process_run("run1") is None
    assert gateway.calls == []
    assert not (tmp_path / "[run1]processed-articles.json").exists()
    assert stub_logger.find("pipeline.rewrite_disabled")


def test_missing_collected_file_returns_none(tmp_path: Path, logger_factory, stub_logger) -> None:
    orchestrator = _orchestrator(tmp_path, logger_factory)

    assert orchestrator.process_run("run1") is None
    assert stub_logger.find("pipeline.collected_missing")[0]["run_id"] == "run1"


def test_corrupt_collected_file_stops_the_run(tmp_path: Path, logger_factory) -> None:
    (tmp_path / "[run1]articles.json").write_text("{oops", encoding="utf-8")
    orchestrator = _orchestrator(tmp_path, logger_factory)

    with pytest.raises(RunArtifactError):
        orchestrator.process_run("run1")


def test_explicit_path_can_be_processed(tmp_path: Path, logger_factory) -> None:
    other = tmp_path / "elsewhere.json"
    RunStore(tmp_path).write_collected("run1", ARTICLES[:1], path=other)

    summary = _orchestrator(tmp_path, logger_factory).process_file("run1", other)

    assert summary.processed == 1
    assert summary.output_path == tmp_path / "[run1]processed-articles.json"
