from __future__ import annotations

import pytest

from config.runs import describe_run, enabled_sources, get_run, list_runs
from config.sources import ALL_SOURCES, get_source, get_sources_by_network, validate_sources
from newsroom.config_schema import DEFAULT_CONFIG, Config, RunConfig, RunSourceConfig
from src.collectors import build_sources_config


def test_default_catalogue_has_four_runs_with_only_the_first_enabled() -> None:
    runs = list_runs(DEFAULT_CONFIG)

    assert [run.id for run in runs] == ["run1", "run2", "run3", "run4"]
    assert [run.enabled for run in runs] == [True, False, False, False]


def test_every_default_run_references_catalogue_sources() -> None:
    for run in list_runs(DEFAULT_CONFIG):
        assert run.sources
        for entry in run.sources:
            assert entry.source in ALL_SOURCES, f"{run.id} -> {entry.source}"


def test_get_run_returns_none_for_unknown_ids() -> None:
    assert get_run("run1", DEFAULT_CONFIG).label == "Morning Run"
    assert get_run("run99", DEFAULT_CONFIG) is None


def test_enabled_sources_skips_zero_counts_and_unknown_sources() -> None:
    run = RunConfig(
        id="custom",
        sources=[
            RunSourceConfig(source="apNewsUS", count=2),
            RunSourceConfig(source="cbsUS", count=0),
            RunSourceConfig(source="yahooUSNews", count=-1),
            RunSourceConfig(source="madeUp", count=1),
        ],
    )

    assert [entry.source for entry in enabled_sources(run)] == ["apNewsUS", "madeUp"]
    assert [entry.source for entry in enabled_sources(run, ALL_SOURCES)] == ["apNewsUS"]


def test_build_sources_config_carries_counts() -> None:
    run = RunConfig(id="custom", sources=[RunSourceConfig(source="techCrunch", count=4)])

    sources = build_sources_config(run)

    assert list(sources) == ["techCrunch"]
    assert sources["techCrunch"]["count"] == 4
    assert sources["techCrunch"]["listing_url"] == ALL_SOURCES["techCrunch"]["listing_url"]
    assert "count" not in ALL_SOURCES["techCrunch"]


def test_describe_run() -> None:
    run = RunConfig(
        id="run5",
        label="Night",
        enabled=False,
        sources=[RunSourceConfig(source="apNewsUS", count=1)],
    )
    assert describe_run(run) == "run5 (Night) [disabled]: apNewsUSx1"
    assert describe_run(RunConfig(id="bare")) == "bare [enabled]: no sources"


def test_custom_config_runs_are_listed() -> None:
    config = Config.model_validate({"runs": [{"id": "solo", "sources": []}]})
    assert [run.id for run in list_runs(config)] == ["solo"]


def test_catalogue_is_well_formed() -> None:
    validate_sources()
    for source_id, source in ALL_SOURCES.items():
        assert source["listing_url"].startswith("https://"), source_id
        assert source["category"], source_id


def test_sources_by_network() -> None:
    cbs = get_sources_by_network("cbs")
    assert set(cbs) == {"cbsUS", "cbsWorld", "cbsPolitics"}
    assert get_source("cbsUS")["category"] == "U.S. News"
    assert get_source("nope") is None


@pytest.mark.parametrize("count", [0, -3])
def test_non_positive_counts_are_allowed_in_the_schema(count: int) -> None:
    assert RunSourceConfig(source="apNewsUS", count=count).count == count
