"""Collection of a whole run into ``[runId]articles.json``."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from newsroom.config_schema import RunConfig

from src.pipeline.run_store import RunStore
from src.utils.logger import build_log_payload, get_logger

from .page_collector import PageCollector


@dataclass
class RunCollectionResult:
    run_id: str
    articles: List[Dict[str, Any]] = field(default_factory=list)
    output_path: Optional[Path] = None
    report: Dict[str, Any] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.articles)


def build_sources_config(
    run: RunConfig, catalogue: Optional[Dict[str, Dict[str, Any]]] = None
) -> Dict[str, Dict[str, Any]]:
    """Catalogue entries for the run's enabled sources, with their counts."""
    from config.runs import enabled_sources

    if catalogue is None:
        from config.sources import ALL_SOURCES

        catalogue = ALL_SOURCES
    return {
        entry.source: {**catalogue[entry.source], "count": entry.count}
        for entry in enabled_sources(run, catalogue)
    }


def collect_run(
    run: RunConfig,
    *,
    collector: Optional[PageCollector] = None,
    store: Optional[RunStore] = None,
    catalogue: Optional[Dict[str, Dict[str, Any]]] = None,
) -> RunCollectionResult:
    """Collect every enabled source of ``run`` and write the run file.

    Each article is tagged with ``origin`` (its source key). Nothing is
    written when the run produced no articles.
    """
    collector = collector or PageCollector()
    store = store or RunStore()
    sources = build_sources_config(run, catalogue)

    module_logger = (collector.logger_factory or get_logger()).create_module_logger(
        "collectors.run"
    )
    report = collector.collect_from_multiple_sources(sources, run_id=run.id)
    result = RunCollectionResult(run_id=run.id, report=report)

    for source_id, source_result in report["source_details"].items():
        for article in source_result.get("articles") or []:
            result.articles.append({**article, "origin": source_id})

    if result.articles:
        result.output_path = store.write_collected(run.id, result.articles)
        module_logger.info(
            build_log_payload(
                "collector.run.saved",
                run_id=run.id,
                details={"articles": result.total, "path": str(result.output_path)},
            )
        )
    else:
        module_logger.warning(build_log_payload("collector.run.empty", run_id=run.id))
    return result
