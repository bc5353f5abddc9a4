# main.py
# Main entry point of the newsroom pipeline
# =========================================

"""
Coordinates a run end to end:

- configuration and source catalogue validation
- collection of the run's sources into ``[runId]articles.json``
- processing (sanitize, rewrite, cover image) into
  ``[runId]processed-articles.json``
- a short report for the operator

Programmatic callers use ``NewsroomSystem``; cron and humans use the CLI
at the bottom of this file (or the friendlier ``run_pipeline.py``).
"""

import argparse
import signal
import sys
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from config import (
    ALL_SOURCES,
    COLLECTED_DIR,
    REWRITE_CONFIG,
    get_run,
    list_runs,
    validate_config,
    validate_sources,
)
from config.runs import describe_run, enabled_sources
from config.version import PROJECT_VERSION
from newsroom.config_schema import RunConfig
from src import PageCollector, RunOrchestrator, RunStore, collect_run, setup_logging
from src.collectors import RunCollectionResult
from src.lookups import tags_cache
from src.pipeline import RunSummary


class RunNotAvailableError(ValueError):
    """The requested run is unknown, or disabled and not forced."""


class NewsroomSystem:
    """
    Facade over the collectors, the run store and the orchestrator.

    Components can be injected (tests do); anything left out is built from
    the active configuration during ``initialize``.
    """

    def __init__(
        self,
        config_override: Optional[Dict[str, Any]] = None,
        *,
        store: Optional[RunStore] = None,
        collector: Optional[PageCollector] = None,
        orchestrator: Optional[RunOrchestrator] = None,
    ):
        self.system_id = str(uuid.uuid4())[:8]
        self.start_time = datetime.now(timezone.utc)
        self.config_override = config_override or {}

        self.store = store
        self.collector = collector
        self.orchestrator = orchestrator
        self.logger = None
        self.system_logger = None

        self.is_initialized = False
        self._stop_requested = False

    def initialize(self) -> bool:
        """
        Validate the configuration and build missing components.

        Returns:
            True when the system is ready, False otherwise
        """
        try:
            self._setup_logging()
            self.system_logger.info(
                {"event": "system.initialize.start", "details": {"system_id": self.system_id}}
            )

            self._validate_configuration()
            self._setup_components()

            self.is_initialized = True
            self.logger.log_system_startup(
                version=PROJECT_VERSION,
                config_summary={
                    "sources_configured": len(ALL_SOURCES),
                    "runs_configured": len(list_runs()),
                    "collected_dir": COLLECTED_DIR,
                    "rewrite_enabled": REWRITE_CONFIG.get("enabled", True),
                    "rewrite_model": REWRITE_CONFIG.get("model"),
                },
            )
            return True

        except Exception as e:
            if self.logger:
                self.logger.log_error_with_context(
                    e, {"system_id": self.system_id, "initialization_phase": "failed"}
                )
            return False

    # Public API
    # ==========

    def resolve_run(self, run_id: str, *, force: bool = False) -> RunConfig:
        """Return the configured run, refusing disabled runs unless forced."""
        run = get_run(run_id)
        if run is None:
            known = ", ".join(r.id for r in list_runs())
            raise RunNotAvailableError(f"Unknown run {run_id!r} (configured: {known})")
        if not run.enabled and not force:
            raise RunNotAvailableError(f"Run {run_id!r} is disabled; use --force to run it")
        return run

    def collect(self, run_id: str, *, force: bool = False) -> RunCollectionResult:
        self._require_initialized()
        run = self.resolve_run(run_id, force=force)
        return collect_run(run, collector=self.collector, store=self.store)

    def process(self, run_id: str, *, resume: bool = False) -> Optional[RunSummary]:
        self._require_initialized()
        return self.orchestrator.process_run(run_id, resume=resume)

    def run(
        self, run_id: str, *, force: bool = False, resume: bool = False
    ) -> Tuple[RunCollectionResult, Optional[RunSummary]]:
        """Collect the run, then process whatever was collected.

        An empty collection still processes an older collected file of the
        same run when one exists.
        """
        collection = self.collect(run_id, force=force)
        summary = None
        if collection.total > 0 or self.store.collected_path(run_id).exists():
            summary = self.process(run_id, resume=resume)
        return collection, summary

    def request_stop(self) -> None:
        """Ask the orchestrator to stop before the next article."""
        self._stop_requested = True
        if self.system_logger:
            self.system_logger.warning({"event": "system.stop_requested"})

    def get_system_statistics(self) -> Dict[str, Any]:
        runs = list_runs()
        return {
            "system_info": {
                "system_id": self.system_id,
                "start_time": self.start_time.isoformat(),
                "uptime_seconds": (
                    datetime.now(timezone.utc) - self.start_time
                ).total_seconds(),
                "collector_healthy": self.collector.is_healthy() if self.collector else None,
            },
            "configuration": {
                "total_sources": len(ALL_SOURCES),
                "runs": [run.id for run in runs],
                "enabled_runs": [run.id for run in runs if run.enabled],
                "rewrite_enabled": REWRITE_CONFIG.get("enabled", True),
            },
        }

    # Private setup
    # =============

    def _setup_logging(self):
        self.logger = setup_logging(self.config_override.get("logging"))
        self.system_logger = self.logger.create_module_logger("system")

    def _validate_configuration(self):
        validate_config()
        validate_sources()

    def _setup_components(self):
        if self.store is None:
            self.store = RunStore()
        if self.collector is None:
            self.collector = PageCollector(logger_factory=self.logger)
        if self.orchestrator is None:
            tags = tags_cache(logger_factory=self.logger)
            tags.load()
            self.orchestrator = RunOrchestrator(
                store=self.store,
                tags=tags,
                should_stop=lambda: self._stop_requested,
                persist_incrementally=bool(
                    self.config_override.get("persist_incrementally", True)
                ),
                logger_factory=self.logger,
            )

    def _require_initialized(self):
        if not self.is_initialized:
            raise RuntimeError("System not initialized. Call initialize() first.")

    @staticmethod
    def build_report(
        collection: RunCollectionResult, summary: Optional[RunSummary]
    ) -> Dict[str, Any]:
        collection_summary = collection.report.get("collection_summary", {})
        return {
            "run_id": collection.run_id,
            "collection": {
                "articles": collection.total,
                "output_path": str(collection.output_path) if collection.output_path else None,
                "sources_processed": collection_summary.get("sources_processed", 0),
                "failed_sources": collection.report.get("failed_sources", []),
                "recommendations": collection.report.get("recommendations", []),
            },
            "processing": summary.as_dict() if summary else None,
        }


def create_system(config_override: Optional[Dict[str, Any]] = None) -> NewsroomSystem:
    return NewsroomSystem(config_override)


def _print_runs() -> None:
    print("\nConfigured runs:")
    for run in list_runs():
        active = len(enabled_sources(run, ALL_SOURCES))
        print(f"  • {describe_run(run)}  ({active} collectable sources)")


def _print_collection(result: RunCollectionResult) -> None:
    summary = result.report.get("collection_summary", {})
    print("\n📥 COLLECTION:")
    print(f"  • Sources processed: {summary.get('sources_processed', 0)}")
    print(f"  • Articles collected: {result.total}")
    if result.output_path:
        print(f"  • Written to: {result.output_path}")
    for failed in result.report.get("failed_sources", []):
        print(f"  ⚠️  {failed['source_id']}: {failed['error_message']}")


def _print_processing(summary: Optional[RunSummary]) -> None:
    print("\n✍️  PROCESSING:")
    if summary is None:
        print("  • Nothing processed (rewrite disabled or no collected file)")
        return
    print(f"  • State: {summary.state}")
    print(f"  • Processed: {summary.processed}/{summary.total} (resumed {summary.resumed})")
    print(f"  • Failed: {summary.failed}")
    if summary.output_path:
        print(f"  • Written to: {summary.output_path}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Newsroom pipeline")
    actions = parser.add_mutually_exclusive_group(required=True)
    actions.add_argument("--run", metavar="RUN_ID", help="Collect and process a run")
    actions.add_argument(
        "--collect-only", metavar="RUN_ID", help="Collect a run without processing it"
    )
    actions.add_argument(
        "--process-only", metavar="RUN_ID", help="Process an already collected run"
    )
    actions.add_argument("--list-runs", action="store_true", help="List configured runs")
    parser.add_argument(
        "--force", action="store_true", help="Allow collecting a disabled run"
    )
    parser.add_argument(
        "--resume",
        action="store_true",
        help="Keep articles already processed in an existing processed file",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.list_runs:
        _print_runs()
        return 0

    system = create_system()
    if not system.initialize():
        print("❌ Initialization failed")
        return 1

    signal.signal(signal.SIGTERM, lambda *_: system.request_stop())

    try:
        if args.collect_only:
            _print_collection(system.collect(args.collect_only, force=args.force))
        elif args.process_only:
            _print_processing(system.process(args.process_only, resume=args.resume))
        else:
            collection, summary = system.run(args.run, force=args.force, resume=args.resume)
            _print_collection(collection)
            _print_processing(summary)

        print("\n✅ Done")
        return 0

    except RunNotAvailableError as e:
        print(f"\n❌ {e}")
        return 2
    except KeyboardInterrupt:
        print("\n⚠️  Interrupted by user")
        return 1
    except Exception as e:
        system.logger.log_error_with_context(e, {"system_id": system.system_id})
        print(f"\n❌ Error during execution: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
