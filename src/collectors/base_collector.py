# src/collectors/base_collector.py
# Base class for every collector in the system
# ============================================

"""
The base collector fixes the control flow that every source shares:

    for each source: pre-hook -> collect_from_source -> stats -> post-hook

and isolates failures so one broken source never stops the batch. What
"collecting a source" means (HTML listing pages today) is left to
subclasses through ``collect_from_source``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from src.utils.logger import StructuredLogMixin, get_logger

if TYPE_CHECKING:  # pragma: no cover - import for typing only
    from src.utils.logger import NewsroomLogger


def empty_source_result(source_id: str, error_message: Optional[str] = None) -> Dict[str, Any]:
    return {
        "source_id": source_id,
        "success": error_message is None,
        "articles_found": 0,
        "articles_saved": 0,
        "articles": [],
        "output_path": None,
        "error_message": error_message,
        "processing_time": 0.0,
    }


class BaseCollector(StructuredLogMixin, ABC):
    """
    Abstract base for collectors.

    Uses the Template Method pattern: ``collect_from_multiple_sources`` owns
    the loop, the statistics and the report; subclasses provide the
    per-source work.
    """

    def __init__(self, logger_factory: Optional["NewsroomLogger"] = None) -> None:
        self.collector_type = self.__class__.__name__
        self.start_time: Optional[datetime] = None
        self.stats = self._empty_stats()

        self.logger_factory: "NewsroomLogger" = logger_factory or get_logger()
        self.module_logger = self.logger_factory.create_module_logger(
            f"collectors.{self.collector_type.lower()}"
        )
        self._active_run_id: Optional[str] = None

    @abstractmethod
    def collect_from_source(
        self, source_id: str, source_config: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Collect one source.

        Returns a result dict:
        {
            'source_id': str,
            'success': bool,
            'articles_found': int,
            'articles_saved': int,
            'articles': List[dict],
            'output_path': Optional[str],
            'error_message': Optional[str],
            'processing_time': float
        }
        """

    def collect_from_multiple_sources(
        self,
        sources_config: Dict[str, Dict[str, Any]],
        *,
        run_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Collect every source in ``sources_config`` and return a report."""

        self._active_run_id = run_id
        self.start_time = datetime.now(timezone.utc)
        self._emit_log(
            "info",
            "collector.batch.start",
            details={"sources": len(sources_config)},
        )

        self.stats = self._empty_stats()
        source_results: Dict[str, Dict[str, Any]] = {}

        for source_id, source_config in sources_config.items():
            try:
                self._pre_process_source(source_id, source_config)
                source_result = self.collect_from_source(source_id, source_config)
                self._update_global_stats(source_result)
                self._post_process_source(source_id, source_config, source_result)
                source_results[source_id] = source_result

                succeeded = source_result.get("success", False)
                self._emit_log(
                    "info" if succeeded else "warning",
                    "collector.source.completed" if succeeded else "collector.source.failed",
                    source_id=source_id,
                    latency=float(source_result.get("processing_time") or 0.0),
                    details={
                        "articles_found": source_result.get("articles_found", 0),
                        "articles_saved": source_result.get("articles_saved", 0),
                        "error_message": source_result.get("error_message"),
                    },
                )
            except Exception as exc:  # per-source isolation boundary
                source_results[source_id] = empty_source_result(
                    source_id, f"Unexpected error: {exc}"
                )
                self.stats["total_errors"] += 1
                self._emit_log(
                    "error",
                    "collector.source.exception",
                    source_id=source_id,
                    details={"error": str(exc)},
                )

        end_time = datetime.now(timezone.utc)
        self.stats["processing_time_seconds"] = (
            end_time - (self.start_time or end_time)
        ).total_seconds()

        self._post_process_collection(source_results)
        report = self._generate_collection_report(source_results)

        self._emit_log(
            "info",
            "collector.batch.completed",
            latency=self.stats["processing_time_seconds"],
            details={
                "articles_saved": self.stats["total_articles_saved"],
                "articles_found": self.stats["total_articles_found"],
                "sources_processed": self.stats["total_sources_processed"],
                "errors": self.stats["total_errors"],
            },
        )
        self._active_run_id = None
        return report

    def _log_context(self) -> Dict[str, Any]:
        return {"run_id": self._active_run_id, "collector_type": self.collector_type}

    @staticmethod
    def _empty_stats() -> Dict[str, Any]:
        return {
            "total_sources_processed": 0,
            "total_articles_found": 0,
            "total_articles_saved": 0,
            "total_errors": 0,
            "processing_time_seconds": 0,
        }

    def _update_global_stats(self, source_result: Dict[str, Any]) -> None:
        self.stats["total_sources_processed"] += 1
        self.stats["total_articles_found"] += source_result.get("articles_found", 0)
        self.stats["total_articles_saved"] += source_result.get("articles_saved", 0)
        if not source_result.get("success", False):
            self.stats["total_errors"] += 1

    def _generate_collection_report(
        self, source_results: Dict[str, Dict[str, Any]]
    ) -> Dict[str, Any]:
        """Summarise the batch: totals, per-source details and failures."""

        processed = self.stats["total_sources_processed"]
        success_rate = 0.0
        if processed > 0:
            successful = sum(1 for result in source_results.values() if result["success"])
            success_rate = successful / processed * 100

        save_rate = 0.0
        if self.stats["total_articles_found"] > 0:
            save_rate = (
                self.stats["total_articles_saved"] / self.stats["total_articles_found"] * 100
            )

        return {
            "collection_summary": {
                "collector_type": self.collector_type,
                "start_time": self.start_time.isoformat() if self.start_time else None,
                "end_time": datetime.now(timezone.utc).isoformat(),
                "duration_seconds": self.stats["processing_time_seconds"],
                "sources_processed": processed,
                "articles_found": self.stats["total_articles_found"],
                "articles_saved": self.stats["total_articles_saved"],
                "errors_encountered": self.stats["total_errors"],
                "success_rate_percent": round(success_rate, 2),
                "save_rate_percent": round(save_rate, 2),
            },
            "source_details": source_results,
            "failed_sources": [
                {"source_id": source_id, "error_message": result["error_message"]}
                for source_id, result in source_results.items()
                if not result["success"]
            ],
            "recommendations": self._generate_recommendations(source_results),
        }

    def _generate_recommendations(
        self, source_results: Dict[str, Dict[str, Any]]
    ) -> List[str]:
        recommendations = []

        failed = [s for s, r in source_results.items() if not r["success"]]
        if failed and len(failed) > len(source_results) * 0.2:
            recommendations.append(
                f"Check selectors of failing sources - {len(failed)} sources failed"
            )

        total_found = sum(r["articles_found"] for r in source_results.values())
        total_saved = sum(r["articles_saved"] for r in source_results.values())
        if total_found > 0 and total_saved / total_found < 0.5:
            recommendations.append(
                "Low extraction rate - article page markup may have changed"
            )

        empty = [s for s, r in source_results.items() if r["success"] and r["articles_found"] == 0]
        if empty:
            recommendations.append(
                f"{len(empty)} sources returned no article links - review link selectors"
            )
        return recommendations

    # Hooks subclasses may override
    # =============================

    def _pre_process_source(self, source_id: str, source_config: Dict[str, Any]) -> None:
        pass

    def _post_process_source(
        self,
        source_id: str,
        source_config: Dict[str, Any],
        source_result: Dict[str, Any],
    ) -> None:
        pass

    def _post_process_collection(self, source_results: Dict[str, Dict[str, Any]]) -> None:
        pass

    # Common utilities
    # ================

    def is_healthy(self) -> bool:
        """Healthy while fewer than 30% of processed sources failed."""
        if self.stats["total_sources_processed"] == 0:
            return True
        error_rate = self.stats["total_errors"] / self.stats["total_sources_processed"]
        return error_rate < 0.3

