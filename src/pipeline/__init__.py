"""Run processing: artifact files and the per-run orchestrator."""

from .orchestrator import RunOrchestrator, RunSummary
from .run_store import RunArtifactError, RunStore, read_json, write_json_atomic

__all__ = [
    "RunArtifactError",
    "RunOrchestrator",
    "RunStore",
    "RunSummary",
    "read_json",
    "write_json_atomic",
]
