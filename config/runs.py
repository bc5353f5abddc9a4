# config/runs.py
# Run catalogue helpers
# =====================

"""
A run is a named batch of sources with an article count per source. The
catalogue itself lives in the configuration (``[[runs]]`` tables, with
built-in defaults for run1..run4); these helpers answer the questions the
launchers ask about it.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from newsroom.config_schema import Config, RunConfig, RunSourceConfig


def _runs(config: Config | None) -> Iterable[RunConfig]:
    if config is None:
        from config.settings import CONFIG

        config = CONFIG
    return config.runs


def list_runs(config: Config | None = None) -> List[RunConfig]:
    return list(_runs(config))


def get_run(run_id: str, config: Config | None = None) -> Optional[RunConfig]:
    """Return the run with ``run_id`` or ``None`` when it is not configured."""

    for run in _runs(config):
        if run.id == run_id:
            return run
    return None


def enabled_sources(
    run: RunConfig, known_sources: Iterable[str] | None = None
) -> List[RunSourceConfig]:
    """Return the run's collectable sources.

    Entries with a non-positive count are switched off. When
    ``known_sources`` is given, entries missing from it are skipped too.
    """

    known = set(known_sources) if known_sources is not None else None
    selected: List[RunSourceConfig] = []
    for entry in run.sources:
        if entry.count <= 0:
            continue
        if known is not None and entry.source not in known:
            continue
        selected.append(entry)
    return selected


def describe_run(run: RunConfig) -> str:
    state = "enabled" if run.enabled else "disabled"
    sources = ", ".join(f"{entry.source}x{entry.count}" for entry in run.sources)
    label = f" ({run.label})" if run.label else ""
    return f"{run.id}{label} [{state}]: {sources or 'no sources'}"
