# src/pipeline/run_store.py
# Run artifact files on disk
# ==========================

"""
Every run leaves two files in the collected directory:

    [run1]articles.json            written by collection
    [run1]processed-articles.json  written by processing

Field names inside both files are read by the CMS mapper, so the layout
is defined by ``src.contracts.run`` and serialised with camelCase keys.
I/O problems on these files are the only errors that stop a run; they
surface as ``RunArtifactError``.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError

from src.contracts import (
    CollectedArticlesFileModel,
    ProcessedArticlesFileModel,
    ProcessedEntryModel,
)
from src.utils.datetime_utils import isoformat_utc, utc_now


class RunArtifactError(RuntimeError):
    """A run's own collected or processed file could not be read or written."""


class RunStore:
    """Locate, read and atomically write the artifacts of runs."""

    def __init__(self, base_dir: Optional[Union[str, Path]] = None):
        if base_dir is None:
            from config.settings import COLLECTED_DIR

            base_dir = COLLECTED_DIR
        self.base_dir = Path(base_dir)

    def collected_path(self, run_id: str) -> Path:
        return self.base_dir / f"[{run_id}]articles.json"

    def processed_path(self, run_id: str) -> Path:
        return self.base_dir / f"[{run_id}]processed-articles.json"

    # Collected file
    # ==============

    def write_collected(
        self,
        run_id: str,
        articles: Iterable[Dict[str, Any]],
        *,
        path: Optional[Path] = None,
    ) -> Path:
        document = CollectedArticlesFileModel(
            run_id=run_id,
            collected_at=isoformat_utc(utc_now()),
            articles=list(articles),
        )
        target = path or self.collected_path(run_id)
        write_json_atomic(target, document.to_payload())
        return target

    def read_collected(
        self, run_id: str, path: Optional[Path] = None
    ) -> Optional[CollectedArticlesFileModel]:
        """Return the collected file, or ``None`` when it does not exist."""

        target = Path(path) if path else self.collected_path(run_id)
        if not target.exists():
            return None
        data = read_json(target)
        if isinstance(data, dict):
            data.setdefault("runId", run_id)
            data.setdefault("collectedAt", "")
            if not isinstance(data.get("articles"), list):
                raise RunArtifactError(f"{target.name} does not contain an articles array")
        try:
            return CollectedArticlesFileModel.model_validate(data)
        except ValidationError as exc:
            raise RunArtifactError(f"{target.name} is not a collected-articles file: {exc}") from exc

    # Processed file
    # ==============

    def write_processed(
        self,
        run_id: str,
        entries: List[ProcessedEntryModel],
        *,
        path: Optional[Path] = None,
    ) -> Path:
        document = ProcessedArticlesFileModel(
            run_id=run_id,
            processed_at=isoformat_utc(utc_now()),
            articles=list(entries),
        )
        target = path or self.processed_path(run_id)
        write_json_atomic(target, document.to_payload())
        return target

    def read_processed(
        self, run_id: str, path: Optional[Path] = None
    ) -> Optional[ProcessedArticlesFileModel]:
        target = Path(path) if path else self.processed_path(run_id)
        if not target.exists():
            return None
        try:
            return ProcessedArticlesFileModel.model_validate(read_json(target))
        except ValidationError as exc:
            raise RunArtifactError(f"{target.name} is not a processed-articles file: {exc}") from exc


def read_json(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except (OSError, ValueError) as exc:
        raise RunArtifactError(f"Failed to read {path}: {exc}") from exc


def write_json_atomic(path: Path, payload: Any) -> None:
    """Write ``payload`` next to ``path`` and swap it in with ``os.replace``."""

    tmp_path: Optional[Path] = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            prefix=".newsroom-",
            suffix=".json",
            dir=str(path.parent),
            delete=False,
        ) as tmp_handle:
            tmp_path = Path(tmp_handle.name)
            json.dump(payload, tmp_handle, ensure_ascii=False, indent=2)
        os.replace(tmp_path, path)
    except (OSError, TypeError, ValueError) as exc:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
        raise RunArtifactError(f"Failed to write {path}: {exc}") from exc
