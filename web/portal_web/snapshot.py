from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

from portal_web.errors import SnapshotError

logger = logging.getLogger(__name__)

SNAPSHOT_SECTIONS = (
    "genes",
    "profiles",
    "samples",
    "sample_lists",
    "profile_sample_lists",
    "genetic_alteration_rows",
    "mutations",
)


def load_snapshot(path: Path) -> Dict[str, List[Dict[str, Any]]]:
    """
    Load a portal snapshot JSON file.

    A snapshot is a mapping of section name to a list of records (see
    SNAPSHOT_SECTIONS). Missing sections are returned as empty lists; unknown
    sections are ignored with a warning.
    """

    if not path.exists():
        raise SnapshotError(f"Snapshot file not found at '{path}'.")
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise SnapshotError(
            f"Invalid snapshot JSON at '{path}': line {exc.lineno}, column {exc.colno}: {exc.msg}"
        ) from exc

    return normalize_snapshot(data, source=str(path))


def normalize_snapshot(data: Any, source: str = "<memory>") -> Dict[str, List[Dict[str, Any]]]:
    if not isinstance(data, dict):
        raise SnapshotError(f"Snapshot {source} must be a JSON object.")

    unknown = sorted(set(data) - set(SNAPSHOT_SECTIONS))
    if unknown:
        logger.warning(f"Ignoring unknown snapshot section(s) in {source}: {', '.join(unknown)}")

    sections: Dict[str, List[Dict[str, Any]]] = {}
    for name in SNAPSHOT_SECTIONS:
        records = data.get(name) or []
        if not isinstance(records, list):
            raise SnapshotError(f"Snapshot section '{name}' in {source} must be a list.")
        for idx, record in enumerate(records):
            if not isinstance(record, dict):
                raise SnapshotError(
                    f"Record #{idx} of snapshot section '{name}' in {source} must be an object."
                )
        sections[name] = records
    return sections


__all__ = ["SNAPSHOT_SECTIONS", "load_snapshot", "normalize_snapshot"]
