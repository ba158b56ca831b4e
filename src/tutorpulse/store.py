# ABOUTME: File-backed record store holding one parquet file per collection.
# ABOUTME: Supplies filtered/ordered reads, checked writes, and snapshot loading.

from __future__ import annotations

import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import pandas as pd

from .records import (
    assessment_from_row,
    goal_from_row,
    parse_rows,
    session_from_row,
    student_from_row,
    subject_from_row,
)
from .report import AnalyticsSnapshot

COLLECTIONS = ("students", "subjects", "sessions", "assessments", "goals")

# collection -> (order column, descending) applied when loading a snapshot.
SNAPSHOT_QUERIES = {
    "students": ("name", False),
    "subjects": ("name", False),
    "sessions": ("scheduled_date", True),
    "assessments": ("assessed_at", True),
    "goals": ("created_at", True),
}

ROW_PARSERS = {
    "students": student_from_row,
    "subjects": subject_from_row,
    "sessions": session_from_row,
    "assessments": assessment_from_row,
    "goals": goal_from_row,
}


@dataclass(frozen=True)
class WriteResult:
    ok: bool
    record_id: Optional[str] = None
    error: Optional[str] = None


class RecordStore:
    """
    Minimal select/insert/update/delete over parquet files under `root`.

    Each call reads and rewrites the whole collection file; there are no
    transactions and no conflict detection between concurrent writers.
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def path_for(self, collection: str) -> Path:
        _check_collection(collection)
        return self.root / f"{collection}.parquet"

    def query(
        self,
        collection: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        frame = self._read(collection)
        if frame.empty:
            return []

        for column, value in (filters or {}).items():
            if column not in frame.columns:
                return []
            frame = frame[frame[column] == value]

        if order_by:
            if order_by not in frame.columns:
                raise ValueError(f"Cannot order '{collection}' by unknown column '{order_by}'.")
            frame = frame.sort_values(order_by, ascending=not descending, kind="mergesort", na_position="last")

        return frame.to_dict(orient="records")

    def insert(self, collection: str, row: Mapping[str, Any]) -> WriteResult:
        record = dict(row)
        record_id = str(record.get("id") or uuid.uuid4().hex)
        record["id"] = record_id
        record.setdefault("created_at", datetime.now(timezone.utc).isoformat())

        frame = self._read(collection)
        if not frame.empty and (frame["id"] == record_id).any():
            return WriteResult(ok=False, record_id=record_id, error=f"Duplicate id '{record_id}' in '{collection}'.")

        new_row = pd.DataFrame([record])
        frame = new_row if frame.empty else pd.concat([frame, new_row], ignore_index=True)
        return self._write(collection, frame, record_id)

    def update(self, collection: str, record_id: str, changes: Mapping[str, Any]) -> WriteResult:
        """
        Overwrite columns of one record. Ids are immutable; values are stored
        as given and only coerced when rows are parsed into records.
        """

        if "id" in changes:
            return WriteResult(ok=False, record_id=record_id, error=f"Cannot change the id of '{record_id}'.")
        frame = self._read(collection)
        if frame.empty or not (frame["id"] == record_id).any():
            return WriteResult(ok=False, record_id=record_id, error=f"No record '{record_id}' in '{collection}'.")
        mask = frame["id"] == record_id

        unknown = sorted(set(changes) - set(frame.columns))
        if unknown:
            return WriteResult(
                ok=False,
                record_id=record_id,
                error=f"Unknown column(s) for '{collection}': {', '.join(unknown)}.",
            )

        frame = frame.copy()
        for column, value in changes.items():
            frame[column] = frame[column].where(~mask, value)
        return self._write(collection, frame, record_id)

    def delete(self, collection: str, record_id: str) -> WriteResult:
        frame = self._read(collection)
        if frame.empty or not (frame["id"] == record_id).any():
            return WriteResult(ok=False, record_id=record_id, error=f"No record '{record_id}' in '{collection}'.")
        return self._write(collection, frame[frame["id"] != record_id], record_id)

    def _read(self, collection: str) -> pd.DataFrame:
        path = self.path_for(collection)
        if not path.exists():
            return pd.DataFrame()
        return pd.read_parquet(path)

    def _write(self, collection: str, frame: pd.DataFrame, record_id: str) -> WriteResult:
        path = self.path_for(collection)
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            frame.reset_index(drop=True).to_parquet(path, index=False)
        except (ValueError, TypeError, OSError) as exc:
            return WriteResult(ok=False, record_id=record_id, error=f"Failed to write '{collection}': {exc}")
        return WriteResult(ok=True, record_id=record_id)


def load_snapshot(store: RecordStore, tutor_id: Optional[str] = None) -> AnalyticsSnapshot:
    """
    Read every collection for one tutor and coerce rows into records.

    The five reads run in parallel and are awaited together; a failing read
    propagates its exception to the caller.
    """

    filters = {"tutor_id": tutor_id} if tutor_id else None

    def fetch(collection: str) -> List[Dict[str, Any]]:
        order_by, descending = SNAPSHOT_QUERIES[collection]
        return store.query(collection, filters=filters, order_by=order_by, descending=descending)

    with ThreadPoolExecutor(max_workers=len(COLLECTIONS)) as pool:
        futures = {collection: pool.submit(fetch, collection) for collection in COLLECTIONS}
        rows = {collection: future.result() for collection, future in futures.items()}

    return AnalyticsSnapshot(
        **{collection: tuple(parse_rows(rows[collection], ROW_PARSERS[collection])) for collection in COLLECTIONS}
    )


def _check_collection(collection: str) -> None:
    if collection not in COLLECTIONS:
        raise ValueError(f"Unsupported collection '{collection}'. Expected one of: {', '.join(COLLECTIONS)}.")
