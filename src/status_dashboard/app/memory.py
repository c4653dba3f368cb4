"""In-memory table store for local demo mode and tests."""

from __future__ import annotations

import itertools
import threading
from datetime import UTC, datetime
from typing import Any, Generic
from uuid import uuid4

from pydantic import ValidationError

from .models import SERVER_FIELDS
from .store import StoreError, TRecord


class InMemoryTableStore(Generic[TRecord]):
    """Process-local implementation of the table store protocol."""

    def __init__(self, *, table: str, record_model: type[TRecord]) -> None:
        self.table = table
        self.record_model = record_model
        self._rows: dict[str, TRecord] = {}
        # Insertion order breaks created_at ties so listing stays newest-first.
        self._sequence: dict[str, int] = {}
        self._counter = itertools.count()
        self._lock = threading.Lock()

    def list_rows(self) -> list[TRecord]:
        with self._lock:
            ordered = sorted(
                self._rows.values(),
                key=lambda row: (row.created_at, self._sequence[row.id or ""]),
                reverse=True,
            )
            return [row.model_copy(deep=True) for row in ordered]

    def insert_row(self, values: dict[str, Any]) -> TRecord:
        now = datetime.now(UTC)
        writable = {key: value for key, value in values.items() if key not in SERVER_FIELDS}
        try:
            record = self.record_model.model_validate(
                {**writable, "id": str(uuid4()), "created_at": now, "updated_at": now}
            )
        except ValidationError as exc:
            raise StoreError("insert", self.table, f"invalid row: {exc}") from exc
        with self._lock:
            self._rows[record.id] = record
            self._sequence[record.id] = next(self._counter)
        return record.model_copy(deep=True)

    def update_row(self, record_id: str, values: dict[str, Any]) -> TRecord | None:
        with self._lock:
            current = self._rows.get(record_id)
            if current is None:
                return None
            merged = current.model_dump()
            merged.update({k: v for k, v in values.items() if k not in {"id", "created_at"}})
            if "updated_at" not in values:
                merged["updated_at"] = datetime.now(UTC)
            try:
                updated = self.record_model.model_validate(merged)
            except ValidationError as exc:
                raise StoreError("update", self.table, f"invalid row: {exc}") from exc
            self._rows[record_id] = updated
            return updated.model_copy(deep=True)

    def delete_row(self, record_id: str) -> None:
        with self._lock:
            self._rows.pop(record_id, None)
            self._sequence.pop(record_id, None)
