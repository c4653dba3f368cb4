"""Table controller: the server-side state behind one dashboard table.

Terms used in this file:
- Edit buffer: uncommitted copy of a record held while adding or editing.
- Refresh: full re-fetch of the table after a successful write. Rows are never
  patched locally.
- Load sequence: counter stamped on every load so an older response that
  resolves late can be dropped instead of overwriting a newer list.
- Log and stop: a failed store call is logged and the controller stays where it
  was. There is no retry and nothing is shown to the user.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from functools import partial
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, Field

from .models import StatusRecord
from .store import StoreError, StoreOperation, TableStore
from .tables import DELETE_PROMPT, TableSpec

logger = logging.getLogger(__name__)

ControllerMode = Literal["idle", "adding", "editing"]
# Asked before a delete; returns True when the user agrees.
ConfirmPrompt = Callable[[str], bool]


@dataclass(frozen=True)
class Idle:
    mode: ClassVar[ControllerMode] = "idle"


@dataclass(frozen=True)
class Adding:
    buffer: StatusRecord
    mode: ClassVar[ControllerMode] = "adding"


@dataclass(frozen=True)
class Editing:
    record_id: str
    buffer: StatusRecord
    mode: ClassVar[ControllerMode] = "editing"


EditState = Idle | Adding | Editing


class TableSnapshot(BaseModel):
    """Serialisable view of one controller."""

    table: str
    label: str
    mode: ControllerMode
    editing_id: str | None = None
    buffer: dict[str, Any] | None = None
    rows: list[dict[str, Any]] = Field(default_factory=list)
    loading: bool = False
    pending_operation: StoreOperation | None = None


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class TableController:
    """Row list plus at most one in-progress add or edit for a single table."""

    def __init__(
        self,
        spec: TableSpec,
        store: TableStore[Any],
        *,
        discard_stale_loads: bool = True,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.spec = spec
        self.store = store
        self.discard_stale_loads = discard_stale_loads
        self._clock = clock or _utc_now
        self.rows: list[StatusRecord] = []
        self.state: EditState = Idle()
        self.loading = False
        self.pending_operation: StoreOperation | None = None
        self.refresh_count = 0
        self._load_seq = 0

    @property
    def is_idle(self) -> bool:
        return isinstance(self.state, Idle)

    @property
    def buffer(self) -> StatusRecord | None:
        if isinstance(self.state, Idle):
            return None
        return self.state.buffer

    @property
    def editing_id(self) -> str | None:
        return self.state.record_id if isinstance(self.state, Editing) else None

    @property
    def can_change_state(self) -> bool:
        # A pending write owns the edit state until it finishes.
        return self.pending_operation is None

    async def mount(self) -> bool:
        """Show the table again: drop any open form and fetch the rows."""
        if self.can_change_state:
            self.state = Idle()
        return await self.load()

    async def load(self) -> bool:
        """Fetch all rows newest first. On failure the current list is kept."""
        self._load_seq += 1
        seq = self._load_seq
        self.loading = True
        try:
            rows = await asyncio.to_thread(self.store.list_rows)
        except StoreError as exc:
            self._finish_load(seq)
            logger.error(
                "table_store event=fetch_error table=%s reason=%s",
                self.spec.table_name,
                exc,
            )
            return False

        if self.discard_stale_loads and seq != self._load_seq:
            logger.debug(
                "table_store event=stale_load_discarded table=%s seq=%d latest=%d",
                self.spec.table_name,
                seq,
                self._load_seq,
            )
            return False

        self.rows = rows
        self._finish_load(seq)
        return True

    async def refresh(self) -> bool:
        """Re-fetch the full list after a successful write."""
        self.refresh_count += 1
        return await self.load()

    def begin_add(self) -> bool:
        if not self.is_idle or not self.can_change_state:
            return False
        self.state = Adding(buffer=self.spec.new_record())
        return True

    def begin_edit(self, record_id: str) -> bool:
        if not self.is_idle or not self.can_change_state:
            return False
        row = self._find_row(record_id)
        if row is None:
            return False
        self.state = Editing(record_id=record_id, buffer=row.model_copy(deep=True))
        return True

    def set_field(self, name: str, raw: Any) -> bool:
        """Coerce one raw form value into the buffer."""
        state = self.state
        if isinstance(state, Idle) or not self.can_change_state:
            return False
        column = self.spec.column(name)
        if column is None:
            return False
        value = column.coerce(raw, getattr(state.buffer, name))
        self.state = replace(state, buffer=state.buffer.model_copy(update={name: value}))
        return True

    def set_fields(self, values: Mapping[str, Any]) -> None:
        for name, raw in values.items():
            self.set_field(name, raw)

    def cancel(self) -> bool:
        if not self.can_change_state:
            return False
        self.state = Idle()
        return True

    async def save(self) -> bool:
        """Persist the buffer: insert while adding, update while editing."""
        state = self.state
        if isinstance(state, Idle) or self.pending_operation is not None:
            return False

        operation: StoreOperation
        if isinstance(state, Adding):
            operation = "insert"
            call = partial(self.store.insert_row, state.buffer.insert_payload())
        else:
            operation = "update"
            payload = state.buffer.update_payload(updated_at=self._clock())
            call = partial(self.store.update_row, state.record_id, payload)

        self.pending_operation = operation
        try:
            written = await asyncio.to_thread(call)
        except StoreError as exc:
            logger.error(
                "table_store event=%s_error table=%s record_id=%s reason=%s",
                operation,
                self.spec.table_name,
                _record_id(state),
                exc,
            )
            return False
        finally:
            self.pending_operation = None

        logger.info(
            "table_store event=%s table=%s record_id=%s",
            operation,
            self.spec.table_name,
            written.id if written is not None else _record_id(state),
        )
        self.state = Idle()
        await self.refresh()
        return True

    async def delete(self, record_id: str, confirm: ConfirmPrompt) -> bool:
        """Delete one row once the user confirms."""
        if not self.is_idle or self.pending_operation is not None:
            return False
        if not confirm(DELETE_PROMPT):
            return False

        self.pending_operation = "delete"
        try:
            await asyncio.to_thread(self.store.delete_row, record_id)
        except StoreError as exc:
            logger.error(
                "table_store event=delete_error table=%s record_id=%s reason=%s",
                self.spec.table_name,
                record_id,
                exc,
            )
            return False
        finally:
            self.pending_operation = None

        logger.info(
            "table_store event=delete table=%s record_id=%s",
            self.spec.table_name,
            record_id,
        )
        await self.refresh()
        return True

    def snapshot(self) -> TableSnapshot:
        buffer = self.buffer
        return TableSnapshot(
            table=self.spec.key,
            label=self.spec.label,
            mode=self.state.mode,
            editing_id=self.editing_id,
            buffer=buffer.model_dump(mode="json") if buffer is not None else None,
            rows=[row.model_dump(mode="json") for row in self.rows],
            loading=self.loading,
            pending_operation=self.pending_operation,
        )

    def _find_row(self, record_id: str) -> StatusRecord | None:
        for row in self.rows:
            if row.id == record_id:
                return row
        return None

    def _finish_load(self, seq: int) -> None:
        # A superseded load leaves the flag to the newest one.
        if not self.discard_stale_loads or seq == self._load_seq:
            self.loading = False


def _record_id(state: EditState) -> str | None:
    return state.record_id if isinstance(state, Editing) else None
