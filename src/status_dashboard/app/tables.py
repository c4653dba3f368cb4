"""Column layout for the DRN and UCM tables."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Literal

from .models import (
    FLAG_BADGES,
    REVIEW_STATUS_BADGES,
    REVIEW_STATUS_OPTIONS,
    WORK_STATUS_BADGES,
    WORK_STATUS_OPTIONS,
    BadgeTone,
    DRNStatus,
    StatusRecord,
    UCMStatus,
    coerce_choice,
    coerce_date,
    coerce_flag,
    coerce_int,
    coerce_text,
)

ColumnKind = Literal["text", "number", "date", "choice", "flag", "note"]
TableKey = Literal["drn", "ucm"]

DELETE_PROMPT = "Are you sure you want to delete this item?"
EMPTY_TABLE_MESSAGE = 'No items found. Click "Add New" to create one.'


@dataclass(frozen=True)
class Column:
    """One editable column of a table."""

    field: str
    header: str
    kind: ColumnKind = "text"
    options: tuple[str, ...] = ()
    badges: Mapping[Any, BadgeTone] | None = None
    placeholder: str = ""
    minimum: int | None = None
    # Render "-" for an empty value.
    dash_when_empty: bool = False

    def coerce(self, raw: Any, current: Any) -> Any:
        if self.kind == "number":
            return coerce_int(raw, minimum=self.minimum)
        if self.kind == "date":
            return coerce_date(raw)
        if self.kind == "flag":
            return coerce_flag(raw)
        if self.kind == "choice":
            return coerce_choice(raw, self.options, current)
        return coerce_text(raw)


@dataclass(frozen=True)
class TableSpec:
    """Everything the controller and renderer need to know about one table."""

    key: TableKey
    label: str
    table_name: str
    record_model: type[StatusRecord]
    columns: tuple[Column, ...] = field(default_factory=tuple)

    @property
    def column_count(self) -> int:
        # Trailing "Actions" column.
        return len(self.columns) + 1

    def column(self, name: str) -> Column | None:
        for column in self.columns:
            if column.field == name:
                return column
        return None

    def new_record(self) -> StatusRecord:
        """Blank buffer for an add: first enum option, zero counts, no flag."""
        return self.record_model()


DRN_TABLE = TableSpec(
    key="drn",
    label="DRN Status",
    table_name="drn_status",
    record_model=DRNStatus,
    columns=(
        Column("document_title", "Document Title", placeholder="Document Title"),
        Column("outstanding_numbers", "Outstanding Numbers", kind="number", minimum=0),
        Column("deadline_date", "Deadline Date", kind="date", dash_when_empty=True),
        Column(
            "status",
            "Status",
            kind="choice",
            options=WORK_STATUS_OPTIONS,
            badges=WORK_STATUS_BADGES,
        ),
        Column("comments_raised", "Comments Raised", kind="number"),
        Column("comment_rejected", "Comment Rejected", kind="number"),
        Column(
            "notes_comments",
            "Notes/Comments",
            kind="note",
            placeholder="Notes",
            dash_when_empty=True,
        ),
    ),
)

UCM_TABLE = TableSpec(
    key="ucm",
    label="UCM Status",
    table_name="ucm_status",
    record_model=UCMStatus,
    columns=(
        Column("document_id", "Document ID", placeholder="Document ID"),
        Column("title", "Title", placeholder="Title"),
        Column("deadline_date", "Deadline Date", kind="date", dash_when_empty=True),
        Column("owner", "Owner", placeholder="Owner", dash_when_empty=True),
        Column(
            "status",
            "Status",
            kind="choice",
            options=WORK_STATUS_OPTIONS,
            badges=WORK_STATUS_BADGES,
        ),
        Column("reviewer", "Reviewer", placeholder="Reviewer", dash_when_empty=True),
        Column(
            "reviewer_status",
            "Reviewer Status",
            kind="choice",
            options=REVIEW_STATUS_OPTIONS,
            badges=REVIEW_STATUS_BADGES,
        ),
        Column("approver", "Approver", placeholder="Approver", dash_when_empty=True),
        Column(
            "approver_status",
            "Approver Status",
            kind="choice",
            options=REVIEW_STATUS_OPTIONS,
            badges=REVIEW_STATUS_BADGES,
        ),
        Column("external", "External", kind="flag", badges=FLAG_BADGES),
    ),
)


def build_table_specs(*, drn_table: str, ucm_table: str) -> dict[str, TableSpec]:
    """Table specs keyed by tab key, with hosted table names applied."""
    return {
        DRN_TABLE.key: replace(DRN_TABLE, table_name=drn_table),
        UCM_TABLE.key: replace(UCM_TABLE, table_name=ucm_table),
    }
