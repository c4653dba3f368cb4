"""Pydantic record schemas for the two tracked tables.

Terms used in this file:
- Record: one row of a hosted table, validated into a model on read.
- Options tuple: ordered values of a closed enumeration; the first entry is the
  default a new row starts with.
- Badge tone: the colour family a value is rendered with in the table.
"""

from __future__ import annotations

from datetime import UTC, date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

WorkStatus = Literal["Pending", "In Progress", "Completed", "On Hold"]
ReviewStatus = Literal["Not Started", "In Review", "Approved", "Rejected"]
BadgeTone = Literal["neutral", "info", "ok", "warn", "err", "accent"]

WORK_STATUS_OPTIONS: tuple[WorkStatus, ...] = ("Pending", "In Progress", "Completed", "On Hold")
REVIEW_STATUS_OPTIONS: tuple[ReviewStatus, ...] = (
    "Not Started",
    "In Review",
    "Approved",
    "Rejected",
)

WORK_STATUS_BADGES: dict[WorkStatus, BadgeTone] = {
    "Pending": "neutral",
    "In Progress": "info",
    "Completed": "ok",
    "On Hold": "warn",
}
REVIEW_STATUS_BADGES: dict[ReviewStatus, BadgeTone] = {
    "Not Started": "neutral",
    "In Review": "info",
    "Approved": "ok",
    "Rejected": "err",
}
FLAG_BADGES: dict[bool, BadgeTone] = {True: "accent", False: "neutral"}

# Assigned by the store; never sent on insert or update.
SERVER_FIELDS = frozenset({"id", "created_at", "updated_at"})

_TRUE_FLAGS = {"1", "true", "yes", "on"}


class StatusRecord(BaseModel):
    """Fields every tracked row carries."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    deadline_date: date | None = None
    status: WorkStatus = WORK_STATUS_OPTIONS[0]
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def insert_payload(self) -> dict[str, Any]:
        """Writable fields in wire form, without server-assigned ones."""
        return self.model_dump(mode="json", exclude=set(SERVER_FIELDS))

    def update_payload(self, *, updated_at: datetime) -> dict[str, Any]:
        payload = self.insert_payload()
        payload["updated_at"] = updated_at.astimezone(UTC).isoformat()
        return payload


class DRNStatus(StatusRecord):
    """DRN status row (`drn_status`)."""

    document_title: str = ""
    # Kept non-negative by form coercion.
    outstanding_numbers: int = 0
    comments_raised: int = 0
    comment_rejected: int = 0
    notes_comments: str = ""


class UCMStatus(StatusRecord):
    """UCM status row (`ucm_status`)."""

    document_id: str = ""
    title: str = ""
    owner: str = ""
    reviewer: str = ""
    reviewer_status: ReviewStatus = REVIEW_STATUS_OPTIONS[0]
    approver: str = ""
    approver_status: ReviewStatus = REVIEW_STATUS_OPTIONS[0]
    external: bool = False


def coerce_int(raw: Any, *, minimum: int | None = None) -> int:
    """Parse a form value as an integer; unparsable input becomes 0."""
    if isinstance(raw, bool):
        value = int(raw)
    elif isinstance(raw, int):
        value = raw
    else:
        text = str(raw if raw is not None else "").strip()
        try:
            value = int(text)
        except ValueError:
            try:
                value = int(float(text))
            except (ValueError, OverflowError):
                value = 0
    if minimum is not None:
        value = max(minimum, value)
    return value


def coerce_date(raw: Any) -> date | None:
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    text = str(raw if raw is not None else "").strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def coerce_flag(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    return str(raw if raw is not None else "").strip().lower() in _TRUE_FLAGS


def coerce_choice(raw: Any, options: tuple[str, ...], current: str) -> str:
    """Accept only a known option; anything else keeps the current value."""
    text = str(raw if raw is not None else "").strip()
    return text if text in options else current


def coerce_text(raw: Any) -> str:
    return "" if raw is None else str(raw)
