"""Hosted table store: protocol, error type, and the Supabase REST client.

Terms used in this file:
- PostgREST: the REST layer Supabase puts in front of each Postgres table
  (`/rest/v1/<table>`).
- Filter: a query parameter such as `id=eq.<value>` that narrows the rows an
  update or delete touches.
- Representation: with `Prefer: return=representation` the store echoes the
  written rows back, including server-assigned id and timestamps.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Generic, Literal, Protocol, TypeVar
from urllib import error, parse, request

from pydantic import ValidationError

from .models import StatusRecord

TRecord = TypeVar("TRecord", bound=StatusRecord)
StoreOperation = Literal["fetch", "insert", "update", "delete"]
logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """Raised when a table store call fails for any reason."""

    def __init__(
        self,
        operation: StoreOperation,
        table: str,
        message: str,
        *,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.table = table
        self.message = message
        self.status_code = status_code
        self.code = code

    def __str__(self) -> str:
        parts = [self.message]
        if self.status_code is not None:
            parts.append(f"status={self.status_code}")
        if self.code:
            parts.append(f"code={self.code}")
        return " ".join(parts)


class TableStore(Protocol[TRecord]):
    """Row-level CRUD over one hosted table."""

    table: str

    def list_rows(self) -> list[TRecord]: ...

    def insert_row(self, values: dict[str, Any]) -> TRecord: ...

    def update_row(self, record_id: str, values: dict[str, Any]) -> TRecord | None: ...

    def delete_row(self, record_id: str) -> None: ...


class SupabaseTableStore(Generic[TRecord]):
    """Table store backed by a Supabase project's REST endpoint."""

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        table: str,
        record_model: type[TRecord],
        timeout_s: float | None = None,
    ) -> None:
        # URL and key are not checked here; a bad value fails the first request.
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.table = table
        self.record_model = record_model
        self.timeout_s = timeout_s

    def list_rows(self) -> list[TRecord]:
        body = self._request(
            "fetch",
            "GET",
            params={"select": "*", "order": "created_at.desc"},
        )
        return self._parse_rows("fetch", body)

    def insert_row(self, values: dict[str, Any]) -> TRecord:
        body = self._request(
            "insert",
            "POST",
            params={"select": "*"},
            payload=[values],
            prefer="return=representation",
        )
        rows = self._parse_rows("insert", body)
        if not rows:
            raise StoreError("insert", self.table, "Insert returned no row.")
        return rows[0]

    def update_row(self, record_id: str, values: dict[str, Any]) -> TRecord | None:
        body = self._request(
            "update",
            "PATCH",
            params={"id": f"eq.{record_id}", "select": "*"},
            payload=values,
            prefer="return=representation",
        )
        rows = self._parse_rows("update", body)
        return rows[0] if rows else None

    def delete_row(self, record_id: str) -> None:
        self._request(
            "delete",
            "DELETE",
            params={"id": f"eq.{record_id}"},
            prefer="return=minimal",
        )

    def _table_url(self, params: dict[str, str]) -> str:
        query = parse.urlencode(params, safe="*,.")
        return f"{self.base_url}/rest/v1/{parse.quote(self.table)}?{query}"

    def _request(
        self,
        operation: StoreOperation,
        method: str,
        *,
        params: dict[str, str],
        payload: Any = None,
        prefer: str | None = None,
    ) -> str:
        url = self._table_url(params)
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }
        data: bytes | None = None
        if payload is not None:
            data = json.dumps(payload).encode("utf-8")
            headers["Content-Type"] = "application/json"
        if prefer:
            headers["Prefer"] = prefer

        logger.debug(
            "table_store event=request table=%s operation=%s method=%s",
            self.table,
            operation,
            method,
        )
        try:
            req = request.Request(url=url, data=data, method=method, headers=headers)
            if self.timeout_s is None:
                response_cm = request.urlopen(req)
            else:
                response_cm = request.urlopen(req, timeout=self.timeout_s)
            with response_cm as response:
                return response.read().decode("utf-8")
        except error.HTTPError as exc:
            raw_error = exc.read().decode("utf-8", errors="replace")
            message, code = _parse_error_body(raw_error)
            raise StoreError(
                operation,
                self.table,
                message or f"{method} {self.table} failed",
                status_code=exc.code,
                code=code,
            ) from exc
        except error.URLError as exc:
            raise StoreError(operation, self.table, f"request failed: {exc.reason}") from exc
        except (TimeoutError, ValueError, OSError) as exc:
            # ValueError covers a missing or malformed base URL.
            raise StoreError(operation, self.table, f"request failed: {exc}") from exc

    def _parse_rows(self, operation: StoreOperation, body: str) -> list[TRecord]:
        if not body.strip():
            return []
        try:
            parsed = json.loads(body)
        except json.JSONDecodeError as exc:
            raise StoreError(operation, self.table, "store returned non-JSON response") from exc
        if isinstance(parsed, dict):
            parsed = [parsed]
        if not isinstance(parsed, list):
            raise StoreError(
                operation,
                self.table,
                f"store returned unsupported JSON shape: {type(parsed)!r}",
            )
        try:
            return [self.record_model.model_validate(item) for item in parsed]
        except ValidationError as exc:
            raise StoreError(operation, self.table, f"invalid row: {exc}") from exc


def _parse_error_body(raw: str) -> tuple[str, str | None]:
    """Pull `message` and `code` out of a PostgREST error body."""
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return raw[:300], None
    if not isinstance(parsed, dict):
        return raw[:300], None
    message = str(parsed.get("message") or parsed.get("error") or raw[:300])
    code = parsed.get("code")
    return message, str(code) if code is not None else None
