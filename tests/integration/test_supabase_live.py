from __future__ import annotations

import uuid

import pytest

from status_dashboard.app.store import SupabaseTableStore

pytestmark = pytest.mark.integration


def test_store_round_trip_against_supabase(live_drn_store: SupabaseTableStore) -> None:
    title = f"integration-{uuid.uuid4().hex[:8]}"

    created = live_drn_store.insert_row(
        {"document_title": title, "outstanding_numbers": 2, "status": "Pending"}
    )
    try:
        assert created.id
        assert created.created_at is not None
        assert live_drn_store.list_rows()[0].id == created.id

        updated = live_drn_store.update_row(
            created.id, {"status": "Completed", "comments_raised": 4}
        )
        assert updated is not None
        assert updated.status == "Completed"
        assert updated.comments_raised == 4
        assert updated.document_title == title
    finally:
        live_drn_store.delete_row(created.id)

    assert all(row.id != created.id for row in live_drn_store.list_rows())


def test_dashboard_add_and_delete_flow(dashboard_base_url: str, post, get_json) -> None:
    title = f"integration-{uuid.uuid4().hex[:8]}"

    status, _ = post(dashboard_base_url, "/tables/drn/add", {})
    assert status == 200
    status, panel = post(
        dashboard_base_url,
        "/tables/drn/save",
        {"fields": {"document_title": title, "outstanding_numbers": "1"}},
    )
    assert status == 200
    assert title in panel

    snapshot_status, snapshot = get_json(dashboard_base_url, "/api/tables/drn")
    assert snapshot_status == 200
    assert snapshot["mode"] == "idle"
    created = next(row for row in snapshot["rows"] if row["document_title"] == title)

    status, panel = post(
        dashboard_base_url, f"/tables/drn/delete/{created['id']}", {"confirmed": True}
    )
    assert status == 200
    assert title not in panel
