from __future__ import annotations

from status_dashboard.app.ddl import render_table_ddl
from status_dashboard.app.tables import DRN_TABLE, UCM_TABLE, build_table_specs


def test_drn_ddl_columns() -> None:
    sql = render_table_ddl(DRN_TABLE)

    assert sql.startswith("CREATE TABLE IF NOT EXISTS drn_status (")
    assert "id UUID PRIMARY KEY DEFAULT gen_random_uuid()" in sql
    assert "outstanding_numbers INTEGER NOT NULL DEFAULT 0 CHECK (outstanding_numbers >= 0)" in sql
    assert "comments_raised INTEGER NOT NULL DEFAULT 0," in sql
    assert "deadline_date DATE," in sql
    assert (
        "status TEXT NOT NULL DEFAULT 'Pending' "
        "CHECK (status IN ('Pending', 'In Progress', 'Completed', 'On Hold'))"
    ) in sql
    assert "created_at TIMESTAMPTZ NOT NULL DEFAULT now()" in sql
    assert "CREATE INDEX IF NOT EXISTS idx_drn_status_created_at" in sql
    assert "ALTER TABLE drn_status ENABLE ROW LEVEL SECURITY;" in sql


def test_ucm_ddl_review_columns_and_flag() -> None:
    sql = render_table_ddl(UCM_TABLE)

    assert "external BOOLEAN NOT NULL DEFAULT FALSE" in sql
    assert "reviewer_status TEXT NOT NULL DEFAULT 'Not Started'" in sql
    assert "'Approved', 'Rejected'" in sql
    assert 'CREATE POLICY "ucm_status public access"' in sql


def test_ddl_follows_configured_table_name() -> None:
    specs = build_table_specs(drn_table="drn_review", ucm_table="ucm_review")

    sql = render_table_ddl(specs["drn"])

    assert "CREATE TABLE IF NOT EXISTS drn_review (" in sql
    assert "drn_status" not in sql
