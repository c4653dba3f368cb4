"""SQL for creating the hosted tables in a Supabase project."""

from __future__ import annotations

from .tables import Column, TableSpec


def _column_sql(column: Column) -> str:
    name = column.field
    if column.kind == "number":
        check = f" CHECK ({name} >= {column.minimum})" if column.minimum is not None else ""
        return f"{name} INTEGER NOT NULL DEFAULT 0{check}"
    if column.kind == "date":
        return f"{name} DATE"
    if column.kind == "flag":
        return f"{name} BOOLEAN NOT NULL DEFAULT FALSE"
    if column.kind == "choice":
        allowed = ", ".join(_quote(option) for option in column.options)
        return (
            f"{name} TEXT NOT NULL DEFAULT {_quote(column.options[0])} "
            f"CHECK ({name} IN ({allowed}))"
        )
    return f"{name} TEXT NOT NULL DEFAULT ''"


def render_table_ddl(spec: TableSpec) -> str:
    """CREATE TABLE, index, and row-level security statements for one table."""
    table = spec.table_name
    columns = [
        "id UUID PRIMARY KEY DEFAULT gen_random_uuid()",
        *(_column_sql(column) for column in spec.columns),
        "created_at TIMESTAMPTZ NOT NULL DEFAULT now()",
        "updated_at TIMESTAMPTZ NOT NULL DEFAULT now()",
    ]
    body = ",\n".join(f"    {line}" for line in columns)
    return f"""CREATE TABLE IF NOT EXISTS {table} (
{body}
);

CREATE INDEX IF NOT EXISTS idx_{table}_created_at
ON {table}(created_at DESC);

ALTER TABLE {table} ENABLE ROW LEVEL SECURITY;

DROP POLICY IF EXISTS "{table} public access" ON {table};
CREATE POLICY "{table} public access"
ON {table}
FOR ALL
TO anon, authenticated
USING (true)
WITH CHECK (true);
"""


def _quote(value: str) -> str:
    escaped = value.replace("'", "''")
    return f"'{escaped}'"
