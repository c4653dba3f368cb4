from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from html import escape
from typing import Any

from .controller import TableController
from .models import StatusRecord
from .tables import DELETE_PROMPT, EMPTY_TABLE_MESSAGE, Column, TableSpec

_STYLES = """
    :root {
      --bg: #eef2f3;
      --panel: #ffffff;
      --ink: #1c2a38;
      --muted: #5d6d79;
      --line: #d5dde2;
      --accent: #146c94;
      --accent-2: #19a7ce;
      --form: #eaf4fb;
    }
    * { box-sizing: border-box; }
    body {
      margin: 0;
      font-family: "Space Grotesk", sans-serif;
      color: var(--ink);
      background:
        radial-gradient(circle at 10% 10%, #d8efff 0%, transparent 42%),
        radial-gradient(circle at 90% 80%, #fde3c5 0%, transparent 36%),
        var(--bg);
    }
    .wrap {
      max-width: 1280px;
      margin: 22px auto 40px;
      padding: 0 16px;
      display: grid;
      gap: 16px;
    }
    .title { margin: 0; font-size: clamp(1.4rem, 2.8vw, 2.2rem); }
    .sub { margin: 6px 0 0; color: var(--muted); }
    .card {
      background: var(--panel);
      border: 1px solid var(--line);
      border-radius: 16px;
      box-shadow: 0 10px 24px rgba(17, 34, 51, 0.06);
      overflow: hidden;
    }
    .tabs { display: flex; border-bottom: 1px solid var(--line); }
    .tab {
      padding: 14px 22px;
      font-weight: 700;
      color: var(--muted);
      text-decoration: none;
    }
    .tab:hover { background: #f4f7f8; }
    .tab.active { background: var(--accent); color: #fff; }
    .panel { padding: 20px; display: grid; gap: 14px; }
    .panel-head { display: flex; justify-content: space-between; align-items: center; }
    .panel-head h2 { margin: 0; }
    .table-wrap { overflow-x: auto; border: 1px solid var(--line); border-radius: 12px; }
    table { width: 100%; border-collapse: collapse; }
    th {
      text-align: left;
      padding: 10px 14px;
      font-size: 0.72rem;
      text-transform: uppercase;
      letter-spacing: 0.06em;
      color: var(--muted);
      background: #f6f8f9;
    }
    td { padding: 12px 14px; border-top: 1px solid var(--line); font-size: 0.9rem; }
    tr.form-row { background: var(--form); }
    td.note { max-width: 260px; overflow: hidden; text-overflow: ellipsis; white-space: nowrap; }
    td.empty { text-align: center; color: var(--muted); padding: 28px 14px; }
    input, select, textarea {
      width: 100%;
      border: 1px solid var(--line);
      border-radius: 8px;
      padding: 6px 8px;
      font-family: "IBM Plex Mono", monospace;
      font-size: 0.85rem;
    }
    button {
      border: none;
      border-radius: 10px;
      padding: 8px 12px;
      font-family: "Space Grotesk", sans-serif;
      font-weight: 700;
      cursor: pointer;
    }
    button:disabled { opacity: 0.45; cursor: not-allowed; }
    .primary { background: var(--accent); color: #fff; }
    .secondary { background: #edf6f5; color: var(--accent); }
    .danger { background: #ffe8ec; color: #a4202c; }
    .actions { display: flex; gap: 6px; }
    .badge {
      display: inline-block;
      padding: 2px 10px;
      border-radius: 999px;
      font-size: 0.75rem;
      font-weight: 700;
    }
    .badge-neutral { background: #eceff1; color: #37474f; }
    .badge-info { background: #dbeafe; color: #1e40af; }
    .badge-ok { background: #dcfce7; color: #166534; }
    .badge-warn { background: #fef9c3; color: #854d0e; }
    .badge-err { background: #fee2e2; color: #991b1b; }
    .badge-accent { background: #ffedd5; color: #9a3412; }
    .loading { text-align: center; padding: 28px; color: var(--muted); }
"""

_SCRIPT = """
    const panel = document.getElementById("panel");

    async function postAction(path, body) {
      const response = await fetch(`/tables/${panel.dataset.table}/${path}`, {
        method: "POST",
        headers: { "Content-Type": "application/json" },
        body: JSON.stringify(body || {}),
      });
      if (response.ok) {
        panel.innerHTML = await response.text();
      }
    }

    function collectFields(row) {
      const fields = {};
      row.querySelectorAll("[data-field]").forEach((input) => {
        fields[input.dataset.field] = input.value;
      });
      return fields;
    }

    panel.addEventListener("click", async (event) => {
      const button = event.target.closest("button[data-action]");
      if (!button || button.disabled) {
        return;
      }
      const action = button.dataset.action;
      const recordId = encodeURIComponent(button.dataset.id || "");
      button.disabled = true;
      if (action === "add" || action === "cancel") {
        await postAction(action);
      } else if (action === "edit") {
        await postAction(`edit/${recordId}`);
      } else if (action === "delete") {
        const confirmed = window.confirm(button.dataset.prompt);
        await postAction(`delete/${recordId}`, { confirmed });
      } else if (action === "save") {
        await postAction("save", { fields: collectFields(button.closest("tr")) });
      }
      button.disabled = false;
    });
"""


def render_dashboard(
    *,
    app_name: str,
    tables: Sequence[TableSpec],
    active: TableSpec,
    panel_html: str,
) -> str:
    """Full page: header, one tab per table, and the active table's panel."""
    tabs = "\n".join(
        f'        <a class="tab{" active" if spec.key == active.key else ""}" '
        f'href="/?tab={spec.key}">{escape(spec.label)}</a>'
        for spec in tables
    )
    return f"""
<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>{escape(app_name)} Status Dashboard</title>
  <link rel="preconnect" href="https://fonts.googleapis.com">
  <link rel="preconnect" href="https://fonts.gstatic.com" crossorigin>
  <link href="https://fonts.googleapis.com/css2?family=Space+Grotesk:wght@400;600;700&family=IBM+Plex+Mono:wght@400;500&display=swap" rel="stylesheet">
  <style>{_STYLES}  </style>
</head>
<body>
  <main class="wrap">
    <header>
      <h1 class="title">Status Dashboard</h1>
      <p class="sub">Manage DRN and UCM status tracking</p>
    </header>
    <div class="card">
      <nav class="tabs">
{tabs}
      </nav>
      <section class="panel" id="panel" data-table="{active.key}">
{panel_html}
      </section>
    </div>
  </main>
  <script>{_SCRIPT}  </script>
</body>
</html>
"""


def render_table_panel(controller: TableController) -> str:
    """Inner HTML of one table panel for the controller's current state."""
    spec = controller.spec
    idle = controller.is_idle
    head = (
        '<div class="panel-head">'
        f"<h2>{escape(spec.label)}</h2>"
        f'<button class="primary" data-action="add"{_disabled(not idle)}>+ Add New</button>'
        "</div>"
    )
    if controller.loading:
        return f'{head}\n<div class="loading">Loading...</div>'

    header_cells = "".join(f"<th>{escape(column.header)}</th>" for column in spec.columns)
    body_rows: list[str] = []
    buffer = controller.buffer
    editing_id = controller.editing_id
    row_ids = {row.id for row in controller.rows}
    if controller.state.mode == "adding" and buffer is not None:
        body_rows.append(_form_row(spec, buffer, record_id=None))
    elif buffer is not None and editing_id is not None and editing_id not in row_ids:
        # The edited row vanished on refresh; keep its form reachable.
        body_rows.append(_form_row(spec, buffer, record_id=editing_id))
    for row in controller.rows:
        if buffer is not None and row.id is not None and row.id == editing_id:
            body_rows.append(_form_row(spec, buffer, record_id=row.id))
        else:
            body_rows.append(_display_row(spec, row, actions_enabled=idle))
    if not body_rows:
        body_rows.append(
            f'<tr><td class="empty" colspan="{spec.column_count}">'
            f"{escape(EMPTY_TABLE_MESSAGE)}</td></tr>"
        )

    body = "\n".join(body_rows)
    return f"""{head}
<div class="table-wrap">
<table>
<thead><tr>{header_cells}<th>Actions</th></tr></thead>
<tbody>
{body}
</tbody>
</table>
</div>"""


def format_cell(column: Column, value: Any) -> str:
    """Display HTML for one stored value."""
    if column.kind == "date":
        if not isinstance(value, date):
            return "-"
        return f"{value.month}/{value.day}/{value.year}"
    if column.kind == "flag":
        label = "Yes" if value else "No"
        return _badge(label, column.badges.get(bool(value), "neutral") if column.badges else None)
    if column.kind == "choice":
        text = "" if value is None else str(value)
        return _badge(text, column.badges.get(text, "neutral") if column.badges else None)
    text = "" if value is None else str(value)
    if not text and column.dash_when_empty:
        return "-"
    return escape(text)


def _display_row(spec: TableSpec, row: StatusRecord, *, actions_enabled: bool) -> str:
    cells = []
    for column in spec.columns:
        css = ' class="note"' if column.kind == "note" else ""
        cells.append(f"<td{css}>{format_cell(column, getattr(row, column.field))}</td>")
    record_id = escape(row.id or "")
    disabled = _disabled(not actions_enabled)
    actions = (
        '<td><div class="actions">'
        f'<button class="secondary" data-action="edit" data-id="{record_id}"'
        f' title="Edit"{disabled}>Edit</button>'
        f'<button class="danger" data-action="delete" data-id="{record_id}"'
        f' data-prompt="{escape(DELETE_PROMPT)}" title="Delete"{disabled}>Delete</button>'
        "</div></td>"
    )
    return f'<tr data-id="{record_id}">{"".join(cells)}{actions}</tr>'


def _form_row(spec: TableSpec, buffer: StatusRecord, *, record_id: str | None) -> str:
    cells = [
        f"<td>{_form_input(column, getattr(buffer, column.field))}</td>" for column in spec.columns
    ]
    actions = (
        '<td><div class="actions">'
        '<button class="primary" data-action="save" title="Save">Save</button>'
        '<button class="danger" data-action="cancel" title="Cancel">Cancel</button>'
        "</div></td>"
    )
    row_id = f' data-id="{escape(record_id)}"' if record_id else ""
    return f'<tr class="form-row"{row_id}>{"".join(cells)}{actions}</tr>'


def _form_input(column: Column, value: Any) -> str:
    name = escape(column.field)
    if column.kind == "choice":
        return _select(name, column.options, "" if value is None else str(value))
    if column.kind == "flag":
        return _select(name, ("No", "Yes"), "Yes" if value else "No")
    if column.kind == "date":
        text = value.isoformat() if isinstance(value, date) else ""
        return f'<input type="date" data-field="{name}" value="{text}">'
    if column.kind == "number":
        minimum = f' min="{column.minimum}"' if column.minimum is not None else ""
        return f'<input type="number" data-field="{name}" value="{value or 0}"{minimum}>'
    placeholder = f' placeholder="{escape(column.placeholder)}"' if column.placeholder else ""
    text = escape("" if value is None else str(value))
    if column.kind == "note":
        return f'<textarea data-field="{name}" rows="2"{placeholder}>{text}</textarea>'
    return f'<input type="text" data-field="{name}" value="{text}"{placeholder}>'


def _select(name: str, options: Sequence[str], selected: str) -> str:
    rendered = "".join(
        f'<option{" selected" if option == selected else ""}>{escape(option)}</option>'
        for option in options
    )
    return f'<select data-field="{name}">{rendered}</select>'


def _badge(text: str, tone: str | None) -> str:
    return f'<span class="badge badge-{tone or "neutral"}">{escape(text)}</span>'


def _disabled(flag: bool) -> str:
    return " disabled" if flag else ""
