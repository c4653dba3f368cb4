"""FastAPI application wiring for the status dashboard.

Terms used in this file:
- Tab shell: the page with one tab per table. It holds no state of its own.
- Panel: the HTML fragment for one table. Every table action returns the
  re-rendered panel, and the page swaps it in place.
- app.state: holds the table specs and one controller per table.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from .app.controller import TableController, TableSnapshot
from .app.memory import InMemoryTableStore
from .app.settings import Settings, get_settings
from .app.store import SupabaseTableStore, TableStore
from .app.tables import TableSpec, build_table_specs
from .app.ui import render_dashboard, render_table_panel

logger = logging.getLogger(__name__)


class SaveRequest(BaseModel):
    """Raw form values collected from the open add/edit row."""

    fields: dict[str, Any] = Field(default_factory=dict)


class DeleteRequest(BaseModel):
    """Answer the user gave to the delete prompt."""

    confirmed: bool = False


def build_store(spec: TableSpec, settings: Settings) -> TableStore[Any]:
    """Store for one table according to the configured backend."""
    if settings.store_backend == "memory":
        return InMemoryTableStore(table=spec.table_name, record_model=spec.record_model)
    return SupabaseTableStore(
        base_url=settings.resolved_supabase_url(),
        api_key=settings.resolved_supabase_anon_key(),
        table=spec.table_name,
        record_model=spec.record_model,
        timeout_s=settings.request_timeout_s,
    )


def create_app(
    *,
    stores: Mapping[str, TableStore[Any]] | None = None,
    settings_override: Settings | None = None,
) -> FastAPI:
    """Application factory.

    `stores` replaces the configured backend per table key (`drn`, `ucm`);
    tests pass in-memory stores here.
    """
    settings = settings_override or get_settings()
    logging.getLogger("status_dashboard").setLevel(settings.log_level.upper())

    specs = build_table_specs(drn_table=settings.drn_table, ucm_table=settings.ucm_table)
    overrides = dict(stores or {})
    controllers = {
        key: TableController(
            spec,
            overrides.get(key) or build_store(spec, settings),
            discard_stale_loads=settings.discard_stale_loads,
        )
        for key, spec in specs.items()
    }
    logger.info(
        "dashboard event=startup backend=%s tables=%s",
        "override" if overrides else settings.store_backend,
        ",".join(spec.table_name for spec in specs.values()),
    )

    app = FastAPI(title=settings.app_name, version="0.1.0")
    app.state.settings = settings
    app.state.tables = specs
    app.state.controllers = controllers

    def _controller(key: str) -> TableController:
        controller = app.state.controllers.get(key)
        if controller is None:
            raise HTTPException(status_code=404, detail="Table not found")
        return controller

    @app.get("/", response_class=HTMLResponse)
    async def home(tab: str = "drn") -> str:
        # Showing a tab mounts its table: any open form is dropped and rows are fetched.
        controller = _controller(tab)
        await controller.mount()
        return render_dashboard(
            app_name=settings.app_name,
            tables=list(specs.values()),
            active=controller.spec,
            panel_html=render_table_panel(controller),
        )

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "service": settings.app_name}

    @app.get("/api/tables/{key}", response_model=TableSnapshot)
    async def table_snapshot(key: str) -> TableSnapshot:
        return _controller(key).snapshot()

    @app.get("/tables/{key}/panel", response_class=HTMLResponse)
    async def table_panel(key: str) -> str:
        return render_table_panel(_controller(key))

    # Table actions always answer with the panel. A failed store call is only
    # logged, so the panel shows the unchanged state instead of an error.
    @app.post("/tables/{key}/refresh", response_class=HTMLResponse)
    async def refresh_table(key: str) -> str:
        controller = _controller(key)
        await controller.load()
        return render_table_panel(controller)

    @app.post("/tables/{key}/add", response_class=HTMLResponse)
    async def begin_add(key: str) -> str:
        controller = _controller(key)
        controller.begin_add()
        return render_table_panel(controller)

    @app.post("/tables/{key}/edit/{record_id}", response_class=HTMLResponse)
    async def begin_edit(key: str, record_id: str) -> str:
        controller = _controller(key)
        controller.begin_edit(record_id)
        return render_table_panel(controller)

    @app.post("/tables/{key}/cancel", response_class=HTMLResponse)
    async def cancel_edit(key: str) -> str:
        controller = _controller(key)
        controller.cancel()
        return render_table_panel(controller)

    @app.post("/tables/{key}/save", response_class=HTMLResponse)
    async def save_row(key: str, payload: SaveRequest) -> str:
        controller = _controller(key)
        controller.set_fields(payload.fields)
        await controller.save()
        return render_table_panel(controller)

    @app.post("/tables/{key}/delete/{record_id}", response_class=HTMLResponse)
    async def delete_row(key: str, record_id: str, payload: DeleteRequest) -> str:
        controller = _controller(key)
        await controller.delete(record_id, lambda _prompt: payload.confirmed)
        return render_table_panel(controller)

    return app


# Module-level app for `uvicorn status_dashboard.main:app`.
app = create_app()
