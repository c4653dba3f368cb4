from __future__ import annotations

import json
import os
import socket
import subprocess
import sys
import time
from collections.abc import Iterator
from pathlib import Path
from urllib import error, request

import pytest

from status_dashboard.app.settings import Settings
from status_dashboard.app.store import SupabaseTableStore
from status_dashboard.app.tables import build_table_specs


def _require_supabase() -> Settings:
    if os.getenv("RUN_SUPABASE_INTEGRATION_TESTS") != "1":
        pytest.skip(
            "Set RUN_SUPABASE_INTEGRATION_TESTS=1 and SUPABASE_URL/SUPABASE_ANON_KEY "
            "to run integration tests against a Supabase project."
        )
    settings = Settings()
    if not settings.resolved_supabase_url() or not settings.resolved_supabase_anon_key():
        pytest.skip("SUPABASE_URL and SUPABASE_ANON_KEY are required for integration tests.")
    return settings


def _pick_free_port() -> int:
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind(("127.0.0.1", 0))
            return int(sock.getsockname()[1])
    except PermissionError:
        pytest.skip("Socket operations are blocked in this environment.")


def _wait_for_health(base_url: str, timeout_s: float = 20.0) -> None:
    deadline = time.time() + timeout_s
    while time.time() < deadline:
        try:
            with request.urlopen(f"{base_url}/health", timeout=1.0) as response:
                if response.status == 200:
                    return
        except (error.URLError, ConnectionError, TimeoutError):
            time.sleep(0.2)
    raise TimeoutError(f"Server did not become healthy within {timeout_s:.1f}s")


@pytest.fixture
def live_drn_store() -> SupabaseTableStore:
    settings = _require_supabase()
    spec = build_table_specs(drn_table=settings.drn_table, ucm_table=settings.ucm_table)["drn"]
    return SupabaseTableStore(
        base_url=settings.resolved_supabase_url(),
        api_key=settings.resolved_supabase_anon_key(),
        table=spec.table_name,
        record_model=spec.record_model,
        timeout_s=settings.request_timeout_s or 20.0,
    )


@pytest.fixture
def dashboard_base_url() -> Iterator[str]:
    _require_supabase()
    port = _pick_free_port()
    base_url = f"http://127.0.0.1:{port}"
    env = os.environ.copy()
    env["STATUS_DASHBOARD_STORE_BACKEND"] = "supabase"

    server = subprocess.Popen(  # noqa: S603
        [
            sys.executable,
            "-m",
            "uvicorn",
            "status_dashboard.main:app",
            "--host",
            "127.0.0.1",
            "--port",
            str(port),
        ],
        cwd=str(Path.cwd()),
        env=env,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        text=True,
    )
    try:
        _wait_for_health(base_url)
        yield base_url
    finally:
        server.terminate()
        try:
            server.wait(timeout=5)
        except subprocess.TimeoutExpired:
            server.kill()
            server.wait(timeout=5)


def http_post(base_url: str, path: str, payload: dict[str, object]) -> tuple[int, str]:
    req = request.Request(
        url=f"{base_url}{path}",
        method="POST",
        data=json.dumps(payload).encode("utf-8"),
        headers={"Content-Type": "application/json"},
    )
    try:
        with request.urlopen(req, timeout=20.0) as response:
            return response.status, response.read().decode("utf-8")
    except error.HTTPError as exc:
        return exc.code, exc.read().decode("utf-8")


def http_get_json(base_url: str, path: str) -> tuple[int, dict[str, object]]:
    req = request.Request(url=f"{base_url}{path}", method="GET")
    try:
        with request.urlopen(req, timeout=20.0) as response:
            return response.status, json.loads(response.read().decode("utf-8"))
    except error.HTTPError as exc:
        return exc.code, json.loads(exc.read().decode("utf-8"))


@pytest.fixture
def post():
    return http_post


@pytest.fixture
def get_json():
    return http_get_json
