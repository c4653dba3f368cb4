from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from store_doubles import RecordingStore

from status_dashboard.app.controller import TableController
from status_dashboard.app.models import DRNStatus, UCMStatus
from status_dashboard.app.settings import Settings
from status_dashboard.app.tables import DRN_TABLE, UCM_TABLE
from status_dashboard.main import create_app


@pytest.fixture
def drn_store() -> RecordingStore:
    return RecordingStore(table="drn_status", record_model=DRNStatus)


@pytest.fixture
def ucm_store() -> RecordingStore:
    return RecordingStore(table="ucm_status", record_model=UCMStatus)


@pytest.fixture
def drn_controller(drn_store: RecordingStore) -> TableController:
    return TableController(DRN_TABLE, drn_store)


@pytest.fixture
def ucm_controller(ucm_store: RecordingStore) -> TableController:
    return TableController(UCM_TABLE, ucm_store)


@pytest.fixture
def client(drn_store: RecordingStore, ucm_store: RecordingStore) -> TestClient:
    app = create_app(
        stores={"drn": drn_store, "ucm": ucm_store},
        settings_override=Settings(_env_file=None, store_backend="memory"),
    )
    with TestClient(app) as test_client:
        yield test_client
