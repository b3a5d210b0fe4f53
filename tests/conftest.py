import os

import pytest
from unittest.mock import AsyncMock, MagicMock

from fastapi.testclient import TestClient

from sheetsbridge.config import Settings, get_settings
from sheetsbridge.dispatcher import Dispatcher, SheetsContext, get_dispatcher
from sheetsbridge.services.sheets import SheetsClient

# Captured before isolated_settings scrubs the environment.
LIVE_KEY_JSON = os.environ.get("GOOGLE_SERVICE_ACCOUNT_KEY_JSON")
LIVE_KEY_PATH = os.environ.get("GOOGLE_SERVICE_ACCOUNT_KEY_PATH")
LIVE_SPREADSHEET_ID = os.environ.get("SHEETSBRIDGE_TEST_SPREADSHEET_ID")

requires_sheets = pytest.mark.skipif(
    not (LIVE_SPREADSHEET_ID and (LIVE_KEY_JSON or LIVE_KEY_PATH)),
    reason="Live Sheets credentials or SHEETSBRIDGE_TEST_SPREADSHEET_ID not set",
)


# --- Canned API responses ---

SPREADSHEET_API_RESPONSE = {
    "spreadsheetId": "abc123",
    "properties": {"title": "Budget", "locale": "en_US", "timeZone": "Europe/Paris"},
    "sheets": [
        {"properties": {"sheetId": 0, "title": "Sheet1", "gridProperties": {"rowCount": 1000, "columnCount": 26}}},
        {"properties": {"sheetId": 42, "title": "Summary", "gridProperties": {"rowCount": 50, "columnCount": 5}}},
    ],
}

VALUES_API_RESPONSE = {
    "range": "Sheet1!A1:B2",
    "values": [["Name", "Age"], ["Ann", "30"]],
}

FORMULAS_API_RESPONSE = {
    "range": "Sheet1!A1:B2",
    "values": [["Name", "Age"], ["Ann", "=20+10"]],
}

UPDATE_API_RESPONSE = {
    "updatedRange": "Sheet1!A1:B2",
    "updatedRows": 2,
    "updatedColumns": 2,
    "updatedCells": 4,
}

APPEND_API_RESPONSE = {
    "updates": {
        "updatedRange": "Sheet1!A3:B3",
        "updatedRows": 1,
        "updatedColumns": 2,
        "updatedCells": 2,
    }
}

FORMATTING_API_RESPONSE = {
    "sheets": [{
        "data": [{
            "rowData": [
                {"values": [
                    {
                        "formattedValue": "Total",
                        "effectiveFormat": {
                            "textFormat": {"bold": True, "fontSize": 12},
                            "backgroundColor": {"red": 1, "green": 0.5, "blue": 0},
                        },
                    },
                    {"formattedValue": "plain"},
                ]},
            ],
        }],
    }],
}


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Keep the developer's environment and .env out of every test."""
    for name in list(os.environ):
        if name.startswith("SHEETSBRIDGE_") or name.startswith("GOOGLE_SERVICE_ACCOUNT_KEY_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    get_dispatcher.cache_clear()
    yield
    get_settings.cache_clear()
    get_dispatcher.cache_clear()


@pytest.fixture
def mock_sheets_service():
    """MagicMock standing in for googleapiclient's sheets v4 resource."""
    return MagicMock()


@pytest.fixture
def sheets_client(mock_sheets_service):
    return SheetsClient(mock_sheets_service)


@pytest.fixture
def fake_client():
    """SheetsClient double whose methods are AsyncMocks."""
    return AsyncMock(spec=SheetsClient)


@pytest.fixture
def settings():
    return Settings(google_service_account_key_json='{"type": "service_account"}')


@pytest.fixture
def dispatcher(settings, fake_client):
    return Dispatcher(SheetsContext(settings=settings, client=fake_client))


@pytest.fixture
def patched_dispatcher(mocker, dispatcher):
    """Route the MCP and HTTP surfaces through the fake-client dispatcher."""
    mocker.patch("sheetsbridge.mcp_server.get_dispatcher", return_value=dispatcher)
    return dispatcher


@pytest.fixture
def api_client(dispatcher):
    """FastAPI TestClient for router tests."""
    from sheetsbridge.main import api

    api.dependency_overrides[get_dispatcher] = lambda: dispatcher
    yield TestClient(api)
    api.dependency_overrides.clear()
