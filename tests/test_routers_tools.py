from sheetsbridge.exceptions import ConfigurationError, SpreadsheetNotFoundError
from sheetsbridge.tools import TOOLS


class TestListTools:
    def test_lists_registry(self, api_client):
        resp = api_client.get("/api/tools")
        assert resp.status_code == 200
        data = resp.json()
        assert [t["name"] for t in data] == list(TOOLS)
        assert data[1]["input_schema"]["required"] == ["spreadsheetId", "range"]


class TestCallTool:
    def test_success(self, api_client, fake_client):
        fake_client.get_values.return_value = [["a"]]
        resp = api_client.post("/api/tools/read-values", json={"spreadsheetId": "abc123", "range": "A1"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["ok"] is True
        assert data["error_code"] is None
        assert "| a |" in data["text"]

    def test_unknown_tool(self, api_client):
        resp = api_client.post("/api/tools/drop-table", json={})
        assert resp.status_code == 404
        assert resp.json() == {"ok": False, "text": "Unknown tool: drop-table", "error_code": "unknown_tool"}

    def test_invalid_arguments(self, api_client):
        resp = api_client.post("/api/tools/read-values", json={"range": "A1"})
        assert resp.status_code == 422
        assert "- spreadsheetId: Field required" in resp.json()["text"]

    def test_missing_body(self, api_client):
        resp = api_client.post("/api/tools/get-spreadsheet-info")
        assert resp.status_code == 422
        assert resp.json()["error_code"] == "invalid_arguments"

    def test_not_found(self, api_client, fake_client):
        fake_client.get_spreadsheet_info.side_effect = SpreadsheetNotFoundError("Spreadsheet not found", 404)
        resp = api_client.post("/api/tools/get-spreadsheet-info", json={"spreadsheetId": "nope"})
        assert resp.status_code == 404
        assert resp.json()["text"] == "Failed to get spreadsheet info: Spreadsheet not found"

    def test_configuration_error(self, api_client, fake_client):
        fake_client.get_values.side_effect = ConfigurationError("Google authentication not configured.")
        resp = api_client.post("/api/tools/read-values", json={"spreadsheetId": "abc123", "range": "A1"})
        assert resp.status_code == 503
        assert resp.json()["error_code"] == "configuration_error"


class TestStatus:
    def test_unconfigured(self, api_client):
        resp = api_client.get("/api/status")
        assert resp.status_code == 200
        data = resp.json()
        assert data["server"] == "sheetsbridge"
        assert data["configured"] is False
        assert data["tools"] == list(TOOLS)

    def test_configured(self, api_client, monkeypatch):
        monkeypatch.setenv("GOOGLE_SERVICE_ACCOUNT_KEY_PATH", "/keys/sa.json")
        data = api_client.get("/api/status").json()
        assert data["configured"] is True
        assert data["message"] == "Ready"
