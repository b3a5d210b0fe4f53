import pytest
from fastapi.testclient import TestClient

from sheetsbridge import main


class TestCheckConfiguration:
    def test_exits_without_credentials(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main.check_configuration()
        assert exc.value.code == 1
        err = capsys.readouterr().err
        assert "Error: Google authentication not configured." in err
        assert "GOOGLE_SERVICE_ACCOUNT_KEY_JSON" in err
        assert "GOOGLE_SERVICE_ACCOUNT_KEY_PATH" in err

    def test_passes_with_key_path(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_SERVICE_ACCOUNT_KEY_PATH", "/keys/sa.json")
        main.check_configuration()


class TestRun:
    def test_stdio_is_default(self, monkeypatch, mocker):
        monkeypatch.setenv("GOOGLE_SERVICE_ACCOUNT_KEY_JSON", "{}")
        mocker.patch("sheetsbridge.main.setup_logging")
        mcp_run = mocker.patch.object(main.mcp, "run")
        uvicorn_run = mocker.patch("sheetsbridge.main.uvicorn.run")
        main.run()
        mcp_run.assert_called_once_with(transport="stdio")
        uvicorn_run.assert_not_called()

    def test_http_transport(self, monkeypatch, mocker):
        monkeypatch.setenv("GOOGLE_SERVICE_ACCOUNT_KEY_JSON", "{}")
        monkeypatch.setenv("SHEETSBRIDGE_TRANSPORT", "http")
        monkeypatch.setenv("SHEETSBRIDGE_PORT", "9100")
        mocker.patch("sheetsbridge.main.setup_logging")
        uvicorn_run = mocker.patch("sheetsbridge.main.uvicorn.run")
        main.run()
        uvicorn_run.assert_called_once_with(main.app, host="127.0.0.1", port=9100, log_level="info")

    def test_unconfigured_never_starts(self, mocker):
        mocker.patch("sheetsbridge.main.setup_logging")
        mcp_run = mocker.patch.object(main.mcp, "run")
        with pytest.raises(SystemExit):
            main.run()
        mcp_run.assert_not_called()


class TestLocalhostOnly:
    def test_remote_client_rejected(self):
        client = TestClient(main.app, client=("203.0.113.5", 50000))
        resp = client.get("/api/status")
        assert resp.status_code == 403
        assert resp.json()["error_code"] == "forbidden"

    def test_loopback_allowed(self):
        client = TestClient(main.app, client=("127.0.0.1", 50000))
        assert client.get("/api/status").status_code == 200
