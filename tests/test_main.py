"""Tests for the API server entry point and its settings."""

from unittest.mock import patch

import pytest
from pydantic import ValidationError

from carteira.config import Settings


class TestServerSettings:
    """Tests for host/port configuration."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("HOST", raising=False)
        monkeypatch.delenv("PORT", raising=False)
        settings = Settings(_env_file=None)

        assert settings.host == "0.0.0.0"
        assert settings.port == 8000

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("HOST", "127.0.0.1")
        monkeypatch.setenv("PORT", "9001")
        settings = Settings(_env_file=None)

        assert settings.host == "127.0.0.1"
        assert settings.port == 9001

    @pytest.mark.parametrize("port", ["0", "70000", "http"])
    def test_rejects_invalid_port(self, monkeypatch, port):
        monkeypatch.setenv("PORT", port)
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_run_uses_settings(self):
        from carteira import main

        settings = Settings(_env_file=None, host="127.0.0.1", port=9100)
        with patch("carteira.main.get_settings", return_value=settings), patch(
            "carteira.main.uvicorn.run"
        ) as run:
            main.run()

        run.assert_called_once()
        assert run.call_args.kwargs["host"] == "127.0.0.1"
        assert run.call_args.kwargs["port"] == 9100
