import json
import logging
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path
from unittest.mock import patch

import pytest
import structlog
from pydantic import BaseModel

from shared.logging import _flatten_values, setup_logging


class _Phase(StrEnum):
    PLAYING = "playing"


class _Game(BaseModel):
    id: str
    name: str = ""


@pytest.fixture(autouse=True)
def _cleanup_root_logger():
    """Close and remove all handlers from the root logger after each test."""
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        handler.close()
        root.removeHandler(handler)


@pytest.fixture(autouse=True)
def _allow_file_logging():
    """Disable the _is_test guard so logging tests can create real file handlers."""
    with patch("shared.logging._is_test", return_value=False):
        yield


class TestSetupLogging:
    def test_configures_stdout_handler(self):
        assert setup_logging() is None
        root = logging.getLogger()

        assert root.level == logging.INFO
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)

    def test_file_handler_in_log_dir(self, tmp_path):
        log_dir = tmp_path / "nested" / "game"
        log_path = setup_logging(log_dir=str(log_dir))
        root = logging.getLogger()

        file_handlers = [h for h in root.handlers if isinstance(h, logging.FileHandler)]
        assert len(file_handlers) == 1
        assert log_path is not None
        assert Path(file_handlers[0].baseFilename) == log_path
        assert log_path.parent == log_dir
        assert log_path.suffix == ".log"

    def test_log_file_is_timestamped(self, tmp_path):
        fixed_time = datetime(2025, 3, 15, 10, 30, 45, tzinfo=UTC)
        with patch("shared.logging.datetime") as mock_dt:
            mock_dt.now.return_value = fixed_time
            log_path = setup_logging(log_dir=tmp_path)

        assert log_path is not None
        assert log_path.name == "2025-03-15_10-30-45.log"

    def test_no_log_file_under_pytest(self, tmp_path):
        with patch("shared.logging._is_test", return_value=True):
            assert setup_logging(log_dir=tmp_path) is None
        assert list(tmp_path.iterdir()) == []

    def test_repeated_calls_replace_handlers(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger().handlers) == 1

    def test_uvicorn_loggers_propagate_to_root(self):
        uvicorn_access = logging.getLogger("uvicorn.access")
        uvicorn_access.addHandler(logging.NullHandler())
        uvicorn_access.propagate = False

        setup_logging()

        assert uvicorn_access.handlers == []
        assert uvicorn_access.propagate is True

    def test_explicit_level(self):
        setup_logging(level=logging.DEBUG)
        assert logging.getLogger().level == logging.DEBUG

    def test_level_from_env(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "warning")
        setup_logging()
        assert logging.getLogger().level == logging.WARNING

    def test_invalid_log_level_raises(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "loud")
        with pytest.raises(ValueError, match="Invalid LOG_LEVEL"):
            setup_logging()

    def test_invalid_log_format_raises(self, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "xml")
        with pytest.raises(ValueError, match="Invalid LOG_FORMAT"):
            setup_logging()

    def test_json_output(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "json")
        log_path = setup_logging(log_dir=tmp_path)

        structlog.contextvars.bind_contextvars(game_id="ABC123")
        structlog.get_logger("test.json").info("card played", phase=_Phase.PLAYING)

        assert log_path is not None
        parsed = json.loads(log_path.read_text().strip().splitlines()[0])
        assert parsed["event"] == "card played"
        assert parsed["game_id"] == "ABC123"
        assert parsed["phase"] == "playing"
        assert parsed["service"] == "bluff"

    def test_console_output(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "console")
        log_path = setup_logging(log_dir=tmp_path)

        structlog.get_logger("test.console").info("game created")

        assert log_path is not None
        assert "game created" in log_path.read_text()


class TestFlattenValues:
    def test_enums_become_values(self):
        result = _flatten_values(None, "", {"phase": _Phase.PLAYING, "event": "x"})
        assert result == {"phase": "playing", "event": "x"}

    def test_models_become_ids(self):
        result = _flatten_values(None, "", {"game": _Game(id="XYZ789")})
        assert result == {"game": "XYZ789"}

    def test_plain_values_unchanged(self):
        assert _flatten_values(None, "", {"count": 3}) == {"count": 3}
