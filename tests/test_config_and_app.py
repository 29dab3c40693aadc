"""Configuration loading, log redaction and app wiring."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from engine_app.app import WardrobeApp
from engine_app.config import DEFAULT_GEMINI_MODEL, EngineConfig
from engine_app.logging_config import CORRELATION_ID, JsonFormatter, operation_context, redact_for_log
from tools.kv_store import InMemoryKeyValueStore

_CONFIG_ENV = (
    "APP_ENV",
    "APP_CONFIG_PATH",
    "GOOGLE_API_KEY",
    "STATE_DB_PATH",
    "HISTORY_LIMIT",
    "DEFAULT_TOP_K",
    "MODEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch) -> None:
    for name in _CONFIG_ENV:
        monkeypatch.delenv(name, raising=False)


def test_defaults_are_offline() -> None:
    config = EngineConfig.from_env()

    assert config.api_key is None
    assert config.model == DEFAULT_GEMINI_MODEL
    assert config.history_limit == 100
    assert config.jpeg_quality == 70


def test_environment_variables_override_yaml(tmp_path: Path, monkeypatch) -> None:
    config_file = tmp_path / "dev.yaml"
    config_file.write_text('# local overrides\nstate_db_path: "/tmp/dev.db"\nhistory_limit: 25\ndefault_top_k: 5\n')
    monkeypatch.setenv("APP_CONFIG_PATH", str(config_file))
    monkeypatch.setenv("DEFAULT_TOP_K", "7")
    monkeypatch.setenv("GOOGLE_API_KEY", "secret")

    config = EngineConfig.from_env()

    assert config.state_db_path == "/tmp/dev.db"
    assert config.history_limit == 25
    assert config.default_top_k == 7
    assert config.api_key == "secret"


def test_invalid_integers_are_rejected(monkeypatch) -> None:
    monkeypatch.setenv("HISTORY_LIMIT", "lots")

    with pytest.raises(ValueError, match="history_limit"):
        EngineConfig.from_env()


def test_redaction_hides_payloads_and_contacts() -> None:
    scrubbed = redact_for_log(
        {"image_data": b"\xff\xd8", "nested": {"embedding": [0.1, 0.2]}, "raw": b"abc", "owner": "me@example.com"}
    )

    assert scrubbed == {
        "image_data": "[redacted]",
        "nested": {"embedding": "[redacted]"},
        "raw": "[3 bytes]",
        "owner": "[redacted-email]",
    }


def test_json_formatter_includes_event_fields() -> None:
    record = logging.LogRecord("engine", logging.INFO, __file__, 1, "job_done", None, None)
    record.event = "job_done"
    record.job_id = "job-1"

    payload = json.loads(JsonFormatter().format(record))

    assert payload["event"] == "job_done"
    assert payload["job_id"] == "job-1"
    assert payload["level"] == "INFO"


def test_app_wires_offline_collaborators(tmp_path: Path, image_bytes) -> None:
    app = WardrobeApp(config=EngineConfig(state_db_path=str(tmp_path / "state.db")), store=InMemoryKeyValueStore())
    try:
        app.capture(image_bytes(color=(200, 30, 30)))
        app.capture(image_bytes(color=(30, 60, 200)))
        assert app.worker.run_until_idle() == 2

        categories = [item.category for item in app.engine.items()]
        assert categories == ["Clothing Item", "Clothing Item"]
        assert app.suggest("casual lunch") is None
        assert app.suggest_many("casual lunch") == []
    finally:
        app.shutdown()


def test_operation_context_shares_ids_and_logs_failures(caplog) -> None:
    before = CORRELATION_ID.get()

    with caplog.at_level(logging.DEBUG, logger="engine_app.operations"):
        with operation_context("outer") as outer_id:
            with operation_context("inner") as inner_id:
                pass
        with pytest.raises(KeyError):
            with operation_context("delete", item_id="missing"):
                raise KeyError("missing")

    assert inner_id == outer_id
    assert CORRELATION_ID.get() == before
    failures = [record for record in caplog.records if record.getMessage() == "operation_failed"]
    assert [(record.operation, record.error_type) for record in failures] == [("delete", "KeyError")]
