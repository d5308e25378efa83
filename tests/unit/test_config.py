"""Unit tests for settings loading and logging configuration."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from state_workflow.config import WorkflowSettings
from state_workflow.logging import JsonFormatter, configure_logging

_ENV_VARS = (
    "STATE_WORKFLOW_LOG_LEVEL",
    "STATE_WORKFLOW_JSON_LOGS",
    "STATE_WORKFLOW_IMAGE_OUTPUT_PATH",
)


@pytest.fixture
def clean_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_settings_defaults(clean_env: Path) -> None:
    settings = WorkflowSettings()

    assert settings.log_level == "INFO"
    assert settings.json_logs is True
    assert settings.image_output_path == Path("workflow-image.svg")


def test_settings_loads_from_dotenv(clean_env: Path) -> None:
    (clean_env / ".env").write_text(
        "\n".join(
            [
                "STATE_WORKFLOW_LOG_LEVEL=debug",
                "STATE_WORKFLOW_JSON_LOGS=false",
                "STATE_WORKFLOW_IMAGE_OUTPUT_PATH=images/flow.png",
                "",
            ]
        ),
        encoding="utf-8",
    )

    settings = WorkflowSettings()

    assert settings.log_level == "DEBUG"
    assert settings.json_logs is False
    assert settings.image_output_path == Path("images/flow.png")


def test_environment_overrides_dotenv(clean_env: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (clean_env / ".env").write_text("STATE_WORKFLOW_LOG_LEVEL=DEBUG\n", encoding="utf-8")
    monkeypatch.setenv("STATE_WORKFLOW_LOG_LEVEL", "WARNING")

    assert WorkflowSettings().log_level == "WARNING"


def test_unknown_log_level_is_rejected(clean_env: Path) -> None:
    with pytest.raises(ValidationError):
        WorkflowSettings(log_level="chatty")


def test_json_formatter_includes_extra_fields() -> None:
    record = logging.LogRecord(
        name="state_workflow.workflow",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Running node",
        args=(),
        exc_info=None,
    )
    record.node = "node1"

    payload = json.loads(JsonFormatter().format(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "state_workflow.workflow"
    assert payload["message"] == "Running node"
    assert payload["extra"] == {"node": "node1"}


def test_setup_logging_replaces_root_handlers(
    clean_env: Path, restore_root_logging: None
) -> None:
    logging.getLogger().addHandler(logging.NullHandler())

    WorkflowSettings(log_level="debug", json_logs=False).setup_logging()

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert not isinstance(root.handlers[0].formatter, JsonFormatter)
    assert root.level == logging.DEBUG


def test_configure_logging_uses_json_by_default(restore_root_logging: None) -> None:
    configure_logging("warning")

    root = logging.getLogger()
    assert isinstance(root.handlers[0].formatter, JsonFormatter)
    assert root.level == logging.WARNING


def test_json_formatter_writes_workflow_context_as_text() -> None:
    record = logging.LogRecord(
        name="state_workflow.workflow",
        level=logging.DEBUG,
        pathname=__file__,
        lineno=1,
        msg="Workflow image generated",
        args=(),
        exc_info=None,
    )
    record.path = Path("images") / "flow.svg"

    payload = json.loads(JsonFormatter().format(record))

    assert payload["extra"] == {"path": str(Path("images") / "flow.svg")}
