"""Configuration for state workflows.

Configuration is loaded from:
- environment variables (prefixed with `STATE_WORKFLOW_`)
- and a local `.env` file (if present)

The library never configures logging on import; applications call
`WorkflowSettings().setup_logging()` (or `configure_logging`) themselves.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from state_workflow.logging import configure_logging


class WorkflowSettings(BaseSettings):
    """Settings for running and rendering workflows.

    Environment variables:
    - STATE_WORKFLOW_LOG_LEVEL          (optional)
    - STATE_WORKFLOW_JSON_LOGS          (optional)
    - STATE_WORKFLOW_IMAGE_OUTPUT_PATH  (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `WorkflowSettings(_env_file=path_to_env)`.
    """

    log_level: str = Field(
        default="INFO",
        description="Root logging level",
    )
    json_logs: bool = Field(
        default=True,
        description="Emit structured JSON log lines instead of plain text",
    )
    image_output_path: Path = Field(
        default=Path("workflow-image.svg"),
        description="Default destination of generated workflow images",
    )

    model_config = SettingsConfigDict(
        env_prefix="STATE_WORKFLOW_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value!r}")
        return level

    def setup_logging(self) -> None:
        """Configure logging based on settings."""

        configure_logging(self.log_level, json_format=self.json_logs)
