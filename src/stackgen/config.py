"""stackgen configuration.

Two typed models drive a scaffolding run. ``ScaffoldOptions`` holds what the
user asked for on the command line and is frozen once constructed.
``ToolConfig`` holds the tool's own knobs (retry budget, command names,
timeouts) and can be overridden through ``STACKGEN_*`` environment variables.
Both use Pydantic v2 so bad values are rejected at construction time.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


Mode = Literal["compose", "up"]


class ScaffoldOptions(BaseModel):
    """Everything the user supplied (or defaulted) for one run.

    Ports arrive from the CLI as strings and are coerced to ``int``.
    """

    model_config = ConfigDict(frozen=True)

    output_dir: Path
    app_name: str = Field(..., min_length=1, description="Package name written to package.json")
    db_name: str = Field(default="mydb", min_length=1)
    db_user: str = Field(default="user", min_length=1)
    db_password: str = Field(default="password")
    db_host: str = Field(default="db", min_length=1, description="Host used in DATABASE_URL")
    db_port: int = Field(default=5432, ge=1, le=65535)
    app_port: int = Field(default=3000, ge=1, le=65535)
    mode: Mode = Field(default="compose")

    @field_validator("app_name", "db_name", "db_user", "db_host")
    @classmethod
    def _no_surrounding_whitespace(cls, value: str) -> str:
        if value != value.strip():
            raise ValueError("must not start or end with whitespace")
        return value

    @field_validator("db_name", "db_user", "db_password")
    @classmethod
    def _fits_env_file(cls, value: str) -> str:
        # .env.local quotes each value with a quote character it does not contain.
        if all(quote in value for quote in ("'", '"', "`")):
            raise ValueError("must not contain all three of ', \" and `")
        return value

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def app_path(self) -> Path:
        """Absolute path of the project being generated."""
        return self.output_dir.resolve()

    @property
    def manifest_path(self) -> Path:
        return self.app_path / "package.json"

    @property
    def prisma_dir(self) -> Path:
        return self.app_path / "prisma"

    @property
    def schema_path(self) -> Path:
        return self.prisma_dir / "schema.prisma"

    @property
    def env_path(self) -> Path:
        return self.app_path / ".env.local"

    @property
    def compose_path(self) -> Path:
        return self.app_path / "docker-compose.yml"


class ToolConfig(BaseModel):
    """Tuning knobs for the scaffolding pipeline."""

    max_db_retries: int = Field(
        default=20, ge=1, description="How many readiness probes to attempt before giving up"
    )
    db_retry_delay: float = Field(
        default=5.0, ge=0, description="Seconds to wait before each readiness probe"
    )
    command_timeout: int = Field(
        default=900, ge=10, description="Per-subprocess timeout in seconds"
    )
    compose_command: list[str] = Field(default_factory=lambda: ["docker-compose"], min_length=1)
    npm_command: str = Field(default="npm")
    npx_command: str = Field(default="npx")
    probe_host: str = Field(default="localhost", description="Host pg_isready connects to")

    @classmethod
    def from_env(cls) -> "ToolConfig":
        """Build a ``ToolConfig`` from environment variables.

        Recognised variables (all optional):
            STACKGEN_MAX_DB_RETRIES, STACKGEN_DB_RETRY_DELAY,
            STACKGEN_COMMAND_TIMEOUT, STACKGEN_COMPOSE_COMMAND,
            STACKGEN_NPM, STACKGEN_NPX, STACKGEN_PROBE_HOST.

        ``STACKGEN_COMPOSE_COMMAND`` is split on whitespace, so
        ``"docker compose"`` selects the Compose v2 plugin.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("STACKGEN_MAX_DB_RETRIES"):
            kwargs["max_db_retries"] = int(os.environ["STACKGEN_MAX_DB_RETRIES"])
        if os.environ.get("STACKGEN_DB_RETRY_DELAY"):
            kwargs["db_retry_delay"] = float(os.environ["STACKGEN_DB_RETRY_DELAY"])
        if os.environ.get("STACKGEN_COMMAND_TIMEOUT"):
            kwargs["command_timeout"] = int(os.environ["STACKGEN_COMMAND_TIMEOUT"])
        if os.environ.get("STACKGEN_COMPOSE_COMMAND", "").strip():
            kwargs["compose_command"] = os.environ["STACKGEN_COMPOSE_COMMAND"].split()
        if os.environ.get("STACKGEN_NPM"):
            kwargs["npm_command"] = os.environ["STACKGEN_NPM"]
        if os.environ.get("STACKGEN_NPX"):
            kwargs["npx_command"] = os.environ["STACKGEN_NPX"]
        if os.environ.get("STACKGEN_PROBE_HOST"):
            kwargs["probe_host"] = os.environ["STACKGEN_PROBE_HOST"]

        return cls(**kwargs)
