"""Shared pytest fixtures for the stackgen test suite.

Provides reusable fixtures for:
- Scaffold options pointing at a temporary output directory
- A fake subprocess runner standing in for npm, npx, docker and pg_isready
- A patched ``asyncio.sleep`` so readiness polling runs instantly
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest

from stackgen.config import ScaffoldOptions, ToolConfig


# ---------------------------------------------------------------------------
# Fake subprocess runner
# ---------------------------------------------------------------------------


class FakeCommands:
    """Records every command and simulates the side effects the pipeline relies on.

    * ``npm init -y`` writes a minimal ``package.json`` into ``cwd``.
    * ``npx prisma init`` creates ``prisma/schema.prisma``.
    * ``pg_isready`` pops its return code from ``probe_results`` (0 once
      the list is exhausted, unless ``probe_default`` says otherwise).
    * Any command whose joined text contains a key of ``failures`` returns
      that key's exit code.
    """

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.probe_results: list[int] = []
        self.probe_default: int = 0
        self.failures: dict[str, int] = {}

    async def __call__(
        self,
        cmd: list[str],
        cwd: str | Path | None = None,
        timeout: int = 120,
        capture: bool = True,
        env: dict[str, str] | None = None,
    ) -> tuple[int, str, str]:
        self.calls.append({"cmd": list(cmd), "cwd": cwd, "timeout": timeout, "capture": capture})
        joined = " ".join(cmd)

        for needle, code in self.failures.items():
            if needle in joined:
                return (code, "", f"simulated failure: {needle}")

        if cmd[0] == "pg_isready":
            code = self.probe_results.pop(0) if self.probe_results else self.probe_default
            return (code, "", "")

        workdir = Path(cwd) if cwd else Path.cwd()
        if cmd[1:] == ["init", "-y"]:
            manifest = {
                "name": workdir.name,
                "version": "1.0.0",
                "main": "index.js",
                "scripts": {"test": 'echo "Error: no test specified" && exit 1'},
                "license": "ISC",
            }
            (workdir / "package.json").write_text(json.dumps(manifest, indent=2), encoding="utf-8")
        elif cmd[1:] == ["prisma", "init"]:
            (workdir / "prisma").mkdir(exist_ok=True)
            (workdir / "prisma" / "schema.prisma").write_text("// from prisma init\n", encoding="utf-8")

        return (0, "", "")

    # -- Query helpers -----------------------------------------------------

    @property
    def commands(self) -> list[str]:
        return [" ".join(c["cmd"]) for c in self.calls]

    def count(self, needle: str) -> int:
        return sum(1 for c in self.commands if needle in c)

    def index_of(self, needle: str) -> int:
        for i, c in enumerate(self.commands):
            if needle in c:
                return i
        return -1


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Not-yet-existing output directory for a generated project."""
    return tmp_path / "demo"


@pytest.fixture
def options(output_dir: Path) -> ScaffoldOptions:
    return ScaffoldOptions(output_dir=output_dir, app_name="demo-app")


@pytest.fixture
def up_options(output_dir: Path) -> ScaffoldOptions:
    return ScaffoldOptions(output_dir=output_dir, app_name="demo-app", mode="up")


@pytest.fixture
def tool_config() -> ToolConfig:
    """Default tool config (20 retries, 5 second delay)."""
    return ToolConfig()


@pytest.fixture
def fake_commands() -> FakeCommands:
    """Patch the pipeline's subprocess runner with a ``FakeCommands`` recorder."""
    fake = FakeCommands()
    with patch("stackgen.pipeline.run_command", new=fake):
        yield fake


@pytest.fixture
def no_sleep() -> AsyncMock:
    """Patch ``asyncio.sleep`` as seen by the readiness loop."""
    with patch("stackgen.utils.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        yield mock_sleep
