"""Environment file generation.

Renders ``.env.local`` from ``env.local.j2`` and verifies that required keys
made it to disk.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import Any
from urllib.parse import quote

from .templates import TemplateRenderer

ENV_FILENAME = ".env.local"
ENV_KEYS: tuple[str, ...] = (
    "DB_NAME",
    "DB_USER",
    "DB_PASSWORD",
    "DB_PORT",
    "APP_PORT",
    "DATABASE_URL",
)


def build_database_url(user: str, password: str, host: str, port: int, db_name: str) -> str:
    """Return a ``postgresql://`` connection string.

    User, password and database name are percent-encoded, so credentials
    containing ``@``, ``:`` or ``/`` still parse.  Values made of unreserved
    characters come through unchanged.
    """
    return "postgresql://{user}:{password}@{host}:{port}/{db}".format(
        user=quote(user, safe=""),
        password=quote(password, safe=""),
        host=host,
        port=port,
        db=quote(db_name, safe=""),
    )


class EnvGenerator:
    """Writes the project's environment file."""

    template_name = "env.local.j2"

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    async def generate(self, output_dir: Path, context: dict[str, Any]) -> Path:
        """Render ``.env.local`` into *output_dir*, replacing any existing file."""
        return await self.renderer.render_to_file(
            self.template_name, output_dir / ENV_FILENAME, context
        )


async def env_file_has_key(path: Path, key: str) -> bool:
    """Return ``True`` if *path* assigns a non-empty value to *key*.

    A missing file counts as the key being absent.
    """
    if not path.is_file():
        return False
    content = await asyncio.to_thread(path.read_text, "utf-8")
    pattern = re.compile(rf"^\s*(?:export\s+)?{re.escape(key)}\s*=\s*\S", re.MULTILINE)
    return pattern.search(content) is not None
