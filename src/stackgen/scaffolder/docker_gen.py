"""Docker Compose file generation.

Uses the ``docker-compose.yml.j2`` template to produce the two-service
(``app`` + ``db``) Compose file for the generated project.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from .templates import TemplateRenderer

COMPOSE_FILENAME = "docker-compose.yml"
POSTGRES_IMAGE = "postgres:13"
VOLUME_NAME = "postgres_data"


class DockerGenerator:
    """Generates the Docker Compose file for the app and its database."""

    template_name = "docker-compose.yml.j2"

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    async def generate(self, output_dir: Path, context: dict[str, Any]) -> Path:
        """Render ``docker-compose.yml`` into *output_dir*.

        Args:
            output_dir: Project root directory.
            context: Template rendering context. Must include ``db`` and
                ``app_port``.

        Returns:
            Path of the written Compose file.
        """
        compose_ctx = {
            **context,
            "postgres_image": POSTGRES_IMAGE,
            "volume_name": VOLUME_NAME,
        }
        return await self.renderer.render_to_file(
            self.template_name, output_dir / COMPOSE_FILENAME, compose_ctx
        )
