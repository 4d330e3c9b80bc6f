"""File-side scaffolding.

Copies the bundled Next.js + Prisma app tree into the output directory and
renders the files that depend on user options (``.env.local`` and
``docker-compose.yml``).  Subprocess steps (npm, prisma, docker) live in
``stackgen.pipeline``; this module only touches the filesystem.
"""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path
from typing import Any

from stackgen.config import ScaffoldOptions

from .docker_gen import DockerGenerator
from .env_gen import EnvGenerator, build_database_url
from .templates import TemplateRenderer


_APP_TEMPLATE_DIR = Path(__file__).parent / "app_template"
SCHEMA_RELATIVE_PATH = Path("prisma") / "schema.prisma"


class ProjectGenerator:
    """Writes the generated project's files for one set of options."""

    def __init__(
        self,
        options: ScaffoldOptions,
        app_template_dir: str | Path | None = None,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.options = options
        self.app_template_dir = Path(app_template_dir or _APP_TEMPLATE_DIR)
        self.renderer = renderer or TemplateRenderer()
        self.env_gen = EnvGenerator(self.renderer)
        self.docker_gen = DockerGenerator(self.renderer)

    # -- Context building --------------------------------------------------

    def build_context(self) -> dict[str, Any]:
        """Build the Jinja2 template context from the options."""
        opts = self.options
        return {
            "project_name": opts.app_name,
            "app_port": opts.app_port,
            "db": {
                "name": opts.db_name,
                "user": opts.db_user,
                "password": opts.db_password,
                "host": opts.db_host,
                "port": opts.db_port,
            },
            "database_url": build_database_url(
                opts.db_user, opts.db_password, opts.db_host, opts.db_port, opts.db_name
            ),
        }

    # -- Static files ------------------------------------------------------

    async def copy_template(self, app_path: Path) -> None:
        """Recursively copy the bundled app tree into *app_path*.

        Existing files with the same names are overwritten; anything else
        already in *app_path* (``package.json``, ``node_modules``) is kept.

        Raises:
            OSError: If the template is missing or a file cannot be copied.
        """
        if not self.app_template_dir.is_dir():
            raise FileNotFoundError(f"Template directory not found: {self.app_template_dir}")
        await asyncio.to_thread(
            shutil.copytree, self.app_template_dir, app_path, dirs_exist_ok=True
        )

    async def ensure_schema(self, app_path: Path) -> bool:
        """Copy the bundled Prisma schema unless one is already in place.

        Returns:
            ``True`` if the schema was copied, ``False`` if it already existed.
        """
        dest = app_path / SCHEMA_RELATIVE_PATH
        if dest.exists():
            return False
        src = self.app_template_dir / SCHEMA_RELATIVE_PATH
        await asyncio.to_thread(dest.parent.mkdir, parents=True, exist_ok=True)
        await asyncio.to_thread(shutil.copyfile, src, dest)
        return True

    # -- Rendered files ----------------------------------------------------

    async def write_env(self, app_path: Path) -> Path:
        """Render ``.env.local``."""
        return await self.env_gen.generate(app_path, self.build_context())

    async def write_compose(self, app_path: Path) -> Path:
        """Render ``docker-compose.yml``."""
        return await self.docker_gen.generate(app_path, self.build_context())
