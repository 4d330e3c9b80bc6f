"""stackgen scaffolding pipeline.

Runs the ordered, fail-fast sequence that turns an empty directory into a
Next.js + Prisma + PostgreSQL project:

Step 1-4:   create the directory, ``npm init``, install runtime and dev deps.
Step 5-6:   copy the bundled app tree, rewrite ``package.json``.
Step 7-9:   ``prisma init`` (unless ``prisma/`` exists), place the schema,
            ``prisma generate``.
Step 10-11: render ``.env.local`` and ``docker-compose.yml``.
Step 12-15: (``--mode up`` only) start the containers, wait for Postgres,
            verify ``DATABASE_URL``, push the schema from inside ``app``.

Usage::

    stackgen --output ./demo --name demo-app
    stackgen -o ./demo -n demo-app --db-port 5433 --mode up
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import time
from pathlib import Path

from pydantic import ValidationError
from rich.markup import escape

from stackgen import __version__
from stackgen.config import ScaffoldOptions, ToolConfig
from stackgen.scaffolder.env_gen import env_file_has_key
from stackgen.scaffolder.generator import ProjectGenerator
from stackgen.scaffolder.manifest import (
    DEV_DEPENDENCIES,
    RUNTIME_DEPENDENCIES,
    update_manifest,
)
from stackgen.utils import (
    console,
    ensure_dir,
    format_duration,
    print_error,
    print_info,
    print_step_header,
    print_success,
    print_summary_table,
    print_warning,
    run_command,
    wait_for_ready,
)

STEP_NAMES: dict[int, str] = {
    1: "CREATE DIRECTORY",
    2: "INIT PACKAGE",
    3: "INSTALL DEPENDENCIES",
    4: "INSTALL DEV DEPENDENCIES",
    5: "COPY TEMPLATE",
    6: "UPDATE PACKAGE.JSON",
    7: "INIT PRISMA",
    8: "PRISMA SCHEMA",
    9: "GENERATE PRISMA CLIENT",
    10: "WRITE ENV FILE",
    11: "WRITE COMPOSE FILE",
    12: "START CONTAINERS",
    13: "WAIT FOR DATABASE",
    14: "VERIFY ENV FILE",
    15: "APPLY SCHEMA",
}

PROBE_TIMEOUT = 30

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ScaffoldError(Exception):
    """Raised when a pipeline step fails irrecoverably."""

    def __init__(self, step: int, message: str) -> None:
        self.step = step
        super().__init__(f"Step {step} ({STEP_NAMES.get(step, '?')}): {message}")


# ---------------------------------------------------------------------------
# Scaffolder
# ---------------------------------------------------------------------------


class Scaffolder:
    """Drives the scaffolding steps for one set of options.

    Steps run strictly in order and the first failure raises
    ``ScaffoldError``.  Nothing is rolled back: a failed run can leave a
    half-populated output directory.

    Attributes:
        options: What the user asked for.
        config: Tool knobs (retry budget, command names, timeouts).
        generator: Writes template-derived files.
        written: Files produced by this run, for the final summary.
    """

    def __init__(
        self,
        options: ScaffoldOptions,
        config: ToolConfig | None = None,
        generator: ProjectGenerator | None = None,
    ) -> None:
        self.options = options
        self.config = config or ToolConfig()
        self.generator = generator or ProjectGenerator(options)
        self.written: list[Path] = []

    @property
    def app_path(self) -> Path:
        return self.options.app_path

    # -- Public API --------------------------------------------------------

    async def run(self) -> Path:
        """Execute every step and return the project root.

        Raises:
            ScaffoldError: On the first step that fails.
        """
        start = time.monotonic()

        await self.create_directory()
        await self.init_package()
        await self.install_dependencies()
        await self.copy_template()
        await self.update_package_json()
        await self.init_prisma()
        await self.ensure_schema()
        await self.generate_client()
        await self.write_env()
        await self.write_compose()

        if self.options.mode == "up":
            await self.start_containers()
            await self.wait_for_database()
            await self.verify_env()
            await self.apply_schema()

        self._print_final_summary(time.monotonic() - start)
        return self.app_path

    # -- Steps -------------------------------------------------------------

    async def create_directory(self) -> None:
        print_step_header(1, STEP_NAMES[1])
        try:
            ensure_dir(self.app_path)
        except OSError as exc:
            raise ScaffoldError(1, f"Could not create {self.app_path}: {exc}") from exc
        console.print(f"  Project directory: [bold]{escape(str(self.app_path))}[/bold]")

    async def init_package(self) -> None:
        print_step_header(2, STEP_NAMES[2])
        await self._run(2, [self.config.npm_command, "init", "-y"])

    async def install_dependencies(self) -> None:
        print_step_header(3, STEP_NAMES[3])
        await self._run(3, [self.config.npm_command, "install", *RUNTIME_DEPENDENCIES])

        print_step_header(4, STEP_NAMES[4])
        await self._run(
            4, [self.config.npm_command, "install", "--save-dev", *DEV_DEPENDENCIES]
        )

    async def copy_template(self) -> None:
        print_step_header(5, STEP_NAMES[5])
        try:
            await self.generator.copy_template(self.app_path)
        except OSError as exc:
            raise ScaffoldError(5, f"Error copying template files: {exc}") from exc

    async def update_package_json(self) -> None:
        print_step_header(6, STEP_NAMES[6])
        path = self.options.manifest_path
        try:
            await update_manifest(path, self.options.app_name)
        except (OSError, ValueError) as exc:
            raise ScaffoldError(6, f"Error reading or writing {path.name}: {exc}") from exc
        self.written.append(path)

    async def init_prisma(self) -> None:
        print_step_header(7, STEP_NAMES[7])
        if self.options.prisma_dir.exists():
            print_info("  Prisma directory already exists, skipping initialization.")
            return
        await self._run(7, [self.config.npx_command, "prisma", "init"])

    async def ensure_schema(self) -> None:
        print_step_header(8, STEP_NAMES[8])
        try:
            copied = await self.generator.ensure_schema(self.app_path)
        except OSError as exc:
            raise ScaffoldError(8, f"Error copying Prisma schema: {exc}") from exc
        if copied:
            self.written.append(self.options.schema_path)
        else:
            print_info("  Prisma schema already present, keeping it.")

    async def generate_client(self) -> None:
        print_step_header(9, STEP_NAMES[9])
        await self._run(9, [self.config.npx_command, "prisma", "generate"])

    async def write_env(self) -> None:
        print_step_header(10, STEP_NAMES[10])
        try:
            path = await self.generator.write_env(self.app_path)
        except (OSError, ValueError) as exc:
            raise ScaffoldError(10, f"Error writing environment file: {exc}") from exc
        self.written.append(path)

    async def write_compose(self) -> None:
        print_step_header(11, STEP_NAMES[11])
        try:
            path = await self.generator.write_compose(self.app_path)
        except OSError as exc:
            raise ScaffoldError(11, f"Error writing compose file: {exc}") from exc
        self.written.append(path)

    async def start_containers(self) -> None:
        print_step_header(12, STEP_NAMES[12])
        await self._run(12, [*self.config.compose_command, "up", "-d", "--build"])

    async def wait_for_database(self) -> None:
        print_step_header(13, STEP_NAMES[13])
        ready = await wait_for_ready(
            self._probe_database,
            retries=self.config.max_db_retries,
            delay=self.config.db_retry_delay,
            on_retry=_report_retry,
        )
        if not ready:
            raise ScaffoldError(
                13,
                "Failed to connect to the database. "
                "Please check the Docker container logs for more information.",
            )
        print_success("  Database is ready.")

    async def verify_env(self) -> None:
        print_step_header(14, STEP_NAMES[14])
        if not await env_file_has_key(self.options.env_path, "DATABASE_URL"):
            raise ScaffoldError(
                14,
                f"DATABASE_URL is not set in {self.options.env_path.name}. "
                "Please check the environment file.",
            )

    async def apply_schema(self) -> None:
        print_step_header(15, STEP_NAMES[15])
        exec_app = [*self.config.compose_command, "exec", "-T", "app"]
        await self._run(15, [*exec_app, self.config.npx_command, "prisma", "db", "push"])
        await self._run(15, [*exec_app, self.config.npx_command, "prisma", "generate"])

    # -- Helpers -----------------------------------------------------------

    async def _run(self, step: int, cmd: list[str]) -> None:
        """Run *cmd* in the project directory with inherited output.

        Raises ``ScaffoldError`` on a non-zero exit (timeouts and missing
        executables included).
        """
        console.print(f"  [cyan]$[/cyan] {escape(' '.join(cmd))}")
        returncode, _, stderr = await run_command(
            cmd,
            cwd=self.app_path,
            timeout=self.config.command_timeout,
            capture=False,
        )
        if returncode != 0:
            detail = f": {stderr}" if stderr else ""
            raise ScaffoldError(
                step, f"Command failed (exit {returncode}): {' '.join(cmd)}{detail}"
            )

    async def _probe_database(self) -> bool:
        """Return ``True`` if ``pg_isready`` reports the database accepting connections."""
        returncode, _, _ = await run_command(
            [
                "pg_isready",
                "-h", self.config.probe_host,
                "-p", str(self.options.db_port),
                "-U", self.options.db_user,
            ],
            cwd=self.app_path,
            timeout=PROBE_TIMEOUT,
        )
        return returncode == 0

    def _print_final_summary(self, elapsed: float) -> None:
        opts = self.options
        files = [str(p.relative_to(self.app_path)) for p in self.written]
        print_summary_table(
            {
                "Project": str(self.app_path),
                "App name": opts.app_name,
                "Database": f"{opts.db_name} ({opts.db_user}@{opts.db_host}:{opts.db_port})",
                "App port": str(opts.app_port),
                "Mode": opts.mode,
                "Generated": ", ".join(files),
                "Elapsed": format_duration(elapsed),
            },
            title="Scaffold Summary",
        )
        if opts.mode == "up":
            print_success("All done! Your project is ready and the database schema has been applied.")
        else:
            print_success("All done! Your project is ready.")
            print_warning(
                f"  Next: cd {escape(str(self.app_path))} && "
                f"{escape(' '.join(self.config.compose_command))} up -d --build"
            )


def _report_retry(attempt: int, retries: int) -> None:
    console.print(f"  Retrying to connect to the database ({attempt}/{retries})...")


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stackgen",
        description="Scaffold a Next.js + Prisma + PostgreSQL application",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  stackgen -o ./demo -n demo-app\n"
            "  stackgen -o ./demo -n demo-app --db-port 5433 --mode up\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--output", "-o", required=True, help="Output directory for the new app"
    )
    parser.add_argument("--name", "-n", required=True, help="Name of the new app")
    parser.add_argument("--db-name", default="mydb", help="Database name (default: mydb)")
    parser.add_argument("--db-user", default="user", help="Database user (default: user)")
    parser.add_argument(
        "--db-password", default="password", help="Database password (default: password)"
    )
    parser.add_argument("--db-port", default="5432", help="Database port (default: 5432)")
    parser.add_argument("--app-port", default="3000", help="Application port (default: 3000)")
    parser.add_argument(
        "--db-host",
        default="db",
        help="Database host written into DATABASE_URL (default: db, the compose service)",
    )
    parser.add_argument(
        "--mode",
        choices=["compose", "up"],
        default="compose",
        help=(
            "compose: write docker-compose.yml and stop; "
            "up: also start the containers and push the schema (default: compose)"
        ),
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``stackgen`` and ``python -m stackgen``."""
    args = build_parser().parse_args(argv)

    try:
        options = ScaffoldOptions(
            output_dir=Path(args.output),
            app_name=args.name,
            db_name=args.db_name,
            db_user=args.db_user,
            db_password=args.db_password,
            db_host=args.db_host,
            db_port=args.db_port,
            app_port=args.app_port,
            mode=args.mode,
        )
        config = ToolConfig.from_env()
    except (ValidationError, ValueError) as exc:
        print_error(f"Invalid options:\n{exc}")
        sys.exit(1)

    scaffolder = Scaffolder(options, config)
    try:
        asyncio.run(scaffolder.run())
    except ScaffoldError as exc:
        print_error(str(exc))
        sys.exit(1)


if __name__ == "__main__":
    main()
