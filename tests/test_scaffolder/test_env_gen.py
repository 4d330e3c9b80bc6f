"""Tests for environment file generation (stackgen.scaffolder.env_gen)."""

from __future__ import annotations

import re
from pathlib import Path

import pytest

from stackgen.config import ScaffoldOptions
from stackgen.scaffolder.env_gen import (
    ENV_KEYS,
    build_database_url,
    env_file_has_key,
)
from stackgen.scaffolder.generator import ProjectGenerator

pytestmark = pytest.mark.unit


def _parse_env(text: str) -> dict[str, str]:
    pairs = {}
    for line in text.splitlines():
        if line.strip():
            key, _, value = line.partition("=")
            pairs[key] = value
    return pairs


class TestBuildDatabaseUrl:
    def test_plain_values(self):
        assert (
            build_database_url("user", "password", "db", 5432, "mydb")
            == "postgresql://user:password@db:5432/mydb"
        )

    def test_reserved_characters_percent_encoded(self):
        url = build_database_url("us@er", "p:a/s@s", "db", 5432, "my db")
        assert url == "postgresql://us%40er:p%3Aa%2Fs%40s@db:5432/my%20db"

    def test_empty_password(self):
        assert build_database_url("u", "", "localhost", 1, "d") == "postgresql://u:@localhost:1/d"


class TestEnvFile:
    async def test_writes_all_keys(self, tmp_path):
        opts = ScaffoldOptions(output_dir=tmp_path, app_name="demo-app", db_port="5433")
        path = await ProjectGenerator(opts).write_env(tmp_path)

        assert path == tmp_path / ".env.local"
        env = _parse_env(path.read_text(encoding="utf-8"))
        assert list(env) == list(ENV_KEYS)
        assert env["DB_NAME"] == "mydb"
        assert env["DB_USER"] == "user"
        assert env["DB_PASSWORD"] == "password"
        assert env["DB_PORT"] == "5433"
        assert env["APP_PORT"] == "3000"
        assert env["DATABASE_URL"] == "postgresql://user:password@db:5433/mydb"

    @pytest.mark.parametrize(
        ("user", "password", "host", "port", "name"),
        [
            ("user", "password", "db", 5432, "mydb"),
            ("admin", "s3cret", "localhost", 6543, "shop"),
            ("app_user", "hunter2", "postgres.internal", 15432, "app-db"),
        ],
    )
    async def test_database_url_line_matches_options(self, tmp_path, user, password, host, port, name):
        opts = ScaffoldOptions(
            output_dir=tmp_path, app_name="a",
            db_user=user, db_password=password, db_host=host, db_port=port, db_name=name,
        )
        path = await ProjectGenerator(opts).write_env(tmp_path)
        content = path.read_text(encoding="utf-8")
        expected = f"DATABASE_URL=postgresql://{user}:{password}@{host}:{port}/{name}"
        assert re.search(rf"^{re.escape(expected)}$", content, re.MULTILINE)

    async def test_special_password_quoted_and_encoded(self, tmp_path):
        opts = ScaffoldOptions(output_dir=tmp_path, app_name="a", db_password='p@ss w$rd"')
        path = await ProjectGenerator(opts).write_env(tmp_path)
        env = _parse_env(path.read_text(encoding="utf-8"))
        assert env["DB_PASSWORD"] == "'p@ss w\\$rd\"'"
        assert env["DATABASE_URL"] == "postgresql://user:p%40ss%20w%24rd%22@db:5432/mydb"

    @pytest.mark.parametrize(
        ("password", "quote"),
        [
            ('back\\slash"quote', "'"),
            ("it's\\here", "`"),
            ("it's `cmd`", '"'),
        ],
    )
    async def test_quoted_value_needs_no_unescaping(self, tmp_path, password, quote):
        opts = ScaffoldOptions(output_dir=tmp_path, app_name="a", db_password=password)
        path = await ProjectGenerator(opts).write_env(tmp_path)
        raw = _parse_env(path.read_text(encoding="utf-8"))["DB_PASSWORD"]
        assert raw[0] == raw[-1] == quote
        assert raw[1:-1] == password

    async def test_overwrites_existing_file(self, tmp_path):
        (tmp_path / ".env.local").write_text("STALE=1\n", encoding="utf-8")
        opts = ScaffoldOptions(output_dir=tmp_path, app_name="a")
        path = await ProjectGenerator(opts).write_env(tmp_path)
        assert "STALE" not in path.read_text(encoding="utf-8")


class TestEnvFileHasKey:
    async def test_present(self, tmp_path):
        path = tmp_path / ".env.local"
        path.write_text("APP_PORT=3000\nDATABASE_URL=postgresql://x\n", encoding="utf-8")
        assert await env_file_has_key(path, "DATABASE_URL") is True

    async def test_absent(self, tmp_path):
        path = tmp_path / ".env.local"
        path.write_text("APP_PORT=3000\n", encoding="utf-8")
        assert await env_file_has_key(path, "DATABASE_URL") is False

    async def test_empty_value_counts_as_absent(self, tmp_path):
        path = tmp_path / ".env.local"
        path.write_text("DATABASE_URL=\n", encoding="utf-8")
        assert await env_file_has_key(path, "DATABASE_URL") is False

    async def test_key_only_in_comment_ignored(self, tmp_path):
        path = tmp_path / ".env.local"
        path.write_text("# DATABASE_URL=postgresql://x\n", encoding="utf-8")
        assert await env_file_has_key(path, "DATABASE_URL") is False

    async def test_missing_file(self, tmp_path: Path):
        assert await env_file_has_key(tmp_path / "nope", "DATABASE_URL") is False
