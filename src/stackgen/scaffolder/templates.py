"""Jinja2 template rendering for project scaffolding.

Provides the TemplateRenderer class which loads Jinja2 templates from the
``stackgen/scaffolder/templates/`` directory and renders them with a context
built from ``ScaffoldOptions``.  Values coming from the user are never
concatenated into the output by hand: templates quote them through the
``env_quote`` and built-in ``tojson`` filters.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates for project scaffolding.

    Undefined variables raise instead of rendering as empty strings, so a
    template that drifts from the context fails loudly.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([], default_for_string=False),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["env_quote"] = _env_quote_filter

    # -- Single template rendering -----------------------------------------

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"docker-compose.yml.j2"``).
            context: Dictionary of variables available inside the template.

        Returns:
            The rendered template content as a string.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)

    # -- File-based rendering (async) --------------------------------------

    async def render_to_file(
        self,
        template_path: str,
        output_path: str | Path,
        context: dict[str, Any],
    ) -> Path:
        """Render a template and write the result to *output_path*.

        Parent directories are created automatically and an existing file is
        overwritten.  Returns the output path.
        """
        content = self.render(template_path, context)
        out = Path(output_path)
        await asyncio.to_thread(_write_file, out, content)
        return out


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

_ENV_UNSAFE = re.compile(r"[\s#\"'$\\`]")
_DOTENV_QUOTES = ("'", "`", '"')


def _env_quote_filter(value: Any) -> str:
    """Quote a dotenv value when it contains characters dotenv would mangle.

    Plain values are left bare so ``DB_PORT=5432`` stays readable.  dotenv
    strips the surrounding quotes but never unescapes ``\\"`` or ``\\\\``, so
    the value is wrapped in the first quote character it does not contain.
    Double quotes come last because dotenv expands ``\\n`` inside them.
    ``$`` is written as ``\\$`` since Next.js expands variables in env files.

    Raises:
        ValueError: If no quote character can hold the value unchanged.
    """
    text = str(value)
    if text and not _ENV_UNSAFE.search(text):
        return text
    text = text.replace("$", "\\$")
    for quote in _DOTENV_QUOTES:
        if quote in text:
            continue
        if quote == '"' and ("\\n" in text or "\\r" in text):
            continue
        return f"{quote}{text}{quote}"
    raise ValueError(f"Value cannot be written to a dotenv file: {value!r}")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _write_file(path: Path, content: str) -> None:
    """Synchronous helper: create parent dirs and write content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
