"""package.json rewriting."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from stackgen.utils import load_json, save_json

NEXT_SCRIPTS: dict[str, str] = {
    "dev": "next dev",
    "build": "next build",
    "start": "next start",
    "lint": "next lint",
}

RUNTIME_DEPENDENCIES: tuple[str, ...] = (
    "react",
    "react-dom",
    "next",
    "@prisma/client",
    "classnames",
    "bcrypt",
    "jsonwebtoken",
    "sass",
)

DEV_DEPENDENCIES: tuple[str, ...] = (
    "typescript",
    "@types/node",
    "@types/react",
    "@types/react-dom",
    "prisma",
    "eslint",
    "eslint-config-next",
)


async def update_manifest(path: Path, app_name: str) -> dict[str, Any]:
    """Set the package name and replace ``scripts`` with the Next.js set.

    Every other key npm wrote (dependencies, version, ...) is preserved.

    Returns:
        The manifest as written.

    Raises:
        OSError: If the file cannot be read or written.
        ValueError: If the file is not a JSON object (``json.JSONDecodeError``
            is a subclass).
    """
    manifest = load_json(path)
    manifest["name"] = app_name
    manifest["scripts"] = dict(NEXT_SCRIPTS)
    await save_json(manifest, path)
    return manifest
