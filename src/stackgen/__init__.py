"""stackgen -- scaffold a Next.js + Prisma + PostgreSQL application."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("stackgen")
except PackageNotFoundError:
    __version__ = "0.0.0"
