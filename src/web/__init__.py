"""HTTP surface for pages, import, ingest and analysis."""

from src.web.server import create_app, run_server

__all__ = ["create_app", "run_server"]
