"""
Serverless entry point for every request under /api.

ASGI-speaking runtimes pick up ``app``; Lambda-style runtimes call ``handler``.
Settings and the loader are fixed once per cold start.
"""

import logging
import os

from bridge.server import build_adapter, build_lambda_handler
from bridge.settings import Settings

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)

settings = Settings.load()
app = build_adapter(settings)
handler = build_lambda_handler(app)

__all__ = ["app", "handler"]
