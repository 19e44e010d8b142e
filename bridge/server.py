"""
Bootstrap helpers wiring settings, loader and adapter together.

The same adapter is exposed to ASGI-speaking hosts directly and to
Lambda-style hosts through mangum.
"""

import logging

import uvicorn
from mangum import Mangum

from bridge.adapter import InvocationAdapter
from bridge.loaders import select_loader
from bridge.settings import Settings

logger = logging.getLogger(__name__)


def build_adapter(settings: Settings) -> InvocationAdapter:
    """Select the loader once for this process and inject it."""
    loader = select_loader(settings)
    return InvocationAdapter(loader, completion_timeout=settings.completion_timeout)


def build_lambda_handler(adapter: InvocationAdapter) -> Mangum:
    """Wrap the adapter for hosts that deliver API Gateway style events."""
    return Mangum(adapter, lifespan="off")


def serve(settings: Settings, host: str = "127.0.0.1", port: int = 3000) -> None:
    """Run the adapter under uvicorn for local development."""
    adapter = build_adapter(settings)
    logger.info(
        "Serving adapter",
        extra={"host": host, "port": port, "loader": adapter.loader.target},
    )
    uvicorn.run(adapter, host=host, port=port, log_level="info")
