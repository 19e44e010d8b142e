"""Local entry point: serve the API bridge with uvicorn."""

import logging
import os

from bridge.server import serve
from bridge.settings import Settings


def _configure_logging() -> None:
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def main() -> None:
    """Bootstrap and run the bridge until interrupted."""
    _configure_logging()
    logger = logging.getLogger("api-bridge")
    settings = Settings.load()
    port = int(os.getenv("PORT", "3000"))

    try:
        logger.info(
            "API bridge starting at http://localhost:%s/api (mode: %s)",
            port,
            settings.deployment_mode or "production",
        )
        serve(settings, port=port)
    except KeyboardInterrupt:
        logger.info("Shutdown requested (Ctrl+C).")
    except Exception:
        logger.exception("Server stopped due to an unexpected error.")
        raise
    finally:
        logger.info("Server shutdown complete.")


if __name__ == "__main__":
    main()
