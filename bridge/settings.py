"""Environment-driven configuration for the API route bridge."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEVELOPMENT = "development"

DEFAULT_SOURCE_ROOT = "budget-tracker-backend/src"
DEFAULT_SOURCE_MODULE = "server"
DEFAULT_BUILD_ARTIFACT = ".build/server.py"
DEFAULT_APP_ATTRIBUTE = "app"
DEFAULT_COMPLETION_TIMEOUT = 25.0


@dataclass(frozen=True, slots=True)
class Settings:
    """Container for process-wide runtime configuration."""

    deployment_mode: str = ""
    source_root: str = DEFAULT_SOURCE_ROOT
    source_module: str = DEFAULT_SOURCE_MODULE
    build_artifact: str = DEFAULT_BUILD_ARTIFACT
    app_attribute: str = DEFAULT_APP_ATTRIBUTE
    completion_timeout: float | None = DEFAULT_COMPLETION_TIMEOUT

    @classmethod
    def load(cls) -> "Settings":
        """
        Load configuration from environment variables.

        Read once at process start. Python-dotenv is used so developers can
        keep APP_ENV and friends in a local .env file.
        """
        load_dotenv()

        # Compared verbatim later on; only the exact literal selects development.
        deployment_mode = os.getenv("APP_ENV", "")

        source_root = os.getenv("APP_SOURCE_ROOT", "").strip() or DEFAULT_SOURCE_ROOT
        source_module = os.getenv("APP_SOURCE_MODULE", "").strip() or DEFAULT_SOURCE_MODULE
        build_artifact = os.getenv("APP_BUILD_ARTIFACT", "").strip() or DEFAULT_BUILD_ARTIFACT
        app_attribute = os.getenv("APP_ATTRIBUTE", "").strip() or DEFAULT_APP_ATTRIBUTE

        timeout_raw = os.getenv("COMPLETION_TIMEOUT", "").strip() or str(DEFAULT_COMPLETION_TIMEOUT)
        try:
            completion_timeout = float(timeout_raw)
        except ValueError as exc:
            raise ValueError("COMPLETION_TIMEOUT must be a numeric value.") from exc
        if completion_timeout < 0:
            raise ValueError("COMPLETION_TIMEOUT must not be negative.")

        return cls(
            deployment_mode=deployment_mode,
            source_root=source_root,
            source_module=source_module,
            build_artifact=build_artifact,
            app_attribute=app_attribute,
            completion_timeout=completion_timeout or None,
        )
