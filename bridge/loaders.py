"""
Strategies for locating the wrapped ASGI application.

One loader is selected at process start from the deployment mode and injected
into the adapter. Development imports the application from the unbuilt source
tree on first use; every other mode loads the prebuilt artifact.
"""

import importlib
import importlib.util
import logging
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from types import ModuleType

from bridge.asgi import ASGIApp
from bridge.settings import DEVELOPMENT, Settings

logger = logging.getLogger(__name__)

ARTIFACT_MODULE_NAME = "_bridge_built_application"


class ResolutionError(RuntimeError):
    """Raised when the wrapped application cannot be located or loaded."""


def is_development(mode: str | None) -> bool:
    """Exact match only; unset, empty or any other value means production."""
    return mode == DEVELOPMENT


def _application_from(module: ModuleType, attribute: str, origin: str) -> ASGIApp:
    try:
        application = getattr(module, attribute)
    except AttributeError as exc:
        raise ResolutionError(f"{origin} does not define '{attribute}'.") from exc
    if not callable(application):
        raise ResolutionError(f"{origin}:{attribute} is not callable.")
    return application


class CapabilityLoader(ABC):
    """Resolves the application once and hands out the cached reference."""

    def __init__(self, attribute: str = "app") -> None:
        self.attribute = attribute
        self._application: ASGIApp | None = None

    def resolve(self) -> ASGIApp:
        if self._application is None:
            self._application = self._load()
            logger.info(
                "Application resolved",
                extra={"loader": type(self).__name__, "target": self.target},
            )
        return self._application

    @property
    @abstractmethod
    def target(self) -> str:
        """Human readable location of the application."""

    @abstractmethod
    def _load(self) -> ASGIApp:
        raise NotImplementedError


class DevLoader(CapabilityLoader):
    """Imports the application from the unbuilt source tree on demand."""

    def __init__(self, source_root: str | Path, module: str, attribute: str = "app") -> None:
        super().__init__(attribute)
        self.source_root = Path(source_root).resolve()
        self.module = module

    @property
    def target(self) -> str:
        return f"{self.source_root}:{self.module}.{self.attribute}"

    def _load(self) -> ASGIApp:
        if not self.source_root.is_dir():
            raise ResolutionError(f"Source tree {self.source_root} does not exist.")
        root = str(self.source_root)
        if root not in sys.path:
            sys.path.insert(0, root)
        try:
            module = importlib.import_module(self.module)
        except Exception as exc:
            raise ResolutionError(
                f"Failed to import '{self.module}' from {self.source_root}: {exc!s}"
            ) from exc
        return _application_from(module, self.attribute, self.module)


class ProdLoader(CapabilityLoader):
    """Loads the application from a prebuilt artifact file."""

    def __init__(self, artifact: str | Path, attribute: str = "app") -> None:
        super().__init__(attribute)
        self.artifact = Path(artifact).resolve()

    @property
    def target(self) -> str:
        return f"{self.artifact}:{self.attribute}"

    def _load(self) -> ASGIApp:
        if not self.artifact.is_file():
            raise ResolutionError(f"Build artifact {self.artifact} does not exist.")
        spec = importlib.util.spec_from_file_location(ARTIFACT_MODULE_NAME, self.artifact)
        if spec is None or spec.loader is None:
            raise ResolutionError(f"Build artifact {self.artifact} is not a loadable module.")
        module = importlib.util.module_from_spec(spec)
        try:
            spec.loader.exec_module(module)
        except Exception as exc:
            raise ResolutionError(
                f"Failed to load build artifact {self.artifact}: {exc!s}"
            ) from exc
        return _application_from(module, self.attribute, str(self.artifact))


def select_loader(settings: Settings) -> CapabilityLoader:
    """Pick the loader for this process. Called once at startup."""
    if is_development(settings.deployment_mode):
        loader: CapabilityLoader = DevLoader(
            settings.source_root,
            settings.source_module,
            settings.app_attribute,
        )
    else:
        loader = ProdLoader(settings.build_artifact, settings.app_attribute)
    logger.info(
        "Selected application loader",
        extra={"loader": type(loader).__name__, "deployment_mode": settings.deployment_mode or "unset"},
    )
    return loader
