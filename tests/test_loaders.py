import sys
import uuid
from pathlib import Path

import pytest

from bridge.loaders import (
    DevLoader,
    ProdLoader,
    ResolutionError,
    is_development,
    select_loader,
)
from bridge.settings import Settings

APPLICATION_SOURCE = """
async def app(scope, receive, send):
    await send({"type": "http.response.start", "status": 200, "headers": []})
    await send({"type": "http.response.body", "body": b"%s"})
"""


def _write_module(directory: Path, name: str, marker: str) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{name}.py"
    path.write_text(APPLICATION_SOURCE % marker)
    return path


@pytest.fixture(autouse=True)
def _isolate_sys_path(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sys, "path", list(sys.path))


@pytest.mark.parametrize(
    ("mode", "expected"),
    [
        ("development", True),
        ("production", False),
        ("", False),
        (None, False),
        ("Development", False),
        (" development", False),
        ("dev", False),
    ],
)
def test_is_development_requires_exact_literal(mode: str | None, expected: bool) -> None:
    assert is_development(mode) is expected


def test_select_loader_development_uses_source_tree(tmp_path: Path) -> None:
    settings = Settings(
        deployment_mode="development",
        source_root=str(tmp_path / "src"),
        source_module="server",
    )
    loader = select_loader(settings)
    assert isinstance(loader, DevLoader)
    assert loader.source_root == (tmp_path / "src").resolve()
    assert loader.module == "server"


@pytest.mark.parametrize("mode", ["", "production", "staging", "DEVELOPMENT"])
def test_select_loader_defaults_to_build_artifact(mode: str, tmp_path: Path) -> None:
    settings = Settings(deployment_mode=mode, build_artifact=str(tmp_path / "build" / "server.py"))
    loader = select_loader(settings)
    assert isinstance(loader, ProdLoader)
    assert loader.artifact == (tmp_path / "build" / "server.py").resolve()


def test_dev_loader_imports_from_source_tree(tmp_path: Path) -> None:
    module_name = f"budget_server_{uuid.uuid4().hex}"
    _write_module(tmp_path / "src", module_name, "dev")

    loader = DevLoader(tmp_path / "src", module_name)
    application = loader.resolve()

    assert callable(application)
    assert application.__module__ == module_name
    assert loader.resolve() is application


def test_prod_loader_loads_build_artifact(tmp_path: Path) -> None:
    artifact = _write_module(tmp_path / ".build", "server", "prod")

    loader = ProdLoader(artifact)
    application = loader.resolve()

    assert callable(application)
    assert loader.resolve() is application
    assert str(artifact) in loader.target


def test_prod_loader_missing_artifact_raises(tmp_path: Path) -> None:
    loader = ProdLoader(tmp_path / ".build" / "server.py")
    with pytest.raises(ResolutionError) as exc:
        loader.resolve()
    assert "does not exist" in str(exc.value)


def test_dev_loader_missing_source_tree_raises(tmp_path: Path) -> None:
    loader = DevLoader(tmp_path / "missing", "server")
    with pytest.raises(ResolutionError):
        loader.resolve()


def test_dev_loader_wraps_import_errors(tmp_path: Path) -> None:
    module_name = f"broken_server_{uuid.uuid4().hex}"
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / f"{module_name}.py").write_text("import budget_tracker_missing_dependency\n")

    loader = DevLoader(tmp_path / "src", module_name)
    with pytest.raises(ResolutionError) as exc:
        loader.resolve()
    assert isinstance(exc.value.__cause__, ImportError)


def test_loader_rejects_missing_or_non_callable_attribute(tmp_path: Path) -> None:
    artifact = tmp_path / "server.py"
    artifact.write_text("app = 'not an application'\n")

    with pytest.raises(ResolutionError) as exc:
        ProdLoader(artifact).resolve()
    assert "not callable" in str(exc.value)

    with pytest.raises(ResolutionError) as exc:
        ProdLoader(artifact, attribute="application").resolve()
    assert "does not define 'application'" in str(exc.value)


def test_failed_resolution_is_retried_on_next_call(tmp_path: Path) -> None:
    artifact = tmp_path / ".build" / "server.py"
    loader = ProdLoader(artifact)
    with pytest.raises(ResolutionError):
        loader.resolve()

    _write_module(artifact.parent, "server", "late")
    assert callable(loader.resolve())
