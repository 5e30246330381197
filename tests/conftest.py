"""
Shared pytest fixtures for hitch tests.

This module provides:
- Settings isolation (no ``HITCH_*`` leakage, fresh settings cache)
- A lifecycle rooted in ``tmp_path``
- Fake mapping factories that record builds and disconnects
- A helper for writing component files below a registration root

Usage:
    def test_reload(fake_lifecycle):
        fake_lifecycle.reload()
        assert fake_lifecycle.container is not None
"""

from __future__ import annotations

import os
import textwrap
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest

from hitch.core.config.sources import ConnectionSpec
from hitch.core.settings import HitchSettings, clear_settings_cache
from hitch.framework.lifecycle import Lifecycle


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark API and CLI tests as integration, everything else as unit."""
    for item in items:
        test_path = item.path.relative_to(Path(__file__).parent)
        if test_path.parts[0] in ("api", "cli"):
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Settings isolation
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Drop ``HITCH_*`` variables and the cached settings around each test."""
    for key in list(os.environ):
        if key.startswith("HITCH_"):
            monkeypatch.delenv(key)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def app_root(tmp_path: Path) -> Path:
    root = tmp_path / "app"
    root.mkdir()
    return root


@pytest.fixture
def settings(app_root: Path) -> HitchSettings:
    return HitchSettings(root=app_root, environment="test", drain_timeout=1.0)


# =============================================================================
# Fake mapping library
# =============================================================================


class FakeConfiguration:
    """Stands in for MappingConfiguration; records auto-registration roots."""

    def __init__(self, gateways: dict[str, Any]):
        self.gateways = gateways
        self.roots: list[tuple[Path, bool]] = []

    def auto_registration(self, root: Path, *, namespace: bool = True) -> FakeConfiguration:
        self.roots.append((root, namespace))
        return self


class FakeContainer:
    """Stands in for Container; counts disconnects."""

    builds = 0

    def __init__(self, configuration: FakeConfiguration):
        FakeContainer.builds += 1
        self.number = FakeContainer.builds
        self.configuration = configuration
        self.missing_gateways: dict[str, str] = {}
        self.disconnects: list[bool] = []
        self.on_disconnect: Callable[[FakeContainer], None] | None = None

    @property
    def disconnect_count(self) -> int:
        return len(self.disconnects)

    def disconnect(self, *, close: bool = True) -> None:
        self.disconnects.append(close)
        if self.on_disconnect is not None:
            self.on_disconnect(self)

    def __repr__(self) -> str:
        return f"FakeContainer(#{self.number})"


class StaticSource:
    """Connection source returning a fixed mapping."""

    def __init__(self, connections: dict[str, ConnectionSpec]):
        self.connections = connections
        self.calls = 0

    def list_connections(self) -> dict[str, ConnectionSpec]:
        self.calls += 1
        return dict(self.connections)


@pytest.fixture
def fake_lifecycle(settings: HitchSettings) -> Lifecycle:
    """Lifecycle wired to the fake mapping library, no connection source."""
    return Lifecycle(
        settings,
        configuration_factory=FakeConfiguration,
        container_factory=FakeContainer,
    )


@pytest.fixture
def lifecycle(settings: HitchSettings) -> Generator[Lifecycle, None, None]:
    """Lifecycle backed by the real SQLAlchemy mapping library."""
    lc = Lifecycle(settings)
    yield lc
    lc.disconnect_container()


# =============================================================================
# Component files
# =============================================================================


@pytest.fixture
def write_component() -> Callable[..., Path]:
    """Write a component module below a registration root.

    Example:
        write_component(app_root, "relations/users.py", '''
            from hitch.mapping import Relation

            class Users(Relation):
                dataset = "users"
        ''')
    """

    def _write(root: Path, relative: str, source: str) -> Path:
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(source).lstrip(), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def users_component(app_root: Path, write_component: Callable[..., Path]) -> Path:
    """A ``Users`` relation on the default gateway under the application root."""
    return write_component(
        app_root,
        "relations/users.py",
        """
        from hitch.mapping import Relation


        class Users(Relation):
            dataset = "users"
        """,
    )


@pytest.fixture
def make_source() -> Callable[..., StaticSource]:
    """Build a connection source from ``name=uri`` keywords."""

    def _make(**uris: str) -> StaticSource:
        return StaticSource({name: ConnectionSpec(uri=uri) for name, uri in uris.items()})

    return _make
