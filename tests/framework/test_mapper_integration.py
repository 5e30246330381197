"""Tests for hitch.framework.integration.MapperIntegration."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from hitch.framework.hooks import HookPoint, HookRegistry
from hitch.framework.integration import MapperIntegration


class TestRegister:
    def test_one_callback_per_point(self, fake_lifecycle):
        hooks = MapperIntegration(fake_lifecycle).register(HookRegistry())
        for point in HookPoint:
            assert len(hooks.callbacks(point)) == 1

    def test_returns_given_registry(self, fake_lifecycle):
        hooks = HookRegistry()
        assert MapperIntegration(fake_lifecycle).register(hooks) is hooks


class TestBeforeConfiguration:
    def test_creates_store_and_loads_initializer(self, fake_lifecycle):
        integration = MapperIntegration(fake_lifecycle)
        hooks = integration.register(HookRegistry())
        with patch.object(fake_lifecycle, "load_initializer") as mock_load:
            integration.boot(hooks)
        assert fake_lifecycle._config is not None
        mock_load.assert_called_once_with()

    def test_keeps_existing_store(self, fake_lifecycle):
        fake_lifecycle.config.set_gateway("search", ("sql", "sqlite://"))
        integration = MapperIntegration(fake_lifecycle)
        integration.boot(integration.register(HookRegistry()))
        assert fake_lifecycle.config.has_gateway("search")


class TestOnLoad:
    def test_app_exposes_lifecycle(self, fake_lifecycle):
        app = SimpleNamespace(state=SimpleNamespace())
        MapperIntegration(fake_lifecycle).on_load("app", app)
        assert app.state.hitch is fake_lifecycle

    def test_other_kinds_ignored(self, fake_lifecycle):
        component = SimpleNamespace(state=SimpleNamespace())
        MapperIntegration(fake_lifecycle).on_load("router", component)
        assert not hasattr(component.state, "hitch")


class TestEagerLoad:
    def test_component_dirs_removed(self, fake_lifecycle, app_root):
        root = app_root.resolve()
        paths = [str(root / "relations"), str(root / "lib"), str(root / "mappers")]
        hooks = MapperIntegration(fake_lifecycle).register(HookRegistry())
        hooks.run(HookPoint.BEFORE_EAGER_LOAD, paths)
        assert paths == [str(root / "lib")]


class TestReload:
    def test_reload_hook_rebuilds(self, fake_lifecycle):
        hooks = MapperIntegration(fake_lifecycle).register(HookRegistry())
        hooks.run(HookPoint.ON_RELOAD)
        first = fake_lifecycle.container
        hooks.run(HookPoint.ON_RELOAD, "app")
        assert fake_lifecycle.container is not first
        assert first.disconnect_count == 1


class TestConsole:
    @patch("hitch.framework.integration.configure_console_logger")
    def test_without_other_orm(self, mock_console, fake_lifecycle):
        MapperIntegration(fake_lifecycle).on_console_start()
        mock_console.assert_called_once_with(other_orm_active=False)

    @patch("hitch.framework.integration.configure_console_logger")
    def test_with_other_orm(self, mock_console, fake_lifecycle):
        fake_lifecycle.source = MagicMock()
        MapperIntegration(fake_lifecycle).on_console_start()
        mock_console.assert_called_once_with(other_orm_active=True)


class TestCliTasks:
    def test_enabled_without_source(self, fake_lifecycle):
        assert MapperIntegration(fake_lifecycle).cli_tasks_enabled() is True

    def test_disabled_with_source(self, fake_lifecycle):
        fake_lifecycle.source = MagicMock()
        assert MapperIntegration(fake_lifecycle).cli_tasks_enabled() is False
