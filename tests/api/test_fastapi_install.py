"""Tests for hitch.api: install(), lifespan wiring, per-request reload and deps."""

from __future__ import annotations

from contextlib import asynccontextmanager

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from hitch.api import ContainerDep, LifecycleDep, install


def _make_app(**kwargs) -> FastAPI:
    app = FastAPI(**kwargs)

    @app.get("/container")
    def current(container: ContainerDep):
        return {"number": container.number}

    @app.get("/lifecycle")
    def lifecycle_info(lifecycle: LifecycleDep):
        return {"gateways": sorted(lifecycle.config.gateways)}

    return app


class TestInstall:
    def test_exposes_lifecycle_and_hooks(self, fake_lifecycle):
        app = _make_app()
        hooks = install(app, fake_lifecycle, reload_per_request=False)
        assert app.state.hitch is fake_lifecycle
        assert app.state.hitch_hooks is hooks
        assert fake_lifecycle._config is not None

    def test_eager_load_paths_adjusted(self, fake_lifecycle, app_root):
        root = app_root.resolve()
        app = _make_app()
        app.state.eager_load_paths = [str(root / "relations"), str(root / "lib")]
        install(app, fake_lifecycle, reload_per_request=False)
        assert app.state.eager_load_paths == [str(root / "lib")]

    def test_eager_load_paths_default(self, fake_lifecycle):
        app = _make_app()
        install(app, fake_lifecycle, reload_per_request=False)
        assert app.state.eager_load_paths == []

    def test_no_container_before_startup(self, fake_lifecycle):
        app = _make_app()
        install(app, fake_lifecycle, reload_per_request=False)
        assert fake_lifecycle.container is None


class TestLifespan:
    def test_startup_reload_and_shutdown_disconnect(self, fake_lifecycle):
        app = _make_app()
        install(app, fake_lifecycle, reload_per_request=False)

        with TestClient(app) as client:
            container = fake_lifecycle.container
            assert container is not None
            response = client.get("/container")
            assert response.status_code == 200
            assert response.json() == {"number": container.number}

        assert fake_lifecycle.container is None
        assert container.disconnect_count == 1

    def test_user_lifespan_still_runs(self, fake_lifecycle):
        events = []

        @asynccontextmanager
        async def lifespan(app):
            events.append(("startup", fake_lifecycle.container is not None))
            yield
            events.append(("shutdown", fake_lifecycle.container is not None))

        app = _make_app(lifespan=lifespan)
        install(app, fake_lifecycle, reload_per_request=False)
        with TestClient(app):
            pass

        assert events == [("startup", True), ("shutdown", True)]
        assert fake_lifecycle.container is None

    def test_same_container_without_per_request_reload(self, fake_lifecycle):
        app = _make_app()
        install(app, fake_lifecycle, reload_per_request=False)
        with TestClient(app) as client:
            first = client.get("/container").json()
            second = client.get("/container").json()
        assert first == second

    def test_lifecycle_dependency(self, fake_lifecycle):
        app = _make_app()
        install(app, fake_lifecycle, reload_per_request=False)
        with TestClient(app) as client:
            assert client.get("/lifecycle").json() == {"gateways": ["default"]}


class TestPerRequestReload:
    def test_new_container_per_request(self, fake_lifecycle):
        app = _make_app()
        install(app, fake_lifecycle, reload_per_request=True)
        with TestClient(app) as client:
            startup = fake_lifecycle.container
            first = client.get("/container").json()["number"]
            second = client.get("/container").json()["number"]

        assert first != second
        assert startup.number not in (first, second)
        assert startup.disconnect_count == 1

    @pytest.mark.parametrize("environment, expected", [("development", True), ("production", False)])
    def test_default_follows_settings(self, fake_lifecycle, environment, expected):
        fake_lifecycle.settings.environment = environment
        app = _make_app()
        install(app, fake_lifecycle)
        with TestClient(app) as client:
            first = client.get("/container").json()
            second = client.get("/container").json()
        assert (first != second) is expected


class TestContainerNotReady:
    def test_503_before_first_reload(self, fake_lifecycle):
        app = _make_app()
        install(app, fake_lifecycle, reload_per_request=False)
        client = TestClient(app)  # lifespan not started
        response = client.get("/container")
        assert response.status_code == 503
        assert response.headers["content-type"].startswith("application/problem+json")
        body = response.json()
        assert body["status"] == 503
        assert body["instance"] == "/container"
