from __future__ import annotations

import os
from collections.abc import Callable, Generator

import pytest

from app.config import AppSettings, LayoutSettings, RenderSettings, ServerSettings, ViewportSettings


def _clear_jsongraph_env() -> None:
    for key in list(os.environ):
        if key.startswith("JSONGRAPH_"):
            os.environ.pop(key, None)


_clear_jsongraph_env()


@pytest.fixture(autouse=True)
def clear_jsongraph_env() -> Generator[None, None, None]:
    _clear_jsongraph_env()
    yield
    _clear_jsongraph_env()


@pytest.fixture
def server_settings() -> ServerSettings:
    return ServerSettings(title="Test Viewer", max_sessions=8, max_document_bytes=100_000)


@pytest.fixture
def app_settings(server_settings: ServerSettings) -> AppSettings:
    return AppSettings(
        layout=LayoutSettings(),
        render=RenderSettings(),
        viewport=ViewportSettings(),
        server=server_settings,
    )


@pytest.fixture
def app_settings_factory(app_settings: AppSettings) -> Callable[..., AppSettings]:
    def _factory(**overrides: object) -> AppSettings:
        return app_settings.model_copy(update=overrides)

    return _factory
