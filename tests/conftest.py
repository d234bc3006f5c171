"""Shared fixtures: configs and an in-process fake HTTP transport."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Iterable, Mapping

import httpx
import pytest

from adblock2hosts.config import ConfigLocator, ConfigRepository, GlobalConfig

Route = int | str | bytes | tuple[int, str | bytes] | Exception | httpx.Response


class FakeRuleServer:
    """Map URLs to canned responses and record every request."""

    def __init__(self, routes: Mapping[str, Route]) -> None:
        self.routes = dict(routes)
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(str(request.url))
        if route is None:
            return httpx.Response(404, request=request)
        if isinstance(route, httpx.Response):
            return route
        if isinstance(route, Exception):
            raise route
        if isinstance(route, int):
            return httpx.Response(route, request=request)
        if isinstance(route, tuple):
            status, body = route
        else:
            status, body = 200, route
        content = body.encode("utf-8") if isinstance(body, str) else body
        return httpx.Response(status, request=request, content=content)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def requested_urls(self) -> list[str]:
        return [str(request.url) for request in self.requests]


@pytest.fixture
def rule_server() -> Callable[[Mapping[str, Route]], FakeRuleServer]:
    def _builder(routes: Mapping[str, Route]) -> FakeRuleServer:
        return FakeRuleServer(routes)

    return _builder


@pytest.fixture
def sample_global_config(tmp_path: Path) -> Callable[..., GlobalConfig]:
    def _builder(**overrides: Any) -> GlobalConfig:
        base: dict[str, Any] = {
            "sources": ["https://lists.example.org/a.txt"],
            "output_path": tmp_path / "hosts.txt",
            "request_timeout": 10.0,
            "thread_pool_workers": 4,
        }
        base.update(overrides)
        return GlobalConfig(**base)

    return _builder


@pytest.fixture
def temp_config_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterable[ConfigRepository]:
    monkeypatch.setenv("ADBLOCK2HOSTS_HOME", str(tmp_path))
    locator = ConfigLocator(project_root=tmp_path)
    yield ConfigRepository(locator)
