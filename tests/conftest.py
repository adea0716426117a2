"""Shared fixtures: a scripted local Manapool backend on aiohttp's TestServer."""

from __future__ import annotations

import contextlib
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import orjson
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from manapool.config import ClientConfig

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


@dataclass
class RecordedRequest:
    method: str
    path: str
    query: list[tuple[str, str]]
    headers: dict[str, str]
    body: bytes


@dataclass
class ScriptedResponse:
    status: int = 200
    body: bytes = b""
    content_type: str = "application/json"


@dataclass
class FakeManapool:
    """
    Records every request and replies from a queue of scripted responses.

    When the queue is empty, `default` is returned.
    """

    requests: list[RecordedRequest] = field(default_factory=list)
    responses: deque[ScriptedResponse] = field(default_factory=deque)
    default: ScriptedResponse = field(default_factory=lambda: ScriptedResponse(200, b"{}"))

    def reply(self, status: int = 200, body: Any = b"", *, times: int = 1) -> None:
        """Queue a response; dicts and lists are JSON-encoded."""
        raw = body if isinstance(body, bytes) else orjson.dumps(body)
        for _ in range(times):
            self.responses.append(ScriptedResponse(status, raw))

    def always(self, status: int = 200, body: Any = b"") -> None:
        raw = body if isinstance(body, bytes) else orjson.dumps(body)
        self.default = ScriptedResponse(status, raw)

    @property
    def hits(self) -> int:
        return len(self.requests)

    async def _handle(self, request: web.Request) -> web.Response:
        self.requests.append(
            RecordedRequest(
                method=request.method,
                path=request.path,
                query=list(request.query.items()),
                headers=dict(request.headers),
                body=await request.read(),
            )
        )
        scripted = self.responses.popleft() if self.responses else self.default
        return web.Response(
            status=scripted.status,
            body=scripted.body,
            content_type=scripted.content_type,
        )

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_route("*", "/{tail:.*}", self._handle)
        return app

    @contextlib.asynccontextmanager
    async def serve(self) -> AsyncIterator[str]:
        """Run the backend; yields its base URL (ending in "/")."""
        async with TestServer(self.app()) as server:
            yield str(server.make_url("/"))


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Any:
    """Undo setup_logging() so no handler outlives the captured stream it wrote to."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def fake_api() -> FakeManapool:
    """Fresh scripted backend."""
    return FakeManapool()


@pytest.fixture
def make_config() -> Any:
    """Factory for test configs: fast backoff, unlimited rate by default."""

    def _make(base_url: str, **overrides: Any) -> ClientConfig:
        values: dict[str, Any] = {
            "access_token": "test-token",
            "email": "seller@example.com",
            "base_url": base_url,
            "rate_limit": float("inf"),
            "initial_backoff_s": 0.001,
            "timeout_s": 5.0,
        }
        values.update(overrides)
        return ClientConfig(**values)

    return _make


class RecordingSleep:
    """Backoff sleep stand-in that records delays without waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
