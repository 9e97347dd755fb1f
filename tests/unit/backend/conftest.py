"""Shared fixtures for backend client unit tests.

Requests never leave the process: every transport is built on
``httpx.MockTransport`` with a handler supplied by the test.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from voice_cal.backend.transport import BackendTransport

BASE_URL = "https://calendar.example.test"

Handler = Callable[[httpx.Request], httpx.Response]


class RecordingHandler:
    """MockTransport handler that records requests and replays responses.

    Each entry in *responses* is either an ``httpx.Response``-like tuple
    ``(status, body)`` where *body* is JSON-serialisable (or ``bytes`` for a
    raw body), or an exception to raise for that request.
    """

    def __init__(self, responses: list[Any]) -> None:
        self._responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        status, body = item
        if isinstance(body, bytes):
            return httpx.Response(status, content=body)
        return httpx.Response(status, json=body)

    @property
    def bodies(self) -> list[dict[str, Any]]:
        """Decoded JSON bodies of the recorded requests."""
        return [json.loads(r.content) for r in self.requests]

    @property
    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


@pytest.fixture()
def make_transport() -> Callable[[list[Any]], tuple[BackendTransport, RecordingHandler]]:
    """Return a factory building a transport around a :class:`RecordingHandler`."""

    def _factory(responses: list[Any]) -> tuple[BackendTransport, RecordingHandler]:
        handler = RecordingHandler(responses)
        client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
        return BackendTransport(BASE_URL, client=client), handler

    return _factory
