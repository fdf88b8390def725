"""Shared fixtures for wren tests.

``trace`` collects enter/exit events so tests can assert the exact order
in which middleware layers and handlers ran.
"""

import pytest

from wren.handler import Handler
from wren.http.request import Request
from wren.http.response import Response
from wren.testing import RecordingLog, RecordingMetrics


class Trace:
    def __init__(self) -> None:
        self.events: list[str] = []

    def __call__(self, event: str) -> None:
        self.events.append(event)


class TracingMiddleware:
    """Records ``enter <label>`` before next and ``exit <label>`` after."""

    def __init__(self, label: str, trace: Trace) -> None:
        self.label = label
        self.trace = trace
        self.name = label

    def wrap(self, next: Handler) -> Handler:
        return _TracingLayer(self, next)


class _TracingLayer:
    def __init__(self, owner: TracingMiddleware, next: Handler) -> None:
        self.owner = owner
        self.next = next

    async def handle(self, request: Request, response: Response) -> None:
        self.owner.trace(f"enter {self.owner.label}")
        await self.next.handle(request, response)
        self.owner.trace(f"exit {self.owner.label}")


class TracingHandler:
    """Terminal handler that records one event and writes a fixed response."""

    def __init__(self, label: str, trace: Trace, body: str = "ok", status: int = 200) -> None:
        self.label = label
        self.trace = trace
        self.body = body
        self.status = status
        self.calls = 0
        self.name = label

    async def handle(self, request: Request, response: Response) -> None:
        self.calls += 1
        self.trace(f"handle {self.label}")
        response.write(self.body, status=self.status)


@pytest.fixture
def trace() -> Trace:
    return Trace()


@pytest.fixture
def metrics() -> RecordingMetrics:
    return RecordingMetrics()


@pytest.fixture
def log() -> RecordingLog:
    return RecordingLog()
