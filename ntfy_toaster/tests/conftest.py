"""
Shared fakes for the ntfy_toaster tests.

HTTP is replaced by an in-process session/response pair whose body is fed
line by line from the test; backoff waits are recorded instead of slept.
"""
from __future__ import annotations

import asyncio
from collections import deque
from typing import Any, Callable

import pytest

_END = object()


# ── HTTP fakes ────────────────────────────────────────────────────────────────

class FakeContent:
    """Async line iterator standing in for aiohttp's response.content."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue()

    def feed(self, item: Any) -> None:
        self._queue.put_nowait(item)

    def __aiter__(self) -> "FakeContent":
        return self

    async def __anext__(self) -> bytes:
        item = await self._queue.get()
        if item is _END:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item


class FakeResponse:
    """
    A streaming response. Lines pushed after construction arrive later,
    as they would on a live connection. Without end/error the body stays
    open forever.
    """

    def __init__(
        self,
        lines: tuple[str, ...] | list[str] = (),
        *,
        status: int = 200,
        end: bool = False,
        error: BaseException | None = None,
    ) -> None:
        self.status = status
        self.content = FakeContent()
        self.closed = False
        self.released = False
        for line in lines:
            self.push(line)
        if error is not None:
            self.fail(error)
        elif end:
            self.finish()

    def push(self, line: str) -> None:
        self.content.feed(line.encode() + b"\n")

    def finish(self) -> None:
        self.content.feed(_END)

    def fail(self, exc: BaseException) -> None:
        self.content.feed(exc)

    def close(self) -> None:
        self.closed = True

    def release(self) -> None:
        self.released = True


class FakeSession:
    """
    Scripted stand-in for aiohttp.ClientSession.

    ``routes`` maps a stream URL to the outcomes of successive GETs: a
    FakeResponse is returned, an exception is raised. Once a route runs
    out, further GETs hang until cancelled.
    """

    def __init__(
        self,
        routes: dict[str, list[Any]] | None = None,
        timeline: list[Any] | None = None,
    ) -> None:
        self._routes = {url: deque(outcomes) for url, outcomes in (routes or {}).items()}
        self.requests: list[tuple[str, dict[str, str]]] = []
        self.timeline = timeline if timeline is not None else []

    def add(self, url: str, outcome: Any) -> None:
        self._routes.setdefault(url, deque()).append(outcome)

    async def get(self, url: str, headers: dict[str, str] | None = None) -> FakeResponse:
        self.requests.append((url, dict(headers or {})))
        self.timeline.append(("connect", url))

        outcomes = self._routes.get(url)
        if not outcomes:
            await asyncio.Event().wait()

        outcome = outcomes.popleft()
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


# ── Timing and rendering fakes ────────────────────────────────────────────────

class RecordingSleep:
    """Records backoff delays and returns without waiting."""

    def __init__(self, timeline: list[Any]) -> None:
        self.delays: list[float] = []
        self._timeline = timeline

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        self._timeline.append(("sleep", delay))
        await asyncio.sleep(0)


class RecordingRenderer:
    def __init__(self) -> None:
        self.calls: list[tuple[Any, str]] = []

    async def render(self, event: Any, source_url: str) -> None:
        self.calls.append((event, source_url))


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture
def timeline() -> list[Any]:
    """Ordered record of connect attempts and backoff sleeps."""
    return []


@pytest.fixture
def fake_sleep(timeline):
    return RecordingSleep(timeline)


@pytest.fixture
def make_session(timeline) -> Callable[..., FakeSession]:
    def _make(routes: dict[str, list[Any]] | None = None) -> FakeSession:
        return FakeSession(routes, timeline)

    return _make


@pytest.fixture
def make_response() -> type[FakeResponse]:
    return FakeResponse


@pytest.fixture
def renderer() -> RecordingRenderer:
    return RecordingRenderer()


@pytest.fixture
def wait_until():
    """Poll ``predicate`` on the running loop until true or time out."""

    async def _wait(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not met before timeout")
            await asyncio.sleep(0.001)

    return _wait
