from __future__ import annotations

import threading
from collections.abc import Iterable

import pytest

from feeds import FeedClient, FeedError, Item, Section
from orchestrator import FetchOrchestrator, OrchestratorSettings


def make_items(prefix: str, count: int, start_id: int = 1) -> list[Item]:
    return [
        Item(
            id=start_id + offset,
            title=f"{prefix} story {offset + 1}",
            url=f"https://example.com/{prefix.lower()}/{offset + 1}",
            text=None,
            author=f"{prefix.lower()}_author",
            score=10 + offset,
        )
        for offset in range(count)
    ]


class FakeClient:
    def __init__(self, results: dict[Section, list[Item] | BaseException] | None = None) -> None:
        self.results = results or {}
        self.calls: list[Section] = []
        self.hang: set[Section] = set()
        self.release = threading.Event()
        self._lock = threading.Lock()

    def fetch(self, section: Section) -> list[Item]:
        with self._lock:
            self.calls.append(section)
        if section in self.hang:
            self.release.wait(5)
            raise FeedError("released after test")
        result = self.results.get(section, [])
        if isinstance(result, BaseException):
            raise result
        return list(result)


class RecordingSurface:
    def __init__(self) -> None:
        self.updates: list[object] = []

    def update(self, renderable: object, refresh: bool = False) -> None:
        self.updates.append(renderable)


class CountingIndicator:
    def __init__(self) -> None:
        self.advanced: list[float] = []
        self.rendered = 0

    def advance(self, elapsed: float) -> None:
        self.advanced.append(elapsed)

    def render(self, surface: RecordingSurface) -> None:
        self.rendered += 1
        surface.update("busy", refresh=True)


class ScriptedKeys:
    def __init__(self, keys: Iterable[str | None] = ()) -> None:
        self.keys = list(keys)
        self.polls: list[float] = []

    def __call__(self, timeout: float) -> str | None:
        self.polls.append(timeout)
        if self.keys:
            return self.keys.pop(0)
        return None


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += seconds


FAST_SETTINGS = OrchestratorSettings(tick_seconds=0.001, poll_seconds=0.0, deadline_seconds=5.0)


@pytest.fixture
def client():
    fake = FakeClient()
    yield fake
    fake.release.set()


@pytest.fixture
def surface() -> RecordingSurface:
    return RecordingSurface()


@pytest.fixture
def indicator() -> CountingIndicator:
    return CountingIndicator()


def build_orchestrator(
    client: FeedClient,
    surface: RecordingSurface,
    indicator: CountingIndicator | None = None,
    keys: ScriptedKeys | None = None,
    settings: OrchestratorSettings = FAST_SETTINGS,
    clock: FakeClock | None = None,
) -> FetchOrchestrator:
    busy = indicator or CountingIndicator()
    kwargs = {}
    if clock is not None:
        kwargs = {"clock": clock, "sleep": clock.sleep}
    return FetchOrchestrator(
        client,
        surface=surface,
        indicator_factory=lambda: busy,
        poll_key=keys or ScriptedKeys(),
        settings=settings,
        **kwargs,
    )
