from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from concurrent.futures import CancelledError, Future
from dataclasses import dataclass, field
from typing import Any, Protocol

from feeds import FeedClient, FeedError, Item, Section, short_error

logger = logging.getLogger(__name__)

DEFAULT_TICK_SECONDS = 0.016
DEFAULT_POLL_SECONDS = 0.05
DEFAULT_DEADLINE_SECONDS = 30.0
DEFAULT_CANCEL_KEY = "q"


class SectionCache:
    def __init__(self) -> None:
        self._entries: dict[Section, tuple[Item, ...]] = {}

    def get(self, section: Section) -> list[Item] | None:
        entry = self._entries.get(section)
        if entry is None:
            return None
        return list(entry)

    def put(self, section: Section, items: Iterable[Item]) -> None:
        self._entries[section] = tuple(items)

    def sections(self) -> list[Section]:
        return [section for section in Section if section in self._entries]

    def __contains__(self, section: object) -> bool:
        return section in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class BusyIndicator(Protocol):
    def advance(self, elapsed: float) -> None: ...

    def render(self, surface: Any) -> None: ...


class OrchestratorError(Exception):
    pass


class FetchFailed(OrchestratorError):
    def __init__(self, section: Section, reason: str) -> None:
        super().__init__(f"Failed to fetch {section.label} stories: {reason}")
        self.section = section
        self.reason = reason


class JoinFailed(OrchestratorError):
    def __init__(self, section: Section, reason: str) -> None:
        super().__init__(f"Fetch job for {section.label} did not finish: {reason}")
        self.section = section
        self.reason = reason


class FetchTimedOut(OrchestratorError):
    def __init__(self, elapsed: float, pending: list[Section]) -> None:
        labels = ", ".join(section.label for section in pending) or "-"
        super().__init__(f"Timed out after {elapsed:.1f}s while loading ({labels})")
        self.elapsed = elapsed
        self.pending = pending


@dataclass(frozen=True)
class FetchOutcome:
    section: Section
    items: tuple[Item, ...] = ()
    error: str = ""
    join_failed: bool = False

    @property
    def ready(self) -> bool:
        return not self.error


@dataclass
class OrchestratorSettings:
    tick_seconds: float = DEFAULT_TICK_SECONDS
    poll_seconds: float = DEFAULT_POLL_SECONDS
    deadline_seconds: float = DEFAULT_DEADLINE_SECONDS
    cancel_key: str = DEFAULT_CANCEL_KEY

    def __post_init__(self) -> None:
        if self.tick_seconds < 0 or self.poll_seconds < 0:
            raise ValueError("tick and poll intervals must be >= 0")
        if self.deadline_seconds <= 0:
            raise ValueError("deadline must be > 0")


@dataclass
class LoadReport:
    cancelled: bool = False
    loaded: list[Section] = field(default_factory=list)
    failures: dict[Section, str] = field(default_factory=dict)
    diagnostics: list[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        if self.cancelled:
            return "Loading cancelled."
        if self.diagnostics:
            return " | ".join(self.diagnostics)
        labels = ", ".join(section.label for section in self.loaded)
        return f"Loaded {labels}" if labels else "Nothing loaded."


@dataclass
class SectionLoad:
    section: Section
    items: list[Item] = field(default_factory=list)
    message: str = ""
    cancelled: bool = False


class OrchestratorJob:
    def __init__(self, section: Section, future: Future, started_at: float) -> None:
        self.section = section
        self.future = future
        self.started_at = started_at
        self._consumed = False

    def done(self) -> bool:
        return self.future.done()

    def outcome(self) -> FetchOutcome:
        if self._consumed:
            raise RuntimeError(f"Outcome of the {self.section.label} job was already taken.")
        self._consumed = True
        try:
            items = self.future.result(timeout=0)
        except FeedError as exc:
            return FetchOutcome(self.section, error=short_error(exc))
        except CancelledError:
            return FetchOutcome(self.section, error="job was cancelled", join_failed=True)
        except Exception as exc:
            return FetchOutcome(self.section, error=short_error(exc), join_failed=True)
        return FetchOutcome(self.section, items=tuple(items))


def start_job(client: FeedClient, section: Section, clock: Callable[[], float]) -> OrchestratorJob:
    future: Future = Future()

    def run() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            result = client.fetch(section)
        except BaseException as exc:
            future.set_exception(exc)
        else:
            future.set_result(result)

    job = OrchestratorJob(section, future, clock())
    worker = threading.Thread(target=run, name=f"fetch-{section.label.lower()}", daemon=True)
    try:
        worker.start()
    except RuntimeError as exc:
        future.set_exception(exc)
    return job


class FetchOrchestrator:
    def __init__(
        self,
        client: FeedClient,
        surface: Any,
        indicator_factory: Callable[[], BusyIndicator],
        poll_key: Callable[[float], str | None],
        settings: OrchestratorSettings | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self.surface = surface
        self.indicator_factory = indicator_factory
        self.poll_key = poll_key
        self.settings = settings or OrchestratorSettings()
        self.clock = clock
        self.sleep = sleep

    def load_all(self, sections: Iterable[Section], cache: SectionCache) -> LoadReport:
        requested = list(dict.fromkeys(sections))
        if not requested:
            raise ValueError("load_all needs at least one section")

        jobs = [start_job(self.client, section, self.clock) for section in requested]
        if not self._wait(jobs):
            logger.info("load_all cancelled with %d jobs outstanding", sum(not j.done() for j in jobs))
            return LoadReport(cancelled=True)

        report = LoadReport()
        for job in jobs:
            outcome = job.outcome()
            if outcome.ready:
                cache.put(outcome.section, outcome.items)
                report.loaded.append(outcome.section)
                continue
            report.failures[outcome.section] = outcome.error
            kind = "Task error" if outcome.join_failed else "Failed to load"
            report.diagnostics.append(f"{kind} {outcome.section.label}: {outcome.error}")
            logger.warning("%s %s: %s", kind, outcome.section.label, outcome.error)
        return report

    def load_one(self, section: Section) -> SectionLoad:
        job = start_job(self.client, section, self.clock)
        if not self._wait([job]):
            logger.info("load_one(%s) cancelled", section.label)
            return SectionLoad(section, message="Refresh cancelled.", cancelled=True)

        outcome = job.outcome()
        if outcome.join_failed:
            raise JoinFailed(section, outcome.error)
        if not outcome.ready:
            raise FetchFailed(section, outcome.error)
        return SectionLoad(
            section,
            items=list(outcome.items),
            message=f"Refreshed {section.label} stories",
        )

    def _cancel_requested(self) -> bool:
        key = self.poll_key(self.settings.poll_seconds)
        return key is not None and key == self.settings.cancel_key

    def _wait(self, jobs: list[OrchestratorJob]) -> bool:
        indicator = self.indicator_factory()
        started = self.clock()
        last_tick = started
        while True:
            now = self.clock()
            indicator.advance(now - last_tick)
            last_tick = now
            indicator.render(self.surface)

            if self._cancel_requested():
                abandon(jobs)
                return False

            if all(job.done() for job in jobs):
                return True

            elapsed = self.clock() - started
            if elapsed > self.settings.deadline_seconds:
                pending = [job.section for job in jobs if not job.done()]
                logger.warning("Fetch deadline exceeded after %.2fs; pending=%s", elapsed, pending)
                raise FetchTimedOut(elapsed, pending)

            self.sleep(self.settings.tick_seconds)


def abandon(jobs: list[OrchestratorJob]) -> None:
    # Running threads cannot be stopped; their results are simply never read.
    for job in jobs:
        job.future.cancel()
