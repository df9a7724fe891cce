"""Test doubles shared across the suite."""

import threading
import time
from pathlib import Path

from review_watch.providers.base import ReviewBackend
from review_watch.review.git import DiffProvider
from review_watch.watch.events import FileChange, FileEventSource


class StubBackend(ReviewBackend):
    """Returns a canned review and remembers every prompt."""

    name = "stub"

    def __init__(self, reply: str = "✓ no issues", error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []
        self._lock = threading.Lock()

    def invoke(self, prompt: str) -> str:
        with self._lock:
            self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


class SlowBackend(StubBackend):
    """Holds every call for a while and records the peak number of concurrent calls."""

    def __init__(self, delay: float = 0.05, **kwargs):
        super().__init__(**kwargs)
        self.delay = delay
        self.active = 0
        self.peak = 0
        self.started = threading.Event()

    def invoke(self, prompt: str) -> str:
        with self._lock:
            self.active += 1
            self.peak = max(self.peak, self.active)
        self.started.set()
        try:
            time.sleep(self.delay)
            return super().invoke(prompt)
        finally:
            with self._lock:
                self.active -= 1


class StaticDiffProvider(DiffProvider):
    def __init__(self, diffs: dict[str, str] | None = None):
        self.diffs = diffs or {}
        self.calls: list[Path] = []

    def get_diff(self, path: Path) -> str | None:
        self.calls.append(path)
        return self.diffs.get(path.name)


class FakeEventSource(FileEventSource):
    def __init__(self, fail: Exception | None = None):
        self.fail = fail
        self.root: Path | None = None
        self.callback = None
        self.subscribe_count = 0
        self.unsubscribe_count = 0

    def subscribe(self, root, callback) -> None:
        if self.fail is not None:
            raise self.fail
        self.root = root
        self.callback = callback
        self.subscribe_count += 1

    def unsubscribe(self) -> None:
        self.callback = None
        self.unsubscribe_count += 1

    def emit(self, path, kind: str = "modified") -> None:
        if self.callback is not None:
            self.callback(FileChange(path=Path(path), kind=kind))


class FakeClock:
    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


