from pathlib import Path

import pytest

from review_watch.models.config import ReviewConfig
from fakes import FakeClock, FakeEventSource, StubBackend


@pytest.fixture
def project(tmp_path) -> Path:
    (tmp_path / "main.py").write_text("def add(a, b):\n    return a + b\n", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("not code\n", encoding="utf-8")
    return tmp_path


@pytest.fixture
def config(project) -> ReviewConfig:
    return ReviewConfig.for_root(project)


@pytest.fixture
def backend() -> StubBackend:
    return StubBackend()


@pytest.fixture
def event_source() -> FakeEventSource:
    return FakeEventSource()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
