# tests/integration/test_api_review.py
import pytest
from httpx import AsyncClient, ASGITransport
from unittest.mock import patch
from review_watch.errors import BackendTimeout
from review_watch.main import app
from review_watch.models.config import PromptType
from review_watch.review.engine import ReviewEngine
from fakes import FakeEventSource, SlowBackend, StaticDiffProvider, StubBackend


@pytest.fixture(autouse=True)
def clean_app_state():
    app.state.history.clear()
    app.state.engine = None
    yield
    if app.state.engine is not None:
        app.state.engine.stop()
    app.state.engine = None
    app.state.history.clear()


@pytest.fixture
def engine(config, backend):
    engine = ReviewEngine(
        config=config,
        backend=backend,
        diff_provider=StaticDiffProvider(),
        event_source=FakeEventSource(),
    )
    app.state.engine = engine
    return engine


async def _post(path, **kwargs):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.post(path, **kwargs)


async def _get(path):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.get(path)


@pytest.mark.integration
@pytest.mark.asyncio
async def test_health():
    response = await _get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.integration
@pytest.mark.asyncio
async def test_review_file(engine, backend):
    response = await _post("/api/review", json={"path": "main.py"})

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "completed"
    assert data["result"]["name"] == "main.py"
    assert data["result"]["severity"] == "ok"
    assert data["result"]["has_issues"] is False
    assert len(backend.prompts) == 1


@pytest.mark.integration
@pytest.mark.asyncio
async def test_review_file_with_prompt_type(engine, backend):
    response = await _post("/api/review", json={"path": "main.py", "prompt_type": "security"})

    assert response.json()["status"] == "completed"
    assert "security point of view" in backend.prompts[0]
    assert engine.config.prompt_type == PromptType.DEFAULT


@pytest.mark.integration
@pytest.mark.asyncio
async def test_prompt_type_request_waits_for_watch_review(config, project):
    backend = SlowBackend(delay=0.2)
    event_source = FakeEventSource()
    engine = ReviewEngine(
        config=config,
        backend=backend,
        diff_provider=StaticDiffProvider(),
        event_source=event_source,
    )
    app.state.engine = engine
    engine.start()

    event_source.emit(project / "main.py")
    assert backend.started.wait(timeout=5)
    response = await _post("/api/review", json={"path": "main.py", "prompt_type": "architecture"})
    assert engine.join(timeout=5)

    assert response.json()["status"] == "completed"
    assert len(backend.prompts) == 2
    assert backend.peak == 1


@pytest.mark.integration
@pytest.mark.asyncio
async def test_review_missing_file(engine):
    response = await _post("/api/review", json={"path": "missing.py"})

    data = response.json()
    assert data["status"] == "error"
    assert "missing.py" in data["error"]


@pytest.mark.integration
@pytest.mark.asyncio
async def test_review_backend_failure(config):
    app.state.engine = ReviewEngine(
        config=config,
        backend=StubBackend(error=BackendTimeout("too slow")),
        diff_provider=StaticDiffProvider(),
    )

    response = await _post("/api/review", json={"path": "main.py"})

    data = response.json()
    assert data["status"] == "error"
    assert "too slow" in data["error"]


@pytest.mark.integration
@pytest.mark.asyncio
async def test_review_validation_error():
    response = await _post("/api/review", json={})

    assert response.status_code == 422


@pytest.mark.integration
@pytest.mark.asyncio
async def test_reviews_summary(engine):
    await _post("/api/review", json={"path": "main.py"})
    await _post("/api/review", json={"path": "main.py"})

    response = await _get("/api/reviews")

    data = response.json()
    assert data["watching"] is False
    assert data["summary"]["total_files"] == 2
    assert data["summary"]["files_passed"] == 2
    assert len(data["summary"]["results"]) == 2


@pytest.mark.integration
@pytest.mark.asyncio
async def test_watch_start_and_stop(engine, project):
    response = await _post("/api/watch/start")

    assert response.json() == {"status": "watching", "root": str(project.resolve()), "error": None}
    assert engine.is_running is True

    response = await _post("/api/watch/stop")

    assert response.json()["status"] == "stopped"
    assert engine.is_running is False


@pytest.mark.integration
@pytest.mark.asyncio
async def test_watch_stop_without_engine():
    response = await _post("/api/watch/stop")

    assert response.json() == {"status": "stopped", "root": None, "error": None}


@pytest.mark.integration
@pytest.mark.asyncio
async def test_watch_start_failure(config, backend):
    app.state.engine = ReviewEngine(
        config=config,
        backend=backend,
        event_source=FakeEventSource(fail=OSError("no inotify")),
    )

    response = await _post("/api/watch/start")

    data = response.json()
    assert data["status"] == "error"
    assert "no inotify" in data["error"]


@pytest.mark.integration
@pytest.mark.asyncio
async def test_engine_built_from_settings(project):
    with patch("review_watch.main.get_settings") as mock_settings:
        settings = mock_settings.return_value
        settings.watch_root = str(project)
        settings.default_backend = "claude"
        settings.prompt_type = None
        settings.review_log_file = None
        settings.review_context = True
        settings.claude_command = "claude"
        settings.backend_timeout = None

        with patch("review_watch.main.ReviewEngine.start"):
            response = await _post("/api/watch/start")

    assert response.json()["status"] == "watching"
    assert app.state.engine.backend.name == "claude"
    assert app.state.engine.root == project.resolve()
    assert app.state.engine.config.context_enabled is True
