# src/review_watch/main.py
import logging
from collections import deque
from contextlib import asynccontextmanager
from functools import lru_cache
from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel

from review_watch.config import Settings
from review_watch.errors import ConfigError, EngineError, ReviewError
from review_watch.models.config import PromptType, ReviewConfig, load_review_config
from review_watch.models.review import ReviewResult, ReviewSummary
from review_watch.review.engine import ReviewEngine


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@lru_cache
def get_settings() -> Settings:
    return Settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())
    app.state.history = deque(maxlen=settings.history_size)
    logger.info("Review watch starting...")

    if settings.watch_root:
        try:
            engine = get_engine()
            await run_in_threadpool(engine.start)
        except (ConfigError, EngineError) as e:
            logger.error(f"Cannot watch {settings.watch_root}: {e}")

    yield

    engine = app.state.engine
    if engine is not None:
        await run_in_threadpool(engine.stop)
    logger.info("Review watch shutting down...")


app = FastAPI(title="Review Watch", lifespan=lifespan)
app.state.engine = None
app.state.history = deque(maxlen=100)


class ReviewFileRequest(BaseModel):
    path: str
    prompt_type: PromptType | None = None


class ReviewResponse(BaseModel):
    status: str
    result: ReviewResult | None = None
    error: str | None = None


class WatchResponse(BaseModel):
    status: str
    root: str | None = None
    error: str | None = None


class ReviewsResponse(BaseModel):
    watching: bool
    summary: ReviewSummary


def get_review_config(settings: Settings) -> ReviewConfig:
    """Repo .ai-review.yaml merged with settings from the environment."""
    return load_review_config(
        settings.watch_root or ".",
        backend=settings.default_backend,
        prompt_type=settings.prompt_type,
        log_file=settings.review_log_file,
        context_enabled=settings.review_context,
    )


def remember(result: ReviewResult) -> None:
    app.state.history.append(result)


def get_engine() -> ReviewEngine:
    """Engine shared by the watcher and the API, built on first use."""
    engine = app.state.engine
    if engine is None:
        settings = get_settings()
        engine = ReviewEngine.from_settings(get_review_config(settings), settings)
        engine.on_review(remember)
        app.state.engine = engine
    return engine


@app.get("/health")
async def health():
    return {"status": "ok", "version": "0.1.0"}


@app.post("/api/review", response_model=ReviewResponse)
async def review_file(request: ReviewFileRequest):
    """Review a single file now, outside the watch loop."""
    try:
        engine = get_engine()
        result = await run_in_threadpool(engine.review_file, request.path, request.prompt_type)
        remember(result)
        return ReviewResponse(status="completed", result=result)

    except (ReviewError, ConfigError, EngineError) as e:
        return ReviewResponse(status="error", error=str(e))
    except Exception as e:
        logger.exception(f"Review failed: {e}")
        return ReviewResponse(status="error", error=str(e))


@app.get("/api/reviews", response_model=ReviewsResponse)
async def list_reviews():
    """Recent results, newest last."""
    summary = ReviewSummary()
    for result in list(app.state.history):
        summary.add(result)

    engine = app.state.engine
    return ReviewsResponse(
        watching=engine is not None and engine.is_running,
        summary=summary,
    )


@app.post("/api/watch/start", response_model=WatchResponse)
async def start_watch():
    try:
        engine = get_engine()
        await run_in_threadpool(engine.start)
        return WatchResponse(status="watching", root=str(engine.root))
    except (ConfigError, EngineError) as e:
        return WatchResponse(status="error", error=str(e))


@app.post("/api/watch/stop", response_model=WatchResponse)
async def stop_watch():
    engine = app.state.engine
    if engine is None:
        return WatchResponse(status="stopped")

    await run_in_threadpool(engine.stop)
    return WatchResponse(status="stopped", root=str(engine.root))
