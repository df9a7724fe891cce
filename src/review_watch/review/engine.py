# src/review_watch/review/engine.py
import logging
import threading
from collections.abc import Callable
from enum import Enum
from pathlib import Path

from review_watch.config import Settings
from review_watch.errors import (
    BackendError,
    ConfigError,
    ContentUnavailable,
    EngineStopped,
    ReviewBackendError,
    ReviewConfigError,
)
from review_watch.models.config import PromptType, ReviewConfig
from review_watch.models.review import ReviewRequest, ReviewResult, file_name_of
from review_watch.providers import ReviewBackend, create_backend
from review_watch.watch.events import FileEventSource, WatchdogEventSource
from review_watch.watch.session import WatchSession
from .classifier import make_result
from .context import gather_context
from .git import DiffProvider, GitDiffProvider, NoDiffProvider
from .log import ReviewLog
from .parser import diff_stats
from .prompts import render_prompt


logger = logging.getLogger(__name__)

FULL_FILE_NOTE = (
    "(Note: no version-control diff is available, so the whole file is shown. "
    "Review the entire file rather than a set of changes.)"
)

ReviewCallback = Callable[[ReviewResult], None]


class EngineState(str, Enum):
    IDLE = "idle"
    REVIEWING = "reviewing"
    STOPPED = "stopped"


class ReviewEngine:
    def __init__(
        self,
        config: ReviewConfig,
        backend: ReviewBackend,
        diff_provider: DiffProvider | None = None,
        event_source: FileEventSource | None = None,
    ):
        self.config = config
        self.backend = backend
        if diff_provider is None:
            diff_provider = GitDiffProvider() if config.diff_mode else NoDiffProvider()
        self.diff_provider = diff_provider
        self.event_source = event_source
        log_file = config.resolve_log_file()
        self.review_log = ReviewLog(log_file) if log_file else None

        self._observer: ReviewCallback | None = None
        self._session: WatchSession | None = None
        self._backend_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._in_flight = 0
        self._stopped = False

    @classmethod
    def from_settings(cls, config: ReviewConfig, settings: Settings) -> "ReviewEngine":
        backend = create_backend(config.backend, settings, model=config.model)
        return cls(config=config, backend=backend)

    @property
    def root(self) -> Path:
        return self.config.root

    @property
    def state(self) -> EngineState:
        with self._state_lock:
            if self._stopped:
                return EngineState.STOPPED
            if self._in_flight:
                return EngineState.REVIEWING
            return EngineState.IDLE

    @property
    def is_running(self) -> bool:
        return self._session is not None and self._session.is_running

    def on_review(self, callback: ReviewCallback | None) -> "ReviewEngine":
        """Register the observer. Replaces any previous one."""
        self._observer = callback
        return self

    # Lifecycle

    def start(self) -> None:
        """Start watching config.root. No-op when already running."""
        if self.is_running:
            return

        if self.event_source is None:
            self.event_source = WatchdogEventSource()

        session = WatchSession(
            config=self.config,
            event_source=self.event_source,
            review=self.review_file,
            deliver=self._deliver,
            record=self._record,
        )

        with self._state_lock:
            was_stopped = self._stopped
            self._stopped = False
        try:
            session.start()
        except Exception:
            with self._state_lock:
                self._stopped = was_stopped
            raise

        self._session = session
        logger.info(f"Review engine started for {self.root} (backend={self.backend.name})")

    def stop(self) -> None:
        """Stop watching. Idempotent; in-flight reviews are not interrupted."""
        with self._state_lock:
            already_stopped = self._stopped
            self._stopped = True

        session, self._session = self._session, None
        if session is not None:
            session.stop()
        if not already_stopped:
            logger.info("Review engine stopped")

    def join(self, timeout: float | None = None) -> bool:
        """Wait until queued watch work is done."""
        if self._session is None:
            return True
        return self._session.join(timeout)

    def __enter__(self) -> "ReviewEngine":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()

    # Review

    def review_file(self, path: str | Path, prompt_type: PromptType | str | None = None) -> ReviewResult:
        """Review one file synchronously on the caller's thread.

        prompt_type overrides the configured prompt for this call only.
        """
        path = Path(path)
        if not path.is_absolute():
            path = self.root / path

        with self._state_lock:
            if self._stopped:
                raise EngineStopped()
            self._in_flight += 1

        try:
            try:
                prompt_type = PromptType(prompt_type) if prompt_type else self.config.prompt_type
            except ValueError as e:
                raise ReviewConfigError(path, ConfigError(f"Unknown prompt type: {prompt_type!r}")) from e

            request = self._build_request(path, prompt_type)

            try:
                prompt = render_prompt(
                    prompt_type=request.prompt_type,
                    file_name=request.file_name,
                    content=self._prompt_content(request),
                    diff=request.diff,
                    template=self.config.custom_prompt,
                    context=self._context_for(path),
                )
            except ConfigError as e:
                raise ReviewConfigError(path, e) from e

            try:
                with self._backend_lock:
                    review = self.backend.invoke(prompt)
            except BackendError as e:
                raise ReviewBackendError(path, e) from e

            result = make_result(path, review, reviewed_content=request.content)
            logger.info(f"Reviewed {result.name}: {result.severity.value}")
            self._record(result)
            return result
        finally:
            with self._state_lock:
                self._in_flight -= 1

    def _build_request(self, path: Path, prompt_type: PromptType) -> ReviewRequest:
        diff = self._get_diff(path) if self.config.diff_mode else None
        if diff:
            logger.debug(f"Reviewing pending changes in {path} ({diff_stats(diff)})")
            content, is_diff = diff, True
        else:
            content, is_diff = self._read_file(path), False

        if not content.strip():
            raise ContentUnavailable(path, "file is empty")

        return ReviewRequest(
            path=path,
            file_name=file_name_of(path),
            content=content,
            diff=diff or "",
            prompt_type=prompt_type,
            is_diff=is_diff,
        )

    def _get_diff(self, path: Path) -> str | None:
        try:
            return self.diff_provider.get_diff(path)
        except Exception as e:
            logger.warning(f"Diff unavailable for {path}, reviewing full file: {e}")
            return None

    def _read_file(self, path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise ContentUnavailable(path, "file does not exist") from e
        except PermissionError as e:
            raise ContentUnavailable(path, "permission denied") from e
        except UnicodeDecodeError as e:
            raise ContentUnavailable(path, "not a UTF-8 text file") from e
        except OSError as e:
            raise ContentUnavailable(path, str(e)) from e

    def _context_for(self, path: Path) -> str:
        if not self.config.context_enabled:
            return ""
        try:
            context = gather_context(path, self.root, self.config.extensions, lookback=self.config.context_depth)
        except OSError as e:
            logger.warning(f"Project context unavailable for {path}: {e}")
            return ""
        return "" if context.is_empty() else context.to_prompt()

    def _prompt_content(self, request: ReviewRequest) -> str:
        if request.is_diff:
            return request.content
        return f"{FULL_FILE_NOTE}\n\n{request.content}"

    def _record(self, result: ReviewResult) -> None:
        if self.review_log is None:
            return
        try:
            self.review_log.append(result)
        except OSError as e:
            logger.warning(f"Failed to write review log {self.review_log.path}: {e}")

    def _deliver(self, result: ReviewResult) -> None:
        observer = self._observer
        if observer is not None:
            observer(result)
