import logging
import queue
import threading
import time
from collections.abc import Callable
from pathlib import Path

from review_watch.errors import EngineStopped, ReviewError, WatchStartFailed
from review_watch.models.config import ReviewConfig
from review_watch.models.review import ReviewResult
from .events import FileChange, FileEventSource


logger = logging.getLogger(__name__)


class WatchSession:
    """Bridges filesystem change events to single-file reviews.

    Events are filtered by extension and debounced per path on the event
    source's thread, then reviewed one at a time on a dedicated worker
    thread. The observer and the log sink are only ever called from that
    worker, so results arrive in order and never concurrently.
    """

    def __init__(
        self,
        config: ReviewConfig,
        event_source: FileEventSource,
        review: Callable[[Path], ReviewResult],
        deliver: Callable[[ReviewResult], None],
        record: Callable[[ReviewResult], None] | None = None,
        clock: Callable[[], float] = time.monotonic,
        stop_timeout: float = 5.0,
    ):
        self.config = config
        self.event_source = event_source
        self._review = review
        self._deliver = deliver
        self._record = record
        self._clock = clock
        self.stop_timeout = stop_timeout

        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._running = False
        self._last_seen: dict[Path, float] = {}
        self._pending = 0
        self._queue: queue.Queue[Path | None] | None = None
        self._halt: threading.Event | None = None
        self._worker: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        with self._lock:
            if self._running:
                return
            work: queue.Queue[Path | None] = queue.Queue()
            halt = threading.Event()
            worker = threading.Thread(
                target=self._run,
                args=(work, halt),
                name="review-watch-worker",
                daemon=True,
            )
            self._queue, self._halt, self._worker = work, halt, worker
            self._last_seen.clear()
            self._running = True

        worker.start()
        try:
            self.event_source.subscribe(self.config.root, self.handle_change)
        except Exception as e:
            with self._lock:
                self._running = False
            halt.set()
            work.put(None)
            worker.join(self.stop_timeout)
            raise WatchStartFailed(self.config.root, str(e)) from e

        logger.info(f"Watching {self.config.root} for {', '.join(sorted(self.config.extensions))}")

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
            work, halt, worker = self._queue, self._halt, self._worker

        halt.set()
        try:
            self.event_source.unsubscribe()
        except Exception as e:
            logger.warning(f"Failed to unsubscribe from file events: {e}")
        work.put(None)

        if worker is not threading.current_thread():
            worker.join(self.stop_timeout)
            if worker.is_alive():
                logger.warning("Stopped watching; an in-flight review is still running")
        logger.info(f"Stopped watching {self.config.root}")

    def join(self, timeout: float | None = None) -> bool:
        """Wait for queued reviews to finish. Returns False on timeout."""
        with self._idle:
            return self._idle.wait_for(lambda: self._pending == 0, timeout)

    def handle_change(self, change: FileChange) -> bool:
        """Queue a review for the changed path. Returns False if discarded."""
        path = change.path
        with self._lock:
            if not self._running:
                logger.debug(f"Not running, discarding {change.kind} event for {path}")
                return False
            if not self.config.accepts(path):
                return False

            now = self._clock()
            window = self.config.debounce_seconds
            # Only entries inside the window can debounce anything.
            self._last_seen = {seen: at for seen, at in self._last_seen.items() if now - at < window}
            if path in self._last_seen:
                logger.debug(f"Debounced {change.kind} event for {path}")
                return False

            self._last_seen[path] = now
            self._pending += 1
            self._queue.put(path)
        return True

    def _run(self, work: "queue.Queue[Path | None]", halt: threading.Event) -> None:
        while True:
            path = work.get()
            if path is None:
                break
            try:
                if halt.is_set():
                    logger.debug(f"Session stopped, dropping queued review of {path}")
                    continue
                self._process(path)
            finally:
                with self._idle:
                    self._pending -= 1
                    self._idle.notify_all()

    def _process(self, path: Path) -> None:
        try:
            result = self._review(path)
        except EngineStopped:
            logger.debug(f"Engine stopped, skipping review of {path}")
            return
        except ReviewError as e:
            logger.warning(f"Review failed for {path}: {e}")
            result = self._failed(path, str(e))
        except Exception as e:
            logger.exception(f"Unexpected error reviewing {path}")
            result = self._failed(path, str(e))

        try:
            self._deliver(result)
        except Exception:
            logger.exception(f"Review observer failed for {path}")

    def _failed(self, path: Path, message: str) -> ReviewResult:
        result = ReviewResult.failed(path, message)
        if self._record is not None:
            self._record(result)
        return result
