import logging
import threading
import weakref
from pathlib import Path

from review_watch.models.review import ReviewResult


logger = logging.getLogger(__name__)


class ReviewLog:
    """Append-only JSON Lines log, one ReviewResult per line.

    Writers to the same file share one lock, so concurrent direct and
    watch-triggered reviews never interleave partial lines.
    """

    # Entries go away once no log for that file is alive.
    _locks: "weakref.WeakValueDictionary[Path, threading.Lock]" = weakref.WeakValueDictionary()
    _locks_guard = threading.Lock()

    def __init__(self, path: Path):
        self.path = path.expanduser().resolve()
        with self._locks_guard:
            self._lock = self._locks.setdefault(self.path, threading.Lock())

    def append(self, result: ReviewResult) -> None:
        line = result.model_dump_json() + "\n"
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line)

    def read(self) -> list[ReviewResult]:
        if not self.path.exists():
            return []
        with self._lock:
            lines = self.path.read_text(encoding="utf-8").splitlines()
        return [ReviewResult.model_validate_json(line) for line in lines if line.strip()]
