"""Filesystem change event sources."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileChange:
    path: Path
    kind: str


ChangeCallback = Callable[[FileChange], None]


class FileEventSource(ABC):
    @abstractmethod
    def subscribe(self, root: Path, callback: ChangeCallback) -> None:
        """Start delivering change events under root. Raises on failure."""

    @abstractmethod
    def unsubscribe(self) -> None:
        """Stop delivering events. Safe to call when not subscribed."""


class _ChangeHandler(FileSystemEventHandler):
    """Forwards file (not directory) changes to a callback."""

    def __init__(self, callback: ChangeCallback):
        super().__init__()
        self.callback = callback

    def _emit(self, path: str | bytes, kind: str) -> None:
        if isinstance(path, bytes):
            path = path.decode(errors="replace")
        self.callback(FileChange(path=Path(path), kind=kind))

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit(event.src_path, "modified")

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit(event.src_path, "created")

    def on_moved(self, event: FileSystemEvent) -> None:
        # Editors that save via rename-over land here.
        if not event.is_directory and getattr(event, "dest_path", None):
            self._emit(event.dest_path, "moved")


class WatchdogEventSource(FileEventSource):
    """Recursive watchdog observer running on its own thread."""

    def __init__(self):
        self.observer: Observer | None = None

    def subscribe(self, root: Path, callback: ChangeCallback) -> None:
        if self.observer is not None:
            self.unsubscribe()

        observer = Observer()
        observer.schedule(_ChangeHandler(callback), str(root), recursive=True)
        observer.start()
        self.observer = observer
        logger.debug(f"Watching {root}")

    def unsubscribe(self) -> None:
        if self.observer is None:
            return
        self.observer.stop()
        self.observer.join()
        self.observer = None
