from .events import FileChange, FileEventSource, WatchdogEventSource
from .session import WatchSession

__all__ = ["FileChange", "FileEventSource", "WatchdogEventSource", "WatchSession"]
