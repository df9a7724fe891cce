from pathlib import Path


class ReviewWatchError(Exception):
    """Base exception for all review-watch errors."""


# Configuration


class ConfigError(ReviewWatchError):
    """Invalid or incomplete configuration. Never retried."""


class InvalidRootPath(ConfigError):
    def __init__(self, path: Path, reason: str = "does not exist"):
        self.path = path
        super().__init__(f"Root path {reason}: {path}")


class MissingTemplate(ConfigError):
    def __init__(self, message: str = "Custom prompt type requires a prompt template"):
        super().__init__(message)


class InvalidTemplate(ConfigError):
    def __init__(self, tokens: list[str]):
        self.tokens = tokens
        names = ", ".join(f"{{{t}}}" for t in tokens)
        super().__init__(f"Prompt template uses unknown placeholders: {names}")


class UnknownBackend(ConfigError):
    def __init__(self, name: str, known: list[str]):
        self.name = name
        super().__init__(f"Unknown backend: {name!r}. Choose one of: {', '.join(known)}")


# Backend


class BackendError(ReviewWatchError):
    """Raised by a ReviewBackend when it cannot produce review text."""


class BackendUnavailable(BackendError):
    pass


class BackendTimeout(BackendError):
    pass


class BackendNonZeroExit(BackendError):
    def __init__(self, message: str, exit_code: int | None = None, stderr: str | None = None):
        self.exit_code = exit_code
        self.stderr = stderr

        if exit_code is not None:
            message = f"{message} (exit code: {exit_code})"
        if stderr:
            message = f"{message}\nError output: {stderr}"

        super().__init__(message)


class MalformedOutput(BackendError):
    pass


# Review


class ReviewError(ReviewWatchError):
    """A single-file review failed."""

    def __init__(self, path: Path, message: str):
        self.path = path
        super().__init__(message)


class ContentUnavailable(ReviewError):
    def __init__(self, path: Path, reason: str):
        super().__init__(path, f"Cannot read content of {path}: {reason}")


class ReviewBackendError(ReviewError):
    def __init__(self, path: Path, error: BackendError):
        self.error = error
        super().__init__(path, f"Backend failed for {path.name}: {error}")


class ReviewConfigError(ReviewError):
    def __init__(self, path: Path, error: ConfigError):
        self.error = error
        super().__init__(path, f"Configuration error while reviewing {path.name}: {error}")


# Engine lifecycle


class EngineError(ReviewWatchError):
    pass


class EngineStopped(EngineError):
    def __init__(self):
        super().__init__("Review engine is stopped")


class WatchStartFailed(EngineError):
    def __init__(self, root: Path, reason: str):
        self.root = root
        super().__init__(f"Failed to start watching {root}: {reason}")
