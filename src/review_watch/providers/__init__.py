# src/review_watch/providers/__init__.py
from review_watch.config import Settings
from review_watch.errors import ConfigError, UnknownBackend
from .base import ReviewBackend
from .command import ClaudeCliBackend, CommandBackend
from .gemini import GeminiBackend
from .yandex import YandexBackend


# Registration order matters: the first entry is the default backend.
BACKENDS: dict[str, type[ReviewBackend]] = {
    GeminiBackend.name: GeminiBackend,
    YandexBackend.name: YandexBackend,
    ClaudeCliBackend.name: ClaudeCliBackend,
}


def create_backend(name: str, settings: Settings, model: str | None = None) -> ReviewBackend:
    """Build the named backend from settings."""
    name = name.lower()
    if name == GeminiBackend.name:
        if not settings.gemini_api_key:
            raise ConfigError("GEMINI_API_KEY is not set")
        return GeminiBackend(
            api_key=settings.gemini_api_key,
            model=model,
            timeout=settings.backend_timeout or 60.0,
        )
    if name == YandexBackend.name:
        if not settings.yandex_api_key or not settings.yandex_folder_id:
            raise ConfigError("YANDEX_API_KEY and YANDEX_FOLDER_ID must be set")
        return YandexBackend(
            api_key=settings.yandex_api_key,
            folder_id=settings.yandex_folder_id,
            model=model,
            timeout=settings.backend_timeout or 60.0,
        )
    if name == ClaudeCliBackend.name:
        return ClaudeCliBackend(
            command=settings.claude_command,
            model=model,
            timeout=settings.backend_timeout,
        )
    raise UnknownBackend(name, list(BACKENDS))


__all__ = [
    "BACKENDS",
    "ReviewBackend",
    "CommandBackend",
    "ClaudeCliBackend",
    "GeminiBackend",
    "YandexBackend",
    "create_backend",
]
