# src/review_watch/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Backends
    gemini_api_key: str | None = None
    yandex_api_key: str | None = None
    yandex_folder_id: str | None = None
    claude_command: str = "claude"
    backend_timeout: float | None = None

    # Defaults
    default_backend: str | None = None
    prompt_type: str | None = None
    watch_root: str | None = None
    review_log_file: str | None = None
    review_context: bool | None = None
    history_size: int = 100
    log_level: str = "INFO"
