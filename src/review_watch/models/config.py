import logging
from collections.abc import Iterable
from enum import Enum
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from review_watch.errors import ConfigError, InvalidRootPath, MissingTemplate, UnknownBackend
from review_watch.providers import BACKENDS


logger = logging.getLogger(__name__)

REPO_CONFIG_FILE = ".ai-review.yaml"

DEFAULT_EXTENSIONS = frozenset({"rs", "ts", "tsx", "js", "jsx", "py", "go", "java", "cpp", "c", "h"})

DEFAULT_DEBOUNCE_MS = 500

DEFAULT_CONTEXT_DEPTH = 50


class PromptType(str, Enum):
    DEFAULT = "default"
    QUICK = "quick"
    SECURITY = "security"
    ARCHITECTURE = "architecture"
    CUSTOM = "custom"


def _first_backend() -> str:
    return next(iter(BACKENDS))


class ReviewConfig(BaseModel):
    """Immutable review configuration.

    Built once before the engine is constructed. Every ``with_*`` method
    returns a new, fully validated config, so chains read like a builder:

        ReviewConfig.for_root("src").with_backend("claude").with_prompt_type(PromptType.QUICK)
    """

    model_config = ConfigDict(frozen=True)

    root: Path
    backend: str = Field(default_factory=_first_backend)
    prompt_type: PromptType = PromptType.DEFAULT
    custom_prompt: str | None = None
    extensions: frozenset[str] = DEFAULT_EXTENSIONS
    log_file: Path | None = None
    debounce_ms: int = Field(default=DEFAULT_DEBOUNCE_MS, ge=0)
    diff_mode: bool = True
    model: str | None = None
    strict_template: bool = True
    context_enabled: bool = False
    context_depth: int = Field(default=DEFAULT_CONTEXT_DEPTH, ge=1)

    @field_validator("root")
    @classmethod
    def _check_root(cls, root: Path) -> Path:
        root = root.expanduser().resolve()
        if not root.exists():
            raise InvalidRootPath(root)
        if not root.is_dir():
            raise InvalidRootPath(root, "is not a directory")
        return root

    @field_validator("backend")
    @classmethod
    def _check_backend(cls, backend: str) -> str:
        backend = backend.lower()
        if backend not in BACKENDS:
            raise UnknownBackend(backend, list(BACKENDS))
        return backend

    @field_validator("extensions", mode="before")
    @classmethod
    def _normalize_extensions(cls, extensions: Iterable[str]) -> frozenset[str]:
        if isinstance(extensions, str):
            extensions = [extensions]
        normalized = frozenset(ext.strip().lstrip(".").lower() for ext in extensions)
        normalized = normalized - {""}
        if not normalized:
            raise ConfigError("At least one file extension must be recognized")
        return normalized

    @model_validator(mode="after")
    def _check_template(self) -> "ReviewConfig":
        if self.prompt_type == PromptType.CUSTOM:
            if not self.custom_prompt:
                raise MissingTemplate()
            if self.strict_template:
                from review_watch.review.prompts import validate_template
                validate_template(self.custom_prompt)
        return self

    # Builder

    @classmethod
    def for_root(cls, root: str | Path) -> "ReviewConfig":
        return cls(root=Path(root))

    def _replace(self, **changes) -> "ReviewConfig":
        return type(self).model_validate({**self.model_dump(), **changes})

    def with_backend(self, backend: str) -> "ReviewConfig":
        return self._replace(backend=backend)

    def with_model(self, model: str) -> "ReviewConfig":
        return self._replace(model=model)

    def with_prompt_type(self, prompt_type: PromptType | str) -> "ReviewConfig":
        return self._replace(prompt_type=PromptType(prompt_type))

    def with_custom_prompt(self, template: str, strict: bool = True) -> "ReviewConfig":
        return self._replace(
            prompt_type=PromptType.CUSTOM,
            custom_prompt=template,
            strict_template=strict,
        )

    def with_extensions(self, extensions: Iterable[str]) -> "ReviewConfig":
        return self._replace(extensions=frozenset(extensions))

    def with_log_file(self, log_file: str | Path) -> "ReviewConfig":
        return self._replace(log_file=Path(log_file))

    def with_debounce(self, ms: int) -> "ReviewConfig":
        return self._replace(debounce_ms=ms)

    def with_diff_mode(self, enabled: bool) -> "ReviewConfig":
        return self._replace(diff_mode=enabled)

    def with_context(self, enabled: bool = True) -> "ReviewConfig":
        return self._replace(context_enabled=enabled)

    def with_context_depth(self, depth: int) -> "ReviewConfig":
        """Number of commits searched for files changed together with the reviewed one."""
        return self._replace(context_depth=depth)

    # Helpers

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000

    def accepts(self, path: Path) -> bool:
        """Check whether the file extension is one we review."""
        return path.suffix.lstrip(".").lower() in self.extensions

    def resolve_log_file(self) -> Path | None:
        if self.log_file is None:
            return None
        if self.log_file.is_absolute():
            return self.log_file
        return self.root / self.log_file


def load_review_config(root: str | Path, **overrides) -> ReviewConfig:
    """Load .ai-review.yaml from the watched root or use defaults.

    Precedence: defaults < repo file < explicit overrides (``None`` values are ignored).
    """
    root = Path(root)
    data: dict = {}

    config_path = root / REPO_CONFIG_FILE
    if config_path.is_file():
        try:
            data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
            if not isinstance(data, dict):
                raise ValueError(f"expected a mapping, got {type(data).__name__}")
        except (OSError, yaml.YAMLError, ValueError) as e:
            logger.warning(f"Invalid {REPO_CONFIG_FILE}: {e}")
            data = {}

    data.update({key: value for key, value in overrides.items() if value is not None})
    data["root"] = root

    try:
        return ReviewConfig(**data)
    except (ValidationError, ConfigError) as e:
        # An invalid root fails again below and propagates.
        logger.warning(f"Invalid {REPO_CONFIG_FILE}, using defaults: {e}")
        clean = {key: value for key, value in overrides.items() if value is not None}
        return ReviewConfig(root=root, **clean)
