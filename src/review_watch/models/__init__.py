from .config import DEFAULT_EXTENSIONS, PromptType, ReviewConfig, load_review_config
from .review import ReviewRequest, ReviewResult, ReviewSummary, Severity

__all__ = [
    "DEFAULT_EXTENSIONS",
    "PromptType",
    "ReviewConfig",
    "load_review_config",
    "ReviewRequest",
    "ReviewResult",
    "ReviewSummary",
    "Severity",
]
