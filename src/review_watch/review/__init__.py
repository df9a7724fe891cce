from .classifier import classify, make_result
from .engine import EngineState, ReviewEngine
from .git import DiffProvider, GitDiffProvider
from .log import ReviewLog
from .parser import DiffStats, diff_stats
from .prompts import render_prompt, validate_template

__all__ = [
    "classify",
    "make_result",
    "EngineState",
    "ReviewEngine",
    "DiffProvider",
    "GitDiffProvider",
    "ReviewLog",
    "DiffStats",
    "diff_stats",
    "render_prompt",
    "validate_template",
]
