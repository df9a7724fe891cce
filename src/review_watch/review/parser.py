"""Change statistics for git's unified diff output."""

from dataclasses import dataclass
from unidiff import PatchSet
from unidiff.errors import UnidiffParseError


@dataclass(frozen=True)
class DiffStats:
    added: int = 0
    removed: int = 0

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed)

    def __str__(self) -> str:
        return f"+{self.added}/-{self.removed}"


def diff_stats(diff_text: str) -> DiffStats:
    """Count touched lines. Text that is not a unified diff has no changes."""
    try:
        patch = PatchSet(diff_text)
    except UnidiffParseError:
        return DiffStats()

    return DiffStats(added=patch.added, removed=patch.removed)


def has_changes(diff_text: str) -> bool:
    return diff_stats(diff_text).has_changes
