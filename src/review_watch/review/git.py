import logging
import subprocess
from abc import ABC, abstractmethod
from collections import Counter
from pathlib import Path

from .parser import has_changes


logger = logging.getLogger(__name__)


def run_git(args: list[str], cwd: Path, git: str = "git", timeout: float = 10.0) -> str | None:
    """Run a git command and return stdout, or None if it could not run or failed."""
    try:
        result = subprocess.run(
            [git, *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug(f"git {' '.join(args)} failed in {cwd}: {e}")
        return None

    if result.returncode != 0:
        logger.debug(f"git {' '.join(args)} exited {result.returncode} in {cwd}: {result.stderr.strip()}")
        return None
    return result.stdout


class DiffProvider(ABC):
    @abstractmethod
    def get_diff(self, path: Path) -> str | None:
        """Return the pending diff for path, or None when there is none.

        Must never raise: no diff means the engine reviews the full file.
        """


class NoDiffProvider(DiffProvider):
    """Used when diff mode is off: every review sees the full file."""

    def get_diff(self, path: Path) -> str | None:
        return None


class GitDiffProvider(DiffProvider):
    """Unstaged changes first, then staged changes."""

    def __init__(self, git: str = "git", timeout: float = 10.0):
        self.git = git
        self.timeout = timeout

    def get_diff(self, path: Path) -> str | None:
        for args in (["diff"], ["diff", "--cached"]):
            diff = run_git([*args, "--", path.name], path.parent, git=self.git, timeout=self.timeout)
            if diff and has_changes(diff):
                return diff
        return None


def cochanged_files(path: Path, lookback: int = 50, git: str = "git") -> list[tuple[str, int]]:
    """Files committed together with path in its last ``lookback`` commits, most frequent first."""
    output = run_git(
        ["log", "--format=", "--name-only", "--full-diff", "-n", str(lookback), "--", path.name],
        path.parent,
        git=git,
    )
    if not output:
        return []

    counts = Counter(
        line.strip()
        for line in output.splitlines()
        if line.strip() and line.strip() != path.name and not line.strip().endswith(f"/{path.name}")
    )
    return sorted(counts.items(), key=lambda item: (-item[1], item[0]))
