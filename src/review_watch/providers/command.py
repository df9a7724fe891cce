# src/review_watch/providers/command.py
import logging
import shlex
import subprocess
from .base import ReviewBackend
from review_watch.errors import BackendNonZeroExit, BackendTimeout, BackendUnavailable, MalformedOutput


logger = logging.getLogger(__name__)


class CommandBackend(ReviewBackend):
    """Runs a command-line AI tool, writing the prompt to stdin and reading the review from stdout."""

    name = "command"

    def __init__(self, argv: list[str], timeout: float | None = None):
        if not argv:
            raise ValueError("CommandBackend needs a command to run")
        self.argv = list(argv)
        self.timeout = timeout

    def invoke(self, prompt: str) -> str:
        try:
            result = subprocess.run(
                self.argv,
                input=prompt,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise BackendUnavailable(f"Command not found: {self.argv[0]}") from e
        except subprocess.TimeoutExpired as e:
            raise BackendTimeout(f"{self.argv[0]} timed out after {self.timeout}s") from e
        except OSError as e:
            raise BackendUnavailable(f"Cannot run {self.argv[0]}: {e}") from e

        if result.returncode != 0:
            raise BackendNonZeroExit(
                f"{self.argv[0]} failed",
                exit_code=result.returncode,
                stderr=result.stderr.strip() or None,
            )

        text = result.stdout.strip()
        logger.debug(f"{self.argv[0]} output length: {len(text)} chars")
        if not text:
            raise MalformedOutput(f"{self.argv[0]} produced no output")
        return text


class ClaudeCliBackend(CommandBackend):
    name = "claude"

    def __init__(self, command: str = "claude", model: str | None = None, timeout: float | None = None):
        argv = [*shlex.split(command), "-p"]
        if model:
            argv += ["--model", model]
        super().__init__(argv, timeout=timeout)
