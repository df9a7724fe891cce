from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from .config import PromptType


class Severity(str, Enum):
    OK = "ok"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


ISSUE_SEVERITIES = frozenset({Severity.WARNING, Severity.ERROR})


def file_name_of(path: Path) -> str:
    return path.name or "unknown"


@dataclass(frozen=True)
class ReviewRequest:
    """What is sent for review of one changed file."""
    path: Path
    file_name: str
    content: str
    diff: str
    prompt_type: PromptType
    is_diff: bool = False


class ReviewResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: Path
    name: str
    review: str
    timestamp: datetime
    has_issues: bool
    severity: Severity
    reviewed_content: str | None = None

    @classmethod
    def failed(cls, path: Path, message: str) -> "ReviewResult":
        """Error result delivered in place of an exception in watch mode."""
        name = file_name_of(path)
        return cls(
            path=path,
            name=name,
            review=f"🚨 Review failed for {name}: {message}",
            timestamp=datetime.now().astimezone(),
            has_issues=True,
            severity=Severity.ERROR,
        )

    @property
    def is_critical(self) -> bool:
        return self.severity == Severity.ERROR

    @property
    def is_passed(self) -> bool:
        return self.severity in (Severity.OK, Severity.INFO)


class ReviewSummary(BaseModel):
    total_files: int = 0
    files_with_issues: int = 0
    files_passed: int = 0
    critical_count: int = 0
    warning_count: int = 0
    results: list[ReviewResult] = Field(default_factory=list)

    def add(self, result: ReviewResult) -> None:
        self.total_files += 1

        if result.severity == Severity.ERROR:
            self.files_with_issues += 1
            self.critical_count += 1
        elif result.severity == Severity.WARNING:
            self.files_with_issues += 1
            self.warning_count += 1
        else:
            self.files_passed += 1

        self.results.append(result)

    @property
    def all_passed(self) -> bool:
        return self.files_with_issues == 0
