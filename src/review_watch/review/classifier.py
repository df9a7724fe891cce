from datetime import datetime
from pathlib import Path

from review_watch.models.review import ISSUE_SEVERITIES, ReviewResult, Severity, file_name_of


# Evaluated top to bottom, first match wins.
SEVERITY_MARKERS: tuple[tuple[Severity, tuple[str, ...]], ...] = (
    (Severity.ERROR, ("critical", "fatal", "重大", "🚨")),
    (Severity.WARNING, ("warning", "警告", "⚠")),
    (Severity.INFO, ("info", "提案", "suggestion", "💡")),
)


def detect_severity(review: str) -> Severity:
    text = review.casefold()
    for severity, markers in SEVERITY_MARKERS:
        if any(marker in text for marker in markers):
            return severity
    return Severity.OK


def classify(review: str) -> tuple[bool, Severity]:
    """Classify free-text review output. Total and deterministic."""
    severity = detect_severity(review)
    return severity in ISSUE_SEVERITIES, severity


def make_result(
    path: Path,
    review: str,
    reviewed_content: str | None = None,
    timestamp: datetime | None = None,
) -> ReviewResult:
    has_issues, severity = classify(review)
    return ReviewResult(
        path=path,
        name=file_name_of(path),
        review=review,
        timestamp=timestamp or datetime.now().astimezone(),
        has_issues=has_issues,
        severity=severity,
        reviewed_content=reviewed_content,
    )
