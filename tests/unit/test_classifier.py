import pytest
from pathlib import Path
from review_watch.models.review import Severity
from review_watch.review.classifier import classify, detect_severity, make_result


SAMPLES = [
    "",
    "✓ no issues",
    "✓ OK",
    "🚨 critical: SQL injection in build_query",
    "⚠ warning: function is 80 lines long",
    "💡 suggestion: extract a helper",
    "FATAL error on startup",
    "重大な問題があります",
    "警告: 責務が混在しています",
    "提案: 関数を分割してください",
    "Info: consider renaming",
]


@pytest.mark.unit
@pytest.mark.parametrize("text", SAMPLES)
def test_classify_is_deterministic(text):
    assert classify(text) == classify(text)


@pytest.mark.unit
def test_empty_text_is_ok():
    assert classify("") == (False, Severity.OK)


@pytest.mark.unit
def test_text_without_markers_is_ok():
    assert classify("Looks fine to me.") == (False, Severity.OK)


@pytest.mark.unit
def test_critical_takes_precedence_over_warning():
    assert classify("warning: long function\ncritical: password in source") == (True, Severity.ERROR)


@pytest.mark.unit
def test_warning_takes_precedence_over_info():
    assert classify("suggestion: rename x\n⚠ unused import") == (True, Severity.WARNING)


@pytest.mark.unit
@pytest.mark.parametrize("text,expected", [
    ("CRITICAL: race condition", Severity.ERROR),
    ("Fatal: null dereference", Severity.ERROR),
    ("重大: 認証がありません", Severity.ERROR),
    ("🚨 secret exposed", Severity.ERROR),
    ("WARNING: unused variable", Severity.WARNING),
    ("警告: 責務が混在しています", Severity.WARNING),
    ("⚠ too long", Severity.WARNING),
    ("INFO: could be simpler", Severity.INFO),
    ("提案: 命名を見直してください", Severity.INFO),
    ("Suggestion: use a dataclass", Severity.INFO),
    ("💡 move to utils", Severity.INFO),
])
def test_markers(text, expected):
    assert detect_severity(text) == expected


@pytest.mark.unit
@pytest.mark.parametrize("severity,has_issues", [
    (Severity.OK, False),
    (Severity.INFO, False),
    (Severity.WARNING, True),
    (Severity.ERROR, True),
])
def test_has_issues_follows_severity(severity, has_issues):
    text = {
        Severity.OK: "✓ fine",
        Severity.INFO: "💡 idea",
        Severity.WARNING: "⚠ hmm",
        Severity.ERROR: "🚨 bad",
    }[severity]

    assert classify(text) == (has_issues, severity)


@pytest.mark.unit
def test_make_result_fills_fields():
    result = make_result(Path("/src/auth.rs"), "⚠ warning: unwrap on user input", reviewed_content="fn main(){}")

    assert result.name == "auth.rs"
    assert result.review == "⚠ warning: unwrap on user input"
    assert result.severity == Severity.WARNING
    assert result.has_issues is True
    assert result.reviewed_content == "fn main(){}"
    assert result.timestamp.tzinfo is not None
