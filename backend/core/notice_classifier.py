"""
Classification of database notices into test verdict lines.
"""

from backend.models.execution import ClassifiedLine, LineKind

FAIL_MARKER = "FAILED"
PASS_MARKER = "PASSED"


def classify(raw_message: str) -> LineKind:
    """
    Decide whether a notice reports a passing test, a failing test, or neither.

    The fail marker is checked first: a notice mentioning both markers counts
    as a failure.
    """
    text = (raw_message or "").strip()
    if FAIL_MARKER in text:
        return LineKind.FAIL
    if PASS_MARKER in text:
        return LineKind.PASS
    return LineKind.INFO


def classify_notice(raw_message: str) -> ClassifiedLine:
    text = (raw_message or "").strip() or "Unknown notice"
    return ClassifiedLine(kind=classify(text), text=text)
