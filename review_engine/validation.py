"""
Field validation for review payloads produced by an external reviewer.

The payload is untrusted. Every field of an issue goes through one function
here that returns a typed value or a documented default, so out-of-range
values are coerced rather than rejected:

    file         -> "unknown" when missing or not a non-empty string
    line         -> None unless an integral number (booleans excluded)
    type         -> "maintainability" unless a known issue type
    severity     -> "medium" unless a known severity
    message      -> "Issue description not provided" when missing
    suggestion   -> passed through when a string, else None
    codeSnippet  -> passed through when a string, else None
"""

import json
import math
import logging
from typing import Any, List, Mapping, Optional

from review_engine import config
from review_engine.models import ISSUE_TYPES, SEVERITIES, IssueType, ReviewIssue, Severity

logger = logging.getLogger(__name__)

DEFAULT_FILE = "unknown"
DEFAULT_TYPE: IssueType = "maintainability"
DEFAULT_SEVERITY: Severity = "medium"
DEFAULT_MESSAGE = "Issue description not provided"


def is_number(value: Any) -> bool:
    """True for finite ints and floats; bool is not a number here."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


def validate_file(value: Any) -> str:
    if isinstance(value, str) and value:
        return value
    return DEFAULT_FILE


def validate_line(value: Any) -> Optional[int]:
    if not is_number(value):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        return int(value)
    return value


def validate_type(value: Any) -> IssueType:
    if value in ISSUE_TYPES:
        return value
    if value is not None:
        logger.debug("Unknown issue type %r, using %s", value, DEFAULT_TYPE)
    return DEFAULT_TYPE


def validate_severity(value: Any) -> Severity:
    if value in SEVERITIES:
        return value
    if value is not None:
        logger.debug("Unknown severity %r, using %s", value, DEFAULT_SEVERITY)
    return DEFAULT_SEVERITY


def validate_message(value: Any) -> str:
    if isinstance(value, str) and value:
        return value
    return DEFAULT_MESSAGE


def validate_optional_text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def validate_issue(raw: Any) -> ReviewIssue:
    """Repair one raw issue into a ReviewIssue. Never raises."""
    data: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}

    return ReviewIssue(
        file=validate_file(data.get("file")),
        line=validate_line(data.get("line")),
        type=validate_type(data.get("type")),
        severity=validate_severity(data.get("severity")),
        message=validate_message(data.get("message")),
        suggestion=validate_optional_text(data.get("suggestion")),
        code_snippet=validate_optional_text(data.get("codeSnippet")),
    )


def validate_suggestions(raw: List[Any]) -> List[str]:
    """Keep string suggestions; other JSON values are rendered as JSON text."""
    suggestions = []
    for item in raw:
        if isinstance(item, str):
            suggestions.append(item)
        elif item is not None:
            suggestions.append(json.dumps(item))
    return suggestions


def validate_score(value: Any) -> int:
    """Round and clamp a numeric score into [MIN_SCORE, MAX_SCORE]."""
    rounded = math.floor(value + 0.5)
    return int(max(config.MIN_SCORE, min(config.MAX_SCORE, rounded)))
