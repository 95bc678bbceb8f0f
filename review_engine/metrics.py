"""
Heuristic code metrics computed from added lines.

These are deliberately crude line-level counts, not real measurements:
complexity counts decision points, test coverage counts added test lines,
and duplicate code is not computed at all (always 0).
"""

import re
from typing import Iterable, List

from review_engine.config import METRIC_CAP
from review_engine.diff import added_lines
from review_engine.models import CodeMetrics, GitChanges

DECISION_POINT = re.compile(r'\b(?:if|else|while|for|switch|case|catch)\b|&&|\|\|')
DEBT_MARKER = re.compile(r'\b(?:TODO|FIXME|HACK|XXX)\b', re.IGNORECASE)
NESTED_CALLS = re.compile(r'[()]{3,}')
HIGH_RISK = re.compile(r'eval\(|innerHTML\s*=|document\.write', re.IGNORECASE)
MEDIUM_RISK = re.compile(r'password|secret|token|key', re.IGNORECASE)
LOW_RISK = re.compile(r'http:|localhost', re.IGNORECASE)

LONG_LINE = 120


def clamp(value: float, low: int = 0, high: int = METRIC_CAP) -> int:
    return int(max(low, min(high, value)))


def is_test_path(path: str) -> bool:
    return 'test' in path or 'spec' in path


def calculate_complexity(lines: Iterable[str]) -> int:
    """Base complexity of 1 plus one per line holding a decision point."""
    complexity = 1
    for line in lines:
        if DECISION_POINT.search(line.strip()):
            complexity += 1
    return complexity


def calculate_technical_debt(lines: Iterable[str]) -> int:
    debt = 0
    for line in lines:
        clean = line.strip()
        if DEBT_MARKER.search(clean):
            debt += 5
        if len(clean) > LONG_LINE:
            debt += 1
        if NESTED_CALLS.search(clean):
            debt += 2
    return debt


def calculate_security_risk(lines: Iterable[str]) -> int:
    risk = 0
    for line in lines:
        clean = line.strip()
        if HIGH_RISK.search(clean):
            risk += 10
        if MEDIUM_RISK.search(clean):
            risk += 5
        if LOW_RISK.search(clean):
            risk += 1
    return risk


def calculate_metrics(changes: GitChanges) -> CodeMetrics:
    """Aggregate line metrics across every file that carries a patch."""
    complexity = 0
    test_coverage = 0
    technical_debt = 0
    security_risk = 0

    for file in changes.files:
        if not file.patch:
            continue

        lines: List[str] = added_lines(file.patch)

        complexity += calculate_complexity(lines)
        if is_test_path(file.path):
            test_coverage += len(lines)
        technical_debt += calculate_technical_debt(lines)
        security_risk += calculate_security_risk(lines)

    return CodeMetrics(
        complexity=clamp(complexity),
        test_coverage=clamp(test_coverage),
        duplicate_code=0,
        technical_debt=clamp(technical_debt),
        security_risk=clamp(security_risk),
    )
