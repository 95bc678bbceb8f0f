"""
Risk scoring and recommendation rules.
"""

import math
from typing import List, Literal

from review_engine import config
from review_engine.metrics import clamp
from review_engine.models import CodeMetrics, DetectedPattern


def calculate_risk_score(patterns: List[DetectedPattern], metrics: CodeMetrics) -> int:
    """
    Fold pattern severities and metrics into a 0-100 risk score.

    Each pattern adds its severity weight; complexity, technical debt and
    security risk add a weighted share of their value. The total is rounded
    half-up and clamped.
    """
    score = sum(config.SEVERITY_WEIGHTS.get(p.severity, 0) for p in patterns)

    score += metrics.complexity * config.COMPLEXITY_WEIGHT
    score += metrics.technical_debt * config.TECHNICAL_DEBT_WEIGHT
    score += metrics.security_risk * config.SECURITY_RISK_WEIGHT

    return clamp(math.floor(score + 0.5))


def generate_recommendations(patterns: List[DetectedPattern], metrics: CodeMetrics) -> List[str]:
    """Independent threshold rules; each contributes at most one recommendation."""
    recommendations = []

    security_issues = sum(1 for p in patterns if p.type == "security")
    performance_issues = sum(1 for p in patterns if p.type == "performance")
    bug_issues = sum(1 for p in patterns if p.type == "bug")

    if security_issues > 0:
        recommendations.append(f"Address {security_issues} security issue(s) before merging")

    if performance_issues > config.PERFORMANCE_ISSUE_THRESHOLD:
        recommendations.append("Consider performance optimization for better user experience")

    if bug_issues > 0:
        recommendations.append(f"Fix {bug_issues} potential bug(s) to improve code reliability")

    if metrics.complexity > config.COMPLEXITY_THRESHOLD:
        recommendations.append("Consider breaking down complex functions for better maintainability")

    if metrics.technical_debt > config.TECHNICAL_DEBT_THRESHOLD:
        recommendations.append("Address technical debt comments and code quality issues")

    if metrics.security_risk > config.SECURITY_RISK_THRESHOLD:
        recommendations.append("Conduct thorough security review before deployment")

    return recommendations


def score_verdict(score: int, pass_threshold: int = 8, warn_threshold: int = 6) -> Literal["pass", "warn", "fail"]:
    """Map a 1-10 review score onto pass / warn / fail."""
    if score >= pass_threshold:
        return "pass"
    if score >= warn_threshold:
        return "warn"
    return "fail"
