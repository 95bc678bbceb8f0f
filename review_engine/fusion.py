"""
Review fusion.

Parses the free-text output of an external reviewer into a ReviewResult and
merges it with the deterministic AnalysisResult. Parsing never raises: any
text without a usable JSON payload turns into a fixed fallback result.
"""

import json
import logging
from typing import Any, Dict, List

from pydantic import ValidationError

from review_engine import config
from review_engine.errors import MalformedReviewPayload
from review_engine.models import (
    AnalysisResult,
    DetectedPattern,
    GitChanges,
    ReviewIssue,
    ReviewMetrics,
    ReviewResult,
)
from review_engine.validation import (
    is_number,
    validate_issue,
    validate_score,
    validate_suggestions,
)

logger = logging.getLogger(__name__)


# ── Parsing ─────────────────────────────────────────────────────────────────

def _extract_payload(text: Any) -> Dict[str, Any]:
    """Decode the first-'{'-to-last-'}' span of text and check its shape."""
    if not isinstance(text, str):
        raise MalformedReviewPayload("Review text is not a string")

    start = text.find('{')
    end = text.rfind('}')
    if start == -1 or end < start:
        raise MalformedReviewPayload("No JSON object found in response")

    try:
        payload = json.loads(text[start:end + 1])
    except (ValueError, RecursionError) as e:
        raise MalformedReviewPayload(f"Response is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise MalformedReviewPayload("Response JSON is not an object")

    summary = payload.get("summary")
    if not isinstance(summary, str) or not summary:
        raise MalformedReviewPayload("Missing or empty 'summary'")
    if not isinstance(payload.get("issues"), list):
        raise MalformedReviewPayload("'issues' is not a list")
    if not isinstance(payload.get("suggestions"), list):
        raise MalformedReviewPayload("'suggestions' is not a list")
    if not is_number(payload.get("score")):
        raise MalformedReviewPayload("'score' is not a number")

    return payload


def compute_review_metrics(issues: List[ReviewIssue], changes: GitChanges) -> ReviewMetrics:
    """Count issues by field; file and line totals come from the change set."""
    return ReviewMetrics(
        total_files=len(changes.files),
        lines_analyzed=changes.lines_analyzed,
        issues_found=len(issues),
        critical_issues=sum(1 for i in issues if i.severity == "critical"),
        security_issues=sum(1 for i in issues if i.type == "security"),
        performance_issues=sum(1 for i in issues if i.type == "performance"),
    )


def fallback_result(changes: GitChanges) -> ReviewResult:
    return ReviewResult(
        summary=config.FALLBACK_SUMMARY,
        issues=[],
        suggestions=list(config.FALLBACK_SUGGESTIONS),
        score=config.FALLBACK_SCORE,
        metrics=compute_review_metrics([], changes),
    )


def _payload_metrics(raw: Any, issues: List[ReviewIssue], changes: GitChanges) -> ReviewMetrics:
    # Payload metrics are only a first pass; merging recomputes them
    if isinstance(raw, dict):
        try:
            return ReviewMetrics.model_validate(raw)
        except ValidationError:
            logger.debug("Ignoring invalid metrics in review payload")
    return compute_review_metrics(issues, changes)


def parse_review_response(text: str, changes: GitChanges) -> ReviewResult:
    """
    Parse reviewer output into a ReviewResult.

    Accepts arbitrary text (markdown fences, prose around the JSON). Falls
    back to a fixed result with score 5 when no valid payload is found.
    """
    try:
        payload = _extract_payload(text)
    except MalformedReviewPayload as e:
        logger.warning("Failed to parse review response, using fallback: %s", e)
        return fallback_result(changes)

    issues = [validate_issue(item) for item in payload["issues"]]

    return ReviewResult(
        summary=payload["summary"],
        issues=issues,
        suggestions=validate_suggestions(payload["suggestions"]),
        score=validate_score(payload["score"]),
        metrics=_payload_metrics(payload.get("metrics"), issues, changes),
    )


# ── Merging ─────────────────────────────────────────────────────────────────

def pattern_to_issue(pattern: DetectedPattern) -> ReviewIssue:
    return ReviewIssue(
        file=pattern.files[0] if pattern.files else "unknown",
        type=pattern.type,
        severity=pattern.severity,
        message=pattern.description,
        suggestion=pattern.suggestion,
    )


def _prefix(text: str) -> str:
    return text[:config.DEDUP_PREFIX_LENGTH]


def is_duplicate_issue(candidate: ReviewIssue, existing: List[ReviewIssue]) -> bool:
    """Same file and type, and an existing message contains the candidate's prefix."""
    prefix = _prefix(candidate.message)
    return any(
        issue.file == candidate.file
        and issue.type == candidate.type
        and prefix in issue.message
        for issue in existing
    )


def is_duplicate_suggestion(candidate: str, existing: List[str]) -> bool:
    prefix = _prefix(candidate)
    return any(prefix in suggestion for suggestion in existing)


def adjust_score(score: int, risk_score: int) -> int:
    """Lower the review score by risk_score // 20 once risk exceeds 50."""
    if risk_score > config.RISK_PENALTY_THRESHOLD:
        return max(config.MIN_SCORE, score - risk_score // config.RISK_PENALTY_DIVISOR)
    return score


def merge_analysis_results(
    ai_result: ReviewResult,
    analysis: AnalysisResult,
    changes: GitChanges,
) -> ReviewResult:
    """
    Merge deterministic findings into a parsed review.

    Heuristic issues that duplicate a reviewer issue are dropped, the rest
    appended after the reviewer's issues. Recommendations are merged into the
    suggestions the same way. Metrics are recomputed from the merged issues.
    """
    ai_issues = list(ai_result.issues)
    issues = list(ai_issues)

    for pattern in analysis.patterns:
        candidate = pattern_to_issue(pattern)
        if not is_duplicate_issue(candidate, ai_issues):
            issues.append(candidate)

    suggestions = list(ai_result.suggestions)
    for recommendation in analysis.recommendations:
        if not is_duplicate_suggestion(recommendation, ai_result.suggestions):
            suggestions.append(recommendation)

    dropped = len(analysis.patterns) - (len(issues) - len(ai_issues))
    logger.info(
        "Merged review: %d reviewer issue(s), %d heuristic issue(s) added, %d duplicate(s) dropped",
        len(ai_issues), len(issues) - len(ai_issues), dropped,
    )

    return ReviewResult(
        summary=(
            f"{ai_result.summary} Pre-analysis detected {len(analysis.patterns)} patterns "
            f"with risk score {analysis.risk_score}/100."
        ),
        issues=issues,
        suggestions=suggestions,
        score=adjust_score(ai_result.score, analysis.risk_score),
        metrics=compute_review_metrics(issues, changes),
    )


def fuse_review(review_text: str, analysis: AnalysisResult, changes: GitChanges) -> ReviewResult:
    """Parse review text and merge it with the analysis."""
    ai_result = parse_review_response(review_text, changes)
    return merge_analysis_results(ai_result, analysis, changes)
