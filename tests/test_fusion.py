"""
Tests for review parsing and merging.

Run with: pytest tests/
"""

import json

import pytest
from review_engine.config import FALLBACK_SUGGESTIONS, FALLBACK_SUMMARY
from review_engine.fusion import (
    adjust_score,
    fuse_review,
    merge_analysis_results,
    parse_review_response,
)
from review_engine.models import (
    AnalysisResult,
    CodeMetrics,
    DetectedPattern,
    GitChanges,
    ReviewIssue,
    ReviewResult,
)

CHANGES = GitChanges.model_validate({
    "baseBranch": "main",
    "currentBranch": "feature",
    "files": [
        {"path": "config.json", "status": "modified", "additions": 1, "deletions": 0,
         "patch": '+password: "abc123"'},
        {"path": "src/app.js", "status": "modified", "additions": 2, "deletions": 1, "patch": None},
    ],
    "stats": {"insertions": 3, "deletions": 1, "filesChanged": 2},
})

SECRET_PATTERN = DetectedPattern(
    type="security",
    severity="critical",
    pattern_id="hardcoded-secrets",
    files=["config.json"],
    description="Hardcoded secrets in configuration file",
    suggestion="Use environment variables for sensitive data",
)


def payload(**overrides):
    data = {
        "summary": "Looks mostly fine.",
        "issues": [],
        "suggestions": [],
        "score": 8,
    }
    data.update(overrides)
    return json.dumps(data)


def analysis(patterns=(), risk_score=0, recommendations=()):
    return AnalysisResult(
        patterns=list(patterns),
        metrics=CodeMetrics(),
        risk_score=risk_score,
        recommendations=list(recommendations),
    )


# ── Parsing ─────────────────────────────────────────────────────────────────

def test_no_json_falls_back():
    """A refusal without JSON yields the fixed fallback result."""
    result = parse_review_response("I cannot help with that request.", CHANGES)
    assert result.score == 5
    assert result.issues == []
    assert len(result.suggestions) == 3
    assert result.suggestions == list(FALLBACK_SUGGESTIONS)
    assert result.summary == FALLBACK_SUMMARY
    assert result.metrics.total_files == 2
    assert result.metrics.lines_analyzed == 4
    assert result.metrics.issues_found == 0


@pytest.mark.parametrize("text", [
    "",
    "{not json}",
    "[1, 2, 3]",
    '{"summary": "", "issues": [], "suggestions": [], "score": 7}',
    '{"summary": "ok", "issues": {}, "suggestions": [], "score": 7}',
    '{"summary": "ok", "issues": [], "suggestions": "none", "score": 7}',
    '{"summary": "ok", "issues": [], "suggestions": [], "score": "7"}',
    '{"summary": "ok", "issues": [], "suggestions": [], "score": true}',
    '{"summary": "ok", "issues": [], "suggestions": [], "score": NaN}',
    '{"issues": [], "suggestions": [], "score": 7}',
    "} before {",
])
def test_malformed_payloads_fall_back(text):
    """Invalid shapes never raise; they produce the fallback."""
    result = parse_review_response(text, CHANGES)
    assert result.score == 5
    assert result.summary == FALLBACK_SUMMARY


def test_non_string_input_falls_back():
    assert parse_review_response(None, CHANGES).summary == FALLBACK_SUMMARY


def test_json_inside_prose_and_fences():
    text = "Sure! Here it is:\n```json\n" + payload(score=7) + "\n```\nHope that helps."
    result = parse_review_response(text, CHANGES)
    assert result.summary == "Looks mostly fine."
    assert result.score == 7


def test_issues_repaired_on_parse():
    text = payload(issues=[
        {"file": "src/app.js", "line": 3, "type": "bug", "severity": "high", "message": "Off by one"},
        {"type": "whatever", "severity": "extreme"},
    ])
    result = parse_review_response(text, CHANGES)
    assert len(result.issues) == 2
    assert result.issues[0].line == 3
    assert result.issues[1].file == "unknown"
    assert result.issues[1].type == "maintainability"
    assert result.issues[1].severity == "medium"


def test_score_clamped_on_parse():
    assert parse_review_response(payload(score=15), CHANGES).score == 10
    assert parse_review_response(payload(score=-2), CHANGES).score == 1


def test_payload_metrics_used_when_valid():
    text = payload(metrics={"totalFiles": 7, "linesAnalyzed": 70, "issuesFound": 1,
                            "criticalIssues": 0, "securityIssues": 0, "performanceIssues": 0})
    assert parse_review_response(text, CHANGES).metrics.total_files == 7


def test_payload_metrics_computed_when_missing():
    text = payload(issues=[{"file": "a", "type": "security", "severity": "critical", "message": "m"}])
    metrics = parse_review_response(text, CHANGES).metrics
    assert metrics.total_files == 2
    assert metrics.issues_found == 1
    assert metrics.critical_issues == 1
    assert metrics.security_issues == 1


# ── Merging ─────────────────────────────────────────────────────────────────

def ai_review(issues=(), suggestions=(), score=8):
    return ReviewResult(summary="AI summary.", issues=list(issues), suggestions=list(suggestions), score=score)


def test_duplicate_by_shared_prefix():
    """A heuristic issue whose 20-char prefix appears in an AI issue is dropped."""
    ai_issue = ReviewIssue(
        file="config.json",
        type="security",
        severity="high",
        message="Hardcoded secrets in configuration file for prod",
    )
    merged = merge_analysis_results(ai_review([ai_issue]), analysis([SECRET_PATTERN]), CHANGES)
    assert len(merged.issues) == 1
    assert merged.issues[0].message == "Hardcoded secrets in configuration file for prod"
    assert merged.issues[0].severity == "high"


def test_different_file_not_duplicate():
    ai_issue = ReviewIssue(file="other.json", type="security",
                           message="Hardcoded secrets in configuration file")
    merged = merge_analysis_results(ai_review([ai_issue]), analysis([SECRET_PATTERN]), CHANGES)
    assert len(merged.issues) == 2


def test_different_type_not_duplicate():
    ai_issue = ReviewIssue(file="config.json", type="maintainability",
                           message="Hardcoded secrets in configuration file")
    merged = merge_analysis_results(ai_review([ai_issue]), analysis([SECRET_PATTERN]), CHANGES)
    assert len(merged.issues) == 2


def test_heuristic_issue_projection():
    merged = merge_analysis_results(ai_review(), analysis([SECRET_PATTERN]), CHANGES)
    issue = merged.issues[0]
    assert issue.file == "config.json"
    assert issue.type == "security"
    assert issue.severity == "critical"
    assert issue.message == SECRET_PATTERN.description
    assert issue.suggestion == SECRET_PATTERN.suggestion
    assert issue.line is None


def test_ai_issues_come_first():
    ai_issue = ReviewIssue(file="src/app.js", type="bug", message="Race condition")
    merged = merge_analysis_results(ai_review([ai_issue]), analysis([SECRET_PATTERN]), CHANGES)
    assert [i.message for i in merged.issues] == ["Race condition", SECRET_PATTERN.description]


def test_suggestions_deduplicated():
    recs = ["Address 1 security issue(s) before merging", "Conduct thorough security review before deployment"]
    ai = ai_review(suggestions=["Address 1 security issue(s) before merging, starting with config"])
    merged = merge_analysis_results(ai, analysis(recommendations=recs), CHANGES)
    assert merged.suggestions == [
        "Address 1 security issue(s) before merging, starting with config",
        "Conduct thorough security review before deployment",
    ]


def test_metrics_recomputed_from_merged_issues():
    ai_issue = ReviewIssue(file="src/app.js", type="performance", severity="low", message="Slow loop")
    ai = ai_review([ai_issue])
    ai.metrics.total_files = 99
    merged = merge_analysis_results(ai, analysis([SECRET_PATTERN]), CHANGES)
    assert merged.metrics.total_files == 2
    assert merged.metrics.lines_analyzed == 4
    assert merged.metrics.issues_found == 2
    assert merged.metrics.critical_issues == 1
    assert merged.metrics.security_issues == 1
    assert merged.metrics.performance_issues == 1


def test_score_penalized_by_risk():
    assert merge_analysis_results(ai_review(score=8), analysis(risk_score=60), CHANGES).score == 5
    assert merge_analysis_results(ai_review(score=8), analysis(risk_score=50), CHANGES).score == 8
    assert merge_analysis_results(ai_review(score=3), analysis(risk_score=100), CHANGES).score == 1


def test_fused_score_always_in_range():
    for ai_score in range(1, 11):
        for risk in range(0, 101, 5):
            assert 1 <= adjust_score(ai_score, risk) <= 10


def test_summary_mentions_pre_analysis():
    merged = merge_analysis_results(ai_review(), analysis([SECRET_PATTERN], risk_score=28), CHANGES)
    assert merged.summary == "AI summary. Pre-analysis detected 1 patterns with risk score 28/100."


def test_fusion_idempotent_issue_count():
    """Merging the same findings twice does not insert them twice."""
    result = analysis([SECRET_PATTERN], recommendations=["Address 1 security issue(s) before merging"])
    once = merge_analysis_results(ai_review(), result, CHANGES)
    twice = merge_analysis_results(once, result, CHANGES)
    assert len(twice.issues) == len(once.issues)
    assert len(twice.suggestions) == len(once.suggestions)


def test_fuse_review_end_to_end():
    text = payload(issues=[{
        "file": "config.json",
        "type": "security",
        "severity": "critical",
        "message": "Hardcoded secrets in configuration file for prod",
    }], score=6)
    fused = fuse_review(text, analysis([SECRET_PATTERN], risk_score=28), CHANGES)
    assert len(fused.issues) == 1
    assert fused.score == 6


def test_fuse_review_with_unparseable_text():
    fused = fuse_review("no json here", analysis([SECRET_PATTERN], risk_score=80), CHANGES)
    assert fused.score == 1
    assert [i.message for i in fused.issues] == [SECRET_PATTERN.description]
    assert len(fused.suggestions) == 3
