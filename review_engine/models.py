"""
Data models for the change-analysis and review-fusion engine.
Using Pydantic for validation and type safety.

Attribute names are snake_case; the JSON shape (what the git collaborator
sends and what reviewers receive) is camelCase through field aliases.
"""

from typing import Optional, List, Literal, get_args
from pydantic import BaseModel, ConfigDict, Field


FileStatus = Literal["added", "deleted", "modified", "renamed", "binary", "unknown"]
IssueType = Literal["security", "performance", "bug", "style", "maintainability"]
Severity = Literal["low", "medium", "high", "critical"]

ISSUE_TYPES = get_args(IssueType)
SEVERITIES = get_args(Severity)


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class _FrozenModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


# ── Inputs from the git collaborator ────────────────────────────────────────

class FileChange(_FrozenModel):
    """One changed file in a change set."""

    path: str
    status: FileStatus = "modified"
    additions: int = Field(0, ge=0)
    deletions: int = Field(0, ge=0)
    patch: Optional[str] = Field(None, description="Unified diff for this file, None when unavailable")


class CommitInfo(_FrozenModel):
    hash: str
    message: str
    author: str = ""
    date: str = ""


class GitStats(_FrozenModel):
    insertions: int = Field(0, ge=0)
    deletions: int = Field(0, ge=0)
    files_changed: int = Field(0, ge=0, alias="filesChanged")


class GitChanges(_FrozenModel):
    """A change set between two branches."""

    base_branch: str = Field("main", alias="baseBranch")
    current_branch: str = Field("HEAD", alias="currentBranch")
    files: List[FileChange] = Field(default_factory=list)
    commits: List[CommitInfo] = Field(default_factory=list)
    stats: GitStats = Field(default_factory=GitStats)

    @property
    def lines_analyzed(self) -> int:
        return self.stats.insertions + self.stats.deletions


# ── Deterministic analysis ──────────────────────────────────────────────────

class DetectedPattern(_FrozenModel):
    """A rule hit on one file. One per rule per file, never per occurrence."""

    type: IssueType = Field(..., description="Issue category")
    severity: Severity = Field(..., description="Issue severity")
    pattern_id: str = Field(..., alias="patternId", description="Stable id of the rule that fired")
    files: List[str] = Field(..., min_length=1)
    description: str
    suggestion: str


class CodeMetrics(_FrozenModel):
    """Heuristic metrics derived from added lines. Every field is in [0, 100]."""

    complexity: int = Field(0, ge=0, le=100)
    test_coverage: int = Field(0, ge=0, le=100, alias="testCoverage")
    duplicate_code: int = Field(0, ge=0, le=100, alias="duplicateCode", description="Not computed, always 0")
    technical_debt: int = Field(0, ge=0, le=100, alias="technicalDebt")
    security_risk: int = Field(0, ge=0, le=100, alias="securityRisk")


class AnalysisResult(_FrozenModel):
    """Output of the deterministic analysis of a change set."""

    patterns: List[DetectedPattern] = Field(default_factory=list)
    metrics: CodeMetrics = Field(default_factory=CodeMetrics)
    risk_score: int = Field(0, ge=0, le=100, alias="riskScore")
    recommendations: List[str] = Field(default_factory=list)


# ── Review output ───────────────────────────────────────────────────────────

class ReviewIssue(_Model):
    """Single review issue, either from the external reviewer or projected from a pattern."""

    file: str = Field("unknown", description="File path, 'unknown' when not provided")
    line: Optional[int] = Field(None, description="Line number if applicable")
    type: IssueType = "maintainability"
    severity: Severity = "medium"
    message: str
    suggestion: Optional[str] = None
    code_snippet: Optional[str] = Field(None, alias="codeSnippet")


class ReviewMetrics(_Model):
    total_files: int = Field(0, ge=0, alias="totalFiles")
    lines_analyzed: int = Field(0, ge=0, alias="linesAnalyzed")
    issues_found: int = Field(0, ge=0, alias="issuesFound")
    critical_issues: int = Field(0, ge=0, alias="criticalIssues")
    security_issues: int = Field(0, ge=0, alias="securityIssues")
    performance_issues: int = Field(0, ge=0, alias="performanceIssues")


class ReviewResult(_Model):
    """Complete review output."""

    summary: str
    issues: List[ReviewIssue] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)
    score: int = Field(..., ge=1, le=10, description="Overall score 1-10")
    metrics: ReviewMetrics = Field(default_factory=ReviewMetrics)
