"""
Review prompt for the external reviewer.

Prompts are versioned and tracked in Git for rollback capability.
The prompt carries the deterministic pre-analysis so the reviewer can build
on it, and asks for exactly the JSON shape fusion parses.
"""

from typing import Optional

from review_engine.models import AnalysisResult, GitChanges
from review_engine.rules import file_extension

SYSTEM_PROMPT = """You are a senior software engineer and security expert performing a thorough code review.
Your goal is to provide actionable, specific feedback that improves code quality and prevents issues."""

FILE_TYPES = {
    "js": "JavaScript",
    "ts": "TypeScript",
    "jsx": "React JSX",
    "tsx": "React TypeScript",
    "py": "Python",
    "sql": "SQL",
    "json": "JSON",
    "yaml": "YAML",
    "yml": "YAML",
    "env": "Environment file",
}

REVIEW_TYPE_INSTRUCTIONS = {
    "comprehensive": """Perform a thorough multi-dimensional code review covering:

**Security Analysis:**
- Authentication/authorization vulnerabilities
- Input validation and sanitization gaps
- Injection attacks (SQL, XSS, Command injection)
- Sensitive data exposure or logging

**Performance Review:**
- Inefficient algorithms or data structures
- Database query optimization opportunities
- Memory leaks and resource management issues

**Code Quality & Maintainability:**
- Error handling and exception management
- Type safety and validation
- Code duplication and reusability

**Bug Detection:**
- Logic errors and edge cases
- Null/undefined handling issues
- Race conditions and concurrency problems""",

    "security": """Focus exclusively on security vulnerabilities and risks:
- Authentication flaws: weak password policies, session management, token handling
- Authorization issues: privilege escalation, access control bypasses
- Input validation: SQL injection, XSS, command injection, path traversal
- Data protection: sensitive data in logs, unencrypted storage, insecure transmission
- Configuration security: default credentials, exposed secrets, insecure defaults
Assume all input is malicious.""",

    "performance": """Focus on performance optimization and efficiency:
- Algorithm efficiency: time/space complexity, unnecessary iterations
- Database performance: N+1 queries, missing indexes, inefficient joins
- Memory management: leaks, excessive allocations
- Network optimization: unnecessary API calls, large payloads, missing caching
- Resource utilization: CPU-intensive operations, blocking I/O""",

    "style": """Focus on code style, consistency, and maintainability:
- Naming conventions: clear, consistent, descriptive names
- Code organization: logical structure, separation of concerns
- Documentation: comments and docstrings where they help
- Consistent error handling patterns and proper abstraction levels""",

    "bugs": """Focus on identifying potential bugs and correctness issues:
- Logic errors: incorrect conditions, wrong operators, flawed algorithms
- Null/undefined handling: missing null checks
- Edge cases: boundary conditions, empty collections, extreme values
- Concurrency issues: race conditions, shared state problems
- Error handling: unhandled exceptions, incorrect error propagation""",
}

SEVERITY_INSTRUCTIONS = {
    "all": "Report all issues regardless of severity level.",
    "high": "Only report HIGH and CRITICAL severity issues. Skip low and medium severity items.",
    "critical": (
        "Only report CRITICAL severity issues that could cause security vulnerabilities, "
        "data loss, or system failures."
    ),
}

SEVERITY_DEFINITIONS = """**Severity Definitions:**
- **CRITICAL:** Security vulnerabilities, data corruption risks, system crashes
- **HIGH:** Performance bottlenecks, logic errors, significant maintainability issues
- **MEDIUM:** Code quality issues, minor performance problems, style inconsistencies
- **LOW:** Minor style issues, documentation gaps, non-critical suggestions"""

# Path keywords that steer the reviewer's attention
CONTEXT_HINTS = [
    (("config", ".env", "package.json", "docker"),
     "**Configuration Changes Detected:** Pay special attention to security settings, "
     "environment variables, and deployment configurations."),
    (("auth", "security", "login", "password"),
     "**Security-Related Changes:** Thoroughly review authentication, authorization, "
     "and security implementations."),
    (("api", "endpoint", "route", "controller"),
     "**API Changes:** Focus on input validation, error handling, rate limiting, and API security."),
    (("model", "schema", "migration", "query"),
     "**Database Changes:** Review for SQL injection risks, query performance, and data integrity."),
]


def file_type_label(path: str) -> str:
    return FILE_TYPES.get(file_extension(path), "Unknown")


def build_git_section(changes: GitChanges, max_files: int, max_diff_chars: int) -> str:
    commits = "\n".join(
        f"- {c.message.strip()} ({c.hash[:7]}) by {c.author}" for c in changes.commits
    )

    file_sections = []
    for index, file in enumerate(changes.files[:max_files], 1):
        section = f"""**File {index}: {file.path}**
- Status: {file.status}
- Changes: +{file.additions} lines, -{file.deletions} lines
- File Type: {file_type_label(file.path)}"""
        if file.patch:
            patch = file.patch[:max_diff_chars]
            if len(file.patch) > max_diff_chars:
                patch += "\n... (truncated)"
            section += f"\n```diff\n{patch}\n```"
        file_sections.append(section)

    section = f"""## Git Context for Code Review
**Base Branch:** {changes.base_branch}
**Current Branch:** {changes.current_branch}
**Files Changed:** {len(changes.files)}
**Total Insertions:** {changes.stats.insertions}
**Total Deletions:** {changes.stats.deletions}

### Recent Commits Context
{commits}

### File Changes Analysis
""" + "\n\n".join(file_sections)

    hidden = len(changes.files) - max_files
    if hidden > 0:
        section += f"\n\n**Note:** {hidden} additional files were changed but not shown for brevity."

    return section


def build_pre_analysis_section(analysis: AnalysisResult) -> str:
    key_patterns = [
        f"- {p.type.upper()}: {p.description}"
        for p in analysis.patterns
        if p.severity in ("critical", "high")
    ][:5]
    recommendations = [f"- {r}" for r in analysis.recommendations[:3]]

    return f"""## Pre-Analysis Results
**Risk Score:** {analysis.risk_score}/100
**Detected Patterns:** {len(analysis.patterns)} issues found
**Code Metrics:**
- Complexity: {analysis.metrics.complexity}
- Technical Debt: {analysis.metrics.technical_debt}
- Security Risk: {analysis.metrics.security_risk}

**Key Patterns Detected:**
{chr(10).join(key_patterns)}

**Pre-Analysis Recommendations:**
{chr(10).join(recommendations)}

Please use this pre-analysis to focus your review and provide additional insights beyond these automated findings."""


def build_contextual_guidance(changes: GitChanges) -> str:
    guidance = "## Contextual Review Focus"
    for keywords, hint in CONTEXT_HINTS:
        if any(k in f.path for f in changes.files for k in keywords):
            guidance += f"\n- {hint}"
    return guidance


def build_response_format(changes: GitChanges) -> str:
    return f"""## Response Format
Respond with a JSON object in this exact format:
{{
  "summary": "2-3 sentence overall assessment focusing on key findings",
  "issues": [
    {{
      "file": "exact/file/path.js",
      "line": 42,
      "type": "security|performance|bug|style|maintainability",
      "severity": "low|medium|high|critical",
      "message": "Specific description of the issue and why it matters",
      "suggestion": "Concrete fix or improvement recommendation",
      "codeSnippet": "relevant code snippet if helpful"
    }}
  ],
  "suggestions": [
    "Actionable general improvements for the entire changeset"
  ],
  "score": 8,
  "metrics": {{
    "totalFiles": {len(changes.files)},
    "linesAnalyzed": {changes.lines_analyzed},
    "issuesFound": 0,
    "criticalIssues": 0,
    "securityIssues": 0,
    "performanceIssues": 0
  }}
}}

**CRITICAL:** Return ONLY the JSON object. No additional text, explanations, or formatting."""


def build_review_prompt(
    changes: GitChanges,
    analysis: Optional[AnalysisResult] = None,
    review_type: str = "comprehensive",
    severity: str = "all",
    max_files: int = 20,
    max_diff_chars: int = 500,
) -> str:
    """Build the task prompt for reviewing a change set."""
    instructions = REVIEW_TYPE_INSTRUCTIONS.get(review_type, REVIEW_TYPE_INSTRUCTIONS["comprehensive"])
    severity_filter = SEVERITY_INSTRUCTIONS.get(severity, SEVERITY_INSTRUCTIONS["all"])

    sections = [
        SYSTEM_PROMPT,
        build_git_section(changes, max_files, max_diff_chars),
    ]
    if analysis is not None:
        sections.append(build_pre_analysis_section(analysis))
    sections.extend([
        f"## Review Focus: {review_type.upper()}\n{instructions}",
        f"{severity_filter}\n\n{SEVERITY_DEFINITIONS}",
        build_contextual_guidance(changes),
        """## Analysis Guidelines
- Be specific about line numbers when possible
- Provide concrete examples and fix suggestions
- Focus on real issues, not nitpicks
- Prioritize security and correctness over style (unless style review is requested)
- Build upon the pre-analysis findings with deeper insights""",
        build_response_format(changes),
    ])

    return "\n\n".join(sections)


# Prompt version for tracking/rollback
PROMPT_VERSION = "v1.0"
