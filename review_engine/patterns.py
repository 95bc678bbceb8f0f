"""
Pattern registry and matcher.

The registry is a fixed table of regex rules, one record per rule, keyed by a
stable id. It is built once at import time and shared read-only; matching
uses re.search, which keeps no position between calls, so the same compiled
pattern can be reused across files safely.

Presence, not count, is recorded: a rule that fires on a file yields exactly
one DetectedPattern for that file however many times it matches.
"""

import re
import logging
from typing import Dict, Iterator, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict

from review_engine.models import DetectedPattern, IssueType, Severity

logger = logging.getLogger(__name__)

# Order in which categories are scanned and reported
CATEGORY_ORDER: Tuple[IssueType, ...] = ("security", "performance", "bug", "style")

DEFAULT_SEVERITY: Severity = "medium"
DEFAULT_SUGGESTION = "Review this pattern for potential issues"


class PatternRule(BaseModel):
    """One rule: a compiled regex plus the metadata reported when it fires."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    id: str
    category: IssueType
    regex: re.Pattern
    severity: Optional[Severity] = None
    description: Optional[str] = None
    suggestion: Optional[str] = None

    def to_pattern(self, file_path: str) -> DetectedPattern:
        """Build the finding for this rule on one file, filling missing metadata."""
        return DetectedPattern(
            type=self.category,
            severity=self.severity or DEFAULT_SEVERITY,
            pattern_id=self.id,
            files=[file_path],
            description=self.description or f"Detected pattern: {self.regex.pattern}",
            suggestion=self.suggestion or DEFAULT_SUGGESTION,
        )


def rule(
    rule_id: str,
    category: IssueType,
    pattern: str,
    severity: Optional[Severity] = None,
    description: Optional[str] = None,
    suggestion: Optional[str] = None,
    flags: int = re.IGNORECASE,
) -> PatternRule:
    return PatternRule(
        id=rule_id,
        category=category,
        regex=re.compile(pattern, flags),
        severity=severity,
        description=description,
        suggestion=suggestion,
    )


class PatternRegistry:
    """Immutable, category-partitioned collection of PatternRules."""

    def __init__(self, rules):
        self._rules: Tuple[PatternRule, ...] = tuple(rules)

        seen = set()
        for r in self._rules:
            if r.id in seen:
                raise ValueError(f"Duplicate pattern rule id: {r.id}")
            if r.category not in CATEGORY_ORDER:
                raise ValueError(f"Unsupported category {r.category!r} for rule {r.id}")
            seen.add(r.id)

        self._by_category: Dict[str, Tuple[PatternRule, ...]] = {
            category: tuple(r for r in self._rules if r.category == category)
            for category in CATEGORY_ORDER
        }

    def __iter__(self) -> Iterator[PatternRule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def by_category(self, category: str) -> Tuple[PatternRule, ...]:
        return self._by_category.get(category, ())

    def get(self, rule_id: str) -> Optional[PatternRule]:
        for r in self._rules:
            if r.id == rule_id:
                return r
        return None


def match_patterns(file_path: str, code: str, registry: PatternRegistry) -> List[DetectedPattern]:
    """Run every registry rule against the added code of one file."""
    detected = []

    if not code:
        return detected

    for category in CATEGORY_ORDER:
        for r in registry.by_category(category):
            if r.regex.search(code):
                detected.append(r.to_pattern(file_path))

    if detected:
        logger.debug("%s: %d pattern(s) matched", file_path, len(detected))

    return detected


# ── Rule table ──────────────────────────────────────────────────────────────

_SECURITY_RULES = [
    rule(
        "eval-usage", "security", r'eval\s*\(',
        severity="critical",
        description="Use of eval() can lead to code injection vulnerabilities",
        suggestion="Avoid eval() and use safer alternatives like JSON.parse() for data",
    ),
    rule(
        "exec-usage", "security", r'\bexec\s*\(',
        severity="high",
        description="Use of exec() runs arbitrary code",
        suggestion="Replace exec() with explicit function calls or a dispatch table",
    ),
    rule(
        "inner-html-assignment", "security", r'innerHTML\s*=',
        severity="high",
        description="Direct innerHTML assignment can lead to XSS vulnerabilities",
        suggestion="Use textContent or sanitize HTML content before assignment",
    ),
    rule(
        "document-write", "security", r'document\.write\s*\(',
        severity="high",
        description="document.write() injects raw markup and can lead to XSS vulnerabilities",
        suggestion="Build DOM nodes explicitly instead of writing markup",
    ),
    rule(
        "template-literal-injection", "security", r'\$\{[^}]*\}',
        description="Template literal interpolation may inject untrusted input",
        suggestion="Make sure interpolated values are escaped for their target context",
    ),
    rule(
        "sql-string-concatenation", "security", r'SELECT\s+.*\s+FROM\s+.*\s+WHERE\s+.*\+',
        description="SQL query built by string concatenation, possible SQL injection",
        suggestion="Use parameterized queries instead of concatenating values",
    ),
    rule(
        "hardcoded-password", "security", r'password\s*=\s*[\'"]',
        severity="critical",
        description="Hardcoded password detected in source code",
        suggestion="Use environment variables or secure configuration for passwords",
    ),
    rule(
        "hardcoded-api-key", "security", r'api[_-]?key\s*=\s*[\'"]',
        description="Possible hardcoded API key",
        suggestion="Load API keys from the environment or a secrets manager",
    ),
    rule(
        "hardcoded-secret", "security", r'secret\s*=\s*[\'"]',
        description="Possible hardcoded secret",
        suggestion="Load secrets from the environment or a secrets manager",
    ),
    rule(
        "hardcoded-token", "security", r'token\s*=\s*[\'"]',
        description="Possible hardcoded token",
        suggestion="Load tokens from the environment or a secrets manager",
    ),
    rule(
        "weak-hash-md5", "security", r'crypto\.createHash\s*\(\s*[\'"]md5[\'"]|hashlib\.md5',
        description="MD5 is a weak hash function",
        suggestion="Use SHA-256 or a dedicated password hash such as bcrypt",
    ),
    rule(
        "pickle-deserialization", "security", r'\bpickle\.loads?\(',
        description="Use of pickle detected, unsafe on untrusted data",
        suggestion="Use a data-only format such as JSON for untrusted input",
    ),
    rule(
        "insecure-random", "security", r'Math\.random\s*\(\s*\)',
        description="Math.random() is not suitable for security-sensitive values",
        suggestion="Use crypto.getRandomValues() or crypto.randomUUID() instead",
    ),
]

_PERFORMANCE_RULES = [
    rule(
        "nested-for-loops", "performance", r'for\s*\([^)]*\)\s*\{[^}]*for\s*\(',
        severity="medium",
        description="Nested loops can cause performance issues with large datasets",
        suggestion="Consider optimizing algorithm or using more efficient data structures",
    ),
    rule(
        "nested-while-loops", "performance", r'while\s*\([^)]*\)\s*\{[^}]*while\s*\(',
        description="Nested while loops can cause performance issues with large datasets",
        suggestion="Consider restructuring the loops or precomputing lookups",
    ),
    rule(
        "chained-map", "performance", r'\.map\s*\([^)]*\)\.map\s*\(',
        description="Chained array operations iterate the data more than once",
        suggestion="Combine the mapping steps into a single pass",
    ),
    rule(
        "json-deep-clone", "performance", r'JSON\.parse\s*\(\s*JSON\.stringify',
        description="JSON round-trip used as a deep clone",
        suggestion="Use structuredClone() or a targeted copy",
    ),
    rule(
        "regexp-construction", "performance", r'new\s+RegExp\s*\(',
        description="RegExp constructed at runtime, costly inside loops",
        suggestion="Hoist the regular expression out of hot paths",
    ),
    rule(
        "console-log", "performance", r'console\.log\s*\(',
        severity="low",
        description="Console logs should be removed from production code",
        suggestion="Remove console.log statements or use proper logging framework",
    ),
    rule(
        "debugger-statement", "performance", r'debugger\s*;',
        description="Debugger statement left in code",
        suggestion="Remove debugger statements before merging",
    ),
    rule(
        "alert-call", "performance", r'alert\s*\(',
        description="alert() blocks the UI thread",
        suggestion="Use non-blocking UI feedback instead of alert()",
    ),
]

_BUG_RULES = [
    rule(
        "loose-null-equality", "bug", r'(?<![=!])==\s*null',
        severity="medium",
        description="Loose equality with null can cause unexpected behavior",
        suggestion="Use strict equality (===) for null checks",
    ),
    rule(
        "loose-null-inequality", "bug", r'!=\s*null',
        description="Loose inequality with null also matches undefined",
        suggestion="Use strict inequality (!==) for null checks",
    ),
    rule(
        "loose-undefined-equality", "bug", r'(?<![=!])==\s*undefined',
        description="Loose equality with undefined also matches null",
        suggestion="Use strict equality (===) for undefined checks",
    ),
    rule(
        "loose-undefined-inequality", "bug", r'!=\s*undefined',
        description="Loose inequality with undefined also matches null",
        suggestion="Use strict inequality (!==) for undefined checks",
    ),
    rule(
        "prefix-increment-index", "bug", r'\+\+\w+\[',
        description="Increment combined with array access is easy to misread",
        suggestion="Split the increment and the array access into separate statements",
    ),
    rule(
        "index-prefix-increment", "bug", r'\w+\[\+\+',
        description="Array index with in-place increment is easy to misread",
        suggestion="Increment the index on its own line before indexing",
    ),
    rule(
        "empty-catch", "bug", r'catch\s*(?:\([^)]*\))?\s*\{\s*\}',
        severity="high",
        description="Empty catch blocks hide errors and make debugging difficult",
        suggestion="Add proper error handling or at least log the error",
    ),
    rule(
        "empty-if", "bug", r'if\s*\([^)]*\)\s*;\s*$',
        description="if statement with an empty body",
        suggestion="Remove the stray semicolon or add the intended body",
        flags=re.IGNORECASE | re.MULTILINE,
    ),
    rule(
        "empty-else", "bug", r'else\s*;\s*$',
        description="else branch with an empty body",
        suggestion="Remove the stray semicolon or the empty else",
        flags=re.IGNORECASE | re.MULTILINE,
    ),
]

_STYLE_RULES = [
    rule(
        "large-function", "style", r'function\s+\w+\s*\([^)]*\)\s*\{[\s\S]{500,}?\}',
        description="Large function added",
        suggestion="Split the function into smaller, focused helpers",
    ),
    rule(
        "large-class", "style", r'class\s+\w+\s*\{[\s\S]{1000,}?\}',
        description="Large class added",
        suggestion="Extract cohesive parts of the class into separate types",
    ),
    rule(
        "block-comment", "style", r'/\*[\s\S]*?\*/',
        severity="low",
        description="Block comment added, check it for leftover TODO/FIXME notes",
        suggestion="Keep block comments current or convert notes into tracked issues",
        flags=0,
    ),
    rule(
        "debt-comment", "style", r'(?://|#)\s*(?:TODO|FIXME|HACK|XXX)',
        severity="low",
        description="Technical debt comment indicates incomplete work",
        suggestion="Address the TODO/FIXME or create a proper issue to track it",
    ),
    rule(
        "var-declaration", "style", r'\bvar\s+',
        severity="low",
        description="var has function scope and can cause confusion",
        suggestion="Use let or const for block-scoped variables",
        flags=0,
    ),
    rule(
        "wildcard-import", "style", r'from\s+\S+\s+import\s+\*',
        severity="low",
        description="Star import (import *) detected",
        suggestion="Import names explicitly",
        flags=0,
    ),
]

DEFAULT_REGISTRY = PatternRegistry(_SECURITY_RULES + _PERFORMANCE_RULES + _BUG_RULES + _STYLE_RULES)
