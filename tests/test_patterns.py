"""
Tests for the pattern registry and matcher.

Run with: pytest tests/
"""

import re

import pytest
from pydantic import ValidationError
from review_engine.patterns import (
    DEFAULT_REGISTRY,
    PatternRegistry,
    match_patterns,
    rule,
)


def ids(patterns):
    return [p.pattern_id for p in patterns]


def test_eval_detected():
    """Should detect eval() usage with its registered metadata."""
    patterns = match_patterns("src/app.js", "const r = eval(userInput);", DEFAULT_REGISTRY)
    hit = next(p for p in patterns if p.pattern_id == "eval-usage")
    assert hit.type == "security"
    assert hit.severity == "critical"
    assert hit.files == ["src/app.js"]
    assert "eval()" in hit.description


def test_one_finding_per_rule_per_file():
    """Repeated matches of one rule still produce a single finding."""
    code = "\n".join("console.log(x);" for _ in range(10))
    patterns = match_patterns("a.js", code, DEFAULT_REGISTRY)
    assert ids(patterns).count("console-log") == 1


def test_registry_reused_across_files():
    """Compiled rules keep no state between files."""
    first = match_patterns("a.js", "eval(a)", DEFAULT_REGISTRY)
    second = match_patterns("b.js", "eval(b)", DEFAULT_REGISTRY)
    assert "eval-usage" in ids(first)
    assert "eval-usage" in ids(second)
    assert second[0].files == ["b.js"]


def test_clean_code():
    """Plain code should not trigger rules."""
    assert match_patterns("a.js", "const total = items.length;", DEFAULT_REGISTRY) == []


def test_empty_code():
    assert match_patterns("a.js", "", DEFAULT_REGISTRY) == []


def test_strict_equality_not_flagged():
    assert "loose-null-equality" not in ids(match_patterns("a.js", "if (x === null) {}", DEFAULT_REGISTRY))
    assert "loose-null-equality" in ids(match_patterns("a.js", "if (x == null) {}", DEFAULT_REGISTRY))


def test_hardcoded_password():
    """Should detect hardcoded passwords."""
    patterns = match_patterns("settings.py", 'password = "supersecret123"', DEFAULT_REGISTRY)
    assert "hardcoded-password" in ids(patterns)


def test_star_import():
    """Should detect star imports."""
    patterns = match_patterns("mod.py", "from utils import *", DEFAULT_REGISTRY)
    hit = next(p for p in patterns if p.pattern_id == "wildcard-import")
    assert hit.type == "style"
    assert hit.severity == "low"


def test_categories_reported_in_order():
    code = "// TODO later\nconsole.log(x);\neval(y);\nif (a == null) {}"
    types = [p.type for p in match_patterns("a.js", code, DEFAULT_REGISTRY)]
    order = ["security", "performance", "bug", "style"]
    assert types == sorted(types, key=order.index)


def test_missing_metadata_falls_back():
    """A rule without metadata reports generic defaults instead of failing."""
    registry = PatternRegistry([rule("custom-foo", "bug", r"foo\(")])
    patterns = match_patterns("x.js", "foo(1)", registry)
    assert len(patterns) == 1
    assert patterns[0].severity == "medium"
    assert patterns[0].description == r"Detected pattern: foo\("
    assert patterns[0].suggestion == "Review this pattern for potential issues"


def test_rules_are_immutable():
    """Registry rules are shared read-only and keep their compiled regex."""
    eval_rule = DEFAULT_REGISTRY.get("eval-usage")
    assert isinstance(eval_rule.regex, re.Pattern)
    assert eval_rule.regex.search("eval(x)")
    with pytest.raises(ValidationError):
        eval_rule.severity = "low"


def test_duplicate_rule_id_rejected():
    with pytest.raises(ValueError):
        PatternRegistry([rule("dup", "bug", "a"), rule("dup", "style", "b")])


def test_unknown_category_rejected():
    with pytest.raises(ValueError):
        PatternRegistry([rule("x", "maintainability", "a")])


def test_default_registry_is_complete():
    """Every default rule carries a description and a suggestion."""
    assert len(DEFAULT_REGISTRY) > 0
    for r in DEFAULT_REGISTRY:
        assert r.description
        assert r.suggestion
    assert DEFAULT_REGISTRY.get("eval-usage").category == "security"
    assert DEFAULT_REGISTRY.get("nope") is None
