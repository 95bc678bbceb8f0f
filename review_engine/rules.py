"""
File-type specific checks that run on top of the generic pattern matcher.

Each check looks at the added code of one file and returns at most one
finding, so they share the matcher's one-finding-per-rule-per-file policy.
Checks are dispatched on the lower-cased file extension.
"""

import re
from typing import Callable, Dict, List, Optional, Tuple
from review_engine.models import DetectedPattern

Check = Callable[[str, str], Optional[DetectedPattern]]


def file_extension(path: str) -> str:
    """Lower-cased suffix after the last dot ('' when the name has none)."""
    name = path.replace('\\', '/').rsplit('/', 1)[-1]
    if '.' not in name:
        return ''
    return name.rsplit('.', 1)[-1].lower()


def _is_react_file(path: str) -> bool:
    return 'tsx' in path or 'jsx' in path


# ── JavaScript / TypeScript ─────────────────────────────────────────────────

def check_await_without_async(path: str, code: str) -> Optional[DetectedPattern]:
    """Flag await in added code that never declares an async function."""
    if re.search(r'\bawait\b', code) and not re.search(r'\basync\b', code):
        return DetectedPattern(
            type="bug",
            severity="high",
            pattern_id="await-without-async",
            files=[path],
            description="Using await without async function declaration",
            suggestion="Ensure functions using await are declared as async",
        )
    return None


def check_promise_without_catch(path: str, code: str) -> Optional[DetectedPattern]:
    """Flag promise chains with no rejection handler."""
    if '.then(' in code and '.catch(' not in code:
        return DetectedPattern(
            type="bug",
            severity="medium",
            pattern_id="promise-without-catch",
            files=[path],
            description="Promise chain without error handling",
            suggestion="Add .catch() to handle promise rejections",
        )
    return None


def check_missing_react_key(path: str, code: str) -> Optional[DetectedPattern]:
    if not _is_react_file(path):
        return None

    if '.map(' in code and 'key=' not in code:
        return DetectedPattern(
            type="bug",
            severity="medium",
            pattern_id="missing-react-key",
            files=[path],
            description="Missing key prop in React list rendering",
            suggestion="Add unique key prop to list items",
        )
    return None


def check_direct_state_mutation(path: str, code: str) -> Optional[DetectedPattern]:
    """Flag property assignment in components that hold useState state."""
    if not _is_react_file(path):
        return None

    if 'useState' in code and re.search(r'\w+\.\w+\s*=', code):
        return DetectedPattern(
            type="bug",
            severity="high",
            pattern_id="direct-state-mutation",
            files=[path],
            description="Potential direct state mutation in React",
            suggestion="Use state setter functions instead of direct mutation",
        )
    return None


# ── Python ──────────────────────────────────────────────────────────────────

def check_bare_except(path: str, code: str) -> Optional[DetectedPattern]:
    if re.search(r'\bexcept\s*:', code):
        return DetectedPattern(
            type="bug",
            severity="medium",
            pattern_id="bare-except",
            files=[path],
            description="Bare except clause catches all exceptions",
            suggestion="Specify exception types or use Exception as base",
        )
    return None


# ── SQL ─────────────────────────────────────────────────────────────────────

def check_select_star(path: str, code: str) -> Optional[DetectedPattern]:
    if re.search(r'SELECT\s+\*', code, re.IGNORECASE):
        return DetectedPattern(
            type="performance",
            severity="medium",
            pattern_id="select-star",
            files=[path],
            description="SELECT * can impact performance",
            suggestion="Specify only needed columns in SELECT statements",
        )
    return None


# ── Configuration files ─────────────────────────────────────────────────────

# The optional quote after the key lets quoted JSON keys match too
_CONFIG_SECRET = re.compile(r'(password|secret|key|token)[\'"]?\s*[:=]\s*[\'"]\w+', re.IGNORECASE)


def check_config_secrets(path: str, code: str) -> Optional[DetectedPattern]:
    """Flag credential-looking key/value pairs in configuration files."""
    if _CONFIG_SECRET.search(code):
        return DetectedPattern(
            type="security",
            severity="critical",
            pattern_id="hardcoded-secrets",
            files=[path],
            description="Hardcoded secrets in configuration file",
            suggestion="Use environment variables for sensitive data",
        )
    return None


# Registry of file-type checks, keyed by the extensions they apply to
FILE_TYPE_RULES: Dict[Tuple[str, ...], List[Check]] = {
    ("ts", "tsx", "js", "jsx"): [
        check_await_without_async,
        check_promise_without_catch,
        check_missing_react_key,
        check_direct_state_mutation,
    ],
    ("py",): [check_bare_except],
    ("sql",): [check_select_star],
    ("json", "yaml", "yml", "env"): [check_config_secrets],
}


def checks_for(path: str) -> List[Check]:
    extension = file_extension(path)
    checks = []
    for extensions, rule_funcs in FILE_TYPE_RULES.items():
        if extension in extensions:
            checks.extend(rule_funcs)
    return checks


def run_file_rules(path: str, code: str) -> List[DetectedPattern]:
    """Run every check registered for this file's extension."""
    patterns = []

    if not code:
        return patterns

    for rule_func in checks_for(path):
        result = rule_func(path, code)
        if result:
            patterns.append(result)

    return patterns
