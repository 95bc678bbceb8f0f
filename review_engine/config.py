"""
Tunables for the analysis engine and review fusion.

Scoring constants live here as module-level values so they can be tuned in
one place. Service settings come from the environment (a .env file is
honoured through python-dotenv).
"""

import os
import logging
from typing import Literal
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel

logger = logging.getLogger(__name__)

# ── Risk scoring ────────────────────────────────────────────────────────────

SEVERITY_WEIGHTS = {
    "critical": 25,
    "high": 15,
    "medium": 8,
    "low": 3,
}

COMPLEXITY_WEIGHT = 0.2
TECHNICAL_DEBT_WEIGHT = 0.3
SECURITY_RISK_WEIGHT = 0.5

# Upper bound for every CodeMetrics field and for the risk score
METRIC_CAP = 100

# ── Recommendation thresholds ───────────────────────────────────────────────

PERFORMANCE_ISSUE_THRESHOLD = 2
COMPLEXITY_THRESHOLD = 15
TECHNICAL_DEBT_THRESHOLD = 20
SECURITY_RISK_THRESHOLD = 30

# ── Review fusion ───────────────────────────────────────────────────────────

# Number of leading characters compared when deduplicating messages
DEDUP_PREFIX_LENGTH = 20

RISK_PENALTY_THRESHOLD = 50
RISK_PENALTY_DIVISOR = 20

MIN_SCORE = 1
MAX_SCORE = 10
FALLBACK_SCORE = 5

FALLBACK_SUMMARY = "Review completed, but response parsing failed. Manual review recommended."
FALLBACK_SUGGESTIONS = (
    "Consider running the review again with a different AI model",
    "Manually review the changes for potential issues",
    "Check the AI response format and model compatibility",
)

# ── Service settings ────────────────────────────────────────────────────────

ReviewType = Literal["comprehensive", "security", "performance", "style", "bugs"]
SeverityFilter = Literal["all", "high", "critical"]


class Settings(BaseModel):
    """Service-level settings, normally read from the environment."""

    max_files: int = 20
    max_diff_chars: int = 500
    review_type: ReviewType = "comprehensive"
    severity_filter: SeverityFilter = "all"
    score_pass: int = 8
    score_warn: int = 6
    log_level: str = "INFO"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %d", name, raw, default)
        return default


def _choice_env(name: str, choices: tuple, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value not in choices:
        logger.warning("Ignoring unsupported %s=%r, using %s", name, raw, default)
        return default
    return value


def load_settings() -> Settings:
    """Build Settings from the environment, loading a .env file first if present."""
    load_dotenv(find_dotenv(usecwd=True))

    return Settings(
        max_files=_int_env("REVIEW_MAX_FILES", 20),
        max_diff_chars=_int_env("REVIEW_MAX_DIFF_CHARS", 500),
        review_type=_choice_env(
            "REVIEW_TYPE",
            ("comprehensive", "security", "performance", "style", "bugs"),
            "comprehensive",
        ),
        severity_filter=_choice_env("REVIEW_SEVERITY", ("all", "high", "critical"), "all"),
        score_pass=_int_env("SCORE_PASS", 8),
        score_warn=_int_env("SCORE_WARN", 6),
        log_level=_choice_env(
            "LOG_LEVEL",
            ("debug", "info", "warning", "error", "critical"),
            "info",
        ).upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format='%(levelname)s: %(message)s')
