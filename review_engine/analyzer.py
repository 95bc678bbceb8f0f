"""
Deterministic change analysis.

Runs the pattern registry and the file-type checks over the added code of
every file, computes line metrics, then derives the risk score and
recommendations. Pure over its input: no I/O, no shared mutable state.
"""

import logging
from typing import List, Optional

from review_engine.diff import normalize_patch
from review_engine.metrics import calculate_metrics
from review_engine.models import AnalysisResult, DetectedPattern, GitChanges
from review_engine.patterns import DEFAULT_REGISTRY, PatternRegistry, match_patterns
from review_engine.rules import run_file_rules
from review_engine.scoring import calculate_risk_score, generate_recommendations

logger = logging.getLogger(__name__)


class AnalysisEngine:
    """Pattern detection and risk assessment over a change set."""

    def __init__(self, registry: Optional[PatternRegistry] = None):
        self.registry = registry if registry is not None else DEFAULT_REGISTRY

    def detect_patterns(self, changes: GitChanges) -> List[DetectedPattern]:
        patterns = []

        for file in changes.files:
            if not file.patch:
                continue

            code = normalize_patch(file.patch)
            patterns.extend(match_patterns(file.path, code, self.registry))
            patterns.extend(run_file_rules(file.path, code))

        return patterns

    def analyze_changes(self, changes: GitChanges) -> AnalysisResult:
        patterns = self.detect_patterns(changes)
        metrics = calculate_metrics(changes)
        risk_score = calculate_risk_score(patterns, metrics)
        recommendations = generate_recommendations(patterns, metrics)

        logger.info(
            "Analyzed %d file(s): %d pattern(s), risk score %d/100",
            len(changes.files), len(patterns), risk_score,
        )

        return AnalysisResult(
            patterns=patterns,
            metrics=metrics,
            risk_score=risk_score,
            recommendations=recommendations,
        )


def analyze_changes(changes: GitChanges, registry: Optional[PatternRegistry] = None) -> AnalysisResult:
    """Analyze a change set with the default (or given) registry."""
    return AnalysisEngine(registry).analyze_changes(changes)
