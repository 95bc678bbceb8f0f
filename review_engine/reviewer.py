"""
Core reviewer module.

Orchestrates the deterministic analysis and the external review:
1. Analyze the change set (always, pure)
2. Build the review prompt and await the external provider
3. Parse the provider's text and merge it with the analysis

The provider is any async callable taking a prompt and returning text.
Provider failures are raised to the caller as ReviewProviderError; an
unparseable response is not a failure and yields the fallback review.
"""

import time
import logging
from typing import Awaitable, Callable, Optional

from review_engine.analyzer import AnalysisEngine
from review_engine.config import Settings
from review_engine.errors import ReviewProviderError, ReviewerError
from review_engine.fusion import merge_analysis_results, parse_review_response
from review_engine.models import GitChanges, ReviewResult
from review_engine.prompts import build_review_prompt

logger = logging.getLogger(__name__)

ReviewProvider = Callable[[str], Awaitable[str]]


async def request_review(provider: ReviewProvider, prompt: str) -> str:
    """Await the external reviewer, wrapping its failures."""
    try:
        text = await provider(prompt)
    except ReviewerError:
        raise
    except Exception as e:
        raise ReviewProviderError(f"Review provider failed: {e}") from e

    if not isinstance(text, str):
        raise ReviewProviderError(f"Review provider returned {type(text).__name__}, expected str")

    return text


async def review_changes(
    changes: GitChanges,
    provider: ReviewProvider,
    *,
    engine: Optional[AnalysisEngine] = None,
    settings: Optional[Settings] = None,
) -> ReviewResult:
    """
    Review a change set.

    The only suspension point is the provider call; timeouts and
    cancellation are the caller's to apply around this coroutine.
    """
    engine = engine or AnalysisEngine()
    settings = settings or Settings()
    start_time = time.time()

    analysis = engine.analyze_changes(changes)

    prompt = build_review_prompt(
        changes,
        analysis,
        review_type=settings.review_type,
        severity=settings.severity_filter,
        max_files=settings.max_files,
        max_diff_chars=settings.max_diff_chars,
    )

    text = await request_review(provider, prompt)

    ai_result = parse_review_response(text, changes)
    result = merge_analysis_results(ai_result, analysis, changes)

    logger.info(
        "Review completed in %.2fs: %d issue(s), score %d/10",
        time.time() - start_time, result.metrics.issues_found, result.score,
    )

    return result
