"""Exceptions raised by the review engine."""


class ReviewerError(Exception):
    """Base exception for reviewer errors."""
    pass


class MalformedReviewPayload(ReviewerError):
    """Review text has no usable JSON object or misses required fields.

    Handled inside fusion, which falls back to a fixed result.
    """
    pass


class ReviewProviderError(ReviewerError):
    """The external review provider failed. Always propagated to the caller."""
    pass
