"""Custom exceptions for the sentiment rebalancer.

This module defines the exception hierarchy for the application.
"""


class RebalancerError(Exception):
    """Base exception for all sentiment rebalancer errors.

    All custom exceptions in the application should inherit from this class.
    """

    pass


class ConfigurationError(RebalancerError):
    """Raised when configuration is invalid or missing.

    Examples:
        - Missing API key in environment
        - Coefficient table whose deltas do not cancel
        - Negative notional or materiality threshold
    """

    pass


class SentimentError(RebalancerError):
    """Base exception for sentiment layer errors.

    Parent class for all sentiment-related exceptions.
    """

    pass


class UpstreamFailure(SentimentError):
    """Raised when the text-completion call fails.

    Examples:
        - Network connection failed or timed out
        - Non-2xx HTTP status
        - Response body without a ``choices[0].text`` field
    """

    pass


class VerdictValidationError(SentimentError):
    """Raised when a parsed candidate is not a valid verdict.

    Examples:
        - Missing or unknown ``sentiment`` value
        - Missing or non-numeric ``confidence`` value
    """

    pass


class PortfolioError(RebalancerError):
    """Base exception for portfolio layer errors.

    Parent class for all portfolio-related exceptions.
    """

    pass


class AllocationError(PortfolioError):
    """Raised when an allocation violates its invariants.

    This is an internal consistency fault, not a recoverable condition.

    Examples:
        - Weights do not sum to 1.0
        - Weight outside [0, 1]
    """

    pass


class RebalanceError(PortfolioError):
    """Raised when the transaction diff cannot be calculated.

    Examples:
        - Negative notional or materiality threshold
    """

    pass
