"""Unit tests for custom exceptions."""

import pytest

from src.utils.exceptions import (
    AllocationError,
    ConfigurationError,
    PortfolioError,
    RebalanceError,
    RebalancerError,
    SentimentError,
    UpstreamFailure,
    VerdictValidationError,
)


class TestExceptionHierarchy:
    """Test exception inheritance hierarchy."""

    def test_configuration_error_inherits_from_rebalancer_error(self) -> None:
        """Test ConfigurationError is a subclass of RebalancerError."""
        assert issubclass(ConfigurationError, RebalancerError)

    def test_sentiment_errors(self) -> None:
        """Test sentiment errors share SentimentError."""
        assert issubclass(UpstreamFailure, SentimentError)
        assert issubclass(VerdictValidationError, SentimentError)
        assert issubclass(SentimentError, RebalancerError)

    def test_portfolio_errors(self) -> None:
        """Test portfolio errors share PortfolioError."""
        assert issubclass(AllocationError, PortfolioError)
        assert issubclass(RebalanceError, PortfolioError)
        assert issubclass(PortfolioError, RebalancerError)

    def test_layers_are_disjoint(self) -> None:
        """Test sentiment and portfolio errors do not overlap."""
        assert not issubclass(UpstreamFailure, PortfolioError)
        assert not issubclass(AllocationError, SentimentError)


class TestExceptionRaising:
    """Test raising and catching exceptions."""

    def test_raise_upstream_failure(self) -> None:
        """Test raising and catching UpstreamFailure."""
        with pytest.raises(UpstreamFailure, match="timed out"):
            raise UpstreamFailure("Request timed out")

    def test_raise_allocation_error(self) -> None:
        """Test raising and catching AllocationError."""
        with pytest.raises(AllocationError, match="sum to 1.0"):
            raise AllocationError("weights must sum to 1.0")


class TestExceptionCatching:
    """Test catching exceptions at different levels."""

    def test_catch_upstream_failure_as_sentiment_error(self) -> None:
        """Test UpstreamFailure can be caught as SentimentError."""
        with pytest.raises(SentimentError):
            raise UpstreamFailure("503")

    def test_catch_all_as_rebalancer_error(self) -> None:
        """Test every custom exception can be caught as RebalancerError."""
        for exc in (ConfigurationError, VerdictValidationError, RebalanceError):
            with pytest.raises(RebalancerError):
                raise exc("error")

    def test_catch_order(self) -> None:
        """Test the most specific handler wins."""
        caught = None
        try:
            raise VerdictValidationError("bad verdict")
        except VerdictValidationError:
            caught = "verdict"
        except SentimentError:
            caught = "sentiment"

        assert caught == "verdict"
