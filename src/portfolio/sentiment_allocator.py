"""Sentiment-driven allocation policy.

This module maps a verdict to target weights using a per-sentiment
coefficient table:

    weight[asset] = baseline[asset] + coefficient[sentiment][asset] * confidence

Each coefficient row must sum to zero so the weights keep summing to 1.0 for
every confidence in [0, 1]. PolicyConfig rejects rows that break this, and
rows that would push a weight outside [0, 1] at full confidence.

Default table (baseline 0.25 each):

    sentiment   BTC     ETH     NEAR    SOL
    bullish    -0.10   +0.10   +0.05   -0.05
    bearish    +0.15   +0.05   -0.10   -0.10
    neutral     0       0       0       0
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from src.portfolio.base import (
    WEIGHT_SUM_TOLERANCE,
    Allocation,
    AllocationPolicy,
)
from src.sentiment.base import Sentiment, Verdict
from src.utils.config import Config
from src.utils.exceptions import ConfigurationError
from src.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_ASSETS: Tuple[str, ...] = ("BTC", "ETH", "NEAR", "SOL")

DEFAULT_COEFFICIENTS: Dict[Sentiment, Dict[str, float]] = {
    Sentiment.BULLISH: {"BTC": -0.10, "ETH": 0.10, "NEAR": 0.05, "SOL": -0.05},
    Sentiment.BEARISH: {"BTC": 0.15, "ETH": 0.05, "NEAR": -0.10, "SOL": -0.10},
    Sentiment.NEUTRAL: {"BTC": 0.0, "ETH": 0.0, "NEAR": 0.0, "SOL": 0.0},
}

DEFAULT_FOCUS: Dict[Sentiment, str] = {
    Sentiment.BULLISH: "higher growth potential",
    Sentiment.BEARISH: "capital preservation",
    Sentiment.NEUTRAL: "balanced returns",
}


def _equal_baseline(assets: Tuple[str, ...]) -> Dict[str, float]:
    return {asset: 1.0 / len(assets) for asset in assets}


@dataclass(frozen=True)
class PolicyConfig:
    """Asset universe and coefficient table for SentimentAllocationPolicy.

    Attributes:
        assets: Asset identifiers in enumeration order
        baseline: Baseline weights {asset: weight} (default: equal weight)
        coefficients: {sentiment: {asset: delta per unit confidence}}
        focus: {sentiment: phrase used in the reasoning string}
    """

    assets: Tuple[str, ...] = DEFAULT_ASSETS
    baseline: Mapping[str, float] = field(default_factory=dict)
    coefficients: Mapping[Sentiment, Mapping[str, float]] = field(
        default_factory=lambda: DEFAULT_COEFFICIENTS
    )
    focus: Mapping[Sentiment, str] = field(default_factory=lambda: DEFAULT_FOCUS)

    def __post_init__(self):
        """Fill defaults and validate the coefficient table."""
        object.__setattr__(self, "assets", tuple(self.assets))
        if not self.assets:
            raise ConfigurationError("assets must not be empty")
        if len(set(self.assets)) != len(self.assets):
            raise ConfigurationError(f"assets must be unique, got {self.assets}")

        if not self.baseline:
            object.__setattr__(self, "baseline", _equal_baseline(self.assets))

        self._validate()

    def _validate(self) -> None:
        if set(self.baseline) != set(self.assets):
            raise ConfigurationError(
                f"baseline assets {sorted(self.baseline)} do not match {sorted(self.assets)}"
            )
        if abs(sum(self.baseline.values()) - 1.0) > WEIGHT_SUM_TOLERANCE:
            raise ConfigurationError(
                f"baseline weights must sum to 1.0, got {sum(self.baseline.values())}"
            )

        for sentiment in Sentiment:
            row = self.coefficients.get(sentiment)
            if row is None:
                raise ConfigurationError(f"missing coefficients for {sentiment.value}")
            if set(row) != set(self.assets):
                raise ConfigurationError(
                    f"{sentiment.value} coefficients must cover exactly {list(self.assets)}"
                )
            if abs(sum(row.values())) > WEIGHT_SUM_TOLERANCE:
                raise ConfigurationError(
                    f"{sentiment.value} coefficients must sum to 0, got {sum(row.values())}"
                )
            # Weights are linear in confidence, so checking c=1 covers [0, 1]
            for asset in self.assets:
                weight = self.baseline[asset] + row[asset]
                if not 0.0 <= weight <= 1.0:
                    raise ConfigurationError(
                        f"{sentiment.value} {asset} weight at full confidence "
                        f"must be in [0, 1], got {weight}"
                    )
            if sentiment not in self.focus:
                raise ConfigurationError(f"missing reasoning focus for {sentiment.value}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PolicyConfig":
        """Build a PolicyConfig from the ``allocation`` config section.

        Expected shape::

            assets: [BTC, ETH, NEAR, SOL]
            baseline: {BTC: 0.25, ...}          # optional
            coefficients:
              bullish: {BTC: -0.10, ...}
            focus:
              bullish: higher growth potential   # optional
        """
        assets = tuple(data.get("assets", DEFAULT_ASSETS))

        raw_coefficients = data.get("coefficients")
        if raw_coefficients is None:
            coefficients = DEFAULT_COEFFICIENTS
        else:
            coefficients = {
                Sentiment.parse(name): {a: float(v) for a, v in row.items()}
                for name, row in raw_coefficients.items()
            }
            # Missing neutral row means "no change"
            coefficients.setdefault(Sentiment.NEUTRAL, {a: 0.0 for a in assets})

        focus = dict(DEFAULT_FOCUS)
        for name, phrase in (data.get("focus") or {}).items():
            focus[Sentiment.parse(name)] = str(phrase)

        baseline = {a: float(w) for a, w in (data.get("baseline") or {}).items()}

        return cls(assets=assets, baseline=baseline, coefficients=coefficients, focus=focus)


class SentimentAllocationPolicy(AllocationPolicy):
    """Confidence-scaled tilt away from a baseline allocation.

    Example:
        >>> policy = SentimentAllocationPolicy()
        >>> verdict = Verdict(sentiment=Sentiment.BULLISH, confidence=1.0)
        >>> policy.plan(verdict).to_dict()  # doctest: +SKIP
        {'BTC': 0.15, 'ETH': 0.35, 'NEAR': 0.3, 'SOL': 0.2}
    """

    def __init__(self, config: Optional[PolicyConfig] = None):
        """Initialize policy.

        Args:
            config: Asset universe and coefficient table (defaults to the
                   four-asset table above)
        """
        self.config = config or PolicyConfig()

    @classmethod
    def from_config(cls, config: Config) -> "SentimentAllocationPolicy":
        """Build a policy from the ``allocation`` section of a Config."""
        return cls(PolicyConfig.from_dict(config.get("allocation", {})))

    @property
    def assets(self) -> Tuple[str, ...]:
        return self.config.assets

    def plan(self, verdict: Verdict) -> Allocation:
        """Map a verdict to target weights.

        Args:
            verdict: Validated sentiment verdict

        Returns:
            Target Allocation in asset enumeration order
        """
        confidence = verdict.confidence
        row = self.config.coefficients[verdict.sentiment]

        weights = {
            asset: self.config.baseline[asset] + row[asset] * confidence
            for asset in self.assets
        }

        allocation = Allocation(weights)

        logger.debug(
            "Planned %s allocation at confidence %.2f: %s",
            verdict.sentiment.value,
            confidence,
            allocation.to_dict(),
        )

        return allocation

    def describe(self, verdict: Verdict) -> str:
        """Build the reasoning string for a verdict.

        Example:
            >>> policy.describe(Verdict(sentiment=Sentiment.BEARISH, confidence=0.7))
            'Based on bearish sentiment with 70% confidence, adjusting portfolio for capital preservation.'
        """
        # Half-up rounding of the percentage
        percent = int(math.floor(verdict.confidence * 100 + 0.5))
        focus = self.config.focus[verdict.sentiment]
        return (
            f"Based on {verdict.sentiment.value} sentiment with {percent}% confidence, "
            f"adjusting portfolio for {focus}."
        )
