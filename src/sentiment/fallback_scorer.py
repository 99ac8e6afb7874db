"""Keyword-based fallback sentiment scorer.

Used whenever a model-derived verdict is unavailable. The scorer is a total
function: any sequence of news items (including an empty one) produces a
valid Verdict.

Algorithm:
1. Concatenate all item content into one lowercase string
2. Add the occurrence count of every positive word
3. Subtract the occurrence count of every negative word
4. Sentiment follows the sign of the score
5. Confidence = min(|score| / divisor, 1)

Words are counted as plain substrings, so "up" also matches inside
"support".
"""

from typing import Dict, Optional, Sequence

from src.sentiment.base import (
    FALLBACK_PROVENANCE,
    SCORE_MAX,
    SCORE_MIN,
    NewsItem,
    Sentiment,
    Verdict,
)
from src.utils.config import Config
from src.utils.exceptions import ConfigurationError
from src.utils.logging import get_logger

logger = get_logger(__name__)

POSITIVE_WORDS = ("bullish", "growth", "positive", "surge", "gain", "up", "rising")
NEGATIVE_WORDS = ("bearish", "decline", "negative", "crash", "loss", "down", "falling")

FALLBACK_REASONING = "Fallback analysis based on keyword matching"
FALLBACK_RISKS = "Unable to perform detailed risk analysis"


class KeywordFallbackScorer:
    """Deterministic keyword heuristic producing a Verdict.

    Configuration Parameters:
        positive_words: Words that add to the score
        negative_words: Words that subtract from the score
        confidence_divisor: |score| at which confidence saturates (default 5)

    Example:
        >>> scorer = KeywordFallbackScorer()
        >>> items = [NewsItem("Twitter", "Bullish growth, positive outlook")]
        >>> verdict = scorer.score(items)
        >>> verdict.sentiment, verdict.confidence
        (<Sentiment.BULLISH: 'bullish'>, 0.6)
    """

    def __init__(self, config: Optional[Dict] = None):
        """Initialize scorer with configuration.

        Args:
            config: Configuration dictionary. Uses the built-in word lists if
                   not provided.
        """
        config = config or {}

        self.positive_words = tuple(
            w.lower() for w in config.get("positive_words", POSITIVE_WORDS)
        )
        self.negative_words = tuple(
            w.lower() for w in config.get("negative_words", NEGATIVE_WORDS)
        )
        self.confidence_divisor = float(config.get("confidence_divisor", 5))

        self._validate_config()

    @classmethod
    def from_config(cls, config: Config) -> "KeywordFallbackScorer":
        """Build a scorer from the ``fallback`` section of a Config."""
        return cls(config.get("fallback", {}))

    def _validate_config(self) -> None:
        """Validate configuration parameters."""
        if self.confidence_divisor <= 0:
            raise ConfigurationError(
                f"confidence_divisor must be > 0, got {self.confidence_divisor}"
            )
        if any(not w for w in self.positive_words + self.negative_words):
            raise ConfigurationError("keyword lists must not contain empty words")

    def raw_score(self, items: Sequence[NewsItem]) -> int:
        """Net keyword count over all item content."""
        text = "\n".join(item.content for item in items).lower()

        score = 0
        for word in self.positive_words:
            score += text.count(word)
        for word in self.negative_words:
            score -= text.count(word)

        return score

    def score(self, items: Sequence[NewsItem]) -> Verdict:
        """Score news items into a Verdict.

        Args:
            items: News items to score (may be empty)

        Returns:
            Verdict stamped with the fallback provenance tag
        """
        score = self.raw_score(items)

        if score > 0:
            sentiment = Sentiment.BULLISH
        elif score < 0:
            sentiment = Sentiment.BEARISH
        else:
            sentiment = Sentiment.NEUTRAL

        confidence = min(abs(score) / self.confidence_divisor, 1.0)

        logger.debug(
            "Keyword fallback scored %d item(s): score=%d sentiment=%s",
            len(items),
            score,
            sentiment.value,
        )

        return Verdict(
            sentiment=sentiment,
            confidence=confidence,
            score=min(max(score, SCORE_MIN), SCORE_MAX),
            reasoning=FALLBACK_REASONING,
            risks=FALLBACK_RISKS,
            provenance=FALLBACK_PROVENANCE,
        )
