"""Core data structures for the sentiment layer.

This module defines the value objects that flow between the sentiment
components and the portfolio layer:

- NewsItem: A single piece of market commentary supplied by the caller
- Verdict: A validated sentiment judgment (model-derived or heuristic)
- ExtractionFailure: Returned when no valid verdict can be recovered from text

A Verdict can only be constructed with a valid sentiment and a confidence in
[0, 1]. Loosely-typed parse results go through ``Verdict.from_mapping``, which
either returns a Verdict or raises VerdictValidationError.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from src.utils.exceptions import VerdictValidationError

MODEL_PROVENANCE = "Analysis performed by Llama-3.3-70B via Together AI"
FALLBACK_PROVENANCE = "Fallback keyword analysis (Together AI unavailable)"

SCORE_MIN = -10
SCORE_MAX = 10


class Sentiment(Enum):
    """Overall market sentiment."""

    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"

    @classmethod
    def parse(cls, value: Any) -> "Sentiment":
        """Parse a sentiment label, case-insensitively.

        Args:
            value: Raw label (e.g. "Bullish", " bearish ")

        Returns:
            Matching Sentiment member

        Raises:
            VerdictValidationError: If value is empty or not a known label
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str) or not value.strip():
            raise VerdictValidationError(f"sentiment must be a non-empty string, got {value!r}")
        try:
            return cls(value.strip().lower())
        except ValueError as e:
            raise VerdictValidationError(f"unknown sentiment {value!r}") from e


@dataclass(frozen=True)
class NewsItem:
    """A single piece of market commentary.

    Attributes:
        source: Where the commentary came from (e.g. "Twitter")
        content: Free-form commentary text
    """

    source: str
    content: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "NewsItem":
        """Build a NewsItem from a request payload entry."""
        return cls(source=str(data.get("source", "")), content=str(data.get("content", "")))

    def to_dict(self) -> Dict[str, str]:
        return {"source": self.source, "content": self.content}


def model_provenance(model: str) -> str:
    """Build the model-path provenance tag for a completion model id.

    The vendor prefix and instruct/serving suffix are dropped, so
    "meta-llama/Llama-3.3-70B-Instruct-Turbo-Free" reads as "Llama-3.3-70B".
    """
    name = model.rsplit("/", 1)[-1].split("-Instruct", 1)[0] or model
    return f"Analysis performed by {name} via Together AI"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_float(value: Union[int, float]) -> float:
    # ints past float range saturate instead of raising OverflowError
    try:
        return float(value)
    except OverflowError:
        return math.inf if value > 0 else -math.inf


def _coerce_confidence(value: Any) -> float:
    # bool is an int subclass but never a meaningful confidence
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise VerdictValidationError(f"confidence must be numeric, got {value!r}")
    confidence = _to_float(value)
    if math.isnan(confidence):
        raise VerdictValidationError("confidence must not be NaN")
    return min(max(confidence, 0.0), 1.0)


def _coerce_score(value: Any) -> int:
    if value is None or isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    score = _to_float(value)
    if math.isnan(score):
        return 0
    if math.isinf(score):
        return SCORE_MAX if score > 0 else SCORE_MIN
    return int(min(max(round(score), SCORE_MIN), SCORE_MAX))


def _coerce_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


@dataclass(frozen=True)
class Verdict:
    """Structured sentiment judgment.

    Attributes:
        sentiment: Bullish, bearish or neutral
        confidence: Confidence in [0, 1]
        score: Informational score in [-10, 10]
        reasoning: Explanation of the judgment
        risks: Key risks to consider
        provenance: Tag identifying how the verdict was produced
        timestamp: When the verdict was produced (UTC)
    """

    sentiment: Sentiment
    confidence: float
    score: int = 0
    reasoning: str = ""
    risks: str = ""
    provenance: str = MODEL_PROVENANCE
    timestamp: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        """Validate verdict fields."""
        if not isinstance(self.sentiment, Sentiment):
            raise VerdictValidationError(
                f"sentiment must be a Sentiment, got {self.sentiment!r}"
            )
        if not 0.0 <= self.confidence <= 1.0:
            raise VerdictValidationError(
                f"confidence must be in [0, 1], got {self.confidence}"
            )
        if not SCORE_MIN <= self.score <= SCORE_MAX:
            raise VerdictValidationError(
                f"score must be in [{SCORE_MIN}, {SCORE_MAX}], got {self.score}"
            )

    @classmethod
    def from_mapping(
        cls,
        data: Any,
        provenance: str = MODEL_PROVENANCE,
        timestamp: Optional[datetime] = None,
    ) -> "Verdict":
        """Validate a parsed object and build a Verdict from it.

        ``sentiment`` is required and matched case-insensitively.
        ``confidence`` is required, must be numeric, and is clamped into
        [0, 1]. ``score``, ``reasoning`` and ``risks`` default to 0 / "".

        Args:
            data: Parsed JSON value (expected to be a dict)
            provenance: Provenance tag to stamp on the verdict
            timestamp: Verdict timestamp (defaults to now)

        Returns:
            Validated Verdict

        Raises:
            VerdictValidationError: If data is not a valid verdict
        """
        if not isinstance(data, Mapping):
            raise VerdictValidationError(f"expected an object, got {type(data).__name__}")
        if "confidence" not in data:
            raise VerdictValidationError("missing confidence")

        return cls(
            sentiment=Sentiment.parse(data.get("sentiment")),
            confidence=_coerce_confidence(data["confidence"]),
            score=_coerce_score(data.get("score")),
            reasoning=_coerce_text(data.get("reasoning")),
            risks=_coerce_text(data.get("risks")),
            provenance=provenance,
            timestamp=timestamp or _utcnow(),
        )

    @property
    def is_fallback(self) -> bool:
        return self.provenance == FALLBACK_PROVENANCE

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for the response payload."""
        return {
            "sentiment": self.sentiment.value,
            "confidence": self.confidence,
            "score": self.score,
            "reasoning": self.reasoning,
            "risks": self.risks,
            "timestamp": self.timestamp.isoformat(),
            "modelInfo": self.provenance,
        }


@dataclass(frozen=True)
class ExtractionFailure:
    """No candidate in the text could be turned into a valid Verdict.

    Attributes:
        reason: Human-readable description of why extraction failed
        candidates_tried: Number of candidate substrings that were parsed
    """

    reason: str
    candidates_tried: int = 0


ExtractionResult = Union[Verdict, ExtractionFailure]
