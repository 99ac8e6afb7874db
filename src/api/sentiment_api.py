"""User-friendly Sentiment API.

This module composes the completion client, the verdict extractor and the
keyword fallback into a single total operation: given news items it always
returns a Verdict. Upstream failures and extraction failures are logged and
routed to the keyword fallback; they never reach the caller.
"""

from typing import Optional, Sequence

from src.sentiment.base import ExtractionFailure, NewsItem, Verdict
from src.sentiment.completion_client import CompletionClient
from src.sentiment.extractor import VerdictExtractor
from src.sentiment.fallback_scorer import KeywordFallbackScorer
from src.sentiment.prompt import DEFAULT_NEWS_ITEMS, build_analysis_prompt
from src.utils.exceptions import UpstreamFailure
from src.utils.logging import get_logger
from src.utils.logging_enhanced import DecisionEventType, DecisionLogger

logger = get_logger(__name__)


class SentimentAPI:
    """High-level API for sentiment analysis.

    Example:
        >>> from src.api.sentiment_api import SentimentAPI
        >>> from src.sentiment.completion_client import CompletionClient
        >>>
        >>> api = SentimentAPI(client=CompletionClient(api_key="..."))
        >>> verdict = api.analyze()  # built-in sample news
        >>> print(verdict.sentiment.value, verdict.confidence)
        >>>
        >>> # Offline: keyword fallback only
        >>> verdict = SentimentAPI().analyze(items)
    """

    def __init__(
        self,
        client: Optional[CompletionClient] = None,
        extractor: Optional[VerdictExtractor] = None,
        fallback_scorer: Optional[KeywordFallbackScorer] = None,
        decision_logger: Optional[DecisionLogger] = None,
    ):
        """Initialize SentimentAPI.

        Args:
            client: Completion client. If None, every analysis uses the
                   keyword fallback.
            extractor: VerdictExtractor instance (defaults to new instance)
            fallback_scorer: KeywordFallbackScorer instance (defaults to new instance)
            decision_logger: Optional structured event logger
        """
        self.client = client
        self.extractor = extractor or VerdictExtractor()
        self.fallback_scorer = fallback_scorer or KeywordFallbackScorer()
        self.decision_logger = decision_logger

        logger.debug(
            "SentimentAPI initialized (%s)",
            "online" if client is not None else "offline, keyword fallback only",
        )

    def analyze(self, items: Optional[Sequence[NewsItem]] = None) -> Verdict:
        """Analyze news items into a Verdict.

        Args:
            items: News items (defaults to the built-in sample set)

        Returns:
            Model-derived Verdict, or the keyword fallback Verdict if the
            completion call or extraction fails
        """
        items = list(DEFAULT_NEWS_ITEMS if items is None else items)

        if self.client is None:
            logger.info("No completion client configured, using keyword fallback")
            return self._fallback(items, reason="no completion client configured")

        prompt = build_analysis_prompt(items)
        self._record(DecisionEventType.COMPLETION_REQUESTED, item_count=len(items))

        try:
            text = self.client.complete(prompt)
        except UpstreamFailure as e:
            logger.warning("Completion call failed, using keyword fallback: %s", e)
            self._record(DecisionEventType.COMPLETION_FAILED, error=str(e))
            return self._fallback(items, reason=str(e))

        return self.analyze_text(text, items)

    def analyze_text(self, text: str, items: Sequence[NewsItem] = ()) -> Verdict:
        """Extract a Verdict from already-obtained model output.

        Args:
            text: Raw completion text
            items: News items to score if extraction fails

        Returns:
            Extracted Verdict, or the keyword fallback Verdict over ``items``
        """
        result = self.extractor.extract(text)

        if isinstance(result, ExtractionFailure):
            logger.warning("Could not extract verdict, using keyword fallback: %s", result.reason)
            self._record(
                DecisionEventType.EXTRACTION_FAILED,
                reason=result.reason,
                candidates_tried=result.candidates_tried,
            )
            return self._fallback(items, reason=result.reason)

        self._record(
            DecisionEventType.EXTRACTION_SUCCEEDED,
            sentiment=result.sentiment.value,
            confidence=result.confidence,
        )
        return result

    def _fallback(self, items: Sequence[NewsItem], reason: str) -> Verdict:
        verdict = self.fallback_scorer.score(items)
        self._record(
            DecisionEventType.FALLBACK_USED,
            sentiment=verdict.sentiment.value,
            confidence=verdict.confidence,
            reason=reason,
        )
        return verdict

    def _record(self, event_type: DecisionEventType, **data) -> None:
        if self.decision_logger is not None:
            self.decision_logger.log_sentiment_event(event_type, **data)
