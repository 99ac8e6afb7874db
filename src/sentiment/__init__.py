"""Sentiment Layer.

This layer turns free-form market commentary into a validated Verdict.

Components:
- VerdictExtractor: Recovers a verdict from noisy model output
- KeywordFallbackScorer: Deterministic keyword heuristic (never fails)
- CompletionClient: Hosted text-completion API client
- NewsItem / Verdict / ExtractionFailure: Value objects
"""

from src.sentiment.base import (
    FALLBACK_PROVENANCE,
    MODEL_PROVENANCE,
    ExtractionFailure,
    NewsItem,
    Sentiment,
    Verdict,
    model_provenance,
)
from src.sentiment.completion_client import CompletionClient
from src.sentiment.extractor import VerdictExtractor, extract
from src.sentiment.fallback_scorer import KeywordFallbackScorer
from src.sentiment.prompt import DEFAULT_NEWS_ITEMS, build_analysis_prompt

__all__ = [
    "CompletionClient",
    "DEFAULT_NEWS_ITEMS",
    "ExtractionFailure",
    "FALLBACK_PROVENANCE",
    "KeywordFallbackScorer",
    "MODEL_PROVENANCE",
    "NewsItem",
    "Sentiment",
    "Verdict",
    "VerdictExtractor",
    "build_analysis_prompt",
    "extract",
    "model_provenance",
]
