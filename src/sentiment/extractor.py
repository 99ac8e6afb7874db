"""Recover a structured verdict from noisy model output.

Model output is supposed to be a bare JSON object but in practice arrives
wrapped in prose, markup, duplicated objects or truncated fragments. The
extractor runs an ordered list of independent strategies; each one proposes
candidate substrings and the first candidate that parses into a valid
Verdict wins.

Strategies (in priority order):
1. Balanced braces: all substrings matching a brace-balanced pattern with one
   level of nesting; the longest one is the candidate.
2. Outer braces: the slice from the first "{" to the last "}". It runs
   whenever strategy 1 yields no valid verdict, including when strategy 1
   found a candidate that then failed to parse or validate.
3. Depth scan: every top-level "{...}" span found by counting brace depth,
   tried in scan order.

Every strategy is a single linear pass over the text.
"""

import json
import re
from typing import Callable, List, Optional, Sequence, Tuple

from src.sentiment.base import (
    MODEL_PROVENANCE,
    ExtractionFailure,
    ExtractionResult,
    Verdict,
)
from src.utils.exceptions import VerdictValidationError
from src.utils.logging import get_logger, log_with_context

logger = get_logger(__name__)

# Possessive quantifiers keep the scan free of backtracking
BALANCED_BRACES = re.compile(r"\{(?:[^{}]|\{[^{}]*+\})*+\}")

CandidateStrategy = Callable[[str], List[str]]


def find_balanced_candidates(text: str) -> List[str]:
    """Return the longest brace-balanced substring, if any.

    Later matches win ties.

    Args:
        text: Raw model output

    Returns:
        A single-element list with the longest match, or an empty list
    """
    best: Optional[str] = None
    for match in BALANCED_BRACES.finditer(text):
        candidate = match.group(0)
        if best is None or len(candidate) >= len(best):
            best = candidate
    return [best] if best is not None else []


def slice_outer_braces(text: str) -> List[str]:
    """Return the slice from the first "{" to the last "}", if any."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return []
    return [text[start : end + 1]]


def enumerate_depth_candidates(text: str) -> List[str]:
    """Return every top-level brace span in scan order.

    A span opens when depth goes from 0 to 1 and closes when it returns to 0.
    Stray closing braces at depth 0 are ignored; an unterminated span at the
    end of the text is dropped.

    Example:
        >>> enumerate_depth_candidates('a {"x": {"y": 1}} b {"z": 2')
        ['{"x": {"y": 1}}']
    """
    candidates = []
    depth = 0
    start = -1

    for i, char in enumerate(text):
        if char == "{":
            if depth == 0:
                start = i
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                candidates.append(text[start : i + 1])
                start = -1

    return candidates


DEFAULT_STRATEGIES: Tuple[Tuple[str, CandidateStrategy], ...] = (
    ("balanced_braces", find_balanced_candidates),
    ("outer_braces", slice_outer_braces),
    ("depth_scan", enumerate_depth_candidates),
)


class VerdictExtractor:
    """Multi-strategy verdict extractor.

    ``extract`` never raises: it returns either a validated Verdict or an
    ExtractionFailure describing what was tried.

    Example:
        >>> extractor = VerdictExtractor()
        >>> result = extractor.extract('Sure! {"sentiment": "bullish", "confidence": 0.8}')
        >>> result.sentiment
        <Sentiment.BULLISH: 'bullish'>
    """

    def __init__(
        self,
        provenance: str = MODEL_PROVENANCE,
        strategies: Optional[Sequence[Tuple[str, CandidateStrategy]]] = None,
    ):
        """Initialize extractor.

        Args:
            provenance: Provenance tag stamped on extracted verdicts
            strategies: Ordered (name, strategy) pairs (defaults to the
                        balanced-brace, outer-brace and depth-scan strategies)
        """
        self.provenance = provenance
        self.strategies = tuple(strategies or DEFAULT_STRATEGIES)

    def extract(self, text: str) -> ExtractionResult:
        """Recover a Verdict from raw model output.

        Args:
            text: Entire raw output of the completion call

        Returns:
            Verdict on success, ExtractionFailure otherwise
        """
        if not isinstance(text, str):
            return ExtractionFailure(reason=f"expected text, got {type(text).__name__}")

        tried = 0
        for name, strategy in self.strategies:
            for candidate in strategy(text):
                tried += 1
                verdict = self.parse_candidate(candidate)
                if verdict is not None:
                    log_with_context(
                        logger,
                        "debug",
                        "Verdict extracted",
                        strategy=name,
                        sentiment=verdict.sentiment.value,
                        confidence=verdict.confidence,
                    )
                    return verdict
            logger.debug("Strategy %s produced no valid verdict", name)

        if tried == 0:
            reason = "no JSON object found in text"
        else:
            reason = f"none of {tried} candidate(s) parsed into a valid verdict"
        logger.info("Extraction failed: %s", reason)
        return ExtractionFailure(reason=reason, candidates_tried=tried)

    def parse_candidate(self, candidate: str) -> Optional[Verdict]:
        """Parse and validate a single candidate substring.

        Args:
            candidate: Substring expected to hold a JSON object

        Returns:
            Verdict if the candidate is a valid verdict, None otherwise
        """
        try:
            data = json.loads(candidate)
        except (ValueError, RecursionError) as e:
            logger.debug("Candidate is not valid JSON: %s", e)
            return None

        try:
            return Verdict.from_mapping(data, provenance=self.provenance)
        except VerdictValidationError as e:
            logger.debug("Candidate rejected: %s", e)
            return None


def extract(text: str) -> ExtractionResult:
    """Extract a verdict with the default strategies."""
    return VerdictExtractor().extract(text)
