"""Sentiment rebalancing workflow.

Workflow Chain:
News Items → Sentiment Verdict → Target Allocation → Rebalancing Transactions

The workflow is total: upstream and extraction failures are absorbed by the
keyword fallback inside SentimentAPI, so a run always produces a verdict and
a plan. The only failure that escapes is an AllocationError, which signals an
internal consistency fault.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence, Tuple

from src.api.portfolio_api import PortfolioAPI
from src.api.sentiment_api import SentimentAPI
from src.portfolio.base import Allocation, AllocationPlan
from src.portfolio.sentiment_allocator import SentimentAllocationPolicy
from src.portfolio.transaction_differ import TransactionDiffer
from src.sentiment.base import NewsItem, Verdict, model_provenance
from src.sentiment.completion_client import DEFAULT_MODEL, CompletionClient
from src.sentiment.extractor import VerdictExtractor
from src.sentiment.fallback_scorer import KeywordFallbackScorer
from src.sentiment.prompt import DEFAULT_NEWS_ITEMS
from src.utils.config import Config
from src.utils.exceptions import AllocationError
from src.utils.logging import get_logger
from src.utils.logging_enhanced import DecisionEventType, DecisionLogger

logger = get_logger(__name__)


@dataclass
class WorkflowConfig:
    """Configuration for the rebalancing workflow.

    Attributes:
        default_items: News items used when a run is given none
        current_allocation: Current holdings as weights (None: equal weight)
        notional: Portfolio value override (None: differ config)
        materiality_usd: Materiality override (None: differ config)
    """

    default_items: Tuple[NewsItem, ...] = DEFAULT_NEWS_ITEMS
    current_allocation: Optional[Allocation] = None
    notional: Optional[float] = None
    materiality_usd: Optional[float] = None


@dataclass(frozen=True)
class WorkflowResult:
    """Output of one workflow run."""

    market_data: Tuple[NewsItem, ...]
    verdict: Verdict
    plan: AllocationPlan
    current_allocation: Allocation
    completed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Serialize as the response payload."""
        return {
            "marketData": [item.to_dict() for item in self.market_data],
            "sentimentAnalysis": self.verdict.to_dict(),
            "allocationPlan": self.plan.to_dict(),
            "currentAllocation": self.current_allocation.to_dict(),
            "executionTimestamp": self.completed_at.isoformat(),
        }


class SentimentRebalanceWorkflow:
    """Orchestrates news → verdict → allocation plan.

    Example:
        >>> workflow = SentimentRebalanceWorkflow.from_config(load_config(), api_key)
        >>> result = workflow.run()
        >>> payload = result.to_dict()
    """

    def __init__(
        self,
        sentiment_api: Optional[SentimentAPI] = None,
        portfolio_api: Optional[PortfolioAPI] = None,
        config: Optional[WorkflowConfig] = None,
        decision_logger: Optional[DecisionLogger] = None,
    ):
        """Initialize workflow.

        Args:
            sentiment_api: SentimentAPI instance (defaults to offline instance)
            portfolio_api: PortfolioAPI instance (defaults to new instance)
            config: Workflow configuration
            decision_logger: Optional structured event logger
        """
        self.sentiment_api = sentiment_api or SentimentAPI(decision_logger=decision_logger)
        self.portfolio_api = portfolio_api or PortfolioAPI()
        self.config = config or WorkflowConfig()
        self.decision_logger = decision_logger

    @classmethod
    def from_config(
        cls,
        config: Config,
        api_key: Optional[str] = None,
        decision_logger: Optional[DecisionLogger] = None,
        workflow_config: Optional[WorkflowConfig] = None,
    ) -> "SentimentRebalanceWorkflow":
        """Build a workflow and all its components from a Config.

        Args:
            config: Loaded configuration
            api_key: Completion API key. If None, runs offline (keyword fallback).
            decision_logger: Optional structured event logger
            workflow_config: Workflow overrides

        Returns:
            Configured SentimentRebalanceWorkflow
        """
        client = CompletionClient.from_config(config, api_key) if api_key else None
        model = config.get("completion.model", DEFAULT_MODEL)
        sentiment_api = SentimentAPI(
            client=client,
            extractor=VerdictExtractor(provenance=model_provenance(model)),
            fallback_scorer=KeywordFallbackScorer.from_config(config),
            decision_logger=decision_logger,
        )
        portfolio_api = PortfolioAPI(
            policy=SentimentAllocationPolicy.from_config(config),
            differ=TransactionDiffer.from_config(config),
        )
        return cls(
            sentiment_api=sentiment_api,
            portfolio_api=portfolio_api,
            config=workflow_config,
            decision_logger=decision_logger,
        )

    def run(
        self,
        items: Optional[Sequence[NewsItem]] = None,
        current_allocation: Optional[Allocation] = None,
    ) -> WorkflowResult:
        """Run the full pipeline once.

        Args:
            items: News items (default: configured default items)
            current_allocation: Current holdings (default: configured or equal weight)

        Returns:
            WorkflowResult with market data, verdict and plan

        Raises:
            AllocationError: If the allocation invariants are violated
        """
        market_data = tuple(self.config.default_items if items is None else items)
        current = (
            current_allocation
            or self.config.current_allocation
            or self.portfolio_api.baseline_allocation()
        )

        logger.info("Running sentiment rebalance workflow over %d item(s)", len(market_data))
        self._record_system(DecisionEventType.WORKFLOW_STARTED, item_count=len(market_data))

        verdict = self.sentiment_api.analyze(market_data)
        logger.info(
            "Verdict: %s (confidence %.2f, %s)",
            verdict.sentiment.value,
            verdict.confidence,
            verdict.provenance,
        )

        try:
            plan = self.portfolio_api.create_plan(
                verdict,
                current_allocation=current,
                notional=self.config.notional,
                materiality_usd=self.config.materiality_usd,
            )
        except AllocationError as e:
            logger.error("Allocation invariant violated: %s", e, exc_info=True)
            if self.decision_logger is not None:
                self.decision_logger.log_error(DecisionEventType.INTERNAL_ERROR, str(e))
            raise

        if self.decision_logger is not None:
            self.decision_logger.log_allocation_event(
                DecisionEventType.ALLOCATION_CALCULATED,
                weights=plan.allocation.to_dict(),
                reasoning=plan.reasoning,
            )
            self.decision_logger.log_allocation_event(
                DecisionEventType.TRANSACTIONS_GENERATED,
                weights=plan.allocation.to_dict(),
                transactions=[t.to_dict() for t in plan.transactions],
            )

        result = WorkflowResult(
            market_data=market_data,
            verdict=verdict,
            plan=plan,
            current_allocation=current,
        )

        self._record_system(
            DecisionEventType.WORKFLOW_COMPLETED,
            sentiment=verdict.sentiment.value,
            transaction_count=len(plan.transactions),
        )

        return result

    def _record_system(self, event_type: DecisionEventType, **data) -> None:
        if self.decision_logger is not None:
            self.decision_logger.log_system_event(event_type, event_type.value, **data)
