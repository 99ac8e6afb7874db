"""User-friendly Portfolio API for sentiment-driven rebalancing.

This module provides a simple, high-level interface for turning a verdict
into an allocation plan, and for formatting plans for display.
"""

from typing import List, Optional, Sequence

import pandas as pd

from src.portfolio.base import Allocation, AllocationPlan, AllocationPolicy, Transaction
from src.portfolio.sentiment_allocator import SentimentAllocationPolicy
from src.portfolio.transaction_differ import TransactionDiffer
from src.sentiment.base import Verdict
from src.utils.logging import get_logger

logger = get_logger(__name__)


class PortfolioAPI:
    """High-level API for allocation planning.

    Example:
        >>> from src.api.portfolio_api import PortfolioAPI
        >>>
        >>> api = PortfolioAPI()
        >>> plan = api.create_plan(verdict)  # current = equal weight
        >>> print(plan.reasoning)
        >>> print(api.format_transactions(plan.transactions))
    """

    def __init__(
        self,
        policy: Optional[AllocationPolicy] = None,
        differ: Optional[TransactionDiffer] = None,
    ):
        """Initialize PortfolioAPI.

        Args:
            policy: AllocationPolicy instance (defaults to SentimentAllocationPolicy)
            differ: TransactionDiffer instance (defaults to new instance)
        """
        self.policy = policy or SentimentAllocationPolicy()
        self.differ = differ or TransactionDiffer()

        logger.debug("PortfolioAPI initialized with %s", type(self.policy).__name__)

    def baseline_allocation(self) -> Allocation:
        """Equal-weight allocation over the policy's asset universe."""
        return Allocation.equal_weight(self.policy.assets)

    def create_plan(
        self,
        verdict: Verdict,
        current_allocation: Optional[Allocation] = None,
        notional: Optional[float] = None,
        materiality_usd: Optional[float] = None,
    ) -> AllocationPlan:
        """Create an allocation plan for a verdict.

        Args:
            verdict: Validated sentiment verdict
            current_allocation: Current holdings as weights (default: equal weight)
            notional: Portfolio value in dollars (default: differ config)
            materiality_usd: Minimum trade size (default: differ config)

        Returns:
            AllocationPlan with target allocation, reasoning and transactions

        Raises:
            AllocationError: If the policy produces an invalid allocation
        """
        current = current_allocation or self.baseline_allocation()

        target = self.policy.plan(verdict)
        transactions = self.differ.diff(
            current,
            target,
            notional=notional,
            materiality_usd=materiality_usd,
        )

        plan = AllocationPlan(
            allocation=target,
            reasoning=self.policy.describe(verdict),
            transactions=tuple(transactions),
        )

        logger.info(
            "Planned %s allocation (confidence %.2f): %d transaction(s)",
            verdict.sentiment.value,
            verdict.confidence,
            len(plan.transactions),
        )

        return plan

    def format_transactions(self, transactions: Sequence[Transaction]) -> pd.DataFrame:
        """Format transactions as a DataFrame for display.

        Args:
            transactions: Transactions from an AllocationPlan

        Returns:
            DataFrame with one row per transaction
        """
        columns = ["type", "asset", "amount_usd", "chain", "estimated_fee", "verification_path"]
        if not transactions:
            return pd.DataFrame(columns=columns)

        data = [
            {
                "type": t.type.value,
                "asset": t.asset,
                "amount_usd": t.amount_usd,
                "chain": t.chain,
                "estimated_fee": t.estimated_fee,
                "verification_path": t.verification_path,
            }
            for t in transactions
        ]

        return pd.DataFrame(data, columns=columns)

    def format_allocation(
        self,
        target: Allocation,
        current: Optional[Allocation] = None,
    ) -> pd.DataFrame:
        """Format target weights (and change from current) as a DataFrame.

        Args:
            target: Target allocation
            current: Current allocation (default: equal weight)

        Returns:
            DataFrame indexed by asset with current, target and change columns
        """
        current = current or self.baseline_allocation()
        drift = self.policy.calculate_drift(current, target)

        assets: List[str] = list(drift)
        df = pd.DataFrame(
            {
                "current": [current.get(a, 0.0) for a in assets],
                "target": [target.get(a, 0.0) for a in assets],
                "change": [drift[a] for a in assets],
            },
            index=pd.Index(assets, name="asset"),
        )
        df["target_pct"] = df["target"].map(lambda w: f"{w:.1%}")

        return df
