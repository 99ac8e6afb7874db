"""Abstract base class and value objects for portfolio allocation.

This module defines the contract for turning a sentiment verdict into a
target allocation and the data structures the rebalancing step produces.

Responsibilities:
- Allocation: Validated weight distribution over a fixed asset set
- Transaction: A single rebalancing trade
- AllocationPlan: Target allocation, reasoning and trade list
- AllocationPolicy: Verdict -> target allocation
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Sequence, Tuple

from src.sentiment.base import Verdict
from src.utils.exceptions import AllocationError

WEIGHT_SUM_TOLERANCE = 1e-9


def validate_allocation(
    weights: Mapping,
    tolerance: float = WEIGHT_SUM_TOLERANCE,
) -> None:
    """Check the allocation invariants.

    Args:
        weights: Weights {asset: weight}
        tolerance: Allowed deviation of the weight sum from 1.0

    Raises:
        AllocationError: If a weight is outside [0, 1] or the sum is not 1.0
    """
    if not weights:
        raise AllocationError("allocation must contain at least one asset")

    for asset, weight in weights.items():
        if not -tolerance <= weight <= 1.0 + tolerance:
            raise AllocationError(f"weight for {asset} must be in [0, 1], got {weight}")

    total = sum(weights.values())
    if abs(total - 1.0) > tolerance:
        raise AllocationError(f"weights must sum to 1.0, got {total!r}")


class Allocation(Mapping):
    """Ordered, immutable weight distribution that sums to 1.0.

    Behaves like a read-only dict keyed by asset identifier. Construction
    fails with AllocationError if the invariants do not hold.

    Example:
        >>> allocation = Allocation({"BTC": 0.5, "ETH": 0.5})
        >>> allocation["BTC"]
        0.5
        >>> Allocation.equal_weight(["BTC", "ETH", "NEAR", "SOL"])["SOL"]
        0.25
    """

    __slots__ = ("_weights",)

    def __init__(self, weights: Mapping):
        weights = {str(asset): float(weight) for asset, weight in weights.items()}
        validate_allocation(weights)
        self._weights = weights

    @classmethod
    def equal_weight(cls, assets: Sequence[str]) -> "Allocation":
        if not assets:
            raise AllocationError("equal_weight requires at least one asset")
        weight = 1.0 / len(assets)
        return cls({asset: weight for asset in assets})

    def __getitem__(self, asset: str) -> float:
        return self._weights[asset]

    def __iter__(self) -> Iterator[str]:
        return iter(self._weights)

    def __len__(self) -> int:
        return len(self._weights)

    def __repr__(self) -> str:
        return f"Allocation({self._weights!r})"

    @property
    def assets(self) -> Tuple[str, ...]:
        return tuple(self._weights)

    def to_dict(self) -> Dict[str, float]:
        return dict(self._weights)


class TransactionType(Enum):
    """Transaction direction."""

    BUY = "BUY"
    SELL = "SELL"


@dataclass(frozen=True)
class Transaction:
    """Represents a single rebalancing trade.

    Attributes:
        type: BUY or SELL
        asset: Asset identifier (e.g. "ETH")
        amount_usd: Dollar amount, rounded to cents
        chain: Native chain the trade executes on
        estimated_fee: Estimated network fee in dollars
        verification_path: Where the trade is verified and executed
    """

    type: TransactionType
    asset: str
    amount_usd: float
    chain: str
    estimated_fee: float = 0.0
    verification_path: str = ""

    def __post_init__(self):
        """Validate transaction fields."""
        if self.amount_usd < 0:
            raise ValueError(f"amount_usd must be non-negative, got {self.amount_usd}")
        if self.estimated_fee < 0:
            raise ValueError(f"estimated_fee must be non-negative, got {self.estimated_fee}")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for the response payload."""
        return {
            "type": self.type.value,
            "asset": self.asset,
            "amountUSD": self.amount_usd,
            "chain": self.chain,
            "estimatedFee": self.estimated_fee,
            "verificationPath": self.verification_path,
        }


@dataclass(frozen=True)
class AllocationPlan:
    """Result of planning a rebalance.

    Attributes:
        allocation: Target allocation
        reasoning: Why this allocation was chosen
        transactions: Trades to move from the current to the target allocation
    """

    allocation: Allocation
    reasoning: str
    transactions: Tuple[Transaction, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "allocation": self.allocation.to_dict(),
            "reasoning": self.reasoning,
            "transactions": [t.to_dict() for t in self.transactions],
        }


class AllocationPolicy(ABC):
    """Abstract interface for sentiment-driven allocation.

    A policy is a pure function of the verdict: the same verdict always
    yields the same allocation and reasoning.
    """

    @property
    @abstractmethod
    def assets(self) -> Tuple[str, ...]:
        """Asset universe, in enumeration order."""
        pass

    @abstractmethod
    def plan(self, verdict: Verdict) -> Allocation:
        """Map a verdict to target weights.

        Args:
            verdict: Validated sentiment verdict

        Returns:
            Target Allocation over ``self.assets``

        Raises:
            AllocationError: If the computed weights break the allocation
                            invariants (internal consistency fault)
        """
        pass

    @abstractmethod
    def describe(self, verdict: Verdict) -> str:
        """Explain the allocation chosen for a verdict."""
        pass

    def calculate_drift(
        self,
        current: Allocation,
        target: Allocation,
    ) -> Dict[str, float]:
        """Calculate per-asset weight change from current to target.

        Args:
            current: Current allocation
            target: Target allocation

        Returns:
            {asset: target_weight - current_weight} over the union of assets
        """
        assets: List[str] = list(current.assets)
        assets += [a for a in target.assets if a not in current]
        return {a: target.get(a, 0.0) - current.get(a, 0.0) for a in assets}
