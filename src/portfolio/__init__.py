"""Portfolio Management Layer.

This layer is responsible for translating a sentiment verdict into a target
allocation and generating the rebalancing transactions to reach it.

Components:
- AllocationPolicy: Abstract interface for verdict -> allocation
- SentimentAllocationPolicy: Confidence-scaled coefficient table policy
- TransactionDiffer: Allocation change -> ordered trade list
- Allocation / Transaction / AllocationPlan: Value objects
"""

from src.portfolio.base import (
    Allocation,
    AllocationPlan,
    AllocationPolicy,
    Transaction,
    TransactionType,
    validate_allocation,
)
from src.portfolio.sentiment_allocator import PolicyConfig, SentimentAllocationPolicy
from src.portfolio.transaction_differ import DifferConfig, TransactionDiffer

__all__ = [
    "Allocation",
    "AllocationPlan",
    "AllocationPolicy",
    "DifferConfig",
    "PolicyConfig",
    "SentimentAllocationPolicy",
    "Transaction",
    "TransactionDiffer",
    "TransactionType",
    "validate_allocation",
]
