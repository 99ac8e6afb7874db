"""User-friendly APIs for the sentiment rebalancer.

Components:
- SentimentAPI: News items → Verdict (never fails)
- PortfolioAPI: Verdict → AllocationPlan
"""

from src.api.portfolio_api import PortfolioAPI
from src.api.sentiment_api import SentimentAPI

__all__ = [
    "PortfolioAPI",
    "SentimentAPI",
]
