"""Prompt construction and the built-in sample news set."""

from typing import Sequence, Tuple

from src.sentiment.base import NewsItem

DEFAULT_NEWS_ITEMS: Tuple[NewsItem, ...] = (
    NewsItem(
        source="Twitter",
        content=(
            "Markets showing bullish signals as tech sector surges ahead. "
            "Growth expected to continue."
        ),
    ),
    NewsItem(
        source="Financial News",
        content=(
            "Some analysts predict a slight correction but overall positive "
            "outlook for the quarter."
        ),
    ),
    NewsItem(
        source="Market Report",
        content=(
            "Volatility increasing as investors navigate uncertainty. "
            "Some sectors showing signs of decline."
        ),
    ),
)

ANALYSIS_PROMPT_TEMPLATE = """
You are a market sentiment analyzer for cryptocurrency markets. Analyze the following market news and provide an overall sentiment analysis:

{news_text}

Based on this news, determine:
1. Overall sentiment (bullish, bearish, or neutral)
2. Confidence level (0-1, where 0 is no confidence and 1 is absolute confidence)
3. Numeric score (-10 to 10, where negative values are bearish and positive values are bullish)
4. Detailed reasoning for your assessment
5. Key market risks to consider

Format your response as valid JSON with the following fields:
{{
  "sentiment": "bullish|bearish|neutral",
  "confidence": 0.75,
  "score": 5,
  "reasoning": "Detailed explanation of your sentiment analysis",
  "risks": "Key risks to consider"
}}

IMPORTANT: Provide ONLY the JSON object in your response with absolutely NO additional text or formatting. ONLY return the JSON.
"""


def format_news(items: Sequence[NewsItem]) -> str:
    """Render news items as "source: content" paragraphs."""
    return "\n\n".join(f"{item.source}: {item.content}" for item in items)


def build_analysis_prompt(items: Sequence[NewsItem]) -> str:
    """Build the sentiment analysis prompt for a set of news items.

    Args:
        items: News items to analyze

    Returns:
        Prompt text asking for a JSON verdict
    """
    return ANALYSIS_PROMPT_TEMPLATE.format(news_text=format_news(items))
