"""Unit tests for SentimentRebalanceWorkflow.

Tests the rebalancing workflow with mocked completion clients.
"""

import json
from datetime import datetime
from unittest.mock import MagicMock, Mock

import pytest

from src.api.portfolio_api import PortfolioAPI
from src.api.sentiment_api import SentimentAPI
from src.orchestration.workflows import (
    SentimentRebalanceWorkflow,
    WorkflowConfig,
    WorkflowResult,
)
from src.portfolio.base import Allocation
from src.sentiment.base import FALLBACK_PROVENANCE, MODEL_PROVENANCE, NewsItem, Sentiment
from src.sentiment.completion_client import CompletionClient
from src.sentiment.prompt import DEFAULT_NEWS_ITEMS
from src.utils.config import Config
from src.utils.exceptions import AllocationError
from src.utils.logging_enhanced import DecisionLogger

BULLISH_OUTPUT = '{"sentiment": "bullish", "confidence": 1.0, "score": 8}'


@pytest.fixture
def mock_client():
    """Completion client returning a full-confidence bullish verdict."""
    client = MagicMock(spec=CompletionClient)
    client.complete.return_value = BULLISH_OUTPUT
    return client


@pytest.fixture
def online_workflow(mock_client):
    """Workflow with a mocked completion client."""
    return SentimentRebalanceWorkflow(sentiment_api=SentimentAPI(client=mock_client))


class TestWorkflowInit:
    """Test workflow initialization."""

    def test_defaults(self):
        """Test default components."""
        workflow = SentimentRebalanceWorkflow()

        assert workflow.sentiment_api.client is None
        assert isinstance(workflow.portfolio_api, PortfolioAPI)
        assert workflow.config.default_items == DEFAULT_NEWS_ITEMS

    def test_from_config_offline(self):
        """Test building without an API key gives an offline workflow."""
        workflow = SentimentRebalanceWorkflow.from_config(Config({}))

        assert workflow.sentiment_api.client is None

    def test_from_config_online(self):
        """Test building with an API key configures a client."""
        config = Config({"completion": {"model": "m"}})
        workflow = SentimentRebalanceWorkflow.from_config(config, api_key="k")

        assert workflow.sentiment_api.client.model == "m"

    def test_provenance_follows_configured_model(self):
        """Test model-path verdicts credit the configured completion model."""
        config = Config({"completion": {"model": "mistralai/Mixtral-8x7B"}})
        workflow = SentimentRebalanceWorkflow.from_config(config, api_key="k")

        verdict = workflow.sentiment_api.analyze_text('{"sentiment":"bullish","confidence":0.5}')

        assert verdict.provenance == "Analysis performed by Mixtral-8x7B via Together AI"

    def test_provenance_default_model(self):
        """Test the default model keeps the standard provenance tag."""
        workflow = SentimentRebalanceWorkflow.from_config(Config({}))

        verdict = workflow.sentiment_api.analyze_text('{"sentiment":"bearish","confidence":0.5}')

        assert verdict.provenance == MODEL_PROVENANCE


class TestWorkflowRun:
    """Test SentimentRebalanceWorkflow.run."""

    def test_offline_run(self):
        """Test an offline run uses the fallback over default items."""
        result = SentimentRebalanceWorkflow().run()

        assert isinstance(result, WorkflowResult)
        assert result.market_data == DEFAULT_NEWS_ITEMS
        assert result.verdict.provenance == FALLBACK_PROVENANCE
        assert result.verdict.sentiment == Sentiment.BULLISH
        assert abs(sum(result.plan.allocation.values()) - 1.0) <= 1e-9

    def test_online_run(self, online_workflow):
        """Test the full-confidence bullish trade list."""
        result = online_workflow.run()

        assert result.verdict.score == 8
        assert [(t.type.value, t.asset, t.amount_usd) for t in result.plan.transactions] == [
            ("SELL", "BTC", 10000.0),
            ("BUY", "ETH", 10000.0),
            ("BUY", "NEAR", 5000.0),
            ("SELL", "SOL", 5000.0),
        ]

    def test_custom_items_and_allocation(self, online_workflow):
        """Test run arguments override configured defaults."""
        items = [NewsItem("Desk", "flat")]
        current = Allocation({"BTC": 0.15, "ETH": 0.35, "NEAR": 0.30, "SOL": 0.20})

        result = online_workflow.run(items, current_allocation=current)

        assert result.market_data == tuple(items)
        assert result.current_allocation is current
        assert result.plan.transactions == ()

    def test_workflow_config_overrides(self, mock_client):
        """Test notional and materiality come from WorkflowConfig."""
        workflow = SentimentRebalanceWorkflow(
            sentiment_api=SentimentAPI(client=mock_client),
            config=WorkflowConfig(notional=1000.0, materiality_usd=60.0),
        )

        result = workflow.run()

        assert [t.asset for t in result.plan.transactions] == ["BTC", "ETH"]

    def test_allocation_error_propagates(self, tmp_path):
        """Test an allocation fault is logged and re-raised."""
        policy = Mock()
        policy.plan.side_effect = AllocationError("weights must sum to 1.0")
        decision_logger = DecisionLogger(log_dir=tmp_path)
        workflow = SentimentRebalanceWorkflow(
            portfolio_api=PortfolioAPI(policy=policy),
            decision_logger=decision_logger,
        )

        with pytest.raises(AllocationError):
            workflow.run(current_allocation=Allocation({"BTC": 1.0}))

        error_lines = (tmp_path / "errors.log").read_text().splitlines()
        assert json.loads(error_lines[0])["message"]["event_type"] == "internal_error"


class TestWorkflowResult:
    """Test result serialization."""

    def test_to_dict(self, online_workflow):
        """Test payload keys and nested fields."""
        payload = online_workflow.run().to_dict()

        assert list(payload) == [
            "marketData",
            "sentimentAnalysis",
            "allocationPlan",
            "currentAllocation",
            "executionTimestamp",
        ]
        assert payload["marketData"][0]["source"] == "Twitter"
        assert payload["sentimentAnalysis"]["sentiment"] == "bullish"
        assert payload["allocationPlan"]["transactions"][0]["amountUSD"] == 10000.0
        assert payload["currentAllocation"]["SOL"] == 0.25
        datetime.fromisoformat(payload["executionTimestamp"])

    def test_decision_events(self, mock_client, tmp_path):
        """Test a run records system and allocation events."""
        decision_logger = DecisionLogger(log_dir=tmp_path)
        workflow = SentimentRebalanceWorkflow(
            sentiment_api=SentimentAPI(client=mock_client, decision_logger=decision_logger),
            decision_logger=decision_logger,
        )

        workflow.run()

        def events(name):
            lines = (tmp_path / name).read_text().splitlines()
            return [json.loads(line)["message"]["event_type"] for line in lines]

        assert events("system.log") == ["workflow_started", "workflow_completed"]
        assert events("allocation.log") == ["allocation_calculated", "transactions_generated"]
        assert events("sentiment.log") == ["completion_requested", "extraction_succeeded"]
