"""Orchestration Layer - Coordinates the sentiment and portfolio layers."""

from src.orchestration.workflows import (
    SentimentRebalanceWorkflow,
    WorkflowConfig,
    WorkflowResult,
)

__all__ = [
    "SentimentRebalanceWorkflow",
    "WorkflowConfig",
    "WorkflowResult",
]
