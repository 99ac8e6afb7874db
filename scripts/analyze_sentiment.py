#!/usr/bin/env python3
"""Sentiment analysis and rebalancing CLI tool.

This script runs the sentiment rebalancing pipeline from the command line:
- Analyze news items (built-in sample set or a JSON file) into a verdict
- Plan the target allocation and rebalancing transactions
- Extract a verdict from raw model output saved to a file

Examples:
    # Analyze the built-in sample news (uses TOGETHER_API_KEY from .env)
    python scripts/analyze_sentiment.py run

    # Analyze a custom news file without calling the model
    python scripts/analyze_sentiment.py run --news-file news.json --offline

    # Custom current allocation and portfolio size
    python scripts/analyze_sentiment.py run --offline \\
        -w BTC=0.4 -w ETH=0.3 -w NEAR=0.2 -w SOL=0.1 --notional 250000

    # Print the response payload as JSON
    python scripts/analyze_sentiment.py run --offline --json

    # Extract a verdict from saved model output
    python scripts/analyze_sentiment.py extract response.txt
"""

import json
import sys
from pathlib import Path
from typing import Dict, List, Optional

import click
from rich.console import Console
from rich.table import Table

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.api.sentiment_api import SentimentAPI
from src.orchestration.workflows import SentimentRebalanceWorkflow, WorkflowConfig
from src.portfolio.base import Allocation
from src.sentiment.base import ExtractionFailure, NewsItem, Verdict
from src.sentiment.extractor import VerdictExtractor
from src.utils.config import load_completion_credentials, load_config
from src.utils.exceptions import ConfigurationError, RebalancerError
from src.utils.logging import setup_logging
from src.utils.logging_enhanced import get_decision_logger

console = Console()


def parse_weights(weight_list: tuple) -> Optional[Dict[str, float]]:
    """Parse "ASSET=weight" strings into a dictionary.

    Args:
        weight_list: Tuple of "ASSET=weight" strings

    Returns:
        Dictionary of weights, or None if no weights given
    """
    if not weight_list:
        return None

    weights = {}
    for item in weight_list:
        if "=" not in item:
            raise click.BadParameter(f"Invalid weight '{item}', expected 'ASSET=weight'")
        asset, value = item.split("=", 1)
        try:
            weights[asset.strip().upper()] = float(value)
        except ValueError as e:
            raise click.BadParameter(f"Invalid weight value in '{item}'") from e

    return weights


def load_news_file(path: Path) -> List[NewsItem]:
    """Load news items from a JSON array of {source, content} objects."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise click.BadParameter(f"{path} is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise click.BadParameter(f"{path} must contain a JSON array of news items")

    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise click.BadParameter(
                f"{path}: news item {index} must be an object, got {type(entry).__name__}"
            )

    return [NewsItem.from_dict(entry) for entry in data]


def print_verdict(verdict: Verdict) -> None:
    """Print a verdict as a table."""
    color = {"bullish": "green", "bearish": "red"}.get(verdict.sentiment.value, "yellow")

    table = Table(title="Sentiment Verdict")
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    table.add_row("Sentiment", f"[{color}]{verdict.sentiment.value}[/{color}]")
    table.add_row("Confidence", f"{verdict.confidence:.0%}")
    table.add_row("Score", str(verdict.score))
    table.add_row("Reasoning", verdict.reasoning or "-")
    table.add_row("Risks", verdict.risks or "-")
    table.add_row("Provenance", verdict.provenance)

    console.print(table)


@click.group()
@click.option("--config", "config_path", type=click.Path(exists=True, path_type=Path), default=None,
              help="Path to YAML config (default: config/default.yaml)")
@click.option("--log-level", default=None, help="Logging level (default: from config)")
@click.pass_context
def cli(ctx, config_path: Optional[Path], log_level: Optional[str]):
    """Sentiment-driven portfolio rebalancing."""
    config = load_config(config_path)
    setup_logging(
        level=log_level or config.get("logging.level", "INFO"),
        log_file=config.get("logging.file"),
    )
    ctx.obj = {"config": config}


@cli.command()
@click.option("--news-file", type=click.Path(exists=True, path_type=Path), default=None,
              help="JSON file with [{source, content}, ...] (default: built-in sample)")
@click.option("--offline", is_flag=True, help="Skip the model call and use the keyword fallback")
@click.option("--weight", "-w", multiple=True, help="Current weight as ASSET=weight (repeatable)")
@click.option("--notional", type=float, default=None, help="Portfolio value in dollars")
@click.option("--materiality", type=float, default=None, help="Minimum trade size in dollars")
@click.option("--decision-log", is_flag=True, help="Write structured decision events to the log dir")
@click.option("--json", "as_json", is_flag=True, help="Print the response payload as JSON")
@click.pass_context
def run(
    ctx,
    news_file: Optional[Path],
    offline: bool,
    weight: tuple,
    notional: Optional[float],
    materiality: Optional[float],
    decision_log: bool,
    as_json: bool,
):
    """Analyze news and plan a rebalance."""
    config = ctx.obj["config"]

    api_key = None
    if not offline:
        try:
            api_key = load_completion_credentials()
        except ConfigurationError as e:
            console.print(f"[yellow]{e}[/yellow]")
            console.print("[yellow]Continuing with keyword fallback only[/yellow]")

    try:
        items = load_news_file(news_file) if news_file else None
        weights = parse_weights(weight)
        current = Allocation(weights) if weights else None

        decision_logger = None
        if decision_log:
            decision_logger = get_decision_logger(config.get("logging.decision_log_dir", "logs"))

        workflow = SentimentRebalanceWorkflow.from_config(
            config,
            api_key=api_key,
            decision_logger=decision_logger,
            workflow_config=WorkflowConfig(
                current_allocation=current,
                notional=notional,
                materiality_usd=materiality,
            ),
        )
        result = workflow.run(items)
    except RebalancerError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    print_verdict(result.verdict)

    portfolio_api = workflow.portfolio_api
    weights_df = portfolio_api.format_allocation(result.plan.allocation, result.current_allocation)

    alloc_table = Table(title="Target Allocation")
    alloc_table.add_column("Asset", style="cyan")
    alloc_table.add_column("Current", justify="right")
    alloc_table.add_column("Target", justify="right", style="green")
    alloc_table.add_column("Change", justify="right")
    for asset, row in weights_df.iterrows():
        change_color = "green" if row["change"] >= 0 else "red"
        alloc_table.add_row(
            asset,
            f"{row['current']:.1%}",
            row["target_pct"],
            f"[{change_color}]{row['change']:+.1%}[/{change_color}]",
        )
    console.print(alloc_table)
    console.print(f"\n[bold]{result.plan.reasoning}[/bold]\n")

    tx_df = portfolio_api.format_transactions(result.plan.transactions)
    if tx_df.empty:
        console.print("[cyan]No transactions needed[/cyan]")
        return

    tx_table = Table(title="Rebalancing Transactions")
    tx_table.add_column("Type", style="bold")
    tx_table.add_column("Asset", style="cyan")
    tx_table.add_column("Amount", justify="right")
    tx_table.add_column("Chain")
    tx_table.add_column("Est. Fee", justify="right")
    tx_table.add_column("Verification")
    for _, row in tx_df.iterrows():
        type_color = "green" if row["type"] == "BUY" else "red"
        tx_table.add_row(
            f"[{type_color}]{row['type']}[/{type_color}]",
            row["asset"],
            f"${row['amount_usd']:,.2f}",
            row["chain"],
            f"${row['estimated_fee']:,.2f}",
            row["verification_path"],
        )
    console.print(tx_table)


@cli.command()
@click.argument("text_file", type=click.Path(exists=True, path_type=Path))
@click.option("--news-file", type=click.Path(exists=True, path_type=Path), default=None,
              help="News items to score if extraction fails")
def extract(text_file: Path, news_file: Optional[Path]):
    """Extract a verdict from saved model output."""
    text = text_file.read_text(encoding="utf-8")

    result = VerdictExtractor().extract(text)
    if isinstance(result, ExtractionFailure):
        console.print(f"[yellow]Extraction failed: {result.reason}[/yellow]")
        if news_file is None:
            sys.exit(1)
        console.print("[yellow]Scoring news items with keyword fallback[/yellow]")
        result = SentimentAPI().analyze(load_news_file(news_file))

    print_verdict(result)


if __name__ == "__main__":
    cli()
