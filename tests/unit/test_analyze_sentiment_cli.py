"""Unit tests for the analyze_sentiment CLI script."""

import json
from unittest.mock import Mock

import click
import pytest
from click.testing import CliRunner

from scripts import analyze_sentiment
from scripts.analyze_sentiment import cli, load_news_file, parse_weights
from src.sentiment.base import NewsItem


@pytest.fixture
def runner(monkeypatch):
    """CliRunner with root logging setup stubbed out."""
    monkeypatch.setattr(analyze_sentiment, "setup_logging", Mock())
    return CliRunner()


def write_news(tmp_path, content: str):
    path = tmp_path / "news.json"
    path.write_text(content, encoding="utf-8")
    return path


class TestLoadNewsFile:
    """Test reading news items from JSON files."""

    def test_valid_file(self, tmp_path):
        """Test an array of objects loads as NewsItems."""
        path = write_news(tmp_path, json.dumps([{"source": "Desk", "content": "BTC up"}]))

        assert load_news_file(path) == [NewsItem("Desk", "BTC up")]

    def test_not_a_list(self, tmp_path):
        """Test a top-level object is rejected."""
        path = write_news(tmp_path, json.dumps({"source": "Desk"}))

        with pytest.raises(click.BadParameter, match="JSON array"):
            load_news_file(path)

    def test_invalid_json(self, tmp_path):
        """Test malformed JSON is a usage error rather than a decode error."""
        path = write_news(tmp_path, "[{not json")

        with pytest.raises(click.BadParameter, match="not valid JSON"):
            load_news_file(path)

    @pytest.mark.parametrize("entry", ["headline", 3, None, ["Desk", "BTC up"]])
    def test_non_object_entry(self, tmp_path, entry):
        """Test array entries that are not objects are rejected."""
        path = write_news(tmp_path, json.dumps([{"source": "A", "content": "x"}, entry]))

        with pytest.raises(click.BadParameter, match="news item 1 must be an object"):
            load_news_file(path)


class TestParseWeights:
    """Test ASSET=weight parsing."""

    def test_parse(self):
        """Test assets are upper-cased and values parsed."""
        assert parse_weights(("btc=0.5", "ETH = 0.5")) == {"BTC": 0.5, "ETH": 0.5}

    def test_empty(self):
        """Test no weights gives None."""
        assert parse_weights(()) is None

    @pytest.mark.parametrize("item", ["BTC", "BTC=lots"])
    def test_invalid(self, item):
        """Test malformed weights raise BadParameter."""
        with pytest.raises(click.BadParameter):
            parse_weights((item,))


class TestRunCommand:
    """Test the run command's handling of bad news files."""

    def test_invalid_json_exits_with_usage_error(self, runner, tmp_path):
        """Test malformed news JSON ends with a message, not a traceback."""
        path = write_news(tmp_path, "not json at all")

        result = runner.invoke(cli, ["run", "--offline", "--news-file", str(path)])

        assert result.exit_code == 2
        assert "not valid JSON" in result.output
        assert not isinstance(result.exception, json.JSONDecodeError)

    def test_non_object_entry_exits_with_usage_error(self, runner, tmp_path):
        """Test a non-object news item ends with a message, not a traceback."""
        path = write_news(tmp_path, json.dumps(["just a headline"]))

        result = runner.invoke(cli, ["run", "--offline", "--news-file", str(path)])

        assert result.exit_code == 2
        assert "must be an object" in result.output
        assert not isinstance(result.exception, AttributeError)
