"""Unit tests for TransactionDiffer and DifferConfig."""

import pytest

from src.portfolio.base import Allocation, TransactionType
from src.portfolio.transaction_differ import DifferConfig, TransactionDiffer
from src.utils.config import Config
from src.utils.exceptions import ConfigurationError, RebalanceError

ASSETS = ["BTC", "ETH", "NEAR", "SOL"]


@pytest.fixture
def differ() -> TransactionDiffer:
    return TransactionDiffer()


@pytest.fixture
def equal() -> Allocation:
    return Allocation.equal_weight(ASSETS)


@pytest.fixture
def bullish_target() -> Allocation:
    return Allocation({"BTC": 0.15, "ETH": 0.35, "NEAR": 0.30, "SOL": 0.20})


class TestDifferConfig:
    """Test cases for DifferConfig."""

    def test_defaults(self) -> None:
        """Test default notional and materiality."""
        config = DifferConfig()

        assert config.notional == 100000.0
        assert config.materiality_usd == 100.0
        assert config.chains["NEAR"] == "NEAR Protocol"

    def test_negative_notional(self) -> None:
        """Test negative notional is rejected."""
        with pytest.raises(ConfigurationError, match="notional must be >= 0"):
            DifferConfig(notional=-1)

    def test_negative_materiality(self) -> None:
        """Test negative materiality is rejected."""
        with pytest.raises(ConfigurationError, match="materiality_usd must be >= 0"):
            DifferConfig(materiality_usd=-5)

    def test_from_config(self) -> None:
        """Test building from the rebalancing config section."""
        config = Config(
            {
                "rebalancing": {
                    "notional": 50000,
                    "materiality_usd": 250,
                    "chains": {"DOGE": "Dogecoin"},
                    "fee_model": {"fee_rate": 0.0, "base_fees": {"Dogecoin": 0.05}},
                }
            }
        )
        differ = TransactionDiffer.from_config(config)

        assert differ.config.notional == 50000.0
        assert differ.config.materiality_usd == 250.0
        assert differ.chain_for("DOGE") == "Dogecoin"
        assert differ.chain_for("BTC") == "Bitcoin"
        assert differ.estimate_fee("Dogecoin", 1000.0) == 0.05


class TestDiff:
    """Test cases for TransactionDiffer.diff."""

    def test_bullish_rebalance(
        self, differ: TransactionDiffer, equal: Allocation, bullish_target: Allocation
    ) -> None:
        """Test the full-confidence bullish trade list."""
        transactions = differ.diff(equal, bullish_target, 100000, 100)

        assert [(t.type, t.asset, t.amount_usd) for t in transactions] == [
            (TransactionType.SELL, "BTC", 10000.0),
            (TransactionType.BUY, "ETH", 10000.0),
            (TransactionType.BUY, "NEAR", 5000.0),
            (TransactionType.SELL, "SOL", 5000.0),
        ]
        assert [t.chain for t in transactions] == [
            "Bitcoin",
            "Ethereum",
            "NEAR Protocol",
            "Solana",
        ]

    @pytest.mark.parametrize("notional", [0, 1, 100, 100000, 1e9])
    @pytest.mark.parametrize("materiality", [0, 100, 1e6])
    def test_identical_allocations(
        self,
        differ: TransactionDiffer,
        bullish_target: Allocation,
        notional: float,
        materiality: float,
    ) -> None:
        """Test no trades when current equals target."""
        assert differ.diff(bullish_target, bullish_target, notional, materiality) == []

    def test_below_materiality_skipped(self, differ: TransactionDiffer, equal: Allocation) -> None:
        """Test deltas at or below materiality are skipped."""
        target = Allocation({"BTC": 0.251, "ETH": 0.249, "NEAR": 0.25, "SOL": 0.25})

        # delta = $100 exactly
        assert differ.diff(equal, target, 100000, 100) == []
        # delta = $100 above a $99 threshold
        assert len(differ.diff(equal, target, 100000, 99)) == 2

    @pytest.mark.parametrize("materiality", [0, 50, 100, 2500, 5000, 9999.99, 10000])
    def test_no_amount_at_or_below_materiality(
        self,
        differ: TransactionDiffer,
        equal: Allocation,
        bullish_target: Allocation,
        materiality: float,
    ) -> None:
        """Test every emitted amount is strictly above materiality."""
        transactions = differ.diff(equal, bullish_target, 100000, materiality)

        assert all(t.amount_usd > materiality for t in transactions)

    def test_rounding_does_not_undercut_threshold(self, differ: TransactionDiffer) -> None:
        """Test a delta just above threshold that rounds onto it is skipped."""
        current = Allocation({"BTC": 0.5, "ETH": 0.5})
        target = Allocation({"BTC": 0.5001000004, "ETH": 0.4998999996})

        # |delta| = 100.0004 rounds to 100.00
        assert differ.diff(current, target, 1000, 0) != []
        assert differ.diff(current, target, 1000000, 100) == []

    def test_amount_rounded_to_cents(self, differ: TransactionDiffer, equal: Allocation) -> None:
        """Test amounts are rounded to two decimals."""
        target = Allocation({"BTC": 0.2, "ETH": 0.3, "NEAR": 0.25, "SOL": 0.25})
        transactions = differ.diff(equal, target, 33333.33, 0)

        assert transactions[0].amount_usd == 1666.67

    def test_uses_configured_defaults(self, equal: Allocation, bullish_target: Allocation) -> None:
        """Test notional and materiality come from config when omitted."""
        differ = TransactionDiffer(DifferConfig(notional=1000.0, materiality_usd=60.0))
        transactions = differ.diff(equal, bullish_target)

        # BTC/ETH move $100, NEAR/SOL move $50
        assert [t.asset for t in transactions] == ["BTC", "ETH"]
        assert transactions[0].amount_usd == 100.0

    def test_configured_order(self, equal: Allocation, bullish_target: Allocation) -> None:
        """Test transactions follow the configured asset order."""
        differ = TransactionDiffer(DifferConfig(assets=("SOL", "NEAR", "ETH", "BTC")))
        transactions = differ.diff(equal, bullish_target)

        assert [t.asset for t in transactions] == ["SOL", "NEAR", "ETH", "BTC"]

    def test_unknown_asset(self, differ: TransactionDiffer) -> None:
        """Test assets outside the chain table map to Unknown."""
        current = Allocation({"BTC": 1.0})
        target = Allocation({"BTC": 0.5, "DOGE": 0.5})
        transactions = differ.diff(current, target, 10000, 100)

        assert [(t.type, t.asset, t.chain) for t in transactions] == [
            (TransactionType.SELL, "BTC", "Bitcoin"),
            (TransactionType.BUY, "DOGE", "Unknown"),
        ]

    def test_negative_notional(self, differ: TransactionDiffer, equal: Allocation) -> None:
        """Test negative notional raises RebalanceError."""
        with pytest.raises(RebalanceError, match="notional must be >= 0"):
            differ.diff(equal, equal, -1, 100)

    def test_negative_materiality(self, differ: TransactionDiffer, equal: Allocation) -> None:
        """Test negative materiality raises RebalanceError."""
        with pytest.raises(RebalanceError, match="materiality_usd must be >= 0"):
            differ.diff(equal, equal, 100, -1)


class TestFeesAndVerification:
    """Test cases for auxiliary transaction fields."""

    def test_fee_is_deterministic(
        self, differ: TransactionDiffer, equal: Allocation, bullish_target: Allocation
    ) -> None:
        """Test repeated diffs produce identical fees."""
        first = differ.diff(equal, bullish_target)
        second = differ.diff(equal, bullish_target)

        assert [t.estimated_fee for t in first] == [t.estimated_fee for t in second]

    def test_fee_formula(self, differ: TransactionDiffer) -> None:
        """Test fee = base fee + amount * rate."""
        assert differ.estimate_fee("Bitcoin", 10000.0) == 0.6
        assert differ.estimate_fee("Solana", 5000.0) == 0.15
        assert differ.estimate_fee("Nowhere", 0.0) == 0.25

    def test_verification_path(
        self, differ: TransactionDiffer, equal: Allocation, bullish_target: Allocation
    ) -> None:
        """Test verification path names the native chain."""
        transactions = differ.diff(equal, bullish_target)

        assert transactions[0].verification_path == "Verified by NEAR → executed on Bitcoin"
        assert transactions[2].verification_path.endswith("executed on NEAR Protocol")
