"""Convert an allocation change into rebalancing transactions.

Algorithm (per asset, in enumeration order):
1. delta = (target_weight - current_weight) * notional
2. Skip the asset if |delta| does not exceed the materiality threshold
3. Otherwise emit BUY (delta > 0) or SELL (delta < 0) for |delta| rounded
   to cents, on the asset's native chain

Fees come from a deterministic model so the differ stays a pure function:

    estimated_fee = round(base_fee[chain] + amount_usd * fee_rate, 2)
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from src.portfolio.base import Allocation, Transaction, TransactionType
from src.portfolio.sentiment_allocator import DEFAULT_ASSETS
from src.utils.config import Config
from src.utils.exceptions import ConfigurationError, RebalanceError
from src.utils.logging import get_logger

logger = get_logger(__name__)

UNKNOWN_CHAIN = "Unknown"

DEFAULT_CHAINS: Dict[str, str] = {
    "BTC": "Bitcoin",
    "ETH": "Ethereum",
    "NEAR": "NEAR Protocol",
    "SOL": "Solana",
}

DEFAULT_BASE_FEES: Dict[str, float] = {
    "Bitcoin": 0.50,
    "Ethereum": 0.35,
    "NEAR Protocol": 0.10,
    "Solana": 0.10,
    UNKNOWN_CHAIN: 0.25,
}


@dataclass(frozen=True)
class DifferConfig:
    """Configuration for TransactionDiffer.

    Attributes:
        notional: Total portfolio value in dollars (default 100000)
        materiality_usd: Minimum dollar delta that produces a trade (default 100)
        assets: Enumeration order for emitted transactions
        chains: {asset: native chain name}
        base_fees: {chain: flat fee in dollars}
        fee_rate: Proportional fee per dollar traded
        verification_network: Network where trades are verified
    """

    notional: float = 100000.0
    materiality_usd: float = 100.0
    assets: Tuple[str, ...] = DEFAULT_ASSETS
    chains: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_CHAINS))
    base_fees: Mapping[str, float] = field(default_factory=lambda: dict(DEFAULT_BASE_FEES))
    fee_rate: float = 0.00001
    verification_network: str = "NEAR"

    def __post_init__(self):
        """Validate differ configuration."""
        object.__setattr__(self, "assets", tuple(self.assets))
        if self.notional < 0:
            raise ConfigurationError(f"notional must be >= 0, got {self.notional}")
        if self.materiality_usd < 0:
            raise ConfigurationError(
                f"materiality_usd must be >= 0, got {self.materiality_usd}"
            )
        if self.fee_rate < 0:
            raise ConfigurationError(f"fee_rate must be >= 0, got {self.fee_rate}")
        if any(fee < 0 for fee in self.base_fees.values()):
            raise ConfigurationError("base_fees must be non-negative")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DifferConfig":
        """Build a DifferConfig from the ``rebalancing`` config section."""
        fee_model = data.get("fee_model") or {}

        chains = dict(DEFAULT_CHAINS)
        chains.update(data.get("chains") or {})
        base_fees = dict(DEFAULT_BASE_FEES)
        base_fees.update({k: float(v) for k, v in (fee_model.get("base_fees") or {}).items()})

        return cls(
            notional=float(data.get("notional", 100000.0)),
            materiality_usd=float(data.get("materiality_usd", 100.0)),
            assets=tuple(data.get("assets", DEFAULT_ASSETS)),
            chains=chains,
            base_fees=base_fees,
            fee_rate=float(fee_model.get("fee_rate", 0.00001)),
            verification_network=data.get("verification_network", "NEAR"),
        )


class TransactionDiffer:
    """Generates the minimal trade list between two allocations.

    Example:
        >>> differ = TransactionDiffer()
        >>> current = Allocation.equal_weight(["BTC", "ETH", "NEAR", "SOL"])
        >>> target = Allocation({"BTC": 0.15, "ETH": 0.35, "NEAR": 0.30, "SOL": 0.20})
        >>> [(t.type.value, t.asset, t.amount_usd) for t in differ.diff(current, target)]
        [('SELL', 'BTC', 10000.0), ('BUY', 'ETH', 10000.0), ('BUY', 'NEAR', 5000.0), ('SELL', 'SOL', 5000.0)]
    """

    def __init__(self, config: Optional[DifferConfig] = None):
        """Initialize differ.

        Args:
            config: Notional, materiality, chain and fee settings
        """
        self.config = config or DifferConfig()

    @classmethod
    def from_config(cls, config: Config) -> "TransactionDiffer":
        """Build a differ from the ``rebalancing`` section of a Config."""
        section = dict(config.get("rebalancing", {}))
        section.setdefault("assets", config.get("allocation.assets", DEFAULT_ASSETS))
        return cls(DifferConfig.from_dict(section))

    def chain_for(self, asset: str) -> str:
        """Native chain for an asset ("Unknown" if not configured)."""
        return self.config.chains.get(asset, UNKNOWN_CHAIN)

    def estimate_fee(self, chain: str, amount_usd: float) -> float:
        """Deterministic fee estimate for a trade on a chain."""
        base_fee = self.config.base_fees.get(
            chain, self.config.base_fees.get(UNKNOWN_CHAIN, 0.0)
        )
        return round(base_fee + amount_usd * self.config.fee_rate, 2)

    def verification_path(self, chain: str) -> str:
        return f"Verified by {self.config.verification_network} → executed on {chain}"

    def _ordered_assets(self, current: Allocation, target: Allocation) -> List[str]:
        # Configured order first, then anything else in target/current order
        ordered = [a for a in self.config.assets if a in current or a in target]
        for asset in list(target.assets) + list(current.assets):
            if asset not in ordered:
                ordered.append(asset)
        return ordered

    def diff(
        self,
        current: Allocation,
        target: Allocation,
        notional: Optional[float] = None,
        materiality_usd: Optional[float] = None,
    ) -> List[Transaction]:
        """Generate trades to move from current to target allocation.

        Args:
            current: Current allocation
            target: Target allocation
            notional: Portfolio value in dollars (default: configured value)
            materiality_usd: Minimum trade size in dollars (default: configured value)

        Returns:
            Transactions in asset enumeration order; every amount_usd is
            strictly greater than materiality_usd

        Raises:
            RebalanceError: If notional or materiality_usd is negative
        """
        notional = self.config.notional if notional is None else notional
        materiality = (
            self.config.materiality_usd if materiality_usd is None else materiality_usd
        )

        if notional < 0:
            raise RebalanceError(f"notional must be >= 0, got {notional}")
        if materiality < 0:
            raise RebalanceError(f"materiality_usd must be >= 0, got {materiality}")

        transactions: List[Transaction] = []

        for asset in self._ordered_assets(current, target):
            delta = target.get(asset, 0.0) * notional - current.get(asset, 0.0) * notional
            amount = round(abs(delta), 2)

            # Rounding to cents must not push a trade under the threshold
            if abs(delta) <= materiality or amount <= materiality:
                continue

            chain = self.chain_for(asset)
            transactions.append(
                Transaction(
                    type=TransactionType.BUY if delta > 0 else TransactionType.SELL,
                    asset=asset,
                    amount_usd=amount,
                    chain=chain,
                    estimated_fee=self.estimate_fee(chain, amount),
                    verification_path=self.verification_path(chain),
                )
            )

        logger.debug(
            "Generated %d transaction(s) for notional $%.2f (materiality $%.2f)",
            len(transactions),
            notional,
            materiality,
        )

        return transactions
