"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass

from .errors import RescueError


@dataclass(frozen=True)
class PositionSnapshot:
    """Vault state read from the ledger for one attempt (WAD amounts)."""

    locked_collateral: int
    generated_debt: int


@dataclass(frozen=True)
class CollateralRates:
    """Per-collateral-type ledger parameters (all RAY)."""

    accumulated_rate: int
    liquidation_price: int
    safety_price: int


@dataclass(frozen=True)
class MarketSnapshot:
    """Ledger rates plus the oracle price (WAD) read for one attempt."""

    accumulated_rate: int
    liquidation_price: int
    safety_price: int
    oracle_price: int

    @classmethod
    def from_rates(cls, rates: CollateralRates, oracle_price: int) -> MarketSnapshot:
        return cls(
            accumulated_rate=rates.accumulated_rate,
            liquidation_price=rates.liquidation_price,
            safety_price=rates.safety_price,
            oracle_price=oracle_price,
        )


@dataclass(frozen=True)
class RescueParameters:
    liquidator_reward: int
    treasury: str
    protocol_caller: str


@dataclass(frozen=True)
class RescueEvent:
    """Emitted once per committed rescue."""

    vault_id: int
    collateral_type: str
    handler: str
    collateral_added: int
    reward: int
    oracle_price: int = 0


# ---------------------------------------------------------------------------
# Rescue outcomes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Rescued:
    vault_id: int
    collateral_added: int
    reward: int

    @property
    def success(self) -> bool:
        return True

    def as_tuple(self) -> tuple[bool, int, int]:
        return (True, self.collateral_added, self.reward)


@dataclass(frozen=True)
class NotManaged:
    """Handler has no vault id; nothing was done."""

    handler: str

    @property
    def success(self) -> bool:
        return True

    def as_tuple(self) -> tuple[bool, int, int]:
        return (True, 0, 0)


@dataclass(frozen=True)
class Rejected:
    reason: RescueError

    @property
    def success(self) -> bool:
        return False

    def as_tuple(self) -> tuple[bool, int, int]:
        return (False, 0, 0)


RescueOutcome = Rescued | NotManaged | Rejected
