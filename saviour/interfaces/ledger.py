"""Ledger protocol — locked collateral, debt and per-type rates."""
from typing import Protocol

from ..models import CollateralRates, PositionSnapshot


class Ledger(Protocol):
    """Read access to vault state plus the narrow collateral write path."""

    async def position_of(
        self, collateral_type: str, handler: str
    ) -> PositionSnapshot: ...

    async def rates_for(self, collateral_type: str) -> CollateralRates: ...

    async def increase_locked_collateral(self, vault_id: int, amount: int) -> None: ...
