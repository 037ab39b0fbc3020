"""Collateral sink protocol — moves tokens into the ledger's backing reserve."""
from typing import Protocol

from .reserve_token import ReserveToken


class CollateralSink(Protocol):
    """Join adapter between reserve tokens and ledger collateral.

    The engine passes the token it funded, which is the collateral type's
    current binding at the time of the rescue.
    """

    @property
    def address(self) -> str: ...

    async def deposit(
        self, token: ReserveToken, collateral_type: str, handler: str, amount: int
    ) -> None: ...

    async def withdraw(
        self, token: ReserveToken, collateral_type: str, handler: str, amount: int
    ) -> None: ...
