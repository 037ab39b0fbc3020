"""Reserve token protocol — the asset used to top up a collateral type."""
from typing import Protocol


class ReserveToken(Protocol):
    """Minimal ERC20-like surface used to fund rescues."""

    @property
    def address(self) -> str: ...

    async def balance_of(self, account: str) -> int: ...

    async def allowance(self, owner: str, spender: str) -> int: ...

    async def approve(self, owner: str, spender: str, amount: int) -> None: ...

    async def transfer(self, src: str, dst: str, amount: int) -> bool: ...

    async def transfer_from(self, src: str, dst: str, amount: int) -> bool: ...
