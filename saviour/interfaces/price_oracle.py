"""Price oracle protocol — single collateral price feed."""
from typing import Protocol


class PriceOracle(Protocol):
    """Returns the current collateral price as a WAD."""

    async def read(self) -> int: ...
