"""In-memory collaborator implementations."""
from .memory import FixedPriceOracle, InMemoryCollateralSink, InMemoryLedger, InMemoryToken

__all__ = ["FixedPriceOracle", "InMemoryCollateralSink", "InMemoryLedger", "InMemoryToken"]
