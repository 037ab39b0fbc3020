"""Collaborator interfaces consumed by the rescue engine."""
from .collateral_sink import CollateralSink
from .ledger import Ledger
from .notifier import Notifier
from .price_oracle import PriceOracle
from .reserve_token import ReserveToken
from .vault_registry import VaultRegistry

__all__ = [
    "CollateralSink",
    "Ledger",
    "Notifier",
    "PriceOracle",
    "ReserveToken",
    "VaultRegistry",
]
