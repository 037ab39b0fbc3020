"""In-memory collaborators: ledger, reserve token, collateral sink, oracle.

These model the external contracts closely enough to drive the engine end
to end in tests and in ``safe-saviour simulate``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from ..fixed_point import RAY
from ..models import CollateralRates, PositionSnapshot

logger = logging.getLogger(__name__)


@dataclass
class _Vault:
    vault_id: int
    collateral_type: str
    handler: str
    locked_collateral: int
    generated_debt: int


class InMemoryLedger:
    """Vault registry and ledger in one object.

    Keeps a handler -> vault id map alongside per-(type, handler) positions
    and per-type rates.
    """

    def __init__(self) -> None:
        self._vaults: dict[int, _Vault] = {}
        self._by_handler: dict[str, int] = {}
        self._rates: dict[str, CollateralRates] = {}
        self._next_id = 1

    # -- setup ---------------------------------------------------------

    def set_rates(
        self,
        collateral_type: str,
        accumulated_rate: int = RAY,
        liquidation_price: int = RAY,
        safety_price: int = RAY,
    ) -> None:
        self._rates[collateral_type] = CollateralRates(
            accumulated_rate=accumulated_rate,
            liquidation_price=liquidation_price,
            safety_price=safety_price,
        )

    def open_vault(
        self,
        collateral_type: str,
        handler: str,
        locked_collateral: int = 0,
        generated_debt: int = 0,
    ) -> int:
        if handler in self._by_handler:
            raise ValueError(f"Handler {handler!r} already has a vault")
        vault_id = self._next_id
        self._next_id += 1
        self._vaults[vault_id] = _Vault(
            vault_id, collateral_type, handler, locked_collateral, generated_debt
        )
        self._by_handler[handler] = vault_id
        return vault_id

    def set_debt(self, vault_id: int, generated_debt: int) -> None:
        self._vaults[vault_id].generated_debt = generated_debt

    # -- VaultRegistry -------------------------------------------------

    async def resolve(self, handler: str) -> int | None:
        return self._by_handler.get(handler)

    async def collateral_type_of(self, vault_id: int) -> str:
        try:
            return self._vaults[vault_id].collateral_type
        except KeyError:
            raise KeyError(f"Unknown vault {vault_id}") from None

    # -- Ledger --------------------------------------------------------

    async def position_of(self, collateral_type: str, handler: str) -> PositionSnapshot:
        vault_id = self._by_handler.get(handler)
        if vault_id is None or self._vaults[vault_id].collateral_type != collateral_type:
            return PositionSnapshot(locked_collateral=0, generated_debt=0)
        vault = self._vaults[vault_id]
        return PositionSnapshot(
            locked_collateral=vault.locked_collateral,
            generated_debt=vault.generated_debt,
        )

    async def rates_for(self, collateral_type: str) -> CollateralRates:
        try:
            return self._rates[collateral_type]
        except KeyError:
            raise KeyError(f"No rates for collateral type {collateral_type!r}") from None

    async def increase_locked_collateral(self, vault_id: int, amount: int) -> None:
        if amount <= 0:
            raise ValueError(f"Invalid collateral amount: {amount}")
        self._vaults[vault_id].locked_collateral += amount
        logger.debug("Vault %d locked collateral +%d", vault_id, amount)


class InMemoryToken:
    """Balances and allowances for one reserve token.

    ``fee_bps`` burns a share of every transfer to model fee-on-transfer
    tokens. ``transfer_from`` checks the allowance ``src`` granted to ``dst``.
    """

    def __init__(self, address: str, fee_bps: int = 0) -> None:
        if not 0 <= fee_bps <= 10_000:
            raise ValueError("fee_bps must be within [0, 10000]")
        self._address = address
        self.fee_bps = fee_bps
        self.total_supply = 0
        self.balances: dict[str, int] = {}
        self.allowances: dict[tuple[str, str], int] = {}

    @property
    def address(self) -> str:
        return self._address

    def mint(self, account: str, amount: int) -> None:
        if amount <= 0:
            raise ValueError("Amount must be greater than zero")
        self.balances[account] = self.balances.get(account, 0) + amount
        self.total_supply += amount

    async def balance_of(self, account: str) -> int:
        return self.balances.get(account, 0)

    async def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get((owner, spender), 0)

    async def approve(self, owner: str, spender: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("Allowance must be non-negative")
        self.allowances[(owner, spender)] = amount

    async def transfer(self, src: str, dst: str, amount: int) -> bool:
        if amount <= 0 or self.balances.get(src, 0) < amount:
            return False
        self._move(src, dst, amount)
        return True

    async def transfer_from(self, src: str, dst: str, amount: int) -> bool:
        allowed = self.allowances.get((src, dst), 0)
        if amount <= 0 or allowed < amount or self.balances.get(src, 0) < amount:
            return False
        self.allowances[(src, dst)] = allowed - amount
        self._move(src, dst, amount)
        return True

    def _move(self, src: str, dst: str, amount: int) -> None:
        fee = amount * self.fee_bps // 10_000
        self.balances[src] -= amount
        self.balances[dst] = self.balances.get(dst, 0) + amount - fee
        self.total_supply -= fee


class InMemoryCollateralSink:
    """Join adapter: pulls tokens from the engine into the ledger reserve.

    The engine approves this sink's address before calling ``deposit``.
    Deposits are tracked per (collateral type, handler) regardless of which
    token backed them.
    """

    def __init__(self, address: str, owner: str) -> None:
        self._address = address
        self._owner = owner
        self.deposited: dict[tuple[str, str], int] = {}

    @property
    def address(self) -> str:
        return self._address

    async def deposit(
        self, token: InMemoryToken, collateral_type: str, handler: str, amount: int
    ) -> None:
        if not await token.transfer_from(self._owner, self._address, amount):
            raise RuntimeError(
                f"Join transfer of {amount} {token.address} from {self._owner} failed"
            )
        key = (collateral_type, handler)
        self.deposited[key] = self.deposited.get(key, 0) + amount

    async def withdraw(
        self, token: InMemoryToken, collateral_type: str, handler: str, amount: int
    ) -> None:
        key = (collateral_type, handler)
        if self.deposited.get(key, 0) < amount:
            raise ValueError(f"Insufficient deposited collateral for {handler}")
        if not await token.transfer(self._address, self._owner, amount):
            raise RuntimeError(f"Join exit of {amount} {token.address} failed")
        self.deposited[key] -= amount

class FixedPriceOracle:
    """Oracle that returns a settable WAD price."""

    def __init__(self, price: int) -> None:
        self.price = price

    async def read(self) -> int:
        return self.price
