"""Rescue engine — tops up an unsafe vault from the treasury in one atomic step."""
from __future__ import annotations

import asyncio
import logging
from collections import Counter
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Iterable

from ..auth import AuthorizationRegistry, Role
from ..errors import (
    CollateralTransferFailed,
    CollateralTypeMismatch,
    CollateralTypeUninitialized,
    RescueError,
    SafetyRatioNotMet,
    Unauthorized,
    VaultNotEligible,
)
from ..fixed_point import add, format_wad, rdivide, rmultiply, subtract
from ..interfaces.collateral_sink import CollateralSink
from ..interfaces.ledger import Ledger
from ..interfaces.notifier import Notifier
from ..interfaces.price_oracle import PriceOracle
from ..interfaces.reserve_token import ReserveToken
from ..interfaces.vault_registry import VaultRegistry
from ..models import (
    MarketSnapshot,
    NotManaged,
    PositionSnapshot,
    Rejected,
    RescueEvent,
    Rescued,
    RescueOutcome,
)
from ..parameters import RescueParameterStore
from ..registries import CollateralTypeRegistry, VaultEligibilityRegistry

logger = logging.getLogger(__name__)


def compute_required_collateral(position: PositionSnapshot, market: MarketSnapshot) -> int:
    """Collateral (WAD) that lifts the vault back above its liquidation threshold.

    The deficit at the liquidation price is converted to collateral units at
    the safety price, then the result is re-checked against the liquidation
    price before it is returned.

    Raises:
        SafetyRatioNotMet: the vault needs no top-up, or the computed amount
            would not restore it.
    """
    debt_value = rmultiply(position.generated_debt, market.accumulated_rate)
    collateral_value = rmultiply(position.locked_collateral, market.liquidation_price)

    if debt_value <= collateral_value:
        raise SafetyRatioNotMet("Vault is not below its liquidation threshold")
    if market.safety_price == 0:
        raise SafetyRatioNotMet("Safety price is zero")

    required = rdivide(subtract(debt_value, collateral_value), market.safety_price)

    restored = rmultiply(add(required, position.locked_collateral), market.liquidation_price)
    if required == 0 or restored <= debt_value:
        raise SafetyRatioNotMet(
            f"Top-up of {format_wad(required)} leaves collateral value "
            f"{format_wad(restored)} at or below debt {format_wad(debt_value)}"
        )
    return required


class RescueEngine:
    """Orchestrates rescues and owns the governance-controlled state.

    Each ``rescue`` runs authorization, vault resolution, eligibility,
    a fresh snapshot, the top-up computation, treasury funding, deposit
    and commit. A failure at any step leaves balances and the ledger as
    they were.
    """

    def __init__(
        self,
        *,
        address: str,
        deployer: str,
        protocol_caller: str,
        treasury: str,
        vault_registry: VaultRegistry,
        ledger: Ledger,
        oracle: PriceOracle,
        sink: CollateralSink,
        liquidator_reward: int = 0,
        notifiers: Iterable[Notifier] = (),
    ) -> None:
        if not address:
            raise ValueError("Engine address must not be empty")
        self.address = address
        self.auth = AuthorizationRegistry(deployer)
        self.parameters = RescueParameterStore(
            self.auth, treasury, protocol_caller, liquidator_reward
        )
        self.collateral_types = CollateralTypeRegistry(self.auth)
        self.vaults = VaultEligibilityRegistry(
            self.auth, self.collateral_types, vault_registry
        )

        self._vault_registry = vault_registry
        self._ledger = ledger
        self._oracle = oracle
        self._sink = sink
        self._notifiers: list[Notifier] = list(notifiers)

        self._locks: dict[int, asyncio.Lock] = {}
        self._lock_users: Counter[int] = Counter()
        self._events: list[RescueEvent] = []

    @property
    def events(self) -> tuple[RescueEvent, ...]:
        return tuple(self._events)

    # ------------------------------------------------------------------
    # Governance
    # ------------------------------------------------------------------

    def grant(self, caller: str, role: Role, principal: str) -> None:
        self.auth.grant(caller, role, principal)

    def revoke(self, caller: str, role: Role, principal: str) -> None:
        self.auth.revoke(caller, role, principal)

    def register_collateral_type(
        self, caller: str, collateral_type: str, token: ReserveToken
    ) -> None:
        self.collateral_types.register_collateral_type(caller, collateral_type, token)

    def reassign_collateral_token(
        self, caller: str, collateral_type: str, token: ReserveToken
    ) -> None:
        self.collateral_types.reassign_collateral_token(caller, collateral_type, token)

    async def set_eligible(self, caller: str, vault_id: int, enabled: bool) -> None:
        await self.vaults.set_eligible(caller, vault_id, enabled)

    def modify_parameters(
        self,
        caller: str,
        parameter: str,
        value: Any,
        collateral_type: str | None = None,
    ) -> None:
        """Update a rescue parameter, or rebind a type's reserve token.

        ``collateral_token`` takes the token as ``value`` and needs
        ``collateral_type``; every other key goes to the parameter store.
        """
        if parameter == "collateral_token":
            if collateral_type is None:
                raise ValueError("collateral_token requires a collateral_type")
            self.collateral_types.reassign_collateral_token(caller, collateral_type, value)
            return
        self.parameters.modify_parameters(caller, parameter, value)

    # ------------------------------------------------------------------
    # Rescue
    # ------------------------------------------------------------------

    async def rescue(
        self, caller: str, collateral_type: str, handler: str
    ) -> Rescued | NotManaged:
        """Top up ``handler``'s vault so it clears its liquidation threshold.

        Returns ``NotManaged`` when the handler has no vault id.

        Raises:
            Unauthorized, VaultNotEligible, CollateralTypeMismatch,
            CollateralTypeUninitialized, SafetyRatioNotMet,
            CollateralTransferFailed, or whatever a
            collaborator raised (after rolling back any funds moved).
        """
        params = self.parameters.current
        if caller != params.protocol_caller or not self.auth.is_authorized(
            caller, Role.PROTOCOL
        ):
            logger.warning("Rejected rescue call from %s", caller)
            raise Unauthorized(caller, Role.PROTOCOL)

        vault_id = await self._vault_registry.resolve(handler)
        if vault_id is None:
            logger.info("Handler %s has no vault, nothing to rescue", handler)
            return NotManaged(handler)

        async with self._vault_lock(vault_id):
            if not self.vaults.is_eligible(vault_id):
                raise VaultNotEligible(vault_id)
            held_type = await self._vault_registry.collateral_type_of(vault_id)
            if held_type != collateral_type:
                raise CollateralTypeMismatch(vault_id, held_type, collateral_type)
            token = self.collateral_types.token_for(collateral_type)
            if token is None:
                raise CollateralTypeUninitialized(collateral_type)

            position, market = await self._snapshot(collateral_type, handler)
            required = compute_required_collateral(position, market)
            logger.info(
                "Vault %d (%s) needs %s collateral: locked=%s debt=%s",
                vault_id, collateral_type, format_wad(required),
                format_wad(position.locked_collateral),
                format_wad(position.generated_debt),
            )

            # Read once so the reward and treasury match for the whole call.
            params = self.parameters.current
            await self._fund(token, params.treasury, required)
            try:
                await self._deposit(token, vault_id, collateral_type, handler, required)
            except Exception:
                await self._refund(token, params.treasury, required)
                raise

            event = RescueEvent(
                vault_id=vault_id,
                collateral_type=collateral_type,
                handler=handler,
                collateral_added=required,
                reward=params.liquidator_reward,
                oracle_price=market.oracle_price,
            )
            self._events.append(event)

        logger.info(
            "Rescued vault %d: +%s %s (reward %s)",
            vault_id, format_wad(required), collateral_type,
            format_wad(params.liquidator_reward),
        )
        await self._send_alert(self._build_rescue_notice(event), subject="Vault rescued")
        return Rescued(
            vault_id=vault_id,
            collateral_added=required,
            reward=params.liquidator_reward,
        )

    async def attempt_rescue(
        self, caller: str, collateral_type: str, handler: str
    ) -> RescueOutcome:
        """Like ``rescue`` but reports rejections as ``Rejected``."""
        try:
            return await self.rescue(caller, collateral_type, handler)
        except RescueError as e:
            logger.warning("Rescue of %s rejected: %s", handler, e)
            await self._send_log(
                f"⚠️ Rescue of {handler} ({collateral_type}) rejected\n"
                f"{type(e).__name__}: {e}"
            )
            return Rejected(e)

    async def required_collateral(self, collateral_type: str, handler: str) -> int:
        """Dry run: amount a rescue would add now, 0 if none would happen."""
        vault_id = await self._vault_registry.resolve(handler)
        if vault_id is None:
            return 0
        position, market = await self._snapshot(collateral_type, handler)
        try:
            return compute_required_collateral(position, market)
        except SafetyRatioNotMet:
            return 0

    async def can_save(self, collateral_type: str, handler: str) -> bool:
        """Whether a rescue would currently go through."""
        vault_id = await self._vault_registry.resolve(handler)
        if vault_id is None or not self.vaults.is_eligible(vault_id):
            return False
        token = self.collateral_types.token_for(collateral_type)
        if token is None:
            return False
        required = await self.required_collateral(collateral_type, handler)
        if required == 0:
            return False
        treasury = self.parameters.treasury
        balance = await token.balance_of(treasury)
        allowance = await token.allowance(treasury, self.address)
        return balance >= required and allowance >= required

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _snapshot(
        self, collateral_type: str, handler: str
    ) -> tuple[PositionSnapshot, MarketSnapshot]:
        position = await self._ledger.position_of(collateral_type, handler)
        rates = await self._ledger.rates_for(collateral_type)
        oracle_price = await self._oracle.read()
        return position, MarketSnapshot.from_rates(rates, oracle_price)

    async def _fund(self, token: ReserveToken, treasury: str, amount: int) -> None:
        before = await token.balance_of(self.address)
        transferred = await token.transfer_from(treasury, self.address, amount)
        received = await token.balance_of(self.address) - before

        if transferred and received >= amount:
            return

        if received > 0:
            await self._refund(token, treasury, received)
        raise CollateralTransferFailed(
            f"Treasury {treasury} funded {format_wad(max(received, 0))} "
            f"of {format_wad(amount)} required"
        )

    async def _deposit(
        self,
        token: ReserveToken,
        vault_id: int,
        collateral_type: str,
        handler: str,
        amount: int,
    ) -> None:
        await token.approve(self.address, self._sink.address, amount)
        try:
            await self._sink.deposit(token, collateral_type, handler, amount)
        except Exception:
            await self._unwind(
                "allowance reset", token.approve(self.address, self._sink.address, 0)
            )
            raise
        try:
            await self._ledger.increase_locked_collateral(vault_id, amount)
        except Exception:
            await self._unwind(
                "sink withdrawal",
                self._sink.withdraw(token, collateral_type, handler, amount),
            )
            raise

    async def _refund(self, token: ReserveToken, treasury: str, amount: int) -> None:
        try:
            returned = await token.transfer(self.address, treasury, amount)
        except Exception as e:
            logger.critical(
                "Refund of %s to treasury %s raised: %s", format_wad(amount), treasury, e
            )
            return
        if returned:
            logger.info("Returned %s to treasury %s", format_wad(amount), treasury)
        else:
            logger.critical(
                "Could not return %s to treasury %s; funds held by %s",
                format_wad(amount), treasury, self.address,
            )

    @staticmethod
    async def _unwind(step: str, pending: Awaitable[Any]) -> None:
        # Logs failures; the caller re-raises the original error.
        try:
            await pending
        except Exception as e:
            logger.critical("Rollback %s failed: %s", step, e)

    @asynccontextmanager
    async def _vault_lock(self, vault_id: int) -> AsyncIterator[None]:
        lock = self._locks.setdefault(vault_id, asyncio.Lock())
        self._lock_users[vault_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[vault_id] -= 1
            if not self._lock_users[vault_id]:
                del self._lock_users[vault_id]
                del self._locks[vault_id]

    # ------------------------------------------------------------------
    # Notification dispatch
    # ------------------------------------------------------------------

    @staticmethod
    def _build_rescue_notice(event: RescueEvent) -> str:
        return (
            f"🛟 Vault {event.vault_id} rescued\n"
            f"\n"
            f"Collateral type: {event.collateral_type}\n"
            f"Handler: {event.handler}\n"
            f"Collateral added: {format_wad(event.collateral_added)}\n"
            f"Oracle price: {format_wad(event.oracle_price, 4)}\n"
            f"Liquidator reward: {format_wad(event.reward)}"
        )

    async def _send_log(self, message: str, silent: bool = True) -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_log(message, silent=silent)
            except Exception as e:
                logger.error("Notifier send_log failed: %s", e)

    async def _send_alert(self, message: str, subject: str = "") -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_alert(message, subject=subject)
            except Exception as e:
                logger.error("Notifier send_alert failed: %s", e)
