"""Collateral-type token bindings and per-vault rescue eligibility."""
from __future__ import annotations

import logging

from .auth import AuthorizationRegistry, Role
from .errors import AlreadyInitialized, CollateralTypeUninitialized, Uninitialized
from .interfaces.reserve_token import ReserveToken
from .interfaces.vault_registry import VaultRegistry

logger = logging.getLogger(__name__)


class CollateralTypeRegistry:
    """Maps a collateral type to the reserve token used to top it up.

    A type is either unset or bound. Binding happens once through
    ``register_collateral_type``; afterwards only ``reassign_collateral_token``
    may change it. Bindings are never removed.
    """

    def __init__(self, auth: AuthorizationRegistry) -> None:
        self._auth = auth
        self._tokens: dict[str, ReserveToken] = {}

    def register_collateral_type(
        self, caller: str, collateral_type: str, token: ReserveToken
    ) -> None:
        self._auth.require(caller, Role.GOVERNANCE)
        if token is None:
            raise ValueError("Reserve token must not be None")
        if collateral_type in self._tokens:
            raise AlreadyInitialized(collateral_type)
        self._tokens[collateral_type] = token
        logger.info("Collateral type %s bound to %s", collateral_type, _label(token))

    def reassign_collateral_token(
        self, caller: str, collateral_type: str, token: ReserveToken
    ) -> None:
        self._auth.require(caller, Role.GOVERNANCE)
        if token is None:
            raise ValueError("Reserve token must not be None")
        if collateral_type not in self._tokens:
            raise Uninitialized(collateral_type)
        previous = self._tokens[collateral_type]
        self._tokens[collateral_type] = token
        logger.info(
            "Collateral type %s rebound from %s to %s",
            collateral_type, _label(previous), _label(token),
        )

    def token_for(self, collateral_type: str) -> ReserveToken | None:
        return self._tokens.get(collateral_type)

    def is_initialized(self, collateral_type: str) -> bool:
        return collateral_type in self._tokens


class VaultEligibilityRegistry:
    """Per-vault enabled flag. Vaults default to disabled."""

    def __init__(
        self,
        auth: AuthorizationRegistry,
        collateral_types: CollateralTypeRegistry,
        vault_registry: VaultRegistry,
    ) -> None:
        self._auth = auth
        self._collateral_types = collateral_types
        self._vault_registry = vault_registry
        self._eligible: dict[int, bool] = {}

    async def set_eligible(self, caller: str, vault_id: int, enabled: bool) -> None:
        self._auth.require(caller, Role.GOVERNANCE)
        collateral_type = await self._vault_registry.collateral_type_of(vault_id)
        if not self._collateral_types.is_initialized(collateral_type):
            raise CollateralTypeUninitialized(collateral_type)
        self._eligible[vault_id] = bool(enabled)
        logger.info(
            "Vault %d (%s) %s for rescue",
            vault_id, collateral_type, "enabled" if enabled else "disabled",
        )

    def is_eligible(self, vault_id: int) -> bool:
        return self._eligible.get(vault_id, False)

    def eligible_vaults(self) -> tuple[int, ...]:
        return tuple(sorted(v for v, on in self._eligible.items() if on))


def _label(token: ReserveToken) -> str:
    return getattr(token, "address", None) or repr(token)
