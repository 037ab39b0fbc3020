"""Exceptions raised by the rescue engine and its registries."""
from __future__ import annotations

from typing import Any


class RescueError(Exception):
    """Base class for every rejected governance or rescue call."""


class Unauthorized(RescueError):
    """Caller does not hold the role the operation requires."""

    def __init__(self, principal: str, role: Any) -> None:
        super().__init__(f"{principal!r} is not authorized for {role}")
        self.principal = principal
        self.role = role


class AlreadyInitialized(RescueError):
    """Collateral type already has a reserve token bound."""

    def __init__(self, collateral_type: str) -> None:
        super().__init__(f"Collateral type {collateral_type!r} is already initialized")
        self.collateral_type = collateral_type


class Uninitialized(RescueError):
    """Collateral type has no reserve token to reassign."""

    def __init__(self, collateral_type: str) -> None:
        super().__init__(f"Collateral type {collateral_type!r} is not initialized")
        self.collateral_type = collateral_type


class CollateralTypeUninitialized(RescueError):
    """A vault's collateral type has no reserve token binding."""

    def __init__(self, collateral_type: str) -> None:
        super().__init__(
            f"Collateral type {collateral_type!r} has no reserve token binding"
        )
        self.collateral_type = collateral_type


class VaultNotEligible(RescueError):
    def __init__(self, vault_id: int) -> None:
        super().__init__(f"Vault {vault_id} is not enabled for rescue")
        self.vault_id = vault_id


class CollateralTypeMismatch(RescueError):
    """Rescue named a collateral type the vault is not opened in."""

    def __init__(self, vault_id: int, expected: str, given: str) -> None:
        super().__init__(
            f"Vault {vault_id} holds {expected!r} collateral, not {given!r}"
        )
        self.vault_id = vault_id
        self.expected = expected
        self.given = given


class SafetyRatioNotMet(RescueError):
    """Computed top-up would not restore the position (or none is needed)."""


class CollateralTransferFailed(RescueError):
    """Treasury funding came up short of the required amount."""


class UnrecognizedParameter(RescueError):
    def __init__(self, parameter: str) -> None:
        super().__init__(f"Unrecognized parameter {parameter!r}")
        self.parameter = parameter
