"""Vault registry protocol — handler to vault id mapping."""
from typing import Protocol


class VaultRegistry(Protocol):
    """Resolves vault handlers and reports each vault's collateral type."""

    async def resolve(self, handler: str) -> int | None: ...

    async def collateral_type_of(self, vault_id: int) -> str: ...
