"""Role-based authorization table."""
from __future__ import annotations

import logging
from collections import defaultdict
from enum import Enum

from .errors import Unauthorized

logger = logging.getLogger(__name__)


class Role(str, Enum):
    ADMIN = "admin"            # may grant and revoke roles
    GOVERNANCE = "governance"  # registries and rescue parameters
    PROTOCOL = "protocol"      # may trigger rescues

    def __str__(self) -> str:
        return self.value


class AuthorizationRegistry:
    """Explicit principal -> role set table with guarded mutation."""

    def __init__(self, deployer: str) -> None:
        if not deployer:
            raise ValueError("Deployer principal must not be empty")
        self._roles: dict[str, set[Role]] = defaultdict(set)
        self._roles[deployer].update({Role.ADMIN, Role.GOVERNANCE})
        logger.info("Authorization table created, admin=%s", deployer)

    def is_authorized(self, principal: str, role: Role) -> bool:
        return role in self._roles.get(principal, ())

    def require(self, principal: str, role: Role) -> None:
        if not self.is_authorized(principal, role):
            logger.warning("Rejected %s call from %s", role, principal)
            raise Unauthorized(principal, role)

    def members(self, role: Role) -> tuple[str, ...]:
        return tuple(sorted(p for p, roles in self._roles.items() if role in roles))

    def grant(self, caller: str, role: Role, principal: str) -> None:
        self.require(caller, Role.ADMIN)
        self._grant(role, principal)

    def revoke(self, caller: str, role: Role, principal: str) -> None:
        self.require(caller, Role.ADMIN)
        self._revoke(role, principal)

    def swap(self, caller: str, role: Role, old: str, new: str) -> None:
        """Move ``role`` from ``old`` to ``new`` in one step.

        Allowed for admins and for governance principals, since treasury and
        protocol-caller changes go through the governance parameter path.
        """
        if not (
            self.is_authorized(caller, Role.ADMIN)
            or self.is_authorized(caller, Role.GOVERNANCE)
        ):
            raise Unauthorized(caller, Role.GOVERNANCE)
        if not new:
            raise ValueError("New principal must not be empty")
        if old == new:
            return
        roles = self._roles.get(old)
        if roles is not None:
            roles.discard(role)
            if not roles:
                del self._roles[old]
        self._roles[new].add(role)
        logger.info("Moved %s from %s to %s", role, old, new)

    def bootstrap(self, role: Role, principal: str) -> None:
        """Grant ``role`` without a caller check.

        Only for principals named when the engine is constructed (treasury,
        protocol caller); later changes go through ``grant`` or ``swap``.
        """
        self._grant(role, principal)

    def _grant(self, role: Role, principal: str) -> None:
        if not principal:
            raise ValueError("Principal must not be empty")
        self._roles[principal].add(role)
        logger.info("Granted %s to %s", role, principal)

    def _revoke(self, role: Role, principal: str) -> None:
        roles = self._roles.get(principal)
        if roles is None or role not in roles:
            return
        roles.discard(role)
        if not roles:
            del self._roles[principal]
        logger.info("Revoked %s from %s", role, principal)
