"""Governance-settable rescue parameters."""
from __future__ import annotations

import logging
from typing import Any

from .auth import AuthorizationRegistry, Role
from .errors import UnrecognizedParameter
from .fixed_point import format_wad
from .models import RescueParameters

logger = logging.getLogger(__name__)


class RescueParameterStore:
    """Holds the liquidator reward, treasury and protocol caller.

    The treasury carries the GOVERNANCE role and the protocol caller the
    PROTOCOL role; changing either moves the role in the same update.
    """

    def __init__(
        self,
        auth: AuthorizationRegistry,
        treasury: str,
        protocol_caller: str,
        liquidator_reward: int = 0,
    ) -> None:
        if liquidator_reward < 0:
            raise ValueError("liquidator_reward must be non-negative")
        self._auth = auth
        self._current = RescueParameters(
            liquidator_reward=liquidator_reward,
            treasury=treasury,
            protocol_caller=protocol_caller,
        )
        auth.bootstrap(Role.GOVERNANCE, treasury)
        auth.bootstrap(Role.PROTOCOL, protocol_caller)

    @property
    def current(self) -> RescueParameters:
        return self._current

    @property
    def liquidator_reward(self) -> int:
        return self._current.liquidator_reward

    @property
    def treasury(self) -> str:
        return self._current.treasury

    @property
    def protocol_caller(self) -> str:
        return self._current.protocol_caller

    def modify_parameters(self, caller: str, parameter: str, value: Any) -> None:
        self._auth.require(caller, Role.GOVERNANCE)
        params = self._current

        if parameter == "liquidator_reward":
            reward = int(value)
            if reward < 0:
                raise ValueError("liquidator_reward must be non-negative")
            self._current = RescueParameters(
                reward, params.treasury, params.protocol_caller
            )
            logger.info("Liquidator reward set to %s", format_wad(reward))
        elif parameter == "treasury":
            treasury = _principal(value)
            self._auth.swap(caller, Role.GOVERNANCE, params.treasury, treasury)
            self._current = RescueParameters(
                params.liquidator_reward, treasury, params.protocol_caller
            )
            logger.info("Treasury changed from %s to %s", params.treasury, treasury)
        elif parameter == "protocol_caller":
            protocol_caller = _principal(value)
            self._auth.swap(
                caller, Role.PROTOCOL, params.protocol_caller, protocol_caller
            )
            self._current = RescueParameters(
                params.liquidator_reward, params.treasury, protocol_caller
            )
            logger.info(
                "Protocol caller changed from %s to %s",
                params.protocol_caller, protocol_caller,
            )
        else:
            raise UnrecognizedParameter(parameter)


def _principal(value: Any) -> str:
    if not isinstance(value, str) or not value:
        raise ValueError(f"Invalid principal: {value!r}")
    return value
