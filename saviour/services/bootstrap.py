"""Build a configured RescueEngine from AppConfig."""
from __future__ import annotations

import logging
from typing import Iterable, Mapping

from ..config import AppConfig
from ..interfaces.collateral_sink import CollateralSink
from ..interfaces.ledger import Ledger
from ..interfaces.notifier import Notifier
from ..interfaces.price_oracle import PriceOracle
from ..interfaces.reserve_token import ReserveToken
from ..interfaces.vault_registry import VaultRegistry
from ..ledger import FixedPriceOracle
from ..notifications import TelegramNotifier
from ..oracles import PythOracle
from .rescue_engine import RescueEngine

logger = logging.getLogger(__name__)


def build_oracle(config: AppConfig) -> PriceOracle:
    oracle_cfg = config.price_oracle
    if oracle_cfg.provider == "fixed":
        return FixedPriceOracle(oracle_cfg.fixed_price)
    return PythOracle(oracle_cfg.pyth)


def build_notifiers(config: AppConfig) -> list[Notifier]:
    notifiers: list[Notifier] = []
    if config.notifications.telegram.enabled:
        notifiers.append(TelegramNotifier(config.notifications.telegram))
    return notifiers


async def build_engine(
    config: AppConfig,
    *,
    vault_registry: VaultRegistry,
    ledger: Ledger,
    sink: CollateralSink,
    tokens: Mapping[str, ReserveToken],
    oracle: PriceOracle | None = None,
    notifiers: Iterable[Notifier] | None = None,
) -> RescueEngine:
    """Construct the engine and replay configured bindings and eligibility.

    ``tokens`` maps reserve token addresses (as written in the config) to
    token handles. Governance calls are made as the configured deployer.
    """
    engine_cfg = config.engine
    engine = RescueEngine(
        address=engine_cfg.address,
        deployer=engine_cfg.deployer,
        protocol_caller=engine_cfg.protocol_caller,
        treasury=engine_cfg.treasury,
        vault_registry=vault_registry,
        ledger=ledger,
        oracle=oracle if oracle is not None else build_oracle(config),
        sink=sink,
        liquidator_reward=engine_cfg.liquidator_reward,
        notifiers=build_notifiers(config) if notifiers is None else notifiers,
    )

    for collateral_type, token_address in config.collateral_types.items():
        try:
            token = tokens[token_address]
        except KeyError:
            raise ValueError(
                f"No token handle for {token_address!r} ({collateral_type})"
            ) from None
        engine.register_collateral_type(engine_cfg.deployer, collateral_type, token)

    for vault_id in config.eligible_vaults:
        await engine.set_eligible(engine_cfg.deployer, vault_id, True)

    logger.info(
        "Engine %s ready: %d collateral type(s), %d eligible vault(s)",
        engine.address, len(config.collateral_types), len(config.eligible_vaults),
    )
    return engine
