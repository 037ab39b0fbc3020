"""Scenario runner — replays rescues against in-memory collaborators.

A scenario file looks like::

    oracle_price: "1800"
    liquidator_reward: "0.5"
    collateral_types:
      ETH-A:
        token: WETH
        accumulated_rate: "1.0"
        liquidation_price: "1.0"
        safety_price: "0.9"
        treasury_balance: "1000"
        fee_bps: 0
    vaults:
      - {handler: alice, collateral_type: ETH-A, locked: "100", debt: "110"}
      - {handler: bob, collateral_type: ETH-A, locked: "100", debt: "95", eligible: false}
    rescues:
      - {handler: alice, collateral_type: ETH-A}
      - {handler: nobody, collateral_type: ETH-A}

Amounts and prices are decimals; ``rescues`` defaults to every vault.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from ..config import AppConfig, EngineConfig, PriceOracleConfig
from ..fixed_point import to_ray, to_wad
from ..ledger import FixedPriceOracle, InMemoryCollateralSink, InMemoryLedger, InMemoryToken
from ..models import RescueOutcome
from .bootstrap import build_engine
from .rescue_engine import RescueEngine

logger = logging.getLogger(__name__)

GOVERNANCE = "governance"
LIQUIDATION_ENGINE = "liquidation-engine"
TREASURY = "treasury"
SAVIOUR = "saviour"
COLLATERAL_JOIN = "collateral-join"


@dataclass
class ScenarioResult:
    engine: RescueEngine
    ledger: InMemoryLedger
    tokens: dict[str, InMemoryToken]
    outcomes: list[tuple[str, RescueOutcome]] = field(default_factory=list)


def load_scenario(path: str | Path) -> dict[str, Any]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Scenario file not found: {path}")
    with open(path) as f:
        raw = yaml.safe_load(f) or {}
    if not raw.get("collateral_types"):
        raise ValueError("Scenario must define at least one collateral type")
    return raw


async def run_scenario(raw: dict[str, Any]) -> ScenarioResult:
    ledger = InMemoryLedger()
    tokens_by_type: dict[str, InMemoryToken] = {}
    tokens_by_address: dict[str, InMemoryToken] = {}
    bindings: dict[str, str] = {}

    for collateral_type, spec in raw["collateral_types"].items():
        token = InMemoryToken(str(spec.get("token", collateral_type)), int(spec.get("fee_bps", 0)))
        balance = to_wad(spec.get("treasury_balance", 0))
        if balance:
            token.mint(TREASURY, balance)
        await token.approve(TREASURY, SAVIOUR, balance)
        ledger.set_rates(
            collateral_type,
            accumulated_rate=to_ray(spec.get("accumulated_rate", 1)),
            liquidation_price=to_ray(spec.get("liquidation_price", 1)),
            safety_price=to_ray(spec.get("safety_price", 1)),
        )
        tokens_by_type[collateral_type] = token
        tokens_by_address[token.address] = token
        bindings[collateral_type] = token.address

    eligible: list[int] = []
    for vault in raw.get("vaults", []):
        vault_id = ledger.open_vault(
            vault["collateral_type"],
            str(vault["handler"]),
            locked_collateral=to_wad(vault.get("locked", 0)),
            generated_debt=to_wad(vault.get("debt", 0)),
        )
        if vault.get("eligible", True):
            eligible.append(vault_id)

    config = AppConfig(
        engine=EngineConfig(
            address=SAVIOUR,
            deployer=GOVERNANCE,
            protocol_caller=LIQUIDATION_ENGINE,
            treasury=TREASURY,
            liquidator_reward=to_wad(raw.get("liquidator_reward", 0)),
        ),
        collateral_types=bindings,
        eligible_vaults=tuple(eligible),
        price_oracle=PriceOracleConfig(
            provider="fixed", fixed_price=to_wad(raw.get("oracle_price", 1))
        ),
    )
    engine = await build_engine(
        config,
        vault_registry=ledger,
        ledger=ledger,
        sink=InMemoryCollateralSink(COLLATERAL_JOIN, SAVIOUR),
        tokens=tokens_by_address,
        oracle=FixedPriceOracle(config.price_oracle.fixed_price),
        notifiers=[],
    )

    result = ScenarioResult(engine=engine, ledger=ledger, tokens=tokens_by_type)
    rescues = raw.get("rescues") or [
        {"handler": v["handler"], "collateral_type": v["collateral_type"]}
        for v in raw.get("vaults", [])
    ]
    for item in rescues:
        handler = str(item["handler"])
        outcome = await engine.attempt_rescue(
            LIQUIDATION_ENGINE, item["collateral_type"], handler
        )
        result.outcomes.append((handler, outcome))
    return result
