"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from dataclasses import dataclass
from pathlib import Path

import pytest

from saviour.config import (
    AppConfig,
    EngineConfig,
    NotificationsConfig,
    PriceOracleConfig,
    PythConfig,
    TelegramConfig,
)
from saviour.fixed_point import RAY, WAD, to_ray, to_wad
from saviour.ledger import FixedPriceOracle, InMemoryCollateralSink, InMemoryLedger, InMemoryToken
from saviour.services.rescue_engine import RescueEngine

GOVERNANCE = "governance"
LIQUIDATION_ENGINE = "liquidation-engine"
TREASURY = "treasury"
SAVIOUR = "saviour"
JOIN = "collateral-join"
TKN = "TKN"


# ---------------------------------------------------------------------------
# In-memory world
# ---------------------------------------------------------------------------


@dataclass
class World:
    engine: RescueEngine
    ledger: InMemoryLedger
    token: InMemoryToken
    sink: InMemoryCollateralSink
    oracle: FixedPriceOracle


@pytest.fixture()
def ledger() -> InMemoryLedger:
    ledger = InMemoryLedger()
    ledger.set_rates(
        TKN,
        accumulated_rate=RAY,
        liquidation_price=RAY,
        safety_price=to_ray("0.9"),
    )
    return ledger


@pytest.fixture()
def token() -> InMemoryToken:
    token = InMemoryToken("T")
    token.mint(TREASURY, 1_000 * WAD)
    token.allowances[(TREASURY, SAVIOUR)] = 1_000 * WAD
    return token


@pytest.fixture()
def world(ledger: InMemoryLedger, token: InMemoryToken) -> World:
    sink = InMemoryCollateralSink(JOIN, SAVIOUR)
    oracle = FixedPriceOracle(WAD)
    engine = RescueEngine(
        address=SAVIOUR,
        deployer=GOVERNANCE,
        protocol_caller=LIQUIDATION_ENGINE,
        treasury=TREASURY,
        vault_registry=ledger,
        ledger=ledger,
        oracle=oracle,
        sink=sink,
        liquidator_reward=to_wad("0.5"),
    )
    engine.register_collateral_type(GOVERNANCE, TKN, token)
    return World(engine=engine, ledger=ledger, token=token, sink=sink, oracle=oracle)


@pytest.fixture()
def open_vault(world: World):
    """Open a TKN vault with decimal amounts and return its id."""

    def _open(handler: str, locked: str = "100", debt: str = "110") -> int:
        return world.ledger.open_vault(
            TKN, handler, locked_collateral=to_wad(locked), generated_debt=to_wad(debt)
        )

    return _open


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_app_config() -> AppConfig:
    return AppConfig(
        engine=EngineConfig(
            address=SAVIOUR,
            deployer=GOVERNANCE,
            protocol_caller=LIQUIDATION_ENGINE,
            treasury=TREASURY,
            liquidator_reward=to_wad("0.5"),
        ),
        collateral_types={TKN: "T"},
        eligible_vaults=(1,),
        price_oracle=PriceOracleConfig(provider="fixed", fixed_price=WAD),
        notifications=NotificationsConfig(
            telegram=TelegramConfig(
                enabled=True,
                alert_bot_token="fake-alert-token",
                log_bot_token="fake-log-token",
                chat_id="12345",
            ),
        ),
    )


@pytest.fixture()
def sample_pyth_config() -> PythConfig:
    return PythConfig(
        hermes_url="https://hermes.example.com/v2/updates/price/latest",
        feed_id="0xAAA111",
    )


SAMPLE_YAML = textwrap.dedent("""\
    engine:
      address: saviour
      deployer: governance
      protocol_caller: liquidation-engine
      treasury: treasury
      liquidator_reward: "0.5"
    collateral_types:
      ETH-A: WETH
      TKN: T
    eligible_vaults: [1, 2]
    price_oracle:
      provider: pyth
      pyth:
        hermes_url: "https://hermes.example.com"
        feed_id: "aaa"
    notifications:
      telegram:
        enabled: true
        alert_bot_token: "tok1"
        log_bot_token: "tok2"
        chat_id: "999"
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
