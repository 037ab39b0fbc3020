"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .fixed_point import to_wad

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EngineConfig:
    address: str = "saviour"
    deployer: str = ""
    protocol_caller: str = ""
    treasury: str = ""
    liquidator_reward: int = 0  # WAD


@dataclass(frozen=True)
class PythConfig:
    hermes_url: str = "https://hermes.pyth.network/v2/updates/price/latest"
    feed_id: str = ""


@dataclass(frozen=True)
class PriceOracleConfig:
    provider: str = "pyth"
    fixed_price: int = 0  # WAD
    pyth: PythConfig = field(default_factory=PythConfig)


@dataclass(frozen=True)
class TelegramConfig:
    enabled: bool = False
    alert_bot_token: str = ""
    log_bot_token: str = ""
    chat_id: str = ""


@dataclass(frozen=True)
class NotificationsConfig:
    telegram: TelegramConfig = field(default_factory=TelegramConfig)


@dataclass(frozen=True)
class AppConfig:
    engine: EngineConfig = field(default_factory=EngineConfig)
    collateral_types: dict[str, str] = field(default_factory=dict)
    eligible_vaults: tuple[int, ...] = ()
    price_oracle: PriceOracleConfig = field(default_factory=PriceOracleConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)


_ORACLE_PROVIDERS = ("pyth", "fixed")

# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_engine(raw: dict[str, Any]) -> EngineConfig:
    return EngineConfig(
        address=str(raw.get("address", "saviour")),
        deployer=str(raw.get("deployer", "")),
        protocol_caller=str(raw.get("protocol_caller", "")),
        treasury=str(raw.get("treasury", "")),
        liquidator_reward=to_wad(raw.get("liquidator_reward", 0)),
    )


def _build_collateral_types(raw: dict[str, Any]) -> dict[str, str]:
    return {str(name): str(token) for name, token in raw.items()}


def _build_eligible_vaults(raw: list[Any]) -> tuple[int, ...]:
    vaults: list[int] = []
    for item in raw:
        try:
            vaults.append(int(item))
        except (TypeError, ValueError):
            raise ValueError(f"Eligible vault id must be an integer, got {item!r}") from None
    return tuple(vaults)


def _build_price_oracle(raw: dict[str, Any]) -> PriceOracleConfig:
    pyth_raw = raw.get("pyth", {})
    return PriceOracleConfig(
        provider=raw.get("provider", "pyth"),
        fixed_price=to_wad(raw.get("fixed_price", 0)),
        pyth=PythConfig(
            hermes_url=pyth_raw.get("hermes_url", PythConfig.hermes_url),
            feed_id=pyth_raw.get("feed_id", ""),
        ),
    )


def _build_notifications(raw: dict[str, Any]) -> NotificationsConfig:
    tg = raw.get("telegram", {})
    return NotificationsConfig(
        telegram=TelegramConfig(
            enabled=bool(tg.get("enabled", False)),
            alert_bot_token=tg.get("alert_bot_token", ""),
            log_bot_token=tg.get("log_bot_token", ""),
            chat_id=str(tg.get("chat_id", "")),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        engine=_build_engine(raw.get("engine", {})),
        collateral_types=_build_collateral_types(raw.get("collateral_types", {})),
        eligible_vaults=_build_eligible_vaults(raw.get("eligible_vaults", [])),
        price_oracle=_build_price_oracle(raw.get("price_oracle", {})),
        notifications=_build_notifications(raw.get("notifications", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    engine = cfg.engine
    for name in ("address", "deployer", "protocol_caller", "treasury"):
        if not getattr(engine, name):
            raise ValueError(f"Engine '{name}' must be configured")

    for collateral_type, token in cfg.collateral_types.items():
        if not token:
            raise ValueError(f"Collateral type '{collateral_type}' has no reserve token")

    oracle = cfg.price_oracle
    if oracle.provider not in _ORACLE_PROVIDERS:
        raise ValueError(f"Unknown price oracle provider '{oracle.provider}'")
    if oracle.provider == "pyth" and not oracle.pyth.feed_id:
        raise ValueError("Pyth price oracle requires a feed_id")
    if oracle.provider == "fixed" and oracle.fixed_price <= 0:
        raise ValueError("Fixed price oracle requires a positive fixed_price")
