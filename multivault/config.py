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

from .constants import (
    LIQUIDATION_BONUS,
    LIQUIDATION_FEE,
    LIQUIDATION_THRESHOLD,
    MIN_MARGIN_RATIO,
)

logger = logging.getLogger(__name__)

PRICE_PROVIDERS = ("static", "pyth")

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EngineConfig:
    address: str = "multivault"
    owner: str = "owner"


@dataclass(frozen=True)
class RiskConfig:
    min_margin_ratio: int = MIN_MARGIN_RATIO
    liquidation_threshold: int = LIQUIDATION_THRESHOLD
    liquidation_bonus: int = LIQUIDATION_BONUS
    liquidation_fee: int = LIQUIDATION_FEE


@dataclass(frozen=True)
class StablecoinConfig:
    symbol: str = "mUSD"
    address: str = "mUSD"
    decimals: int = 18


@dataclass(frozen=True)
class PriceSourceConfig:
    provider: str = "static"
    answer: int = 0
    decimals: int = 8
    feed_id: str = ""


@dataclass(frozen=True)
class AssetConfig:
    symbol: str = ""
    address: str = ""
    decimals: int = 18
    price: PriceSourceConfig = field(default_factory=PriceSourceConfig)


@dataclass(frozen=True)
class PythConfig:
    hermes_url: str = "https://hermes.pyth.network/v2/updates/price/latest"


@dataclass(frozen=True)
class PriceOracleConfig:
    pyth: PythConfig = field(default_factory=PythConfig)


@dataclass(frozen=True)
class MonitorConfig:
    health_warning: int = 120


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
    risk: RiskConfig = field(default_factory=RiskConfig)
    stablecoin: StablecoinConfig = field(default_factory=StablecoinConfig)
    assets: tuple[AssetConfig, ...] = ()
    price_oracle: PriceOracleConfig = field(default_factory=PriceOracleConfig)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)


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
        address=str(raw.get("address", EngineConfig.address)),
        owner=str(raw.get("owner", EngineConfig.owner)),
    )


def _build_risk(raw: dict[str, Any]) -> RiskConfig:
    return RiskConfig(
        min_margin_ratio=int(raw.get("min_margin_ratio", MIN_MARGIN_RATIO)),
        liquidation_threshold=int(raw.get("liquidation_threshold", LIQUIDATION_THRESHOLD)),
        liquidation_bonus=int(raw.get("liquidation_bonus", LIQUIDATION_BONUS)),
        liquidation_fee=int(raw.get("liquidation_fee", LIQUIDATION_FEE)),
    )


def _build_stablecoin(raw: dict[str, Any]) -> StablecoinConfig:
    symbol = str(raw.get("symbol", StablecoinConfig.symbol))
    return StablecoinConfig(
        symbol=symbol,
        address=str(raw.get("address", symbol)),
        decimals=int(raw.get("decimals", 18)),
    )


def _build_assets(raw: list[dict[str, Any]]) -> tuple[AssetConfig, ...]:
    assets: list[AssetConfig] = []
    for a in raw:
        price_raw = a.get("price", {})
        symbol = str(a.get("symbol", ""))
        assets.append(
            AssetConfig(
                symbol=symbol,
                address=str(a.get("address", symbol)),
                decimals=int(a.get("decimals", 18)),
                price=PriceSourceConfig(
                    provider=price_raw.get("provider", "static"),
                    answer=int(price_raw.get("answer", 0)),
                    decimals=int(price_raw.get("decimals", 8)),
                    feed_id=str(price_raw.get("feed_id", "")),
                ),
            )
        )
    return tuple(assets)


def _build_price_oracle(raw: dict[str, Any]) -> PriceOracleConfig:
    pyth_raw = raw.get("pyth", {})
    return PriceOracleConfig(
        pyth=PythConfig(hermes_url=pyth_raw.get("hermes_url", PythConfig.hermes_url)),
    )


def _build_monitor(raw: dict[str, Any]) -> MonitorConfig:
    return MonitorConfig(health_warning=int(raw.get("health_warning", 120)))


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


def parse_config(raw: dict[str, Any]) -> AppConfig:
    """Build and validate an ``AppConfig`` from an already-parsed mapping."""
    raw = _interpolate_env(raw or {})

    cfg = AppConfig(
        engine=_build_engine(raw.get("engine") or {}),
        risk=_build_risk(raw.get("risk") or {}),
        stablecoin=_build_stablecoin(raw.get("stablecoin") or {}),
        assets=_build_assets(raw.get("assets") or []),
        price_oracle=_build_price_oracle(raw.get("price_oracle") or {}),
        monitor=_build_monitor(raw.get("monitor") or {}),
        notifications=_build_notifications(raw.get("notifications") or {}),
    )

    _validate(cfg)
    return cfg


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate engine configuration from YAML + .env.

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
        raw = yaml.safe_load(f)

    cfg = parse_config(raw)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.engine.owner:
        raise ValueError("Engine owner must be set")

    risk = cfg.risk
    if not 0 <= risk.liquidation_fee < 100:
        raise ValueError("liquidation_fee must be in [0, 100)")
    if risk.liquidation_bonus < 0:
        raise ValueError("liquidation_bonus must be non-negative")
    if risk.liquidation_threshold <= 0:
        raise ValueError("liquidation_threshold must be positive")
    if risk.min_margin_ratio < risk.liquidation_threshold:
        raise ValueError("min_margin_ratio must not be below liquidation_threshold")

    if not cfg.assets:
        raise ValueError("At least one asset must be configured")

    seen: set[str] = set()
    for asset in cfg.assets:
        if not asset.symbol:
            raise ValueError("Asset has no symbol")
        if asset.symbol in seen or asset.address in seen:
            raise ValueError(f"Duplicate asset '{asset.symbol}'")
        seen.update((asset.symbol, asset.address))

        price = asset.price
        if price.provider not in PRICE_PROVIDERS:
            raise ValueError(
                f"Asset '{asset.symbol}' uses unknown price provider '{price.provider}'"
            )
        if price.provider == "static" and price.answer <= 0:
            raise ValueError(f"Asset '{asset.symbol}' needs a positive static answer")
        if price.provider == "pyth" and not price.feed_id:
            raise ValueError(f"Asset '{asset.symbol}' has no Pyth feed id")
