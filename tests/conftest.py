"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from collections.abc import Awaitable, Callable
from pathlib import Path

import pytest
import pytest_asyncio

from multivault.bootstrap import EngineContext, build_engine
from multivault.config import (
    AppConfig,
    AssetConfig,
    EngineConfig,
    MonitorConfig,
    PriceSourceConfig,
    RiskConfig,
    StablecoinConfig,
)
from multivault.engine import Engine
from multivault.models import Position

OWNER = "owner"
ENGINE = "multivault"

# Oracle answers carry 8 decimals unless stated otherwise
WETH_PRICE = 2_000 * 10**8
WBTC_PRICE = 30_000 * 10**8
USDC_PRICE = 1_000_000  # 6-decimal oracle


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_assets() -> tuple[AssetConfig, ...]:
    return (
        AssetConfig(
            symbol="WETH",
            address="WETH",
            decimals=18,
            price=PriceSourceConfig(provider="static", answer=WETH_PRICE, decimals=8),
        ),
        AssetConfig(
            symbol="WBTC",
            address="WBTC",
            decimals=8,
            price=PriceSourceConfig(provider="static", answer=WBTC_PRICE, decimals=8),
        ),
        AssetConfig(
            symbol="USDC",
            address="USDC",
            decimals=6,
            price=PriceSourceConfig(provider="static", answer=USDC_PRICE, decimals=6),
        ),
    )


@pytest.fixture()
def sample_app_config(sample_assets: tuple[AssetConfig, ...]) -> AppConfig:
    return AppConfig(
        engine=EngineConfig(address=ENGINE, owner=OWNER),
        risk=RiskConfig(
            min_margin_ratio=110,
            liquidation_threshold=100,
            liquidation_bonus=10,
            liquidation_fee=5,
        ),
        stablecoin=StablecoinConfig(symbol="mUSD", address="mUSD", decimals=18),
        assets=sample_assets,
        monitor=MonitorConfig(health_warning=120),
    )


# ---------------------------------------------------------------------------
# Engine fixtures
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture()
async def ctx(sample_app_config: AppConfig) -> EngineContext:
    return await build_engine(sample_app_config)


@pytest.fixture()
def engine(ctx: EngineContext) -> Engine:
    return ctx.engine


@pytest.fixture()
def fund(ctx: EngineContext) -> Callable[[str, str, int], Awaitable[None]]:
    """Give ``user`` collateral tokens and approve the engine to pull them."""

    async def _fund(user: str, symbol: str, amount: int) -> None:
        token = ctx.token(symbol)
        await token.mint(user, amount)
        allowed = await token.allowance(user, ENGINE)
        await token.approve(user, ENGINE, allowed + amount)

    return _fund


@pytest.fixture()
def fund_stable(ctx: EngineContext) -> Callable[[str, int], Awaitable[None]]:
    """Give ``user`` stablecoin and approve the engine to pull it."""

    async def _fund(user: str, amount: int) -> None:
        await ctx.stablecoin.mint(user, amount)
        allowed = await ctx.stablecoin.allowance(user, ENGINE)
        await ctx.stablecoin.approve(user, ENGINE, allowed + amount)

    return _fund


@pytest.fixture()
def open_position(
    engine: Engine, fund: Callable[[str, str, int], Awaitable[None]]
) -> Callable[..., Awaitable[Position]]:
    """Deposit, set a ratio and mint in one go."""

    async def _open(user: str, symbol: str, collateral: int, ratio: int, debt: int) -> Position:
        await fund(user, symbol, collateral)
        await engine.deposit(user, symbol, collateral)
        position = await engine.set_margin_ratio(user, symbol, ratio)
        if debt:
            position = await engine.mint(user, symbol, debt)
        return position

    return _open


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    engine:
      address: multivault
      owner: "${MULTIVAULT_OWNER}"
    risk:
      min_margin_ratio: 110
      liquidation_threshold: 100
      liquidation_bonus: 10
      liquidation_fee: 5
    stablecoin:
      symbol: mUSD
      decimals: 18
    assets:
      - symbol: WETH
        decimals: 18
        price: {provider: static, answer: 200000000000, decimals: 8}
      - symbol: WBTC
        decimals: 8
        price: {provider: pyth, feed_id: "e62df6c8b4a85fe1"}
    price_oracle:
      pyth:
        hermes_url: "https://hermes.example.com"
    monitor:
      health_warning: 125
    notifications:
      telegram:
        enabled: false
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("MULTIVAULT_OWNER", "0xOWNER")
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
