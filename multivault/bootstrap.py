"""Wire an engine, its tokens and price sources from configuration."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .config import AppConfig, AssetConfig, PythConfig
from .engine import Engine
from .interfaces import PriceSource
from .notifications import EventLog, LoggingEventSink, TelegramNotifier
from .oracles import PythPriceSource, StaticPriceSource
from .tokens import InMemoryToken

logger = logging.getLogger(__name__)


@dataclass
class EngineContext:
    """An engine together with the in-memory collaborators built for it."""

    engine: Engine
    stablecoin: InMemoryToken
    tokens: dict[str, InMemoryToken] = field(default_factory=dict)
    price_sources: dict[str, PriceSource] = field(default_factory=dict)
    event_log: EventLog = field(default_factory=EventLog)

    def token(self, symbol: str) -> InMemoryToken:
        try:
            return self.tokens[symbol.upper()]
        except KeyError:
            raise KeyError(f"Unknown asset symbol '{symbol}'") from None


def build_price_source(asset: AssetConfig, pyth: PythConfig) -> PriceSource:
    price = asset.price
    if price.provider == "pyth":
        return PythPriceSource(pyth, price.feed_id)
    return StaticPriceSource(price.answer, price.decimals)


async def build_engine(config: AppConfig) -> EngineContext:
    """Create the engine and register every configured asset in order."""
    stablecoin = InMemoryToken(
        config.stablecoin.address, config.stablecoin.symbol, config.stablecoin.decimals
    )
    event_log = EventLog()
    engine = Engine(
        stablecoin,
        address=config.engine.address,
        owner=config.engine.owner,
        risk=config.risk,
        sinks=[event_log, LoggingEventSink()],
    )
    if config.notifications.telegram.enabled:
        engine.add_sink(TelegramNotifier(config.notifications.telegram))

    ctx = EngineContext(engine=engine, stablecoin=stablecoin, event_log=event_log)
    for asset_cfg in config.assets:
        token = InMemoryToken(asset_cfg.address, asset_cfg.symbol, asset_cfg.decimals)
        source = build_price_source(asset_cfg, config.price_oracle.pyth)
        await engine.add_asset(config.engine.owner, token, source)
        ctx.tokens[asset_cfg.symbol.upper()] = token
        ctx.price_sources[asset_cfg.symbol.upper()] = source

    logger.info("Engine ready with %d asset(s)", len(ctx.tokens))
    return ctx
