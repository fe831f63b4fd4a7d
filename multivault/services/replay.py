"""Scripted replays of engine operations against an in-memory engine."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from ..bootstrap import EngineContext
from ..errors import EngineError, InvalidInputError
from ..oracles import StaticPriceSource

logger = logging.getLogger(__name__)

STEP_KINDS = (
    "fund",
    "deposit",
    "withdraw",
    "set_ratio",
    "mint",
    "repay",
    "liquidate",
    "set_price",
)


@dataclass(frozen=True)
class StepOutcome:
    index: int
    op: str
    ok: bool
    detail: str = ""


def parse_amount(value: Any) -> int:
    """Parse an integer amount, accepting scientific notation.

    Examples:
        "100e18" → 100 * 10**18
        "1.5e8" → 150000000
        42 → 42
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid amount {value!r}")
    if isinstance(value, int):
        return value
    try:
        parsed = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid amount {value!r}") from None
    if parsed != parsed.to_integral_value():
        raise ValueError(f"Amount {value!r} is not a whole number of units")
    return int(parsed)


def load_script(path: str | Path) -> list[dict[str, Any]]:
    with open(path) as f:
        raw = yaml.safe_load(f) or {}
    steps = raw.get("steps", []) if isinstance(raw, dict) else raw
    for i, step in enumerate(steps):
        if step.get("op") not in STEP_KINDS:
            raise ValueError(f"Step {i} has unknown op {step.get('op')!r}")
    return steps


async def _approve_more(token: Any, owner: str, spender: str, amount: int) -> None:
    current = await token.allowance(owner, spender)
    await token.approve(owner, spender, current + amount)


async def run_step(ctx: EngineContext, step: dict[str, Any]) -> str:
    """Apply one step; returns a short description of the effect."""
    engine = ctx.engine
    op = step["op"]

    if op == "set_price":
        asset = engine.registry.find(step["asset"])
        source = engine.registry.entry(asset.address).price_source
        if not isinstance(source, StaticPriceSource):
            raise InvalidInputError(f"Price of {asset.symbol} is not settable")
        source.set_answer(parse_amount(step["answer"]))
        return f"{asset.symbol} price set to {step['answer']}"

    if op == "repay":
        amount = parse_amount(step["amount"])
        await _approve_more(ctx.stablecoin, step["user"], engine.address, amount)
        reductions = await engine.repay(step["user"], amount)
        return f"reductions {reductions}"

    asset = engine.registry.find(step["asset"]).address
    token = ctx.token(step["asset"])

    if op == "fund":
        amount = parse_amount(step["amount"])
        await token.mint(step["user"], amount)
        await _approve_more(token, step["user"], engine.address, amount)
        return f"{step['user']} funded with {amount}"
    if op == "deposit":
        position = await engine.deposit(step["user"], asset, parse_amount(step["amount"]))
    elif op == "withdraw":
        position = await engine.withdraw(step["user"], asset, parse_amount(step["amount"]))
    elif op == "set_ratio":
        position = await engine.set_margin_ratio(step["user"], asset, int(step["ratio"]))
    elif op == "mint":
        position = await engine.mint(step["user"], asset, parse_amount(step["amount"]))
    else:
        amount = parse_amount(step["amount"])
        await _approve_more(ctx.stablecoin, step["liquidator"], engine.address, amount)
        result = await engine.liquidate(step["liquidator"], step["user"], asset, amount)
        return (
            f"repaid {result.repaid_amount}, seized {result.collateral_taken}, "
            f"fee {result.fee_amount}"
        )

    return f"collateral {position.collateral_amount}, debt {position.debt}"


async def replay(ctx: EngineContext, steps: list[dict[str, Any]]) -> list[StepOutcome]:
    """Run every step in order; rejected steps are recorded and skipped."""
    outcomes: list[StepOutcome] = []
    for i, step in enumerate(steps):
        op = step.get("op", "")
        try:
            detail = await run_step(ctx, step)
        except EngineError as e:
            logger.warning("Step %d (%s) rejected: %s: %s", i, op, type(e).__name__, e)
            outcomes.append(StepOutcome(i, op, False, f"{type(e).__name__}: {e}"))
            continue
        logger.debug("Step %d (%s): %s", i, op, detail)
        outcomes.append(StepOutcome(i, op, True, detail))
    return outcomes
