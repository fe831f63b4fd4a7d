"""Pure liquidation and repayment arithmetic — no I/O."""
from __future__ import annotations

from .constants import LIQUIDATION_BONUS, LIQUIDATION_FEE, PERCENT
from .errors import OverRepayError
from .fixed_point import checked_add, mul_div, saturating_sub
from .models import LiquidationResult, Position
from .scaling import asset_value, value_to_asset_amount


def plan_liquidation(
    position: Position,
    repay_amount: int,
    decimals: int,
    price: int,
    bonus: int = LIQUIDATION_BONUS,
    fee: int = LIQUIDATION_FEE,
) -> LiquidationResult:
    """Work out what a liquidation repaying ``repay_amount`` moves.

    The liquidator receives the collateral covering the repayment plus
    ``bonus`` percent. When the position cannot pay that much, all of its
    collateral is seized and the repayment shrinks to the collateral's
    value, so no more stablecoin is burned than the seized assets justify.
    ``fee`` percent of the seized collateral stays with the protocol.
    """
    needed = value_to_asset_amount(repay_amount, decimals, price)
    seized = checked_add(needed, mul_div(needed, bonus, PERCENT))
    repaid = repay_amount
    capped = False

    if seized > position.collateral_amount:
        seized = position.collateral_amount
        repaid = min(repay_amount, asset_value(seized, decimals, price))
        capped = True

    fee_amount = mul_div(seized, fee, PERCENT)
    return LiquidationResult(
        repaid_amount=repaid,
        collateral_taken=seized,
        fee_amount=fee_amount,
        net_to_liquidator=saturating_sub(seized, fee_amount),
        capped=capped,
    )


def split_repayment(amount: int, debts: list[tuple[str, int]]) -> dict[str, int]:
    """Spread ``amount`` over open positions in proportion to their debt.

    Each position but the last gets ``floor(amount * debt / total)``; the
    last one absorbs the truncation remainder, so the reductions always sum
    to ``amount``. If that remainder exceeds the last position's debt, the
    excess goes back to the earlier positions in order, up to their debt.

    Examples:
        split_repayment(10, [("A", 30), ("B", 70)]) → {"A": 3, "B": 7}
        split_repayment(10, [("A", 1), ("B", 1), ("C", 1)])  # raises OverRepayError
    """
    total = 0
    for _, debt in debts:
        total = checked_add(total, debt)
    if amount > total:
        raise OverRepayError(f"Repayment {amount} exceeds total debt {total}")
    if amount == 0:
        return {}

    reductions: dict[str, int] = {}
    remaining = amount
    last = len(debts) - 1
    for i, (asset, debt) in enumerate(debts):
        share = remaining if i == last else mul_div(amount, debt, total)
        reductions[asset] = share
        remaining -= share

    last_asset, last_debt = debts[last]
    excess = reductions[last_asset] - last_debt
    if excess > 0:
        reductions[last_asset] = last_debt
        for asset, debt in debts[:last]:
            take = min(debt - reductions[asset], excess)
            reductions[asset] += take
            excess -= take
            if excess == 0:
                break

    return reductions
