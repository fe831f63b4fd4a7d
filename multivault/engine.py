"""Position state machine — the guarded transitions over the ledger."""
from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace

from .config import RiskConfig
from .errors import (
    BlacklistedError,
    InsufficientCollateralError,
    InsufficientSurplusError,
    InvalidInputError,
    MintExceedsCeilingError,
    NotEligibleError,
    PausedError,
    TransferFailedError,
    UnauthorizedError,
    UnsafeRatioError,
    UnsafeWithdrawalError,
)
from .fixed_point import checked_add, checked_sub, saturating_sub
from .guard import ReentrancyGuard
from .interfaces import EventSink, MintableToken, PriceSource, Token
from .ledger import PositionLedger, covers, health_ratio, liquidation_price, max_mintable
from .liquidation import plan_liquidation, split_repayment
from .models import (
    Asset,
    AssetAdded,
    AssetRemoved,
    Deposit,
    Event,
    Liquidated,
    LiquidationResult,
    Minted,
    OwnershipTransferred,
    Paused,
    Position,
    RatioSet,
    Repaid,
    Swept,
    TreasuryWithdrawn,
    Unpaused,
    Withdraw,
)
from .registry import AssetRegistry
from .scaling import asset_value, value_to_asset_amount
from .treasury import Treasury

logger = logging.getLogger(__name__)


class Engine:
    """Multi-collateral debt-position engine.

    Every mutating operation runs under one reentrancy guard and follows
    the same order: validate and compute the new state, perform the token
    transfers, commit to the ledger, then publish a record. Any error
    raised before the commit leaves the ledger and the treasury untouched.
    """

    def __init__(
        self,
        stablecoin: MintableToken,
        *,
        address: str = "multivault",
        owner: str = "owner",
        risk: RiskConfig | None = None,
        registry: AssetRegistry | None = None,
        sinks: Iterable[EventSink] = (),
    ) -> None:
        self.address = address
        self.owner = owner
        self.risk = risk or RiskConfig()
        self.registry = registry if registry is not None else AssetRegistry()
        self.ledger = PositionLedger()
        self.treasury = Treasury()
        self._stablecoin = stablecoin
        self._guard = ReentrancyGuard()
        self._sinks: list[EventSink] = list(sinks)
        self._paused = False
        self._blacklist: set[str] = set()

    @property
    def stablecoin(self) -> MintableToken:
        return self._stablecoin

    @property
    def paused(self) -> bool:
        return self._paused

    def is_blacklisted(self, account: str) -> bool:
        return account in self._blacklist

    def add_sink(self, sink: EventSink) -> None:
        self._sinks.append(sink)

    # ------------------------------------------------------------------
    # Checks and plumbing
    # ------------------------------------------------------------------

    def _require_active(self, caller: str) -> None:
        if self._paused:
            raise PausedError("Engine is paused")
        if caller in self._blacklist:
            raise BlacklistedError(f"Account {caller} is blacklisted")

    def _require_owner(self, caller: str) -> None:
        if caller != self.owner:
            raise UnauthorizedError(f"{caller} is not the owner")

    @staticmethod
    def _require_positive(amount: int, what: str = "Amount") -> None:
        if amount <= 0:
            raise InvalidInputError(f"{what} must be greater than zero")

    async def _pull(self, token: Token, owner: str, amount: int) -> None:
        if not await token.transfer_from(self.address, owner, self.address, amount):
            raise TransferFailedError(f"Transfer of {amount} {token.symbol} from {owner} failed")

    async def _push(self, token: Token, to: str, amount: int) -> None:
        if amount == 0:
            return
        if not await token.transfer(self.address, to, amount):
            raise TransferFailedError(f"Transfer of {amount} {token.symbol} to {to} failed")

    async def _emit(self, event: Event) -> None:
        for sink in self._sinks:
            try:
                await sink.publish(event)
            except Exception as e:
                logger.error("Event sink %s failed: %s", type(sink).__name__, e)

    async def _priced(self, address: str) -> tuple[Asset, int]:
        asset = self.registry.asset(address)
        return asset, await self.registry.price(address)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def get_position(self, user: str, asset: str) -> Position:
        return self.ledger.get(user, asset)

    def total_debt(self, user: str) -> int:
        """Debt summed over the user's positions in supported assets."""
        return self.ledger.total_debt(user, self.registry.assets())

    async def asset_value(self, asset: str, amount: int) -> int:
        meta, price = await self._priced(asset)
        return asset_value(amount, meta.decimals, price)

    async def value_to_asset_amount(self, asset: str, value: int) -> int:
        meta, price = await self._priced(asset)
        return value_to_asset_amount(value, meta.decimals, price)

    async def max_mintable(self, user: str, asset: str) -> int:
        meta, price = await self._priced(asset)
        return max_mintable(self.ledger.get(user, asset), meta.decimals, price)

    async def health_ratio(self, user: str, asset: str) -> int:
        meta, price = await self._priced(asset)
        return health_ratio(self.ledger.get(user, asset), meta.decimals, price)

    async def estimated_liquidation_price(self, user: str, asset: str) -> int:
        meta = self.registry.asset(asset)
        return liquidation_price(
            self.ledger.get(user, asset), meta.decimals, self.risk.liquidation_threshold
        )

    async def held_balance(self, asset: str) -> int:
        return await self.registry.entry(asset).token.balance_of(self.address)

    # ------------------------------------------------------------------
    # Position operations
    # ------------------------------------------------------------------

    async def deposit(self, user: str, asset: str, amount: int) -> Position:
        async with self._guard:
            self._require_active(user)
            self._require_positive(amount)
            entry = self.registry.entry(asset)

            position = self.ledger.get(user, asset)
            updated = replace(
                position,
                collateral_amount=checked_add(position.collateral_amount, amount),
            )

            await self._pull(entry.token, user, amount)
            self.ledger.commit(user, asset, updated)

            logger.info("Deposit — %s · %s · %d", user, entry.asset.symbol, amount)
            await self._emit(Deposit(user, asset, amount))
            return updated

    async def withdraw(self, user: str, asset: str, amount: int) -> Position:
        async with self._guard:
            self._require_active(user)
            self._require_positive(amount)
            entry = self.registry.entry(asset)

            position = self.ledger.get(user, asset)
            if amount > position.collateral_amount:
                raise InsufficientCollateralError(
                    f"Withdrawal of {amount} exceeds collateral {position.collateral_amount}"
                )
            remaining = position.collateral_amount - amount

            if position.debt > 0:
                price = await self.registry.price(asset)
                if not covers(
                    position, remaining, position.margin_ratio, entry.asset.decimals, price
                ):
                    raise UnsafeWithdrawalError(
                        f"Withdrawal would drop {user}'s {entry.asset.symbol} position "
                        f"below its {position.margin_ratio}% margin"
                    )

            updated = replace(position, collateral_amount=remaining)
            await self._push(entry.token, user, amount)
            self.ledger.commit(user, asset, updated)

            logger.info("Withdraw — %s · %s · %d", user, entry.asset.symbol, amount)
            await self._emit(Withdraw(user, asset, amount))
            return updated

    async def set_margin_ratio(self, user: str, asset: str, ratio: int) -> Position:
        async with self._guard:
            self._require_active(user)
            if ratio < self.risk.min_margin_ratio:
                raise InvalidInputError(
                    f"Margin ratio {ratio}% is below the {self.risk.min_margin_ratio}% minimum"
                )
            entry = self.registry.entry(asset)

            position = self.ledger.get(user, asset)
            if position.debt > 0:
                price = await self.registry.price(asset)
                if not covers(
                    position, position.collateral_amount, ratio, entry.asset.decimals, price
                ):
                    raise UnsafeRatioError(
                        f"Ratio {ratio}% is not covered by {user}'s current collateral"
                    )

            updated = replace(position, margin_ratio=ratio)
            self.ledger.commit(user, asset, updated)

            logger.info("RatioSet — %s · %s · %d%%", user, entry.asset.symbol, ratio)
            await self._emit(RatioSet(user, asset, ratio))
            return updated

    async def mint(self, user: str, asset: str, amount: int) -> Position:
        async with self._guard:
            self._require_active(user)
            self._require_positive(amount)
            entry = self.registry.entry(asset)

            position = self.ledger.get(user, asset)
            if position.margin_ratio < self.risk.min_margin_ratio:
                raise InvalidInputError(
                    f"Margin ratio for {entry.asset.symbol} has not been set"
                )

            price = await self.registry.price(asset)
            ceiling = max_mintable(position, entry.asset.decimals, price)
            new_debt = checked_add(position.debt, amount)
            if new_debt > ceiling:
                raise MintExceedsCeilingError(
                    f"Debt {new_debt} would exceed ceiling {ceiling}"
                )

            updated = replace(position, debt=new_debt)
            await self._stablecoin.mint(user, amount)
            self.ledger.commit(user, asset, updated)

            logger.info("Minted — %s · %s · %d", user, entry.asset.symbol, amount)
            await self._emit(Minted(user, amount))
            return updated

    async def repay(self, user: str, amount: int) -> dict[str, int]:
        """Repay debt across all of the user's positions.

        Returns the debt reduction applied to each asset.
        """
        async with self._guard:
            self._require_active(user)
            self._require_positive(amount)

            open_debts = [
                (asset, self.ledger.get(user, asset).debt)
                for asset in self.registry.assets()
            ]
            open_debts = [(asset, debt) for asset, debt in open_debts if debt > 0]
            reductions = split_repayment(amount, open_debts)

            await self._pull(self._stablecoin, user, amount)
            await self._stablecoin.burn(self.address, amount)

            for asset, reduction in reductions.items():
                position = self.ledger.get(user, asset)
                self.ledger.commit(
                    user, asset, replace(position, debt=checked_sub(position.debt, reduction))
                )

            logger.info("Repaid — %s · %d over %d position(s)", user, amount, len(reductions))
            await self._emit(Repaid(user, amount))
            return reductions

    async def liquidate(
        self, liquidator: str, user: str, asset: str, repay_amount: int
    ) -> LiquidationResult:
        async with self._guard:
            self._require_active(liquidator)
            self._require_positive(repay_amount, "Repay amount")
            entry = self.registry.entry(asset)
            decimals = entry.asset.decimals

            position = self.ledger.get(user, asset)
            if position.debt == 0:
                raise NotEligibleError(f"{user} has no {entry.asset.symbol} debt")
            if repay_amount > position.debt:
                raise InvalidInputError(
                    f"Repay amount {repay_amount} exceeds debt {position.debt}"
                )
            if position.collateral_amount == 0:
                raise NotEligibleError(f"{user} has no {entry.asset.symbol} collateral to seize")

            price = await self.registry.price(asset)
            health = health_ratio(position, decimals, price)
            if health >= self.risk.liquidation_threshold:
                raise NotEligibleError(
                    f"Health ratio {health}% is not below {self.risk.liquidation_threshold}%"
                )

            plan = plan_liquidation(
                position,
                repay_amount,
                decimals,
                price,
                self.risk.liquidation_bonus,
                self.risk.liquidation_fee,
            )

            allowed = await self._stablecoin.allowance(liquidator, self.address)
            await self._pull(self._stablecoin, liquidator, plan.repaid_amount)
            await self._stablecoin.burn(self.address, plan.repaid_amount)
            try:
                await self._push(entry.token, liquidator, plan.net_to_liquidator)
            except Exception:
                # Failed seizure: give back the burned stablecoin and the spent allowance.
                await self._stablecoin.mint(liquidator, plan.repaid_amount)
                await self._stablecoin.approve(liquidator, self.address, allowed)
                raise

            self.ledger.commit(
                user,
                asset,
                replace(
                    position,
                    collateral_amount=saturating_sub(
                        position.collateral_amount, plan.collateral_taken
                    ),
                    debt=saturating_sub(position.debt, plan.repaid_amount),
                ),
            )
            self.treasury.credit(asset, plan.fee_amount)

            logger.info(
                "Liquidated — %s · %s by %s · repaid %d · seized %d · fee %d%s",
                user,
                entry.asset.symbol,
                liquidator,
                plan.repaid_amount,
                plan.collateral_taken,
                plan.fee_amount,
                " (capped)" if plan.capped else "",
            )
            await self._emit(
                Liquidated(
                    user=user,
                    asset=asset,
                    liquidator=liquidator,
                    repaid_amount=plan.repaid_amount,
                    collateral_taken=plan.collateral_taken,
                    fee_amount=plan.fee_amount,
                )
            )
            return plan

    # ------------------------------------------------------------------
    # Treasury
    # ------------------------------------------------------------------

    async def withdraw_treasury(self, caller: str, asset: str, to: str, amount: int) -> None:
        async with self._guard:
            self._require_owner(caller)
            entry = self.registry.entry(asset)
            self.treasury.check_debit(asset, amount)

            await self._push(entry.token, to, amount)
            self.treasury.debit(asset, amount)

            logger.info("Treasury withdrawal — %s · %d to %s", entry.asset.symbol, amount, to)
            await self._emit(TreasuryWithdrawn(asset, to, amount))

    async def sweep_unreserved(self, caller: str, asset: str, to: str, amount: int) -> None:
        """Move held tokens that are not owed to the treasury."""
        async with self._guard:
            self._require_owner(caller)
            self._require_positive(amount)
            entry = self.registry.entry(asset)

            held = await entry.token.balance_of(self.address)
            available = saturating_sub(held, self.treasury.balance(asset))
            if amount > available:
                raise InsufficientSurplusError(
                    f"Only {available} {entry.asset.symbol} unreserved, cannot sweep {amount}"
                )

            await self._push(entry.token, to, amount)

            logger.info("Swept — %s · %d to %s", entry.asset.symbol, amount, to)
            await self._emit(Swept(asset, to, amount))

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    async def add_asset(self, caller: str, token: Token, price_source: PriceSource) -> Asset:
        async with self._guard:
            self._require_owner(caller)
            asset = await self.registry.add(token, price_source)
            await self._emit(AssetAdded(asset.address, asset.symbol, asset.decimals))
            return asset

    async def remove_asset(self, caller: str, asset: str) -> None:
        async with self._guard:
            self._require_owner(caller)
            self.registry.remove(asset)
            await self._emit(AssetRemoved(asset))

    async def pause(self, caller: str) -> None:
        self._require_owner(caller)
        self._paused = True
        logger.warning("Engine paused by %s", caller)
        await self._emit(Paused(caller))

    async def unpause(self, caller: str) -> None:
        self._require_owner(caller)
        self._paused = False
        logger.info("Engine unpaused by %s", caller)
        await self._emit(Unpaused(caller))

    async def set_blacklisted(self, caller: str, account: str, flag: bool) -> None:
        self._require_owner(caller)
        if flag:
            self._blacklist.add(account)
        else:
            self._blacklist.discard(account)
        logger.info("Blacklist — %s set to %s", account, flag)

    async def transfer_ownership(self, caller: str, new_owner: str) -> None:
        self._require_owner(caller)
        if not new_owner:
            raise InvalidInputError("New owner must not be empty")
        previous, self.owner = self.owner, new_owner
        logger.info("Ownership transferred from %s to %s", previous, new_owner)
        await self._emit(OwnershipTransferred(previous, new_owner))
