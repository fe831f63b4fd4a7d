"""Engine errors.

Every error is raised before any ledger or treasury mutation, so a caught
``EngineError`` always means the operation had no effect.
"""


class EngineError(Exception):
    """Base error class for engine errors"""
    pass


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


class InvalidInputError(EngineError):
    """Zero or negative amount, ratio below the floor, malformed argument"""
    pass


class UnsupportedAssetError(InvalidInputError):
    """Asset is not in the registry"""
    pass


class InsufficientCollateralError(InvalidInputError):
    """Withdrawal larger than the deposited collateral"""
    pass


class AssetAlreadyRegisteredError(InvalidInputError):
    pass


class AssetNotRegisteredError(InvalidInputError):
    pass


# ---------------------------------------------------------------------------
# Position safety
# ---------------------------------------------------------------------------


class UnsafeStateError(EngineError):
    """Operation would break the user's chosen margin ratio"""
    pass


class UnsafeWithdrawalError(UnsafeStateError):
    pass


class UnsafeRatioError(UnsafeStateError):
    pass


class NotEligibleError(EngineError):
    """Liquidation attempted on a position at or above the threshold"""
    pass


class OverRepayError(EngineError):
    """Repayment larger than the user's total debt"""
    pass


class MintExceedsCeilingError(EngineError):
    """Mint would push debt above the position's ceiling"""
    pass


# ---------------------------------------------------------------------------
# Prices
# ---------------------------------------------------------------------------


class InvalidPriceError(EngineError):
    """Oracle answer is zero or negative"""
    pass


class PrecisionUnsupportedError(InvalidPriceError):
    """Decimal precision that cannot be represented"""
    pass


class PriceSourceError(InvalidPriceError):
    """Price source could not be read"""
    pass


# ---------------------------------------------------------------------------
# Token movements
# ---------------------------------------------------------------------------


class InsufficientAuthorizationError(EngineError):
    """Missing prior transfer authorization"""
    pass


class InsufficientAllowanceError(InsufficientAuthorizationError):
    pass


class InsufficientBalanceError(EngineError):
    pass


class TransferFailedError(EngineError):
    """Token contract reported an unsuccessful transfer"""
    pass


# ---------------------------------------------------------------------------
# Arithmetic
# ---------------------------------------------------------------------------


class ArithmeticOverflowError(EngineError):
    """Result above the uint256 range"""
    pass


class ArithmeticUnderflowError(EngineError):
    """Result below zero"""
    pass


# ---------------------------------------------------------------------------
# Administration and execution
# ---------------------------------------------------------------------------


class UnauthorizedError(EngineError):
    """Caller is not the owner"""
    pass


class PausedError(EngineError):
    pass


class BlacklistedError(EngineError):
    pass


class ReentrancyError(EngineError):
    """Engine entered again while an operation is still running"""
    pass


class InsufficientTreasuryError(EngineError):
    pass


class InsufficientSurplusError(EngineError):
    pass
