"""Bounded unsigned integer arithmetic (uint256 semantics)."""
from .constants import UINT256_MAX
from .errors import ArithmeticOverflowError, ArithmeticUnderflowError


def checked_add(a: int, b: int) -> int:
    """Add with overflow checking"""
    result = a + b
    if result > UINT256_MAX:
        raise ArithmeticOverflowError("Arithmetic overflow in addition")
    return result


def checked_sub(a: int, b: int) -> int:
    """Subtract with underflow checking"""
    if b > a:
        raise ArithmeticUnderflowError("Arithmetic underflow in subtraction")
    return a - b


def checked_mul(a: int, b: int) -> int:
    """Multiply with overflow checking"""
    result = a * b
    if result > UINT256_MAX:
        raise ArithmeticOverflowError("Arithmetic overflow in multiplication")
    return result


def checked_div(a: int, b: int) -> int:
    """Floor division, rejecting a zero divisor"""
    if b == 0:
        raise ArithmeticOverflowError("Division by zero")
    return a // b


def mul_div(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator) with the intermediate product bounded."""
    return checked_div(checked_mul(a, b), denominator)


def saturating_sub(a: int, b: int) -> int:
    """Subtract, clamping at zero"""
    return a - b if a > b else 0
