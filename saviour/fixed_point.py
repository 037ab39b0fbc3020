"""Fixed-point arithmetic on plain ints.

Two scales are used across the engine: WAD (18 decimals) for collateral,
debt and oracle prices, and RAY (27 decimals) for accumulated rates and
the ledger's liquidation/safety prices.

All helpers truncate toward zero and reject any operand or intermediate
product outside ``[0, MAX_UINT256]``.
"""
from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, InvalidOperation, localcontext

WAD: int = 10**18
RAY: int = 10**27
WAD_TO_RAY: int = RAY // WAD  # 1e9
MAX_UINT256: int = 2**256 - 1


class FixedPointOverflow(ArithmeticError):
    """Raised when a value leaves the unsigned 256-bit range."""


def _checked(value: int) -> int:
    if value < 0 or value > MAX_UINT256:
        raise FixedPointOverflow(f"value out of uint256 range: {value}")
    return value


def add(a: int, b: int) -> int:
    return _checked(_checked(a) + _checked(b))


def subtract(a: int, b: int) -> int:
    return _checked(_checked(a) - _checked(b))


def multiply(a: int, b: int) -> int:
    return _checked(_checked(a) * _checked(b))


def wmultiply(a: int, b: int) -> int:
    """``a * b / WAD``."""
    return multiply(a, b) // WAD


def wdivide(a: int, b: int) -> int:
    """``a * WAD / b``."""
    if b == 0:
        raise ZeroDivisionError("wdivide by zero")
    return multiply(a, WAD) // _checked(b)


def rmultiply(a: int, b: int) -> int:
    """``a * b / RAY``; a WAD times a RAY yields a WAD."""
    return multiply(a, b) // RAY


def rdivide(a: int, b: int) -> int:
    """``a * RAY / b``; a WAD divided by a RAY yields a WAD."""
    if b == 0:
        raise ZeroDivisionError("rdivide by zero")
    return multiply(a, RAY) // _checked(b)


def wad_to_ray(value: int) -> int:
    return multiply(value, WAD_TO_RAY)


def ray_to_wad(value: int) -> int:
    """Narrow a RAY to a WAD. Lossy in the last 9 decimals."""
    return _checked(value) // WAD_TO_RAY


# ---------------------------------------------------------------------------
# Decimal conversion
# ---------------------------------------------------------------------------


def _to_scaled(value: str | int | float | Decimal, scale: int) -> int:
    try:
        dec = Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Not a decimal number: {value!r}") from e
    if not dec.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    if dec < 0:
        raise ValueError(f"Negative amount: {value!r}")
    # Exact product; the default 28-digit context would round long inputs.
    with localcontext() as ctx:
        ctx.prec = len(dec.as_tuple().digits) + len(str(scale))
        ctx.rounding = ROUND_DOWN
        scaled = dec * scale
    return _checked(int(scaled))


def to_wad(value: str | int | float | Decimal) -> int:
    """Parse a human decimal ("1.5") into a WAD int."""
    return _to_scaled(value, WAD)


def to_ray(value: str | int | float | Decimal) -> int:
    """Parse a human decimal into a RAY int."""
    return _to_scaled(value, RAY)


def format_wad(value: int, places: int = 6) -> str:
    """Render a WAD as a decimal string, truncated to ``places``."""
    quantum = Decimal(1).scaleb(-places)
    return str((Decimal(value) / WAD).quantize(quantum, rounding=ROUND_DOWN))
