"""
Concentrated-liquidity swap kernel (single active range, Uniswap-v3 math).

State is a Q64.96 square-root price, the active liquidity `L`, and the range
bounds `[sqrt_lower, sqrt_upper]`. Within the range the pool behaves like a CPMM on
virtual reserves; a trade that would move the price past a bound is rejected
rather than crossing into the next tick.

Rounding follows the v3 periphery: amounts paid *to* the pool round up, amounts
paid *out* round down. Fees are in pips (1e-6).
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from .rejections import RESERVE_EXHAUSTED, ZERO_OUTPUT, KernelRejection


Q96 = 1 << 96
PIPS_DENOM = 1_000_000
DEFAULT_FEE_PIPS = 3_000


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def _ceil_div(numerator: int, denominator: int) -> int:
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    return -((-numerator) // denominator)


def encode_sqrt_ratio_x96(amount1: int, amount0: int) -> int:
    """sqrt(amount1 / amount0) as a Q64.96 fixed-point integer."""
    if amount0 <= 0 or amount1 <= 0:
        raise ValueError("ratio amounts must be positive")
    return math.isqrt((amount1 << 192) // amount0)


def get_amount0_delta(sqrt_a_x96: int, sqrt_b_x96: int, liquidity: int, round_up: bool) -> int:
    """amount0 = L * (sqrt_b - sqrt_a) / (sqrt_a * sqrt_b)"""
    if sqrt_a_x96 > sqrt_b_x96:
        sqrt_a_x96, sqrt_b_x96 = sqrt_b_x96, sqrt_a_x96
    if sqrt_a_x96 <= 0:
        raise ValueError("sqrt price must be positive")
    numerator1 = liquidity << 96
    numerator2 = sqrt_b_x96 - sqrt_a_x96
    if round_up:
        return _ceil_div(_ceil_div(numerator1 * numerator2, sqrt_b_x96), sqrt_a_x96)
    return (numerator1 * numerator2 // sqrt_b_x96) // sqrt_a_x96


def get_amount1_delta(sqrt_a_x96: int, sqrt_b_x96: int, liquidity: int, round_up: bool) -> int:
    """amount1 = L * (sqrt_b - sqrt_a)"""
    if sqrt_a_x96 > sqrt_b_x96:
        sqrt_a_x96, sqrt_b_x96 = sqrt_b_x96, sqrt_a_x96
    if round_up:
        return _ceil_div(liquidity * (sqrt_b_x96 - sqrt_a_x96), Q96)
    return liquidity * (sqrt_b_x96 - sqrt_a_x96) // Q96


def next_sqrt_price_from_amount0(sqrt_price_x96: int, liquidity: int, amount: int, add: bool) -> int:
    # Rounds up so the price never moves further than the amount pays for.
    if amount == 0:
        return sqrt_price_x96
    numerator1 = liquidity << 96
    product = amount * sqrt_price_x96
    if add:
        return _ceil_div(numerator1 * sqrt_price_x96, numerator1 + product)
    denominator = numerator1 - product
    if denominator <= 0:
        raise KernelRejection(RESERVE_EXHAUSTED, "amount0 out exceeds virtual reserve")
    return _ceil_div(numerator1 * sqrt_price_x96, denominator)


def next_sqrt_price_from_amount1(sqrt_price_x96: int, liquidity: int, amount: int, add: bool) -> int:
    # Rounds down, mirroring next_sqrt_price_from_amount0.
    if add:
        return sqrt_price_x96 + (amount << 96) // liquidity
    quotient = _ceil_div(amount << 96, liquidity)
    if sqrt_price_x96 <= quotient:
        raise KernelRejection(RESERVE_EXHAUSTED, "amount1 out exceeds virtual reserve")
    return sqrt_price_x96 - quotient


@dataclass(frozen=True)
class RangeSwapResult:
    amount_in: int
    amount_out: int
    sqrt_price_before_x96: int
    sqrt_price_after_x96: int


def _check_state(
    sqrt_price_x96: int,
    liquidity: int,
    sqrt_lower_x96: int,
    sqrt_upper_x96: int,
    fee_pips: int,
) -> None:
    for name, v in (
        ("sqrt_price_x96", sqrt_price_x96),
        ("liquidity", liquidity),
        ("sqrt_lower_x96", sqrt_lower_x96),
        ("sqrt_upper_x96", sqrt_upper_x96),
        ("fee_pips", fee_pips),
    ):
        _require_int(name, v)
    if liquidity <= 0:
        raise KernelRejection(RESERVE_EXHAUSTED, "range has no liquidity")
    if not (0 < sqrt_lower_x96 <= sqrt_price_x96 <= sqrt_upper_x96):
        raise ValueError("sqrt price must lie inside [sqrt_lower, sqrt_upper]")
    if not (0 <= fee_pips < PIPS_DENOM):
        raise ValueError(f"fee_pips must be in [0, {PIPS_DENOM})")


def swap_exact_in(
    *,
    sqrt_price_x96: int,
    liquidity: int,
    sqrt_lower_x96: int,
    sqrt_upper_x96: int,
    amount_in: int,
    zero_for_one: bool,
    fee_pips: int = DEFAULT_FEE_PIPS,
) -> RangeSwapResult:
    """
    Exact-in swap within the active range.

    `zero_for_one` sells token0 for token1 (price moves down).
    """
    _check_state(sqrt_price_x96, liquidity, sqrt_lower_x96, sqrt_upper_x96, fee_pips)
    _require_int("amount_in", amount_in)
    if amount_in <= 0:
        raise ValueError("amount_in must be positive")

    amount_less_fee = amount_in * (PIPS_DENOM - fee_pips) // PIPS_DENOM
    if amount_less_fee <= 0:
        raise KernelRejection(ZERO_OUTPUT, "amount_in is consumed entirely by fees")

    if zero_for_one:
        sqrt_next = next_sqrt_price_from_amount0(sqrt_price_x96, liquidity, amount_less_fee, add=True)
        if sqrt_next < sqrt_lower_x96:
            raise KernelRejection(RESERVE_EXHAUSTED, "trade crosses the lower bound of the range")
        amount_out = get_amount1_delta(sqrt_next, sqrt_price_x96, liquidity, round_up=False)
    else:
        sqrt_next = next_sqrt_price_from_amount1(sqrt_price_x96, liquidity, amount_less_fee, add=True)
        if sqrt_next > sqrt_upper_x96:
            raise KernelRejection(RESERVE_EXHAUSTED, "trade crosses the upper bound of the range")
        amount_out = get_amount0_delta(sqrt_price_x96, sqrt_next, liquidity, round_up=False)

    if amount_out <= 0:
        raise KernelRejection(ZERO_OUTPUT, "amount_out is zero (trade too small)")

    return RangeSwapResult(
        amount_in=amount_in,
        amount_out=amount_out,
        sqrt_price_before_x96=sqrt_price_x96,
        sqrt_price_after_x96=sqrt_next,
    )


def swap_exact_out(
    *,
    sqrt_price_x96: int,
    liquidity: int,
    sqrt_lower_x96: int,
    sqrt_upper_x96: int,
    amount_out: int,
    zero_for_one: bool,
    fee_pips: int = DEFAULT_FEE_PIPS,
) -> RangeSwapResult:
    """
    Exact-out swap within the active range.

    The returned `amount_in` is the smallest gross input whose exact-in quote
    delivers at least `amount_out`.
    """
    _check_state(sqrt_price_x96, liquidity, sqrt_lower_x96, sqrt_upper_x96, fee_pips)
    _require_int("amount_out", amount_out)
    if amount_out <= 0:
        raise ValueError("amount_out must be positive")

    if zero_for_one:
        sqrt_next = next_sqrt_price_from_amount1(sqrt_price_x96, liquidity, amount_out, add=False)
        if sqrt_next < sqrt_lower_x96:
            raise KernelRejection(RESERVE_EXHAUSTED, "trade crosses the lower bound of the range")
        net_in = get_amount0_delta(sqrt_next, sqrt_price_x96, liquidity, round_up=True)
    else:
        sqrt_next = next_sqrt_price_from_amount0(sqrt_price_x96, liquidity, amount_out, add=False)
        if sqrt_next > sqrt_upper_x96:
            raise KernelRejection(RESERVE_EXHAUSTED, "trade crosses the upper bound of the range")
        net_in = get_amount1_delta(sqrt_price_x96, sqrt_next, liquidity, round_up=True)

    amount_in = _ceil_div(net_in * PIPS_DENOM, PIPS_DENOM - fee_pips)
    return RangeSwapResult(
        amount_in=amount_in,
        amount_out=amount_out,
        sqrt_price_before_x96=sqrt_price_x96,
        sqrt_price_after_x96=sqrt_next,
    )
