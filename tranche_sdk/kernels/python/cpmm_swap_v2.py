"""
CPMM swap kernel (Uniswap-v2 pair semantics).

- The fee is taken multiplicatively from the input: `in_with_fee = in * (10_000 - fee_bps)`.
- Exact-in output rounds down; exact-out input rounds down then adds one, so the
  quoted input always buys at least the requested output.
- The whole input (fee included) stays in the pool.

Integer-only and side-effect free; venues wrap these results into new snapshots.
"""

from __future__ import annotations

from dataclasses import dataclass

from .rejections import EMPTY_RESERVE, RESERVE_EXHAUSTED, ZERO_OUTPUT, KernelRejection


BPS_DENOM = 10_000
DEFAULT_FEE_BPS = 30


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


@dataclass(frozen=True)
class SwapExactInResult:
    amount_out: int
    amount_in: int
    new_reserve_in: int
    new_reserve_out: int
    k_before: int
    k_after: int


@dataclass(frozen=True)
class SwapExactOutResult:
    amount_in: int
    amount_out: int
    new_reserve_in: int
    new_reserve_out: int
    k_before: int
    k_after: int


def _check_common(reserve_in: int, reserve_out: int, fee_bps: int) -> None:
    if reserve_in < 0 or reserve_out < 0:
        raise ValueError("reserves must be non-negative")
    if reserve_in == 0 or reserve_out == 0:
        raise KernelRejection(EMPTY_RESERVE, "cannot swap against an empty reserve")
    if not (0 <= fee_bps < BPS_DENOM):
        raise ValueError(f"fee_bps must be in [0, {BPS_DENOM})")


def swap_exact_in(
    *,
    reserve_in: int,
    reserve_out: int,
    amount_in: int,
    fee_bps: int = DEFAULT_FEE_BPS,
) -> SwapExactInResult:
    """
    Exact-in swap quote + post-state.

        out = floor(in * (B - f) * R_out / (R_in * B + in * (B - f)))

    Raises ValueError on invalid inputs or if the swap would produce a zero output.
    """
    for name, v in (
        ("reserve_in", reserve_in),
        ("reserve_out", reserve_out),
        ("amount_in", amount_in),
        ("fee_bps", fee_bps),
    ):
        _require_int(name, v)
    _check_common(reserve_in, reserve_out, fee_bps)
    if amount_in <= 0:
        raise ValueError("amount_in must be positive")

    in_with_fee = amount_in * (BPS_DENOM - fee_bps)
    numerator = in_with_fee * reserve_out
    denominator = reserve_in * BPS_DENOM + in_with_fee
    amount_out = numerator // denominator

    if amount_out <= 0:
        raise KernelRejection(ZERO_OUTPUT, "amount_out is zero (trade too small)")
    if amount_out >= reserve_out:
        raise KernelRejection(RESERVE_EXHAUSTED, "amount_out exceeds reserve_out")

    new_reserve_in = reserve_in + amount_in
    new_reserve_out = reserve_out - amount_out
    return SwapExactInResult(
        amount_out=amount_out,
        amount_in=amount_in,
        new_reserve_in=new_reserve_in,
        new_reserve_out=new_reserve_out,
        k_before=reserve_in * reserve_out,
        k_after=new_reserve_in * new_reserve_out,
    )


def swap_exact_out(
    *,
    reserve_in: int,
    reserve_out: int,
    amount_out: int,
    fee_bps: int = DEFAULT_FEE_BPS,
) -> SwapExactOutResult:
    """
    Exact-out swap quote + post-state.

        in = floor(R_in * out * B / ((R_out - out) * (B - f))) + 1

    Raises ValueError on invalid inputs or if the trade would drain `reserve_out`.
    """
    for name, v in (
        ("reserve_in", reserve_in),
        ("reserve_out", reserve_out),
        ("amount_out", amount_out),
        ("fee_bps", fee_bps),
    ):
        _require_int(name, v)
    _check_common(reserve_in, reserve_out, fee_bps)
    if amount_out <= 0:
        raise ValueError("amount_out must be positive")
    if amount_out >= reserve_out:
        raise KernelRejection(RESERVE_EXHAUSTED, "cannot drain full reserve_out")

    numerator = reserve_in * amount_out * BPS_DENOM
    denominator = (reserve_out - amount_out) * (BPS_DENOM - fee_bps)
    amount_in = numerator // denominator + 1

    new_reserve_in = reserve_in + amount_in
    new_reserve_out = reserve_out - amount_out
    return SwapExactOutResult(
        amount_in=amount_in,
        amount_out=amount_out,
        new_reserve_in=new_reserve_in,
        new_reserve_out=new_reserve_out,
        k_before=reserve_in * reserve_out,
        k_after=new_reserve_in * new_reserve_out,
    )
