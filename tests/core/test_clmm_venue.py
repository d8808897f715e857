from __future__ import annotations

import pytest

from conftest import DAI_TOKEN, USDC_TOKEN, WETH_TOKEN, amount
from tranche_sdk.core.amm import AmmVenue
from tranche_sdk.core.clmm import ConcentratedLiquidityVenue
from tranche_sdk.errors import InsufficientReservesError, InvalidCurrencyError
from tranche_sdk.kernels.python.clmm_swap_v1 import Q96, encode_sqrt_ratio_x96

LIQUIDITY = 10**18


def _venue(**kwargs) -> ConcentratedLiquidityVenue:
    return ConcentratedLiquidityVenue.from_amounts(amount(USDC_TOKEN, 1), amount(DAI_TOKEN, 1), LIQUIDITY, **kwargs)


def test_from_amounts_sorts_tokens_and_encodes_price() -> None:
    venue = _venue()
    assert venue.token0 == DAI_TOKEN
    assert venue.token1 == USDC_TOKEN
    assert venue.sqrt_price_x96 == Q96
    assert venue.token0_price.raw == 1
    assert venue.token1_price.raw == 1
    assert isinstance(venue, AmmVenue)


def test_token_order_is_enforced_on_direct_construction() -> None:
    with pytest.raises(InvalidCurrencyError):
        ConcentratedLiquidityVenue(USDC_TOKEN, DAI_TOKEN, sqrt_price_x96=Q96, liquidity=LIQUIDITY)


@pytest.mark.asyncio
async def test_selling_token0_lowers_price_without_mutating_receiver() -> None:
    venue = _venue()
    out, after = await venue.get_output_amount(amount(DAI_TOKEN, 1000))
    assert out.currency == USDC_TOKEN
    assert 990 <= out.quotient < 1000
    assert after.sqrt_price_x96 < venue.sqrt_price_x96
    assert venue.sqrt_price_x96 == Q96


@pytest.mark.asyncio
async def test_selling_token1_raises_price() -> None:
    venue = _venue()
    out, after = await venue.get_output_amount(amount(USDC_TOKEN, 1000))
    assert out.currency == DAI_TOKEN
    assert after.sqrt_price_x96 > Q96


@pytest.mark.asyncio
async def test_exact_out_charges_fee() -> None:
    venue = _venue()
    paid, after = await venue.get_input_amount(amount(USDC_TOKEN, 1000))
    assert paid.currency == DAI_TOKEN
    assert paid.quotient > 1000
    assert after.sqrt_price_x96 < Q96


@pytest.mark.asyncio
async def test_leaving_the_range_is_insufficient_reserves() -> None:
    venue = ConcentratedLiquidityVenue(
        DAI_TOKEN,
        USDC_TOKEN,
        sqrt_price_x96=Q96,
        liquidity=10**6,
        sqrt_lower_x96=encode_sqrt_ratio_x96(99, 100),
        sqrt_upper_x96=encode_sqrt_ratio_x96(101, 100),
    )
    with pytest.raises(InsufficientReservesError):
        await venue.get_output_amount(amount(DAI_TOKEN, 10**9))


@pytest.mark.asyncio
async def test_foreign_token_is_rejected() -> None:
    with pytest.raises(InvalidCurrencyError):
        await _venue().get_output_amount(amount(WETH_TOKEN, 1000))
