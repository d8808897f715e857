from __future__ import annotations

from fractions import Fraction

import pytest

from conftest import DAI_TOKEN, USDC_TOKEN, WETH_TOKEN, amount
from tranche_sdk.core.amm import AmmVenue, involves_token, other_token, price_of, sell_exact
from tranche_sdk.core.cpmm import ConstantProductVenue
from tranche_sdk.errors import InsufficientInputAmountError, InsufficientReservesError, InvalidCurrencyError


def _venue(r_dai: int = 1000, r_usdc: int = 1000) -> ConstantProductVenue:
    return ConstantProductVenue(amount(USDC_TOKEN, r_usdc), amount(DAI_TOKEN, r_dai))


def test_reserves_are_stored_in_token_order() -> None:
    venue = _venue(r_dai=1000, r_usdc=2000)
    # DAI (0x6b...) sorts before USDC (0xa0...).
    assert venue.token0 == DAI_TOKEN
    assert venue.token1 == USDC_TOKEN
    assert venue.reserve_of(USDC_TOKEN).quotient == 2000
    assert venue.get_constant_product() == 2_000_000
    assert isinstance(venue, AmmVenue)


def test_spot_prices() -> None:
    venue = _venue(r_dai=1000, r_usdc=2000)
    assert venue.token0_price.raw == 2
    assert venue.token1_price.raw == Fraction(1, 2)
    assert price_of(venue, USDC_TOKEN) == venue.token1_price
    with pytest.raises(InvalidCurrencyError):
        price_of(venue, WETH_TOKEN)


@pytest.mark.asyncio
async def test_exact_in_quote_returns_new_venue_and_leaves_receiver_untouched() -> None:
    venue = _venue()
    out, after = await venue.get_output_amount(amount(DAI_TOKEN, 100))
    assert out == amount(USDC_TOKEN, 90)
    assert after.reserve_of(DAI_TOKEN).quotient == 1100
    assert after.reserve_of(USDC_TOKEN).quotient == 910
    assert venue.reserve_of(DAI_TOKEN).quotient == 1000
    assert venue.reserve_of(USDC_TOKEN).quotient == 1000


@pytest.mark.asyncio
async def test_exact_out_quote() -> None:
    venue = _venue()
    paid, after = await venue.get_input_amount(amount(USDC_TOKEN, 90))
    assert paid == amount(DAI_TOKEN, 100)
    assert after.reserve_of(USDC_TOKEN).quotient == 910
    assert venue.reserve_of(USDC_TOKEN).quotient == 1000


@pytest.mark.asyncio
async def test_quotes_reject_foreign_tokens() -> None:
    venue = _venue()
    with pytest.raises(InvalidCurrencyError):
        await venue.get_output_amount(amount(WETH_TOKEN, 100))
    with pytest.raises(InvalidCurrencyError):
        await venue.get_input_amount(amount(WETH_TOKEN, 100))


@pytest.mark.asyncio
async def test_draining_output_reserve_is_insufficient_reserves() -> None:
    venue = _venue()
    with pytest.raises(InsufficientReservesError):
        await venue.get_input_amount(amount(USDC_TOKEN, 1000))


@pytest.mark.asyncio
async def test_empty_reserve_is_insufficient_reserves() -> None:
    venue = _venue(r_usdc=0)
    with pytest.raises(InsufficientReservesError):
        await venue.get_output_amount(amount(DAI_TOKEN, 100))
    with pytest.raises(InsufficientReservesError):
        venue.token1_price


@pytest.mark.asyncio
async def test_dust_input_is_insufficient_input() -> None:
    venue = _venue(r_dai=10**12, r_usdc=1)
    with pytest.raises(InsufficientInputAmountError):
        await venue.get_output_amount(amount(DAI_TOKEN, 1))
    with pytest.raises(InsufficientInputAmountError):
        await venue.get_output_amount(amount(DAI_TOKEN, 0))


@pytest.mark.asyncio
async def test_sell_exact_skips_zero_sales() -> None:
    venue = _venue()
    out, after = await sell_exact(venue, amount(DAI_TOKEN, 0))
    assert out == amount(USDC_TOKEN, 0)
    assert after is venue


def test_venue_helpers() -> None:
    venue = _venue()
    assert involves_token(venue, USDC_TOKEN)
    assert not involves_token(venue, WETH_TOKEN)
    assert other_token(venue, USDC_TOKEN) == DAI_TOKEN
    with pytest.raises(InvalidCurrencyError):
        other_token(venue, WETH_TOKEN)


def test_venue_rejects_same_token_pair_and_bad_fee() -> None:
    with pytest.raises(InvalidCurrencyError):
        ConstantProductVenue(amount(USDC_TOKEN, 1), amount(USDC_TOKEN, 1))
    with pytest.raises(ValueError):
        ConstantProductVenue(amount(USDC_TOKEN, 1), amount(DAI_TOKEN, 1), fee_bps=10_000)
