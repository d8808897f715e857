"""Shared bond, token and venue builders for the test suite."""

from __future__ import annotations

import math
from typing import Any, Dict, Sequence

import pytest
from hypothesis import HealthCheck, settings

from tranche_sdk.core.bond import Bond
from tranche_sdk.core.clmm import ConcentratedLiquidityVenue
from tranche_sdk.core.cpmm import ConstantProductVenue
from tranche_sdk.core.loan_manager import LoanManager
from tranche_sdk.state.bond_data import BondData, TokenData, TrancheData
from tranche_sdk.state.currency import CurrencyAmount, Token

settings.register_profile("ci", max_examples=200, suppress_health_check=[HealthCheck.too_slow], deadline=None)
settings.register_profile("dev", max_examples=50, deadline=None)
settings.load_profile("dev")

BOND = "0x8feb0797217962c517fac6da4f8667cc000129ff"
COLLATERAL = "0x1439b0429a3ad079c55093fbfd59a7c00c888d00"
TRANCHE_A = "0xd6d8d269933c02db9f46f0f5b630ae91796a6afc"
TRANCHE_B = "0x881d40237659c251811cec9c364ef91dc08d300c"
TRANCHE_Z = "0xd24400ae8bfebb18ca49be86258a3c749cf46853"
USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
WETH = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"
DAI = "0x6b175474e89094c44da98b954eedeac495271d0f"

AMPL_UNIT = 10**9
USDC_UNIT = 10**6

USDC_TOKEN = Token(USDC, 6, symbol="USDC", name="USD Coin")
DAI_TOKEN = Token(DAI, 18, symbol="DAI", name="Dai Stablecoin")
WETH_TOKEN = Token(WETH, 18, symbol="WETH", name="Wrapped Ether")


def token_data(address: str, symbol: str, *, decimals: int = 9, total_supply: int = 1_000_000) -> TokenData:
    return TokenData(id=address, symbol=symbol, name=f"{symbol} token", decimals=decimals, total_supply=total_supply)


def tranche_data(
    address: str,
    index: int,
    ratio: int,
    *,
    total_collateral: int = 1_000_000,
    total_supply: int = 1_000_000,
    decimals: int = 9,
) -> TrancheData:
    symbol = ("A", "B", "Z")[index] if index < 3 else f"T{index}"
    return TrancheData(
        id=address,
        index=index,
        ratio=ratio,
        total_collateral=total_collateral,
        token=token_data(address, symbol, decimals=decimals, total_supply=total_supply),
    )


def make_bond_data(
    *,
    total_debt: int = 30_000_000,
    total_collateral: int = 30_000_000,
    ratios: Sequence[int] = (200, 300, 500),
    is_mature: bool = False,
) -> BondData:
    addresses = (TRANCHE_A, TRANCHE_B, TRANCHE_Z)
    return BondData(
        id=BOND,
        maturity_date=1630532337,
        is_mature=is_mature,
        total_debt=total_debt,
        total_collateral=total_collateral,
        collateral=token_data(COLLATERAL, "AMPL", total_supply=123123123123123),
        tranches=tuple(tranche_data(addresses[i], i, r) for i, r in enumerate(ratios)),
    )


def make_bond_snapshot(**overrides: Any) -> Dict[str, Any]:
    """Indexer-shaped record (camelCase keys, big numbers as strings)."""

    def token(address: str, symbol: str, total_supply: str) -> Dict[str, Any]:
        return {"id": address, "symbol": symbol, "name": f"{symbol} token", "decimals": "9", "totalSupply": total_supply}

    snap: Dict[str, Any] = {
        "id": BOND,
        "maturityDate": "1630532337",
        "isMature": False,
        "totalDebt": "3000000",
        "totalCollateral": "10000000",
        "collateral": token(COLLATERAL, "AMPL", "123123123123123"),
        "tranches": [
            {"id": TRANCHE_A, "index": "0", "ratio": "200", "totalCollateral": "1000000", "token": token(TRANCHE_A, "A", "1000000")},
            {"id": TRANCHE_B, "index": "1", "ratio": "300", "totalCollateral": "1000000", "token": token(TRANCHE_B, "B", "1000000")},
            {"id": TRANCHE_Z, "index": "2", "ratio": "500", "totalCollateral": "1000000", "token": token(TRANCHE_Z, "Z", "1000000")},
        ],
    }
    snap.update(overrides)
    return snap


def amount(token: Token, raw: int) -> CurrencyAmount:
    return CurrencyAmount.from_raw_amount(token, raw)


def make_loan_venues(bond: Bond, currency: Token = USDC_TOKEN) -> tuple:
    """A/USDC at 1.00 and B/USDC at 0.80, 1,000 whole tokens deep on the tranche side."""
    a, b = bond.tranches[0].token, bond.tranches[1].token
    unit = 10**currency.decimals
    return (
        ConstantProductVenue(amount(a, 1_000 * AMPL_UNIT), amount(currency, 1_000 * unit)),
        ConstantProductVenue(amount(b, 1_000 * AMPL_UNIT), amount(currency, 800 * unit)),
    )


def make_mixed_loan_venues(bond: Bond, currency: Token = USDC_TOKEN) -> tuple:
    """Same prices and depth as `make_loan_venues`, with the senior pool as a full-range CLMM."""
    a, b = bond.tranches[0].token, bond.tranches[1].token
    unit = 10**currency.decimals
    a_side, currency_side = amount(a, 1_000 * AMPL_UNIT), amount(currency, 1_000 * unit)
    liquidity = math.isqrt(a_side.quotient * currency_side.quotient)
    return (
        ConcentratedLiquidityVenue.from_amounts(a_side, currency_side, liquidity),
        ConstantProductVenue(amount(b, 1_000 * AMPL_UNIT), amount(currency, 800 * unit)),
    )


@pytest.fixture
def par_bond() -> Bond:
    return Bond(make_bond_data())


@pytest.fixture
def loan_bond() -> Bond:
    return Bond(make_bond_data(total_debt=1_000_000 * AMPL_UNIT, total_collateral=1_000_000 * AMPL_UNIT))


@pytest.fixture
def loan_manager(loan_bond: Bond) -> LoanManager:
    return LoanManager(loan_bond, make_loan_venues(loan_bond))


@pytest.fixture(params=["cpmm", "mixed"])
def any_loan_manager(request: pytest.FixtureRequest, loan_bond: Bond) -> LoanManager:
    """Loan manager over constant-product venues only, or a CLMM senior venue plus a CPMM one."""
    if request.param == "mixed":
        return LoanManager(loan_bond, make_mixed_loan_venues(loan_bond))
    return LoanManager(loan_bond, make_loan_venues(loan_bond))


@pytest.fixture
def collateral_token(loan_bond: Bond) -> Token:
    return loan_bond.collateral
