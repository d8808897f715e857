"""
Tranche: immutable view over one ranked claim of a bond.
"""

from __future__ import annotations

from ..errors import InsufficientCollateralError, InvalidCurrencyError
from ..state.bond_data import TrancheData
from ..state.currency import Amount, AssetId, CurrencyAmount, Token, to_base_units


class Tranche:
    """One tranche snapshot bound to its bond's collateral token."""

    __slots__ = ("_data", "_collateral", "_token")

    def __init__(self, data: TrancheData, collateral: Token, chain_id: int = 1) -> None:
        self._data = data
        self._collateral = collateral
        # The tranche id is the token contract; metadata comes from the token record.
        self._token = Token(
            data.id,
            data.token.decimals,
            symbol=data.token.symbol,
            name=data.token.name,
            chain_id=chain_id,
        )

    @property
    def data(self) -> TrancheData:
        return self._data

    @property
    def address(self) -> AssetId:
        return self._data.id

    @property
    def index(self) -> int:
        return self._data.index

    @property
    def ratio(self) -> int:
        return self._data.ratio

    @property
    def total_collateral(self) -> Amount:
        return self._data.total_collateral

    @property
    def decimals(self) -> int:
        return self._data.token.decimals

    @property
    def total_supply(self) -> Amount:
        return self._data.token.total_supply

    @property
    def symbol(self) -> str:
        return self._data.token.symbol

    @property
    def name(self) -> str:
        return self._data.token.name

    @property
    def token(self) -> Token:
        return self._token

    @property
    def collateral(self) -> Token:
        return self._collateral

    def redeem_value(self, amount: CurrencyAmount) -> CurrencyAmount:
        """
        Collateral backing `amount` of this tranche's token.

            collateral = floor(total_collateral * amount / total_supply)
        """
        if amount.currency != self._token:
            raise InvalidCurrencyError(f"expected an amount of {self._token!r}, got {amount.currency!r}")
        if self.total_supply == 0:
            raise InsufficientCollateralError(f"tranche {self.address} has no supply")
        return CurrencyAmount.from_raw_amount(
            self._collateral,
            self.total_collateral * to_base_units(amount) // self.total_supply,
        )

    def __repr__(self) -> str:
        return f"Tranche({self.symbol or self.address}, index={self.index}, ratio={self.ratio})"
