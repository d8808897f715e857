"""
Value types shared by the bond and loan engines
"""

from .bond_data import BondData, TokenData, TrancheData
from .currency import (
    MAX_UINT256,
    CurrencyAmount,
    Price,
    Token,
    address_equals,
    contains_address,
    normalize_address,
    to_base_units,
)

__all__ = [
    "BondData",
    "TokenData",
    "TrancheData",
    "MAX_UINT256",
    "CurrencyAmount",
    "Price",
    "Token",
    "address_equals",
    "contains_address",
    "normalize_address",
    "to_base_units",
]
