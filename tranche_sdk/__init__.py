"""
Tranche bond SDK: bond mint/redeem math, loan sale routing and leverage loops.
"""

import logging

from .core import (
    TRANCHE_RATIO_GRANULARITY,
    AmmVenue,
    Bond,
    BorrowOutput,
    ConcentratedLiquidityVenue,
    ConstantProductVenue,
    LeverageManager,
    LeverageOutput,
    LoanConfig,
    LoanManager,
    Tranche,
    load_config,
)
from .errors import TrancheSdkError
from .state import BondData, CurrencyAmount, Price, Token, TokenData, TrancheData

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "TRANCHE_RATIO_GRANULARITY",
    "AmmVenue",
    "Bond",
    "BorrowOutput",
    "ConcentratedLiquidityVenue",
    "ConstantProductVenue",
    "LeverageManager",
    "LeverageOutput",
    "LoanConfig",
    "LoanManager",
    "Tranche",
    "load_config",
    "TrancheSdkError",
    "BondData",
    "CurrencyAmount",
    "Price",
    "Token",
    "TokenData",
    "TrancheData",
]
