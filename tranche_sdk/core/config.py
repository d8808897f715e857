"""
Loan engine configuration.

Values come from code, from `TRANCHE_SDK_*` environment variables, or from a YAML
mapping such as:

    search_max_rounds: 12
    contract_max_sale: "115792089237316195423570985008687907853269984665640564039457584007913129639935"
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping, Union

import yaml

from ..errors import ValidationError
from ..state.currency import MAX_UINT256

SEARCH_MAX_ROUNDS_DEFAULT = 10
SEARCH_MAX_ROUNDS_LIMIT = 64


def _env_int(name: str, default: int, *, lo: int, hi: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return int(default)
    try:
        v = int(raw.strip())
    except ValueError:
        return int(default)
    if v < lo:
        return int(lo)
    if v > hi:
        return int(hi)
    return int(v)


def _require_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip(), 10)
    raise ValidationError(f"{name} must be an integer")


@dataclass(frozen=True)
class LoanConfig:
    """
    Tunables for `LoanManager`.

    Attributes:
        search_max_rounds: Round cap for the minimum-deposit binary search
        contract_max_sale: Sentinel emitted for "sell everything" in contract-bound sale plans
    """

    search_max_rounds: int = SEARCH_MAX_ROUNDS_DEFAULT
    contract_max_sale: int = MAX_UINT256

    def __post_init__(self) -> None:
        if isinstance(self.search_max_rounds, bool) or not isinstance(self.search_max_rounds, int):
            raise ValidationError("search_max_rounds must be an int")
        if not (1 <= self.search_max_rounds <= SEARCH_MAX_ROUNDS_LIMIT):
            raise ValidationError(
                f"search_max_rounds must be in [1, {SEARCH_MAX_ROUNDS_LIMIT}]: {self.search_max_rounds}"
            )
        if isinstance(self.contract_max_sale, bool) or not isinstance(self.contract_max_sale, int):
            raise ValidationError("contract_max_sale must be an int")
        if not (0 < self.contract_max_sale <= MAX_UINT256):
            raise ValidationError("contract_max_sale must fit in a uint256")

    @classmethod
    def from_env(cls) -> LoanConfig:
        return cls(
            search_max_rounds=_env_int(
                "TRANCHE_SDK_SEARCH_MAX_ROUNDS",
                SEARCH_MAX_ROUNDS_DEFAULT,
                lo=1,
                hi=SEARCH_MAX_ROUNDS_LIMIT,
            ),
        )

    @classmethod
    def from_mapping(cls, obj: Mapping[str, Any]) -> LoanConfig:
        unknown = set(obj) - {"search_max_rounds", "contract_max_sale"}
        if unknown:
            raise ValidationError(f"unknown loan config keys: {sorted(unknown)}")
        cfg = cls()
        if "search_max_rounds" in obj:
            cfg = replace(cfg, search_max_rounds=_require_int("search_max_rounds", obj["search_max_rounds"]))
        if "contract_max_sale" in obj:
            cfg = replace(cfg, contract_max_sale=_require_int("contract_max_sale", obj["contract_max_sale"]))
        return cfg


def load_config(path: Union[str, Path]) -> LoanConfig:
    """Read a `LoanConfig` from a YAML file; an empty file yields the defaults."""
    obj = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if obj is None:
        return LoanConfig()
    if not isinstance(obj, Mapping):
        raise ValidationError("loan config YAML must be a mapping")
    return LoanConfig.from_mapping(obj)
