"""
Bond snapshot encoding for indexer data.

Goals:
- Parse the indexer's camelCase bond records into `BondData`, validating every field.
- Serialize `BondData` back into the same shape, tranches in seniority order.
- Load snapshots saved as JSON or YAML.

Numeric fields may arrive as ints or base-10 strings (the indexer emits big
integers as strings); both normalize to `int`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Union

import yaml

from ..core.bond import Bond
from ..errors import InvalidCurrencyError, SnapshotError
from ..state.bond_data import BondData, TokenData, TrancheData
from ..state.currency import normalize_address


def _require_str(value: Any, *, name: str, non_empty: bool = True, max_len: int = 4096) -> str:
    if not isinstance(value, str):
        raise SnapshotError(f"{name} must be a string")
    if non_empty and not value:
        raise SnapshotError(f"{name} must be non-empty")
    if max_len > 0 and len(value) > max_len:
        raise SnapshotError(f"{name} too large")
    return value


def _require_int(value: Any, *, name: str, non_negative: bool = True) -> int:
    if isinstance(value, bool):
        raise SnapshotError(f"{name} must be an int")
    if isinstance(value, str):
        s = value.strip()
        if not s.lstrip("-").isdigit():
            raise SnapshotError(f"{name} must be a base-10 integer string: {value!r}")
        value = int(s, 10)
    if not isinstance(value, int):
        raise SnapshotError(f"{name} must be an int")
    if non_negative and value < 0:
        raise SnapshotError(f"{name} must be non-negative")
    return int(value)


def _require_bool(value: Any, *, name: str) -> bool:
    if not isinstance(value, bool):
        raise SnapshotError(f"{name} must be a bool")
    return value


def _require_mapping(value: Any, *, name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise SnapshotError(f"{name} must be an object")
    return value


def _require_address(value: Any, *, name: str) -> str:
    s = _require_str(value, name=name)
    try:
        return normalize_address(s)
    except InvalidCurrencyError as exc:
        raise SnapshotError(f"{name}: {exc}") from exc


def _token_from_snapshot(obj: Any, *, name: str) -> TokenData:
    obj = _require_mapping(obj, name=name)
    decimals = _require_int(obj.get("decimals"), name=f"{name}.decimals")
    if decimals > 255:
        raise SnapshotError(f"{name}.decimals out of range: {decimals}")
    return TokenData(
        id=_require_address(obj.get("id"), name=f"{name}.id"),
        symbol=_require_str(obj.get("symbol", ""), name=f"{name}.symbol", non_empty=False, max_len=256),
        name=_require_str(obj.get("name", ""), name=f"{name}.name", non_empty=False, max_len=256),
        decimals=decimals,
        total_supply=_require_int(obj.get("totalSupply"), name=f"{name}.totalSupply"),
    )


def bond_data_from_snapshot(snapshot: Mapping[str, Any], *, max_tranches: int = 64) -> BondData:
    """
    Validate an indexer bond record.

    A GraphQL-style `{"bond": {...}}` wrapper is unwrapped. Tranches without an
    explicit `index` take their list position.
    """
    snapshot = _require_mapping(snapshot, name="snapshot")
    if "bond" in snapshot and isinstance(snapshot["bond"], Mapping):
        snapshot = snapshot["bond"]

    tranches_raw = snapshot.get("tranches")
    if not isinstance(tranches_raw, list):
        raise SnapshotError("bond.tranches must be a list")
    if len(tranches_raw) > max_tranches:
        raise SnapshotError(f"too many tranches: {len(tranches_raw)} > {max_tranches}")

    tranches: List[TrancheData] = []
    seen_ids: set[str] = set()
    seen_indexes: set[int] = set()
    for pos, entry in enumerate(tranches_raw):
        name = f"bond.tranches[{pos}]"
        entry = _require_mapping(entry, name=name)
        tranche_id = _require_address(entry.get("id"), name=f"{name}.id")
        if tranche_id in seen_ids:
            raise SnapshotError(f"duplicate tranche id: {tranche_id}")
        seen_ids.add(tranche_id)
        index = _require_int(entry.get("index", pos), name=f"{name}.index")
        if index in seen_indexes:
            raise SnapshotError(f"duplicate tranche index: {index}")
        seen_indexes.add(index)
        tranches.append(
            TrancheData(
                id=tranche_id,
                index=index,
                ratio=_require_int(entry.get("ratio"), name=f"{name}.ratio"),
                total_collateral=_require_int(entry.get("totalCollateral"), name=f"{name}.totalCollateral"),
                token=_token_from_snapshot(entry.get("token"), name=f"{name}.token"),
            )
        )

    # Older indexer builds name the maturity flag `mature`.
    is_mature = snapshot.get("isMature", snapshot.get("mature", False))

    return BondData(
        id=_require_address(snapshot.get("id"), name="bond.id"),
        maturity_date=_require_int(snapshot.get("maturityDate"), name="bond.maturityDate"),
        is_mature=_require_bool(is_mature, name="bond.isMature"),
        total_debt=_require_int(snapshot.get("totalDebt"), name="bond.totalDebt"),
        total_collateral=_require_int(snapshot.get("totalCollateral"), name="bond.totalCollateral"),
        collateral=_token_from_snapshot(snapshot.get("collateral"), name="bond.collateral"),
        tranches=tuple(tranches),
    )


def _token_to_snapshot(token: TokenData) -> Dict[str, Any]:
    return {
        "id": token.id.lower(),
        "symbol": token.symbol,
        "name": token.name,
        "decimals": int(token.decimals),
        "totalSupply": str(token.total_supply),
    }


def snapshot_from_bond_data(data: BondData) -> Dict[str, Any]:
    """Indexer-shaped record for `data`; big numbers are emitted as strings."""
    tranches = [
        {
            "id": t.id.lower(),
            "index": int(t.index),
            "ratio": int(t.ratio),
            "totalCollateral": str(t.total_collateral),
            "token": _token_to_snapshot(t.token),
        }
        for t in sorted(data.tranches, key=lambda t: t.index)
    ]
    return {
        "id": data.id.lower(),
        "maturityDate": str(data.maturity_date),
        "isMature": bool(data.is_mature),
        "totalDebt": str(data.total_debt),
        "totalCollateral": str(data.total_collateral),
        "collateral": _token_to_snapshot(data.collateral),
        "tranches": tranches,
    }


def load_bond_snapshot(path: Union[str, Path]) -> BondData:
    """Read a bond record from a `.json`, `.yaml` or `.yml` file."""
    p = Path(path)
    text = p.read_text(encoding="utf-8")
    suffix = p.suffix.lower()
    try:
        if suffix == ".json":
            obj = json.loads(text)
        elif suffix in (".yaml", ".yml"):
            obj = yaml.safe_load(text)
        else:
            raise SnapshotError(f"unsupported snapshot file type: {p.name}")
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise SnapshotError(f"cannot parse {p.name}: {exc}") from exc
    return bond_data_from_snapshot(obj)


def bond_from_snapshot(snapshot: Mapping[str, Any], *, chain_id: int = 1) -> Bond:
    return Bond(bond_data_from_snapshot(snapshot), chain_id=chain_id)
