"""
Quote normalization for raw options-chain feeds.

Turns per-contract records from any of the supported feed shapes into one
StrikeRecord per strike holding both call and put quotes.

Supported shapes:
    - Flat per-contract rows: {"strike_price": 24000, "option_type": "CE", "ltp": ...}
    - Nested exchange rows: {"strikePrice": 24000, "CE": {...}, "PE": {...}}
    - Already normalized rows: {"strike_price": 24000, "call_ltp": ..., "put_ltp": ...}
"""

import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from butterfly_rates.models import OptionSide, StrikeRecord

logger = logging.getLogger(__name__)

# Strike value marking the underlying/index row in a feed
INDEX_ROW_STRIKE = -1

STRIKE_KEYS: Tuple[str, ...] = ("strike_price", "strikePrice", "strike")

SIDE_KEYS: Tuple[str, ...] = ("option_type", "optionType", "side")

SYMBOL_KEYS: Tuple[str, ...] = ("symbol", "identifier", "tradingsymbol")

# Field -> ordered list of source keys tried for a per-contract record
FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "ltp": ("ltp", "lastPrice", "last_price", "lastTradedPrice"),
    "oi": ("open_interest", "oi", "openInterest"),
    "volume": ("volume", "vol", "totalTradedVolume"),
    "iv": ("iv", "impliedVolatility", "implied_volatility"),
    "bid": ("bid_price", "bid", "bidprice", "bidPrice"),
    "ask": ("ask_price", "ask", "askprice", "askPrice"),
    "change": ("chg", "ltpch", "change", "priceChange"),
    "oi_change": ("oich", "changeinOpenInterest", "change_oi", "oiChange"),
}

# Nested sub-record keys per side for exchange-style rows
NESTED_SIDE_KEYS: Dict[OptionSide, Tuple[str, ...]] = {
    OptionSide.CALL: ("CE", "call"),
    OptionSide.PUT: ("PE", "put"),
}

NORMALIZED_MARKERS: Tuple[str, ...] = ("call_ltp", "put_ltp")


def to_float(value: Any) -> Optional[float]:
    """Convert a feed value to float, returning None for missing or non-finite values."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def resolve_field(record: Mapping[str, Any], keys: Sequence[str]) -> Optional[float]:
    """Return the first key in `keys` that holds a usable number."""
    for key in keys:
        value = to_float(record.get(key))
        if value is not None:
            return value
    return None


def resolve_strike(record: Mapping[str, Any]) -> Optional[float]:
    """Resolve a record's strike price from the strike aliases."""
    return resolve_field(record, STRIKE_KEYS)


def resolve_side(record: Mapping[str, Any]) -> Optional[OptionSide]:
    """
    Resolve the option side of a per-contract record.

    The explicit side field wins; otherwise the symbol is inspected for a
    'CE' or 'PE' suffix, then substring.

    Returns:
        OptionSide or None if the side cannot be determined
    """
    for key in SIDE_KEYS:
        value = record.get(key)
        if isinstance(value, str) and value.strip():
            try:
                return OptionSide.parse(value)
            except ValueError:
                logger.debug(f"Unrecognized side value {value!r}")

    for key in SYMBOL_KEYS:
        symbol = record.get(key)
        if not isinstance(symbol, str):
            continue
        upper = symbol.upper()
        if upper.endswith("CE"):
            return OptionSide.CALL
        if upper.endswith("PE"):
            return OptionSide.PUT
        if "CE" in upper:
            return OptionSide.CALL
        if "PE" in upper:
            return OptionSide.PUT

    return None


def is_normalized(raw: Sequence[Mapping[str, Any]]) -> bool:
    """Check whether any record already carries call_ltp/put_ltp keys."""
    return any(
        any(marker in record for marker in NORMALIZED_MARKERS)
        for record in raw
        if isinstance(record, Mapping)
    )


def _is_index_row(record: Mapping[str, Any]) -> bool:
    return resolve_strike(record) == INDEX_ROW_STRIKE


def _prefix(side: OptionSide) -> str:
    return "call" if side is OptionSide.CALL else "put"


def _expand_nested(record: Mapping[str, Any]) -> Iterable[Tuple[OptionSide, Mapping[str, Any]]]:
    """Yield (side, sub-record) pairs for an exchange-style nested row."""
    for side, keys in NESTED_SIDE_KEYS.items():
        for key in keys:
            sub = record.get(key)
            if isinstance(sub, Mapping):
                yield side, sub
                break


def _has_nested(record: Mapping[str, Any]) -> bool:
    return any(
        isinstance(record.get(key), Mapping)
        for keys in NESTED_SIDE_KEYS.values()
        for key in keys
    )


def _merge_side(entry: Dict[str, Any], side: OptionSide, record: Mapping[str, Any]) -> None:
    """Route resolved fields into entry's side slots; absent fields never overwrite."""
    prefix = _prefix(side)
    for field_name, keys in FIELD_ALIASES.items():
        value = resolve_field(record, keys)
        if value is not None:
            entry[f"{prefix}_{field_name}"] = value


def _passthrough(raw: Sequence[Mapping[str, Any]]) -> List[StrikeRecord]:
    """Convert already-normalized rows, dropping the index row."""
    records: Dict[float, StrikeRecord] = {}
    slots = [f"{p}_{name}" for p in ("call", "put") for name in FIELD_ALIASES]

    for row in raw:
        if not isinstance(row, Mapping):
            continue
        strike = resolve_strike(row)
        if strike is None or strike <= 0:
            continue
        values = {slot: to_float(row.get(slot)) for slot in slots}
        records[strike] = StrikeRecord(strike=strike, **values)

    return [records[s] for s in sorted(records)]


def normalize_chain(raw: Optional[Sequence[Mapping[str, Any]]]) -> List[StrikeRecord]:
    """
    Normalize a raw options chain into StrikeRecords.

    Args:
        raw: Raw feed records (flat, nested or already normalized)

    Returns:
        StrikeRecords sorted ascending by strike; empty for missing input
    """
    if not raw or isinstance(raw, (str, bytes)) or not isinstance(raw, Sequence):
        return []

    if is_normalized(raw):
        return _passthrough(raw)

    entries: Dict[float, Dict[str, Any]] = {}
    skipped = 0

    for record in raw:
        if not isinstance(record, Mapping) or _is_index_row(record):
            continue

        strike = resolve_strike(record)
        if strike is None or strike <= 0:
            skipped += 1
            continue

        if _has_nested(record):
            entry = entries.setdefault(strike, {})
            for side, sub in _expand_nested(record):
                _merge_side(entry, side, sub)
            continue

        side = resolve_side(record)
        if side is None:
            logger.debug(f"Skipping record at strike {strike}: option side unresolved")
            skipped += 1
            continue

        _merge_side(entries.setdefault(strike, {}), side, record)

    if skipped:
        logger.debug(f"Skipped {skipped} unusable records during normalization")

    return [StrikeRecord(strike=s, **entries[s]) for s in sorted(entries)]


def index_chain(records: Iterable[StrikeRecord]) -> Dict[float, StrikeRecord]:
    """Map strike -> StrikeRecord for constant-time leg lookups."""
    return {r.strike: r for r in records}
