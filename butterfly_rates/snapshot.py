"""
Chain snapshot boundary.

The engine consumes a snapshot of {chain, spot price, expiry dates}. Sources
implement SnapshotSource; FileSnapshotSource reads a saved JSON payload.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from butterfly_rates.exceptions import SnapshotError
from butterfly_rates.normalizer import to_float

logger = logging.getLogger(__name__)

EXPIRY_KEYS = ("expiryDate", "expiry_date", "expiry")


@dataclass
class ChainSnapshot:
    """
    A consistent view of one options chain.

    Attributes:
        chain: Raw contract records
        spot_price: Underlying price, if known
        expiry_dates: Expiries offered by the feed
        stale: Whether the source served cached data after an upstream failure
        timestamp: Feed timestamp, as reported
    """
    chain: List[Dict[str, Any]]
    spot_price: Optional[float] = None
    expiry_dates: List[str] = field(default_factory=list)
    stale: bool = False
    timestamp: Optional[str] = None


def parse_snapshot(payload: Any, source: str = "payload") -> ChainSnapshot:
    """
    Parse a feed payload into a ChainSnapshot.

    Accepts:
        {"records": {"data": [...], "underlyingValue": ..., "expiryDates": [...]}}
        {"data": [...], "underlyingValue": ..., "expiryDates": [...]}
        [...]

    Args:
        payload: Decoded JSON payload
        source: Description of where the payload came from (for errors)

    Returns:
        ChainSnapshot

    Raises:
        SnapshotError: If the payload has none of the supported shapes
    """
    if isinstance(payload, list):
        return ChainSnapshot(chain=payload)

    if not isinstance(payload, Mapping):
        raise SnapshotError(source, f"expected object or list, got {type(payload).__name__}")

    stale = bool(payload.get("stale", False))

    if isinstance(payload.get("records"), Mapping):
        body = payload["records"]
    elif "data" in payload:
        body = payload
    else:
        raise SnapshotError(source, "no 'records' or 'data' section")

    data = body.get("data") or []
    if not isinstance(data, list):
        raise SnapshotError(source, "'data' must be a list")

    expiries = body.get("expiryDates") or payload.get("expiryDates") or []

    snapshot = ChainSnapshot(
        chain=data,
        spot_price=to_float(body.get("underlyingValue", payload.get("underlyingValue"))),
        expiry_dates=[str(e) for e in expiries],
        stale=stale,
        timestamp=body.get("timestamp"),
    )
    logger.debug(
        f"Parsed snapshot from {source}: {len(snapshot.chain)} records, "
        f"spot {snapshot.spot_price}, {len(snapshot.expiry_dates)} expiries"
    )
    return snapshot


def filter_expiry(chain: List[Dict[str, Any]], expiry: Optional[str]) -> List[Dict[str, Any]]:
    """
    Keep records for one expiry.

    Records that carry no expiry field are kept.
    """
    if not expiry:
        return chain

    kept = []
    for record in chain:
        if not isinstance(record, Mapping):
            continue
        record_expiry = next((record[k] for k in EXPIRY_KEYS if k in record), None)
        if record_expiry is None or str(record_expiry) == expiry:
            kept.append(record)
    return kept


class SnapshotSource(ABC):
    """Abstract base class for chain snapshot providers."""

    @abstractmethod
    def get_snapshot(self) -> ChainSnapshot:
        """Return the latest consistent chain snapshot."""
        pass


class FileSnapshotSource(SnapshotSource):
    """Snapshot source backed by a saved JSON payload."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def get_snapshot(self) -> ChainSnapshot:
        """Read and parse the JSON file."""
        if not self.path.exists():
            raise SnapshotError(str(self.path), "file not found")

        try:
            payload = json.loads(self.path.read_text())
        except json.JSONDecodeError as e:
            raise SnapshotError(str(self.path), f"invalid JSON: {e}") from e

        return parse_snapshot(payload, source=str(self.path))
