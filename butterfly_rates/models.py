"""
Data models for the butterfly rates engine.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Literal, Optional, Tuple


class OptionSide(str, Enum):
    """Option side, resolved once during normalization."""
    CALL = "CALL"
    PUT = "PUT"

    @classmethod
    def parse(cls, value: str) -> "OptionSide":
        """Parse 'call'/'CE'/'put'/'PE' style values."""
        key = value.strip().upper()
        if key in ("CALL", "CE", "C"):
            return cls.CALL
        if key in ("PUT", "PE", "P"):
            return cls.PUT
        raise ValueError(f"Unknown option side: {value!r}")


Recommendation = Literal["ENTRY", "HOLD", "AVOID"]

DetailedRecommendation = Literal[
    "ENTRY", "HOLD", "EXIT", "AVOID", "SCALE",
    "PROFIT_BOOKING", "CHAIN_WARNING", "VALUE_BREACH",
]

AlertType = Literal[
    "good_entry", "value_breach", "profit_booking",
    "scaling_opportunity", "chain_warning",
]

ValueZone = Literal["good", "caution", "poor"]


@dataclass(frozen=True)
class SideQuote:
    """Bid, ask and last traded price for one side of a strike."""
    bid: Optional[float] = None
    ask: Optional[float] = None
    ltp: Optional[float] = None

    @property
    def buy_price(self) -> Optional[float]:
        """Price paid when buying: ask, falling back to LTP."""
        return self.ask if self.ask is not None else self.ltp

    @property
    def sell_price(self) -> Optional[float]:
        """Price received when selling: bid, falling back to LTP."""
        return self.bid if self.bid is not None else self.ltp


@dataclass(frozen=True)
class StrikeRecord:
    """
    Normalized quotes for one strike, both sides.

    Attributes:
        strike: Strike price (always > 0)
        call_bid / put_bid: Best bid
        call_ask / put_ask: Best ask
        call_ltp / put_ltp: Last traded price
        call_oi / put_oi: Open interest
        call_volume / put_volume: Traded volume
        call_iv / put_iv: Implied volatility as quoted by the feed
        call_change / put_change: Price change on the day
        call_oi_change / put_oi_change: Open interest change on the day
    """
    strike: float
    call_bid: Optional[float] = None
    call_ask: Optional[float] = None
    call_ltp: Optional[float] = None
    call_oi: Optional[float] = None
    call_volume: Optional[float] = None
    call_iv: Optional[float] = None
    call_change: Optional[float] = None
    call_oi_change: Optional[float] = None
    put_bid: Optional[float] = None
    put_ask: Optional[float] = None
    put_ltp: Optional[float] = None
    put_oi: Optional[float] = None
    put_volume: Optional[float] = None
    put_iv: Optional[float] = None
    put_change: Optional[float] = None
    put_oi_change: Optional[float] = None

    def quote(self, side: OptionSide) -> SideQuote:
        """Return bid/ask/ltp for a side."""
        if side is OptionSide.CALL:
            return SideQuote(self.call_bid, self.call_ask, self.call_ltp)
        return SideQuote(self.put_bid, self.put_ask, self.put_ltp)


@dataclass(frozen=True)
class ButterflyResult:
    """Net cost of one leg combination and the premium it is measured against."""
    rate: float
    first_leg_premium: float


@dataclass(frozen=True)
class GapValue:
    """Rate and value% for one gap column of the 1-2-1 matrix."""
    rate: float
    value: float


@dataclass
class ButterflyData:
    """
    One strike row of the 1-2-1 butterfly matrix.

    Gap entries are keyed by label ('gap50', 'gap100', ...) and only present
    when the butterfly for that gap has a positive rate.
    """
    strike: float
    premium: float
    bid: float
    ask: float
    is_atm: bool = False
    gaps: Dict[str, GapValue] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "strike": self.strike,
            "premium": round(self.premium, 2),
            "bid": self.bid,
            "ask": self.ask,
            "is_atm": self.is_atm,
            "gaps": {
                label: {"rate": round(gv.rate, 2), "value": round(gv.value, 2)}
                for label, gv in self.gaps.items()
            },
        }


@dataclass(frozen=True)
class LegValue:
    """Two-leg ratio butterfly result for one configured leg."""
    rate: float
    value: float
    ratio: float
    first_ask: float
    middle_bid: float


@dataclass
class MultiButterflyRow:
    """One strike row of the multi-leg ratio matrix, keyed by leg label."""
    strike: float
    bid: float
    ask: float
    ltp: float
    is_atm: bool = False
    is_itm: bool = False
    legs: Dict[str, LegValue] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "strike": self.strike,
            "bid": self.bid,
            "ask": self.ask,
            "ltp": self.ltp,
            "is_atm": self.is_atm,
            "is_itm": self.is_itm,
            "legs": {
                label: {
                    "rate": round(lv.rate, 2),
                    "value": round(lv.value, 2),
                    "ratio": lv.ratio,
                }
                for label, lv in self.legs.items()
            },
        }


@dataclass(frozen=True)
class ButterflyStrategy:
    """
    A ranked butterfly trade candidate.

    Attributes:
        type: CALL or PUT
        strike_combo: Display label 'lower - middle - upper'
        strikes: (lower, middle, upper) strikes
        gap: Strike gap between legs
        first_leg_premium: Ask of the first bought leg
        butterfly_rate: Net cost of the 1-2-1 butterfly
        value_percent: Rate as % of first leg premium (lower is better)
        distance_from_atm: Distance of the lower strike from ATM in 50-point bands
        recommendation: Simple value-based label
        detailed_recommendation: Value and chain-position label
        is_near_atm: Whether distance_from_atm is within the near-ATM band limit
        has_good_gap: Whether the gap is within the liquid-gap limit
        alert_type: Alert tag, if any
    """
    type: OptionSide
    strike_combo: str
    strikes: Tuple[float, float, float]
    gap: int
    first_leg_premium: float
    butterfly_rate: float
    value_percent: float
    distance_from_atm: int
    recommendation: Recommendation
    detailed_recommendation: DetailedRecommendation
    is_near_atm: bool
    has_good_gap: bool
    alert_type: Optional[AlertType] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "type": self.type.value,
            "strike_combo": self.strike_combo,
            "strikes": list(self.strikes),
            "gap": self.gap,
            "first_leg_premium": round(self.first_leg_premium, 2),
            "butterfly_rate": round(self.butterfly_rate, 2),
            "value_percent": round(self.value_percent, 2),
            "distance_from_atm": self.distance_from_atm,
            "recommendation": self.recommendation,
            "detailed_recommendation": self.detailed_recommendation,
            "is_near_atm": self.is_near_atm,
            "has_good_gap": self.has_good_gap,
            "alert_type": self.alert_type,
        }
