"""
Classification rules for butterfly value percentages.

Value% is the butterfly rate as a percentage of the first bought leg's
premium; lower is cheaper. Distance from ATM is measured in 50-point bands.
"""

from typing import Optional

from butterfly_rates.models import AlertType, DetailedRecommendation, Recommendation, ValueZone

ENTRY_MAX_VALUE = 10.0
SCALE_MAX_VALUE = 15.0
HOLD_MAX_VALUE = 20.0
EXIT_MIN_VALUE = 25.0

NEAR_ATM_MAX_BANDS = 2
GOOD_GAP_MAX = 100


def is_near_atm(distance_from_atm: float, near_atm_bands: int = NEAR_ATM_MAX_BANDS) -> bool:
    """Whether a distance (in bands) is near the money."""
    return distance_from_atm <= near_atm_bands


def has_good_gap(gap: float, good_gap_max: int = GOOD_GAP_MAX) -> bool:
    """Whether a gap is narrow enough to be liquid."""
    return gap <= good_gap_max


def get_recommendation(value_percent: float) -> Recommendation:
    """
    Simple value-only recommendation.

    <= 10 ENTRY, <= 20 HOLD, otherwise AVOID. The 10-15 and 15-20 ranges
    both map to HOLD.
    """
    if value_percent <= ENTRY_MAX_VALUE:
        return "ENTRY"
    if value_percent <= SCALE_MAX_VALUE:
        return "HOLD"
    if value_percent <= HOLD_MAX_VALUE:
        return "HOLD"
    return "AVOID"


def get_detailed_recommendation(
    value_percent: float,
    distance_from_atm: float,
    gap: float,
    near_atm_bands: int = NEAR_ATM_MAX_BANDS,
    good_gap_max: int = GOOD_GAP_MAX,
) -> DetailedRecommendation:
    """
    Recommendation combining value% with chain position.

    Rules are evaluated in priority order; the first match wins.

    Args:
        value_percent: Butterfly value%
        distance_from_atm: Distance of the lower strike from ATM in bands
        gap: Strike gap between legs

    Returns:
        One of ENTRY, HOLD, EXIT, AVOID, SCALE, PROFIT_BOOKING,
        CHAIN_WARNING, VALUE_BREACH
    """
    near = is_near_atm(distance_from_atm, near_atm_bands)
    good_gap = has_good_gap(gap, good_gap_max)

    if value_percent > EXIT_MIN_VALUE:
        return "EXIT"
    if value_percent > HOLD_MAX_VALUE:
        return "VALUE_BREACH"

    if value_percent <= ENTRY_MAX_VALUE and near and good_gap:
        return "ENTRY"
    if value_percent <= ENTRY_MAX_VALUE and near:
        return "PROFIT_BOOKING"
    if value_percent <= SCALE_MAX_VALUE and near:
        return "SCALE"
    if value_percent <= SCALE_MAX_VALUE:
        return "HOLD"
    if value_percent <= HOLD_MAX_VALUE and not near and not good_gap:
        return "CHAIN_WARNING"
    if value_percent <= HOLD_MAX_VALUE:
        return "HOLD"

    # Only reachable for NaN input
    return "AVOID"


def get_alert_type(
    value_percent: float,
    distance_from_atm: float,
    gap: float,
    near_atm_bands: int = NEAR_ATM_MAX_BANDS,
    good_gap_max: int = GOOD_GAP_MAX,
) -> Optional[AlertType]:
    """Alert tag for a strategy, or None when nothing stands out."""
    near = is_near_atm(distance_from_atm, near_atm_bands)
    good_gap = has_good_gap(gap, good_gap_max)

    if value_percent <= ENTRY_MAX_VALUE and near and good_gap:
        return "good_entry"
    if value_percent > HOLD_MAX_VALUE:
        return "value_breach"
    if value_percent <= SCALE_MAX_VALUE and near:
        return "profit_booking"
    if value_percent <= SCALE_MAX_VALUE:
        return "scaling_opportunity"
    if not near or not good_gap:
        return "chain_warning"
    return None


def get_value_zone(value_percent: float) -> ValueZone:
    """Display zone: good (<= 15), caution (<= 20), poor."""
    if value_percent <= SCALE_MAX_VALUE:
        return "good"
    if value_percent <= HOLD_MAX_VALUE:
        return "caution"
    return "poor"
