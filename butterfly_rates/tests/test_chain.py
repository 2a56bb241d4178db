"""Tests for the butterfly chain builders."""

import pandas as pd
import pytest

from butterfly_rates.chain import (
    build_chain,
    build_multi_chain,
    chain_to_frame,
    display_strikes,
    find_atm_strike,
    gap_label,
    is_atm_or_otm,
    strike_premium,
)
from butterfly_rates.config import ButterflyConfig, LegSpec
from butterfly_rates.models import OptionSide, StrikeRecord


class TestFindAtmStrike:
    """Tests for ATM strike selection."""

    def test_closest_strike(self):
        """Test the nearest strike to spot is chosen."""
        assert find_atm_strike([24000, 24050, 24100], 24070) == 24050
        assert find_atm_strike([24000, 24050, 24100], 24080) == 24100

    def test_tie_goes_to_lower_strike(self):
        """Test an exact tie resolves to the lower strike regardless of input order."""
        assert find_atm_strike([150, 100], 125) == 100
        assert find_atm_strike([100, 150], 125) == 100

    @pytest.mark.parametrize("side", [OptionSide.CALL, OptionSide.PUT])
    def test_tie_is_side_independent(self, small_chain, side):
        """Test the descending PUT matrix marks the same lower strike as ATM."""
        rows = build_chain(small_chain, 125, side)

        assert [r.strike for r in rows if r.is_atm] == [100]

    def test_empty(self):
        """Test no strikes gives None."""
        assert find_atm_strike([], 24000) is None


class TestStrikeHelpers:
    """Tests for ordering, moneyness and premium helpers."""

    def test_display_order(self):
        """Test CALL ascending and PUT descending."""
        records = [StrikeRecord(strike=s) for s in (200, 100, 150)]

        assert display_strikes(records, OptionSide.CALL) == [100, 150, 200]
        assert display_strikes(records, OptionSide.PUT) == [200, 150, 100]

    def test_atm_or_otm(self):
        """Test moneyness per side."""
        assert is_atm_or_otm(150, 150, OptionSide.CALL)
        assert is_atm_or_otm(200, 150, OptionSide.CALL)
        assert not is_atm_or_otm(100, 150, OptionSide.CALL)
        assert is_atm_or_otm(100, 150, OptionSide.PUT)
        assert not is_atm_or_otm(200, 150, OptionSide.PUT)

    def test_premium_prefers_mid(self):
        """Test premium is the bid/ask mid, then LTP, then 0."""
        assert strike_premium(StrikeRecord(strike=1, call_bid=10, call_ask=12, call_ltp=50), OptionSide.CALL) == 11
        assert strike_premium(StrikeRecord(strike=1, call_bid=10, call_ltp=50), OptionSide.CALL) == 50
        assert strike_premium(StrikeRecord(strike=1, put_ask=12), OptionSide.PUT) == 0.0

    def test_gap_label(self):
        """Test gap column labels."""
        assert gap_label(50) == "gap50"


class TestBuildChain:
    """Tests for the 1-2-1 matrix."""

    def test_call_rows(self, small_chain):
        """Test CALL rows, ATM flag and gap entries."""
        rows = build_chain(small_chain, 160, OptionSide.CALL)

        assert [r.strike for r in rows] == [100, 150, 200, 250, 300]
        assert [r.is_atm for r in rows] == [False, True, False, False, False]

        first = rows[0]
        assert first.premium == 61
        assert first.bid == 60
        assert first.ask == 62
        assert first.gaps["gap50"].rate == pytest.approx(16)
        assert first.gaps["gap50"].value == pytest.approx(16 / 62 * 100)
        assert first.gaps["gap100"].rate == pytest.approx(40)
        assert "gap150" not in first.gaps

        assert rows[1].gaps["gap50"].rate == pytest.approx(14)
        assert rows[2].gaps["gap50"].rate == pytest.approx(8)
        assert rows[3].gaps == {}

    def test_put_rows(self, small_chain):
        """Test PUT rows are descending and use the upper ask as first leg."""
        rows = build_chain(small_chain, 160, OptionSide.PUT)

        assert [r.strike for r in rows] == [300, 250, 200, 150, 100]
        assert rows[0].gaps["gap50"].rate == pytest.approx(16)
        assert rows[0].gaps["gap50"].value == pytest.approx(16 / 62 * 100)
        assert rows[0].gaps["gap100"].rate == pytest.approx(40)
        assert rows[1].gaps["gap50"].rate == pytest.approx(14)
        assert rows[-1].gaps == {}

    def test_non_positive_rates_omitted(self, make_contract):
        """Test a credit butterfly leaves no gap entry."""
        raw = [
            make_contract(100, "CE", bid=10, ask=10),
            make_contract(150, "CE", bid=30, ask=30),
            make_contract(200, "CE", bid=10, ask=10),
        ]

        rows = build_chain(raw, 150, OptionSide.CALL)

        assert all(r.gaps == {} for r in rows)

    def test_custom_gaps(self, small_chain):
        """Test explicit gaps override the configured ones."""
        rows = build_chain(small_chain, 160, OptionSide.CALL, gaps=[100])

        assert list(rows[0].gaps) == ["gap100"]

    def test_config_gaps(self, small_chain):
        """Test gaps come from the config when not given."""
        rows = build_chain(small_chain, 160, OptionSide.CALL, config=ButterflyConfig(gaps=(50,)))

        assert list(rows[0].gaps) == ["gap50"]

    def test_missing_quotes_default_to_zero(self, make_contract):
        """Test rows with only an LTP show zero bid/ask."""
        rows = build_chain([make_contract(100, "CE", ltp=5)], 100, OptionSide.CALL)

        assert rows[0].bid == 0.0
        assert rows[0].ask == 0.0
        assert rows[0].premium == 5

    @pytest.mark.parametrize("spot", [None, 0])
    def test_missing_spot(self, small_chain, spot):
        """Test no spot gives an empty matrix."""
        assert build_chain(small_chain, spot, OptionSide.CALL) == []

    def test_empty_chain(self):
        """Test empty input gives an empty matrix."""
        assert build_chain([], 24000, OptionSide.CALL) == []
        assert build_chain(None, 24000, OptionSide.PUT) == []

    def test_idempotent(self, nifty_chain):
        """Test repeated builds over the same input are identical."""
        first = build_chain(nifty_chain, 24070, OptionSide.PUT)
        second = build_chain(nifty_chain, 24070, OptionSide.PUT)

        assert first == second
        assert [r.strike for r in first if r.is_atm] == [24050]

    def test_to_dict(self, small_chain):
        """Test serialization rounds values."""
        data = build_chain(small_chain, 160, OptionSide.CALL)[0].to_dict()

        assert data["strike"] == 100
        assert data["gaps"]["gap50"] == {"rate": 16, "value": 25.81}


class TestBuildMultiChain:
    """Tests for the multi-leg ratio matrix."""

    def test_call_default_legs(self, small_chain):
        """Test CALL rows price each configured gap/ratio leg."""
        rows = build_multi_chain(small_chain, 160, OptionSide.CALL)

        first = rows[0]
        assert first.strike == 100
        assert first.is_itm
        assert not first.is_atm
        assert first.ltp == 61
        assert first.legs["gap50x2"].rate == pytest.approx(2)
        assert first.legs["gap50x2"].value == pytest.approx(2 / 62 * 100)
        assert first.legs["gap100x1.33"].rate == pytest.approx(62 - 1.33 * 12)
        assert first.legs["gap150x1.5"].rate == pytest.approx(56)
        assert first.legs["gap200x2"].rate == pytest.approx(60)
        assert "gap250x1.5" not in first.legs

        assert rows[1].is_atm
        assert not rows[1].is_itm
        assert rows[-1].legs == {}

    def test_put_default_legs(self, small_chain):
        """Test PUT rows sell below the row strike."""
        rows = build_multi_chain(small_chain, 160, OptionSide.PUT)

        first = rows[0]
        assert first.strike == 300
        assert first.is_itm
        assert first.legs["gap50x1.33"].rate == pytest.approx(62 - 1.33 * 30)
        assert first.legs["gap50x1.33"].first_ask == 62
        assert first.legs["gap50x1.33"].middle_bid == 30
        assert not rows[-1].is_itm

    def test_negative_legs_kept(self, small_chain):
        """Test credit legs stay in the matrix."""
        rows = build_multi_chain(small_chain, 160, OptionSide.CALL, legs=[LegSpec(50, 3.0)])

        by_strike = {r.strike: r for r in rows}
        assert by_strike[150].legs["gap50x3"].rate == pytest.approx(-4)
        assert by_strike[200].legs["gap50x3"].rate == pytest.approx(2)

    def test_missing_spot(self, small_chain):
        """Test no spot gives an empty matrix."""
        assert build_multi_chain(small_chain, 0, OptionSide.CALL) == []

    def test_to_dict(self, small_chain):
        """Test serialization includes leg ratio."""
        data = build_multi_chain(small_chain, 160, OptionSide.CALL)[0].to_dict()

        assert data["legs"]["gap50x2"]["ratio"] == 2.0
        assert data["is_itm"] is True


class TestChainToFrame:
    """Tests for DataFrame export."""

    def test_columns_and_gaps(self, small_chain):
        """Test one row per strike with rate/value columns per gap."""
        rows = build_chain(small_chain, 160, OptionSide.CALL)

        df = chain_to_frame(rows)

        assert isinstance(df, pd.DataFrame)
        assert len(df) == 5
        assert list(df.columns[:5]) == ["strike", "bid", "ask", "premium", "is_atm"]
        assert "gap200_value" in df.columns
        assert df.loc[0, "gap50_rate"] == pytest.approx(16)
        assert pd.isna(df.loc[3, "gap50_rate"])

    def test_empty(self):
        """Test an empty matrix still has the columns."""
        df = chain_to_frame([], gaps=[50])

        assert df.empty
        assert list(df.columns) == ["strike", "bid", "ask", "premium", "is_atm", "gap50_rate", "gap50_value"]
