"""Tests for the screener facade and CLI."""

import json

import pytest

from butterfly_rates.__main__ import main, parse_args
from butterfly_rates.config import ButterflyConfig
from butterfly_rates.models import OptionSide
from butterfly_rates.screener import ButterflyScreener, ScreenResult, screen_snapshot
from butterfly_rates.snapshot import ChainSnapshot, FileSnapshotSource, SnapshotSource

SPOT = 24070


class StaticSource(SnapshotSource):
    """Snapshot source returning a fixed snapshot."""

    def __init__(self, snapshot):
        self.snapshot = snapshot

    def get_snapshot(self):
        return self.snapshot


@pytest.fixture
def payload(nifty_chain):
    """Exchange-style payload around the linear chain."""
    return {
        "records": {
            "data": nifty_chain,
            "underlyingValue": SPOT,
            "expiryDates": ["31-Oct-2024"],
        },
    }


@pytest.fixture
def snapshot_file(tmp_path, payload):
    """Payload saved to a JSON file."""
    path = tmp_path / "chain.json"
    path.write_text(json.dumps(payload))
    return path


class TestScreenSnapshot:
    """Tests for screen_snapshot."""

    def test_all_views(self, payload):
        """Test every matrix and ranking is populated."""
        result = screen_snapshot(payload)

        assert isinstance(result, ScreenResult)
        assert result.spot_price == SPOT
        assert result.expiry == "31-Oct-2024"
        assert result.stale is False
        assert len(result.call_chain) == 19
        assert result.put_chain[0].strike == 24500
        assert len(result.call_multi_chain) == 19
        assert len(result.strategies) == 40
        assert len(result.best_trades) == 7
        assert len(result.analysis) == 19

    def test_chain_for(self, payload):
        """Test side lookup of the 1-2-1 matrix."""
        result = screen_snapshot(payload)

        assert result.chain_for(OptionSide.CALL) is result.call_chain
        assert result.chain_for(OptionSide.PUT) is result.put_chain

    def test_max_value_override(self, payload):
        """Test the ceiling applies to ranked strategies."""
        result = screen_snapshot(payload, max_value_percent=0.75)

        assert len(result.strategies) == 8

    def test_config_applies(self, payload):
        """Test the config flows into every view."""
        result = screen_snapshot(payload, config=ButterflyConfig(gaps=(50,), best_trade_limit=2))

        assert {s.gap for s in result.strategies} == {50}
        assert len(result.best_trades) == 2
        assert set(result.call_chain[0].gaps) == {"gap50"}

    def test_no_spot(self, nifty_chain):
        """Test a bare list has no spot and yields empty views."""
        result = screen_snapshot(nifty_chain)

        assert result.spot_price is None
        assert result.call_chain == []
        assert result.strategies == []
        assert len(result.analysis) == 19

    def test_stale_report(self, payload):
        """Test stale snapshots are flagged in the report."""
        payload["stale"] = True

        result = screen_snapshot(payload)

        assert result.stale is True
        assert result.to_report().startswith("WARNING: snapshot is stale")

    def test_outputs(self, payload):
        """Test report, CSV and JSON renderings."""
        result = screen_snapshot(payload)

        assert "BEST BUTTERFLY TRADES" in result.to_report()
        assert result.to_csv().startswith("rank,type,strike_combo")

        data = json.loads(result.to_json())
        assert data["spot_price"] == SPOT
        assert len(data["best_trades"]) == 7
        assert data["call_chain"][0]["strike"] == 23600
        assert len(data["analysis"]) == 19
        assert data["analysis"][0] == {
            "strike": 23600,
            "call_signal": "NEUTRAL",
            "put_signal": "NEUTRAL",
            "call_highlights": [],
            "put_highlights": [],
        }
        assert result.to_analysis_report() == "No open-interest highlights across 19 strikes"


class TestButterflyScreener:
    """Tests for the class-based API."""

    def test_screen(self, payload):
        """Test screening a source's snapshot."""
        records = payload["records"]
        source = StaticSource(ChainSnapshot(chain=records["data"], spot_price=SPOT))

        result = ButterflyScreener(source=source).screen()

        assert result.expiry is None
        assert len(result.best_trades) == 7

    def test_expiry_filter(self, make_contract):
        """Test only the requested expiry is screened."""
        chain = [
            make_contract(24000, "CE", ltp=100, expiryDate="31-Oct-2024"),
            make_contract(24050, "CE", ltp=80, expiryDate="07-Nov-2024"),
        ]
        source = StaticSource(ChainSnapshot(
            chain=chain,
            spot_price=24000,
            expiry_dates=["31-Oct-2024", "07-Nov-2024"],
        ))

        result = ButterflyScreener(source=source, expiry="07-Nov-2024").screen()

        assert result.expiry == "07-Nov-2024"
        assert [r.strike for r in result.call_chain] == [24050]

    def test_file_source(self, snapshot_file):
        """Test screening a saved file."""
        result = ButterflyScreener(source=FileSnapshotSource(snapshot_file)).screen()

        assert len(result.strategies) == 40


class TestCLI:
    """Tests for the command line interface."""

    def test_parse_args(self):
        """Test argument defaults."""
        args = parse_args(["chain.json"])

        assert args.snapshot == "chain.json"
        assert args.max_value is None
        assert args.best is False
        assert args.chain is None
        assert args.analysis is False

    def test_best_and_chain_exclusive(self):
        """Test --best and --chain cannot be combined."""
        with pytest.raises(SystemExit):
            parse_args(["chain.json", "--best", "--chain", "call"])

    def test_default_report(self, snapshot_file, capsys):
        """Test the full report is printed."""
        assert main([str(snapshot_file)]) == 0

        out = capsys.readouterr().out
        assert "BEST BUTTERFLY TRADES" in out
        assert "BUTTERFLY STRATEGIES" in out

    def test_best_csv(self, snapshot_file, tmp_path, capsys):
        """Test --best with --csv writes the shortlist."""
        csv_path = tmp_path / "best.csv"

        assert main([str(snapshot_file), "--best", "--csv", str(csv_path)]) == 0

        lines = csv_path.read_text().strip().splitlines()
        assert len(lines) == 8
        assert "Results saved to" in capsys.readouterr().out

    def test_chain_view(self, snapshot_file, tmp_path, capsys):
        """Test --chain prints and exports the matrix."""
        csv_path = tmp_path / "call.csv"

        assert main([str(snapshot_file), "--chain", "call", "--csv", str(csv_path)]) == 0

        header = csv_path.read_text().splitlines()[0]
        assert header.startswith("strike,bid,ask,premium,is_atm,gap50_rate")
        assert "gap200_value" in capsys.readouterr().out

    def test_json(self, snapshot_file, capsys):
        """Test --json emits parseable JSON."""
        assert main([str(snapshot_file), "--json"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["expiry"] == "31-Oct-2024"

    def test_config_file(self, snapshot_file, tmp_path, capsys):
        """Test --config loads YAML overrides."""
        config_path = tmp_path / "config.yaml"
        config_path.write_text("best_trade_limit: 2\n")

        assert main([str(snapshot_file), "--json", "--config", str(config_path)]) == 0

        data = json.loads(capsys.readouterr().out)
        assert len(data["best_trades"]) == 2

    def test_missing_file(self, tmp_path, capsys):
        """Test errors return exit code 1."""
        assert main([str(tmp_path / "missing.json")]) == 1

        assert "Error:" in capsys.readouterr().err

    def test_analysis_view(self, snapshot_file, tmp_path, capsys):
        """Test --analysis prints the activity report and exports rows."""
        csv_path = tmp_path / "analysis.csv"

        assert main([str(snapshot_file), "--analysis", "--csv", str(csv_path)]) == 0

        lines = csv_path.read_text().strip().splitlines()
        assert lines[0] == "strike,call_signal,put_signal,call_highlights,put_highlights"
        assert len(lines) == 20
        assert "No open-interest highlights across 19 strikes" in capsys.readouterr().out

    def test_analysis_excludes_other_views(self):
        """Test --analysis cannot be combined with --best."""
        with pytest.raises(SystemExit):
            parse_args(["chain.json", "--analysis", "--best"])
