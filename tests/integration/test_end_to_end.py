"""
End-to-End Integration Tests for the observation replay pipeline.

Tests the full chain: recorded observations file → decoding → identity
resolution → smoothing and trails → summary/JSON export.

Test categories:
  - CSV and JSON Lines input
  - Pool and unbounded id modes
  - Rows with missing coordinates
  - Output structure
"""

import json

import pandas as pd
import pytest
from click.testing import CliRunner

from scripts.replay_observations import load_observations, main
from skytrack.utils.logging_config import LogConfig


# -----------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------

def _flight_rows():
    """Two drones: SG-BA drifting slowly, SG-RA stationary far away."""
    rows = []
    for i in range(10):
        rows.append({"lng": 35.90 + i * 0.001, "lat": 31.95, "registration": "SG-BA",
                     "altitude": 100.0 + i, "yaw": 90.0, "timestamp": 1000.0 + i})
        rows.append({"lng": 36.50, "lat": 32.50, "registration": "SG-RA",
                     "altitude": 50.0, "yaw": 0.0, "timestamp": 1000.0 + i})
    return rows


@pytest.fixture
def flight_csv(tmp_path):
    path = tmp_path / "flight.csv"
    pd.DataFrame(_flight_rows()).to_csv(path, index=False)
    return path


@pytest.fixture
def flight_jsonl(tmp_path):
    path = tmp_path / "flight.jsonl"
    pd.DataFrame(_flight_rows()).to_json(path, orient="records", lines=True)
    return path


# -----------------------------------------------------------------------
# Tests
# -----------------------------------------------------------------------

class TestLoadObservations:
    def test_csv(self, flight_csv):
        df = load_observations(flight_csv)
        assert len(df) == 20
        assert {"lng", "lat", "registration"} <= set(df.columns)

    def test_jsonl(self, flight_jsonl):
        assert len(load_observations(flight_jsonl)) == 20

    def test_missing_columns(self, tmp_path):
        path = tmp_path / "bad.csv"
        pd.DataFrame([{"x": 1.0, "y": 2.0}]).to_csv(path, index=False)
        with pytest.raises(Exception, match="lng"):
            load_observations(path)


class TestReplay:
    def test_replay_csv(self, flight_csv, tmp_path):
        out = tmp_path / "tracks.json"
        result = CliRunner().invoke(main, ["-i", str(flight_csv), "-o", str(out)])
        assert result.exit_code == 0, result.output
        assert "2 tracks from 20 observations" in result.output

        tracks = json.loads(out.read_text())
        assert [t["id"] for t in tracks] == ["t1", "t2"]
        by_reg = {t["registration"]: t for t in tracks}
        assert by_reg["SG-BA"]["first_seen_at"] == 1000.0
        assert by_reg["SG-BA"]["altitude"] == 109.0
        # Stationary drone never grows its trail
        assert len(by_reg["SG-RA"]["trail"]) == 2
        assert len(by_reg["SG-BA"]["trail"]) > 2

    def test_replay_jsonl_unbounded(self, flight_jsonl):
        result = CliRunner().invoke(main, ["-i", str(flight_jsonl), "--id-mode", "unbounded"])
        assert result.exit_code == 0, result.output
        assert "2 tracks" in result.output

    def test_pool_of_one_merges_everything(self, flight_csv):
        result = CliRunner().invoke(main, ["-i", str(flight_csv), "--pool-size", "1"])
        assert result.exit_code == 0, result.output
        assert "1 tracks" in result.output

    def test_missing_coordinates_skipped(self, tmp_path):
        path = tmp_path / "gaps.csv"
        pd.DataFrame([
            {"lng": 35.90, "lat": 31.95},
            {"lng": None, "lat": 31.95},
            {"lng": 35.901, "lat": 31.951},
        ]).to_csv(path, index=False)
        result = CliRunner().invoke(main, ["-i", str(path)])
        assert result.exit_code == 0, result.output
        assert "1 tracks from 2 observations" in result.output

    def test_haversine_metric(self, flight_csv):
        result = CliRunner().invoke(main, [
            "-i", str(flight_csv), "--metric", "haversine", "--threshold", "500",
        ])
        assert result.exit_code == 0, result.output
        assert "2 tracks" in result.output

    def test_config_dir(self, flight_csv, tmp_path):
        config_dir = tmp_path / "config"
        config_dir.mkdir()
        (config_dir / "tracking.yaml").write_text("id_mode: unbounded\n")
        result = CliRunner().invoke(main, ["-i", str(flight_csv), "--config-dir", str(config_dir)])
        assert result.exit_code == 0, result.output
        assert "2 tracks" in result.output

    def test_json_logs(self, flight_csv, tmp_path):
        log_dir = tmp_path / "logs"
        try:
            result = CliRunner().invoke(main, ["-i", str(flight_csv), "--log-dir", str(log_dir)])
            assert result.exit_code == 0, result.output
            assert (log_dir / "tracking.jsonl").exists()
            assert (log_dir / "application.log").exists()
            assert sorted(p.name for p in log_dir.glob("*.jsonl")) == ["tracking.jsonl"]
        finally:
            LogConfig.setup()
