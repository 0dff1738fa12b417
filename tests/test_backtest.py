import pytest

import backtest
from regression import RegressionFailure


def test_parse_args_defaults():
    args = backtest.parse_args([])
    assert args.algorithm == "index_option_short_call_otm_expiry"
    assert args.check_statistics
    assert not args.debug
    assert args.contract_file is None


def test_unknown_algorithm():
    with pytest.raises(ValueError):
        backtest.run_backtest("straddle")


def test_data_files_must_come_together(tmp_path):
    with pytest.raises(ValueError):
        backtest.run_backtest("index_option_short_call_otm_expiry", contract_file=str(tmp_path / "c.csv"))


def test_main_runs_on_written_sample(tmp_path, capsys):
    backtest.main(["--write-sample", str(tmp_path)])
    assert "contracts.csv" in capsys.readouterr().out

    backtest.main([
        "--contract-file", str(tmp_path / "contracts.csv"),
        "--market-data-file", str(tmp_path / "minute_bars.csv"),
    ])
    out = capsys.readouterr().out
    assert "Total Trades: 2" in out
    assert "SHORT" in out
    assert "Regression passed" in out


def test_regression_failure_propagates(monkeypatch):
    def broken(self):
        raise RegressionFailure("boom")

    monkeypatch.setattr(backtest.ALGORITHMS["index_option_short_call_otm_expiry"], "on_end_of_algorithm", broken)
    with pytest.raises(RegressionFailure, match="boom"):
        backtest.run_backtest("index_option_short_call_otm_expiry")
