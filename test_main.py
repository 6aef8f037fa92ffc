import logging

import pandas as pd
import pytest

from log_config import LOG_LEVEL_ENV, resolve_log_level
from main import build_calculator, build_parser, main


def test_curve_written_to_csv(tmp_path, capsys):
    out = tmp_path / "curves" / "sethares.csv"
    code = main(["--partials", "3", "--base", "200", "--steps", "20", "--output", str(out)])

    assert code == 0
    frame = pd.read_csv(out)
    assert list(frame.columns) == ["Frequency (Hz)", "Dissonance"]
    assert len(frame) == 20
    assert frame["Frequency (Hz)"].iloc[0] == pytest.approx(200.0)
    assert (frame["Dissonance"] >= 0).all()
    assert "Sethares: 20 steps" in capsys.readouterr().out


def test_minima_reported(capsys):
    code = main(["--model", "vassilakis", "--partials", "3", "--base", "200",
                 "--steps", "10", "--log-steps", "--minima", "--growth", "1.05"])

    assert code == 0
    assert "Local minima:" in capsys.readouterr().out


def test_invalid_range_returns_error_code():
    assert main(["--start", "0", "--steps", "5"]) == 2


def test_build_calculator_defaults():
    args = build_parser().parse_args(["--base", "100", "--steps", "8"])
    calc = build_calculator(args)

    assert calc.num_spectra == 2
    assert calc.variable_spectrum_index == 1
    assert calc.frequency_range == (100.0, 200.0)
    assert calc.preprocessor_names == ["Hearing Range"]
    assert calc.get_spectrum(0).num_partials == 5
    assert calc.is_ready_to_process()


def test_build_calculator_without_hearing_range():
    args = build_parser().parse_args(["--no-hearing-range"])
    assert build_calculator(args).num_preprocessors == 0


def test_resolve_log_level(monkeypatch):
    assert resolve_log_level("debug") == logging.DEBUG
    assert resolve_log_level(logging.WARNING) == logging.WARNING
    assert resolve_log_level("nonsense") == logging.INFO

    monkeypatch.setenv(LOG_LEVEL_ENV, "error")
    assert resolve_log_level() == logging.ERROR
