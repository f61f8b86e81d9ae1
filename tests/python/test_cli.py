"""
Tests for the command line interface.
"""

import json
import logging

import pytest

from swaption_calibration import __version__
from swaption_calibration.cli import load_surface, load_zero_curve, main


@pytest.fixture(autouse=True)
def restore_root_logger(monkeypatch):
    """Drop handlers the CLI installs on the root logger."""
    for name in ("SC_LOG_FILE", "SC_LOG_LEVEL", "SC_DEBUG", "SC_VOL_TYPE"):
        monkeypatch.delenv(name, raising=False)
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            handler.close()
            root.removeHandler(handler)
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


@pytest.fixture
def curve_csv(tmp_path):
    path = tmp_path / "curve.csv"
    path.write_text("date,rate\n1.0,0.02\n10.0,0.02\n50.0,0.02\n")
    return path


@pytest.fixture
def surface_csv(tmp_path):
    path = tmp_path / "surface.csv"
    path.write_text("maturity,5.0\n5.0,0.01\n")
    return path


def test_load_files(curve_csv, surface_csv):
    curve = load_zero_curve(str(curve_csv))
    surface = load_surface(str(surface_csv))

    assert curve.zero_rate(5.0) == pytest.approx(0.02)
    assert surface.shape == (1, 1)
    assert surface.maturities[0] == 5.0
    assert surface.durations[0] == 5.0


def test_version(capsys):
    assert main(["version"]) == 0
    assert capsys.readouterr().out.strip() == f"swaption-calibration {__version__}"


def test_no_command(capsys):
    assert main([]) == 0
    assert "usage" in capsys.readouterr().out


def test_config_generate(tmp_path, capsys):
    path = tmp_path / "config.json"
    assert main(["config", "--generate", str(path)]) == 0

    data = json.loads(path.read_text())
    assert data["calibration"]["de_max_iterations"] == 5


def test_config_show(capsys, monkeypatch):
    monkeypatch.delenv("SC_VOL_TYPE", raising=False)
    assert main(["config", "--show"]) == 0

    data = json.loads(capsys.readouterr().out)
    assert data["calibration"]["vol_type"] == "lognormal"


def test_calibrate(curve_csv, surface_csv, tmp_path, capsys):
    output = tmp_path / "result.json"
    code = main([
        "calibrate",
        "--zero-curve", str(curve_csv),
        "--surface", str(surface_csv),
        "--tenor", "1",
        "--output", str(output),
    ])
    out = capsys.readouterr().out

    assert code == 0
    assert "SUCCESS" in out
    assert "Alpha:" in out

    result = json.loads(output.read_text())
    assert result["success"]
    assert set(result["params"]) == {"Alpha", "Sigma"}
    assert result["zr_dates"] == [1.0, 10.0, 50.0]


def test_calibrate_empty_grid(curve_csv, surface_csv, capsys):
    code = main([
        "calibrate",
        "-z", str(curve_csv),
        "-s", str(surface_csv),
        "--min-maturity", "10",
    ])
    out = capsys.readouterr().out

    assert code == 1
    assert "FAILED" in out
    assert "Warning:   Swaption tenor not set, using default (1)" in out


def test_calibrate_missing_file(tmp_path, surface_csv, capsys):
    code = main(["calibrate", "-z", str(tmp_path / "nope.csv"), "-s", str(surface_csv)])
    assert code == 1
    assert "Error:" in capsys.readouterr().out


def test_demo(capsys):
    assert main(["demo"]) == 0
    out = capsys.readouterr().out
    assert "5Y x 5Y" in out
    assert "Sigma:" in out


def flush_root_handlers():
    for handler in logging.getLogger().handlers:
        handler.flush()


def test_demo_log_file_from_env(tmp_path, monkeypatch, capsys):
    log_file = tmp_path / "calibration.log"
    monkeypatch.setenv("SC_LOG_FILE", str(log_file))
    monkeypatch.setenv("SC_LOG_LEVEL", "INFO")

    assert main(["demo"]) == 0
    flush_root_handlers()

    assert log_file.exists()
    assert "Stage 2: Local refinement with L-BFGS-B" in log_file.read_text()


def test_calibrate_log_file_from_config(curve_csv, surface_csv, tmp_path, capsys):
    log_file = tmp_path / "calibration.log"
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({
        "logging": {"level": "WARNING", "file": str(log_file)},
    }))

    code = main([
        "calibrate",
        "-z", str(curve_csv),
        "-s", str(surface_csv),
        "--config", str(config_file),
    ])
    flush_root_handlers()

    assert code == 0
    assert logging.getLogger().level == logging.WARNING
    assert "Swaption tenor not set" in log_file.read_text()
    assert "Stage 1" not in log_file.read_text()


def test_debug_flag_sets_debug_level(capsys):
    assert main(["--debug", "demo"]) == 0
    assert logging.getLogger().level == logging.DEBUG


def test_debug_from_env(monkeypatch, capsys):
    monkeypatch.setenv("SC_DEBUG", "1")
    assert main(["demo"]) == 0
    assert logging.getLogger().level == logging.DEBUG
