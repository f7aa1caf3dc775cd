from datetime import datetime, timezone

import pytest

from autompg.cli import build_parser, main
from autompg.records import Record, write_csv


def test_collect_defaults():
    args = build_parser().parse_args(["collect"])
    assert args.psu_port == "/dev/ttyACM0"
    assert args.scale_port == "/dev/ttyUSB2"
    assert args.gtr_port == "/dev/ttyUSB0"
    assert args.stable_secs == 5
    assert args.output == "tank_run.csv"


def test_viz_defaults():
    args = build_parser().parse_args(["viz"])
    assert args.input == "tank_run.csv"
    assert args.output == "tank_analysis.png"
    assert (args.width, args.height) == (1200, 800)


def test_viz_options_parsed():
    args = build_parser().parse_args(["viz", "--width", "640", "--height", "480"])
    assert (args.width, args.height) == (640, 480)


def test_rejects_zero_width():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["viz", "--width", "0"])


def test_rejects_negative_stable_secs():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["collect", "--stable-secs", "-1"])


def test_requires_command():
    with pytest.raises(SystemExit):
        main([])


def test_collect_without_drivers_fails():
    with pytest.raises(SystemExit) as info:
        main(["collect"])
    assert info.value.code == 2


def test_viz_runs(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    moment = datetime(2024, 1, 1, tzinfo=timezone.utc)
    write_csv([Record(moment, 1.0, 3.0), Record(moment, 2.0, 4.0)], tmp_path / "in.csv")
    status = main(
        ["viz", "--input", "in.csv", "--output", "out.png", "--width", "300", "--height", "200"]
    )
    assert status == 0
    assert (tmp_path / "out.png").read_bytes()[:4] == b"\x89PNG"


def test_viz_missing_input(tmp_path, capsys):
    status = main(["viz", "--input", str(tmp_path / "absent.csv")])
    assert status == 1
    assert "Error" in capsys.readouterr().err