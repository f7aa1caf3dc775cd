from datetime import datetime, timezone

import numpy as np
import pytest

from autompg.records import Record, write_csv
from autompg.viz import (
    create_fft_surface_plots,
    create_time_series_plot,
    format_summary,
    run,
    summarize,
)

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"
START = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _records(weights, cog_1=None):
    cog_1 = cog_1 if cog_1 is not None else [0.0] * len(weights)
    return [Record(START, w, c) for w, c in zip(weights, cog_1)]


def _png_size(path):
    data = path.read_bytes()
    assert data[:8] == PNG_MAGIC
    return int.from_bytes(data[16:20], "big"), int.from_bytes(data[20:24], "big")


def test_summarize_weights():
    summary = summarize(_records([1.0, 3.0, 2.0]))
    assert summary.count == 3
    assert summary.min_weight == 1.0
    assert summary.max_weight == 3.0
    assert summary.avg_weight == pytest.approx(2.0)
    assert summary.weight_change == pytest.approx(2.0)


def test_summarize_ignores_zero_cog_readings():
    summary = summarize(_records([1.0, 1.0, 1.0], [0.0, 100.0, 200.0]))
    cog = summary.cogs[1]
    assert cog.samples == 2
    assert cog.minimum == 100.0
    assert cog.maximum == 200.0
    assert cog.average == pytest.approx(150.0)
    assert summary.cogs[2] is None


def test_summarize_empty_raises():
    with pytest.raises(ValueError):
        summarize([])


def test_format_summary_lines():
    text = format_summary(_records([1.0, 2.0], [5.0, 5.0]))
    assert "Total records: 2" in text
    assert "COG 2: No data" in text
    assert "COG 1: 2 samples" in text
    assert "=== FFT SURFACE PLOTS ===" in text


def test_format_summary_empty():
    assert format_summary([]) == ""


def test_time_series_plot_dimensions(tmp_path):
    path = tmp_path / "plot.png"
    weights = list(np.linspace(1.0, 4.0, 50))
    create_time_series_plot(_records(weights, list(np.linspace(10.0, 20.0, 50))), path, 640, 480)
    assert _png_size(path) == (640, 480)


def test_fft_surface_plot_for_active_sensor(tmp_path):
    n = 300
    cog = list(1000.0 + np.sin(np.arange(n) / 3.0))
    written = create_fft_surface_plots(_records([1.0] * n, cog), 320, 240, tmp_path)
    assert [path.name for path in written] == ["cog_1_fft_surface.png"]
    assert _png_size(written[0]) == (320, 240)


def test_fft_surface_plots_need_full_window(tmp_path):
    written = create_fft_surface_plots(_records([1.0] * 100, [5.0] * 100), 320, 240, tmp_path)
    assert written == []
    assert list(tmp_path.iterdir()) == []


def test_run_writes_plot_and_prints(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    source = tmp_path / "run.csv"
    write_csv(_records([1.0, 2.0, 3.0], [7.0, 8.0, 9.0]), source)
    written = run(source, tmp_path / "out.png", 400, 300)
    assert written == [tmp_path / "out.png"]
    assert _png_size(written[0]) == (400, 300)
    out = capsys.readouterr().out
    assert "Loaded 3 records" in out


def test_run_empty_file(tmp_path, capsys):
    source = tmp_path / "empty.csv"
    write_csv([], source)
    assert run(source, tmp_path / "out.png", 400, 300) == []
    assert "No data found" in capsys.readouterr().out
    assert not (tmp_path / "out.png").exists()