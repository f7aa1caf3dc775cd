import numpy as np
import pytest

from autompg.spectrum import (
    bilinear_interpolate,
    cog_axis_limits,
    compute_fft,
    magnitude_range,
    spectrogram,
    spectrum_color,
)


def _sine(cycles, n):
    return np.sin(2 * np.pi * cycles * np.arange(n) / n)


def test_compute_fft_length_skips_dc():
    result = compute_fft(np.ones(64))
    assert len(result) == 64 // 2 - 1


def test_compute_fft_peak_at_signal_frequency():
    result = compute_fft(_sine(8, 64))
    # Index 0 is bin 1.
    assert int(np.argmax(result)) == 8 - 1


def test_compute_fft_is_linear_in_amplitude():
    signal = _sine(5, 128)
    np.testing.assert_allclose(compute_fft(3 * signal), 3 * compute_fft(signal))


def test_compute_fft_short_input_is_empty():
    assert compute_fft([1.0, 2.0, 3.0]).size == 0


def test_spectrogram_shape_matches_time_points():
    data, points = spectrogram(_sine(30, 600))
    assert data.shape[0] == len(points)
    assert data.shape[1] == 256 // 2 - 1
    assert points == sorted(points)


def test_spectrogram_exact_window_gives_nothing():
    data, points = spectrogram(np.arange(256.0))
    assert points == []
    assert data.shape[0] == 0


def test_spectrogram_removes_offset():
    signal = _sine(12, 700)
    base, _ = spectrogram(signal)
    shifted, _ = spectrogram(signal + 1000.0)
    np.testing.assert_allclose(base, shifted, atol=1e-6)


def test_spectrogram_rejects_bad_window():
    with pytest.raises(ValueError):
        spectrogram([1.0, 2.0], window_size=0)


def test_bilinear_hits_grid_points():
    grid = [[1.0, 2.0], [3.0, 4.0]]
    assert bilinear_interpolate(grid, 0, 0) == 1.0
    assert bilinear_interpolate(grid, 1, 1) == 4.0
    assert bilinear_interpolate(grid, 1, 0) == 3.0


def test_bilinear_centre_is_mean_of_corners():
    grid = [[1.0, 2.0], [3.0, 4.0]]
    assert bilinear_interpolate(grid, 0.5, 0.5) == pytest.approx(np.mean(grid))


def test_bilinear_clamps_outside_grid():
    grid = [[1.0, 2.0], [3.0, 4.0]]
    assert bilinear_interpolate(grid, -5, -5) == 1.0
    assert bilinear_interpolate(grid, 10, 10) == 4.0


def test_bilinear_broadcasts_arrays():
    grid = np.arange(12.0).reshape(3, 4)
    xs = np.arange(3)[:, None]
    ys = np.arange(4)[None, :]
    np.testing.assert_allclose(bilinear_interpolate(grid, xs, ys), grid)


def test_bilinear_rejects_empty():
    with pytest.raises(ValueError):
        bilinear_interpolate([], 0, 0)


def test_magnitude_range_percentiles():
    values = np.arange(100.0)
    rng = np.random.default_rng(1)
    rng.shuffle(values)
    low, high = magnitude_range(values)
    assert (low, high) == (values.min() + 5, values.min() + 95)


def test_magnitude_range_single_value():
    assert magnitude_range([7.5]) == (7.5, 7.5)


def test_magnitude_range_empty():
    with pytest.raises(ValueError):
        magnitude_range([])


def test_spectrum_color_endpoints():
    assert spectrum_color(0.0) == (0, 0, 128)
    assert spectrum_color(0.25) == (0, 255, 255)
    red, green, blue = spectrum_color(1.0)
    assert red == 255 and blue == 0 and green < 255


def test_spectrum_color_components_in_range():
    for value in np.linspace(0.0, 1.0, 101):
        assert all(0 <= component <= 255 for component in spectrum_color(value))


def test_cog_axis_limits_padded():
    low, high = cog_axis_limits([10.0, 20.0, 15.0])
    assert low < 10.0 and high > 20.0
    assert (10.0 - low) == pytest.approx(high - 20.0)


def test_cog_axis_limits_flat_series():
    low, high = cog_axis_limits([1000.0, 1000.0])
    assert low < 1000.0 < high
    assert 1000.0 - low == pytest.approx(high - 1000.0)


def test_cog_axis_limits_empty():
    with pytest.raises(ValueError):
        cog_axis_limits([])