"""Spectral analysis of COG sensor series and the helpers used to draw it."""

from __future__ import annotations

from typing import Sequence, Union

import numpy as np

WINDOW_SIZE = 256
INTERPOLATION_FACTOR = 4

ArrayLike = Union[Sequence[float], np.ndarray]


def compute_fft(data: ArrayLike) -> np.ndarray:
    """Magnitudes of the Hann-windowed spectrum of ``data``.

    The DC bin is left out; bins 1 up to (but not including) ``len(data) // 2``
    are returned.
    """
    samples = np.asarray(data, dtype=float)
    n = samples.size
    if n < 4:
        return np.empty(0)
    window = 0.5 * (1.0 - np.cos(2.0 * np.pi * np.arange(n) / (n - 1)))
    spectrum = np.fft.fft(samples * window)
    return np.abs(spectrum[1 : n // 2])


def spectrogram(
    values: ArrayLike, window_size: int = WINDOW_SIZE
) -> tuple[np.ndarray, list[int]]:
    """Short-time spectra of the mean-centred ``values``.

    Windows of ``window_size`` samples overlap by half. Returns a 2-D array
    with one row per window and the sample index at the centre of each window.
    """
    if window_size < 1:
        raise ValueError("window_size must be positive")
    samples = np.asarray(values, dtype=float)
    step = window_size - window_size // 2
    starts = range(0, max(samples.size - window_size, 0), step)
    if not starts:
        return np.empty((0, max(window_size // 2 - 1, 0))), []
    centred = samples - samples.mean()
    rows = [compute_fft(centred[start : start + window_size]) for start in starts]
    return np.vstack(rows), [start + window_size // 2 for start in starts]


def bilinear_interpolate(data: ArrayLike, x, y):
    """Bilinearly interpolate the 2-D grid ``data`` at (``x``, ``y``).

    Coordinates are clamped to the grid; ``x`` indexes rows and ``y`` columns.
    Array coordinates are broadcast and give an array back.
    """
    grid = np.asarray(data, dtype=float)
    if grid.ndim != 2 or grid.size == 0:
        raise ValueError("data must be a non-empty 2-D grid")
    x_max = grid.shape[0] - 1
    y_max = grid.shape[1] - 1
    xc = np.clip(np.asarray(x, dtype=float), 0.0, x_max)
    yc = np.clip(np.asarray(y, dtype=float), 0.0, y_max)
    x0 = np.floor(xc).astype(int)
    y0 = np.floor(yc).astype(int)
    x1 = np.minimum(x0 + 1, x_max)
    y1 = np.minimum(y0 + 1, y_max)
    dx = xc - x0
    dy = yc - y0
    v0 = grid[x0, y0] * (1.0 - dx) + grid[x1, y0] * dx
    v1 = grid[x0, y1] * (1.0 - dx) + grid[x1, y1] * dx
    result = v0 * (1.0 - dy) + v1 * dy
    if np.ndim(result) == 0:
        return float(result)
    return result


def magnitude_range(magnitudes: ArrayLike) -> tuple[float, float]:
    """The 5th and 95th percentile values used to clip a spectrogram."""
    ordered = np.sort(np.asarray(magnitudes, dtype=float).ravel())
    if ordered.size == 0:
        raise ValueError("no magnitudes given")
    low = ordered[int(ordered.size * 0.05)]
    high = ordered[min(int(ordered.size * 0.95), ordered.size - 1)]
    return float(low), float(high)


def spectrum_color(normalized: float) -> tuple[int, int, int]:
    """Map a value in [0, 1] to an RGB colour, dark blue through red."""
    gamma = max(normalized, 0.0) ** 0.5
    if gamma < 0.25:
        t = gamma / 0.25
        return 0, 0, int(128.0 + 127.0 * t)
    if gamma < 0.5:
        t = (gamma - 0.25) / 0.25
        return 0, int(255.0 * t), 255
    if gamma < 0.75:
        t = (gamma - 0.5) / 0.25
        return int(255.0 * t), 255, int(255.0 * (1.0 - t))
    t = (gamma - 0.75) / 0.25
    return 255, max(int(255.0 * (1.0 - t * 0.8)), 0), 0


def cog_axis_limits(values: ArrayLike) -> tuple[float, float]:
    """Y-axis limits for a COG series: 5% padding, or a 0.1% band when flat."""
    samples = np.asarray(values, dtype=float)
    if samples.size == 0:
        raise ValueError("no values given")
    low = float(samples.min())
    high = float(samples.max())
    spread = high - low
    if spread < low * 0.001:
        centre = (low + high) / 2.0
        band = centre * 0.001
        return centre - band, centre + band
    padding = spread * 0.05
    return low - padding, high + padding