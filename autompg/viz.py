"""Plots and summary statistics for a recorded tank run."""

from __future__ import annotations

import math
from dataclasses import dataclass
from os import PathLike
from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np
from matplotlib.figure import Figure
from matplotlib.ticker import StrMethodFormatter

from autompg.records import COG_SENSORS, Record, read_csv
from autompg.spectrum import (
    INTERPOLATION_FACTOR,
    bilinear_interpolate,
    cog_axis_limits,
    magnitude_range,
    spectrogram,
    spectrum_color,
)

PathType = Union[str, "PathLike[str]"]
DPI = 100

COG_COLORS = (
    (255, 0, 0),
    (0, 255, 0),
    (255, 0, 255),
    (0, 255, 255),
    (0, 0, 0),
    (255, 165, 0),
    (128, 0, 128),
    (255, 255, 0),
)


@dataclass(frozen=True)
class CogSummary:
    """Statistics of the non-zero readings of one COG sensor."""

    samples: int
    minimum: float
    maximum: float
    average: float
    variation: float


@dataclass(frozen=True)
class Summary:
    """Statistics of a whole run."""

    count: int
    min_weight: float
    max_weight: float
    avg_weight: float
    cogs: dict[int, Optional[CogSummary]]

    @property
    def weight_change(self) -> float:
        return self.max_weight - self.min_weight


def _rgb(color: tuple[int, int, int]) -> tuple[float, float, float]:
    return tuple(component / 255.0 for component in color)


def _cog_values(records: Sequence[Record], sensor: int) -> np.ndarray:
    return np.array([record.cog(sensor) for record in records], dtype=float)


def _figure(width: int, height: int) -> Figure:
    return Figure(figsize=(width / DPI, height / DPI), dpi=DPI)


def summarize(records: Sequence[Record]) -> Summary:
    """Weight and per-sensor COG statistics; zero COG readings count as missing."""
    if not records:
        raise ValueError("no records to summarize")
    weights = [record.weight for record in records]
    cogs: dict[int, Optional[CogSummary]] = {}
    for sensor in range(1, COG_SENSORS + 1):
        values = [record.cog(sensor) for record in records]
        present = [value for value in values if value != 0.0]
        if not present:
            cogs[sensor] = None
            continue
        minimum = min(present)
        maximum = max(values)
        average = sum(present) / len(present)
        variation = (maximum - minimum) / average * 100.0 if average else math.nan
        cogs[sensor] = CogSummary(len(present), minimum, maximum, average, variation)
    return Summary(
        count=len(records),
        min_weight=min(weights),
        max_weight=max(weights),
        avg_weight=sum(weights) / len(weights),
        cogs=cogs,
    )


def format_summary(records: Sequence[Record]) -> str:
    """The text report printed after plotting."""
    if not records:
        return ""
    summary = summarize(records)
    lines = [
        "",
        "=== DATA SUMMARY ===",
        f"Total records: {summary.count}",
        f"Weight range: {summary.min_weight:.2f} - {summary.max_weight:.2f} lb",
        f"Average weight: {summary.avg_weight:.2f} lb",
        f"Weight change: {summary.weight_change:.2f} lb",
        "",
        "=== COG ANALYSIS ===",
    ]
    for sensor, cog in summary.cogs.items():
        if cog is None:
            lines.append(f"COG {sensor}: No data")
        else:
            lines.append(
                f"COG {sensor}: {cog.samples} samples, range {cog.minimum:.0f} - "
                f"{cog.maximum:.0f}, avg {cog.average:.0f}, variation {cog.variation:.3f}%"
            )
    lines += [
        "",
        "=== FFT SURFACE PLOTS ===",
        "Generated FFT spectrograms for active COG sensors",
        "Files: cog_N_fft_surface.png (where N = sensor number)",
        "Features: Mean-centered data, linear scale, individual COG subplots",
    ]
    return "\n".join(lines)


def create_time_series_plot(
    records: Sequence[Record], output_file: PathType, width: int, height: int
) -> None:
    """Draw weight over time above a 2x4 grid of COG sensor plots."""
    figure = _figure(width, height)
    outer = figure.add_gridspec(2, 1)
    count = len(records)

    weight_axes = figure.add_subplot(outer[0])
    weights = [record.weight for record in records]
    weight_axes.plot(range(count), weights, color=_rgb((0, 0, 255)), linewidth=2, label="Weight")
    weight_axes.set_xlim(0, max(count, 1))
    weight_axes.set_ylim(0, max([0.0, *weights]) + 0.5)
    weight_axes.set_title("Weight Over Time")
    weight_axes.set_xlabel("Time (samples)")
    weight_axes.set_ylabel("Weight (lb)")
    weight_axes.legend()

    grid = outer[1].subgridspec(2, 4)
    for sensor in range(1, COG_SENSORS + 1):
        values = _cog_values(records, sensor)
        if not values.any():
            continue
        axes = figure.add_subplot(grid[(sensor - 1) // 4, (sensor - 1) % 4])
        axes.plot(
            range(count),
            values,
            color=_rgb(COG_COLORS[(sensor - 1) % len(COG_COLORS)]),
            linewidth=1,
        )
        low, high = cog_axis_limits(values)
        if high > low:
            axes.set_ylim(low, high)
        axes.set_xlim(0, max(count, 1))
        axes.set_title(f"COG {sensor}", fontsize=9)
        axes.set_xlabel("Samples", fontsize=7)
        axes.set_ylabel("Value", fontsize=7)
        axes.xaxis.set_major_formatter(StrMethodFormatter("{x:.0f}"))
        axes.yaxis.set_major_formatter(StrMethodFormatter("{x:.0f}"))
        axes.tick_params(labelsize=6)

    figure.savefig(output_file)
    print(f"Time series plot saved to: {output_file}")


def _create_surface_plot(
    fft_data: np.ndarray, output_file: Path, width: int, height: int, sensor: int
) -> None:
    time_bins, freq_bins = fft_data.shape
    low, high = magnitude_range(fft_data)
    outliers = int(np.count_nonzero(fft_data > high))
    print(
        f"COG {sensor} FFT: Min={fft_data.min():.1f}, Max={fft_data.max():.1f}, "
        f"P95={high:.1f}, {outliers} outliers clipped"
    )

    time_coords = (np.arange(time_bins * INTERPOLATION_FACTOR) + 0.5) / INTERPOLATION_FACTOR
    freq_coords = (np.arange(freq_bins * INTERPOLATION_FACTOR) + 0.5) / INTERPOLATION_FACTOR
    magnitudes = bilinear_interpolate(fft_data, time_coords[:, None], freq_coords[None, :])
    clipped = np.clip(magnitudes, low, high)
    if high > low:
        normalized = (clipped - low) / (high - low)
    else:
        normalized = np.zeros_like(clipped)
    image = np.array(
        [[spectrum_color(value) for value in row] for row in normalized.T], dtype=np.uint8
    )

    figure = _figure(width, height)
    axes = figure.add_subplot()
    axes.imshow(
        image,
        origin="lower",
        aspect="auto",
        extent=(0, time_bins, 0, freq_bins),
        interpolation="nearest",
    )
    axes.set_title(
        f"COG {sensor} - FFT Spectrogram (5%-95% Range: {low:.1f} - {high:.1f})"
    )
    axes.set_xlabel("Time Window")
    axes.set_ylabel("Frequency Bin")
    axes.text(time_bins * 0.7, freq_bins * 0.05, f"{outliers} outliers clipped", color="black")
    figure.savefig(output_file)
    print(
        f"FFT surface plot saved to: {output_file} (high-resolution interpolated surface)"
    )


def create_fft_surface_plots(
    records: Sequence[Record], width: int, height: int, directory: PathType = "."
) -> list[Path]:
    """Draw a spectrogram for each active COG sensor; return the files written."""
    written = []
    for sensor in range(1, COG_SENSORS + 1):
        values = _cog_values(records, sensor)
        if not values.any():
            continue
        print(f"Creating FFT surface plot for COG {sensor}")
        fft_data, _ = spectrogram(values)
        if fft_data.shape[0] == 0:
            continue
        path = Path(directory) / f"cog_{sensor}_fft_surface.png"
        _create_surface_plot(fft_data, path, width, height, sensor)
        written.append(path)
    return written


def run(input_file: PathType, output_file: PathType, width: int, height: int) -> list[Path]:
    """Load a run from ``input_file``, plot it and print a summary.

    Returns the image files written; spectrograms go to the current directory.
    """
    print(f"Loading data from: {input_file}")
    records = read_csv(input_file)
    if not records:
        print(f"No data found in {input_file}")
        return []
    print(f"Loaded {len(records)} records")
    create_time_series_plot(records, output_file, width, height)
    written = [Path(output_file)]
    written += create_fft_surface_plots(records, width, height)
    print(format_summary(records))
    return written