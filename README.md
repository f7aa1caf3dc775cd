# autompg

Tank fill measurement and analysis.

`autompg` records a tank fill run (scale weight together with the values of
eight COG sensors) to CSV, and turns a recorded run into plots and a text
summary.

## Installation

```
pip install .
```

To run the tests as well:

```
pip install .[test]
pytest
```

## Visualising a run

```
autompg viz --input tank_run.csv --output tank_analysis.png --width 1200 --height 800
```

All four options have defaults, and the values shown are those defaults.
`--width` and `--height` must be positive. The command writes:

- the `--output` image, with the weight over time on top and a 2×4 grid of the
  COG sensors below. Each sensor has its own y-axis scaling with 5 % padding,
  or a narrow ±0.1 % band around the centre when the series is nearly flat.
  Sensors whose values are all zero are left blank.
- `cog_N_fft_surface.png` in the current directory, one for each sensor with
  non-zero data and more than 256 samples. Each is a spectrogram of the
  sensor's mean-centred values, built from 256-sample Hann-windowed frames
  with 50 % overlap, interpolated 4× and coloured between the 5th and 95th
  percentile magnitudes.
- a summary on standard output: record count, weight range, average and
  change, and for each sensor the number of non-zero readings, their range,
  their average and the variation in percent.

If the CSV has a header but no rows, the command prints `No data found in …`
and writes nothing. A missing file, missing columns or unparsable values print
`Error: …` to standard error, and the exit status is 1.

## The CSV format

The columns are `timestamp, weight, cog_1` … `cog_8`. Timestamps are written
in UTC ISO 8601 form with a trailing `Z`. `autompg.records.write_csv` and
`autompg.records.read_csv` write and read this format, and `read_csv` raises
`ValueError` on bad data.

## Collecting data

The collection logic lives in `autompg.collect`. A run goes through the
phases of the `Phase` enum in this order:

1. `START_PUMP`: switch power supply channel 2 on.
2. `WAIT_STABLE_DECREASE`: poll the scale once a second until the weight
   has not fallen for `stable_secs` consecutive polls.
3. `STOP_PUMP`: switch channel 2 off.
4. `TARE_SCALE`: only logged; no command is sent to the scale.
5. `START_FILL`: switch channels 1 and 3 on.
6. `WAIT_STABLE_INCREASE`: poll once a second until the weight has not risen
   for `stable_secs` consecutive polls. On every poll, each pending COG packet
   is stored as a `Record` with the current weight.
7. `STOP_FILL`: switch channels 1 and 3 off.
8. `STORE_DATA`: write the records to the output CSV.

`autompg.collect.run(psu, scale_port, gtr, stable_secs=5, output_file="tank_run.csv")`
reads the scale on `scale_port` (9600 baud, through pyserial) in a background
thread, runs every phase, stops the COG reader and returns the captured
records. The power supply and COG reader are objects you supply:

- `psu` follows the `PowerSupply` protocol: `turn_on(channel)` and
  `turn_off(channel)`.
- `gtr` follows the `CogReader` protocol: `try_recv_packet()` returns a
  `CogPacket` (a `counter` and eight `cog_values`) or `None` when none is
  waiting, and `stop()` releases the device. It may raise `CogReaderError`.
  When `gtr` is `None`, no COG data is collected.

`Collector` runs the phases on its own. Its `step(phase)` carries out one
phase and returns the next. Its `sleep` argument replaces `time.sleep` between
polls.

### What is not included

The package has no drivers for the power supply or the GTR COG reader.
Because of that, `autompg collect` only accepts its options (`--psu-port`,
`--scale-port`, `--gtr-port`, `--stable-secs`, `--output`) and then exits with
an error saying that no driver is available. To record a run, call
`autompg.collect.run` from Python with your own `PowerSupply` and `CogReader`
implementations.

## Library overview

- `autompg.records`: `Record` (with `cog(sensor)` and `cogs`), `write_csv`,
  `read_csv`.
- `autompg.scale`: `WeightParser.feed(data)` turns raw scale bytes into
  weights in pounds. `read_scale(port_name, sink, stop)` reads a serial scale
  until the `threading.Event` `stop` is set. The helpers
  `decode_ascii_with_extra`, `filter_printable` and `remove_chars` are also
  available.
- `autompg.collect`: `Phase`, `Collector`, `PowerSupply`, `CogReader`,
  `CogPacket`, `CogReaderError`, `run`.
- `autompg.spectrum`: `compute_fft`, `spectrogram`, `bilinear_interpolate`,
  `magnitude_range`, `spectrum_color`, `cog_axis_limits`.
- `autompg.viz`: `summarize`, `format_summary`, `create_time_series_plot`,
  `create_fft_surface_plots`, `run`.
- `autompg.cli`: `build_parser` and `main`, the entry point of the
  `autompg` command.